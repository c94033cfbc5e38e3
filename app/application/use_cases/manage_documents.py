# app/application/use_cases/manage_documents.py
import logging
from typing import Optional

import config
from app.domain.errors import DocumentNotFound, InvalidStatusTransition
from app.domain.models.fiscal_document import (
    DocumentKind,
    FiscalDocument,
    PagedResult,
    ProcessingStatus,
)
from app.domain.ports.document_repository import DocumentRepository


class ManageDocumentsUseCase:
    """Consultas y operaciones de ciclo de vida sobre documentos ya cargados."""

    def __init__(self, document_repo: DocumentRepository):
        self.document_repo = document_repo

    def get_by_id(self, document_id: int) -> FiscalDocument:
        document = self.document_repo.get_by_id(document_id)
        if document is None:
            raise DocumentNotFound(document_id)
        return document

    def list_paged(
        self,
        page: int = 1,
        page_size: int = config.DEFAULT_PAGE_SIZE,
        text_filter: Optional[str] = None,
        kind: Optional[DocumentKind] = None,
        status: Optional[ProcessingStatus] = None,
    ) -> PagedResult[FiscalDocument]:
        # Valores fuera de rango vuelven a los valores por defecto
        if page < 1:
            page = 1
        if page_size < 1 or page_size > config.MAX_PAGE_SIZE:
            page_size = config.DEFAULT_PAGE_SIZE

        items = self.document_repo.get_paged(page, page_size, text_filter, kind, status)
        total_count = self.document_repo.count(text_filter, kind, status)
        return PagedResult[FiscalDocument](
            items=items,
            page=page,
            page_size=page_size,
            total_count=total_count,
        )

    def cancel(self, document_id: int) -> FiscalDocument:
        document = self.get_by_id(document_id)
        if not document.status.can_transition_to(ProcessingStatus.CANCELLED):
            raise InvalidStatusTransition(
                f"No se puede cancelar un documento en estado {document.status.value}"
            )
        updated = self.document_repo.update_status(document_id, ProcessingStatus.CANCELLED)
        logging.info(f"[{document_id}] Documento cancelado.")
        return updated

    def delete(self, document_id: int) -> None:
        if not self.document_repo.delete(document_id):
            raise DocumentNotFound(document_id)
        logging.info(f"[{document_id}] Documento eliminado.")
