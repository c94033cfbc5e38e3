# app/domain/ports/document_repository.py
from abc import ABC, abstractmethod
from typing import List, Optional

from app.domain.models.fiscal_document import (
    DocumentKind,
    FiscalDocument,
    ProcessingStatus,
)


class DocumentRepository(ABC):
    """
    Contrato de persistencia de documentos fiscales. El commit/rollback
    de la transacción pertenece a quien invoca (ruta HTTP o tarea de Celery).
    """

    @abstractmethod
    def add(self, document: FiscalDocument) -> FiscalDocument:
        """
        Guarda un documento nuevo y lo retorna con el ID y la fecha de carga
        asignados. Lanza DuplicateDocument si la huella ya existe y
        StorageFailure ante cualquier otro error de la base de datos.
        """
        pass

    @abstractmethod
    def get_by_id(self, document_id: int) -> Optional[FiscalDocument]:
        pass

    @abstractmethod
    def exists_by_fingerprint(self, fingerprint: str) -> bool:
        pass

    @abstractmethod
    def get_paged(
        self,
        page: int,
        page_size: int,
        text_filter: Optional[str] = None,
        kind: Optional[DocumentKind] = None,
        status: Optional[ProcessingStatus] = None,
    ) -> List[FiscalDocument]:
        """Página 1-based, ordenada por fecha de carga descendente."""
        pass

    @abstractmethod
    def count(
        self,
        text_filter: Optional[str] = None,
        kind: Optional[DocumentKind] = None,
        status: Optional[ProcessingStatus] = None,
    ) -> int:
        pass

    @abstractmethod
    def update_status(self, document_id: int, status: ProcessingStatus) -> Optional[FiscalDocument]:
        pass

    @abstractmethod
    def delete(self, document_id: int) -> bool:
        pass
