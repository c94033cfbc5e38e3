# app/infrastructure/persistence/document_repository_adapter.py
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.errors import DuplicateDocument, StorageFailure
from app.domain.models.fiscal_document import DocumentKind, FiscalDocument, ProcessingStatus
from app.domain.ports.document_repository import DocumentRepository
from .models import DocumentoFiscal


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_domain(row: DocumentoFiscal) -> FiscalDocument:
    return FiscalDocument(
        id=row.id,
        file_name=row.nombre_archivo,
        kind=DocumentKind.from_code(row.tipo),
        xml_content=row.contenido_xml,
        uploaded_at=row.fecha_carga,
        status=ProcessingStatus.from_code(row.estado),
        file_size=row.tamano_archivo,
        fingerprint=row.hash_contenido,
        document_number=row.numero_documento,
        emitter_tax_id=row.cnpj_emisor,
        emitter_name=row.nombre_emisor,
        total_value=row.valor_total,
        emitted_at=row.fecha_emision,
    )


class SQLAlchemyDocumentRepository(DocumentRepository):
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _storage_errors(self, action: str):
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logging.error(f"Error de base de datos al {action}: {e}")
            raise StorageFailure(f"Error al {action}: {e}") from e

    def _filtered_query(self, text_filter: Optional[str], kind: Optional[DocumentKind], status: Optional[ProcessingStatus]):
        query = self.db.query(DocumentoFiscal)
        if text_filter:
            query = query.filter(or_(
                DocumentoFiscal.nombre_archivo.contains(text_filter, autoescape=True),
                DocumentoFiscal.numero_documento.contains(text_filter, autoescape=True),
            ))
        if kind is not None:
            query = query.filter(DocumentoFiscal.tipo == kind.code)
        if status is not None:
            query = query.filter(DocumentoFiscal.estado == status.code)
        return query

    def add(self, document: FiscalDocument) -> FiscalDocument:
        row = DocumentoFiscal(
            nombre_archivo=document.file_name,
            tipo=document.kind.code,
            contenido_xml=document.xml_content,
            fecha_carga=document.uploaded_at or _utcnow(),
            estado=document.status.code,
            numero_documento=document.document_number,
            tamano_archivo=document.file_size,
            hash_contenido=document.fingerprint,
            cnpj_emisor=document.emitter_tax_id,
            nombre_emisor=document.emitter_name,
            valor_total=document.total_value,
            fecha_emision=document.emitted_at,
        )
        try:
            self.db.add(row)
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            # Otra carga idéntica ganó la carrera entre la verificación y el insert
            if document.fingerprint:
                with self._storage_errors("verificar duplicados"):
                    taken = self._fingerprint_taken(document.fingerprint)
                if taken:
                    raise DuplicateDocument(document.fingerprint) from e
            raise StorageFailure(f"Error al guardar el documento: {e.orig}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageFailure(f"Error al guardar el documento: {e}") from e

        self.db.refresh(row)
        return _to_domain(row)

    def get_by_id(self, document_id: int) -> Optional[FiscalDocument]:
        with self._storage_errors("buscar el documento"):
            row = self.db.get(DocumentoFiscal, document_id)
        return _to_domain(row) if row else None

    def _fingerprint_taken(self, fingerprint: str) -> bool:
        return self.db.query(DocumentoFiscal.id)\
            .filter(DocumentoFiscal.hash_contenido == fingerprint)\
            .first() is not None

    def exists_by_fingerprint(self, fingerprint: str) -> bool:
        with self._storage_errors("verificar duplicados"):
            return self._fingerprint_taken(fingerprint)

    def get_paged(
        self,
        page: int,
        page_size: int,
        text_filter: Optional[str] = None,
        kind: Optional[DocumentKind] = None,
        status: Optional[ProcessingStatus] = None,
    ) -> List[FiscalDocument]:
        with self._storage_errors("buscar documentos"):
            rows = self._filtered_query(text_filter, kind, status)\
                .order_by(DocumentoFiscal.fecha_carga.desc(), DocumentoFiscal.id.desc())\
                .offset((page - 1) * page_size)\
                .limit(page_size)\
                .all()
        return [_to_domain(row) for row in rows]

    def count(
        self,
        text_filter: Optional[str] = None,
        kind: Optional[DocumentKind] = None,
        status: Optional[ProcessingStatus] = None,
    ) -> int:
        with self._storage_errors("contar documentos"):
            return self._filtered_query(text_filter, kind, status).count()

    def update_status(self, document_id: int, status: ProcessingStatus) -> Optional[FiscalDocument]:
        with self._storage_errors("actualizar el estado"):
            row = self.db.get(DocumentoFiscal, document_id)
            if row is None:
                return None
            row.estado = status.code
            self.db.flush()
        return _to_domain(row)

    def delete(self, document_id: int) -> bool:
        with self._storage_errors("eliminar el documento"):
            row = self.db.get(DocumentoFiscal, document_id)
            if row is None:
                return False
            self.db.delete(row)
            self.db.flush()
        return True
