# app/domain/services/fingerprint.py
import hashlib

from app.domain.ports.document_repository import DocumentRepository


def fingerprint(raw_text: str) -> str:
    """
    Huella SHA-256 (hex) del texto XML exacto, sin normalizar: dos cargas
    byte a byte idénticas siempre producen la misma huella.
    """
    return hashlib.sha256(raw_text.encode("utf-8")).hexdigest()


class DuplicateDetector:
    """
    Verificación previa de duplicados. Es solo un atajo para fallar rápido:
    el índice único de la tabla es el que garantiza la unicidad cuando dos
    cargas idénticas compiten.
    """

    def __init__(self, repository: DocumentRepository):
        self.repository = repository

    def is_duplicate(self, content_fingerprint: str) -> bool:
        return self.repository.exists_by_fingerprint(content_fingerprint)
