# app/domain/errors.py


class FiscalDocumentError(Exception):
    """Error base del núcleo de ingesta de documentos fiscales."""


class InvalidUpload(FiscalDocumentError):
    """El archivo no pasó los controles de admisión (extensión, tamaño, nombre)."""


class EmptyContent(InvalidUpload):
    """No se recibió contenido, o el contenido está en blanco."""


class MalformedXml(FiscalDocumentError):
    """El parser no pudo construir el árbol XML."""


class DuplicateDocument(FiscalDocumentError):
    """Ya existe un documento con la misma huella de contenido."""

    def __init__(self, fingerprint: str, message: str = "Este documento ya fue importado anteriormente"):
        super().__init__(message)
        self.fingerprint = fingerprint


class StorageFailure(FiscalDocumentError):
    """Error de la capa de persistencia, se propaga sin reintentos."""


class DocumentNotFound(FiscalDocumentError):
    def __init__(self, document_id: int):
        super().__init__(f"Documento {document_id} no encontrado")
        self.document_id = document_id


class InvalidStatusTransition(FiscalDocumentError):
    pass
