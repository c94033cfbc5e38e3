# app/domain/models/fiscal_document.py
import math
from enum import Enum
from decimal import Decimal
from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, ConfigDict, computed_field


class DocumentKind(str, Enum):
    """Tipos de documento fiscal electrónico reconocidos."""
    CTE = "CTe"
    NFE = "NFe"
    MDFE = "MDFe"
    NFCE = "NFCe"
    OTHER = "Other"

    @property
    def code(self) -> int:
        return _KIND_CODES[self]

    @classmethod
    def from_code(cls, code: int) -> "DocumentKind":
        for kind, kind_code in _KIND_CODES.items():
            if kind_code == code:
                return kind
        raise ValueError(f"Código de tipo de documento desconocido: {code}")


# Códigos numéricos persistidos en la tabla
_KIND_CODES = {
    DocumentKind.CTE: 1,
    DocumentKind.NFE: 2,
    DocumentKind.MDFE: 3,
    DocumentKind.NFCE: 4,
    DocumentKind.OTHER: 99,
}


class ProcessingStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    PROCESSED = "Processed"
    ERROR = "Error"
    CANCELLED = "Cancelled"

    @property
    def code(self) -> int:
        return list(ProcessingStatus).index(self) + 1

    @classmethod
    def from_code(cls, code: int) -> "ProcessingStatus":
        members = list(ProcessingStatus)
        if not 1 <= code <= len(members):
            raise ValueError(f"Código de estado desconocido: {code}")
        return members[code - 1]

    def can_transition_to(self, target: "ProcessingStatus") -> bool:
        """
        Pending -> Processing -> Processed|Error, o bien
        Pending/Processed -> Cancelled.
        """
        return target in _ALLOWED_TRANSITIONS.get(self, ())


_ALLOWED_TRANSITIONS = {
    ProcessingStatus.PENDING: (ProcessingStatus.PROCESSING, ProcessingStatus.CANCELLED),
    ProcessingStatus.PROCESSING: (ProcessingStatus.PROCESSED, ProcessingStatus.ERROR),
    ProcessingStatus.PROCESSED: (ProcessingStatus.CANCELLED,),
}


class FiscalDocument(BaseModel):
    """
    Documento fiscal persistido. Los campos extraídos del XML son opcionales:
    un campo que no se pudo extraer queda en None.
    """
    id: Optional[int] = None
    file_name: str = Field(min_length=1, max_length=255)
    kind: DocumentKind
    xml_content: str = Field(min_length=1)
    uploaded_at: Optional[datetime] = None
    status: ProcessingStatus = ProcessingStatus.PENDING
    file_size: int = Field(default=0, ge=0)
    fingerprint: Optional[str] = Field(default=None, max_length=100)

    # --- Campos extraídos del XML ---
    document_number: Optional[str] = Field(default=None, max_length=50)
    emitter_tax_id: Optional[str] = Field(default=None, max_length=14)
    emitter_name: Optional[str] = Field(default=None, max_length=255)
    total_value: Optional[Decimal] = Field(default=None, ge=0)
    emitted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ValidationResult(BaseModel):
    is_valid: bool
    error_message: Optional[str] = None
    warnings: List[str] = []


class FieldFailure(str, Enum):
    """Motivo por el que un campo no pudo extraerse."""
    UNSUPPORTED_KIND = "unsupported_kind"
    NO_TREE = "no_tree"
    TAG_ABSENT = "tag_absent"
    EMPTY = "empty"
    UNPARSABLE = "unparsable"
    OUT_OF_RANGE = "out_of_range"


class ExtractionWarning(BaseModel):
    """Advertencia no fatal: el documento se acepta con el campo sin valor."""
    field: str
    reason: FieldFailure
    message: str


class UploadResult(BaseModel):
    document: FiscalDocument
    warnings: List[ExtractionWarning] = []


T = TypeVar("T")


class PagedResult(BaseModel, Generic[T]):
    items: List[T]
    page: int
    page_size: int
    total_count: int

    @computed_field
    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)

    @computed_field
    @property
    def has_previous_page(self) -> bool:
        return self.page > 1

    @computed_field
    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages
