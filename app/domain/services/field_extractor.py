# app/domain/services/field_extractor.py
"""
Extracción de campos de negocio de los XML fiscales.

Todas las búsquedas son "primer descendiente que coincide" por nombre local,
sin importar la profundidad: las variantes anidan el mismo campo en niveles
distintos según la versión del esquema. La contrapartida es que no se
distinguen dos elementos homónimos en posiciones semánticas distintas.

Solo la tabla FIELD_TAGS depende del tipo de documento; para soportar una
variante nueva basta con agregar sus etiquetas ahí.
"""
import re
import logging
from enum import Enum
from decimal import Decimal, InvalidOperation
from datetime import datetime, timezone
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from app.domain.models.fiscal_document import (
    DocumentKind,
    ExtractionWarning,
    FieldFailure,
)
from app.domain.services.xml_tree import XmlTree


class Field(str, Enum):
    DOCUMENT_NUMBER = "document_number"
    EMITTER_TAX_ID = "emitter_tax_id"
    EMITTER_NAME = "emitter_name"
    TOTAL_VALUE = "total_value"
    EMISSION_DATE = "emitted_at"


_ALL_KINDS = list(DocumentKind)

# --- Tabla tipo x campo -> etiqueta (ausente = no soportado) ---
FIELD_TAGS: Dict[Field, Dict[DocumentKind, str]] = {
    Field.DOCUMENT_NUMBER: {
        DocumentKind.CTE: "nCT",
        DocumentKind.NFE: "nNF",
        DocumentKind.MDFE: "nMDF",
    },
    Field.TOTAL_VALUE: {
        DocumentKind.CTE: "vTPrest",
        DocumentKind.NFE: "vNF",
    },
    # Solo CNPJ: los emisores persona física (CPF) no se consideran
    Field.EMITTER_TAX_ID: {kind: "CNPJ" for kind in _ALL_KINDS},
    Field.EMITTER_NAME: {kind: "xNome" for kind in _ALL_KINDS},
    Field.EMISSION_DATE: {kind: "dhEmi" for kind in _ALL_KINDS},
}

# Campos que se buscan dentro del primer <emit>
EMITTER_TAG = "emit"
EMITTER_SCOPED_FIELDS = (Field.EMITTER_TAX_ID, Field.EMITTER_NAME)

# Límites de las columnas de la tabla
MAX_TEXT_LENGTH = {
    Field.DOCUMENT_NUMBER: 50,
    Field.EMITTER_TAX_ID: 14,
    Field.EMITTER_NAME: 255,
}
MAX_TOTAL_VALUE = Decimal("9999999999999999.99")

# Formato invariante: signo opcional, dígitos y punto decimal; sin separador de miles
_INVARIANT_DECIMAL = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")

# Las fechas con barras siguen el orden invariante: mes/día/año
_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%Y/%m/%d",
)

FIELD_LABELS = {
    Field.DOCUMENT_NUMBER: "número del documento",
    Field.EMITTER_TAX_ID: "CNPJ del emisor",
    Field.EMITTER_NAME: "nombre del emisor",
    Field.TOTAL_VALUE: "valor total",
    Field.EMISSION_DATE: "fecha de emisión",
}

FAILURE_DESCRIPTIONS = {
    FieldFailure.UNSUPPORTED_KIND: "el tipo de documento no define este campo",
    FieldFailure.NO_TREE: "no hay un árbol XML válido",
    FieldFailure.TAG_ABSENT: "la etiqueta no está presente",
    FieldFailure.EMPTY: "la etiqueta está vacía",
    FieldFailure.UNPARSABLE: "el valor no tiene un formato válido",
    FieldFailure.OUT_OF_RANGE: "el valor está fuera del rango permitido",
}


class FieldOutcome(NamedTuple):
    value: Any = None
    failure: Optional[FieldFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class ExtractedFields(NamedTuple):
    document_number: Optional[str] = None
    emitter_tax_id: Optional[str] = None
    emitter_name: Optional[str] = None
    total_value: Optional[Decimal] = None
    emitted_at: Optional[datetime] = None


def tag_for(field: Field, kind: DocumentKind) -> Optional[str]:
    return FIELD_TAGS[field].get(kind)


def _failed(failure: FieldFailure) -> FieldOutcome:
    return FieldOutcome(None, failure)


def _locate_text(tree: Optional[XmlTree], field: Field, kind: DocumentKind) -> FieldOutcome:
    tag = tag_for(field, kind)
    if tag is None:
        return _failed(FieldFailure.UNSUPPORTED_KIND)
    if tree is None:
        return _failed(FieldFailure.NO_TREE)

    try:
        scope = None
        if field in EMITTER_SCOPED_FIELDS:
            scope = tree.find_first(EMITTER_TAG)
            if scope is None:
                return _failed(FieldFailure.TAG_ABSENT)

        element = tree.find_first(tag, within=scope)
        if element is None:
            return _failed(FieldFailure.TAG_ABSENT)
        text = tree.text_of(element).strip()
    except Exception as e:
        logging.warning(f"Error al recorrer el XML buscando '{tag}': {e}")
        return _failed(FieldFailure.NO_TREE)

    if not text:
        return FieldOutcome("", FieldFailure.EMPTY)
    return FieldOutcome(text)


def parse_invariant_decimal(raw: str) -> FieldOutcome:
    if not _INVARIANT_DECIMAL.match(raw):
        return _failed(FieldFailure.UNPARSABLE)
    try:
        value = Decimal(raw)
    except InvalidOperation:
        return _failed(FieldFailure.UNPARSABLE)
    if value < 0 or value > MAX_TOTAL_VALUE:
        return _failed(FieldFailure.OUT_OF_RANGE)
    return FieldOutcome(value)


def parse_permissive_datetime(raw: str) -> FieldOutcome:
    parsed = None
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(raw, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return _failed(FieldFailure.UNPARSABLE)

    # Fechas con offset se normalizan a UTC sin zona horaria
    if parsed.tzinfo is not None:
        try:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        except (OverflowError, ValueError):
            return _failed(FieldFailure.OUT_OF_RANGE)
    return FieldOutcome(parsed)


def extract_field(tree: Optional[XmlTree], kind: DocumentKind, field: Field) -> FieldOutcome:
    """
    Extrae un campo y reporta por qué falló, si falló. Nunca lanza excepciones.
    """
    located = _locate_text(tree, field, kind)
    if not located.ok:
        # Un elemento de texto vacío devuelve "" en lugar de None
        return located if field in MAX_TEXT_LENGTH else _failed(located.failure)
    raw = located.value

    if field == Field.TOTAL_VALUE:
        return parse_invariant_decimal(raw)
    if field == Field.EMISSION_DATE:
        return parse_permissive_datetime(raw)
    if len(raw) > MAX_TEXT_LENGTH[field]:
        return _failed(FieldFailure.OUT_OF_RANGE)
    return located


def extract_document_number(tree: Optional[XmlTree], kind: DocumentKind) -> Optional[str]:
    return extract_field(tree, kind, Field.DOCUMENT_NUMBER).value


def extract_emitter_tax_id(tree: Optional[XmlTree], kind: DocumentKind) -> Optional[str]:
    return extract_field(tree, kind, Field.EMITTER_TAX_ID).value


def extract_emitter_name(tree: Optional[XmlTree], kind: DocumentKind) -> Optional[str]:
    return extract_field(tree, kind, Field.EMITTER_NAME).value


def extract_total_value(tree: Optional[XmlTree], kind: DocumentKind) -> Optional[Decimal]:
    return extract_field(tree, kind, Field.TOTAL_VALUE).value


def extract_emission_date(tree: Optional[XmlTree], kind: DocumentKind) -> Optional[datetime]:
    return extract_field(tree, kind, Field.EMISSION_DATE).value


def _should_warn(field: Field, failure: FieldFailure) -> bool:
    # Un campo que el tipo no define no es una advertencia, y la fecha de
    # emisión es opcional: solo advierte si existe pero no se puede leer.
    if failure == FieldFailure.UNSUPPORTED_KIND:
        return False
    if field == Field.EMISSION_DATE and failure in (FieldFailure.TAG_ABSENT, FieldFailure.EMPTY):
        return False
    return True


def build_warning(field: Field, failure: FieldFailure) -> ExtractionWarning:
    return ExtractionWarning(
        field=field.value,
        reason=failure,
        message=f"No se pudo extraer el {FIELD_LABELS[field]}: {FAILURE_DESCRIPTIONS[failure]}",
    )


def extract_all(tree: Optional[XmlTree], kind: DocumentKind) -> Tuple[ExtractedFields, List[ExtractionWarning]]:
    """
    Ejecuta los cinco extractores. Un campo fallido queda en None y,
    según el motivo, genera una advertencia no fatal.
    """
    values = {}
    warnings: List[ExtractionWarning] = []
    for field in Field:
        outcome = extract_field(tree, kind, field)
        values[field.value] = outcome.value if outcome.ok else None
        if not outcome.ok and _should_warn(field, outcome.failure):
            warnings.append(build_warning(field, outcome.failure))
    return ExtractedFields(**values), warnings
