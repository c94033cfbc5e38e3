# app/domain/services/xml_validation_service.py
"""
Contrato programático que consume la capa CRUD: validación y extracción
a partir del texto XML crudo. Cada función parsea su propia copia del árbol.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from app.domain.errors import EmptyContent, MalformedXml
from app.domain.models.fiscal_document import DocumentKind, ValidationResult
from app.domain.services import field_extractor
from app.domain.services.document_classifier import classify
from app.domain.services.xml_tree import XmlTree, parse_xml


def validate_xml(content: str) -> ValidationResult:
    try:
        parse_xml(content)
    except (EmptyContent, MalformedXml) as e:
        return ValidationResult(is_valid=False, error_message=str(e))
    return ValidationResult(is_valid=True)


def _try_parse(content: str) -> Optional[XmlTree]:
    try:
        return parse_xml(content)
    except (EmptyContent, MalformedXml):
        return None


def extract_document_type(content: str) -> DocumentKind:
    # Un XML que no se puede parsear se clasifica como OTHER
    return classify(_try_parse(content))


def extract_document_number(content: str, kind: DocumentKind) -> Optional[str]:
    return field_extractor.extract_document_number(_try_parse(content), kind)


def extract_emitter_tax_id(content: str, kind: DocumentKind) -> Optional[str]:
    return field_extractor.extract_emitter_tax_id(_try_parse(content), kind)


def extract_emitter_name(content: str, kind: DocumentKind) -> Optional[str]:
    return field_extractor.extract_emitter_name(_try_parse(content), kind)


def extract_total_value(content: str, kind: DocumentKind) -> Optional[Decimal]:
    return field_extractor.extract_total_value(_try_parse(content), kind)


def extract_emission_date(content: str, kind: DocumentKind) -> Optional[datetime]:
    return field_extractor.extract_emission_date(_try_parse(content), kind)
