"""Tests del contrato programático de validación y extracción."""

from decimal import Decimal

import pytest

from app.domain.models.fiscal_document import DocumentKind
from app.domain.services import xml_validation_service as service
from xml_samples import CTE_WITHOUT_EMIT_XML, NFE_XML, NOT_XML, OTHER_XML

EXTRACTORS = [
    service.extract_document_number,
    service.extract_emitter_tax_id,
    service.extract_emitter_name,
    service.extract_total_value,
    service.extract_emission_date,
]

BROKEN_INPUTS = [
    "",
    "   ",
    NOT_XML,
    "<NFe><infNFe><ide><nNF>1</nNF>",
    "<NFe><emit><CNPJ>123456789012345</CNPJ></emit><vNF>abc</vNF><dhEmi>??</dhEmi></NFe>",
    "<NFe><emit/></NFe>",
    "<CTe><vTPrest>-1</vTPrest></CTe>",
]


def test_valid_xml() -> None:
    result = service.validate_xml(NFE_XML)
    assert result.is_valid is True
    assert result.error_message is None
    assert result.warnings == []


def test_not_xml_is_invalid_with_parser_message() -> None:
    result = service.validate_xml(NOT_XML)
    assert result.is_valid is False
    assert result.error_message.startswith("XML inválido:")


def test_empty_content_is_invalid() -> None:
    result = service.validate_xml("   ")
    assert result.is_valid is False
    assert "vacío" in result.error_message


def test_extract_document_type() -> None:
    assert service.extract_document_type(NFE_XML) == DocumentKind.NFE
    assert service.extract_document_type(CTE_WITHOUT_EMIT_XML) == DocumentKind.CTE
    assert service.extract_document_type(OTHER_XML) == DocumentKind.OTHER


def test_parse_failure_classifies_as_other() -> None:
    assert service.extract_document_type(NOT_XML) == DocumentKind.OTHER
    assert service.extract_document_type("") == DocumentKind.OTHER


def test_extract_fields_from_content() -> None:
    assert service.extract_document_number(NFE_XML, DocumentKind.NFE) == "000123"
    assert service.extract_emitter_tax_id(NFE_XML, DocumentKind.NFE) == "07850000000123"
    assert service.extract_emitter_name(NFE_XML, DocumentKind.NFE) == "Acme"
    assert service.extract_total_value(NFE_XML, DocumentKind.NFE) == Decimal("1500.00")


def test_other_document_has_no_fields() -> None:
    for extractor in EXTRACTORS:
        assert extractor(OTHER_XML, DocumentKind.OTHER) is None


@pytest.mark.parametrize("content", BROKEN_INPUTS)
@pytest.mark.parametrize("kind", list(DocumentKind))
def test_extraction_never_raises(content: str, kind: DocumentKind) -> None:
    for extractor in EXTRACTORS:
        assert extractor(content, kind) is None


def test_results_are_identical_across_calls() -> None:
    for extractor in EXTRACTORS:
        assert extractor(NFE_XML, DocumentKind.NFE) == extractor(NFE_XML, DocumentKind.NFE)
    assert service.extract_document_type(NFE_XML) == service.extract_document_type(NFE_XML)


def test_empty_text_element_returns_empty_text() -> None:
    content = "<CTe><nCT></nCT><emit><CNPJ> </CNPJ></emit></CTe>"
    assert service.extract_document_number(content, DocumentKind.CTE) == ""
    assert service.extract_emitter_tax_id(content, DocumentKind.CTE) == ""


@pytest.mark.parametrize("raw", ["0001-01-01T00:00:00+01:00", "9999-12-31T23:59:59-01:00"])
def test_emission_date_overflow_returns_none(raw: str) -> None:
    content = f"<NFe><dhEmi>{raw}</dhEmi></NFe>"
    assert service.extract_emission_date(content, DocumentKind.NFE) is None
