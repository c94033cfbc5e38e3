"""Tests de consultas y ciclo de vida de documentos."""

import pytest

from app.application.use_cases.manage_documents import ManageDocumentsUseCase
from app.domain.errors import DocumentNotFound, InvalidStatusTransition
from app.domain.models.fiscal_document import DocumentKind, ProcessingStatus
from xml_samples import CTE_WITHOUT_EMIT_XML, NFE_XML, OTHER_XML


@pytest.fixture
def manage(repository) -> ManageDocumentsUseCase:
    return ManageDocumentsUseCase(repository)


@pytest.fixture
def uploaded(use_case):
    return [
        use_case.execute(content.encode("utf-8"), name).document
        for content, name in [(NFE_XML, "nfe.xml"), (CTE_WITHOUT_EMIT_XML, "cte.xml"), (OTHER_XML, "foo.xml")]
    ]


def test_get_by_id(manage, uploaded) -> None:
    assert manage.get_by_id(uploaded[0].id).file_name == "nfe.xml"


def test_get_missing_raises(manage) -> None:
    with pytest.raises(DocumentNotFound):
        manage.get_by_id(42)


def test_list_paged(manage, uploaded) -> None:
    result = manage.list_paged(page=1, page_size=2)
    assert len(result.items) == 2
    assert result.total_count == 3
    assert result.total_pages == 2
    assert result.has_next_page is True


def test_list_filters_by_kind(manage, uploaded) -> None:
    result = manage.list_paged(kind=DocumentKind.CTE)
    assert [d.file_name for d in result.items] == ["cte.xml"]


@pytest.mark.parametrize("page, page_size, expected_page, expected_size", [(0, 5, 1, 5), (-3, 0, 1, 10), (2, 101, 2, 10)])
def test_out_of_range_paging_falls_back(manage, uploaded, page, page_size, expected_page, expected_size) -> None:
    result = manage.list_paged(page=page, page_size=page_size)
    assert result.page == expected_page
    assert result.page_size == expected_size


def test_cancel_processed_document(manage, uploaded) -> None:
    cancelled = manage.cancel(uploaded[0].id)
    assert cancelled.status == ProcessingStatus.CANCELLED


def test_cancel_twice_is_invalid(manage, uploaded) -> None:
    manage.cancel(uploaded[0].id)
    with pytest.raises(InvalidStatusTransition):
        manage.cancel(uploaded[0].id)


def test_delete(manage, uploaded) -> None:
    manage.delete(uploaded[1].id)
    with pytest.raises(DocumentNotFound):
        manage.get_by_id(uploaded[1].id)
    with pytest.raises(DocumentNotFound):
        manage.delete(uploaded[1].id)
