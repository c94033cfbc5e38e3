"""Tests de la tarea de importación por lotes."""

import pytest

from app.infrastructure.celery import worker
from app.infrastructure.persistence.document_repository_adapter import SQLAlchemyDocumentRepository
from xml_samples import CTE_WITHOUT_EMIT_XML, NFCE_XML, NFE_XML, NOT_XML


@pytest.fixture
def batch_folder(tmp_path):
    folder = tmp_path / "lote"
    folder.mkdir()
    (folder / "nfe.xml").write_text(NFE_XML, encoding="utf-8")
    (folder / "cte.xml").write_text(CTE_WITHOUT_EMIT_XML, encoding="utf-8")
    (folder / "copia.xml").write_text(NFE_XML, encoding="utf-8")
    (folder / "roto.xml").write_text(NOT_XML, encoding="utf-8")
    (folder / "nota.txt").write_text(NFE_XML, encoding="utf-8")
    return folder


def test_batch_imports_each_file_independently(session_factory, batch_folder, monkeypatch) -> None:
    monkeypatch.setattr(worker, "SessionLocal", session_factory)
    filenames = ["nfe.xml", "cte.xml", "copia.xml", "roto.xml", "nota.txt"]

    summary = worker.process_upload_batch("lote-1", str(batch_folder), filenames)

    assert summary["imported"] == ["nfe.xml", "cte.xml"]
    assert summary["rejected"] == ["copia.xml", "roto.xml", "nota.txt"]
    assert not batch_folder.exists()

    session = session_factory()
    try:
        assert SQLAlchemyDocumentRepository(session).count() == 2
    finally:
        session.close()


def test_batch_uses_batch_size_ceiling(session_factory, tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(worker, "SessionLocal", session_factory)
    monkeypatch.setattr(worker.config, "MAX_BATCH_FILE_SIZE_BYTES", 10)
    folder = tmp_path / "lote"
    folder.mkdir()
    (folder / "nfe.xml").write_text(NFE_XML, encoding="utf-8")

    summary = worker.process_upload_batch("lote-2", str(folder), ["nfe.xml"])

    assert summary["rejected"] == ["nfe.xml"]


def test_unexpected_error_only_rejects_that_file(session_factory, tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(worker, "SessionLocal", session_factory)
    folder = tmp_path / "lote"
    folder.mkdir()
    (folder / "fecha.xml").write_text(
        "<NFe><nNF>1</nNF><dhEmi>0001-01-01T00:00:00+01:00</dhEmi></NFe>", encoding="utf-8"
    )
    (folder / "nfce.xml").write_text(NFCE_XML, encoding="utf-8")

    # 'falta.xml' no existe en la carpeta: la lectura lanza OSError
    summary = worker.process_upload_batch("lote-3", str(folder), ["falta.xml", "fecha.xml", "nfce.xml"])

    assert summary["rejected"] == ["falta.xml"]
    assert summary["imported"] == ["fecha.xml", "nfce.xml"]
    assert not folder.exists()

    session = session_factory()
    try:
        assert SQLAlchemyDocumentRepository(session).count() == 2
    finally:
        session.close()
