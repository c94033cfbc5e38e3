# app/infrastructure/api/routers/documents_router.py
import os
import uuid
import shutil
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

import config
from app.application.use_cases.manage_documents import ManageDocumentsUseCase
from app.application.use_cases.process_upload import ProcessUploadUseCase
from app.domain.errors import (
    DocumentNotFound,
    DuplicateDocument,
    FiscalDocumentError,
    InvalidStatusTransition,
    InvalidUpload,
    MalformedXml,
)
from app.domain.models.fiscal_document import (
    DocumentKind,
    FiscalDocument,
    PagedResult,
    ProcessingStatus,
    UploadResult,
)
from app.infrastructure.celery.worker import celery_app
from app.infrastructure.persistence.database import get_db
from app.infrastructure.persistence.document_repository_adapter import SQLAlchemyDocumentRepository

router = APIRouter(prefix="/api/v1/documentos", tags=["Documentos"])


def _to_http_error(error: FiscalDocumentError) -> HTTPException:
    if isinstance(error, (InvalidUpload, MalformedXml)):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, DuplicateDocument):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, DocumentNotFound):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, InvalidStatusTransition):
        return HTTPException(status_code=409, detail=str(error))
    return HTTPException(status_code=500, detail=f"Error interno: {error}")


def _manage(db: Session) -> ManageDocumentsUseCase:
    return ManageDocumentsUseCase(SQLAlchemyDocumentRepository(db))


@router.post("/upload", status_code=201, response_model=UploadResult, summary="Cargar un documento fiscal XML")
def upload_document(
    file: UploadFile = File(..., description="Archivo XML del documento fiscal."),
    tipo: Optional[DocumentKind] = Query(None, description="Tipo forzado; omite la clasificación automática."),
    db: Session = Depends(get_db),
):
    """
    Valida, clasifica, extrae los campos y guarda el documento.
    Las advertencias de extracción acompañan la respuesta exitosa.
    """
    file_bytes = file.file.read()
    use_case = ProcessUploadUseCase(SQLAlchemyDocumentRepository(db))
    try:
        result = use_case.execute(file_bytes, file.filename, len(file_bytes), forced_kind=tipo)
        db.commit()
    except FiscalDocumentError as e:
        db.rollback()
        logging.warning(f"[{file.filename}] Carga rechazada: {e}")
        raise _to_http_error(e)
    return result


@router.post("/lote", status_code=202, summary="Importar un lote de documentos en segundo plano")
def upload_batch(files: List[UploadFile] = File(..., description="Archivos XML del lote.")):
    """
    Guarda los archivos temporalmente y lanza una tarea de Celery que
    importa cada uno con el mismo flujo de la carga individual.
    """
    batch_id = str(uuid.uuid4())
    batch_temp_path = os.path.join(config.TEMP_UPLOADS_DIR, batch_id)
    os.makedirs(batch_temp_path, exist_ok=True)
    saved_filenames = []

    try:
        for file in files:
            if not file.filename or ".." in file.filename or "/" in file.filename:
                raise HTTPException(status_code=400, detail=f"Nombre de archivo inválido: {file.filename}")

            file_path = os.path.join(batch_temp_path, file.filename)
            with open(file_path, "wb") as buffer:
                shutil.copyfileobj(file.file, buffer)
            saved_filenames.append(file.filename)

        celery_app.send_task(
            'tasks.process_upload_batch',
            args=[batch_id, batch_temp_path, saved_filenames]
        )
        return {"status": "processing_queued", "batch_id": batch_id, "files": len(saved_filenames)}
    except HTTPException:
        shutil.rmtree(batch_temp_path, ignore_errors=True)
        raise
    except Exception as e:
        shutil.rmtree(batch_temp_path, ignore_errors=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/", response_model=PagedResult[FiscalDocument], summary="Listar documentos paginados")
def list_documents(
    page: int = 1,
    page_size: int = config.DEFAULT_PAGE_SIZE,
    filtro: Optional[str] = None,
    tipo: Optional[DocumentKind] = None,
    estado: Optional[ProcessingStatus] = None,
    db: Session = Depends(get_db),
):
    try:
        return _manage(db).list_paged(page, page_size, filtro, tipo, estado)
    except FiscalDocumentError as e:
        raise _to_http_error(e)


@router.get("/{document_id}", response_model=FiscalDocument)
def get_document(document_id: int, db: Session = Depends(get_db)):
    try:
        return _manage(db).get_by_id(document_id)
    except FiscalDocumentError as e:
        raise _to_http_error(e)


@router.get("/{document_id}/download", summary="Descargar el XML original")
def download_document(document_id: int, db: Session = Depends(get_db)):
    try:
        document = _manage(db).get_by_id(document_id)
    except FiscalDocumentError as e:
        raise _to_http_error(e)
    return Response(
        content=document.xml_content.encode("utf-8"),
        media_type="application/xml",
        headers={"Content-Disposition": f'attachment; filename="{document.file_name}"'},
    )


@router.post("/{document_id}/cancelar", response_model=FiscalDocument)
def cancel_document(document_id: int, db: Session = Depends(get_db)):
    try:
        document = _manage(db).cancel(document_id)
        db.commit()
    except FiscalDocumentError as e:
        db.rollback()
        raise _to_http_error(e)
    return document


@router.delete("/{document_id}", status_code=204)
def delete_document(document_id: int, db: Session = Depends(get_db)):
    try:
        _manage(db).delete(document_id)
        db.commit()
    except FiscalDocumentError as e:
        db.rollback()
        raise _to_http_error(e)
    return Response(status_code=204)
