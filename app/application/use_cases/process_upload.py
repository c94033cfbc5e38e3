# app/application/use_cases/process_upload.py
import os
import logging
from typing import Optional

import config
from app.domain.errors import DuplicateDocument, EmptyContent, InvalidUpload
from app.domain.models.fiscal_document import (
    DocumentKind,
    FiscalDocument,
    ProcessingStatus,
    UploadResult,
)
from app.domain.ports.document_repository import DocumentRepository
from app.domain.services.document_classifier import resolve_kind
from app.domain.services.field_extractor import extract_all
from app.domain.services.fingerprint import DuplicateDetector, fingerprint
from app.domain.services.xml_tree import parse_xml


class ProcessUploadUseCase:
    """
    Orquesta la carga de un XML fiscal:
    admisión -> parseo -> clasificación -> huella/duplicados -> extracción -> persistencia.

    Hasta la verificación de duplicados cada paso falla de inmediato con una
    única excepción; la extracción solo acumula advertencias. Nada se guarda
    hasta el último paso.
    """

    def __init__(self, document_repo: DocumentRepository, max_size_bytes: int = config.MAX_UPLOAD_SIZE_BYTES):
        self.document_repo = document_repo
        self.duplicate_detector = DuplicateDetector(document_repo)
        self.max_size_bytes = max_size_bytes

    def _check_admission(self, file_bytes: bytes, file_name: str, size_bytes: int):
        if not file_bytes or size_bytes == 0:
            raise EmptyContent("Archivo no seleccionado o vacío")
        if not file_name or not file_name.strip():
            raise InvalidUpload("El nombre del archivo es obligatorio")
        if len(file_name) > config.MAX_FILE_NAME_LENGTH:
            raise InvalidUpload(
                f"El nombre del archivo debe tener como máximo {config.MAX_FILE_NAME_LENGTH} caracteres"
            )
        if os.path.splitext(file_name)[1].lower() != config.ALLOWED_EXTENSION:
            raise InvalidUpload("Solo se permiten archivos XML")
        if size_bytes > self.max_size_bytes:
            max_mb = self.max_size_bytes / (1024 * 1024)
            raise InvalidUpload(f"Archivo demasiado grande. Máximo {max_mb:g}MB")

    @staticmethod
    def _decode(file_bytes: bytes) -> str:
        try:
            return file_bytes.decode("utf-8-sig")
        except UnicodeDecodeError:
            return file_bytes.decode("iso-8859-1")

    def execute(
        self,
        file_bytes: bytes,
        file_name: str,
        size_bytes: Optional[int] = None,
        forced_kind: Optional[DocumentKind] = None,
    ) -> UploadResult:
        if size_bytes is None:
            size_bytes = len(file_bytes or b"")

        # --- PASO 1: ADMISIÓN ---
        self._check_admission(file_bytes, file_name, size_bytes)
        logging.info(f"[{file_name}] Archivo admitido ({size_bytes} bytes).")

        # --- PASO 2: PARSEO ---
        xml_content = self._decode(file_bytes)
        tree = parse_xml(xml_content)

        # --- PASO 3: CLASIFICACIÓN ---
        kind = resolve_kind(tree, forced_kind)
        logging.info(f"[{file_name}] Tipo de documento: {kind.value}{' (forzado)' if forced_kind else ''}.")

        # --- PASO 4: HUELLA Y DUPLICADOS ---
        content_fingerprint = fingerprint(xml_content)
        if self.duplicate_detector.is_duplicate(content_fingerprint):
            logging.warning(f"[{file_name}] Documento duplicado, huella {content_fingerprint}.")
            raise DuplicateDocument(content_fingerprint)

        # --- PASO 5: EXTRACCIÓN ---
        fields, warnings = extract_all(tree, kind)
        for warning in warnings:
            logging.info(f"[{file_name}] Advertencia de extracción: {warning.message}")

        # --- PASO 6: PERSISTENCIA ---
        document = FiscalDocument(
            file_name=file_name,
            kind=kind,
            xml_content=xml_content,
            status=ProcessingStatus.PROCESSED,
            file_size=size_bytes,
            fingerprint=content_fingerprint,
            **fields._asdict(),
        )
        saved = self.document_repo.add(document)
        logging.info(f"[{file_name}] Documento guardado con ID {saved.id}.")

        return UploadResult(document=saved, warnings=warnings)
