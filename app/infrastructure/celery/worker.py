import os
import shutil
from celery import Celery
from typing import List
import logging

import config

# El broker por defecto es Google Cloud Pub/Sub ('pubsub://'); se puede
# reemplazar con CELERY_BROKER_URL.
celery_app = Celery(
    'tasks',
    broker=config.CELERY_BROKER_URL,
    backend=None  # Pub/Sub no funciona como backend de resultados.
)

celery_app.conf.update(
    broker_transport_options={
        # Tiempo en segundos que una tarea puede estar "en proceso" antes de que
        # el broker la vuelva a entregar.
        'visibility_timeout': 600,
        'topic': config.CELERY_PUBSUB_TOPIC,
        'subscription_name_prefix': 'celery-worker-sub'
    },
    task_ignore_result=True
)

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - [%(funcName)s] - %(message)s')

from app.application.use_cases.process_upload import ProcessUploadUseCase
from app.domain.errors import FiscalDocumentError
from app.infrastructure.persistence.database import SessionLocal
from app.infrastructure.persistence.document_repository_adapter import SQLAlchemyDocumentRepository


def _import_file(batch_id: str, file_path: str, filename: str) -> bool:
    """Importa un archivo en su propia sesión. Retorna True si quedó guardado."""
    db_session = SessionLocal()
    try:
        with open(file_path, 'rb') as f:
            file_bytes = f.read()
        use_case = ProcessUploadUseCase(
            SQLAlchemyDocumentRepository(db_session),
            max_size_bytes=config.MAX_BATCH_FILE_SIZE_BYTES
        )
        result = use_case.execute(file_bytes, filename, len(file_bytes))
        db_session.commit()
        logging.info(f"[{batch_id}] {filename}: guardado con ID {result.document.id} "
                     f"({len(result.warnings)} advertencia(s)).")
        return True
    except FiscalDocumentError as e:
        db_session.rollback()
        logging.warning(f"[{batch_id}] {filename}: rechazado. {e}")
        return False
    except Exception:
        db_session.rollback()
        logging.error(f"[{batch_id}] {filename}: ¡ERROR! Se ha capturado una excepción. Rollback del archivo.", exc_info=True)
        return False
    finally:
        db_session.close()


@celery_app.task(name="tasks.process_upload_batch")
def process_upload_batch(batch_id: str, temp_folder_path: str, filenames: List[str]):
    logging.info(f"[{batch_id}] >>> INICIO DE LA TAREA ({len(filenames)} archivo(s)).")
    summary = {"imported": [], "rejected": []}
    try:
        for filename in filenames:
            file_path = os.path.join(temp_folder_path, filename)
            if _import_file(batch_id, file_path, filename):
                summary["imported"].append(filename)
            else:
                summary["rejected"].append(filename)
        logging.info(f"[{batch_id}] Lote terminado: {len(summary['imported'])} importado(s), "
                     f"{len(summary['rejected'])} rechazado(s).")
        return summary
    finally:
        if os.path.exists(temp_folder_path):
            shutil.rmtree(temp_folder_path)
        logging.info(f"[{batch_id}] Directorio temporal eliminado.")
