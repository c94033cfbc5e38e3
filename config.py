# config.py
import os
from dotenv import load_dotenv

load_dotenv()

# --- CONFIGURACIÓN DE BASE DE DATOS ---
# En producción apunta a PostgreSQL; por defecto se usa un archivo SQLite local
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./documentos_fiscales.db")

# --- CONFIGURACIÓN DE CARGA DE ARCHIVOS ---
ALLOWED_EXTENSION = ".xml"
MAX_FILE_NAME_LENGTH = 255

# Límite para la carga individual vía API (5 MB)
MAX_UPLOAD_SIZE_BYTES = int(os.getenv("MAX_UPLOAD_SIZE_BYTES", 5 * 1024 * 1024))
# Límite para la importación por lotes del worker (10 MB)
MAX_BATCH_FILE_SIZE_BYTES = int(os.getenv("MAX_BATCH_FILE_SIZE_BYTES", 10 * 1024 * 1024))

TEMP_UPLOADS_DIR = os.getenv("TEMP_UPLOADS_DIR", "/tmp")

# --- PAGINACIÓN ---
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# --- CORS ---
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if origin.strip()
]

# --- CONFIGURACIÓN DE CELERY ---
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "pubsub://")
CELERY_PUBSUB_TOPIC = os.getenv("CELERY_PUBSUB_TOPIC", "documentos-fiscales-importacion")
