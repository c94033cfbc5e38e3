# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from app.infrastructure.api.routers import documents_router
from app.infrastructure.persistence.database import Base, engine

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - [%(funcName)s] - %(message)s')


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logging.info("Tablas verificadas. API lista.")
    yield


app = FastAPI(
    title="API de Documentos Fiscales Electrónicos",
    description="Ingesta, clasificación y extracción de campos de CT-e, NF-e, MDF-e y NFC-e.",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(documents_router.router)


@app.get("/", tags=["Health Check"])
def read_root():
    return {"status": "ok", "message": "API de documentos fiscales en funcionamiento"}
