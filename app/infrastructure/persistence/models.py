# app/infrastructure/persistence/models.py
from sqlalchemy import Column, Integer, BigInteger, String, Text, DateTime, Numeric, Index

from .database import Base


class DocumentoFiscal(Base):
    __tablename__ = "documentos_fiscales"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nombre_archivo = Column(String(255), nullable=False)
    tipo = Column(Integer, nullable=False, index=True)
    contenido_xml = Column(Text, nullable=False)
    fecha_carga = Column(DateTime, nullable=False, index=True)
    estado = Column(Integer, nullable=False, index=True)
    numero_documento = Column(String(50))
    tamano_archivo = Column(BigInteger, nullable=False, default=0)
    hash_contenido = Column(String(100))

    # --- Datos extraídos del XML ---
    cnpj_emisor = Column(String(14))
    nombre_emisor = Column(String(255))
    valor_total = Column(Numeric(18, 2))
    fecha_emision = Column(DateTime)

    __table_args__ = (
        # Respaldo contra cargas duplicadas concurrentes
        Index("ix_documentos_fiscales_hash_contenido", "hash_contenido", unique=True),
    )
