# tests/conftest.py
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.application.use_cases.process_upload import ProcessUploadUseCase
from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.document_repository_adapter import SQLAlchemyDocumentRepository


@pytest.fixture
def session_factory():
    """SQLite en memoria compartida entre sesiones."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def repository(db_session) -> SQLAlchemyDocumentRepository:
    return SQLAlchemyDocumentRepository(db_session)


@pytest.fixture
def use_case(repository) -> ProcessUploadUseCase:
    return ProcessUploadUseCase(repository)
