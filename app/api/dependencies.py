"""FastAPI dependencies for DI (settings, DB, import service).

This module provides dependency injection helpers for settings, database sessions, and the import service, so
tests can swap the database for an in-memory one through ``app.dependency_overrides``.
"""

from collections.abc import Iterator

from fastapi import Depends

from app.core.db import DBHelper, get_db
from app.core.settings import Settings, get_settings
from app.services.import_service import CnabImportService


def get_db_conn() -> Iterator[DBHelper]:
    """Provide a database helper for the duration of a request."""
    db = get_db()
    try:
        yield db
    finally:
        db.close()


def get_import_service(
    db: DBHelper = Depends(get_db_conn),
    settings: Settings = Depends(get_settings),
) -> CnabImportService:
    """Provide a CnabImportService bound to the request's database helper."""
    return CnabImportService(db, encoding=settings.input_encoding)
