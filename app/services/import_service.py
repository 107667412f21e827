"""Import orchestration: CNAB stream in, stores and transactions staged, one commit out."""

import io
from collections.abc import Callable, Iterator
from typing import BinaryIO

from app.core.db import DBHelper, Store
from app.core.exceptions import ImportCancelledError, StreamReadError
from app.core.models import ImportFailure, ImportResult, ImportSuccess, TransactionRecord
from app.core.utils import get_logger
from app.parsers.base import BaseLineParser
from app.parsers.cnab_line_parser import CnabLineParser

logger = get_logger("cnab-store.importer")

MAX_LINE_LOG_LEN = 120
DEFAULT_ENCODING = "utf-8-sig"


class CnabImportService:
    """Imports CNAB streams line by line against a DBHelper."""

    def __init__(
        self,
        db: DBHelper,
        parser: BaseLineParser | None = None,
        encoding: str = DEFAULT_ENCODING,
    ) -> None:
        """Initialize the service with its storage helper and line parser."""
        self.db = db
        self.parser = parser or CnabLineParser()
        self.encoding = encoding

    def import_stream(
        self,
        stream: BinaryIO | bytes,
        should_cancel: Callable[[], bool] | None = None,
    ) -> ImportResult:
        """Import every non-blank line of ``stream`` and commit the valid ones together.

        Invalid lines are reported in the result and never stop the import. Stream read errors, cancellation
        and commit failures propagate, and in those cases nothing is persisted.
        """
        if isinstance(stream, bytes | bytearray):
            stream = io.BytesIO(stream)

        imported: list[ImportSuccess] = []
        failed: list[ImportFailure] = []
        # Stores resolved during this import, including ones not yet flushed
        stores: dict[tuple[str, str], Store] = {}

        for line_number, line in self._read_lines(stream):
            if not line.strip():
                continue
            self._check_cancelled(should_cancel, line_number)

            result = self.parser.parse(line)
            if result.record is None:
                logger.warning(f"[LINE {line_number}] Rejected: {result.error} | {_shorten(line)}")
                failed.append(ImportFailure(line_number=line_number, error=result.error, raw_line=line))
                continue

            store = self._resolve_store(result.record, stores)
            self.db.add_transaction(store, result.record)
            imported.append(ImportSuccess(line_number=line_number, transaction=result.record))

        self._check_cancelled(should_cancel, None)
        self.db.commit()

        logger.info(
            f"Import finished: {len(imported) + len(failed)} lines, {len(imported)} imported, "
            f"{len(failed)} failed, {len(stores)} stores touched"
        )
        return ImportResult(
            total_lines=len(imported) + len(failed),
            imported_count=len(imported),
            failed_count=len(failed),
            imported=imported,
            failed=failed,
        )

    def _read_lines(self, stream: BinaryIO) -> Iterator[tuple[int, str]]:
        """Yield (line number, line) pairs, numbering every physical line from 1."""
        reader = io.TextIOWrapper(stream, encoding=self.encoding, errors="replace", newline=None)
        try:
            for line_number, line in enumerate(reader, start=1):
                yield line_number, line.rstrip("\n")
        except OSError as exc:
            raise StreamReadError("Failed to read the CNAB stream.", {"reason": str(exc)}) from exc
        finally:
            # Leave the caller's stream open
            reader.detach()

    def _resolve_store(self, record: TransactionRecord, stores: dict[tuple[str, str], Store]) -> Store:
        """Find or create the store for a record, preferring stores already seen in this import."""
        key = (record.store_name, record.store_owner)
        store = stores.get(key)
        if store is None:
            store = self.db.find_store(record.store_name, record.store_owner)
        if store is None:
            logger.info(f"Creating store '{record.store_name}' owned by '{record.store_owner}'")
            store = self.db.create_store(record.store_name, record.store_owner)
        stores[key] = store
        return store

    def _check_cancelled(self, should_cancel: Callable[[], bool] | None, line_number: int | None) -> None:
        if should_cancel is None or not should_cancel():
            return
        where = f"before line {line_number}" if line_number is not None else "before commit"
        logger.warning(f"Import cancelled {where}, discarding staged changes")
        self.db.rollback()
        raise ImportCancelledError(f"Import cancelled {where}.", {"line_number": line_number})


def _shorten(line: str) -> str:
    if len(line) > MAX_LINE_LOG_LEN:
        return line[: MAX_LINE_LOG_LEN - 3] + "..."
    return line


def import_cnab(
    stream: BinaryIO | bytes,
    db: DBHelper,
    parser: BaseLineParser | None = None,
    encoding: str = DEFAULT_ENCODING,
) -> ImportResult:
    """Import a CNAB stream with a one-off CnabImportService bound to ``db``."""
    service = CnabImportService(db, parser=parser, encoding=encoding)
    return service.import_stream(stream)
