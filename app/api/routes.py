"""FastAPI endpoints for the CNAB Store API.

This module defines the API routes for uploading CNAB files, listing store balances, browsing a store's imported
operations, and health checks. It wires together the upload reader, the import service, and the database helper.
"""

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool

from app.api.dependencies import get_db_conn, get_import_service, get_settings
from app.core.db import DBHelper
from app.core.models import ImportResult, StoreSummaryPage, StoreTransactionsPage, TransactionTypeOut
from app.core.settings import Settings
from app.core.transaction_types import TRANSACTION_TYPES
from app.core.utils import clamp_paging, get_logger, page_count
from app.services.file_service import read_upload_file
from app.services.import_service import CnabImportService

router = APIRouter()
logger = get_logger("cnab-store.api")


@router.post(
    "/api/cnab/upload",
    response_model=ImportResult,
    summary="Upload a CNAB file and import its transactions",
    description=(
        "Upload a fixed-width CNAB file. Every non-blank line is parsed and validated; valid lines are stored "
        "against their store (created on first sight) and committed together. Invalid lines are reported with "
        "their line number, error and raw text and never stop the import.\n\n"
        "**Request:**\n"
        "- Content-Type: multipart/form-data\n"
        "- Form field: `file` (CNAB text file)\n\n"
        "**Response:**\n"
        "- 200 OK: import summary with imported and failed lines.\n"
        "- 400 Bad Request: If no file, or an empty file, was sent.\n"
        "- 500 Internal Server Error: If the data could not be stored. Nothing is persisted in that case."
    ),
    response_description="Import summary.",
    responses={
        200: {
            "description": "File imported.",
            "content": {
                "application/json": {
                    "example": {
                        "totalLines": 2,
                        "importedCount": 1,
                        "failedCount": 1,
                        "imported": [
                            {
                                "lineNumber": 1,
                                "transaction": {
                                    "type": 1,
                                    "occurredAt": "2019-03-01T15:30:00",
                                    "value": 100.0,
                                    "cpf": "12345678901",
                                    "card": "1234****5678",
                                    "storeOwner": "BAR DO JOAO",
                                    "storeName": "LOJA DO O - MATRIZ",
                                },
                            }
                        ],
                        "failed": [
                            {
                                "lineNumber": 2,
                                "error": "Invalid transaction value format: '00000ABC00'.",
                                "rawLine": "32019030100000ABC00...",
                            }
                        ],
                    }
                }
            },
        },
        400: {"description": "CNAB file is required."},
        500: {"description": "Internal server error."},
    },
)
async def upload_cnab(
    file: UploadFile | None = File(None),
    service: CnabImportService = Depends(get_import_service),
) -> ImportResult:
    """Upload a CNAB file and import it."""
    data = await read_upload_file(file)
    # Parsing and the per-line queries are blocking, keep them off the event loop
    result = await run_in_threadpool(service.import_stream, data)
    logger.info(
        f"Imported {file.filename}: total={result.total_lines}, "
        f"imported={result.imported_count}, failed={result.failed_count}"
    )
    return result


@router.get(
    "/api/stores/summary",
    response_model=StoreSummaryPage,
    summary="List stores with their balances",
    description=(
        "Paginated list of stores ordered by name, each with the sum of its transaction values.\n\n"
        "**Query parameters:**\n"
        "- `page`: 1-based page number. Values below 1 are treated as 1.\n"
        "- `pageSize`: items per page. Values below 1 use the default; values above the maximum are capped."
    ),
    response_description="One page of store summaries.",
)
async def get_store_summary(
    page: int = Query(1),
    page_size: int = Query(0, alias="pageSize"),
    db: DBHelper = Depends(get_db_conn),
    settings: Settings = Depends(get_settings),
) -> StoreSummaryPage:
    """Get one page of store balances."""
    page, page_size = clamp_paging(
        page, page_size, settings.summary_default_page_size, settings.summary_max_page_size
    )
    total_items = db.count_stores()
    return StoreSummaryPage(
        page=page,
        page_size=page_size,
        total_items=total_items,
        total_pages=page_count(total_items, page_size),
        items=db.get_store_summaries(page, page_size),
    )


@router.get(
    "/api/stores/{store_id}/transactions",
    response_model=StoreTransactionsPage,
    summary="List the operations imported for a store",
    description=(
        "The store with its balance and one page of its transactions, oldest first.\n\n"
        "- 404 Not Found: If the store does not exist."
    ),
    responses={
        404: {
            "description": "Store not found.",
            "content": {"application/json": {"example": {"detail": "Store not found"}}},
        },
    },
)
async def get_store_transactions(
    store_id: int,
    page: int = Query(1),
    page_size: int = Query(0, alias="pageSize"),
    db: DBHelper = Depends(get_db_conn),
    settings: Settings = Depends(get_settings),
) -> StoreTransactionsPage:
    """Get a store's transactions."""
    store = db.get_store(store_id)
    if store is None:
        raise HTTPException(404, "Store not found")
    page, page_size = clamp_paging(
        page, page_size, settings.summary_default_page_size, settings.summary_max_page_size
    )
    total_items = db.count_store_transactions(store_id)
    return StoreTransactionsPage(
        store=store,
        page=page,
        page_size=page_size,
        total_items=total_items,
        total_pages=page_count(total_items, page_size),
        items=db.get_store_transactions(store_id, page, page_size),
    )


@router.get(
    "/api/transaction-types",
    response_model=list[TransactionTypeOut],
    summary="List CNAB transaction types",
    description="The known transaction type codes with their description, nature and sign.",
)
async def list_transaction_types() -> list[TransactionTypeOut]:
    """List transaction types."""
    return [
        TransactionTypeOut(code=int(info.type), description=info.description, nature=info.nature, sign=info.sign)
        for info in TRANSACTION_TYPES.values()
    ]


@router.get(
    "/health",
    summary="Health check",
    description="Simple health check endpoint. Returns status ok.",
    response_description="Status ok.",
    responses={200: {"description": "API is healthy.", "content": {"application/json": {"example": {"status": "ok"}}}}},
)
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}
