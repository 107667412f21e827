"""API integration tests for the CNAB Store API."""

import asyncio
import io
import time

import pytest
from conftest import SAMPLE_LINE, build_line
from fastapi import UploadFile
from fastapi.testclient import TestClient

import main
from app.api.routes import upload_cnab
from app.core.db import DBHelper
from app.core.exceptions import StorageError
from app.core.models import ImportResult

HTTP_200_OK = 200
HTTP_400_BAD_REQUEST = 400
HTTP_404_NOT_FOUND = 404
HTTP_500_INTERNAL_SERVER_ERROR = 500


def _upload(client: TestClient, content: str) -> dict:
    files = {"file": ("cnab.txt", content.encode("utf-8"), "text/plain")}
    response = client.post("/api/cnab/upload", files=files)
    if response.status_code != HTTP_200_OK:
        msg = f"Expected status {HTTP_200_OK}, got {response.status_code}: {response.text}"
        raise AssertionError(msg)
    return response.json()


def test_health(client: TestClient) -> None:
    """Test the /health endpoint returns status ok."""
    response = client.get("/health")
    if response.status_code != HTTP_200_OK:
        msg = f"Expected status {HTTP_200_OK}, got {response.status_code}"
        raise AssertionError(msg)
    if response.json() != {"status": "ok"}:
        msg = f"Expected response {{'status': 'ok'}}, got {response.json()}"
        raise AssertionError(msg)


def test_scalar_docs(client: TestClient) -> None:
    """Test the /scalar endpoint returns OpenAPI or Swagger docs."""
    response = client.get("/scalar")
    if response.status_code != HTTP_200_OK:
        msg = f"Expected status {HTTP_200_OK}, got {response.status_code}"
        raise AssertionError(msg)
    if not ("openapi" in response.text or "swagger" in response.text):
        msg = "Expected 'openapi' or 'swagger' in response text"
        raise AssertionError(msg)


def test_upload_sample_line(client: TestClient) -> None:
    """Test uploading the reference line returns the camelCase import summary."""
    body = _upload(client, SAMPLE_LINE + "\n")
    expected = {
        "totalLines": 1,
        "importedCount": 1,
        "failedCount": 0,
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
        "failed": [],
    }
    if body != expected:
        msg = f"Expected {expected}, got {body}"
        raise AssertionError(msg)


def test_upload_reports_failed_lines(client: TestClient) -> None:
    """Test a corrupted line is reported with its number, error and raw text."""
    bad_line = build_line(value="00000ABC00")
    body = _upload(client, f"{SAMPLE_LINE}\n{bad_line}\n")
    if (body["totalLines"], body["importedCount"], body["failedCount"]) != (2, 1, 1):
        msg = f"Unexpected totals {body}"
        raise AssertionError(msg)
    expected_failure = {
        "lineNumber": 2,
        "error": "Invalid transaction value format: '00000ABC00'.",
        "rawLine": bad_line,
    }
    if body["failed"] != [expected_failure]:
        msg = f"Expected {expected_failure}, got {body['failed']}"
        raise AssertionError(msg)


def test_upload_without_file_is_rejected(client: TestClient) -> None:
    """Test a request with no file gets a 400 with an error payload."""
    response = client.post("/api/cnab/upload")
    if response.status_code != HTTP_400_BAD_REQUEST:
        msg = f"Expected status {HTTP_400_BAD_REQUEST}, got {response.status_code}"
        raise AssertionError(msg)
    body = response.json()
    if body["details"] != "CNAB file is required." or not body["traceId"]:
        msg = f"Unexpected error payload {body}"
        raise AssertionError(msg)


def test_empty_upload_is_rejected(client: TestClient) -> None:
    """Test an empty file gets a 400."""
    response = client.post("/api/cnab/upload", files={"file": ("empty.txt", b"", "text/plain")})
    if response.status_code != HTTP_400_BAD_REQUEST:
        msg = f"Expected status {HTTP_400_BAD_REQUEST}, got {response.status_code}"
        raise AssertionError(msg)


def test_storage_failure_returns_500_with_trace_id(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test a failed commit surfaces as a 500 carrying a trace id, and nothing is stored."""

    def _fail(self: DBHelper) -> None:
        self.session.rollback()
        raise StorageError("Failed to persist imported data.")

    monkeypatch.setattr(DBHelper, "commit", _fail)
    files = {"file": ("cnab.txt", SAMPLE_LINE.encode("utf-8"), "text/plain")}
    response = client.post("/api/cnab/upload", files=files)
    if response.status_code != HTTP_500_INTERNAL_SERVER_ERROR:
        msg = f"Expected status {HTTP_500_INTERNAL_SERVER_ERROR}, got {response.status_code}"
        raise AssertionError(msg)
    body = response.json()
    if body["statusCode"] != HTTP_500_INTERNAL_SERVER_ERROR or not body["traceId"]:
        msg = f"Unexpected error payload {body}"
        raise AssertionError(msg)
    monkeypatch.undo()
    summary = client.get("/api/stores/summary").json()
    if summary["totalItems"] != 0:
        msg = f"Expected no stores, got {summary}"
        raise AssertionError(msg)


def test_store_summary(client: TestClient) -> None:
    """Test the summary lists stores by name with their balances."""
    _upload(
        client,
        "\n".join(
            [
                SAMPLE_LINE,
                build_line(type="2", value="0000002500"),
                build_line(store_name="ARMAZEM", store_owner="MARIA", type="6", value="0000001000"),
            ]
        ),
    )
    body = client.get("/api/stores/summary", params={"page": 1, "pageSize": 10}).json()
    if (body["page"], body["pageSize"], body["totalItems"], body["totalPages"]) != (1, 10, 2, 1):
        msg = f"Unexpected paging {body}"
        raise AssertionError(msg)
    got = [(i["storeName"], i["ownerName"], i["totalBalance"]) for i in body["items"]]
    expected = [("ARMAZEM", "MARIA", 10.0), ("LOJA DO O - MATRIZ", "BAR DO JOAO", 75.0)]
    if got != expected:
        msg = f"Expected {expected}, got {got}"
        raise AssertionError(msg)


@pytest.mark.parametrize(
    ("params", "page", "page_size"),
    [
        ({}, 1, 10),
        ({"page": 0, "pageSize": 0}, 1, 10),
        ({"page": -3, "pageSize": -1}, 1, 10),
        ({"page": 2, "pageSize": 1000}, 2, 100),
        ({"page": 1, "pageSize": 5}, 1, 5),
    ],
)
def test_store_summary_paging_is_clamped(client: TestClient, params: dict, page: int, page_size: int) -> None:
    """Test out-of-range paging parameters fall back to sane values."""
    body = client.get("/api/stores/summary", params=params).json()
    if (body["page"], body["pageSize"]) != (page, page_size):
        msg = f"Expected page={page} pageSize={page_size}, got {body}"
        raise AssertionError(msg)
    if body["totalPages"] != 0 or body["items"] != []:
        msg = f"Expected an empty first page, got {body}"
        raise AssertionError(msg)


def test_store_summary_total_pages(client: TestClient) -> None:
    """Test total pages rounds up."""
    _upload(client, "\n".join(build_line(store_name=f"LOJA {i}") for i in range(3)))
    body = client.get("/api/stores/summary", params={"pageSize": 2}).json()
    if (body["totalItems"], body["totalPages"], len(body["items"])) != (3, 2, 2):
        msg = f"Unexpected paging {body}"
        raise AssertionError(msg)


def test_store_transactions(client: TestClient) -> None:
    """Test a store's operations are listed with its balance."""
    _upload(client, f"{SAMPLE_LINE}\n{build_line(type='9', value='0000003000', date='20190302')}")
    store_id = client.get("/api/stores/summary").json()["items"][0]["storeId"]
    body = client.get(f"/api/stores/{store_id}/transactions").json()
    if body["store"]["totalBalance"] != 70.0 or body["totalItems"] != 2:
        msg = f"Unexpected store detail {body}"
        raise AssertionError(msg)
    if [i["description"] for i in body["items"]] != ["Debit", "Rent"]:
        msg = f"Unexpected transactions {body['items']}"
        raise AssertionError(msg)


def test_unknown_store_transactions(client: TestClient) -> None:
    """Test an unknown store id gets a 404."""
    response = client.get("/api/stores/12345/transactions")
    if response.status_code != HTTP_404_NOT_FOUND:
        msg = f"Expected status {HTTP_404_NOT_FOUND}, got {response.status_code}"
        raise AssertionError(msg)


def test_transaction_types(client: TestClient) -> None:
    """Test the transaction type table is exposed."""
    body = client.get("/api/transaction-types").json()
    if [t["code"] for t in body] != list(range(1, 10)):
        msg = f"Unexpected codes {body}"
        raise AssertionError(msg)
    if body[1] != {"code": 2, "description": "Boleto", "nature": "Expense", "sign": -1}:
        msg = f"Unexpected boleto entry {body[1]}"
        raise AssertionError(msg)


def test_client_error_trace_id_is_logged(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test the trace id returned with a 400 also appears in the log."""
    warnings: list[str] = []
    monkeypatch.setattr(main.logger, "warning", lambda message, *args, **kwargs: warnings.append(message))
    response = client.post("/api/cnab/upload")
    trace_id = response.json()["traceId"]
    if not any(trace_id in message for message in warnings):
        msg = f"Expected traceId {trace_id} in the log, got {warnings}"
        raise AssertionError(msg)


class SlowImportService:
    """Import service double that blocks its thread for a while."""

    delay = 0.3

    def import_stream(self, data: bytes) -> ImportResult:
        """Sleep, then report an empty import."""
        time.sleep(self.delay)
        return ImportResult(total_lines=0, imported_count=0, failed_count=0, imported=[], failed=[])


def test_upload_keeps_event_loop_responsive() -> None:
    """Test other coroutines keep running while an upload is being imported."""

    async def _run() -> list[float]:
        loop = asyncio.get_running_loop()
        started = loop.time()
        ticks: list[float] = []

        async def _ticker() -> None:
            for _ in range(3):
                await asyncio.sleep(0.05)
                ticks.append(loop.time() - started)

        upload = UploadFile(file=io.BytesIO(SAMPLE_LINE.encode("utf-8")), filename="cnab.txt")
        await asyncio.gather(upload_cnab(file=upload, service=SlowImportService()), _ticker())
        return ticks

    ticks = asyncio.run(_run())
    if ticks[0] >= SlowImportService.delay:
        msg = f"Expected the first tick before the import finished, got {ticks}"
        raise AssertionError(msg)
