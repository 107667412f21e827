"""Services package: upload handling and CNAB import orchestration."""

from .file_service import read_upload_file  # noqa: F401
from .import_service import CnabImportService, import_cnab  # noqa: F401
