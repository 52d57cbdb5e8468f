"""
Flat-File Storage Implementation

One pipe-delimited text file per entity kind, one record per line:

    expenditures.txt  id|description|amount|timestamp|phase|categoryName|accountId|receiptInfo
    categories.txt    name|description|color
    accounts.txt      id|name|balance
    receipts.txt      id|expenseCode|filePath|timestamp

Older expenditure files without the phase column (7 fields) or without
receipt info as well (6 fields) are still read. Lines that can't be
parsed are skipped with a warning; a bad line never stops a load.

Writes replace the whole file through a temporary sibling and are retried
with exponential backoff before giving up with PersistenceError.
"""

import os
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Callable, Optional, Sequence

import structlog
from pydantic import BaseModel
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from xpense.config import get_settings
from xpense.models.ledger import DEFAULT_PHASE, Account, Category, Expenditure, Receipt
from xpense.services.storage.interface import (
    EntityKind,
    LedgerStorageInterface,
    PersistenceError,
    StorageError,
    StorageNotFoundError,
)


DELIMITER = "|"
COMMENT_PREFIX = "#"


# =============================================================================
# ROW CODECS
# =============================================================================

def _expenditure_to_row(expenditure: Expenditure) -> list[str]:
    return [
        expenditure.id or "",
        expenditure.description,
        str(expenditure.amount),
        expenditure.timestamp.isoformat() if expenditure.timestamp else "",
        expenditure.phase,
        expenditure.category_name or "",
        expenditure.account_id or "",
        expenditure.receipt_info or "",
    ]


def _row_to_expenditure(row: list[str]) -> Expenditure:
    """
    Decode 8, 7 or 6 fields.

    The category comes back as a name-only placeholder; the system root
    swaps in the registered instance.
    """
    if len(row) >= 8:
        ident, description, amount, timestamp, phase, category, account_id, receipt = row[:8]
    elif len(row) == 7:
        ident, description, amount, timestamp, category, account_id, receipt = row
        phase = DEFAULT_PHASE
    elif len(row) == 6:
        ident, description, amount, timestamp, category, account_id = row
        phase, receipt = DEFAULT_PHASE, ""
    else:
        raise ValueError(f"Expected 6 to 8 fields, got {len(row)}")

    return Expenditure(
        id=ident,
        description=description,
        amount=Decimal(amount.strip()),
        timestamp=datetime.fromisoformat(timestamp.strip()),
        phase=phase or DEFAULT_PHASE,
        category=Category(name=category),
        account_id=account_id or None,
        receipt_info=receipt or None,
    )


def _category_to_row(category: Category) -> list[str]:
    return [category.name, category.description, category.color]


def _row_to_category(row: list[str]) -> Category:
    if len(row) < 3:
        raise ValueError(f"Expected 3 fields, got {len(row)}")
    name, description, color = row[:3]
    return Category(name=name, description=description, color=color)


def _account_to_row(account: Account) -> list[str]:
    return [account.id, account.name, str(account.balance)]


def _row_to_account(row: list[str]) -> Account:
    if len(row) < 3:
        raise ValueError(f"Expected 3 fields, got {len(row)}")
    ident, name, balance = row[:3]
    return Account(id=ident, name=name, balance=Decimal(balance.strip()))


def _receipt_to_row(receipt: Receipt) -> list[str]:
    return [
        receipt.id,
        receipt.expense_code,
        receipt.file_path,
        receipt.timestamp.isoformat(),
    ]


def _row_to_receipt(row: list[str]) -> Receipt:
    if len(row) < 4:
        raise ValueError(f"Expected 4 fields, got {len(row)}")
    ident, expense_code, file_path, timestamp = row[:4]
    return Receipt(
        id=ident,
        expense_code=expense_code,
        file_path=file_path,
        timestamp=datetime.fromisoformat(timestamp.strip()),
    )


_ENCODERS: dict[EntityKind, Callable[[BaseModel], list[str]]] = {
    EntityKind.EXPENDITURES: _expenditure_to_row,
    EntityKind.CATEGORIES: _category_to_row,
    EntityKind.ACCOUNTS: _account_to_row,
    EntityKind.RECEIPTS: _receipt_to_row,
}

_DECODERS: dict[EntityKind, Callable[[list[str]], BaseModel]] = {
    EntityKind.EXPENDITURES: _row_to_expenditure,
    EntityKind.CATEGORIES: _row_to_category,
    EntityKind.ACCOUNTS: _row_to_account,
    EntityKind.RECEIPTS: _row_to_receipt,
}


# =============================================================================
# STORAGE
# =============================================================================

class FlatFileStorage(LedgerStorageInterface):
    """
    Pipe-delimited file storage under a data directory.

    The directory is created on first write. Reading a kind whose file
    does not exist yet returns an empty list.
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        retry_attempts: Optional[int] = None,
    ):
        self._settings = get_settings().storage
        self.data_dir = Path(data_dir) if data_dir is not None else self._settings.data_dir
        self.retry_attempts = retry_attempts or self._settings.write_retry_attempts
        self._file_names = {
            EntityKind.EXPENDITURES: self._settings.expenditures_file,
            EntityKind.CATEGORIES: self._settings.categories_file,
            EntityKind.ACCOUNTS: self._settings.accounts_file,
            EntityKind.RECEIPTS: self._settings.receipts_file,
        }
        self._logger = structlog.get_logger("xpense.storage")

    def path_for(self, kind: EntityKind) -> Path:
        return self.data_dir / self._file_names[kind]

    def load(self, kind: EntityKind) -> list[BaseModel]:
        path = self.path_for(kind)
        if not path.exists():
            self._logger.info("data_file_missing", kind=kind.value, path=str(path))
            return []

        decode = _DECODERS[kind]
        records: list[BaseModel] = []
        try:
            with path.open("r", encoding="utf-8") as handle:
                for line_number, line in enumerate(handle, start=1):
                    line = line.rstrip("\r\n")
                    if not line.strip():
                        continue
                    if kind == EntityKind.ACCOUNTS and line.lstrip().startswith(COMMENT_PREFIX):
                        continue
                    try:
                        records.append(decode(line.split(DELIMITER)))
                    except (ValueError, ArithmeticError) as e:
                        # Decimal raises InvalidOperation (ArithmeticError); pydantic raises ValueError
                        self._logger.warning(
                            "malformed_line_skipped",
                            kind=kind.value,
                            path=str(path),
                            line_number=line_number,
                            error=str(e),
                        )
        except UnicodeDecodeError as e:
            raise StorageError(f"Cannot decode {path}: {e}") from e
        return records

    def save(self, kind: EntityKind, records: Sequence[BaseModel]) -> bool:
        encode = _ENCODERS[kind]
        content = "".join(DELIMITER.join(encode(record)) + "\n" for record in records)
        path = self.path_for(kind)

        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self.retry_attempts),
                wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
                retry=retry_if_exception_type(OSError),
                reraise=True,
            ):
                with attempt:
                    self._write(path, content)
        except StorageNotFoundError:
            raise
        except OSError as e:
            self._logger.error("write_failed", kind=kind.value, path=str(path), error=str(e))
            raise PersistenceError(f"Failed to save {kind.value} to {path}: {e}") from e

        self._logger.debug("data_file_written", kind=kind.value, path=str(path), records=len(records))
        return True

    def _write(self, path: Path, content: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except FileExistsError as e:
            raise StorageNotFoundError(f"Data directory is not a directory: {path.parent}") from e

        temp_path = path.with_name(path.name + ".tmp")
        with temp_path.open("w", encoding="utf-8") as handle:
            handle.write(content)
        os.replace(temp_path, path)
