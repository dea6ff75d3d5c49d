"""CSV readers for transactions, registry records and nickname tables."""

import csv
import io
import logging
import re
from pathlib import Path
from typing import Optional

from penmatch import MasterRecord, TransactionRecord

log = logging.getLogger(__name__)

# Matches any sequence of whitespace (including Unicode whitespace like U+2006)
_WHITESPACE_RE = re.compile(r'\s+')
_DOB_RE = re.compile(r'[0-9]{8}')
_PEN_CHARS_RE = re.compile(r'[0-9]+')

TRANSACTION_COLUMNS = {
    'pen': 'PEN',
    'surname': 'Surname',
    'usual_surname': 'Usual Surname',
    'given_name': 'Given Name',
    'usual_given_name': 'Usual Given Name',
    'middle_name': 'Middle Name',
    'usual_middle_name': 'Usual Middle Name',
    'dob': 'DOB',
    'sex': 'Sex',
    'mincode': 'Mincode',
    'local_id': 'Local ID',
    'postal': 'Postal',
    'update_code': 'Update Code',
}
REQUIRED_TRANSACTION_COLUMNS = {'Surname', 'Given Name', 'DOB', 'Sex'}

MASTER_COLUMNS = {
    'pen': 'PEN',
    'surname': 'Surname',
    'given': 'Given Name',
    'middle': 'Middle Name',
    'usual_surname': 'Usual Surname',
    'usual_given': 'Usual Given Name',
    'usual_middle': 'Usual Middle Name',
    'dob': 'DOB',
    'sex': 'Sex',
    'mincode': 'Mincode',
    'local_id': 'Local ID',
    'postal': 'Postal',
    'status': 'Status',
    'true_pen': 'True PEN',
}
REQUIRED_MASTER_COLUMNS = {'PEN', 'Surname', 'Given Name', 'DOB', 'Sex'}

# Columns whose values are upper-cased on read
_NAME_COLUMNS = {
    'Surname', 'Usual Surname', 'Given Name', 'Usual Given Name',
    'Middle Name', 'Usual Middle Name', 'Sex', 'Postal', 'Status', 'Update Code',
}


def detect_encoding(path: Path) -> str:
    """Detect file encoding by checking for BOM bytes.

    Args:
        path: Path to the CSV file.

    Returns:
        Encoding string suitable for open().
    """
    with open(path, 'rb') as f:
        bom = f.read(2)
    if bom == b'\xff\xfe':
        return 'utf-16-le'
    return 'utf-8-sig'


def normalize_whitespace(value: str) -> str:
    """Normalize whitespace in a string value.

    Collapses any sequence of whitespace (including Unicode whitespace)
    into a single space and strips leading/trailing whitespace.

    Args:
        value: Raw string value from CSV.

    Returns:
        Normalized string.
    """
    return _WHITESPACE_RE.sub(' ', value).strip()


def _read_rows(path: Path, required: set[str], delimiter: str) -> list[tuple[int, dict]]:
    """Read a delimited file into cleaned rows, checking required columns."""
    encoding = detect_encoding(path)
    with open(path, 'r', encoding=encoding) as f:
        content = f.read()

    # Strip BOM if present
    content = content.lstrip('\ufeff')

    reader = csv.DictReader(io.StringIO(content), delimiter=delimiter)
    if reader.fieldnames is None:
        raise ValueError(f"File {path} is empty or has no header row.")
    actual_cols = {normalize_whitespace(c) for c in reader.fieldnames}
    missing = required - actual_cols
    if missing:
        raise ValueError(
            f"Missing columns in {path}: {', '.join(sorted(missing))}"
        )

    rows = []
    for row_num, row in enumerate(reader, start=2):
        cleaned = {}
        for key, value in row.items():
            if key is None:
                continue
            key = normalize_whitespace(key)
            value = normalize_whitespace(value or '')
            cleaned[key] = value.upper() if key in _NAME_COLUMNS else value
        rows.append((row_num, cleaned))
    return rows


def _field(row: dict, column: str) -> Optional[str]:
    value = row.get(column, '')
    return value or None


def _check_dob(dob: Optional[str]) -> Optional[str]:
    if dob is not None and not _DOB_RE.fullmatch(dob):
        raise ValueError(f"invalid birth date {dob!r}, expected YYYYMMDD")
    return dob


def read_transactions(path: str | Path, delimiter: str = '\t') -> list[TransactionRecord]:
    """Read student transactions from a delimited file.

    Empty cells become None ("unknown"). The PEN column is kept as given so
    malformed PENs reach the check-digit validation.

    Args:
        path: Path to the transaction file.
        delimiter: Column delimiter (default: tab).

    Returns:
        List of TransactionRecord objects.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If required columns are missing.
    """
    path = Path(path)
    transactions: list[TransactionRecord] = []
    for row_num, row in _read_rows(path, REQUIRED_TRANSACTION_COLUMNS, delimiter):
        try:
            values = {attr: _field(row, col) for attr, col in TRANSACTION_COLUMNS.items()}
            values['dob'] = _check_dob(values['dob'])
            transactions.append(TransactionRecord(**values))
        except ValueError as exc:
            log.warning("Row %d in %s skipped: %s", row_num, path, exc)

    log.info("%d transactions read from %s", len(transactions), path)
    return transactions


def read_master_records(path: str | Path, delimiter: str = '\t') -> list[MasterRecord]:
    """Read registry (master) records from a delimited file.

    Rows without a numeric PEN or with a malformed birth date are skipped.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If required columns are missing.
    """
    path = Path(path)
    records: list[MasterRecord] = []
    for row_num, row in _read_rows(path, REQUIRED_MASTER_COLUMNS, delimiter):
        try:
            values = {attr: _field(row, col) for attr, col in MASTER_COLUMNS.items()}
            if not values['pen'] or not _PEN_CHARS_RE.fullmatch(values['pen']):
                raise ValueError(f"invalid PEN {values['pen']!r}")
            values['dob'] = _check_dob(values['dob'])
            if values['status'] is None:
                del values['status']
            records.append(MasterRecord(**values))
        except ValueError as exc:
            log.warning("Row %d in %s skipped: %s", row_num, path, exc)

    log.info("%d registry records read from %s", len(records), path)
    return records


def read_nicknames(path: str | Path, delimiter: str = '\t') -> dict[str, set[str]]:
    """Read a nickname table with 'Name' and 'Nickname' columns.

    Returns:
        Mapping of name to the set of its nicknames.
    """
    path = Path(path)
    nicknames: dict[str, set[str]] = {}
    for row_num, row in _read_rows(path, {'Name', 'Nickname'}, delimiter):
        name = row.get('Name', '').upper()
        nickname = row.get('Nickname', '').upper()
        if not name or not nickname:
            log.warning("Row %d in %s skipped: empty name", row_num, path)
            continue
        nicknames.setdefault(name, set()).add(nickname)

    log.info("%d nickname entries read from %s", len(nicknames), path)
    return nicknames
