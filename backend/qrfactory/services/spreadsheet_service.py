# Overview: Spreadsheet collaborator; turns uploads into plain rows and registry listings into files.

"""
Supports CSV, JSON and Excel (.xlsx). Parsed rows are plain dicts keyed by
the header row and are handed to the bulk synchronizer unchanged; all
cleaning happens there.
"""

from __future__ import annotations

import csv
import io
import json
from datetime import date, datetime
from typing import IO, Any

from ..errors import InvalidArgument

EXCEL_EXTENSIONS = {"xlsx", "xlsm", "xltx", "xltm"}

PRODUCT_COLUMNS = ["code", "product_name", "batch_serial", "mfg_date", "exp_date", "note_extra", "status", "updated_at"]
CUSTOMER_COLUMNS = ["id", "name", "contract_start", "contract_end", "product_type", "contract_value", "status", "note"]
STAFF_COLUMNS = ["id", "name", "email", "phone", "note"]

EXPORT_COLUMNS = {
    "product": PRODUCT_COLUMNS,
    "customer": CUSTOMER_COLUMNS,
    "staff": STAFF_COLUMNS,
}


def file_extension(filename: str) -> str:
    return (filename or "").rsplit(".", 1)[-1].lower() if "." in (filename or "") else ""


def _cell(value: Any) -> Any:
    # Excel hands back real dates; store them in the DD-MM-YYYY form used everywhere else
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.strftime("%d-%m-%Y")
    return value


def read_rows(stream: IO[bytes], filename: str) -> list[dict]:
    """
    Parse an uploaded file into a list of row dicts.

    Raises:
        InvalidArgument: unsupported extension or unparsable content
    """
    ext = file_extension(filename)
    try:
        if ext == "csv":
            text = io.StringIO(stream.read().decode("utf-8-sig"))
            return [dict(row) for row in csv.DictReader(text)]
        if ext == "json":
            rows = json.load(stream)
            if isinstance(rows, dict):
                rows = rows.get("rows", [])
            if not isinstance(rows, list):
                raise InvalidArgument("JSON upload must be a list of rows")
            return rows
        if ext in EXCEL_EXTENSIONS:
            from openpyxl import load_workbook
            wb = load_workbook(stream, data_only=True, read_only=True)
            data = list(wb.active.values)
            wb.close()
            if not data:
                return []
            headers = [str(h).strip() if h is not None else "" for h in data[0]]
            rows = []
            for values in data[1:]:
                if values is None or all(v is None for v in values):
                    continue
                rows.append({
                    headers[i]: _cell(values[i])
                    for i in range(min(len(headers), len(values)))
                    if headers[i]
                })
            return rows
    except InvalidArgument:
        raise
    except Exception as e:
        raise InvalidArgument(f"Failed to parse upload: {e}")
    raise InvalidArgument("Unsupported file format")


def write_xlsx(kind: str, rows: list[dict]) -> bytes:
    from openpyxl import Workbook

    columns = EXPORT_COLUMNS[kind]
    wb = Workbook()
    sheet = wb.active
    sheet.title = kind
    sheet.append(columns)
    for row in rows:
        sheet.append([row.get(c, "") for c in columns])

    out = io.BytesIO()
    wb.save(out)
    return out.getvalue()


def write_csv(kind: str, rows: list[dict]) -> bytes:
    columns = EXPORT_COLUMNS[kind]
    out = io.StringIO()
    writer = csv.DictWriter(out, fieldnames=columns, extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return out.getvalue().encode("utf-8")
