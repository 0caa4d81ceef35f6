# Overview: Upload/download helpers shared by the product, customer and staff routes.

from flask import Response, request

from ..errors import InvalidArgument
from ..services import spreadsheet_service

MIME_TYPES = {
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "csv": "text/csv; charset=utf-8",
}


def uploaded_rows() -> tuple[list[dict], str]:
    """Rows and source label (the file name) from a multipart upload."""
    if "file" not in request.files:
        raise InvalidArgument("file is required")
    file = request.files["file"]
    filename = file.filename or ""
    rows = spreadsheet_service.read_rows(file.stream, filename)
    return rows, filename


def export_response(kind: str, rows: list[dict], basename: str) -> Response:
    fmt = (request.args.get("format") or "xlsx").lower()
    if fmt == "xlsx":
        body = spreadsheet_service.write_xlsx(kind, rows)
    elif fmt == "csv":
        body = spreadsheet_service.write_csv(kind, rows)
    else:
        raise InvalidArgument("format must be xlsx or csv")
    return Response(
        body,
        mimetype=MIME_TYPES[fmt],
        headers={"Content-Disposition": f'attachment; filename="{basename}.{fmt}"'},
    )
