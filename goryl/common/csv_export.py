import csv
import io
from typing import Iterable, Optional, Sequence
from fastapi.responses import Response
from goryl.common.utils import now


def build_csv(rows: Iterable[Sequence], quote_all: bool = False) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL if quote_all else csv.QUOTE_MINIMAL, lineterminator="\n")
    for row in rows:
        writer.writerow(["" if cell is None else cell for cell in row])
    return buf.getvalue()


def export_filename(prefix: str, when=None) -> str:
    when = when or now()
    return f"{prefix}-{when.date().isoformat()}.csv"


def csv_response(content: str, prefix: str, filename: Optional[str] = None) -> Response:
    filename = filename or export_filename(prefix)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
