"""Tab-delimited report decoding."""
import csv
import io
from typing import Dict, List

from mws_sdk.errors import ReportFormatError

ReportRow = Dict[str, str]


def decode_report(text: str) -> List[ReportRow]:
    """
    Decode a tab-delimited MWS report.

    The first line holds the column headers; every following non-empty line
    is zipped with them. Cells are taken literally: MWS does not quote fields,
    so quote characters are ordinary data.

    Args:
        text: Report body as returned by GetReport

    Returns:
        One mapping per data row, keyed by header. Empty body -> [].

    Raises:
        ReportFormatError: If a row's field count differs from the header's.
    """
    reader = csv.reader(io.StringIO(text, newline=""), delimiter="\t", quoting=csv.QUOTE_NONE)

    headers = next(reader, None)
    if not headers:
        return []

    rows: List[ReportRow] = []
    for row in reader:
        if not row:
            continue
        if len(row) != len(headers):
            raise ReportFormatError(
                f"Report line {reader.line_num} has {len(row)} fields, "
                f"header has {len(headers)}"
            )
        rows.append(dict(zip(headers, row)))
    return rows
