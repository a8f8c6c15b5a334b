"""Report rendering — CSV, HTML table and JSON output of merged cookies."""

from __future__ import annotations

import csv
import html
import io
import json
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from cookies_scanner.core.base import MergedCookie

FORMATS = ("csv", "html", "json")

DEFAULT_FIELDS = (
    "name",
    "host",
    "path",
    "isSession",
    "isThirdParty",
    "lifeSpan",
    "initiator",
)

# Keeps line breaks inside a single cell when the table is opened in Excel
_CELL_BREAK = '<br style="mso-data-placement:same-cell;" />'
_NEWLINE = re.compile(r"\r?\n")

Row = Mapping[str, Any]


def _rows(cookies: Iterable[MergedCookie | Row]) -> list[Row]:
    return [c.to_report() if isinstance(c, MergedCookie) else c for c in cookies]


def _cell(row: Row, field: str) -> str:
    """Missing or null fields render as an empty string."""
    value = row.get(field)
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _esc(text: str) -> str:
    return _NEWLINE.sub(_CELL_BREAK, html.escape(text, quote=False))


def render_csv(cookies: Iterable[MergedCookie | Row], fields: Sequence[str] = DEFAULT_FIELDS) -> str:
    """Header line then one line per cookie, every field quoted.

    Cells are joined by a bare comma (RFC 4180) so that spreadsheet and
    csv readers do not keep a leading space or a literal quote.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(fields)
    for row in _rows(cookies):
        writer.writerow([_cell(row, field) for field in fields])
    return buffer.getvalue()


def render_html(cookies: Iterable[MergedCookie | Row], fields: Sequence[str] = DEFAULT_FIELDS) -> str:
    """A bare HTML table, suitable for pasting into a spreadsheet."""

    def line(values: Iterable[str], tag: str = "td") -> str:
        cells = "".join(f"<{tag}>{_esc(value)}</{tag}>" for value in values)
        return f"<tr>{cells}</tr>\n"

    parts = ["<html><body>\n<table>\n", line(fields, tag="th")]
    for row in _rows(cookies):
        parts.append(line(_cell(row, field) for field in fields))
    parts.append("</table>\n</body></html>\n")
    return "".join(parts)


def render_json(cookies: Iterable[MergedCookie | Row], indent: int | None = None) -> str:
    return json.dumps(_rows(cookies), indent=indent, ensure_ascii=False)


def render(
    cookies: Iterable[MergedCookie | Row],
    output_format: str,
    fields: Sequence[str] = DEFAULT_FIELDS,
) -> str:
    if output_format == "html":
        return render_html(cookies, fields)
    if output_format == "json":
        return render_json(cookies)
    return render_csv(cookies, fields)
