"""File renderers for tabular exports.

Every export is first shaped into an ``ExportTable`` and then rendered to
CSV, XLSX, PDF or JSON bytes.
"""

import csv
import enum
import io
import json
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Sequence, Tuple

from libs.common.pdf import generate_table_report_pdf
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter


class ExportFormat(str, enum.Enum):
    CSV = "csv"
    EXCEL = "excel"
    PDF = "pdf"
    JSON = "json"


MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.EXCEL: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ExportFormat.PDF: "application/pdf",
    ExportFormat.JSON: "application/json",
}

EXTENSIONS = {
    ExportFormat.CSV: "csv",
    ExportFormat.EXCEL: "xlsx",
    ExportFormat.PDF: "pdf",
    ExportFormat.JSON: "json",
}


@dataclass
class ExportSection:
    title: str
    columns: List[Tuple[str, str]]
    rows: List[Dict[str, Any]]


@dataclass
class ExportTable:
    """Rows keyed by column key; ``columns`` is ``[(key, header), ...]``."""

    title: str
    columns: List[Tuple[str, str]]
    rows: List[Dict[str, Any]]
    metadata: List[Tuple[str, str]] = field(default_factory=list)
    sections: List[ExportSection] = field(default_factory=list)

    @property
    def keys(self) -> List[str]:
        return [key for key, _ in self.columns]

    @property
    def headers(self) -> List[str]:
        return [header for _, header in self.columns]

    def values(self) -> List[List[Any]]:
        return [[_cell(row.get(key)) for key in self.keys] for row in self.rows]


def _cell(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.isoformat()
    if value is None:
        return ""
    return value


def _json_default(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def to_csv(table: ExportTable) -> bytes:
    out = io.StringIO()
    writer = csv.writer(out)
    if table.metadata:
        for label, value in table.metadata:
            writer.writerow([f"# {label}", value])
        writer.writerow([])
    writer.writerow(table.headers)
    writer.writerows(table.values())
    # BOM so spreadsheet apps pick UTF-8
    return out.getvalue().encode("utf-8-sig")


def to_xlsx(table: ExportTable) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = table.title[:31]

    row_idx = 1
    for label, value in table.metadata:
        ws.cell(row=row_idx, column=1, value=label).font = Font(bold=True)
        ws.cell(row=row_idx, column=2, value=value)
        row_idx += 1
    if table.metadata:
        row_idx += 1

    header_fill = PatternFill("solid", fgColor="1E3A8A")
    for col_idx, header in enumerate(table.headers, start=1):
        cell = ws.cell(row=row_idx, column=col_idx, value=header)
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = header_fill
    ws.freeze_panes = ws.cell(row=row_idx + 1, column=1)

    data = table.values()
    for values in data:
        row_idx += 1
        for col_idx, value in enumerate(values, start=1):
            ws.cell(row=row_idx, column=col_idx, value=value)

    for col_idx, header in enumerate(table.headers, start=1):
        width = max(
            [len(str(header))] + [len(str(v[col_idx - 1])) for v in data]
        )
        ws.column_dimensions[get_column_letter(col_idx)].width = min(width + 2, 50)

    for section in table.sections:
        sheet = wb.create_sheet(section.title[:31])
        sheet.append([header for _, header in section.columns])
        for cell in sheet[1]:
            cell.font = Font(bold=True)
        for row in section.rows:
            sheet.append([_cell(row.get(key)) for key, _ in section.columns])

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def to_pdf(table: ExportTable) -> bytes:
    return generate_table_report_pdf(
        table.title,
        table.headers,
        table.values(),
        info=[(label, str(value)) for label, value in table.metadata] or None,
        sections=[
            (
                s.title,
                [header for _, header in s.columns],
                [[_cell(row.get(key)) for key, _ in s.columns] for row in s.rows],
            )
            for s in table.sections
        ],
    )


def to_json(table: ExportTable) -> bytes:
    document: Dict[str, Any] = {"title": table.title, "data": table.rows}
    if table.metadata:
        document["metadata"] = {label: value for label, value in table.metadata}
    for section in table.sections:
        document[section.title] = section.rows
    return json.dumps(document, default=_json_default, indent=2).encode("utf-8")


RENDERERS = {
    ExportFormat.CSV: to_csv,
    ExportFormat.EXCEL: to_xlsx,
    ExportFormat.PDF: to_pdf,
    ExportFormat.JSON: to_json,
}


def render(table: ExportTable, fmt: ExportFormat) -> bytes:
    return RENDERERS[fmt](table)


def filename(stem: str, fmt: ExportFormat, day: date) -> str:
    return f"{stem}_{day.isoformat()}.{EXTENSIONS[fmt]}"


def supported(formats: Sequence[ExportFormat]) -> str:
    return ", ".join(f.value for f in formats)
