"""내보내기 유틸리티 — CSV 생성 및 파일 다운로드 응답.

Export helpers: CSV text built on the stdlib ``csv`` writer, plus
attachment responses for CSV, PDF and XLSX downloads.
Values containing a comma, double quote or line break are wrapped in
double quotes and embedded quotes are doubled (RFC 4180).
"""

import csv
from datetime import date, datetime
from io import BytesIO, StringIO
from typing import Any, Iterable, Sequence

from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill


def cell(value: Any) -> str:
    """셀 값 문자열화 — None은 빈 문자열, bool은 Yes/No."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def build_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """헤더와 행 목록으로 CSV 문자열 생성 — Render headers and rows as CSV text."""
    output = StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL)
    writer.writerow(headers)
    for row in rows:
        writer.writerow([cell(v) for v in row])
    return output.getvalue()


def format_money(cents: int | None) -> str:
    """센트 → "$12.34" 표기."""
    return f"${(cents or 0) / 100:.2f}"


def cents_to_decimal_str(cents: int | None) -> str:
    return f"{(cents or 0) / 100:.2f}"


def text_download(content: str, filename: str, media_type: str = "text/csv") -> StreamingResponse:
    """텍스트 파일 다운로드 응답 — Attachment response for CSV/IIF exports."""
    return StreamingResponse(
        iter([content]),
        media_type=media_type,
        headers={
            "Content-Disposition": f"attachment; filename={filename}",
            "Cache-Control": "no-cache",
        },
    )


def bytes_download(data: bytes, filename: str, media_type: str) -> StreamingResponse:
    """바이너리 파일 다운로드 응답 — Attachment response for PDF/XLSX exports."""
    return StreamingResponse(
        BytesIO(data),
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


XLSX_MEDIA_TYPE: str = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MEDIA_TYPE: str = "application/pdf"


def build_xlsx(sheets: Sequence[tuple[str, Sequence[str], Iterable[Sequence[Any]]]]) -> bytes:
    """엑셀 워크북 생성 — 시트별 (제목, 헤더, 행).

    Build an .xlsx workbook with one sheet per ``(title, headers, rows)``
    tuple. Header cells are bold white on dark fill; column widths follow
    the longest value (capped at 50).
    """
    wb = Workbook()
    header_font = Font(bold=True, color="FFFFFF", size=11)
    header_fill = PatternFill(start_color="2D3436", end_color="2D3436", fill_type="solid")

    for index, (title, headers, rows) in enumerate(sheets):
        ws = wb.active if index == 0 else wb.create_sheet()
        ws.title = title[:31]
        for col_idx, h in enumerate(headers, 1):
            header_cell = ws.cell(row=1, column=col_idx, value=h)
            header_cell.font = header_font
            header_cell.fill = header_fill
            header_cell.alignment = Alignment(horizontal="center")

        widths = [len(h) + 2 for h in headers]
        for row in rows:
            values = [v if isinstance(v, (int, float)) and not isinstance(v, bool) else cell(v) for v in row]
            ws.append(values)
            for i, v in enumerate(values):
                if i < len(widths):
                    widths[i] = max(widths[i], min(len(str(v)) + 2, 50))

        for i, w in enumerate(widths, 1):
            ws.column_dimensions[ws.cell(row=1, column=i).column_letter].width = w

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
