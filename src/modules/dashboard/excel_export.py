"""Export dashboard drill-down tables to Excel (XLSX).

Rows are written as the view shows them: sub-rows appear only under
expanded rows of the session the export was requested with.
"""

from decimal import Decimal
from io import BytesIO
from typing import Any, Callable

from openpyxl import Workbook
from openpyxl.styles import Font


def _cell_value(v: Any) -> Any:
    """Convert value for Excel (Decimal -> float, lists joined)."""
    if v is None:
        return None
    if isinstance(v, Decimal):
        return float(v)
    if isinstance(v, list):
        return ", ".join(str(x) for x in v)
    return v


def _write_table(ws: Any, rows: list[list[Any]], start_row: int = 1) -> None:
    """Write list of rows to sheet starting at start_row."""
    for i, row in enumerate(rows, start=start_row):
        for j, val in enumerate(row, start=1):
            ws.cell(row=i, column=j, value=_cell_value(val))


def _title(ws: Any, text: str) -> None:
    ws.cell(1, 1, text)
    ws.cell(1, 1).font = Font(bold=True, size=12)


def _headers(ws: Any, headers: list[str], row: int) -> None:
    _write_table(ws, [headers], row)
    for c in range(1, len(headers) + 1):
        ws.cell(row, c).font = Font(bold=True)


def _to_bytes(wb: Workbook) -> bytes:
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


def export_financial(data: dict) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Financial"
    _title(ws, "Monthly Revenue")
    _headers(ws, ["Month", "Revenue", "Transactions", "Average Value"], 3)
    row = 4
    for m in data.get("monthly_details", []):
        _write_table(ws, [[m.get("month"), m.get("revenue"), m.get("transaction_count"),
                           m.get("average_value")]], row)
        for c in range(1, 5):
            ws.cell(row, c).font = Font(bold=True)
        row += 1
        for p in m.get("sub_rows", []):
            _write_table(ws, [["", p.get("amount"), p.get("payment_id"), p.get("payment_date"),
                               p.get("package_name"), p.get("student_name"), p.get("currency")]], row)
            row += 1
    metrics = data.get("metrics", {})
    row += 1
    _write_table(ws, [["TOTAL", metrics.get("total_revenue"), metrics.get("total_transactions"),
                       metrics.get("average_transaction_value")]], row)
    ws.cell(row, 1).font = Font(bold=True)
    _write_table(ws, [["Unattributed", data.get("unattributed_revenue")]], row + 1)

    by_instrument = wb.create_sheet("By Instrument")
    _headers(by_instrument, ["Instrument", "Revenue"], 1)
    _write_table(
        by_instrument,
        [[p.get("name"), p.get("value")] for p in data.get("instrument_revenue", [])],
        2,
    )
    return _to_bytes(wb)


def export_lessons(data: dict) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Lessons"
    _title(ws, "Lessons by Month")
    headers = ["Month", "Total", "Attended", "Cancelled", "Pending", "Attendance %"]
    _headers(ws, headers, 3)
    row = 4
    for m in data.get("monthly_details", []):
        _write_table(ws, [[m.get("month"), m.get("total"), m.get("attended"), m.get("cancelled"),
                           m.get("pending"), m.get("attendance_rate")]], row)
        for c in range(1, len(headers) + 1):
            ws.cell(row, c).font = Font(bold=True)
        row += 1
        for lesson in m.get("sub_rows", []):
            _write_table(ws, [["", lesson.get("start_datetime"), lesson.get("status"),
                               lesson.get("package_name"), lesson.get("student_name"),
                               lesson.get("teacher_name"), lesson.get("remarks")]], row)
            row += 1
    metrics = data.get("metrics", {})
    row += 1
    _write_table(ws, [["TOTAL", metrics.get("total_lessons"), "", "", "",
                       metrics.get("attendance_rate")]], row)
    ws.cell(row, 1).font = Font(bold=True)
    return _to_bytes(wb)


def export_teachers(data: dict) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Teachers"
    _title(ws, "Teacher Workload")
    headers = ["Teacher", "Students", "Lessons", "Completed", "Cancelled", "Pending",
               "Instruments", "Completion %"]
    _headers(ws, headers, 3)
    row = 4
    for t in data.get("rows", []):
        _write_table(ws, [[t.get("name"), t.get("total_students"), t.get("total_lessons"),
                           t.get("completed_lessons"), t.get("cancelled_lessons"),
                           t.get("pending_lessons"), t.get("instruments"),
                           t.get("average_completion_rate")]], row)
        row += 1
        for s in t.get("sub_rows", []):
            _write_table(ws, [["", s.get("student_name"), s.get("instrument")]], row)
            row += 1
    return _to_bytes(wb)


_EXPORTERS: dict[str, Callable[[dict], bytes]] = {
    "financial": export_financial,
    "lessons": export_lessons,
    "teachers": export_teachers,
}


def build_view_xlsx(view: str, data: dict) -> bytes:
    """Build XLSX bytes for a view's tables. view e.g. 'financial'."""
    fn = _EXPORTERS.get(view)
    if not fn:
        raise ValueError(f"Unknown view for Excel: {view}")
    return fn(data)
