"""Export functionality for schedule results."""

import json
from abc import ABC, abstractmethod
from pathlib import Path

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from .models import ScheduleResult

FONT_HEADER = Font(name="Calibri", size=11, bold=True)
FONT_CELL = Font(name="Calibri", size=10)
ALIGN_CENTER = Alignment(horizontal="center", vertical="center", wrap_text=True)
FILL_ASSIGNED = PatternFill(start_color="DDEBF7", end_color="DDEBF7", fill_type="solid")
FILL_OWNER = PatternFill(start_color="E2EFDA", end_color="E2EFDA", fill_type="solid")
_THIN = Side(style="thin")
THIN_BORDER = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)


def assignment_rows(result: ScheduleResult) -> list[dict]:
    """One row per assigned time range."""
    rows = []
    for member_id, assignment in result.assignments.items():
        for slot in sorted(assignment.slots, key=lambda s: s.sort_key):
            rows.append(
                {
                    "member_id": member_id,
                    "date": slot.date.isoformat(),
                    "day": slot.day,
                    "start_time": slot.start_time,
                    "end_time": slot.end_time,
                    "subject": slot.subject,
                }
            )
    return rows


def member_summary_rows(result: ScheduleResult) -> list[dict]:
    """One row per member with quota figures."""
    return [
        {
            "member_id": member_id,
            "required_slots": a.required_slots,
            "assigned_slots": a.assigned_slots,
            "assigned_hours": a.assigned_hours,
            "deficit_slots": a.deficit_slots,
            "needs_intervention": a.needs_intervention,
            "intervention_reason": a.intervention_reason or "",
        }
        for member_id, a in result.assignments.items()
    ]


def slot_rows(result: ScheduleResult) -> list[dict]:
    """One row per timetable slot."""
    return [
        {
            "date": slot.date.isoformat(),
            "start_time": slot.start_time,
            "end_time": slot.end_time,
            "assigned_to": slot.assigned_to or "",
            "available": "; ".join(
                f"{a.member_id}:{a.priority}" for a in slot.non_owner_entries()
            ),
        }
        for slot in (result.timetable[k] for k in result.timetable.sorted_keys())
    ]


class BaseExporter(ABC):
    """Base class for exporters."""

    @abstractmethod
    def export(self, result: ScheduleResult, output_path: str | Path) -> None:
        """Export schedule result to file.

        Args:
            result: ScheduleResult to export
            output_path: Path to output file or directory
        """
        pass


class JSONExporter(BaseExporter):
    """Export to JSON format."""

    def __init__(self, indent: int = 2, ensure_ascii: bool = False):
        """Initialize exporter.

        Args:
            indent: JSON indentation level
            ensure_ascii: If False, allows non-ASCII characters
        """
        self.indent = indent
        self.ensure_ascii = ensure_ascii

    def export(self, result: ScheduleResult, output_path: str | Path) -> None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(
                result.to_dict(),
                f,
                indent=self.indent,
                ensure_ascii=self.ensure_ascii,
            )


class CSVExporter(BaseExporter):
    """Export to CSV format (multiple files)."""

    def export(self, result: ScheduleResult, output_path: str | Path) -> None:
        """Export schedule result to CSV files.

        Creates three files:
        - assignments.csv: Assigned time ranges per member
        - slots.csv: Every timetable slot with its claimants
        - summary.csv: Quota figures per member

        Args:
            result: ScheduleResult to export
            output_path: Path to output directory
        """
        output_dir = Path(output_path)
        output_dir.mkdir(parents=True, exist_ok=True)

        self._write_csv(
            output_dir / "assignments.csv",
            assignment_rows(result),
            ["member_id", "date", "day", "start_time", "end_time", "subject"],
        )
        self._write_csv(
            output_dir / "slots.csv",
            slot_rows(result),
            ["date", "start_time", "end_time", "assigned_to", "available"],
        )
        self._write_csv(output_dir / "summary.csv", member_summary_rows(result), None)

    def _write_csv(self, output_path: Path, rows: list[dict], columns: list[str] | None) -> None:
        df = pd.DataFrame(rows, columns=columns) if columns else pd.DataFrame(rows)
        df.to_csv(output_path, index=False, encoding="utf-8")


class ExcelExporter(BaseExporter):
    """Export to Excel format.

    The workbook has an Assignments sheet, a Summary sheet and a Grid sheet
    laying slots out as time rows by date columns.
    """

    def export(self, result: ScheduleResult, output_path: str | Path) -> None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        wb = Workbook()
        ws = wb.active
        ws.title = "Assignments"
        self._write_table(
            ws,
            ["Member", "Date", "Day", "Start", "End", "Subject"],
            [list(r.values()) for r in assignment_rows(result)],
        )
        self._write_table(
            wb.create_sheet("Summary"),
            ["Member", "Required Slots", "Assigned Slots", "Assigned Hours", "Deficit Slots",
             "Needs Intervention", "Reason"],
            [list(r.values()) for r in member_summary_rows(result)],
        )
        self._write_grid(wb.create_sheet("Grid"), result)
        wb.save(output_path)

    def _write_table(self, ws, headers: list[str], rows: list[list]) -> None:
        ws.append(headers)
        for cell in ws[1]:
            cell.font = FONT_HEADER
            cell.border = THIN_BORDER
        for row in rows:
            ws.append(row)
        for col in range(1, len(headers) + 1):
            ws.column_dimensions[get_column_letter(col)].width = 16
        ws.freeze_panes = "A2"

    def _write_grid(self, ws, result: ScheduleResult) -> None:
        timetable = result.timetable
        dates = timetable.dates()
        times = sorted({k[1] for k in timetable.slots})

        ws.cell(row=1, column=1, value="Time").font = FONT_HEADER
        for col, value in enumerate(dates, start=2):
            cell = ws.cell(row=1, column=col, value=value.isoformat())
            cell.font = FONT_HEADER
            cell.alignment = ALIGN_CENTER
            ws.column_dimensions[get_column_letter(col)].width = 14

        for row, start_time in enumerate(times, start=2):
            ws.cell(row=row, column=1, value=start_time).font = FONT_HEADER
            for col, value in enumerate(dates, start=2):
                slot = timetable.get((value, start_time))
                cell = ws.cell(row=row, column=col)
                cell.border = THIN_BORDER
                cell.alignment = ALIGN_CENTER
                cell.font = FONT_CELL
                if slot is None:
                    continue
                if slot.is_assigned:
                    cell.value = slot.assigned_to
                    cell.fill = FILL_ASSIGNED
                else:
                    cell.value = ", ".join(a.member_id for a in slot.non_owner_entries())
                    cell.fill = FILL_OWNER

        ws.freeze_panes = "B2"


def get_exporter(format_type: str) -> BaseExporter:
    """Get appropriate exporter for format type.

    Args:
        format_type: Export format ('json', 'csv', 'excel')

    Returns:
        Exporter instance

    Raises:
        ValueError: If format type is not supported
    """
    exporters = {
        "json": JSONExporter,
        "csv": CSVExporter,
        "excel": ExcelExporter,
    }

    if format_type not in exporters:
        raise ValueError(
            f"Unsupported format: {format_type}. Supported: {', '.join(exporters.keys())}"
        )

    return exporters[format_type]()
