"""Survey spreadsheet access on top of openpyxl worksheets."""
import math
import re
from typing import Any, NamedTuple, Optional

from openpyxl import load_workbook
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from zendesk_csat_attribution.config import Settings
from zendesk_csat_attribution.models import SurveyResponse

FIRST_DATA_ROW = 2

_DIGITS = re.compile(r"\d+")


def normalize_ticket_id(raw: Any) -> Optional[int]:
    """Extract a ticket ID from a raw cell value.

    Numbers are floored; strings yield their first run of digits
    ("Ticket #220162" -> 220162). Anything else, including blanks,
    gives None.
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and not math.isfinite(raw):
            return None
        ticket_id = math.floor(raw)
    elif isinstance(raw, str):
        match = _DIGITS.search(raw)
        if not match:
            return None
        ticket_id = int(match.group(0))
    else:
        return None

    return ticket_id if ticket_id > 0 else None


class ColumnLayout(NamedTuple):
    """1-based column positions of the survey sheet."""
    csat: int = 3
    nps: int = 4
    comment: int = 6
    ticket_id: int = 7
    agent_name: int = 8

    @classmethod
    def from_settings(cls, settings: Settings) -> "ColumnLayout":
        return cls(
            csat=settings.col_csat,
            nps=settings.col_nps,
            comment=settings.col_comment,
            ticket_id=settings.col_ticket_id,
            agent_name=settings.col_agent_name,
        )


class SurveySheet:
    """Row-level reads and writes on a survey responses worksheet."""

    def __init__(self, worksheet: Worksheet, columns: ColumnLayout = ColumnLayout()):
        self.worksheet = worksheet
        self.columns = columns

    @property
    def title(self) -> str:
        return self.worksheet.title

    @property
    def last_row(self) -> int:
        # openpyxl reports max_row == 1 for an empty sheet
        return self.worksheet.max_row

    def data_rows(self) -> range:
        return range(FIRST_DATA_ROW, self.last_row + 1)

    def _value(self, row: int, column: int) -> Any:
        return self.worksheet.cell(row=row, column=column).value

    def raw_ticket_id(self, row: int) -> Any:
        return self._value(row, self.columns.ticket_id)

    def ticket_id(self, row: int) -> Optional[int]:
        return normalize_ticket_id(self.raw_ticket_id(row))

    def agent_name(self, row: int) -> str:
        value = self._value(row, self.columns.agent_name)
        return "" if value is None else str(value).strip()

    def set_agent_name(self, row: int, name: str) -> None:
        self.worksheet.cell(row=row, column=self.columns.agent_name, value=name)

    def survey_response(self, row: int) -> SurveyResponse:
        return SurveyResponse(
            csat_rate=self._value(row, self.columns.csat),
            nps_rate=self._value(row, self.columns.nps),
            comment=self._value(row, self.columns.comment),
        )


def open_workbook(path: str) -> Workbook:
    return load_workbook(path)


def select_sheet(workbook: Workbook, sheet_name: str | None, columns: ColumnLayout) -> SurveySheet:
    """Wrap the named worksheet, or the active one when no name is given."""
    if sheet_name:
        if sheet_name not in workbook.sheetnames:
            raise KeyError(f"Worksheet {sheet_name!r} not found (have: {', '.join(workbook.sheetnames)})")
        worksheet = workbook[sheet_name]
    else:
        worksheet = workbook.active
    return SurveySheet(worksheet, columns)
