"""
Row processing for the CSAT survey sheet.

Two entry points:

- ``process_submission`` handles one freshly submitted row: attribute the
  ticket, write the agent name, post the CSAT note.
- ``backfill`` sweeps existing rows in ascending order and fills in missing
  agent names, pacing the Zendesk calls.

Neither raises for a single bad row; failures are logged and recorded on the
returned outcome/report.
"""

import logging
from typing import Iterator, Literal, Optional, Protocol

from pydantic import BaseModel, Field

from zendesk_csat_attribution.attribution import AttributionResolver
from zendesk_csat_attribution.config import Settings
from zendesk_csat_attribution.models import CsatNote
from zendesk_csat_attribution.notes import compose_note
from zendesk_csat_attribution.sheet import SurveySheet
from zendesk_csat_attribution.throttle import Throttle, paced

logger = logging.getLogger(__name__)


class NoteTarget(Protocol):
    def apply_note(self, ticket_id: int, note: CsatNote) -> bool: ...


class RowOutcome(BaseModel):
    row: int
    ticket_id: Optional[int] = None
    agent_name: str = ""
    status: Literal["processed", "skipped", "failed"] = "processed"
    note_applied: Optional[bool] = None
    error: Optional[str] = None


class BackfillReport(BaseModel):
    rows_seen: int = 0
    filled: int = 0
    unresolved: int = 0
    skipped_invalid: int = 0
    skipped_existing: int = 0
    failed: int = 0
    notes_applied: int = 0
    failed_rows: list[int] = Field(default_factory=list)


class RowProcessor:
    """Ties attribution, note composition and ticket updates to sheet rows."""

    def __init__(self, resolver: AttributionResolver, notes: NoteTarget, settings: Settings,
                 throttle: Throttle | None = None):
        self.resolver = resolver
        self.notes = notes
        self.settings = settings
        self.throttle = throttle or Throttle(settings.backfill_delay)

    def compose_for_row(self, sheet: SurveySheet, row: int) -> CsatNote:
        response = sheet.survey_response(row)
        return compose_note(
            response.csat_rate,
            response.nps_rate,
            response.comment,
            very_low_threshold=self.settings.very_low_threshold,
            language=self.settings.note_language,
        )

    def process_submission(self, sheet: SurveySheet, row: int) -> RowOutcome:
        """Attribute and annotate a single newly submitted row."""
        raw_ticket = sheet.raw_ticket_id(row)
        ticket_id = sheet.ticket_id(row)
        if ticket_id is None:
            logger.info(f"Row {row}: invalid ticket id ({raw_ticket!r}); skipping.")
            return RowOutcome(row=row, status="skipped")

        try:
            agent_name = self.resolver.resolve_owner(ticket_id)
            if not agent_name:
                logger.info(f"Row {row}: ticket {ticket_id} -> no agent found for CSAT")

            # Written even when empty; the note still goes out without an owner
            sheet.set_agent_name(row, agent_name)
            logger.info(f"Row {row}: ticket {ticket_id} -> CSAT agent {agent_name!r}")

            note = self.compose_for_row(sheet, row)
            applied = self.notes.apply_note(ticket_id, note)
        except Exception as e:
            logger.exception(f"Row {row}: ticket {ticket_id} error: {e}")
            return RowOutcome(row=row, ticket_id=ticket_id, status="failed", error=str(e))

        return RowOutcome(row=row, ticket_id=ticket_id, agent_name=agent_name, note_applied=applied)

    def _pending_rows(self, sheet: SurveySheet, report: BackfillReport) -> Iterator[tuple[int, int]]:
        for row in sheet.data_rows():
            report.rows_seen += 1
            ticket_id = sheet.ticket_id(row)
            if ticket_id is None:
                logger.info(f"Row {row}: invalid ticket id ({sheet.raw_ticket_id(row)!r}); skipping.")
                report.skipped_invalid += 1
                continue
            if sheet.agent_name(row):
                report.skipped_existing += 1
                continue
            yield row, ticket_id

    def backfill(self, sheet: SurveySheet, post_notes: bool = False) -> BackfillReport:
        """Fill missing agent names for rows 2..last, one paced row at a time.

        Rows that already carry an agent name are never touched.
        """
        report = BackfillReport()
        if sheet.last_row < 2:
            logger.info("No data rows to process.")
            return report

        for row, ticket_id in paced(self._pending_rows(sheet, report), self.throttle):
            try:
                agent_name = self.resolver.resolve_owner(ticket_id)
                if agent_name:
                    sheet.set_agent_name(row, agent_name)
                    report.filled += 1
                    logger.info(f"Row {row}: ticket {ticket_id} -> {agent_name}")
                else:
                    report.unresolved += 1
                    logger.info(f"Row {row}: ticket {ticket_id} -> no agent found (after all fallbacks)")

                if post_notes and self.notes.apply_note(ticket_id, self.compose_for_row(sheet, row)):
                    report.notes_applied += 1
            except Exception as e:
                logger.exception(f"Row {row}: ticket {ticket_id} error: {e}")
                report.failed += 1
                report.failed_rows.append(row)

        logger.info(
            f"Backfill complete: {report.filled} filled, {report.unresolved} unresolved, "
            f"{report.skipped_existing} already set, {report.skipped_invalid} invalid, {report.failed} failed."
        )
        return report
