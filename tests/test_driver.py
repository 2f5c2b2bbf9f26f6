"""Tests for sheet row processing (per-submission and backfill)."""
from unittest.mock import Mock

import pytest
from openpyxl import Workbook
from pydantic import ValidationError

from zendesk_csat_attribution.driver import RowOutcome, RowProcessor
from zendesk_csat_attribution.sheet import ColumnLayout, SurveySheet, normalize_ticket_id
from zendesk_csat_attribution.throttle import Throttle

HEADER = ["Timestamp", "Email", "CSAT", "NPS", "Channel", "Comment", "Ticket", "Agent"]


def make_sheet(*rows):
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.append(HEADER)
    for row in rows:
        worksheet.append(row)
    return SurveySheet(worksheet, ColumnLayout())


def survey_row(ticket, csat=5, nps=9, comment="thanks", agent=None):
    return ["2024-01-01", "c@example.com", csat, nps, "email", comment, ticket, agent]


class RecordingThrottle(Throttle):
    def __init__(self):
        super().__init__(0)
        self.waits = 0

    def wait(self):
        self.waits += 1


@pytest.fixture
def resolver():
    resolver = Mock()
    resolver.resolve_owner = Mock(return_value="Sara Ali")
    return resolver


@pytest.fixture
def notes():
    notes = Mock()
    notes.apply_note = Mock(return_value=True)
    return notes


@pytest.fixture
def processor(resolver, notes, settings):
    return RowProcessor(resolver, notes, settings, throttle=RecordingThrottle())


class TestNormalizeTicketId:
    @pytest.mark.parametrize("raw,expected", [
        (220162, 220162),
        (220162.0, 220162),
        ("Ticket #220162", 220162),
        ("220162", 220162),
        ("#12 and #34", 12),
        ("no digits here", None),
        ("", None),
        (None, None),
        (0, None),
        (True, None),
        ([220162], None),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_ticket_id(raw) == expected


class TestProcessSubmission:
    def test_outcome_status_is_restricted(self):
        assert RowOutcome(row=2, status="skipped").status == "skipped"
        with pytest.raises(ValidationError):
            RowOutcome(row=2, status="done")

    def test_writes_agent_and_posts_note(self, processor, resolver, notes):
        sheet = make_sheet(survey_row("Ticket #220162", csat=1, nps=2, comment="bad service"))

        outcome = processor.process_submission(sheet, 2)

        assert outcome.status == "processed"
        assert outcome.ticket_id == 220162
        assert sheet.agent_name(2) == "Sara Ali"
        resolver.resolve_owner.assert_called_once_with(220162)
        ticket_id, note = notes.apply_note.call_args.args
        assert ticket_id == 220162
        assert note.should_hold is True
        assert note.tag_to_add == "csat_very_low"

    def test_invalid_ticket_id_makes_no_calls(self, processor, resolver, notes):
        sheet = make_sheet(survey_row("n/a"))

        outcome = processor.process_submission(sheet, 2)

        assert outcome.status == "skipped"
        resolver.resolve_owner.assert_not_called()
        notes.apply_note.assert_not_called()

    def test_unresolved_agent_still_posts_note(self, processor, resolver, notes):
        resolver.resolve_owner.return_value = ""
        sheet = make_sheet(survey_row(300, agent="stale"))

        outcome = processor.process_submission(sheet, 2)

        assert outcome.status == "processed"
        assert sheet.agent_name(2) == ""
        notes.apply_note.assert_called_once()

    def test_note_failure_still_counts_as_processed(self, processor, notes):
        notes.apply_note.return_value = False
        sheet = make_sheet(survey_row(300))

        outcome = processor.process_submission(sheet, 2)

        assert outcome.status == "processed"
        assert outcome.note_applied is False

    def test_unexpected_error_is_captured(self, processor, resolver):
        resolver.resolve_owner.side_effect = RuntimeError("kaboom")
        sheet = make_sheet(survey_row(300))

        outcome = processor.process_submission(sheet, 2)

        assert outcome.status == "failed"
        assert "kaboom" in outcome.error


class TestBackfill:
    def test_fills_only_empty_valid_rows(self, processor, resolver, notes):
        sheet = make_sheet(
            survey_row(101),
            survey_row(102, agent="Already Set"),
            survey_row("garbage"),
            survey_row(104),
        )

        report = processor.backfill(sheet)

        assert [c.args[0] for c in resolver.resolve_owner.call_args_list] == [101, 104]
        assert sheet.agent_name(2) == "Sara Ali"
        assert sheet.agent_name(3) == "Already Set"
        assert sheet.agent_name(4) == ""
        assert sheet.agent_name(5) == "Sara Ali"
        assert report.filled == 2
        assert report.skipped_existing == 1
        assert report.skipped_invalid == 1
        assert report.rows_seen == 4
        notes.apply_note.assert_not_called()

    def test_existing_agent_never_overwritten(self, processor, resolver):
        resolver.resolve_owner.return_value = "Someone Else"
        sheet = make_sheet(survey_row(101, agent="Omar Said"))

        processor.backfill(sheet)

        assert sheet.agent_name(2) == "Omar Said"
        resolver.resolve_owner.assert_not_called()

    def test_unresolved_rows_are_left_blank(self, processor, resolver):
        resolver.resolve_owner.return_value = ""
        sheet = make_sheet(survey_row(101))

        report = processor.backfill(sheet)

        assert sheet.agent_name(2) == ""
        assert report.unresolved == 1

    def test_one_bad_row_does_not_stop_the_sweep(self, processor, resolver):
        resolver.resolve_owner.side_effect = [RuntimeError("boom"), "Sara Ali"]
        sheet = make_sheet(survey_row(101), survey_row(102))

        report = processor.backfill(sheet)

        assert report.failed == 1
        assert report.failed_rows == [2]
        assert sheet.agent_name(3) == "Sara Ali"

    def test_throttle_waits_once_per_api_bound_row(self, processor):
        sheet = make_sheet(survey_row(101), survey_row(102, agent="x"), survey_row(103))

        processor.backfill(sheet)

        assert processor.throttle.waits == 2

    def test_post_notes_option(self, processor, notes):
        sheet = make_sheet(survey_row(101, csat=1, comment="awful"))

        report = processor.backfill(sheet, post_notes=True)

        assert report.notes_applied == 1
        assert notes.apply_note.call_args.args[1].should_hold is True

    def test_header_only_sheet(self, processor, resolver):
        report = processor.backfill(make_sheet())

        assert report.rows_seen == 0
        resolver.resolve_owner.assert_not_called()


def test_column_layout_from_settings(settings):
    custom = settings.model_copy(update={"col_ticket_id": 2, "col_agent_name": 3})
    layout = ColumnLayout.from_settings(custom)

    assert layout.ticket_id == 2
    assert layout.agent_name == 3
    assert layout.csat == 3
