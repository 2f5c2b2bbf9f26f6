"""Tests for the command line entry points against a workbook on disk."""
from unittest.mock import Mock

import pytest
from openpyxl import Workbook, load_workbook

from zendesk_csat_attribution import cli, config
from zendesk_csat_attribution.server import Runtime

HEADER = ["Timestamp", "Email", "CSAT", "NPS", "Channel", "Comment", "Ticket", "Agent"]
AGENT_COLUMN = 8


def survey_row(ticket, csat=5, nps=9, comment="thanks", agent=None):
    return ["2024-01-01", "c@example.com", csat, nps, "email", comment, ticket, agent]


def write_workbook(path, *rows, title="Form Responses 1"):
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = title
    worksheet.append(HEADER)
    for row in rows:
        worksheet.append(row)
    workbook.save(path)
    return str(path)


def saved_agents(path):
    worksheet = load_workbook(path).active
    return [worksheet.cell(row=r, column=AGENT_COLUMN).value for r in range(2, worksheet.max_row + 1)]


@pytest.fixture(autouse=True)
def restore_package_logger():
    # main() installs a stream handler and turns off propagation
    original_handlers = list(config.logger.handlers)
    original_propagate = config.logger.propagate
    original_level = config.logger.level
    yield
    for handler in list(config.logger.handlers):
        config.logger.removeHandler(handler)
    for handler in original_handlers:
        config.logger.addHandler(handler)
    config.logger.propagate = original_propagate
    config.logger.setLevel(original_level)


@pytest.fixture
def runtime(settings, monkeypatch):
    client = Mock()
    client.apply_note = Mock(return_value=True)
    resolver = Mock()
    resolver.resolve_owner = Mock(return_value="Sara Ali")
    runtime = Runtime(settings=settings, client=client, resolver=resolver)

    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    monkeypatch.setattr(cli, "build_runtime", lambda _settings: runtime)
    return runtime


class TestProcessRow:
    def test_saves_agent_and_posts_note(self, tmp_path, runtime):
        path = write_workbook(tmp_path / "responses.xlsx", survey_row("Ticket #220162"))

        exit_code = cli.main(["process-row", path, "--row", "2"])

        assert exit_code == 0
        assert saved_agents(path) == ["Sara Ali"]
        runtime.resolver.resolve_owner.assert_called_once_with(220162)
        runtime.client.apply_note.assert_called_once()
        assert runtime.client.apply_note.call_args.args[0] == 220162

    def test_invalid_ticket_row_is_left_untouched(self, tmp_path, runtime):
        path = write_workbook(tmp_path / "responses.xlsx", survey_row("n/a"))

        exit_code = cli.main(["process-row", path, "--row", "2"])

        assert exit_code == 0
        assert saved_agents(path) == [None]
        runtime.client.apply_note.assert_not_called()

    def test_unknown_sheet_exits_with_usage_error(self, tmp_path, runtime):
        path = write_workbook(tmp_path / "responses.xlsx", survey_row(220162))

        assert cli.main(["process-row", path, "--row", "2", "--sheet", "Nope"]) == 2
        runtime.resolver.resolve_owner.assert_not_called()


class TestBackfill:
    def test_fills_only_empty_agent_cells(self, tmp_path, runtime):
        path = write_workbook(
            tmp_path / "responses.xlsx",
            survey_row(101),
            survey_row(102, agent="Existing Agent"),
            survey_row("bad id"),
            survey_row("Ticket #103"),
        )

        exit_code = cli.main(["backfill", path, "--delay", "0"])

        assert exit_code == 0
        assert saved_agents(path) == ["Sara Ali", "Existing Agent", None, "Sara Ali"]
        assert [c.args[0] for c in runtime.resolver.resolve_owner.call_args_list] == [101, 103]
        runtime.client.apply_note.assert_not_called()

    def test_post_notes_flag_posts_for_each_filled_row(self, tmp_path, runtime):
        path = write_workbook(tmp_path / "responses.xlsx", survey_row(101), survey_row(102))

        exit_code = cli.main(["backfill", path, "--post-notes", "--delay", "0"])

        assert exit_code == 0
        assert [c.args[0] for c in runtime.client.apply_note.call_args_list] == [101, 102]

    def test_named_sheet(self, tmp_path, runtime):
        path = write_workbook(tmp_path / "responses.xlsx", survey_row(101), title="Survey")

        assert cli.main(["backfill", path, "--sheet", "Survey", "--delay", "0"]) == 0
        assert saved_agents(path) == ["Sara Ali"]

    def test_negative_delay_exits_with_usage_error(self, tmp_path, runtime):
        path = write_workbook(tmp_path / "responses.xlsx", survey_row(101))

        assert cli.main(["backfill", path, "--delay", "-1"]) == 2
        runtime.resolver.resolve_owner.assert_not_called()


class TestResolve:
    def test_prints_agent(self, runtime, capsys):
        assert cli.main(["resolve", "Ticket #220162"]) == 0
        assert capsys.readouterr().out.strip() == "Sara Ali"

    def test_unresolved_ticket_exits_one(self, runtime):
        runtime.resolver.resolve_owner.return_value = ""

        assert cli.main(["resolve", "220162"]) == 1

    def test_invalid_ticket_id_exits_two(self, runtime):
        assert cli.main(["resolve", "no digits"]) == 2
        runtime.resolver.resolve_owner.assert_not_called()


def test_missing_credentials_exit_with_configuration_error(tmp_path, monkeypatch):
    config._reset_settings_cache_for_tests()
    for key in config.REQUIRED_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    path = write_workbook(tmp_path / "responses.xlsx", survey_row(101))

    try:
        assert cli.main(["process-row", path, "--row", "2"]) == 2
    finally:
        config._reset_settings_cache_for_tests()

    assert saved_agents(path) == [None]
