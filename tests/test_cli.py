"""Integration tests for CLI commands using Click's CliRunner."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path

import pytest
from click.testing import CliRunner

from subtrack.cli.main import cli
from subtrack.core.storage import JsonStore, wrap_records

TODAY = "2025-01-15"


@pytest.fixture
def tmp_dir(monkeypatch):
    """Temporary config dir plus an empty data file."""
    with tempfile.TemporaryDirectory() as d:
        tmp = Path(d)
        monkeypatch.setenv("SUBTRACK_CONFIG_DIR", str(tmp / "config"))
        monkeypatch.delenv("SUBTRACK_DATA_FILE", raising=False)
        monkeypatch.delenv("SUBTRACK_LOG_LEVEL", raising=False)
        JsonStore(tmp / "subs.json").write(wrap_records([]))
        yield tmp


@pytest.fixture
def run(tmp_dir):
    """Invoke the CLI against the temp data file with a fixed reference date."""
    runner = CliRunner()

    def _run(*args: str, input: str | None = None):
        base = ["--today", TODAY, "--data-file", str(tmp_dir / "subs.json")]
        return runner.invoke(cli, [*base, *args], input=input, catch_exceptions=False)

    return _run


def _json(result) -> dict:
    return json.loads(result.stdout)


def _add(run, *args: str) -> dict:
    result = run("--json", "subscriptions", "add", *args)
    assert result.exit_code == 0, result.output
    return _json(result)["data"]


class TestRootCLI:
    """Tests for the root `subtrack` command."""

    def test_help(self, run):
        result = run("--help")
        assert result.exit_code == 0
        assert "SubTrack" in result.output
        assert "subscriptions" in result.output
        assert "seed" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "SubTrack" in result.output
        assert "0.1.0" in result.output

    def test_no_subcommand_shows_overview(self, run):
        run("--json", "seed", "--profile", "demo")
        result = run()
        assert result.exit_code == 0
        assert "Overview" in result.output

    def test_overview_json(self, run):
        run("--json", "seed", "--profile", "demo")
        result = run("--json", "overview")
        assert result.exit_code == 0
        data = _json(result)["data"]
        assert data["today"] == TODAY
        # Notion 10 + Spotify 15.99 + Adobe 599/12 + Gym 150/3
        assert data["monthly_total"] == pytest.approx(125.91)
        assert data["active_count"] == 4
        assert data["inactive_count"] == 1
        assert data["window_days"] == 14
        assert len(data["subscriptions"]) == 5


class TestSubscriptionsCLI:
    """Tests for the `subtrack subscriptions` subcommand group."""

    def test_help(self, run):
        result = run("subscriptions", "--help")
        assert result.exit_code == 0
        for name in ("list", "add", "edit", "delete", "summary", "upcoming", "timeline"):
            assert name in result.output

    def test_add_month_end_renewal(self, run):
        data = _add(run, "--name", "Netflix", "--cost", "15.99", "--start", "2024-01-31")
        assert data["name"] == "Netflix"
        assert data["billingCycle"] == {"type": "monthly"}
        assert data["monthlyCost"] == 15.99
        assert data["nextRenewal"] == "2025-01-29"

    def test_add_custom_cycle(self, run):
        data = _add(
            run,
            "--name", "Gym", "--cost", "150",
            "--cycle", "custom", "--months", "3",
            "--start", "2024-12-01", "--end", "2025-12-01",
            "--category", "wellness",
        )
        assert data["billingCycle"] == {"type": "custom", "months": 3}
        assert data["monthlyCost"] == 50.0
        assert data["yearlyCost"] == 600.0
        assert data["nextRenewal"] == "2025-03-01"

    def test_add_human_output(self, run):
        result = run("subscriptions", "add", "--name", "Music", "--cost", "9.99")
        assert result.exit_code == 0
        assert "Added subscription: Music" in result.output

    def test_add_prompts_for_name_and_cost(self, run):
        result = run("subscriptions", "add", input="Music\n9.99\n")
        assert result.exit_code == 0
        assert "Added subscription: Music" in result.output

    def test_add_invalid_cost_json_error(self, run):
        result = run("--json", "subscriptions", "add", "--name", "Bad", "--cost", "0")
        assert result.exit_code == 1
        error = _json(result)["error"]
        assert "cost" in error["details"]

    def test_add_end_before_start(self, run):
        result = run(
            "subscriptions", "add", "--name", "Bad", "--cost", "5",
            "--start", "2024-05-01", "--end", "2024-04-01",
        )
        assert result.exit_code == 1
        assert "End date must be" in result.output

    def test_list_json_with_filters(self, run):
        _add(run, "--name", "Netflix", "--cost", "15.99", "--category", "streaming")
        _add(run, "--name", "Notion", "--cost", "10", "--category", "productivity")
        result = run("--json", "subscriptions", "list", "--search", "NET")
        names = [s["name"] for s in _json(result)["data"]]
        assert names == ["Netflix"]

    def test_list_status_filter_uses_end_date(self, run):
        _add(run, "--name", "Expired", "--cost", "5", "--start", "2024-01-01", "--end", "2024-12-31")
        _add(run, "--name", "Current", "--cost", "5", "--start", "2024-01-01")
        result = run("--json", "subscriptions", "list", "--status", "inactive")
        data = _json(result)["data"]
        assert [s["name"] for s in data] == ["Expired"]
        assert data[0]["status"] == "active"
        assert data[0]["effectiveStatus"] == "inactive"
        assert data[0]["nextRenewal"] is None

    def test_list_empty(self, run):
        result = run("subscriptions", "list")
        assert result.exit_code == 0
        assert "No subscriptions" in result.output

    def test_edit(self, run):
        sub = _add(run, "--name", "Music", "--cost", "9.99")
        result = run("--json", "subscriptions", "edit", sub["id"][:8], "--cost", "12.50")
        assert result.exit_code == 0
        data = _json(result)["data"]
        assert data["id"] == sub["id"]
        assert data["monthlyCost"] == 12.5

    def test_edit_clear_end(self, run):
        sub = _add(run, "--name", "Music", "--cost", "9.99", "--start", "2024-01-01", "--end", "2024-06-01")
        result = run("--json", "subscriptions", "edit", sub["id"], "--no-end")
        assert _json(result)["data"]["endDate"] is None

    def test_show_missing(self, run):
        result = run("--json", "subscriptions", "show", "nope")
        assert result.exit_code == 1
        assert "not found" in _json(result)["error"]["message"]

    def test_show(self, run):
        sub = _add(run, "--name", "Music", "--cost", "9.99", "--start", "2024-01-20")
        result = run("subscriptions", "show", sub["id"])
        assert result.exit_code == 0
        assert "Music" in result.output
        assert "in 5 days" in result.output

    def test_delete(self, run):
        sub = _add(run, "--name", "Music", "--cost", "9.99")
        result = run("subscriptions", "delete", sub["id"], "--yes")
        assert result.exit_code == 0
        listed = _json(run("--json", "subscriptions", "list"))["data"]
        assert listed == []

    def test_deactivate_and_activate(self, run):
        sub = _add(run, "--name", "Music", "--cost", "9.99")
        off = _json(run("--json", "subscriptions", "deactivate", sub["id"]))["data"]
        assert off["status"] == "inactive"
        assert off["nextRenewal"] is None
        on = _json(run("--json", "subscriptions", "activate", sub["id"]))["data"]
        assert on["status"] == "active"

    def test_summary_json(self, run):
        _add(run, "--name", "Music", "--cost", "10", "--category", "entertainment")
        _add(run, "--name", "Cloud", "--cost", "120", "--cycle", "yearly", "--category", "software")
        _add(run, "--name", "Gym", "--cost", "50", "--status", "inactive")
        data = _json(run("--json", "subscriptions", "summary"))["data"]
        assert data["total_monthly"] == 20.0
        assert data["total_yearly"] == 240.0
        assert data["active_count"] == 2
        assert data["inactive_count"] == 1
        assert data["average_monthly"] == 10.0
        assert {c["category"] for c in data["by_category"]} == {"entertainment", "software"}
        assert [c["cycle"] for c in data["by_cycle"]] == ["monthly", "yearly", "custom"]

    def test_upcoming(self, run):
        _add(run, "--name", "Soon", "--cost", "5", "--start", "2024-01-18")
        _add(run, "--name", "Later", "--cost", "5", "--cycle", "yearly", "--start", "2024-02-20")
        data = _json(run("--json", "subscriptions", "upcoming"))["data"]
        assert [u["subscription"]["name"] for u in data] == ["Soon"]
        assert data[0]["days_until_renewal"] == 3
        wide = _json(run("--json", "subscriptions", "upcoming", "--days", "40"))["data"]
        assert [u["subscription"]["name"] for u in wide] == ["Soon", "Later"]

    def test_timeline(self, run):
        _add(run, "--name", "Music", "--cost", "10", "--start", "2024-01-01")
        data = _json(run("--json", "subscriptions", "timeline", "--months", "3"))["data"]
        assert [p["month_start"] for p in data] == ["2025-01-01", "2025-02-01", "2025-03-01"]
        assert all(p["monthly_cost"] == 10.0 for p in data)


class TestSeedCLI:
    def test_seed_demo(self, run):
        data = _json(run("--json", "seed", "--profile", "demo"))["data"]
        assert data == {"profile": "demo", "count": 5, "saved": True}

    def test_seed_empty(self, run):
        run("--json", "seed")
        data = _json(run("--json", "seed", "--profile", "empty"))["data"]
        assert data["count"] == 0

    def test_seed_requires_confirmation(self, run):
        result = run("seed", input="n\n")
        assert result.exit_code == 1


class TestExportCLI:
    def test_export_csv(self, run):
        _add(run, "--name", "Gym", "--cost", "150", "--cycle", "custom", "--months", "3",
             "--start", "2024-12-01")
        result = run("export", "csv")
        assert result.exit_code == 0
        header, row = result.output.strip().splitlines()[:2]
        assert "monthly_cost" in header
        assert "Gym" in row
        assert "50.00" in row
        assert "2025-03-01" in row

    def test_export_json_is_loadable(self, run, tmp_dir):
        _add(run, "--name", "Music", "--cost", "9.99")
        out = tmp_dir / "export.json"
        result = run("export", "json", "-o", str(out))
        assert result.exit_code == 0
        document = json.loads(out.read_text())
        assert document["version"] == 1
        assert document["subscriptions"][0]["name"] == "Music"


class TestConfigCLI:
    def test_show_json(self, run):
        data = _json(run("--json", "config", "show"))["data"]
        assert data["config"]["renewals"]["upcoming_window_days"] == 14
        assert data["data_file"].endswith("subs.json")

    def test_set_window(self, run):
        result = run("--json", "config", "set", "renewals.upcoming_window_days", "40")
        assert _json(result)["data"] == {"key": "renewals.upcoming_window_days", "value": 40}
        _add(run, "--name", "Later", "--cost", "5", "--cycle", "yearly", "--start", "2024-02-20")
        data = _json(run("--json", "subscriptions", "upcoming"))["data"]
        assert len(data) == 1

    def test_set_include_today(self, run):
        _add(run, "--name", "Today", "--cost", "5", "--start", "2024-01-15")
        before = _json(run("--json", "subscriptions", "show", _first_id(run)))["data"]
        assert before["nextRenewal"] == "2025-02-15"
        run("config", "set", "renewals.include_today", "true")
        after = _json(run("--json", "subscriptions", "show", _first_id(run)))["data"]
        assert after["nextRenewal"] == TODAY

    def test_set_unknown_key(self, run):
        result = run("config", "set", "nope.key", "1")
        assert result.exit_code == 1
        assert "Unknown config key" in result.output


def _first_id(run) -> str:
    return _json(run("--json", "subscriptions", "list"))["data"][0]["id"]


class TestUserTextRendering:
    """Names and categories containing Rich markup print literally."""

    NAME = "Plan [/b] x"

    def test_add_then_list(self, run):
        result = run("subscriptions", "add", "--name", self.NAME, "--cost", "5", "--category", "[bold]odd")
        assert result.exit_code == 0
        assert self.NAME in result.output
        listed = run("subscriptions", "list")
        assert listed.exit_code == 0
        assert "[/b]" in listed.output

    def test_other_views(self, run):
        sub = _add(run, "--name", self.NAME, "--cost", "5", "--start", "2024-01-20", "--category", "[red]")
        for args in (
            ("overview",),
            ("subscriptions", "show", sub["id"]),
            ("subscriptions", "upcoming"),
            ("subscriptions", "summary"),
            ("subscriptions", "deactivate", sub["id"]),
            ("subscriptions", "delete", sub["id"], "--yes"),
        ):
            result = run(*args)
            assert result.exit_code == 0, args

    def test_error_message_with_markup(self, run):
        result = run("subscriptions", "show", "[/x]")
        assert result.exit_code == 1
        assert "[/x]" in result.output


class TestLogLevel:
    def test_unknown_option_value(self, run):
        result = run("--log-level", "foo", "subscriptions", "list")
        assert result.exit_code == 2
        assert "foo" in result.output

    def test_option_case_insensitive(self, run):
        assert run("--log-level", "debug", "subscriptions", "list").exit_code == 0

    def test_unknown_config_level(self, run, tmp_dir):
        (tmp_dir / "config").mkdir(exist_ok=True)
        (tmp_dir / "config" / "subtrack.toml").write_text('[logging]\nlevel = "loud"\n')
        result = run("--json", "subscriptions", "list")
        assert result.exit_code == 1
        assert "Unknown log level" in _json(result)["error"]["message"]
