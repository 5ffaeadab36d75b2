"""Tests for the preset-snapshot CLI — exit codes and viewer commands."""

from __future__ import annotations

import csv
import json

import httpx
import yaml
from typer.testing import CliRunner

from preset_snapshot.cli import app
from preset_snapshot.core import loader as loader_module

from sample_data import TEAMS, TEAM_MEMBERS

runner = CliRunner()


class TestNoArgsHelp:
    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "fetch" in result.output
        assert "analytics" in result.output

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "preset-snapshot" in result.output


class TestFetchErrors:
    def test_missing_credentials_exit_1(self, tmp_path, monkeypatch):
        monkeypatch.delenv("PRESET_API_TOKEN", raising=False)
        monkeypatch.delenv("PRESET_API_SECRET", raising=False)
        result = runner.invoke(app, ["fetch", "--out", str(tmp_path / "out")])
        assert result.exit_code == 1
        assert "Missing PRESET_API_TOKEN" in result.output
        assert not (tmp_path / "out").exists()


class TestViewerCommands:
    def test_teams(self, snapshot_dir):
        result = runner.invoke(app, ["teams", "--data-dir", str(snapshot_dir)])
        assert result.exit_code == 0, result.output
        assert "data-team" in result.output

    def test_members_query(self, snapshot_dir):
        result = runner.invoke(app, ["members", "--data-dir", str(snapshot_dir), "--query", "bob"])
        assert result.exit_code == 0, result.output
        assert "bob@x.io" in result.output
        assert "alice@x.io" not in result.output

    def test_users_and_roles_derived(self, snapshot_dir):
        users = runner.invoke(app, ["users", "--data-dir", str(snapshot_dir)])
        roles = runner.invoke(app, ["roles", "--data-dir", str(snapshot_dir)])
        assert users.exit_code == 0 and roles.exit_code == 0
        assert "alice@x.io" in users.output
        assert "Analyst" in roles.output

    def test_missing_snapshot_exit_1(self, tmp_path):
        result = runner.invoke(app, ["teams", "--data-dir", str(tmp_path)])
        assert result.exit_code == 1
        assert "All fetch attempts failed for teams.json" in result.output

    def test_audit_empty_snapshot_ok(self, tmp_path):
        result = runner.invoke(app, ["audit", "--data-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "No logs." in result.output

    def test_inspect_expands_details_payload(self, snapshot_dir):
        result = runner.invoke(app, ["inspect", "4", "--expand", "--data-dir", str(snapshot_dir)])
        assert result.exit_code == 0, result.output
        assert "query_context" in result.output
        assert "7__table" in result.output

    def test_inspect_out_of_range(self, snapshot_dir):
        result = runner.invoke(app, ["inspect", "99", "--data-dir", str(snapshot_dir)])
        assert result.exit_code == 1

    def test_analytics_json(self, snapshot_dir):
        result = runner.invoke(
            app, ["analytics", "--json", "--range", "week", "--data-dir", str(snapshot_dir)]
        )
        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        # Only the event with an unparseable timestamp survives a week window today.
        assert report["events"] == 1
        assert report["workspaces"][0] == "ALL"

    def test_analytics_bad_range(self, snapshot_dir):
        result = runner.invoke(app, ["analytics", "--range", "decade", "--data-dir", str(snapshot_dir)])
        assert result.exit_code == 1
        assert "Unknown range" in result.output

    def test_summary(self, snapshot_dir):
        result = runner.invoke(app, ["summary", "--data-dir", str(snapshot_dir)])
        assert result.exit_code == 0
        assert "teams" in result.output


class TestExport:
    def test_members_csv(self, snapshot_dir, tmp_path):
        out = tmp_path / "members.csv"
        result = runner.invoke(
            app, ["export", "members", "--format", "csv", "--out", str(out), "--data-dir", str(snapshot_dir)]
        )
        assert result.exit_code == 0, result.output
        with open(out, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert [r["email"] for r in rows] == ["alice@x.io", "bob@x.io", "alice@x.io"]
        assert "_team_id" not in rows[0]
        assert "team_role" not in rows[0]

    def test_teams_yaml(self, snapshot_dir, tmp_path):
        out = tmp_path / "teams"
        result = runner.invoke(
            app, ["export", "teams", "-f", "yaml", "-o", str(out), "--data-dir", str(snapshot_dir)]
        )
        assert result.exit_code == 0, result.output
        data = yaml.safe_load((tmp_path / "teams.yaml").read_text(encoding="utf-8"))
        assert [t["name"] for t in data] == ["data-team", "ops"]

    def test_bad_view(self, snapshot_dir):
        result = runner.invoke(app, ["export", "audit", "--data-dir", str(snapshot_dir)])
        assert result.exit_code == 1
        assert "Unknown view" in result.output


class TestSiteUrl:
    def test_http_loader_closed_after_command(self, monkeypatch):
        files = {"/data/teams.json": TEAMS, "/data/team_members.json": TEAM_MEMBERS}
        created = []

        def handler(request: httpx.Request) -> httpx.Response:
            body = files.get(request.url.path)
            return httpx.Response(404) if body is None else httpx.Response(200, json=body)

        class RecordingLoader(loader_module.HttpSnapshotLoader):
            def __init__(self, site_url, base_path="/"):
                super().__init__(site_url, base_path=base_path, transport=httpx.MockTransport(handler))
                created.append(self)

        monkeypatch.setattr(loader_module, "HttpSnapshotLoader", RecordingLoader)
        result = runner.invoke(app, ["teams", "--site-url", "https://site.test/"])
        assert result.exit_code == 0, result.output
        assert "data-team" in result.output
        assert len(created) == 1
        assert created[0]._client.is_closed
