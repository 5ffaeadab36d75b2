"""Tests for derived users/roles, member counts and file helpers."""

from __future__ import annotations

import json

from preset_snapshot.core.derive import derive_roles, derive_users, full_name, member_counts, team_id_of
from preset_snapshot.core.io import csv_columns, read_json, rows_to_csv, write_json

from sample_data import TEAM_MEMBERS


class TestDerive:
    def test_fetched_users_win(self):
        users = [{"id": 99, "username": "root"}]
        assert derive_users(users, TEAM_MEMBERS) is users

    def test_users_from_members(self):
        users = derive_users([], TEAM_MEMBERS)
        assert [u["id"] for u in users] == [1, 2]
        assert users[0]["email"] == "alice@x.io"
        assert users[0]["team_role"] == "Admin"
        assert users[1]["team_role"] == "Analyst"

    def test_users_from_nested_user(self):
        users = derive_users([], [{"user": {"id": 5, "email": "n@x.io"}}])
        assert users == [{
            "id": 5, "first_name": None, "last_name": None, "email": "n@x.io", "username": None,
            "roles": [], "user_type": None, "team_role": None,
        }]

    def test_roles_from_members(self):
        assert derive_roles([], TEAM_MEMBERS) == [
            {"id": "Admin", "name": "Admin"},
            {"id": "Analyst", "name": "Analyst"},
        ]

    def test_fetched_roles_win(self):
        roles = [{"id": 1, "name": "Gamma"}]
        assert derive_roles(roles, TEAM_MEMBERS) is roles

    def test_member_counts(self):
        assert member_counts(TEAM_MEMBERS + [{"email": "x"}]) == {7: 2, 8: 1}

    def test_team_id_and_name(self):
        assert team_id_of({"uuid": "u-1"}) == "u-1"
        assert full_name({"first_name": "Ada", "last_name": None}) == "Ada"


class TestIO:
    def test_json_roundtrip_unicode(self, tmp_path):
        path = write_json(tmp_path / "nested" / "x.json", [{"name": "Zoë"}])
        assert "Zoë" in path.read_text(encoding="utf-8")
        assert read_json(path) == [{"name": "Zoë"}]

    def test_csv_columns_skip_private_and_nested(self):
        rows = [{"a": 1, "_hidden": 2, "obj": {"k": 1}}, {"b": 3, "a": 4}]
        assert csv_columns(rows) == ["a", "b"]

    def test_rows_to_csv(self):
        text = rows_to_csv([{"a": 1, "b": None}, {"a": "x,y"}])
        assert text == 'a,b\n1,\n"x,y",\n'

    def test_rows_to_csv_empty(self):
        assert rows_to_csv([]) == ""

    def test_written_json_is_indented(self, tmp_path):
        path = write_json(tmp_path / "y.json", {"a": 1})
        assert path.read_text(encoding="utf-8") == json.dumps({"a": 1}, indent=2)
