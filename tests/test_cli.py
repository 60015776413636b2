"""
Tests for the maintenance CLI.
"""
import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from app import cli
from app.models import Item, SecurityControl
from app.services.demo_seeder import DEMO_CONTROLS, DEMO_ITEMS


def _run(argv):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(argv)
    return exc_info.value.code


def test_confirm_accepts_yes_flag_or_typed_yes():
    assert cli._confirm("Sure?", assume_yes=True)
    assert cli._confirm("Sure?", assume_yes=False, input_func=lambda _: " YES ")
    assert not cli._confirm("Sure?", assume_yes=False, input_func=lambda _: "y")


def test_seed_command(cli_database, db_session, capsys):
    assert _run(["seed"]) == 0

    assert db_session.query(Item).count() == len(DEMO_ITEMS)
    assert db_session.query(SecurityControl).count() == len(DEMO_CONTROLS)
    assert "Seeded demo data" in capsys.readouterr().out

    assert _run(["seed"]) == 0
    assert "nothing seeded" in capsys.readouterr().out


def test_wipe_requires_confirmation(cli_database, db_session, make_item):
    make_item("Keep me")

    with patch("builtins.input", return_value="no"):
        assert _run(["wipe"]) == 1
    assert db_session.query(Item).count() == 1

    assert _run(["wipe", "--yes"]) == 0
    assert db_session.query(Item).count() == 0


def test_export_then_import(cli_database, db_session, make_item, tmp_path):
    make_item("Portal", tags=["pci"])
    output = tmp_path / "backup.json"

    assert _run(["export", "--output", str(output)]) == 0
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["metadata"]["counts"]["items"] == 1

    assert _run(["wipe", "--yes"]) == 0
    assert _run(["import", str(output), "--yes"]) == 0

    items = db_session.query(Item).all()
    assert [i.name for i in items] == ["Portal"]
    assert items[0].tags == ["pci"]


def test_import_cancelled_without_confirmation(cli_database, tmp_path):
    path = tmp_path / "backup.json"
    path.write_text("{}", encoding="utf-8")

    with patch("builtins.input", return_value=""):
        assert _run(["import", str(path)]) == 1


def test_import_invalid_file_reports_error(cli_database, tmp_path, capsys):
    path = tmp_path / "backup.json"
    path.write_text(json.dumps({"data": {}}), encoding="utf-8")

    assert _run(["import", str(path), "--yes"]) == 1
    assert "ValidationError" in capsys.readouterr().err


def test_import_bad_row_value_keeps_existing_data(cli_database, db_session, make_item, tmp_path, capsys):
    make_item("Portal")
    output = tmp_path / "backup.json"
    assert _run(["export", "--output", str(output)]) == 0

    payload = json.loads(output.read_text(encoding="utf-8"))
    payload["data"]["items"][0]["created_at"] = "yesterday"
    output.write_text(json.dumps(payload), encoding="utf-8")

    assert _run(["import", str(output), "--yes"]) == 1
    assert "ValidationError" in capsys.readouterr().err
    assert [i.name for i in db_session.query(Item).all()] == ["Portal"]


def test_import_missing_file(cli_database, tmp_path):
    assert _run(["import", str(tmp_path / "missing.json"), "--yes"]) == 1


def test_status_command(capsys):
    health = MagicMock(status_code=200)
    health.json.return_value = {"ok": True, "db": True, "environment": "development"}
    matrix = MagicMock(status_code=200)
    matrix.json.return_value = {"controls": [{"id": 1}], "environments": [{"id": 1}, {"id": 2}]}

    with patch("app.cli.requests.get", side_effect=[health, matrix]) as mock_get:
        assert _run(["status", "--url", "http://api.test/"]) == 0

    assert mock_get.call_args_list[0][0][0] == "http://api.test/api/health"
    out = capsys.readouterr().out
    assert "healthy (development)" in out
    assert "Environments: 2" in out


def test_status_command_unreachable(capsys):
    with patch("app.cli.requests.get", side_effect=requests.exceptions.ConnectionError("refused")):
        assert _run(["status"]) == 1
    assert "not healthy" in capsys.readouterr().err
