"""Tests for main.py -- argparse commands that only touch the store."""

import json
import sys

import pytest

import main


def _run(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["main.py", *argv])
    main.main()


class TestCli:

    def test_create_and_add(self, tmp_path, monkeypatch, capsys):
        db = str(tmp_path / "cli.db")
        _run(monkeypatch, "--db", db, "portfolios", "--create", "CLI")
        portfolios = json.loads(capsys.readouterr().out)
        assert portfolios[0]["name"] == "CLI"

        _run(monkeypatch, "--db", db, "add", "1", "vwce", "10", "105.32", "01/06/2024")
        added = json.loads(capsys.readouterr().out)
        assert added["ticker"] == "VWCE"
        assert added["portfolioId"] == 1

    def test_invalid_input_exits_2(self, tmp_path, monkeypatch):
        db = str(tmp_path / "cli.db")
        with pytest.raises(SystemExit) as exc:
            _run(monkeypatch, "--db", db, "add", "1", "VWCE", "-3", "100", "2024-06-01")
        assert exc.value.code == 2

    def test_parse_targets(self):
        assert main._parse_targets(["VWCE=60", "AGGH=40"]) == {"VWCE": "60", "AGGH": "40"}
        with pytest.raises(main.InvalidInputError):
            main._parse_targets(["VWCE"])
