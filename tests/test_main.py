"""Tests for the command-line entry point."""

import json

import pytest

import main
from config import settings
from chiffres_z3.utils.logger import configure_logging


@pytest.fixture(autouse=True)
def _restore_settings(monkeypatch):
    # main() writes its overrides into the global settings and rebinds
    # every log handler to the captured streams of the running test
    monkeypatch.setattr(settings, "LOG_JSON_MODE", False)
    monkeypatch.setattr(settings, "LOG_SHOW_FORMULAS", False)
    monkeypatch.setattr(settings, "LOG_LEVEL", "INFO")
    yield
    configure_logging()


class TestMain:
    def test_exact(self, capsys):
        assert main.main(["2", "3", "--target", "5", "--bits", "8"]) == 0
        out = capsys.readouterr().out
        assert "FOUND_EXACT" in out
        assert "add ~> [5 <|]" in out

    def test_approximate(self, capsys):
        assert main.main(["5", "--target", "9", "--bits", "8"]) == 1
        out = capsys.readouterr().out
        assert "Closest value 5 (distance 4)" in out

    def test_configuration_error(self, capsys):
        code = main.main(["200", "3", "--target", "5", "--bits", "8", "--no-overflows"])
        assert code == main.EXIT_CONFIGURATION_ERROR
        assert "Invalid parameters" in capsys.readouterr().out

    def test_json_output(self, capsys):
        assert main.main(["2", "3", "--target", "5", "--bits", "8", "--json-output"]) == 0
        captured = capsys.readouterr()
        # stdout holds the result document alone
        summary = json.loads(captured.out)
        assert summary["status"] == "found-exact"
        assert summary["value"] == 5
        assert summary["trace"][0] == {"action": "init", "stack": [], "index": 0}

        log_lines = captured.err.strip().splitlines()
        assert log_lines
        for line in log_lines:
            assert "category" in json.loads(line)

    def test_json_output_on_approximation(self, capsys):
        assert main.main(["5", "--target", "9", "--bits", "8", "--json-output"]) == 1
        captured = capsys.readouterr()
        assert len(captured.out.strip().splitlines()) == 1
        assert json.loads(captured.out)["distance"] == 4

    def test_target_required(self):
        with pytest.raises(SystemExit):
            main.parse_args(["2", "3"])
