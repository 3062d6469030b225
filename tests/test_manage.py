"""
Tests for the management CLI.
"""

import json
import logging

import pytest

from agriledger.core import LedgerService
from agriledger.schemas import Principal
from tools.manage import export_state, main, run_script, run_step


SCENARIO = [
    {"op": "create", "caller": "alice", "height": 1,
     "args": {"product": "Wheat", "volume": 500, "notes": "Field A", "labels": ["organic"]}},
    {"op": "modify", "caller": "bob", "height": 2,
     "args": {"record_index": 1, "product": "Wheat", "volume": 600,
              "notes": "Field A", "labels": ["organic"]}},
    {"op": "transfer-ownership", "caller": "alice", "height": 3,
     "args": {"record_index": 1, "new_producer": "bob"}},
    {"op": "append-labels", "caller": "bob", "height": 4,
     "args": {"record_index": 1, "new_labels": ["2024"]}},
    {"op": "verify-authenticity", "caller": "alice", "height": 9,
     "args": {"record_index": 1, "expected_producer": "bob"}},
]


@pytest.fixture(autouse=True)
def restore_root_logging():
    """main() reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def ledger():
    return LedgerService(system_owner=Principal("system-owner"))


class TestRunScript:
    """Replaying operation scripts."""

    def test_results_per_step(self, ledger):
        results = run_script(ledger, SCENARIO)

        assert results[0] == {"op": "create", "ok": True, "result": 1}
        assert results[1]["ok"] is False
        assert results[1]["kind"] == "OwnershipMismatch"
        assert results[2] == {"op": "transfer-ownership", "ok": True, "result": None}
        assert results[3]["result"] == ["organic", "2024"]
        assert results[4]["result"] == {
            "is_authentic": True,
            "current_height": 9,
            "ledger_age": 8,
            "producer_match": True,
        }

    def test_unknown_op(self, ledger):
        with pytest.raises(ValueError, match="Unknown op"):
            run_step(ledger, {"op": "grant-access", "caller": "a", "args": {}})

    def test_export_state(self, ledger):
        run_script(ledger, SCENARIO)
        state = export_state(ledger)
        assert state.last_record_index == 1
        assert [r.producer_address for r in state.records] == ["bob"]
        assert [(g.record_index, g.accessor) for g in state.grants] == [(1, "alice")]


class TestMain:
    """Command-line entry point."""

    def test_run_script_command(self, tmp_path, capsys, monkeypatch):
        monkeypatch.delenv("AGRILEDGER_STORE_DRIVER", raising=False)
        script = tmp_path / "script.json"
        script.write_text(json.dumps(SCENARIO))

        assert main(["run-script", str(script), "--dump"]) == 0

        out = capsys.readouterr().out
        first_line = out.splitlines()[0]
        assert json.loads(first_line) == {"op": "create", "ok": True, "result": 1}
        assert '"last_record_index": 1' in out

    def test_missing_script(self, tmp_path, capsys):
        assert main(["run-script", str(tmp_path / "nope.json")]) == 1

    def test_malformed_script(self, tmp_path, capsys):
        script = tmp_path / "bad.json"
        script.write_text(json.dumps([{"op": "create", "args": {}}]))
        assert main(["run-script", str(script)]) == 1
        assert "Malformed script" in capsys.readouterr().err

    def test_limits_command(self, capsys):
        assert main(["limits"]) == 0
        assert json.loads(capsys.readouterr().out)["max_labels"] == 10

    def test_health_check_command(self, capsys, monkeypatch):
        monkeypatch.delenv("AGRILEDGER_SYSTEM_OWNER", raising=False)
        monkeypatch.delenv("AGRILEDGER_STORE_DRIVER", raising=False)
        assert main(["health-check"]) == 0
        assert "[OK]" in capsys.readouterr().out

    def test_no_command(self, capsys):
        assert main([]) == 1

    def test_bad_configuration_fails_before_any_command(self, capsys, monkeypatch):
        monkeypatch.setenv("AGRILEDGER_SYSTEM_OWNER", "  ")
        assert main(["limits"]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Configuration error" in captured.err

    def test_log_settings_come_from_config(self, monkeypatch):
        monkeypatch.setenv("AGRILEDGER_LOG_LEVEL", "ERROR")
        monkeypatch.delenv("AGRILEDGER_SYSTEM_OWNER", raising=False)
        monkeypatch.delenv("AGRILEDGER_STORE_DRIVER", raising=False)
        assert main(["limits"]) == 0
        assert logging.getLogger().level == logging.ERROR
