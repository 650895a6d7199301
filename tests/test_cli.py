"""
tests/test_cli.py

latch verify, latch rounds and latch check-config through Click's test
runner: output formats, filters and exit codes.
"""

import json

import pytest
from click.testing import CliRunner

from latch.cli import cli
from latch.ledger.events import MarketEventLog, RecordType

from test_config import VALID_YAML


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def log_path(key, tmp_path):
    """Two markets; eth-usdc has a settled round 1 and an open round 2."""
    log = MarketEventLog(key, tmp_path / "markets.jsonl")
    log.emit(RecordType.ROUND_STARTED, "eth-usdc", 1, 100, {"round_id": 1})
    log.emit(RecordType.COMMITTED, "eth-usdc", 1, 101, {"participant": "0x" + "a1" * 20})
    log.emit(RecordType.ROUND_STARTED, "btc-usdc", 1, 101, {"round_id": 1})
    log.emit(RecordType.SETTLED, "eth-usdc", 1, 120, {"clearing_price": 10 ** 18, "solver": "0x" + "5a" * 20})
    log.emit(RecordType.ROUND_STARTED, "eth-usdc", 2, 200, {"round_id": 2})
    log.emit(RecordType.COMMITTED, "eth-usdc", 2, 201, {"participant": "0x" + "b0" * 20})
    return log.path


def tamper(path, index, field, value):
    records = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    records[index]["payload"][field] = value
    path.write_text("".join(json.dumps(r) + "\n" for r in records), encoding="utf-8")


class TestVerify:

    def test_valid_human(self, runner, log_path):
        result = runner.invoke(cli, ["verify", str(log_path), "--no-color"])
        assert result.exit_code == 0
        assert "VERDICT: VALID" in result.output
        assert "btc-usdc, eth-usdc" in result.output

    def test_valid_json(self, runner, log_path):
        result = runner.invoke(cli, ["verify", str(log_path), "--format", "json"])
        assert result.exit_code == 0
        out = json.loads(result.output)["latch_verify"]
        assert out["valid"] is True
        assert out["total_entries"] == 6
        assert out["entries_in_scope"] == 6
        assert out["record_type_counts"][RecordType.COMMITTED] == 2
        assert len(out["head_hash"]) == 64

    def test_compact(self, runner, log_path):
        result = runner.invoke(cli, ["verify", str(log_path), "--format", "compact"])
        assert result.exit_code == 0
        assert result.output.startswith("VALID ")
        assert "entries=6 violations=0" in result.output

    def test_tampered_log(self, runner, log_path):
        tamper(log_path, 3, "clearing_price", "1")
        result = runner.invoke(cli, ["verify", str(log_path), "--format", "json"])
        assert result.exit_code == 1
        kinds = {v["violation_type"] for v in json.loads(result.output)["latch_verify"]["violations"]}
        assert kinds == {"invalid_signature", "chain_break"}

    def test_filter_narrows_reported_violations(self, runner, log_path):
        tamper(log_path, 3, "clearing_price", "1")
        # The edited entry belongs to round 1 and its chain break lands on round 2.
        r1 = runner.invoke(cli, ["verify", str(log_path), "--market", "eth-usdc", "--round", "1", "--quiet"])
        btc = runner.invoke(cli, ["verify", str(log_path), "--market", "btc-usdc", "--quiet"])
        assert r1.exit_code == 1
        assert btc.exit_code == 0

    def test_filter_scope_in_json(self, runner, log_path):
        result = runner.invoke(cli, ["verify", str(log_path), "--market", "eth-usdc", "--round", "2",
                                     "--format", "json"])
        out = json.loads(result.output)["latch_verify"]
        assert out["scope"] == "market=eth-usdc  round=2"
        assert out["entries_in_scope"] == 2
        assert out["total_entries"] == 6

    def test_quiet(self, runner, log_path):
        result = runner.invoke(cli, ["verify", str(log_path), "--quiet"])
        assert result.exit_code == 0
        assert result.output == ""

    def test_export(self, runner, log_path, tmp_path):
        report = tmp_path / "out" / "report.json"
        result = runner.invoke(cli, ["verify", str(log_path), "--export", str(report), "--quiet"])
        assert result.exit_code == 0
        assert json.loads(report.read_text(encoding="utf-8"))["latch_replay_report"]["total_entries"] == 6

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["verify", str(tmp_path / "absent.jsonl"), "--format", "json"])
        assert result.exit_code == 2
        assert json.loads(result.output)["latch_verify"]["valid"] is False

    def test_malformed_log(self, runner, tmp_path):
        path = tmp_path / "bad.jsonl"
        path.write_text("not json\n", encoding="utf-8")
        result = runner.invoke(cli, ["verify", str(path), "--quiet"])
        assert result.exit_code == 2

    def test_round_must_be_positive(self, runner, log_path):
        result = runner.invoke(cli, ["verify", str(log_path), "--round", "0"])
        assert result.exit_code == 2


class TestRounds:

    def test_json(self, runner, log_path):
        result = runner.invoke(cli, ["rounds", str(log_path), "--format", "json"])
        assert result.exit_code == 0
        reports = json.loads(result.output)["latch_rounds"]
        assert [(r["market_id"], r["round_id"], r["status"]) for r in reports] == [
            ("btc-usdc", 1, "open"),
            ("eth-usdc", 1, "settled"),
            ("eth-usdc", 2, "open"),
        ]
        assert reports[1]["clearing_price"] == str(10 ** 18)

    def test_market_filter(self, runner, log_path):
        result = runner.invoke(cli, ["rounds", str(log_path), "--market", "btc-usdc", "--no-color"])
        assert result.exit_code == 0
        assert "btc-usdc" in result.output
        assert "eth-usdc" not in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["rounds", str(tmp_path / "absent.jsonl")])
        assert result.exit_code == 2


class TestCheckConfig:

    def test_valid(self, runner, tmp_path):
        path = tmp_path / "market.yaml"
        path.write_text(VALID_YAML, encoding="utf-8")
        result = runner.invoke(cli, ["check-config", str(path), "--format", "json"])
        assert result.exit_code == 0
        out = json.loads(result.output)["latch_config"]
        assert out["valid"] is True
        assert out["settings"]["primary_window"] == 5
        assert out["pool"]["mode"] == "OPEN"

    def test_valid_human(self, runner, tmp_path):
        path = tmp_path / "market.yaml"
        path.write_text(VALID_YAML, encoding="utf-8")
        result = runner.invoke(cli, ["check-config", str(path), "--no-color"])
        assert result.exit_code == 0
        assert "is valid" in result.output
        assert "emergency_timeout" in result.output

    def test_invalid(self, runner, tmp_path):
        path = tmp_path / "market.yaml"
        path.write_text(VALID_YAML.replace("fee_rate: 30", "fee_rate: 5000"), encoding="utf-8")
        result = runner.invoke(cli, ["check-config", str(path), "--format", "json"])
        assert result.exit_code == 1
        assert "Fee rate out of range" in json.loads(result.output)["latch_config"]["error"]

    def test_missing(self, runner, tmp_path):
        result = runner.invoke(cli, ["check-config", str(tmp_path / "absent.yaml")])
        assert result.exit_code == 2


class TestRootGroup:

    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("verify", "rounds", "check-config"):
            assert name in result.output
