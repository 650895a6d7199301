"""
tests/test_event_log.py

Signed, hash-chained market event log: envelope construction and
verification, JSONL persistence and resume, replay with tamper
detection, and round reconstruction from a live market.
"""

import json

import pytest

from latch.core.canonical import canonicalize, wire_value
from latch.core.crypto import Ed25519KeyManager
from latch.core.exceptions import EventLogError
from latch.ledger.events import GENESIS_HASH, EventEnvelope, MarketEventLog, RecordType
from latch.ledger.replay import EventLogReplay
from latch.market.market import AuctionMarket, MarketModules

from support import ADMIN, ALICE, BOB, E18, SOLVER, TREASURY, AuctionDriver, make_order


def read_lines(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def write_lines(path, records):
    path.write_text("".join(json.dumps(r) + "\n" for r in records), encoding="utf-8")


@pytest.fixture
def log(key, tmp_path):
    return MarketEventLog(key, tmp_path / "market.jsonl")


@pytest.fixture
def filled_log(log):
    log.emit(RecordType.POOL_CONFIGURED, "eth-usdc", 0, 100, {"fee_rate": 30})
    log.emit(RecordType.ROUND_STARTED, "eth-usdc", 1, 100, {"round_id": 1})
    log.emit(RecordType.COMMITTED, "eth-usdc", 1, 101, {"participant": ALICE, "deposit": 10 * E18})
    log.emit(RecordType.COMMITTED, "eth-usdc", 1, 102, {"participant": BOB, "deposit": 10 * E18})
    return log


def replay_of(path):
    replay = EventLogReplay()
    replay.load(path)
    return replay


class TestWireValue:

    def test_conversions(self):
        assert wire_value({"a": 2 ** 200, "b": True, "c": b"\x01\xff", "d": [1, None]}) == {
            "a": str(2 ** 200), "b": True, "c": "0x01ff", "d": ["1", None],
        }

    def test_canonical_form_ignores_key_order(self):
        assert canonicalize({"b": "1", "a": "2"}) == canonicalize({"a": "2", "b": "1"})


class TestKeyManager:

    def test_sign_and_verify(self, key):
        sig = key.sign(b"payload")
        assert "=" not in sig
        assert Ed25519KeyManager.verify_detached(b"payload", sig, key.public_key_hex)
        assert not Ed25519KeyManager.verify_detached(b"other", sig, key.public_key_hex)
        assert not Ed25519KeyManager.verify_detached(b"payload", "!!", key.public_key_hex)
        assert not Ed25519KeyManager.verify_detached(b"payload", sig, "00" * 31)

    def test_save_and_load(self, key, tmp_path):
        path = tmp_path / "keys" / "signer.pem"
        key.save(path)
        assert Ed25519KeyManager.from_file(path).public_key_hex == key.public_key_hex

    def test_seed_length(self):
        with pytest.raises(ValueError):
            Ed25519KeyManager.from_private_bytes(b"\x00" * 31)
        seeded = Ed25519KeyManager.from_private_bytes(b"\x07" * 32)
        assert seeded.public_key_hex == Ed25519KeyManager.from_private_bytes(b"\x07" * 32).public_key_hex


class TestEventEnvelope:

    def test_create_sign_verify(self, key):
        env = EventEnvelope.create(
            RecordType.ROUND_STARTED, "eth-usdc", 1, 100, key.public_key_hex, 0, {"bond": 0}
        ).sign(key)
        assert env.causal_hash == GENESIS_HASH
        assert env.payload == {"bond": "0"}
        assert env.validate_schema()
        assert env.verify_signature()

    def test_tampered_payload_breaks_signature(self, key):
        env = EventEnvelope.create(
            RecordType.CLAIMED, "eth-usdc", 1, 100, key.public_key_hex, 0, {"amount_b": 5}
        ).sign(key)
        env.payload["amount_b"] = "6"
        assert not env.verify_signature()

    def test_chain_links_to_previous(self, key):
        first = EventEnvelope.create(
            RecordType.ROUND_STARTED, "m", 1, 1, key.public_key_hex, 0, {}
        ).sign(key)
        second = EventEnvelope.create(
            RecordType.FINALIZED, "m", 1, 2, key.public_key_hex, 1, {}, prev=first
        )
        assert second.verify_chain(first)
        assert not second.verify_chain(None)

    def test_unknown_record_type(self, key):
        with pytest.raises(ValueError):
            EventEnvelope.create("order_placed", "m", 1, 1, key.public_key_hex, 0, {})

    def test_schema_errors_collected(self, key):
        env = EventEnvelope.create(RecordType.FINALIZED, "m", 1, 1, key.public_key_hex, 0, {})
        env.nonce = "xyz"
        env.round_id = -1
        result = env.validate_schema()
        assert not result
        assert len(result.errors) == 2


class TestMarketEventLog:

    def test_entries_are_chained(self, filled_log):
        records = read_lines(filled_log.path)
        assert [r["sequence"] for r in records] == [0, 1, 2, 3]
        assert records[0]["causal_hash"] == GENESIS_HASH
        assert records[2]["payload"]["deposit"] == str(10 * E18)
        assert filled_log.next_sequence == 4

    def test_resume_continues_chain(self, filled_log, key):
        resumed = MarketEventLog(key, filled_log.path)
        assert resumed.next_sequence == 4
        resumed.emit(RecordType.FINALIZED, "eth-usdc", 1, 200, {})
        summary = replay_of(filled_log.path).verify()
        assert summary.chain_valid
        assert summary.total_entries == 5

    def test_corrupt_tail_refuses_resume(self, filled_log, key):
        with open(filled_log.path, "a", encoding="utf-8") as f:
            f.write('{"sequence": 4, "trunc\n')
        with pytest.raises(EventLogError):
            MarketEventLog(key, filled_log.path)

    def test_unknown_type_not_written(self, filled_log):
        with pytest.raises(ValueError):
            filled_log.emit("bogus", "eth-usdc", 1, 1, {})
        assert filled_log.next_sequence == 4
        assert len(read_lines(filled_log.path)) == 4


class TestReplay:

    def test_clean_log(self, filled_log, key):
        summary = replay_of(filled_log.path).verify()
        assert summary.chain_valid
        assert summary.valid_signatures == 4
        assert summary.record_type_counts == {
            RecordType.POOL_CONFIGURED: 1,
            RecordType.ROUND_STARTED:   1,
            RecordType.COMMITTED:       2,
        }
        assert summary.markets_seen == ["eth-usdc"]
        assert summary.signers_seen == [key.public_key_hex]

    def test_edited_payload(self, filled_log):
        records = read_lines(filled_log.path)
        records[2]["payload"]["deposit"] = "1"
        write_lines(filled_log.path, records)

        summary = replay_of(filled_log.path).verify()
        kinds = {(v.at_sequence, v.violation_type) for v in summary.violations}
        assert (2, "invalid_signature") in kinds
        assert (3, "chain_break") in kinds
        assert not summary.chain_valid

    def test_deleted_entry(self, filled_log):
        records = read_lines(filled_log.path)
        del records[1]
        write_lines(filled_log.path, records)

        kinds = {v.violation_type for v in replay_of(filled_log.path).verify().violations}
        assert kinds == {"sequence_gap", "chain_break"}

    def test_duplicate_nonce(self, filled_log):
        records = read_lines(filled_log.path)
        records[3]["nonce"] = records[1]["nonce"]
        write_lines(filled_log.path, records)

        violations = replay_of(filled_log.path).verify().violations
        assert any(v.violation_type == "duplicate_nonce" and v.at_sequence == 3 for v in violations)

    def test_missing_field_is_load_error(self, filled_log):
        records = read_lines(filled_log.path)
        del records[0]["nonce"]
        write_lines(filled_log.path, records)
        with pytest.raises(EventLogError):
            replay_of(filled_log.path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            replay_of(tmp_path / "absent.jsonl")

    def test_export(self, filled_log, tmp_path):
        replay = replay_of(filled_log.path)
        out = tmp_path / "reports" / "replay.json"
        replay.export_json(out)
        report = json.loads(out.read_text(encoding="utf-8"))["latch_replay_report"]
        assert report["chain_valid"] is True
        assert report["total_entries"] == 4


class TestMarketOnEventLog:

    @pytest.fixture
    def logged_market(self, key, tmp_path, settings, pool, verifier, assets, ticker):
        log = MarketEventLog(key, tmp_path / "eth-usdc.jsonl")
        m = AuctionMarket(
            market_id=         "eth-usdc",
            admin=             ADMIN,
            penalty_recipient= TREASURY,
            verifier=          verifier,
            assets=            assets,
            ticks=             ticker,
            settings=          settings,
            modules=           MarketModules.full(settings, TREASURY),
            events=            log,
        )
        m.configure_pool(ADMIN, pool)
        m.register_solver(ADMIN, SOLVER, primary=True)
        return m, log

    def test_round_reconstructed(self, logged_market, ticker, prover):
        market, log = logged_market
        driver = AuctionDriver(market, ticker, prover)
        driver.start()
        driver.run_orders([make_order(ALICE, 10 * E18, E18, True), make_order(BOB, 10 * E18, E18, False)])
        driver.settle(SOLVER, driver.claims(E18, [10 * E18, 10 * E18]))
        market.claim(ALICE, 1)
        driver.to_claim_end()
        market.finalize(1)

        replay = replay_of(log.path)
        assert replay.verify().chain_valid

        [report] = replay.rounds(market_id="eth-usdc")
        assert (report.commits, report.reveals, report.claims) == (2, 2, 1)
        assert report.settled and report.finalized
        assert report.status == "finalized"
        assert report.clearing_price == str(E18)
        assert report.solver == SOLVER
        assert replay.rounds(market_id="btc-usdc") == []
