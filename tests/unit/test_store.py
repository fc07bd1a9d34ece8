"""
Ledger Store Unit Tests
Tests for ledger/store.py and ledger/events.py

Tests:
- journaled rollback on exception
- nested transactions join the outer one
- events published only after commit
- subscribers may call back into the ledger
- snapshot save/load round trip through RewardLedger.open
- a failed write before a token movement leaves nothing paid or escrowed
- InMemoryToken balances persist and a failed write undoes the change
- concurrent claims serialise (only one succeeds)
"""
import json
import threading

import pytest

from core.schemas.campaign import Campaign
from core.schemas.errors import NotFoundError, StateError, TransferError
from core.schemas.events import CampaignClosed
from ledger.service import RewardLedger
from ledger.store import LedgerSnapshot, LedgerStore
from ledger.token import InMemoryToken, TokenRegistry, TokenState

from fixtures.common import (
    ALICE,
    BRAND,
    BRAND_FUNDS,
    CUSTODY,
    ORACLE,
    OWNER,
    STRANGER,
    TOKEN_ADDRESS,
    create_funded_campaign,
    proof_hex,
)


def _campaign(campaign_id: int = 1) -> Campaign:
    return Campaign(
        id=campaign_id,
        brand=BRAND,
        reward_token=TOKEN_ADDRESS,
        budget=100,
        end_time=2_000_000_000,
    )


class TestTransactions:
    def test_rollback_on_exception(self):
        store = LedgerStore(OWNER)

        with pytest.raises(RuntimeError, match="boom"):
            with store.transaction() as tx:
                tx.append_campaign(_campaign())
                tx.mark_claimed(1, ALICE)
                tx.set_oracle(ORACLE)
                raise RuntimeError("boom")

        assert store.campaign_count == 0
        assert not store.is_claimed(1, ALICE)
        assert store.oracle is None

    def test_replace_rolled_back(self):
        store = LedgerStore(OWNER)
        with store.transaction() as tx:
            tx.append_campaign(_campaign())

        with pytest.raises(ValueError):
            with store.transaction() as tx:
                tx.replace_campaign(_campaign().model_copy(update={"is_active": False}))
                raise ValueError("abort")

        assert store.get_campaign(1).is_active is True

    def test_nested_transaction_joins_outer(self):
        store = LedgerStore(OWNER)

        with pytest.raises(RuntimeError):
            with store.transaction():
                with store.transaction() as inner:
                    inner.append_campaign(_campaign())
                raise RuntimeError("outer fails")

        assert store.campaign_count == 0

    def test_writes_require_transaction(self):
        store = LedgerStore(OWNER)
        with pytest.raises(RuntimeError, match="open transaction"):
            store.append_campaign(_campaign())

    def test_ids_must_be_sequential(self):
        store = LedgerStore(OWNER)
        with pytest.raises(RuntimeError, match="sequential"):
            with store.transaction() as tx:
                tx.append_campaign(_campaign(2))

    def test_events_published_after_commit(self):
        store = LedgerStore(OWNER)
        seen_during = []

        with store.transaction() as tx:
            tx.append_campaign(_campaign())
            tx.emit(CampaignClosed(campaign_id=1, brand=BRAND, timestamp=1))
            seen_during.append(len(store.events))

        assert seen_during == [0]
        assert len(store.events) == 1

    def test_events_discarded_on_rollback(self):
        store = LedgerStore(OWNER)
        with pytest.raises(RuntimeError):
            with store.transaction() as tx:
                tx.emit(CampaignClosed(campaign_id=1, brand=BRAND, timestamp=1))
                raise RuntimeError("abort")
        assert len(store.events) == 0


class TestEventLog:
    def test_subscriber_can_call_back_into_ledger(self, ledger, token):
        closed = []

        def close_on_create(record):
            if record.payload.event == "CampaignCreated":
                ledger.close_campaign(BRAND, record.payload.campaign_id)
                closed.append(record.payload.campaign_id)

        ledger.events.subscribe(close_on_create)
        campaign_id = create_funded_campaign(ledger, token)

        assert closed == [campaign_id]
        assert ledger.get_campaign_struct(campaign_id).is_active is False

    def test_failing_subscriber_does_not_undo_commit(self, ledger, token):
        def explode(record):
            raise RuntimeError("subscriber bug")

        ledger.events.subscribe(explode)
        campaign_id = create_funded_campaign(ledger, token)

        assert ledger.campaign_count() == campaign_id

    def test_records_are_sequenced(self, ledger, token, campaign_id):
        ledger.close_campaign(BRAND, campaign_id)

        records = ledger.events.records()
        assert [r.sequence for r in records] == [0, 1]
        assert [r.payload.event for r in records] == ["CampaignCreated", "CampaignClosed"]


class TestPersistence:
    def test_save_and_reopen(self, tmp_path, clock, token, reward_tree):
        path = tmp_path / "state" / "ledger.json"
        ledger = RewardLedger.open(
            OWNER, path, tokens=TokenRegistry([token]), clock=clock, address=CUSTODY
        )
        ledger.set_oracle(OWNER, ORACLE)
        campaign_id = create_funded_campaign(ledger, token)
        ledger.publish_results(ORACLE, campaign_id, reward_tree.root_hex, reward_tree.total)
        ledger.claim_reward(ALICE, campaign_id, 100, proof_hex(reward_tree, ALICE))

        assert path.exists()
        snapshot = LedgerSnapshot.model_validate(json.loads(path.read_text()))
        assert snapshot.oracle == ORACLE
        assert len(snapshot.campaigns) == 1

        reopened = RewardLedger.open(
            OWNER, path, tokens=TokenRegistry([token]), clock=clock, address=CUSTODY
        )
        assert reopened.oracle() == ORACLE
        assert reopened.campaign_count() == 1
        assert reopened.get_campaign_struct(campaign_id).merkle_root == reward_tree.root_hex
        assert reopened.has_claimed(campaign_id, ALICE) is True
        with pytest.raises(StateError):
            reopened.claim_reward(ALICE, campaign_id, 100, proof_hex(reward_tree, ALICE))

    def test_failed_transaction_not_persisted(self, tmp_path, clock, token):
        path = tmp_path / "ledger.json"
        ledger = RewardLedger.open(
            OWNER, path, tokens=TokenRegistry([token]), clock=clock, address=CUSTODY
        )
        ledger.set_oracle(OWNER, ORACLE)

        with pytest.raises(NotFoundError):
            ledger.close_campaign(BRAND, 1)

        snapshot = json.loads(path.read_text())
        assert snapshot["campaigns"] == []

    def test_non_contiguous_snapshot_rejected(self):
        snapshot = LedgerSnapshot(owner=OWNER, campaigns=[_campaign(2)])
        with pytest.raises(ValueError, match="contiguous"):
            LedgerStore.from_snapshot(snapshot)

    def test_owner_mismatch_rejected(self):
        store = LedgerStore(OWNER)
        with pytest.raises(ValueError, match="belongs to owner"):
            RewardLedger(ALICE, store=store)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            LedgerStore.load(tmp_path / "missing.json")


def _fail_next_save(monkeypatch, store):
    """Make the store's next save() raise OSError; later saves go through."""
    original = store.save
    failures = []

    def save(path):
        if not failures:
            failures.append(path)
            raise OSError("disk full")
        original(path)

    monkeypatch.setattr(store, "save", save)
    return failures


class TestWriteBeforeTransfer:
    @pytest.fixture
    def persisted(self, tmp_path, clock, token):
        path = tmp_path / "ledger.json"
        ledger = RewardLedger.open(
            OWNER, path, tokens=TokenRegistry([token]), clock=clock, address=CUSTODY
        )
        ledger.set_oracle(OWNER, ORACLE)
        return ledger, path

    def test_failed_save_on_claim_pays_nothing(self, persisted, token, reward_tree, monkeypatch):
        ledger, _ = persisted
        campaign_id = create_funded_campaign(ledger, token)
        ledger.publish_results(ORACLE, campaign_id, reward_tree.root_hex, reward_tree.total)
        failures = _fail_next_save(monkeypatch, ledger.store)

        with pytest.raises(OSError, match="disk full"):
            ledger.claim_reward(ALICE, campaign_id, 100, proof_hex(reward_tree, ALICE))

        assert failures
        assert token.balance_of(ALICE) == 0
        assert token.balance_of(CUSTODY) == 1000
        assert ledger.has_claimed(campaign_id, ALICE) is False

        ledger.claim_reward(ALICE, campaign_id, 100, proof_hex(reward_tree, ALICE))
        with pytest.raises(StateError):
            ledger.claim_reward(ALICE, campaign_id, 100, proof_hex(reward_tree, ALICE))
        assert token.balance_of(ALICE) == 100

    def test_failed_save_on_create_escrows_nothing(self, persisted, token, monkeypatch):
        ledger, path = persisted
        _fail_next_save(monkeypatch, ledger.store)

        with pytest.raises(OSError):
            create_funded_campaign(ledger, token)

        assert ledger.campaign_count() == 0
        assert token.balance_of(BRAND) == BRAND_FUNDS
        assert token.balance_of(CUSTODY) == 0
        assert token.allowance(BRAND, CUSTODY) == 1000
        assert json.loads(path.read_text())["campaigns"] == []

    def test_failed_payout_restores_file(self, persisted, token, reward_tree):
        ledger, path = persisted
        campaign_id = create_funded_campaign(ledger, token)
        ledger.publish_results(ORACLE, campaign_id, reward_tree.root_hex, reward_tree.total)
        token.transfer(CUSTODY, STRANGER, token.balance_of(CUSTODY))

        with pytest.raises(TransferError):
            ledger.claim_reward(ALICE, campaign_id, 100, proof_hex(reward_tree, ALICE))

        assert json.loads(path.read_text())["claims"] == []
        assert LedgerStore.load(path).is_claimed(campaign_id, ALICE) is False


class TestTokenPersistence:
    def test_open_restores_balances_and_allowances(self, tmp_path):
        path = tmp_path / "token.json"
        token = InMemoryToken.open(TOKEN_ADDRESS, path)
        token.mint(BRAND, 500)
        token.approve(BRAND, CUSTODY, 200)
        token.transfer_from(CUSTODY, BRAND, CUSTODY, 120)

        reopened = InMemoryToken.open(TOKEN_ADDRESS, path)
        assert reopened.balance_of(BRAND) == 380
        assert reopened.balance_of(CUSTODY) == 120
        assert reopened.allowance(BRAND, CUSTODY) == 80

        state = TokenState.model_validate(json.loads(path.read_text()))
        assert state.address == TOKEN_ADDRESS

    def test_failed_write_undoes_transfer(self, tmp_path, monkeypatch):
        token = InMemoryToken.open(TOKEN_ADDRESS, tmp_path / "token.json")
        token.mint(BRAND, 500)

        def fail(path, payload):
            raise OSError("read-only file system")

        monkeypatch.setattr("ledger.token.write_json_atomic", fail)
        with pytest.raises(OSError):
            token.transfer(BRAND, ALICE, 100)

        assert token.balance_of(BRAND) == 500
        assert token.balance_of(ALICE) == 0

    def test_other_token_file_rejected(self, tmp_path):
        path = tmp_path / "token.json"
        InMemoryToken.open(TOKEN_ADDRESS, path).mint(BRAND, 1)
        with pytest.raises(ValueError, match="holds token"):
            InMemoryToken.open(STRANGER, path)


class TestConcurrency:
    def test_only_one_concurrent_claim_succeeds(self, ledger, token, campaign_id, reward_tree):
        ledger.publish_results(ORACLE, campaign_id, reward_tree.root_hex, reward_tree.total)
        proof = proof_hex(reward_tree, ALICE)
        outcomes = []
        barrier = threading.Barrier(8)

        def claim():
            barrier.wait()
            try:
                ledger.claim_reward(ALICE, campaign_id, 100, proof)
                outcomes.append("ok")
            except StateError:
                outcomes.append("already")

        threads = [threading.Thread(target=claim) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count("ok") == 1
        assert outcomes.count("already") == 7
        assert token.balance_of(ALICE) == 100
