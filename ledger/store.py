"""
Ledger Store

The single authoritative store: an append-only list of campaigns indexed
by id, the sparse (campaign_id, recipient) claim table and the owner/oracle
singletons.

All mutations happen inside transaction(). A transaction holds the store
lock, journals an undo action for every write and, on any exception,
replays the journal backwards so no partial state is ever observable.
Events emitted during a transaction are published only after it commits.

Operations that move tokens call flush() after their writes and before the
transfer, so the file on disk never lags behind a payout or escrow that
has already happened. A transaction that fails after a flush rewrites the
file from the rolled-back state.

Transactions are re-entrant: a nested transaction() on the same thread
joins the outer one.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.crypto.addresses import normalize_address
from core.schemas.campaign import Campaign
from core.schemas.errors import NotFoundError
from core.schemas.events import LedgerEvent
from ledger.events import EventLog


logger = logging.getLogger(__name__)


# =============================================================================
# File helpers
# =============================================================================

def write_json_atomic(path: Path, payload: Any) -> None:
    """Write payload as JSON to path through a temp file and os.replace."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            json.dump(payload, f, indent=2, sort_keys=True)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


# =============================================================================
# Snapshot (persisted layout)
# =============================================================================

class ClaimRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    campaign_id: int
    recipient: str


class LedgerSnapshot(BaseModel):
    """JSON-serialisable image of the whole store."""

    model_config = ConfigDict(extra="forbid")

    owner: str
    oracle: Optional[str] = None
    campaigns: list[Campaign] = Field(default_factory=list)
    claims: list[ClaimRecord] = Field(default_factory=list)


# =============================================================================
# Store
# =============================================================================

class LedgerStore:
    """
    In-memory store with journaled transactions and optional file backing.

    If path is set, every committed transaction with unflushed writes is
    written to it before the transaction's events are published; a failed
    write rolls the transaction back.
    """

    def __init__(
        self,
        owner: str,
        *,
        oracle: Optional[str] = None,
        path: Optional[Path] = None,
        events: Optional[EventLog] = None,
    ) -> None:
        self.owner = normalize_address(owner)
        self._oracle = normalize_address(oracle) if oracle else None
        self._campaigns: list[Campaign] = []
        self._claims: set[tuple[int, str]] = set()
        self.path = Path(path) if path else None
        self.events = events or EventLog()

        self._lock = threading.RLock()
        self._journal: Optional[list[Callable[[], None]]] = None
        self._pending: list[LedgerEvent] = []
        self._depth = 0
        self._dirty = False
        self._flushed = False

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator["LedgerStore"]:
        with self._lock:
            if self._depth > 0:
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return

            self._journal = []
            self._pending = []
            self._depth = 1
            self._dirty = False
            self._flushed = False
            committed: list[LedgerEvent] = []
            try:
                yield self
                self.flush()
                committed = self._pending
            except BaseException:
                self._rollback()
                raise
            finally:
                self._journal = None
                self._pending = []
                self._depth = 0
                self._dirty = False
                self._flushed = False

            # Published outside the transaction so subscribers may call back in
            for event in committed:
                self.events.append(event)

    def _rollback(self) -> None:
        journal = self._journal or []
        for undo in reversed(journal):
            undo()
        if journal:
            logger.debug(f"Rolled back {len(journal)} store write(s)")
        if self._flushed and self.path is not None:
            try:
                self.save(self.path)
            except OSError:
                logger.exception(f"Could not restore {self.path} after rollback")

    def _record(self, undo: Callable[[], None]) -> None:
        if self._journal is None:
            raise RuntimeError("Store writes require an open transaction")
        self._journal.append(undo)
        self._dirty = True

    def flush(self) -> None:
        """
        Persist the writes made so far in the open transaction.

        No-op without a path or when nothing changed since the last flush.
        """
        if self._journal is None:
            raise RuntimeError("flush() requires an open transaction")
        if self.path is None or not self._dirty:
            return
        self.save(self.path)
        self._dirty = False
        self._flushed = True

    def emit(self, event: LedgerEvent) -> None:
        if self._journal is None:
            raise RuntimeError("Events can only be emitted inside a transaction")
        self._pending.append(event)

    # -------------------------------------------------------------------------
    # Campaigns
    # -------------------------------------------------------------------------

    @property
    def campaign_count(self) -> int:
        return len(self._campaigns)

    def next_campaign_id(self) -> int:
        return len(self._campaigns) + 1

    def get_campaign(self, campaign_id: int) -> Campaign:
        """
        Raises:
            NotFoundError: For 0, negative, non-integer or unallocated ids
        """
        if (
            isinstance(campaign_id, bool)
            or not isinstance(campaign_id, int)
            or not 1 <= campaign_id <= len(self._campaigns)
        ):
            raise NotFoundError(campaign_id=campaign_id if isinstance(campaign_id, int) else None)
        return self._campaigns[campaign_id - 1]

    def append_campaign(self, campaign: Campaign) -> None:
        if campaign.id != self.next_campaign_id():
            raise RuntimeError(
                f"Campaign ids are sequential: expected {self.next_campaign_id()}, got {campaign.id}"
            )
        self._campaigns.append(campaign)
        self._record(self._campaigns.pop)

    def replace_campaign(self, campaign: Campaign) -> None:
        index = self.get_campaign(campaign.id).id - 1
        previous = self._campaigns[index]
        self._campaigns[index] = campaign

        def undo() -> None:
            self._campaigns[index] = previous

        self._record(undo)

    # -------------------------------------------------------------------------
    # Claims
    # -------------------------------------------------------------------------

    def is_claimed(self, campaign_id: int, recipient: str) -> bool:
        return (campaign_id, normalize_address(recipient)) in self._claims

    def mark_claimed(self, campaign_id: int, recipient: str) -> None:
        key = (campaign_id, normalize_address(recipient))
        if key in self._claims:
            raise RuntimeError(f"Claim already recorded: {key}")
        self._claims.add(key)
        self._record(lambda: self._claims.discard(key))

    # -------------------------------------------------------------------------
    # Oracle singleton
    # -------------------------------------------------------------------------

    @property
    def oracle(self) -> Optional[str]:
        return self._oracle

    def set_oracle(self, oracle: str) -> None:
        previous = self._oracle
        self._oracle = normalize_address(oracle)

        def undo() -> None:
            self._oracle = previous

        self._record(undo)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def to_snapshot(self) -> LedgerSnapshot:
        with self._lock:
            return LedgerSnapshot(
                owner=self.owner,
                oracle=self._oracle,
                campaigns=[c.model_copy() for c in self._campaigns],
                claims=[
                    ClaimRecord(campaign_id=cid, recipient=recipient)
                    for cid, recipient in sorted(self._claims)
                ],
            )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: LedgerSnapshot,
        *,
        path: Optional[Path] = None,
        events: Optional[EventLog] = None,
    ) -> "LedgerStore":
        store = cls(snapshot.owner, oracle=snapshot.oracle, path=path, events=events)
        for expected_id, campaign in enumerate(snapshot.campaigns, start=1):
            if campaign.id != expected_id:
                raise ValueError(
                    f"Snapshot campaigns must be contiguous from 1; found id {campaign.id} "
                    f"at position {expected_id}"
                )
            store._campaigns.append(campaign)
        store._claims = {(c.campaign_id, normalize_address(c.recipient)) for c in snapshot.claims}
        return store

    def save(self, path: Path) -> None:
        """Write the snapshot atomically (temp file + rename)."""
        write_json_atomic(path, self.to_snapshot().model_dump(mode="json"))

    @classmethod
    def load(cls, path: Path, *, events: Optional[EventLog] = None) -> "LedgerStore":
        """Load a store previously written by save(); later commits go back to path."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Ledger state not found: {path}")
        with open(path) as f:
            snapshot = LedgerSnapshot.model_validate(json.load(f))
        logger.info(f"Loaded {len(snapshot.campaigns)} campaign(s) from {path}")
        return cls.from_snapshot(snapshot, path=path, events=events)
