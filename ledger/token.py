"""
Escrowed Token Interface

The ledger escrows a standard transferable-balance asset with allowances.
FungibleToken is the interface the ledger relies on; InMemoryToken is the
reference implementation used by tests, the API server and local runs.

Every transfer either applies fully or raises TransferError without
touching any balance or allowance.

An InMemoryToken opened with a path writes its balances and allowances to
that file after every change; a failed write undoes the change.
"""

from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Protocol, Union, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from core.crypto.addresses import normalize_address
from core.schemas.errors import TransferError, ValidationError
from ledger.store import write_json_atomic


logger = logging.getLogger(__name__)


@runtime_checkable
class FungibleToken(Protocol):
    """Minimal token surface used for escrow and payout."""

    address: str

    def balance_of(self, owner: str) -> int:
        ...

    def allowance(self, owner: str, spender: str) -> int:
        ...

    def approve(self, owner: str, spender: str, amount: int) -> None:
        ...

    def transfer(self, sender: str, to: str, amount: int) -> None:
        ...

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None:
        ...


class AllowanceRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    owner: str
    spender: str
    amount: int


class TokenState(BaseModel):
    """Persisted balances and allowances of one InMemoryToken."""

    model_config = ConfigDict(extra="forbid")

    address: str
    balances: dict[str, int] = Field(default_factory=dict)
    allowances: list[AllowanceRecord] = Field(default_factory=list)


class InMemoryToken:
    """
    Process-local token with balances and allowances.

    Usage:
        token = InMemoryToken("0x00...01", symbol="MTK")
        token.mint(brand, 5000)
        token.approve(brand, ledger.address, 1000)

        durable = InMemoryToken.open("0x00...01", "state/token.json")
    """

    def __init__(
        self,
        address: str,
        *,
        name: str = "MockToken",
        symbol: str = "MTK",
        path: Optional[Path] = None,
    ) -> None:
        self.address = normalize_address(address)
        self.name = name
        self.symbol = symbol
        self.path = Path(path) if path else None
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self._lock = threading.RLock()

    @classmethod
    def open(cls, address: str, path: Union[str, Path], **kwargs) -> "InMemoryToken":
        """Load balances from path if it exists, else start empty there."""
        token = cls(address, path=Path(path), **kwargs)
        if token.path.exists():
            with open(token.path) as f:
                state = TokenState.model_validate(json.load(f))
            if normalize_address(state.address) != token.address:
                raise ValueError(
                    f"{token.path} holds token {state.address}, not {token.address}"
                )
            token._balances = {
                normalize_address(holder): amount for holder, amount in state.balances.items()
            }
            token._allowances = {
                (normalize_address(a.owner), normalize_address(a.spender)): a.amount
                for a in state.allowances
            }
            logger.info(f"Loaded {len(token._balances)} balance(s) for {token.address} from {token.path}")
        return token

    def to_state(self) -> TokenState:
        with self._lock:
            return TokenState(
                address=self.address,
                balances=dict(sorted(self._balances.items())),
                allowances=[
                    AllowanceRecord(owner=owner, spender=spender, amount=amount)
                    for (owner, spender), amount in sorted(self._allowances.items())
                ],
            )

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        with self._lock:
            balances = dict(self._balances)
            allowances = dict(self._allowances)
            try:
                yield
                if self.path is not None:
                    write_json_atomic(self.path, self.to_state().model_dump(mode="json"))
            except BaseException:
                self._balances = balances
                self._allowances = allowances
                raise

    @property
    def total_supply(self) -> int:
        return sum(self._balances.values())

    def balance_of(self, owner: str) -> int:
        return self._balances.get(normalize_address(owner), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get(
            (normalize_address(owner), normalize_address(spender)), 0
        )

    def mint(self, to: str, amount: int) -> None:
        _check_amount(amount)
        with self._mutation():
            account = normalize_address(to)
            self._balances[account] = self._balances.get(account, 0) + amount

    def approve(self, owner: str, spender: str, amount: int) -> None:
        """Set (not add to) the allowance spender may draw from owner."""
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise ValidationError(f"Allowance must be a non-negative integer, got {amount!r}")
        with self._mutation():
            self._allowances[(normalize_address(owner), normalize_address(spender))] = amount

    def transfer(self, sender: str, to: str, amount: int) -> None:
        _check_amount(amount)
        with self._mutation():
            source = normalize_address(sender)
            target = normalize_address(to)
            balance = self._balances.get(source, 0)
            if balance < amount:
                raise TransferError(
                    "Transfer amount exceeds balance",
                    token=self.address,
                    details={"balance": balance, "amount": amount},
                )
            self._move(source, target, amount)

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None:
        _check_amount(amount)
        with self._mutation():
            source = normalize_address(owner)
            target = normalize_address(to)
            key = (source, normalize_address(spender))
            allowed = self._allowances.get(key, 0)
            if allowed < amount:
                raise TransferError(
                    "Insufficient allowance",
                    token=self.address,
                    details={"allowance": allowed, "amount": amount},
                )
            balance = self._balances.get(source, 0)
            if balance < amount:
                raise TransferError(
                    "Transfer amount exceeds balance",
                    token=self.address,
                    details={"balance": balance, "amount": amount},
                )
            self._allowances[key] = allowed - amount
            self._move(source, target, amount)

    def _move(self, source: str, target: str, amount: int) -> None:
        self._balances[source] = self._balances.get(source, 0) - amount
        self._balances[target] = self._balances.get(target, 0) + amount
        logger.debug(f"{self.symbol}: {amount} {source} -> {target}")


def _check_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise TransferError(f"Transfer amount must be a positive integer, got {amount!r}")


class TokenRegistry:
    """Resolves reward token addresses to token implementations."""

    def __init__(self, tokens: list[FungibleToken] | None = None) -> None:
        self._tokens: dict[str, FungibleToken] = {}
        for token in tokens or []:
            self.register(token)

    def register(self, token: FungibleToken) -> None:
        self._tokens[normalize_address(token.address)] = token

    def get(self, address: str) -> FungibleToken:
        """
        Raises:
            ValidationError: If no token is registered under address
        """
        try:
            key = normalize_address(address)
        except ValueError as e:
            raise ValidationError(str(e), field_path="reward_token") from e
        if key not in self._tokens:
            raise ValidationError(f"Unknown reward token: {key}", field_path="reward_token")
        return self._tokens[key]

    def __contains__(self, address: str) -> bool:
        try:
            return normalize_address(address) in self._tokens
        except ValueError:
            return False

    def addresses(self) -> list[str]:
        return sorted(self._tokens)
