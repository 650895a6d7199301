"""
latch/ledger/assets.py

Value-transfer ledger over the two assets of a market.

The engine holds funds in custody: deposits and bonds move in with
transfer_in() or pull(), payouts move out with transfer_out(). Solver
liquidity is pulled only up to what the solver approved.

Native-asset convention: when the asset being deposited is the ledger's
native asset, the payer may offer more than required; the excess is
returned immediately and reported back to the caller.
"""

from collections import defaultdict
from typing import Dict, Optional, Protocol, Tuple

from latch.core.exceptions import InsufficientBalance, InsufficientPayment, LedgerError
from latch.core.models import Asset

CUSTODY = "custody"


class AssetLedger(Protocol):
    def transfer_in(
        self, account: str, asset: Asset, amount: int, offered: Optional[int] = None
    ) -> int:
        """Move amount from account into custody. Returns refunded excess."""

    def transfer_out(self, account: str, asset: Asset, amount: int) -> None:
        """Move amount from custody to account."""

    def balance_of(self, account: str, asset: Asset) -> int:
        """Return the free balance of account."""

    def allowance(self, owner: str, asset: Asset) -> int:
        """Return how much custody may pull from owner."""

    def pull(self, owner: str, asset: Asset, amount: int) -> None:
        """Move approved funds from owner into custody."""


class InMemoryAssetLedger:
    """
    Dictionary-backed AssetLedger.

    Balances and allowances are plain integers keyed by (account, asset).
    Every method validates before mutating, so a raised error leaves no
    partial transfer.
    """

    def __init__(self, native_asset: Optional[Asset] = None) -> None:
        self.native_asset = native_asset
        self._balances:   Dict[Tuple[str, Asset], int] = defaultdict(int)
        self._allowances: Dict[Tuple[str, Asset], int] = defaultdict(int)

    # ── Funding ───────────────────────────────────────────────

    def mint(self, account: str, asset: Asset, amount: int) -> None:
        """Credit new units to account. Used to fund participants and solvers."""
        _check_amount(amount)
        self._balances[(account, asset)] += amount

    def approve(self, owner: str, asset: Asset, amount: int) -> None:
        """Set (not add to) the amount custody may pull from owner."""
        _check_amount(amount)
        self._allowances[(owner, asset)] = amount

    # ── AssetLedger ───────────────────────────────────────────

    def transfer_in(
        self, account: str, asset: Asset, amount: int, offered: Optional[int] = None
    ) -> int:
        _check_amount(amount)
        excess = 0
        if offered is not None:
            if asset != self.native_asset:
                raise LedgerError(
                    "Offered payment only applies to the native asset",
                    {"asset": asset.name},
                )
            if offered < amount:
                raise InsufficientPayment(required=amount, offered=offered)
            excess = offered - amount

        self._debit(account, asset, amount)
        self._balances[(CUSTODY, asset)] += amount
        return excess

    def transfer_out(self, account: str, asset: Asset, amount: int) -> None:
        _check_amount(amount)
        if amount == 0:
            return
        self._debit(CUSTODY, asset, amount)
        self._balances[(account, asset)] += amount

    def balance_of(self, account: str, asset: Asset) -> int:
        return self._balances.get((account, asset), 0)

    def allowance(self, owner: str, asset: Asset) -> int:
        return self._allowances.get((owner, asset), 0)

    def pull(self, owner: str, asset: Asset, amount: int) -> None:
        _check_amount(amount)
        if amount == 0:
            return
        approved = self.allowance(owner, asset)
        if approved < amount:
            raise InsufficientBalance(owner, asset, required=amount, available=approved)
        self._debit(owner, asset, amount)
        self._allowances[(owner, asset)] = approved - amount
        self._balances[(CUSTODY, asset)] += amount

    # ── Inspection ────────────────────────────────────────────

    def custody_balance(self, asset: Asset) -> int:
        return self.balance_of(CUSTODY, asset)

    def total_supply(self, asset: Asset) -> int:
        return sum(v for (_, a), v in self._balances.items() if a == asset)

    # ── Internal ──────────────────────────────────────────────

    def _debit(self, account: str, asset: Asset, amount: int) -> None:
        available = self._balances.get((account, asset), 0)
        if available < amount:
            raise InsufficientBalance(account, asset, required=amount, available=available)
        self._balances[(account, asset)] = available - amount


def _check_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise LedgerError("Amount must be a non-negative integer", {"amount": amount})
