"""
tests/test_assets.py

InMemoryAssetLedger: custody transfers, allowance pulls and the
native-asset overpayment refund.
"""

import pytest

from latch.core.exceptions import InsufficientBalance, InsufficientPayment, LedgerError
from latch.core.models import Asset
from latch.ledger.assets import InMemoryAssetLedger

from support import ALICE, E18, SOLVER


@pytest.fixture
def ledger():
    assets = InMemoryAssetLedger(native_asset=Asset.B)
    assets.mint(ALICE, Asset.B, 10 * E18)
    return assets


class TestCustody:

    def test_round_trip(self, ledger):
        ledger.transfer_in(ALICE, Asset.B, 4 * E18)
        assert ledger.custody_balance(Asset.B) == 4 * E18
        ledger.transfer_out(ALICE, Asset.B, 4 * E18)
        assert ledger.balance_of(ALICE, Asset.B) == 10 * E18
        assert ledger.total_supply(Asset.B) == 10 * E18

    def test_overdraw_leaves_balances(self, ledger):
        with pytest.raises(InsufficientBalance):
            ledger.transfer_in(ALICE, Asset.B, 11 * E18)
        assert ledger.balance_of(ALICE, Asset.B) == 10 * E18

    def test_custody_cannot_go_negative(self, ledger):
        with pytest.raises(InsufficientBalance):
            ledger.transfer_out(ALICE, Asset.B, 1)

    @pytest.mark.parametrize("amount", [-1, 1.0, True])
    def test_amount_validation(self, ledger, amount):
        with pytest.raises(LedgerError):
            ledger.transfer_in(ALICE, Asset.B, amount)


class TestNativePayment:

    def test_excess_returned(self, ledger):
        assert ledger.transfer_in(ALICE, Asset.B, 3 * E18, offered=5 * E18) == 2 * E18
        assert ledger.balance_of(ALICE, Asset.B) == 7 * E18

    def test_underpayment(self, ledger):
        with pytest.raises(InsufficientPayment):
            ledger.transfer_in(ALICE, Asset.B, 3 * E18, offered=2 * E18)

    def test_offered_only_for_native_asset(self, ledger):
        ledger.mint(ALICE, Asset.A, E18)
        with pytest.raises(LedgerError):
            ledger.transfer_in(ALICE, Asset.A, E18, offered=E18)


class TestPull:

    def test_allowance_consumed(self, ledger):
        ledger.mint(SOLVER, Asset.A, 5 * E18)
        ledger.approve(SOLVER, Asset.A, 3 * E18)
        ledger.pull(SOLVER, Asset.A, 2 * E18)
        assert ledger.allowance(SOLVER, Asset.A) == E18
        with pytest.raises(InsufficientBalance):
            ledger.pull(SOLVER, Asset.A, 2 * E18)
