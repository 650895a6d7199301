"""
latch/solvers/rewards.py

Reward Ledger

Splits each settlement's protocol fee (asset B) between the settling
solver and the treasury:

    reward   = fee × solver_fee_share / FEE_DENOMINATOR
             + fee × speed_bonus_share / FEE_DENOMINATOR   if elapsed < speed_bonus_window
    reward   = min(reward, fee)
    treasury = fee − reward

Accrued rewards leave through a timelocked withdrawal:

    request_withdrawal  pending → PendingWithdrawal(unlock = tick + withdrawal_delay)
    execute_withdrawal  after unlock, returns the amount to transfer
    cancel_withdrawal   amount goes back to pending
"""

import logging
from collections import defaultdict
from dataclasses import replace
from typing import Dict, Optional, Tuple

from latch.core.config import EngineSettings
from latch.core.exceptions import (
    NoPendingWithdrawal,
    NothingToWithdraw,
    WithdrawalAlreadyPending,
    WithdrawalLocked,
)
from latch.core.models import FEE_DENOMINATOR, PendingWithdrawal, WithdrawalStatus

logger = logging.getLogger(__name__)


class RewardLedger:

    def __init__(self, settings: EngineSettings, treasury: str) -> None:
        self.solver_fee_share   = settings.solver_fee_share
        self.speed_bonus_share  = settings.speed_bonus_share
        self.speed_bonus_window = settings.speed_bonus_window
        self.withdrawal_delay   = settings.withdrawal_delay
        self.treasury           = treasury

        self._pending:     Dict[str, int]               = defaultdict(int)
        self._withdrawals: Dict[str, PendingWithdrawal] = {}
        self.total_accrued = 0

    # ── Accrual ───────────────────────────────────────────────

    def split(self, fee: int, elapsed: int) -> Tuple[int, int]:
        """(solver_reward, treasury_share) for a fee settled elapsed ticks into SETTLE."""
        reward = fee * self.solver_fee_share // FEE_DENOMINATOR
        if elapsed < self.speed_bonus_window:
            reward += fee * self.speed_bonus_share // FEE_DENOMINATOR
        reward = min(reward, fee)
        return reward, fee - reward

    def accrue(self, round_id: int, solver: str, fee: int, elapsed: int) -> Tuple[int, int]:
        reward, treasury = self.split(fee, elapsed)
        if reward:
            self._pending[solver] += reward
        if treasury:
            self._pending[self.treasury] += treasury
        self.total_accrued += fee
        logger.info(
            f"round {round_id}: fee {fee} split solver={reward} treasury={treasury}"
        )
        return reward, treasury

    def pending_rewards(self, account: str) -> int:
        return self._pending.get(account, 0)

    def withdrawal(self, account: str) -> Optional[PendingWithdrawal]:
        w = self._withdrawals.get(account)
        return replace(w) if w else None

    # ── Timelocked withdrawal ─────────────────────────────────

    def request_withdrawal(self, account: str, tick: int) -> PendingWithdrawal:
        current = self._withdrawals.get(account)
        if current is not None and current.status == WithdrawalStatus.PENDING:
            raise WithdrawalAlreadyPending(account, current.unlock_tick)
        amount = self._pending.get(account, 0)
        if amount == 0:
            raise NothingToWithdraw(account)

        withdrawal = PendingWithdrawal(
            account=     account,
            amount=      amount,
            unlock_tick= tick + self.withdrawal_delay,
        )
        self._pending[account] = 0
        self._withdrawals[account] = withdrawal
        logger.info(f"withdrawal of {amount} requested by {account}, unlocks at {withdrawal.unlock_tick}")
        return replace(withdrawal)

    def check_executable(self, account: str, tick: int) -> PendingWithdrawal:
        withdrawal = self._withdrawals.get(account)
        if withdrawal is None or withdrawal.status != WithdrawalStatus.PENDING:
            raise NoPendingWithdrawal(account)
        if tick < withdrawal.unlock_tick:
            raise WithdrawalLocked(withdrawal.unlock_tick, tick)
        return withdrawal

    def execute_withdrawal(self, account: str, tick: int) -> int:
        """Mark the withdrawal executed and return the amount to transfer out."""
        withdrawal = self.check_executable(account, tick)
        withdrawal.status = WithdrawalStatus.EXECUTED
        return withdrawal.amount

    def cancel_withdrawal(self, account: str) -> int:
        withdrawal = self._withdrawals.get(account)
        if withdrawal is None or withdrawal.status != WithdrawalStatus.PENDING:
            raise NoPendingWithdrawal(account)
        withdrawal.status = WithdrawalStatus.CANCELLED
        self._pending[account] += withdrawal.amount
        return withdrawal.amount


class NullRewardLedger(RewardLedger):
    """No solver incentive: the whole fee accrues to the treasury."""

    def split(self, fee: int, elapsed: int) -> Tuple[int, int]:
        return 0, fee
