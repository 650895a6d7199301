"""
latch/market/market.py

AuctionMarket — one batch-auction market.

Wires the phase clock, commitment ledger, settlement validator and
executor, solver gate, reward ledger, emergency net and pause bitset
together behind the operations a participant, solver or admin calls.

Every operation either completes or raises with nothing changed. Each
one runs in three steps:

    check    every precondition, including value-transfer feasibility
    publish  the event, built from values computed by the checks
    apply    state changes and transfers that can no longer fail

A sink that refuses the event therefore leaves the market untouched.

Optional modules are chosen at construction through MarketModules and
never swapped afterwards. The defaults are no-op implementations:

    gate       NullSolverGate    anyone may settle
    rewards    NullRewardLedger  whole fee accrues to the treasury
    emergency  NullEmergencyNet  no bond, no emergency mode; stalled
                                 rounds are abandoned after the timeout
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence

from latch.commitments.allowlist import MembershipVerifier, SortedMerkleMembership
from latch.commitments.ledger import CommitmentLedger
from latch.core.clock import TickSource, phase_at, round_boundaries
from latch.core.config import EngineSettings, MarketConfig
from latch.core.exceptions import (
    AlreadyClaimed,
    ClaimWindowOpen,
    InsufficientBalance,
    NotAdmin,
    NotAllowlisted,
    NothingToClaim,
    PoolAlreadyConfigured,
    PoolNotConfigured,
    RangeTooLarge,
    RoundAlreadyActive,
    RoundAlreadyFinalized,
    RoundNotFound,
    RoundNotSettled,
    ValidationError,
    WrongPhase,
)
from latch.core.hashing import Salt, normalize_identity
from latch.core.models import (
    Asset,
    Batch,
    BatchPhase,
    Claimable,
    Commitment,
    PendingWithdrawal,
    PoolConfig,
    PoolMode,
    RevealedOrder,
    SettledRoundSummary,
    SolverInfo,
)
from latch.ledger.assets import AssetLedger
from latch.ledger.events import EventSink, NullEventSink, RecordType
from latch.safety.emergency import EmergencyNet, EmergencyState, NullEmergencyNet
from latch.safety.pause import PauseFlags, PauseSnapshot, PauseState
from latch.settlement.executor import SettlementExecutor
from latch.settlement.validator import RoundSnapshot, SettlementValidator
from latch.solvers.gate import NullSolverGate, SolverGate
from latch.solvers.rewards import NullRewardLedger, RewardLedger
from latch.verification.verifier import ProofVerifier

logger = logging.getLogger(__name__)

MARKET_EVENT = 0


@dataclass(frozen=True)
class MarketModules:
    gate:      SolverGate
    rewards:   RewardLedger
    emergency: EmergencyNet

    @classmethod
    def minimal(cls, settings: EngineSettings, treasury: str) -> "MarketModules":
        return cls(
            gate=      NullSolverGate(settings),
            rewards=   NullRewardLedger(settings, treasury),
            emergency= NullEmergencyNet(settings),
        )

    @classmethod
    def full(cls, settings: EngineSettings, treasury: str) -> "MarketModules":
        return cls(
            gate=      SolverGate(settings),
            rewards=   RewardLedger(settings, treasury),
            emergency= EmergencyNet(settings),
        )


class AuctionMarket:
    """
    Usage:
        market = AuctionMarket(
            market_id="eth-usdc", admin=ADMIN, penalty_recipient=TREASURY,
            verifier=verifier, assets=assets, ticks=ticker,
            modules=MarketModules.full(settings, TREASURY), settings=settings,
        )
        market.configure_pool(ADMIN, pool)
        round_id = market.start_round(ADMIN)
    """

    def __init__(
        self,
        market_id:         str,
        admin:             str,
        penalty_recipient: str,
        verifier:          ProofVerifier,
        assets:            AssetLedger,
        ticks:             TickSource,
        settings:          Optional[EngineSettings] = None,
        modules:           Optional[MarketModules] = None,
        membership:        Optional[MembershipVerifier] = None,
        events:            Optional[EventSink] = None,
    ) -> None:
        if not isinstance(market_id, str) or not market_id:
            raise ValidationError("market_id must be a non-empty string")

        self.market_id         = market_id
        self.admin             = normalize_identity(admin)
        self.penalty_recipient = normalize_identity(penalty_recipient)
        self.settings          = settings or EngineSettings()
        self.modules           = modules or MarketModules.minimal(
            self.settings, self.penalty_recipient
        )
        self.assets     = assets
        self.ticks      = ticks
        self.membership = membership or SortedMerkleMembership()
        self.events     = events or NullEventSink()

        self._validator = SettlementValidator(verifier)
        self._executor  = SettlementExecutor()
        self._ledger    = CommitmentLedger()
        self._pause     = PauseState(self.settings.max_pause_duration)

        self._pool:       Optional[PoolConfig]                = None
        self._batches:    Dict[int, Batch]                    = {}
        self._claimables: Dict[int, Dict[str, Claimable]]     = {}
        self._summaries:  Dict[int, SettledRoundSummary]      = {}
        self._current_round = 0

    @classmethod
    def from_config(
        cls,
        config:     MarketConfig,
        verifier:   ProofVerifier,
        assets:     AssetLedger,
        ticks:      TickSource,
        modules:    Optional[MarketModules] = None,
        membership: Optional[MembershipVerifier] = None,
        events:     Optional[EventSink] = None,
    ) -> "AuctionMarket":
        """Build a market from a loaded MarketConfig, configuring its pool if present."""
        market = cls(
            market_id=         config.market_id,
            admin=             config.admin,
            penalty_recipient= config.penalty_recipient,
            verifier=          verifier,
            assets=            assets,
            ticks=             ticks,
            settings=          config.settings,
            modules=           modules,
            membership=        membership,
            events=            events,
        )
        if config.pool is not None:
            market.configure_pool(config.admin, config.pool)
        return market

    # ── Internal helpers ──────────────────────────────────────

    def _tick(self) -> int:
        return self.ticks.current_tick()

    def _require_admin(self, caller: str) -> None:
        if normalize_identity(caller) != self.admin:
            raise NotAdmin(caller)

    def _batch(self, round_id: int) -> Batch:
        batch = self._batches.get(round_id)
        if batch is None:
            raise RoundNotFound(round_id)
        return batch

    def _current_batch(self) -> Optional[Batch]:
        return self._batches.get(self._current_round)

    def _require_phase(self, expected: BatchPhase) -> Batch:
        batch = self._current_batch()
        phase = phase_at(batch, self._tick())
        if phase != expected:
            raise WrongPhase(expected=expected, actual=phase)
        return batch

    def _require_funds(self, account: str, asset: Asset, amount: int) -> None:
        available = self.assets.balance_of(account, asset)
        if available < amount:
            raise InsufficientBalance(account, asset, required=amount, available=available)

    def _publish(self, record_type: str, round_id: int, payload: dict) -> None:
        # Called after every check and before the first mutation.
        self.events.publish(record_type, self.market_id, round_id, self._tick(), payload)

    # ─────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────

    def configure_pool(self, caller: str, pool: PoolConfig) -> None:
        self._require_admin(caller)
        if self._pool is not None:
            raise PoolAlreadyConfigured(self.market_id)
        pool.validate(self.settings.max_phase_duration)

        self._publish(RecordType.POOL_CONFIGURED, MARKET_EVENT, pool.to_dict())
        self._pool = pool
        logger.info(f"market {self.market_id}: pool configured ({pool.mode.name}, fee_rate={pool.fee_rate})")

    def start_round(self, caller: str) -> int:
        """Open the next round. The caller posts the start bond, if any."""
        caller = normalize_identity(caller)
        self._pause.require(PauseFlags.ALL)
        if self._pool is None:
            raise PoolNotConfigured(self.market_id)

        tick    = self._tick()
        current = self._current_batch()
        if current is not None:
            phase = phase_at(current, tick)
            if phase != BatchPhase.FINALIZED and not self.modules.emergency.releases(current, tick):
                raise RoundAlreadyActive(current.round_id, phase)

        bond = self.modules.emergency.bond_amount()
        self._require_funds(caller, Asset.B, bond)

        round_id   = self._current_round + 1
        boundaries = round_boundaries(tick, self._pool)
        batch = Batch(
            market_id=      self.market_id,
            round_id=       round_id,
            start_tick=     boundaries.start_tick,
            commit_end=     boundaries.commit_end,
            reveal_end=     boundaries.reveal_end,
            settle_end=     boundaries.settle_end,
            claim_end=      boundaries.claim_end,
            allowlist_root= self._pool.effective_allowlist_root(),
            starter=        caller,
        )
        if current is not None and not current.settled and phase_at(current, tick) != BatchPhase.FINALIZED:
            logger.warning(f"market {self.market_id}: round {current.round_id} closed unsettled")

        self._publish(RecordType.ROUND_STARTED, round_id, batch.to_dict() | {"bond": bond})
        if bond:
            self.assets.transfer_in(caller, Asset.B, bond)
        self._batches[round_id]    = batch
        self._claimables[round_id] = {}
        self._ledger.open_round(round_id)
        self.modules.emergency.record_bond(round_id, caller)
        self._current_round = round_id

        logger.info(
            f"market {self.market_id}: round {round_id} started at tick {tick} "
            f"(commit<{batch.commit_end} reveal<{batch.reveal_end} settle<{batch.settle_end})"
        )
        return round_id

    def finalize(self, round_id: int) -> None:
        """Close a settled round after its claim window. Releases its leaf list."""
        self._pause.require(PauseFlags.ALL)
        batch = self._batch(round_id)
        if not batch.settled:
            raise RoundNotSettled(round_id)
        if batch.finalized:
            raise RoundAlreadyFinalized(round_id)
        tick = self._tick()
        if tick < batch.claim_end:
            raise ClaimWindowOpen(round_id, batch.claim_end, tick)

        self._publish(RecordType.FINALIZED, round_id, {"round_id": round_id})
        batch.finalized = True
        self._ledger.release(round_id)
        logger.info(f"market {self.market_id}: round {round_id} finalized")

    # ─────────────────────────────────────────────────────────
    # Commit / reveal / refund
    # ─────────────────────────────────────────────────────────

    def commit(
        self,
        participant:     str,
        commitment_hash: bytes,
        deposit:         int,
        allowlist_proof: Sequence[int] = (),
    ) -> Commitment:
        """Commit a hidden order to the current round, escrowing deposit of asset B."""
        participant = normalize_identity(participant)
        self._pause.require(PauseFlags.COMMIT)
        batch = self._require_phase(BatchPhase.COMMIT)

        commitment = self._ledger.check_commit(batch.round_id, participant, commitment_hash, deposit)
        if self._pool.mode == PoolMode.GATED:
            if not self.membership.is_member(participant, batch.allowlist_root, allowlist_proof):
                raise NotAllowlisted(participant, batch.allowlist_root)
        self._require_funds(participant, Asset.B, deposit)

        self._publish(RecordType.COMMITTED, batch.round_id, commitment.to_dict())
        self.assets.transfer_in(participant, Asset.B, deposit)
        self._ledger.record_commit(batch.round_id, commitment)
        batch.committed_count += 1
        return replace(commitment)

    def reveal(
        self,
        participant: str,
        amount:      int,
        limit_price: int,
        is_buy:      bool,
        salt:        Salt,
        deposit:     int,
    ) -> int:
        """Disclose a committed order. Returns its slot index in the order tree."""
        participant = normalize_identity(participant)
        self._pause.require(PauseFlags.REVEAL)
        batch = self._require_phase(BatchPhase.REVEAL)

        data = self._ledger.check_reveal(
            batch.round_id, participant, amount, limit_price, is_buy, salt, deposit
        )

        self._publish(RecordType.ORDER_REVEALED, batch.round_id, data.to_dict())
        self._ledger.record_reveal(batch.round_id, data)
        batch.revealed_count += 1
        return data.index

    def refund(self, participant: str, round_id: int) -> int:
        """
        Return an unrevealed deposit once the round has left REVEAL.
        Revealed deposits qualify too when the round was abandoned unsettled.
        """
        participant = normalize_identity(participant)
        self._pause.require(PauseFlags.WITHDRAW)
        batch = self._batch(round_id)
        tick  = self._tick()
        phase = phase_at(batch, tick)
        if phase < BatchPhase.SETTLE:
            raise WrongPhase(expected=BatchPhase.SETTLE, actual=phase)

        net       = self.modules.emergency
        abandoned = not net.enabled and net.releases(batch, tick)
        commitment = self._ledger.check_refundable(round_id, participant, abandoned)
        amount     = commitment.deposit

        self._publish(RecordType.REFUNDED, round_id, {"participant": participant, "amount": amount})
        self.assets.transfer_out(participant, Asset.B, amount)
        self._ledger.refund(round_id, participant, abandoned)
        return amount

    # ─────────────────────────────────────────────────────────
    # Settlement
    # ─────────────────────────────────────────────────────────

    def settle(self, solver: str, proof: str, claims: Sequence[int]) -> SettledRoundSummary:
        """
        Settle the current round. First valid settlement wins; every later
        attempt fails with AlreadySettled.
        """
        solver = normalize_identity(solver)
        self._pause.require(PauseFlags.SETTLE)

        tick     = self._tick()
        round_id = self._current_round
        batch    = self._batches.get(round_id)
        snapshot = RoundSnapshot(
            round_id=         round_id,
            batch=            batch,
            pool=             self._pool,
            tick=             tick,
            revealed_count=   self._ledger.revealed_count(round_id) if batch else 0,
            orders_root=      self._ledger.orders_root(round_id) if batch else 0,
            emergency_active= batch is not None and self.modules.emergency.releases(batch, tick),
        )
        decoded = self._validator.validate(
            snapshot, solver, proof, claims, self.modules.gate.authorize
        )

        plan = self._executor.plan(
            decoded,
            self._ledger.revealed_orders(round_id),
            self._ledger.revealed_deposits(round_id),
            solver,
        )
        self._executor.check_liquidity(plan, self.assets)

        elapsed = tick - batch.reveal_end
        reward, treasury = self.modules.rewards.split(plan.fee_b, elapsed)
        summary = SettledRoundSummary(
            round_id=       round_id,
            clearing_price= decoded.clearing_price,
            buy_volume=     decoded.buy_volume,
            sell_volume=    decoded.sell_volume,
            order_count=    decoded.order_count,
            orders_root=    decoded.orders_root,
            protocol_fee=   decoded.protocol_fee,
            solver=         solver,
            settled_at=     tick,
        )
        self._publish(RecordType.SETTLED, round_id, summary.to_dict() | {
            "fee_b":          plan.fee_b,
            "solver_asset_a": plan.solver_asset_a,
            "solver_b":       plan.solver_b,
            "solver_reward":  reward,
            "treasury_share": treasury,
        })

        # ── Record (no failure paths below) ──────────────────
        self._executor.execute(plan, self.assets)
        book = self._claimables[round_id]
        for credit in plan.credits:
            c = book.setdefault(credit.account, Claimable())
            c.amount_a += credit.amount_a
            c.amount_b += credit.amount_b

        batch.clearing_price = decoded.clearing_price
        batch.buy_volume     = decoded.buy_volume
        batch.sell_volume    = decoded.sell_volume
        batch.orders_root    = decoded.orders_root
        batch.protocol_fee   = decoded.protocol_fee
        batch.settled        = True
        batch.settled_at     = tick
        batch.solver         = solver
        self._summaries[round_id] = summary

        self.modules.gate.record_success(solver)
        self.modules.rewards.accrue(round_id, solver, plan.fee_b, elapsed)
        bond = self.modules.emergency.release_bond(round_id)
        if bond is not None:
            self.assets.transfer_out(bond.poster, Asset.B, bond.amount)

        logger.info(
            f"market {self.market_id}: round {round_id} settled by {solver} "
            f"price={decoded.clearing_price} matched={decoded.matched_volume} "
            f"fee_b={plan.fee_b}"
        )
        return summary

    def claim(self, account: str, round_id: int) -> Claimable:
        """Pay out a settled round's claimable balances."""
        account = normalize_identity(account)
        self._pause.require(PauseFlags.CLAIM)
        batch = self._batch(round_id)
        if not batch.settled:
            raise RoundNotSettled(round_id)

        claimable = self._claimables[round_id].get(account)
        if claimable is None or not (claimable.amount_a or claimable.amount_b):
            raise NothingToClaim(round_id, account)
        if claimable.claimed:
            raise AlreadyClaimed(round_id, account)

        payout = replace(claimable, claimed=True)
        self._publish(RecordType.CLAIMED, round_id, {"account": account} | payout.to_dict())
        self.assets.transfer_out(account, Asset.A, claimable.amount_a)
        self.assets.transfer_out(account, Asset.B, claimable.amount_b)
        claimable.claimed = True
        return payout

    # ─────────────────────────────────────────────────────────
    # Emergency
    # ─────────────────────────────────────────────────────────

    def activate_emergency(self, round_id: int) -> None:
        """Callable by anyone once the settlement timeout has passed."""
        self._pause.require(PauseFlags.ALL)
        batch = self._batch(round_id)
        tick  = self._tick()
        net   = self.modules.emergency

        net.check_activation(batch, tick)
        bond        = net.posted_bond(round_id)
        bond_amount = bond.amount if bond else 0
        charged     = self.modules.gate.primaries()

        self._publish(RecordType.EMERGENCY_ACTIVATED, round_id, {
            "forfeited_bond":   bond_amount,
            "charged_solvers": charged,
        })
        forfeited = net.activate(batch, tick)
        if forfeited is not None:
            self.assets.transfer_out(self.penalty_recipient, Asset.B, forfeited.amount)
        self.modules.gate.record_failures()

        logger.info(
            f"market {self.market_id}: round {round_id} in emergency mode "
            f"(bond forfeited={bond_amount}, primaries charged={len(charged)})"
        )

    def emergency_refund(self, participant: str, round_id: int) -> int:
        """Return a deposit from an emergency round. Returns the payout."""
        participant = normalize_identity(participant)
        self._pause.require(PauseFlags.WITHDRAW)
        batch = self._batch(round_id)
        net   = self.modules.emergency
        net.require_active(batch)

        payout, penalty = self._ledger.emergency_quote(round_id, participant, net.penalty_rate)

        self._publish(RecordType.EMERGENCY_REFUNDED, round_id, {
            "participant": participant,
            "payout":      payout,
            "penalty":     penalty,
        })
        self.assets.transfer_out(participant, Asset.B, payout)
        self.assets.transfer_out(self.penalty_recipient, Asset.B, penalty)
        self._ledger.emergency_refund(round_id, participant, net.penalty_rate)
        return payout

    # ─────────────────────────────────────────────────────────
    # Solver administration
    # ─────────────────────────────────────────────────────────

    def register_solver(self, caller: str, solver: str, primary: bool = False) -> SolverInfo:
        self._require_admin(caller)
        solver = normalize_identity(solver)
        info = replace(self.modules.gate.info(solver), registered=True, primary=bool(primary))
        self._publish(RecordType.SOLVER_UPDATED, MARKET_EVENT, {"solver": solver} | info.to_dict())
        return self.modules.gate.register(solver, primary)

    def deregister_solver(self, caller: str, solver: str) -> None:
        self._require_admin(caller)
        solver = normalize_identity(solver)
        gate = self.modules.gate
        gate.check_registered(solver)
        info = replace(gate.info(solver), registered=False, primary=False)
        self._publish(RecordType.SOLVER_UPDATED, MARKET_EVENT, {"solver": solver} | info.to_dict())
        gate.deregister(solver)

    def set_primary_solver(self, caller: str, solver: str, primary: bool) -> None:
        self._require_admin(caller)
        solver = normalize_identity(solver)
        gate = self.modules.gate
        gate.check_registered(solver)
        info = replace(gate.info(solver), primary=bool(primary))
        self._publish(RecordType.SOLVER_UPDATED, MARKET_EVENT, {"solver": solver} | info.to_dict())
        gate.set_primary(solver, primary)

    def set_solver_emergency_mode(self, caller: str, enabled: bool) -> None:
        self._require_admin(caller)
        self._publish(RecordType.SOLVER_UPDATED, MARKET_EVENT, {"emergency_mode": bool(enabled)})
        self.modules.gate.set_emergency_mode(enabled)

    # ─────────────────────────────────────────────────────────
    # Pause
    # ─────────────────────────────────────────────────────────

    def pause(self, caller: str, flags: PauseFlags) -> PauseFlags:
        self._require_admin(caller)
        active = self._pause.check_pause(flags)
        self._publish(RecordType.PAUSE_CHANGED, MARKET_EVENT, {"flags": int(active)})
        return self._pause.pause(flags, self._tick())

    def unpause(self, caller: str, flags: PauseFlags) -> PauseFlags:
        self._require_admin(caller)
        active = self._pause.flags & ~PauseFlags(flags)
        self._publish(RecordType.PAUSE_CHANGED, MARKET_EVENT, {"flags": int(active)})
        return self._pause.unpause(flags)

    def force_unpause(self) -> None:
        """Callable by anyone once max_pause_duration has elapsed."""
        tick = self._tick()
        self._pause.check_force_unpause(tick)
        self._publish(RecordType.PAUSE_CHANGED, MARKET_EVENT, {"flags": 0, "forced": True})
        self._pause.force_unpause(tick)

    # ─────────────────────────────────────────────────────────
    # Rewards
    # ─────────────────────────────────────────────────────────

    def request_reward_withdrawal(self, account: str) -> PendingWithdrawal:
        account = normalize_identity(account)
        self._pause.require(PauseFlags.WITHDRAW)
        return self.modules.rewards.request_withdrawal(account, self._tick())

    def execute_reward_withdrawal(self, account: str) -> int:
        account = normalize_identity(account)
        self._pause.require(PauseFlags.WITHDRAW)
        rewards = self.modules.rewards
        tick    = self._tick()
        amount  = rewards.check_executable(account, tick).amount

        self._publish(RecordType.REWARD_WITHDRAWAL, MARKET_EVENT, {"account": account, "amount": amount})
        self.assets.transfer_out(account, Asset.B, amount)
        return rewards.execute_withdrawal(account, tick)

    def cancel_reward_withdrawal(self, account: str) -> int:
        account = normalize_identity(account)
        self._pause.require(PauseFlags.WITHDRAW)
        return self.modules.rewards.cancel_withdrawal(account)

    # ─────────────────────────────────────────────────────────
    # Read-only views
    # ─────────────────────────────────────────────────────────

    @property
    def current_round_id(self) -> int:
        return self._current_round

    def current_phase(self) -> BatchPhase:
        return phase_at(self._current_batch(), self._tick())

    def phase_of(self, round_id: int) -> BatchPhase:
        return phase_at(self._batches.get(round_id), self._tick())

    @property
    def pool_config(self) -> Optional[PoolConfig]:
        return self._pool

    def get_batch(self, round_id: int) -> Batch:
        return replace(self._batch(round_id))

    def get_commitment(self, round_id: int, participant: str) -> Optional[Commitment]:
        commitment = self._ledger.get_commitment(round_id, normalize_identity(participant))
        return replace(commitment) if commitment else None

    def get_claimable(self, round_id: int, account: str) -> Claimable:
        book = self._claimables.get(round_id, {})
        claimable = book.get(normalize_identity(account))
        return replace(claimable) if claimable else Claimable()

    def get_settled_round(self, round_id: int) -> Optional[SettledRoundSummary]:
        return self._summaries.get(round_id)

    def _range(self, first: int, last: int) -> range:
        if first < 1 or last < first:
            raise ValidationError("Invalid round range", {"first": first, "last": last})
        count = last - first + 1
        if count > self.settings.max_range_query:
            raise RangeTooLarge(count, self.settings.max_range_query)
        return range(first, last + 1)

    def get_rounds(self, first: int, last: int) -> List[Batch]:
        return [replace(self._batches[r]) for r in self._range(first, last) if r in self._batches]

    def get_settled_rounds(self, first: int, last: int) -> List[SettledRoundSummary]:
        return [self._summaries[r] for r in self._range(first, last) if r in self._summaries]

    def revealed_orders(self, round_id: int) -> List[RevealedOrder]:
        self._batch(round_id)
        return self._ledger.revealed_orders(round_id)

    def orders_root(self, round_id: int) -> int:
        self._batch(round_id)
        return self._ledger.orders_root(round_id)

    def inclusion_proof(self, round_id: int, index: int) -> List[int]:
        self._batch(round_id)
        return self._ledger.inclusion_proof(round_id, index)

    def solver_info(self, solver: str) -> SolverInfo:
        return self.modules.gate.info(normalize_identity(solver))

    def pause_state(self) -> PauseSnapshot:
        return self._pause.snapshot()

    def emergency_state(self, round_id: int) -> EmergencyState:
        return self.modules.emergency.state(self._batch(round_id))

    def pending_rewards(self, account: str) -> int:
        return self.modules.rewards.pending_rewards(normalize_identity(account))

    def reward_withdrawal(self, account: str) -> Optional[PendingWithdrawal]:
        return self.modules.rewards.withdrawal(normalize_identity(account))
