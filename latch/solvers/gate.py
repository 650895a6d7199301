"""
latch/solvers/gate.py

Solver Gate

Tiered, time-windowed settlement authorization. Elapsed ticks are counted
from the end of the reveal phase (the start of SETTLE):

    elapsed < primary_window                       → PRIMARY_ONLY
    elapsed < primary_window + registered_window   → ANY_REGISTERED
    otherwise                                      → ANYONE

Windows are half-open: at elapsed == primary_window the round is
already open to any registered solver.

The admin emergency-mode switch bypasses every tier.
"""

import logging
from dataclasses import replace
from typing import Dict, List

from latch.core.config import EngineSettings
from latch.core.exceptions import SolverNotAuthorized, UnknownSolver
from latch.core.models import Batch, SolverInfo, SolverTier

logger = logging.getLogger(__name__)


class SolverGate:
    """Solver registry plus tier-based authorization."""

    def __init__(self, settings: EngineSettings) -> None:
        self.primary_window    = settings.primary_window
        self.registered_window = settings.registered_window
        self.emergency_mode    = False
        self._solvers: Dict[str, SolverInfo] = {}

    # ── Registry ──────────────────────────────────────────────

    def register(self, solver: str, primary: bool = False) -> SolverInfo:
        info = self._solvers.setdefault(solver, SolverInfo())
        info.registered = True
        info.primary    = bool(primary)
        logger.info(f"solver {solver} registered (primary={info.primary})")
        return replace(info)

    def check_registered(self, solver: str) -> SolverInfo:
        info = self._solvers.get(solver)
        if info is None or not info.registered:
            raise UnknownSolver(solver)
        return info

    def deregister(self, solver: str) -> None:
        info = self.check_registered(solver)
        info.registered = False
        info.primary    = False
        logger.info(f"solver {solver} deregistered")

    def set_primary(self, solver: str, primary: bool) -> None:
        info = self.check_registered(solver)
        info.primary = bool(primary)

    def set_emergency_mode(self, enabled: bool) -> None:
        self.emergency_mode = bool(enabled)
        logger.info(f"solver gate emergency mode {'on' if enabled else 'off'}")

    def info(self, solver: str) -> SolverInfo:
        return replace(self._solvers.get(solver, SolverInfo()))

    def primaries(self) -> List[str]:
        return sorted(s for s, i in self._solvers.items() if i.registered and i.primary)

    # ── Authorization ─────────────────────────────────────────

    def tier_at(self, batch: Batch, tick: int) -> SolverTier:
        elapsed = tick - batch.reveal_end
        if elapsed < self.primary_window:
            return SolverTier.PRIMARY_ONLY
        if elapsed < self.primary_window + self.registered_window:
            return SolverTier.ANY_REGISTERED
        return SolverTier.ANYONE

    def authorize(self, solver: str, batch: Batch, tick: int) -> None:
        """Raise SolverNotAuthorized unless solver may settle batch at tick."""
        if self.emergency_mode:
            return
        tier = self.tier_at(batch, tick)
        info = self._solvers.get(solver)
        if tier == SolverTier.ANYONE:
            return
        if info is not None and info.registered:
            if tier == SolverTier.ANY_REGISTERED or info.primary:
                return
        raise SolverNotAuthorized(solver, tier)

    # ── Outcomes ──────────────────────────────────────────────

    def record_success(self, solver: str) -> None:
        self._solvers.setdefault(solver, SolverInfo()).successes += 1

    def record_failures(self) -> List[str]:
        """Charge a failure to every primary solver. Returns who was charged."""
        charged = self.primaries()
        for solver in charged:
            self._solvers[solver].failures += 1
        return charged


class NullSolverGate(SolverGate):
    """Gate that lets anyone settle at any time. Registry still works."""

    def tier_at(self, batch: Batch, tick: int) -> SolverTier:
        return SolverTier.ANYONE

    def authorize(self, solver: str, batch: Batch, tick: int) -> None:
        return None
