"""
Latch Solvers - tiered settlement access and timelocked fee rewards.
"""

from latch.solvers.gate import NullSolverGate, SolverGate
from latch.solvers.rewards import NullRewardLedger, RewardLedger

__all__ = ["NullSolverGate", "SolverGate", "NullRewardLedger", "RewardLedger"]
