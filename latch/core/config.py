"""
latch/core/config.py

Engine settings and YAML market configuration.

EngineSettings carries every tunable of the safety net, the solver gate
and the reward ledger. MarketConfig bundles the settings with a market's
identity, admin, penalty recipient and (optional) pool configuration, and
is what `latch check-config` validates.

Example file:

    market_id: eth-usdc
    admin: "0x00000000000000000000000000000000000000aa"
    penalty_recipient: "0x00000000000000000000000000000000000000fe"
    pool:
      mode: OPEN
      commit_duration: 10
      reveal_duration: 10
      settle_duration: 10
      claim_duration: 20
      fee_rate: 30
    settings:
      primary_window: 10
      start_bond: 0
"""

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from latch.core.exceptions import ConfigError, InvalidIdentity
from latch.core.hashing import normalize_identity
from latch.core.models import FEE_DENOMINATOR, PoolConfig


@dataclass(frozen=True)
class EngineSettings:
    """
    Tunables shared by every round of a market. All durations in ticks,
    all shares and rates in basis points of FEE_DENOMINATOR.
    """
    max_phase_duration:     int = 100_000
    primary_window:         int = 10
    registered_window:      int = 20
    emergency_timeout:      int = 50
    emergency_penalty_rate: int = 100
    start_bond:             int = 0
    max_pause_duration:     int = 1_000
    solver_fee_share:       int = 5_000
    speed_bonus_share:      int = 2_000
    speed_bonus_window:     int = 5
    withdrawal_delay:       int = 10
    max_range_query:        int = 50

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ConfigError(
                    "Setting must be a non-negative integer",
                    {"field": f.name, "value": value},
                )

        for name in ("max_phase_duration", "max_range_query"):
            if getattr(self, name) == 0:
                raise ConfigError("Setting must be positive", {"field": name})

        for name in ("emergency_penalty_rate", "solver_fee_share", "speed_bonus_share"):
            if getattr(self, name) > FEE_DENOMINATOR:
                raise ConfigError(
                    "Basis-point setting exceeds denominator",
                    {"field": name, "value": getattr(self, name)},
                )

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "EngineSettings":
        data = data or {}
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError("Unknown settings", {"fields": unknown})
        return cls(**data)


@dataclass(frozen=True)
class MarketConfig:
    market_id:         str
    admin:             str
    penalty_recipient: str
    settings:          EngineSettings
    pool:              Optional[PoolConfig] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "market_id":         self.market_id,
            "admin":             self.admin,
            "penalty_recipient": self.penalty_recipient,
            "settings":          self.settings.to_dict(),
            "pool":              self.pool.to_dict() if self.pool else None,
        }


def parse_market_config(data: Any) -> MarketConfig:
    """Validate a decoded config mapping. Raises ConfigError."""
    if not isinstance(data, dict):
        raise ConfigError("Market config must be a mapping")

    market_id = data.get("market_id")
    if not isinstance(market_id, str) or not market_id:
        raise ConfigError("market_id must be a non-empty string")

    identities = {}
    for name in ("admin", "penalty_recipient"):
        try:
            identities[name] = normalize_identity(data.get(name))
        except InvalidIdentity as exc:
            raise ConfigError(
                "Invalid identity", {"field": name, "value": data.get(name)}
            ) from exc

    settings = EngineSettings.from_dict(data.get("settings"))

    pool = None
    if data.get("pool") is not None:
        if not isinstance(data["pool"], dict):
            raise ConfigError("pool must be a mapping")
        pool = PoolConfig.from_dict(data["pool"])
        pool.validate(settings.max_phase_duration)

    return MarketConfig(
        market_id=         market_id,
        admin=             identities["admin"],
        penalty_recipient= identities["penalty_recipient"],
        settings=          settings,
        pool=              pool,
    )


def load_market_config(path: Path) -> MarketConfig:
    """
    Load and validate a YAML market config file.

    Raises:
        FileNotFoundError — path does not exist
        ConfigError       — malformed YAML or invalid values
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Market config not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError("Malformed YAML", {"path": str(path)}) from exc
    return parse_market_config(data)
