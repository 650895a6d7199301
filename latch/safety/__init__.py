"""Emergency safety net and operation pause flags."""

from latch.safety.emergency import EmergencyNet, NullEmergencyNet
from latch.safety.pause import PauseFlags, PauseState

__all__ = ["EmergencyNet", "NullEmergencyNet", "PauseFlags", "PauseState"]
