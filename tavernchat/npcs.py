"""Non-player character information and state."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field


class NpcState(enum.Enum):
    """What an NPC is currently doing."""

    IDLE = "idle"
    DISABLED = "disabled"


@dataclass
class Npc:
    """A non-player character living in the tavern."""

    name: str = "Unnamed"
    state: NpcState = NpcState.IDLE
    last_active: float = field(default_factory=time.monotonic)