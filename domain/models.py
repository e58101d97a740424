from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Optional


@dataclass(eq=False)
class PlayerRecord:
    """
    A player account that has joined the network at least once.

    Only the latest observation is kept: `display_name` is the most recent
    name seen for the account and is what name-based lookups resolve to an
    `id`. `last_seen` is the epoch-millisecond timestamp of the latest login.
    """

    id: uuid.UUID
    display_name: str
    last_seen: int = field(default=0)

    @classmethod
    def observed(
        cls,
        player_id: uuid.UUID,
        display_name: str,
        last_seen: Optional[int] = None,
    ) -> PlayerRecord:
        """Build a record for a login observed now (or at `last_seen`)."""

        if last_seen is None:
            last_seen = int(time.time() * 1000)
        return cls(id=player_id, display_name=display_name, last_seen=last_seen)

    # Two records describe the same player whenever their IDs match; name and
    # timestamp are just the latest projection of that player.
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PlayerRecord):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
