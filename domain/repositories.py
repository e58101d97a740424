from __future__ import annotations

import uuid
from typing import List, Optional, Protocol

from .models import PlayerRecord


class PlayerRepository(Protocol):
    """
    Abstraction over player persistence.

    Implementations are responsible for:
    - Mapping between database rows and the `PlayerRecord` domain model.
    - Hiding any SQL / driver details from the callers (ban logic, proxy
      event hooks).
    """

    def ensure_schema(self) -> None:
        """Create the backing table if it does not exist yet."""

        ...

    def record_login(self, player: PlayerRecord) -> None:
        """
        Persist a login observation.

        The first observation creates the player. Later ones overwrite the
        name and timestamp, unless they are older than what is stored.
        """

        ...

    def get_player(self, player_id: uuid.UUID) -> Optional[PlayerRecord]:
        """Return the player with the given ID, or None if never seen."""

        ...

    def find_by_name(self, display_name: str) -> Optional[PlayerRecord]:
        """
        Return the most recently seen player using `display_name`.

        Matching ignores case.
        """

        ...

    def get_all_players(self) -> List[PlayerRecord]:
        """Return all players currently known to the system."""

        ...

    def delete_player(self, player_id: uuid.UUID) -> bool:
        """Remove the player; return True if a row was deleted."""

        ...
