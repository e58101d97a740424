from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from domain.models import PlayerRecord
from domain.repositories import PlayerRepository
from infrastructure.db.connection import ConnectionHandle, QueryResult, Row, UpdateResult

logger = logging.getLogger(__name__)


class SqlPlayerRepository(PlayerRepository):
    """
    `PlayerRepository` that runs its statements through a `ConnectionHandle`.

    The SQL below sticks to what SQLite and PostgreSQL both accept, so the
    same repository works for an embedded or a networked handle. The handle
    is owned (opened/closed) by the caller; this class never opens it.
    """

    def __init__(self, connection: ConnectionHandle) -> None:
        self._connection = connection

    @staticmethod
    def _to_domain(row: Row) -> PlayerRecord:
        return PlayerRecord(
            id=uuid.UUID(str(row["id"])),
            display_name=row["name"],
            last_seen=int(row["last_login"]),
        )

    @staticmethod
    def _rows(result: QueryResult) -> List[Row]:
        if result.error is not None:
            raise result.error
        return result.rows or []

    @staticmethod
    def _affected(result: UpdateResult) -> int:
        if result.error is not None:
            raise result.error
        return result.affected_rows

    def ensure_schema(self) -> None:
        self._affected(
            self._connection.update(
                """
                CREATE TABLE IF NOT EXISTS players (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    last_login BIGINT NOT NULL
                )
                """
            )
        )

    def record_login(self, player: PlayerRecord) -> None:
        # An out-of-order (older) observation must not roll the name or the
        # timestamp back.
        affected = self._affected(
            self._connection.update(
                """
                INSERT INTO players (id, name, last_login)
                VALUES (?, ?, ?)
                ON CONFLICT (id) DO UPDATE SET
                    name = CASE
                        WHEN excluded.last_login >= players.last_login
                        THEN excluded.name ELSE players.name END,
                    last_login = CASE
                        WHEN excluded.last_login >= players.last_login
                        THEN excluded.last_login ELSE players.last_login END
                """,
                str(player.id),
                player.display_name,
                str(player.last_seen),
            )
        )
        logger.debug("Recorded login of %s (%d row(s))", player.id, affected)

    def get_player(self, player_id: uuid.UUID) -> Optional[PlayerRecord]:
        rows = self._rows(
            self._connection.query(
                "SELECT id, name, last_login FROM players WHERE id = ?",
                str(player_id),
            )
        )
        if not rows:
            return None
        return self._to_domain(rows[0])

    def find_by_name(self, display_name: str) -> Optional[PlayerRecord]:
        rows = self._rows(
            self._connection.query(
                """
                SELECT id, name, last_login
                FROM players
                WHERE LOWER(name) = LOWER(?)
                ORDER BY last_login DESC
                LIMIT 1
                """,
                display_name,
            )
        )
        if not rows:
            return None
        return self._to_domain(rows[0])

    def get_all_players(self) -> List[PlayerRecord]:
        rows = self._rows(
            self._connection.query("SELECT id, name, last_login FROM players")
        )
        return [self._to_domain(row) for row in rows]

    def delete_player(self, player_id: uuid.UUID) -> bool:
        affected = self._affected(
            self._connection.update("DELETE FROM players WHERE id = ?", str(player_id))
        )
        return affected > 0
