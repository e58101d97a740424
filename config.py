from __future__ import annotations

import os
from typing import Mapping, Optional

from infrastructure.db.connection import ConnectionHandle, ErrorCallback

DEFAULT_DB_PATH = "players.db"
DEFAULT_DB_HOST = "localhost"
DEFAULT_DB_PORT = 5432


def connection_from_env(
    environ: Optional[Mapping[str, str]] = None,
    on_error: Optional[ErrorCallback] = None,
) -> ConnectionHandle:
    """
    Build a (closed) `ConnectionHandle` from `DB_*` settings.

    `DB_BACKEND` picks the backend: `sqlite` (the default) uses `DB_PATH`,
    `postgres` uses `DB_HOST`, `DB_PORT`, `DB_USER`, `DB_PASSWORD` and
    `DB_NAME`. Values are not checked beyond what is needed to build the
    handle; a wrong host or path only shows up when the handle is opened.
    """

    env = os.environ if environ is None else environ
    backend = env.get("DB_BACKEND", "sqlite").strip().lower()

    if backend == "sqlite":
        return ConnectionHandle.embedded(
            env.get("DB_PATH", DEFAULT_DB_PATH),
            on_error=on_error,
        )

    if backend == "postgres":
        raw_port = env.get("DB_PORT", str(DEFAULT_DB_PORT))
        try:
            port = int(raw_port)
        except ValueError:
            raise ValueError(f"DB_PORT must be an integer, got {raw_port!r}.") from None
        return ConnectionHandle.networked(
            host=env.get("DB_HOST", DEFAULT_DB_HOST),
            port=port,
            username=env.get("DB_USER", ""),
            password=env.get("DB_PASSWORD", ""),
            database_name=env.get("DB_NAME", ""),
            on_error=on_error,
        )

    raise ValueError(f"Unsupported DB_BACKEND {backend!r}; expected 'sqlite' or 'postgres'.")
