from __future__ import annotations

import enum
import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, List, Optional, Tuple, Union
from urllib.parse import quote

import psycopg2

logger = logging.getLogger(__name__)


class BackendKind(enum.Enum):
    """Which kind of database a `ConnectionHandle` talks to."""

    EMBEDDED = "embedded"
    NETWORKED = "networked"


class SQLConnectionError(Exception):
    """
    Base class for every failure reported by `ConnectionHandle`.

    The driver exception that caused the failure, if any, is kept both as
    `cause` and as the chained `__cause__`.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause
        self.__cause__ = cause


class ConnectionFailure(SQLConnectionError):
    """A session could not be established; the handle stays closed."""


class ExecutionFailure(SQLConnectionError):
    """A query or update could not complete."""


class CloseFailure(SQLConnectionError):
    """Releasing the session failed; the handle is closed regardless."""


ErrorCallback = Callable[[SQLConnectionError], None]
Row = Dict[str, Any]


@dataclass
class QueryResult:
    """Outcome of `ConnectionHandle.query`."""

    rows: Optional[List[Row]] = None
    error: Optional[ExecutionFailure] = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class UpdateResult:
    """
    Outcome of `ConnectionHandle.update`.

    A failed update reports zero affected rows, so `error` (not the count)
    is what tells a no-op apart from a failure.
    """

    affected_rows: int = 0
    error: Optional[ExecutionFailure] = None

    @property
    def success(self) -> bool:
        return self.error is None


def _rewrite_placeholders(statement: str) -> Tuple[str, int]:
    parts: List[str] = []
    count = 0
    index = 0
    length = len(statement)
    while index < length:
        char = statement[index]
        # Quoted text and comments are copied through untouched, apart from
        # the `%` escaping.
        if char in ("'", '"'):
            end = statement.find(char, index + 1)
            end = length if end == -1 else end + 1
        elif statement.startswith("--", index):
            end = statement.find("\n", index)
            end = length if end == -1 else end
        elif statement.startswith("/*", index):
            end = statement.find("*/", index + 2)
            end = length if end == -1 else end + 2
        elif char == "?":
            parts.append("%s")
            count += 1
            index += 1
            continue
        else:
            end = index + 1
        parts.append(statement[index:end].replace("%", "%%"))
        index = end
    return "".join(parts), count


def to_pyformat(statement: str) -> str:
    """
    Rewrite `?` placeholders into psycopg2's `%s` style.

    Question marks inside quoted literals, quoted identifiers and comments
    are left alone, and every literal `%` is doubled because psycopg2
    formats the whole string.
    """

    return _rewrite_placeholders(statement)[0]


@dataclass(frozen=True)
class EmbeddedConfig:
    """Settings for a single-file SQLite database."""

    file_path: str

    kind: ClassVar[BackendKind] = BackendKind.EMBEDDED
    driver_errors: ClassVar[Tuple[type, ...]] = (sqlite3.Error,)

    def build_address(self) -> str:
        return self.file_path

    def connect(self, address: str) -> sqlite3.Connection:
        # isolation_level=None: every statement commits on its own.
        return sqlite3.connect(address, isolation_level=None)

    def prepare(self, statement: str, parameters: Tuple[Any, ...]) -> str:
        return statement

    def describe(self) -> str:
        return f"sqlite database {self.file_path!r}"


@dataclass(frozen=True)
class NetworkedConfig:
    """Settings for a PostgreSQL server reached over the network."""

    host: str
    port: int
    username: str
    password: str = field(repr=False)
    database_name: str

    kind: ClassVar[BackendKind] = BackendKind.NETWORKED
    driver_errors: ClassVar[Tuple[type, ...]] = (psycopg2.Error,)

    def build_address(self) -> str:
        """
        Build a libpq connection URI; credentials are percent-encoded.

        IPv6 literals are bracketed so the port separator stays unambiguous.
        """

        host = self.host
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        return "postgresql://{user}:{password}@{host}:{port}/{database}".format(
            user=quote(self.username, safe=""),
            password=quote(self.password, safe=""),
            host=host,
            port=self.port,
            database=quote(self.database_name, safe=""),
        )

    def connect(self, address: str):
        session = psycopg2.connect(address)
        session.autocommit = True
        return session

    def prepare(self, statement: str, parameters: Tuple[Any, ...]) -> str:
        # psycopg2 merges parameters client-side; a count mismatch has to
        # surface as a driver error rather than IndexError/TypeError.
        prepared, placeholders = _rewrite_placeholders(statement)
        if placeholders != len(parameters):
            raise psycopg2.ProgrammingError(
                f"Statement has {placeholders} placeholder(s) but "
                f"{len(parameters)} parameter(s) were supplied"
            )
        return prepared

    def describe(self) -> str:
        return f"postgres database {self.database_name!r} on {self.host}:{self.port}"


BackendConfig = Union[EmbeddedConfig, NetworkedConfig]


def _rows_as_dicts(cursor) -> List[Row]:
    # Statements that produce no result set (e.g. DDL) have no description.
    if cursor.description is None:
        return []
    columns = [column[0] for column in cursor.description]
    return [dict(zip(columns, row)) for row in cursor.fetchall()]


class ConnectionHandle:
    """
    A single database session, opened and closed explicitly by its owner.

    The handle is either CLOSED (no session) or OPEN. Driver errors are never
    raised out of `open`, `close`, `query` or `update`; they are returned as
    `SQLConnectionError` values, logged, and passed to `on_error` if one was
    given.

    The handle does no locking. Callers sharing one across threads must
    serialise access themselves.
    """

    def __init__(
        self,
        config: BackendConfig,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._config = config
        self._on_error = on_error
        self._session = None

    @classmethod
    def embedded(
        cls,
        file_path: str,
        on_error: Optional[ErrorCallback] = None,
    ) -> ConnectionHandle:
        return cls(EmbeddedConfig(file_path=file_path), on_error=on_error)

    @classmethod
    def networked(
        cls,
        host: str,
        port: int,
        username: str,
        password: str,
        database_name: str,
        on_error: Optional[ErrorCallback] = None,
    ) -> ConnectionHandle:
        config = NetworkedConfig(
            host=host,
            port=port,
            username=username,
            password=password,
            database_name=database_name,
        )
        return cls(config, on_error=on_error)

    @property
    def config(self) -> BackendConfig:
        return self._config

    @property
    def backend_kind(self) -> BackendKind:
        return self._config.kind

    @property
    def file_path(self) -> str:
        if isinstance(self._config, EmbeddedConfig):
            return self._config.file_path
        return ""

    @property
    def host(self) -> str:
        if isinstance(self._config, NetworkedConfig):
            return self._config.host
        return ""

    @property
    def port(self) -> int:
        if isinstance(self._config, NetworkedConfig):
            return self._config.port
        return 0

    @property
    def username(self) -> str:
        if isinstance(self._config, NetworkedConfig):
            return self._config.username
        return ""

    @property
    def password(self) -> str:
        if isinstance(self._config, NetworkedConfig):
            return self._config.password
        return ""

    @property
    def database_name(self) -> str:
        if isinstance(self._config, NetworkedConfig):
            return self._config.database_name
        return ""

    def is_open(self) -> bool:
        return self._session is not None

    def open(self) -> Optional[ConnectionFailure]:
        """
        Open the session unless it is already open.

        Returns None on success (or when already open), otherwise the
        `ConnectionFailure`. A failed open leaves the handle closed, so the
        caller may simply try again later.
        """

        if self.is_open():
            return None

        try:
            self._session = self._config.connect(self._build_address())
        except self._config.driver_errors as exc:
            failure = ConnectionFailure(
                f"Could not open {self._config.describe()}: {exc}", exc
            )
            return self._report(failure, logging.WARNING)

        logger.info("Opened %s", self._config.describe())
        return None

    def close(self) -> Optional[CloseFailure]:
        """
        Release the session if one is open.

        The handle ends up closed even when the driver fails to release the
        session; that failure is returned as a `CloseFailure`.
        """

        if not self.is_open():
            return None

        session, self._session = self._session, None
        try:
            session.close()
        except self._config.driver_errors as exc:
            failure = CloseFailure(
                f"Error while closing {self._config.describe()}: {exc}", exc
            )
            return self._report(failure, logging.ERROR)

        logger.info("Closed %s", self._config.describe())
        return None

    def query(self, statement: str, *parameters: str) -> QueryResult:
        """Run a read statement and return its rows as column → value dicts."""

        if not self.is_open():
            return QueryResult(error=self._not_open("query"))

        try:
            cursor = self._session.cursor()
            try:
                cursor.execute(self._config.prepare(statement, parameters), parameters)
                rows = _rows_as_dicts(cursor)
            finally:
                cursor.close()
        except self._config.driver_errors as exc:
            return QueryResult(error=self._execution_failure("query", exc))

        logger.debug("Query returned %d row(s)", len(rows))
        return QueryResult(rows=rows)

    def update(self, statement: str, *parameters: str) -> UpdateResult:
        """
        Run a write statement and return how many rows it affected.

        Statements the driver reports no count for (DDL) count as 0.
        """

        if not self.is_open():
            return UpdateResult(error=self._not_open("update"))

        try:
            cursor = self._session.cursor()
            try:
                cursor.execute(self._config.prepare(statement, parameters), parameters)
                affected_rows = max(cursor.rowcount, 0)
            finally:
                cursor.close()
        except self._config.driver_errors as exc:
            return UpdateResult(error=self._execution_failure("update", exc))

        logger.debug("Update affected %d row(s)", affected_rows)
        return UpdateResult(affected_rows=affected_rows)

    def _build_address(self) -> str:
        return self._config.build_address()

    def _not_open(self, operation: str) -> ExecutionFailure:
        failure = ExecutionFailure(
            f"Cannot run {operation}: {self._config.describe()} is not open"
        )
        return self._report(failure, logging.ERROR)

    def _execution_failure(self, operation: str, exc: BaseException) -> ExecutionFailure:
        failure = ExecutionFailure(
            f"{operation.capitalize()} failed on {self._config.describe()}: {exc}", exc
        )
        return self._report(failure, logging.ERROR)

    def _report(self, error, level: int):
        logger.log(level, "%s", error)
        if self._on_error is not None:
            self._on_error(error)
        return error
