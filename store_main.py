import logging
import sys

from dotenv import load_dotenv

from config import connection_from_env
from infrastructure.db.connection import SQLConnectionError
from infrastructure.db.player_repository_sql import SqlPlayerRepository

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger("store_main")


def setup_logging(level: int = logging.INFO) -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # clear existing handlers to avoid duplicates on repeated calls
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root_logger.addHandler(handler)


def main() -> int:
    load_dotenv()
    setup_logging()

    connection = connection_from_env()
    if connection.open() is not None:
        logger.error("Player store is unavailable, giving up.")
        return 1

    try:
        players = SqlPlayerRepository(connection)
        players.ensure_schema()
        logger.info("Player store ready, %d known player(s).", len(players.get_all_players()))
    except SQLConnectionError as exc:
        logger.error("Player store check failed: %s", exc)
        return 1
    finally:
        connection.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
