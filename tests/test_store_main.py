import os
import tempfile
import unittest
from unittest import mock

import store_main
from infrastructure.db.connection import ConnectionHandle, ExecutionFailure


class StoreMainTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.connection = ConnectionHandle.embedded(os.path.join(self._tmp.name, "players.db"))

        for name in ("load_dotenv", "setup_logging"):
            patcher = mock.patch.object(store_main, name)
            patcher.start()
            self.addCleanup(patcher.stop)

        patcher = mock.patch.object(store_main, "connection_from_env", return_value=self.connection)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_healthy_store_exits_cleanly(self):
        self.assertEqual(store_main.main(), 0)
        self.assertFalse(self.connection.is_open())

    def test_unopenable_store_exits_with_error(self):
        missing = os.path.join(self._tmp.name, "missing", "players.db")
        with mock.patch.object(
            store_main, "connection_from_env", return_value=ConnectionHandle.embedded(missing)
        ):
            self.assertEqual(store_main.main(), 1)

    def test_execution_failure_exits_with_error_and_closes(self):
        with mock.patch.object(
            store_main.SqlPlayerRepository,
            "ensure_schema",
            side_effect=ExecutionFailure("table is locked"),
        ):
            self.assertEqual(store_main.main(), 1)
        self.assertFalse(self.connection.is_open())


if __name__ == "__main__":
    unittest.main()
