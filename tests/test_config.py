import unittest

from config import DEFAULT_DB_PATH, connection_from_env
from infrastructure.db.connection import BackendKind


class ConnectionFromEnvTests(unittest.TestCase):
    def test_defaults_to_sqlite(self):
        handle = connection_from_env({})
        self.assertEqual(handle.backend_kind, BackendKind.EMBEDDED)
        self.assertEqual(handle.file_path, DEFAULT_DB_PATH)
        self.assertFalse(handle.is_open())

    def test_sqlite_uses_db_path(self):
        handle = connection_from_env({"DB_BACKEND": "SQLite", "DB_PATH": "/srv/bans.db"})
        self.assertEqual(handle.file_path, "/srv/bans.db")

    def test_postgres_settings(self):
        handle = connection_from_env(
            {
                "DB_BACKEND": "postgres",
                "DB_HOST": "db.example",
                "DB_PORT": "6543",
                "DB_USER": "bans",
                "DB_PASSWORD": "secret",
                "DB_NAME": "network",
            }
        )
        self.assertEqual(handle.backend_kind, BackendKind.NETWORKED)
        self.assertEqual(handle.host, "db.example")
        self.assertEqual(handle.port, 6543)
        self.assertEqual(handle.username, "bans")
        self.assertEqual(handle.password, "secret")
        self.assertEqual(handle.database_name, "network")
        self.assertEqual(handle.file_path, "")

    def test_postgres_port_defaults(self):
        handle = connection_from_env({"DB_BACKEND": "postgres"})
        self.assertEqual(handle.host, "localhost")
        self.assertEqual(handle.port, 5432)

    def test_bad_port_is_rejected(self):
        with self.assertRaises(ValueError):
            connection_from_env({"DB_BACKEND": "postgres", "DB_PORT": "fivefourthreetwo"})

    def test_unknown_backend_is_rejected(self):
        with self.assertRaises(ValueError):
            connection_from_env({"DB_BACKEND": "mongodb"})


if __name__ == "__main__":
    unittest.main()
