import unittest
import uuid
from unittest import mock

from domain.models import PlayerRecord


class PlayerRecordTests(unittest.TestCase):
    def setUp(self) -> None:
        self.player_id = uuid.UUID("069a79f4-44e9-4726-a5be-fca90e38aaf5")

    def test_records_with_same_id_are_equal(self):
        first = PlayerRecord(self.player_id, "Notch", 1000)
        renamed = PlayerRecord(self.player_id, "notch_", 2000)
        self.assertEqual(first, renamed)
        self.assertEqual(len({first, renamed}), 1)

    def test_records_with_different_ids_differ(self):
        other = PlayerRecord(uuid.uuid4(), "Notch", 1000)
        self.assertNotEqual(PlayerRecord(self.player_id, "Notch", 1000), other)

    def test_fields_are_mutable(self):
        player = PlayerRecord(self.player_id, "Notch", 1000)
        player.display_name = "jeb_"
        player.last_seen = 5000
        self.assertEqual(player.display_name, "jeb_")
        self.assertEqual(player.last_seen, 5000)

    def test_observed_defaults_to_current_time_in_millis(self):
        with mock.patch("domain.models.time.time", return_value=1700000000.25):
            player = PlayerRecord.observed(self.player_id, "Notch")
        self.assertEqual(player.last_seen, 1700000000250)

    def test_observed_keeps_explicit_timestamp(self):
        player = PlayerRecord.observed(self.player_id, "Notch", last_seen=42)
        self.assertEqual(player.last_seen, 42)


if __name__ == "__main__":
    unittest.main()
