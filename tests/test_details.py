from __future__ import annotations

import unittest
from datetime import datetime, timezone
from unittest.mock import patch

from firestore_stub import FakeFirestore

from skahl_stats.ingestion.details import backfill_game_details, select_games_needing_details
from skahl_stats.models import collection_names

NOW = datetime(2024, 5, 20, tzinfo=timezone.utc)


class _StubClient:
    def __init__(self, details: dict):
        self.details = details
        self.requested: list[str] = []

    def fetch_game_detail(self, game_id: str):
        self.requested.append(game_id)
        detail = self.details.get(game_id)
        if isinstance(detail, Exception):
            raise detail
        return detail


def _detail() -> dict:
    return {
        "id": "g1",
        "periods": [{"id": "per1", "name": "1st"}],
        "goals": [
            {"id": "go1", "shot": {"player_id": "p1", "team_id": "t1"}, "assists": []},
            {"id": "go2", "shot": {"player_id": "p2", "team_id": "t1"}, "assists": []},
        ],
        "offenses": [{"id": "pen1", "player_id": "p3", "team_id": "t2", "penalty": {"amount": 2}}],
        "home_team_score": 2,
        "visiting_team_score": 0,
        "game_status_id": 4,
    }


class GameDetailBackfillTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = FakeFirestore()
        self.collections = collection_names()

    def _game(self, game_id: str, starts_at: str, **fields) -> None:
        self.db.put("games", game_id, id=game_id, starts_at=starts_at, **fields)

    def test_selection_skips_future_and_detailed_games(self) -> None:
        self._game("g1", "2024-05-01T19:00:00.000Z")
        self._game("g2", "2024-05-02T19:00:00.000Z", has_details=True)
        self._game("g3", "2024-06-01T19:00:00.000Z")
        self._game("g4", "2024-05-03T19:00:00.000Z", has_details=False)

        selected = select_games_needing_details(self.db, self.collections, NOW, limit=50)

        self.assertEqual(["g1", "g4"], [snapshot.id for snapshot in selected])

    def test_selection_respects_limit(self) -> None:
        for index in range(5):
            self._game(f"g{index}", f"2024-05-0{index + 1}T19:00:00.000Z")

        selected = select_games_needing_details(self.db, self.collections, NOW, limit=2)

        self.assertEqual(2, len(selected))

    def test_backfill_writes_sub_collections_and_marks_game_atomically(self) -> None:
        self._game("g1", "2024-05-01T19:00:00.000Z", homeTeam={"id": "t1", "name": "Ice Hogs"})
        client = _StubClient({"g1": _detail()})

        with patch("skahl_stats.ingestion.details.time.sleep"):
            result = backfill_game_details(client, self.db, self.collections, now=NOW)

        self.assertEqual(1, result.completed)
        self.assertEqual([5], self.db.commits)
        game = self.db.data("games", "g1")
        self.assertTrue(game["has_details"])
        self.assertEqual(NOW, game["lastDetailUpdate"])
        self.assertEqual(2, game["home_team_score"])
        self.assertEqual({"id": "t1", "name": "Ice Hogs", "score": 2}, game["homeTeam"])
        self.assertEqual(0, game["visitingTeam"]["score"])
        self.assertIsNotNone(self.db.data("games", "g1", "goals", "go1"))
        self.assertIsNotNone(self.db.data("games", "g1", "goals", "go2"))
        self.assertEqual(2, self.db.data("games", "g1", "penalties", "pen1")["penalty"]["amount"])
        self.assertEqual("1st", self.db.data("games", "g1", "periods", "per1")["name"])

    def test_missing_detail_leaves_game_for_a_later_run(self) -> None:
        self._game("g1", "2024-05-01T19:00:00.000Z")
        client = _StubClient({"g1": None})

        with patch("skahl_stats.ingestion.details.time.sleep"), self.assertLogs(
            "skahl_stats.ingestion.details", level="WARNING"
        ):
            result = backfill_game_details(client, self.db, self.collections, now=NOW)

        self.assertEqual(1, result.missing)
        self.assertNotIn("has_details", self.db.data("games", "g1"))
        self.assertEqual(["g1"], [s.id for s in select_games_needing_details(self.db, self.collections, NOW)])

    def test_failing_game_does_not_abort_the_chunk(self) -> None:
        self._game("g1", "2024-05-01T19:00:00.000Z")
        self._game("g2", "2024-05-02T19:00:00.000Z")
        client = _StubClient({"g1": RuntimeError("boom"), "g2": _detail()})

        with patch("skahl_stats.ingestion.details.time.sleep") as mock_sleep, self.assertLogs(
            "skahl_stats.ingestion.details", level="ERROR"
        ):
            result = backfill_game_details(client, self.db, self.collections, now=NOW)

        self.assertEqual(["g1", "g2"], client.requested)
        self.assertEqual(1, result.failed)
        self.assertEqual(1, result.completed)
        self.assertNotIn("has_details", self.db.data("games", "g1"))
        self.assertTrue(self.db.data("games", "g2")["has_details"])
        self.assertEqual(1, mock_sleep.call_count)


if __name__ == "__main__":
    unittest.main()
