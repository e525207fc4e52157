from __future__ import annotations

import unittest
from datetime import datetime, timezone

from firestore_stub import FakeFirestore

from skahl_stats.ingestion.schedules import NoActiveSchedule
from skahl_stats.ingestion.sportninja_client import ApiError
from skahl_stats.ingestion.sync import sync_active_schedule
from skahl_stats.models import collection_names

NOW = datetime(2024, 5, 20, tzinfo=timezone.utc)


class _StubClient:
    def __init__(self) -> None:
        self.schedules = [
            {"id": "s0", "name": "Winter", "starts_at": "2023-09-01", "ends_at": "2024-01-01", "season_id": "old"},
            {"id": "s1", "name": "Spring 2024", "starts_at": "2024-01-01", "ends_at": "2024-06-30", "season_id": "season-9"},
        ]
        self.games = {
            "s1": [
                {
                    "id": "g1",
                    "starts_at": "2024-05-15T19:00:00Z",
                    "homeTeam": {"id": "t1", "name": "Ice Hogs"},
                    "visitingTeam": {"id": "t2", "name": "Pucks"},
                    "home_team_score": 3,
                    "visiting_team_score": 1,
                },
                {
                    "id": "g2",
                    "started_at": "2024-06-01T19:00:00Z",
                    "homeTeam": {"id": "t2", "name": "Pucks"},
                    "visitingTeam": {"id": "t1", "name": "Ice Hogs"},
                },
                {"name": "no id"},
            ]
        }
        self.rosters = {
            "t1": [{"id": "r-old", "schedule_id": "s0"}, {"id": "r1", "schedule_id": "s1"}],
            "t2": ApiError(500, "server error"),
        }
        self.players = {("t1", "r1"): [{"id": "p1", "name_first": "Ann", "name_last": "Smith"}, {"name_last": "No Id"}]}
        self.roster_player_calls: list[tuple[str, str]] = []

    def fetch_schedules(self, org_id):
        return self.schedules

    def fetch_schedule_games(self, schedule_id):
        return self.games.get(schedule_id, [])

    def fetch_team_rosters(self, team_id):
        rosters = self.rosters[team_id]
        if isinstance(rosters, Exception):
            raise rosters
        return rosters

    def fetch_roster_players(self, team_id, roster_id):
        self.roster_player_calls.append((team_id, roster_id))
        return self.players.get((team_id, roster_id), [])


class SyncActiveScheduleTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = FakeFirestore()
        self.collections = collection_names()
        self.client = _StubClient()

    def test_sync_writes_games_teams_and_rosters(self) -> None:
        with self.assertLogs("skahl_stats.ingestion.sync", level="INFO"):
            result = sync_active_schedule(self.client, self.db, self.collections, "org", now=NOW)

        self.assertEqual("s1", result.schedule_id)
        self.assertEqual(3, result.games_fetched)
        self.assertEqual(2, result.games_written)
        self.assertEqual(2, result.teams_written)
        self.assertEqual(1, result.players_written)
        self.assertEqual(1, result.roster_errors)

        game = self.db.data("games", "g1")
        self.assertEqual("s1", game["scheduleId"])
        self.assertEqual("Spring 2024", game["scheduleName"])
        self.assertEqual("season-9", game["seasonId"])
        self.assertEqual(3, game["homeTeam"]["score"])
        self.assertNotIn("has_details", game)
        self.assertEqual("2024-06-01T19:00:00.000Z", self.db.data("games", "g2")["starts_at"])
        self.assertEqual("season-9", self.db.data("teams", "t2")["seasonId"])
        self.assertEqual("Smith", self.db.data("teams", "t1", "roster", "p1")["name_last"])
        self.assertEqual([("t1", "r1")], self.client.roster_player_calls)

    def test_unexpected_roster_error_does_not_stop_other_teams(self) -> None:
        self.client.rosters = {"t1": RuntimeError("bad payload"), "t2": [{"id": "r2"}]}
        self.client.players = {("t2", "r2"): [{"id": "p9", "name_last": "Jones"}]}

        with self.assertLogs("skahl_stats.ingestion.sync", level="ERROR"):
            result = sync_active_schedule(self.client, self.db, self.collections, "org", now=NOW)

        self.assertEqual(1, result.roster_errors)
        self.assertEqual(1, result.players_written)
        self.assertEqual("Jones", self.db.data("teams", "t2", "roster", "p9")["name_last"])

    def test_rerun_preserves_backfilled_fields(self) -> None:
        sync_active_schedule(self.client, self.db, self.collections, "org", now=NOW)
        self.db.documents[("games", "g1")]["has_details"] = True

        sync_active_schedule(self.client, self.db, self.collections, "org", now=NOW)

        self.assertTrue(self.db.data("games", "g1")["has_details"])

    def test_prefixed_collections_are_used(self) -> None:
        sync_active_schedule(self.client, self.db, collection_names("test"), "org", now=NOW)

        self.assertIsNotNone(self.db.data("test_games", "g1"))
        self.assertIsNotNone(self.db.data("test_teams", "t1"))
        self.assertIsNone(self.db.data("games", "g1"))

    def test_no_active_schedule_propagates(self) -> None:
        with self.assertRaises(NoActiveSchedule):
            sync_active_schedule(self.client, self.db, self.collections, "org", now=datetime(2030, 1, 1, tzinfo=timezone.utc))

        self.assertEqual({}, self.db.documents)

    def test_schedule_fetch_error_propagates(self) -> None:
        def fail(org_id):
            raise ApiError(401, "unauthorized")

        self.client.fetch_schedules = fail

        with self.assertRaises(ApiError):
            sync_active_schedule(self.client, self.db, self.collections, "org", now=NOW)


if __name__ == "__main__":
    unittest.main()
