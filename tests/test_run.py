from __future__ import annotations

import unittest
from unittest.mock import patch

from firestore_stub import FakeFirestore

from skahl_stats.ingestion.run import main
from skahl_stats.ingestion.token import TokenNotFound


class RunCommandTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = FakeFirestore()
        self.db.put("games", "g1", id="g1")
        client_patch = patch("skahl_stats.ingestion.run.create_client", return_value=self.db)
        client_patch.start()
        self.addCleanup(client_patch.stop)
        env_patch = patch.dict(
            "os.environ",
            {"FIREBASE_PROJECT_ID": "test-project", "COLLECTION_PREFIX": "", "FIREBASE_SERVICE_ACCOUNT": ""},
        )
        env_patch.start()
        self.addCleanup(env_patch.stop)

    def test_purge_requires_confirmation(self) -> None:
        with self.assertRaises(SystemExit):
            main(["purge"])

        self.assertIsNotNone(self.db.data("games", "g1"))

    def test_purge_with_confirmation_deletes_games(self) -> None:
        main(["purge", "--yes"])

        self.assertIsNone(self.db.data("games", "g1"))

    def test_ingest_exits_nonzero_when_token_missing(self) -> None:
        with patch("skahl_stats.ingestion.run.acquire_token", side_effect=TokenNotFound("no token")):
            with self.assertRaises(SystemExit) as ctx:
                main(["ingest"])

        self.assertEqual(1, ctx.exception.code)

    def test_aggregate_runs_without_upstream_access(self) -> None:
        with patch("skahl_stats.ingestion.run.acquire_token") as mock_token:
            main(["aggregate"])

        mock_token.assert_not_called()


if __name__ == "__main__":
    unittest.main()
