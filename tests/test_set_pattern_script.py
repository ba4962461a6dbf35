"""Tests for the set_pattern operator script."""

import unittest
from unittest.mock import patch

from app.models import AuthPattern
from app.scripts import set_pattern
from app.services.profile_store import ProfileStore
from tests.support import sqlite_session


class TestSetPatternScript(unittest.TestCase):
    def setUp(self) -> None:
        self.db = sqlite_session()
        ProfileStore(self.db).insert_profile("acc-1", "ana", "ana@acme.io")
        patcher = patch.object(set_pattern, "SessionLocal", return_value=self.db)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self.db.close)

    def test_stores_pattern_for_existing_profile(self) -> None:
        self.assertEqual(set_pattern.main(["ANA@acme.io", "1-5-9"]), 0)
        row = self.db.query(AuthPattern).one()
        self.assertEqual(row.account_id, "acc-1")
        self.assertEqual(row.email, "ana@acme.io")

    def test_unknown_email(self) -> None:
        self.assertEqual(set_pattern.main(["zoe@acme.io", "1-5-9"]), 1)
        self.assertEqual(self.db.query(AuthPattern).count(), 0)

    def test_invalid_input(self) -> None:
        self.assertEqual(set_pattern.main(["ana", "1-5-9"]), 1)
        self.assertEqual(set_pattern.main(["ana@acme.io", "12"]), 1)
