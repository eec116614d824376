import unittest
import os
import sys
import json
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from stendat.booking.error_utils import InvalidCredentialsError
from stendat.booking.models import User
from stendat.booking.user_service import SessionHolder, authenticate, user_initials
from tests.fakes import FakeStore


class SessionHolderTest(unittest.TestCase):
    def setUp(self):
        self.storage = {}
        self.holder = SessionHolder(self.storage)
        self.user = User(id=7, username="elira", name="Elira Shala", email="e@example.com",
                         role="user", password="secret")

    def test_absent_user(self):
        self.assertIsNone(self.holder.get_current_user())

    def test_stores_serialized_user_without_password(self):
        self.holder.set_current_user(self.user)
        stored = json.loads(self.storage["currentUser"])
        self.assertEqual(stored["id"], 7)
        self.assertNotIn("password", stored)
        restored = self.holder.get_current_user()
        self.assertEqual(restored, self.user)
        self.assertIsNone(restored.password)

    def test_clearing_removes_key(self):
        self.holder.set_current_user(self.user)
        self.holder.set_current_user(None)
        self.assertNotIn("currentUser", self.storage)

    def test_unreadable_entry_is_discarded(self):
        self.storage["currentUser"] = "{not json"
        self.assertIsNone(self.holder.get_current_user())
        self.assertNotIn("currentUser", self.storage)


class AuthenticateTest(unittest.TestCase):
    def setUp(self):
        self.user = User(id=1, username="besa", name="Besa Leka", password="pw")
        self.store = FakeStore(users=[self.user])

    def test_valid_credentials(self):
        self.assertEqual(authenticate(self.store, "besa", "pw"), self.user)

    def test_wrong_password(self):
        with self.assertRaises(InvalidCredentialsError):
            authenticate(self.store, "besa", "nope")

    def test_unknown_user(self):
        with self.assertRaises(InvalidCredentialsError):
            authenticate(self.store, "ghost", "pw")


class InitialsTest(unittest.TestCase):
    def test_initials(self):
        self.assertEqual(user_initials("besa"), "B")
        self.assertEqual(user_initials("Besa Leka"), "BL")
        self.assertEqual(user_initials("ana maria gjoni"), "AG")
        self.assertEqual(user_initials(""), "")
        self.assertEqual(user_initials("   "), "")


if __name__ == '__main__':
    unittest.main()
