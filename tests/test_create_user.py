"""Tests for the out-of-band provisioning script (app.scripts.create_user)."""

import unittest
from unittest.mock import patch

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import Base, User
from app.scripts import create_user

from tests.fakes import fast_hasher


class TestCreateUserScript(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine, autoflush=False)
        patcher_session = patch.object(create_user, "SessionLocal", self.Session)
        patcher_hasher = patch.object(create_user, "PasswordHasher", lambda rounds: fast_hasher())
        patcher_session.start()
        patcher_hasher.start()
        self.addCleanup(patcher_session.stop)
        self.addCleanup(patcher_hasher.stop)

    def tearDown(self) -> None:
        self.engine.dispose()

    def _users(self) -> list[User]:
        db = self.Session()
        try:
            return db.query(User).order_by(User.id).all()
        finally:
            db.close()

    def test_creates_admin(self) -> None:
        code = create_user.main(["Admin", "Admin@Adikart.com", "adminpass", "admin"])
        self.assertEqual(code, 0)
        users = self._users()
        self.assertEqual(len(users), 1)
        self.assertEqual(users[0].email, "admin@adikart.com")
        self.assertEqual(users[0].role, "admin")

    def test_default_role_is_user(self) -> None:
        self.assertEqual(create_user.main(["Ann", "ann@x.com", "secret1"]), 0)
        self.assertEqual(self._users()[0].role, "user")

    def test_refuses_second_admin(self) -> None:
        create_user.main(["Admin", "admin@adikart.com", "adminpass", "admin"])
        code = create_user.main(["Other", "other@adikart.com", "adminpass", "admin"])
        self.assertEqual(code, 1)
        self.assertEqual(len(self._users()), 1)

    def test_rejects_short_password(self) -> None:
        self.assertEqual(create_user.main(["Ann", "ann@x.com", "123"]), 1)
        self.assertEqual(self._users(), [])

    def test_rejects_duplicate_email(self) -> None:
        create_user.main(["Ann", "ann@x.com", "secret1"])
        self.assertEqual(create_user.main(["Ann", "ANN@x.com", "secret1"]), 1)


if __name__ == "__main__":
    unittest.main()
