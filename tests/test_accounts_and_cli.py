from datetime import date, timedelta

import pytest
from sqlalchemy import func, select

from models import db
from models.bus import Bus
from models.route import Route
from models.trip import Trip
from models.user import ROLE_ADMIN, ROLE_USER, User
from security.accounts import authenticate, ensure_account, has_role
from security.password import hash_password, verify_password
from utils.seed import seed_accounts, seed_catalog


def _count(model) -> int:
    return db.session.scalar(select(func.count()).select_from(model))


class TestPasswords:
    def test_hash_roundtrip(self, app):
        hashed = hash_password("s3cret")

        assert hashed != "s3cret"
        assert verify_password("s3cret", hashed)
        assert not verify_password("wrong", hashed)

    def test_empty_password_rejected(self, app):
        with pytest.raises(ValueError):
            hash_password("")

    def test_malformed_hash_never_verifies(self, app):
        assert not verify_password("s3cret", "not-a-bcrypt-hash")
        assert not verify_password("", "whatever")


class TestAccounts:
    def test_seed_creates_the_two_fixed_accounts(self, app):
        seed_accounts()

        admin = authenticate("admin", "admin123")
        user = authenticate("user", "user123")
        assert has_role(admin, ROLE_ADMIN)
        assert has_role(user, ROLE_USER)
        assert not has_role(user, ROLE_ADMIN)
        assert _count(User) == 2

    def test_seed_is_idempotent_and_keeps_passwords(self, app):
        seed_accounts()
        original = db.session.get(User, "admin").password_hash

        seed_accounts()

        assert _count(User) == 2
        assert db.session.get(User, "admin").password_hash == original

    @pytest.mark.parametrize("username, password", [
        ("admin", "wrong"),
        ("nobody", "admin123"),
        ("", "admin123"),
        ("admin", ""),
        (None, None),
    ])
    def test_bad_credentials(self, app, username, password):
        seed_accounts()

        assert authenticate(username, password) is None
        assert not has_role(authenticate(username, password), ROLE_ADMIN)

    def test_unknown_role_rejected(self, app):
        with pytest.raises(ValueError):
            ensure_account("guest", "pw", "superuser")


class TestSeedCatalog:
    def test_demo_catalog(self, app):
        today = date(2026, 10, 18)

        added = seed_catalog(today=today)

        assert added == 6
        assert (_count(Bus), _count(Route), _count(Trip)) == (2, 2, 2)
        dates = sorted(t.travel_date for t in db.session.scalars(select(Trip)))
        assert dates == [today + timedelta(days=1), today + timedelta(days=2)]

    def test_second_run_adds_nothing(self, app):
        seed_catalog()

        assert seed_catalog() == 0
        assert _count(Trip) == 2


class TestCli:
    def test_init_db(self, app):
        result = app.test_cli_runner().invoke(args=["init-db"])

        assert result.exit_code == 0
        assert "Database tables created" in result.output

    def test_seed_demo(self, app):
        runner = app.test_cli_runner()

        first = runner.invoke(args=["seed-demo"])
        second = runner.invoke(args=["seed-demo"])

        assert first.exit_code == 0, first.output
        assert "Catalog rows added: 6" in first.output
        assert "Catalog rows added: 0" in second.output
        assert authenticate("admin", "admin123") is not None

    def test_seed_demo_accounts_only(self, app):
        result = app.test_cli_runner().invoke(args=["seed-demo", "--skip-catalog"])

        assert result.exit_code == 0
        assert _count(User) == 2
        assert _count(Bus) == 0
