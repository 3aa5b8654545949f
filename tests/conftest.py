"""
Pytest configuration for School Admin Backend tests.
Sets up the Python path, a frozen clock and in-memory storage services.
"""

import asyncio
import os
import sys
from pathlib import Path
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

# Add the project root to Python path for all tests
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set up test environment variables
os.environ.setdefault("DATABASE_HOST", "localhost")
os.environ.setdefault("DATABASE_PORT", "5432")
os.environ.setdefault("DATABASE_NAME", "school_admin")
os.environ.setdefault("DATABASE_USER", "myuser")
os.environ.setdefault("DATABASE_PASSWORD", "mypassword")

from school_admin.core.config_manager import ApplicationSettings  # noqa: E402
from school_admin.utils.password_hashing import PasswordHasher  # noqa: E402

TEST_JWT_SECRET = "test-signing-secret-0123456789abcdef"

# bcrypt is slow on purpose; hash each test password once per session
_password_hash_cache: Dict[str, str] = {}


def hash_password_cached(password: str) -> str:
    if password not in _password_hash_cache:
        _password_hash_cache[password] = PasswordHasher.hash_password(password)
    return _password_hash_cache[password]


# ============================================================================
# CLOCK
# ============================================================================


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None):
        self.current = start or datetime.now(timezone.utc).replace(microsecond=0)

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


# ============================================================================
# IN-MEMORY STORAGE SERVICES
# ============================================================================


class InMemoryUsersService:
    """Credential Store double keyed by id."""

    def __init__(self):
        self.users: Dict[int, Dict[str, Any]] = {}
        self.fail_with: Optional[Exception] = None

    def add_user(
        self, username: str, password: str, role: str, email: Optional[str] = None
    ) -> Dict[str, Any]:
        user_id = len(self.users) + 1
        user = {
            "id": user_id,
            "username": username,
            "email": email or f"{username}@school.example.com",
            "password_hash": hash_password_cached(password),
            "role": role,
        }
        self.users[user_id] = user
        return user

    async def get_user_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        if self.fail_with:
            raise self.fail_with
        for user in self.users.values():
            if user["username"] == username:
                return dict(user)
        return None

    async def get_user_by_id(self, user_id: int) -> Optional[Dict[str, Any]]:
        if self.fail_with:
            raise self.fail_with
        user = self.users.get(user_id)
        return dict(user) if user else None


class InMemoryPermissionsService:
    """Permission Resolver double: role name -> permission names."""

    def __init__(self, grants: Optional[Dict[str, List[str]]] = None):
        self.grants: Dict[str, List[str]] = grants or {}
        self.fail_with: Optional[Exception] = None
        self.calls = 0

    async def get_permissions_for_role(self, role_name: str) -> List[str]:
        self.calls += 1
        if self.fail_with:
            raise self.fail_with
        return list(self.grants.get(role_name, []))

    async def get_permissions_for_roles(self, role_names) -> List[str]:
        if self.fail_with:
            raise self.fail_with
        merged = set()
        for role_name in role_names:
            merged.update(self.grants.get(role_name, []))
        return sorted(merged)

    async def list_role_permissions(self) -> Dict[str, Any]:
        if self.fail_with:
            raise self.fail_with
        names = sorted({p for perms in self.grants.values() for p in perms})
        ids = {name: index + 1 for index, name in enumerate(names)}
        return {
            "roles": [
                {
                    "id": index + 1,
                    "name": role,
                    "permissions": [{"id": ids[p], "name": p} for p in perms],
                }
                for index, (role, perms) in enumerate(self.grants.items())
            ],
            "all_permissions": [{"id": ids[name], "name": name} for name in names],
        }


class InMemoryRefreshSessionsService:
    """
    Session Store double.

    consume_active_session yields to the event loop before its
    check-and-set, so concurrent callers interleave the way two requests
    would. The check-and-set itself never awaits.
    """

    def __init__(self):
        self.rows: List[Dict[str, Any]] = []
        self.fail_with: Optional[Exception] = None

    def _check(self):
        if self.fail_with:
            raise self.fail_with

    async def create_session(self, user_id, token_hash, expires_at, created_at):
        self._check()
        if any(row["token_hash"] == token_hash for row in self.rows):
            raise ValueError("duplicate token_hash")
        row = {
            "id": len(self.rows) + 1,
            "user_id": user_id,
            "token_hash": token_hash,
            "created_at": created_at,
            "expires_at": expires_at,
            "revoked_at": None,
        }
        self.rows.append(row)
        return dict(row)

    async def consume_active_session(self, token_hash, now):
        self._check()
        await asyncio.sleep(0)
        for row in self.rows:
            if (
                row["token_hash"] == token_hash
                and row["revoked_at"] is None
                and row["expires_at"] > now
            ):
                row["revoked_at"] = now
                return {"id": row["id"], "user_id": row["user_id"]}
        return None

    async def revoke_session_by_hash(self, token_hash, now):
        self._check()
        revoked = 0
        for row in self.rows:
            if row["token_hash"] == token_hash and row["revoked_at"] is None:
                row["revoked_at"] = now
                revoked += 1
        return revoked

    async def revoke_all_for_user(self, user_id, now):
        self._check()
        revoked = 0
        for row in self.rows:
            if row["user_id"] == user_id and row["revoked_at"] is None:
                row["revoked_at"] = now
                revoked += 1
        return revoked

    def active_rows(self, now) -> List[Dict[str, Any]]:
        return [
            row
            for row in self.rows
            if row["revoked_at"] is None and row["expires_at"] > now
        ]


# ============================================================================
# FIXTURES
# ============================================================================

DEFAULT_GRANTS = {
    "SUPER_ADMIN": [
        "CREATE_STUDENT",
        "VIEW_STUDENT",
        "CREATE_TEACHER",
        "MANAGE_FEES",
        "VIEW_REPORT",
    ],
    "ADMIN": ["CREATE_TEACHER", "MANAGE_FEES", "VIEW_REPORT"],
    "REGISTRAR": ["CREATE_STUDENT", "VIEW_STUDENT"],
    "TEACHER": ["VIEW_STUDENT"],
    "STUDENT": [],
}


@pytest.fixture
def test_settings():
    """Settings isolated from any .env file, with a fixed signing secret."""
    return ApplicationSettings(
        _env_file=None,
        jwt_secret_key=TEST_JWT_SECRET,
        jwt_refresh_token_secret="test-refresh-hmac-secret",
    )


@pytest.fixture
def frozen_clock():
    return FrozenClock()


@pytest.fixture
def users_store():
    """Users: superadmin, admin, registrar, alice (TEACHER), student."""
    store = InMemoryUsersService()
    store.add_user("superadmin", "SuperAdmin@123", "SUPER_ADMIN")
    store.add_user("admin", "Admin@123", "ADMIN")
    store.add_user("registrar", "Registrar@123", "REGISTRAR")
    store.add_user("alice", "correct", "TEACHER")
    store.add_user("student", "Student@123", "STUDENT")
    return store


@pytest.fixture
def permissions_store():
    return InMemoryPermissionsService({k: list(v) for k, v in DEFAULT_GRANTS.items()})


@pytest.fixture
def sessions_store():
    return InMemoryRefreshSessionsService()


@pytest.fixture
def service_container(
    test_settings, frozen_clock, users_store, permissions_store, sessions_store
):
    """ServiceContainer wired to the in-memory stores."""
    from school_admin.core.service_container import ServiceContainer

    return ServiceContainer.build(
        database_manager=None,
        settings=test_settings,
        clock=frozen_clock,
        users_service=users_store,
        permissions_service=permissions_store,
        sessions_service=sessions_store,
    )


@pytest.fixture
def token_service(service_container):
    return service_container.token_service


@pytest.fixture
def auth_service(service_container):
    return service_container.auth_service


@pytest.fixture
def make_claims():
    """Factory for AccessTokenClaims without minting a token."""
    from school_admin.auth.models import AccessTokenClaims

    def _make(role: str, permissions=None, user_id: int = 1, embedded: bool = True):
        now = datetime.now(timezone.utc)
        return AccessTokenClaims(
            user_id=user_id,
            role=role,
            permissions=permissions or [],
            permissions_embedded=embedded,
            exp=now + timedelta(minutes=15),
            iat=now,
            type="access",
        )

    return _make
