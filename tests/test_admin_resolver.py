import asyncio
from typing import Optional

import pytest

from core.repositories.errors import StoreError
from core.services.admin_procedure import AdminProcedure
from core.services.identity_provider import IdentityProvider
from core.use_cases.admin_use_cases import (
    AccessDecision,
    TIER_EMAIL,
    TIER_MEMBERSHIP,
    TIER_PROCEDURE,
    ensure_membership,
    is_admin,
    resolve_access,
    resolve_admin,
)
from infrastructure.db.sqlite import SQLiteAdminRepository


class StaticIdentity(IdentityProvider):
    def __init__(self, email: Optional[str]):
        self.email = email

    def current_email(self) -> Optional[str]:
        return self.email


class StubProcedure(AdminProcedure):
    def __init__(self, result=False, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls = []

    def is_admin(self, user_id: int) -> bool:
        self.calls.append(user_id)
        if self.error:
            raise self.error
        return self.result


class BrokenAdminRepo(SQLiteAdminRepository):
    def find_membership(self, user_id):
        raise StoreError("admin_users unavailable")


class ReadOnlyAdminRepo(SQLiteAdminRepository):
    def insert_membership(self, user_id):
        raise StoreError("read only")


class UnreachableIdentity(IdentityProvider):
    def current_email(self) -> Optional[str]:
        raise ConnectionError("auth service unreachable")


class UnreachableAdminRepo(SQLiteAdminRepository):
    def find_membership(self, user_id):
        raise ConnectionError("admin_users unreachable")


def test_resolve_access_policy():
    assert resolve_access([AccessDecision.DENIED, AccessDecision.GRANTED]) is True
    assert resolve_access([AccessDecision.INDETERMINATE, AccessDecision.DENIED]) is False
    assert resolve_access([]) is False


def test_admin_email_is_granted_without_membership(admin_repo, admin_email, count_rows):
    procedure = StubProcedure()
    resolution = asyncio.run(resolve_admin(1, StaticIdentity(admin_email), admin_repo, procedure, admin_email))

    assert resolution.granted is True
    assert resolution.tier == TIER_EMAIL
    assert procedure.calls == []
    assert count_rows("admin_users") == 0


def test_email_match_is_case_insensitive(admin_repo, admin_email):
    identity = StaticIdentity(admin_email.upper())
    assert asyncio.run(is_admin(1, identity, admin_repo, StubProcedure(), admin_email)) is True


def test_member_is_granted_with_other_email(admin_repo, admin_email):
    admin_repo.insert_membership(42)
    procedure = StubProcedure()
    resolution = asyncio.run(
        resolve_admin(42, StaticIdentity("someone@example.com"), admin_repo, procedure, admin_email)
    )

    assert resolution.granted is True
    assert resolution.tier == TIER_MEMBERSHIP
    assert procedure.calls == []


def test_procedure_grants_when_other_tiers_deny(admin_repo, admin_email):
    resolution = asyncio.run(
        resolve_admin(5, StaticIdentity("someone@example.com"), admin_repo, StubProcedure(result=True), admin_email)
    )
    assert resolution.granted is True
    assert resolution.tier == TIER_PROCEDURE


def test_procedure_must_return_exactly_true(admin_repo, admin_email):
    identity = StaticIdentity("someone@example.com")
    assert asyncio.run(is_admin(5, identity, admin_repo, StubProcedure(result=1), admin_email)) is False
    assert asyncio.run(is_admin(5, identity, admin_repo, StubProcedure(result="true"), admin_email)) is False


def test_everyone_else_is_denied(admin_repo, admin_email):
    resolution = asyncio.run(
        resolve_admin(5, StaticIdentity("someone@example.com"), admin_repo, StubProcedure(), admin_email)
    )
    assert resolution.granted is False
    assert resolution.tier is None
    assert [d for _, d in resolution.decisions] == [AccessDecision.DENIED] * 3


def test_membership_error_falls_through_to_procedure(conn, admin_email):
    procedure = StubProcedure(result=True)
    resolution = asyncio.run(
        resolve_admin(5, StaticIdentity(None), BrokenAdminRepo(conn), procedure, admin_email)
    )
    assert resolution.granted is True
    assert resolution.tier == TIER_PROCEDURE
    assert resolution.decisions[1] == (TIER_MEMBERSHIP, AccessDecision.INDETERMINATE)
    assert procedure.calls == [5]


def test_identity_connection_error_is_indeterminate(admin_repo, admin_email):
    admin_repo.insert_membership(5)
    resolution = asyncio.run(
        resolve_admin(5, UnreachableIdentity(), admin_repo, StubProcedure(), admin_email)
    )
    assert resolution.decisions[0] == (TIER_EMAIL, AccessDecision.INDETERMINATE)
    assert resolution.granted is True
    assert resolution.tier == TIER_MEMBERSHIP


def test_membership_connection_error_falls_through(conn, admin_email):
    procedure = StubProcedure()
    resolution = asyncio.run(
        resolve_admin(5, StaticIdentity("someone@example.com"), UnreachableAdminRepo(conn), procedure, admin_email)
    )
    assert resolution.granted is False
    assert resolution.decisions[1] == (TIER_MEMBERSHIP, AccessDecision.INDETERMINATE)
    assert procedure.calls == [5]


def test_ensure_membership_reports_connection_errors(conn, count_rows):
    assert asyncio.run(ensure_membership(UnreachableAdminRepo(conn), 9)) is False
    assert count_rows("admin_users") == 0


def test_procedure_error_is_swallowed(admin_repo, admin_email):
    procedure = StubProcedure(error=RuntimeError("rpc down"))
    resolution = asyncio.run(
        resolve_admin(5, StaticIdentity("someone@example.com"), admin_repo, procedure, admin_email)
    )
    assert resolution.granted is False
    assert resolution.decisions[-1] == (TIER_PROCEDURE, AccessDecision.INDETERMINATE)


def test_empty_user_id_is_denied(admin_repo, admin_email):
    procedure = StubProcedure(result=True)
    assert asyncio.run(is_admin(None, StaticIdentity(admin_email), admin_repo, procedure, admin_email)) is False
    assert procedure.calls == []


def test_sqlite_procedure_reads_user_flag(user_repo, procedure):
    admin = user_repo.create_user("ops@example.com", "hash", is_admin=True)
    plain = user_repo.create_user("user@example.com", "hash")
    assert procedure.is_admin(admin.id) is True
    assert procedure.is_admin(plain.id) is False
    assert procedure.is_admin(999) is False


def test_ensure_membership_is_idempotent(admin_repo, count_rows):
    assert asyncio.run(ensure_membership(admin_repo, 9)) is True
    assert asyncio.run(ensure_membership(admin_repo, 9)) is True
    assert count_rows("admin_users") == 1
    assert admin_repo.find_membership(9).user_id == 9


def test_ensure_membership_reports_write_errors(conn):
    assert asyncio.run(ensure_membership(ReadOnlyAdminRepo(conn), 9)) is False


def test_ensure_membership_existing_row_skips_write(conn):
    repo = ReadOnlyAdminRepo(conn)
    SQLiteAdminRepository(conn).insert_membership(9)
    assert asyncio.run(ensure_membership(repo, 9)) is True


@pytest.mark.parametrize("user_id", [None, 0])
def test_ensure_membership_requires_user(admin_repo, user_id):
    assert asyncio.run(ensure_membership(admin_repo, user_id)) is False


def test_admin_email_then_membership_scenario(admin_repo, admin_email, count_rows):
    identity = StaticIdentity(admin_email)
    assert asyncio.run(is_admin(11, identity, admin_repo, StubProcedure(), admin_email)) is True
    assert asyncio.run(ensure_membership(admin_repo, 11)) is True
    assert asyncio.run(ensure_membership(admin_repo, 11)) is True
    assert count_rows("admin_users") == 1

    # дальше пользователь проходит по членству даже без email
    resolution = asyncio.run(
        resolve_admin(11, StaticIdentity("other@example.com"), admin_repo, StubProcedure(), admin_email)
    )
    assert resolution.tier == TIER_MEMBERSHIP
