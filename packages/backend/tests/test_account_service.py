"""Account procedure tests — signup, login, logout, me, external sync.

Learn: Tests cover:
1. Signup creates role=user / status=active accounts, stripped of the hash
2. Validation order: name → email format → email taken → password strength
3. Login failure messages are identical for unknown email and bad password
4. Inactive accounts get Forbidden only after the password verifies
5. Owner identity is promoted on external upsert, never on signup
"""

import asyncio

import pytest

from userdesk.db.models import UserRole, UserStatus
from userdesk.errors import Conflict, Forbidden, InvalidArgument, Unauthenticated
from userdesk.services.account_service import INVALID_CREDENTIALS
from conftest import OWNER_IDENTITY, STRONG_PASSWORD, seed_user


# ═══════════════════════════════════════════════════════════
# Signup
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_signup_creates_plain_active_user(accounts, store):
    result = await accounts.signup("Ann", "ann@example.com", STRONG_PASSWORD)
    assert result.success is True
    assert result.user.email == "ann@example.com"
    assert result.user.role == UserRole.USER
    assert result.user.status == UserStatus.ACTIVE
    assert result.user.login_method == "email"
    assert "password_hash" not in result.user.model_dump()

    stored = await store.find_by_email("ann@example.com")
    assert stored.password_hash and stored.password_hash != STRONG_PASSWORD
    assert stored.identity.startswith("email_")


@pytest.mark.asyncio
async def test_signup_identities_are_unique(accounts):
    a = await accounts.signup("A", "a@example.com", STRONG_PASSWORD)
    b = await accounts.signup("B", "b@example.com", STRONG_PASSWORD)
    assert a.user.identity != b.user.identity


@pytest.mark.asyncio
async def test_signup_duplicate_email_conflict(accounts):
    await accounts.signup("Ann", "ann@example.com", STRONG_PASSWORD)
    with pytest.raises(Conflict, match="Email already registered"):
        await accounts.signup("Other", "ann@example.com", STRONG_PASSWORD)


@pytest.mark.asyncio
async def test_signup_taken_email_reported_before_weak_password(accounts):
    await accounts.signup("Ann", "ann@example.com", STRONG_PASSWORD)
    with pytest.raises(Conflict):
        await accounts.signup("Other", "ann@example.com", "weak")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name, email, password, field",
    [
        ("", "ann@example.com", STRONG_PASSWORD, "name"),
        ("Ann", "not-an-email", STRONG_PASSWORD, "email"),
        ("Ann", "ann@example.com", "short1!", "password"),
        ("Ann", "ann@example.com", "nouppercase1!", "password"),
        ("", "not-an-email", "weak", "name"),
    ],
)
async def test_signup_invalid_input_never_writes(accounts, store, name, email, password, field):
    with pytest.raises(InvalidArgument) as exc:
        await accounts.signup(name, email, password)
    assert exc.value.field == field
    assert "insert" not in store.names()
    assert await store.count() == 0


@pytest.mark.asyncio
async def test_concurrent_signups_for_one_email(accounts, store):
    """Both pass the existence check; the store's uniqueness decides."""
    results = await asyncio.gather(
        accounts.signup("First", "race@example.com", STRONG_PASSWORD),
        accounts.signup("Second", "race@example.com", STRONG_PASSWORD),
        return_exceptions=True,
    )
    conflicts = [r for r in results if isinstance(r, Conflict)]
    assert len(conflicts) == 1
    assert conflicts[0].message == "Email already registered"
    assert await store.count() == 1


@pytest.mark.asyncio
async def test_provision_user_can_create_admin(accounts):
    admin = await accounts.provision_user(
        "Root", "root@example.com", STRONG_PASSWORD, role=UserRole.ADMIN
    )
    assert admin.role == UserRole.ADMIN


# ═══════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_signup_then_login(accounts):
    await accounts.signup("Ann", "ann@example.com", STRONG_PASSWORD)
    result = await accounts.login("ann@example.com", STRONG_PASSWORD)
    assert result.success is True
    assert result.user.role == UserRole.USER
    assert result.user.status == UserStatus.ACTIVE
    assert "password_hash" not in result.user.model_dump()


@pytest.mark.asyncio
async def test_login_updates_last_signed_in(accounts, store, hasher, member):
    result = await accounts.login(member.email, STRONG_PASSWORD)
    assert result.user.last_signed_in >= member.last_signed_in
    assert ("update_fields", member.id, ("last_signed_in",)) in store.calls


@pytest.mark.asyncio
async def test_login_failures_share_one_message(accounts, member):
    with pytest.raises(Unauthenticated) as wrong_password:
        await accounts.login(member.email, "Wr0ng!Password")
    with pytest.raises(Unauthenticated) as unknown_email:
        await accounts.login("nobody@example.com", "anything")
    assert wrong_password.value.message == INVALID_CREDENTIALS
    assert unknown_email.value.message == INVALID_CREDENTIALS
    assert wrong_password.value.field is None
    assert unknown_email.value.field is None


@pytest.mark.asyncio
async def test_inactive_user_with_correct_password_is_forbidden(accounts, store, hasher):
    await seed_user(store, hasher, "gone@example.com", status=UserStatus.INACTIVE)
    with pytest.raises(Forbidden, match="inactive"):
        await accounts.login("gone@example.com", STRONG_PASSWORD)


@pytest.mark.asyncio
async def test_inactive_user_with_wrong_password_is_unauthenticated(accounts, store, hasher):
    await seed_user(store, hasher, "gone@example.com", status=UserStatus.INACTIVE)
    with pytest.raises(Unauthenticated):
        await accounts.login("gone@example.com", "Wr0ng!Password")


@pytest.mark.asyncio
async def test_account_without_password_cannot_login(accounts, store, hasher):
    await seed_user(store, hasher, "sso@example.com", password=None)
    with pytest.raises(Unauthenticated):
        await accounts.login("sso@example.com", "")


# ═══════════════════════════════════════════════════════════
# Logout / me
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_logout_always_succeeds(accounts, member):
    assert (await accounts.logout(member)).success is True
    assert (await accounts.logout(None)).success is True


@pytest.mark.asyncio
async def test_me(accounts, member):
    assert await accounts.me(None) is None
    me = await accounts.me(member)
    assert me.id == member.id
    assert "password_hash" not in me.model_dump()


# ═══════════════════════════════════════════════════════════
# External identity
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_sync_external_user_is_idempotent(accounts, store):
    first = await accounts.sync_external_user(
        "gh|42", email="octo@example.com", name="Octo", login_method="github"
    )
    second = await accounts.sync_external_user("gh|42", name="Octocat")
    assert first.id == second.id
    assert second.name == "Octocat"
    assert second.login_method == "github"
    assert second.role == UserRole.USER
    assert await store.count() == 1
    assert (await store.find_by_identity("gh|42")).password_hash is None


@pytest.mark.asyncio
async def test_owner_identity_promoted_on_upsert(accounts):
    owner = await accounts.sync_external_user(
        OWNER_IDENTITY, email="owner@example.com", name="Owner"
    )
    assert owner.role == UserRole.ADMIN


@pytest.mark.asyncio
async def test_sync_requires_identity_and_email_for_new_accounts(accounts):
    with pytest.raises(InvalidArgument) as exc:
        await accounts.sync_external_user("", email="x@example.com")
    assert exc.value.field == "identity"

    with pytest.raises(InvalidArgument) as exc:
        await accounts.sync_external_user("gh|1")
    assert exc.value.field == "email"


@pytest.mark.asyncio
async def test_sync_email_taken_by_local_account_is_conflict(accounts, member):
    with pytest.raises(Conflict):
        await accounts.sync_external_user("gh|9", email=member.email)
