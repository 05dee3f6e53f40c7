from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from loguru import logger

from core.repositories.admin_repository import AdminRepository
from core.services.admin_procedure import AdminProcedure
from core.services.identity_provider import IdentityProvider
from core.use_cases.store_calls import call_store

TIER_EMAIL = "email"
TIER_MEMBERSHIP = "membership"
TIER_PROCEDURE = "procedure"


class AccessDecision(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"
    INDETERMINATE = "indeterminate"   # проверка упала, для этого уровня считается отказом


@dataclass
class AdminResolution:
    granted: bool
    tier: Optional[str] = None
    decisions: List[Tuple[str, AccessDecision]] = field(default_factory=list)


def resolve_access(decisions: Iterable[AccessDecision]) -> bool:
    """Первый уровень с GRANTED выигрывает; DENIED и INDETERMINATE доступа не дают."""
    return any(decision is AccessDecision.GRANTED for decision in decisions)


def email_matches(email: Optional[str], admin_email: str) -> bool:
    if not email or not admin_email:
        return False
    return email.strip().lower() == admin_email.strip().lower()


async def check_email_tier(identity: IdentityProvider, admin_email: str) -> AccessDecision:
    try:
        email = await call_store(identity.current_email)
    except Exception as e:
        logger.error("Could not read the current identity: {}", e)
        return AccessDecision.INDETERMINATE
    return AccessDecision.GRANTED if email_matches(email, admin_email) else AccessDecision.DENIED


async def check_membership_tier(repo: AdminRepository, user_id: int) -> AccessDecision:
    try:
        membership = await call_store(repo.find_membership, user_id)
    except Exception as e:
        logger.error("Error checking admin_users for user {}: {}", user_id, e)
        return AccessDecision.INDETERMINATE
    return AccessDecision.GRANTED if membership is not None else AccessDecision.DENIED


async def check_procedure_tier(procedure: AdminProcedure, user_id: int) -> AccessDecision:
    try:
        result = await call_store(procedure.is_admin, user_id)
    except Exception as e:
        # любой сбой процедуры - отрицательный ответ, наружу не пробрасываем
        logger.error("Error calling is_admin procedure for user {}: {}", user_id, e)
        return AccessDecision.INDETERMINATE
    return AccessDecision.GRANTED if result is True else AccessDecision.DENIED


async def resolve_admin(
    user_id: int,
    identity: IdentityProvider,
    repo: AdminRepository,
    procedure: AdminProcedure,
    admin_email: str,
) -> AdminResolution:
    # порядок: email сессии, строка admin_users, процедура is_admin; после GRANTED дальше не идём
    resolution = AdminResolution(granted=False)
    if not user_id:
        return resolution

    tiers = (
        (TIER_EMAIL, lambda: check_email_tier(identity, admin_email)),
        (TIER_MEMBERSHIP, lambda: check_membership_tier(repo, user_id)),
        (TIER_PROCEDURE, lambda: check_procedure_tier(procedure, user_id)),
    )
    for name, check in tiers:
        decision = await check()
        resolution.decisions.append((name, decision))
        logger.debug("Admin check for user {}: {} -> {}", user_id, name, decision.value)
        if resolve_access([decision]):
            resolution.granted = True
            resolution.tier = name
            break
    return resolution


async def is_admin(
    user_id: int,
    identity: IdentityProvider,
    repo: AdminRepository,
    procedure: AdminProcedure,
    admin_email: str,
) -> bool:
    resolution = await resolve_admin(user_id, identity, repo, procedure, admin_email)
    return resolution.granted


async def ensure_membership(repo: AdminRepository, user_id: int) -> bool:
    if not user_id:
        return False
    try:
        existing = await call_store(repo.find_membership, user_id)
    except Exception as e:
        logger.error("Error checking admin user {}: {}", user_id, e)
        return False
    if existing is not None:
        logger.debug("User {} is already an admin", user_id)
        return True

    try:
        await call_store(repo.insert_membership, user_id)
    except Exception as e:
        logger.error("Error adding admin user {}: {}", user_id, e)
        return False
    logger.info("User {} added as admin", user_id)
    return True


async def list_members(repo: AdminRepository):
    return await call_store(repo.list_memberships)
