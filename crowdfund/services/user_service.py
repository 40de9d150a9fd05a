import logging
from typing import Any, Dict, List

from crowdfund.models.user import (
    count_admins,
    create_user,
    get_password_hash,
    get_user_by_email,
    list_users_with_stats,
    lock_user,
    set_role,
    update_user,
)
from crowdfund.schemas import (
    CreateAdminRequest,
    ProfileUpdateRequest,
    UserOut,
    UserWithStatsOut,
    dump,
    dump_many,
)
from crowdfund.services.auth_service import hash_password, verify_password
from crowdfund.utils.db import transaction
from crowdfund.utils.errors import (
    Conflict,
    LastAdminProtection,
    SelfRoleChangeForbidden,
    Unauthorized,
    UserNotFound,
    ValidationFailed,
)

log = logging.getLogger(__name__)

ROLES = ("user", "admin")


def set_user_role(actor_id: str, target_user_id: str, new_role: str) -> Dict[str, Any]:
    """
    Change a user's role. The target must re-prove identity afterwards:
    require_password_reset is raised so neither login nor an already issued
    token lets them back in until they reset their password.
    """
    if new_role not in ROLES:
        raise ValidationFailed('Invalid role. Must be either "user" or "admin"')
    if str(actor_id) == str(target_user_id):
        raise SelfRoleChangeForbidden()

    with transaction() as cur:
        # admin set first, then the target row
        admins = count_admins(cur)
        target = lock_user(cur, target_user_id)
        if target is None:
            raise UserNotFound()
        if target["role"] == new_role:
            return {"message": "User role unchanged", "user": dump(UserOut, target)}
        if target["role"] == "admin" and admins <= 1:
            raise LastAdminProtection()
        updated = set_role(cur, target_user_id, new_role)

    log.info(
        "[role] %s changed %s from %s to %s", actor_id, target_user_id, target["role"], new_role
    )
    return {
        "message": "User role updated successfully. User must reset password on next login.",
        "user": dump(UserOut, updated),
    }


def get_profile(user: Dict[str, Any]) -> Dict[str, Any]:
    return dump(UserOut, user)


def update_profile(user: Dict[str, Any], req: ProfileUpdateRequest) -> Dict[str, Any]:
    email = None
    if req.email is not None and req.email != user["email"]:
        if get_user_by_email(req.email):
            raise Conflict("Email already exists")
        email = req.email

    password_hash = None
    if req.new_password:
        if not req.current_password:
            raise ValidationFailed("Current password is required to set a new password")
        if not verify_password(req.current_password, get_password_hash(user["id"])):
            raise Unauthorized("Current password is incorrect")
        password_hash = hash_password(req.new_password)

    updated = update_user(
        user["id"],
        name=req.name,
        email=email,
        password_hash=password_hash,
        avatar_url=req.avatar_url,
    )
    if updated is None:
        raise UserNotFound()
    return {"message": "Profile updated successfully", "user": dump(UserOut, updated)}


def create_admin(req: CreateAdminRequest) -> Dict[str, Any]:
    if get_user_by_email(req.email):
        raise Conflict("Email already exists")
    user = create_user(
        email=req.email,
        password_hash=hash_password(req.password),
        name=req.name,
        role="admin",
    )
    log.info("[role] admin account %s created", user["id"])
    return {"message": "Admin user created successfully", "user": dump(UserOut, user)}


def list_users() -> List[Dict[str, Any]]:
    return dump_many(UserWithStatsOut, list_users_with_stats())
