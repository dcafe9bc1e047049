"""
Per-operation role allow-lists consulted by the authorization guard.

Membership is exact: ADMIN is not implicitly granted an operation that only
lists SELLER, and a new role gets nothing until it is added here.
An operation missing from the table (or mapped to an empty set) is open to
any authenticated account.
"""

from dealership.models.account import AccountRole

_STAFF = frozenset({AccountRole.ADMIN, AccountRole.SYSTEM_ADMIN})
_ACCOUNT_HOLDERS = frozenset({
    AccountRole.CUSTOMER,
    AccountRole.SELLER,
    AccountRole.ADMIN,
    AccountRole.SYSTEM_ADMIN,
})

OPERATION_ROLES: dict[str, frozenset[AccountRole]] = {
    # Registration on someone else's behalf
    "accounts:create_admin": _STAFF,
    "accounts:create_seller": _STAFF,
    # Own profile
    "profile:read": _ACCOUNT_HOLDERS,
    "profile:update": _ACCOUNT_HOLDERS,
    "profile:update_email": _ACCOUNT_HOLDERS,
    "profile:update_password": _ACCOUNT_HOLDERS,
    "profile:upload_picture": _ACCOUNT_HOLDERS,
    "profile:deactivate": _ACCOUNT_HOLDERS,
    # Administration
    "accounts:list": _STAFF,
    "accounts:search": _STAFF,
    "accounts:list_by_role": _STAFF,
    "accounts:list_by_active": _STAFF,
    "accounts:list_by_verified": _STAFF,
    "accounts:read": _STAFF,
    "accounts:update": _STAFF,
    "accounts:set_active": _STAFF,
    "accounts:delete": _STAFF,
    "accounts:hard_delete": frozenset({AccountRole.SYSTEM_ADMIN}),
    "accounts:profile_picture_url": _ACCOUNT_HOLDERS,
}


def allowed_roles(operation: str) -> frozenset[AccountRole]:
    """Roles allowed to perform an operation; empty means any authenticated account."""
    return OPERATION_ROLES.get(operation, frozenset())


def is_allowed(operation: str, role: AccountRole) -> bool:
    roles = allowed_roles(operation)
    return not roles or role in roles
