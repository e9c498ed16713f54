"""
RBAC (Role-Based Access Control) permission system
"""

from enum import Enum
from typing import Iterable, Set

from mandi_saas.models.user import UserRole


class Permission(str, Enum):
    """Permission definitions"""
    # Platform
    MANAGE_ALL_MANDIS = "manage_all_mandis"
    MANAGE_SUBSCRIPTIONS = "manage_subscriptions"
    MANAGE_PLATFORM_SETTINGS = "manage_platform_settings"

    # Mandi administration
    MANAGE_MANDI = "manage_mandi"
    VIEW_MANDI = "view_mandi"
    MANAGE_USERS = "manage_users"
    MANAGE_MASTERS = "manage_masters"
    MANAGE_SETTINGS = "manage_settings"

    # Entries
    MANAGE_ENTRIES = "manage_entries"
    CREATE_CHALLAN = "create_challan"
    CREATE_GOODS_ARRIVAL = "create_goods_arrival"

    # Accounts
    MANAGE_VOUCHERS = "manage_vouchers"
    MANAGE_ACCOUNTS = "manage_accounts"

    # Reports
    VIEW_ALL_REPORTS = "view_all_reports"
    VIEW_FINANCIAL_REPORTS = "view_financial_reports"
    VIEW_BASIC_REPORTS = "view_basic_reports"
    VIEW_REPORTS = "view_reports"

    # Counterparties
    VIEW_OWN_TRANSACTIONS = "view_own_transactions"
    VIEW_OWN_STATEMENTS = "view_own_statements"


# Role permission mapping
ROLE_PERMISSIONS = {
    UserRole.SUPER_ADMIN: {
        Permission.MANAGE_ALL_MANDIS,
        Permission.MANAGE_SUBSCRIPTIONS,
        Permission.VIEW_ALL_REPORTS,
        Permission.MANAGE_PLATFORM_SETTINGS,
    },
    UserRole.ADMIN: {
        Permission.MANAGE_MANDI,
        Permission.MANAGE_USERS,
        Permission.MANAGE_MASTERS,
        Permission.MANAGE_ENTRIES,
        Permission.VIEW_ALL_REPORTS,
        Permission.MANAGE_SETTINGS,
    },
    UserRole.MANAGER: {
        Permission.VIEW_MANDI,
        Permission.MANAGE_ENTRIES,
        Permission.VIEW_ALL_REPORTS,
    },
    UserRole.DATA_ENTRY: {
        Permission.CREATE_CHALLAN,
        Permission.CREATE_GOODS_ARRIVAL,
        Permission.VIEW_BASIC_REPORTS,
    },
    UserRole.ACCOUNTANT: {
        Permission.MANAGE_VOUCHERS,
        Permission.VIEW_FINANCIAL_REPORTS,
        Permission.MANAGE_ACCOUNTS,
    },
    UserRole.VIEWER: {
        Permission.VIEW_REPORTS,
    },
    UserRole.BUYER: {
        Permission.VIEW_OWN_TRANSACTIONS,
        Permission.VIEW_OWN_STATEMENTS,
    },
    UserRole.GROWER: {
        Permission.VIEW_OWN_TRANSACTIONS,
        Permission.VIEW_OWN_STATEMENTS,
    },
}


def get_permissions_for_role(role: str) -> Set[Permission]:
    """Get permissions for a given role (unknown roles get none)"""
    try:
        return ROLE_PERMISSIONS.get(UserRole(role.lower()), set())
    except ValueError:
        return set()


def has_permission(role: str, permission: Permission) -> bool:
    """Check if role has a permission"""
    return permission in get_permissions_for_role(role)


def has_any_permission(role: str, permissions: Iterable[Permission]) -> bool:
    return any(has_permission(role, permission) for permission in permissions)


def has_all_permissions(role: str, permissions: Iterable[Permission]) -> bool:
    return all(has_permission(role, permission) for permission in permissions)
