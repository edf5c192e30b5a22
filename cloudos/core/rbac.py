# cloudos/core/rbac.py
from enum import Enum
from typing import Dict, Iterable, Mapping, Tuple


class Role(str, Enum):
    ADMIN = "ADMIN"
    SUPPORT = "SUPPORT"
    ACCOUNTING = "ACCOUNTING"
    WAREHOUSE = "WAREHOUSE"
    EMPLOYEE = "EMPLOYEE"
    EXTERNAL = "EXTERNAL"
    GUEST = "GUEST"


class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
    PENDING = "PENDING"


ALL_MODULES = "all_modules"

ROLE_PERMISSIONS: Dict[Role, Tuple[str, ...]] = {
    Role.ADMIN: ("user_management", "system_settings", "audit_logs", ALL_MODULES),
    Role.SUPPORT: ("user_support", "ticket_management", "system_monitoring"),
    Role.ACCOUNTING: ("financial_data", "expense_reports", "invoice_management", "accounting_exports"),
    Role.WAREHOUSE: ("inventory_management", "stock_control", "warehouse_operations"),
    Role.EMPLOYEE: ("timesheet", "expense_submission", "file_upload", "own_data"),
    Role.EXTERNAL: ("limited_access", "assigned_projects_only"),
    Role.GUEST: (),
}

# named presets over require_roles
ADMIN_ONLY = (Role.ADMIN,)
ADMIN_OR_SUPPORT = (Role.ADMIN, Role.SUPPORT)
ACCOUNTING = (Role.ADMIN, Role.ACCOUNTING)
WAREHOUSE = (Role.ADMIN, Role.WAREHOUSE)
APPROVERS = (Role.ADMIN, Role.SUPPORT, Role.ACCOUNTING)


class AuthorizationPolicy:
    """Static role -> capability table plus the checks built on it."""

    def __init__(self, permissions: Mapping[Role, Iterable[str]] = ROLE_PERMISSIONS):
        self._permissions = {Role(r): tuple(caps) for r, caps in permissions.items()}

    def capabilities(self, role: str) -> Tuple[str, ...]:
        return self._permissions.get(Role(role), ())

    def role_allowed(self, role: str, allowed: Iterable[Role]) -> bool:
        return Role(role) in {Role(r) for r in allowed}

    def has_capability(self, role: str, capability: str) -> bool:
        caps = self.capabilities(role)
        return capability in caps or ALL_MODULES in caps

    def owns_or_admin(self, role: str, user_id: int, owner_id) -> bool:
        if Role(role) is Role.ADMIN:
            return True
        if owner_id is None or owner_id == "":
            return False
        return str(owner_id) == str(user_id)
