"""
Role-based permission matrix for the CASDT registry.
Defines what each actor role is allowed to do in the system.
"""
from ..models.user import UserRole

# Permission constants
PERM_REGISTER_PATIENTS = "register_patients"
PERM_VIEW_OWN_BARANGAY = "view_own_barangay"
PERM_VIEW_ALL_BARANGAYS = "view_all_barangays"
PERM_VIEW_ANALYTICS = "view_analytics"
PERM_MANAGE_BARANGAYS = "manage_barangays"
PERM_MANAGE_USERS = "manage_users"

# Role permission matrix
ROLE_PERMISSIONS: dict = {
    UserRole.BARANGAY: {
        PERM_REGISTER_PATIENTS,
        PERM_VIEW_OWN_BARANGAY,
        PERM_VIEW_ANALYTICS,
        # Barangay users never see other barangays or the directory
    },
    UserRole.ADMIN: {
        PERM_REGISTER_PATIENTS,
        PERM_VIEW_OWN_BARANGAY,
        PERM_VIEW_ALL_BARANGAYS,
        PERM_VIEW_ANALYTICS,
        PERM_MANAGE_BARANGAYS,
        PERM_MANAGE_USERS,
    },
}


def has_permission(role: str, permission: str) -> bool:
    """Check if a role has a specific permission."""
    return permission in ROLE_PERMISSIONS.get(role, set())
