"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from .enums import Role

DEFAULT_TOKEN_DAYS = 7
DEFAULT_CHART_TITLE = "Burhani Guards Ujjain Duty Chart"
DEFAULT_DESIGNATION = "Member"
DEFAULT_ANNUAL_DUES = 3000
DUE_IN_DAYS = 30
MIN_PASSWORD_LENGTH = 6
GENERATED_PASSWORD_LENGTH = 8
RECENT_TRANSACTIONS_LIMIT = 10

DASHBOARD_PATHS = {
    Role.SUPERADMIN: "/SuperAdminDashboard",
    Role.ADMIN: "/admin-dashboard",
    Role.CAPTAIN: "/captain-dashboard",
    Role.FINANCE: "/finance-dashboard",
    Role.MEMBER: "/member-dashboard",
}

DASHBOARD_ICONS = {
    Role.SUPERADMIN: "Dashboard",
    Role.ADMIN: "AdminPanel",
    Role.CAPTAIN: "Shield",
    Role.FINANCE: "AccountBalance",
    Role.MEMBER: "Person",
}

# Which dashboards each role may open, in display order.
ACCESSIBLE_DASHBOARDS = {
    Role.SUPERADMIN: (Role.SUPERADMIN, Role.ADMIN, Role.CAPTAIN, Role.FINANCE, Role.MEMBER),
    Role.ADMIN: (Role.ADMIN, Role.CAPTAIN, Role.FINANCE, Role.MEMBER),
    Role.CAPTAIN: (Role.CAPTAIN, Role.MEMBER),
    Role.FINANCE: (Role.FINANCE,),
    Role.MEMBER: (Role.MEMBER,),
}
