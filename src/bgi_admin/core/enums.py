from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role carried in the token and stored on every user."""

    SUPERADMIN = "SuperAdmin"
    ADMIN = "Admin"
    CAPTAIN = "Captain"
    FINANCE = "Finance"
    MEMBER = "Member"


ADMIN_ROLES = (Role.SUPERADMIN, Role.ADMIN)
FINANCE_ROLES = (Role.SUPERADMIN, Role.ADMIN, Role.FINANCE)


class MemberStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class NotificationType(str, Enum):
    DUTY = "duty"
    MIQAAT = "miqaat"
    GENERAL = "general"


class AttendanceStatus(str, Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"


class PaymentStatus(str, Enum):
    """Lifecycle: Pending/Overdue -> Paid."""

    PENDING = "Pending"
    PAID = "Paid"
    OVERDUE = "Overdue"


class PaymentType(str, Enum):
    ANNUAL_SUBSCRIPTION = "Annual Subscription"
    DONATION = "Donation"
    EVENT_FEE = "Event Fee"
    OTHER = "Other"
