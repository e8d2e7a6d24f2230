from enum import Enum


class UserRole(str, Enum):
    CLIENT = "client"
    TENANT = "tenant"
    OWNER = "owner"
    STAFF = "staff"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


class UserStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    BLOCKED = "blocked"
    DECLINED = "declined"
    HOLD = "hold"


class AuthType(str, Enum):
    STANDARD = "standard"
    GOOGLE = "google"
    FACEBOOK = "facebook"


class OwnerStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"
    SUSPENDED = "suspended"


class TenantStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    CAD = "CAD"
    AUD = "AUD"


class RentPeriod(str, Enum):
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    DAILY = "daily"


class AvailabilityStatus(str, Enum):
    AVAILABLE = "available"
    RENTED = "rented"
    MAINTENANCE = "maintenance"
    UNAVAILABLE = "unavailable"


class ApartmentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"
    SOLD = "sold"


class LeaseTerm(str, Enum):
    SIX_MONTHS = "6 months"
    ONE_YEAR = "1 year"
    EIGHTEEN_MONTHS = "18 months"
    TWO_YEARS = "2 years"
    MONTH_TO_MONTH = "month-to-month"


class EmploymentStatus(str, Enum):
    EMPLOYED = "employed"
    SELF_EMPLOYED = "self-employed"
    UNEMPLOYED = "unemployed"
    STUDENT = "student"
    RETIRED = "retired"


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


BLOCKED_USER_STATUSES = {
    UserStatus.BLOCKED,
    UserStatus.PENDING,
    UserStatus.DECLINED,
}

ACTIVE_APPLICATION_STATUSES = (
    ApplicationStatus.PENDING,
    ApplicationStatus.UNDER_REVIEW,
    ApplicationStatus.APPROVED,
)

REVIEW_STATUSES = (
    ApplicationStatus.UNDER_REVIEW,
    ApplicationStatus.APPROVED,
    ApplicationStatus.REJECTED,
)
