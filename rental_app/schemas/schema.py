from __future__ import annotations

import re
import uuid
from datetime import date, datetime
from typing import List, Optional

import phonenumbers
from pydantic import BaseModel, EmailStr, Field, field_validator

from models.enums import (
    ApartmentStatus,
    ApplicationStatus,
    AuthType,
    AvailabilityStatus,
    Currency,
    EmploymentStatus,
    LeaseTerm,
    OwnerStatus,
    RentPeriod,
    REVIEW_STATUSES,
    TenantStatus,
    UserStatus,
)

MIN_YEAR_BUILT = 1800


def check_password_strength(value: str) -> str:
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters long.")
    if not re.search(r"[A-Za-z]", value) or not re.search(r"\d", value):
        raise ValueError("Password must contain at least one letter and one digit.")
    return value


def normalize_phone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    try:
        parsed = phonenumbers.parse(value, None)
    except phonenumbers.NumberParseException:
        raise ValueError("Invalid phone number format. Use e.g. +12015550123")
    if not phonenumbers.is_valid_number(parsed):
        raise ValueError("Invalid phone number. Use full international format.")
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def normalize_names(value: str) -> str:
    return value.strip().title() if isinstance(value, str) else value


# Users and auth


class UserRegister(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password_strength(value)


class UserLoginInput(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class ChangePasswordInput(BaseModel):
    old_password: str = Field(..., min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password_strength(value)


class ResetPasswordInput(BaseModel):
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password_strength(value)


class AdminResetPasswordInput(ResetPasswordInput):
    user_id: uuid.UUID


class UserStatusUpdate(BaseModel):
    status: UserStatus


class UserOut(BaseModel):
    id: uuid.UUID
    email: EmailStr
    roles: List[str]
    permissions: List[str] = Field(default_factory=list)
    status: UserStatus
    auth_type: AuthType
    email_verified: Optional[datetime] = None
    onboarding: Optional[datetime] = None
    password_changed_at: Optional[datetime] = None
    last_logged_in: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class LoginOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


# Shared address blocks


class AddressIn(BaseModel):
    street: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=120)
    state: str = Field(..., min_length=1, max_length=120)
    zip_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field("USA", min_length=1, max_length=80)


class AddressUpdate(BaseModel):
    street: Optional[str] = Field(None, min_length=1, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=120)
    state: Optional[str] = Field(None, min_length=1, max_length=120)
    zip_code: Optional[str] = Field(None, min_length=1, max_length=20)
    country: Optional[str] = Field(None, min_length=1, max_length=80)


class AddressOut(AddressIn):
    model_config = {"from_attributes": True}


class ProfileBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    phone: str
    address: AddressIn

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def capitalize_names(cls, value: str):
        return normalize_names(value)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value: str) -> str:
        return normalize_phone(value)


class ProfileUpdateBase(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[AddressUpdate] = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def capitalize_names(cls, value):
        return normalize_names(value)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value):
        return normalize_phone(value)


# Owners


class BusinessInfo(BaseModel):
    business_name: Optional[str] = Field(None, max_length=120)
    business_type: Optional[str] = Field(None, max_length=80)
    tax_id: Optional[str] = Field(None, max_length=50)
    license_number: Optional[str] = Field(None, max_length=50)


class OwnerCreate(ProfileBase):
    password: str
    business_info: Optional[BusinessInfo] = None
    profile_image: Optional[str] = None
    status: OwnerStatus = OwnerStatus.ACTIVE

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password_strength(value)


class OwnerUpdate(ProfileUpdateBase):
    business_info: Optional[BusinessInfo] = None
    profile_image: Optional[str] = None
    status: Optional[OwnerStatus] = None


class OwnerSelfUpdate(ProfileUpdateBase):
    business_info: Optional[BusinessInfo] = None
    profile_image: Optional[str] = None


class OwnerSummaryOut(BaseModel):
    id: uuid.UUID
    full_name: str
    display_name: str
    email: EmailStr
    phone: str

    model_config = {"from_attributes": True}


class OwnerOut(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    first_name: str
    last_name: str
    full_name: str
    display_name: str
    email: EmailStr
    phone: str
    address: AddressOut
    business_info: BusinessInfo
    profile_image: Optional[str] = None
    status: OwnerStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OwnerStatsOut(BaseModel):
    total: int
    active: int
    pending: int
    inactive: int
    suspended: int


# Tenants


class EmergencyContact(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = None
    relationship: Optional[str] = Field(None, max_length=50)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value):
        return normalize_phone(value)


class TenantCreate(ProfileBase):
    password: str
    date_of_birth: Optional[date] = None
    emergency_contact: Optional[EmergencyContact] = None
    status: TenantStatus = TenantStatus.ACTIVE

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password_strength(value)

    @field_validator("date_of_birth")
    @classmethod
    def validate_birth_date(cls, value: Optional[date]):
        if value and value >= date.today():
            raise ValueError("Date of birth must be in the past.")
        return value


class TenantUpdate(ProfileUpdateBase):
    date_of_birth: Optional[date] = None
    emergency_contact: Optional[EmergencyContact] = None
    status: Optional[TenantStatus] = None

    @field_validator("date_of_birth")
    @classmethod
    def validate_birth_date(cls, value: Optional[date]):
        if value and value >= date.today():
            raise ValueError("Date of birth must be in the past.")
        return value


class TenantSelfUpdate(ProfileUpdateBase):
    date_of_birth: Optional[date] = None
    emergency_contact: Optional[EmergencyContact] = None


class TenantSummaryOut(BaseModel):
    id: uuid.UUID
    full_name: str
    email: EmailStr
    phone: str

    model_config = {"from_attributes": True}


class TenantOut(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    first_name: str
    last_name: str
    full_name: str
    email: EmailStr
    phone: str
    address: AddressOut
    date_of_birth: Optional[date] = None
    emergency_contact: Optional[EmergencyContact] = None
    status: TenantStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# Apartments


class PropertyDetailsIn(BaseModel):
    bedrooms: int = Field(..., ge=0, le=20)
    bathrooms: int = Field(..., ge=0, le=20)
    square_feet: int = Field(..., ge=1, le=100000)
    floor_number: Optional[int] = Field(None, ge=0)
    total_floors: Optional[int] = Field(None, ge=1)
    year_built: Optional[int] = None

    @field_validator("year_built")
    @classmethod
    def validate_year_built(cls, value: Optional[int]):
        if value is None:
            return value
        if value < MIN_YEAR_BUILT or value > date.today().year + 5:
            raise ValueError(
                f"Year built must be between {MIN_YEAR_BUILT} and {date.today().year + 5}."
            )
        return value


class PropertyDetailsUpdate(PropertyDetailsIn):
    bedrooms: Optional[int] = Field(None, ge=0, le=20)
    bathrooms: Optional[int] = Field(None, ge=0, le=20)
    square_feet: Optional[int] = Field(None, ge=1, le=100000)


class RentIn(BaseModel):
    amount: float = Field(..., ge=0, le=1_000_000)
    currency: Currency = Currency.USD
    period: RentPeriod = RentPeriod.MONTHLY


class RentUpdate(BaseModel):
    amount: Optional[float] = Field(None, ge=0, le=1_000_000)
    currency: Optional[Currency] = None
    period: Optional[RentPeriod] = None


class Utilities(BaseModel):
    included: List[str] = Field(default_factory=list)
    not_included: List[str] = Field(default_factory=list)


class UtilitiesUpdate(BaseModel):
    included: Optional[List[str]] = None
    not_included: Optional[List[str]] = None


class AvailabilityIn(BaseModel):
    status: AvailabilityStatus = AvailabilityStatus.AVAILABLE
    available_from: Optional[date] = None
    lease_term: Optional[str] = Field(None, max_length=50)


class AvailabilityUpdate(BaseModel):
    status: Optional[AvailabilityStatus] = None
    available_from: Optional[date] = None
    lease_term: Optional[str] = Field(None, max_length=50)


class ApartmentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=2000)
    address: AddressIn
    property_details: PropertyDetailsIn
    amenities: List[str] = Field(default_factory=list, max_length=50)
    rent: RentIn
    utilities: Utilities = Field(default_factory=Utilities)
    availability: AvailabilityIn = Field(default_factory=AvailabilityIn)
    status: ApartmentStatus = ApartmentStatus.ACTIVE

    @field_validator("title", "description")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Field cannot be blank.")
        return value


class ApartmentUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    address: Optional[AddressUpdate] = None
    property_details: Optional[PropertyDetailsUpdate] = None
    amenities: Optional[List[str]] = Field(None, max_length=50)
    rent: Optional[RentUpdate] = None
    utilities: Optional[UtilitiesUpdate] = None
    availability: Optional[AvailabilityUpdate] = None
    status: Optional[ApartmentStatus] = None


class RemoveImageInput(BaseModel):
    image_url: str = Field(..., min_length=1)


class PropertyDetailsOut(PropertyDetailsIn):
    pass


class RentOut(RentIn):
    pass


class AvailabilityOut(AvailabilityIn):
    pass


class ApartmentSummaryOut(BaseModel):
    id: uuid.UUID
    title: str
    full_address: str
    rent: RentOut
    availability: AvailabilityOut
    status: ApartmentStatus

    model_config = {"from_attributes": True}


class ApartmentOut(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    address: AddressOut
    full_address: str
    property_details: PropertyDetailsOut
    property_type: str
    amenities: List[str]
    rent: RentOut
    monthly_rent: float
    utilities: Utilities
    availability: AvailabilityOut
    images: List[str]
    status: ApartmentStatus
    owner_id: uuid.UUID
    owner: Optional[OwnerSummaryOut] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ApartmentStatsOut(BaseModel):
    total: int
    available: int
    rented: int
    active: int
    average_rent: float


# Applications


class ApplicationDetailsIn(BaseModel):
    move_in_date: date
    lease_term: LeaseTerm
    monthly_income: float = Field(..., ge=0)
    employment_status: EmploymentStatus
    employer_name: Optional[str] = Field(None, max_length=120)
    employer_phone: Optional[str] = None
    additional_info: Optional[str] = Field(None, max_length=1000)

    @field_validator("move_in_date")
    @classmethod
    def validate_move_in_date(cls, value: date) -> date:
        if value <= date.today():
            raise ValueError("Move-in date must be in the future.")
        return value

    @field_validator("employer_phone")
    @classmethod
    def validate_phone(cls, value):
        return normalize_phone(value)


class ApplicationCreate(ApplicationDetailsIn):
    apartment_id: uuid.UUID


class ApplicationUpdate(BaseModel):
    move_in_date: Optional[date] = None
    lease_term: Optional[LeaseTerm] = None
    monthly_income: Optional[float] = Field(None, ge=0)
    employment_status: Optional[EmploymentStatus] = None
    employer_name: Optional[str] = Field(None, max_length=120)
    employer_phone: Optional[str] = None
    additional_info: Optional[str] = Field(None, max_length=1000)

    @field_validator("move_in_date")
    @classmethod
    def validate_move_in_date(cls, value: Optional[date]):
        if value is not None and value <= date.today():
            raise ValueError("Move-in date must be in the future.")
        return value

    @field_validator("employer_phone")
    @classmethod
    def validate_phone(cls, value):
        return normalize_phone(value)


class ApplicationReview(BaseModel):
    status: ApplicationStatus
    review_notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("status")
    @classmethod
    def validate_review_status(cls, value: ApplicationStatus) -> ApplicationStatus:
        if value not in REVIEW_STATUSES:
            allowed = ", ".join(s.value for s in REVIEW_STATUSES)
            raise ValueError(f"Review status must be one of: {allowed}")
        return value


class ApplicationDetailsOut(BaseModel):
    move_in_date: date
    lease_term: LeaseTerm
    monthly_income: float
    employment_status: EmploymentStatus
    employer_name: Optional[str] = None
    employer_phone: Optional[str] = None
    additional_info: Optional[str] = None


class DocumentsOut(BaseModel):
    id_proof: Optional[str] = None
    income_proof: Optional[str] = None
    bank_statement: Optional[str] = None
    references: List[str] = Field(default_factory=list)


class ApplicationOut(BaseModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    apartment_id: uuid.UUID
    tenant: Optional[TenantSummaryOut] = None
    apartment: Optional[ApartmentSummaryOut] = None
    application_details: ApplicationDetailsOut
    documents: DocumentsOut
    status: ApplicationStatus
    review_notes: Optional[str] = None
    reviewed_by_id: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None
    age_in_days: int
    income_to_rent_ratio: Optional[float] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MonthlyCount(BaseModel):
    year: int
    month: int
    count: int


class ApplicationStatsOut(BaseModel):
    total: int
    pending: int
    under_review: int
    approved: int
    rejected: int
    withdrawn: int
    monthly_stats: List[MonthlyCount]
