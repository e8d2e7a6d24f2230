import uuid
from datetime import date, datetime
from typing import List, Optional

from bcrypt import checkpw, gensalt, hashpw
from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from core.get_db import Base

from .enums import (
    ApartmentStatus,
    ApplicationStatus,
    AuthType,
    AvailabilityStatus,
    Currency,
    EmploymentStatus,
    LeaseTerm,
    OwnerStatus,
    RentPeriod,
    TenantStatus,
    UserRole,
    UserStatus,
)
from .utils import enum_column, to_monthly, utcnow

ACTIVE_APPLICATION_CLAUSE = "status IN ('pending', 'under_review', 'approved')"


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )


class AddressMixin:
    street: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(120), nullable=False)
    state: Mapped[str] = mapped_column(String(120), nullable=False)
    zip_code: Mapped[str] = mapped_column(String(20), nullable=False)
    country: Mapped[str] = mapped_column(String(80), default="USA", nullable=False)

    @property
    def address(self) -> dict:
        return {
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "country": self.country,
        }

    @validates("zip_code", "street", "city", "state", "country")
    def _strip(self, key, value):
        return value.strip() if isinstance(value, str) else value


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    hashed_password: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    auth_type: Mapped[AuthType] = mapped_column(
        enum_column(AuthType), default=AuthType.STANDARD, nullable=False
    )
    roles: Mapped[List[str]] = mapped_column(
        JSON, default=lambda: [UserRole.CLIENT.value], nullable=False
    )
    permissions: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    status: Mapped[UserStatus] = mapped_column(
        enum_column(UserStatus), default=UserStatus.PENDING, nullable=False
    )
    email_verified: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    onboarding: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    password_changed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True
    )
    last_logged_in: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True
    )

    owner_profile: Mapped[Optional["Owner"]] = relationship(
        "Owner",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    tenant_profile: Mapped[Optional["Tenant"]] = relationship(
        "Tenant",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    @validates("email")
    def _normalize_email(self, key, value: str) -> str:
        return value.strip().lower()

    def set_password(self, raw_password: str):
        salt = gensalt(rounds=10)
        self.hashed_password = hashpw(raw_password.encode("utf-8"), salt).decode(
            "utf-8"
        )

    def check_password(self, raw_password: str) -> bool:
        if not self.hashed_password:
            return False
        return checkpw(
            raw_password.encode("utf-8"), self.hashed_password.encode("utf-8")
        )

    def has_any_role(self, *roles: UserRole) -> bool:
        wanted = {r.value if isinstance(r, UserRole) else r for r in roles}
        return bool(wanted.intersection(self.roles or []))

    def __repr__(self):
        return f"<User {self.email}>"


class Owner(AddressMixin, TimestampMixin, Base):
    __tablename__ = "owners"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[str] = mapped_column(String(30), nullable=False)
    business_name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    business_type: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    tax_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    license_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    profile_image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    status: Mapped[OwnerStatus] = mapped_column(
        enum_column(OwnerStatus), default=OwnerStatus.ACTIVE, nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    user: Mapped["User"] = relationship(
        "User", back_populates="owner_profile", lazy="selectin"
    )
    apartments: Mapped[List["Apartment"]] = relationship(
        "Apartment", back_populates="owner", cascade="all, delete-orphan"
    )

    @validates("email")
    def _normalize_email(self, key, value: str) -> str:
        return value.strip().lower()

    @hybrid_property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def display_name(self) -> str:
        return self.business_name or self.full_name

    @property
    def business_info(self) -> dict:
        return {
            "business_name": self.business_name,
            "business_type": self.business_type,
            "tax_id": self.tax_id,
            "license_number": self.license_number,
        }


class Tenant(AddressMixin, TimestampMixin, Base):
    __tablename__ = "tenants"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[str] = mapped_column(String(30), nullable=False)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    emergency_contact_name: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True
    )
    emergency_contact_phone: Mapped[Optional[str]] = mapped_column(
        String(30), nullable=True
    )
    emergency_contact_relationship: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True
    )
    status: Mapped[TenantStatus] = mapped_column(
        enum_column(TenantStatus), default=TenantStatus.ACTIVE, nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    user: Mapped["User"] = relationship(
        "User", back_populates="tenant_profile", lazy="selectin"
    )
    applications: Mapped[List["Application"]] = relationship(
        "Application", back_populates="tenant", cascade="all, delete-orphan"
    )

    @validates("email")
    def _normalize_email(self, key, value: str) -> str:
        return value.strip().lower()

    @hybrid_property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def emergency_contact(self) -> dict | None:
        if not any(
            [
                self.emergency_contact_name,
                self.emergency_contact_phone,
                self.emergency_contact_relationship,
            ]
        ):
            return None
        return {
            "name": self.emergency_contact_name,
            "phone": self.emergency_contact_phone,
            "relationship": self.emergency_contact_relationship,
        }


class Apartment(AddressMixin, TimestampMixin, Base):
    __tablename__ = "apartments"
    __table_args__ = (
        Index("idx_apartments_city_state", "city", "state"),
        Index("idx_apartments_rent_amount", "rent_amount"),
        Index("idx_apartments_availability", "availability_status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False)
    bathrooms: Mapped[int] = mapped_column(Integer, nullable=False)
    square_feet: Mapped[int] = mapped_column(Integer, nullable=False)
    floor_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_floors: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    year_built: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    amenities: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)

    rent_amount: Mapped[float] = mapped_column(Float, nullable=False)
    rent_currency: Mapped[Currency] = mapped_column(
        enum_column(Currency), default=Currency.USD, nullable=False
    )
    rent_period: Mapped[RentPeriod] = mapped_column(
        enum_column(RentPeriod), default=RentPeriod.MONTHLY, nullable=False
    )

    utilities_included: Mapped[List[str]] = mapped_column(
        JSON, default=list, nullable=False
    )
    utilities_not_included: Mapped[List[str]] = mapped_column(
        JSON, default=list, nullable=False
    )

    availability_status: Mapped[AvailabilityStatus] = mapped_column(
        enum_column(AvailabilityStatus),
        default=AvailabilityStatus.AVAILABLE,
        nullable=False,
    )
    available_from: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    lease_term: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    images: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)

    status: Mapped[ApartmentStatus] = mapped_column(
        enum_column(ApartmentStatus), default=ApartmentStatus.ACTIVE, nullable=False
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("owners.id", ondelete="CASCADE"), nullable=False, index=True
    )

    owner: Mapped["Owner"] = relationship(
        "Owner", back_populates="apartments", lazy="selectin"
    )
    applications: Mapped[List["Application"]] = relationship(
        "Application", back_populates="apartment", cascade="all, delete-orphan"
    )

    @property
    def property_details(self) -> dict:
        return {
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "square_feet": self.square_feet,
            "floor_number": self.floor_number,
            "total_floors": self.total_floors,
            "year_built": self.year_built,
        }

    @property
    def rent(self) -> dict:
        return {
            "amount": self.rent_amount,
            "currency": self.rent_currency,
            "period": self.rent_period,
        }

    @property
    def utilities(self) -> dict:
        return {
            "included": self.utilities_included or [],
            "not_included": self.utilities_not_included or [],
        }

    @property
    def availability(self) -> dict:
        return {
            "status": self.availability_status,
            "available_from": self.available_from,
            "lease_term": self.lease_term,
        }

    @property
    def full_address(self) -> str:
        return f"{self.street}, {self.city}, {self.state} {self.zip_code}"

    @property
    def monthly_rent(self) -> float:
        period = getattr(self.rent_period, "value", self.rent_period)
        return to_monthly(self.rent_amount, period)

    @property
    def property_type(self) -> str:
        if self.bedrooms == 0:
            return "Studio"
        return f"{self.bedrooms} Bedroom"


class Application(TimestampMixin, Base):
    __tablename__ = "applications"
    __table_args__ = (
        Index(
            "uq_active_application_per_tenant_apartment",
            "tenant_id",
            "apartment_id",
            unique=True,
            sqlite_where=text(ACTIVE_APPLICATION_CLAUSE),
            postgresql_where=text(ACTIVE_APPLICATION_CLAUSE),
        ),
        Index("idx_applications_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    apartment_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("apartments.id", ondelete="CASCADE"), nullable=False, index=True
    )

    move_in_date: Mapped[date] = mapped_column(Date, nullable=False)
    lease_term: Mapped[LeaseTerm] = mapped_column(
        enum_column(LeaseTerm), nullable=False
    )
    monthly_income: Mapped[float] = mapped_column(Float, nullable=False)
    employment_status: Mapped[EmploymentStatus] = mapped_column(
        enum_column(EmploymentStatus), nullable=False
    )
    employer_name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    employer_phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    additional_info: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    id_proof: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    income_proof: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    bank_statement: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    references: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)

    status: Mapped[ApplicationStatus] = mapped_column(
        enum_column(ApplicationStatus),
        default=ApplicationStatus.PENDING,
        nullable=False,
    )
    review_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reviewed_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    tenant: Mapped["Tenant"] = relationship(
        "Tenant", back_populates="applications", lazy="selectin"
    )
    apartment: Mapped["Apartment"] = relationship(
        "Apartment", back_populates="applications", lazy="selectin"
    )
    reviewed_by: Mapped[Optional["User"]] = relationship("User", lazy="selectin")

    @property
    def application_details(self) -> dict:
        return {
            "move_in_date": self.move_in_date,
            "lease_term": self.lease_term,
            "monthly_income": self.monthly_income,
            "employment_status": self.employment_status,
            "employer_name": self.employer_name,
            "employer_phone": self.employer_phone,
            "additional_info": self.additional_info,
        }

    @property
    def documents(self) -> dict:
        return {
            "id_proof": self.id_proof,
            "income_proof": self.income_proof,
            "bank_statement": self.bank_statement,
            "references": self.references or [],
        }

    @property
    def age_in_days(self) -> int:
        if not self.created_at:
            return 0
        return (utcnow() - self.created_at).days

    @property
    def income_to_rent_ratio(self) -> float | None:
        apartment = self.__dict__.get("apartment")
        if apartment is None or not apartment.monthly_rent:
            return None
        return round(self.monthly_income / apartment.monthly_rent, 2)
