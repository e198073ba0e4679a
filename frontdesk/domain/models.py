"""Domain models for reservations, pricing and optimistic mutations."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Union


SEASONAL_PERIODS: tuple[str, ...] = ("A", "B", "C", "D")


class ReservationStatus(str, Enum):
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"
    ROOM_CLOSURE = "room-closure"
    UNALLOCATED = "unallocated"
    INCOMPLETE_PAYMENT = "incomplete-payment"


class ValidationErrorType(str, Enum):
    DATE_CONFLICT = "date_conflict"
    ROOM_RULE_VIOLATION = "room_rule_violation"
    CAPACITY_VIOLATION = "capacity_violation"
    FORM_INVALID = "form_invalid"
    GUEST_REQUIRED = "guest_required"


class OperationKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    MOVE = "move"
    DELETE = "delete"


class OperationStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True)
class RoomRules:
    """Room-specific constraints layered on top of the standard tariff."""

    minimum_nights: int = 1
    cleaning_days_between: int = 0
    fixed_pricing: bool = False
    included_parking_spaces: int = 0


@dataclass(frozen=True)
class Room:
    room_id: str
    number: str
    floor: int
    room_type: str
    max_occupancy: int
    seasonal_rates: Mapping[str, float]
    is_premium: bool = False
    rules: RoomRules = field(default_factory=RoomRules)


@dataclass(frozen=True)
class GuestChild:
    age: int
    name: str = ""

    @classmethod
    def from_date_of_birth(cls, date_of_birth: date, on: date, name: str = "") -> "GuestChild":
        age = on.year - date_of_birth.year
        if (on.month, on.day) < (date_of_birth.month, date_of_birth.day):
            age -= 1
        return cls(age=max(age, 0), name=name)


@dataclass(frozen=True)
class GuestComposition:
    adults: int
    children: tuple[GuestChild, ...] = ()

    @property
    def total_guests(self) -> int:
        return self.adults + len(self.children)


@dataclass(frozen=True)
class NewGuestDraft:
    name: str
    email: str = ""
    phone: str = ""
    nationality: str = ""


@dataclass(frozen=True)
class ExistingGuestRef:
    guest_id: str


GuestIdentity = Union[NewGuestDraft, ExistingGuestRef]


@dataclass(frozen=True)
class Reservation:
    """A room occupying interval under the half-day booking model."""

    reservation_id: str
    room_id: str
    check_in: datetime
    check_out: datetime
    status: ReservationStatus = ReservationStatus.CONFIRMED
    guest_id: Optional[str] = None
    guest_name: str = ""
    adults: int = 1
    children: tuple[GuestChild, ...] = ()
    total_amount: Decimal = Decimal("0.00")
    has_pets: bool = False
    needs_parking: bool = False
    additional_charges: Decimal = Decimal("0.00")
    pricing_tier_id: Optional[str] = None
    vip_discount_percentage: float = 0.0

    def __post_init__(self) -> None:
        if self.check_in >= self.check_out:
            raise ValueError(
                f"reservation {self.reservation_id} must check in before it checks out"
            )

    @property
    def is_active(self) -> bool:
        return self.status != ReservationStatus.CHECKED_OUT

    @property
    def guest_count(self) -> int:
        return self.adults + len(self.children)

    def to_dict(self) -> dict[str, Any]:
        return {
            "reservation_id": self.reservation_id,
            "room_id": self.room_id,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "status": self.status.value,
            "guest_id": self.guest_id,
            "guest_name": self.guest_name,
            "adults": self.adults,
            "children": [child.age for child in self.children],
            "total_amount": float(self.total_amount),
            "has_pets": self.has_pets,
            "needs_parking": self.needs_parking,
            "additional_charges": float(self.additional_charges),
            "pricing_tier_id": self.pricing_tier_id,
            "vip_discount_percentage": self.vip_discount_percentage,
        }


@dataclass(frozen=True)
class BookingDraft:
    """Booking request as it arrives from the front desk, possibly incomplete."""

    room_id: Optional[str]
    check_in: Optional[datetime]
    check_out: Optional[datetime]
    guest: Optional[GuestIdentity]
    guests: GuestComposition
    has_pets: bool = False
    needs_parking: bool = False
    additional_charges: Decimal = Decimal("0.00")
    pricing_tier_id: Optional[str] = None
    vip_discount_percentage: float = 0.0
    status: ReservationStatus = ReservationStatus.CONFIRMED
    exclude_reservation_id: Optional[str] = None


@dataclass(frozen=True)
class BookingValidationError:
    type: ValidationErrorType
    message: str
    details: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "message": self.message, "details": self.details}


@dataclass(frozen=True)
class PricingBreakdown:
    """Priced stay in cents-exact Decimals.

    ``accommodation_vat`` is the VAT already contained in ``accommodation_total``,
    i.e. taken from the accommodation amount after child and VIP discounts and
    the short-stay supplement, not from the undiscounted subtotal. It is
    reported for invoices and never added to ``total``. ``services_vat`` is
    added on top of the pet and parking fees.
    """

    nights: int
    seasonal_period: str
    pricing_tier_id: str
    fixed_pricing: bool
    base_rate: Decimal
    subtotal: Decimal
    children_0_3: Decimal
    children_3_7: Decimal
    children_7_14: Decimal
    vip_discount: Decimal
    total_discounts: Decimal
    short_stay_supplement: Decimal
    accommodation_total: Decimal
    tourism_tax: Decimal
    accommodation_vat: Decimal
    services_vat: Decimal
    vat_amount: Decimal
    pet_fee: Decimal
    parking_fee: Decimal
    additional_charges: Decimal
    total: Decimal

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        return {
            key: float(value) if isinstance(value, Decimal) else value
            for key, value in payload.items()
        }

    def to_invoice_fields(self) -> dict[str, Decimal]:
        return {"total_amount": self.total, "vat_amount": self.vat_amount}


@dataclass
class PendingOperation:
    """Transient undo record; never the owner of reservation data."""

    operation_id: str
    kind: OperationKind
    entity: str
    original: Any
    new: Any
    timestamp: float
    status: OperationStatus = OperationStatus.PENDING
    completed_at: Optional[float] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation_id": self.operation_id,
            "kind": self.kind.value,
            "entity": self.entity,
            "timestamp": self.timestamp,
            "status": self.status.value,
            "error": self.error,
        }
