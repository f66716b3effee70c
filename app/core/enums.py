"""Core enums used across modules."""

from enum import StrEnum


class RoleEnum(StrEnum):
    """System roles."""

    MEMBER = "member"
    COACH = "coach"
    ADMIN = "admin"


class ConfirmationStatusEnum(StrEnum):
    """Staff confirmation status shared by bookings and transactions."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELED = "CANCELED"


class AppointmentStatusEnum(StrEnum):
    """Coach appointment status."""

    CONFIRMED = "CONFIRMED"
    CANCELED = "CANCELED"


class SlotTypeEnum(StrEnum):
    """Coach slot type."""

    PRIVATE = "PRIVATE"
    GROUP = "GROUP"


class WeekdayEnum(StrEnum):
    """Day of week a recurring class runs on."""

    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


class TransactionStatusEnum(StrEnum):
    """Ledger payment status."""

    PENDING = "PENDING"
    PAID = "PAID"
    REFUNDED = "REFUNDED"


class TransactionSourceEnum(StrEnum):
    """What a ledger entry paid for."""

    CLASS = "CLASS"
    PRIVATE_SESSION = "PRIVATE_SESSION"
    GROUP_SESSION = "GROUP_SESSION"


class PaymentMethodEnum(StrEnum):
    """Billing mode chosen at checkout."""

    ONE_OFF = "ONE_OFF"
    PER_SESSION = "PER_SESSION"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


class BillingFrequencyEnum(StrEnum):
    """Recurring billing interval."""

    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


class GuestServiceTypeEnum(StrEnum):
    """Service purchased by a guest."""

    CLASS = "CLASS"
    PRIVATE = "PRIVATE"


class CheckoutFlowEnum(StrEnum):
    """Domain rows a completed checkout must create."""

    CLASS = "CLASS"
    COACH_SLOT = "COACH_SLOT"
    GUEST = "GUEST"


class CheckoutDraftStatusEnum(StrEnum):
    """Server-side checkout draft status."""

    OPEN = "open"
    COMPLETED = "completed"
    EXPIRED = "expired"


class OutboxStatusEnum(StrEnum):
    """Outbox event status for integration publishing."""

    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"
