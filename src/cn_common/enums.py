"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class ReservationStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    PREPARING = "Preparing"
    READY = "Ready"
    CLAIMED = "Claimed"
    REJECTED = "Rejected"


class TransactionDirection(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class StockDirection(str, Enum):
    DEDUCT = "deduct"
    RESTORE = "restore"


class StockProblemKind(str, Enum):
    MISSING_ITEM = "MISSING_ITEM"
    SHORTFALL = "SHORTFALL"


class NotificationType(str, Enum):
    RESERVATION_CREATED = "reservation:created"
    RESERVATION_STATUS = "reservation:status"


class ReservationEventType(str, Enum):
    """Audit trail event types (reservation_events.event_type)."""
    CREATED = "RESERVATION_CREATED"
    APPROVED = "RESERVATION_APPROVED"
    REJECTED = "RESERVATION_REJECTED"
    REFUNDED = "RESERVATION_REFUNDED"
    STATUS_CHANGED = "RESERVATION_STATUS_CHANGED"
    STOCK_PROBLEM = "STOCK_PROBLEM"
    INCONSISTENCY_DETECTED = "INCONSISTENCY_DETECTED"
