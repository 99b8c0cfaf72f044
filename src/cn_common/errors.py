"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Wallet
  3xxx: Menu / stock
  4xxx: Reservation
  9xxx: System / generic
"""

from typing import Any


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.details = details
        super().__init__(message)


# --- Generic ---

class ValidationError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(9003, message, 400)


class NotFoundError(AppError):
    def __init__(self, message: str, code: int = 9004) -> None:
        super().__init__(code, message, 404)


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401)


class ForbiddenError(AppError):
    def __init__(self, detail: str = "Admin role required") -> None:
        super().__init__(1006, detail, 403)


# --- 2xxx: Wallet ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient wallet balance: required {required} centavos, "
            f"available {available} centavos",
            400,
            {"required": required, "available": available},
        )
        self.required = required
        self.available = available


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str) -> None:
        super().__init__(f"User not found: {user_id}", code=2002)


class DuplicateTransactionError(AppError):
    def __init__(self, ref: str, direction: str) -> None:
        super().__init__(
            2003, f"A {direction} transaction already exists for {ref}", 409
        )


# --- 3xxx: Menu / stock ---

class MenuItemNotFoundError(NotFoundError):
    def __init__(self, item_id: str) -> None:
        super().__init__(f"Item {item_id} not found", code=3001)


class InsufficientStockError(AppError):
    def __init__(self, item_name: str, requested: int, available: int) -> None:
        super().__init__(
            3002,
            f"Not enough stock for {item_name}: requested {requested}, available {available}",
            400,
            {"item": item_name, "requested": requested, "available": available},
        )


# --- 4xxx: Reservation ---

class ReservationNotFoundError(NotFoundError):
    def __init__(self, reservation_id: str) -> None:
        super().__init__(f"Reservation not found: {reservation_id}", code=4001)


class IllegalTransitionError(AppError):
    def __init__(self, current: str, target: str, allowed: list[str]) -> None:
        allowed_text = ", ".join(allowed) if allowed else "none"
        super().__init__(
            4002,
            f"Cannot move reservation from {current} to {target} (allowed: {allowed_text})",
            400,
            {"current": current, "target": target, "allowed": allowed},
        )
        self.allowed = allowed


class AlreadyInStateError(AppError):
    def __init__(self, reservation_id: str, status: str) -> None:
        super().__init__(
            4003,
            f"Reservation {reservation_id} is already {status}",
            409,
            {"status": status},
        )


class UnresolvedUserError(AppError):
    def __init__(self, reservation_id: str, detail: str = "no user to charge") -> None:
        super().__init__(4004, f"Reservation {reservation_id} has {detail}", 400)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class InternalInconsistencyError(AppError):
    """A side effect was partially applied; the unit of work was rolled back."""

    def __init__(
        self,
        reservation_id: str,
        detail: str,
        incident: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            9005,
            f"Reservation {reservation_id} could not be applied consistently: {detail}",
            500,
            {"reservation_id": reservation_id},
        )
        self.reservation_id = reservation_id
        self.detail = detail
        # Full picture for the audit trail and logs; not sent to clients
        self.incident = incident or {}
