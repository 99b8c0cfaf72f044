"""The authenticated caller, as seen by application services."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Actor:
    user_id: str | None = None
    name: str | None = None
    email: str | None = None
    role: str = "student"

    @property
    def label(self) -> str:
        """Human-readable identity for audit payloads and notifications."""
        return self.name or self.email or self.user_id or "anonymous"

