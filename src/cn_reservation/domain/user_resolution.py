"""Best-effort owner resolution for reservations without a user id.

Guest and legacy reservations only carry a free-text ``student`` field. It is
compared case-insensitively with every user's name, email and id. This is a
fallback, not an identity check: names are not unique, so more than one
candidate is reported as ambiguous instead of picking one.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.cn_wallet.domain.models import WalletUser
from src.cn_wallet.domain.repository import UserDirectoryProtocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LegacyMatch:
    student: str
    candidates: tuple[WalletUser, ...] = ()

    @property
    def user(self) -> WalletUser | None:
        return self.candidates[0] if len(self.candidates) == 1 else None

    @property
    def ambiguous(self) -> bool:
        return len(self.candidates) > 1


async def match_student(
    users: UserDirectoryProtocol, db: AsyncSession, student: str | None
) -> LegacyMatch:
    text = (student or "").strip()
    if not text:
        return LegacyMatch(student="")

    seen: dict[str, WalletUser] = {}
    for user in await users.find_by_name_email_or_id(db, text):
        seen.setdefault(user.id, user)
    match = LegacyMatch(student=text, candidates=tuple(seen.values()))
    if match.ambiguous:
        logger.warning(
            "Student %r matches %d users (%s); not resolving",
            text, len(seen), ", ".join(sorted(seen)),
        )
    return match
