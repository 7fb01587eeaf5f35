from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Identity:
    """Authenticated caller, passed explicitly to the workflows that authorize it."""

    user_id: int
    email: str

    def has_email(self, email: str | None) -> bool:
        return email is not None and self.email.casefold() == email.casefold()
