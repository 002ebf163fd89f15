"""Contact model for Suibhne."""

import re

from pydantic import BaseModel, Field

_PHONE_STRIP = re.compile(r"[^0-9+]")


def normalize_phone(phone: str) -> str:
    """Strip everything but digits and '+' from a phone number."""
    return _PHONE_STRIP.sub("", phone)


def normalize_email(email: str) -> str:
    """Case-fold an email address for comparison."""
    return email.strip().casefold()


class Contact(BaseModel):
    """A contact in the address book."""

    id: str = Field(description="Opaque contact identifier")
    name: str = Field(description="Full display name")
    organization: str | None = None
    phones: list[str] = Field(default_factory=list)
    emails: list[str] = Field(default_factory=list)
    notes: str | None = None

    def has_phone(self, phone: str) -> bool:
        """Check whether a phone number is already present after normalization."""
        normalized = normalize_phone(phone)
        return any(normalize_phone(p) == normalized for p in self.phones)

    def has_email(self, email: str) -> bool:
        """Check whether an email is already present, ignoring case."""
        normalized = normalize_email(email)
        return any(normalize_email(e) == normalized for e in self.emails)

    def add_phone(self, phone: str) -> bool:
        """Add a phone number unless an equivalent one exists.

        Returns:
            True if the number was added.
        """
        if not phone.strip() or self.has_phone(phone):
            return False
        self.phones.append(phone.strip())
        return True

    def add_email(self, email: str) -> bool:
        """Add an email unless it exists case-insensitively.

        Returns:
            True if the address was added.
        """
        if not email.strip() or self.has_email(email):
            return False
        self.emails.append(email.strip())
        return True

    def matches(self, query: str) -> bool:
        """Check whether the name contains the query, ignoring case."""
        return query.casefold() in self.name.casefold()
