"""Contact book backend.

Contacts live in a YAML file. The file is a shared resource: every
read-modify-write runs under one lock, and writes replace the file
atomically.
"""

import logging
import os
import tempfile
import threading
import uuid
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from suibhne.exceptions import ArgumentError, BackendError, ContactNotFoundError
from suibhne.models.contact import Contact
from suibhne.services.authorization import AccessGate

logger = logging.getLogger(__name__)


class ContactStore:
    """YAML-file contact store guarded by a single lock."""

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: Path to the contacts YAML file. Created on first write.
        """
        self.path = path
        self.lock = threading.Lock()

    def load(self) -> list[Contact]:
        """Read all contacts. Callers that also write must hold ``lock``.

        Raises:
            BackendError: If the file cannot be read or parsed.
        """
        if not self.path.exists():
            return []

        try:
            with open(self.path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise BackendError(f"Failed to read contacts from {self.path}: {e}") from e

        records = data.get("contacts", []) if isinstance(data, dict) else None
        if not isinstance(records, list):
            raise BackendError(f"Contacts file {self.path} is malformed")

        try:
            return [Contact.model_validate(record) for record in records]
        except ValidationError as e:
            raise BackendError(f"Contacts file {self.path} is malformed: {e}") from e

    def save(self, contacts: list[Contact]) -> None:
        """Write all contacts atomically. Callers must hold ``lock``.

        Raises:
            BackendError: If the file cannot be written.
        """
        data: dict[str, Any] = {
            "contacts": [c.model_dump(exclude_none=True) for c in contacts],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".contacts-")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
                os.chmod(tmp_name, 0o600)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise BackendError(f"Failed to write contacts to {self.path}: {e}") from e


class ContactsService:
    """Contact operations, each gated on contacts authorization."""

    def __init__(self, store: ContactStore, gate: AccessGate) -> None:
        self.store = store
        self.gate = gate

    def search(self, query: str, limit: int | None = None) -> list[Contact]:
        """Find contacts whose name contains the query.

        Args:
            query: Case-insensitive substring of the name.
            limit: Optional maximum number of results.

        Returns:
            Matching contacts in store order.
        """
        self.gate.ensure_authorized()
        logger.debug("Searching contacts for %r", query)

        with self.store.lock:
            contacts = self.store.load()

        results = [c for c in contacts if c.matches(query)]
        if limit is not None:
            results = results[:limit]
        logger.info("Contact search for %r returned %d results", query, len(results))
        return results

    def get(self, contact_id: str) -> Contact | None:
        """Get a contact by ID, or None if it does not exist."""
        self.gate.ensure_authorized()

        with self.store.lock:
            contacts = self.store.load()

        for contact in contacts:
            if contact.id == contact_id:
                return contact

        logger.warning("Contact not found: %s", contact_id)
        return None

    def list_all(self, limit: int = 100) -> list[Contact]:
        """List up to ``limit`` contacts."""
        self.gate.ensure_authorized()

        with self.store.lock:
            contacts = self.store.load()

        contacts = contacts[:limit]
        logger.info("Listed %d contacts (limit %d)", len(contacts), limit)
        return contacts

    def create(
        self,
        name: str,
        phone: str | None = None,
        email: str | None = None,
        organization: str | None = None,
        notes: str | None = None,
    ) -> Contact:
        """Create a contact.

        Raises:
            ArgumentError: If the name is blank.
        """
        self.gate.ensure_authorized()

        name = name.strip()
        if not name:
            raise ArgumentError("Contact name cannot be empty")

        contact = Contact(
            id=str(uuid.uuid4()).upper(),
            name=name,
            organization=organization or None,
            notes=notes or None,
        )
        if phone:
            contact.add_phone(phone)
        if email:
            contact.add_email(email)

        with self.store.lock:
            contacts = self.store.load()
            contacts.append(contact)
            self.store.save(contacts)

        logger.info("Created contact %s (%s)", contact.id, name)
        return contact

    def update(
        self,
        contact_id: str,
        add_phone: str | None = None,
        add_email: str | None = None,
        organization: str | None = None,
        notes: str | None = None,
    ) -> Contact:
        """Update a contact.

        Phones and emails are added set-wise: a value already present after
        normalization is left alone.

        Raises:
            ContactNotFoundError: If no contact has this ID.
        """
        self.gate.ensure_authorized()

        with self.store.lock:
            contacts = self.store.load()
            contact = next((c for c in contacts if c.id == contact_id), None)
            if contact is None:
                raise ContactNotFoundError(contact_id)

            changed = False
            if add_phone is not None:
                changed |= contact.add_phone(add_phone)
            if add_email is not None:
                changed |= contact.add_email(add_email)
            if organization is not None and (organization or None) != contact.organization:
                contact.organization = organization or None
                changed = True
            if notes is not None and (notes or None) != contact.notes:
                contact.notes = notes or None
                changed = True

            if changed:
                self.store.save(contacts)

        logger.info("Updated contact %s (changed=%s)", contact_id, changed)
        return contact

    def delete(self, contact_id: str) -> dict[str, Any]:
        """Delete a contact.

        Raises:
            ContactNotFoundError: If no contact has this ID.
        """
        self.gate.ensure_authorized()

        with self.store.lock:
            contacts = self.store.load()
            remaining = [c for c in contacts if c.id != contact_id]
            if len(remaining) == len(contacts):
                raise ContactNotFoundError(contact_id)
            self.store.save(remaining)

        logger.info("Deleted contact %s", contact_id)
        return {"deleted": True, "id": contact_id}
