"""Capability backends."""

from suibhne.services.authorization import AccessGate, AuthorizationStatus
from suibhne.services.contacts import ContactsService, ContactStore
from suibhne.services.openclaw import ConfigFileService, SkillsService

__all__ = [
    "AccessGate",
    "AuthorizationStatus",
    "ContactStore",
    "ContactsService",
    "ConfigFileService",
    "SkillsService",
]
