"""Pydantic data models."""

from suibhne.models.contact import Contact

__all__ = ["Contact"]
