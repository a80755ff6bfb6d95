"""Core domain models for the credential store."""

from authstore.core.models import User

__all__ = ["User"]
