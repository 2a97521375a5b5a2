"""Shared types for codesync.

This module defines the identity types used as the partition key for
all remote state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Provider(str, Enum):
    """Identity provider that vouched for a user's email."""

    GITHUB = "github"
    MICROSOFT = "microsoft"


@dataclass(frozen=True)
class Identity:
    """Authenticated user for the current session.

    Immutable once resolved; the email partitions all remote state.
    """

    email: str
    provider: Provider


@dataclass(frozen=True)
class IdentityResult:
    """Outcome of an identity lookup."""

    found: bool
    email: str | None = None
    provider: Provider | None = None

    @classmethod
    def not_found(cls) -> IdentityResult:
        return cls(found=False)

    def to_identity(self) -> Identity:
        """Convert a successful lookup into an Identity.

        Raises:
            ValueError: If the lookup did not find an account.
        """
        if not self.found or self.email is None or self.provider is None:
            raise ValueError("No account was found")
        return Identity(email=self.email, provider=self.provider)
