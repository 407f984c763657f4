"""Identity verification and per-connection tokens."""

import secrets
from collections.abc import Iterable
from typing import Protocol


def normalize_identity(identity: str | None) -> str:
    """Trim and lower-case an identity; None becomes an empty string."""
    return (identity or "").strip().lower()


class IdentityProvider(Protocol):
    """Verifies identities handed over by the login layer."""

    def verify(self, identity: str) -> str | None:
        """Return the normalized identity, or None if it is not valid."""


class TrustedHeaderIdentityProvider:
    """Accepts identities already verified upstream (login proxy, session cookie).

    An optional allow-list restricts which identities are accepted; removing
    an identity from it takes effect on that identity's next message.
    """

    def __init__(self, allowed: Iterable[str] | None = None) -> None:
        """Initialize the provider.

        Args:
            allowed: Identities to accept; None accepts any non-blank identity

        """
        self.allowed: set[str] | None = (
            {normalize_identity(identity) for identity in allowed} if allowed is not None else None
        )

    def verify(self, identity: str) -> str | None:
        """Return the normalized identity, or None if blank or not allowed."""
        normalized = normalize_identity(identity)
        if not normalized:
            return None
        if self.allowed is not None and normalized not in self.allowed:
            return None
        return normalized

    def revoke(self, identity: str) -> None:
        """Stop accepting ``identity`` (only meaningful with an allow-list)."""
        if self.allowed is not None:
            self.allowed.discard(normalize_identity(identity))


def issue_token() -> str:
    """Create an unguessable per-connection token."""
    return secrets.token_urlsafe(24)
