"""
Shared-secret credential for Chat Bridge.

The credential is built once at startup from Settings and handed to the
Gateway. It is never read from the environment inside request handling.

Matching is exact: the raw Authorization header value must equal the
configured secret. No "Bearer" scheme is parsed. An empty secret matches
nothing, so an unconfigured bridge rejects every request.
"""

import hmac
from dataclasses import dataclass, field
from typing import Optional

from pydantic import SecretStr


@dataclass(frozen=True)
class Credential:
    """
    Immutable shared secret.

    Attributes:
        secret: The expected Authorization header value. Excluded from repr.
    """

    secret: str = field(default="", repr=False)

    @classmethod
    def from_secret(cls, value: Optional[SecretStr]) -> "Credential":
        """
        Build a credential from a settings SecretStr.

        Args:
            value: The configured secret (None is treated as unset).

        Returns:
            Credential wrapping the plain secret value.
        """
        if value is None:
            return cls("")
        return cls(value.get_secret_value())

    @property
    def is_configured(self) -> bool:
        """True when a non-empty secret is set."""
        return bool(self.secret)

    def matches(self, presented: Optional[str]) -> bool:
        """
        Check a presented Authorization header value.

        Args:
            presented: Raw header value; None is treated as the empty string.

        Returns:
            True only if a secret is configured and the value matches it exactly.
        """
        if not self.is_configured:
            return False
        candidate = (presented or "").encode("utf-8")
        return hmac.compare_digest(candidate, self.secret.encode("utf-8"))
