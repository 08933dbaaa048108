"""Principal — opaque caller / owner identity.

A principal is compared for equality and nothing else.  "No identity"
(a missing value, a blank string, or the configured burn address) is
never wrapped in a Principal: `parse_principal` returns None for it, and
every operation that needs a real identity rejects None with ZERO_ADDRESS.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.config import settings

# Width of every principal column (VARCHAR)
PRINCIPAL_MAX_LENGTH = 128


@dataclass(frozen=True)
class Principal:
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValueError("Principal value must be a non-empty string.")
        if len(self.value) > PRINCIPAL_MAX_LENGTH:
            raise ValueError(
                f"Principal value must be at most {PRINCIPAL_MAX_LENGTH} characters."
            )

    def __str__(self) -> str:
        return self.value


def parse_principal(raw: str | None, null_value: str | None = None) -> Principal | None:
    """Turn an external identity string into a Principal, or None if absent."""
    if raw is None:
        return None
    raw = raw.strip()
    null_value = settings.null_principal if null_value is None else null_value
    if not raw or raw == null_value:
        return None
    return Principal(raw)
