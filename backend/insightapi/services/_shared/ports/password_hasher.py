from __future__ import annotations

from typing import Protocol


class PasswordHasher(Protocol):
    """
    One-way, salted, cost-tunable password hashing.

    ``verify`` MUST compare in constant time and MUST return ``False`` (never
    raise) for a malformed digest.
    """

    def hash(self, plaintext: str) -> str: ...

    def verify(self, plaintext: str, digest: str) -> bool: ...

    def verify_dummy(self, plaintext: str) -> bool:
        """Spend one verification's worth of work and return ``False``."""
        ...
