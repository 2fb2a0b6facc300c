"""
Entropy Sources

Key generation consumes randomness through the EntropySource interface
and never generates it itself. SystemEntropySource adapts the operating
system CSPRNG (secrets module).

A source must either return exactly the requested number of bytes or
raise EntropyExhaustedError; short or zero-filled output is never
acceptable.
"""

import secrets
from typing import Protocol, runtime_checkable

from ..errors import EntropyExhaustedError


@runtime_checkable
class EntropySource(Protocol):
    """Supplier of cryptographically secure random bytes."""

    def random_bytes(self, n: int) -> bytes:
        ...


class SystemEntropySource:
    """Entropy from the operating system CSPRNG."""

    def random_bytes(self, n: int) -> bytes:
        """
        Return n random bytes.

        Raises:
            EntropyExhaustedError: If the OS source fails
        """
        try:
            return secrets.token_bytes(n)
        except (OSError, NotImplementedError) as exc:
            raise EntropyExhaustedError(f"System entropy unavailable: {exc}") from exc

    def __repr__(self) -> str:
        return "SystemEntropySource()"


def draw_bytes(source: EntropySource, n: int) -> bytes:
    """
    Draw exactly n bytes from a caller-supplied source.

    Any failure of the source, or a short read, is reported as
    EntropyExhaustedError.

    Args:
        source: Entropy source
        n: Number of bytes required

    Returns:
        n random bytes
    """
    try:
        data = source.random_bytes(n)
    except EntropyExhaustedError:
        raise
    except Exception as exc:
        raise EntropyExhaustedError(f"Entropy source failed: {exc}") from exc

    if not isinstance(data, (bytes, bytearray)) or len(data) != n:
        got = len(data) if isinstance(data, (bytes, bytearray)) else type(data).__name__
        raise EntropyExhaustedError(f"Entropy source returned {got} of {n} bytes")
    return bytes(data)
