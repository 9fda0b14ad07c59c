"""One-time code generation and digesting.

Codes come from :mod:`secrets` (the OS CSPRNG) and are uniformly distributed
over the full fixed-width range. Only the digest is ever persisted; the
plaintext lives just long enough to be handed to a delivery gateway.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from dataclasses import dataclass

from .exceptions import EntropySourceError


@dataclass(frozen=True)
class GeneratedCode:
    """Plaintext code and its digest. Never log or persist ``code``."""

    code: str
    digest: str

    def __repr__(self) -> str:
        return f"GeneratedCode(code='******', digest={self.digest[:8]!r}...)"


class CodeGenerator:
    """Generates fixed-width numeric codes and their one-way digests.

    Example:
        ```python
        generator = CodeGenerator()
        generated = generator.generate()
        await gateway.send(channel, destination, render(generated.code))
        store_digest(generated.digest)
        ```
    """

    def __init__(self, code_length: int = 6, secret: bytes | None = None) -> None:
        """Initialize the generator.

        Args:
            code_length: Number of digits (default 6).
            secret: Optional HMAC key; without it digests are plain SHA-256.
        """
        if code_length <= 0:
            raise ValueError("code_length must be positive")
        self.code_length = code_length
        self._secret = secret

    def _random_code(self) -> str:
        try:
            value = secrets.randbelow(10**self.code_length)
        except (OSError, NotImplementedError) as e:
            raise EntropySourceError(f"Secure random source unavailable: {e}") from e
        return str(value).zfill(self.code_length)

    def digest(self, code: str) -> str:
        """Return the hex digest stored in place of ``code``."""
        data = code.encode("utf-8")
        if self._secret:
            return hmac.new(self._secret, data, hashlib.sha256).hexdigest()
        return hashlib.sha256(data).hexdigest()

    def generate(self) -> GeneratedCode:
        """Generate a new code.

        Raises:
            EntropySourceError: If the OS random source fails.
        """
        code = self._random_code()
        return GeneratedCode(code=code, digest=self.digest(code))

    def matches(self, submitted: str, stored_digest: str) -> bool:
        """Compare a submitted code against a stored digest in constant time."""
        candidate = self.digest(submitted.strip())
        return hmac.compare_digest(candidate, stored_digest)


__all__: list[str] = ["CodeGenerator", "GeneratedCode"]
