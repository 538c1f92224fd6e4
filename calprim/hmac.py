"""Streaming HMAC with SHA-256."""

from __future__ import annotations

import hashlib
import hmac as _stdlib_hmac
from typing import Optional

from calprim.errors import InvalidArgumentError
from calprim.hash import _Digester

SHA256_HMAC_LEN = 32


class Hmac(_Digester):
    """An incremental keyed message authentication code."""

    def __init__(self, secret, name: str, digestmod, digest_size: int) -> None:
        if secret is None:
            raise InvalidArgumentError("an HMAC secret is required")
        try:
            state = _stdlib_hmac.new(bytes(secret), digestmod=digestmod)
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(str(exc)) from exc
        super().__init__(state, digest_size)
        self.name = name

    def update(self, data) -> None:
        """Feed more bytes into the MAC."""
        self._update(data)

    def finalize(self, truncate_to: int = 0, capacity: Optional[int] = None) -> bytes:
        """Return the MAC, optionally truncated to ``truncate_to`` bytes.

        If ``capacity`` is smaller than the result, ShortBufferError is raised
        and the MAC stays usable. After success the MAC cannot be reused.
        """
        return self._finalize(truncate_to, capacity)


def sha256_hmac_new(secret) -> Hmac:
    """Create a new HMAC-SHA256 keyed with ``secret``."""
    return Hmac(secret, "SHA256 HMAC", hashlib.sha256, SHA256_HMAC_LEN)


def sha256_hmac_compute(
    secret, data, truncate_to: int = 0, capacity: Optional[int] = None
) -> bytes:
    """Compute HMAC-SHA256 of ``data`` under ``secret`` in one call."""
    mac = sha256_hmac_new(secret)
    mac.update(data)
    return mac.finalize(truncate_to, capacity)