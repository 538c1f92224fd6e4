"""Streaming message digests: MD5, SHA-1 and SHA-256."""

from __future__ import annotations

import hashlib
from typing import Any, Optional

from calprim.errors import InvalidArgumentError, InvalidStateError, ShortBufferError

MD5_LEN = 16
SHA1_LEN = 20
SHA256_LEN = 32

PROVIDER = "Python hashlib"


class _Digester:
    """Shared update/finalize state machine for hashes and HMACs."""

    name: str = ""
    provider: str = PROVIDER

    def __init__(self, state: Any, digest_size: int) -> None:
        self._state = state
        self.digest_size = digest_size
        self._good = True

    @property
    def good(self) -> bool:
        """False once the object has been finalized or has failed."""
        return self._good

    def _update(self, data) -> None:
        if not self._good:
            raise InvalidStateError(f"{self.name} can no longer be updated")
        try:
            self._state.update(data)
        except TypeError as exc:
            self._good = False
            raise InvalidArgumentError(str(exc)) from exc

    def _finalize(self, truncate_to: int, capacity: Optional[int]) -> bytes:
        if not self._good:
            raise InvalidStateError(f"{self.name} has already been finalized")
        if truncate_to < 0:
            raise InvalidArgumentError("truncate_to must not be negative")
        required = truncate_to if 0 < truncate_to < self.digest_size else self.digest_size
        if capacity is not None and capacity < required:
            raise ShortBufferError(
                f"{required} bytes needed for {self.name}, only {capacity} available"
            )
        digest = self._state.digest()
        self._good = False
        return digest[:required]


class Hash(_Digester):
    """An incremental message digest."""

    def __init__(self, algorithm: str, name: str, digest_size: int) -> None:
        try:
            state = hashlib.new(algorithm, usedforsecurity=False)
        except ValueError as exc:
            raise InvalidArgumentError(f"hash algorithm {algorithm} unavailable") from exc
        super().__init__(state, digest_size)
        self.name = name

    def update(self, data) -> None:
        """Feed more bytes into the digest."""
        self._update(data)

    def finalize(self, truncate_to: int = 0, capacity: Optional[int] = None) -> bytes:
        """Return the digest, optionally truncated to ``truncate_to`` bytes.

        If ``capacity`` is smaller than the result, ShortBufferError is raised
        and the hash stays usable. After success the hash cannot be reused.
        """
        return self._finalize(truncate_to, capacity)


def md5_new() -> Hash:
    """Create a new MD5 hash."""
    return Hash("md5", "MD5", MD5_LEN)


def sha256_new() -> Hash:
    """Create a new SHA-256 hash."""
    return Hash("sha256", "SHA256", SHA256_LEN)


def sha1_new() -> Hash:
    """Create a new SHA-1 hash."""
    return Hash("sha1", "SHA1", SHA1_LEN)


def _compute(hasher: Hash, data, truncate_to: int, capacity: Optional[int]) -> bytes:
    hasher.update(data)
    return hasher.finalize(truncate_to, capacity)


def md5_compute(data, truncate_to: int = 0, capacity: Optional[int] = None) -> bytes:
    """Compute the MD5 digest of ``data`` in one call."""
    return _compute(md5_new(), data, truncate_to, capacity)


def sha256_compute(data, truncate_to: int = 0, capacity: Optional[int] = None) -> bytes:
    """Compute the SHA-256 digest of ``data`` in one call."""
    return _compute(sha256_new(), data, truncate_to, capacity)


def sha1_compute(data, truncate_to: int = 0, capacity: Optional[int] = None) -> bytes:
    """Compute the SHA-1 digest of ``data`` in one call."""
    return _compute(sha1_new(), data, truncate_to, capacity)