"""ECDSA key pairs on the NIST P-256 and P-384 curves."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

from calprim.errors import (
    InvalidArgumentError,
    InvalidKeyLengthError,
    InvalidStateError,
    SignatureValidationError,
)


class EccCurve(Enum):
    """Supported elliptic curves."""

    P256 = "P-256"
    P384 = "P-384"

    @property
    def coordinate_byte_size(self) -> int:
        """Size in bytes of one coordinate or of a private key on this curve."""
        return 32 if self is EccCurve.P256 else 48

    def _curve(self) -> ec.EllipticCurve:
        return ec.SECP256R1() if self is EccCurve.P256 else ec.SECP384R1()

    def _prehash(self) -> hashes.HashAlgorithm:
        return hashes.SHA256() if self is EccCurve.P256 else hashes.SHA384()


def _minimal_bytes(value: int) -> bytes:
    """Big-endian bytes of ``value`` with no leading zero bytes."""
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def _der_length_size(length: int) -> int:
    return 1 if length < 0x80 else 1 + len(_minimal_bytes(length))


def _der_tlv_size(content_length: int) -> int:
    return 1 + _der_length_size(content_length) + content_length


def _as_bytes(value, what: str) -> bytes:
    try:
        return bytes(memoryview(value))
    except TypeError as exc:
        raise InvalidArgumentError(f"{what} must be bytes-like") from exc


class EccKeyPair:
    """An ECDSA key pair; may hold only a public or only a private key."""

    def __init__(
        self,
        curve: EccCurve,
        *,
        private_key: Optional[ec.EllipticCurvePrivateKey] = None,
        public_key: Optional[ec.EllipticCurvePublicKey] = None,
        priv_d: bytes = b"",
        pub_x: bytes = b"",
        pub_y: bytes = b"",
    ) -> None:
        self.curve = curve
        self._private_key = private_key
        self._public_key = public_key
        self._priv_d = priv_d
        self._pub_x = pub_x
        self._pub_y = pub_y

    @property
    def priv_d(self) -> bytes:
        """The private scalar, or empty if this is a public key only."""
        return self._priv_d

    @property
    def pub_x(self) -> bytes:
        """The public point's x coordinate, or empty if not yet known."""
        return self._pub_x

    @property
    def pub_y(self) -> bytes:
        """The public point's y coordinate, or empty if not yet known."""
        return self._pub_y

    @classmethod
    def from_private_key(cls, curve: EccCurve, private_key) -> "EccKeyPair":
        """Build a key pair from a private scalar of exactly the curve's size."""
        priv_d = _as_bytes(private_key, "private key")
        if len(priv_d) != curve.coordinate_byte_size:
            raise InvalidKeyLengthError(
                "private key length does not match the curve's expected length"
            )
        try:
            key = ec.derive_private_key(int.from_bytes(priv_d, "big"), curve._curve())
        except (ValueError, UnsupportedAlgorithm) as exc:
            raise InvalidArgumentError(f"invalid private key: {exc}") from exc
        return cls(curve, private_key=key, priv_d=priv_d)

    @classmethod
    def from_public_key(cls, curve: EccCurve, x, y) -> "EccKeyPair":
        """Build a public-only key pair from the point's affine coordinates."""
        pub_x = _as_bytes(x, "x coordinate")
        pub_y = _as_bytes(y, "y coordinate")
        numbers = ec.EllipticCurvePublicNumbers(
            int.from_bytes(pub_x, "big"), int.from_bytes(pub_y, "big"), curve._curve()
        )
        try:
            key = numbers.public_key()
        except (ValueError, UnsupportedAlgorithm) as exc:
            raise InvalidArgumentError(f"invalid public key point: {exc}") from exc
        return cls(curve, public_key=key, pub_x=pub_x, pub_y=pub_y)

    @classmethod
    def generate_random(cls, curve: EccCurve) -> "EccKeyPair":
        """Generate a fresh random key pair on ``curve``."""
        key = ec.generate_private_key(curve._curve())
        public_numbers = key.public_key().public_numbers()
        return cls(
            curve,
            private_key=key,
            public_key=key.public_key(),
            priv_d=_minimal_bytes(key.private_numbers().private_value),
            pub_x=_minimal_bytes(public_numbers.x),
            pub_y=_minimal_bytes(public_numbers.y),
        )

    def _normalized_digest(self, digest) -> bytes:
        data = _as_bytes(digest, "digest")
        size = self.curve.coordinate_byte_size
        # ECDSA uses the leftmost bits of the digest up to the order's size.
        return data[:size] if len(data) >= size else data.rjust(size, b"\x00")

    def sign_message(self, digest) -> bytes:
        """Sign a message digest; returns a DER-encoded ECDSA signature."""
        if self._private_key is None:
            raise InvalidArgumentError("signing requires a private key")
        prepared = self._normalized_digest(digest)
        try:
            return self._private_key.sign(prepared, ec.ECDSA(Prehashed(self.curve._prehash())))
        except ValueError as exc:
            raise InvalidArgumentError(f"signing failed: {exc}") from exc

    def verify_signature(self, digest, signature) -> None:
        """Check a DER-encoded signature over ``digest``; raise if it does not hold."""
        public_key = self._public_key
        if public_key is None and self._private_key is not None:
            public_key = self._private_key.public_key()
        if public_key is None:
            raise SignatureValidationError("no key available to verify with")
        prepared = self._normalized_digest(digest)
        sig = _as_bytes(signature, "signature")
        try:
            public_key.verify(sig, prepared, ec.ECDSA(Prehashed(self.curve._prehash())))
        except (InvalidSignature, ValueError) as exc:
            raise SignatureValidationError("signature validation failed") from exc

    def derive_public_key(self) -> None:
        """Fill in the public coordinates from the private scalar."""
        if self._private_key is None:
            raise InvalidStateError("deriving a public key requires a private key")
        if self._pub_x:
            return
        public_key = self._private_key.public_key()
        numbers = public_key.public_numbers()
        self._public_key = public_key
        self._pub_x = _minimal_bytes(numbers.x)
        self._pub_y = _minimal_bytes(numbers.y)

    def signature_length(self) -> int:
        """Largest possible length of a DER-encoded signature for this curve."""
        integer = _der_tlv_size(self.curve.coordinate_byte_size + 1)
        return _der_tlv_size(2 * integer)