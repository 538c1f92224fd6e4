"""Cryptographic primitives: MD5/SHA-1/SHA-256 hashes, HMAC-SHA256, AES-256 modes with key wrap, and ECDSA key pairs."""

__version__ = "0.1.0"
__all__ = ["errors", "hash", "hmac", "aes", "ecc"]