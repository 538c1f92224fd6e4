"""AES-256 symmetric ciphers: CBC, CTR, GCM and RFC 3394 key wrap."""

from __future__ import annotations

import secrets
from typing import Callable, Optional

from cryptography.exceptions import AlreadyFinalized, InvalidTag, NotYetFinalized
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from calprim.errors import (
    CalError,
    InvalidArgumentError,
    InvalidKeyLengthError,
    InvalidStateError,
    SignatureValidationError,
)

AES_256_CIPHER_BLOCK_SIZE = 16
AES_256_KEY_BYTE_LEN = 32
AES_256_KEY_BIT_LEN = 256
GCM_DEFAULT_IV_LEN = AES_256_CIPHER_BLOCK_SIZE - 4
KEYWRAP_BLOCK_SIZE = 8
MIN_CEK_LENGTH_BYTES = 128 // 8
INTEGRITY_VALUE = 0xA6

PROVIDER = "cryptography"

_BACKEND_ERRORS = (ValueError, TypeError, InvalidTag, AlreadyFinalized, NotYetFinalized)


def _material(value, what: str) -> bytes:
    try:
        return bytes(memoryview(value))
    except TypeError as exc:
        raise InvalidArgumentError(f"{what} must be bytes-like") from exc


def _generate_iv(length: int, counter_mode: bool) -> bytes:
    """Random IV; in counter mode the last four bytes are a big-endian counter of 1."""
    if counter_mode:
        return secrets.token_bytes(length - 4) + (1).to_bytes(4, "big")
    return secrets.token_bytes(length)


class SymmetricCipher:
    """A streaming symmetric cipher with separate encrypt and decrypt state."""

    name: str = ""
    provider: str = PROVIDER
    block_size: int = AES_256_CIPHER_BLOCK_SIZE
    key_length_bits: int = AES_256_KEY_BIT_LEN

    def __init__(self, key=None, iv=None) -> None:
        if key is None:
            self._key = secrets.token_bytes(AES_256_KEY_BYTE_LEN)
        else:
            self._key = _material(key, "key")
        if len(self._key) != AES_256_KEY_BYTE_LEN:
            raise InvalidKeyLengthError(
                f"{self.name} needs a {AES_256_KEY_BYTE_LEN} byte key, got {len(self._key)}"
            )
        self._iv = self._choose_iv(iv)
        self._good = True
        try:
            self._init_materials()
        except _BACKEND_ERRORS as exc:
            raise InvalidArgumentError(f"cannot initialise {self.name}: {exc}") from exc

    @property
    def key(self) -> bytes:
        """The cipher key."""
        return self._key

    @property
    def iv(self) -> bytes:
        """The initialization vector (empty where the mode has none)."""
        return self._iv

    @property
    def good(self) -> bool:
        """False once an operation has failed; reset() makes it usable again."""
        return self._good

    def encrypt(self, data) -> bytes:
        """Encrypt ``data`` and return whatever output is ready."""
        return self._run(self._encrypt, _material(data, "data"))

    def decrypt(self, data) -> bytes:
        """Decrypt ``data`` and return whatever output is ready."""
        return self._run(self._decrypt, _material(data, "data"))

    def finalize_encryption(self) -> bytes:
        """Finish encryption and return the remaining output."""
        return self._run(self._finalize_encryption)

    def finalize_decryption(self) -> bytes:
        """Finish decryption and return the remaining output."""
        return self._run(self._finalize_decryption)

    def reset(self) -> None:
        """Drop all streaming state and start over with the same key material."""
        self._good = True
        try:
            self._init_materials()
        except _BACKEND_ERRORS as exc:
            self._good = False
            raise InvalidArgumentError(f"cannot reset {self.name}: {exc}") from exc

    def _run(self, operation: Callable[..., bytes], *args) -> bytes:
        if not self._good:
            raise InvalidStateError(f"{self.name} is not in a usable state")
        try:
            return operation(*args)
        except CalError:
            self._good = False
            raise
        except _BACKEND_ERRORS as exc:
            self._good = False
            raise InvalidArgumentError(str(exc) or f"{self.name} operation failed") from exc

    def _choose_iv(self, iv) -> bytes:
        if iv is None:
            return self._generate_iv()
        return _material(iv, "iv")

    def _generate_iv(self) -> bytes:
        return _generate_iv(AES_256_CIPHER_BLOCK_SIZE, counter_mode=False)

    def _init_materials(self) -> None:
        raise NotImplementedError

    def _encrypt(self, data: bytes) -> bytes:
        return self._encryptor.update(data)

    def _decrypt(self, data: bytes) -> bytes:
        return self._decryptor.update(data)

    def _finalize_encryption(self) -> bytes:
        return self._encryptor.finalize()

    def _finalize_decryption(self) -> bytes:
        return self._decryptor.finalize()


class AesCbc256(SymmetricCipher):
    """AES-256 in CBC mode with PKCS#7 padding."""

    name = "AES-CBC 256"

    def _init_materials(self) -> None:
        cipher = Cipher(algorithms.AES(self._key), modes.CBC(self._iv))
        self._encryptor = cipher.encryptor()
        self._decryptor = cipher.decryptor()
        self._padder = padding.PKCS7(AES_256_CIPHER_BLOCK_SIZE * 8).padder()
        self._unpadder = padding.PKCS7(AES_256_CIPHER_BLOCK_SIZE * 8).unpadder()

    def _encrypt(self, data: bytes) -> bytes:
        return self._encryptor.update(self._padder.update(data))

    def _decrypt(self, data: bytes) -> bytes:
        return self._unpadder.update(self._decryptor.update(data))

    def _finalize_encryption(self) -> bytes:
        tail = self._encryptor.update(self._padder.finalize())
        return tail + self._encryptor.finalize()

    def _finalize_decryption(self) -> bytes:
        tail = self._unpadder.update(self._decryptor.finalize())
        return tail + self._unpadder.finalize()


class AesCtr256(SymmetricCipher):
    """AES-256 in counter mode."""

    name = "AES-CTR 256"

    def _generate_iv(self) -> bytes:
        return _generate_iv(AES_256_CIPHER_BLOCK_SIZE, counter_mode=True)

    def _init_materials(self) -> None:
        cipher = Cipher(algorithms.AES(self._key), modes.CTR(self._iv))
        self._encryptor = cipher.encryptor()
        self._decryptor = cipher.decryptor()


class AesGcm256(SymmetricCipher):
    """AES-256 in Galois/Counter mode with optional additional data."""

    name = "AES-GCM 256"

    def __init__(self, key=None, iv=None, aad=None, decryption_tag=None) -> None:
        self._aad = _material(aad, "aad") if aad is not None else b""
        self._tag = _material(decryption_tag, "tag") if decryption_tag is not None else b""
        super().__init__(key, iv)

    @property
    def aad(self) -> bytes:
        """The additional authenticated data."""
        return self._aad

    @property
    def tag(self) -> bytes:
        """The authentication tag: given for decryption or produced by encryption."""
        return self._tag

    def _generate_iv(self) -> bytes:
        return _generate_iv(GCM_DEFAULT_IV_LEN, counter_mode=False)

    def _init_materials(self) -> None:
        self._encryptor = Cipher(algorithms.AES(self._key), modes.GCM(self._iv)).encryptor()
        if self._tag:
            mode = modes.GCM(self._iv, self._tag, min_tag_length=4)
        else:
            mode = modes.GCM(self._iv)
        self._decryptor = Cipher(algorithms.AES(self._key), mode).decryptor()
        if self._aad:
            self._encryptor.authenticate_additional_data(self._aad)
            self._decryptor.authenticate_additional_data(self._aad)

    def _finalize_encryption(self) -> bytes:
        tail = self._encryptor.finalize()
        if not self._tag:
            self._tag = self._encryptor.tag
        return tail


class AesKeyWrap256(SymmetricCipher):
    """AES-256 key wrap (RFC 3394); input is buffered until finalization."""

    name = "AES-KEYWRAP 256"
    block_size = KEYWRAP_BLOCK_SIZE

    def __init__(self, key=None) -> None:
        super().__init__(key, None)

    def _choose_iv(self, iv) -> bytes:
        return b""

    def _init_materials(self) -> None:
        ecb = Cipher(algorithms.AES(self._key), modes.ECB())
        self._encryptor = ecb.encryptor()
        self._decryptor = ecb.decryptor()
        self._working = bytearray()

    def _encrypt(self, data: bytes) -> bytes:
        self._working += data
        return b""

    _decrypt = _encrypt

    def _finalize_encryption(self) -> bytes:
        if len(self._working) < MIN_CEK_LENGTH_BYTES:
            raise InvalidStateError(
                f"key wrap needs at least {MIN_CEK_LENGTH_BYTES} bytes of key data"
            )
        n = len(self._working) // KEYWRAP_BLOCK_SIZE
        register = bytearray([INTEGRITY_VALUE] * KEYWRAP_BLOCK_SIZE)
        blocks = [
            bytearray(self._working[start:start + KEYWRAP_BLOCK_SIZE])
            for start in range(0, n * KEYWRAP_BLOCK_SIZE, KEYWRAP_BLOCK_SIZE)
        ]
        tail = bytes(self._working[n * KEYWRAP_BLOCK_SIZE:])

        for j in range(6):
            for i, block in enumerate(blocks, start=1):
                b = self._encryptor.update(bytes(register) + bytes(block))
                register[:] = b[:KEYWRAP_BLOCK_SIZE]
                register[7] ^= (n * j + i) & 0xFF
                block[:] = b[KEYWRAP_BLOCK_SIZE:]

        return bytes(register) + b"".join(bytes(block) for block in blocks) + tail

    def _finalize_decryption(self) -> bytes:
        if len(self._working) < MIN_CEK_LENGTH_BYTES + KEYWRAP_BLOCK_SIZE:
            raise InvalidStateError(
                "key unwrap needs at least "
                f"{MIN_CEK_LENGTH_BYTES + KEYWRAP_BLOCK_SIZE} bytes of wrapped data"
            )
        register = bytearray(self._working[:KEYWRAP_BLOCK_SIZE])
        body = bytes(self._working[KEYWRAP_BLOCK_SIZE:])
        n = len(body) // KEYWRAP_BLOCK_SIZE
        # Registers are aligned to the end of the wrapped data.
        head_len = len(body) - n * KEYWRAP_BLOCK_SIZE
        head = body[:head_len]
        blocks = [
            bytearray(body[start:start + KEYWRAP_BLOCK_SIZE])
            for start in range(head_len, len(body), KEYWRAP_BLOCK_SIZE)
        ]

        for j in reversed(range(6)):
            for i, block in reversed(list(enumerate(blocks, start=1))):
                a_xor_t = bytearray(register)
                a_xor_t[7] ^= (n * j + i) & 0xFF
                b = self._decryptor.update(bytes(a_xor_t) + bytes(block))
                register[:] = b[:KEYWRAP_BLOCK_SIZE]
                block[:] = b[KEYWRAP_BLOCK_SIZE:]

        self._working[:KEYWRAP_BLOCK_SIZE] = register
        if any(byte != INTEGRITY_VALUE for byte in register):
            raise SignatureValidationError("key unwrap integrity check failed")
        return head + b"".join(bytes(block) for block in blocks)


def aes_cbc_256_new(key=None, iv: Optional[bytes] = None) -> AesCbc256:
    """Create an AES-256-CBC cipher; missing key or IV are generated randomly."""
    return AesCbc256(key, iv)


def aes_ctr_256_new(key=None, iv: Optional[bytes] = None) -> AesCtr256:
    """Create an AES-256-CTR cipher; missing key or IV are generated randomly."""
    return AesCtr256(key, iv)


def aes_gcm_256_new(key=None, iv=None, aad=None, decryption_tag=None) -> AesGcm256:
    """Create an AES-256-GCM cipher; missing key or IV are generated randomly."""
    return AesGcm256(key, iv, aad, decryption_tag)


def aes_keywrap_256_new(key=None) -> AesKeyWrap256:
    """Create an AES-256 key wrap cipher; a missing key is generated randomly."""
    return AesKeyWrap256(key)