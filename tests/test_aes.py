import pytest
from cryptography.hazmat.primitives import keywrap
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from calprim.aes import (
    aes_cbc_256_new,
    aes_ctr_256_new,
    aes_gcm_256_new,
    aes_keywrap_256_new,
)
from calprim.errors import (
    InvalidArgumentError,
    InvalidKeyLengthError,
    InvalidStateError,
    SignatureValidationError,
)

KEY = bytes(range(32))
IV16 = bytes(range(16))
IV12 = bytes(range(12))
PLAINTEXT = b"the quick brown fox jumps over the lazy dog, many times over"

SP800_KEY = bytes.fromhex(
    "603deb1015ca71be2b73aef0857d77811f352c073b6108d72d9810a30914dff4"
)
SP800_BLOCK = bytes.fromhex("6bc1bee22e409f96e93d7e117393172a")


def _encrypt_all(cipher, data, chunk=7):
    out = b"".join(cipher.encrypt(data[k:k + chunk]) for k in range(0, len(data), chunk))
    return out + cipher.finalize_encryption()


def _decrypt_all(cipher, data, chunk=5):
    out = b"".join(cipher.decrypt(data[k:k + chunk]) for k in range(0, len(data), chunk))
    return out + cipher.finalize_decryption()


def test_cbc_sp800_38a_first_block():
    cipher = aes_cbc_256_new(SP800_KEY, IV16)
    ciphertext = cipher.encrypt(SP800_BLOCK) + cipher.finalize_encryption()
    assert ciphertext[:16] == bytes.fromhex("f58c4c04d6e5f1ba779eabfb5f7bfbd6")
    assert len(ciphertext) == 32


def test_cbc_round_trip_streamed():
    cipher = aes_cbc_256_new(KEY, IV16)
    ciphertext = _encrypt_all(cipher, PLAINTEXT)
    assert len(ciphertext) % 16 == 0
    assert len(ciphertext) > len(PLAINTEXT)
    assert _decrypt_all(cipher, ciphertext) == PLAINTEXT


def test_cbc_decrypt_unaligned_fails():
    cipher = aes_cbc_256_new(KEY, IV16)
    cipher.decrypt(b"\x00" * 15)
    with pytest.raises(InvalidArgumentError):
        cipher.finalize_decryption()
    assert cipher.good is False


def test_cbc_bad_padding_fails_then_reset_recovers():
    cipher = aes_cbc_256_new(KEY, IV16)
    ciphertext = bytearray(_encrypt_all(cipher, bytes(16)))
    ciphertext[15] ^= 0x10  # makes the last padding byte decrypt to zero
    cipher.reset()
    with pytest.raises(InvalidArgumentError):
        _decrypt_all(cipher, bytes(ciphertext))
    with pytest.raises(InvalidStateError):
        cipher.encrypt(b"more")
    cipher.reset()
    assert cipher.good is True
    assert _decrypt_all(cipher, _encrypt_all(cipher, b"again")) == b"again"


def test_reset_gives_same_ciphertext():
    cipher = aes_cbc_256_new(KEY, IV16)
    first = _encrypt_all(cipher, PLAINTEXT)
    cipher.reset()
    assert _encrypt_all(cipher, PLAINTEXT, chunk=11) == first


def test_default_key_and_iv_generated():
    cipher = aes_cbc_256_new()
    assert len(cipher.key) == 32
    assert len(cipher.iv) == 16
    other = aes_cbc_256_new()
    assert other.key != cipher.key


def test_wrong_key_length_rejected():
    with pytest.raises(InvalidKeyLengthError):
        aes_cbc_256_new(bytes(16), IV16)


def test_wrong_iv_length_rejected():
    with pytest.raises(InvalidArgumentError):
        aes_ctr_256_new(KEY, bytes(5))


def test_ctr_sp800_38a_first_block():
    counter = bytes.fromhex("f0f1f2f3f4f5f6f7f8f9fafbfcfdfeff")
    cipher = aes_ctr_256_new(SP800_KEY, counter)
    ciphertext = cipher.encrypt(SP800_BLOCK) + cipher.finalize_encryption()
    assert ciphertext == bytes.fromhex("601ec313775789a5b7a7f504bbf3d228")


def test_ctr_round_trip_keeps_length():
    cipher = aes_ctr_256_new(KEY, IV16)
    ciphertext = _encrypt_all(cipher, PLAINTEXT)
    assert len(ciphertext) == len(PLAINTEXT)
    assert _decrypt_all(cipher, ciphertext) == PLAINTEXT


def test_ctr_default_iv_counter_starts_at_one():
    cipher = aes_ctr_256_new(KEY)
    assert len(cipher.iv) == 16
    assert cipher.iv[-4:] == b"\x00\x00\x00\x01"


def test_gcm_matches_aead_and_round_trips():
    aad = b"header"
    enc = aes_gcm_256_new(KEY, IV12, aad=aad)
    ciphertext = _encrypt_all(enc, PLAINTEXT)
    assert len(enc.tag) == 16
    assert ciphertext + enc.tag == AESGCM(KEY).encrypt(IV12, PLAINTEXT, aad)

    dec = aes_gcm_256_new(KEY, IV12, aad=aad, decryption_tag=enc.tag)
    assert _decrypt_all(dec, ciphertext) == PLAINTEXT


def test_gcm_reset_uses_tag_from_encryption():
    cipher = aes_gcm_256_new(KEY, IV12)
    ciphertext = _encrypt_all(cipher, PLAINTEXT)
    cipher.reset()
    assert _decrypt_all(cipher, ciphertext) == PLAINTEXT


def test_gcm_given_tag_is_not_overwritten():
    given = bytes(16)
    cipher = aes_gcm_256_new(KEY, IV12, decryption_tag=given)
    _encrypt_all(cipher, PLAINTEXT)
    assert cipher.tag == given


def test_gcm_wrong_tag_fails():
    enc = aes_gcm_256_new(KEY, IV12)
    ciphertext = _encrypt_all(enc, PLAINTEXT)
    bad_tag = bytes(b ^ 0x01 for b in enc.tag)
    dec = aes_gcm_256_new(KEY, IV12, decryption_tag=bad_tag)
    with pytest.raises(InvalidArgumentError):
        _decrypt_all(dec, ciphertext)
    assert dec.good is False


def test_gcm_wrong_aad_fails():
    enc = aes_gcm_256_new(KEY, IV12, aad=b"one")
    ciphertext = _encrypt_all(enc, PLAINTEXT)
    dec = aes_gcm_256_new(KEY, IV12, aad=b"two", decryption_tag=enc.tag)
    with pytest.raises(InvalidArgumentError):
        _decrypt_all(dec, ciphertext)
    assert dec.good is False


def test_gcm_decrypt_without_tag_fails():
    cipher = aes_gcm_256_new(KEY, IV12)
    cipher.decrypt(b"abc")
    with pytest.raises(InvalidArgumentError):
        cipher.finalize_decryption()


def test_gcm_default_iv_length():
    cipher = aes_gcm_256_new(KEY)
    assert len(cipher.iv) == 12
    assert cipher.tag == b""


def test_keywrap_rfc3394_vectors():
    kek = bytes.fromhex("000102030405060708090A0B0C0D0E0F101112131415161718191A1B1C1D1E1F")
    cipher = aes_keywrap_256_new(kek)
    cipher.encrypt(bytes.fromhex("00112233445566778899AABBCCDDEEFF"))
    assert cipher.finalize_encryption() == bytes.fromhex(
        "64E8C3F9CE0F5BA263E9777905818A2A93C8191E7D6E8AE7"
    )

    cipher = aes_keywrap_256_new(kek)
    cipher.encrypt(
        bytes.fromhex("00112233445566778899AABBCCDDEEFF000102030405060708090A0B0C0D0E0F")
    )
    assert cipher.finalize_encryption() == bytes.fromhex(
        "28C9F404C4B810F4CBCCB35CFB87F8263F5786E2D80ED326CBC7F0E71A99F43BFB988B9B7A02DD21"
    )


def test_keywrap_matches_library_and_round_trips():
    content_key = bytes(range(100, 132))
    cipher = aes_keywrap_256_new(KEY)
    assert cipher.encrypt(content_key[:10]) == b""
    cipher.encrypt(content_key[10:])
    wrapped = cipher.finalize_encryption()
    assert wrapped == keywrap.aes_key_wrap(KEY, content_key)
    assert cipher.block_size == 8

    unwrapper = aes_keywrap_256_new(KEY)
    assert unwrapper.decrypt(wrapped) == b""
    assert unwrapper.finalize_decryption() == content_key


def test_keywrap_encrypt_too_short():
    cipher = aes_keywrap_256_new(KEY)
    cipher.encrypt(bytes(8))
    with pytest.raises(InvalidStateError):
        cipher.finalize_encryption()
    assert cipher.good is False


def test_keywrap_decrypt_too_short():
    cipher = aes_keywrap_256_new(KEY)
    cipher.decrypt(bytes(16))
    with pytest.raises(InvalidStateError):
        cipher.finalize_decryption()


def test_keywrap_tampered_fails_integrity():
    content_key = bytes(range(16))
    wrapped = bytearray(keywrap.aes_key_wrap(KEY, content_key))
    wrapped[-1] ^= 0xFF
    cipher = aes_keywrap_256_new(KEY)
    cipher.decrypt(bytes(wrapped))
    with pytest.raises(SignatureValidationError):
        cipher.finalize_decryption()
    assert cipher.good is False


def test_keywrap_reset_clears_buffer():
    cipher = aes_keywrap_256_new(KEY)
    cipher.encrypt(bytes(16))
    cipher.reset()
    cipher.encrypt(bytes(range(16)))
    assert cipher.finalize_encryption() == keywrap.aes_key_wrap(KEY, bytes(range(16)))


def test_non_bytes_data_rejected():
    cipher = aes_ctr_256_new(KEY, IV16)
    with pytest.raises(InvalidArgumentError):
        cipher.encrypt("text")