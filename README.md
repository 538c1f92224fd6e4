# calprim

Small cryptographic primitives that share one streaming interface:

- Hashes: MD5, SHA-1 and SHA-256 (`calprim.hash`)
- HMAC-SHA256 (`calprim.hmac`)
- AES-256 in CBC, CTR and GCM modes, plus AES key wrap as in RFC 3394 (`calprim.aes`)
- ECDSA key pairs on P-256 and P-384 (`calprim.ecc`)

Every error is a subclass of `calprim.errors.CalError`:
`InvalidStateError`, `InvalidArgumentError`, `ShortBufferError`,
`SignatureValidationError` and `InvalidKeyLengthError`.

## Installation

```
pip install calprim
```

The package depends on `cryptography`.

## Hashing

```python
from calprim.hash import sha256_new, md5_compute

h = sha256_new()
h.update(b"ab")
h.update(b"c")
digest = h.finalize()

md5_digest = md5_compute(b"message digest")
prefix = md5_compute(b"message digest", truncate_to=8)
```

`md5_new`, `sha1_new` and `sha256_new` create a `Hash`. `md5_compute`,
`sha1_compute` and `sha256_compute` hash data in one call.

`finalize(truncate_to=0, capacity=None)` returns the digest. A non-zero
`truncate_to` that is smaller than the digest size cuts the result to that many
bytes. If `capacity` is given and is smaller than the result,
`ShortBufferError` is raised and the hash can still be used. After a
successful `finalize`, a further `update` or `finalize` raises
`InvalidStateError`. The `good` property shows whether the object can still be
used.

## HMAC

```python
from calprim.hmac import sha256_hmac_new, sha256_hmac_compute

mac = sha256_hmac_new(b"secret")
mac.update(b"payload")
tag = mac.finalize()

same_tag = sha256_hmac_compute(b"secret", b"payload")
```

`Hmac.finalize` takes the same `truncate_to` and `capacity` arguments as
`Hash.finalize` and follows the same rules. A missing secret raises
`InvalidArgumentError`.

## AES-256

All ciphers derive from `SymmetricCipher`. Each one keeps separate encrypt and
decrypt state, and each has these methods: `encrypt`, `decrypt`,
`finalize_encryption`, `finalize_decryption` and `reset`. Keys must be 32
bytes, or `InvalidKeyLengthError` is raised. When no key or IV is given, one is
generated at random. You can read them back through the `key` and `iv`
properties.

```python
from calprim.aes import aes_cbc_256_new, aes_gcm_256_new, aes_keywrap_256_new

cbc = aes_cbc_256_new()            # random key and IV, PKCS#7 padding
ciphertext = cbc.encrypt(b"hello") + cbc.finalize_encryption()
cbc.reset()
plaintext = cbc.decrypt(ciphertext) + cbc.finalize_decryption()

gcm = aes_gcm_256_new(aad=b"header")
sealed = gcm.encrypt(b"hello") + gcm.finalize_encryption()
tag = gcm.tag                      # produced by finalize_encryption

opener = aes_gcm_256_new(key=gcm.key, iv=gcm.iv, aad=b"header", decryption_tag=tag)
opened = opener.decrypt(sealed) + opener.finalize_decryption()

wrap = aes_keywrap_256_new()
wrap.encrypt(bytes(32))
wrapped = wrap.finalize_encryption()
wrap.reset()
wrap.decrypt(wrapped)
unwrapped = wrap.finalize_decryption()
```

Notes on each mode:

- **CTR** (`aes_ctr_256_new`): a generated IV ends in a 4-byte big-endian
  counter that starts at 1.
- **GCM** (`aes_gcm_256_new`): a generated IV is 12 bytes long. If the tag does
  not match, `finalize_decryption` raises `InvalidArgumentError`.
- **Key wrap** (`aes_keywrap_256_new`): input is buffered, and all the work
  happens at finalization.
  - Wrapping needs at least 16 bytes. Unwrapping needs at least 24 bytes.
    Shorter input raises `InvalidStateError`.
  - A failed integrity check raises `SignatureValidationError`.

If any operation fails, the cipher is marked not `good`. Later calls then
raise `InvalidStateError` until `reset()` is called.

## ECDSA

```python
from calprim.ecc import EccCurve, EccKeyPair
from calprim.hash import sha256_compute

key = EccKeyPair.generate_random(EccCurve.P256)
digest = sha256_compute(b"message")
signature = key.sign_message(digest)      # DER-encoded
key.verify_signature(digest, signature)   # raises SignatureValidationError on mismatch
```

There are two other ways to build a key pair:

- `EccKeyPair.from_private_key(curve, private_key)` takes a raw private scalar
  of exactly the curve's coordinate size: 32 bytes for P-256, 48 for P-384.
  Any other length raises `InvalidKeyLengthError`. Call `derive_public_key()`
  to fill in `pub_x` and `pub_y`.
- `EccKeyPair.from_public_key(curve, x, y)` takes affine coordinates and gives
  a key pair that can only verify. Signing with it raises
  `InvalidArgumentError`.

`signature_length()` returns the largest possible DER signature size for the
curve.

## What this package does not do

- It does not parse key documents such as DER/ASN.1 or PEM. Keys are supplied
  as raw bytes: a private scalar, or public coordinates.
- It provides no command-line tool. It is a library only.