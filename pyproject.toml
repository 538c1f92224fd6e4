[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "calprim"
version = "0.1.0"
description = "Small cryptographic primitives: hashes, HMAC-SHA256, AES-256 modes with key wrap, and ECDSA key pairs"
requires-python = ">=3.10"
dependencies = [
    "cryptography",
]
keywords = ["cryptography", "hash", "hmac", "aes", "gcm", "keywrap", "ecdsa", "ecc"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security :: Cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["calprim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
