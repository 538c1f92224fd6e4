"""Exceptions raised by the cryptographic primitives."""


class CalError(Exception):
    """Base class for every error raised by this package."""


class InvalidStateError(CalError):
    pass


class InvalidArgumentError(CalError, ValueError):
    pass


class ShortBufferError(CalError):
    pass


class SignatureValidationError(CalError):
    pass


class InvalidKeyLengthError(CalError, ValueError):
    pass