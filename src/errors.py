class OrderAuthError(Exception):
    """Base class for every order hashing / signature failure."""


class InvalidAddress(OrderAuthError):
    def __init__(self, field: str, value):
        self.field = field
        self.value = value
        super().__init__(f"{field}: invalid address {value!r} (expected 20 bytes of hex)")


class InvalidFieldValue(OrderAuthError):
    """Numeric field is negative or does not fit its ABI slot."""

    def __init__(self, field: str, value, bits: int):
        self.field = field
        self.value = value
        self.bits = bits
        super().__init__(f"{field}: {value!r} does not fit uint{bits}")


class InvalidSignatureEncoding(OrderAuthError):
    def __init__(self, value):
        self.value = value
        super().__init__(f"signature is not 0x-prefixed hex: {value!r}")


class InvalidSignatureLength(OrderAuthError):
    def __init__(self, actual: int, expected: int = 65):
        self.expected = expected
        self.actual = actual
        super().__init__(f"invalid signature length: {actual} bytes (expected {expected})")


class RecoveryFailed(OrderAuthError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"public key recovery failed: {reason}")


class InvalidRecoveryId(RecoveryFailed):
    def __init__(self, v: int):
        self.v = v
        super().__init__(f"recovery id {v} not in (0, 1, 27, 28)")


class SigningFailed(OrderAuthError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"failed to sign order: {reason}")
