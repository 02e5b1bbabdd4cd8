"""Error types raised by regevpir.

All failures are precondition violations detected at the point of use.
They subclass the matching builtin so callers that already catch
``ValueError``/``IndexError`` keep working.

Note: exhausting the noise budget is NOT an error. A ciphertext whose
accumulated noise exceeds q/(2p) silently decrypts to the wrong bit.
"""


class RegevPIRError(Exception):
    """Base class for all regevpir errors."""


class ModulusMismatch(RegevPIRError, ValueError):
    """Two ring elements (or an element and a parameter set) disagree on modulus."""

    def __init__(self, expected: int, actual: int, context: str = ""):
        self.expected = expected
        self.actual = actual
        message = f"Modulus mismatch: expected {expected}, got {actual}"
        if context:
            message = f"{context}: {message}"
        super().__init__(message)


class DimensionMismatch(RegevPIRError, ValueError):
    """Vector length or matrix shape does not match what the operation needs."""

    def __init__(self, expected, actual, context: str = ""):
        self.expected = expected
        self.actual = actual
        message = f"Dimension mismatch: expected {expected}, got {actual}"
        if context:
            message = f"{context}: {message}"
        super().__init__(message)


class OutOfRange(RegevPIRError, ValueError):
    """A value lies outside the range its modulus or parameter allows."""


class IndexOutOfBounds(RegevPIRError, IndexError):
    """A database index is outside ``[0, size)``."""

    def __init__(self, index: int, size: int):
        self.index = index
        self.size = size
        super().__init__(f"Index {index} out of range [0, {size})")
