"""Parameter sets for Regev's LWE encryption scheme."""

from dataclasses import dataclass, replace
from enum import Enum

from regevpir.exceptions import DimensionMismatch, ModulusMismatch, OutOfRange
from regevpir.ring import Matrix


class NoiseDistribution(Enum):
    """How per-encryption error terms are sampled."""
    GAUSSIAN = "gaussian"  # Truncated Gaussian, re-centred at zero
    UNIFORM = "uniform"  # Uniform over {-bound, ..., bound}


@dataclass(frozen=True)
class EncryptionParams:
    """Public parameters of the scheme.

    Attributes:
        a: Public m x n matrix, entries uniform mod q
        q: Ciphertext modulus
        p: Plaintext modulus (p <= q)
        n: LWE secret length
        m: Number of samples; ciphertexts are single elements so m == 1
        std_dev: Standard deviation of Gaussian noise
        noise: Noise distribution used by gen_error_vec
        uniform_noise_bound: Half-width of the uniform noise range
    """
    a: Matrix
    q: int
    p: int
    n: int
    m: int
    std_dev: float
    noise: NoiseDistribution = NoiseDistribution.GAUSSIAN
    uniform_noise_bound: int = 2

    def __post_init__(self):
        if self.p < 2 or self.p > self.q:
            raise OutOfRange(f"Plaintext modulus p={self.p} must satisfy 2 <= p <= q={self.q}")
        if self.n < 1:
            raise OutOfRange(f"Secret length n={self.n} must be positive")
        if self.m != 1:
            raise OutOfRange(f"Only single-sample ciphertexts are supported (m=1), got m={self.m}")
        if self.std_dev <= 0:
            raise OutOfRange(f"Standard deviation must be positive, got {self.std_dev}")
        if 2 * self.uniform_noise_bound + 1 > self.q:
            raise OutOfRange(f"Uniform noise bound {self.uniform_noise_bound} too large for q={self.q}")
        if self.a.shape != (self.m, self.n):
            raise DimensionMismatch((self.m, self.n), self.a.shape, "public matrix A")
        if self.a.modulus != self.q:
            raise ModulusMismatch(self.q, self.a.modulus, "public matrix A")

    @property
    def delta(self) -> int:
        """Plaintext scaling factor floor(q/p)."""
        return self.q // self.p

    @property
    def noise_budget(self) -> float:
        """Largest accumulated noise magnitude that still decrypts correctly.

        Exceeding it is not detected: decryption just returns a wrong value.
        """
        return self.q / (2 * self.p)

    def with_matrix(self, a: Matrix) -> "EncryptionParams":
        """Copy of these params with A replaced (used to decode PIR answers)."""
        return replace(self, a=a)
