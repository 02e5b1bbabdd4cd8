"""Regev's LWE encryption scheme.

A ciphertext of plaintext bit b is the single ring element

    c = A.s + e + floor(q/p) * b   (mod q)

Decryption strips A.s and rescales the residual back to Z/pZ, rounding
to nearest (half up). Ciphertexts are additively homomorphic: the sum of
two ciphertexts decrypts to the sum of the plaintexts under the summed A,
as long as the summed noise stays below q/(2p).

Key idea for PIR:
- Sum of k ciphertexts carries k copies of A.s, so the decryptor must use
  the sum of the k matching A matrices
- Every summed ciphertext adds its error term to the total noise
"""

from typing import List, Optional, Sequence

import numpy as np

from regevpir.exceptions import DimensionMismatch, ModulusMismatch, OutOfRange
from regevpir.lwe.params import EncryptionParams, NoiseDistribution
from regevpir.ring import Matrix, RingElement, resolve_rng


# Demonstration parameter set
DEFAULT_Q = 3329
DEFAULT_P = 2
DEFAULT_N = 4
DEFAULT_M = 1
DEFAULT_STD_DEV = 6.4


def make_params(
    q: int,
    p: int,
    n: int,
    m: int = DEFAULT_M,
    std_dev: float = DEFAULT_STD_DEV,
    noise: NoiseDistribution = NoiseDistribution.GAUSSIAN,
    uniform_noise_bound: int = 2,
    rng: Optional[np.random.Generator] = None,
) -> EncryptionParams:
    """Build a parameter set with a freshly sampled public matrix A.

    Args:
        q: Ciphertext modulus
        p: Plaintext modulus
        n: Secret length
        m: Number of samples
        std_dev: Gaussian noise standard deviation
        noise: Noise distribution for error vectors
        uniform_noise_bound: Half-width of uniform noise
        rng: Random generator for A

    Returns:
        EncryptionParams
    """
    a = Matrix.uniform(q, m, n, rng)
    return EncryptionParams(
        a=a,
        q=q,
        p=p,
        n=n,
        m=m,
        std_dev=std_dev,
        noise=noise,
        uniform_noise_bound=uniform_noise_bound,
    )


def simple_params(rng: Optional[np.random.Generator] = None) -> EncryptionParams:
    """Demonstration parameters: n=4, m=1, q=3329, p=2, std_dev=6.4."""
    return make_params(DEFAULT_Q, DEFAULT_P, DEFAULT_N, DEFAULT_M, DEFAULT_STD_DEV, rng=rng)


def gen_random_normal_matrix(
    q: int,
    std_dev: float,
    num_rows: int,
    num_cols: int,
    rng: Optional[np.random.Generator] = None,
) -> Matrix:
    """Matrix of Gaussian samples centred at q // 2."""
    return Matrix.gaussian(q, std_dev, num_rows, num_cols, rng)


def gen_secret(
    params: EncryptionParams,
    rng: Optional[np.random.Generator] = None,
) -> List[RingElement]:
    """Sample a secret of n uniform elements mod q."""
    rng = resolve_rng(rng)
    return [RingElement.uniform(params.q, rng) for _ in range(params.n)]


def _sample_noise(params: EncryptionParams, rng: np.random.Generator) -> RingElement:
    q = params.q
    if params.noise == NoiseDistribution.GAUSSIAN:
        # Gaussian sampler is centred at q // 2; shift it back to zero
        sample = RingElement.gaussian(q, params.std_dev, rng)
        return sample - RingElement(q, q // 2)

    bound = params.uniform_noise_bound
    sample = RingElement.uniform(2 * bound + 1, rng)
    return sample.lift(q) - RingElement(q, bound)


def gen_error_vec(
    params: EncryptionParams,
    rng: Optional[np.random.Generator] = None,
) -> List[RingElement]:
    """Sample m small error terms mod q, centred at zero.

    Must be called afresh for every encryption.
    """
    rng = resolve_rng(rng)
    return [_sample_noise(params, rng) for _ in range(params.m)]


def _check_secret(params: EncryptionParams, secret: Sequence[RingElement]) -> None:
    if len(secret) != params.n:
        raise DimensionMismatch(params.n, len(secret), "secret length")


def encrypt(
    params: EncryptionParams,
    secret: Sequence[RingElement],
    error: Sequence[RingElement],
    plaintext: RingElement,
) -> RingElement:
    """Encrypt one plaintext element mod p.

    Args:
        params: Scheme parameters
        secret: Secret vector of length n
        error: Fresh error vector of length m
        plaintext: Element mod p

    Returns:
        Ciphertext element mod q
    """
    _check_secret(params, secret)
    if len(error) != params.m:
        raise DimensionMismatch(params.m, len(error), "error length")
    if plaintext.modulus != params.p:
        raise ModulusMismatch(params.p, plaintext.modulus, "plaintext")

    a_s = params.a.mul_vec(secret)
    a_s_e = a_s + Matrix.column(error)

    floor = Matrix.from_single(RingElement(params.q, params.delta))
    encoded = Matrix.from_single(plaintext.lift(params.q))

    c = a_s_e + (floor * encoded)
    return c[0, 0]


def decrypt(
    params: EncryptionParams,
    secret: Sequence[RingElement],
    ciphertext: RingElement,
) -> RingElement:
    """Decrypt a ciphertext element mod q back to Z/pZ.

    The residual r = c - A.s is rescaled as round(r * p / q) mod p with
    ties rounded up. Noise beyond q/(2p) yields a wrong result silently.

    Args:
        params: Scheme parameters (A must match the one used to encrypt,
            or the sum of As for a sum of ciphertexts)
        secret: Secret vector of length n
        ciphertext: Element mod q

    Returns:
        Plaintext element mod p
    """
    _check_secret(params, secret)
    if ciphertext.modulus != params.q:
        raise ModulusMismatch(params.q, ciphertext.modulus, "ciphertext")

    a_s = params.a.mul_vec(secret)
    residual = (Matrix.from_single(ciphertext) - a_s)[0, 0].value

    q, p = params.q, params.p
    x = ((2 * residual * p + q) // (2 * q)) % p
    return RingElement(p, x)


class RegevScheme:
    """Session wrapper around the scheme functions.

    Owns one parameter set and one random generator, so every key, noise
    and matrix draw of a session comes from the same (optionally seeded)
    source.

    Example:
        >>> scheme = RegevScheme(seed=7)
        >>> secret = scheme.keygen()
        >>> ct = scheme.encrypt_bit(secret, 1)
        >>> scheme.decrypt(secret, ct).value
        1
    """

    def __init__(
        self,
        params: Optional[EncryptionParams] = None,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """Initialize the scheme.

        Args:
            params: Parameter set; demonstration params if omitted
            seed: Seed for a new generator (ignored when rng is given)
            rng: Generator to use for all sampling
        """
        if rng is None:
            rng = np.random.default_rng(seed) if seed is not None else resolve_rng()
        self.rng = rng
        self.params = params if params is not None else simple_params(self.rng)

    def keygen(self) -> List[RingElement]:
        """Sample a fresh secret key."""
        return gen_secret(self.params, self.rng)

    def encrypt(self, secret: Sequence[RingElement], plaintext: RingElement) -> RingElement:
        """Encrypt with a freshly sampled error vector."""
        error = gen_error_vec(self.params, self.rng)
        return encrypt(self.params, secret, error, plaintext)

    def encrypt_bit(self, secret: Sequence[RingElement], bit: int) -> RingElement:
        """Encrypt an integer plaintext in [0, p)."""
        if bit < 0 or bit >= self.params.p:
            raise OutOfRange(f"Plaintext {bit} out of range [0, {self.params.p})")
        return self.encrypt(secret, RingElement(self.params.p, bit))

    def decrypt(self, secret: Sequence[RingElement], ciphertext: RingElement) -> RingElement:
        return decrypt(self.params, secret, ciphertext)
