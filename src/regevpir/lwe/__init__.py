"""Regev's Learning-With-Errors encryption scheme.

Key classes:
- EncryptionParams: Public parameters (A, q, p, n, m, noise)
- RegevScheme: Session object owning params and a random generator

The module-level functions are stateless and take the parameter set
explicitly.
"""

from regevpir.lwe.params import (
    EncryptionParams,
    NoiseDistribution,
)

from regevpir.lwe.regev import (
    DEFAULT_Q,
    DEFAULT_P,
    DEFAULT_N,
    DEFAULT_M,
    DEFAULT_STD_DEV,
    make_params,
    simple_params,
    gen_random_normal_matrix,
    gen_secret,
    gen_error_vec,
    encrypt,
    decrypt,
    RegevScheme,
)

__all__ = [
    # Params
    "EncryptionParams",
    "NoiseDistribution",
    # Scheme
    "DEFAULT_Q",
    "DEFAULT_P",
    "DEFAULT_N",
    "DEFAULT_M",
    "DEFAULT_STD_DEV",
    "make_params",
    "simple_params",
    "gen_random_normal_matrix",
    "gen_secret",
    "gen_error_vec",
    "encrypt",
    "decrypt",
    "RegevScheme",
]
