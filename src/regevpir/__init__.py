"""
regevpir: Regev LWE encryption and single-server PIR
"""

__version__ = "0.1.0"

from regevpir.exceptions import (
    RegevPIRError,
    ModulusMismatch,
    DimensionMismatch,
    OutOfRange,
    IndexOutOfBounds,
)
from regevpir.ring import RingElement, Matrix
from regevpir.lwe import (
    EncryptionParams,
    NoiseDistribution,
    RegevScheme,
    simple_params,
    gen_secret,
    gen_error_vec,
    encrypt,
    decrypt,
)
from regevpir.pir import (
    LWEPIRProtocol,
    gen_db,
    query,
    answer,
    decode,
)

__all__ = [
    "RegevPIRError",
    "ModulusMismatch",
    "DimensionMismatch",
    "OutOfRange",
    "IndexOutOfBounds",
    "RingElement",
    "Matrix",
    "EncryptionParams",
    "NoiseDistribution",
    "RegevScheme",
    "simple_params",
    "gen_secret",
    "gen_error_vec",
    "encrypt",
    "decrypt",
    "LWEPIRProtocol",
    "gen_db",
    "query",
    "answer",
    "decode",
]
