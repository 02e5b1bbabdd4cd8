"""Single-server Private Information Retrieval on Regev's LWE scheme.

Key classes:
- LWEPIRProtocol: Client and server wired together
- LWEPIRClient: Builds encrypted one-hot queries, decodes answers
- LWEPIRServer: Homomorphically sums selected ciphertexts

Example:
    >>> from regevpir.pir import LWEPIRProtocol
    >>>
    >>> pir = LWEPIRProtocol([1, 0, 1, 1, 0], seed=1)
    >>> result = pir.retrieve(3)
    >>> result.bit
    1
"""

# Base classes
from regevpir.pir.base import (
    Database,
    RECORD_MODULUS,
    PIRParameters,
    PIRQuery,
    PIRAnswer,
    PIRResult,
    PIRClient,
    PIRServer,
    PIRProtocol,
    bytes_to_bits,
    database_from_bits,
    database_from_bytes,
)

# Single-server PIR
from regevpir.pir.single_server import (
    gen_db,
    query,
    answer,
    decode,
    LWEPIRClient,
    LWEPIRServer,
    LWEPIRProtocol,
)

__all__ = [
    # Base
    "Database",
    "RECORD_MODULUS",
    "PIRParameters",
    "PIRQuery",
    "PIRAnswer",
    "PIRResult",
    "PIRClient",
    "PIRServer",
    "PIRProtocol",
    "bytes_to_bits",
    "database_from_bits",
    "database_from_bytes",
    # Single-server
    "gen_db",
    "query",
    "answer",
    "decode",
    "LWEPIRClient",
    "LWEPIRServer",
    "LWEPIRProtocol",
]
