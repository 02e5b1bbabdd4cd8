"""Single-Server Private Information Retrieval over Regev's LWE scheme.

Key idea:
- Client encrypts a one-hot selector [Enc(0), ..., Enc(1), ..., Enc(0)]
- Server adds up the selector ciphertexts at every index whose bit is 1,
  together with one copy of A per added ciphertext
- Client decrypts the sum under the summed A; by linearity only the
  target index contributes a 1, so the result is db[index]

Noise: every summed ciphertext adds its error term. The answer decodes
correctly only while the total stays below q/(2p), so the margin shrinks
as the number of set bits in the database grows. Overflow is not detected.

Cost: one ciphertext per record and a full database scan per query.
"""

import time
from typing import List, Optional, Sequence

import numpy as np

from regevpir.exceptions import DimensionMismatch, IndexOutOfBounds, ModulusMismatch, OutOfRange
from regevpir.lwe import (
    EncryptionParams,
    RegevScheme,
    decrypt,
    encrypt,
    gen_error_vec,
    gen_secret,
)
from regevpir.pir.base import (
    RECORD_MODULUS,
    Database,
    PIRAnswer,
    PIRClient,
    PIRParameters,
    PIRProtocol,
    PIRQuery,
    PIRResult,
    PIRServer,
    database_from_bits,
)
from regevpir.ring import Matrix, RingElement, resolve_rng
from regevpir.runtime.config import RegevPIRConfig
from regevpir.runtime.logging import PIRMetrics, ProtocolLogger, get_logger, get_metrics


# ============================================================================
# Protocol functions
# ============================================================================

def gen_db(size: int, rng: Optional[np.random.Generator] = None) -> Database:
    """Generate ``size`` uniformly random single-bit records."""
    if size < 0:
        raise OutOfRange(f"Database size must be non-negative, got {size}")
    rng = resolve_rng(rng)
    return [RingElement.uniform(RECORD_MODULUS, rng) for _ in range(size)]


def query(
    params: EncryptionParams,
    idx: int,
    secret: Sequence[RingElement],
    db_size: int,
    rng: Optional[np.random.Generator] = None,
) -> List[RingElement]:
    """Encrypt a one-hot selector for ``idx``.

    Args:
        params: Scheme parameters
        idx: Index to retrieve
        secret: Client secret
        db_size: Number of records in the database
        rng: Random generator for the per-ciphertext noise

    Returns:
        One ciphertext per database index
    """
    if idx < 0 or idx >= db_size:
        raise IndexOutOfBounds(idx, db_size)

    rng = resolve_rng(rng)
    one = RingElement(params.p, 1)
    zero = RingElement.zero(params.p)

    ciphertexts = []
    for i in range(db_size):
        error = gen_error_vec(params, rng)
        plaintext = one if i == idx else zero
        ciphertexts.append(encrypt(params, secret, error, plaintext))
    return ciphertexts


def answer(
    params: EncryptionParams,
    query: Sequence[RingElement],
    db: Database,
) -> PIRAnswer:
    """Homomorphically select the queried record.

    For every record equal to 1, add that index's query ciphertext to the
    running ciphertext and a copy of A to the running matrix. Nothing is
    decrypted.

    Args:
        params: Public scheme parameters
        query: Selector ciphertexts, one per record
        db: Database of bits

    Returns:
        PIRAnswer holding (summed matrix, summed ciphertext)
    """
    if len(query) != len(db):
        raise DimensionMismatch(len(db), len(query), "query length")

    matrix = Matrix.zeros(params.q, params.m, params.n)
    ciphertext = RingElement.zero(params.q)
    selected = 0

    for ct, record in zip(query, db):
        if record.modulus != RECORD_MODULUS:
            raise ModulusMismatch(RECORD_MODULUS, record.modulus, "database record")
        if record.value == 1:
            ciphertext = ciphertext + ct
            matrix = matrix + params.a.copy()
            selected += 1

    return PIRAnswer(matrix=matrix, ciphertext=ciphertext, selected_records=selected)


def decode(
    params: EncryptionParams,
    secret: Sequence[RingElement],
    answer: PIRAnswer,
) -> RingElement:
    """Recover the selected record from an answer.

    Decrypts the summed ciphertext with A replaced by the summed matrix.
    """
    return decrypt(params.with_matrix(answer.matrix), secret, answer.ciphertext)


# ============================================================================
# Client / server roles
# ============================================================================

class LWEPIRClient(PIRClient):
    """Client for single-server LWE PIR.

    Holds the secret key; it never leaves the client.
    """

    def __init__(
        self,
        params: PIRParameters,
        rng: Optional[np.random.Generator] = None,
        logger: Optional[ProtocolLogger] = None,
        metrics: Optional[PIRMetrics] = None,
    ):
        """Initialize PIR client.

        Args:
            params: PIR parameters
            rng: Generator for the secret and per-query noise
            logger: Optional protocol logger
            metrics: Optional metrics sink
        """
        super().__init__(params)
        self.scheme = RegevScheme(params.encryption, rng=resolve_rng(rng))
        self.secret: Optional[List[RingElement]] = None
        self.logger = logger
        self.metrics = metrics

    def setup(self) -> EncryptionParams:
        """Sample the secret key.

        Returns:
            The public parameters to share with the server
        """
        self.secret = gen_secret(self.params.encryption, self.scheme.rng)
        if self.logger:
            self.logger.key_generated(len(self.secret))
        return self.params.encryption

    def generate_query(self, index: int) -> PIRQuery:
        """Generate an encrypted selector for ``index``.

        Args:
            index: Index to retrieve (0 to n-1)

        Returns:
            Encrypted query carrying the target index locally
        """
        if self.secret is None:
            raise RuntimeError("Must call setup() first")

        start_time = time.time()
        ciphertexts = query(
            self.params.encryption,
            index,
            self.secret,
            self.params.database_size,
            self.scheme.rng,
        )
        self._query_count += 1

        result = PIRQuery(
            ciphertexts=ciphertexts,
            target_index=index,
            metadata={"database_size": self.params.database_size},
        )

        latency_ms = (time.time() - start_time) * 1000
        if self.logger:
            self.logger.query_generated(result.query_id, self.params.database_size)
        if self.metrics:
            self.metrics.record_query(self.params.database_size, latency_ms)
        return result

    def decode_response(self, query: PIRQuery, answer: PIRAnswer) -> PIRResult:
        """Decrypt the answer under the summed matrix.

        Args:
            query: Original query (for the target index)
            answer: Server answer

        Returns:
            Retrieved record
        """
        if self.secret is None:
            raise RuntimeError("Secret key not available")

        start_time = time.time()
        bit = decode(self.params.encryption, self.secret, answer)
        latency_ms = (time.time() - start_time) * 1000

        if self.logger:
            self.logger.result_decoded(query.query_id, latency_ms)
        if self.metrics:
            self.metrics.record_decode(latency_ms)

        metadata = answer.metadata.copy()
        metadata["computation_time"] = answer.computation_time
        metadata["selected_records"] = answer.selected_records

        return PIRResult(
            bit=bit.value,
            index=query.target_index if query.target_index is not None else -1,
            success=True,
            metadata=metadata,
        )


class LWEPIRServer(PIRServer):
    """Server for single-server LWE PIR.

    Knows only the public parameters and the plaintext database.
    """

    def __init__(
        self,
        params: EncryptionParams,
        server_id: str = "server_0",
        logger: Optional[ProtocolLogger] = None,
        metrics: Optional[PIRMetrics] = None,
    ):
        """Initialize PIR server.

        Args:
            params: Public scheme parameters
            server_id: Server identifier
            logger: Optional protocol logger
            metrics: Optional metrics sink
        """
        super().__init__(server_id)
        self.params = params
        self.logger = logger
        self.metrics = metrics

    def setup(self, database: Sequence) -> None:
        """Load the database.

        Args:
            database: Records as elements mod 2 or plain 0/1 integers
        """
        self._database = [
            record if isinstance(record, RingElement) else database_from_bits([record])[0]
            for record in database
        ]
        for record in self._database:
            if record.modulus != RECORD_MODULUS:
                raise ModulusMismatch(RECORD_MODULUS, record.modulus, "database record")
        if self.logger:
            self.logger.database_loaded(len(self._database))

    def process_query(self, query: PIRQuery) -> PIRAnswer:
        """Answer a query by homomorphic selection.

        Args:
            query: Encrypted selector (without target index)

        Returns:
            Summed matrix and ciphertext
        """
        if self._database is None:
            raise RuntimeError("Server not setup")

        start_time = time.time()
        result = answer(self.params, query.ciphertexts, self._database)
        self._query_count += 1

        result.server_id = self.server_id
        result.computation_time = time.time() - start_time
        result.metadata["database_size"] = len(self._database)

        latency_ms = result.computation_time * 1000
        if self.logger:
            self.logger.answer_computed(query.query_id, result.selected_records, latency_ms)
        if self.metrics:
            self.metrics.record_answer(result.selected_records, latency_ms)
        return result


class LWEPIRProtocol(PIRProtocol):
    """Complete single-server LWE PIR protocol.

    Combines client and server into an easy-to-use interface.

    Example:
        >>> pir = LWEPIRProtocol([1, 0, 1, 1, 0], seed=42)
        >>> pir.retrieve(2).bit
        1
    """

    def __init__(
        self,
        database: Optional[Sequence] = None,
        params: Optional[EncryptionParams] = None,
        seed: Optional[int] = None,
        config: Optional[RegevPIRConfig] = None,
        logger: Optional[ProtocolLogger] = None,
        metrics: Optional[PIRMetrics] = None,
    ):
        """Initialize single-server PIR.

        Args:
            database: Optional database to setup
            params: Public parameters; sampled from ``config`` if omitted
            seed: Seed for the session generator (overrides config seed)
            config: Configuration; defaults to RegevPIRConfig()
            logger: Protocol logger; the default logger if events are enabled
            metrics: Metrics sink; the default metrics if enabled
        """
        self.config = config or RegevPIRConfig()
        if seed is None:
            seed = self.config.lwe.seed
        self.rng = np.random.default_rng(seed) if seed is not None else resolve_rng()

        if logger is None and self.config.pir.record_events:
            logger = get_logger()
        if metrics is None and self.config.monitoring.metrics_enabled:
            metrics = get_metrics()
        self.logger = logger
        self.metrics = metrics

        if params is None:
            params = self.config.lwe.build_params(self.rng)
            if self.logger:
                self.logger.params_generated(params.q, params.p, params.n, params.m)

        super().__init__(PIRParameters(
            database_size=len(database) if database is not None else 0,
            encryption=params,
        ))

        self._client = LWEPIRClient(self.params, rng=self.rng, logger=logger, metrics=metrics)
        self._server = LWEPIRServer(params, logger=logger, metrics=metrics)

        if database is not None:
            self.setup(database)

    def setup(self, database: Sequence) -> None:
        """Setup the protocol with a database.

        Args:
            database: Records to serve
        """
        self.params.database_size = len(database)
        self._client.setup()
        self._server.setup(database)

    def retrieve(self, index: int) -> PIRResult:
        """Retrieve a record by index.

        The server does not learn which index was retrieved.

        Args:
            index: Index of the record to retrieve

        Returns:
            PIRResult with the retrieved bit
        """
        start_time = time.time()

        client_query = self._client.generate_query(index)
        server_answer = self._server.process_query(client_query.for_server())
        result = self._client.decode_response(client_query, server_answer)

        result.total_time = time.time() - start_time
        return result
