"""Private Information Retrieval (PIR) Base Classes.

PIR allows a client to retrieve a record from a database held by a
server, without the server learning which record was retrieved.

This module provides:
- Data structures for queries, answers and results
- Abstract base classes for the client, server and complete protocol
- Helpers for building single-bit databases

Records are single bits (elements of Z/2Z). Larger payloads would need
one query per payload bit and are not handled here.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Iterator, List, Optional
import secrets

from regevpir.exceptions import OutOfRange
from regevpir.lwe import EncryptionParams
from regevpir.ring import Matrix, RingElement


# A database is an ordered sequence of bits mod 2
Database = List[RingElement]

RECORD_MODULUS = 2


@dataclass
class PIRParameters:
    """Parameters for the PIR protocol.

    Attributes:
        database_size: Number of records in the database
        encryption: Public LWE parameters shared by client and server
    """
    database_size: int
    encryption: EncryptionParams


@dataclass
class PIRQuery:
    """Encrypted one-hot selector.

    One ciphertext per database index: Enc(1) at the target, Enc(0)
    everywhere else, each with independent noise.

    Attributes:
        ciphertexts: Selector ciphertexts, one per record
        query_id: Unique identifier for this query
        target_index: Retrieved index; client-side only, never sent
        metadata: Additional query metadata
    """
    ciphertexts: List[RingElement]
    query_id: str = ""
    target_index: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.query_id:
            self.query_id = secrets.token_hex(8)

    def for_server(self) -> "PIRQuery":
        """Copy of this query with the private target index removed."""
        return replace(self, target_index=None, metadata=dict(self.metadata))

    def __len__(self) -> int:
        return len(self.ciphertexts)


@dataclass
class PIRAnswer:
    """Server's answer to a PIR query.

    The summed matrix must replace A when decrypting, because summing k
    ciphertexts also sums k copies of A.s.

    Attributes:
        matrix: Sum of one copy of A per selected record
        ciphertext: Sum of the selected query ciphertexts
        selected_records: Number of summed ciphertexts (database bits set)
        server_id: ID of the responding server
        computation_time: Time taken to compute the answer
        metadata: Additional answer metadata
    """
    matrix: Matrix
    ciphertext: RingElement
    selected_records: int = 0
    server_id: str = "server_0"
    computation_time: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __iter__(self) -> Iterator[Any]:
        """Unpack as ``(matrix, ciphertext)``."""
        yield self.matrix
        yield self.ciphertext


@dataclass
class PIRResult:
    """Final decoded result of PIR retrieval.

    Attributes:
        bit: The retrieved record
        index: The index that was queried
        success: Whether retrieval completed
        total_time: Total time for the PIR operation
        metadata: Additional result metadata
    """
    bit: int
    index: int
    success: bool = True
    total_time: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)


class PIRClient(ABC):
    """Abstract base class for PIR clients.

    The client generates queries that hide which record is requested,
    and decodes the server's answer to obtain it.
    """

    def __init__(self, params: PIRParameters):
        """Initialize PIR client.

        Args:
            params: PIR protocol parameters
        """
        self.params = params
        self._query_count = 0

    @abstractmethod
    def setup(self) -> None:
        """Perform any necessary key generation."""
        pass

    @abstractmethod
    def generate_query(self, index: int) -> PIRQuery:
        """Generate a PIR query for the given index.

        Args:
            index: The index of the record to retrieve (0 to n-1)

        Returns:
            PIRQuery that hides the requested index
        """
        pass

    @abstractmethod
    def decode_response(self, query: PIRQuery, answer: PIRAnswer) -> PIRResult:
        """Decode a server answer to obtain the record.

        Args:
            query: The original query
            answer: Answer from the server

        Returns:
            The retrieved record
        """
        pass

    def get_stats(self) -> Dict[str, Any]:
        """Get client statistics."""
        return {
            "query_count": self._query_count,
            "database_size": self.params.database_size,
        }


class PIRServer(ABC):
    """Abstract base class for PIR servers.

    The server answers queries without learning which record is being
    retrieved.
    """

    def __init__(self, server_id: str = "server_0"):
        """Initialize PIR server.

        Args:
            server_id: Unique identifier for this server
        """
        self.server_id = server_id
        self._database: Optional[Database] = None
        self._query_count = 0

    @abstractmethod
    def setup(self, database: Database) -> None:
        """Setup the server with a database.

        Args:
            database: Records to serve
        """
        pass

    @abstractmethod
    def process_query(self, query: PIRQuery) -> PIRAnswer:
        """Process a PIR query and generate an answer.

        Args:
            query: The PIR query from the client

        Returns:
            PIRAnswer that encodes the record
        """
        pass

    def get_stats(self) -> Dict[str, Any]:
        """Get server statistics."""
        return {
            "server_id": self.server_id,
            "query_count": self._query_count,
            "database_size": len(self._database) if self._database else 0,
        }


class PIRProtocol(ABC):
    """Abstract base class for complete PIR protocols.

    Combines a client and a server into a complete protocol.
    """

    def __init__(self, params: PIRParameters):
        """Initialize PIR protocol.

        Args:
            params: Protocol parameters
        """
        self.params = params
        self._client: Optional[PIRClient] = None
        self._server: Optional[PIRServer] = None

    @abstractmethod
    def setup(self, database: Database) -> None:
        """Setup the complete protocol.

        Args:
            database: The database to serve
        """
        pass

    @abstractmethod
    def retrieve(self, index: int) -> PIRResult:
        """Retrieve a record by index.

        Args:
            index: Index of the record to retrieve

        Returns:
            The retrieved record
        """
        pass

    def get_stats(self) -> Dict[str, Any]:
        """Get protocol statistics."""
        stats = {
            "database_size": self.params.database_size,
        }

        if self._client:
            stats["client"] = self._client.get_stats()

        if self._server:
            stats["server"] = self._server.get_stats()

        return stats


# Utility functions

def bytes_to_bits(data: bytes) -> List[int]:
    """Convert bytes to a list of bits, most significant bit first.

    Args:
        data: Bytes to convert

    Returns:
        List of bits (0 or 1)
    """
    bits = []
    for byte in data:
        for i in range(8):
            bits.append((byte >> (7 - i)) & 1)
    return bits


def database_from_bits(bits: Iterable[int]) -> Database:
    """Build a database from 0/1 integers.

    Args:
        bits: Record values

    Returns:
        Database of elements mod 2
    """
    database = []
    for i, bit in enumerate(bits):
        if bit not in (0, 1):
            raise OutOfRange(f"Record {i} is not a bit: {bit}")
        database.append(RingElement(RECORD_MODULUS, int(bit)))
    return database


def database_from_bytes(data: bytes) -> Database:
    """Build a database with one record per bit of ``data``."""
    return database_from_bits(bytes_to_bits(data))
