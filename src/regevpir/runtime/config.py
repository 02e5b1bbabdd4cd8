"""Configuration management for regevpir.

Provides a centralized configuration system with support for
environment variables, config files, and runtime overrides.

Only the recipe for a parameter set lives here (moduli, dimensions,
noise); the sampled public matrix A is never written to config.
"""

import copy
import os
import json
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Union
from pathlib import Path
from enum import Enum

import numpy as np

from regevpir.lwe import (
    DEFAULT_M,
    DEFAULT_N,
    DEFAULT_P,
    DEFAULT_Q,
    DEFAULT_STD_DEV,
    EncryptionParams,
    NoiseDistribution,
    make_params,
)
from regevpir.runtime.logging import ProtocolLogger, configure_logging


class ConfigSource(Enum):
    """Configuration source types."""

    DEFAULT = "default"
    FILE = "file"
    ENVIRONMENT = "environment"
    RUNTIME = "runtime"


@dataclass
class LWEConfig:
    """Scheme parameter recipe.

    Attributes:
        q: Ciphertext modulus
        p: Plaintext modulus
        n: Secret length
        m: Number of samples
        std_dev: Gaussian noise standard deviation
        noise: Noise distribution name (gaussian/uniform)
        uniform_noise_bound: Half-width of uniform noise
        seed: Optional seed for a deterministic generator
    """

    q: int = DEFAULT_Q
    p: int = DEFAULT_P
    n: int = DEFAULT_N
    m: int = DEFAULT_M
    std_dev: float = DEFAULT_STD_DEV
    noise: str = NoiseDistribution.GAUSSIAN.value
    uniform_noise_bound: int = 2
    seed: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def make_rng(self) -> np.random.Generator:
        """Generator seeded from ``seed``, or from OS entropy when unset."""
        return np.random.default_rng(self.seed)

    def build_params(self, rng: Optional[np.random.Generator] = None) -> EncryptionParams:
        """Sample a parameter set following this recipe.

        Args:
            rng: Generator for A; a new one from ``make_rng`` if omitted

        Returns:
            EncryptionParams
        """
        return make_params(
            q=self.q,
            p=self.p,
            n=self.n,
            m=self.m,
            std_dev=self.std_dev,
            noise=NoiseDistribution(self.noise),
            uniform_noise_bound=self.uniform_noise_bound,
            rng=rng if rng is not None else self.make_rng(),
        )


@dataclass
class PIRConfig:
    """PIR configuration.

    Attributes:
        database_size: Default size for generated databases
        record_events: Emit protocol events from the PIR roles
    """

    database_size: int = 16
    record_events: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MonitoringConfig:
    """Monitoring configuration.

    Attributes:
        log_level: Logging level
        json_logs: Emit bare JSON messages
        metrics_enabled: Enable metrics collection
    """

    log_level: str = "INFO"
    json_logs: bool = False
    metrics_enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def configure_logging(self, log_file: Optional[str] = None) -> ProtocolLogger:
        """Reconfigure the default protocol logger from these settings."""
        return configure_logging(
            level=self.log_level,
            json_output=self.json_logs,
            log_file=log_file,
        )


@dataclass
class RegevPIRConfig:
    """Complete regevpir configuration."""

    lwe: LWEConfig = field(default_factory=LWEConfig)
    pir: PIRConfig = field(default_factory=PIRConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    # Metadata
    config_source: ConfigSource = ConfigSource.DEFAULT
    config_version: str = "1.0"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "lwe": self.lwe.to_dict(),
            "pir": self.pir.to_dict(),
            "monitoring": self.monitoring.to_dict(),
            "config_source": self.config_source.value,
            "config_version": self.config_version,
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def save(self, path: Union[str, Path]) -> None:
        """Save configuration to file.

        Args:
            path: Path to save configuration
        """
        path = Path(path)
        with open(path, "w") as f:
            f.write(self.to_json())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RegevPIRConfig":
        """Create from dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            RegevPIRConfig instance
        """
        config = cls()

        if "lwe" in data:
            config.lwe = LWEConfig(**data["lwe"])

        if "pir" in data:
            config.pir = PIRConfig(**data["pir"])

        if "monitoring" in data:
            config.monitoring = MonitoringConfig(**data["monitoring"])

        if "config_source" in data:
            config.config_source = ConfigSource(data["config_source"])

        if "config_version" in data:
            config.config_version = data["config_version"]

        return config

    @classmethod
    def load(cls, path: Union[str, Path]) -> "RegevPIRConfig":
        """Load configuration from file.

        Args:
            path: Path to configuration file

        Returns:
            RegevPIRConfig instance
        """
        path = Path(path)
        with open(path) as f:
            data = json.load(f)

        config = cls.from_dict(data)
        config.config_source = ConfigSource.FILE
        return config


class ConfigManager:
    """Configuration manager with environment variable support.

    Manages configuration with priority: runtime > environment > file > default.
    """

    ENV_PREFIX = "REGEVPIR_"

    ENV_MAPPINGS = {
        # LWE
        "LWE_Q": ("lwe", "q", int),
        "LWE_P": ("lwe", "p", int),
        "LWE_N": ("lwe", "n", int),
        "LWE_STD_DEV": ("lwe", "std_dev", float),
        "LWE_NOISE": ("lwe", "noise", str),
        "LWE_UNIFORM_NOISE_BOUND": ("lwe", "uniform_noise_bound", int),
        "LWE_SEED": ("lwe", "seed", int),
        # PIR
        "PIR_DATABASE_SIZE": ("pir", "database_size", int),
        "PIR_RECORD_EVENTS": ("pir", "record_events", bool),
        # Monitoring
        "MONITORING_LOG_LEVEL": ("monitoring", "log_level", str),
        "MONITORING_JSON_LOGS": ("monitoring", "json_logs", bool),
        "MONITORING_METRICS_ENABLED": ("monitoring", "metrics_enabled", bool),
    }

    def __init__(
        self,
        config_file: Optional[Union[str, Path]] = None,
        load_env: bool = True,
        logger: Optional[ProtocolLogger] = None,
    ):
        """Initialize configuration manager.

        Args:
            config_file: Optional path to config file
            load_env: Whether to load from environment variables
            logger: Optional logger notified of runtime overrides
        """
        self._config: RegevPIRConfig = RegevPIRConfig()
        self._overrides: Dict[str, Any] = {}
        self.logger = logger

        if config_file:
            self._load_from_file(config_file)

        if load_env:
            self._load_from_env()

    def _load_from_file(self, path: Union[str, Path]) -> None:
        """Load configuration from file."""
        path = Path(path)
        if path.exists():
            self._config = RegevPIRConfig.load(path)

    def _load_from_env(self) -> None:
        """Load configuration from environment variables."""
        for env_key, (section, key, type_) in self.ENV_MAPPINGS.items():
            full_key = f"{self.ENV_PREFIX}{env_key}"
            value = os.environ.get(full_key)

            if value is not None:
                if type_ == bool:
                    value = value.lower() in ("true", "1", "yes")
                elif type_ == float:
                    value = float(value)
                elif type_ == int:
                    value = int(value)

                section_obj = getattr(self._config, section)
                setattr(section_obj, key, value)
                self._config.config_source = ConfigSource.ENVIRONMENT

    @property
    def config(self) -> RegevPIRConfig:
        """Get the current configuration."""
        return self._config

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dotted key.

        Args:
            key: Dotted key (e.g., "lwe.q")
            default: Default value if not found

        Returns:
            Configuration value
        """
        if key in self._overrides:
            return self._overrides[key]

        obj = self._config
        for part in key.split("."):
            if hasattr(obj, part):
                obj = getattr(obj, part)
            else:
                return default

        return obj

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value at runtime.

        Args:
            key: Dotted key (e.g., "lwe.std_dev")
            value: Value to set
        """
        old_value = self.get(key)
        self._overrides[key] = value
        self._config.config_source = ConfigSource.RUNTIME

        parts = key.split(".")
        if len(parts) == 2:
            section, attr = parts
            section_obj = getattr(self._config, section)
            setattr(section_obj, attr, value)

        if self.logger:
            self.logger.config_changed(key, old_value, value)

    def reset(self) -> None:
        """Reset to default configuration."""
        self._config = RegevPIRConfig()
        self._overrides.clear()

    def validate(self) -> List[str]:
        """Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []
        lwe = self._config.lwe

        if lwe.p < 2 or lwe.p > lwe.q:
            errors.append(f"Plaintext modulus must satisfy 2 <= p <= q: p={lwe.p}, q={lwe.q}")

        if lwe.n < 1:
            errors.append(f"Secret length must be positive: {lwe.n}")

        if lwe.m != 1:
            errors.append(f"Only m=1 is supported: {lwe.m}")

        if lwe.noise not in [d.value for d in NoiseDistribution]:
            errors.append(f"Invalid noise distribution: {lwe.noise}")

        if lwe.std_dev <= 0:
            errors.append(f"Standard deviation must be positive: {lwe.std_dev}")
        elif lwe.p >= 1 and lwe.std_dev >= lwe.q / (2 * lwe.p):
            errors.append(
                f"Standard deviation {lwe.std_dev} exceeds the noise budget q/(2p)={lwe.q / (2 * lwe.p):.1f}"
            )

        if self._config.pir.database_size < 0:
            errors.append(f"Database size must be non-negative: {self._config.pir.database_size}")

        return errors


# Default configuration profiles
PROFILES = {
    "demo": RegevPIRConfig(),
    "uniform_noise": RegevPIRConfig(
        lwe=LWEConfig(noise=NoiseDistribution.UNIFORM.value, uniform_noise_bound=2),
    ),
    "debug": RegevPIRConfig(
        lwe=LWEConfig(seed=0),
        monitoring=MonitoringConfig(log_level="DEBUG"),
    ),
}


def get_config(profile: str = "demo") -> RegevPIRConfig:
    """Get a copy of a configuration profile.

    Args:
        profile: Profile name (demo/uniform_noise/debug)

    Returns:
        RegevPIRConfig for the profile
    """
    if profile in PROFILES:
        return copy.deepcopy(PROFILES[profile])
    return RegevPIRConfig()


def create_config_manager(
    config_file: Optional[str] = None,
    profile: Optional[str] = None,
    load_env: bool = True,
) -> ConfigManager:
    """Create a configured ConfigManager.

    Args:
        config_file: Optional path to config file
        profile: Optional profile to start with
        load_env: Whether to load from environment

    Returns:
        Configured ConfigManager
    """
    manager = ConfigManager(config_file=config_file, load_env=load_env)

    if profile and profile in PROFILES:
        manager._config = get_config(profile)
        if load_env:
            manager._load_from_env()

    return manager
