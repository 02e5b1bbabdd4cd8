"""Runtime support: configuration, logging and metrics.

Utilities:
- Configuration management with environment variables
- Structured protocol event logging
- Metrics collection for the PIR roles
"""

from regevpir.runtime.config import (
    ConfigSource,
    LWEConfig,
    PIRConfig,
    MonitoringConfig,
    RegevPIRConfig,
    ConfigManager,
    PROFILES,
    get_config,
    create_config_manager,
)

from regevpir.runtime.logging import (
    ProtocolEventType,
    ProtocolEvent,
    ProtocolLogger,
    MetricsCollector,
    PIRMetrics,
    get_logger,
    get_metrics,
    configure_logging,
)

__all__ = [
    # Config
    "ConfigSource",
    "LWEConfig",
    "PIRConfig",
    "MonitoringConfig",
    "RegevPIRConfig",
    "ConfigManager",
    "PROFILES",
    "get_config",
    "create_config_manager",
    # Logging
    "ProtocolEventType",
    "ProtocolEvent",
    "ProtocolLogger",
    "MetricsCollector",
    "PIRMetrics",
    "get_logger",
    "get_metrics",
    "configure_logging",
]
