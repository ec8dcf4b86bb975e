"""
freight_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the way to obtain configuration at runtime through
    ``get_active_config()``.  Services never read configuration files
    themselves.  Returns an ``EngineConfig``; bridges in
    ``freight_config.bridges`` translate it into engine types.

Architecture position:
    Configuration -- sits above ``freight_kernel`` and ``freight_engines``
    and below ``freight_services``.  The kernel and the engines MUST NEVER
    import from ``freight_config``.

Invariants enforced:
    - Deterministic parsing: the same YAML always produces the same
      ``EngineConfig`` and checksum.
    - Rates and percentages are Decimal.

Failure modes:
    - ``FileNotFoundError`` -- the requested configuration file is missing.
    - ``ValueError`` / ``KeyError`` -- schema violations.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``FREIGHT_CONFIG_TRACE`` log entry with the config id, version,
    checksum and rule counts, so a quote or report can be tied to the
    exact configuration that priced it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from freight_config.loader import load_engine_config
from freight_config.schema import ChargeRuleDef, EngineConfig, ProductRateDef, QuotePolicy

_logger = logging.getLogger("freight_kernel.config")

_DEFAULT_CONFIG_FILE = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(path: Path | None = None) -> EngineConfig:
    """The public configuration entrypoint.

    Args:
        path: Override path to a configuration file.  Defaults to
            freight_config/sets/default.yaml.

    Returns:
        EngineConfig with its checksum set.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file violates the schema.
        KeyError: If a required key is missing.
    """
    config_file = Path(path) if path is not None else _DEFAULT_CONFIG_FILE
    config = load_engine_config(config_file)

    _logger.info(
        "FREIGHT_CONFIG_TRACE",
        extra={
            "trace_type": "FREIGHT_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "reporting_currency": config.reporting_currency,
            "charge_rule_count": len(config.charge_rules),
            "product_rate_count": len(config.product_rates),
            "fallback_rate_count": len(config.fallback_exchange_rates),
        },
    )
    return config


__all__ = [
    "ChargeRuleDef",
    "EngineConfig",
    "ProductRateDef",
    "QuotePolicy",
    "get_active_config",
]
