"""
Configuration Loader (``freight_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the typed
``freight_config.schema`` dataclasses.  Runtime callers go through
``freight_config.get_active_config()`` instead of calling this directly.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; required fields have no silent defaults.
* Numbers become ``Decimal`` through ``str`` so that YAML floats never
  leak binary rounding into rates.
* ``compute_checksum`` is a deterministic SHA-256 over canonical JSON.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Bad numbers, kinds or bases  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from freight_config.schema import (
    ChargeRuleDef,
    EngineConfig,
    ProductRateDef,
    QuotePolicy,
)

_CHARGE_KINDS = frozenset({"fixed", "per_unit_weight", "percentage"})
_CHARGE_BASES = frozenset({"base_cost", "subtotal", "running_subtotal"})

# Portal spellings of the charge base.
_BASE_ALIASES = {
    "product_cost": "base_cost",
    "cumulative": "running_subtotal",
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, what: str) -> Decimal:
    """Read a YAML scalar as Decimal; floats go through str()."""
    if isinstance(value, bool):
        raise ValueError(f"{what}: expected a number, got {value!r}")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"{what}: expected a number, got {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"{what}: expected a finite number, got {value!r}")
    return result


def parse_charge_rule(data: dict[str, Any]) -> ChargeRuleDef:
    """Parse a ``ChargeRuleDef`` from a dict."""
    key = data["key"]
    kind = str(data["kind"]).strip().lower()
    if kind not in _CHARGE_KINDS:
        raise ValueError(f"charge rule {key!r}: unknown kind {kind!r}")
    base = str(data.get("base", "base_cost")).strip().lower()
    base = _BASE_ALIASES.get(base, base)
    if base not in _CHARGE_BASES:
        raise ValueError(f"charge rule {key!r}: unknown base {base!r}")
    rate = parse_decimal(data["rate"], f"charge rule {key!r} rate")
    if rate < 0:
        raise ValueError(f"charge rule {key!r}: rate must be >= 0, got {rate}")
    return ChargeRuleDef(
        name=data.get("name", key),
        key=key,
        kind=kind,
        rate=rate,
        base=base,
        display_order=int(data.get("display_order", 0)),
        is_active=bool(data.get("is_active", True)),
        regions=tuple(str(r).strip().lower() for r in data.get("regions", ())),
        description=data.get("description"),
    )


def parse_product_rate(data: dict[str, Any], *, region: str | None = None) -> ProductRateDef:
    """Parse a ``ProductRateDef``; ``region`` overrides for the default row."""
    region = region or data["region"]
    category = data.get("category", "general")
    what = f"product rate {region}/{category}"
    return ProductRateDef(
        region=str(region).strip().lower(),
        category=str(category).strip().lower(),
        rate_per_kg=parse_decimal(data["rate_per_kg"], f"{what} rate_per_kg"),
        handling_fee_percentage=parse_decimal(
            data.get("handling_fee_percentage", 0), f"{what} handling_fee_percentage"
        ),
        duty_percentage=parse_decimal(
            data.get("duty_percentage", 0), f"{what} duty_percentage"
        ),
        markup_percentage=parse_decimal(
            data.get("markup_percentage", 0), f"{what} markup_percentage"
        ),
        is_active=bool(data.get("is_active", True)),
    )


def parse_quote_policy(data: dict[str, Any]) -> QuotePolicy:
    return QuotePolicy(
        allow_default_rates=bool(data.get("allow_default_rates", False)),
        soft_default_rate=parse_decimal(
            data.get("soft_default_rate", 1), "quotes.soft_default_rate"
        ),
    )


def parse_fallback_rates(data: dict[str, Any]) -> tuple[tuple[str, Decimal], ...]:
    rates = []
    for code, rate in sorted(data.items()):
        value = parse_decimal(rate, f"fallback rate {code}")
        if value <= 0:
            raise ValueError(f"fallback rate {code}: must be > 0, got {value}")
        rates.append((str(code).strip().upper(), value))
    return tuple(rates)


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_engine_config(data: dict[str, Any]) -> EngineConfig:
    """Parse a full ``EngineConfig`` from a loaded YAML document."""
    default_rate = data.get("default_product_rate")
    return EngineConfig(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        reporting_currency=str(data["reporting_currency"]).strip().upper(),
        fallback_exchange_rates=parse_fallback_rates(
            data.get("fallback_exchange_rates") or {}
        ),
        default_shipping_rate_per_kg=parse_decimal(
            data.get("default_shipping_rate_per_kg", 8), "default_shipping_rate_per_kg"
        ),
        default_product_rate=(
            parse_product_rate(default_rate, region="*") if default_rate else None
        ),
        charge_rules=tuple(parse_charge_rule(r) for r in data.get("charge_rules") or ()),
        extra_charge_rules=tuple(
            parse_charge_rule(r) for r in data.get("extra_charge_rules") or ()
        ),
        product_rates=tuple(
            parse_product_rate(r) for r in data.get("product_rates") or ()
        ),
        quotes=parse_quote_policy(data.get("quotes") or {}),
        agent_base_currency=str(data.get("agent_base_currency", "USD")).strip().upper(),
        checksum=compute_checksum(data),
    )


def load_engine_config(path: Path) -> EngineConfig:
    """Load and parse one configuration file."""
    return parse_engine_config(load_yaml_file(path))
