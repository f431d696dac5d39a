"""
config.py - Risk parameter loading from YAML

Markets are configured in a YAML file with human-readable values:

    markets:
      election-2028:
        base_spread_rate: "0.02"      # Ray rates: fractions
        optimal_utilization: "0.80"
        slope1: "0.04"
        slope2: "0.75"
        reserve_factor: "10%"         # bps: "10%", "0.10" or 1000
        ltv: "50%"
        liquidation_threshold: "75%"
        liquidation_close_factor: "50%"
        liquidation_bonus: "5%"
        lp_share_of_excess: "50%"
        collateral_decimals: 6
        quote_decimals: 6

A file without a `markets` key is a single market. Fields left out take the
value from DEFAULT_RISK_PARAMETERS. `${VAR}` references are replaced with
environment variables (a `.env` file is honoured).
"""

from __future__ import annotations
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Optional, Union
import logging
import os
import re

import yaml
from dotenv import load_dotenv

from .core import InvalidParameters, RiskParameters
from .fixed_point import to_bps, to_ray


logger = logging.getLogger(__name__)


# ============================================================================
# DEFAULTS
# ============================================================================

DEFAULT_RISK_PARAMETERS = RiskParameters(
    base_spread_rate=to_ray("0.02"),
    optimal_utilization=to_ray("0.80"),
    slope1=to_ray("0.04"),
    slope2=to_ray("0.75"),
    reserve_factor=1000,
    ltv=5000,
    liquidation_threshold=7500,
    liquidation_close_factor=5000,
    liquidation_bonus=500,
    lp_share_of_excess=5000,
    collateral_decimals=6,
    quote_decimals=6,
)

_RAY_KEYS = ('base_spread_rate', 'optimal_utilization', 'slope1', 'slope2')
_BPS_KEYS = (
    'reserve_factor', 'ltv', 'liquidation_threshold',
    'liquidation_close_factor', 'liquidation_bonus', 'lp_share_of_excess',
)
_INT_KEYS = ('collateral_decimals', 'quote_decimals')

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


# ============================================================================
# ENV INTERPOLATION
# ============================================================================

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ============================================================================
# YAML -> RiskParameters
# ============================================================================

def build_risk_parameters(raw: Dict[str, Any], name: str = "market") -> RiskParameters:
    """
    Build RiskParameters from a raw mapping, defaulting missing keys.

    Raises:
        InvalidParameters: on unknown keys, unparseable values, or values
            outside the RiskParameters bounds.
    """
    known = {f.name for f in fields(RiskParameters)}
    unknown = set(raw) - known
    if unknown:
        raise InvalidParameters(f"{name}: unknown keys {sorted(unknown)}")

    values: Dict[str, int] = {}
    for key in known:
        if key not in raw:
            values[key] = getattr(DEFAULT_RISK_PARAMETERS, key)
            continue
        value = raw[key]
        try:
            if key in _RAY_KEYS:
                values[key] = to_ray(value)
            elif key in _BPS_KEYS:
                values[key] = to_bps(value)
            else:
                values[key] = int(value)
        except (ArithmeticError, TypeError, ValueError) as exc:
            raise InvalidParameters(f"{name}: cannot parse {key}={value!r}") from exc

    return RiskParameters(**values)


def _read_yaml(config_path: Union[str, Path]) -> Dict[str, Any]:
    load_dotenv()
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise InvalidParameters(f"{config_path}: top level must be a mapping")
    return _interpolate_env(raw)


def load_markets(config_path: Union[str, Path]) -> Dict[str, RiskParameters]:
    """Load every market in a YAML file, keyed by market id."""
    raw = _read_yaml(config_path)
    markets_raw = raw.get('markets')
    if markets_raw is None:
        markets_raw = {'default': raw}
    if not isinstance(markets_raw, dict):
        raise InvalidParameters(f"{config_path}: 'markets' must be a mapping")

    markets = {
        str(market_id): build_risk_parameters(body or {}, name=str(market_id))
        for market_id, body in markets_raw.items()
    }
    logger.info("Loaded %d market configuration(s) from %s", len(markets), config_path)
    return markets


def load_risk_parameters(config_path: Union[str, Path], market: Optional[str] = None) -> RiskParameters:
    """
    Load one market's RiskParameters.

    Args:
        config_path: YAML file path
        market: Market id under `markets`; may be omitted when the file
            configures exactly one market.

    Raises:
        FileNotFoundError: if the file does not exist.
        InvalidParameters: if the market is unknown or ambiguous, or invalid.
    """
    markets = load_markets(config_path)
    if market is None:
        if len(markets) != 1:
            raise InvalidParameters(
                f"{config_path} configures {len(markets)} markets; pass a market id")
        return next(iter(markets.values()))
    if market not in markets:
        raise InvalidParameters(f"unknown market '{market}' in {config_path}")
    return markets[market]


# ============================================================================
# LOGGING
# ============================================================================

def configure_logging(level: str = "INFO") -> None:
    """Install a root handler for applications embedding the engine; unknown levels mean INFO."""
    resolved = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logging.basicConfig(level=resolved, format=_LOG_FORMAT, force=True)
