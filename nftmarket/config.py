"""
Marketplace configuration.

Values come from a YAML file, then ``NFTMARKET_*`` environment variables
override individual keys, e.g. ``NFTMARKET_MARKET_FEE=300``.
"""

import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from eth_utils import to_checksum_address

from nftmarket.constants import DEFAULT_BID_RETENTION, DEFAULT_DONATION_LIMIT, DEFAULT_EXTENSION_WINDOW, \
    DEFAULT_MARKET_FEE, DEFAULT_MIN_BID_INCREMENT, FEE_DENOMINATOR, MAX_DONATION_LIMIT, MAX_MARKET_FEE
from nftmarket.errors import ConfigError, InvalidInput
from nftmarket.helpers import is_zero_address, normalize_address

logger = logging.getLogger(__name__)

ENV_PREFIX = 'NFTMARKET_'


@dataclass
class MarketConfig:
    operator: str
    market_fee: int = DEFAULT_MARKET_FEE
    donation_limit: int = DEFAULT_DONATION_LIMIT
    min_bid_increment: int = DEFAULT_MIN_BID_INCREMENT
    extension_window: int = DEFAULT_EXTENSION_WINDOW
    bid_retention: int = DEFAULT_BID_RETENTION

    def validate(self) -> 'MarketConfig':
        try:
            self.operator = normalize_address(self.operator)
        except InvalidInput as exc:
            raise ConfigError(f"Config: {exc.message}") from exc
        if is_zero_address(self.operator):
            raise ConfigError("Config: operator is the zero address")
        for name in ('market_fee', 'donation_limit', 'min_bid_increment', 'extension_window', 'bid_retention'):
            if not isinstance(getattr(self, name), int) or isinstance(getattr(self, name), bool):
                raise ConfigError(f"Config: {name} must be an integer")
        if not 0 <= self.market_fee <= MAX_MARKET_FEE:
            raise ConfigError("Config: market fee out of range")
        if not 0 <= self.donation_limit <= MAX_DONATION_LIMIT:
            raise ConfigError("Config: donation limit out of range")
        if self.min_bid_increment <= 0:
            raise ConfigError("Config: min bid increment must be positive")
        if self.extension_window < 0:
            raise ConfigError("Config: extension window must not be negative")
        if not 0 <= self.bid_retention < FEE_DENOMINATOR:
            raise ConfigError("Config: bid retention out of range")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _apply_env_overrides(data: Dict[str, Any]) -> None:
    for item in fields(MarketConfig):
        env_var = ENV_PREFIX + item.name.upper()
        if env_var not in os.environ:
            continue
        raw = os.environ[env_var]
        if item.name == 'operator':
            data[item.name] = raw
        else:
            try:
                data[item.name] = int(raw)
            except ValueError as exc:
                raise ConfigError(f"Config: {env_var} must be an integer") from exc
        logger.debug(f"Config: {item.name} overridden from {env_var}")


def config_from_dict(data: Dict[str, Any]) -> MarketConfig:
    known = {item.name for item in fields(MarketConfig)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Config: unknown keys {', '.join(sorted(unknown))}")
    if 'operator' not in data:
        raise ConfigError("Config: operator is required")
    operator = data['operator']
    # YAML 1.1 reads an unquoted 0x... address as a hex integer
    if isinstance(operator, int) and not isinstance(operator, bool):
        try:
            data = dict(data, operator=to_checksum_address(operator.to_bytes(20, 'big')))
        except OverflowError as exc:
            raise ConfigError("Config: operator is not a 20-byte address, quote the operator address") from exc
    return MarketConfig(**data).validate()


def load_config(path: Union[str, Path]) -> MarketConfig:
    path = Path(path)
    try:
        with path.open() as fp:
            data = yaml.safe_load(fp) or {}
    except OSError as exc:
        raise ConfigError(f"Config: cannot read {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config: {path} is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config: {path} must contain a mapping")

    _apply_env_overrides(data)
    config = config_from_dict(data)
    logger.info(f"Loaded marketplace config from {path}")
    return config


def dump_config(config: MarketConfig, path: Union[str, Path]) -> None:
    with Path(path).open('w') as fp:
        yaml.safe_dump(config.validate().to_dict(), fp, sort_keys=False)
