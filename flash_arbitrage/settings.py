"""
Settings file schema and loading.

A settings file names the operator, the venues and the flash lender, and
carries the thresholds the operator would otherwise set one call at a time.
Venues may carry an in-memory (paper) state, an on-chain address, or both.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from web3 import Web3

from .bot import ArbitrageBot
from .exceptions import ConfigurationError
from .fixed_point.tick_math import encode_price_sqrt
from .metrics import ArbitrageMetrics
from .types import ConcentratedLiquidityState, ConstantProductState, VenueState
from .venues import PaperFlashLender, PaperVenue

logger = logging.getLogger(__name__)


def _checksum(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not Web3.is_address(value):
        raise ValueError(f"Invalid address: {value}")
    return Web3.to_checksum_address(value)


class VenueSettings(BaseModel):
    """One liquidity venue."""

    model_config = {"extra": "forbid"}

    kind: Literal["constant_product", "concentrated_liquidity"] = Field(
        description="Pricing curve of the venue"
    )
    address: Optional[str] = Field(default=None, description="On-chain pair/pool address")
    asset0: str = Field(min_length=1)
    asset1: str = Field(min_length=1)
    fee_bps: int = Field(ge=0, lt=10000, default=30)

    # Constant-product paper state
    reserve0: int = Field(ge=0, default=0)
    reserve1: int = Field(ge=0, default=0)

    # Concentrated-liquidity paper state; price as sqrt_price_x96 or amount1/amount0
    sqrt_price_x96: Optional[int] = Field(gt=0, default=None)
    price_amount0: Optional[int] = Field(gt=0, default=None)
    price_amount1: Optional[int] = Field(gt=0, default=None)
    liquidity: int = Field(ge=0, default=0)
    tick_spacing: int = Field(gt=0, default=10)
    ticks: Dict[int, int] = Field(default_factory=dict, description="tick -> liquidity_net")
    words_each_side: int = Field(ge=0, le=64, default=2)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        return _checksum(v)

    @model_validator(mode="after")
    def validate_assets(self):
        if self.asset0 == self.asset1:
            raise ValueError(f"asset0 and asset1 must differ, both are {self.asset0}")
        if (self.price_amount0 is None) != (self.price_amount1 is None):
            raise ValueError("price_amount0 and price_amount1 must be given together")
        return self

    def to_state(self, name: str) -> VenueState:
        """Build the paper venue state described by these settings."""
        if self.kind == "constant_product":
            return ConstantProductState(
                venue=name, reserve0=self.reserve0, reserve1=self.reserve1, fee_bps=self.fee_bps
            )

        sqrt_price_x96 = self.sqrt_price_x96
        if sqrt_price_x96 is None:
            if self.price_amount0 is None:
                raise ConfigurationError(
                    f"Venue {name}: concentrated liquidity needs sqrt_price_x96 "
                    f"or price_amount0/price_amount1"
                )
            sqrt_price_x96 = encode_price_sqrt(self.price_amount1, self.price_amount0)

        return ConcentratedLiquidityState.at_sqrt_price(
            venue=name,
            sqrt_price_x96=sqrt_price_x96,
            liquidity=self.liquidity,
            fee_bps=self.fee_bps,
            tick_spacing=self.tick_spacing,
            ticks=self.ticks,
        )


class LenderSettings(BaseModel):
    """Flash lender."""

    model_config = {"extra": "forbid"}

    address: Optional[str] = None
    fee_bps: int = Field(ge=0, lt=10000, default=1, description="Premium in basis points")
    balances: Dict[str, int] = Field(default_factory=dict)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        return _checksum(v)

    @field_validator("balances")
    @classmethod
    def validate_balances(cls, v):
        for asset, balance in v.items():
            if balance < 0:
                raise ValueError(f"Balance for {asset} cannot be negative: {balance}")
        return v


class BotSettings(BaseModel):
    """Top-level bot settings."""

    model_config = {"extra": "forbid", "validate_assignment": True}

    operator: str = Field(description="Address allowed to configure and retrieve")
    source_venue: str
    destination_venue: str
    flash_venue: str
    reverse_source_tokens: bool = Field(
        default=False, description="Source venue lists the pair in the opposite order"
    )
    min_profit_asset0: int = Field(ge=0, default=0)
    min_profit_asset1: int = Field(ge=0, default=0)
    max_slippage_bps: int = Field(ge=0, le=10000, default=0)
    max_input: Optional[int] = Field(gt=0, default=None)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    metrics_port: Optional[int] = Field(ge=1, le=65535, default=None)
    rpc_url_env: str = Field(default="RPC_URL", description="Environment variable holding the RPC URL")
    venues: Dict[str, VenueSettings]
    lenders: Dict[str, LenderSettings]

    @field_validator("operator")
    @classmethod
    def validate_operator(cls, v):
        return _checksum(v)

    @model_validator(mode="after")
    def validate_references(self):
        for field_name in ("source_venue", "destination_venue"):
            name = getattr(self, field_name)
            if name not in self.venues:
                raise ValueError(f"{field_name} '{name}' is not defined under venues")
        if self.source_venue == self.destination_venue:
            raise ValueError("source_venue and destination_venue must differ")
        if self.flash_venue not in self.lenders:
            raise ValueError(f"flash_venue '{self.flash_venue}' is not defined under lenders")
        return self


def load_yaml_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load and parse YAML configuration file."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")

    if config_dict is None:
        raise ConfigurationError(f"Empty configuration file: {config_path}")
    if not isinstance(config_dict, dict):
        raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")
    return config_dict


def validate_settings(config_dict: Dict[str, Any]) -> BotSettings:
    try:
        return BotSettings(**config_dict)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Settings validation failed: {e}", details={"errors": e.errors()})


def load_settings(config_path: Union[str, Path]) -> BotSettings:
    return validate_settings(load_yaml_config(config_path))


def build_paper_bot(settings: BotSettings, metrics: Optional[ArbitrageMetrics] = None) -> ArbitrageBot:
    """Create a bot trading against in-memory venues described by settings."""
    venues = {
        name: PaperVenue(venue.to_state(name), venue.asset0, venue.asset1)
        for name, venue in settings.venues.items()
    }
    lender_settings = settings.lenders[settings.flash_venue]
    lender = PaperFlashLender(
        settings.flash_venue, balances=lender_settings.balances, fee_bps=lender_settings.fee_bps
    )

    bot = ArbitrageBot(settings.operator, metrics=metrics)
    bot.configure(
        settings.operator,
        venues[settings.source_venue],
        venues[settings.destination_venue],
        lender,
        reverse_source_tokens=settings.reverse_source_tokens,
        min_profit0=settings.min_profit_asset0,
        min_profit1=settings.min_profit_asset1,
        max_slippage_bps=settings.max_slippage_bps,
    )
    logger.info(
        f"Paper bot configured: {settings.source_venue} -> {settings.destination_venue}, "
        f"flash from {settings.flash_venue}"
    )
    return bot
