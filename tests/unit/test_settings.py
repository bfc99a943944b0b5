"""
Tests for settings file loading and validation.
"""

from pathlib import Path

import pytest
import yaml

from flash_arbitrage.exceptions import ConfigurationError
from flash_arbitrage.settings import (
    BotSettings,
    VenueSettings,
    build_paper_bot,
    load_settings,
    load_yaml_config,
    validate_settings,
)
from flash_arbitrage.types import ConcentratedLiquidityState, SwapDirection

PAPER_CONFIG = Path(__file__).resolve().parents[2] / "configs" / "paper.yaml"


@pytest.fixture
def paper_dict():
    with open(PAPER_CONFIG) as f:
        return yaml.safe_load(f)


def _write(tmp_path, data, name="settings.yaml"):
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data) if not isinstance(data, str) else data)
    return path


class TestLoadYamlConfig:
    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_yaml_config(tmp_path / "missing.yaml")

    def test_empty_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Empty"):
            load_yaml_config(_write(tmp_path, ""))

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_yaml_config(_write(tmp_path, "venues: [unclosed"))

    def test_root_must_be_mapping(self, tmp_path):
        with pytest.raises(ConfigurationError, match="mapping"):
            load_yaml_config(_write(tmp_path, "- a\n- b\n"))


class TestPaperConfig:
    def test_loads(self):
        settings = load_settings(PAPER_CONFIG)
        assert isinstance(settings, BotSettings)
        assert settings.operator == "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
        assert settings.reverse_source_tokens is True
        assert settings.venues["external"].ticks == {-80000: 10**21, -70000: -(10**21)}

    def test_builds_working_bot(self):
        bot = build_paper_bot(load_settings(PAPER_CONFIG))
        assert bot.configuration.assets == ("USDC", "WETH")

        plan = bot.solve()

        assert plan is not None
        assert plan.direction is SwapDirection.ONE_FOR_ZERO
        assert plan.balance_change1 > 0

    def test_concentrated_state_from_price(self):
        settings = load_settings(PAPER_CONFIG)
        state = settings.venues["external"].to_state("external")
        assert isinstance(state, ConcentratedLiquidityState)
        assert -80000 < state.tick < -70000
        assert state.fee_bps == 5


class TestValidation:
    def test_lowercase_operator_is_checksummed(self, paper_dict):
        paper_dict["operator"] = paper_dict["operator"].lower()
        settings = validate_settings(paper_dict)
        assert settings.operator == "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"

    def test_invalid_operator(self, paper_dict):
        paper_dict["operator"] = "0x123"
        with pytest.raises(ConfigurationError) as exc_info:
            validate_settings(paper_dict)
        assert exc_info.value.details["errors"]

    def test_unknown_venue_reference(self, paper_dict):
        paper_dict["source_venue"] = "nowhere"
        with pytest.raises(ConfigurationError, match="nowhere"):
            validate_settings(paper_dict)

    def test_unknown_lender_reference(self, paper_dict):
        paper_dict["flash_venue"] = "nobody"
        with pytest.raises(ConfigurationError):
            validate_settings(paper_dict)

    def test_same_source_and_destination(self, paper_dict):
        paper_dict["destination_venue"] = paper_dict["source_venue"]
        with pytest.raises(ConfigurationError):
            validate_settings(paper_dict)

    def test_unknown_field(self, paper_dict):
        paper_dict["leverage"] = 10
        with pytest.raises(ConfigurationError):
            validate_settings(paper_dict)

    def test_slippage_bounds(self, paper_dict):
        paper_dict["max_slippage_bps"] = 10001
        with pytest.raises(ConfigurationError):
            validate_settings(paper_dict)

    def test_negative_lender_balance(self, paper_dict):
        paper_dict["lenders"]["flash"]["balances"]["WETH"] = -1
        with pytest.raises(ConfigurationError):
            validate_settings(paper_dict)

    def test_load_settings_from_file(self, tmp_path, paper_dict):
        paper_dict["min_profit_asset1"] = 5
        settings = load_settings(_write(tmp_path, paper_dict))
        assert settings.min_profit_asset1 == 5


class TestVenueSettings:
    def test_assets_must_differ(self):
        with pytest.raises(ValueError):
            VenueSettings(kind="constant_product", asset0="WETH", asset1="WETH")

    def test_price_amounts_come_in_pairs(self):
        with pytest.raises(ValueError):
            VenueSettings(kind="concentrated_liquidity", asset0="USDC", asset1="WETH", price_amount0=1800)

    def test_concentrated_needs_price(self):
        venue = VenueSettings(kind="concentrated_liquidity", asset0="USDC", asset1="WETH")
        with pytest.raises(ConfigurationError):
            venue.to_state("pool")

    def test_explicit_sqrt_price(self):
        venue = VenueSettings(
            kind="concentrated_liquidity",
            asset0="USDC",
            asset1="WETH",
            sqrt_price_x96=2**96,
            liquidity=10**18,
        )
        state = venue.to_state("pool")
        assert state.tick == 0
        assert state.venue == "pool"

    def test_constant_product_state(self):
        venue = VenueSettings(kind="constant_product", asset0="WETH", asset1="USDC", reserve0=5, reserve1=7)
        state = venue.to_state("pair")
        assert (state.reserve0, state.reserve1, state.fee_bps) == (5, 7, 30)
