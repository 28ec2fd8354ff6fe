"""Tests for settings loading."""
from decimal import Decimal

import pytest

from cart_pricing.config.settings import (
    DEFAULT_VOLUME_TIERS,
    Settings,
    VolumeTier,
    load_volume_tiers,
    validate_volume_tiers,
)
from cart_pricing.engine import VAT, VolumeDiscount
from cart_pricing.errors import ConfigError


def test_defaults():
    settings = Settings.load(environ={})
    assert settings.currency == "CHF"
    assert settings.vat_rate == Decimal("0.077")
    assert settings.volume_tiers == DEFAULT_VOLUME_TIERS
    assert settings.price_quantum == Decimal("0.01")


def test_environment_overrides():
    settings = Settings.load(environ={
        "CART_PRICING_VAT_RATE": "0.081",
        "CART_PRICING_CURRENCY": "EUR",
        "CART_PRICING_BIRTHDAY_BONUS_MULTIPLIER": "5",
    })
    assert settings.vat_rate == Decimal("0.081")
    assert settings.currency == "EUR"
    assert settings.birthday_bonus_multiplier == 5
    assert VAT(settings=settings).describe() == "VAT (8.1%)"


@pytest.mark.parametrize("name,value", [
    ("CART_PRICING_VAT_RATE", "lots"),
    ("CART_PRICING_VAT_RATE", "inf"),
    ("CART_PRICING_PRICE_PLACES", "two"),
    ("CART_PRICING_PRICE_PLACES", "-2"),
    ("CART_PRICING_MAX_BUNDLE_DEPTH", "0"),
    ("CART_PRICING_BIRTHDAY_BONUS_MULTIPLIER", "-1"),
    ("CART_PRICING_BIRTHDAY_BONUS_MULTIPLIER", "0"),
])
def test_bad_environment_values(name, value):
    with pytest.raises(ConfigError):
        Settings.load(environ={name: value})


def test_whole_unit_rounding():
    settings = Settings.load(environ={"CART_PRICING_PRICE_PLACES": "0"})
    assert settings.price_quantum == Decimal("1")


@pytest.mark.parametrize("overrides", [
    {"price_places": -1}, {"max_bundle_depth": 0}, {"birthday_bonus_multiplier": -3},
])
def test_settings_reject_out_of_range_numbers(overrides):
    with pytest.raises(ConfigError):
        Settings(**overrides)


def test_volume_tiers_from_csv(tmp_path):
    path = tmp_path / "tiers.csv"
    path.write_text("min_quantity, rate\n100,0.25\n5,0.02\n", encoding="utf-8")

    settings = Settings.load(environ={"CART_PRICING_VOLUME_TIERS": str(path)})

    assert settings.volume_tiers == (
        VolumeTier(5, Decimal("0.02")),
        VolumeTier(100, Decimal("0.25")),
    )
    assert VolumeDiscount(settings=settings).rate_for_quantity(99) == Decimal("0.02")


def test_volume_tier_csv_errors(tmp_path):
    with pytest.raises(ConfigError):
        load_volume_tiers(tmp_path / "missing.csv")

    path = tmp_path / "tiers.csv"
    path.write_text("threshold,rate\n10,0.05\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_volume_tiers(path)


@pytest.mark.parametrize("tier", [VolumeTier(0, Decimal("0.05")), VolumeTier(10, Decimal("1"))])
def test_invalid_tiers(tier):
    with pytest.raises(ConfigError):
        validate_volume_tiers([tier])
