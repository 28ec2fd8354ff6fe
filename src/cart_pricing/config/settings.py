"""
Centralized settings for the cart pricing engine.

Defaults match the reference shop (Swiss francs, 7.7% VAT). Any value can be
overridden from the environment; volume tiers can come from a CSV file.
"""
import os
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

import pandas as pd

from ..errors import ConfigError

ENV_PREFIX = "CART_PRICING_"


@dataclass(frozen=True)
class VolumeTier:
    """Minimum summed quantity of one article and the discount rate it earns."""
    min_quantity: int
    rate: Decimal


DEFAULT_VOLUME_TIERS = (
    VolumeTier(min_quantity=10, rate=Decimal("0.05")),
    VolumeTier(min_quantity=20, rate=Decimal("0.10")),
    VolumeTier(min_quantity=50, rate=Decimal("0.20")),
)


def _decimal(raw: str, name: str) -> Decimal:
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if not value.is_finite():
        raise ConfigError(f"{name} must be a finite number, got {raw!r}")
    return value


def load_volume_tiers(path: Path) -> tuple[VolumeTier, ...]:
    """Read volume tiers from a CSV with min_quantity,rate columns."""
    if not path.exists():
        raise ConfigError(f"Volume tier file not found at {path}")

    df = pd.read_csv(path, dtype=str)
    df.columns = [c.strip() for c in df.columns]
    missing = {'min_quantity', 'rate'} - set(df.columns)
    if missing:
        raise ConfigError(f"{path} is missing columns: {', '.join(sorted(missing))}")

    tiers = []
    for _, row in df.dropna(subset=['min_quantity', 'rate']).iterrows():
        try:
            min_qty = int(str(row['min_quantity']).strip())
        except ValueError:
            raise ConfigError(f"Bad min_quantity {row['min_quantity']!r} in {path}") from None
        rate = _decimal(str(row["rate"]), "rate")
        tiers.append(VolumeTier(min_quantity=min_qty, rate=rate))

    return validate_volume_tiers(tiers)


def validate_volume_tiers(tiers) -> tuple[VolumeTier, ...]:
    """Sort tiers by threshold and reject rates outside [0, 1)."""
    tiers = sorted(tiers, key=lambda t: t.min_quantity)
    for tier in tiers:
        if tier.min_quantity < 1:
            raise ConfigError(f"Volume tier threshold must be >= 1, got {tier.min_quantity}")
        if not (0 <= tier.rate < 1):
            raise ConfigError(f"Volume tier rate must be in [0, 1), got {tier.rate}")
    return tuple(tiers)


@dataclass
class Settings:
    """Pricing settings with sensible defaults."""

    currency: str = "CHF"

    # Adjustment rates
    new_customer_rate: Decimal = Decimal("0.05")
    new_customer_max_discount: Decimal = Decimal("100")
    birthday_rate: Decimal = Decimal("0.03")
    vat_rate: Decimal = Decimal("0.077")
    volume_tiers: tuple = field(default=DEFAULT_VOLUME_TIERS)

    # Bonus points are multiplied on the customer's birthday
    birthday_bonus_multiplier: int = 10

    # Guard for trees loaded from external data
    max_bundle_depth: int = 32

    # Final rounding of the cart total
    price_places: int = 2

    def __post_init__(self):
        if self.price_places < 0:
            raise ConfigError(f"price_places must be >= 0, got {self.price_places}")
        if self.max_bundle_depth < 1:
            raise ConfigError(f"max_bundle_depth must be >= 1, got {self.max_bundle_depth}")
        if self.birthday_bonus_multiplier < 1:
            raise ConfigError(f"birthday_bonus_multiplier must be >= 1, got {self.birthday_bonus_multiplier}")

    @property
    def price_quantum(self) -> Decimal:
        return Decimal(1).scaleb(-self.price_places)

    @classmethod
    def load(cls, environ: Optional[dict] = None) -> 'Settings':
        """Load settings, applying CART_PRICING_* environment overrides."""
        env = os.environ if environ is None else environ
        settings = cls()
        overrides = {}

        for name in ('new_customer_rate', 'new_customer_max_discount', 'birthday_rate', 'vat_rate'):
            raw = env.get(ENV_PREFIX + name.upper())
            if raw:
                overrides[name] = _decimal(raw, name)

        for name in ('birthday_bonus_multiplier', 'max_bundle_depth', 'price_places'):
            raw = env.get(ENV_PREFIX + name.upper())
            if raw:
                try:
                    overrides[name] = int(raw)
                except ValueError:
                    raise ConfigError(f"{ENV_PREFIX}{name.upper()} must be an integer, got {raw!r}") from None

        if env.get(ENV_PREFIX + 'CURRENCY'):
            overrides['currency'] = env[ENV_PREFIX + 'CURRENCY'].strip()

        tiers_path = env.get(ENV_PREFIX + 'VOLUME_TIERS')
        if tiers_path:
            overrides['volume_tiers'] = load_volume_tiers(Path(tiers_path))

        return replace(settings, **overrides)


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
