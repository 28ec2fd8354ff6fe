"""Exceptions raised at the boundaries of the pricing engine."""


class PricingError(ValueError):
    """Base class for invalid cart, rule or configuration input."""


class InvalidPriceError(PricingError):
    pass


class InvalidQuantityError(PricingError):
    pass


class InvalidDiscountError(PricingError):
    pass


class CyclicBundleError(PricingError):
    """A bundle would end up containing itself."""


class BundleDepthError(PricingError):
    """Loaded bundle nesting exceeds the configured maximum depth."""


class UnknownRuleError(PricingError):
    pass


class ConfigError(PricingError):
    pass


class ComponentAttachedError(PricingError):
    """A component already belongs to a bundle or a cart."""


class InvalidBonusPointsError(PricingError):
    pass
