"""Custom exceptions for the Brew Guide integration."""


class BrewGuideError(Exception):
    """Base class for exceptions raised by the Brew Guide integration."""

    pass


class EquipmentNotFoundError(BrewGuideError):
    """Raised when an equipment id is not in the catalog."""

    pass


class MethodNotFoundError(BrewGuideError):
    """Raised when no method with the requested name or id exists."""

    pass


class CoffeeBeanNotFoundError(BrewGuideError):
    """Raised when a coffee bean id is not in the inventory."""

    pass


class CustomMethodSchemaError(BrewGuideError):
    """Raised when imported custom method data has an unknown shape."""

    pass
