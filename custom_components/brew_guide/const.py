"""Constants for component."""

from dataclasses import dataclass

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform

DOMAIN = "brew_guide"
DEFAULT_NAME = "Brew Guide"

# Event names
EVENT_STAGE_CHANGE = f"{DOMAIN}_stage_change"
EVENT_PARAMETER_UPDATE = f"{DOMAIN}_parameter_update"
EVENT_COMPLETION = f"{DOMAIN}_completion"

# Service names
SERVICE_SELECT_COFFEE_BEAN = "select_coffee_bean"
SERVICE_SELECT_EQUIPMENT = "select_equipment"
SERVICE_SELECT_METHOD = "select_method"
SERVICE_GO_TO_STEP = "go_to_step"
SERVICE_ADJUST_PARAMETER = "adjust_parameter"
SERVICE_START_TIMER = "start_timer"
SERVICE_PAUSE_TIMER = "pause_timer"
SERVICE_RESET_TIMER = "reset_timer"
SERVICE_SAVE_NOTE = "save_note"
SERVICE_SAVE_CUSTOM_METHOD = "save_custom_method"
SERVICE_DELETE_CUSTOM_METHOD = "delete_custom_method"
SERVICE_IMPORT_CUSTOM_METHODS = "import_custom_methods"
SERVICE_ADD_COFFEE_BEAN = "add_coffee_bean"

# Service fields
ATTR_BEAN_ID = "bean_id"
ATTR_EQUIPMENT = "equipment"
ATTR_METHOD = "method"
ATTR_METHOD_ID = "method_id"
ATTR_STEP = "step"
ATTR_FIELD = "field"
ATTR_VALUE = "value"
ATTR_RATING = "rating"
ATTR_TASTE = "taste"
ATTR_NOTES = "notes"
ATTR_PAYLOAD = "payload"
ATTR_NAME = "name"
ATTR_REMAINING = "remaining"
ATTR_CAPACITY = "capacity"
ATTR_ROAST_LEVEL = "roast_level"
ATTR_ROAST_DATE = "roast_date"

# Option Keys
OPTION_TICK_INTERVAL = "tick_interval_seconds"
OPTION_ESPRESSO_FALLBACK_DURATION = "espresso_fallback_duration_seconds"
OPTION_DEDUCT_BEAN_INVENTORY = "deduct_bean_inventory"

DEFAULT_TICK_INTERVAL = 1.0  # seconds
DEFAULT_ESPRESSO_FALLBACK_DURATION = 25.0  # seconds
DEFAULT_DEDUCT_BEAN_INVENTORY = True


@dataclass(frozen=True)
class BrewGuideConfig:
    """Typed configuration for the Brew Guide integration."""

    tick_interval: float
    espresso_fallback_duration: float
    deduct_bean_inventory: bool

    @classmethod
    def from_config_entry(cls, entry: ConfigEntry) -> "BrewGuideConfig":
        """Create a BrewGuideConfig instance from a ConfigEntry."""
        options = entry.options
        return cls(
            tick_interval=options.get(OPTION_TICK_INTERVAL, DEFAULT_TICK_INTERVAL),
            espresso_fallback_duration=options.get(
                OPTION_ESPRESSO_FALLBACK_DURATION,
                DEFAULT_ESPRESSO_FALLBACK_DURATION,
            ),
            deduct_bean_inventory=options.get(
                OPTION_DEDUCT_BEAN_INVENTORY, DEFAULT_DEDUCT_BEAN_INVENTORY
            ),
        )


PLATFORMS: list[Platform] = [
    Platform.SENSOR,
    Platform.BINARY_SENSOR,
    Platform.BUTTON,
]
