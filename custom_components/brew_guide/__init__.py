"""Initialize the Brew Guide component."""

import typing

import homeassistant.helpers.config_validation as cv
import voluptuous as vol
from homeassistant.core import HomeAssistant

from .const import (
    ATTR_BEAN_ID,
    ATTR_CAPACITY,
    ATTR_EQUIPMENT,
    ATTR_FIELD,
    ATTR_METHOD,
    ATTR_METHOD_ID,
    ATTR_NAME,
    ATTR_NOTES,
    ATTR_PAYLOAD,
    ATTR_RATING,
    ATTR_REMAINING,
    ATTR_ROAST_DATE,
    ATTR_ROAST_LEVEL,
    ATTR_STEP,
    ATTR_TASTE,
    ATTR_VALUE,
    DOMAIN,
    PLATFORMS,
    SERVICE_ADD_COFFEE_BEAN,
    SERVICE_ADJUST_PARAMETER,
    SERVICE_DELETE_CUSTOM_METHOD,
    SERVICE_GO_TO_STEP,
    SERVICE_IMPORT_CUSTOM_METHODS,
    SERVICE_PAUSE_TIMER,
    SERVICE_RESET_TIMER,
    SERVICE_SAVE_CUSTOM_METHOD,
    SERVICE_SAVE_NOTE,
    SERVICE_SELECT_COFFEE_BEAN,
    SERVICE_SELECT_EQUIPMENT,
    SERVICE_SELECT_METHOD,
    SERVICE_START_TIMER,
)
from .coordinator import BrewGuideConfigEntry, BrewGuideCoordinator
from .rescaler import PARAMETER_FIELDS
from .types import WorkflowStep

_TASTE_SCORE = vol.All(vol.Coerce(int), vol.Range(min=0, max=5))

SERVICE_SCHEMAS: dict[str, vol.Schema] = {
    SERVICE_SELECT_COFFEE_BEAN: vol.Schema(
        {vol.Optional(ATTR_BEAN_ID): vol.Any(None, cv.string)}
    ),
    SERVICE_SELECT_EQUIPMENT: vol.Schema({vol.Required(ATTR_EQUIPMENT): cv.string}),
    SERVICE_SELECT_METHOD: vol.Schema(
        {
            vol.Optional(ATTR_EQUIPMENT): cv.string,
            vol.Required(ATTR_METHOD): cv.string,
        }
    ),
    SERVICE_GO_TO_STEP: vol.Schema(
        {vol.Required(ATTR_STEP): vol.In([step.value for step in WorkflowStep])}
    ),
    SERVICE_ADJUST_PARAMETER: vol.Schema(
        {
            vol.Required(ATTR_FIELD): vol.In(PARAMETER_FIELDS),
            vol.Required(ATTR_VALUE): cv.string,
        }
    ),
    SERVICE_START_TIMER: vol.Schema({}),
    SERVICE_PAUSE_TIMER: vol.Schema({}),
    SERVICE_RESET_TIMER: vol.Schema({}),
    SERVICE_SAVE_NOTE: vol.Schema(
        {
            vol.Optional(ATTR_RATING, default=0): vol.All(
                vol.Coerce(int), vol.Range(min=0, max=5)
            ),
            vol.Optional(ATTR_TASTE, default={}): vol.Schema(
                {
                    vol.Optional("acidity"): _TASTE_SCORE,
                    vol.Optional("sweetness"): _TASTE_SCORE,
                    vol.Optional("bitterness"): _TASTE_SCORE,
                    vol.Optional("body"): _TASTE_SCORE,
                }
            ),
            vol.Optional(ATTR_NOTES, default=""): cv.string,
        }
    ),
    SERVICE_SAVE_CUSTOM_METHOD: vol.Schema(
        {
            vol.Required(ATTR_EQUIPMENT): cv.string,
            vol.Required(ATTR_METHOD): dict,
        }
    ),
    SERVICE_DELETE_CUSTOM_METHOD: vol.Schema(
        {
            vol.Required(ATTR_EQUIPMENT): cv.string,
            vol.Required(ATTR_METHOD_ID): cv.string,
        }
    ),
    SERVICE_IMPORT_CUSTOM_METHODS: vol.Schema({vol.Required(ATTR_PAYLOAD): cv.string}),
    SERVICE_ADD_COFFEE_BEAN: vol.Schema(
        {
            vol.Optional(ATTR_BEAN_ID): cv.string,
            vol.Required(ATTR_NAME): cv.string,
            vol.Required(ATTR_REMAINING): vol.All(
                vol.Coerce(float), vol.Range(min=0)
            ),
            vol.Optional(ATTR_CAPACITY): vol.All(vol.Coerce(float), vol.Range(min=0)),
            vol.Optional(ATTR_ROAST_LEVEL): cv.string,
            vol.Optional(ATTR_ROAST_DATE): cv.string,
        }
    ),
}


def _service_handlers(coordinator: BrewGuideCoordinator) -> dict[str, typing.Any]:
    return {
        SERVICE_SELECT_COFFEE_BEAN: coordinator.async_select_coffee_bean_service,
        SERVICE_SELECT_EQUIPMENT: coordinator.async_select_equipment_service,
        SERVICE_SELECT_METHOD: coordinator.async_select_method_service,
        SERVICE_GO_TO_STEP: coordinator.async_go_to_step_service,
        SERVICE_ADJUST_PARAMETER: coordinator.async_adjust_parameter_service,
        SERVICE_START_TIMER: coordinator.async_start_timer_service,
        SERVICE_PAUSE_TIMER: coordinator.async_pause_timer_service,
        SERVICE_RESET_TIMER: coordinator.async_reset_timer_service,
        SERVICE_SAVE_NOTE: coordinator.async_save_note_service,
        SERVICE_SAVE_CUSTOM_METHOD: coordinator.async_save_custom_method_service,
        SERVICE_DELETE_CUSTOM_METHOD: coordinator.async_delete_custom_method_service,
        SERVICE_IMPORT_CUSTOM_METHODS: coordinator.async_import_custom_methods_service,
        SERVICE_ADD_COFFEE_BEAN: coordinator.async_add_coffee_bean_service,
    }


async def async_setup_entry(hass: HomeAssistant, entry: BrewGuideConfigEntry) -> bool:
    """Set up Brew Guide as config entry."""

    coordinator = BrewGuideCoordinator(hass, entry)
    await coordinator.async_config_entry_first_refresh()  # Load methods and beans

    entry.runtime_data = coordinator

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    # Register services
    for service, handler in _service_handlers(coordinator).items():
        hass.services.async_register(
            DOMAIN, service, handler, schema=SERVICE_SCHEMAS[service]
        )

    # Options changes rebuild the coordinator with the new settings
    entry.async_on_unload(entry.add_update_listener(_async_update_listener))

    return True


async def _async_update_listener(
    hass: HomeAssistant, entry: BrewGuideConfigEntry
) -> None:
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: BrewGuideConfigEntry) -> bool:
    """Unload a config entry."""

    unloaded = typing.cast(
        bool, await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    )
    if unloaded:
        await entry.runtime_data.async_shutdown()
        for service in SERVICE_SCHEMAS:
            hass.services.async_remove(DOMAIN, service)
    return unloaded
