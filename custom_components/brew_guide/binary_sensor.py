"""Binary sensor platform for Brew Guide."""

from collections.abc import Callable
from dataclasses import dataclass

from homeassistant.components.binary_sensor import (
    BinarySensorDeviceClass,
    BinarySensorEntity,
    BinarySensorEntityDescription,
)
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .coordinator import BrewGuideConfigEntry, BrewGuideCoordinator
from .entity import BrewGuideEntity

# Coordinator is used to centralize the data updates
PARALLEL_UPDATES = 0


@dataclass(kw_only=True, frozen=True)
class BrewGuideBinarySensorEntityDescription(BinarySensorEntityDescription):
    """Description for Brew Guide binary sensor entities."""

    is_on_fn: Callable[[BrewGuideCoordinator], bool]


BINARY_SENSORS: tuple[BrewGuideBinarySensorEntityDescription, ...] = (
    BrewGuideBinarySensorEntityDescription(
        key="timer_running",
        translation_key="timer_running",
        device_class=BinarySensorDeviceClass.RUNNING,
        icon="mdi:timer-sand",
        is_on_fn=lambda coordinator: coordinator.workflow.state.is_timer_running,
    ),
    BrewGuideBinarySensorEntityDescription(
        key="brew_complete",
        translation_key="brew_complete",
        icon="mdi:coffee",
        is_on_fn=lambda coordinator: coordinator.workflow.state.is_complete,
    ),
    BrewGuideBinarySensorEntityDescription(
        key="waiting",
        translation_key="waiting",
        icon="mdi:timer-pause-outline",
        is_on_fn=lambda coordinator: _is_waiting(coordinator),
    ),
)


def _is_waiting(coordinator: BrewGuideCoordinator) -> bool:
    state = coordinator.workflow.state
    if not 0 <= state.current_stage_index < len(state.expanded_stages):
        return False
    return state.expanded_stages[state.current_stage_index].type == "wait"


async def async_setup_entry(
    hass: HomeAssistant,
    entry: BrewGuideConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up binary sensors."""

    coordinator = entry.runtime_data
    async_add_entities(
        BrewGuideBinarySensor(coordinator, description)
        for description in BINARY_SENSORS
    )


class BrewGuideBinarySensor(BrewGuideEntity, BinarySensorEntity):
    """Representation of a Brew Guide binary sensor."""

    entity_description: BrewGuideBinarySensorEntityDescription

    @property
    def is_on(self) -> bool:
        """Return true if the binary sensor is on."""
        return self.entity_description.is_on_fn(self.coordinator)
