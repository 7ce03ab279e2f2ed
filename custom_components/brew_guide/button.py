"""Button entities for Brew Guide."""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from homeassistant.components.button import ButtonEntity, ButtonEntityDescription
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .coordinator import BrewGuideConfigEntry, BrewGuideCoordinator
from .entity import BrewGuideEntity

PARALLEL_UPDATES = 0
_LOGGER = logging.getLogger(__name__)


@dataclass(kw_only=True, frozen=True)
class BrewGuideButtonEntityDescription(ButtonEntityDescription):
    """Describes a Brew Guide button entity.

    Attributes:
        press_fn: Called with the coordinator when the button is pressed.
                  Returns False when the workflow rejected the action.
    """

    press_fn: Callable[[BrewGuideCoordinator], bool]


def _advance(coordinator: BrewGuideCoordinator) -> bool:
    advanced = coordinator.workflow.advance()
    coordinator.async_update_listeners()
    return advanced


BUTTONS: tuple[BrewGuideButtonEntityDescription, ...] = (
    BrewGuideButtonEntityDescription(
        key="start_timer",
        translation_key="start_timer",
        icon="mdi:play",
        press_fn=lambda coordinator: coordinator.start_timer(),
    ),
    BrewGuideButtonEntityDescription(
        key="pause_timer",
        translation_key="pause_timer",
        icon="mdi:pause",
        press_fn=lambda coordinator: coordinator.pause_timer(),
    ),
    BrewGuideButtonEntityDescription(
        key="reset_timer",
        translation_key="reset_timer",
        icon="mdi:timer-refresh-outline",
        press_fn=lambda coordinator: coordinator.reset_timer(),
    ),
    BrewGuideButtonEntityDescription(
        key="advance_step",
        translation_key="advance_step",
        icon="mdi:skip-next",
        press_fn=_advance,
    ),
)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: BrewGuideConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up Brew Guide button entities based on the config entry."""

    coordinator = entry.runtime_data
    async_add_entities(
        BrewGuideButton(coordinator, description) for description in BUTTONS
    )


class BrewGuideButton(BrewGuideEntity, ButtonEntity):
    """Representation of a Brew Guide button entity.

    Each button maps to one workflow or timer action on the coordinator.
    """

    entity_description: BrewGuideButtonEntityDescription

    async def async_press(self) -> None:
        """Handle the button press.

        A rejected action (for example starting the timer outside the
        brewing step) is logged and leaves the workflow untouched.
        """
        try:
            accepted = self.entity_description.press_fn(self.coordinator)
        except Exception as e:
            _LOGGER.error(
                "Error pressing button %s: %s",
                self.entity_description.key,
                e,
                exc_info=True,
            )
            raise HomeAssistantError(
                f"Error pressing button {self.entity_description.key}: {e}"
            ) from e
        if not accepted:
            _LOGGER.debug(
                "%s: Button %s ignored in step %s",
                self.coordinator.name,
                self.entity_description.key,
                self.coordinator.workflow.state.active_step,
            )
