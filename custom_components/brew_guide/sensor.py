"""Sensor platform for Brew Guide."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorEntityDescription,
    SensorStateClass,
)
from homeassistant.const import PERCENTAGE, UnitOfMass, UnitOfTime
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .coordinator import BrewGuideConfigEntry, BrewGuideCoordinator
from .entity import BrewGuideEntity
from .timeline import parse_grams, parse_ratio, target_flow_rate
from .types import ExpandedStage, WorkflowStep

# Coordinator is used to centralize the data updates
PARALLEL_UPDATES = 0


def _current_stage(coordinator: BrewGuideCoordinator) -> ExpandedStage | None:
    state = coordinator.workflow.state
    if 0 <= state.current_stage_index < len(state.expanded_stages):
        return state.expanded_stages[state.current_stage_index]
    return None


def _method_param(coordinator: BrewGuideCoordinator, name: str) -> str | None:
    method = coordinator.workflow.state.current_brewing_method
    if method is None:
        return None
    return getattr(method.params, name)


def _current_stage_attributes(coordinator: BrewGuideCoordinator) -> dict[str, Any]:
    stage = _current_stage(coordinator)
    if stage is None:
        return {}
    return {
        "type": stage.type,
        "detail": stage.detail,
        "start_time": stage.start_time,
        "end_time": stage.end_time,
        "pour_type": stage.pour_type,
        "valve_status": stage.valve_status,
        "flow_rate": round(
            target_flow_rate(
                coordinator.workflow.state.current_stage_index,
                coordinator.workflow.state.expanded_stages,
            ),
            1,
        ),
    }


def _method_attributes(coordinator: BrewGuideCoordinator) -> dict[str, Any]:
    state = coordinator.workflow.state
    if state.selected_equipment is None:
        return {}
    return {
        "available_methods": [
            method.name
            for method in coordinator.recipes.methods_for(state.selected_equipment)
        ]
    }


@dataclass(kw_only=True, frozen=True)
class BrewGuideSensorEntityDescription(SensorEntityDescription):
    """Description for Brew Guide sensor entities."""

    value_fn: Callable[[BrewGuideCoordinator], int | float | str | None]
    attributes_fn: Callable[[BrewGuideCoordinator], dict[str, Any]] | None = None


SENSORS: tuple[BrewGuideSensorEntityDescription, ...] = (
    BrewGuideSensorEntityDescription(
        key="active_step",
        translation_key="active_step",
        device_class=SensorDeviceClass.ENUM,
        options=[step.value for step in WorkflowStep],
        icon="mdi:format-list-numbered",
        value_fn=lambda coordinator: coordinator.workflow.state.active_step.value,
    ),
    BrewGuideSensorEntityDescription(
        key="equipment",
        translation_key="equipment",
        icon="mdi:coffee-maker-outline",
        value_fn=lambda coordinator: coordinator.recipes.equipment_names.get(
            coordinator.workflow.state.selected_equipment or ""
        ),
        attributes_fn=_method_attributes,
    ),
    BrewGuideSensorEntityDescription(
        key="method",
        translation_key="method",
        icon="mdi:book-open-variant",
        value_fn=lambda coordinator: method.name
        if (method := coordinator.workflow.state.current_brewing_method)
        else None,
    ),
    BrewGuideSensorEntityDescription(
        key="coffee_bean",
        translation_key="coffee_bean",
        icon="mdi:seed-outline",
        value_fn=lambda coordinator: coordinator.selected_bean.name
        if coordinator.selected_bean
        else None,
        attributes_fn=lambda coordinator: {
            "remaining": coordinator.selected_bean.remaining,
            "capacity": coordinator.selected_bean.capacity,
        }
        if coordinator.selected_bean
        else {},
    ),
    BrewGuideSensorEntityDescription(
        key="elapsed_time",
        translation_key="elapsed_time",
        device_class=SensorDeviceClass.DURATION,
        native_unit_of_measurement=UnitOfTime.SECONDS,
        suggested_display_precision=0,
        icon="mdi:timer-outline",
        value_fn=lambda coordinator: coordinator.workflow.state.elapsed_time,
    ),
    BrewGuideSensorEntityDescription(
        key="total_brew_time",
        translation_key="total_brew_time",
        device_class=SensorDeviceClass.DURATION,
        native_unit_of_measurement=UnitOfTime.SECONDS,
        suggested_display_precision=0,
        icon="mdi:timer-sand-complete",
        value_fn=lambda coordinator: coordinator.workflow.total_time
        if coordinator.workflow.state.expanded_stages
        else None,
    ),
    BrewGuideSensorEntityDescription(
        key="current_stage",
        translation_key="current_stage",
        icon="mdi:water-outline",
        value_fn=lambda coordinator: stage.label
        if (stage := _current_stage(coordinator))
        else None,
        attributes_fn=_current_stage_attributes,
    ),
    BrewGuideSensorEntityDescription(
        key="stage_progress",
        translation_key="stage_progress",
        native_unit_of_measurement=PERCENTAGE,
        suggested_display_precision=0,
        icon="mdi:progress-clock",
        value_fn=lambda coordinator: coordinator.workflow.state.stage_progress,
    ),
    BrewGuideSensorEntityDescription(
        key="current_water",
        translation_key="current_water",
        device_class=SensorDeviceClass.WEIGHT,
        native_unit_of_measurement=UnitOfMass.GRAMS,
        state_class=SensorStateClass.MEASUREMENT,
        suggested_display_precision=1,
        value_fn=lambda coordinator: coordinator.workflow.state.current_water,
    ),
    BrewGuideSensorEntityDescription(
        key="target_water",
        translation_key="target_water",
        device_class=SensorDeviceClass.WEIGHT,
        native_unit_of_measurement=UnitOfMass.GRAMS,
        suggested_display_precision=0,
        value_fn=lambda coordinator: parse_grams(stage.water)
        if (stage := _current_stage(coordinator))
        else None,
    ),
    BrewGuideSensorEntityDescription(
        key="coffee_dose",
        translation_key="coffee_dose",
        device_class=SensorDeviceClass.WEIGHT,
        native_unit_of_measurement=UnitOfMass.GRAMS,
        suggested_display_precision=1,
        value_fn=lambda coordinator: parse_grams(coffee)
        if (coffee := _method_param(coordinator, "coffee"))
        else None,
    ),
    BrewGuideSensorEntityDescription(
        key="total_water",
        translation_key="total_water",
        device_class=SensorDeviceClass.WEIGHT,
        native_unit_of_measurement=UnitOfMass.GRAMS,
        suggested_display_precision=0,
        value_fn=lambda coordinator: parse_grams(water)
        if (water := _method_param(coordinator, "water"))
        else None,
    ),
    BrewGuideSensorEntityDescription(
        key="ratio",
        translation_key="ratio",
        icon="mdi:scale-balance",
        value_fn=lambda coordinator: parse_ratio(ratio)
        if (ratio := _method_param(coordinator, "ratio"))
        else None,
        attributes_fn=lambda coordinator: {
            "ratio": _method_param(coordinator, "ratio"),
            "grind_size": _method_param(coordinator, "grind_size"),
            "temp": _method_param(coordinator, "temp"),
        }
        if coordinator.workflow.state.current_brewing_method
        else {},
    ),
    BrewGuideSensorEntityDescription(
        key="last_note_rating",
        translation_key="last_note_rating",
        icon="mdi:star-outline",
        value_fn=lambda coordinator: coordinator.last_note.rating
        if coordinator.last_note
        else None,
        attributes_fn=lambda coordinator: {
            "method": coordinator.last_note.method,
            "equipment": coordinator.last_note.equipment,
            "timestamp": coordinator.last_note.timestamp.isoformat(),
            "notes": coordinator.last_note.notes,
        }
        if coordinator.last_note
        else {},
    ),
)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: BrewGuideConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up sensors."""

    coordinator = entry.runtime_data
    async_add_entities(
        BrewGuideSensor(coordinator, entity_description)
        for entity_description in SENSORS
    )


class BrewGuideSensor(BrewGuideEntity, SensorEntity):
    """Representation of a Brew Guide sensor."""

    entity_description: BrewGuideSensorEntityDescription

    @property
    def native_value(self) -> int | float | str | None:
        """Return the state of the entity."""
        return self.entity_description.value_fn(self.coordinator)

    @property
    def extra_state_attributes(self) -> dict[str, Any] | None:
        if self.entity_description.attributes_fn is None:
            return None
        return self.entity_description.attributes_fn(self.coordinator)
