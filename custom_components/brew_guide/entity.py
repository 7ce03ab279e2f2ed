"""Base class for Brew Guide entities."""

from homeassistant.helpers.device_registry import DeviceEntryType, DeviceInfo
from homeassistant.helpers.entity import EntityDescription
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN
from .coordinator import BrewGuideCoordinator


class BrewGuideEntity(CoordinatorEntity[BrewGuideCoordinator]):
    """Common base class for Brew Guide entities."""

    _attr_has_entity_name = True

    def __init__(
        self,
        coordinator: BrewGuideCoordinator,
        entity_description: EntityDescription,
    ) -> None:
        """Initialize the entity."""
        super().__init__(coordinator)
        self.entity_description = entity_description

        entry = coordinator.config_entry
        self._attr_unique_id = f"{entry.entry_id}_{entity_description.key}"
        # One virtual device per guide instance
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, entry.entry_id)},
            name=entry.title,
            manufacturer="Brew Guide",
            model="Pour-over brewing guide",
            entry_type=DeviceEntryType.SERVICE,
        )
