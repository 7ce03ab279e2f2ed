"""Data update coordinator and central hub for the Brew Guide integration.

Owns the brewing workflow, drives its timer from Home Assistant's clock,
persists methods, notes and beans, and provides data to entities.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import TypeAlias

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import EVENT_HOMEASSISTANT_STOP
from homeassistant.core import (
    CALLBACK_TYPE,
    Event,
    HomeAssistant,
    ServiceCall,
    callback,
)
from homeassistant.exceptions import ServiceValidationError
from homeassistant.helpers.event import async_track_time_interval
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator
from homeassistant.util import dt as dt_util
from pydantic import ValidationError

from .completion import CompletionHandler
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
    EVENT_COMPLETION,
    EVENT_PARAMETER_UPDATE,
    EVENT_STAGE_CHANGE,
    BrewGuideConfig,
)
from .exceptions import BrewGuideError, CoffeeBeanNotFoundError
from .recipes import RecipeSource
from .storage import BeanInventoryStore, CustomMethodStore, NoteStore
from .types import (
    BrewingNote,
    CoffeeBean,
    CompletionEvent,
    Method,
    NoteInput,
    ParameterUpdateEvent,
    StageChangeEvent,
    WorkflowEvent,
    WorkflowStep,
)
from .workflow import BrewingWorkflow

_LOGGER = logging.getLogger(__name__)

# Type alias for the config entry specific to this integration
BrewGuideConfigEntry: TypeAlias = ConfigEntry["BrewGuideCoordinator"]


class BrewGuideCoordinator(DataUpdateCoordinator[None]):
    """Manages the brewing session and everything entities read from it.

    This coordinator handles:
    - Loading custom methods and the bean inventory from storage.
    - Ticking the workflow while the brew timer runs.
    - Forwarding workflow events onto the Home Assistant event bus.
    - Service call handling for every workflow operation.
    """

    config_entry: BrewGuideConfigEntry

    def __init__(self, hass: HomeAssistant, entry: BrewGuideConfigEntry) -> None:
        """Initialize coordinator."""
        super().__init__(
            hass,
            _LOGGER,
            name=entry.title,
            update_interval=None,  # Push based: entities update on workflow changes
            config_entry=entry,
        )

        self.brew_config: BrewGuideConfig = BrewGuideConfig.from_config_entry(entry)
        self.recipes = RecipeSource()
        self.custom_method_store = CustomMethodStore(hass)
        self.note_store = NoteStore(hass)
        self.bean_store = BeanInventoryStore(hass)
        self.workflow = BrewingWorkflow(
            equipment_names=self.recipes.equipment_names,
            espresso_fallback_duration=self.brew_config.espresso_fallback_duration,
        )
        self.completion = CompletionHandler(
            self.workflow,
            self.bean_store,
            self.note_store,
            equipment_names=self.recipes.equipment_names,
            deduct_inventory=self.brew_config.deduct_bean_inventory,
        )

        self.beans: list[CoffeeBean] = []
        self.last_note: BrewingNote | None = None

        self._unsub_workflow = self.workflow.subscribe(self._handle_workflow_event)
        entry.async_on_unload(
            hass.bus.async_listen(EVENT_HOMEASSISTANT_STOP, self._async_handle_stop)
        )
        self._unsub_tick: CALLBACK_TYPE | None = None
        self._timer_started_at: datetime | None = None
        self._elapsed_offset: float = 0.0
        self._run_token: int | None = None

    async def _async_update_data(self) -> None:
        """Load persisted custom methods and beans."""
        self.recipes.custom_methods = await self.custom_method_store.async_load()
        self.beans = await self.bean_store.async_get_all_beans()
        notes = await self.note_store.async_get_notes(limit=1)
        self.last_note = notes[0] if notes else None
        _LOGGER.debug(
            "%s: Loaded %d custom method groups and %d beans",
            self.name,
            len(self.recipes.custom_methods),
            len(self.beans),
        )

    async def _async_handle_stop(self, event: Event) -> None:
        self._stop_ticking()

    async def async_shutdown(self) -> None:
        """Stop ticking and detach from the workflow."""
        self._stop_ticking()
        self._unsub_workflow()
        await super().async_shutdown()

    # --- Workflow events ---

    @callback
    def _handle_workflow_event(self, event: WorkflowEvent) -> None:
        if isinstance(event, StageChangeEvent):
            event_type = EVENT_STAGE_CHANGE
        elif isinstance(event, ParameterUpdateEvent):
            event_type = EVENT_PARAMETER_UPDATE
        elif isinstance(event, CompletionEvent):
            event_type = EVENT_COMPLETION
            self._stop_ticking()
            _LOGGER.info(
                "%s: Brew finished after %.1f seconds",
                self.name,
                event.total_elapsed_seconds,
            )
        else:
            return
        self.hass.bus.async_fire(event_type, event.model_dump(mode="json"))

    # --- Timer ---

    @property
    def selected_bean(self) -> CoffeeBean | None:
        bean_id = self.workflow.state.selected_coffee_bean
        return next((bean for bean in self.beans if bean.id == bean_id), None)

    def _stop_ticking(self) -> None:
        if self._unsub_tick is not None:
            self._unsub_tick()
            self._unsub_tick = None
        self._timer_started_at = None
        self._run_token = None

    @callback
    def _handle_tick(self, now: datetime) -> None:
        """Feed the current elapsed time into the workflow."""
        if self._timer_started_at is None or self._run_token is None:
            return
        elapsed = self._elapsed_offset + (now - self._timer_started_at).total_seconds()
        self.workflow.tick(round(elapsed, 2), self._run_token)
        if not self.workflow.state.is_timer_running:
            self._stop_ticking()
        self.async_update_listeners()

    @callback
    def start_timer(self) -> bool:
        run_token = self.workflow.start_timer()
        if run_token is None:
            _LOGGER.debug("%s: Timer start rejected", self.name)
            return False
        self._run_token = run_token
        self._elapsed_offset = self.workflow.state.elapsed_time
        self._timer_started_at = dt_util.utcnow()
        self._unsub_tick = async_track_time_interval(
            self.hass,
            self._handle_tick,
            timedelta(seconds=self.brew_config.tick_interval),
        )
        _LOGGER.info(
            "%s: Brew timer started at %.1f seconds", self.name, self._elapsed_offset
        )
        self.async_update_listeners()
        return True

    @callback
    def pause_timer(self) -> bool:
        if not self.workflow.state.is_timer_running:
            return False
        self._handle_tick(dt_util.utcnow())
        self.workflow.pause_timer()
        self._stop_ticking()
        self.async_update_listeners()
        return True

    @callback
    def reset_timer(self) -> bool:
        self._stop_ticking()
        changed = self.workflow.reset_timer()
        self.async_update_listeners()
        return changed

    # --- Service handlers ---

    def _resolve_equipment(self, equipment: str) -> str:
        try:
            return self.recipes.get_equipment(equipment).id
        except BrewGuideError as e:
            raise ServiceValidationError(str(e)) from e

    def get_bean(self, bean_id: str) -> CoffeeBean:
        """Return a bean from the loaded inventory.

        Raises:
            CoffeeBeanNotFoundError: If the id is unknown.
        """
        for bean in self.beans:
            if bean.id == bean_id:
                return bean
        raise CoffeeBeanNotFoundError(f"Unknown coffee bean: {bean_id}")

    def _log_rejection(self, operation: str) -> None:
        _LOGGER.debug(
            "%s: %s rejected in step %s",
            self.name,
            operation,
            self.workflow.state.active_step,
        )

    async def async_select_coffee_bean_service(self, call: ServiceCall) -> None:
        """Service to pick a bean (or none) and move on to equipment."""
        bean_id = call.data.get(ATTR_BEAN_ID)
        if bean_id:
            try:
                self.get_bean(bean_id)
            except BrewGuideError as e:
                raise ServiceValidationError(str(e)) from e
        if not self.workflow.select_coffee_bean(bean_id):
            self._log_rejection("Coffee bean selection")
        self.async_update_listeners()

    async def async_select_equipment_service(self, call: ServiceCall) -> None:
        """Service to pick a brewer."""
        equipment_id = self._resolve_equipment(call.data[ATTR_EQUIPMENT])
        if not self.workflow.select_equipment(equipment_id):
            self._log_rejection("Equipment selection")
        self.async_update_listeners()

    async def async_select_method_service(self, call: ServiceCall) -> None:
        """Service to pick a recipe for the selected (or given) equipment."""
        equipment_id = self.workflow.state.selected_equipment
        if ATTR_EQUIPMENT in call.data:
            equipment_id = self._resolve_equipment(call.data[ATTR_EQUIPMENT])
            if equipment_id != self.workflow.state.selected_equipment:
                self.workflow.select_equipment(equipment_id)
        if equipment_id is None:
            raise ServiceValidationError("Select equipment before choosing a method")
        try:
            method = self.recipes.find_method(equipment_id, call.data[ATTR_METHOD])
        except BrewGuideError as e:
            raise ServiceValidationError(str(e)) from e
        if not self.workflow.select_method(method):
            self._log_rejection("Method selection")
        else:
            self._stop_ticking()
        self.async_update_listeners()

    async def async_go_to_step_service(self, call: ServiceCall) -> None:
        """Service to navigate between workflow steps."""
        step = WorkflowStep(call.data[ATTR_STEP])
        if not self.workflow.go_to(step):
            self._log_rejection(f"Navigation to {step}")
        self.async_update_listeners()

    async def async_adjust_parameter_service(self, call: ServiceCall) -> None:
        """Service to edit coffee, water or ratio of the working method."""
        if not self.workflow.rescale(call.data[ATTR_FIELD], call.data[ATTR_VALUE]):
            self._log_rejection(f"Adjusting {call.data[ATTR_FIELD]}")
        self.async_update_listeners()

    async def async_start_timer_service(self, call: ServiceCall) -> None:
        self.start_timer()

    async def async_pause_timer_service(self, call: ServiceCall) -> None:
        self.pause_timer()

    async def async_reset_timer_service(self, call: ServiceCall) -> None:
        self.reset_timer()

    async def async_save_note_service(self, call: ServiceCall) -> None:
        """Service to record the tasting note and finish the session."""
        try:
            note_input = NoteInput(
                rating=call.data.get(ATTR_RATING, 0),
                taste=call.data.get(ATTR_TASTE, {}),
                notes=call.data.get(ATTR_NOTES, ""),
            )
        except ValidationError as e:
            raise ServiceValidationError(f"Invalid note: {e}") from e

        note = await self.completion.async_save_note(note_input)
        if note is None:
            raise ServiceValidationError("There is no brew to record a note for")
        self._stop_ticking()
        self.last_note = note
        self.beans = await self.bean_store.async_get_all_beans()
        self.async_update_listeners()

    async def async_save_custom_method_service(self, call: ServiceCall) -> None:
        """Service to create or replace a user-defined method."""
        equipment_id = self._resolve_equipment(call.data[ATTR_EQUIPMENT])
        try:
            method = Method.model_validate(call.data[ATTR_METHOD])
        except ValidationError as e:
            raise ServiceValidationError(f"Invalid method: {e}") from e
        await self.custom_method_store.async_save_method(equipment_id, method)
        self.recipes.custom_methods = await self.custom_method_store.async_load()
        self.async_update_listeners()

    async def async_delete_custom_method_service(self, call: ServiceCall) -> None:
        """Service to delete a user-defined method."""
        equipment_id = self._resolve_equipment(call.data[ATTR_EQUIPMENT])
        deleted = await self.custom_method_store.async_delete_method(
            equipment_id, call.data[ATTR_METHOD_ID]
        )
        if not deleted:
            raise ServiceValidationError(
                f"No custom method {call.data[ATTR_METHOD_ID]} for {equipment_id}"
            )
        self.recipes.custom_methods = await self.custom_method_store.async_load()
        self.async_update_listeners()

    async def async_import_custom_methods_service(self, call: ServiceCall) -> None:
        """Service to import exported custom methods from JSON text."""
        try:
            self.recipes.custom_methods = await self.custom_method_store.async_import(
                call.data[ATTR_PAYLOAD]
            )
        except BrewGuideError as e:
            raise ServiceValidationError(str(e)) from e
        self.async_update_listeners()

    async def async_add_coffee_bean_service(self, call: ServiceCall) -> None:
        """Service to add or replace a coffee bean in the inventory."""
        bean = CoffeeBean(
            id=call.data.get(ATTR_BEAN_ID) or uuid.uuid4().hex,
            name=call.data[ATTR_NAME],
            remaining=call.data[ATTR_REMAINING],
            capacity=call.data.get(ATTR_CAPACITY, call.data[ATTR_REMAINING]),
            roast_level=call.data.get(ATTR_ROAST_LEVEL),
            roast_date=call.data.get(ATTR_ROAST_DATE),
        )
        await self.bean_store.async_save_bean(bean)
        self.beans = await self.bean_store.async_get_all_beans()
        _LOGGER.info("%s: Added coffee bean %s", self.name, bean.name)
        self.async_update_listeners()
