"""Finishes a brewing session: inventory deduction, note persistence, reset."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from homeassistant.util import dt as dt_util

from .timeline import parse_grams
from .types import (
    BrewingNote,
    CoffeeBean,
    CoffeeBeanInfo,
    NoteInput,
    NoteParams,
)

if TYPE_CHECKING:
    from .storage import BeanInventoryStore, NoteStore
    from .workflow import BrewingWorkflow

_LOGGER = logging.getLogger(__name__)


class CompletionHandler:
    """Turns the finished brew plus the user's tasting input into a note."""

    def __init__(
        self,
        workflow: BrewingWorkflow,
        bean_inventory: BeanInventoryStore,
        note_store: NoteStore,
        equipment_names: dict[str, str] | None = None,
        deduct_inventory: bool = True,
    ) -> None:
        """Initialize the completion handler."""
        self.workflow = workflow
        self.bean_inventory = bean_inventory
        self.note_store = note_store
        self.deduct_inventory = deduct_inventory
        self._equipment_names = equipment_names or {}

    async def _async_deduct_coffee(
        self, bean_id: str, coffee_used: float
    ) -> CoffeeBean | None:
        if not self.deduct_inventory or coffee_used <= 0:
            return await self.bean_inventory.async_get_bean(bean_id)
        bean = await self.bean_inventory.async_update_remaining(bean_id, coffee_used)
        if bean is None:
            _LOGGER.warning(
                "Coffee bean %s not found; inventory left unchanged", bean_id
            )
        else:
            _LOGGER.info(
                "Deducted %.1fg from %s, %.1fg remaining",
                coffee_used,
                bean.name,
                bean.remaining,
            )
        return bean

    async def async_save_note(self, note_input: NoteInput) -> BrewingNote | None:
        """Record the tasting note for the current brew and reset the workflow.

        The coffee mass deducted from the bean is the dose of the working
        (possibly rescaled) method, not the recipe default. Storage errors
        are not caught here; the caller may retry the save.

        Returns:
            The stored note, or None when no method is being brewed.
        """
        state = self.workflow.state
        method = state.current_brewing_method
        if method is None:
            _LOGGER.debug("Save note requested without an active method")
            return None

        coffee_used = parse_grams(method.params.coffee)
        bean = None
        if state.selected_coffee_bean:
            bean = await self._async_deduct_coffee(
                state.selected_coffee_bean, coffee_used
            )

        equipment = state.selected_equipment or ""
        note = BrewingNote(
            id=uuid.uuid4().hex,
            timestamp=dt_util.utcnow(),
            equipment=self._equipment_names.get(equipment, equipment),
            method=method.name,
            params=NoteParams(
                coffee=method.params.coffee,
                water=method.params.water,
                ratio=method.params.ratio,
                grind_size=method.params.grind_size,
                temp=method.params.temp,
            ),
            stages=list(method.params.stages),
            coffee_bean_info=CoffeeBeanInfo(
                name=bean.name,
                roast_level=bean.roast_level or "",
                roast_date=bean.roast_date,
            )
            if bean is not None
            else None,
            rating=note_input.rating,
            taste=note_input.taste,
            notes=note_input.notes,
            total_time=state.elapsed_time,
        )
        await self.note_store.async_add_note(note)
        _LOGGER.info("Saved brewing note %s for %s", note.id, note.method)

        self.workflow.reset()
        return note
