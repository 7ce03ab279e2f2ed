"""Persistence for custom methods, brewing notes and the bean inventory.

Everything is kept in Home Assistant's ``Store`` (JSON files under
``.storage``). Records are written with their camelCase aliases so data
exported from the original app can be loaded unchanged.
"""

import json
import logging
import uuid
from typing import Any, cast

from homeassistant.core import HomeAssistant
from homeassistant.helpers.storage import Store
from pydantic import ValidationError

from .exceptions import CustomMethodSchemaError
from .types import BrewingNote, CoffeeBean, Method

_LOGGER = logging.getLogger(__name__)

CUSTOM_METHODS_STORAGE_KEY = "brew_guide_custom_methods"
CUSTOM_METHODS_STORAGE_VERSION = 2
NOTES_STORAGE_KEY = "brew_guide_notes"
NOTES_STORAGE_VERSION = 1
BEANS_STORAGE_KEY = "brew_guide_beans"
BEANS_STORAGE_VERSION = 1

UNASSIGNED_EQUIPMENT = "custom"


def _ensure_method_id(method: dict[str, Any]) -> dict[str, Any]:
    if method.get("id"):
        return method
    return {**method, "id": uuid.uuid4().hex}


def migrate_custom_methods(data: Any) -> dict[str, Any]:
    """Convert any historical custom method layout to the current schema.

    Two legacy layouts exist: a flat array of methods (each optionally
    naming its ``equipment``) and an object keyed by equipment id. Both
    become ``{"methods": {equipment: [method, ...]}}`` with an id on every
    method.

    Raises:
        CustomMethodSchemaError: If ``data`` is neither layout.
    """
    if isinstance(data, dict) and isinstance(data.get("methods"), dict):
        data = data["methods"]

    grouped: dict[str, list[dict[str, Any]]] = {}
    if isinstance(data, list):
        for method in data:
            if not isinstance(method, dict):
                continue
            equipment = method.get("equipment") or UNASSIGNED_EQUIPMENT
            cleaned = {k: v for k, v in method.items() if k != "equipment"}
            grouped.setdefault(equipment, []).append(_ensure_method_id(cleaned))
    elif isinstance(data, dict):
        for equipment, methods in data.items():
            if not isinstance(methods, list):
                # Corrupt entries are dropped rather than failing the whole load.
                grouped[equipment] = []
                continue
            grouped[equipment] = [
                _ensure_method_id(method)
                for method in methods
                if isinstance(method, dict)
            ]
    else:
        raise CustomMethodSchemaError(
            f"Unsupported custom method data of type {type(data).__name__}"
        )
    return {"methods": grouped}


class _CustomMethodsStore(Store[dict[str, Any]]):
    """Store that upgrades legacy custom method files on first load."""

    async def _async_migrate_func(
        self, old_major_version: int, old_minor_version: int, old_data: Any
    ) -> dict[str, Any]:
        _LOGGER.info(
            "Migrating custom methods from storage version %s to %s",
            old_major_version,
            CUSTOM_METHODS_STORAGE_VERSION,
        )
        return migrate_custom_methods(old_data)


def _get_custom_methods_store(hass: HomeAssistant) -> Store[dict[str, Any]]:
    return _CustomMethodsStore(
        hass, CUSTOM_METHODS_STORAGE_VERSION, CUSTOM_METHODS_STORAGE_KEY
    )


def _get_notes_store(hass: HomeAssistant) -> Store[list[dict[str, Any]]]:
    return cast(
        Store[list[dict[str, Any]]],
        Store(hass, NOTES_STORAGE_VERSION, NOTES_STORAGE_KEY),
    )


def _get_beans_store(hass: HomeAssistant) -> Store[list[dict[str, Any]]]:
    return cast(
        Store[list[dict[str, Any]]],
        Store(hass, BEANS_STORAGE_VERSION, BEANS_STORAGE_KEY),
    )


def _parse_methods(
    grouped: dict[str, list[dict[str, Any]]],
) -> dict[str, list[Method]]:
    parsed: dict[str, list[Method]] = {}
    for equipment, methods in grouped.items():
        parsed[equipment] = []
        for method in methods:
            try:
                parsed[equipment].append(Method.model_validate(method))
            except ValidationError as e:
                _LOGGER.warning(
                    "Skipping invalid custom method %s for %s: %s",
                    method.get("name"),
                    equipment,
                    e,
                )
    return parsed


def _dump_methods(methods: dict[str, list[Method]]) -> dict[str, Any]:
    return {
        "methods": {
            equipment: [
                method.model_dump(mode="json", by_alias=True, exclude_none=True)
                for method in items
            ]
            for equipment, items in methods.items()
        }
    }


class CustomMethodStore:
    """User-defined methods, grouped by equipment id."""

    def __init__(self, hass: HomeAssistant) -> None:
        """Initialize the custom method store."""
        self._store = _get_custom_methods_store(hass)

    async def async_load(self) -> dict[str, list[Method]]:
        """Load all custom methods; unreadable storage yields no methods."""
        try:
            data = await self._store.async_load()
        except Exception as e:  # pylint: disable=broad-except
            _LOGGER.error(
                "Error loading custom methods from store: %s. Starting empty.",
                e,
                exc_info=True,
            )
            return {}
        if not data:
            return {}
        return _parse_methods(data.get("methods", {}))

    async def async_save_method(self, equipment: str, method: Method) -> Method:
        """Add ``method`` for ``equipment``, replacing one with the same id."""
        methods = await self.async_load()
        method_with_id = (
            method if method.id else method.model_copy(update={"id": uuid.uuid4().hex})
        )
        items = [m for m in methods.get(equipment, []) if m.id != method_with_id.id]
        items.append(method_with_id)
        methods[equipment] = items
        await self._store.async_save(_dump_methods(methods))
        _LOGGER.debug("Saved custom method %s for %s", method_with_id.name, equipment)
        return method_with_id

    async def async_delete_method(self, equipment: str, method_id: str) -> bool:
        """Delete a custom method; returns False when it did not exist."""
        methods = await self.async_load()
        items = methods.get(equipment, [])
        remaining = [m for m in items if m.id != method_id]
        if len(remaining) == len(items):
            return False
        methods[equipment] = remaining
        await self._store.async_save(_dump_methods(methods))
        return True

    async def async_import(self, payload: str) -> dict[str, list[Method]]:
        """Merge custom methods from exported JSON text of either legacy layout.

        Raises:
            CustomMethodSchemaError: If the text is not JSON or has an
                unsupported shape.
        """
        try:
            raw = json.loads(payload)
        except json.JSONDecodeError as e:
            raise CustomMethodSchemaError(f"Invalid JSON: {e}") from e
        imported = _parse_methods(migrate_custom_methods(raw)["methods"])

        methods = await self.async_load()
        for equipment, items in imported.items():
            existing_ids = {m.id for m in items}
            methods[equipment] = [
                m for m in methods.get(equipment, []) if m.id not in existing_ids
            ] + items
        await self._store.async_save(_dump_methods(methods))
        _LOGGER.info(
            "Imported %d custom methods",
            sum(len(items) for items in imported.values()),
        )
        return methods


class NoteStore:
    """Brewing notes, newest first."""

    def __init__(self, hass: HomeAssistant) -> None:
        """Initialize the note store."""
        self._store = _get_notes_store(hass)

    async def _async_load_raw(self) -> list[dict[str, Any]]:
        try:
            return await self._store.async_load() or []
        except Exception as e:  # pylint: disable=broad-except
            _LOGGER.error(
                "Error loading brewing notes from store: %s. Using empty history.",
                e,
                exc_info=True,
            )
            return []

    async def async_add_note(self, note: BrewingNote) -> None:
        """Prepend ``note`` to the history.

        Save failures propagate so the caller can retry.
        """
        notes = await self._async_load_raw()
        notes.insert(0, note.model_dump(mode="json", by_alias=True))
        await self._store.async_save(notes)

    async def async_get_notes(self, limit: int | None = None) -> list[BrewingNote]:
        """Return stored notes, newest first, skipping invalid records."""
        validated: list[BrewingNote] = []
        for note_dict in await self._async_load_raw():
            try:
                validated.append(BrewingNote.model_validate(note_dict))
            except ValidationError as e:
                _LOGGER.warning(
                    "Skipping invalid brewing note %s: %s", note_dict.get("id"), e
                )
        if limit is not None and limit > 0:
            return validated[:limit]
        return validated

    async def async_delete_note(self, note_id: str) -> bool:
        notes = await self._async_load_raw()
        remaining = [note for note in notes if note.get("id") != note_id]
        if len(remaining) == len(notes):
            return False
        await self._store.async_save(remaining)
        return True


class BeanInventoryStore:
    """The coffee bean inventory; completion only ever deducts from it."""

    def __init__(self, hass: HomeAssistant) -> None:
        """Initialize the bean inventory store."""
        self._store = _get_beans_store(hass)

    async def _async_load_raw(self) -> list[dict[str, Any]]:
        try:
            return await self._store.async_load() or []
        except Exception as e:  # pylint: disable=broad-except
            _LOGGER.error(
                "Error loading coffee beans from store: %s. Using empty inventory.",
                e,
                exc_info=True,
            )
            return []

    async def async_get_all_beans(self) -> list[CoffeeBean]:
        beans: list[CoffeeBean] = []
        for bean_dict in await self._async_load_raw():
            try:
                beans.append(CoffeeBean.model_validate(bean_dict))
            except ValidationError as e:
                _LOGGER.warning(
                    "Skipping invalid coffee bean %s: %s", bean_dict.get("id"), e
                )
        return beans

    async def async_get_bean(self, bean_id: str) -> CoffeeBean | None:
        for bean in await self.async_get_all_beans():
            if bean.id == bean_id:
                return bean
        return None

    async def async_save_bean(self, bean: CoffeeBean) -> CoffeeBean:
        """Insert or replace a bean by id."""
        beans = [b for b in await self.async_get_all_beans() if b.id != bean.id]
        beans.append(bean)
        await self._store.async_save(
            [b.model_dump(mode="json", by_alias=True) for b in beans]
        )
        return bean

    async def async_update_remaining(
        self, bean_id: str, used_amount: float
    ) -> CoffeeBean | None:
        """Deduct ``used_amount`` grams from a bean, never going below zero.

        Returns:
            The updated bean, or None when the id is unknown or the amount
            is not positive.
        """
        if not bean_id or used_amount <= 0:
            return None
        beans = await self.async_get_all_beans()
        updated: CoffeeBean | None = None
        for index, bean in enumerate(beans):
            if bean.id == bean_id:
                new_remaining = round(max(0.0, bean.remaining - used_amount), 1)
                updated = bean.model_copy(update={"remaining": new_remaining})
                beans[index] = updated
                break
        if updated is None:
            return None
        await self._store.async_save(
            [b.model_dump(mode="json", by_alias=True) for b in beans]
        )
        return updated
