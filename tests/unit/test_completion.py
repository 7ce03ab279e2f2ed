# tests/unit/test_completion.py
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from custom_components.brew_guide.completion import CompletionHandler
from custom_components.brew_guide.storage import BeanInventoryStore, NoteStore
from custom_components.brew_guide.types import (
    BrewingNote,
    CoffeeBean,
    NoteInput,
    TasteRatings,
    WorkflowStep,
)
from custom_components.brew_guide.workflow import BrewingWorkflow

SAMPLE_BEAN = CoffeeBean(
    id="bean-1",
    name="Ethiopia Guji",
    remaining=85.0,
    capacity=100.0,
    roast_level="Light",
    roast_date="2026-10-01",
)

SAMPLE_INPUT = NoteInput(
    rating=4,
    taste=TasteRatings(acidity=4, sweetness=3, bitterness=1, body=2),
    notes="Bright and juicy",
)


@pytest.fixture
def mock_bean_inventory() -> MagicMock:
    """Fixture for a mock bean inventory."""
    inventory = MagicMock(spec=BeanInventoryStore)
    inventory.async_update_remaining = AsyncMock(
        return_value=SAMPLE_BEAN.model_copy(update={"remaining": 65.0})
    )
    inventory.async_get_bean = AsyncMock(return_value=SAMPLE_BEAN)
    return inventory


@pytest.fixture
def mock_note_store() -> MagicMock:
    """Fixture for a mock note store."""
    store = MagicMock(spec=NoteStore)
    store.async_add_note = AsyncMock()
    return store


@pytest.fixture
def workflow(single_pour_method) -> BrewingWorkflow:
    """Workflow with a completed, rescaled brew."""
    workflow = BrewingWorkflow(equipment_names={"V60": "V60 Dripper"})
    workflow.select_coffee_bean("bean-1")
    workflow.select_equipment("V60")
    workflow.select_method(single_pour_method)
    workflow.rescale("coffee", "20")
    token = workflow.start_timer()
    workflow.tick(120, token)
    workflow.advance()
    return workflow


@pytest.fixture
def handler(
    workflow: BrewingWorkflow,
    mock_bean_inventory: MagicMock,
    mock_note_store: MagicMock,
) -> CompletionHandler:
    return CompletionHandler(
        workflow,
        mock_bean_inventory,
        mock_note_store,
        equipment_names={"V60": "V60 Dripper"},
    )


async def test_save_note_deducts_working_dose(
    handler: CompletionHandler, mock_bean_inventory: MagicMock
):
    """Test that the rescaled dose, not the recipe default, is deducted."""
    await handler.async_save_note(SAMPLE_INPUT)

    mock_bean_inventory.async_update_remaining.assert_awaited_once_with(
        "bean-1", 20.0
    )


async def test_save_note_persists_note(
    handler: CompletionHandler, mock_note_store: MagicMock
):
    note = await handler.async_save_note(SAMPLE_INPUT)

    assert isinstance(note, BrewingNote)
    mock_note_store.async_add_note.assert_awaited_once_with(note)
    assert note.equipment == "V60 Dripper"
    assert note.method == "Single pour"
    assert note.params.coffee == "20g"
    assert note.params.water == "300g"
    assert note.params.grind_size == "Medium-fine"
    assert [stage.water for stage in note.stages] == ["40g", "300g"]
    assert note.rating == 4
    assert note.taste.acidity == 4
    assert note.notes == "Bright and juicy"
    assert note.total_time == 120
    assert note.coffee_bean_info is not None
    assert note.coffee_bean_info.name == "Ethiopia Guji"
    assert note.coffee_bean_info.roast_level == "Light"


async def test_save_note_resets_workflow(
    handler: CompletionHandler, workflow: BrewingWorkflow
):
    await handler.async_save_note(SAMPLE_INPUT)

    assert workflow.state.active_step is WorkflowStep.COFFEE_BEAN
    assert workflow.state.selected_method is None
    assert workflow.state.selected_coffee_bean is None


async def test_save_note_without_bean(
    workflow: BrewingWorkflow,
    mock_bean_inventory: MagicMock,
    mock_note_store: MagicMock,
    single_pour_method,
):
    workflow.reset()
    workflow.skip_coffee_bean()
    workflow.select_equipment("V60")
    workflow.select_method(single_pour_method)
    handler = CompletionHandler(workflow, mock_bean_inventory, mock_note_store)

    note = await handler.async_save_note(NoteInput())

    assert note is not None
    assert note.coffee_bean_info is None
    assert note.equipment == "V60"
    mock_bean_inventory.async_update_remaining.assert_not_awaited()


async def test_missing_bean_is_logged_and_note_saved(
    handler: CompletionHandler,
    mock_bean_inventory: MagicMock,
    mock_note_store: MagicMock,
    caplog: pytest.LogCaptureFixture,
):
    """Test that an unknown bean leaves inventory alone but still saves."""
    mock_bean_inventory.async_update_remaining.return_value = None
    caplog.set_level(logging.WARNING)

    note = await handler.async_save_note(SAMPLE_INPUT)

    assert note is not None
    assert note.coffee_bean_info is None
    assert "not found" in caplog.text
    mock_note_store.async_add_note.assert_awaited_once()


async def test_deduction_disabled_still_records_bean(
    handler: CompletionHandler, mock_bean_inventory: MagicMock
):
    handler.deduct_inventory = False

    note = await handler.async_save_note(SAMPLE_INPUT)

    mock_bean_inventory.async_update_remaining.assert_not_awaited()
    mock_bean_inventory.async_get_bean.assert_awaited_once_with("bean-1")
    assert note.coffee_bean_info.name == "Ethiopia Guji"


async def test_save_note_without_method(
    mock_bean_inventory: MagicMock, mock_note_store: MagicMock
):
    handler = CompletionHandler(
        BrewingWorkflow(), mock_bean_inventory, mock_note_store
    )

    assert await handler.async_save_note(SAMPLE_INPUT) is None
    mock_note_store.async_add_note.assert_not_awaited()


async def test_store_failure_propagates(
    handler: CompletionHandler,
    mock_note_store: MagicMock,
    workflow: BrewingWorkflow,
):
    """Test that a failed save is raised and the brew is kept for a retry."""
    mock_note_store.async_add_note.side_effect = OSError("disk full")

    with pytest.raises(OSError):
        await handler.async_save_note(SAMPLE_INPUT)

    assert workflow.state.current_brewing_method is not None
