# tests/conftest.py
import pytest
from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.brew_guide.const import DOMAIN
from custom_components.brew_guide.coordinator import BrewGuideCoordinator
from custom_components.brew_guide.types import Method
from tests.fixtures.recipes import (
    ESPRESSO_METHOD,
    SINGLE_POUR_METHOD,
    THREE_POUR_METHOD,
)


@pytest.fixture
def single_pour_method() -> Method:
    """Two-stage V60 recipe: bloom to 30g by 25s, 225g by 120s."""
    return SINGLE_POUR_METHOD


@pytest.fixture
def three_pour_method() -> Method:
    return THREE_POUR_METHOD


@pytest.fixture
def espresso_method() -> Method:
    return ESPRESSO_METHOD


@pytest.fixture
def mock_config_entry() -> MockConfigEntry:
    """Create a mock config entry."""
    return MockConfigEntry(
        domain=DOMAIN,
        title="Brew Guide",
        data={},
        unique_id=DOMAIN,
    )


# Setup integration fixture
@pytest.fixture
async def setup_integration(
    hass: HomeAssistant, mock_config_entry: MockConfigEntry
) -> MockConfigEntry:
    """Set up the Brew Guide integration for testing."""
    mock_config_entry.add_to_hass(hass)

    assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
    await hass.async_block_till_done()

    return mock_config_entry


@pytest.fixture
def coordinator(setup_integration: MockConfigEntry) -> BrewGuideCoordinator:
    return setup_integration.runtime_data
