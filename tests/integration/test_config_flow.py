"""Test the Brew Guide config flow."""

from unittest.mock import patch

import pytest
from homeassistant import config_entries
from homeassistant.const import CONF_NAME
from homeassistant.core import HomeAssistant
from homeassistant.data_entry_flow import FlowResultType, InvalidData
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.brew_guide.const import (
    DOMAIN,
    OPTION_DEDUCT_BEAN_INVENTORY,
    OPTION_ESPRESSO_FALLBACK_DURATION,
    OPTION_TICK_INTERVAL,
)


@pytest.fixture
def mock_setup_entry():
    """Mock setting up a config entry."""
    with patch(
        "custom_components.brew_guide.async_setup_entry", return_value=True
    ) as mock_setup:
        yield mock_setup


async def test_user_flow(hass: HomeAssistant, mock_setup_entry):
    """Test that the user step creates an entry with the chosen name."""
    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )
    assert result["type"] is FlowResultType.FORM
    assert result["step_id"] == "user"

    result = await hass.config_entries.flow.async_configure(
        result["flow_id"], {CONF_NAME: "Kitchen Brew Guide"}
    )

    assert result["type"] is FlowResultType.CREATE_ENTRY
    assert result["title"] == "Kitchen Brew Guide"
    assert result["data"] == {}


async def test_second_entry_aborts(hass: HomeAssistant, mock_setup_entry):
    MockConfigEntry(domain=DOMAIN, unique_id=DOMAIN, data={}).add_to_hass(hass)

    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )

    assert result["type"] is FlowResultType.ABORT


async def test_options_flow(hass: HomeAssistant, mock_setup_entry):
    """Test that options are stored on the entry."""
    entry = MockConfigEntry(domain=DOMAIN, unique_id=DOMAIN, data={})
    entry.add_to_hass(hass)

    result = await hass.config_entries.options.async_init(entry.entry_id)
    assert result["type"] is FlowResultType.FORM
    assert result["step_id"] == "init"

    result = await hass.config_entries.options.async_configure(
        result["flow_id"],
        user_input={
            OPTION_TICK_INTERVAL: 0.5,
            OPTION_ESPRESSO_FALLBACK_DURATION: 30,
            OPTION_DEDUCT_BEAN_INVENTORY: False,
        },
    )

    assert result["type"] is FlowResultType.CREATE_ENTRY
    assert entry.options == {
        OPTION_TICK_INTERVAL: 0.5,
        OPTION_ESPRESSO_FALLBACK_DURATION: 30.0,
        OPTION_DEDUCT_BEAN_INVENTORY: False,
    }


async def test_options_flow_rejects_out_of_range(
    hass: HomeAssistant, mock_setup_entry
):
    entry = MockConfigEntry(domain=DOMAIN, unique_id=DOMAIN, data={})
    entry.add_to_hass(hass)
    result = await hass.config_entries.options.async_init(entry.entry_id)

    with pytest.raises(InvalidData):
        await hass.config_entries.options.async_configure(
            result["flow_id"], user_input={OPTION_TICK_INTERVAL: 0}
        )
