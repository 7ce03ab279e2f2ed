"""Config flow for Brew Guide integration."""

import logging
from typing import Any

import voluptuous as vol
from homeassistant.config_entries import (
    ConfigEntry,
    ConfigFlow,
    ConfigFlowResult,
    OptionsFlow,
)
from homeassistant.const import CONF_NAME
from homeassistant.core import callback
from homeassistant.helpers.selector import BooleanSelector, BooleanSelectorConfig

from .const import (
    DEFAULT_DEDUCT_BEAN_INVENTORY,
    DEFAULT_ESPRESSO_FALLBACK_DURATION,
    DEFAULT_NAME,
    DEFAULT_TICK_INTERVAL,
    DOMAIN,
    OPTION_DEDUCT_BEAN_INVENTORY,
    OPTION_ESPRESSO_FALLBACK_DURATION,
    OPTION_TICK_INTERVAL,
)

_LOGGER = logging.getLogger(__name__)


class BrewGuideConfigFlow(ConfigFlow, domain=DOMAIN):  # type: ignore[call-arg]
    """Handle a config flow for Brew Guide."""

    VERSION = 1

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: ConfigEntry,
    ) -> "BrewGuideOptionsFlowHandler":
        """Get the options flow for this handler."""
        return BrewGuideOptionsFlowHandler()

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Handle a flow initialized by the user.

        Only one brewing guide can exist; it persists methods, notes and
        beans under fixed storage keys.
        """
        await self.async_set_unique_id(DOMAIN)
        self._abort_if_unique_id_configured()

        if user_input is not None:
            title = user_input.get(CONF_NAME) or DEFAULT_NAME
            _LOGGER.debug("Creating Brew Guide entry %s", title)
            return self.async_create_entry(title=title, data={})

        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(
                {
                    vol.Optional(CONF_NAME, default=DEFAULT_NAME): str,
                }
            ),
        )


class BrewGuideOptionsFlowHandler(OptionsFlow):
    """Handle an options flow for Brew Guide."""

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Manage the timer, espresso and inventory options."""
        if user_input is not None:
            return self.async_create_entry(title="", data=user_input)

        # Get current options to pre-fill the form
        current_options = self.config_entry.options

        options_schema = vol.Schema(
            {
                vol.Optional(
                    OPTION_TICK_INTERVAL,
                    default=current_options.get(
                        OPTION_TICK_INTERVAL, DEFAULT_TICK_INTERVAL
                    ),
                ): vol.All(vol.Coerce(float), vol.Range(min=0.1, max=10.0)),
                vol.Optional(
                    OPTION_ESPRESSO_FALLBACK_DURATION,
                    default=current_options.get(
                        OPTION_ESPRESSO_FALLBACK_DURATION,
                        DEFAULT_ESPRESSO_FALLBACK_DURATION,
                    ),
                ): vol.All(vol.Coerce(float), vol.Range(min=1.0, max=120.0)),
                vol.Optional(
                    OPTION_DEDUCT_BEAN_INVENTORY,
                    default=current_options.get(
                        OPTION_DEDUCT_BEAN_INVENTORY, DEFAULT_DEDUCT_BEAN_INVENTORY
                    ),
                ): BooleanSelector(BooleanSelectorConfig()),
            }
        )

        return self.async_show_form(step_id="init", data_schema=options_schema)
