"""Proportional rescaling of a method when coffee, water or ratio is edited."""

import logging
import math
from typing import Literal, NamedTuple

from .timeline import format_grams, format_ratio, parse_grams, parse_ratio
from .types import EditableParams, Method, Stage

_LOGGER = logging.getLogger(__name__)

ParameterField = Literal["coffee", "water", "ratio"]
PARAMETER_FIELDS: tuple[ParameterField, ...] = ("coffee", "water", "ratio")


class RescaleResult(NamedTuple):
    method: Method
    params: EditableParams


def _parse_edit(value: str | float | int) -> float | None:
    if isinstance(value, str):
        try:
            parsed = float(value.strip().removesuffix("g"))
        except ValueError:
            return None
    else:
        parsed = float(value)
    if not math.isfinite(parsed) or parsed <= 0:
        return None
    return parsed


class ParameterRescaler:
    """Keeps a working copy of a method consistent with its editable params.

    Every rescale is computed against the pristine method the user picked,
    so repeated edits never accumulate rounding drift.
    """

    def __init__(self, original: Method) -> None:
        """Initialize the rescaler from the method as selected."""
        self.original = original
        self.current = original
        self.params = EditableParams(
            coffee=original.params.coffee,
            water=original.params.water,
            ratio=original.params.ratio,
        )
        self._original_total = parse_grams(original.params.water)

    def _scale_stages(self, new_total: float) -> list[Stage]:
        stages = self.original.params.stages
        if self._original_total <= 0:
            return list(stages)

        factor = new_total / self._original_total
        scaled: list[Stage] = []
        for stage in stages:
            stage_water = parse_grams(stage.water)
            if stage_water == self._original_total:
                water = format_grams(new_total)
            else:
                water = format_grams(round(stage_water * factor))
            scaled.append(stage.model_copy(update={"water": water}))
        return scaled

    def rescale(
        self, field: ParameterField, value: str | float | int
    ) -> RescaleResult | None:
        """Apply an edit of ``field`` and return the rescaled method.

        Returns None, leaving the current params untouched, when the value
        does not parse or is not positive.
        """
        parsed = _parse_edit(value)
        if parsed is None:
            _LOGGER.debug("Rejected %s edit with value %r", field, value)
            return None

        coffee = parse_grams(self.params.coffee)
        ratio = parse_ratio(self.params.ratio)

        if field == "coffee":
            new_total = float(round(parsed * ratio))
            params = EditableParams(
                coffee=format_grams(parsed),
                water=format_grams(new_total),
                ratio=self.params.ratio,
            )
        elif field == "water":
            if coffee <= 0:
                _LOGGER.debug("Rejected water edit: coffee dose is %s", coffee)
                return None
            new_total = parsed
            params = EditableParams(
                coffee=self.params.coffee,
                water=format_grams(parsed),
                ratio=format_ratio(round(parsed / coffee, 1)),
            )
        elif field == "ratio":
            new_total = float(round(coffee * parsed))
            params = EditableParams(
                coffee=self.params.coffee,
                water=format_grams(new_total),
                ratio=format_ratio(parsed),
            )
        else:
            raise ValueError(f"Unknown parameter field: {field}")

        if new_total <= 0:
            _LOGGER.debug("Rejected %s edit: total water would be %s", field, new_total)
            return None

        new_params = self.original.params.model_copy(
            update={
                "coffee": params.coffee,
                "water": params.water,
                "ratio": params.ratio,
                "stages": self._scale_stages(new_total),
            }
        )
        self.current = self.original.model_copy(update={"params": new_params})
        self.params = params
        _LOGGER.debug(
            "Rescaled %s: coffee=%s water=%s ratio=%s",
            self.original.name,
            params.coffee,
            params.water,
            params.ratio,
        )
        return RescaleResult(method=self.current, params=params)
