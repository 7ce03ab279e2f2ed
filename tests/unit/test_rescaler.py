# tests/unit/test_rescaler.py
import pytest

from custom_components.brew_guide.rescaler import ParameterRescaler
from custom_components.brew_guide.timeline import parse_grams
from custom_components.brew_guide.types import EditableParams


@pytest.fixture
def rescaler(single_pour_method) -> ParameterRescaler:
    return ParameterRescaler(single_pour_method)


def _stage_waters(method) -> list[float]:
    return [parse_grams(stage.water) for stage in method.params.stages]


def test_initial_params_mirror_method(rescaler: ParameterRescaler):
    assert rescaler.params == EditableParams(coffee="15g", water="225g", ratio="1:15")
    assert rescaler.current is rescaler.original


def test_coffee_edit_rescales_water_and_stages(rescaler: ParameterRescaler):
    """Test that 15g to 20g at 1:15 gives 300g and scales every stage by 4/3."""
    result = rescaler.rescale("coffee", "20")

    assert result is not None
    assert result.params == EditableParams(coffee="20g", water="300g", ratio="1:15")
    assert result.method.params.water == "300g"
    assert _stage_waters(result.method) == [40, 300]


def test_coffee_edit_keeps_stage_water_within_a_gram(three_pour_method):
    rescaler = ParameterRescaler(three_pour_method)
    original = _stage_waters(three_pour_method)

    result = rescaler.rescale("coffee", "17")

    assert result is not None
    factor = 17 / 15
    for before, after in zip(original, _stage_waters(result.method)):
        assert abs(after - before * factor) <= 1


def test_last_stage_always_matches_total_water(three_pour_method):
    """Test that the final stage is set to the total after repeated edits."""
    rescaler = ParameterRescaler(three_pour_method)

    for field, value in (("coffee", "13.3"), ("water", "241"), ("ratio", "16.7")):
        result = rescaler.rescale(field, value)
        assert result is not None
        assert result.method.params.stages[-1].water == result.params.water


def test_water_edit_recomputes_ratio(rescaler: ParameterRescaler):
    result = rescaler.rescale("water", "250g")

    assert result is not None
    assert result.params == EditableParams(coffee="15g", water="250g", ratio="1:16.7")
    assert _stage_waters(result.method) == [33, 250]


def test_ratio_edit_recomputes_water(rescaler: ParameterRescaler):
    result = rescaler.rescale("ratio", 16)

    assert result is not None
    assert result.params == EditableParams(coffee="15g", water="240g", ratio="1:16")
    assert result.method.params.stages[-1].water == "240g"


def test_edits_do_not_accumulate_drift(rescaler: ParameterRescaler):
    """Test that scaling is always computed from the original recipe."""
    rescaler.rescale("coffee", "7")
    result = rescaler.rescale("coffee", "15")

    assert result is not None
    assert _stage_waters(result.method) == [30, 225]


def test_original_method_is_untouched(rescaler: ParameterRescaler, single_pour_method):
    rescaler.rescale("coffee", "20")

    assert rescaler.original is single_pour_method
    assert single_pour_method.params.water == "225g"
    assert _stage_waters(single_pour_method) == [30, 225]


@pytest.mark.parametrize(
    "value", ["0", "-5", "abc", "", "nan", "inf", "-inf", "1e400", 0, -1.5]
)
def test_invalid_values_are_rejected(rescaler: ParameterRescaler, value):
    """Test that unparseable or non-positive values leave params unchanged."""
    assert rescaler.rescale("coffee", value) is None
    assert rescaler.params == EditableParams(coffee="15g", water="225g", ratio="1:15")


def test_water_edit_rejected_without_coffee(single_pour_method):
    no_coffee = single_pour_method.model_copy(
        update={"params": single_pour_method.params.model_copy(update={"coffee": "0g"})}
    )
    rescaler = ParameterRescaler(no_coffee)

    assert rescaler.rescale("water", "200") is None


def test_unknown_field_raises(rescaler: ParameterRescaler):
    with pytest.raises(ValueError):
        rescaler.rescale("grind", "5")  # type: ignore[arg-type]


@pytest.mark.parametrize("field", ["coffee", "water", "ratio"])
def test_infinite_values_are_rejected_for_every_field(
    rescaler: ParameterRescaler, field
):
    assert rescaler.rescale(field, "inf") is None
    assert rescaler.params == EditableParams(coffee="15g", water="225g", ratio="1:15")
