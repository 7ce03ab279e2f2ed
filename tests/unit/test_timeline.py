# tests/unit/test_timeline.py
import pytest

from custom_components.brew_guide.timeline import (
    WAIT_LABEL,
    build_expanded_stages,
    calculate_current_water,
    format_grams,
    format_ratio,
    format_time,
    get_current_stage_index,
    get_stage_progress,
    is_espresso_stages,
    parse_grams,
    parse_ratio,
    snapshot,
    target_flow_rate,
    total_duration,
)
from custom_components.brew_guide.types import Stage


@pytest.fixture
def single_pour_stages(single_pour_method):
    return build_expanded_stages(single_pour_method.params.stages)


# --- Parsing and formatting ---


@pytest.mark.parametrize(
    ("value", "expected"),
    [("225g", 225.0), ("20.5g", 20.5), (" 15 g", 15.0), ("", 0.0), ("abc", 0.0)],
)
def test_parse_grams(value, expected):
    """Test that the numeric part of a mass string is extracted."""
    assert parse_grams(value) == expected


def test_parse_grams_accepts_numbers_and_none():
    assert parse_grams(18) == 18.0
    assert parse_grams(None) == 0.0
    assert parse_grams(float("nan")) == 0.0


def test_parse_ratio():
    """Test ratio strings of the form 1:R."""
    assert parse_ratio("1:15") == 15.0
    assert parse_ratio("1 : 16.5") == 16.5
    assert parse_ratio("fifteen") == 0.0
    assert parse_ratio(None) == 0.0


def test_format_helpers():
    assert format_grams(20) == "20g"
    assert format_grams(20.5) == "20.5g"
    assert format_ratio(15.0) == "1:15"
    assert format_ratio(15.33) == "1:15.3"
    assert format_time(125) == "2:05"
    assert format_time(125, compact=True) == "2'05\""
    assert format_time(42, compact=True) == '42"'


# --- Expansion ---


def test_expansion_of_explicit_pour_times(single_pour_stages):
    """Test that each stage becomes a pour followed by a wait."""
    assert [(s.type, s.start_time, s.end_time) for s in single_pour_stages] == [
        ("pour", 0, 10),
        ("wait", 10, 25),
        ("pour", 25, 90),
        ("wait", 90, 120),
    ]
    assert [s.original_index for s in single_pour_stages] == [0, 0, 1, 1]
    assert single_pour_stages[1].label == WAIT_LABEL
    assert single_pour_stages[1].water == "30g"


def test_expansion_uses_one_third_heuristic(three_pour_method):
    """Test pour durations without pour_time are a third of the stage span."""
    stages = build_expanded_stages(three_pour_method.params.stages)

    pours = [s for s in stages if s.type == "pour"]
    assert [p.time for p in pours] == [10, 10, 20]
    assert [(p.start_time, p.end_time) for p in pours] == [(0, 10), (30, 40), (60, 80)]


def test_expansion_is_contiguous(single_pour_stages, three_pour_method):
    """Test that slices tile the timeline without gaps or overlaps."""
    for stages in (
        single_pour_stages,
        build_expanded_stages(three_pour_method.params.stages),
    ):
        assert stages[0].start_time == 0
        for previous, current in zip(stages, stages[1:]):
            assert current.start_time == previous.end_time
        assert all(s.end_time >= s.start_time for s in stages)


def test_pour_filling_whole_stage_has_no_wait():
    stages = build_expanded_stages(
        [Stage(time=30, pour_time=30, label="Pour", water="100g")]
    )

    assert [s.type for s in stages] == ["pour"]


def test_explicit_zero_pour_time_keeps_stage_label():
    """Test that a drain step becomes a wait with its own label."""
    stages = build_expanded_stages(
        [
            Stage(time=30, pour_time=10, label="Pour", water="100g"),
            Stage(time=60, pour_time=0, label="Drain", water="100g", detail="Open"),
        ]
    )

    assert stages[-1].type == "wait"
    assert stages[-1].label == "Drain"
    assert stages[-1].detail == "Open"
    assert (stages[-1].start_time, stages[-1].end_time) == (30, 60)


def test_bypass_stages_are_skipped():
    stages = build_expanded_stages(
        [
            Stage(time=30, pour_time=10, label="Pour", water="100g"),
            Stage(time=30, label="Bypass", water="150g", pour_type="bypass"),
        ]
    )

    assert all(s.label != "Bypass" for s in stages)


def test_empty_stages():
    """Test that an empty recipe expands to nothing and queries stay safe."""
    assert build_expanded_stages([]) == []
    assert build_expanded_stages(None) == []
    assert total_duration([]) == 0
    assert get_current_stage_index(10, []) == -1
    assert calculate_current_water(10, -1, []) == 0


# --- Espresso ---


def test_espresso_detection_prefers_explicit_markers():
    marked = [Stage(time=28, water="36g", timing_role="extraction")]
    keyword_only = [Stage(time=28, water="36g", label="Espresso shot")]
    pour_over = [Stage(time=30, water="60g", label="Bloom")]

    assert is_espresso_stages(marked)
    assert is_espresso_stages(keyword_only)
    assert not is_espresso_stages(pour_over)


def test_espresso_extraction_times_from_zero(espresso_method):
    """Test that only the extraction stage is timed and beverages are skipped."""
    stages = build_expanded_stages(espresso_method.params.stages)

    assert len(stages) == 1
    assert stages[0].type == "pour"
    assert (stages[0].start_time, stages[0].end_time) == (0, 28)
    assert total_duration(stages) == 28


def test_espresso_without_extraction_uses_fallback_duration():
    stages = build_expanded_stages(
        [Stage(time=0, label="Espresso", water="40g")],
        espresso_fallback_duration=30,
    )

    assert len(stages) == 1
    assert stages[0].end_time == 30
    assert stages[0].water == "40g"


def test_espresso_water_ramps_from_zero(espresso_method):
    stages = build_expanded_stages(espresso_method.params.stages)

    assert calculate_current_water(14, 0, stages) == pytest.approx(18)
    assert target_flow_rate(0, stages) == pytest.approx(36 / 28)


# --- Progress queries (pour-over walk-through) ---


def test_water_at_five_seconds(single_pour_stages):
    """Test that water is interpolated halfway through the bloom pour."""
    current = snapshot(5, single_pour_stages)

    assert current.index == 0
    assert not current.is_waiting
    assert current.current_water == pytest.approx(15)
    assert current.progress_percent == pytest.approx(50)


def test_water_at_end_of_bloom(single_pour_stages):
    current = snapshot(25, single_pour_stages)

    assert current.current_water == 30
    assert current.is_waiting


def test_water_during_main_pour(single_pour_stages):
    """Test interpolation between the bloom and final targets."""
    expected = 30 + (225 - 30) * (60 - 25) / 65
    current = snapshot(60, single_pour_stages)

    assert current.index == 2
    assert current.current_water == pytest.approx(expected)
    assert snapshot(90, single_pour_stages).current_water == 225


def test_water_at_end_of_recipe(single_pour_stages):
    current = snapshot(120, single_pour_stages)

    assert current.index == len(single_pour_stages) - 1
    assert current.current_water == 225
    assert current.progress_percent == 100


def test_past_the_end_stays_on_last_stage(single_pour_stages):
    assert get_current_stage_index(500, single_pour_stages) == 3
    assert get_stage_progress(3, 500, single_pour_stages) == 100


def test_nothing_poured_at_time_zero(single_pour_stages):
    assert calculate_current_water(0, 0, single_pour_stages) == 0


def test_index_and_water_are_monotonic(single_pour_stages, three_pour_method):
    """Test that stage index and water never decrease as time advances."""
    for stages in (
        single_pour_stages,
        build_expanded_stages(three_pour_method.params.stages),
    ):
        previous_index = -1
        previous_water = 0.0
        for tenth in range(0, int(total_duration(stages) * 10) + 1):
            current = snapshot(tenth / 10, stages)
            assert current.index >= previous_index
            assert current.current_water >= previous_water - 1e-9
            previous_index = current.index
            previous_water = current.current_water


def test_water_hits_target_at_each_end_time(single_pour_stages):
    for index, stage in enumerate(single_pour_stages):
        assert calculate_current_water(
            stage.end_time, index, single_pour_stages
        ) == pytest.approx(parse_grams(stage.water))


def test_zero_length_stage_progress_is_complete():
    stages = build_expanded_stages(
        [Stage(time=0, pour_time=0, label="Nothing", water="0g")]
    )

    assert get_stage_progress(0, 0, stages) == 100


def test_target_flow_rate(single_pour_stages):
    assert target_flow_rate(0, single_pour_stages) == pytest.approx(3)
    assert target_flow_rate(1, single_pour_stages) == 0
    assert target_flow_rate(2, single_pour_stages) == pytest.approx(195 / 65)
