"""Stage timeline construction and progress queries.

A recipe describes a handful of cumulative time/water checkpoints. The
functions here expand those checkpoints into contiguous pour and wait
slices and answer "which slice, how far along, how much water" for an
elapsed time supplied by the caller. Nothing here keeps a clock.
"""

import math
import re
from collections.abc import Sequence

from .types import ExpandedStage, Stage, TimelineSnapshot

DEFAULT_ESPRESSO_FALLBACK_DURATION = 25  # seconds
HEURISTIC_POUR_DIVISOR = 3

ESPRESSO_KEYWORDS: tuple[str, ...] = ("espresso", "意式", "萃取")

WAIT_LABEL = "Wait"
WAIT_DETAIL = "Be patient and let the coffee steep"

_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")
_RATIO_RE = re.compile(r"1\s*:\s*(\d+(?:\.\d+)?)")


def parse_grams(value: str | float | int | None) -> float:
    """Return the numeric part of a mass string such as ``"225g"``.

    Anything that does not contain a number counts as 0.
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return 0.0 if math.isnan(value) else float(value)
    match = _NUMBER_RE.search(value)
    return float(match.group(0)) if match else 0.0


def parse_ratio(value: str | None) -> float:
    """Return ``R`` from a ratio string ``"1:R"``, or 0 when malformed."""
    if not value:
        return 0.0
    match = _RATIO_RE.search(value)
    return float(match.group(1)) if match else 0.0


def format_grams(value: float) -> str:
    if float(value).is_integer():
        return f"{int(value)}g"
    return f"{value:g}g"


def format_ratio(value: float) -> str:
    if float(value).is_integer():
        return f"1:{int(value)}"
    return f"1:{value:.1f}"


def format_time(seconds: float, compact: bool = False) -> str:
    """Format seconds as ``m:ss``, or ``m'ss"`` when compact."""
    total = int(seconds)
    mins, secs = divmod(total, 60)
    if compact:
        return f"{mins}'{secs:02d}\"" if mins > 0 else f'{secs}"'
    return f"{mins}:{secs:02d}"


def _has_explicit_espresso_marker(stage: Stage) -> bool:
    return stage.timing_role is not None or stage.pour_type in (
        "extraction",
        "beverage",
    )


def _is_extraction(stage: Stage) -> bool:
    if stage.timing_role is not None:
        return stage.timing_role == "extraction"
    return stage.pour_type == "extraction"


def _matches_espresso_keyword(stage: Stage) -> bool:
    text = f"{stage.label} {stage.detail}".lower()
    return any(keyword in text for keyword in ESPRESSO_KEYWORDS)


def is_espresso_stages(stages: Sequence[Stage]) -> bool:
    """Return True when the stage list describes an espresso extraction.

    Explicit markers (``timing_role`` or an extraction/beverage pour type)
    decide on their own. Keyword matching on labels and details is only
    consulted for legacy recipes that carry no marker at all.
    """
    if any(_has_explicit_espresso_marker(stage) for stage in stages):
        return True
    return any(_matches_espresso_keyword(stage) for stage in stages)


def _build_espresso_stages(
    stages: Sequence[Stage], fallback_duration: float
) -> list[ExpandedStage]:
    expanded: list[ExpandedStage] = []
    for index, stage in enumerate(stages):
        # Each extraction restarts from zero; beverage stages never time anything.
        if not _is_extraction(stage):
            continue
        expanded.append(
            ExpandedStage(
                type="pour",
                label=stage.label,
                start_time=0,
                end_time=stage.time,
                time=stage.time,
                pour_time=stage.time,
                water=stage.water,
                detail=stage.detail,
                pour_type=stage.pour_type,
                valve_status=stage.valve_status,
                original_index=index,
            )
        )

    if not expanded:
        first = stages[0]
        expanded.append(
            ExpandedStage(
                type="pour",
                label=first.label,
                start_time=0,
                end_time=fallback_duration,
                time=fallback_duration,
                pour_time=fallback_duration,
                water=first.water,
                detail=first.detail,
                pour_type=first.pour_type,
                valve_status=first.valve_status,
                original_index=0,
            )
        )
    return expanded


def _build_standard_stages(stages: Sequence[Stage]) -> list[ExpandedStage]:
    expanded: list[ExpandedStage] = []
    prev_time = 0.0
    for index, stage in enumerate(stages):
        if stage.pour_type == "bypass":
            continue

        explicit = stage.pour_time is not None
        if explicit:
            pour_duration = float(stage.pour_time)  # type: ignore[arg-type]
        else:
            pour_duration = float(
                math.floor((stage.time - prev_time) / HEURISTIC_POUR_DIVISOR)
            )

        if pour_duration > 0:
            pour_end = prev_time + pour_duration
            expanded.append(
                ExpandedStage(
                    type="pour",
                    label=stage.label,
                    start_time=prev_time,
                    end_time=pour_end,
                    time=pour_duration,
                    pour_time=pour_duration,
                    water=stage.water,
                    detail=stage.detail,
                    pour_type=stage.pour_type,
                    valve_status=stage.valve_status,
                    original_index=index,
                )
            )
            if pour_end < stage.time:
                expanded.append(
                    ExpandedStage(
                        type="wait",
                        label=WAIT_LABEL,
                        start_time=pour_end,
                        end_time=stage.time,
                        time=stage.time - pour_end,
                        water=stage.water,
                        detail=WAIT_DETAIL,
                        pour_type=stage.pour_type,
                        valve_status=stage.valve_status,
                        original_index=index,
                    )
                )
        else:
            # An explicit zero pour keeps the stage's own wording.
            expanded.append(
                ExpandedStage(
                    type="wait",
                    label=stage.label if explicit else WAIT_LABEL,
                    start_time=prev_time,
                    end_time=stage.time,
                    time=stage.time - prev_time,
                    water=stage.water,
                    detail=stage.detail if explicit else WAIT_DETAIL,
                    pour_type=stage.pour_type,
                    valve_status=stage.valve_status,
                    original_index=index,
                )
            )
        prev_time = stage.time
    return expanded


def build_expanded_stages(
    stages: Sequence[Stage] | None,
    *,
    espresso_fallback_duration: float = DEFAULT_ESPRESSO_FALLBACK_DURATION,
) -> list[ExpandedStage]:
    """Expand recipe stages into a contiguous pour/wait timeline.

    Args:
        stages: Ordered recipe stages, possibly empty.
        espresso_fallback_duration: Extraction length used when an espresso
            recipe has no stage marked as the extraction.

    Returns:
        The expanded stages. Never raises on malformed or unsorted input.
    """
    if not stages:
        return []
    if is_espresso_stages(stages):
        return _build_espresso_stages(stages, espresso_fallback_duration)
    return _build_standard_stages(stages)


def total_duration(stages: Sequence[ExpandedStage]) -> float:
    """Return the time at which the timeline is finished."""
    if not stages:
        return 0.0
    return max(stage.end_time for stage in stages)


def get_current_stage_index(
    current_time: float, stages: Sequence[ExpandedStage]
) -> int:
    """Return the index of the slice containing ``current_time``.

    Past the end of the timeline the last index is returned; an empty
    timeline gives -1.
    """
    if not stages:
        return -1
    for index, stage in enumerate(stages):
        if stage.start_time <= current_time <= stage.end_time:
            return index
    if current_time > 0:
        return len(stages) - 1
    return -1


def get_stage_progress(
    stage_index: int, current_time: float, stages: Sequence[ExpandedStage]
) -> float:
    """Return how far into slice ``stage_index`` we are, in percent."""
    if stage_index < 0 or stage_index >= len(stages):
        return 0.0
    stage = stages[stage_index]
    if current_time < stage.start_time:
        return 0.0
    if current_time > stage.end_time:
        return 100.0
    span = stage.end_time - stage.start_time
    if span <= 0:
        return 100.0
    return (current_time - stage.start_time) / span * 100


def _previous_water(stage_index: int, stages: Sequence[ExpandedStage]) -> float:
    # Slices that start at zero (first slice, espresso extractions) pour from empty.
    if stage_index <= 0 or stages[stage_index].start_time <= 0:
        return 0.0
    return parse_grams(stages[stage_index - 1].water)


def calculate_current_water(
    current_time: float, stage_index: int, stages: Sequence[ExpandedStage]
) -> float:
    """Return the water mass that should be in the brewer at ``current_time``."""
    if current_time == 0 or not stages:
        return 0.0
    if stage_index == -1:
        return parse_grams(stages[-1].water)
    if stage_index >= len(stages):
        return parse_grams(stages[-1].water)

    stage = stages[stage_index]
    target = parse_grams(stage.water)
    if stage.type == "wait":
        return target

    prev_water = _previous_water(stage_index, stages)
    if stage.time <= 0:
        return target
    elapsed_in_stage = current_time - stage.start_time
    if elapsed_in_stage <= 0:
        return prev_water
    if elapsed_in_stage >= stage.time:
        return target
    return prev_water + (target - prev_water) * elapsed_in_stage / stage.time


def target_flow_rate(stage_index: int, stages: Sequence[ExpandedStage]) -> float:
    """Return the grams per second the current pour slice calls for."""
    if stage_index < 0 or stage_index >= len(stages):
        return 0.0
    stage = stages[stage_index]
    if stage.type != "pour" or stage.time <= 0:
        return 0.0
    prev_water = _previous_water(stage_index, stages)
    return (parse_grams(stage.water) - prev_water) / stage.time


def snapshot(current_time: float, stages: Sequence[ExpandedStage]) -> TimelineSnapshot:
    """Answer all three progress queries for one tick."""
    index = get_current_stage_index(current_time, stages)
    return TimelineSnapshot(
        index=index,
        progress_percent=get_stage_progress(index, current_time, stages),
        current_water=calculate_current_water(current_time, index, stages),
        is_waiting=index >= 0 and stages[index].type == "wait",
    )
