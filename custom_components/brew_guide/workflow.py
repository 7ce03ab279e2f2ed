"""Linear brewing workflow: bean, equipment, method, brewing, notes."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from .rescaler import ParameterField, ParameterRescaler
from .timeline import (
    DEFAULT_ESPRESSO_FALLBACK_DURATION,
    build_expanded_stages,
    snapshot,
    total_duration,
)
from .types import (
    STEP_ORDER,
    CompletionEvent,
    EditableParams,
    ExpandedStage,
    Method,
    ParameterUpdateEvent,
    StageChangeEvent,
    TimelineSnapshot,
    WorkflowEvent,
    WorkflowStep,
)

_LOGGER = logging.getLogger(__name__)

WorkflowListener = Callable[[WorkflowEvent], None]


@dataclass
class WorkflowState:
    """Everything the brewing session knows; replaced wholesale on reset."""

    active_step: WorkflowStep = WorkflowStep.COFFEE_BEAN
    selected_coffee_bean: str | None = None
    selected_equipment: str | None = None
    selected_method: Method | None = None
    current_brewing_method: Method | None = None
    editable_params: EditableParams | None = None
    expanded_stages: list[ExpandedStage] = field(default_factory=list)
    elapsed_time: float = 0.0
    current_stage_index: int = -1
    current_water: float = 0.0
    stage_progress: float = 0.0
    is_timer_running: bool = False
    is_complete: bool = False
    run_token: int = 0


class BrewingWorkflow:
    """Owns the workflow state and enforces which step is reachable.

    Every operation returns True when it changed the state and False when
    it was rejected. Rejections never raise; callers are expected to grey
    out the affordance instead.
    """

    def __init__(
        self,
        equipment_names: dict[str, str] | None = None,
        espresso_fallback_duration: float = DEFAULT_ESPRESSO_FALLBACK_DURATION,
    ) -> None:
        """Initialize the workflow in its first step."""
        self.state = WorkflowState()
        self._equipment_names = equipment_names or {}
        self._espresso_fallback_duration = espresso_fallback_duration
        self._rescaler: ParameterRescaler | None = None
        self._listeners: list[WorkflowListener] = []

    # --- Publishing ---

    def subscribe(self, listener: WorkflowListener) -> Callable[[], None]:
        """Register a listener for workflow events; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self, event: WorkflowEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    def _publish_parameter_update(self) -> None:
        method = self.state.current_brewing_method
        equipment = self.state.selected_equipment
        params: dict[str, str] | None = None
        if method is not None:
            params = {
                "coffee": method.params.coffee,
                "water": method.params.water,
                "ratio": method.params.ratio,
                "grindSize": method.params.grind_size,
                "temp": method.params.temp,
            }
        self._publish(
            ParameterUpdateEvent(
                equipment_name=self._equipment_names.get(equipment, equipment)
                if equipment
                else None,
                method_name=method.name if method else None,
                params=params,
            )
        )

    # --- Queries ---

    @property
    def is_locked(self) -> bool:
        """Navigation is frozen while a brew is actively running."""
        return self.state.is_timer_running and not self.state.is_complete

    @property
    def total_time(self) -> float:
        return total_duration(self.state.expanded_stages)

    def can_enter(self, step: WorkflowStep) -> bool:
        """Return True when the guard for ``step`` is satisfied."""
        if step is WorkflowStep.METHOD:
            return self.state.selected_equipment is not None
        if step is WorkflowStep.BREWING:
            return self.state.selected_method is not None
        if step is WorkflowStep.NOTES:
            return self.state.is_complete
        return True

    # --- Internal transitions ---

    def _clear_method(self) -> None:
        self._rescaler = None
        self.state = replace(
            self.state,
            selected_method=None,
            current_brewing_method=None,
            editable_params=None,
            expanded_stages=[],
        )
        self._clear_timer(stage_index=-1)

    def _clear_timer(self, stage_index: int) -> None:
        # One replace() so no observer sees elapsed time and stage index disagree.
        self.state = replace(
            self.state,
            elapsed_time=0.0,
            current_stage_index=stage_index,
            current_water=0.0,
            stage_progress=0.0,
            is_timer_running=False,
            is_complete=False,
            run_token=self.state.run_token + 1,
        )

    def _apply_snapshot(self, current: TimelineSnapshot, elapsed: float) -> None:
        self.state = replace(
            self.state,
            elapsed_time=elapsed,
            current_stage_index=current.index,
            current_water=current.current_water,
            stage_progress=current.progress_percent,
        )

    # --- Step operations ---

    def select_coffee_bean(self, bean_id: str | None) -> bool:
        """Pick (or skip, with None) the bean and move on to equipment."""
        if self.is_locked:
            return False
        downstream = self.state.active_step.index > WorkflowStep.EQUIPMENT.index
        if downstream:
            self._clear_method()
        self.state = replace(
            self.state,
            selected_coffee_bean=bean_id,
            active_step=WorkflowStep.EQUIPMENT,
        )
        if downstream:
            self._publish_parameter_update()
        return True

    def skip_coffee_bean(self) -> bool:
        return self.select_coffee_bean(None)

    def select_equipment(self, equipment_id: str) -> bool:
        """Pick a brewer; any previously chosen method no longer applies."""
        if self.is_locked:
            return False
        self._clear_method()
        self.state = replace(
            self.state,
            selected_equipment=equipment_id,
            active_step=WorkflowStep.METHOD,
        )
        self._publish_parameter_update()
        return True

    def select_method(self, method: Method) -> bool:
        """Pick a recipe, build its timeline and enter the brewing step."""
        if self.is_locked or self.state.selected_equipment is None:
            _LOGGER.debug("Rejected method selection for %s", method.name)
            return False
        working_copy = method.model_copy(deep=True)
        self._rescaler = ParameterRescaler(working_copy)
        self.state = replace(
            self.state,
            selected_method=method,
            current_brewing_method=working_copy,
            editable_params=self._rescaler.params,
            expanded_stages=build_expanded_stages(
                working_copy.params.stages,
                espresso_fallback_duration=self._espresso_fallback_duration,
            ),
        )
        self._clear_timer(stage_index=-1)
        self.state = replace(self.state, active_step=WorkflowStep.BREWING)
        self._publish_parameter_update()
        return True

    def advance(self) -> bool:
        """Move to the next step when its guard allows it."""
        if self.is_locked:
            return False
        current = self.state.active_step.index
        if current + 1 >= len(STEP_ORDER):
            return False
        target = STEP_ORDER[current + 1]
        if not self.can_enter(target):
            _LOGGER.debug("Rejected advance to %s: guard not satisfied", target)
            return False
        if target is WorkflowStep.BREWING:
            self._clear_timer(stage_index=-1)
        self.state = replace(self.state, active_step=target)
        return True

    def retreat(self, step: WorkflowStep) -> bool:
        """Go back to ``step`` (or stay), resetting downstream state."""
        if self.is_locked:
            return False
        current = self.state.active_step
        if step.index > current.index or not self.can_enter(step):
            _LOGGER.debug("Rejected retreat from %s to %s", current, step)
            return False

        if step is WorkflowStep.BREWING and current is WorkflowStep.NOTES:
            # Keep the chosen method and any rescaled params so the brew can be re-run.
            self._clear_timer(stage_index=0)
        elif step in (
            WorkflowStep.COFFEE_BEAN,
            WorkflowStep.EQUIPMENT,
            WorkflowStep.METHOD,
        ):
            self._clear_method()

        self.state = replace(self.state, active_step=step)
        if step is not current:
            self._publish_parameter_update()
        return True

    def go_to(self, step: WorkflowStep) -> bool:
        """Navigate to any step: backwards freely, forwards one step at a time."""
        if step.index <= self.state.active_step.index:
            return self.retreat(step)
        if step.index == self.state.active_step.index + 1:
            return self.advance()
        return False

    # --- Timer ---

    def start_timer(self) -> int | None:
        """Start (or resume) the brew; returns the run token ticks must carry."""
        if (
            self.state.active_step is not WorkflowStep.BREWING
            or self.state.current_brewing_method is None
            or self.state.is_complete
            or self.state.is_timer_running
        ):
            return None
        self.state = replace(self.state, is_timer_running=True)
        return self.state.run_token

    def pause_timer(self) -> bool:
        if not self.state.is_timer_running:
            return False
        self.state = replace(self.state, is_timer_running=False)
        return True

    def reset_timer(self) -> bool:
        """Stop the brew and zero its progress; pending ticks become stale."""
        if (
            self.state.active_step is not WorkflowStep.BREWING
            or self.state.current_brewing_method is None
        ):
            return False
        self._clear_timer(stage_index=-1)
        return True

    def tick(self, elapsed_time: float, run_token: int) -> TimelineSnapshot | None:
        """Advance the brew to ``elapsed_time`` seconds.

        Ticks from an earlier run (stale ``run_token``) or arriving while the
        timer is stopped are ignored and return None.
        """
        if not self.state.is_timer_running or run_token != self.state.run_token:
            return None

        stages = self.state.expanded_stages
        previous_index = self.state.current_stage_index
        current = snapshot(elapsed_time, stages)
        self._apply_snapshot(current, elapsed_time)

        if current.index != previous_index:
            self._publish(
                StageChangeEvent(
                    index=current.index,
                    progress_percent=current.progress_percent,
                    is_waiting=current.is_waiting,
                    current_water=current.current_water,
                    elapsed_time=elapsed_time,
                )
            )

        if elapsed_time >= self.total_time:
            self.state = replace(self.state, is_complete=True, is_timer_running=False)
            _LOGGER.debug("Brew complete after %.1f seconds", elapsed_time)
            self._publish(CompletionEvent(total_elapsed_seconds=elapsed_time))
        return current

    # --- Parameters ---

    def rescale(self, field_name: ParameterField, value: str | float | int) -> bool:
        """Edit coffee, water or ratio and rebuild the timeline in one update."""
        if self._rescaler is None or self.state.current_brewing_method is None:
            return False
        result = self._rescaler.rescale(field_name, value)
        if result is None:
            return False

        stages = build_expanded_stages(
            result.method.params.stages,
            espresso_fallback_duration=self._espresso_fallback_duration,
        )
        elapsed = self.state.elapsed_time
        current = snapshot(elapsed, stages) if elapsed > 0 else None
        self.state = replace(
            self.state,
            current_brewing_method=result.method,
            editable_params=result.params,
            expanded_stages=stages,
        )
        if current is not None:
            self._apply_snapshot(current, elapsed)
        self._publish_parameter_update()
        return True

    def reset(self) -> None:
        """Tear the session down to its initial state."""
        run_token = self.state.run_token + 1
        self._rescaler = None
        self.state = WorkflowState(run_token=run_token)
        self._publish_parameter_update()
