"""Data models shared by the Brew Guide engine, storage and entities."""

import datetime
from enum import StrEnum
from typing import Literal, NamedTuple

from pydantic import BaseModel, ConfigDict, Field

PourType = Literal[
    "center", "circle", "ice", "other", "extraction", "beverage", "bypass"
]
TimingRole = Literal["extraction", "beverage"]
ValveStatus = Literal["open", "closed"]
ExpandedStageType = Literal["pour", "wait"]


class WorkflowStep(StrEnum):
    """Steps of the brewing workflow, in their fixed order."""

    COFFEE_BEAN = "coffeeBean"
    EQUIPMENT = "equipment"
    METHOD = "method"
    BREWING = "brewing"
    NOTES = "notes"

    @property
    def index(self) -> int:
        return STEP_ORDER.index(self)


STEP_ORDER: tuple[WorkflowStep, ...] = (
    WorkflowStep.COFFEE_BEAN,
    WorkflowStep.EQUIPMENT,
    WorkflowStep.METHOD,
    WorkflowStep.BREWING,
    WorkflowStep.NOTES,
)


class _RecipeModel(BaseModel):
    """Base for records persisted with the original camelCase keys."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Stage(_RecipeModel):
    """A recipe checkpoint: cumulative time and cumulative water target."""

    time: float
    label: str = ""
    water: str = "0g"
    detail: str = ""
    pour_time: float | None = Field(default=None, alias="pourTime")
    pour_type: PourType | None = Field(default=None, alias="pourType")
    valve_status: ValveStatus | None = Field(default=None, alias="valveStatus")
    timing_role: TimingRole | None = Field(default=None, alias="timingRole")


class MethodParams(_RecipeModel):
    coffee: str
    water: str
    ratio: str
    grind_size: str = Field(default="", alias="grindSize")
    temp: str = ""
    video_url: str = Field(default="", alias="videoUrl")
    roast_level: str | None = Field(default=None, alias="roastLevel")
    stages: list[Stage] = Field(default_factory=list)


class Method(_RecipeModel):
    """A full recipe: parameters plus an ordered stage list."""

    id: str | None = None
    name: str
    params: MethodParams


class ExpandedStage(_RecipeModel):
    """A pour or wait slice of the timeline derived from a Stage."""

    type: ExpandedStageType
    label: str
    start_time: float = Field(alias="startTime")
    end_time: float = Field(alias="endTime")
    time: float
    water: str
    detail: str = ""
    pour_time: float | None = Field(default=None, alias="pourTime")
    pour_type: PourType | None = Field(default=None, alias="pourType")
    valve_status: ValveStatus | None = Field(default=None, alias="valveStatus")
    original_index: int = Field(alias="originalIndex")


class EditableParams(NamedTuple):
    coffee: str
    water: str
    ratio: str


class TimelineSnapshot(NamedTuple):
    index: int
    progress_percent: float
    current_water: float
    is_waiting: bool


class Equipment(_RecipeModel):
    id: str
    name: str
    description: list[str] = Field(default_factory=list)


class CoffeeBean(_RecipeModel):
    """A bag of beans in the inventory; only ``remaining`` is ever updated."""

    id: str
    name: str
    remaining: float = 0.0
    capacity: float = 0.0
    roast_level: str | None = Field(default=None, alias="roastLevel")
    roast_date: str | None = Field(default=None, alias="roastDate")


class TasteRatings(_RecipeModel):
    acidity: int = Field(default=0, ge=0, le=5)
    sweetness: int = Field(default=0, ge=0, le=5)
    bitterness: int = Field(default=0, ge=0, le=5)
    body: int = Field(default=0, ge=0, le=5)


class CoffeeBeanInfo(_RecipeModel):
    name: str
    roast_level: str = Field(default="", alias="roastLevel")
    roast_date: str | None = Field(default=None, alias="roastDate")


class NoteParams(_RecipeModel):
    coffee: str
    water: str
    ratio: str
    grind_size: str = Field(default="", alias="grindSize")
    temp: str = ""


class NoteInput(_RecipeModel):
    """The user-entered part of a tasting note."""

    rating: int = Field(default=0, ge=0, le=5)
    taste: TasteRatings = Field(default_factory=TasteRatings)
    notes: str = ""


class BrewingNote(_RecipeModel):
    """A persisted tasting note for one brew."""

    id: str
    timestamp: datetime.datetime
    equipment: str
    method: str
    params: NoteParams
    stages: list[Stage] = Field(default_factory=list)
    coffee_bean_info: CoffeeBeanInfo | None = Field(
        default=None, alias="coffeeBeanInfo"
    )
    rating: int = Field(default=0, ge=0, le=5)
    taste: TasteRatings = Field(default_factory=TasteRatings)
    notes: str = ""
    total_time: float = Field(default=0.0, alias="totalTime")


class StageChangeEvent(BaseModel):
    index: int
    progress_percent: float
    is_waiting: bool
    current_water: float
    elapsed_time: float

    model_config = {"frozen": True}


class ParameterUpdateEvent(BaseModel):
    equipment_name: str | None
    method_name: str | None
    params: dict[str, str] | None

    model_config = {"frozen": True}


class CompletionEvent(BaseModel):
    total_elapsed_seconds: float

    model_config = {"frozen": True}


WorkflowEvent = StageChangeEvent | ParameterUpdateEvent | CompletionEvent
