"""Plain records exchanged with the engine.

Records use snake_case attributes but accept (and can dump) the camelCase
names used by the storage layer, e.g. ``Block(targetLoads=["80"])`` and
``block.model_dump(by_alias=True)``.  Engine operations never mutate a record
handed to them; they return updated copies.
"""

import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

FALLBACK_LOAD = 80.0


def _coerce_load(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return FALLBACK_LOAD


def _coerce_rows(value: Any) -> Optional[list[list[float]]]:
    if value is None:
        return None
    rows = []
    for row in value:
        if not isinstance(row, (list, tuple)):
            row = [row]
        rows.append([_coerce_load(v) for v in row])
    return rows


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExerciseType(str, Enum):
    RESISTANCE = "resistance"
    CARDIO = "cardio"


class MuscleShare(Record):
    muscle: str
    percent: float


class ExerciseEntry(Record):
    name: str
    type: ExerciseType = ExerciseType.RESISTANCE
    muscles: list[MuscleShare] = Field(default_factory=list)


class ProgressionBlock(Record):
    sets: int
    reps: int
    percentage: float


class ProgressionWeek(Record):
    week_number: int
    blocks: list[ProgressionBlock] = Field(default_factory=list)


class PercentageProgression(Record):
    one_rep_max: float
    weeks: list[ProgressionWeek] = Field(default_factory=list)

    @classmethod
    def default(cls, one_rep_max: float = 100.0) -> "PercentageProgression":
        return cls(
            one_rep_max=one_rep_max,
            weeks=[
                ProgressionWeek(
                    week_number=1,
                    blocks=[ProgressionBlock(sets=4, reps=5, percentage=75)],
                )
            ],
        )


class Block(Record):
    technique: str = "Normal"
    sets: int = 3
    reps_base: str = "10"
    rep_range: Optional[str] = "8-12"
    target_loads: list[float] = Field(default_factory=list)
    target_loads_by_cluster: Optional[list[list[float]]] = None
    target_reps: Optional[list[str]] = None
    technique_schema: str = ""
    technique_params: dict[str, Any] = Field(default_factory=dict)
    coefficient: float = 1.0
    target_rpe: Optional[float] = Field(8.0, alias="targetRPE")
    rest: int = 90
    block_rest: int = 0
    notes: str = ""
    percentage_progression: Optional[PercentageProgression] = None
    start_load: Optional[float] = None
    increment: Optional[float] = None
    duration: Optional[int] = None

    @field_validator("reps_base", "technique_schema", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _coerce_text(value)

    @field_validator("target_loads", mode="before")
    @classmethod
    def _loads(cls, value: Any) -> list[float]:
        if value is None:
            return []
        return [_coerce_load(v) for v in value]

    @field_validator("target_loads_by_cluster", mode="before")
    @classmethod
    def _cluster_loads(cls, value: Any) -> Optional[list[list[float]]]:
        return _coerce_rows(value)

    @field_validator("target_reps", mode="before")
    @classmethod
    def _reps_overrides(cls, value: Any) -> Optional[list[str]]:
        if value is None:
            return None
        return [_coerce_text(v) for v in value]


class ProgramExercise(Record):
    exercise_name: str
    exercise_type: ExerciseType = ExerciseType.RESISTANCE
    blocks: list[Block] = Field(default_factory=list)
    notes: str = ""
    # legacy single-block layout, folded into ``blocks`` on migration
    sets: Optional[int] = None
    reps_base: Optional[str] = None
    rep_range: Optional[str] = None
    target_loads: Optional[list[float]] = None
    target_rpe: Optional[float] = Field(None, alias="targetRPE")
    technique: Optional[str] = None
    technique_schema: Optional[str] = None
    technique_params: Optional[dict[str, Any]] = None
    coefficient: Optional[float] = None
    rest: Optional[int] = None
    duration: Optional[int] = None

    @field_validator("reps_base", "technique_schema", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Optional[str]:
        return None if value is None else _coerce_text(value)

    @field_validator("target_loads", mode="before")
    @classmethod
    def _loads(cls, value: Any) -> Optional[list[float]]:
        if value is None:
            return None
        return [_coerce_load(v) for v in value]


class Day(Record):
    name: str = ""
    exercises: list[ProgramExercise] = Field(default_factory=list)


class Week(Record):
    days: list[Day] = Field(default_factory=list)


class WeekRemap(Record):
    """Folds a longer logged week history onto a program's canonical weeks."""

    offset: int
    cycle_length: int

    @field_validator("cycle_length")
    @classmethod
    def _positive_cycle(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("cycle_length must be positive")
        return value


class Program(Record):
    id: int
    name: str = ""
    weeks: dict[int, Week] = Field(default_factory=dict)
    week_remap: Optional[WeekRemap] = None


class LoggedSet(Record):
    set_num: int
    cluster_num: int = 1
    reps: str = ""
    load: str = ""
    rpe: str = ""

    @field_validator("reps", "load", "rpe", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _coerce_text(value)


class LoggedSession(Record):
    id: int = 0
    date: datetime.date
    program_id: Optional[int] = None
    week_num: int
    day_index: int = 0
    exercise_index: int = 0
    block_index: int = 0
    exercise: str
    technique: str = "Normal"
    technique_schema: str = ""
    rep_range: Optional[str] = None
    coefficient: float = 1.0
    target_loads: list[float] = Field(default_factory=list)
    target_loads_by_cluster: Optional[list[list[float]]] = None
    target_rpe: Optional[float] = Field(None, alias="targetRPE")
    block_rest: int = 0
    sets: list[LoggedSet] = Field(default_factory=list)
    total_reps: int = 0
    total_tonnage: float = 0.0
    avg_rpe: float = Field(0.0, alias="avgRPE")
    target_reps: int = 0
    max_effort_sets: list[int] = Field(default_factory=list)
    completion: float = 0.0

    @field_validator("technique_schema", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _coerce_text(value)

    @field_validator("target_loads", mode="before")
    @classmethod
    def _loads(cls, value: Any) -> list[float]:
        if value is None:
            return []
        return [_coerce_load(v) for v in value]

    @field_validator("target_loads_by_cluster", mode="before")
    @classmethod
    def _cluster_loads(cls, value: Any) -> Optional[list[list[float]]]:
        return _coerce_rows(value)
