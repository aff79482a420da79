"""Training technique vocabulary.

Built-in techniques form a closed set (:class:`Technique`), each carrying its
own parameter schema and schema generator.  User-defined techniques are
registered through :class:`TechniqueRegistry` as an explicit extension table.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from pydantic import Field

from algorithms import MathTools, SchemaCodec
from models import Record

logger = logging.getLogger(__name__)

MAX_REPS = "MAX"


class Technique(str, Enum):
    NORMAL = "Normal"
    RAMPING = "Ramping"
    AD_HOC = "Ad-Hoc"
    PERCENTAGE = "Percentage"
    REST_PAUSE = "Rest-Pause"
    MYO_REPS = "Myo-Reps"
    DROP_SET = "Drop-Set"
    CLUSTER_SETS = "Cluster Sets"
    DESCENDING_REPS = "Descending Reps"
    ASCENDING_REPS = "Ascending Reps"
    ONE_AND_HALF_REPS = "1.5 Reps"


class TechniqueKind(str, Enum):
    NORMAL = "normal"
    SPECIAL = "special"
    CUSTOM = "custom"
    AD_HOC = "ad_hoc"

    @property
    def uses_clusters(self) -> bool:
        return self in (TechniqueKind.SPECIAL, TechniqueKind.CUSTOM)


LEGACY_NAMES = {
    "Normale": Technique.NORMAL,
    "Reps Scalare": Technique.DESCENDING_REPS,
    "Reps Crescente": Technique.ASCENDING_REPS,
    "Progressione a %": Technique.PERCENTAGE,
    "AdHoc": Technique.AD_HOC,
}


class TechniqueParameter(Record):
    name: str
    label: str = ""
    type: str = "number"
    default: Any = None
    min: Optional[float] = None
    max: Optional[float] = None
    options: Optional[list[str]] = None


class CustomTechnique(Record):
    name: str
    description: str = ""
    parameters: list[TechniqueParameter] = Field(default_factory=list)


def _blank(value: Any) -> bool:
    return value is None or value == ""


def _param(params: dict, name: str, default: Any) -> Any:
    value = params.get(name)
    return default if _blank(value) else value


def _count(p: dict, name: str, default: int) -> int:
    """Return parameter ``name`` as a positive whole number, ``default`` when unusable."""
    value = MathTools.to_int(_param(p, name, default), default)
    return value if value >= 1 else default


def _repeat(reps: int, times: int) -> str:
    return "+".join([str(reps)] * times)


def _rest_pause(p: dict) -> str:
    return _repeat(_count(p, "reps", 10), _count(p, "miniSets", 3))


def _myo_reps(p: dict) -> str:
    activation = _count(p, "activation", 12)
    tail = _repeat(_count(p, "myoReps", 5), _count(p, "numMyo", 4))
    return f"{activation}+{tail}"


def _drop_set(p: dict) -> str:
    return _repeat(_count(p, "repsPerDrop", 8), _count(p, "drops", 3))


def _cluster_sets(p: dict) -> str:
    return _repeat(_count(p, "repsPerCluster", 3), _count(p, "numClusters", 5))


def _rep_ladder(start_default: int, end_default: int, descending: bool) -> Callable[[dict], str]:
    def generate(p: dict) -> str:
        start = _param(p, "startReps", start_default)
        end = _param(p, "endReps", end_default)
        if str(start).upper() == MAX_REPS or str(end).upper() == MAX_REPS:
            return f"{start}+{end}"
        low, high = sorted(
            (_count(p, "startReps", start_default), _count(p, "endReps", end_default))
        )
        step = _count(p, "step", 2)
        if descending:
            reps = list(range(high, low - 1, -step))
        else:
            reps = list(range(low, high + 1, step))
        if len(reps) < 2:
            reps = [high, low] if descending else [low, high]
        return SchemaCodec.join_schema(reps)

    return generate


def _one_and_half(p: dict) -> str:
    return _repeat(_count(p, "fullReps", 8), _count(p, "sets", 1))


def _no_schema(p: dict) -> str:
    return ""


@dataclass(frozen=True)
class TechniqueDefinition:
    name: str
    kind: TechniqueKind
    description: str = ""
    parameters: tuple[TechniqueParameter, ...] = field(default_factory=tuple)
    generator: Callable[[dict], str] = _no_schema

    def default_params(self) -> dict[str, Any]:
        return {p.name: p.default for p in self.parameters}

    def generate_schema(self, params: dict | None = None) -> str:
        return self.generator(dict(params or {}))


def _p(name: str, label: str, default: Any, lo: float, hi: float) -> TechniqueParameter:
    return TechniqueParameter(name=name, label=label, default=default, min=lo, max=hi)


BUILTIN_TECHNIQUES: dict[Technique, TechniqueDefinition] = {
    Technique.NORMAL: TechniqueDefinition("Normal", TechniqueKind.NORMAL, "Standard execution"),
    Technique.RAMPING: TechniqueDefinition(
        "Ramping", TechniqueKind.NORMAL, "Work up from a starting load in fixed increments"
    ),
    Technique.PERCENTAGE: TechniqueDefinition(
        "Percentage", TechniqueKind.NORMAL, "Loads from a weekly percentage-of-1RM table"
    ),
    Technique.AD_HOC: TechniqueDefinition(
        "Ad-Hoc", TechniqueKind.AD_HOC, "Sets and reps decided while training"
    ),
    Technique.REST_PAUSE: TechniqueDefinition(
        "Rest-Pause",
        TechniqueKind.SPECIAL,
        "Short pauses between mini-sets for partial recovery",
        (
            _p("reps", "Initial reps", 10, 1, 30),
            _p("pause", "Pause (sec)", 15, 5, 60),
            _p("miniSets", "Mini-sets", 3, 2, 5),
        ),
        _rest_pause,
    ),
    Technique.MYO_REPS: TechniqueDefinition(
        "Myo-Reps",
        TechniqueKind.SPECIAL,
        "Activation set followed by mini-sets",
        (
            _p("activation", "Activation reps", 12, 8, 20),
            _p("myoReps", "Reps per myo set", 5, 3, 10),
            _p("numMyo", "Number of myo sets", 4, 2, 6),
        ),
        _myo_reps,
    ),
    Technique.DROP_SET: TechniqueDefinition(
        "Drop-Set",
        TechniqueKind.SPECIAL,
        "Load reduced without rest",
        (
            _p("drops", "Number of drops", 3, 2, 4),
            _p("repsPerDrop", "Reps per drop", 8, 5, 15),
        ),
        _drop_set,
    ),
    Technique.CLUSTER_SETS: TechniqueDefinition(
        "Cluster Sets",
        TechniqueKind.SPECIAL,
        "Small clusters of reps with short pauses",
        (
            _p("repsPerCluster", "Reps per cluster", 3, 1, 5),
            _p("numClusters", "Number of clusters", 5, 3, 8),
            _p("restBetween", "Pause (sec)", 20, 10, 45),
        ),
        _cluster_sets,
    ),
    Technique.DESCENDING_REPS: TechniqueDefinition(
        "Descending Reps",
        TechniqueKind.SPECIAL,
        "Decreasing reps, e.g. 12-10-8-6",
        (
            _p("startReps", "Initial reps", 12, 6, 20),
            _p("endReps", "Final reps", 6, 3, 15),
            _p("step", "Decrement", 2, 1, 4),
        ),
        _rep_ladder(12, 6, descending=True),
    ),
    Technique.ASCENDING_REPS: TechniqueDefinition(
        "Ascending Reps",
        TechniqueKind.SPECIAL,
        "Increasing reps, e.g. 6-8-10-12",
        (
            _p("startReps", "Initial reps", 6, 3, 15),
            _p("endReps", "Final reps", 12, 6, 20),
            _p("step", "Increment", 2, 1, 4),
        ),
        _rep_ladder(6, 12, descending=False),
    ),
    Technique.ONE_AND_HALF_REPS: TechniqueDefinition(
        "1.5 Reps",
        TechniqueKind.SPECIAL,
        "Partial plus full range repetitions",
        (
            _p("fullReps", "Full reps", 8, 4, 12),
            _p("sets", "Sets", 1, 1, 3),
        ),
        _one_and_half,
    ),
}


def custom_schema(technique: CustomTechnique, params: dict | None = None) -> str:
    """Concatenate the ordered parameter values of a custom technique.

    Values join with ``+`` when all are numeric and with ``-`` otherwise, so
    label-style schemes never parse as cluster counts.
    """
    params = params or {}
    values = []
    for p in technique.parameters:
        value = params.get(p.name)
        if _blank(value):
            value = p.default
        if _blank(value):
            continue
        values.append(str(value))
    if all(_is_number(v) for v in values):
        return "+".join(values)
    return "-".join(values)


def _is_number(value: str) -> bool:
    try:
        float(value)
    except ValueError:
        return False
    return True


def canonical_name(name: str) -> str:
    """Return the built-in name for ``name`` or ``name`` unchanged."""
    if name in LEGACY_NAMES:
        return LEGACY_NAMES[name].value
    return name


class TechniqueRegistry:
    """Resolve technique names to their definition."""

    def __init__(self, custom_techniques: Iterable[CustomTechnique | dict] | None = None) -> None:
        self.custom: dict[str, CustomTechnique] = {}
        for item in custom_techniques or []:
            tech = item if isinstance(item, CustomTechnique) else CustomTechnique(**item)
            if tech.name in self._builtin_names():
                raise ValueError(f"custom technique '{tech.name}' shadows a built-in technique")
            self.custom[tech.name] = tech

    @staticmethod
    def _builtin_names() -> set[str]:
        return {t.value for t in Technique} | set(LEGACY_NAMES)

    def resolve(self, name: str | None) -> TechniqueDefinition:
        if not name:
            return BUILTIN_TECHNIQUES[Technique.NORMAL]
        name = canonical_name(name)
        try:
            return BUILTIN_TECHNIQUES[Technique(name)]
        except ValueError:
            pass
        custom = self.custom.get(name)
        if custom is None:
            raise ValueError(f"unknown technique: {name}")
        return TechniqueDefinition(
            custom.name,
            TechniqueKind.CUSTOM,
            custom.description,
            tuple(custom.parameters),
            lambda params: custom_schema(custom, params),
        )

    def kind_of(self, name: str | None) -> TechniqueKind:
        """Return the kind of ``name``; unknown names are treated as custom."""
        try:
            return self.resolve(name).kind
        except ValueError:
            logger.debug("technique %r not registered, assuming custom", name)
            return TechniqueKind.CUSTOM

    def default_params(self, name: str) -> dict[str, Any]:
        return self.resolve(name).default_params()

    def generate_schema(self, name: str, params: dict | None = None) -> str:
        definition = self.resolve(name)
        merged = definition.default_params()
        for key, value in (params or {}).items():
            if not _blank(value):
                merged[key] = value
        return definition.generate_schema(merged)

    def all_names(self) -> list[str]:
        return [t.value for t in Technique] + list(self.custom)
