from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from algorithms import MathTools, SchemaCodec
from models import (
    Block,
    ExerciseType,
    PercentageProgression,
    ProgramExercise,
)
from settings_schema import EngineSettings
from techniques import (
    MAX_REPS,
    CustomTechnique,
    TechniqueKind,
    TechniqueRegistry,
    TechniqueDefinition,
    canonical_name,
)

logger = logging.getLogger(__name__)

CustomTechniques = Optional[Iterable[CustomTechnique | dict]]

_LEGACY_FIELDS = (
    "sets",
    "reps_base",
    "rep_range",
    "target_loads",
    "target_rpe",
    "technique",
    "technique_schema",
    "technique_params",
    "coefficient",
    "rest",
    "duration",
)


def _fmt(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


class BlockService:
    """Authoritative transforms for a single block of prescribed work.

    Every change to a block's set count or cluster structure goes through
    :meth:`resize` so that ``target_loads`` / ``target_loads_by_cluster`` stay
    consistent with ``sets`` and the schema.
    """

    _TRANSITIONS = {
        (TechniqueKind.NORMAL, TechniqueKind.NORMAL): "_to_normal",
        (TechniqueKind.NORMAL, TechniqueKind.SPECIAL): "_to_clusters",
        (TechniqueKind.NORMAL, TechniqueKind.CUSTOM): "_to_clusters",
        (TechniqueKind.NORMAL, TechniqueKind.AD_HOC): "_to_ad_hoc",
        (TechniqueKind.SPECIAL, TechniqueKind.NORMAL): "_to_normal",
        (TechniqueKind.SPECIAL, TechniqueKind.SPECIAL): "_to_clusters",
        (TechniqueKind.SPECIAL, TechniqueKind.CUSTOM): "_to_clusters",
        (TechniqueKind.SPECIAL, TechniqueKind.AD_HOC): "_to_ad_hoc",
        (TechniqueKind.CUSTOM, TechniqueKind.NORMAL): "_to_normal",
        (TechniqueKind.CUSTOM, TechniqueKind.SPECIAL): "_to_clusters",
        (TechniqueKind.CUSTOM, TechniqueKind.CUSTOM): "_to_clusters",
        (TechniqueKind.CUSTOM, TechniqueKind.AD_HOC): "_to_ad_hoc",
        (TechniqueKind.AD_HOC, TechniqueKind.NORMAL): "_to_normal",
        (TechniqueKind.AD_HOC, TechniqueKind.SPECIAL): "_to_clusters",
        (TechniqueKind.AD_HOC, TechniqueKind.CUSTOM): "_to_clusters",
    }

    def __init__(self, settings: EngineSettings | None = None) -> None:
        self.settings = settings or EngineSettings()

    # ------------------------------------------------------------------
    # resizing
    # ------------------------------------------------------------------
    @staticmethod
    def _fit(values: list, count: int, default: Any) -> list:
        """Truncate ``values`` or pad them with their last element."""
        values = list(values)
        if len(values) >= count:
            return values[:count]
        fill = values[-1] if values else default
        return values + [fill] * (count - len(values))

    def _fit_matrix(self, block: Block, count: int) -> list[list[float]]:
        clusters = SchemaCodec.cluster_count(block.technique_schema)
        rows = block.target_loads_by_cluster
        if not rows:
            rows = [[load] * clusters for load in block.target_loads]
        rows = [self._fit(row, clusters, self.settings.default_load) for row in rows]
        if len(rows) >= count:
            return rows[:count]
        last = rows[-1] if rows else [self.settings.default_load] * clusters
        return rows + [list(last) for _ in range(count - len(rows))]

    def _resize(self, block: Block, count: int, kind: TechniqueKind) -> Block:
        if count < 0:
            raise ValueError("set count must be non-negative")
        if kind.uses_clusters:
            matrix = self._fit_matrix(block, count)
            return block.model_copy(
                update={
                    "sets": count,
                    "target_loads_by_cluster": matrix,
                    "target_loads": [row[0] for row in matrix],
                },
                deep=True,
            )
        update: dict[str, Any] = {
            "sets": count,
            "target_loads": self._fit(block.target_loads, count, self.settings.default_load),
        }
        if block.target_reps is not None:
            update["target_reps"] = self._fit(
                block.target_reps, count, block.reps_base or self.settings.default_reps
            )
        return block.model_copy(update=update, deep=True)

    def resize(
        self, block: Block, new_set_count: int, custom_techniques: CustomTechniques = None
    ) -> Block:
        """Return ``block`` with ``new_set_count`` sets and consistent loads."""
        kind = TechniqueRegistry(custom_techniques).kind_of(block.technique)
        return self._resize(block, new_set_count, kind)

    def normalize(self, block: Block, custom_techniques: CustomTechniques = None) -> Block:
        """Restore the load invariants for the block's current set count."""
        return self.resize(block, max(block.sets, 0), custom_techniques)

    # ------------------------------------------------------------------
    # technique transitions
    # ------------------------------------------------------------------
    def apply_technique_change(
        self,
        block: Block,
        new_technique: str,
        custom_techniques: CustomTechniques = None,
    ) -> Block:
        registry = TechniqueRegistry(custom_techniques)
        target = registry.resolve(new_technique)
        if canonical_name(block.technique or "") == target.name:
            return block.model_copy(deep=True)
        source = registry.kind_of(block.technique)
        handler = self._TRANSITIONS.get((source, target.kind))
        if handler is None:
            raise ValueError(
                f"cannot switch from {block.technique!r} to {target.name!r}"
            )
        logger.debug("technique %s -> %s via %s", block.technique, target.name, handler)
        return getattr(self, handler)(block, target, source)

    def _to_clusters(self, block: Block, target: TechniqueDefinition, source: TechniqueKind) -> Block:
        params = target.default_params()
        schema = target.generate_schema(params)
        clusters = SchemaCodec.cluster_count(schema)
        matrix = [[load] * clusters for load in block.target_loads] or None
        updated = block.model_copy(
            update={
                "technique": target.name,
                "reps_base": "",
                "rep_range": None,
                "target_reps": None,
                "technique_params": params,
                "technique_schema": schema,
                "target_loads_by_cluster": matrix,
                "percentage_progression": None,
                "start_load": None,
                "increment": None,
            },
            deep=True,
        )
        return self._resize(updated, block.sets or 1, target.kind)

    def _to_normal(self, block: Block, target: TechniqueDefinition, source: TechniqueKind) -> Block:
        keep_reps = source == TechniqueKind.NORMAL and block.reps_base != ""
        update: dict[str, Any] = {
            "technique": target.name,
            "technique_schema": "",
            "technique_params": {},
            "target_loads_by_cluster": None,
            "reps_base": block.reps_base if keep_reps else self.settings.default_reps,
            "rep_range": block.rep_range or self.settings.default_rep_range,
            "target_reps": block.target_reps if keep_reps else None,
            "percentage_progression": None,
            "start_load": None,
            "increment": None,
        }
        if target.name == "Ramping":
            first = block.target_loads[0] if block.target_loads else self.settings.default_load
            update["start_load"] = block.start_load if block.start_load is not None else first
            update["increment"] = (
                block.increment if block.increment is not None else self.settings.default_increment
            )
        elif target.name == "Percentage":
            update["percentage_progression"] = (
                block.percentage_progression or PercentageProgression.default()
            )
        updated = block.model_copy(update=update, deep=True)
        return self._resize(updated, block.sets or 1, target.kind)

    def _to_ad_hoc(self, block: Block, target: TechniqueDefinition, source: TechniqueKind) -> Block:
        updated = block.model_copy(
            update={
                "technique": target.name,
                "reps_base": "",
                "rep_range": None,
                "target_reps": None,
                "technique_schema": "",
                "technique_params": {},
                "target_loads_by_cluster": None,
                "percentage_progression": None,
                "start_load": None,
                "increment": None,
            },
            deep=True,
        )
        return self._resize(updated, block.sets, target.kind)

    def update_technique_params(
        self,
        block: Block,
        params: dict[str, Any],
        custom_techniques: CustomTechniques = None,
    ) -> Block:
        """Store new technique parameters and reshape loads to the new schema."""
        registry = TechniqueRegistry(custom_techniques)
        definition = registry.resolve(block.technique)
        if not definition.kind.uses_clusters:
            return block.model_copy(update={"technique_params": dict(params)}, deep=True)
        schema = registry.generate_schema(block.technique, params)
        updated = block.model_copy(
            update={"technique_params": dict(params), "technique_schema": schema},
            deep=True,
        )
        return self._resize(updated, updated.sets, definition.kind)

    def set_loads(
        self,
        block: Block,
        loads: list[float] | list[list[float]],
        custom_techniques: CustomTechniques = None,
    ) -> Block:
        """Replace the block's target loads.

        Missing, non-numeric or non-positive entries fall back to the
        default load before the invariants are restored.
        """

        def clean(value: Any) -> float:
            number = MathTools.to_float(value, 0.0)
            return number if number > 0 else self.settings.default_load

        kind = TechniqueRegistry(custom_techniques).kind_of(block.technique)
        if kind.uses_clusters:
            rows = [[clean(v) for v in (row if isinstance(row, list) else [row])] for row in loads]
            updated = block.model_copy(update={"target_loads_by_cluster": rows}, deep=True)
        else:
            updated = block.model_copy(update={"target_loads": [clean(v) for v in loads]}, deep=True)
        return self._resize(updated, updated.sets, kind)

    # ------------------------------------------------------------------
    # targets
    # ------------------------------------------------------------------
    def set_rep_targets(self, block: Block, custom_techniques: CustomTechniques = None) -> list[str]:
        """Return the per-set rep target text for flat techniques."""
        kind = TechniqueRegistry(custom_techniques).kind_of(block.technique)
        if kind != TechniqueKind.NORMAL:
            return []
        if block.target_reps:
            return self._fit(block.target_reps, block.sets, block.reps_base)
        return [block.reps_base] * block.sets

    @staticmethod
    def is_max_effort(reps: str | None) -> bool:
        return str(reps or "").strip().upper() == MAX_REPS

    def calculate_target_reps(
        self, block: Block, custom_techniques: CustomTechniques = None
    ) -> int:
        kind = TechniqueRegistry(custom_techniques).kind_of(block.technique)
        if kind == TechniqueKind.AD_HOC:
            return 0
        if kind.uses_clusters:
            return block.sets * SchemaCodec.reps_per_set(block.technique_schema)
        return sum(MathTools.to_int(r) for r in self.set_rep_targets(block, custom_techniques))

    # ------------------------------------------------------------------
    # construction & migration
    # ------------------------------------------------------------------
    def default_block(self, exercise_type: ExerciseType | str = ExerciseType.RESISTANCE) -> Block:
        if ExerciseType(exercise_type) == ExerciseType.CARDIO:
            return Block(
                sets=0,
                reps_base="",
                rep_range=None,
                target_rpe=None,
                duration=30,
            )
        return Block(
            rest=self.settings.default_rest,
            sets=3,
            reps_base=self.settings.default_reps,
            rep_range=self.settings.default_rep_range,
            target_loads=[self.settings.default_load] * 3,
            target_rpe=self.settings.default_rpe,
        )

    def migrate_exercise(self, exercise: ProgramExercise) -> ProgramExercise:
        """Fold the legacy single-block fields of ``exercise`` into ``blocks``."""
        if exercise.blocks:
            return exercise.model_copy(deep=True)
        base = self.default_block(exercise.exercise_type)
        legacy = {
            name: getattr(exercise, name)
            for name in _LEGACY_FIELDS
            if getattr(exercise, name) is not None
        }
        if "technique" in legacy:
            legacy["technique"] = canonical_name(legacy["technique"])
        block = base.model_copy(update=legacy, deep=True)
        if exercise.exercise_type != ExerciseType.CARDIO:
            block = self.normalize(block)
        cleared = {name: None for name in _LEGACY_FIELDS}
        cleared["blocks"] = [block]
        return exercise.model_copy(update=cleared, deep=True)

    def get_blocks(self, exercise: ProgramExercise) -> list[Block]:
        return self.migrate_exercise(exercise).blocks

    def get_block(self, exercise: ProgramExercise, block_index: int = 0) -> Optional[Block]:
        blocks = self.get_blocks(exercise)
        if 0 <= block_index < len(blocks):
            return blocks[block_index]
        return None

    # ------------------------------------------------------------------
    # summaries
    # ------------------------------------------------------------------
    def describe_schema(self, block: Block) -> str:
        """Return a compact prescription such as ``3 x 10`` or ``4 x 10+10+10``."""
        technique = canonical_name(block.technique or "Normal")
        if technique == "Ramping":
            start = _fmt(block.start_load) if block.start_load is not None else "?"
            inc = f"+{_fmt(block.increment)}" if block.increment else ""
            return f"Ramping {block.reps_base or '?'}@{start}{inc}"
        if technique == "Percentage" and block.percentage_progression:
            weeks = block.percentage_progression.weeks
            if weeks and weeks[0].blocks:
                first = weeks[0].blocks[0]
                return f"{first.sets}x{first.reps} @{_fmt(first.percentage)}%"
        if technique == "Normal":
            if block.target_reps:
                return f"{block.sets} x {'-'.join(block.target_reps)}"
            return f"{block.sets} x {block.reps_base or '?'}"
        if block.technique_schema:
            return f"{block.sets} x {block.technique_schema}"
        return f"{block.sets} x {block.reps_base or '?'}"

    def describe_loads(self, block: Block) -> str:
        technique = canonical_name(block.technique or "Normal")
        if technique == "Ramping":
            return _fmt(block.start_load) if block.start_load is not None else "-"
        if technique == "Percentage" and block.percentage_progression:
            return f"1RM: {_fmt(block.percentage_progression.one_rep_max)}kg"
        if technique != "Normal" and block.target_loads_by_cluster:
            return " • ".join(
                "/".join(_fmt(load) for load in row) for row in block.target_loads_by_cluster
            )
        if block.target_loads:
            unique = list(dict.fromkeys(block.target_loads))
            if len(unique) == 1:
                return f"{_fmt(unique[0])} kg"
            return "-".join(_fmt(load) for load in block.target_loads) + " kg"
        return "-"
