from __future__ import annotations

import logging
from dataclasses import dataclass, field

from algorithms import MathTools
from block_service import BlockService
from models import (
    Block,
    Day,
    PercentageProgression,
    Week,
)
from settings_schema import EngineSettings

logger = logging.getLogger(__name__)


@dataclass
class ExpandedBlock:
    sets: int
    reps: int
    percentage: float
    load_kg: float


@dataclass
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)


class ProgressionService:
    """Expand percentage-of-1RM progressions into concrete loads."""

    def __init__(self, settings: EngineSettings | None = None) -> None:
        self.settings = settings or EngineSettings()
        self.blocks = BlockService(self.settings)

    def load_for_percentage(self, one_rep_max: float, percentage: float) -> float:
        """Return the load for ``percentage`` % of ``one_rep_max``."""
        return MathTools.percentage_of(
            one_rep_max, percentage, self.settings.load_increment
        )

    def default_progression(self, one_rep_max: float = 100.0) -> PercentageProgression:
        return PercentageProgression.default(one_rep_max)

    def expand_progression(
        self, progression: PercentageProgression
    ) -> dict[int, list[ExpandedBlock]]:
        expanded: dict[int, list[ExpandedBlock]] = {}
        for week in sorted(progression.weeks, key=lambda w: w.week_number):
            expanded[week.week_number] = [
                ExpandedBlock(
                    sets=b.sets,
                    reps=b.reps,
                    percentage=b.percentage,
                    load_kg=self.load_for_percentage(progression.one_rep_max, b.percentage),
                )
                for b in week.blocks
            ]
        return expanded

    def validate_progression(self, progression: PercentageProgression) -> ValidationResult:
        errors: list[str] = []
        if progression.one_rep_max <= 0:
            errors.append("one-rep max must be positive")
        seen: set[int] = set()
        for week in progression.weeks:
            num = week.week_number
            if num < 1:
                errors.append(f"week {num}: week number must be at least 1")
            if num in seen:
                errors.append(f"week {num}: duplicate week number")
            seen.add(num)
            if not week.blocks:
                errors.append(f"week {num}: no blocks")
            for idx, block in enumerate(week.blocks, start=1):
                if not 0 < block.percentage <= 100:
                    errors.append(
                        f"week {num} block {idx}: percentage {block.percentage:g} outside (0, 100]"
                    )
                if block.sets < 1:
                    errors.append(f"week {num} block {idx}: sets must be at least 1")
                if block.reps < 1:
                    errors.append(f"week {num} block {idx}: reps must be at least 1")
        return ValidationResult(valid=not errors, errors=errors)

    # ------------------------------------------------------------------
    def _find_template(
        self, weeks: dict[int, Week], day_index: int, exercise_index: int
    ) -> Day:
        for num in sorted(weeks):
            days = weeks[num].days
            if day_index < len(days) and exercise_index < len(days[day_index].exercises):
                return days[day_index]
        raise ValueError(
            f"no exercise at day {day_index}, position {exercise_index} in any week"
        )

    def _apply_week(
        self,
        block: Block,
        expanded: list[ExpandedBlock],
        progression: PercentageProgression,
    ) -> Block:
        reps: list[str] = []
        loads: list[float] = []
        for item in expanded:
            reps.extend([str(item.reps)] * item.sets)
            loads.extend([item.load_kg] * item.sets)
        uniform = len(set(reps)) <= 1
        return block.model_copy(
            update={
                "technique": "Percentage",
                "sets": len(reps),
                "reps_base": reps[0] if reps else block.reps_base,
                "target_reps": None if uniform else reps,
                "target_loads": loads,
                "target_loads_by_cluster": None,
                "technique_schema": "",
                "technique_params": {},
                "percentage_progression": progression,
            },
            deep=True,
        )

    def apply_to_all_weeks(
        self,
        progression: PercentageProgression,
        program_weeks: dict[int, Week],
        day_index: int,
        exercise_index: int,
        block_index: int = 0,
    ) -> dict[int, Week]:
        """Write each progression week into the addressed block of the plan.

        Overwrites the block's sets, reps and loads in every week named by the
        progression.  Missing weeks are created empty; missing days and exercise
        slots are filled from the first week that already holds the exercise.
        Weeks not in the progression are returned unchanged.
        """
        result = self.validate_progression(progression)
        if not result.valid:
            raise ValueError("; ".join(result.errors))
        weeks = {num: week.model_copy(deep=True) for num, week in program_weeks.items()}
        template_day = self._find_template(weeks, day_index, exercise_index).model_copy(
            deep=True
        )
        template = self.blocks.migrate_exercise(template_day.exercises[exercise_index])
        if block_index >= len(template.blocks):
            raise ValueError(f"exercise has no block {block_index}")
        for num, expanded in self.expand_progression(progression).items():
            week = weeks.setdefault(num, Week())
            if num not in program_weeks:
                logger.debug("creating week %s for progression", num)
            while len(week.days) < day_index:
                week.days.append(Day(name=f"Day {len(week.days) + 1}"))
            if len(week.days) == day_index:
                week.days.append(Day(name=template_day.name))
            exercises = week.days[day_index].exercises
            while len(exercises) <= exercise_index:
                exercises.append(template_day.exercises[len(exercises)].model_copy(deep=True))
            exercise = self.blocks.migrate_exercise(exercises[exercise_index])
            while len(exercise.blocks) <= block_index:
                exercise.blocks.append(
                    template.blocks[len(exercise.blocks)].model_copy(deep=True)
                )
            exercise.blocks[block_index] = self._apply_week(
                exercise.blocks[block_index], expanded, progression
            )
            exercises[exercise_index] = exercise
        return weeks
