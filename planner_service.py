from __future__ import annotations

import datetime
import logging
from typing import Iterable, Optional

from algorithms import SchemaCodec
from block_service import BlockService, CustomTechniques
from models import Block, LoggedSession, LoggedSet, Program, Week
from settings_schema import EngineSettings
from stats_service import StatisticsService
from techniques import TechniqueKind, TechniqueRegistry

logger = logging.getLogger(__name__)


def _load_text(value: Optional[float]) -> str:
    return "" if value is None else f"{value:g}"


class PlannerService:
    """Handles conversion of planned blocks to logged sessions and plan edits."""

    def __init__(
        self,
        settings: EngineSettings | None = None,
        block_service: BlockService | None = None,
        stats: StatisticsService | None = None,
    ) -> None:
        self.settings = settings or EngineSettings()
        self.blocks = block_service or BlockService(self.settings)
        self.stats = stats or StatisticsService(self.settings)

    # ------------------------------------------------------------------
    # logging
    # ------------------------------------------------------------------
    def initial_log_sets(
        self, block: Block, custom_techniques: CustomTechniques = None
    ) -> list[LoggedSet]:
        """Return pre-filled sets to log against ``block``."""
        kind = TechniqueRegistry(custom_techniques).kind_of(block.technique)
        block = self.blocks.normalize(block, custom_techniques)
        sets: list[LoggedSet] = []
        if kind == TechniqueKind.AD_HOC:
            for set_num in range(1, block.sets + 1):
                sets.append(LoggedSet(set_num=set_num))
            return sets
        if not kind.uses_clusters:
            targets = self.blocks.set_rep_targets(block, custom_techniques)
            for set_num, (reps, load) in enumerate(zip(targets, block.target_loads), start=1):
                sets.append(LoggedSet(set_num=set_num, reps=reps, load=_load_text(load)))
            return sets
        clusters = SchemaCodec.parse_schema(block.technique_schema)
        if not clusters:
            raise ValueError(f"invalid technique schema: {block.technique_schema!r}")
        for set_num, row in enumerate(block.target_loads_by_cluster or [], start=1):
            for cluster_num, reps in enumerate(clusters, start=1):
                sets.append(
                    LoggedSet(
                        set_num=set_num,
                        cluster_num=cluster_num,
                        reps=str(reps),
                        load=_load_text(row[cluster_num - 1]),
                    )
                )
        return sets

    def _max_effort_sets(self, block: Block, custom_techniques: CustomTechniques) -> list[int]:
        """Set numbers whose rep target is ``MAX``."""
        targets = self.blocks.set_rep_targets(block, custom_techniques)
        return [
            set_num
            for set_num, target in enumerate(targets, start=1)
            if self.blocks.is_max_effort(target)
        ]

    def _derive(
        self,
        session: LoggedSession,
        sets: list[LoggedSet],
        block: Optional[Block],
        custom_techniques: CustomTechniques,
    ) -> LoggedSession:
        metrics = self.stats.session_metrics(sets)
        target = session.target_reps
        max_effort = session.max_effort_sets
        if block is not None:
            target = self.blocks.calculate_target_reps(block, custom_techniques)
            max_effort = self._max_effort_sets(block, custom_techniques)
        # MAX sets count toward totals but not toward completion
        counted = [s for s in sets if s.set_num not in max_effort]
        achieved = self.stats.session_metrics(counted).total_reps
        return session.model_copy(
            update={
                "sets": sets,
                "total_reps": metrics.total_reps,
                "total_tonnage": metrics.total_tonnage,
                "avg_rpe": metrics.avg_rpe,
                "target_reps": target,
                "max_effort_sets": max_effort,
                "completion": self.stats.completion(achieved, target),
            },
            deep=True,
        )

    def create_session(
        self,
        block: Block,
        exercise: str,
        week_num: int,
        sets: Iterable[LoggedSet | dict],
        day_index: int = 0,
        exercise_index: int = 0,
        block_index: int = 0,
        program_id: Optional[int] = None,
        date: Optional[datetime.date] = None,
        session_id: int = 0,
        custom_techniques: CustomTechniques = None,
    ) -> LoggedSession:
        """Build a logged session carrying a snapshot of the prescription."""
        logged = [s if isinstance(s, LoggedSet) else LoggedSet(**s) for s in sets]
        session = LoggedSession(
            id=session_id,
            date=date or datetime.date.today(),
            program_id=program_id,
            week_num=week_num,
            day_index=day_index,
            exercise_index=exercise_index,
            block_index=block_index,
            exercise=exercise,
            technique=block.technique,
            technique_schema=block.technique_schema,
            rep_range=block.rep_range,
            coefficient=block.coefficient,
            target_loads=block.target_loads,
            target_loads_by_cluster=block.target_loads_by_cluster,
            target_rpe=block.target_rpe,
            block_rest=block.block_rest,
        )
        session = self._derive(session, logged, block, custom_techniques)
        logger.debug(
            "logged %s week %s: %s/%s reps",
            exercise,
            week_num,
            session.total_reps,
            session.target_reps,
        )
        return session

    def edit_session(
        self,
        session: LoggedSession,
        sets: Iterable[LoggedSet | dict],
        block: Optional[Block] = None,
        custom_techniques: CustomTechniques = None,
    ) -> LoggedSession:
        """Replace the sets of ``session`` and recompute its derived fields.

        Without ``block`` the stored target and ``MAX`` set numbers are kept.
        """
        logged = [s if isinstance(s, LoggedSet) else LoggedSet(**s) for s in sets]
        return self._derive(session, logged, block, custom_techniques)

    @staticmethod
    def delete_program_sessions(
        sessions: Iterable[LoggedSession], program_id: int
    ) -> list[LoggedSession]:
        return [s for s in sessions if s.program_id != program_id]

    # ------------------------------------------------------------------
    # plan editing
    # ------------------------------------------------------------------
    @staticmethod
    def add_week(weeks: dict[int, Week], week_num: Optional[int] = None) -> dict[int, Week]:
        if week_num is None:
            week_num = max(weeks, default=0) + 1
        if week_num in weeks:
            raise ValueError(f"week {week_num} already exists")
        result = {num: w.model_copy(deep=True) for num, w in weeks.items()}
        result[week_num] = Week()
        return result

    @staticmethod
    def duplicate_week(weeks: dict[int, Week], week_num: int) -> tuple[dict[int, Week], int]:
        """Copy ``week_num`` to a new week after the last one."""
        if week_num not in weeks:
            raise ValueError(f"week {week_num} does not exist")
        new_num = max(weeks) + 1
        result = {num: w.model_copy(deep=True) for num, w in weeks.items()}
        result[new_num] = weeks[week_num].model_copy(deep=True)
        return result, new_num

    @staticmethod
    def duplicate_program(program: Program, new_id: int, name: Optional[str] = None) -> Program:
        return program.model_copy(
            update={"id": new_id, "name": name or f"{program.name} (copy)"},
            deep=True,
        )
