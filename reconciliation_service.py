"""Match logged sessions back to the blocks that prescribed them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from algorithms import MathTools, SchemaCodec
from block_service import BlockService
from models import Block, LoggedSession, Week, WeekRemap
from settings_schema import EngineSettings
from techniques import TechniqueKind, TechniqueRegistry, canonical_name

logger = logging.getLogger(__name__)


@dataclass
class SetComparison:
    set_num: int
    cluster_num: int
    target_reps: str
    target_load: Optional[float]
    reps: str
    load: str
    rpe: str
    source: str


def _num(value: Optional[float]) -> str:
    if value is None:
        return "?"
    return f"{value:g}"


class ReconciliationService:
    def __init__(self, settings: EngineSettings | None = None) -> None:
        self.settings = settings or EngineSettings()
        self.blocks = BlockService(self.settings)
        self.registry = TechniqueRegistry()

    @staticmethod
    def map_week(week_num: int, remap: Optional[WeekRemap] = None) -> int:
        """Return the plan week a logged week number refers to."""
        if remap is None or week_num < remap.offset:
            return week_num
        return (week_num - remap.offset) % remap.cycle_length + 1

    def find_original_block(
        self,
        session: LoggedSession,
        program_weeks: dict[int, Week],
        remap: Optional[WeekRemap] = None,
    ) -> Optional[Block]:
        """Locate the planned block a session was logged against.

        Within the session's day the exercise at ``exercise_index`` wins when it
        carries the same name, then the first exercise with that name; other
        days are scanned last.
        """
        week = program_weeks.get(self.map_week(session.week_num, remap))
        if week is None:
            logger.debug("week %s of %r not in plan", session.week_num, session.exercise)
            return None
        candidates = []
        if 0 <= session.day_index < len(week.days):
            day = week.days[session.day_index]
            if 0 <= session.exercise_index < len(day.exercises):
                candidates.append(day.exercises[session.exercise_index])
            candidates.extend(day.exercises)
        for day in week.days:
            candidates.extend(day.exercises)
        for exercise in candidates:
            if exercise.exercise_name == session.exercise:
                return self.blocks.get_block(exercise, session.block_index)
        logger.debug("no planned block for %r in week %s", session.exercise, session.week_num)
        return None

    @staticmethod
    def group_sessions_by_block(
        sessions: Iterable[LoggedSession],
    ) -> list[list[LoggedSession]]:
        """Group sessions of one exercise slot on one day, blocks in order."""
        groups: dict[tuple[str, int, int], list[LoggedSession]] = {}
        for s in sessions:
            groups.setdefault((s.exercise, s.day_index, s.week_num), []).append(s)
        return [sorted(group, key=lambda s: s.block_index) for group in groups.values()]

    # ------------------------------------------------------------------
    def _kind(self, technique: str) -> TechniqueKind:
        return self.registry.kind_of(technique)

    def _covers(self, block: Block, set_num: int, cluster_num: int) -> bool:
        """Whether ``block`` still prescribes the given set and cluster."""
        if not 0 < set_num <= block.sets:
            return False
        if self._kind(block.technique).uses_clusters:
            return 0 < cluster_num <= SchemaCodec.cluster_count(block.technique_schema)
        return cluster_num == 1

    def _block_target(
        self, block: Block, set_num: int, cluster_num: int
    ) -> tuple[str, Optional[float]]:
        if self._kind(block.technique).uses_clusters:
            clusters = SchemaCodec.parse_schema(block.technique_schema)
            reps = str(clusters[cluster_num - 1]) if 0 < cluster_num <= len(clusters) else ""
        else:
            targets = self.blocks.set_rep_targets(block)
            reps = targets[set_num - 1] if 0 < set_num <= len(targets) else block.reps_base
        return reps, self._lookup_load(
            block.target_loads, block.target_loads_by_cluster, set_num, cluster_num
        )

    def _snapshot_target(
        self, session: LoggedSession, set_num: int, cluster_num: int
    ) -> tuple[str, Optional[float]]:
        clusters = SchemaCodec.parse_schema(session.technique_schema)
        if clusters:
            reps = str(clusters[cluster_num - 1]) if 0 < cluster_num <= len(clusters) else ""
        else:
            count = len({s.set_num for s in session.sets})
            reps = str(session.target_reps // count) if session.target_reps > 0 and count else ""
        return reps, self._lookup_load(
            session.target_loads, session.target_loads_by_cluster, set_num, cluster_num
        )

    @staticmethod
    def _lookup_load(
        loads: Sequence[float],
        rows: Optional[Sequence[Sequence[float]]],
        set_num: int,
        cluster_num: int,
    ) -> Optional[float]:
        if rows:
            row = rows[set_num - 1] if 0 < set_num <= len(rows) else rows[-1]
            if row:
                return row[cluster_num - 1] if 0 < cluster_num <= len(row) else row[0]
        if loads:
            return loads[set_num - 1] if 0 < set_num <= len(loads) else loads[-1]
        return None

    def compare_sets(
        self, session: LoggedSession, block: Optional[Block] = None
    ) -> list[SetComparison]:
        """Pair every logged set with its prescribed reps and load.

        Targets come from ``block`` when given. Sets the block no longer
        prescribes, or every set when there is no block, use the prescription
        snapshot stored on the session.
        """
        rows = []
        for s in sorted(session.sets, key=lambda x: (x.set_num, x.cluster_num)):
            if block is not None and self._covers(block, s.set_num, s.cluster_num):
                reps, load = self._block_target(block, s.set_num, s.cluster_num)
                source = "program"
            else:
                reps, load = self._snapshot_target(session, s.set_num, s.cluster_num)
                source = "snapshot"
            rows.append(
                SetComparison(
                    set_num=s.set_num,
                    cluster_num=s.cluster_num,
                    target_reps=reps,
                    target_load=load,
                    reps=s.reps,
                    load=s.load,
                    rpe=s.rpe,
                    source=source,
                )
            )
        return rows

    @staticmethod
    def format_comparison(row: SetComparison) -> str:
        actual_load = MathTools.to_float(row.load, None)
        text = (
            f"{row.target_reps or '?'}x{_num(row.target_load)} → "
            f"{row.reps or '?'}x{_num(actual_load)}"
        )
        if row.rpe:
            text += f" @{row.rpe}"
        return text

    # ------------------------------------------------------------------
    def filter_normal(
        self,
        sessions: Iterable[LoggedSession],
        program_weeks: dict[int, Week],
        sets: int,
        reps: int,
        remap: Optional[WeekRemap] = None,
    ) -> list[LoggedSession]:
        """Sessions whose planned block was a plain ``sets x reps`` prescription."""
        matched = []
        for s in sessions:
            block = self.find_original_block(s, program_weeks, remap)
            if block is None or canonical_name(block.technique) != "Normal":
                continue
            if block.sets == sets and MathTools.to_float(block.reps_base) == reps:
                matched.append(s)
        return sorted(matched, key=lambda s: s.date)

    def filter_special(
        self,
        sessions: Iterable[LoggedSession],
        program_weeks: dict[int, Week],
        technique: str,
        total_sets: int,
        reps_per_cluster: Sequence[int],
        allow_variants: bool = False,
        remap: Optional[WeekRemap] = None,
    ) -> list[LoggedSession]:
        """Sessions whose planned block used ``technique`` with the given clusters.

        With ``allow_variants`` each cluster may differ by one rep.
        """
        tolerance = 1 if allow_variants else 0
        wanted = canonical_name(technique)
        matched = []
        for s in sessions:
            block = self.find_original_block(s, program_weeks, remap)
            if block is None or canonical_name(block.technique) != wanted:
                continue
            if block.sets != total_sets:
                continue
            clusters = SchemaCodec.parse_schema(block.technique_schema)
            if not clusters or len(clusters) != len(reps_per_cluster):
                continue
            if all(abs(a - b) <= tolerance for a, b in zip(clusters, reps_per_cluster)):
                matched.append(s)
        return sorted(matched, key=lambda s: s.date)
