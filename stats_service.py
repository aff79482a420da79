from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

import pandas as pd

from algorithms import MathTools
from block_service import BlockService
from exercise_library import ExerciseLibrary
from localization import translator
from models import LoggedSession, LoggedSet, Week
from settings_schema import EngineSettings

logger = logging.getLogger(__name__)


@dataclass
class SessionMetrics:
    total_reps: int
    total_tonnage: float
    avg_rpe: float


@dataclass
class CompletionStatus:
    color: str
    label: str


@dataclass
class PlannedVolume:
    total: float
    by_muscle: dict[str, float] = field(default_factory=dict)
    estimated_rpe: float = 0.0


@dataclass
class LoadTrend:
    direction: str
    change: float

    @property
    def label(self) -> str:
        if self.direction == "flat":
            return "~"
        return f"{self.change:+.1f}%"


class StatisticsService:
    """Compute workout statistics from logged sessions and plans."""

    STATUS_THRESHOLDS = (
        (95.0, "green", "Completed"),
        (85.0, "yellow", "Almost completed"),
        (70.0, "orange", "Partial"),
    )
    TREND_BAND = 5.0

    def __init__(self, settings: EngineSettings | None = None) -> None:
        self.settings = settings or EngineSettings()
        self.blocks = BlockService(self.settings)

    # ------------------------------------------------------------------
    # single session
    # ------------------------------------------------------------------
    @staticmethod
    def session_metrics(sets: Iterable[LoggedSet | dict]) -> SessionMetrics:
        """Aggregate reps, tonnage and average RPE over logged sets.

        Unparseable reps, loads or RPE count as zero.  RPE is averaged only
        over positive values.
        """
        total_reps = 0
        tonnage = 0.0
        rpes: list[float] = []
        for item in sets:
            s = item if isinstance(item, LoggedSet) else LoggedSet(**item)
            reps = MathTools.to_int(s.reps)
            total_reps += reps
            tonnage += reps * MathTools.to_float(s.load)
            rpe = MathTools.to_float(s.rpe)
            if rpe > 0:
                rpes.append(rpe)
        return SessionMetrics(
            total_reps=total_reps,
            total_tonnage=round(tonnage, 1),
            avg_rpe=round(MathTools.mean(rpes), 1),
        )

    @staticmethod
    def completion(total_reps: float, target_reps: float) -> float:
        """Return achieved reps as a percentage of target, 0 without a target."""
        if target_reps <= 0:
            return 0.0
        return total_reps / target_reps * 100

    def completion_status(self, completion: float) -> CompletionStatus:
        for threshold, color, label in self.STATUS_THRESHOLDS:
            if completion >= threshold:
                return CompletionStatus(color, translator.gettext(label))
        return CompletionStatus("red", translator.gettext("Incomplete"))

    @staticmethod
    def sets_count(session: LoggedSession) -> int:
        """Number of logged entries; each cluster of a special set counts once."""
        return len(session.sets)

    # ------------------------------------------------------------------
    # muscle volume
    # ------------------------------------------------------------------
    def session_muscle_volume(
        self, session: LoggedSession, library: ExerciseLibrary
    ) -> dict[str, float]:
        entry = library.get(session.exercise)
        if entry is None:
            logger.warning("no muscle distribution for %r, volume skipped", session.exercise)
            return {}
        volume = self.sets_count(session) * session.coefficient
        return {m.muscle: volume * m.percent / 100 for m in entry.muscles}

    def volume_by_muscle(
        self, sessions: Iterable[LoggedSession], library: ExerciseLibrary
    ) -> dict[str, float]:
        totals: dict[str, float] = {}
        for session in sessions:
            for muscle, volume in self.session_muscle_volume(session, library).items():
                totals[muscle] = totals.get(muscle, 0.0) + volume
        return totals

    @staticmethod
    def chronological_weeks(
        sessions: Iterable[LoggedSession],
    ) -> dict[tuple[Optional[int], int], int]:
        """Number every logged ``(program_id, week_num)`` by its first log date.

        Ties on the first date are ordered by program then week.
        """
        first: dict[tuple[Optional[int], int], datetime.date] = {}
        for s in sessions:
            key = (s.program_id, s.week_num)
            if key not in first or s.date < first[key]:
                first[key] = s.date
        ordered = sorted(
            first,
            key=lambda k: (first[k], k[0] if k[0] is not None else -1, k[1]),
        )
        return {key: idx for idx, key in enumerate(ordered, start=1)}

    def volume_by_week_and_muscle(
        self, sessions: Iterable[LoggedSession], library: ExerciseLibrary
    ) -> pd.DataFrame:
        """Return a ``week`` x ``muscle`` volume table in chronological order."""
        sessions = list(sessions)
        mapping = self.chronological_weeks(sessions)
        rows = []
        for s in sessions:
            week = mapping[(s.program_id, s.week_num)]
            for muscle, volume in self.session_muscle_volume(s, library).items():
                rows.append({"week": week, "muscle": muscle, "volume": volume})
        if not rows:
            return pd.DataFrame(columns=["week", "muscle", "volume"])
        df = pd.DataFrame(rows)
        grouped = df.groupby(["week", "muscle"], as_index=False)["volume"].sum()
        return grouped.sort_values(["week", "muscle"]).reset_index(drop=True)

    @staticmethod
    def estimated_rpe(coefficient: float) -> float:
        if coefficient <= 0.7:
            return 5.5
        if coefficient <= 0.9:
            return 7.5
        if coefficient <= 1.0:
            return 8.5
        return 10.0

    def planned_week_volume(self, week: Optional[Week], library: ExerciseLibrary) -> PlannedVolume:
        """Volume a planned week prescribes, from sets and coefficients only."""
        if week is None:
            return PlannedVolume(total=0.0)
        total = 0.0
        by_muscle: dict[str, float] = {}
        rpes: list[float] = []
        for day in week.days:
            for exercise in day.exercises:
                entry = library.get(exercise.exercise_name)
                for block in self.blocks.get_blocks(exercise):
                    volume = block.sets * block.coefficient
                    total += volume
                    rpes.append(self.estimated_rpe(block.coefficient))
                    if entry is None:
                        continue
                    for share in entry.muscles:
                        by_muscle[share.muscle] = (
                            by_muscle.get(share.muscle, 0.0) + volume * share.percent / 100
                        )
        return PlannedVolume(
            total=round(total, 1),
            by_muscle=by_muscle,
            estimated_rpe=MathTools.mean(rpes),
        )

    # ------------------------------------------------------------------
    # history
    # ------------------------------------------------------------------
    @staticmethod
    def tonnage_by_week(sessions: Iterable[LoggedSession]) -> dict[int, float]:
        df = pd.DataFrame(
            [{"week": s.week_num, "tonnage": s.total_tonnage} for s in sessions],
            columns=["week", "tonnage"],
        )
        if df.empty:
            return {}
        totals = df.groupby("week")["tonnage"].sum().sort_index()
        return {int(week): float(round(value)) for week, value in totals.items()}

    @staticmethod
    def rpe_over_time(sessions: Iterable[LoggedSession]) -> list[dict]:
        """Sessions with a recorded RPE, oldest first."""
        rated = sorted((s for s in sessions if s.avg_rpe > 0), key=lambda s: s.date)
        return [
            {
                "date": s.date.isoformat(),
                "exercise": s.exercise,
                "rpe": s.avg_rpe,
                "reps": f"{s.total_reps}/{s.target_reps}",
            }
            for s in rated
        ]

    @staticmethod
    def _average_tonnage(sessions: list[LoggedSession]) -> float:
        total = 0.0
        for s in sessions:
            total += MathTools.tonnage(
                (MathTools.to_float(x.reps), MathTools.to_float(x.load)) for x in s.sets
            )
        return total / len(sessions)

    def load_trend(
        self, current: Iterable[LoggedSession], previous: Iterable[LoggedSession]
    ) -> Optional[LoadTrend]:
        """Compare average session tonnage between two groups of sessions."""
        current, previous = list(current), list(previous)
        if not current or not previous:
            return None
        before = self._average_tonnage(previous)
        if before == 0:
            return None
        change = MathTools.percent_change(self._average_tonnage(current), before)
        if change > self.TREND_BAND:
            return LoadTrend("up", change)
        if change < -self.TREND_BAND:
            return LoadTrend("down", change)
        return LoadTrend("flat", change)

    @staticmethod
    def best_estimated_1rm(sessions: Iterable[LoggedSession], exercise: str) -> float:
        best = 0.0
        for s in sessions:
            if s.exercise != exercise:
                continue
            for x in s.sets:
                reps = MathTools.to_int(x.reps)
                load = MathTools.to_float(x.load)
                if reps <= 0 or load <= 0:
                    continue
                best = max(best, MathTools.epley_1rm(load, reps))
        return round(best, 1)
