import datetime
import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from exercise_library import ExerciseLibrary
from localization import translator
from models import Block, Day, LoggedSession, LoggedSet, ProgramExercise, Week
from stats_service import StatisticsService

LIBRARY = ExerciseLibrary(
    [
        {
            "name": "Bench Press",
            "muscles": [
                {"muscle": "Petto", "percent": 70},
                {"muscle": "Tricipiti", "percent": 30},
            ],
        },
        {"name": "Squat", "muscles": [{"muscle": "Quadricipiti", "percent": 100}]},
    ]
)


def _session(
    exercise: str = "Bench Press",
    day: int = 1,
    week: int = 1,
    program: int | None = 999,
    sets: int = 4,
    reps: str = "10",
    load: str = "80",
    **kwargs,
) -> LoggedSession:
    return LoggedSession(
        date=datetime.date(2024, 1, day),
        week_num=week,
        program_id=program,
        exercise=exercise,
        sets=[LoggedSet(set_num=i, reps=reps, load=load) for i in range(1, sets + 1)],
        **kwargs,
    )


class SessionMetricsTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.stats = StatisticsService()

    def test_session_metrics(self) -> None:
        metrics = self.stats.session_metrics(
            [
                {"set_num": 1, "reps": "10", "load": "80", "rpe": "8"},
                {"set_num": 2, "reps": "abc", "load": "80", "rpe": ""},
                {"set_num": 3, "reps": "8", "load": "82.5", "rpe": "9"},
            ]
        )
        self.assertEqual(metrics.total_reps, 18)
        self.assertAlmostEqual(metrics.total_tonnage, 1460.0)
        self.assertAlmostEqual(metrics.avg_rpe, 8.5)

    def test_no_rpe(self) -> None:
        metrics = self.stats.session_metrics([LoggedSet(set_num=1, reps="5", load="")])
        self.assertEqual(metrics.avg_rpe, 0)
        self.assertEqual(metrics.total_tonnage, 0)

    def test_completion(self) -> None:
        self.assertEqual(self.stats.completion(10, 0), 0)
        self.assertEqual(self.stats.completion(5, -1), 0)
        self.assertAlmostEqual(self.stats.completion(9, 10), 90)

    def test_completion_status(self) -> None:
        self.assertEqual(self.stats.completion_status(96).color, "green")
        self.assertEqual(self.stats.completion_status(95).label, "Completed")
        self.assertEqual(self.stats.completion_status(90).color, "yellow")
        self.assertEqual(self.stats.completion_status(75).color, "orange")
        self.assertEqual(self.stats.completion_status(10).label, "Incomplete")

    def test_completion_status_translated(self) -> None:
        translator.set_language("it")
        try:
            self.assertEqual(self.stats.completion_status(100).label, "Completato")
        finally:
            translator.set_language("en")

    def test_sets_count_counts_cluster_entries(self) -> None:
        session = _session(sets=0)
        session.sets = [
            LoggedSet(set_num=1, cluster_num=1),
            LoggedSet(set_num=1, cluster_num=2),
            LoggedSet(set_num=2, cluster_num=1),
        ]
        self.assertEqual(self.stats.sets_count(session), 3)


class VolumeTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.stats = StatisticsService()

    def test_volume_by_muscle(self) -> None:
        sessions = [_session(day=1), _session(day=3)]
        volume = self.stats.volume_by_muscle(sessions, LIBRARY)
        self.assertAlmostEqual(volume["Petto"], 5.6)
        self.assertAlmostEqual(volume["Tricipiti"], 2.4)

    def test_session_volume_sums_to_sets_times_coefficient(self) -> None:
        session = _session(sets=5, coefficient=0.8)
        volume = self.stats.session_muscle_volume(session, LIBRARY)
        self.assertAlmostEqual(sum(volume.values()), 4.0)

    def test_cluster_entries_each_add_volume(self) -> None:
        session = _session(exercise="Squat", sets=0, technique="Rest-Pause")
        session.sets = [
            LoggedSet(set_num=s, cluster_num=c, reps="5", load="100")
            for s in (1, 2)
            for c in (1, 2, 3)
        ]
        volume = self.stats.session_muscle_volume(session, LIBRARY)
        self.assertEqual(volume, {"Quadricipiti": 6.0})

    def test_unknown_exercise_contributes_nothing(self) -> None:
        volume = self.stats.volume_by_muscle([_session(exercise="Curl")], LIBRARY)
        self.assertEqual(volume, {})

    def test_chronological_weeks(self) -> None:
        sessions = [
            _session(day=15, week=9, program=998),
            _session(day=1, week=1, program=999),
            _session(day=9, week=2, program=999),
            _session(day=8, week=2, program=999),
            _session(day=22, week=3, program=999),
            _session(day=22, week=10, program=998),
        ]
        mapping = self.stats.chronological_weeks(sessions)
        self.assertEqual(
            mapping,
            {(999, 1): 1, (999, 2): 2, (998, 9): 3, (998, 10): 4, (999, 3): 5},
        )

    def test_chronological_weeks_monotonic(self) -> None:
        sessions = [
            _session(day=d, week=w, program=p)
            for d, w, p in [(5, 3, 1), (2, 1, 2), (20, 4, 1), (11, 2, 2), (2, 7, 3)]
        ]
        mapping = self.stats.chronological_weeks(sessions)
        ordered = sorted(sessions, key=lambda s: s.date)
        indices = [mapping[(s.program_id, s.week_num)] for s in ordered]
        self.assertEqual(indices, sorted(indices))
        self.assertEqual(sorted(mapping.values()), list(range(1, len(mapping) + 1)))

    def test_volume_by_week_and_muscle(self) -> None:
        sessions = [
            _session(day=15, week=9, program=998, exercise="Squat", sets=3),
            _session(day=1, week=1, program=999),
            _session(day=2, week=1, program=999),
        ]
        df = self.stats.volume_by_week_and_muscle(sessions, LIBRARY)
        self.assertEqual(list(df.columns), ["week", "muscle", "volume"])
        self.assertEqual(list(df["week"]), [1, 1, 2])
        week_one = df[df["week"] == 1].set_index("muscle")["volume"]
        self.assertAlmostEqual(week_one["Petto"], 5.6)
        self.assertAlmostEqual(df[df["week"] == 2]["volume"].iloc[0], 3.0)

    def test_volume_by_week_empty(self) -> None:
        self.assertTrue(self.stats.volume_by_week_and_muscle([], LIBRARY).empty)

    def test_planned_week_volume(self) -> None:
        week = Week(
            days=[
                Day(
                    exercises=[
                        ProgramExercise(exercise_name="Bench Press", blocks=[Block(sets=4)]),
                        ProgramExercise(
                            exercise_name="Curl", blocks=[Block(sets=3, coefficient=0.8)]
                        ),
                    ]
                )
            ]
        )
        planned = self.stats.planned_week_volume(week, LIBRARY)
        self.assertAlmostEqual(planned.total, 6.4)
        self.assertAlmostEqual(planned.by_muscle["Petto"], 2.8)
        self.assertAlmostEqual(planned.estimated_rpe, 8.0)
        self.assertEqual(self.stats.planned_week_volume(None, LIBRARY).total, 0)

    def test_estimated_rpe(self) -> None:
        self.assertEqual(self.stats.estimated_rpe(0.7), 5.5)
        self.assertEqual(self.stats.estimated_rpe(0.9), 7.5)
        self.assertEqual(self.stats.estimated_rpe(1.0), 8.5)
        self.assertEqual(self.stats.estimated_rpe(1.1), 10.0)


class HistoryTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.stats = StatisticsService()

    def test_tonnage_by_week(self) -> None:
        sessions = [
            _session(week=2, total_tonnage=300.0),
            _session(week=1, total_tonnage=1000.4),
            _session(week=1, total_tonnage=500.0),
        ]
        self.assertEqual(self.stats.tonnage_by_week(sessions), {1: 1500.0, 2: 300.0})
        self.assertEqual(self.stats.tonnage_by_week([]), {})

    def test_rpe_over_time(self) -> None:
        sessions = [
            _session(day=5, avg_rpe=8.5),
            _session(day=2, avg_rpe=0),
            _session(day=1, avg_rpe=7.0, total_reps=28, target_reps=30),
        ]
        points = self.stats.rpe_over_time(sessions)
        self.assertEqual([p["rpe"] for p in points], [7.0, 8.5])
        self.assertEqual(points[0]["reps"], "28/30")

    def test_load_trend(self) -> None:
        previous = [_session(load="100")]
        up = self.stats.load_trend([_session(load="110")], previous)
        self.assertEqual(up.direction, "up")
        self.assertEqual(up.label, "+10.0%")
        self.assertEqual(self.stats.load_trend([_session(load="90")], previous).direction, "down")
        flat = self.stats.load_trend([_session(load="102")], previous)
        self.assertEqual(flat.direction, "flat")
        self.assertEqual(flat.label, "~")
        self.assertIsNone(self.stats.load_trend([], previous))

    def test_best_estimated_1rm(self) -> None:
        sessions = [
            _session(sets=1, reps="3", load="100"),
            _session(sets=1, reps="10", load="60"),
            _session(exercise="Squat", sets=1, reps="1", load="200"),
        ]
        self.assertAlmostEqual(self.stats.best_estimated_1rm(sessions, "Bench Press"), 110.0)
        self.assertEqual(self.stats.best_estimated_1rm([], "Bench Press"), 0)


if __name__ == "__main__":
    unittest.main()
