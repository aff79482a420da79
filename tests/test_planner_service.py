import datetime
import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from models import Block, Day, LoggedSession, LoggedSet, Program, ProgramExercise, Week
from planner_service import PlannerService


class InitialLogSetsTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.planner = PlannerService()

    def test_normal_block(self) -> None:
        block = Block(sets=3, reps_base="10", target_loads=[80, 82.5, 85])
        sets = self.planner.initial_log_sets(block)
        self.assertEqual([s.set_num for s in sets], [1, 2, 3])
        self.assertEqual([s.reps for s in sets], ["10", "10", "10"])
        self.assertEqual([s.load for s in sets], ["80", "82.5", "85"])
        self.assertTrue(all(s.cluster_num == 1 for s in sets))

    def test_cluster_block(self) -> None:
        block = Block(
            technique="Rest-Pause",
            sets=2,
            technique_schema="10+5",
            target_loads_by_cluster=[[80, 70], [85, 75]],
        )
        sets = self.planner.initial_log_sets(block)
        self.assertEqual(len(sets), 4)
        last = sets[-1]
        self.assertEqual((last.set_num, last.cluster_num, last.reps, last.load), (2, 2, "5", "75"))

    def test_invalid_schema_raises(self) -> None:
        block = Block(technique="Rest-Pause", sets=2, technique_schema="abc")
        with self.assertRaises(ValueError):
            self.planner.initial_log_sets(block)

    def test_ad_hoc_block(self) -> None:
        sets = self.planner.initial_log_sets(Block(technique="Ad-Hoc", sets=2, reps_base=""))
        self.assertEqual(len(sets), 2)
        self.assertEqual(sets[0].reps, "")


class SessionTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.planner = PlannerService()
        self.block = Block(sets=3, reps_base="10", target_loads=[80, 80, 80], coefficient=0.9)

    def _log(self, block: Block, reps: list[str], rpe: list[str] | None = None):
        rpe = rpe or [""] * len(reps)
        sets = [
            LoggedSet(set_num=i, reps=r, load="80", rpe=e)
            for i, (r, e) in enumerate(zip(reps, rpe), start=1)
        ]
        return self.planner.create_session(
            block,
            exercise="Bench",
            week_num=2,
            sets=sets,
            day_index=1,
            exercise_index=3,
            block_index=0,
            program_id=999,
            date=datetime.date(2024, 3, 1),
            session_id=7,
        )

    def test_create_session(self) -> None:
        session = self._log(self.block, ["10", "10", "8"], ["8", "9", ""])
        self.assertEqual(session.total_reps, 28)
        self.assertEqual(session.target_reps, 30)
        self.assertAlmostEqual(session.completion, 28 / 30 * 100)
        self.assertAlmostEqual(session.total_tonnage, 2240.0)
        self.assertAlmostEqual(session.avg_rpe, 8.5)
        self.assertEqual(session.target_loads, [80, 80, 80])
        self.assertEqual(session.coefficient, 0.9)
        self.assertEqual((session.day_index, session.exercise_index), (1, 3))

    def test_max_sets_excluded_from_completion(self) -> None:
        block = Block(sets=3, reps_base="10", target_reps=["10", "10", "MAX"])
        session = self._log(block, ["10", "10", "15"])
        self.assertEqual(session.target_reps, 20)
        self.assertEqual(session.total_reps, 35)
        self.assertAlmostEqual(session.completion, 100.0)
        self.assertEqual(session.max_effort_sets, [3])

    def test_edit_keeps_max_sets_out_of_completion(self) -> None:
        block = Block(sets=3, reps_base="10", target_reps=["10", "10", "MAX"])
        session = self._log(block, ["10", "10", "15"])
        edited = self.planner.edit_session(session, session.sets)
        self.assertEqual(edited.total_reps, 35)
        self.assertAlmostEqual(edited.completion, session.completion)
        restored = LoggedSession.model_validate(session.model_dump(by_alias=True))
        self.assertAlmostEqual(self.planner.edit_session(restored, session.sets).completion, 100.0)

    def test_zero_target_completion(self) -> None:
        session = self._log(Block(technique="Ad-Hoc", sets=2), ["10", "10"])
        self.assertEqual(session.target_reps, 0)
        self.assertEqual(session.completion, 0)

    def test_edit_session_keeps_origin(self) -> None:
        session = self._log(self.block, ["10", "10", "10"])
        edited = self.planner.edit_session(
            session, [{"set_num": 1, "reps": "5", "load": "100", "rpe": "10"}]
        )
        self.assertEqual(edited.id, 7)
        self.assertEqual((edited.week_num, edited.day_index, edited.block_index), (2, 1, 0))
        self.assertEqual(edited.total_reps, 5)
        self.assertEqual(edited.target_reps, 30)
        self.assertAlmostEqual(edited.completion, 5 / 30 * 100)
        self.assertEqual(session.total_reps, 30)

    def test_edit_session_with_new_block(self) -> None:
        session = self._log(self.block, ["10", "10", "10"])
        edited = self.planner.edit_session(session, session.sets, Block(sets=2, reps_base="10"))
        self.assertEqual(edited.target_reps, 20)
        self.assertAlmostEqual(edited.completion, 150.0)

    def test_delete_program_sessions(self) -> None:
        kept = self._log(self.block, ["10"]).model_copy(update={"program_id": 998})
        sessions = [self._log(self.block, ["10"]), kept]
        self.assertEqual(PlannerService.delete_program_sessions(sessions, 999), [kept])


class PlanEditingTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.weeks = {
            1: Week(days=[Day(name="Push", exercises=[ProgramExercise(exercise_name="Bench")])]),
            2: Week(),
        }

    def test_add_week(self) -> None:
        weeks = PlannerService.add_week(self.weeks)
        self.assertEqual(sorted(weeks), [1, 2, 3])
        self.assertEqual(weeks[3].days, [])
        self.assertEqual(sorted(PlannerService.add_week({})), [1])
        with self.assertRaises(ValueError):
            PlannerService.add_week(self.weeks, 2)

    def test_duplicate_week(self) -> None:
        weeks, new_num = PlannerService.duplicate_week(self.weeks, 1)
        self.assertEqual(new_num, 3)
        self.assertEqual(weeks[3], self.weeks[1])
        weeks[3].days[0].name = "Changed"
        self.assertEqual(self.weeks[1].days[0].name, "Push")
        with self.assertRaises(ValueError):
            PlannerService.duplicate_week(self.weeks, 9)

    def test_duplicate_program(self) -> None:
        program = Program(id=1, name="PPL", weeks=self.weeks)
        copy = PlannerService.duplicate_program(program, 2)
        self.assertEqual(copy.id, 2)
        self.assertEqual(copy.name, "PPL (copy)")
        self.assertEqual(copy.weeks, program.weeks)
        self.assertEqual(PlannerService.duplicate_program(program, 3, "Block B").name, "Block B")


if __name__ == "__main__":
    unittest.main()
