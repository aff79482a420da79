import datetime

from block_service import BlockService
from exercise_library import ExerciseLibrary, exercise_entry
from models import Block, Day, LoggedSession, Program, ProgramExercise, Week, WeekRemap
from planner_service import PlannerService
from reconciliation_service import ReconciliationService

PUSH_PULL_LEGS = 999
UPPER_LOWER = 998


def demo_library() -> ExerciseLibrary:
    library = ExerciseLibrary()
    library.entries["Bench Press"] = exercise_entry(
        "Bench Press", ("Petto", 70), ("Tricipiti", 30)
    )
    return library


def _week(blocks: BlockService, load: float) -> Week:
    bench = Block(sets=4, reps_base="8", target_loads=[load] * 4)
    rows = blocks.apply_technique_change(
        Block(sets=3, target_loads=[load * 0.8] * 3), "Rest-Pause"
    )
    squat = Block(sets=3, reps_base="6", target_loads=[load + 20] * 3, coefficient=1.2)
    return Week(
        days=[
            Day(
                name="Push",
                exercises=[
                    ProgramExercise(exercise_name="Bench Press", blocks=[bench]),
                    ProgramExercise(exercise_name="Rematore Bilanciere", blocks=[rows]),
                ],
            ),
            Day(
                name="Legs",
                exercises=[ProgramExercise(exercise_name="Squat", blocks=[squat])],
            ),
        ]
    )


def demo_programs() -> list[Program]:
    blocks = BlockService()
    ppl = Program(
        id=PUSH_PULL_LEGS,
        name="Push Pull Legs",
        weeks={n: _week(blocks, 80 + 2.5 * (n - 1)) for n in range(1, 9)},
    )
    upper_lower = Program(
        id=UPPER_LOWER,
        name="Upper Lower",
        weeks={n: _week(blocks, 90 + 2.5 * (n - 1)) for n in range(1, 9)},
        week_remap=WeekRemap(offset=9, cycle_length=8),
    )
    return [ppl, upper_lower]


def demo_sessions(
    programs: list[Program], start: datetime.date | None = None
) -> list[LoggedSession]:
    """Log two weeks of each program, the second program continuing at week 9."""
    planner = PlannerService()
    start = start or datetime.date(2024, 1, 1)
    sessions: list[LoggedSession] = []
    plan = [
        (programs[0], 1, 0),
        (programs[0], 2, 7),
        (programs[1], 9, 14),
        (programs[1], 10, 21),
    ]
    for program, week_num, offset in plan:
        week = program.weeks[ReconciliationService.map_week(week_num, program.week_remap)]
        for day_index, day in enumerate(week.days):
            for exercise_index, exercise in enumerate(day.exercises):
                block = exercise.blocks[0]
                sets = planner.initial_log_sets(block)
                sessions.append(
                    planner.create_session(
                        block,
                        exercise=exercise.exercise_name,
                        week_num=week_num,
                        sets=sets,
                        day_index=day_index,
                        exercise_index=exercise_index,
                        program_id=program.id,
                        date=start + datetime.timedelta(days=offset + day_index),
                        session_id=len(sessions) + 1,
                    )
                )
    return sessions


def seed() -> tuple[ExerciseLibrary, list[Program], list[LoggedSession]]:
    programs = demo_programs()
    return demo_library(), programs, demo_sessions(programs)


if __name__ == "__main__":
    library, programs, sessions = seed()
    print(f"Demo data: {len(programs)} programs, {len(sessions)} sessions")
