import logging
from typing import Iterable, Optional

from models import ExerciseEntry, ExerciseType, MuscleShare

logger = logging.getLogger(__name__)

DEFAULT_MUSCLE_GROUPS = [
    "Petto",
    "Dorso - Lats",
    "Dorso - Upper Back",
    "Dorso - Trapezi",
    "Deltoidi - Anteriore",
    "Deltoidi - Laterale",
    "Deltoidi - Posteriore",
    "Bicipiti",
    "Tricipiti",
    "Avambracci",
    "Quadricipiti",
    "Femorali",
    "Glutei",
    "Polpacci",
    "Adduttori",
    "Abduttori",
    "Addome",
    "Obliqui",
    "Core",
]


def exercise_entry(name: str, *muscles: tuple[str, float]) -> ExerciseEntry:
    return ExerciseEntry(
        name=name, muscles=[MuscleShare(muscle=m, percent=p) for m, p in muscles]
    )


DEFAULT_EXERCISES = [
    exercise_entry("Panca Piana Bilanciere", ("Petto", 80), ("Tricipiti", 20)),
    exercise_entry(
        "Rematore Bilanciere",
        ("Dorso - Upper Back", 70),
        ("Dorso - Lats", 20),
        ("Bicipiti", 10),
    ),
    exercise_entry("Squat", ("Quadricipiti", 60), ("Glutei", 30), ("Femorali", 10)),
    exercise_entry(
        "Military Press",
        ("Deltoidi - Anteriore", 60),
        ("Deltoidi - Laterale", 30),
        ("Tricipiti", 10),
    ),
]


class ExerciseLibrary:
    """Exercise lookup by exact name plus muscle distribution checks."""

    MAX_MUSCLES = 3

    def __init__(self, entries: Iterable[ExerciseEntry | dict] | None = None) -> None:
        if entries is None:
            entries = DEFAULT_EXERCISES
        self.entries: dict[str, ExerciseEntry] = {}
        for item in entries:
            entry = item if isinstance(item, ExerciseEntry) else ExerciseEntry(**item)
            self.entries[entry.name] = entry

    def __contains__(self, name: str) -> bool:
        return name in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, name: str) -> Optional[ExerciseEntry]:
        entry = self.entries.get(name)
        if entry is None:
            logger.debug("exercise %r not in library", name)
        return entry

    def muscles(self) -> list[str]:
        """Return all muscles referenced by the library, default groups first."""
        seen = list(DEFAULT_MUSCLE_GROUPS)
        for entry in self.entries.values():
            for share in entry.muscles:
                if share.muscle not in seen:
                    seen.append(share.muscle)
        return seen

    @classmethod
    def validate_entry(cls, entry: ExerciseEntry) -> list[str]:
        """Return every problem with ``entry``'s muscle distribution."""
        errors: list[str] = []
        if not entry.name.strip():
            errors.append("exercise name must not be empty")
        if entry.type == ExerciseType.CARDIO:
            return errors
        count = len(entry.muscles)
        if count < 1 or count > cls.MAX_MUSCLES:
            errors.append(
                f"{entry.name}: expected 1-{cls.MAX_MUSCLES} muscles, got {count}"
            )
        names = [m.muscle for m in entry.muscles]
        if len(set(names)) != len(names):
            errors.append(f"{entry.name}: muscles must be unique")
        for share in entry.muscles:
            if share.percent <= 0:
                errors.append(f"{entry.name}: {share.muscle} percent must be positive")
        total = sum(m.percent for m in entry.muscles)
        if count and abs(total - 100) > 1e-9:
            errors.append(f"{entry.name}: muscle percentages sum to {total:g}, expected 100")
        return errors

    def validate(self) -> list[str]:
        errors: list[str] = []
        for entry in self.entries.values():
            errors.extend(self.validate_entry(entry))
        return errors
