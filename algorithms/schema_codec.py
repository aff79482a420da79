import re
from typing import Iterable, Optional


class SchemaCodec:
    """Convert between per-cluster rep counts and their ``a+b+c`` text form."""

    PATTERN = re.compile(r"[0-9]+(\+[0-9]+)*")
    SEPARATOR = "+"

    @classmethod
    def parse_schema(cls, text: Optional[str]) -> list[int]:
        """Return the cluster rep counts encoded in ``text``.

        Empty, missing or malformed text yields an empty list; callers treat
        an empty list as a single cluster.
        """
        if not text:
            return []
        text = str(text)
        if not cls.PATTERN.fullmatch(text):
            return []
        return [int(part) for part in text.split(cls.SEPARATOR)]

    @classmethod
    def join_schema(cls, clusters: Iterable[int]) -> str:
        """Return the textual schema for ``clusters``."""
        return cls.SEPARATOR.join(str(int(c)) for c in clusters)

    @classmethod
    def cluster_count(cls, text: Optional[str]) -> int:
        """Return the number of clusters in ``text`` (1 when undefined)."""
        return len(cls.parse_schema(text)) or 1

    @classmethod
    def is_valid_schema(cls, text: Optional[str]) -> bool:
        """Return ``True`` when ``text`` describes at least two clusters."""
        return len(cls.parse_schema(text)) >= 2

    @classmethod
    def reps_per_set(cls, text: Optional[str]) -> int:
        return sum(cls.parse_schema(text))
