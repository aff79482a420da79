import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from algorithms import SchemaCodec


class SchemaCodecTestCase(unittest.TestCase):
    def test_parse_schema(self) -> None:
        self.assertEqual(SchemaCodec.parse_schema("10+8+6"), [10, 8, 6])
        self.assertEqual(SchemaCodec.parse_schema("12"), [12])

    def test_parse_rejects_malformed(self) -> None:
        malformed = [
            "", None, "10-8", "10+", "+10", "a+b", "10 + 8", "MAX+6",
            " 5+5 ", "10+10\n", "\uff11\uff10+\uff11\uff10",
        ]
        for text in malformed:
            self.assertEqual(SchemaCodec.parse_schema(text), [], text)

    def test_join_round_trip(self) -> None:
        self.assertEqual(SchemaCodec.join_schema([10, 8, 6]), "10+8+6")
        text = "12+5+5+5+5"
        self.assertEqual(SchemaCodec.join_schema(SchemaCodec.parse_schema(text)), text)

    def test_cluster_count_defaults_to_one(self) -> None:
        self.assertEqual(SchemaCodec.cluster_count("10+10+10"), 3)
        self.assertEqual(SchemaCodec.cluster_count(""), 1)
        self.assertEqual(SchemaCodec.cluster_count("slow-fast"), 1)

    def test_is_valid_schema(self) -> None:
        self.assertTrue(SchemaCodec.is_valid_schema("10+10"))
        self.assertFalse(SchemaCodec.is_valid_schema("10"))
        self.assertFalse(SchemaCodec.is_valid_schema(""))

    def test_reps_per_set(self) -> None:
        self.assertEqual(SchemaCodec.reps_per_set("10+8+6"), 24)
        self.assertEqual(SchemaCodec.reps_per_set("bad"), 0)


if __name__ == "__main__":
    unittest.main()
