"""
Unit tests for ClientQuery escaping.
"""

import unittest

from py2teamspeak.core.line_codec import encode, decode, ESCAPE_SEQUENCES


class TestEncode(unittest.TestCase):
    """Test escaping of protocol keys and values."""

    def test_plain_text_unchanged(self):
        self.assertEqual(encode("Jeff"), "Jeff")

    def test_space_and_pipe(self):
        self.assertEqual(encode("#61 Jeffrey|Gilliam"), "#61\\sJeffrey\\pGilliam")

    def test_backslash_is_escaped_first(self):
        """A literal backslash followed by 's' must not become an escaped space."""
        self.assertEqual(encode("a\\s"), "a\\\\s")

    def test_control_characters(self):
        self.assertEqual(encode("\t\n\r"), "\\t\\n\\r")
        self.assertEqual(encode("a/b"), "a\\/b")


class TestDecode(unittest.TestCase):
    """Test unescaping of protocol keys and values."""

    def test_plain_text_unchanged(self):
        self.assertEqual(decode("Jeff"), "Jeff")

    def test_escaped_space(self):
        self.assertEqual(decode("#61\\sJeff"), "#61 Jeff")

    def test_escaped_backslash_before_s(self):
        self.assertEqual(decode("a\\\\s"), "a\\s")

    def test_unknown_sequence_left_alone(self):
        self.assertEqual(decode("a\\xb"), "a\\xb")

    def test_round_trip_every_special_character(self):
        text = "".join(raw for raw, _ in ESCAPE_SEQUENCES) + "end"
        self.assertEqual(decode(encode(text)), text)

    def test_round_trip_backslash_runs(self):
        for text in ["\\", "\\\\", "\\s", "\\\\s", "x\\ y", "\\p|"]:
            with self.subTest(text=text):
                self.assertEqual(decode(encode(text)), text)


if __name__ == '__main__':
    unittest.main()
