import unittest
from unittest import mock
import random
import io
import os
import sys

# Add project root to path to ensure imports work
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import alphabets
from alphabets import (
    STANDARD_ALPHABET, KeywordPlacement, normalize_keyword, build_keyed_alphabet_raw,
    build_keyed_alphabet, circular_shift, apply_aca_shift, rearrange_non_keyword_letters,
    substitute, build_polybius_square, polybius_coordinates)
from cipher_utils import identity_positions, is_permutation
from keywords import KEYWORD_LIST


class FixedRandom:
    def __init__(self, value):
        self.value = value

    def randint(self, a, b):
        return min(max(a, self.value), b)


class TestKeywordPlacement(unittest.TestCase):

    def test_normalize_keyword(self):
        self.assertEqual(normalize_keyword('Zebra Zone'), 'ZEBRAON')
        self.assertEqual(normalize_keyword('hello-world 42'), 'HELOWRD')
        self.assertEqual(normalize_keyword(None), '')

    def test_placement_positions(self):
        placement = KeywordPlacement.at('ZEBRA', 21)
        self.assertEqual(placement.end_position, 25)
        self.assertEqual(list(placement.positions()), [21, 22, 23, 24, 25])
        self.assertTrue(placement.contains(21))
        self.assertFalse(placement.contains(20))


class TestRawAlphabets(unittest.TestCase):

    def test_start_placement(self):
        alphabet, placement = build_keyed_alphabet_raw('Zebra')
        self.assertEqual(alphabet, "ZEBRACDFGHIJKLMNOPQSTUVWXY")
        self.assertEqual((placement.start_position, placement.end_position), (0, 4))

    def test_middle_placement(self):
        alphabet, placement = build_keyed_alphabet_raw('orchid', 'middle')
        self.assertEqual(alphabet, "ABEFGJKLMNORCHIDPQSTUVWXYZ")
        self.assertEqual(placement, KeywordPlacement('ORCHID', 10, 15))

    def test_long_keyword_ignores_middle(self):
        pangram = 'the quick brown fox jumps over the lazy dog'
        alphabet, placement = build_keyed_alphabet_raw(pangram, 'middle')
        self.assertEqual(alphabet, normalize_keyword(pangram))
        self.assertEqual(placement.start_position, 0)

    def test_unknown_placement(self):
        with self.assertRaises(ValueError):
            build_keyed_alphabet_raw('ZEBRA', 'end')

    def test_every_raw_alphabet_is_a_permutation(self):
        for keyword in KEYWORD_LIST:
            for placement in alphabets.PLACEMENTS:
                alphabet, _ = build_keyed_alphabet_raw(keyword, placement)
                self.assertTrue(is_permutation(alphabet, STANDARD_ALPHABET), keyword)


class TestShiftStrategy(unittest.TestCase):

    def test_circular_shift(self):
        self.assertEqual(circular_shift('ABCDE', 2), 'CDEAB')
        self.assertEqual(circular_shift('ABCDE', 7), 'CDEAB')

    def test_build_keyed_alphabet(self):
        print("\nTesting keyed alphabets ", end='')
        rng = random.Random(11)
        cases = [(keyword, 'start') for keyword in KEYWORD_LIST]
        cases += [('ORCHID', 'middle'), ('DISCOVERY', 'middle')]
        for keyword, placement_name in cases:
            alphabet, placement = build_keyed_alphabet(keyword, placement_name, rng)
            self.assertEqual(identity_positions(alphabet, STANDARD_ALPHABET), [],
                             f"{keyword} ({placement_name}): {alphabet}")
            self.assertEqual(
                alphabet[placement.start_position:placement.end_position + 1],
                normalize_keyword(keyword))

    def test_known_shift(self):
        raw, placement = build_keyed_alphabet_raw('ZEBRA')
        alphabet, new_placement, shift = apply_aca_shift(raw, placement, rng=FixedRandom(5))
        self.assertEqual(shift, 5)
        self.assertEqual(alphabet, "CDFGHIJKLMNOPQSTUVWXYZEBRA")
        self.assertEqual(new_placement, KeywordPlacement('ZEBRA', 21, 25))

    def test_rejects_wrapping_keyword(self):
        # Shifts below 5 would split the keyword
        raw, placement = build_keyed_alphabet_raw('ZEBRA')
        alphabet, new_placement, shift = apply_aca_shift(raw, placement, rng=FixedRandom(1))
        self.assertGreaterEqual(shift, len('ZEBRA'))
        self.assertEqual(alphabet[new_placement.start_position:new_placement.end_position + 1], 'ZEBRA')

    def test_rejects_comparison(self):
        raw, placement = build_keyed_alphabet_raw('ZEBRA')
        alphabet, _, _ = apply_aca_shift(raw, placement, comparison="CDFGHIJKLMNOPQSTUVWXYZEBRA",
                                         rng=FixedRandom(5))
        self.assertNotEqual(alphabet, "CDFGHIJKLMNOPQSTUVWXYZEBRA")
        self.assertEqual(identity_positions(alphabet, STANDARD_ALPHABET), [])

    def test_fallback_returns_best_candidate(self):
        reversed_alphabet = STANDARD_ALPHABET[::-1]
        placement = KeywordPlacement.at('ZYX', 0)
        with mock.patch('builtins.print') as mock_print:
            alphabet, new_placement, shift = apply_aca_shift(
                reversed_alphabet, placement, rng=FixedRandom(3), max_attempts=1)
        self.assertEqual(shift, 3)
        self.assertEqual(alphabet, circular_shift(reversed_alphabet, 3))
        self.assertEqual(new_placement, KeywordPlacement('ZYX', 23, 25))
        self.assertEqual(identity_positions(alphabet, STANDARD_ALPHABET), [11, 24])
        self.assertIn('WARNING', mock_print.call_args[0][0])

    def test_fallback_warning_goes_to_stderr(self):
        reversed_alphabet = STANDARD_ALPHABET[::-1]
        with mock.patch('sys.stdout', new_callable=io.StringIO) as mock_stdout, \
                mock.patch('sys.stderr', new_callable=io.StringIO) as mock_stderr:
            apply_aca_shift(reversed_alphabet, KeywordPlacement.at('ZYX', 0),
                            rng=FixedRandom(3), max_attempts=1)
        self.assertEqual(mock_stdout.getvalue(), '')
        self.assertTrue(mock_stderr.getvalue().startswith('WARNING:'))


class TestRearrangeStrategy(unittest.TestCase):

    def test_keyword_stays_put(self):
        for seed in range(20):
            raw, placement = build_keyed_alphabet_raw('ORCHID', 'middle')
            alphabet, new_placement = rearrange_non_keyword_letters(raw, placement, random.Random(seed))
            self.assertEqual(new_placement, placement)
            self.assertEqual(alphabet[10:16], 'ORCHID')
            self.assertTrue(is_permutation(alphabet, STANDARD_ALPHABET))
            self.assertEqual(identity_positions(alphabet, STANDARD_ALPHABET), [])

    def test_identity_inside_keyword_is_kept(self):
        raw, placement = build_keyed_alphabet_raw('ABLE')
        with mock.patch('builtins.print') as mock_print:
            alphabet, _ = rearrange_non_keyword_letters(raw, placement, random.Random(8))
        self.assertEqual(alphabet[:4], 'ABLE')
        self.assertEqual(identity_positions(alphabet, STANDARD_ALPHABET), [0, 1])
        self.assertTrue(mock_print.called)


class TestSubstituteAndPolybius(unittest.TestCase):

    def test_substitute_preserves_case_and_punctuation(self):
        cipher = circular_shift(STANDARD_ALPHABET, 1)
        self.assertEqual(substitute("Hello, World!", STANDARD_ALPHABET, cipher), "Ifmmp, Xpsme!")

    def test_substitute_skips_non_ascii_letters(self):
        # 'ﬆ'.upper() == 'ST', 'é'.upper() == 'É'
        cipher = circular_shift(STANDARD_ALPHABET, 1)
        self.assertEqual(substitute("ﬆop café", STANDARD_ALPHABET, cipher), "ﬆpq dbgé")
        self.assertEqual(substitute("ﬆpq", cipher, STANDARD_ALPHABET), "ﬆop")

    def test_polybius_square(self):
        square = build_polybius_square('Jumbo')
        self.assertEqual(square[0], ('U', 'M', 'B', 'O', 'A'))
        self.assertEqual(square[4], ('V', 'W', 'X', 'Y', 'Z'))
        letters = [c for row in square for c in row]
        self.assertEqual(len(set(letters)), 25)
        self.assertNotIn('J', letters)

    def test_polybius_coordinates(self):
        square = build_polybius_square('Jumbo')
        self.assertEqual(polybius_coordinates("j a!", square), [32, 15])


if __name__ == '__main__':
    unittest.main()
