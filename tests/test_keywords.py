import unittest
from unittest import mock
import tempfile
import random
import json
import os
import sys

# Add project root to path to ensure imports work
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import keywords
from alphabets import STANDARD_ALPHABET
from cipher_utils import identity_positions, is_permutation


class FixedRandom:
    def __init__(self, value):
        self.value = value

    def randint(self, a, b):
        return min(max(a, self.value), b)


class TestKeywordDraws(unittest.TestCase):
    """Keyword pool draws and the no-fixed-point alphabet"""

    def test_pick_keywords_distinct(self):
        picked = keywords.pick_keywords(keywords.KEYWORD_LIST, 8, random.Random(3))
        self.assertEqual(len(picked), 8)
        self.assertEqual(len(set(picked)), 8)
        self.assertTrue(set(picked) <= set(keywords.KEYWORD_LIST))

    def test_pick_whole_pool(self):
        picked = keywords.pick_keywords(['ONE', 'TWO', 'THREE'], 3, random.Random(1))
        self.assertEqual(sorted(picked), ['ONE', 'THREE', 'TWO'])

    def test_pick_keywords_errors(self):
        with self.assertRaises(ValueError):
            keywords.pick_keywords(['ONE'], 2)
        with self.assertRaises(ValueError):
            keywords.pick_keywords(['ONE'], -1)

    def test_keyword_set(self):
        for seed in range(10):
            keyword_set = keywords.generate_keyword_set(rng=random.Random(seed))
            self.assertEqual(tuple(keyword_set), keywords.KEYWORD_SLOTS)
            self.assertEqual(len(set(keyword_set.values())), len(keywords.KEYWORD_SLOTS),
                             "Keyword reused within one batch")

    def test_keyword_set_small_pool(self):
        with self.assertRaises(ValueError):
            keywords.generate_keyword_set(pool=['ZEBRA', 'ORCHID'])

    def test_random_alphabet_has_no_fixed_points(self):
        for seed in range(50):
            alphabet = keywords.random_no_fixed_point_alphabet(random.Random(seed))
            self.assertTrue(is_permutation(alphabet, STANDARD_ALPHABET))
            self.assertEqual(identity_positions(alphabet, STANDARD_ALPHABET), [])

    def test_random_alphabet_fallback(self):
        # randint(0, i) == i never swaps, so every shuffle is the identity
        with mock.patch('builtins.print') as mock_print:
            alphabet = keywords.random_no_fixed_point_alphabet(FixedRandom(99))
        self.assertEqual(alphabet, "NOPQRSTUVWXYZABCDEFGHIJKLM")
        self.assertIn('WARNING', mock_print.call_args[0][0])

    def test_hill_keywords_are_four_letters(self):
        for word in keywords.HILL_KEYWORDS:
            self.assertEqual(len(word), 4)
            self.assertTrue(word.isalpha())

    def test_fallback_quote(self):
        quote = keywords.random_fallback_quote(random.Random(4))
        self.assertIn(quote, keywords.FALLBACK_QUOTES)
        quote['text'] = 'changed'
        self.assertNotIn(quote, keywords.FALLBACK_QUOTES)


class TestLoadKeywordList(unittest.TestCase):
    """Loading keyword pools from disk"""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.temp_dir.cleanup()

    def _write(self, name, content):
        f_path = os.path.join(self.temp_dir.name, name)
        with open(f_path, 'w', encoding='utf-8') as f:
            f.write(content)
        return f_path

    def test_default_list(self):
        self.assertEqual(keywords.load_keyword_list(), keywords.KEYWORD_LIST)

    def test_json_list(self):
        f_path = self._write('words.json', json.dumps(["zebra", " Orchid ", "zebra", "x1", ""]))
        self.assertEqual(keywords.load_keyword_list(f_path), ['ZEBRA', 'ORCHID'])

    def test_text_list(self):
        f_path = self._write('words.txt', "zebra\n\norchid\nfalcon\n")
        self.assertEqual(keywords.load_keyword_list(f_path), ['ZEBRA', 'ORCHID', 'FALCON'])

    def test_missing_file(self):
        with mock.patch('builtins.print') as mock_print:
            words = keywords.load_keyword_list(os.path.join(self.temp_dir.name, 'nope.json'))
        self.assertEqual(words, keywords.KEYWORD_LIST)
        self.assertIn('WARNING', mock_print.call_args[0][0])

    def test_invalid_json(self):
        with self.assertRaises(ValueError):
            keywords.load_keyword_list(self._write('bad.json', '["zebra",'))
        with self.assertRaises(ValueError):
            keywords.load_keyword_list(self._write('object.json', '{"words": ["zebra"]}'))

    def test_no_usable_words(self):
        with self.assertRaises(ValueError):
            keywords.load_keyword_list(self._write('empty.txt', "\n123\n"))


if __name__ == '__main__':
    unittest.main()
