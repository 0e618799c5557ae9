#!/usr/bin/env python3
"""
Puzzle generator

Picks fresh keywords, encodes a quote with one of the ACA ciphers and prints
the worksheet.

Usage:
    # K3 puzzle for a random built-in quote
    python make_puzzle.py --cipher k3

    # Your own quote, reproducible, with the answer key
    python make_puzzle.py --cipher k4 --text "Attack at dawn" --author "Sun Tzu" --seed 7 --reveal

    # Ten Hill puzzles as JSON lines
    python make_puzzle.py --cipher hill --count 10 --json
"""
import argparse
import dataclasses
import enum
import json
import random
import sys

from tqdm import tqdm

import ciphers
import keywords
import worksheet

DEFAULT_CIPHER = 'k1'
DEFAULT_COUNT = 1

# Ciphers that take their key material from a keyword batch
KEYWORD_CIPHERS = (
    ciphers.CipherSpec.K1, ciphers.CipherSpec.K2, ciphers.CipherSpec.K3, ciphers.CipherSpec.K4,
    ciphers.CipherSpec.NIHILIST, ciphers.CipherSpec.PORTA,
)


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Generate ACA cipher puzzles')
    parser.add_argument('--cipher', default=DEFAULT_CIPHER, choices=ciphers._get_cipher_names(),
                        help='Cipher to use')
    parser.add_argument('--text', help='Quote to encode (default: a random built-in quote)')
    parser.add_argument('--author', default='', help='Author of the quote')
    parser.add_argument('--seed', type=int, help='Seed for reproducible puzzles')
    parser.add_argument('--keywords-file', help='JSON array or one-word-per-line keyword list')
    parser.add_argument('--count', type=int, default=DEFAULT_COUNT, help='Number of puzzles to generate')
    parser.add_argument('--reveal', action='store_true', help='Include keywords and alphabets')
    parser.add_argument('--json', action='store_true', help='Print results as JSON lines')
    return parser.parse_args(argv)


def select_keys(cipher, keyword_set):
    """Key material for `cipher` taken from a generate_keyword_set() batch."""
    if cipher in (ciphers.CipherSpec.K1, ciphers.CipherSpec.K2, ciphers.CipherSpec.K3,
                  ciphers.CipherSpec.PORTA):
        return keyword_set[cipher.value]
    if cipher == ciphers.CipherSpec.K4:
        return keyword_set['k4_plaintext'], keyword_set['k4_ciphertext']
    if cipher == ciphers.CipherSpec.NIHILIST:
        return keyword_set['nihilist_polybius'], keyword_set['nihilist_key']
    return None


def _to_jsonable(value):
    if isinstance(value, enum.Enum):
        return value.value
    if dataclasses.is_dataclass(value):
        return {k: _to_jsonable(v) for k, v in dataclasses.asdict(value).items()}
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    return value


def result_to_dict(result):
    data = {f.name: _to_jsonable(getattr(result, f.name)) for f in dataclasses.fields(result)}
    data['keyword_positions'] = worksheet.keyword_highlight_positions(result)
    return data


def generate_puzzles(cipher_id, count, text=None, author='', pool=None, rng=random):
    """
    Encode `count` puzzles. Keyword ciphers get a new keyword batch per puzzle; without
    `text` each one also gets a random built-in quote.
    """
    cipher, _ = ciphers.parse_cipher_id(cipher_id)
    results = []
    for _ in tqdm(range(count), desc=f"Generating {cipher_id}", disable=count < 2, file=sys.stderr):
        if text:
            quote = {'text': text, 'author': author}
        else:
            quote = keywords.random_fallback_quote(rng)
        keyword_set = {}
        if cipher in KEYWORD_CIPHERS:
            keyword_set = keywords.generate_keyword_set(pool, rng)
        result = ciphers.encode(cipher_id, quote['text'], quote['author'],
                                keys=select_keys(cipher, keyword_set), rng=rng)
        if result is not None:
            results.append(result)
    return results


def main(argv=None):
    """Main function to parse args and print the generated puzzles."""
    args = parse_arguments(argv)
    rng = random.Random(args.seed) if args.seed is not None else random

    try:
        pool = keywords.load_keyword_list(args.keywords_file)
        results = generate_puzzles(args.cipher, args.count, args.text, args.author, pool, rng)
    except ValueError as e:
        print(f"ERROR: {e}")
        return 1

    for result in results:
        if args.json:
            print(json.dumps(result_to_dict(result)))
        else:
            print(worksheet.format_worksheet(result, reveal=args.reveal))
            print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
