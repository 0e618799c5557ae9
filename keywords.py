"""
Keyword material for the puzzle ciphers: the default word pool, distinct
keyword draws for every cipher slot, the no-fixed-point random alphabet and a
small offline quote list.
"""
import json
import os
import random
import sys

from alphabets import STANDARD_ALPHABET, circular_shift
from cipher_utils import fisher_yates, has_identity_mapping

MAX_RANDOM_ALPHABET_ATTEMPTS = 10
FALLBACK_ROTATION = 13

KEYWORD_SLOTS = (
    'k1', 'k2', 'k3',
    'k4_plaintext', 'k4_ciphertext',
    'nihilist_polybius', 'nihilist_key',
    'porta',
)

KEYWORD_LIST = [
    'ADVENTURE', 'BEAUTIFUL', 'CHALLENGE', 'DISCOVERY', 'ELEPHANT', 'FANTASTIC', 'GALAXY', 'HARMONY',
    'IMAGINATION', 'JOURNEY', 'KNOWLEDGE', 'LIGHTHOUSE', 'MOUNTAIN', 'NAUTICAL', 'OCEAN', 'PARADISE',
    'QUALITY', 'RAINBOW', 'SUNSHINE', 'TREASURE', 'UNIVERSE', 'VICTORY', 'WISDOM', 'XENIAL',
    'YELLOW', 'ZEPHYR', 'ACOUSTIC', 'BICYCLE', 'CATHEDRAL', 'DIAMOND', 'ENVELOPE', 'FESTIVAL',
    'GUITAR', 'HURRICANE', 'ISLAND', 'JUNGLE', 'KEYBOARD', 'LANTERN', 'MELODY', 'NOTEBOOK',
    'ORCHESTRA', 'PENGUIN', 'QUANTUM', 'ROCKET', 'SATELLITE', 'TELESCOPE', 'UMBRELLA', 'VOLCANO',
    'WATERFALL', 'XYLOPHONE', 'YACHT', 'ZODIAC', 'ANCHOR', 'BUTTERFLY', 'CRYSTAL', 'DOLPHIN',
    'EMERALD', 'FIREFLY', 'GLACIER', 'HAMSTER', 'ICEBERG', 'JAGUAR', 'KOALA', 'LAVENDER',
    'MONARCH', 'NIGHTFALL', 'OPAL', 'PYRAMID', 'QUARTZ', 'RIVER', 'STARLIGHT', 'THUNDER',
    'UNICORN', 'VIOLET', 'WINDMILL', 'XERUS', 'YEARNING', 'ZENITH', 'ARCTIC', 'BRONZE',
    'COMPASS', 'DESERT', 'ECHO', 'FALCON', 'GOLDEN', 'HORIZON', 'IRIS', 'JUBILEE',
    'KEYSTONE', 'LUNAR', 'MIRROR', 'NEBULA', 'ORCHID', 'PHOENIX', 'QUEST', 'RUBY',
    'SILVER', 'TWILIGHT', 'URBANE', 'VORTEX', 'WHIRLWIND', 'XERARCH', 'ZIRCON', 'AMBER',
    'BRAVE', 'COSMIC', 'DAZZLE', 'ETERNAL', 'FROST', 'GLEAM', 'HERALD', 'IVORY',
]

# Every word gives a 2x2 key matrix with gcd(det mod 26, 26) == 1
HILL_KEYWORDS = [
    'HILL', 'BEAD', 'FIND', 'JUMP', 'LAMP', 'LION', 'HELP', 'BOLT', 'JAZZ',
    'FUZZ', 'HAND', 'BIRD', 'FISH', 'VEIL', 'JOLT', 'LOFT', 'ZEAL', 'HALT',
]

FALLBACK_QUOTES = [
    {'text': "The only way to do great work is to love what you do.", 'author': "Steve Jobs"},
    {'text': "Life is what happens to you while you're busy making other plans.", 'author': "John Lennon"},
    {'text': "The future belongs to those who believe in the beauty of their dreams.", 'author': "Eleanor Roosevelt"},
    {'text': "In the middle of difficulty lies opportunity.", 'author': "Albert Einstein"},
    {'text': "It is during our darkest moments that we must focus to see the light.", 'author': "Aristotle"},
    {'text': "Success is not final, failure is not fatal: it is the courage to continue that counts.", 'author': "Winston Churchill"},
    {'text': "The way to get started is to quit talking and begin doing.", 'author': "Walt Disney"},
    {'text': "Don't let yesterday take up too much of today.", 'author': "Will Rogers"},
    {'text': "You learn more from failure than from success.", 'author': "Unknown"},
    {'text': "If you are working on something that you really care about, you don't have to be pushed.", 'author': "Steve Jobs"},
    {'text': "The only impossible journey is the one you never begin.", 'author': "Tony Robbins"},
    {'text': "The greatest glory in living lies not in never falling, but in rising every time we fall.", 'author': "Nelson Mandela"},
    {'text': "Your time is limited, don't waste it living someone else's life.", 'author': "Steve Jobs"},
    {'text': "If life were predictable it would cease to be life, and be without flavor.", 'author': "Eleanor Roosevelt"},
    {'text': "In the end, it's not the years in your life that count. It's the life in your years.", 'author': "Abraham Lincoln"},
    {'text': "Believe you can and you're halfway there.", 'author': "Theodore Roosevelt"},
    {'text': "The only person you are destined to become is the person you decide to be.", 'author': "Ralph Waldo Emerson"},
    {'text': "I've learned that people will forget what you said, people will forget what you did, but people will never forget how you made them feel.", 'author': "Maya Angelou"},
    {'text': "Whether you think you can or you think you can't, you're right.", 'author': "Henry Ford"},
    {'text': "Perfection is not attainable, but if we chase perfection we can catch excellence.", 'author': "Vince Lombardi"},
]


def pick_keywords(pool, count, rng=random):
    """
    Draw `count` distinct words from `pool`. All words come out of a single
    shuffle, so no word is handed to two slots of the same batch.
    """
    if count < 0:
        raise ValueError(f"Cannot pick a negative number of keywords ({count})")
    if len(pool) < count:
        raise ValueError(
            f"Keyword pool has {len(pool)} words, {count} are required")
    return fisher_yates(pool, rng)[:count]


def generate_keyword_set(pool=None, rng=random):
    """
    Fresh keywords for every keyword-driven cipher, keyed by slot name
    (see KEYWORD_SLOTS). Called once per new quote.
    """
    if pool is None:
        pool = KEYWORD_LIST
    return dict(zip(KEYWORD_SLOTS, pick_keywords(pool, len(KEYWORD_SLOTS), rng)))


def random_no_fixed_point_alphabet(rng=random, max_attempts=MAX_RANDOM_ALPHABET_ATTEMPTS):
    """
    Shuffle the alphabet until no letter stays at its own position, skipping
    shuffles already seen. After `max_attempts` failures fall back to ROT13,
    which has no fixed points.
    """
    tried = set()
    for _ in range(max_attempts):
        candidate = ''.join(fisher_yates(STANDARD_ALPHABET, rng))
        if not has_identity_mapping(candidate, STANDARD_ALPHABET) and candidate not in tried:
            return candidate
        tried.add(candidate)

    print(f"WARNING: No derangement found after {max_attempts} shuffles, "
          f"falling back to a rotation by {FALLBACK_ROTATION}", file=sys.stderr)
    return circular_shift(STANDARD_ALPHABET, FALLBACK_ROTATION)


def _clean_word_list(words):
    cleaned = []
    for word in words:
        word = str(word).strip().upper()
        if word and word.isalpha() and word not in cleaned:
            cleaned.append(word)
    return cleaned


def load_keyword_list(f_path=None):
    """
    Load a keyword pool from a JSON array or a plain text file with one word
    per line. Without a path, or if the file does not exist, the built-in
    KEYWORD_LIST is returned.
    """
    if f_path is None:
        return list(KEYWORD_LIST)
    try:
        with open(f_path, 'r', encoding='utf-8') as file:
            content = file.read()
    except FileNotFoundError:
        print(f"WARNING: Keyword file not found at {f_path}. Using built-in keyword list.", file=sys.stderr)
        return list(KEYWORD_LIST)

    if os.path.splitext(f_path)[1].lower() == '.json':
        try:
            words = json.loads(content)
        except json.JSONDecodeError as e:
            raise ValueError(f"Keyword file {f_path} is not valid JSON: {e}") from e
        if not isinstance(words, list):
            raise ValueError(f"Keyword file {f_path} must contain a JSON array of words")
    else:
        words = content.splitlines()

    words = _clean_word_list(words)
    if not words:
        raise ValueError(f"Keyword file {f_path} contains no usable words")
    return words


def random_fallback_quote(rng=random):
    """A {'text', 'author'} pair from the offline quote list."""
    return dict(FALLBACK_QUOTES[rng.randint(0, len(FALLBACK_QUOTES) - 1)])
