import enum
import random
import string
import sys
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

import alphabets
from alphabets import STANDARD_ALPHABET, KeywordPlacement
import cipher_utils
import keywords

MIN_COLUMNS = 4
MAX_COLUMNS = 9
MAX_COLUMN_SHUFFLES = 100
MAX_MATRIX_ATTEMPTS = 100
FALLBACK_HILL_MATRIX = ((3, 2), (5, 7))
PADDING_CHAR = 'X'

# Each key letter pair selects one shifted alphabet row
PORTA_TABLEAU = {
    'AB': 'NOPQRSTUVWXYZABCDEFGHIJKLM',
    'CD': 'OPQRSTUVWXYZABCDEFGHIJKLMN',
    'EF': 'PQRSTUVWXYZABCDEFGHIJKLMNO',
    'GH': 'QRSTUVWXYZABCDEFGHIJKLMNOP',
    'IJ': 'RSTUVWXYZABCDEFGHIJKLMNOPQ',
    'KL': 'STUVWXYZABCDEFGHIJKLMNOPQR',
    'MN': 'TUVWXYZABCDEFGHIJKLMNOPQRS',
    'OP': 'UVWXYZABCDEFGHIJKLMNOPQRST',
    'QR': 'VWXYZABCDEFGHIJKLMNOPQRSTU',
    'ST': 'WXYZABCDEFGHIJKLMNOPQRSTUV',
    'UV': 'XYZABCDEFGHIJKLMNOPQRSTUVW',
    'WX': 'YZABCDEFGHIJKLMNOPQRSTUVWX',
    'YZ': 'ZABCDEFGHIJKLMNOPQRSTUVWXY',
}


class CipherSpec(enum.Enum):
    K1 = 'k1'
    K2 = 'k2'
    K3 = 'k3'
    K4 = 'k4'
    RANDOM = 'random'
    NIHILIST = 'nihilist'
    PORTA = 'porta'
    COLUMNAR = 'columnar'
    HILL = 'hill'


PATRISTOCRAT_SUFFIX = '-patristocrat'
PATRISTOCRAT_CIPHERS = (CipherSpec.K1, CipherSpec.K2)


@dataclass(frozen=True)
class CipherResult:
    """
    Output of one encode call. `extras` holds whatever the worksheet needs
    for the particular cipher (keywords, Polybius square, grid, matrix...).
    """
    cipher: CipherSpec
    encoded_text: str
    author: str = ''
    plaintext_alphabet: Optional[str] = None
    ciphertext_alphabet: Optional[str] = None
    plaintext_placement: Optional[KeywordPlacement] = None
    ciphertext_placement: Optional[KeywordPlacement] = None
    keyword: Optional[str] = None
    patristocrat: bool = False
    extras: Dict[str, Any] = field(default_factory=dict)


def _get_cipher_functions():
    """
    Retrieves the cipher functions registered for each CipherSpec.
    """
    return list(CIPHERS.values())


def _get_cipher_names():
    """
    Retrieves the cipher identifiers accepted by encode(), patristocrat
    variants included.
    """
    names = [cipher.value for cipher in CipherSpec]
    names += [cipher.value + PATRISTOCRAT_SUFFIX for cipher in PATRISTOCRAT_CIPHERS]
    return names


def _normalize_text(text):
    """
    Normalize the text by converting to uppercase and keeping only ASCII
    letters.
    """
    return ''.join(_ for _ in (text or '').upper() if _ in string.ascii_uppercase)


def _pad(text, block_size):
    remainder = len(text) % block_size
    if remainder:
        text += PADDING_CHAR * (block_size - remainder)
    return text


def k1(text, keyword, rng=random):
    """Keyed plaintext alphabet over a standard ciphertext alphabet."""
    plaintext_alphabet, placement = alphabets.build_keyed_alphabet(keyword, 'start', rng)
    return CipherResult(
        cipher=CipherSpec.K1,
        encoded_text=alphabets.substitute(text, plaintext_alphabet, STANDARD_ALPHABET),
        plaintext_alphabet=plaintext_alphabet,
        ciphertext_alphabet=STANDARD_ALPHABET,
        plaintext_placement=placement,
        keyword=keyword)


def k2(text, keyword, rng=random):
    """Standard plaintext alphabet over a keyed ciphertext alphabet."""
    ciphertext_alphabet, placement = alphabets.build_keyed_alphabet(keyword, 'start', rng)
    return CipherResult(
        cipher=CipherSpec.K2,
        encoded_text=alphabets.substitute(text, STANDARD_ALPHABET, ciphertext_alphabet),
        plaintext_alphabet=STANDARD_ALPHABET,
        ciphertext_alphabet=ciphertext_alphabet,
        ciphertext_placement=placement,
        keyword=keyword)


def k3(text, keyword, rng=random):
    """
    Both alphabets keyed with the same keyword. The plaintext alphabet is the
    unshifted keyed alphabet; the ciphertext alphabet is a rotation of it
    with no standard identities. Since every letter moves by the same
    nonzero amount, no letter enciphers to itself.
    """
    base_alphabet, base_placement = alphabets.build_keyed_alphabet_raw(keyword, 'start')
    ciphertext_alphabet, ciphertext_placement, shift = alphabets.apply_aca_shift(
        base_alphabet, base_placement, comparison=base_alphabet, rng=rng)
    return CipherResult(
        cipher=CipherSpec.K3,
        encoded_text=alphabets.substitute(text, base_alphabet, ciphertext_alphabet),
        plaintext_alphabet=base_alphabet,
        ciphertext_alphabet=ciphertext_alphabet,
        plaintext_placement=base_placement,
        ciphertext_placement=ciphertext_placement,
        keyword=keyword,
        extras={'shift': shift})


# K4 keeps its own order of operations: both alphabets are built raw first,
# then fixed up together. Do not route it through apply_aca_shift.
def _k4_rearrangement(plaintext_alphabet, ciphertext_alphabet,
                      plaintext_placement, ciphertext_placement, rng=random):
    final_plaintext, _ = alphabets.rearrange_non_keyword_letters(
        plaintext_alphabet, plaintext_placement, rng)
    final_ciphertext, _ = alphabets.rearrange_non_keyword_letters(
        ciphertext_alphabet, ciphertext_placement, rng)
    return final_plaintext, final_ciphertext


def k4(text, plaintext_keyword, ciphertext_keyword, rng=random):
    """
    Two different keywords: plaintext alphabet keyed at the start, ciphertext
    alphabet keyed in the middle. Keyword blocks keep their raw positions.
    """
    raw_plaintext, plaintext_placement = alphabets.build_keyed_alphabet_raw(
        plaintext_keyword, 'start')
    raw_ciphertext, ciphertext_placement = alphabets.build_keyed_alphabet_raw(
        ciphertext_keyword, 'middle')
    plaintext_alphabet, ciphertext_alphabet = _k4_rearrangement(
        raw_plaintext, raw_ciphertext, plaintext_placement, ciphertext_placement, rng)
    return CipherResult(
        cipher=CipherSpec.K4,
        encoded_text=alphabets.substitute(text, plaintext_alphabet, ciphertext_alphabet),
        plaintext_alphabet=plaintext_alphabet,
        ciphertext_alphabet=ciphertext_alphabet,
        plaintext_placement=plaintext_placement,
        ciphertext_placement=ciphertext_placement,
        extras={'plaintext_keyword': plaintext_keyword,
                'ciphertext_keyword': ciphertext_keyword})


def random_substitution(text, alphabet=None, rng=random):
    """
    Standard plaintext over a random ciphertext alphabet with no fixed
    points. A previously generated alphabet can be passed in to keep the
    same key across quotes.
    """
    if alphabet is None:
        alphabet = keywords.random_no_fixed_point_alphabet(rng)
    else:
        alphabet = alphabet.upper()
        if not cipher_utils.is_permutation(alphabet, STANDARD_ALPHABET):
            raise ValueError(f"Random alphabet '{alphabet}' is not a permutation of A-Z")
        if cipher_utils.has_identity_mapping(alphabet, STANDARD_ALPHABET):
            raise ValueError(
                f"Random alphabet '{alphabet}' leaves letters at "
                f"{cipher_utils.identity_positions(alphabet, STANDARD_ALPHABET)} unchanged")
    return CipherResult(
        cipher=CipherSpec.RANDOM,
        encoded_text=alphabets.substitute(text, STANDARD_ALPHABET, alphabet),
        plaintext_alphabet=STANDARD_ALPHABET,
        ciphertext_alphabet=alphabet)


def nihilist(text, polybius_keyword, key):
    """
    Nihilist substitution: each letter's Polybius coordinate (11..55) is added
    to the coordinate of the repeating key letter. Sums are not reduced, so
    numbers above 99 can appear.
    """
    square = alphabets.build_polybius_square(polybius_keyword)
    coordinates = alphabets.polybius_coordinates(text, square)
    single_key_coordinates = alphabets.polybius_coordinates(key, square)
    if not single_key_coordinates:
        raise ValueError('Nihilist key cannot be empty')

    key_coordinates = [single_key_coordinates[i % len(single_key_coordinates)]
                       for i in range(len(coordinates))]
    cipher_numbers = [t + k for t, k in zip(coordinates, key_coordinates)]

    return CipherResult(
        cipher=CipherSpec.NIHILIST,
        encoded_text=' '.join(str(n) for n in cipher_numbers),
        extras={'polybius_square': square,
                'polybius_keyword': polybius_keyword,
                'key': key,
                'coordinates': tuple(coordinates),
                'key_coordinates': tuple(key_coordinates),
                'cipher_numbers': tuple(cipher_numbers)})


def _porta_row(key_letter):
    for key_pair, row in PORTA_TABLEAU.items():
        if key_letter in key_pair:
            return row
    return STANDARD_ALPHABET


def porta(text, keyword):
    """
    Porta encryption with the repeating keyword. Output is letters only.
    """
    clean_text = _normalize_text(text)
    clean_keyword = _normalize_text(keyword)
    if not clean_keyword:
        raise ValueError('Keyword cannot be empty')

    extended_keyword = ''.join(clean_keyword[i % len(clean_keyword)] for i in range(len(clean_text)))
    encoded_text = ''.join(
        _porta_row(k)[STANDARD_ALPHABET.index(t)] for t, k in zip(clean_text, extended_keyword))

    return CipherResult(
        cipher=CipherSpec.PORTA,
        encoded_text=encoded_text,
        keyword=clean_keyword,
        extras={'extended_keyword': extended_keyword,
                'tableau': dict(PORTA_TABLEAU)})


def _random_column_order(num_columns, rng=random):
    """
    Shuffled 1-based column ranks that differ from 1..n. Reshuffles a bounded
    number of times, then swaps the first two columns.
    """
    original = list(range(1, num_columns + 1))
    columns = list(original)
    for _ in range(MAX_COLUMN_SHUFFLES):
        columns = cipher_utils.fisher_yates(columns, rng)
        if columns != original:
            break
    if columns == original and num_columns > 1:
        columns[0], columns[1] = columns[1], columns[0]
    return columns


def columnar_transposition(text, rng=random, num_columns=None, key_order=None):
    """
    Complete columnar transposition.

    The text is normalized, padded with 'X' to fill the last row, written
    into a grid row by row and read out column by column. `key_order[c]` is
    the 1-based rank of column c, e.g. key order [3, 1, 2] reads the second
    column first, then the third, then the first. If neither the column
    count nor the key order is given, both are chosen at random (4 to 9
    columns, never the identity order).
    """
    if key_order is not None:
        key_order = list(key_order)
        num_columns = len(key_order)
        if sorted(key_order) != list(range(1, num_columns + 1)):
            raise ValueError(f"Key order {key_order} is not a permutation of 1..{num_columns}")
    else:
        if num_columns is None:
            num_columns = rng.randint(MIN_COLUMNS, MAX_COLUMNS)
        if num_columns < 1:
            raise ValueError(f"Column count must be positive, got {num_columns}")
        key_order = _random_column_order(num_columns, rng)

    padded_text = _pad(_normalize_text(text), num_columns)
    num_rows = len(padded_text) // num_columns
    grid = tuple(tuple(padded_text[row * num_columns:(row + 1) * num_columns])
                 for row in range(num_rows))

    encoded_text = ''.join(
        grid[row][key_order.index(rank)]
        for rank in range(1, num_columns + 1) for row in range(num_rows))

    return CipherResult(
        cipher=CipherSpec.COLUMNAR,
        encoded_text=encoded_text,
        extras={'num_columns': num_columns,
                'original_columns': tuple(range(1, num_columns + 1)),
                'key_order': tuple(key_order),
                'grid': grid,
                'padded_text': padded_text})


def _word_matrix(keyword):
    word = _normalize_text(keyword)
    if len(word) != 4:
        raise ValueError(f"Hill keyword must have exactly 4 letters, got '{keyword}'")
    matrix = cipher_utils.letters_to_matrix(word)
    if not cipher_utils.is_invertible(matrix):
        raise ValueError(f"Hill keyword '{word}' does not give an invertible matrix mod 26")
    return matrix, word


def _numeric_matrix(rng=random, max_attempts=MAX_MATRIX_ATTEMPTS):
    for _ in range(max_attempts):
        matrix = ((rng.randint(0, 25), rng.randint(0, 25)),
                  (rng.randint(0, 25), rng.randint(0, 25)))
        if cipher_utils.is_invertible(matrix):
            return matrix
    print(f"WARNING: No invertible matrix after {max_attempts} attempts, "
          f"using {FALLBACK_HILL_MATRIX}", file=sys.stderr)
    return FALLBACK_HILL_MATRIX


def hill(text, keyword=None, rng=random):
    """
    2x2 Hill cipher. Without a keyword, half the time the key comes from one
    of the vetted HILL_KEYWORDS, otherwise from random entries that are
    retried until the matrix is invertible mod 26.
    """
    if keyword is None and rng.random() < 0.5:
        keyword = keywords.HILL_KEYWORDS[rng.randint(0, len(keywords.HILL_KEYWORDS) - 1)]

    if keyword is not None:
        matrix, keyword = _word_matrix(keyword)
        display_matrix = tuple(tuple(STANDARD_ALPHABET[v] for v in row) for row in matrix)
    else:
        matrix = _numeric_matrix(rng)
        display_matrix = matrix

    padded_text = _pad(_normalize_text(text), 2)
    values = [STANDARD_ALPHABET.index(c) for c in padded_text]
    encoded_text = ''.join(
        STANDARD_ALPHABET[v] for v in cipher_utils.matrix_encrypt_pairs(matrix, values))

    return CipherResult(
        cipher=CipherSpec.HILL,
        encoded_text=encoded_text,
        keyword=keyword,
        extras={'matrix': display_matrix,
                'numeric_matrix': matrix,
                'is_word_based': keyword is not None,
                'determinant': cipher_utils.determinant_2x2(matrix),
                'padded_text': padded_text})


def to_patristocrat(result):
    """K1/K2 result with every non-letter stripped from the ciphertext. Case is kept."""
    if result.cipher not in PATRISTOCRAT_CIPHERS:
        raise ValueError(f"Patristocrat applies to K1 and K2 only, not {result.cipher.value}")
    encoded_text = ''.join(c for c in result.encoded_text if c in string.ascii_letters)
    return replace(result, encoded_text=encoded_text, patristocrat=True)


CIPHERS = {
    CipherSpec.K1: k1,
    CipherSpec.K2: k2,
    CipherSpec.K3: k3,
    CipherSpec.K4: k4,
    CipherSpec.RANDOM: random_substitution,
    CipherSpec.NIHILIST: nihilist,
    CipherSpec.PORTA: porta,
    CipherSpec.COLUMNAR: columnar_transposition,
    CipherSpec.HILL: hill,
}


def parse_cipher_id(cipher_id):
    """
    'k2' -> (CipherSpec.K2, False), 'k1-patristocrat' -> (CipherSpec.K1, True).
    """
    if isinstance(cipher_id, CipherSpec):
        return cipher_id, False
    name = str(cipher_id).strip().lower()
    is_patristocrat = name.endswith(PATRISTOCRAT_SUFFIX)
    if is_patristocrat:
        name = name[:-len(PATRISTOCRAT_SUFFIX)]
    try:
        return CipherSpec(name), is_patristocrat
    except ValueError:
        raise ValueError(
            f"Unknown cipher '{cipher_id}', expected one of {_get_cipher_names()}") from None


def _require_pair(keys, cipher, names):
    if not isinstance(keys, (tuple, list)) or len(keys) != 2:
        raise ValueError(f"{cipher.value} needs a ({names[0]}, {names[1]}) pair, got {keys!r}")
    return keys


def _require_keyword(keys, cipher):
    if not keys or not isinstance(keys, str):
        raise ValueError(f"{cipher.value} needs a keyword, got {keys!r}")
    return keys


def encode(cipher_id, plaintext, author='', keys=None, rng=random, patristocrat=False):
    """
    Encode `plaintext` with the requested cipher.

    `keys` depends on the cipher: a keyword for K1/K2/K3/Porta (and optionally
    Hill), a (plaintext, ciphertext) keyword pair for K4, a (polybius keyword,
    key) pair for Nihilist, an optional alphabet for random, nothing for
    columnar. Returns None when there is no text to encode.
    """
    cipher, is_patristocrat = parse_cipher_id(cipher_id)
    is_patristocrat = is_patristocrat or patristocrat
    if is_patristocrat and cipher not in PATRISTOCRAT_CIPHERS:
        raise ValueError(f"Patristocrat applies to K1 and K2 only, not {cipher.value}")
    if not plaintext:
        return None

    if cipher in (CipherSpec.K1, CipherSpec.K2, CipherSpec.K3):
        result = CIPHERS[cipher](plaintext, _require_keyword(keys, cipher), rng)
    elif cipher == CipherSpec.K4:
        plaintext_keyword, ciphertext_keyword = _require_pair(
            keys, cipher, ('plaintext keyword', 'ciphertext keyword'))
        result = k4(plaintext, plaintext_keyword, ciphertext_keyword, rng)
    elif cipher == CipherSpec.RANDOM:
        result = random_substitution(plaintext, keys or None, rng)
    elif cipher == CipherSpec.NIHILIST:
        polybius_keyword, key = _require_pair(keys, cipher, ('polybius keyword', 'key'))
        result = nihilist(plaintext, polybius_keyword, key)
    elif cipher == CipherSpec.PORTA:
        result = porta(plaintext, keys or '')
    elif cipher == CipherSpec.COLUMNAR:
        result = columnar_transposition(plaintext, rng)
    else:
        result = hill(plaintext, keys or None, rng)

    result = replace(result, author=author or '')
    if is_patristocrat:
        result = to_patristocrat(result)
    return result


if __name__ == "__main__":
    original_text = "Attack at dawn!"
    rng = random.Random(42)

    for name in _get_cipher_names():
        cipher, _ = parse_cipher_id(name)
        if cipher == CipherSpec.K4:
            keys = ('ZEBRA', 'COMPASS')
        elif cipher == CipherSpec.NIHILIST:
            keys = ('ZEBRA', 'KEY')
        elif cipher in (CipherSpec.RANDOM, CipherSpec.COLUMNAR, CipherSpec.HILL):
            keys = None
        else:
            keys = 'ZEBRA'
        result = encode(name, original_text, keys=keys, rng=rng)
        print(f"{name}: Original: {original_text}, Encrypted: {result.encoded_text}")
