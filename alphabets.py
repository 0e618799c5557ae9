"""
Keyed alphabet construction following ACA conventions.

Two identity-avoidance strategies are provided:

- apply_aca_shift: rotates the whole alphabet (keyword included) until no
  letter sits at its standard position. Used for K1, K2 and K3.
- rearrange_non_keyword_letters: leaves the keyword where it is and rotates
  only the remaining letters among themselves. Used by K4 only.

Both keep the keyword as one unbroken, ordered block so that a worksheet can
highlight it.
"""
import random
import string
import sys
from dataclasses import dataclass

from cipher_utils import identity_positions

STANDARD_ALPHABET = string.ascii_uppercase
MIDDLE_PLACEMENT_MAX_LENGTH = 20
MAX_SHIFT = len(STANDARD_ALPHABET) - 1
MAX_SHIFT_ATTEMPTS = 25
MAX_NON_KEYWORD_SHIFT = 24
MAX_REARRANGE_ATTEMPTS = 24
PLACEMENTS = ('start', 'middle')


@dataclass(frozen=True)
class KeywordPlacement:
    """Where a (normalized) keyword sits inside its alphabet."""
    keyword: str
    start_position: int
    end_position: int

    @classmethod
    def at(cls, keyword, start_position):
        return cls(keyword, start_position, start_position + len(keyword) - 1)

    def positions(self):
        return range(self.start_position, self.end_position + 1)

    def contains(self, position):
        return self.start_position <= position <= self.end_position


def normalize_keyword(keyword):
    """
    Uppercase the keyword, drop anything that isn't A-Z and remove repeated
    letters, keeping the first occurrence: 'Zebra Zone' -> 'ZEBRAON'.
    """
    seen = []
    for char in (keyword or '').upper():
        if char in STANDARD_ALPHABET and char not in seen:
            seen.append(char)
    return ''.join(seen)


def build_keyed_alphabet_raw(keyword, placement='start'):
    """
    Keyword followed by the unused letters in order ('start'), or the unused
    letters split around a centred keyword block ('middle'). Middle placement
    only applies to keywords of 20 letters or fewer.

    Returns (alphabet, KeywordPlacement). No identity avoidance is applied.
    """
    if placement not in PLACEMENTS:
        raise ValueError(
            f"Unknown keyword placement '{placement}', expected one of {PLACEMENTS}")
    clean_keyword = normalize_keyword(keyword)
    remaining = [c for c in STANDARD_ALPHABET if c not in clean_keyword]

    if placement == 'middle' and len(clean_keyword) <= MIDDLE_PLACEMENT_MAX_LENGTH:
        target_start = max(0, (len(STANDARD_ALPHABET) - len(clean_keyword)) // 2)
        before = ''.join(remaining[:target_start])
        after = ''.join(remaining[target_start:])
        alphabet = before + clean_keyword + after
        start_position = len(before)
    else:
        alphabet = clean_keyword + ''.join(remaining)
        start_position = 0

    return alphabet, KeywordPlacement.at(clean_keyword, start_position)


def build_keyed_alphabet(keyword, placement='start', rng=random):
    """
    Build a keyed alphabet and shift it so that no letter maps to itself.
    Returns (alphabet, KeywordPlacement) with the placement already moved to
    the keyword's final position.
    """
    raw_alphabet, raw_placement = build_keyed_alphabet_raw(keyword, placement)
    alphabet, final_placement, _ = apply_aca_shift(raw_alphabet, raw_placement, rng=rng)
    return alphabet, final_placement


def circular_shift(alphabet, shift):
    """Rotate left: the letter at position i moves to position i - shift."""
    shift %= len(alphabet)
    return alphabet[shift:] + alphabet[:shift]


def shifted_placement(placement, shift, size=len(STANDARD_ALPHABET)):
    return KeywordPlacement.at(placement.keyword, (placement.start_position - shift) % size)


def _is_unbroken(placement, size=len(STANDARD_ALPHABET)):
    return placement.start_position + len(placement.keyword) <= size


def apply_aca_shift(alphabet, placement, comparison=None, rng=random,
                    max_attempts=MAX_SHIFT_ATTEMPTS):
    """
    Rotate the whole alphabet by 1..25 positions until no letter sits at its
    standard position, the keyword block does not wrap around the end, and
    the result differs from `comparison` (K3 passes its plaintext alphabet).

    Shifts are tried in cyclic order starting from a random one. If none
    qualifies, the best candidate is returned: unbroken keyword first, then
    no standard hits, then differing from `comparison`, then fewest hits.

    Returns (alphabet, KeywordPlacement, shift).
    """
    shift = rng.randint(1, MAX_SHIFT)
    best = None

    for _ in range(max_attempts):
        candidate = circular_shift(alphabet, shift)
        candidate_placement = shifted_placement(placement, shift)
        unbroken = _is_unbroken(candidate_placement)
        hits = len(identity_positions(candidate, STANDARD_ALPHABET))
        same_as_comparison = candidate == comparison

        if unbroken and not hits and not same_as_comparison:
            return candidate, candidate_placement, shift

        rank = (not unbroken, hits > 0, same_as_comparison, hits)
        if best is None or rank < best[0]:
            best = (rank, candidate, candidate_placement, shift)

        shift = (shift % MAX_SHIFT) + 1

    _, candidate, candidate_placement, shift = best
    print(f"WARNING: No clean shift found for keyword '{placement.keyword}', "
          f"using shift {shift} with identity positions "
          f"{identity_positions(candidate, STANDARD_ALPHABET)}", file=sys.stderr)
    return candidate, candidate_placement, shift


def _rotate_letters(letters, shift):
    rotated = [None] * len(letters)
    for i, letter in enumerate(letters):
        rotated[(i + shift) % len(letters)] = letter
    return rotated


def _swap_out_identities(result, free_positions):
    """
    Swap letters that still sit at their standard position with another free
    (non-keyword) position, only when neither end of the swap becomes an
    identity.
    """
    for i in free_positions:
        if result[i] != STANDARD_ALPHABET[i]:
            continue
        current_index = free_positions.index(i)
        for offset in range(1, len(free_positions)):
            target = free_positions[(current_index + offset) % len(free_positions)]
            if (result[target] != STANDARD_ALPHABET[target]
                    and result[i] != STANDARD_ALPHABET[target]
                    and result[target] != STANDARD_ALPHABET[i]):
                result[i], result[target] = result[target], result[i]
                break
    return result


def rearrange_non_keyword_letters(alphabet, placement, rng=random,
                                  max_attempts=MAX_REARRANGE_ATTEMPTS):
    """
    Caesar-shift only the letters outside the keyword block, cycling the
    shift through 1..24 from a random start, until no letter maps to itself.
    Keyword letters never move. If every shift leaves an identity, the best
    attempt is patched with pairwise swaps among non-keyword positions; an
    identity inside the keyword block is left in place.

    Returns (alphabet, KeywordPlacement); the placement does not change.
    """
    free_positions = [i for i in range(len(alphabet)) if not placement.contains(i)]
    free_letters = [alphabet[i] for i in free_positions]
    shift = rng.randint(1, MAX_NON_KEYWORD_SHIFT)
    best = None

    for _ in range(max_attempts):
        result = list(alphabet)
        if free_letters:
            for position, letter in zip(free_positions, _rotate_letters(free_letters, shift)):
                result[position] = letter
        hits = len(identity_positions(result, STANDARD_ALPHABET))
        if not hits:
            return ''.join(result), placement
        if best is None or hits < best[0]:
            best = (hits, result)
        shift = (shift % MAX_NON_KEYWORD_SHIFT) + 1

    result = _swap_out_identities(best[1], free_positions)
    remaining = identity_positions(result, STANDARD_ALPHABET)
    if remaining:
        print(f"WARNING: Keyword '{placement.keyword}' keeps identity mappings "
              f"at positions {remaining}", file=sys.stderr)
    return ''.join(result), placement


def substitute(text, plain_alphabet, cipher_alphabet):
    """
    Replace each letter by the cipher letter at the index the letter holds
    in `plain_alphabet`. Case is preserved; everything else passes through.
    """
    encoded = []
    for char in text:
        upper = char.upper()
        if char in string.ascii_letters and upper in plain_alphabet:
            letter = cipher_alphabet[plain_alphabet.index(upper)]
            encoded.append(letter if char.isupper() else letter.lower())
        else:
            encoded.append(char)
    return ''.join(encoded)


def build_polybius_square(keyword):
    """
    5x5 square from the keyword (J removed, duplicates dropped) followed by
    the rest of the alphabet without J.
    """
    clean_keyword = normalize_keyword((keyword or '').upper().replace('J', ''))
    remaining = [c for c in STANDARD_ALPHABET.replace('J', '') if c not in clean_keyword]
    letters = clean_keyword + ''.join(remaining)
    return tuple(tuple(letters[row * 5:row * 5 + 5]) for row in range(5))


def clean_polybius_text(text):
    return ''.join(c for c in (text or '').upper() if c in STANDARD_ALPHABET).replace('J', 'I')


def polybius_coordinates(text, square):
    """Two-digit 1-based (row, col) coordinates for each letter of `text`."""
    lookup = {letter: (row + 1) * 10 + (col + 1)
              for row, letters in enumerate(square)
              for col, letter in enumerate(letters)}
    return [lookup[c] for c in clean_polybius_text(text)]
