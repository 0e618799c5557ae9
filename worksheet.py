"""
Worksheet metadata for an encoded puzzle: letter frequency tables, keyword
highlight positions and keyword placement checks, plus plain-text renderings
used by the command line tool.
"""
import pandas as pd

from alphabets import STANDARD_ALPHABET, normalize_keyword
from ciphers import CipherSpec

# English letter frequency (%)
ENGLISH_FREQUENCIES = {
    'E': 12.7, 'T': 9.1, 'A': 8.2, 'O': 7.5, 'I': 7.0, 'N': 6.7, 'S': 6.3,
    'H': 6.1, 'R': 6.0, 'D': 4.3, 'L': 4.0, 'C': 2.8, 'U': 2.8, 'M': 2.4,
    'W': 2.4, 'F': 2.2, 'G': 2.0, 'Y': 2.0, 'P': 1.9, 'B': 1.3, 'V': 1.0,
    'K': 0.8, 'J': 0.15, 'X': 0.15, 'Q': 0.10, 'Z': 0.07,
}

SUBSTITUTION_CIPHERS = (CipherSpec.K1, CipherSpec.K2, CipherSpec.K3, CipherSpec.K4, CipherSpec.RANDOM)


def letter_frequencies(text):
    """Count of each letter A-Z in `text` (case-insensitive), zeros included."""
    letters = [c for c in (text or '').upper() if c in STANDARD_ALPHABET]
    counts = pd.Series(letters, dtype=object).value_counts()
    return counts.reindex(list(STANDARD_ALPHABET), fill_value=0).astype(int)


def english_reference_table():
    """English letter frequencies sorted from most to least common."""
    df = pd.DataFrame(list(ENGLISH_FREQUENCIES.items()), columns=['letter', 'frequency'])
    return df.sort_values('frequency', ascending=False, kind='stable').reset_index(drop=True)


def substitution_worksheet(result):
    """
    Solving table for a substitution puzzle: one column per ciphertext letter
    with its count and an empty row to fill in plaintext. K2 puts the blank
    row on top, every other cipher puts it last.
    """
    frequencies = letter_frequencies(result.encoded_text)
    rows = {
        'ciphertext': list(STANDARD_ALPHABET),
        'frequency': [str(n) if n else '-' for n in frequencies],
        'plaintext': [''] * len(STANDARD_ALPHABET),
    }
    order = ['ciphertext', 'frequency', 'plaintext']
    if result.cipher == CipherSpec.K2:
        order = ['plaintext', 'ciphertext', 'frequency']
    return pd.DataFrame.from_dict(rows, orient='index', columns=list(STANDARD_ALPHABET)).loc[order]


def find_keyword_positions(alphabet, keyword):
    """Positions in `alphabet` holding a letter of `keyword`."""
    letters = set(normalize_keyword(keyword))
    return [i for i, letter in enumerate(alphabet or '') if letter in letters]


def _placement_positions(placement):
    if placement is None or not placement.keyword:
        return []
    return list(placement.positions())


def keyword_highlight_positions(result):
    """
    Alphabet positions to highlight, as {'plaintext': [...], 'ciphertext': [...]}.

    K3 is located by letter search in both alphabets. K1, K2 and K4 use the
    placement ranges recorded when the alphabets were built.
    """
    highlights = {'plaintext': [], 'ciphertext': []}
    if result.cipher == CipherSpec.K3:
        highlights['plaintext'] = find_keyword_positions(result.plaintext_alphabet, result.keyword)
        highlights['ciphertext'] = find_keyword_positions(result.ciphertext_alphabet, result.keyword)
    elif result.cipher in (CipherSpec.K1, CipherSpec.K2, CipherSpec.K4):
        highlights['plaintext'] = _placement_positions(result.plaintext_placement)
        highlights['ciphertext'] = _placement_positions(result.ciphertext_placement)
    return highlights


def check_keyword_order(alphabet, keyword):
    """True if the keyword letters form one contiguous, in-order block."""
    clean_keyword = normalize_keyword(keyword)
    if not clean_keyword:
        return True
    start = alphabet.find(clean_keyword[0])
    return start != -1 and alphabet[start:start + len(clean_keyword)] == clean_keyword


def _keywords_to_check(result):
    if result.cipher == CipherSpec.K1:
        return [('K1 plaintext', result.plaintext_alphabet, result.keyword)]
    if result.cipher == CipherSpec.K2:
        return [('K2 ciphertext', result.ciphertext_alphabet, result.keyword)]
    if result.cipher == CipherSpec.K3:
        return [('K3 plaintext', result.plaintext_alphabet, result.keyword),
                ('K3 ciphertext', result.ciphertext_alphabet, result.keyword)]
    if result.cipher == CipherSpec.K4:
        return [('K4 plaintext', result.plaintext_alphabet, result.extras['plaintext_keyword']),
                ('K4 ciphertext', result.ciphertext_alphabet, result.extras['ciphertext_keyword'])]
    return []


def validate_keyword_positioning(result):
    """
    Check that every keyword of a K1-K4 result appears contiguously and in
    order in its alphabet. Porta only needs a non-empty keyword.
    """
    report = {'is_valid': True, 'errors': [], 'warnings': []}

    if result.cipher == CipherSpec.PORTA:
        if not normalize_keyword(result.keyword):
            report['is_valid'] = False
            report['errors'].append('Porta cipher keyword cannot be empty')
        return report

    for context, alphabet, keyword in _keywords_to_check(result):
        clean_keyword = normalize_keyword(keyword)
        missing = [c for c in clean_keyword if c not in alphabet]
        if missing:
            report['is_valid'] = False
            report['errors'].append(f"{context}: Keyword letters {missing} not found in alphabet")
            continue
        if not check_keyword_order(alphabet, clean_keyword):
            report['is_valid'] = False
            positions = ', '.join(f"{c}@{alphabet.index(c)}" for c in clean_keyword)
            report['warnings'].append(
                f"{context}: Keyword '{clean_keyword}' is not one ordered block. Positions: {positions}")
    return report


def _marker_row(alphabet, positions):
    return ' '.join('^' if i in positions else ' ' for i in range(len(alphabet))).rstrip()


def format_alphabet_rows(result):
    """Plaintext/ciphertext alphabet rows with keyword letters marked below."""
    if result.plaintext_alphabet is None or result.ciphertext_alphabet is None:
        return ''
    highlights = keyword_highlight_positions(result)
    lines = [f"Plain:  {' '.join(result.plaintext_alphabet)}"]
    if highlights['plaintext']:
        lines.append(f"        {_marker_row(result.plaintext_alphabet, highlights['plaintext'])}")
    lines.append(f"Cipher: {' '.join(result.ciphertext_alphabet)}")
    if highlights['ciphertext']:
        lines.append(f"        {_marker_row(result.ciphertext_alphabet, highlights['ciphertext'])}")
    return '\n'.join(lines)


def format_reference_table():
    """English frequencies as two rows, most common letter first."""
    table = english_reference_table().set_index('letter').T
    table.index = ['English %']
    table.columns.name = None
    return table.to_string()


def format_polybius_square(square):
    lines = ['   ' + ' '.join(str(col + 1) for col in range(len(square[0])))]
    for row, letters in enumerate(square):
        lines.append(f"{row + 1}  " + ' '.join(letters))
    return '\n'.join(lines)


def format_grid(grid, key_order=None):
    lines = []
    if key_order:
        lines.append(' '.join(str(k) for k in key_order))
    lines.extend(' '.join(row) for row in grid)
    return '\n'.join(lines)


def format_matrix(matrix):
    return '\n'.join(' '.join(f"{v!s:>2}" for v in row) for row in matrix)


def _revealed_keys(result):
    if result.cipher == CipherSpec.K4:
        return (f"Plaintext keyword: {result.extras['plaintext_keyword']}\n"
                f"Ciphertext keyword: {result.extras['ciphertext_keyword']}")
    if result.cipher == CipherSpec.NIHILIST:
        return (f"Polybius keyword: {result.extras['polybius_keyword']}\n"
                f"Key: {result.extras['key']}")
    if result.cipher == CipherSpec.COLUMNAR:
        return f"Key order: {' '.join(str(k) for k in result.extras['key_order'])}"
    if result.keyword:
        return f"Keyword: {result.keyword}"
    return ''


def format_worksheet(result, reveal=False):
    """
    Plain-text worksheet: ciphertext, the solving aids for the cipher type
    and, with `reveal`, the key material and alphabets.
    """
    title = result.cipher.value.upper()
    if result.patristocrat:
        title += ' PATRISTOCRAT'
    sections = [title, result.encoded_text]
    if result.author:
        sections.append(f"Author: {result.author}")

    if result.cipher in SUBSTITUTION_CIPHERS:
        sections.append(substitution_worksheet(result).to_string())
        sections.append(format_reference_table())
    elif result.cipher == CipherSpec.NIHILIST and reveal:
        sections.append(format_polybius_square(result.extras['polybius_square']))
    elif result.cipher == CipherSpec.COLUMNAR:
        sections.append(f"Columns: {result.extras['num_columns']}")
    elif result.cipher == CipherSpec.HILL and reveal:
        sections.append(format_matrix(result.extras['matrix']))

    if reveal:
        revealed = _revealed_keys(result)
        if revealed:
            sections.append(revealed)
        if result.cipher in SUBSTITUTION_CIPHERS:
            sections.append(format_alphabet_rows(result))
        elif result.cipher == CipherSpec.COLUMNAR:
            sections.append(format_grid(result.extras['grid'], result.extras['key_order']))

    return '\n\n'.join(s for s in sections if s)
