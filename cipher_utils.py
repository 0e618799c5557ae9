"""
Small helpers shared by the alphabet builders and the cipher functions:
shuffling, identity checks and 2x2 matrix arithmetic mod 26.
"""
import math
import random

import numpy as np

MODULUS = 26


def fisher_yates(items, rng=random):
    """
    Return a shuffled copy of `items` using the Fisher-Yates algorithm.
    `rng` only needs a randint(a, b) method.
    """
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def identity_positions(alphabet, reference):
    """Positions where `alphabet` and `reference` hold the same letter."""
    return [i for i, (a, b) in enumerate(zip(alphabet, reference)) if a == b]


def has_identity_mapping(alphabet, reference):
    return any(a == b for a, b in zip(alphabet, reference))


def is_permutation(alphabet, reference):
    return len(alphabet) == len(reference) and sorted(alphabet) == sorted(reference)


def determinant_2x2(matrix, modulus=MODULUS):
    """Determinant of a 2x2 matrix reduced into [0, modulus)."""
    (a, b), (c, d) = matrix
    return (a * d - b * c) % modulus


def is_invertible(matrix, modulus=MODULUS):
    return math.gcd(determinant_2x2(matrix, modulus), modulus) == 1


def letters_to_matrix(word):
    """'HILL' -> ((7, 8), (11, 11)); A=0 ... Z=25, filled row by row."""
    values = [ord(c) - ord('A') for c in word.upper()]
    return ((values[0], values[1]), (values[2], values[3]))


def matrix_encrypt_pairs(matrix, values, modulus=MODULUS):
    """
    Multiply each (x, y) pair of `values` by `matrix` mod `modulus`.
    `values` must have even length.
    """
    if not values:
        return []
    key = np.array(matrix, dtype=np.int64)
    pairs = np.array(values, dtype=np.int64).reshape(-1, 2).T
    encrypted = (key @ pairs) % modulus
    return encrypted.T.flatten().tolist()
