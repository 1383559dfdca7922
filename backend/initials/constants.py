"""Immutable game tables.

Nothing here is mutated at runtime; services receive these values as
arguments (with these as defaults) instead of reaching for module state.
"""

import string
from types import MappingProxyType

ALPHABET = string.ascii_uppercase
ROW_COUNT = 26

# Answer cells live in board columns 2 and 3 (column 1 shows the initials)
FIRST_WORD_COLUMN = 2
SECOND_WORD_COLUMN = 3
ANSWER_COLUMNS = (FIRST_WORD_COLUMN, SECOND_WORD_COLUMN)

TIMER_DURATIONS_SEC = tuple(range(60, 601, 60))

PLAYER_NAME_MAX_LENGTH = 64

# Share of US first names starting with each letter
FIRST_NAME_DISTRIBUTION = MappingProxyType({
    'A': 0.09732, 'B': 0.04452, 'C': 0.06532, 'D': 0.04419, 'E': 0.06148,
    'F': 0.01092, 'G': 0.02579, 'H': 0.02783, 'I': 0.01792, 'J': 0.09966,
    'K': 0.04840, 'L': 0.07009, 'M': 0.06946, 'N': 0.03119, 'O': 0.02135,
    'P': 0.01178, 'Q': 0.00136, 'R': 0.04467, 'S': 0.04202, 'T': 0.03460,
    'U': 0.00144, 'V': 0.00640, 'W': 0.02751, 'X': 0.00378, 'Y': 0.00553,
    'Z': 0.01501,
})

# Share of US last names starting with each letter
LAST_NAME_DISTRIBUTION = MappingProxyType({
    'A': 0.0375, 'B': 0.0896, 'C': 0.0638, 'D': 0.0565, 'E': 0.0203,
    'F': 0.0363, 'G': 0.0534, 'H': 0.0559, 'I': 0.0076, 'J': 0.0136,
    'K': 0.0570, 'L': 0.0524, 'M': 0.0828, 'N': 0.0213, 'O': 0.0163,
    'P': 0.0527, 'Q': 0.0026, 'R': 0.0480, 'S': 0.1093, 'T': 0.0388,
    'U': 0.0047, 'V': 0.0255, 'W': 0.0346, 'X': 0.0002, 'Y': 0.0065,
    'Z': 0.0129,
})

NAMED_DISTRIBUTIONS = MappingProxyType({
    'RANDOM_FIRST_NAMES': FIRST_NAME_DISTRIBUTION,
    'RANDOM_LAST_NAMES': LAST_NAME_DISTRIBUTION,
})

# Team n is named NATO_ALPHABET[n - 1]
NATO_ALPHABET = (
    'Alpha', 'Bravo', 'Charlie', 'Delta', 'Echo', 'Foxtrot', 'Golf', 'Hotel',
    'India', 'Juliet', 'Kilo', 'Lima', 'Mike', 'November', 'Oscar', 'Papa',
    'Quebec', 'Romeo', 'Sierra', 'Tango', 'Uniform', 'Victor', 'Whiskey',
    'X-ray', 'Yankee', 'Zulu',
)

CODE_ADJECTIVES = (
    'Icy', 'Hot', 'Red', 'Blue', 'Big', 'Tiny', 'Fast', 'Slow', 'Wild', 'Calm',
    'Dark', 'Lite', 'Cool', 'Warm', 'Bold', 'Soft', 'Hard', 'Rare', 'Wide', 'High',
    'Low', 'Neat', 'Odd', 'Old', 'New', 'Raw', 'Pure', 'Rich', 'Dull', 'Loud',
    'Pink', 'Gray', 'Gold', 'Sour', 'Flat', 'Deep', 'Weak', 'Long', 'Tall', 'Kind',
)

CODE_NOUNS = (
    'Apple', 'Bear', 'Cloud', 'Dog', 'Eagle', 'Fox', 'Game', 'Hero', 'Iron', 'Jade',
    'King', 'Lion', 'Moon', 'Night', 'Ocean', 'Path', 'Queen', 'River', 'Star', 'Tree',
    'Unicorn', 'Viper', 'Wave', 'Xerus', 'Yacht', 'Zebra', 'Fire', 'Wind', 'Rain', 'Snow',
    'Stone', 'Pearl', 'Flame', 'Storm', 'Light', 'Dawn', 'Dusk', 'Shark', 'Tiger', 'Wolf',
)


def team_name(team_number: int) -> str:
    if 1 <= team_number <= len(NATO_ALPHABET):
        return NATO_ALPHABET[team_number - 1]
    return f'Team {team_number}'
