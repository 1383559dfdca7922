"""Letter-pair generation for the 26 board rows.

Each side (first / second initial) follows its own pattern:

  - A_TO_Z            : A, B, C, ... Z
  - Z_TO_A            : Z, Y, X, ... A
  - RANDOM            : a shuffled A..Z, each letter exactly once
  - RANDOM_*_NAMES    : independent draws from a letter distribution (repeats allowed)
  - CUSTOM_TEXT       : the letters of a user supplied text, then random letters

After candidates are produced a repair pass keeps row pairs unique: when a
pair was already used and a side can vary (custom text or weighted draws),
the varying side moves on and the row is retried, up to a fixed number of
attempts. Fixed sides (A_TO_Z, Z_TO_A, RANDOM) keep their row letter so each
still covers the alphabet.
"""

import random
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Mapping, Optional, Tuple

from initials.constants import ALPHABET, NAMED_DISTRIBUTIONS, ROW_COUNT

DEFAULT_MAX_ATTEMPTS = 100
_NON_ALPHA = re.compile(r'[^a-zA-Z]')


class Pattern(str, Enum):
    SEQUENTIAL = 'A_TO_Z'
    REVERSE_SEQUENTIAL = 'Z_TO_A'
    UNIQUE_RANDOM = 'RANDOM'
    WEIGHTED_RANDOM = 'WEIGHTED_RANDOM'
    CUSTOM_TEXT = 'CUSTOM_TEXT'


@dataclass(frozen=True)
class RowPrompt:
    row_index: int
    first_letter: str
    second_letter: str

    @property
    def initials(self) -> str:
        return self.first_letter + self.second_letter

    def to_dict(self):
        return {
            'row_index': self.row_index,
            'first_letter': self.first_letter,
            'second_letter': self.second_letter,
        }


def normalize_distribution(weights: Mapping[str, float]) -> Tuple[Tuple[str, float], ...]:
    """Return (letter, probability) pairs in A..Z order, scaled to sum to 1."""
    total = 0.0
    for letter, weight in weights.items():
        if letter not in ALPHABET or weight < 0:
            raise ValueError(f'invalid distribution entry {letter!r}: {weight!r}')
        total += weight
    if total <= 0:
        raise ValueError('distribution has no probability mass')
    return tuple((letter, weights[letter] / total) for letter in ALPHABET if weights.get(letter, 0) > 0)


@dataclass(frozen=True)
class LetterPairConfig:
    """Pattern for one side of the board. Build with from_name() for wire values."""
    pattern: Pattern
    distribution: Tuple[Tuple[str, float], ...] = field(default=())
    text: str = ''
    name: Optional[str] = None

    @classmethod
    def sequential(cls):
        return cls(Pattern.SEQUENTIAL, name=Pattern.SEQUENTIAL.value)

    @classmethod
    def reverse_sequential(cls):
        return cls(Pattern.REVERSE_SEQUENTIAL, name=Pattern.REVERSE_SEQUENTIAL.value)

    @classmethod
    def unique_random(cls):
        return cls(Pattern.UNIQUE_RANDOM, name=Pattern.UNIQUE_RANDOM.value)

    @classmethod
    def weighted_random(cls, weights: Mapping[str, float], name: Optional[str] = None):
        return cls(Pattern.WEIGHTED_RANDOM, distribution=normalize_distribution(weights),
                   name=name or Pattern.WEIGHTED_RANDOM.value)

    @classmethod
    def custom_text(cls, text: str):
        return cls(Pattern.CUSTOM_TEXT, text=text or '', name=Pattern.CUSTOM_TEXT.value)

    @classmethod
    def from_name(cls, name: str, text: str = '', distributions: Mapping[str, Mapping[str, float]] = NAMED_DISTRIBUTIONS):
        key = (name or '').strip().upper()
        if key == Pattern.SEQUENTIAL.value:
            return cls.sequential()
        if key == Pattern.REVERSE_SEQUENTIAL.value:
            return cls.reverse_sequential()
        if key == Pattern.UNIQUE_RANDOM.value:
            return cls.unique_random()
        if key == Pattern.CUSTOM_TEXT.value:
            return cls.custom_text(text)
        if key in distributions:
            return cls.weighted_random(distributions[key], name=key)
        raise ValueError(f'unknown letter pattern {name!r}')

    @property
    def can_vary(self) -> bool:
        return self.pattern in (Pattern.WEIGHTED_RANDOM, Pattern.CUSTOM_TEXT)


def extract_letters(text: str) -> List[str]:
    return list(_NON_ALPHA.sub('', text or '').upper())


def weighted_letter(distribution, rng: random.Random) -> str:
    """Cumulative-probability draw; 'A' only if float drift leaves no match."""
    u = rng.random()
    cumulative = 0.0
    for letter, probability in distribution:
        cumulative += probability
        if u < cumulative:
            return letter
    return 'A'


class _Side:
    """Letter source for one side of the board during a single generation."""

    def __init__(self, config: LetterPairConfig, rng: random.Random):
        self.config = config
        self.rng = rng
        self.cursor = 0
        self.permutation = rng.sample(ALPHABET, len(ALPHABET)) if config.pattern == Pattern.UNIQUE_RANDOM else None
        self.letters = extract_letters(config.text) if config.pattern == Pattern.CUSTOM_TEXT else None

    def letter_for(self, row_index: int) -> str:
        pattern = self.config.pattern
        if pattern == Pattern.SEQUENTIAL:
            return ALPHABET[row_index % 26]
        if pattern == Pattern.REVERSE_SEQUENTIAL:
            return ALPHABET[25 - (row_index % 26)]
        if pattern == Pattern.UNIQUE_RANDOM:
            return self.permutation[row_index % 26]
        if pattern == Pattern.WEIGHTED_RANDOM:
            return weighted_letter(self.config.distribution, self.rng)
        if self.cursor < len(self.letters):
            return self.letters[self.cursor]
        return self.rng.choice(ALPHABET)

    def advance(self) -> None:
        if self.config.pattern == Pattern.CUSTOM_TEXT:
            self.cursor += 1


class LetterPairGenerator:
    def __init__(self, rng: Optional[random.Random] = None, max_attempts: int = DEFAULT_MAX_ATTEMPTS,
                 row_count: int = ROW_COUNT):
        self.rng = rng or random.Random()
        self.max_attempts = max_attempts
        self.row_count = row_count

    def generate(self, first: LetterPairConfig, second: LetterPairConfig) -> List[RowPrompt]:
        first_side = _Side(first, self.rng)
        second_side = _Side(second, self.rng)
        repairable = first.can_vary or second.can_vary

        prompts: List[RowPrompt] = []
        used = set()
        for row_index in range(self.row_count):
            attempts = 0
            while True:
                pair = (first_side.letter_for(row_index), second_side.letter_for(row_index))
                first_side.advance()
                second_side.advance()
                attempts += 1
                if pair not in used or not repairable or attempts >= self.max_attempts:
                    break
            used.add(pair)
            prompts.append(RowPrompt(row_index, pair[0], pair[1]))
        return prompts


def generate_row_prompts(first: LetterPairConfig, second: LetterPairConfig,
                         rng: Optional[random.Random] = None,
                         max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> List[RowPrompt]:
    return LetterPairGenerator(rng=rng, max_attempts=max_attempts).generate(first, second)
