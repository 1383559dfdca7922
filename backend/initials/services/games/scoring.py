"""Score matrix for a finished board.

Per row, every team that filled in both words is compared with the other
answering teams on a normalized key (lowercase, single spaces):

  - shares its answer with another team   -> 1 point
  - the only team that answered the row   -> 5 points
  - answered, others did too, but unique  -> 3 points
  - did not answer                        -> 0 points, not overridable

The initiator may override any answered cell with a value from {0, 1, 3, 5}.
Overrides are tied to the answer they were made against and stop applying
once that answer changes.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from initials.constants import ROW_COUNT, team_name

ALLOWED_SCORES = (0, 1, 3, 5)
_WHITESPACE = re.compile(r'\s+')

Words = Tuple[Optional[str], Optional[str]]


class Classification(str, Enum):
    NO_ANSWER = 'no_answer'
    SHARED_MATCH = 'shared_match'
    SOLE_ANSWER = 'sole_answer'
    UNIQUE_BUT_CONTESTED = 'unique_but_contested'


SCORE_BY_CLASSIFICATION = {
    Classification.NO_ANSWER: 0,
    Classification.SHARED_MATCH: 1,
    Classification.SOLE_ANSWER: 5,
    Classification.UNIQUE_BUT_CONTESTED: 3,
}


def is_answered(words: Optional[Words]) -> bool:
    if not words:
        return False
    word1, word2 = words
    return bool((word1 or '').strip()) and bool((word2 or '').strip())


def normalize_answer(word1: str, word2: str) -> str:
    joined = ' '.join([word1.strip(), word2.strip()])
    return _WHITESPACE.sub(' ', joined).lower().strip()


@dataclass
class ScoreEntry:
    row_index: int
    team_number: int
    answer: Optional[Tuple[str, str]]
    classification: Classification
    score: int
    overridable: bool
    overridden: bool = False
    validation: Optional[str] = None
    canonical_url: Optional[str] = None

    @property
    def answer_key(self) -> Optional[str]:
        return normalize_answer(*self.answer) if self.answer else None

    def to_dict(self):
        return {
            'row_index': self.row_index,
            'team_number': self.team_number,
            'team_name': team_name(self.team_number),
            'answer': list(self.answer) if self.answer else None,
            'classification': self.classification.value,
            'score': self.score,
            'overridable': self.overridable,
            'overridden': self.overridden,
            'validation': self.validation,
            'canonical_url': self.canonical_url,
        }


@dataclass(frozen=True)
class Adjustment:
    """A stored override and/or validation result for one (row, team) cell."""
    row_index: int
    team_number: int
    answer_key: str
    score: Optional[int] = None
    validation: Optional[str] = None
    canonical_url: Optional[str] = None


def score_row(row_index: int, team_numbers: Sequence[int], answers: Mapping[int, Words]) -> List[ScoreEntry]:
    """Classify one row. `answers` maps team number -> (word1, word2)."""
    keys: Dict[int, str] = {}
    for team in team_numbers:
        words = answers.get(team)
        if is_answered(words):
            keys[team] = normalize_answer(*words)

    entries = []
    for team in team_numbers:
        if team not in keys:
            entries.append(ScoreEntry(row_index, team, None, Classification.NO_ANSWER, 0, overridable=False))
            continue
        key = keys[team]
        if any(other != team and other_key == key for other, other_key in keys.items()):
            classification = Classification.SHARED_MATCH
        elif len(keys) == 1:
            classification = Classification.SOLE_ANSWER
        else:
            classification = Classification.UNIQUE_BUT_CONTESTED
        word1, word2 = answers[team]
        entries.append(ScoreEntry(
            row_index, team, (word1.strip(), word2.strip()), classification,
            SCORE_BY_CLASSIFICATION[classification], overridable=True,
        ))
    return entries


def score_game(team_numbers: Sequence[int], answers: Mapping[Tuple[int, int], Words],
               row_count: int = ROW_COUNT) -> List[List[ScoreEntry]]:
    """Score every row. `answers` maps (team number, row index) -> (word1, word2)."""
    rows = []
    for row_index in range(row_count):
        row_answers = {team: answers[(team, row_index)] for team in team_numbers if (team, row_index) in answers}
        rows.append(score_row(row_index, team_numbers, row_answers))
    return rows


def apply_adjustments(rows: List[List[ScoreEntry]], adjustments: Iterable[Adjustment]) -> List[List[ScoreEntry]]:
    """Layer stored overrides/validations onto freshly computed rows, in place.

    An adjustment whose answer_key no longer matches the cell's answer is stale
    and ignored.
    """
    by_cell = {(a.row_index, a.team_number): a for a in adjustments}
    for row in rows:
        for entry in row:
            adjustment = by_cell.get((entry.row_index, entry.team_number))
            if adjustment is None or not entry.overridable or entry.answer_key != adjustment.answer_key:
                continue
            entry.validation = adjustment.validation
            entry.canonical_url = adjustment.canonical_url
            if adjustment.score is not None:
                entry.score = adjustment.score
                entry.overridden = True
    return rows


def team_totals(rows: Iterable[Iterable[ScoreEntry]], team_numbers: Sequence[int]) -> List[Tuple[int, int]]:
    """(team number, total) pairs, highest first; ties keep team order."""
    totals = {team: 0 for team in team_numbers}
    for row in rows:
        for entry in row:
            totals[entry.team_number] = totals.get(entry.team_number, 0) + entry.score
    return sorted(totals.items(), key=lambda item: item[1], reverse=True)
