import pytest

from initials.services.games.countdown import remaining
from initials.services.games.scoring import (
    Adjustment, Classification, apply_adjustments, is_answered, normalize_answer,
    score_game, score_row, team_totals,
)


def _by_team(entries):
    return {e.team_number: e for e in entries}


def test_normalization_ignores_case_and_spacing():
    assert normalize_answer('Apple ', ' Pie') == 'apple pie'
    assert normalize_answer('New   York', 'Yankees') == 'new york yankees'
    assert normalize_answer('APPLE', 'PIE') == normalize_answer('apple', '  pie  ')


def test_answered_requires_both_words():
    assert is_answered(('Apple', 'Pie'))
    assert not is_answered(('Apple', '   '))
    assert not is_answered((None, 'Pie'))
    assert not is_answered(None)


def test_shared_answers_score_one():
    entries = _by_team(score_row(0, [1, 2], {1: ('Apple', 'Zebra'), 2: (' apple ', 'ZEBRA')}))
    for team in (1, 2):
        assert entries[team].classification == Classification.SHARED_MATCH
        assert entries[team].score == 1


def test_sole_answer_scores_five():
    entries = _by_team(score_row(3, [1, 2, 3], {2: ('Brigham', 'Young'), 3: ('', 'Yodel')}))
    assert entries[2].classification == Classification.SOLE_ANSWER
    assert entries[2].score == 5
    assert entries[1].classification == Classification.NO_ANSWER
    assert entries[3].classification == Classification.NO_ANSWER


def test_three_teams_two_match():
    entries = _by_team(score_row(0, [1, 2, 3], {
        1: ('Apple', 'Zebra'),
        2: ('apple', 'zebra'),
        3: ('Ant', 'Zone'),
    }))
    assert entries[1].score == 1
    assert entries[2].score == 1
    assert entries[3].score == 3
    assert entries[3].classification == Classification.UNIQUE_BUT_CONTESTED


def test_two_different_answers_both_contested():
    entries = _by_team(score_row(0, [1, 2], {1: ('Apple', 'Zebra'), 2: ('Ant', 'Zone')}))
    assert entries[1].classification == Classification.UNIQUE_BUT_CONTESTED
    assert entries[2].classification == Classification.UNIQUE_BUT_CONTESTED
    assert entries[1].score == entries[2].score == 3


def test_unanswered_is_zero_and_locked():
    entries = _by_team(score_row(0, [1, 2], {1: ('Apple', 'Zebra'), 2: ('Ant', None)}))
    assert entries[2].classification == Classification.NO_ANSWER
    assert entries[2].score == 0
    assert entries[2].overridable is False
    assert entries[2].answer is None
    assert entries[1].overridable is True


def test_score_game_covers_every_row_and_team():
    rows = score_game([1, 2, 3], {(1, 0): ('A', 'B'), (2, 25): ('C', 'D')})
    assert len(rows) == 26
    assert all(len(row) == 3 for row in rows)
    assert rows[0][0].score == 5
    assert rows[25][1].score == 5
    assert rows[12][2].classification == Classification.NO_ANSWER


def test_team_totals_sum_and_sort():
    rows = score_game([1, 2, 3], {
        (1, 0): ('Apple', 'Zebra'), (2, 0): ('Ant', 'Zone'),
        (2, 1): ('Bat', 'Yak'),
        (3, 2): ('Cat', 'Xray'), (1, 2): ('cat', 'xray'),
    })
    totals = team_totals(rows, [1, 2, 3])
    assert totals == [(2, 8), (1, 4), (3, 1)]
    for team, total in totals:
        assert total == sum(e.score for row in rows for e in row if e.team_number == team)


def test_team_totals_ties_keep_team_order():
    rows = score_game([1, 2, 3], {(1, 0): ('A', 'B'), (2, 0): ('A', 'B')})
    assert team_totals(rows, [1, 2, 3]) == [(1, 1), (2, 1), (3, 0)]


def test_override_survives_recompute_until_answer_changes():
    answers = {(1, 0): ('Apple', 'Zebra'), (2, 0): ('Ant', 'Zone')}
    rows = score_game([1, 2], answers)
    assert rows[0][0].score == 3
    override = Adjustment(0, 1, rows[0][0].answer_key, score=5)

    rows = apply_adjustments(score_game([1, 2], answers), [override])
    assert rows[0][0].score == 5
    assert rows[0][0].overridden
    assert dict(team_totals(rows, [1, 2]))[1] == 5

    changed = dict(answers)
    changed[(1, 0)] = ('Apricot', 'Zebra')
    rows = apply_adjustments(score_game([1, 2], changed), [override])
    assert rows[0][0].score == 3
    assert not rows[0][0].overridden


def test_adjustment_ignored_for_unanswered_cell():
    rows = apply_adjustments(score_game([1, 2], {}), [Adjustment(0, 1, '', score=5)])
    assert rows[0][0].score == 0


def test_invalid_validation_carries_zero():
    answers = {(1, 0): ('Qwerty', 'Zxcv')}
    key = normalize_answer('Qwerty', 'Zxcv')
    rows = apply_adjustments(score_game([1, 2], answers), [Adjustment(0, 1, key, score=0, validation='invalid')])
    assert rows[0][0].score == 0
    assert rows[0][0].validation == 'invalid'


@pytest.mark.parametrize("now,expected", [
    (1000.0, 60),
    (1000.9, 60),
    (1030.2, 30),
    (1060.0, 0),
    (2000.0, 0),
    (990.0, 60),
])
def test_remaining(now, expected):
    assert remaining(now, 1000.0, 60) == expected


def test_remaining_before_start():
    assert remaining(5.0, None, 120) == 120
