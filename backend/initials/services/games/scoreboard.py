"""Database-backed scoreboard: gathers team answers, scores them, applies adjustments."""

from typing import Dict, Tuple

from flask import current_app

from initials import db, feed
from initials.constants import FIRST_WORD_COLUMN, SECOND_WORD_COLUMN, team_name
from initials.errors import InvalidGameState, InvalidRequest
from initials.models import Answer, Game, ScoreAdjustment
from .scoring import (
    ALLOWED_SCORES, Adjustment, apply_adjustments,
    score_game, team_totals,
)
from .validation import INVALID, TitleLookup

_watchers = {}


def collect_team_answers(game: Game) -> Dict[Tuple[int, int], Tuple[str, str]]:
    """(team, row) -> (word1, word2); one stored row per team/row/column."""
    cells: Dict[Tuple[int, int, int], str] = {}
    for answer in Answer.query.filter_by(game_id=game.id).order_by(Answer.id):
        cells[(answer.team_number, answer.row_index, answer.column_number)] = answer.text
    team_rows = {(team, row) for team, row, _column in cells}
    return {
        (team, row): (cells.get((team, row, FIRST_WORD_COLUMN)), cells.get((team, row, SECOND_WORD_COLUMN)))
        for team, row in team_rows
    }


def load_adjustments(game: Game):
    return [
        Adjustment(a.row_index, a.team_number, a.answer_key, a.score, a.validation, a.canonical_url)
        for a in ScoreAdjustment.query.filter_by(game_id=game.id).all()
    ]


def compute_rows(game: Game):
    rows = score_game(game.team_numbers, collect_team_answers(game), row_count=len(game.prompts))
    return apply_adjustments(rows, load_adjustments(game))


def build_scoreboard(game: Game) -> dict:
    rows = compute_rows(game)
    prompts = game.prompts
    return {
        'code': game.code,
        'status': game.status,
        'rows': [
            {
                'row_index': prompt.row_index,
                'initials': prompt.initials,
                'entries': [entry.to_dict() for entry in row],
            }
            for prompt, row in zip(prompts, rows)
        ],
        'totals': [
            {'team_number': team, 'team_name': team_name(team), 'total': total}
            for team, total in team_totals(rows, game.team_numbers)
        ],
    }


def _answered_entry(game: Game, row_index, team_number):
    if not isinstance(row_index, int) or not 0 <= row_index < len(game.prompts):
        raise InvalidRequest('row_index out of range')
    if team_number not in game.team_numbers:
        raise InvalidRequest('team_number out of range')
    entry = next(e for e in compute_rows(game)[row_index] if e.team_number == team_number)
    if not entry.overridable:
        raise InvalidGameState('No answer to score for this team and row')
    return entry


def _adjustment_for(game: Game, entry) -> ScoreAdjustment:
    adjustment = ScoreAdjustment.query.filter_by(
        game_id=game.id, row_index=entry.row_index, team_number=entry.team_number
    ).first()
    if adjustment is None:
        adjustment = ScoreAdjustment(game_id=game.id, row_index=entry.row_index, team_number=entry.team_number)
    if adjustment.answer_key != entry.answer_key:
        # Left over from an earlier answer
        adjustment.score = None
        adjustment.validation = None
        adjustment.canonical_url = None
        adjustment.answer_key = entry.answer_key
    return adjustment


def _publish_adjustment(game: Game, adjustment: ScoreAdjustment) -> None:
    feed.publish('score_adjustments', 'UPDATE', adjustment.to_dict(), game_code=game.code)


def override_score(game: Game, row_index, team_number, score) -> dict:
    if score not in ALLOWED_SCORES:
        raise InvalidRequest(f'score must be one of {list(ALLOWED_SCORES)}')
    entry = _answered_entry(game, row_index, team_number)
    adjustment = _adjustment_for(game, entry)
    adjustment.score = score
    db.session.add(adjustment)
    db.session.commit()
    current_app.logger.info(f"[override] game={game.id} row={row_index} team={team_number} score={score}")
    _publish_adjustment(game, adjustment)
    return adjustment.to_dict()


def validate_answer(game: Game, row_index, team_number, lookup: TitleLookup = None) -> dict:
    """Look the answer up; an Invalid result forces the cell's score to 0."""
    entry = _answered_entry(game, row_index, team_number)
    lookup = lookup or TitleLookup.from_config(current_app.config)
    result = lookup.lookup_title(' '.join(entry.answer))
    adjustment = _adjustment_for(game, entry)
    adjustment.validation = result.status
    adjustment.canonical_url = result.canonical_url
    if result.status == INVALID:
        adjustment.score = 0
    db.session.add(adjustment)
    db.session.commit()
    current_app.logger.info(
        f"[validate] game={game.id} row={row_index} team={team_number} result={result.status}"
    )
    _publish_adjustment(game, adjustment)
    return adjustment.to_dict()


def watch_score_inputs(change_feed):
    """Recompute and republish the scoreboard on every answer or adjustment change."""
    for subscription in _watchers.pop(id(change_feed), []):
        subscription.close()

    def _refresh(payload):
        game_id = payload['record'].get('game_id')
        game = db.session.get(Game, game_id) if game_id else None
        if game is None:
            return
        change_feed.publish('scores', 'UPDATE', build_scoreboard(game), game_code=game.code)

    _watchers[id(change_feed)] = [
        change_feed.subscribe('answers', handlers={'*': _refresh}),
        change_feed.subscribe('score_adjustments', handlers={'*': _refresh}),
    ]
    return _watchers[id(change_feed)]

