from flask import Blueprint, jsonify, request, current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from initials import db, feed
from initials.constants import (
    ANSWER_COLUMNS, FIRST_WORD_COLUMN, PLAYER_NAME_MAX_LENGTH, TIMER_DURATIONS_SEC, team_name,
)
from initials.errors import (
    CellConflict, DuplicateGameCode, GameAlreadyStarted, GameError, GameNotFound,
    InvalidGameState, InvalidRequest, MissingPlayerIdentity, NotInitiator,
)
from initials.models import Answer, Game, Player, generate_game_code
from initials.services.games import lifecycle
from initials.services.games.letters import LetterPairConfig, LetterPairGenerator
from initials.services.games.scoreboard import build_scoreboard, override_score, validate_answer


games = Blueprint('games', __name__)


@games.errorhandler(GameError)
def handle_game_error(exc):
    return jsonify(exc.to_dict()), exc.status_code


def _body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidRequest('Request body must be a JSON object')
    return data


def _int(data, key, default=None):
    value = data.get(key, default)
    if value is None:
        raise InvalidRequest(f'{key} is required')
    if isinstance(value, bool):
        raise InvalidRequest(f'{key} must be an integer')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidRequest(f'{key} must be an integer')


def _load_game(game_code) -> Game:
    game = Game.find_by_code(game_code)
    if not game:
        raise GameNotFound()
    # Clients count down on their own; catch up with an expired clock on any access
    lifecycle.expire_if_due(game)
    return game


def _player(game, player_id):
    if player_id in (None, ''):
        return None
    try:
        player_id = int(player_id)
    except (TypeError, ValueError):
        return None
    return Player.query.filter_by(id=player_id, game_id=game.id).first()


def _require_player(game, data) -> Player:
    player = _player(game, data.get('player_id'))
    if not player:
        raise MissingPlayerIdentity()
    return player


def _require_initiator(game, data) -> Player:
    player = _require_player(game, data)
    if not player.is_initiator:
        raise NotInitiator()
    return player


def _replace_cell(cell, new_answer, expected=None):
    """Swap a cell's stored row for new_answer in one transaction.

    With `expected`, only the row the client last saw may be replaced; an empty
    `expected` means the cell must still be empty.
    """
    if expected is None:
        cell.delete()
    elif expected:
        if cell.filter(Answer.text == expected).delete() == 0:
            raise CellConflict()
    elif cell.first() is not None:
        raise CellConflict()
    if new_answer is not None:
        db.session.add(new_answer)
    db.session.commit()


def _pattern(data, side):
    default = 'A_TO_Z' if side == 'first' else 'Z_TO_A'
    try:
        return LetterPairConfig.from_name(data.get(f'{side}_pattern') or default, data.get(f'{side}_text') or '')
    except ValueError as exc:
        raise InvalidRequest(str(exc))


@games.route('/create', methods=['POST'])
def create_game():
    data = _body()
    cfg = current_app.config
    num_teams = _int(data, 'num_teams', 2)
    if not int(cfg.get('MIN_TEAMS', 2)) <= num_teams <= int(cfg.get('MAX_TEAMS', 8)):
        raise InvalidRequest(f"num_teams must be between {cfg.get('MIN_TEAMS', 2)} and {cfg.get('MAX_TEAMS', 8)}")
    timer_duration = _int(data, 'timer_duration', cfg.get('DEFAULT_TIMER_DURATION_SEC', 60))
    if timer_duration not in TIMER_DURATIONS_SEC:
        raise InvalidRequest(f'timer_duration must be one of {list(TIMER_DURATIONS_SEC)}')
    first, second = _pattern(data, 'first'), _pattern(data, 'second')

    generator = LetterPairGenerator(max_attempts=int(cfg.get('MAX_REPAIR_ATTEMPTS', 100)))
    prompts = generator.generate(first, second)

    max_attempts = int(cfg.get('GAME_CODE_MAX_RETRIES', 5))
    new_game = None
    for attempt in range(1, max_attempts + 1):
        candidate = Game(
            code=generate_game_code(),
            num_teams=num_teams,
            timer_duration=timer_duration,
            status=lifecycle.WAITING,
            first_pattern=first.name,
            second_pattern=second.name,
        )
        candidate.prompts = prompts
        db.session.add(candidate)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            current_app.logger.info(f"[create] duplicate code={candidate.code} attempt={attempt}")
            continue
        new_game = candidate
        break
    if new_game is None:
        current_app.logger.error(f"[create] no unique game code after {max_attempts} attempts")
        raise DuplicateGameCode()

    initiator = Player(game_id=new_game.id, name=f'{team_name(1)} Player 1', is_initiator=True, team_number=1)
    db.session.add(initiator)
    db.session.commit()
    new_game.initiator_id = initiator.id
    db.session.add(new_game)
    db.session.commit()
    current_app.logger.info(
        f"[create] game={new_game.id} code={new_game.code} teams={num_teams} timer={timer_duration}s "
        f"patterns={first.name}/{second.name}"
    )

    feed.publish('games', 'INSERT', new_game.to_dict(include_players=False), game_code=new_game.code)
    feed.publish('players', 'INSERT', initiator.to_dict(), game_code=new_game.code)
    return jsonify({'game': new_game.to_dict(), 'player': initiator.to_dict()}), 201


@games.route('/join', methods=['POST'])
def join_game():
    data = _body()
    game_code = str(data.get('game_code') or '').strip()
    name = str(data.get('name') or '').strip()
    if not all([game_code, name]):
        raise InvalidRequest('Game code and player name are required')
    if len(name) > PLAYER_NAME_MAX_LENGTH:
        raise InvalidRequest(f'Player name must be at most {PLAYER_NAME_MAX_LENGTH} characters')

    game = Game.find_by_code(game_code)
    if not game:
        raise GameNotFound('Game not found. Please check the code and try again.')
    if game.status != lifecycle.WAITING:
        raise GameAlreadyStarted()

    new_player = Player(name=name, game_id=game.id)
    db.session.add(new_player)
    db.session.commit()
    current_app.logger.info(f"[join] game={game.id} player={new_player.id}")
    feed.publish('players', 'INSERT', new_player.to_dict(), game_code=game.code)
    return jsonify(new_player.to_dict()), 201


@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    game = _load_game(game_code)
    player = _player(game, request.args.get('player_id'))
    payload = game.to_dict()
    payload['remaining_seconds'] = lifecycle.seconds_remaining(game)
    # Without a known player the client gets a read-only view
    payload['viewer'] = {
        'player_id': player.id if player else None,
        'is_initiator': bool(player and player.is_initiator),
        'team_number': player.team_number if player else None,
        'read_only': not (player and player.team_number and game.status == lifecycle.PLAYING),
    }
    return jsonify(payload)


@games.route('/<string:game_code>/team', methods=['POST'])
def choose_team(game_code):
    data = _body()
    game = _load_game(game_code)
    player = _require_player(game, data)
    if game.status != lifecycle.WAITING:
        raise InvalidGameState('Teams can only change before the game starts')
    team_number = _int(data, 'team_number')
    if team_number not in game.team_numbers:
        raise InvalidRequest(f'team_number must be between 1 and {game.num_teams}')
    player.team_number = team_number
    db.session.add(player)
    db.session.commit()
    feed.publish('players', 'UPDATE', player.to_dict(), game_code=game.code)
    return jsonify(player.to_dict())


@games.route('/<string:game_code>/start', methods=['POST'])
def start_game(game_code):
    data = _body()
    game = _load_game(game_code)
    _require_initiator(game, data)
    lifecycle.start_game(game)
    current_app.logger.info(f"[start] game={game.id} started_at={game.started_at}")
    lifecycle.schedule_scoring_timer(current_app._get_current_object(), game.id)
    return jsonify(game.to_dict())


@games.route('/<string:game_code>/answers', methods=['POST'])
def submit_answer(game_code):
    """Write one board cell for the caller's team; the last write wins."""
    data = _body()
    game = _load_game(game_code)
    player = _require_player(game, data)
    if not player.team_number:
        raise InvalidGameState('Join a team before answering')
    if game.status != lifecycle.PLAYING:
        raise InvalidGameState('Answers are closed')
    row_index = _int(data, 'row_index')
    column_number = _int(data, 'column_number')
    prompts = game.prompts
    if not 0 <= row_index < len(prompts):
        raise InvalidRequest('row_index out of range')
    if column_number not in ANSWER_COLUMNS:
        raise InvalidRequest(f'column_number must be one of {list(ANSWER_COLUMNS)}')
    text = data.get('text') or ''
    if not isinstance(text, str):
        raise InvalidRequest('text must be a string')

    expected = None
    if 'expected' in data:
        expected = data.get('expected') or ''
        if not isinstance(expected, str):
            raise InvalidRequest('expected must be a string')

    cell = Answer.query.filter_by(
        game_id=game.id, team_number=player.team_number, row_index=row_index, column_number=column_number,
    )
    for attempt in range(2):
        existing_ids = [a.id for a in cell]
        new_answer = None
        if text.strip():
            new_answer = Answer(game_id=game.id, player_id=player.id, team_number=player.team_number,
                                row_index=row_index, column_number=column_number, text=text)
        try:
            _replace_cell(cell, new_answer, expected)
            break
        except CellConflict:
            db.session.rollback()
            current_app.logger.info(f"[answer-conflict] game={game.id} row={row_index} column={column_number}")
            raise
        except IntegrityError:
            # A teammate's write to the same cell committed between our delete and insert
            db.session.rollback()
            if expected is not None or attempt:
                raise CellConflict()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception(
                f"[answer-fail] game={game.id} player={player.id} row={row_index} column={column_number}"
            )
            return jsonify({'saved': False}), 202

    if existing_ids:
        feed.publish('answers', 'DELETE', {
            'game_id': game.id, 'row_index': row_index, 'column_number': column_number,
            'team_number': player.team_number, 'ids': existing_ids,
        }, game_code=game.code)
    starts_with_initial = None
    if new_answer is not None:
        feed.publish('answers', 'INSERT', new_answer.to_dict(), game_code=game.code)
        prompt = prompts[row_index]
        initial = prompt.first_letter if column_number == FIRST_WORD_COLUMN else prompt.second_letter
        starts_with_initial = text.strip().upper().startswith(initial)
    return jsonify({
        'saved': True,
        'answer': new_answer.to_dict() if new_answer else None,
        'starts_with_initial': starts_with_initial,
    })


@games.route('/<string:game_code>/finish', methods=['POST'])
def finish_game(game_code):
    data = _body()
    game = _load_game(game_code)
    _require_initiator(game, data)
    lifecycle.finish_game(game)
    current_app.logger.info(f"[finish] game={game.id}")
    return jsonify(game.to_dict())


@games.route('/<string:game_code>/reset', methods=['POST'])
def reset_game(game_code):
    data = _body()
    game = _load_game(game_code)
    _require_initiator(game, data)
    lifecycle.reset_game(game)
    current_app.logger.info(f"[reset] game={game.id}")
    return jsonify(game.to_dict())


@games.route('/<string:game_code>/scores', methods=['GET'])
def get_scores(game_code):
    game = _load_game(game_code)
    return jsonify(build_scoreboard(game))


def _scoring_request(game_code):
    data = _body()
    game = _load_game(game_code)
    _require_initiator(game, data)
    if game.status != lifecycle.SCORING:
        raise InvalidGameState('Scores can only change while scoring')
    return game, data


@games.route('/<string:game_code>/scores/override', methods=['POST'])
def override(game_code):
    game, data = _scoring_request(game_code)
    adjustment = override_score(game, _int(data, 'row_index'), _int(data, 'team_number'), _int(data, 'score'))
    return jsonify(adjustment)


@games.route('/<string:game_code>/scores/validate', methods=['POST'])
def validate(game_code):
    game, data = _scoring_request(game_code)
    adjustment = validate_answer(game, _int(data, 'row_index'), _int(data, 'team_number'))
    return jsonify(adjustment)
