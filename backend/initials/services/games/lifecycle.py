import time

from initials import db, feed, socketio
from initials.errors import InvalidGameState
from initials.models import Answer, Game, ScoreAdjustment
from .countdown import deadline, remaining

WAITING = 'waiting'
PLAYING = 'playing'
SCORING = 'scoring'


def publish_game(game: Game) -> None:
    feed.publish('games', 'UPDATE', game.to_dict(include_players=False), game_code=game.code)


def start_game(game: Game, now=None) -> Game:
    """waiting -> playing; records the start timestamp every client counts down from."""
    if game.status != WAITING:
        raise InvalidGameState('Game has already started')
    game.status = PLAYING
    game.started_at = time.time() if now is None else now
    db.session.add(game)
    db.session.commit()
    publish_game(game)
    return game


def finish_game(game: Game) -> Game:
    """playing -> scoring. Idempotent once scoring."""
    if game.status == SCORING:
        return game
    if game.status != PLAYING:
        raise InvalidGameState('Game is not in progress')
    game.status = SCORING
    db.session.add(game)
    db.session.commit()
    publish_game(game)
    return game


def reset_game(game: Game) -> Game:
    """playing/scoring -> waiting; clears every answer and score adjustment."""
    if game.status not in (PLAYING, SCORING):
        raise InvalidGameState('Game has not started')
    Answer.query.filter_by(game_id=game.id).delete()
    ScoreAdjustment.query.filter_by(game_id=game.id).delete()
    game.status = WAITING
    game.started_at = None
    db.session.add(game)
    db.session.commit()
    feed.publish('answers', 'DELETE', {'game_id': game.id}, game_code=game.code)
    publish_game(game)
    return game


def seconds_remaining(game: Game, now=None) -> int:
    if game.status == SCORING:
        return 0
    return remaining(time.time() if now is None else now, game.started_at, game.timer_duration)


def expire_if_due(game: Game, now=None) -> bool:
    """Move a playing game to scoring once its clock has run out."""
    if game.status != PLAYING or game.started_at is None:
        return False
    if seconds_remaining(game, now) > 0:
        return False
    finish_game(game)
    return True


def schedule_scoring_timer(app, game_id: int) -> None:
    """Flip the game to scoring at its deadline.

    - No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS
    - Aborts if the game was reset or restarted before the deadline
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return

    with app.app_context():
        game = db.session.get(Game, game_id)
        if not game or game.status != PLAYING or game.started_at is None:
            return
        expected_start = game.started_at
        delay = max(0.0, deadline(game.started_at, game.timer_duration) - time.time())
        app.logger.info(f"[timer-set] game={game.id} duration={game.timer_duration}s delay={delay:.1f}s")

    def _worker(gid: int, started_at: float, delay: float):
        hb = int(app.config.get('TIMER_HEARTBEAT_SEC', 0))
        if hb > 0:
            slept = 0.0
            while slept < delay:
                step = min(hb, delay - slept)
                time.sleep(step)
                slept += step
                app.logger.info(f"[timer-heartbeat] game={gid} remaining={max(0.0, delay - slept):.0f}s")
        else:
            time.sleep(delay)
        with app.app_context():
            g = db.session.get(Game, gid)
            if not g:
                return
            app.logger.info(f"[timer-fire] game={gid} status={g.status}")
            if g.status != PLAYING or g.started_at != started_at:
                app.logger.info(f"[timer-abort] game={gid} reset or restarted")
                return
            finish_game(g)

    if app.config.get('TESTING'):
        _worker(game_id, expected_start, delay)
    else:
        socketio.start_background_task(_worker, game_id, expected_start, delay)
