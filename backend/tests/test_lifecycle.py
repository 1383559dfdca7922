from unittest.mock import patch

import pytest

from initials import db
from initials.models import Game
from initials.services.games import lifecycle


def _start(client, new_game):
    created = new_game()
    code = created['game']['code']
    res = client.post(f'/api/games/{code}/start', json={'player_id': created['player']['id']})
    assert res.status_code == 200
    return Game.find_by_code(code)


def _status(game_id):
    db.session.expire_all()
    return db.session.get(Game, game_id).status


def test_timer_moves_game_to_scoring(flask_app, client, new_game):
    flask_app.config['ENABLE_SCHEDULER_IN_TESTS'] = True
    flask_app.config['TIMER_HEARTBEAT_SEC'] = 20
    with patch.object(lifecycle.time, 'sleep') as sleep:
        game = _start(client, new_game)

    # 60s timer with a 20s heartbeat
    assert sleep.call_count == 3
    assert 59 < sum(call.args[0] for call in sleep.call_args_list) <= 60
    assert _status(game.id) == lifecycle.SCORING


def _restart(game):
    game.started_at += 30
    db.session.commit()


@pytest.mark.parametrize("interrupt,expected_status", [
    (_restart, lifecycle.PLAYING),
    (lifecycle.reset_game, lifecycle.WAITING),
])
def test_stale_timer_leaves_game_alone(flask_app, client, new_game, interrupt, expected_status):
    game = _start(client, new_game)
    flask_app.config['ENABLE_SCHEDULER_IN_TESTS'] = True

    with patch.object(lifecycle.time, 'sleep', side_effect=lambda _seconds: interrupt(game)):
        lifecycle.schedule_scoring_timer(flask_app, game.id)

    assert _status(game.id) == expected_status


def test_timer_disabled_while_testing(flask_app, client, new_game):
    with patch.object(lifecycle.time, 'sleep') as sleep:
        game = _start(client, new_game)
    sleep.assert_not_called()
    assert _status(game.id) == lifecycle.PLAYING
