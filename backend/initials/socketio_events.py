from flask import current_app, request
from flask_socketio import join_room, leave_room, emit
from initials import socketio
from initials.feed import WS_NAMESPACE, expand_events, room_name

TABLES = ('games', 'players', 'answers', 'score_adjustments', 'scores')


def _rooms_for(data):
    data = data or {}
    table = data.get('table')
    game_code = data.get('game_code')
    if table not in TABLES:
        raise ValueError(f'table must be one of {list(TABLES)}')
    if not game_code:
        raise ValueError('game_code is required')
    return [room_name(table, game_code, event) for event in expand_events(data.get('events', '*'))]


def handle_connect():
    emit('connected', {'message': f'Connected to {WS_NAMESPACE}'})


def handle_disconnect(*args):
    # Socket.IO drops the sid from every room it joined
    current_app.logger.info(f"[ws-disconnect] sid={request.sid}")


def handle_subscribe(data):
    try:
        rooms = _rooms_for(data)
    except ValueError as exc:
        emit('error', {'message': str(exc)})
        return
    for room in rooms:
        join_room(room)
    emit('subscribed', {'rooms': rooms})


def handle_unsubscribe(data):
    try:
        rooms = _rooms_for(data)
    except ValueError as exc:
        emit('error', {'message': str(exc)})
        return
    for room in rooms:
        leave_room(room)
    emit('unsubscribed', {'rooms': rooms})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on namespace '/ws'."""
    socketio.on_event('connect', handle_connect, namespace=WS_NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=WS_NAMESPACE)
    socketio.on_event('subscribe', handle_subscribe, namespace=WS_NAMESPACE)
    socketio.on_event('unsubscribe', handle_unsubscribe, namespace=WS_NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=WS_NAMESPACE)
