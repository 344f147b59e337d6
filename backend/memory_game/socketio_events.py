from flask_socketio import join_room, leave_room, emit
from flask import current_app, request
from memory_game import socketio
from memory_game.errors import ConfigurationError
from memory_game.services.games.runtime import get_game_services, room_for
from typing import Dict, Any


# Socket context: which session a connection is attached to and whether it owns it
_sid_to_ctx: Dict[str, Dict[str, Any]] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _current_session():
    ctx = _sid_to_ctx.get(_get_sid())
    if not ctx:
        emit('error', {'message': 'Not attached to a game; send start_game or join_game first'})
        return None, None
    session = get_game_services().registry.get(ctx['session_id'])
    if session is None:
        _sid_to_ctx.pop(_get_sid(), None)
        emit('error', {'message': 'Game session has ended'})
        return None, None
    return ctx['session_id'], session


def _detach(discard_owned: bool = True) -> None:
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if not ctx:
        return
    leave_room(room_for(ctx['session_id']))
    if discard_owned and ctx.get('is_session_owner'):
        get_game_services().registry.discard(ctx['session_id'])
        current_app.logger.info(f"[session-end] session={ctx['session_id']} owner left")


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    _detach()


def handle_start_game(data):
    difficulty = (data or {}).get('difficulty')
    services = get_game_services()
    _detach()
    session_id, session = services.registry.create()
    room = room_for(session_id)
    join_room(room)
    _sid_to_ctx[_get_sid()] = {'session_id': session_id, 'is_session_owner': True}
    emit('joined', {'room': room, 'session_id': session_id})
    try:
        session.start_game(difficulty)
    except ConfigurationError as exc:
        _detach()
        emit('error', {'message': str(exc)})
        return
    current_app.logger.info(f"[session-create] session={session_id} tier={session.difficulty} sid={_get_sid()}")


def handle_join_game(data):
    session_id = (data or {}).get('session_id')
    if not session_id:
        emit('error', {'message': 'session_id is required'})
        return
    session = get_game_services().registry.get(session_id)
    if session is None:
        emit('error', {'message': 'Game session not found'})
        return
    _detach()
    room = room_for(session_id)
    join_room(room)
    _sid_to_ctx[_get_sid()] = {'session_id': session_id, 'is_session_owner': False}
    emit('joined', {'room': room, 'session_id': session_id})
    emit('state_update', dict(session.to_dict(), session_id=session_id))


def handle_leave_game(data=None):
    ctx = _sid_to_ctx.get(_get_sid())
    if not ctx:
        emit('error', {'message': 'Not attached to a game'})
        return
    room = room_for(ctx['session_id'])
    _detach()
    emit('left', {'room': room})


def handle_flip(data):
    position = (data or {}).get('position')
    if not isinstance(position, int) or isinstance(position, bool):
        emit('error', {'message': 'position must be an integer'})
        return
    session_id, session = _current_session()
    if session is None:
        return
    session.flip_card(position)


def handle_reset(data=None):
    session_id, session = _current_session()
    if session is None:
        return
    try:
        session.reset((data or {}).get('difficulty'))
    except ConfigurationError as exc:
        emit('error', {'message': str(exc)})


def handle_select_difficulty(data):
    difficulty = (data or {}).get('difficulty')
    if not difficulty:
        emit('error', {'message': 'difficulty is required'})
        return
    session_id, session = _current_session()
    if session is None:
        return
    try:
        session.select_difficulty(difficulty)
    except ConfigurationError as exc:
        emit('error', {'message': str(exc)})


def handle_ping(data):
    emit('pong', data or {})


_HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'start_game': handle_start_game,
    'join_game': handle_join_game,
    'leave_game': handle_leave_game,
    'flip': handle_flip,
    'reset': handle_reset,
    'select_difficulty': handle_select_difficulty,
    'ping': handle_ping,
}


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    for event, handler in _HANDLERS.items():
        socketio.on_event(event, handler, namespace='/ws')
    if testing:
        for event, handler in _HANDLERS.items():
            socketio.on_event(event, handler, namespace='/')
