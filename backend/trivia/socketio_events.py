from flask_socketio import join_room, leave_room, emit
from trivia import socketio


def lobby_room(lobby_code) -> str:
    return f"lobby:{lobby_code}"


def broadcast_state(lobby_code) -> None:
    """Tell every client in the lobby room to refetch its screen."""
    # Use socketio.emit since this may be called from a background task
    socketio.emit('state_update', {'lobby_code': lobby_code}, to=lobby_room(lobby_code), namespace='/ws')


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_lobby(data):
    lobby_code = (data or {}).get('lobby_code')
    if not lobby_code:
        emit('error', {'message': 'lobby_code is required'})
        return
    room = lobby_room(lobby_code)
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_lobby(data):
    lobby_code = (data or {}).get('lobby_code')
    if not lobby_code:
        emit('error', {'message': 'lobby_code is required'})
        return
    room = lobby_room(lobby_code)
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('join_lobby', handle_join_lobby, namespace=namespace)
        socketio.on_event('leave_lobby', handle_leave_lobby, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
