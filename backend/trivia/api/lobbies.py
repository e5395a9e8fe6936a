from flask import Blueprint, jsonify, request
from trivia.errors import GameError, NotMember, ValidationError
from trivia.models import Lobby, Player
from trivia.services import lobby as lobby_service
from trivia.services.rounds.engine import get_engine
from trivia.services.screens import end_screen, play_screen
from trivia.socketio_events import broadcast_state


lobbies = Blueprint('lobbies', __name__)


@lobbies.errorhandler(GameError)
def handle_game_error(exc):
    return jsonify({'error': str(exc), 'kind': exc.kind}), exc.status_code


def _int_field(data, key):
    try:
        return int(data.get(key))
    except (TypeError, ValueError):
        raise ValidationError(f'{key} is required')


def _lobby(code):
    return Lobby.query.filter_by(code=code).first_or_404()


def _viewer(lobby, player_id):
    player = Player.query.filter_by(id=player_id, lobby_id=lobby.id).first()
    if not player:
        raise NotMember('You are not currently in this lobby.')
    return player


@lobbies.route('/create', methods=['POST'])
def create_lobby():
    data = request.get_json(silent=True) or {}
    engine = get_engine()
    lobby, host = lobby_service.create_lobby(engine.store, engine.settings, data.get('name'))
    return jsonify({
        'message': 'New lobby created!',
        'code': lobby.code,
        'player': host.to_dict(),
    }), 201


@lobbies.route('/join', methods=['POST'])
def join_lobby():
    data = request.get_json(silent=True) or {}
    code = _int_field(data, 'code')
    player = lobby_service.join_lobby(get_engine().store, code, data.get('name'))
    broadcast_state(code)
    return jsonify(player.to_dict()), 201


@lobbies.route('/<int:code>/leave', methods=['POST'])
def leave_lobby(code):
    data = request.get_json(silent=True) or {}
    lobby = _lobby(code)
    result = lobby_service.leave_lobby(get_engine().store, lobby.id, _int_field(data, 'player_id'))
    broadcast_state(code)
    return jsonify(result)


@lobbies.route('/<int:code>/questions', methods=['POST'])
def save_question(code):
    data = request.get_json(silent=True) or {}
    lobby = _lobby(code)
    question = lobby_service.save_question(
        get_engine().store,
        lobby.id,
        _int_field(data, 'player_id'),
        data.get('difficulty'),
        data.get('prompt'),
        data.get('answer'),
    )
    broadcast_state(code)
    return jsonify(question.to_dict(include_answer=True)), 201


@lobbies.route('/<int:code>/settings', methods=['POST'])
def update_settings(code):
    data = request.get_json(silent=True) or {}
    lobby = _lobby(code)
    engine = get_engine()
    result = lobby_service.update_settings(
        engine.store,
        engine.settings,
        lobby.id,
        _int_field(data, 'player_id'),
        time_per_question=data.get('time_per_question'),
        max_questions=data.get('max_questions'),
    )
    broadcast_state(code)
    return jsonify(result)


@lobbies.route('/<int:code>/state', methods=['GET'])
def get_play_state(code):
    lobby = _lobby(code)
    viewer = _viewer(lobby, _int_field(request.args, 'player_id'))
    return jsonify(play_screen(get_engine(), lobby, viewer))


@lobbies.route('/<int:code>/end', methods=['GET'])
def get_end_state(code):
    lobby = _lobby(code)
    viewer = _viewer(lobby, _int_field(request.args, 'player_id'))
    return jsonify(end_screen(get_engine(), lobby, viewer))


@lobbies.route('/<int:code>/start', methods=['POST'])
def start_match(code):
    data = request.get_json(silent=True) or {}
    lobby = _lobby(code)
    return jsonify(get_engine().start_match(lobby.id, _int_field(data, 'player_id')))


@lobbies.route('/<int:code>/answer', methods=['POST'])
def submit_answer(code):
    data = request.get_json(silent=True) or {}
    lobby = _lobby(code)
    return jsonify(get_engine().submit_answer(lobby.id, _int_field(data, 'player_id'), data.get('answer')))


@lobbies.route('/<int:code>/rate', methods=['POST'])
def rate_response(code):
    data = request.get_json(silent=True) or {}
    lobby = _lobby(code)
    result = get_engine().rate_response(
        lobby.id,
        _int_field(data, 'player_id'),
        _int_field(data, 'response_id'),
        data.get('correctness'),
        data.get('creativity'),
    )
    return jsonify(result)


@lobbies.route('/<int:code>/advance', methods=['POST'])
def request_early_advance(code):
    data = request.get_json(silent=True) or {}
    lobby = _lobby(code)
    result = get_engine().request_early_advance(lobby.id, _int_field(data, 'player_id'))
    return jsonify(result.to_dict())
