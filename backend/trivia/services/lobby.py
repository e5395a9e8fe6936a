"""Lobby setup: membership, authored questions and host settings.

Each function is one store transaction. Round play lives in
``trivia.services.rounds``.
"""
import random

from flask import current_app

from trivia.errors import ConcurrentUpdate, LobbyNotFound, NotHost, NotMember, WrongState
from trivia.models import Lobby, Player, Question
from trivia.services.rounds.state import Difficulty, GameState
from trivia.services.rounds.validation import (
    clamp_max_questions,
    clamp_timer,
    parse_difficulty,
    sanitize_text,
)

CODE_ATTEMPTS = 50


def generate_lobby_code(store):
    """Generate a unique 6-digit lobby code."""
    for _ in range(CODE_ATTEMPTS):
        code = random.randint(100000, 999999)
        if not store.first(Lobby, code=code):
            return code
    raise ConcurrentUpdate('Could not allocate a unique lobby code. Try again.')


def _member(store, lobby_id, player_id):
    lobby = store.get(Lobby, lobby_id)
    player = store.get(Player, player_id)
    if not lobby or not player or player.lobby_id != lobby.id:
        raise NotMember('You are not currently in this lobby.')
    return lobby, player


def create_lobby(store, settings, name):
    with store.transaction():
        host = store.insert(Player, name=sanitize_text(name, 'Name'), score=0)
        lobby = store.insert(
            Lobby,
            code=generate_lobby_code(store),
            host_player_id=host.id,
            game_state=GameState.SETUP.value,
            time_per_question=settings.time_per_question_sec,
        )
        store.patch(Player, host.id, {'lobby_id': lobby.id})
        current_app.logger.info(f"[lobby] created lobby={lobby.id} code={lobby.code} host={host.id}")
        return lobby, host


def join_lobby(store, code, name):
    with store.transaction():
        lobby = store.first(Lobby, code=code)
        if not lobby:
            raise LobbyNotFound('Lobby not found.')
        if lobby.game_state != GameState.SETUP.value:
            raise WrongState('This lobby already started the game.')
        return store.insert(Player, name=sanitize_text(name, 'Name'), lobby_id=lobby.id, score=0)


def leave_lobby(store, lobby_id, player_id):
    """Leave at any time; a departing host hands over to the first remaining name."""
    with store.transaction():
        lobby, player = _member(store, lobby_id, player_id)
        store.patch(Player, player.id, {'lobby_id': None})
        new_host = None
        if lobby.host_player_id == player.id:
            remaining = store.query_by_index(Player, 'lobby_id', lobby.id)
            if remaining:
                new_host = sorted(remaining, key=lambda p: (p.name.lower(), p.id))[0]
                store.patch(Lobby, lobby.id, {'host_player_id': new_host.id})
        current_app.logger.info(
            f"[lobby] player={player.id} left lobby={lobby.id} new_host={new_host.id if new_host else None}"
        )
        return {'left': True, 'host_player_id': new_host.id if new_host else lobby.host_player_id}


def save_question(store, lobby_id, player_id, difficulty, prompt, answer):
    """One question per player and difficulty; saving again overwrites it."""
    with store.transaction():
        lobby, player = _member(store, lobby_id, player_id)
        if lobby.game_state != GameState.SETUP.value:
            raise WrongState('Questions can only be edited before the game starts.')
        tier = parse_difficulty(difficulty)
        prompt = sanitize_text(prompt, 'Question')
        answer = sanitize_text(answer, 'Answer')
        question, _ = store.upsert(
            Question,
            keys={'lobby_id': lobby.id, 'owner_id': player.id, 'difficulty': tier.value},
            create={'prompt': prompt, 'canonical_answer': answer, 'is_answered': False},
            changes={'prompt': prompt, 'canonical_answer': answer, 'is_answered': False},
        )
        return question


def update_settings(store, settings, lobby_id, player_id, time_per_question=None, max_questions=None):
    with store.transaction():
        lobby, player = _member(store, lobby_id, player_id)
        if lobby.host_player_id != player.id:
            raise NotHost('Only the host can update the game settings.')
        if lobby.game_state != GameState.SETUP.value:
            raise WrongState('Settings can only be edited before the game starts.')
        fields = {}
        if time_per_question is not None:
            fields['time_per_question'] = clamp_timer(
                time_per_question, settings.min_timer_sec, settings.max_timer_sec
            )
        if max_questions is not None:
            available = len([
                q for q in store.query_by_index(Question, 'lobby_id', lobby.id) if not q.is_answered
            ])
            fields['max_questions'] = clamp_max_questions(max_questions, available, settings.min_question_count)
        if fields:
            store.patch(Lobby, lobby.id, fields)
        return {
            'time_per_question': fields.get('time_per_question', lobby.time_per_question),
            'max_questions': fields.get('max_questions', lobby.max_questions),
        }


def seed_demo_lobby(engine):
    """Host and guest with one question per difficulty each; returns the lobby code."""
    store = engine.store
    lobby, host = create_lobby(store, engine.settings, 'Host')
    guest = join_lobby(store, lobby.code, 'Guest')
    samples = {
        Difficulty.EASY: ('What colour is the sky on a clear day?', 'Blue'),
        Difficulty.MEDIUM: ('How many sides does a hexagon have?', 'Six'),
        Difficulty.HARD: ('Which element has the symbol W?', 'Tungsten'),
    }
    for player in (host, guest):
        for tier, (prompt, answer) in samples.items():
            save_question(store, lobby.id, player.id, tier.value, prompt, answer)
    return lobby.code
