"""Per-viewer read models for the play and end screens."""
from trivia.models import Player, Question, Response
from trivia.services.rounds.scoring import standings, winners
from trivia.services.rounds.state import Active, Phase, phase_duration
from trivia.services.rounds.validation import normalize_stored_stars


def _players(store, lobby, viewer):
    members = store.query_by_index(Player, 'lobby_id', lobby.id)
    return [
        {
            'id': p.id,
            'name': p.name,
            'score': p.score,
            'is_host': p.id == lobby.host_player_id,
            'is_you': p.id == viewer.id,
        }
        for p in sorted(members, key=lambda p: (-p.score, p.name.lower(), p.id))
    ]


def _latest_feedback(store, lobby, viewer):
    cursor = lobby.question_cursor or 0
    order = lobby.question_order_ids
    if cursor < 1 or cursor - 1 >= len(order):
        return None
    previous = store.get(Question, order[cursor - 1])
    if not previous:
        return None
    response = store.first(Response, question_id=previous.id, responder_id=viewer.id)
    if not response or not response.is_fully_rated:
        return None
    return {
        'question_id': previous.id,
        'correctness_stars': normalize_stored_stars(response.correctness_stars),
        'creativity_stars': normalize_stored_stars(response.creativity_stars),
        'correct_answer': previous.canonical_answer,
        'your_answer': response.answer_text,
    }


def play_screen(engine, lobby, viewer):
    store = engine.store
    now = engine.clock.now()
    payload = {
        'code': lobby.code,
        'game_state': lobby.game_state,
        'your_score': viewer.score,
        'your_name': viewer.name,
        'is_host': lobby.host_player_id == viewer.id,
        'players': _players(store, lobby, viewer),
        'server_now': now,
        'phase': None,
        'phase_nonce': None,
        'phase_started_at': None,
        'phase_ends_at': None,
        'phase_duration': None,
        'question_progress': None,
        'question': None,
        'role': None,
        'can_go_next_early': False,
        'can_submit_answer': False,
        'can_rate_responses': False,
        'latest_answer_feedback': _latest_feedback(store, lobby, viewer),
        'rating': None,
        'answering': None,
    }

    state = lobby.round_state
    if not isinstance(state, Active):
        return payload
    payload.update({
        'phase': state.phase.value,
        'phase_nonce': state.nonce,
        'phase_started_at': state.started_at,
        'phase_ends_at': state.ends_at,
        'phase_duration': phase_duration(state.phase, lobby.time_per_question),
    })

    question = store.get(Question, state.question_id)
    if not question:
        return payload

    is_owner = question.owner_id == viewer.id
    responses = sorted(
        (r for r in store.query_by_index(Response, 'question_id', question.id) if r.responder_id != question.owner_id),
        key=lambda r: (r.submitted_at, r.id),
    )
    all_rated = all(r.is_fully_rated for r in responses)
    payload.update({
        'question_progress': {
            'current': (lobby.question_cursor or 0) + 1,
            'total': len(lobby.question_order_ids) or 1,
        },
        'question': {
            'id': question.id,
            'prompt': question.prompt,
            'difficulty': question.difficulty,
            'canonical_answer': question.canonical_answer if is_owner else None,
        },
        'role': 'RATING_PLAYER' if is_owner else 'ANSWERING_PLAYER',
        'can_go_next_early': lobby.host_player_id == viewer.id or (
            is_owner and state.phase is Phase.RATING and all_rated
        ),
        'can_submit_answer': not is_owner and state.phase is Phase.ANSWERING and state.is_open(now),
        'can_rate_responses': is_owner and state.phase is Phase.RATING and state.is_open(now),
    })

    if is_owner:
        payload['rating'] = {
            'total_submitted_responses': len(responses),
            'all_submitted_responses_rated': all_rated,
            'responses': [
                {
                    'id': r.id,
                    'label': f'Response {index + 1}',
                    'answer': r.answer_text,
                    'correctness_stars': (
                        normalize_stored_stars(r.correctness_stars) if r.correctness_stars is not None else None
                    ),
                    'creativity_stars': (
                        normalize_stored_stars(r.creativity_stars) if r.creativity_stars is not None else None
                    ),
                }
                for index, r in enumerate(responses)
            ],
        }
    else:
        mine = next((r for r in responses if r.responder_id == viewer.id), None)
        payload['answering'] = {
            'your_response': {
                'answer': mine.answer_text,
                'submitted_at': mine.submitted_at,
                'updated_at': mine.updated_at,
            } if mine else None,
        }
    return payload


def end_screen(engine, lobby, viewer):
    members = engine.store.query_by_index(Player, 'lobby_id', lobby.id)
    table = standings(members, lobby.host_player_id, viewer.id)
    return {
        'code': lobby.code,
        'game_state': lobby.game_state,
        'your_score': viewer.score,
        'is_host': lobby.host_player_id == viewer.id,
        'standings': table,
        'winners': winners(table),
    }
