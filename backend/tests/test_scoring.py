from types import SimpleNamespace

from conftest import START_TIME, fresh
from trivia.models import Player, Question, Response
from trivia.services import lobby as lobby_service
from trivia.services.rounds.scoring import standings, winners


def _setup(engine, make_lobby):
    lobby_id, _, players = make_lobby(names=('Alice', 'Bob', 'Cara'), authors=('Bob',))
    question = Question.query.filter_by(owner_id=players['Bob'], difficulty='EASY').first()
    return lobby_id, players, question.id


def _respond(engine, lobby_id, question_id, responder_id, correctness, creativity):
    with engine.store.transaction():
        return engine.store.insert(
            Response,
            lobby_id=lobby_id,
            question_id=question_id,
            responder_id=responder_id,
            answer_text='answer',
            submitted_at=START_TIME,
            updated_at=START_TIME,
            correctness_stars=correctness,
            creativity_stars=creativity,
        ).id


def test_finalize_awards_points_and_marks_question_answered(engine, make_lobby):
    lobby_id, players, question_id = _setup(engine, make_lobby)
    _respond(engine, lobby_id, question_id, players['Alice'], 4, 2)
    _respond(engine, lobby_id, question_id, players['Cara'], 0, 0)

    with engine.store.transaction():
        points = engine.scoring.finalize(lobby_id, question_id)

    assert points == {players['Alice']: 6, players['Cara']: 0}
    assert fresh(Player, players['Alice']).score == 6
    assert fresh(Player, players['Cara']).score == 0
    assert fresh(Question, question_id).is_answered is True


def test_finalize_normalizes_unrated_and_broken_stars(engine, clock, make_lobby):
    lobby_id, players, question_id = _setup(engine, make_lobby)
    response_id = _respond(engine, lobby_id, question_id, players['Alice'], 9, None)
    clock.advance(30)

    with engine.store.transaction():
        engine.scoring.finalize(lobby_id, question_id)

    response = fresh(Response, response_id)
    assert (response.correctness_stars, response.creativity_stars) == (5, 0)
    assert response.rated_at == START_TIME + 30
    assert fresh(Player, players['Alice']).score == 5


def test_responder_who_left_earns_nothing(engine, make_lobby):
    lobby_id, players, question_id = _setup(engine, make_lobby)
    _respond(engine, lobby_id, question_id, players['Alice'], 3, 3)
    _respond(engine, lobby_id, question_id, players['Cara'], 5, 5)
    lobby_service.leave_lobby(engine.store, lobby_id, players['Cara'])

    with engine.store.transaction():
        points = engine.scoring.finalize(lobby_id, question_id)

    assert points[players['Cara']] == 10
    assert fresh(Player, players['Cara']).score == 0
    assert fresh(Player, players['Alice']).score == 6


def _player(id, name, score):
    return SimpleNamespace(id=id, name=name, score=score)


def test_standings_order_and_flags():
    table = standings(
        [_player(1, 'carol', 10), _player(2, 'Bob', 20), _player(3, 'alice', 10)],
        host_player_id=1,
        viewer_id=3,
    )
    assert [entry['name'] for entry in table] == ['Bob', 'alice', 'carol']
    assert [entry['rank'] for entry in table] == [1, 2, 3]
    assert table[2]['is_host'] is True
    assert table[1]['is_you'] is True
    assert [entry['name'] for entry in winners(table)] == ['Bob']


def test_tied_leaders_all_win():
    table = standings([_player(1, 'Ann', 7), _player(2, 'Ben', 7), _player(3, 'Cy', 1)], 1, 2)
    assert [entry['id'] for entry in winners(table)] == [1, 2]
    assert winners([]) == []
