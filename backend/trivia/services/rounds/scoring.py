from collections import defaultdict
from typing import Dict, List

from flask import current_app

from trivia.models import Player, Question, Response
from trivia.services.rounds.validation import normalize_stored_stars


class ScoringEngine:
    def __init__(self, store, clock):
        self.store = store
        self.clock = clock

    def finalize(self, lobby_id: int, question_id: int) -> Dict[int, int]:
        """Turn the question's ratings into points and mark it answered.

        Runs inside the RATING -> next transition only, after the advancer
        has claimed the nonce, so each question is finalized once. Unrated
        stars count as 0. Responders who left the lobby earn nothing.
        Returns points earned per responder id.
        """
        now = self.clock.now()
        points: Dict[int, int] = defaultdict(int)
        for response in self.store.query_by_index(Response, 'question_id', question_id):
            correctness = normalize_stored_stars(response.correctness_stars)
            creativity = normalize_stored_stars(response.creativity_stars)
            if (
                response.correctness_stars != correctness
                or response.creativity_stars != creativity
                or response.rated_at is None
            ):
                self.store.patch(Response, response.id, {
                    'correctness_stars': correctness,
                    'creativity_stars': creativity,
                    'rated_at': response.rated_at if response.rated_at is not None else now,
                })
            points[response.responder_id] += correctness + creativity

        for responder_id, earned in points.items():
            if earned < 1:
                continue
            responder = self.store.get(Player, responder_id)
            if not responder or responder.lobby_id != lobby_id:
                current_app.logger.info(f"[score-skip] lobby={lobby_id} question={question_id} responder={responder_id} left")
                continue
            self.store.increment(Player, responder_id, 'score', earned)

        self.store.patch(Question, question_id, {'is_answered': True})
        current_app.logger.info(f"[score] lobby={lobby_id} question={question_id} points={dict(points)}")
        return dict(points)


def standings(players, host_player_id: int, viewer_id: int) -> List[dict]:
    ordered = sorted(players, key=lambda p: (-p.score, p.name.lower(), p.id))
    return [
        {
            'id': p.id,
            'rank': index + 1,
            'name': p.name,
            'score': p.score,
            'is_host': p.id == host_player_id,
            'is_you': p.id == viewer_id,
        }
        for index, p in enumerate(ordered)
    ]


def winners(table: List[dict]) -> List[dict]:
    if not table:
        return []
    best = table[0]['score']
    return [entry for entry in table if entry['score'] == best]
