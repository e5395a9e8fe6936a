from trivia import db
from trivia.services.rounds.state import Active, NotPlaying, Phase
import json


class Player(db.Model):
    __tablename__ = 'player'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    # Null once the player leaves (or is removed from) the lobby
    lobby_id = db.Column(db.Integer, db.ForeignKey('lobby.id'), nullable=True, index=True)
    score = db.Column(db.Integer, default=0, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'lobby_id': self.lobby_id,
            'score': self.score,
        }


class Lobby(db.Model):
    """One match: configuration plus the live round state."""
    __tablename__ = 'lobby'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.Integer, unique=True, index=True, nullable=False)
    host_player_id = db.Column(db.Integer, nullable=False)
    game_state = db.Column(db.String(16), default='SETUP', nullable=False)  # SETUP, PLAY, ENDED
    time_per_question = db.Column(db.Integer, nullable=False)
    max_questions = db.Column(db.Integer, nullable=True)
    question_order = db.Column(db.Text, nullable=True)  # JSON-encoded list of question ids
    question_cursor = db.Column(db.Integer, nullable=True)
    # Round state: written only through RoundState.as_fields()
    current_question_id = db.Column(db.Integer, nullable=True)
    phase = db.Column(db.String(16), nullable=True)  # ANSWERING, RATING
    phase_started_at = db.Column(db.Integer, nullable=True)
    phase_ends_at = db.Column(db.Integer, nullable=True)
    phase_nonce = db.Column(db.Integer, nullable=True)

    @property
    def question_order_ids(self):
        try:
            return json.loads(self.question_order) if self.question_order else []
        except ValueError:
            return []

    @property
    def round_state(self):
        if (
            self.phase
            and self.current_question_id is not None
            and self.phase_ends_at is not None
            and self.phase_nonce is not None
        ):
            return Active(
                phase=Phase(self.phase),
                question_id=self.current_question_id,
                started_at=self.phase_started_at if self.phase_started_at is not None else self.phase_ends_at,
                ends_at=self.phase_ends_at,
                nonce=self.phase_nonce,
            )
        return NotPlaying()

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'host_player_id': self.host_player_id,
            'game_state': self.game_state,
            'time_per_question': self.time_per_question,
            'max_questions': self.max_questions,
            'question_order': self.question_order_ids,
            'question_cursor': self.question_cursor,
            'current_question_id': self.current_question_id,
            'phase': self.phase,
            'phase_started_at': self.phase_started_at,
            'phase_ends_at': self.phase_ends_at,
            'phase_nonce': self.phase_nonce,
        }


class Question(db.Model):
    __tablename__ = 'question'
    __table_args__ = (
        db.UniqueConstraint('lobby_id', 'owner_id', 'difficulty', name='uq_question_owner_difficulty'),
    )
    id = db.Column(db.Integer, primary_key=True)
    lobby_id = db.Column(db.Integer, db.ForeignKey('lobby.id'), nullable=False, index=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False, index=True)
    difficulty = db.Column(db.String(16), nullable=False)  # EASY, MEDIUM, HARD
    prompt = db.Column(db.Text, nullable=False)
    canonical_answer = db.Column(db.Text, nullable=False)
    is_answered = db.Column(db.Boolean, default=False, nullable=False)

    def to_dict(self, include_answer=False):
        payload = {
            'id': self.id,
            'owner_id': self.owner_id,
            'difficulty': self.difficulty,
            'prompt': self.prompt,
            'is_answered': self.is_answered,
        }
        if include_answer:
            payload['canonical_answer'] = self.canonical_answer
        return payload


class Response(db.Model):
    __tablename__ = 'response'
    __table_args__ = (
        db.UniqueConstraint('question_id', 'responder_id', name='uq_response_question_responder'),
    )
    id = db.Column(db.Integer, primary_key=True)
    lobby_id = db.Column(db.Integer, db.ForeignKey('lobby.id'), nullable=False)
    question_id = db.Column(db.Integer, db.ForeignKey('question.id'), nullable=False, index=True)
    responder_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    answer_text = db.Column(db.Text, nullable=False)
    submitted_at = db.Column(db.Integer, nullable=False)
    updated_at = db.Column(db.Integer, nullable=False)
    correctness_stars = db.Column(db.Integer, nullable=True)
    creativity_stars = db.Column(db.Integer, nullable=True)
    rated_at = db.Column(db.Integer, nullable=True)

    @property
    def is_fully_rated(self):
        return self.correctness_stars is not None and self.creativity_stars is not None

    def to_dict(self):
        return {
            'id': self.id,
            'question_id': self.question_id,
            'responder_id': self.responder_id,
            'answer': self.answer_text,
            'submitted_at': self.submitted_at,
            'updated_at': self.updated_at,
            'correctness_stars': self.correctness_stars,
            'creativity_stars': self.creativity_stars,
            'rated_at': self.rated_at,
        }
