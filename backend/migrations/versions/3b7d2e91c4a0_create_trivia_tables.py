"""create lobby, player, question and response tables

Revision ID: 3b7d2e91c4a0
Revises:
Create Date: 2026-10-17 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3b7d2e91c4a0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'lobby',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.Integer(), nullable=False),
        sa.Column('host_player_id', sa.Integer(), nullable=False),
        sa.Column('game_state', sa.String(length=16), nullable=False),
        sa.Column('time_per_question', sa.Integer(), nullable=False),
        sa.Column('max_questions', sa.Integer(), nullable=True),
        sa.Column('question_order', sa.Text(), nullable=True),
        sa.Column('question_cursor', sa.Integer(), nullable=True),
        sa.Column('current_question_id', sa.Integer(), nullable=True),
        sa.Column('phase', sa.String(length=16), nullable=True),
        sa.Column('phase_started_at', sa.Integer(), nullable=True),
        sa.Column('phase_ends_at', sa.Integer(), nullable=True),
        sa.Column('phase_nonce', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_lobby_code'), 'lobby', ['code'], unique=True)

    op.create_table(
        'player',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('lobby_id', sa.Integer(), nullable=True),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['lobby_id'], ['lobby.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_player_lobby_id'), 'player', ['lobby_id'], unique=False)

    op.create_table(
        'question',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('lobby_id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('difficulty', sa.String(length=16), nullable=False),
        sa.Column('prompt', sa.Text(), nullable=False),
        sa.Column('canonical_answer', sa.Text(), nullable=False),
        sa.Column('is_answered', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['lobby_id'], ['lobby.id']),
        sa.ForeignKeyConstraint(['owner_id'], ['player.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('lobby_id', 'owner_id', 'difficulty', name='uq_question_owner_difficulty'),
    )
    op.create_index(op.f('ix_question_lobby_id'), 'question', ['lobby_id'], unique=False)
    op.create_index(op.f('ix_question_owner_id'), 'question', ['owner_id'], unique=False)

    op.create_table(
        'response',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('lobby_id', sa.Integer(), nullable=False),
        sa.Column('question_id', sa.Integer(), nullable=False),
        sa.Column('responder_id', sa.Integer(), nullable=False),
        sa.Column('answer_text', sa.Text(), nullable=False),
        sa.Column('submitted_at', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.Integer(), nullable=False),
        sa.Column('correctness_stars', sa.Integer(), nullable=True),
        sa.Column('creativity_stars', sa.Integer(), nullable=True),
        sa.Column('rated_at', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['lobby_id'], ['lobby.id']),
        sa.ForeignKeyConstraint(['question_id'], ['question.id']),
        sa.ForeignKeyConstraint(['responder_id'], ['player.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('question_id', 'responder_id', name='uq_response_question_responder'),
    )
    op.create_index(op.f('ix_response_question_id'), 'response', ['question_id'], unique=False)


def downgrade():
    op.drop_index(op.f('ix_response_question_id'), table_name='response')
    op.drop_table('response')
    op.drop_index(op.f('ix_question_owner_id'), table_name='question')
    op.drop_index(op.f('ix_question_lobby_id'), table_name='question')
    op.drop_table('question')
    op.drop_index(op.f('ix_player_lobby_id'), table_name='player')
    op.drop_table('player')
    op.drop_index(op.f('ix_lobby_code'), table_name='lobby')
    op.drop_table('lobby')
