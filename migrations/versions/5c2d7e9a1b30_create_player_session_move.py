"""create player, game_session and move tables

Revision ID: 5c2d7e9a1b30
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d7e9a1b30'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'player',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('password_hash', sa.String(length=128), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='user'),
        sa.Column('tokens', sa.Float(), nullable=False, server_default='0'),
        sa.Column('score', sa.Float(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_player_username', 'player', ['username'], unique=True)
    op.create_index('ix_player_email', 'player', ['email'], unique=True)

    op.create_table(
        'game_session',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.Integer(), nullable=False),
        # a player id, or -1 for the built-in AI
        sa.Column('opponent_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('kind', sa.String(length=16), nullable=False),
        sa.Column('ai_difficulty', sa.String(length=16), nullable=False),
        sa.Column('initial_board', sa.JSON(), nullable=False),
        sa.Column('board', sa.JSON(), nullable=False),
        sa.Column('total_moves', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('winner_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('ended_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['player_id'], ['player.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_game_session_player_id', 'game_session', ['player_id'])
    op.create_index('ix_game_session_opponent_id', 'game_session', ['opponent_id'])
    op.create_index('ix_game_session_status', 'game_session', ['status'])

    op.create_table(
        'move',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.Integer(), nullable=False),
        sa.Column('move_number', sa.Integer(), nullable=False),
        sa.Column('actor_id', sa.Integer(), nullable=False),
        sa.Column('from_position', sa.String(length=2), nullable=False),
        sa.Column('to_position', sa.String(length=2), nullable=False),
        sa.Column('piece_type', sa.String(length=8), nullable=False, server_default='single'),
        sa.Column('board', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['session_id'], ['game_session.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('session_id', 'move_number', name='uq_move_session_move_number'),
    )
    op.create_index('ix_move_session_id', 'move', ['session_id'])


def downgrade():
    op.drop_index('ix_move_session_id', table_name='move')
    op.drop_table('move')
    op.drop_index('ix_game_session_status', table_name='game_session')
    op.drop_index('ix_game_session_opponent_id', table_name='game_session')
    op.drop_index('ix_game_session_player_id', table_name='game_session')
    op.drop_table('game_session')
    op.drop_index('ix_player_email', table_name='player')
    op.drop_index('ix_player_username', table_name='player')
    op.drop_table('player')
