"""create game, player and round_result tables

Revision ID: 5c1e7a2b9d04
Revises:
Create Date: 2026-09-14 10:12:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c1e7a2b9d04'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa.inspect(bind).get_table_names())

    if 'game' not in existing_tables:
        op.create_table(
            'game',
            sa.Column('code', sa.String(length=16), primary_key=True),
            sa.Column('host_id', sa.String(length=16), nullable=False),
            sa.Column('phase', sa.String(length=16), nullable=False, server_default='lobby'),
            sa.Column('current_round', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('round_start_time', sa.Float(), nullable=True),
            sa.Column('voting_end_time', sa.Float(), nullable=True),
            sa.Column('winner', sa.String(length=16), nullable=True),
            sa.Column('created_at', sa.Float(), nullable=False),
            sa.CheckConstraint('current_round >= 0', name='ck_game_current_round'),
        )

    if 'player' not in existing_tables:
        op.create_table(
            'player',
            sa.Column('id', sa.String(length=16), primary_key=True),
            sa.Column('game_code', sa.String(length=16), sa.ForeignKey('game.code'), nullable=False),
            sa.Column('name', sa.String(length=64), nullable=False),
            sa.Column('seat', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('suit', sa.String(length=16), nullable=True),
            sa.Column('is_jack', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('is_host', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
            sa.Column('last_vote', sa.String(length=16), nullable=True),
            sa.Column('eliminated_round', sa.Integer(), nullable=True),
        )
        op.create_index('ix_player_game_code', 'player', ['game_code'])

    if 'round_result' not in existing_tables:
        op.create_table(
            'round_result',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('game_code', sa.String(length=16), sa.ForeignKey('game.code'), nullable=False),
            sa.Column('round_number', sa.Integer(), nullable=False),
            sa.Column('player_id', sa.String(length=16), nullable=False),
            sa.Column('player_name', sa.String(length=64), nullable=False),
            sa.Column('vote', sa.String(length=16), nullable=True),
            sa.Column('actual_suit', sa.String(length=16), nullable=True),
            sa.Column('correct', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('eliminated', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.UniqueConstraint('game_code', 'round_number', 'player_id', name='uq_round_result_player'),
        )
        op.create_index('ix_round_result_game_code', 'round_result', ['game_code'])


def downgrade():
    op.drop_index('ix_round_result_game_code', table_name='round_result')
    op.drop_table('round_result')
    op.drop_index('ix_player_game_code', table_name='player')
    op.drop_table('player')
    op.drop_table('game')
