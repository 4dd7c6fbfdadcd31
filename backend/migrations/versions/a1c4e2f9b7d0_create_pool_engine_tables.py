"""create pool engine tables

Revision ID: a1c4e2f9b7d0
Revises:
Create Date: 2026-10-16 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1c4e2f9b7d0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Timestamps are naive UTC at rest; the model layer re-attaches tzinfo.
    op.create_table(
        'pool',
        sa.Column('pool_id', sa.String(length=64), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=True),
        sa.Column('date', sa.String(length=10), nullable=True),
        sa.Column('sr_game_id', sa.String(length=64), nullable=True),
        sa.Column('home_team', sa.String(length=8), nullable=True),
        sa.Column('away_team', sa.String(length=8), nullable=True),
        sa.Column('lock_time', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_pool_lock_time', 'pool', ['lock_time'])
    op.create_index('ix_pool_status', 'pool', ['status'])

    op.create_table(
        'roster_snapshot',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('pool_id', sa.String(length=64), sa.ForeignKey('pool.pool_id'), nullable=False),
        sa.Column('source', sa.String(length=32), nullable=False),
        sa.Column('captured_at', sa.DateTime(), nullable=False),
        sa.Column('players', sa.JSON(), nullable=False),
    )
    op.create_index('ix_roster_snapshot_pool_id', 'roster_snapshot', ['pool_id'])

    op.create_table(
        'player_stat',
        sa.Column('pool_id', sa.String(length=64), sa.ForeignKey('pool.pool_id'), primary_key=True),
        sa.Column('player_id', sa.String(length=64), primary_key=True),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'hot_streak_event',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('pool_id', sa.String(length=64), sa.ForeignKey('pool.pool_id'), nullable=False),
        sa.Column('player_id', sa.String(length=64), nullable=False),
        sa.Column('start_at', sa.DateTime(), nullable=False),
        sa.Column('end_at', sa.DateTime(), nullable=False),
        sa.Column('multiplier', sa.Float(), nullable=False),
        sa.Column('trigger_note', sa.String(length=128), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_hot_streak_pool_player_created', 'hot_streak_event', ['pool_id', 'player_id', 'created_at'])

    op.create_table(
        'entry',
        sa.Column('entry_id', sa.String(length=64), primary_key=True),
        sa.Column('pool_id', sa.String(length=64), sa.ForeignKey('pool.pool_id'), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('player_ids', sa.JSON(), nullable=False),
        sa.Column('total_cost', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_entry_pool_id', 'entry', ['pool_id'])

    op.create_table(
        'entry_score',
        sa.Column('entry_id', sa.String(length=64), sa.ForeignKey('entry.entry_id'), primary_key=True),
        sa.Column('pool_id', sa.String(length=64), sa.ForeignKey('pool.pool_id'), nullable=False),
        sa.Column('points_total', sa.Float(), nullable=False),
        sa.Column('hot_streak_bonus_total', sa.Float(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_entry_score_pool_id', 'entry_score', ['pool_id'])

    op.create_table(
        'leaderboard_cache',
        sa.Column('pool_id', sa.String(length=64), sa.ForeignKey('pool.pool_id'), primary_key=True),
        sa.Column('rows', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )


def downgrade():
    op.drop_table('leaderboard_cache')
    op.drop_index('ix_entry_score_pool_id', table_name='entry_score')
    op.drop_table('entry_score')
    op.drop_index('ix_entry_pool_id', table_name='entry')
    op.drop_table('entry')
    op.drop_index('ix_hot_streak_pool_player_created', table_name='hot_streak_event')
    op.drop_table('hot_streak_event')
    op.drop_table('player_stat')
    op.drop_index('ix_roster_snapshot_pool_id', table_name='roster_snapshot')
    op.drop_table('roster_snapshot')
    op.drop_index('ix_pool_status', table_name='pool')
    op.drop_index('ix_pool_lock_time', table_name='pool')
    op.drop_table('pool')
