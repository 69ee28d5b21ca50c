"""Create users, tournaments and tournament_players

Revision ID: 001
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('phone', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=True),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('consent_given', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('otp_code_hash', sa.String(), nullable=True),
        sa.Column('otp_expires_at', sa.DateTime(), nullable=True),
        sa.Column('otp_request_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_phone', 'users', ['phone'], unique=True)
    op.create_index('ix_users_created_at', 'users', ['created_at'])

    op.create_table(
        'tournaments',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('game_type', sa.String(length=20), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('entry_fee', sa.Float(), nullable=False, server_default='0'),
        sa.Column('per_kill', sa.Float(), nullable=False, server_default='0'),
        sa.Column('winning_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('max_players', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('room_id', sa.String(length=100), nullable=False),
        sa.Column('room_password', sa.String(length=100), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='UPCOMING'),
        sa.Column('player_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('player_count >= 0 AND player_count <= max_players', name='ck_tournaments_capacity'),
    )
    op.create_index('ix_tournaments_game_type', 'tournaments', ['game_type'])
    op.create_index('ix_tournaments_start_time', 'tournaments', ['start_time'])
    op.create_index('ix_tournaments_status', 'tournaments', ['status'])

    op.create_table(
        'tournament_players',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('tournament_id', sa.String(length=36), sa.ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=False),
        sa.Column('game_name', sa.String(length=30), nullable=False),
        sa.Column('uid', sa.String(length=64), nullable=False),
        sa.Column('registered_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('tournament_id', 'phone', name='uq_tournament_players_tournament_phone'),
    )
    op.create_index('ix_tournament_players_phone', 'tournament_players', ['phone'])
    op.create_index(
        'ix_tournament_players_tournament_registered',
        'tournament_players',
        ['tournament_id', 'registered_at'],
    )


def downgrade():
    op.drop_index('ix_tournament_players_tournament_registered', table_name='tournament_players')
    op.drop_index('ix_tournament_players_phone', table_name='tournament_players')
    op.drop_table('tournament_players')
    op.drop_index('ix_tournaments_status', table_name='tournaments')
    op.drop_index('ix_tournaments_start_time', table_name='tournaments')
    op.drop_index('ix_tournaments_game_type', table_name='tournaments')
    op.drop_table('tournaments')
    op.drop_index('ix_users_created_at', table_name='users')
    op.drop_index('ix_users_phone', table_name='users')
    op.drop_table('users')
