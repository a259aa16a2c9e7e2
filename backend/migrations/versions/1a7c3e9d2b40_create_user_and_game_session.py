"""create user and game_session tables

Revision ID: 1a7c3e9d2b40
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '1a7c3e9d2b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'user' not in existing_tables:
        op.create_table(
            'user',
            sa.Column('id', sa.Uuid(), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=True),
            sa.Column('password_hash', sa.String(length=256), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_user_email', 'user', ['email'], unique=True)

    if 'game_session' not in existing_tables:
        # user_id has no foreign key to user
        op.create_table(
            'game_session',
            sa.Column('id', sa.Uuid(), nullable=False),
            sa.Column('user_id', sa.Uuid(), nullable=False),
            sa.Column('score_color', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('score_shape', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('score_size', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('score_total', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('rule_changes', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('duration_seconds', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_game_session_user_id', 'game_session', ['user_id'])
        op.create_index('ix_game_session_user_created', 'game_session', ['user_id', 'created_at'])


def downgrade():
    op.drop_index('ix_game_session_user_created', table_name='game_session')
    op.drop_index('ix_game_session_user_id', table_name='game_session')
    op.drop_table('game_session')
    op.drop_index('ix_user_email', table_name='user')
    op.drop_table('user')
