"""create player_stats ledger

Revision ID: 5c1e9a7b2d40
Revises:
Create Date: 2026-10-18 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c1e9a7b2d40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'player_stats' in insp.get_table_names():
        return
    op.create_table(
        'player_stats',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('kills', sa.Integer(), nullable=False),
        sa.Column('deaths', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('player_stats') as batch_op:
        batch_op.create_index(batch_op.f('ix_player_stats_name'), ['name'], unique=True)


def downgrade():
    with op.batch_alter_table('player_stats') as batch_op:
        batch_op.drop_index(batch_op.f('ix_player_stats_name'))
    op.drop_table('player_stats')
