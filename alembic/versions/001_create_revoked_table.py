"""Create revoked table

Revision ID: 001
Revises:
Create Date: 2026-10-17 00:00:00

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # One row per tracked certificate; NULL revoked_at means not revoked
    op.create_table(
        'revoked',
        sa.Column('serial', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('serial')
    )


def downgrade() -> None:
    op.drop_table('revoked')
