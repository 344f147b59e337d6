"""create key_value table for high score persistence

Revision ID: 5a7c1e9d2b40
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5a7c1e9d2b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    # Tables created earlier with `flask init-db` are left as they are
    if 'key_value' in set(insp.get_table_names()):
        return
    op.create_table(
        'key_value',
        sa.Column('key', sa.String(length=128), primary_key=True),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'key_value' in set(insp.get_table_names()):
        op.drop_table('key_value')
