"""normalize legacy 'finished' phase to 'ended'

Revision ID: 9e4d2f61a7c3
Revises: 5c1e7a2b9d04
Create Date: 2026-09-21 16:40:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '9e4d2f61a7c3'
down_revision = '5c1e7a2b9d04'
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    if 'game' not in set(sa.inspect(bind).get_table_names()):
        return
    op.execute("UPDATE game SET phase = 'ended' WHERE phase = 'finished'")


def downgrade():
    # 'ended' is the only spelling the server understands; nothing to undo
    pass
