"""user_banned_until

Migration ID: 20200526174500_UserBannedUntil
Create Date: 2020-05-26 17:45:00

"""
import sqlalchemy as sa
from alembic.operations import Operations

identifier = "20200526174500_UserBannedUntil"


def upgrade(op: Operations) -> None:
    """Upgrade schema."""
    op.add_column("Users", sa.Column("BannedUntil", sa.DateTime, nullable=True))


def downgrade(op: Operations) -> None:
    """Downgrade schema."""
    with op.batch_alter_table(
        "Users", table_kwargs={"sqlite_autoincrement": True}
    ) as batch_op:
        batch_op.drop_column("BannedUntil")
