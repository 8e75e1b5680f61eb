"""remove_user_banned_until

Migration ID: 20200529120000_RemoveUserBannedUntil
Create Date: 2020-05-29 12:00:00

Bans moved out of the store; the column and its values are discarded.
"""
from alembic.operations import Operations

from ..errors import IrreversibleStepError

identifier = "20200529120000_RemoveUserBannedUntil"


def upgrade(op: Operations) -> None:
    """Upgrade schema."""
    with op.batch_alter_table(
        "Users", table_kwargs={"sqlite_autoincrement": True}
    ) as batch_op:
        batch_op.drop_column("BannedUntil")


def downgrade(op: Operations) -> None:
    raise IrreversibleStepError(
        "Users.BannedUntil was dropped with its data and cannot be restored",
        identifier,
    )
