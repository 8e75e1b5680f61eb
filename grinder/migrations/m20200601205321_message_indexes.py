"""message_indexes

Migration ID: 20200601205321_MessageIndexes
Create Date: 2020-06-01 20:53:21

"""
import sqlalchemy as sa
from alembic.operations import Operations

from ..ddl import rebuild_table

identifier = "20200601205321_MessageIndexes"


def upgrade(op: Operations) -> None:
    """Drop the MessageId key and index messages by chat and user."""
    op.drop_index("IX_Message_UserId", table_name="Message")
    rebuild_table(
        op,
        "Message",
        sa.Column("MessageId", sa.BigInteger, nullable=False),
        sa.Column("ChatId", sa.BigInteger, nullable=False),
        sa.Column("UserId", sa.BigInteger, nullable=False),
        sa.Column("Date", sa.BigInteger, nullable=False),
        copy_columns=("MessageId", "ChatId", "UserId", "Date"),
    )
    op.rename_table("Message", "Messages")
    op.create_index("IX_Messages_Date", "Messages", ["Date"])
    op.create_index(
        "IX_Messages_ChatId_UserId", "Messages", ["ChatId", "UserId"], unique=True
    )


def downgrade(op: Operations) -> None:
    """Restore the MessageId key and the per-user unique index."""
    op.drop_index("IX_Messages_ChatId_UserId", table_name="Messages")
    op.drop_index("IX_Messages_Date", table_name="Messages")
    op.rename_table("Messages", "Message")
    rebuild_table(
        op,
        "Message",
        sa.Column("MessageId", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("ChatId", sa.BigInteger, nullable=False),
        sa.Column("UserId", sa.BigInteger, nullable=False),
        sa.Column("Date", sa.BigInteger, nullable=False),
        sa.PrimaryKeyConstraint("MessageId", name="PK_Message"),
        copy_columns=("MessageId", "ChatId", "UserId", "Date"),
        sqlite_autoincrement=True,
    )
    op.create_index("IX_Message_UserId", "Message", ["UserId"], unique=True)
