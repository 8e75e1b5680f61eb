"""surrogate_keys

Migration ID: 20200605194113_SurrogateKeys
Create Date: 2020-06-05 19:41:13

Users and Messages both get an autoincrement Id.  A username may now be
reused by a different UserId, so only the pair is unique.
"""
import sqlalchemy as sa
from alembic.operations import Operations

from ..ddl import rebuild_table

identifier = "20200605194113_SurrogateKeys"

_NOW = "(CAST(strftime('%s', 'now') AS INTEGER))"


def upgrade(op: Operations) -> None:
    """Upgrade schema."""
    op.drop_index("IX_Users_Username", table_name="Users")
    rebuild_table(
        op,
        "Users",
        sa.Column("Id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("UserId", sa.BigInteger, nullable=False),
        sa.Column("Username", sa.Text, nullable=False),
        sa.PrimaryKeyConstraint("Id", name="PK_Users"),
        copy_columns=("UserId", "Username"),
        sqlite_autoincrement=True,
    )
    op.create_index(
        "IX_Users_Username_UserId", "Users", ["Username", "UserId"], unique=True
    )

    op.drop_index("IX_Messages_ChatId_UserId", table_name="Messages")
    op.drop_index("IX_Messages_Date", table_name="Messages")
    rebuild_table(
        op,
        "Messages",
        sa.Column("Id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("MessageId", sa.BigInteger, nullable=False),
        sa.Column("ChatId", sa.BigInteger, nullable=False),
        sa.Column("UserId", sa.BigInteger, nullable=False),
        sa.Column("Date", sa.BigInteger, nullable=False, server_default=sa.text(_NOW)),
        sa.PrimaryKeyConstraint("Id", name="PK_Messages"),
        copy_columns=("MessageId", "ChatId", "UserId", "Date"),
        sqlite_autoincrement=True,
    )
    op.create_index("IX_Messages_Date", "Messages", ["Date"])
    op.create_index(
        "IX_Messages_ChatId_UserId", "Messages", ["ChatId", "UserId"], unique=True
    )


def downgrade(op: Operations) -> None:
    """Downgrade schema.

    Fails with an integrity error when a UserId or Username now appears on
    more than one row, since the previous version keyed Users by UserId.
    """
    op.drop_index("IX_Messages_ChatId_UserId", table_name="Messages")
    op.drop_index("IX_Messages_Date", table_name="Messages")
    rebuild_table(
        op,
        "Messages",
        sa.Column("MessageId", sa.BigInteger, nullable=False),
        sa.Column("ChatId", sa.BigInteger, nullable=False),
        sa.Column("UserId", sa.BigInteger, nullable=False),
        sa.Column("Date", sa.BigInteger, nullable=False),
        copy_columns=("MessageId", "ChatId", "UserId", "Date"),
    )
    op.create_index("IX_Messages_Date", "Messages", ["Date"])
    op.create_index(
        "IX_Messages_ChatId_UserId", "Messages", ["ChatId", "UserId"], unique=True
    )

    op.drop_index("IX_Users_Username_UserId", table_name="Users")
    rebuild_table(
        op,
        "Users",
        sa.Column("UserId", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("Username", sa.Text, nullable=False),
        sa.PrimaryKeyConstraint("UserId", name="PK_Users"),
        copy_columns=("UserId", "Username"),
        sqlite_autoincrement=True,
    )
    op.create_index("IX_Users_Username", "Users", ["Username"], unique=True)
