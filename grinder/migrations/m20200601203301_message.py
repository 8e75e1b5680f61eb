"""message

Migration ID: 20200601203301_Message
Create Date: 2020-06-01 20:33:01

Users are keyed by their external UserId from here on; the surrogate Id
column is dropped.
"""
import sqlalchemy as sa
from alembic.operations import Operations

from ..ddl import rebuild_table

identifier = "20200601203301_Message"


def upgrade(op: Operations) -> None:
    """Upgrade schema."""
    op.drop_index("IX_Users_UserId", table_name="Users")
    op.drop_index("IX_Users_Username", table_name="Users")
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

    op.create_table(
        "Message",
        sa.Column("MessageId", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("ChatId", sa.BigInteger, nullable=False),
        sa.Column("UserId", sa.BigInteger, nullable=False),
        sa.Column("Date", sa.BigInteger, nullable=False),
        sa.PrimaryKeyConstraint("MessageId", name="PK_Message"),
        sqlite_autoincrement=True,
    )
    op.create_index("IX_Message_UserId", "Message", ["UserId"], unique=True)


def downgrade(op: Operations) -> None:
    """Downgrade schema."""
    op.drop_index("IX_Message_UserId", table_name="Message")
    op.drop_table("Message")

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
    op.create_index("IX_Users_UserId", "Users", ["UserId"], unique=True)
    op.create_index("IX_Users_Username", "Users", ["Username"], unique=True)
