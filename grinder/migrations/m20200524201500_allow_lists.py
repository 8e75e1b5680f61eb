"""allow_lists

Migration ID: 20200524201500_AllowLists
Create Date: 2020-05-24 20:15:00

"""
import sqlalchemy as sa
from alembic.operations import Operations

identifier = "20200524201500_AllowLists"


def upgrade(op: Operations) -> None:
    """Create the admin and monitored-chat username tables."""
    op.create_table(
        "AdminUsers",
        sa.Column("Username", sa.Text, nullable=False),
        sa.PrimaryKeyConstraint("Username", name="PK_AdminUsers"),
    )
    op.create_table(
        "ChatsToMonitor",
        sa.Column("Username", sa.Text, nullable=False),
        sa.PrimaryKeyConstraint("Username", name="PK_ChatsToMonitor"),
    )
    op.create_index("IX_AdminUsers_Username", "AdminUsers", ["Username"])
    op.create_index("IX_ChatsToMonitor_Username", "ChatsToMonitor", ["Username"])


def downgrade(op: Operations) -> None:
    """Drop the admin and monitored-chat username tables."""
    op.drop_index("IX_ChatsToMonitor_Username", table_name="ChatsToMonitor")
    op.drop_index("IX_AdminUsers_Username", table_name="AdminUsers")
    op.drop_table("ChatsToMonitor")
    op.drop_table("AdminUsers")
