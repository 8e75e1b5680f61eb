"""username_index

Migration ID: 20200522193000_UsernameIndex
Create Date: 2020-05-22 19:30:00

"""
from alembic.operations import Operations

identifier = "20200522193000_UsernameIndex"


def upgrade(op: Operations) -> None:
    """Upgrade schema."""
    op.create_index("IX_Users_Username", "Users", ["Username"], unique=True)


def downgrade(op: Operations) -> None:
    """Downgrade schema."""
    op.drop_index("IX_Users_Username", table_name="Users")
