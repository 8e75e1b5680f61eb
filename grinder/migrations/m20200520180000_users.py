"""users

Migration ID: 20200520180000_Users
Create Date: 2020-05-20 18:00:00

"""
import sqlalchemy as sa
from alembic.operations import Operations

identifier = "20200520180000_Users"


def upgrade(op: Operations) -> None:
    """Upgrade schema."""
    op.create_table(
        "Users",
        sa.Column("Id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("UserId", sa.BigInteger, nullable=False),
        sa.Column("Username", sa.Text, nullable=False),
        sa.PrimaryKeyConstraint("Id", name="PK_Users"),
        sqlite_autoincrement=True,
    )
    op.create_index("IX_Users_UserId", "Users", ["UserId"], unique=True)


def downgrade(op: Operations) -> None:
    """Downgrade schema."""
    op.drop_index("IX_Users_UserId", table_name="Users")
    op.drop_table("Users")
