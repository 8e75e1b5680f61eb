"""Descriptor of the store's schema at the latest migration step.

The tables here are written by hand and must match what the migration
steps in ``grinder.migrations`` build.  ``Migrator.verify`` compares a live
store against this metadata, and the migrator uses ``ledger`` to record
which steps have been applied.
"""

import sqlalchemy as sa

LEDGER_TABLE = "__MigrationsHistory"

metadata = sa.MetaData()

users = sa.Table(
    "Users",
    metadata,
    sa.Column("Id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("UserId", sa.BigInteger, nullable=False),
    sa.Column("Username", sa.Text, nullable=False),
    sa.PrimaryKeyConstraint("Id", name="PK_Users"),
    sa.Index("IX_Users_Username_UserId", "Username", "UserId", unique=True),
    sqlite_autoincrement=True,
)

messages = sa.Table(
    "Messages",
    metadata,
    sa.Column("Id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("MessageId", sa.BigInteger, nullable=False),
    sa.Column("ChatId", sa.BigInteger, nullable=False),
    sa.Column("UserId", sa.BigInteger, nullable=False),
    # unix seconds
    sa.Column(
        "Date",
        sa.BigInteger,
        nullable=False,
        server_default=sa.text("(CAST(strftime('%s', 'now') AS INTEGER))"),
    ),
    sa.PrimaryKeyConstraint("Id", name="PK_Messages"),
    sa.Index("IX_Messages_Date", "Date"),
    sa.Index("IX_Messages_ChatId_UserId", "ChatId", "UserId", unique=True),
    sqlite_autoincrement=True,
)

admin_users = sa.Table(
    "AdminUsers",
    metadata,
    sa.Column("Username", sa.Text, nullable=False),
    sa.PrimaryKeyConstraint("Username", name="PK_AdminUsers"),
    sa.Index("IX_AdminUsers_Username", "Username"),
)

chats_to_monitor = sa.Table(
    "ChatsToMonitor",
    metadata,
    sa.Column("Username", sa.Text, nullable=False),
    sa.PrimaryKeyConstraint("Username", name="PK_ChatsToMonitor"),
    sa.Index("IX_ChatsToMonitor_Username", "Username"),
)

ledger = sa.Table(
    LEDGER_TABLE,
    metadata,
    sa.Column("MigrationId", sa.Text, nullable=False),
    sa.Column("AppliedAt", sa.Text, nullable=False),
    sa.PrimaryKeyConstraint("MigrationId", name="PK___MigrationsHistory"),
)
