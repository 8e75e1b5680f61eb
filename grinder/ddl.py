"""Structural helpers shared by migration steps."""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic.operations import Operations


def rebuild_table(
    op: Operations,
    name: str,
    *elements: sa.schema.SchemaItem,
    copy_columns: Sequence[str],
    **table_kw,
) -> None:
    """Recreate table *name* with a new shape and carry its rows across.

    SQLite cannot add or drop a primary key in place, so the table is
    created as ``<name>_new``, filled with ``INSERT .. SELECT`` over
    *copy_columns*, and swapped in under the old name.  Indexes on the old
    table are dropped with it; callers recreate the ones they need.
    """
    tmp_name = f"{name}_new"
    op.create_table(tmp_name, *elements, **table_kw)
    cols = ", ".join(f'"{col}"' for col in copy_columns)
    op.execute(f'INSERT INTO "{tmp_name}" ({cols}) SELECT {cols} FROM "{name}"')
    op.drop_table(name)
    op.rename_table(tmp_name, name)
