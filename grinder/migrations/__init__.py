"""Ordered schema migration steps for the grinder store.

Append new steps to ``STEPS``; never edit or reorder a step that has
shipped.
"""

from ..migrator import MigrationStep
from . import (
    m20200520180000_users,
    m20200522193000_username_index,
    m20200524201500_allow_lists,
    m20200526174500_user_banned_until,
    m20200529120000_remove_user_banned_until,
    m20200601203301_message,
    m20200601205321_message_indexes,
    m20200605194113_surrogate_keys,
)

STEPS: list[MigrationStep] = [
    MigrationStep.from_module(module)
    for module in (
        m20200520180000_users,
        m20200522193000_username_index,
        m20200524201500_allow_lists,
        m20200526174500_user_banned_until,
        m20200529120000_remove_user_banned_until,
        m20200601203301_message,
        m20200601205321_message_indexes,
        m20200605194113_surrogate_keys,
    )
]

__all__ = ["STEPS"]
