"""stickychain: a kanban board that cannot forget.

Every mutation lands twice: once in the current-state stores, once in the
hash-chained journal. The stores answer "what is". The chain answers "what was".

Genesis constants are deliberate: block 0 is the only record nobody authored.
"""

from __future__ import annotations

__all__ = [
    "__version__",
    "GENESIS_PREVIOUS_HASH",
    "GENESIS_SUBJECT_ID",
    "SYSTEM_AUTHOR",
]

__version__ = "1.0.0"

# The link every chain starts from.
GENESIS_PREVIOUS_HASH = "0"
GENESIS_SUBJECT_ID = "genesis"

# Author of records nobody in particular caused.
SYSTEM_AUTHOR = "system"
