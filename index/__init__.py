"""Index package: lifecycle (init/open) and synchronization operations."""

from .service import (
    Change,
    Index,
    add_to_index,
    get_entries_info,
    init_index,
    open_index,
    print_change,
    remove_from_index,
    sync_index,
)

__all__ = [
    "Change",
    "Index",
    "add_to_index",
    "get_entries_info",
    "init_index",
    "open_index",
    "print_change",
    "remove_from_index",
    "sync_index",
]
