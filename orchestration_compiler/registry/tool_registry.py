"""
Read-only tool allow-set.

Compiled agent nodes may only reference client-executed function tools from
this set. The registry is immutable so it can be shared across concurrent
compilations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Sequence, Tuple


class ToolNames:
    FS_READ_FILE = "fs_read_file"
    FS_LIST_FILES = "fs_list_files"
    FS_SEARCH = "fs_search"
    FS_EDIT = "fs_edit"
    BASH = "bash"
    WRITE_FILE = "write_file"
    USER_ASK = "user_ask"


DEFAULT_ALLOWED_TOOLS: FrozenSet[str] = frozenset(
    {
        ToolNames.FS_READ_FILE,
        ToolNames.FS_LIST_FILES,
        ToolNames.FS_SEARCH,
        ToolNames.FS_EDIT,
        ToolNames.BASH,
        ToolNames.WRITE_FILE,
        ToolNames.USER_ASK,
    }
)


@dataclass(frozen=True)
class ToolRegistry:
    """
    Fixed allow-set of tool names plus the defaults attached to agents that
    declare no tools of their own.
    """

    allowed: FrozenSet[str] = DEFAULT_ALLOWED_TOOLS
    defaults: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def create(
        cls,
        allowed: Iterable[str] | None = None,
        defaults: Sequence[str] | None = None,
    ) -> "ToolRegistry":
        return cls(
            allowed=frozenset(allowed) if allowed is not None else DEFAULT_ALLOWED_TOOLS,
            defaults=tuple(defaults or ()),
        )

    def is_allowed(self, name: str) -> bool:
        return name in self.allowed

    def sorted_names(self) -> Tuple[str, ...]:
        return tuple(sorted(self.allowed))
