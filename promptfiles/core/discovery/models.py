# promptfiles/core/discovery/models.py
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


@dataclass(frozen=True, order=False)
class DiscoveredFile:
    # one regular file found by the walk; excluded files keep their path but skip content reads.
    path: Path
    excluded: bool = False


@dataclass(frozen=True)
class MatchBase:
    # a root as supplied by the caller plus its canonical form, when it has one.
    supplied: Path
    canonical: Optional[Path] = None


class Decision(Enum):
    # outcome of testing one path against one ignore file.
    NONE = "none"
    IGNORE = "ignore"
    WHITELIST = "whitelist"

    @property
    def is_ignore(self) -> bool:
        return self is Decision.IGNORE

    @property
    def is_none(self) -> bool:
        return self is Decision.NONE
