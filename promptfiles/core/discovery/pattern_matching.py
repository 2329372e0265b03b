# promptfiles/core/discovery/pattern_matching.py
import fnmatch
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
import pathspec
import structlog

from promptfiles.core.discovery.models import Decision
from promptfiles.exceptions import ConfigError

log = structlog.get_logger(__name__)

RECURSIVE_SEGMENT = "**/"


def validate_glob(raw: str) -> None:
    """
    Rejects malformed shell globs with a ValueError.

    ``**`` must stand alone as a path component, three or more stars in a row
    are not allowed, and every ``[`` needs a closing ``]``.
    """
    i, n = 0, len(raw)
    while i < n:
        ch = raw[i]
        if ch == "*":
            j = i
            while j < n and raw[j] == "*":
                j += 1
            if j - i > 2:
                raise ValueError("wildcards are either regular `*` or recursive `**`")
            if j - i == 2 and ((i > 0 and raw[i - 1] != "/") or (j < n and raw[j] != "/")):
                raise ValueError("recursive wildcards must form a single path component")
            i = j
        elif ch == "[":
            j = i + 1
            if j < n and raw[j] == "!":
                j += 1
            if j < n and raw[j] == "]":
                j += 1
            close = raw.find("]", j)
            if close == -1:
                raise ValueError("unclosed character class")
            i = close + 1
        else:
            i += 1


def _recursive_variants(raw: str) -> Tuple[str, ...]:
    # each `**/` may also match zero directories, so try the pattern with it dropped.
    variants = {raw}
    pending = [raw]
    while pending:
        current = pending.pop()
        start = current.find(RECURSIVE_SEGMENT)
        while start != -1:
            collapsed = current[:start] + current[start + len(RECURSIVE_SEGMENT):]
            if collapsed not in variants:
                variants.add(collapsed)
                pending.append(collapsed)
            start = current.find(RECURSIVE_SEGMENT, start + 1)
    return tuple(sorted(variants))


class GlobPattern:
    """
    A shell glob tested against a whole root-relative path.

    ``*`` and ``?`` also match ``/``, so ``*.lock`` excludes lock files at any
    depth while a bare name such as ``notes.txt`` only matches that exact path.
    ``#`` and ``!`` have no special meaning.
    """

    def __init__(self, raw: str):
        validate_glob(raw)
        self.raw = raw
        self._variants = _recursive_variants(raw)

    def __repr__(self) -> str:
        return f"GlobPattern({self.raw!r})"

    def matches(self, path_str: str) -> bool:
        return any(fnmatch.fnmatchcase(path_str, variant) for variant in self._variants)


class ExcludeSet:
    """Command-line exclude globs; a path is excluded if any pattern matches."""

    def __init__(self, patterns: Tuple[GlobPattern, ...] = ()):
        self.patterns = patterns

    def __len__(self) -> int:
        return len(self.patterns)

    def matches(self, match_path: Path) -> bool:
        if not self.patterns:
            return False
        path_str = match_path.as_posix()
        return any(pattern.matches(path_str) for pattern in self.patterns)


def compile_exclude_patterns(glob_patterns: Iterable[str]) -> ExcludeSet:
    compiled: List[GlobPattern] = []
    for raw in glob_patterns:
        try:
            compiled.append(GlobPattern(raw))
        except ValueError as e:
            raise ConfigError(f"invalid exclude pattern '{raw}': {e}") from e
    log.debug("exclude_patterns_compiled", count=len(compiled))
    return ExcludeSet(tuple(compiled))


class IgnoreFile:
    """
    A compiled ``.gitignore``-syntax file anchored at a root directory.

    Queries return a tri-state ``Decision``: the last matching pattern wins,
    and a negated pattern (``!keep.log``) yields ``Decision.WHITELIST``.
    Paths outside the root never match.
    """

    def __init__(self, root: Path, spec: pathspec.PathSpec, source: Optional[Path] = None):
        self.root = root
        self.spec = spec
        self.source = source

    def __repr__(self) -> str:
        return f"IgnoreFile(root={self.root!s}, source={self.source!s}, patterns={len(self.spec.patterns)})"

    @classmethod
    def from_lines(cls, root: Path, lines: Iterable[str], source: Optional[Path] = None) -> Optional["IgnoreFile"]:
        spec = pathspec.PathSpec.from_lines(pathspec.patterns.GitWildMatchPattern, lines)
        if not any(p.include is not None for p in spec.patterns):
            return None
        return cls(root, spec, source)

    @classmethod
    def from_file(cls, ignore_file_path: Path, root: Optional[Path] = None) -> Optional["IgnoreFile"]:
        # loads and compiles an ignore file; missing, empty or broken files give None.
        if not ignore_file_path.is_file():
            return None
        try:
            with ignore_file_path.open("r", encoding="utf-8", errors="ignore") as f_obj:
                lines = f_obj.read().splitlines()
            matcher = cls.from_lines(root if root is not None else ignore_file_path.parent, lines, ignore_file_path)
        except Exception as e:
            log.warning("failed_to_parse_ignore_file", path=str(ignore_file_path), error=str(e))
            return None
        if matcher is None:
            log.debug("ignore_file_has_no_rules", path=str(ignore_file_path))
        return matcher

    def _relative(self, path: Path) -> Optional[Path]:
        try:
            rel = path.relative_to(self.root)
        except ValueError:
            return None
        return rel if rel.parts else None

    def _match_str(self, path_str: str) -> Decision:
        decision = Decision.NONE
        for pattern in self.spec.patterns:
            if pattern.include is None:
                continue
            if pattern.match_file(path_str) is not None:
                decision = Decision.IGNORE if pattern.include else Decision.WHITELIST
        return decision

    def matched(self, path: Path, is_dir: bool = False) -> Decision:
        rel = self._relative(path)
        if rel is None:
            return Decision.NONE
        path_str = rel.as_posix() + ("/" if is_dir else "")
        return self._match_str(path_str)

    def matched_path_or_any_parents(self, path: Path, is_dir: bool = False) -> Decision:
        # tries the path itself, then each ancestor directory below the root, nearest first.
        rel = self._relative(path)
        if rel is None:
            return Decision.NONE
        decision = self._match_str(rel.as_posix() + ("/" if is_dir else ""))
        if not decision.is_none:
            return decision
        for parent in rel.parents:
            if not parent.parts:
                break
            decision = self._match_str(parent.as_posix() + "/")
            if not decision.is_none:
                return decision
        return Decision.NONE
