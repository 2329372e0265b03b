# promptfiles/core/discovery/promptignore.py
"""
Cascading ``.promptignore`` resolution.

A ``.promptignore`` file uses ``.gitignore`` syntax but never hides a file:
matched files stay in the discovery result with ``excluded`` set, so their
paths still show up in the tree while their content is skipped.

Scopes are folded from least to most specific: the global file in the prompt
home directory, then one file per directory from the owning root down to the
file's parent. A deeper file with an opinion replaces the running decision,
which lets ``logs/.promptignore`` whitelist something the root file ignored.
"""
import os
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, MutableSequence, Optional, Sequence
import structlog

from promptfiles.core.discovery.models import Decision, DiscoveredFile
from promptfiles.core.discovery.path_resolution import canonicalize
from promptfiles.core.discovery.pattern_matching import IgnoreFile

log = structlog.get_logger(__name__)

PROMPTIGNORE_FILENAME = ".promptignore"
PROMPT_HOME_OVERRIDE_ENV = "PROMPT_HOME_DIR"

_UNLOADED = object()


def prompt_home_dir() -> Optional[Path]:
    # $PROMPT_HOME_DIR if set, else the user's home; None if neither can be determined.
    override = os.environ.get(PROMPT_HOME_OVERRIDE_ENV)
    if override:
        home = Path(override)
    else:
        try:
            home = Path.home()
        except (RuntimeError, KeyError):
            log.debug("home_directory_unavailable")
            return None
    return canonicalize(home) or home


def load_promptignore(directory: Path) -> Optional[IgnoreFile]:
    return IgnoreFile.from_file(directory / PROMPTIGNORE_FILENAME)


def load_global_promptignore() -> Optional[IgnoreFile]:
    home = prompt_home_dir()
    if home is None:
        return None
    matcher = load_promptignore(home)
    if matcher is not None:
        log.info("global_promptignore_loaded", path=str(matcher.source))
    return matcher


def find_root_for_path(path: Path, roots: Sequence[Path]) -> Optional[Path]:
    # the deepest root containing `path`.
    containing = [root for root in roots if path.is_relative_to(root)]
    if not containing:
        return None
    return max(containing, key=lambda root: len(root.parts))


def directory_chain_within(path: Path, root: Path) -> List[Path]:
    """Directories from `root` down to the parent of `path`, outermost first."""
    chain: List[Path] = []
    current = path.parent
    while current.is_relative_to(root):
        chain.append(current)
        if current == root or current.parent == current:
            break
        current = current.parent
    chain.reverse()
    return chain


class PromptignoreResolver:
    """
    Resolves ``.promptignore`` decisions for one discovery call.

    Holds a per-directory cache of compiled ignore files and the lazily loaded
    global matcher. Not thread-safe; run it after the walk has finished.
    """

    def __init__(self, roots: Sequence[Path]):
        self.roots = list(roots)
        self.directory_cache: Dict[Path, Optional[IgnoreFile]] = {}
        self._global = _UNLOADED

    @property
    def global_matcher(self) -> Optional[IgnoreFile]:
        if self._global is _UNLOADED:
            self._global = load_global_promptignore()
        return self._global  # type: ignore[return-value]

    def matcher_for_dir(self, directory: Path) -> Optional[IgnoreFile]:
        if directory not in self.directory_cache:
            self.directory_cache[directory] = load_promptignore(directory)
        return self.directory_cache[directory]

    def global_decision(self, path: Path) -> Decision:
        matcher = self.global_matcher
        if matcher is None or not path.is_relative_to(matcher.root):
            return Decision.NONE
        return matcher.matched_path_or_any_parents(path, is_dir=False)

    def decide(self, path: Path, root: Optional[Path]) -> Decision:
        decision = self.global_decision(path)
        if root is None:
            return decision
        for directory in directory_chain_within(path, root):
            matcher = self.matcher_for_dir(directory)
            if matcher is None:
                continue
            mat = matcher.matched_path_or_any_parents(path, is_dir=False)
            if not mat.is_none:
                decision = mat
        return decision

    def is_ignored(self, path: Path) -> bool:
        absolute_path = canonicalize(path) or path
        root = find_root_for_path(absolute_path, self.roots)
        return self.decide(absolute_path, root).is_ignore

    def apply(self, discovered: MutableSequence[DiscoveredFile]) -> None:
        # marks ignored entries excluded in place; never clears an existing exclusion.
        marked = 0
        for index, entry in enumerate(discovered):
            if entry.excluded:
                continue
            if self.is_ignored(entry.path):
                discovered[index] = replace(entry, excluded=True)
                marked += 1
        log.info(
            "promptignore_applied",
            files=len(discovered),
            newly_excluded=marked,
            directories_cached=len(self.directory_cache),
        )
