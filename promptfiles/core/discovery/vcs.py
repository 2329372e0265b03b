# promptfiles/core/discovery/vcs.py
"""
Git ignore integration for the walker.

Rules come from three sources, lowest precedence first: the user's global
excludes file, the repository's ``.git/info/exclude`` and the ``.gitignore``
files from the repository root down to the directory being walked. The
deepest source with an opinion decides. Nothing applies outside a git
repository.
"""
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple
import structlog

from promptfiles.core.discovery.models import Decision
from promptfiles.core.discovery.pattern_matching import IgnoreFile

log = structlog.get_logger(__name__)

GIT_DIR_NAME = ".git"
GITIGNORE_FILENAME = ".gitignore"


@dataclass(frozen=True)
class VcsIgnoreOptions:
    git_ignore: bool = True
    git_global: bool = True
    git_exclude: bool = True

    @classmethod
    def disabled(cls) -> "VcsIgnoreOptions":
        return cls(git_ignore=False, git_global=False, git_exclude=False)

    @property
    def any_enabled(self) -> bool:
        return self.git_ignore or self.git_global or self.git_exclude


def find_git_root(directory: Path) -> Optional[Path]:
    # nearest ancestor (inclusive) holding a .git entry.
    current = directory
    while True:
        if (current / GIT_DIR_NAME).exists():
            return current
        if current.parent == current:
            return None
        current = current.parent


def get_global_excludes_file() -> Optional[Path]:
    """
    Location of git's global excludes file: ``core.excludesFile`` when set,
    otherwise ``$XDG_CONFIG_HOME/git/ignore`` (``~/.config/git/ignore``).
    """
    try:
        result = subprocess.run(
            ["git", "config", "--get", "core.excludesFile"],
            capture_output=True,
            text=True,
            check=False,
        )
        configured = result.stdout.strip() if result.returncode == 0 else ""
    except OSError as e:
        log.debug("git_config_unavailable", error=str(e))
        configured = ""

    if configured:
        return Path(configured).expanduser()

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / "git" / "ignore"
    try:
        return Path.home() / ".config" / "git" / "ignore"
    except (RuntimeError, KeyError):
        return None


@dataclass(frozen=True)
class GitignoreChain:
    """
    Immutable stack of ignore files in effect for one directory. Each walker
    task extends its parent's chain, so no state is shared between threads.
    """

    options: VcsIgnoreOptions
    repo_root: Optional[Path] = None
    base_layers: Tuple[IgnoreFile, ...] = ()
    layers: Tuple[IgnoreFile, ...] = ()

    @classmethod
    def empty(cls) -> "GitignoreChain":
        return cls(options=VcsIgnoreOptions.disabled())

    @classmethod
    def for_root(cls, root_dir: Path, options: VcsIgnoreOptions, global_excludes: Optional[Path] = None) -> "GitignoreChain":
        # `root_dir` must be absolute; ignore files from the repo root down to it are preloaded.
        if not options.any_enabled:
            return cls.empty()
        repo_root = find_git_root(root_dir)
        if repo_root is None:
            log.debug("walk_root_outside_git_repository", root=str(root_dir))
            return cls.empty()

        base_layers = []
        if options.git_global and global_excludes is not None:
            matcher = IgnoreFile.from_file(global_excludes, root=repo_root)
            if matcher is not None:
                base_layers.append(matcher)
        if options.git_exclude:
            matcher = IgnoreFile.from_file(repo_root / GIT_DIR_NAME / "info" / "exclude", root=repo_root)
            if matcher is not None:
                base_layers.append(matcher)

        chain = cls(options=options, repo_root=repo_root, base_layers=tuple(base_layers))
        relative_dirs = [repo_root]
        for part in root_dir.relative_to(repo_root).parts:
            relative_dirs.append(relative_dirs[-1] / part)
        for directory in relative_dirs:
            chain = chain.descend(directory)
        return chain

    @property
    def active(self) -> bool:
        return self.repo_root is not None

    def descend(self, directory: Path) -> "GitignoreChain":
        if not (self.active and self.options.git_ignore):
            return self
        matcher = IgnoreFile.from_file(directory / GITIGNORE_FILENAME)
        if matcher is None:
            return self
        return GitignoreChain(self.options, self.repo_root, self.base_layers, self.layers + (matcher,))

    def decision(self, path: Path, is_dir: bool) -> Decision:
        decision = Decision.NONE
        for matcher in self.base_layers + self.layers:
            mat = matcher.matched(path, is_dir)
            if not mat.is_none:
                decision = mat
        return decision

    def is_ignored(self, path: Path, is_dir: bool) -> bool:
        if not self.active:
            return False
        return self.decision(path, is_dir).is_ignore
