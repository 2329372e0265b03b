# promptfiles/core/discovery/walker.py
import os
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set
import structlog

from promptfiles.config.settings import MAX_WALK_THREADS
from promptfiles.core.discovery.models import DiscoveredFile
from promptfiles.core.discovery.path_resolution import (
    build_match_bases,
    build_promptignore_roots,
    relativize_for_match,
    validate_root_paths,
)
from promptfiles.core.discovery.pattern_matching import compile_exclude_patterns
from promptfiles.core.discovery.promptignore import PromptignoreResolver
from promptfiles.core.discovery.vcs import (
    GIT_DIR_NAME,
    GitignoreChain,
    VcsIgnoreOptions,
    get_global_excludes_file,
)
from promptfiles.exceptions import WalkError

log = structlog.get_logger(__name__)


def walk_thread_count() -> int:
    # between 1 and MAX_WALK_THREADS workers.
    return max(1, min(MAX_WALK_THREADS, os.cpu_count() or 1))


@dataclass(frozen=True)
class _DirJob:
    path: Path  # as it will be reported, relative if the root was relative
    abs_path: Path
    chain: GitignoreChain


class DiscoveredCollection:
    """
    Lock-guarded result set shared by walker threads, keyed by path.
    Seeing the same path twice keeps it excluded if either sighting was.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[Path, bool] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def add(self, path: Path, excluded: bool) -> None:
        with self._lock:
            self._entries[path] = self._entries.get(path, False) or excluded

    def to_list(self) -> List[DiscoveredFile]:
        with self._lock:
            return [DiscoveredFile(path=p, excluded=e) for p, e in self._entries.items()]


class ParallelWalker:
    """
    Walks one or more roots on a thread pool, one task per directory.

    Hidden entries are visited, symlinks are never followed or reported,
    ``.git`` directories are pruned, and git ignore rules are honoured
    according to ``vcs_options``. Any traversal error aborts the whole walk.
    """

    def __init__(self, roots: Sequence[Path], threads: Optional[int] = None, vcs_options: Optional[VcsIgnoreOptions] = None):
        self.roots = list(roots)
        self.threads = threads if threads is not None else walk_thread_count()
        self.vcs_options = vcs_options if vcs_options is not None else VcsIgnoreOptions()
        self.log = structlog.get_logger(f"{__name__}.{self.__class__.__name__}")

    def _root_job(self, root: Path, global_excludes: Optional[Path]) -> _DirJob:
        abs_root = Path(os.path.abspath(root))
        chain = GitignoreChain.for_root(abs_root, self.vcs_options, global_excludes)
        return _DirJob(path=root, abs_path=abs_root, chain=chain)

    def _scan_dir(self, job: _DirJob, on_file: Callable[[Path], None]) -> List[_DirJob]:
        children: List[_DirJob] = []
        try:
            with os.scandir(job.path) as entries:
                for entry in entries:
                    if entry.is_symlink():
                        continue
                    entry_path = job.path / entry.name
                    entry_abs = job.abs_path / entry.name
                    if entry.is_dir(follow_symlinks=False):
                        if entry.name == GIT_DIR_NAME:
                            continue
                        if job.chain.is_ignored(entry_abs, is_dir=True):
                            self.log.debug("pruning_vcs_ignored_dir", path=str(entry_path))
                            continue
                        children.append(_DirJob(entry_path, entry_abs, job.chain.descend(entry_abs)))
                    elif entry.is_file(follow_symlinks=False):
                        if job.chain.is_ignored(entry_abs, is_dir=False):
                            continue
                        on_file(entry_path)
        except OSError as e:
            raise WalkError(job.path, e) from e
        return children

    def run(self, on_file: Callable[[Path], None]) -> None:
        global_excludes = get_global_excludes_file() if self.vcs_options.git_global else None
        initial_jobs: List[_DirJob] = []
        for root in self.roots:
            if root.is_symlink() and not root.is_dir():
                continue
            if root.is_dir():
                if GIT_DIR_NAME in root.parts:
                    continue
                initial_jobs.append(self._root_job(root, global_excludes))
            elif root.is_file():
                # roots named explicitly bypass ignore rules.
                on_file(root)

        self.log.info("parallel_walk_started", roots=[str(r) for r in self.roots], threads=self.threads)
        with ThreadPoolExecutor(max_workers=self.threads, thread_name_prefix="promptfiles-walk") as executor:
            pending: Set[Future] = {executor.submit(self._scan_dir, job, on_file) for job in initial_jobs}
            directories = 0
            while pending:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    try:
                        children = future.result()
                    except WalkError as e:
                        for other in pending:
                            other.cancel()
                        self.log.error("parallel_walk_aborted", path=str(e.path), error=str(e.cause))
                        raise
                    directories += 1
                    for child in children:
                        pending.add(executor.submit(self._scan_dir, child, on_file))
        self.log.info("parallel_walk_complete", directories=directories)


def discover(
    path: Path,
    extra_paths: Iterable[Path] = (),
    exclude_patterns: Iterable[str] = (),
    include_vcs_ignored: bool = False,
    threads: Optional[int] = None,
) -> List[DiscoveredFile]:
    """
    Discovers every regular file under `path` and `extra_paths`.

    Returns entries sorted by path. ``excluded`` is set for files matching an
    exclude glob (tested against the path relative to its root) or ignored by
    a ``.promptignore`` file. Git-ignored files are left out entirely unless
    `include_vcs_ignored` is true.

    Raises ConfigError for a bad glob, PathNotFoundError for a missing root
    and WalkError when traversal fails; nothing is walked in the first two cases.
    """
    exclude = compile_exclude_patterns(exclude_patterns)
    roots = [Path(path), *(Path(p) for p in extra_paths)]
    validate_root_paths(roots)

    match_bases = build_match_bases(roots)
    promptignore_roots = build_promptignore_roots(match_bases)
    log.info(
        "discovery_started",
        roots=[str(r) for r in roots],
        excludes=len(exclude),
        include_vcs_ignored=include_vcs_ignored,
    )

    vcs_options = VcsIgnoreOptions.disabled() if include_vcs_ignored else VcsIgnoreOptions()
    walker = ParallelWalker(roots, threads=threads, vcs_options=vcs_options)
    collection = DiscoveredCollection()

    def record(file_path: Path) -> None:
        match_path = relativize_for_match(file_path, match_bases)
        collection.add(file_path, exclude.matches(match_path))

    walker.run(record)

    discovered = collection.to_list()
    PromptignoreResolver(promptignore_roots).apply(discovered)
    discovered.sort(key=lambda entry: entry.path.parts)
    log.info(
        "discovery_complete",
        files=len(discovered),
        excluded=sum(1 for entry in discovered if entry.excluded),
    )
    return discovered
