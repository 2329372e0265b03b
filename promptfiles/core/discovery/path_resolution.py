# promptfiles/core/discovery/path_resolution.py
from pathlib import Path
from typing import Iterable, List, Optional, Sequence
import structlog

from promptfiles.core.discovery.models import MatchBase
from promptfiles.exceptions import PathNotFoundError

log = structlog.get_logger(__name__)

def validate_root_paths(roots: Iterable[Path]) -> None:
    # fails on the first root that does not exist, before anything is walked.
    for root in roots:
        if not root.exists():
            log.warning("root_path_not_found", path=str(root))
            raise PathNotFoundError(root)

def canonicalize(path: Path) -> Optional[Path]:
    # symlink-resolved absolute form, or None when the path cannot be resolved.
    try:
        return path.resolve(strict=True)
    except (OSError, RuntimeError):
        return None

def build_match_bases(roots: Sequence[Path]) -> List[MatchBase]:
    bases = [MatchBase(supplied=root, canonical=canonicalize(root)) for root in roots]
    log.debug("match_bases_built", bases=[str(b.supplied) for b in bases])
    return bases

def relativize_for_match(path: Path, bases: Sequence[MatchBase]) -> Path:
    """
    Maps a walked path to the fragment exclude globs are tested against.

    Literal bases are tried first, then canonical ones, so a root given as
    ``.`` and one given as an absolute path both strip cleanly. A path under
    no base is returned unchanged.
    """
    for base in bases:
        try:
            return path.relative_to(base.supplied)
        except ValueError:
            continue
    for base in bases:
        if base.canonical is None:
            continue
        try:
            return path.relative_to(base.canonical)
        except ValueError:
            continue
    return path

def promptignore_root(canonical_base: Path) -> Optional[Path]:
    # the directory bounding the .promptignore cascade: the base itself, or its parent for files.
    try:
        if canonical_base.is_dir():
            return canonical_base
    except OSError:
        return None
    if not canonical_base.exists():
        return None
    return canonical_base.parent

def build_promptignore_roots(bases: Sequence[MatchBase]) -> List[Path]:
    roots: List[Path] = []
    for base in bases:
        if base.canonical is None:
            continue
        root = promptignore_root(base.canonical)
        if root is not None and root not in roots:
            roots.append(root)
    return roots
