# promptfiles/core/files.py
"""
Reads discovered files into memory for the prompt.

Excluded entries are recorded without touching their content. Binary files
are detected and recorded as auto-excluded.
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional
import structlog

from promptfiles.config.settings import DEFAULT_ENCODING
from promptfiles.core.discovery.models import DiscoveredFile
from promptfiles.core.tokenizer import count_tokens as count_text_tokens
from promptfiles.exceptions import FileReadError
from promptfiles.util import annotate_line_numbers, strip_utf8_bom

log = structlog.get_logger(__name__)

BINARY_SNIFF_BYTES = 8192

class ReadStatus(Enum):
    EXCLUDED_EXPLICITLY = "excluded_explicitly"
    EXCLUDED_BINARY_DETECTED = "excluded_binary_detected"
    READ = "read"
    TOKEN_COUNTED = "token_counted"

@dataclass(frozen=True)
class FileMeta:
    path: Path
    read_status: ReadStatus
    token_count: Optional[int] = None

    @property
    def is_excluded(self) -> bool:
        return self.read_status in (ReadStatus.EXCLUDED_EXPLICITLY, ReadStatus.EXCLUDED_BINARY_DETECTED)

    def token_count_or_zero(self) -> int:
        return self.token_count if self.token_count is not None else 0

@dataclass(frozen=True)
class FileInfo:
    meta: FileMeta
    text: Optional[str] = None

def looks_binary(data: bytes) -> bool:
    head = data[:BINARY_SNIFF_BYTES]
    if b"\0" in head:
        return True
    try:
        head.decode("utf-8")
    except UnicodeDecodeError as e:
        # a multi-byte character cut off by the sniff window is still text.
        truncated = len(data) > len(head) and e.start >= len(head) - 3
        return not truncated
    return False

def read_file(
    discovered: DiscoveredFile,
    count_tokens: bool = False,
    line_numbers: bool = False,
    encoding: str = DEFAULT_ENCODING,
) -> FileInfo:
    path = discovered.path
    if discovered.excluded:
        return FileInfo(FileMeta(path, ReadStatus.EXCLUDED_EXPLICITLY))

    try:
        content_bytes = path.read_bytes()
    except OSError as e:
        raise FileReadError(f"failed to read '{path}': {e}") from e

    if looks_binary(content_bytes):
        log.info("skipping_file_binary_detected", path=str(path))
        return FileInfo(FileMeta(path, ReadStatus.EXCLUDED_BINARY_DETECTED))

    text = strip_utf8_bom(content_bytes).decode("utf-8", errors="replace")
    if line_numbers:
        text = annotate_line_numbers(text)

    if count_tokens:
        meta = FileMeta(path, ReadStatus.TOKEN_COUNTED, count_text_tokens(text, encoding))
    else:
        meta = FileMeta(path, ReadStatus.READ)
    return FileInfo(meta, text)

class Files:
    """Path-ordered mapping of read files."""

    def __init__(self, infos: Iterable[FileInfo] = ()):
        self._infos: Dict[Path, FileInfo] = {}
        for info in infos:
            self._infos[info.meta.path] = info

    def __len__(self) -> int:
        return len(self._infos)

    def __iter__(self) -> Iterator[FileInfo]:
        for path in sorted(self._infos, key=lambda p: p.parts):
            yield self._infos[path]

    def __contains__(self, path: object) -> bool:
        return path in self._infos

    def get(self, path: Path) -> Optional[FileInfo]:
        return self._infos.get(path)

    def excluded_paths(self) -> List[Path]:
        return [info.meta.path for info in self if info.meta.is_excluded]

    def total_tokens(self) -> int:
        return sum(info.meta.token_count_or_zero() for info in self)

def read_files(
    discovered: Iterable[DiscoveredFile],
    count_tokens: bool = False,
    line_numbers: bool = False,
    encoding: str = DEFAULT_ENCODING,
    on_read: Optional[Callable[[DiscoveredFile], None]] = None,
) -> Files:
    # `on_read` is called after each entry, e.g. to advance a progress bar.
    infos: List[FileInfo] = []
    for entry in discovered:
        infos.append(read_file(entry, count_tokens, line_numbers, encoding))
        if on_read is not None:
            on_read(entry)
    files = Files(infos)
    log.info("files_read", total=len(files), excluded=len(files.excluded_paths()))
    return files
