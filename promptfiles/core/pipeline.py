# promptfiles/core/pipeline.py
import logging as stdlib_logging
import sys
from dataclasses import dataclass
from typing import List, Optional

from rich.console import Console as RichConsole
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
import structlog

from promptfiles.config.settings import PromptConfig
from promptfiles.core.discovery import DiscoveredFile, discover
from promptfiles.core.files import Files, read_files
from promptfiles.core.output import render_prompt
from promptfiles.core.tokenizer import count_tokens
from promptfiles.core.tree import FiletreeNode, build_tree

log = structlog.get_logger(__name__)


@dataclass
class PromptResult:
    prompt: str
    files: Files
    tree: FiletreeNode
    token_count: Optional[int] = None


class PromptGenerator:
    # orchestrates discovery, reading, rendering and token counting.
    def __init__(self, config: PromptConfig):
        self.config: PromptConfig = config
        self.log = structlog.get_logger(f"{__name__}.{self.__class__.__name__}")

    def _discover(self) -> List[DiscoveredFile]:
        return discover(
            self.config.path,
            self.config.extra_paths,
            self.config.exclude_patterns,
            self.config.include_vcs_ignored,
        )

    def read(self) -> Files:
        # discovers and reads files; shows a progress bar on interactive, verbose runs.
        app_log_level = stdlib_logging.getLogger("promptfiles").getEffectiveLevel()
        progress_disabled = app_log_level > stdlib_logging.INFO or not sys.stderr.isatty()
        stderr_console = RichConsole(file=sys.stderr)

        with Progress(
            SpinnerColumn(), TextColumn("[bold blue]{task.description}"), BarColumn(),
            transient=True, disable=progress_disabled, console=stderr_console
        ) as progress:
            discover_task = progress.add_task("discovering files...", total=None)
            discovered = self._discover()
            progress.update(discover_task, completed=True, description=f"discovered {len(discovered)} files.")

            read_task = progress.add_task("reading files...", total=len(discovered))

            def advance(entry: DiscoveredFile) -> None:
                progress.update(read_task, advance=1, description=f"reading {entry.path.name}")

            return read_files(
                discovered,
                self.config.count_tokens,
                self.config.line_numbers,
                self.config.encoding,
                on_read=advance,
            )

    def generate(self) -> PromptResult:
        files = self.read()
        tree = build_tree(files)
        prompt = render_prompt(files, tree, self.config.output_format)
        token_count = count_tokens(prompt, self.config.encoding)
        self.log.info("prompt_generated", files=len(files), tokens=token_count)
        return PromptResult(prompt=prompt, files=files, tree=tree, token_count=token_count)

    def count(self) -> Files:
        # token counts per file; callers summarise with `format_top_files` or `Files.total_tokens`.
        self.config.count_tokens = True
        return self.read()


def format_top_files(files: Files, top: int) -> str:
    ranked = sorted(files, key=lambda info: info.meta.token_count_or_zero(), reverse=True)
    lines: List[str] = []
    top_total = 0
    for info in ranked[:top]:
        tokens = info.meta.token_count_or_zero()
        lines.append(f"{info.meta.path}: {tokens} tokens")
        top_total += tokens
    all_total = sum(info.meta.token_count_or_zero() for info in ranked)
    lines.append("")
    lines.append(f"Top {min(top, len(ranked))} files = {top_total} tokens")
    lines.append(f"All {len(ranked)} files = {all_total} tokens")
    return "\n".join(lines) + "\n"
