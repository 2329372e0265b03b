from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional
import structlog

log = structlog.get_logger(__name__)

class OutputFormat(Enum):
    # defines supported serializations for the generated prompt.
    PLAINTEXT = "plaintext"
    JSON = "json"
    YAML = "yaml"

    @classmethod
    def from_string(cls, s: Optional[str]) -> Optional["OutputFormat"]:
        if not s:
            return None
        try:
            return cls(s.lower())
        except ValueError:
            log.warning("invalid_output_format_string", input_string=s)
            return None

DEFAULT_OUTPUT_FORMAT = OutputFormat.PLAINTEXT
DEFAULT_ENCODING = "o200k_base"
MAX_WALK_THREADS = 12

@dataclass
class PromptConfig:
    # holds all configuration parameters for a single run.
    path: Path = field(default_factory=lambda: Path("."))
    extra_paths: List[Path] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=list)
    include_vcs_ignored: bool = False
    line_numbers: bool = False
    count_tokens: bool = False
    top: Optional[int] = None
    output_format: OutputFormat = DEFAULT_OUTPUT_FORMAT
    copy: bool = False
    output_file: Optional[Path] = None
    encoding: str = DEFAULT_ENCODING

    def __post_init__(self):
        # values coming from toml files arrive as plain strings.
        self.path = Path(self.path)
        self.extra_paths = [Path(p) for p in self.extra_paths]
        if self.output_file is not None:
            self.output_file = Path(self.output_file)
        if isinstance(self.output_format, str):
            self.output_format = OutputFormat.from_string(self.output_format) or DEFAULT_OUTPUT_FORMAT
        if self.top is not None:
            # asking for the top files implies counting them.
            self.count_tokens = True
