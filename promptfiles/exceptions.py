from pathlib import Path


class PromptFilesError(Exception):
    # base exception for all application-specific errors.
    pass

class ConfigError(PromptFilesError):
    # errors related to configuration, including invalid exclude globs.
    pass

class DiscoveryError(PromptFilesError):
    # errors during file discovery.
    pass

class PathNotFoundError(DiscoveryError):
    # a root path handed to discovery does not exist.
    def __init__(self, path: Path):
        self.path = path
        super().__init__(
            f"Path '{path}' does not exist. If you're using a glob pattern like '*.go', "
            "note that this tool expects actual file or directory paths. "
            "Use the --exclude flag with glob patterns to filter files instead."
        )

class WalkError(DiscoveryError):
    # traversal failed (permission denied, i/o error) and the walk was aborted.
    def __init__(self, path: Path, cause: BaseException):
        self.path = path
        self.cause = cause
        super().__init__(f"error walking '{path}': {cause}")

class FileReadError(PromptFilesError):
    # a discovered file could not be read.
    pass

class OutputError(PromptFilesError):
    # errors during output operations.
    pass

class TokenizerError(PromptFilesError):
    # errors from the tokenizer.
    pass
