from .settings import PromptConfig, OutputFormat
from .loader import load_and_merge_configs, find_config_path

__all__ = ["PromptConfig", "OutputFormat", "load_and_merge_configs", "find_config_path"]
