# promptfiles/core/tokenizer.py
from functools import lru_cache
from typing import Iterator
import structlog
import tiktoken  # type: ignore

from promptfiles.config.settings import DEFAULT_ENCODING
from promptfiles.exceptions import TokenizerError

log = structlog.get_logger(__name__)

# upper bound on characters handed to the encoder in one call.
CHUNK_CAPACITY = 100_000

@lru_cache(maxsize=None)
def get_encoder(encoding: str = DEFAULT_ENCODING) -> "tiktoken.Encoding":
    try:
        return tiktoken.get_encoding(encoding)
    except Exception as e:
        raise TokenizerError(f"could not load tiktoken encoding '{encoding}': {e}") from e

def _chunks(text: str, capacity: int) -> Iterator[str]:
    # splits on line boundaries where possible so tokens rarely straddle a cut.
    start = 0
    while start < len(text):
        end = min(start + capacity, len(text))
        if end < len(text):
            newline = text.rfind("\n", start, end)
            if newline > start:
                end = newline + 1
        yield text[start:end]
        start = end

def count_tokens(text: str, encoding: str = DEFAULT_ENCODING) -> int:
    if not text:
        return 0
    encoder = get_encoder(encoding)
    try:
        return sum(len(encoder.encode(chunk, disallowed_special=())) for chunk in _chunks(text, CHUNK_CAPACITY))
    except Exception as e:
        raise TokenizerError(f"token calculation failed for '{encoding}': {e}") from e
