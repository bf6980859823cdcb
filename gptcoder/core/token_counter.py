# gptcoder/core/token_counter.py
from functools import lru_cache
from typing import Optional, Any
from loguru import logger

# --- Tiktoken Initialization ---
try:
    import tiktoken
    import tiktoken.model
    # Load the default encodings on import to fail early if needed
    _ = tiktoken.get_encoding("cl100k_base")
    _ = tiktoken.get_encoding("gpt2") # Fallback
    TIKTOKEN_AVAILABLE = True
    logger.info("tiktoken library loaded successfully.")
except ImportError:
    logger.warning("tiktoken library not found. Token counting will be estimated.")
    tiktoken = None # type: ignore
    TIKTOKEN_AVAILABLE = False
except Exception as e:
    logger.error(f"Failed to initialize tiktoken, token counting will be estimated: {e}")
    tiktoken = None # type: ignore
    TIKTOKEN_AVAILABLE = False

DEFAULT_ENCODING = "cl100k_base" # GPT-3.5/4 family
FALLBACK_ENCODING = "gpt2"


@lru_cache(maxsize=4) # Cache a few loaded encoder objects
def _get_cached_encoder(encoding_name: str) -> Optional[Any]:
    """Internal helper to load and cache encoder objects."""
    if not TIKTOKEN_AVAILABLE:
        logger.trace(f"Tiktoken unavailable, cannot get encoder '{encoding_name}'.")
        return None
    try:
        logger.debug(f"Attempting to load tiktoken encoder: {encoding_name}")
        encoder = tiktoken.get_encoding(encoding_name) # type: ignore
        logger.debug(f"Successfully loaded encoder '{encoding_name}'.")
        return encoder
    except Exception as e:
        logger.warning(f"Failed to get tiktoken encoder '{encoding_name}': {e}. Trying fallback '{FALLBACK_ENCODING}'.")
        if encoding_name == FALLBACK_ENCODING:
            logger.error(f"Fallback encoder '{FALLBACK_ENCODING}' also failed. No encoder available.")
            return None
        return _get_cached_encoder(FALLBACK_ENCODING)


@lru_cache(maxsize=32)
def encoding_for_model(model_name: str) -> str:
    """Maps a model name (e.g. 'gpt-4') to the name of its tiktoken encoding."""
    if not TIKTOKEN_AVAILABLE:
        return DEFAULT_ENCODING
    try:
        return tiktoken.model.encoding_name_for_model(model_name) # type: ignore
    except KeyError:
        logger.debug(f"No known encoding for model '{model_name}', using '{DEFAULT_ENCODING}'.")
        return DEFAULT_ENCODING


def estimate_tokens(text: str) -> int:
    """Rough character based estimate, ~4 characters per token."""
    return len(text) // 4


def count_tokens(text: str, encoding_name: str = DEFAULT_ENCODING) -> int:
    """
    Counts tokens in a string using the specified tiktoken encoding.

    Deterministic and never raises: special-token literals such as
    '<|endoftext|>' are encoded as plain text, and any encoder failure
    falls back to a character based estimate.
    """
    if not text:
        return 0

    encoder = _get_cached_encoder(encoding_name)
    if encoder is None:
        return estimate_tokens(text)

    try:
        return len(encoder.encode(text, disallowed_special=()))
    except Exception as e:
        estimated_tokens = estimate_tokens(text)
        logger.error(f"Error encoding text for token count with '{encoding_name}': {e}")
        logger.warning(f"Falling back to character-based estimation: {estimated_tokens} tokens.")
        return estimated_tokens
