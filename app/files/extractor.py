"""
File text extraction for the Analyze Files mode.

Uploaded files reach the chat chain as plain text: bytes are decoded as
UTF-8 (undecodable bytes replaced) and truncated to a fixed maximum.
"""

import logging

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHARS = 5000


def extract_text(data: bytes, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """
    Decode file bytes to text, bounded to max_chars characters.

    Args:
        data: Raw file contents.
        max_chars: Maximum number of characters to keep.

    Returns:
        The decoded, truncated text (empty for an empty file).
    """
    text = data.decode("utf-8", errors="replace")
    # A UTF-8 BOM survives decoding as U+FEFF
    text = text.lstrip("\ufeff")
    if len(text) > max_chars:
        logger.debug(f"Truncating file text from {len(text)} to {max_chars} chars")
        text = text[:max_chars]
    return text
