"""
Files module: text extraction for uploaded files.

Public API:
- extract_text(): Decode bytes as UTF-8 and truncate to a maximum length
"""

from app.files.extractor import DEFAULT_MAX_CHARS, extract_text

__all__ = ["DEFAULT_MAX_CHARS", "extract_text"]
