"""
Beautification of the stored asset copy.
"""

import jsbeautifier

from jsmonitor.core.logger import logger


def prettify_js(content: str) -> str:
    opts = jsbeautifier.default_options()
    opts.indent_size = 2
    opts.max_preserve_newlines = 2
    opts.end_with_newline = True
    return jsbeautifier.beautify(content, opts)


def format_for_storage(content: bytes, enabled: bool) -> bytes:
    """Return the bytes to write for an asset; the fetched bytes untouched when disabled or when beautifying fails."""
    if not enabled:
        return content

    try:
        return prettify_js(content.decode("utf-8")).encode("utf-8")
    except Exception as e:
        logger.warning(f"Failed to prettify JS, saving raw content: {e}")
        return content
