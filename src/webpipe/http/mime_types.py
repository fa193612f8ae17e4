"""
=============================================================================
MIME TYPE LOOKUP
=============================================================================

Extension → MIME type table used by the static file interceptor to pick
the Content-Type of a streamed file.

=============================================================================
UNKNOWN EXTENSIONS
=============================================================================

Unlike a generic file server, the lookup does NOT fall back to
application/octet-stream. An unknown extension yields an empty string and
the caller simply leaves Content-Type unset:

    ┌──────────────────┬──────────────────────────────┬───────────────────┐
    │  file            │  get_content_type()          │  header sent      │
    ├──────────────────┼──────────────────────────────┼───────────────────┤
    │  index.html      │  "text/html; charset=utf-8"  │  yes              │
    │  logo.png        │  "image/png"                 │  yes              │
    │  notes.xyz       │  ""                          │  no (client sniffs)│
    │  Makefile        │  ""                          │  no               │
    └──────────────────┴──────────────────────────────┴───────────────────┘

Extensions are accepted with or without the leading dot, in any case
(".PNG", "png" and ".png" are the same key).

=============================================================================
"""

import os


MIME_TYPES = {
    # text
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",
    ".xml": "application/xml",
    ".json": "application/json",
    ".map": "application/json",
    ".yaml": "text/yaml",
    ".yml": "text/yaml",

    # images
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".webp": "image/webp",
    ".avif": "image/avif",
    ".bmp": "image/bmp",

    # fonts
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",

    # audio / video
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".mp4": "video/mp4",
    ".webm": "video/webm",

    # documents and archives
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".gz": "application/gzip",
    ".tar": "application/x-tar",
    ".wasm": "application/wasm",
}

# application/* types that are still text and deserve a charset
_TEXTUAL_APPLICATION_TYPES = frozenset({
    "application/json",
    "application/xml",
    "application/javascript",
    "image/svg+xml",
})


def extension_of(path: str) -> str:
    """Return the lowercase extension of *path*, including the dot ("" if none)."""
    return os.path.splitext(path)[1].lower()


def get_mime_type(extension: str) -> str:
    """
    Look up the MIME type for a file extension.

    Args:
        extension: ".png", "png" or ".PNG"

    Returns:
        The MIME type, or "" when the extension is unknown

    Examples:
        >>> get_mime_type(".css")
        'text/css'
        >>> get_mime_type("xyz")
        ''
    """
    if not extension:
        return ""
    extension = extension.lower()
    if not extension.startswith("."):
        extension = "." + extension
    return MIME_TYPES.get(extension, "")


def is_text_type(mime_type: str) -> bool:
    return mime_type.startswith("text/") or mime_type in _TEXTUAL_APPLICATION_TYPES


def get_content_type(extension: str, charset: str = "utf-8") -> str:
    """
    Full Content-Type header value for an extension.

    Text types get a ``charset`` parameter, binary types are returned bare
    and unknown extensions give "".
    """
    mime_type = get_mime_type(extension)
    if mime_type and is_text_type(mime_type):
        return f"{mime_type}; charset={charset}"
    return mime_type
