# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Document encoding for workspace files.

Artifacts, links, projects, and counters are Markdown files with YAML
front-matter; baseline records are JSON. These helpers convert between
text and dictionaries and report malformed content as StorageParseError.
"""

from typing import Any

import orjson
import yaml

from tracelink.exceptions import StorageIOError, StorageParseError

__all__ = [
    "dumps_json",
    "loads_json",
    "parse_frontmatter",
    "render_frontmatter",
]


def parse_frontmatter(
    content: str,
    *,
    path: str | None = None,
) -> tuple[dict[str, Any], str]:  # pyright: ignore[reportExplicitAny]
    """Split a Markdown document into YAML front-matter and body.

    A document without a front-matter block is not an error: it yields an
    empty dictionary and the full content as body.

    Args:
        content: Document text.
        path: Source path, used in error context only.

    Returns:
        A tuple of (front-matter dict, body).

    Raises:
        StorageParseError: If the front-matter is malformed YAML or is not
            a mapping.
    """
    if not content.startswith("---\n"):
        return {}, content

    end_marker = content.find("\n---", 3)
    if end_marker == -1:
        return {}, content

    frontmatter_str = content[4:end_marker].strip()
    body = content[end_marker + 4 :].lstrip("\n")

    try:
        data = yaml.safe_load(frontmatter_str)
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in frontmatter: {e}"
        raise StorageParseError(
            msg, path=path, content_type="frontmatter", cause=e
        ) from e

    if data is None:
        return {}, body

    if not isinstance(data, dict):
        msg = f"Expected YAML mapping in frontmatter, got {type(data).__name__}"
        raise StorageParseError(msg, path=path, content_type="frontmatter")

    return data, body


def render_frontmatter(
    frontmatter: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    body: str,
    *,
    path: str | None = None,
) -> str:
    """Render a Markdown document with YAML front-matter.

    Args:
        frontmatter: Mapping serialized as the YAML block.
        body: Markdown body.
        path: Destination path, used in error context only.

    Returns:
        The document text.

    Raises:
        StorageIOError: If the mapping cannot be serialized.
    """
    try:
        frontmatter_yaml = yaml.safe_dump(
            frontmatter,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=True,
        )
    except yaml.YAMLError as e:
        msg = f"Failed to serialize YAML: {e}"
        raise StorageIOError(
            msg, path=path or "<memory>", operation="write", cause=e
        ) from e

    return f"---\n{frontmatter_yaml}---\n\n{body.strip()}\n"


def loads_json(
    content: str | bytes,
    *,
    path: str | None = None,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Parse a JSON object.

    Raises:
        StorageParseError: If the content is not valid JSON or not an object.
    """
    try:
        data = orjson.loads(content)
    except orjson.JSONDecodeError as e:
        msg = f"Invalid JSON: {e}"
        raise StorageParseError(msg, path=path, content_type="json", cause=e) from e

    if not isinstance(data, dict):
        msg = f"Expected JSON object, got {type(data).__name__}"
        raise StorageParseError(msg, path=path, content_type="json")

    return data


def dumps_json(
    data: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    *,
    path: str | None = None,
) -> str:
    """Serialize a JSON object with two-space indentation and sorted keys.

    Raises:
        StorageIOError: If the data is not JSON-serializable.
    """
    try:
        content = orjson.dumps(
            data,
            option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS,
        )
    except TypeError as e:
        msg = f"Failed to serialize JSON: {e}"
        raise StorageIOError(
            msg, path=path or "<memory>", operation="write", cause=e
        ) from e
    return content.decode("utf-8") + "\n"
