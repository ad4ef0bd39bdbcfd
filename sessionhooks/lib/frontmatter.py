"""
YAML frontmatter parsing.

Hook, command and skill files are Markdown documents that open with a
``---`` delimited YAML block:

    ---
    hooks:
      - event: session.idle
        actions:
          - bash: "npm run lint"
    ---

    Free-form notes.
"""

import logging
import re
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# Both delimiters must sit on their own line so "---" inside a value is kept
_FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n([\s\S]*?)(?:^|\r?\n)---[ \t]*(?:\r?\n|\Z)([\s\S]*)\Z",
    re.MULTILINE,
)


def parse_frontmatter(content: Any) -> tuple[dict[str, Any], str]:
    """Split a document into its frontmatter data and body.

    Never raises: a document without a block returns ``({}, content)``, and
    a block that is not valid YAML returns ``({}, content)`` as well.
    """
    if not isinstance(content, str):
        return {}, ""

    match = _FRONTMATTER_RE.match(content)
    if not match:
        return {}, content

    block, body = match.group(1).strip(), match.group(2)
    if not block:
        return {}, body

    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as e:
        logger.warning(f"Invalid YAML frontmatter: {e}")
        return {}, content

    if not isinstance(data, dict):
        return {}, body
    return data, body
