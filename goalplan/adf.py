"""Render annotated plain text into an Atlassian Document Format tree.

One paragraph is produced per input line, blank lines included:

* ``//`` lines become a code-styled span (the marker stays visible),
* ``*bold*`` lines become a bold span without the surrounding stars,
* anything else becomes a plain text span.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

ADF_VERSION = 1


def _text(text: str, mark: Optional[str] = None) -> Dict[str, Any]:
    node: Dict[str, Any] = {"type": "text", "text": text}
    if mark:
        node["marks"] = [{"type": mark}]
    return node


def _paragraph(*content: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "paragraph", "content": list(content)}


def render_line(line: str) -> Dict[str, Any]:
    """Render a single line into one paragraph block."""
    if not line.strip():
        return _paragraph()
    if line.startswith("//"):
        return _paragraph(_text(line, "code"))
    if len(line) > 2 and line.startswith("*") and line.endswith("*"):
        return _paragraph(_text(line[1:-1], "strong"))
    return _paragraph(_text(line))


def text_to_adf(text: str) -> Dict[str, Any]:
    """Convert a multi-line description into an ADF document."""
    lines = (text or "").split("\n")
    content: List[Dict[str, Any]] = [render_line(line) for line in lines]
    return {"type": "doc", "version": ADF_VERSION, "content": content}


def adf_to_text(document: Dict[str, Any]) -> str:
    """Flatten an ADF document back into plain text, one line per paragraph."""
    lines = []
    for block in document.get("content", []):
        lines.append("".join(span.get("text", "") for span in block.get("content", [])))
    return "\n".join(lines)
