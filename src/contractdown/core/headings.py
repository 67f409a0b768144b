from collections.abc import Iterable, Sequence
from typing import Any

import yaml
from markdown_it import MarkdownIt
from markdown_it.token import Token
from mdit_py_plugins.front_matter import front_matter_plugin

from contractdown.core.errors import ContractExtractionError
from contractdown.models import HeadingEvent, SourceSpan


def _build_parser() -> MarkdownIt:
    return MarkdownIt("commonmark").enable("table").use(front_matter_plugin)


def tokenize(raw: str) -> list[Token]:
    return _build_parser().parse(raw)


def inline_text(token: Token) -> str:
    """Plain text of an ``inline`` token, with emphasis and link markup stripped."""
    if not token.children:
        return token.content.strip()
    parts: list[str] = []
    for child in token.children:
        if child.type in ("text", "code_inline"):
            parts.append(child.content)
        elif child.type in ("softbreak", "hardbreak"):
            parts.append(" ")
    return "".join(parts).strip()


def heading_events(tokens: Sequence[Token]) -> list[HeadingEvent]:
    """Return the document-level headings in source order.

    Headings nested inside lists or blockquotes are not part of the document
    outline and are skipped.
    """
    events: list[HeadingEvent] = []
    for i, token in enumerate(tokens):
        if token.type != "heading_open" or token.level != 0:
            continue
        inline = tokens[i + 1] if i + 1 < len(tokens) else None
        title = inline_text(inline) if inline is not None and inline.type == "inline" else ""
        start, end = token.map if token.map else (0, 0)
        events.append(
            HeadingEvent(
                depth=int(token.tag[1:]),
                title=title,
                source_span=SourceSpan(start_line=start, end_line=end),
            )
        )
    return events


def read_front_matter(tokens: Iterable[Token]) -> dict[str, Any]:
    for token in tokens:
        if token.type != "front_matter":
            continue
        try:
            data = yaml.safe_load(token.content)
        except yaml.YAMLError as exc:
            raise ContractExtractionError([f"invalid front matter: {exc}"]) from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ContractExtractionError(["front matter must be a mapping"])
        return data
    return {}
