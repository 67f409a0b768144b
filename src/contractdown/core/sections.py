from collections.abc import Iterable, Iterator

from contractdown.models import MAX_HEADING_DEPTH, HeadingEvent, Section


def build_section_tree(events: Iterable[object]) -> Section:
    """Rebuild the heading hierarchy of a document from its flat event stream.

    ``open_sections[d]`` holds the section currently open at depth ``d``; slot 0
    is the synthetic root. A heading whose parent depth has nothing open (a
    skipped level) is dropped rather than attached to an invented parent.
    Events that are not headings are ignored.
    """
    root = Section()
    open_sections: list[Section | None] = [root] + [None] * MAX_HEADING_DEPTH

    for event in events:
        if not isinstance(event, HeadingEvent):
            continue
        depth = event.depth
        if not 1 <= depth <= MAX_HEADING_DEPTH:
            raise ValueError(f"Heading depth {depth} outside 1..{MAX_HEADING_DEPTH}")

        parent = open_sections[depth - 1]
        if parent is None:
            continue

        current = Section(title=event.title, source_node=event)
        parent.children.append(current)
        open_sections[depth] = current
        for deeper in range(depth + 1, MAX_HEADING_DEPTH + 1):
            open_sections[deeper] = None

    return root


def walk(section: Section) -> Iterator[Section]:
    """Yield ``section`` and its descendants depth-first, in document order."""
    yield section
    for child in section.children:
        yield from walk(child)
