"""Field path grammar.

A path is ``page.section[.segment...]``. A single ``$`` segment after the section marks
a repeater: segments before it name the repeater root, segments after it name the
per-item field (``home.featured.posts.$.title``).
"""

from reverso.constants import PATH_SEPARATOR, REPEATER_PLACEHOLDER
from reverso.errors import PathError
from reverso.models import ParsedPath


def parse_path(path: str) -> ParsedPath:
    trimmed = path.strip()
    if not trimmed:
        raise PathError(path, "path cannot be empty")

    parts = trimmed.split(PATH_SEPARATOR)
    if len(parts) < 2:
        raise PathError(path, "must have at least 2 segments (page.section)")

    for index, part in enumerate(parts):
        if not part.strip():
            raise PathError(path, f"empty segment at position {index + 1}")

    placeholder_positions = [i for i, part in enumerate(parts) if part == REPEATER_PLACEHOLDER]
    if len(placeholder_positions) > 1:
        raise PathError(path, f"only one '{REPEATER_PLACEHOLDER}' placeholder is allowed")
    if placeholder_positions and placeholder_positions[0] < 2:
        raise PathError(path, f"'{REPEATER_PLACEHOLDER}' cannot stand for the page or the section")

    page, section = parts[0], parts[1]
    if placeholder_positions:
        at = placeholder_positions[0]
        return ParsedPath(
            page_slug=page,
            section_slug=section,
            repeater_segments=tuple(parts[2:at]),
            field_segments=tuple(parts[at + 1 :]),
            is_repeater=True,
        )
    return ParsedPath(page_slug=page, section_slug=section, field_segments=tuple(parts[2:]))


def build_path(parsed: ParsedPath) -> str:
    parts = [parsed.page_slug, parsed.section_slug, *parsed.repeater_segments]
    if parsed.is_repeater:
        parts.append(REPEATER_PLACEHOLDER)
    parts.extend(parsed.field_segments)
    return PATH_SEPARATOR.join(parts)


def is_repeater_path(path: str) -> bool:
    """True when ``path`` contains a ``$`` segment; does not validate the rest."""
    return REPEATER_PLACEHOLDER in path.strip().split(PATH_SEPARATOR)


def section_key(parsed: ParsedPath) -> str:
    return f"{parsed.page_slug}{PATH_SEPARATOR}{parsed.section_slug}"


def repeater_prefix(parsed: ParsedPath) -> str | None:
    """Path of the repeater root element, i.e. everything before ``$``."""
    if not parsed.is_repeater:
        return None
    return PATH_SEPARATOR.join([parsed.page_slug, parsed.section_slug, *parsed.repeater_segments])


def field_name(parsed: ParsedPath) -> str:
    """Last segment that names something, skipping the placeholder."""
    if parsed.field_segments:
        return parsed.field_segments[-1]
    if parsed.repeater_segments:
        return parsed.repeater_segments[-1]
    return parsed.section_slug


def has_field_segments(parsed: ParsedPath) -> bool:
    """``page.section`` and ``page.section[...].$`` name a section, not a field."""
    return bool(parsed.field_segments)
