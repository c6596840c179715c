"""Marker extraction from JSX/TSX and HTML syntax trees."""

import time
from pathlib import Path
from typing import cast

from tree_sitter import Node
from tree_sitter_language_pack import SupportedLanguage, get_parser

from reverso.constants import BOOLEAN_MODIFIERS, MARKER_ATTRIBUTE, MARKER_PREFIX, MODIFIER_NAMES, NUMERIC_MODIFIERS
from reverso.core.field_types import DATE_TYPES, coerce_bool, coerce_number, coerce_width
from reverso.core.languages import resolve_language
from reverso.errors import ParseError
from reverso.models import DetectedField, FileScanResult, ScanIssue

_JSX_ELEMENTS = frozenset({"jsx_opening_element", "jsx_self_closing_element"})
_HTML_TAGS = frozenset({"start_tag", "self_closing_tag"})
_QUOTED_LITERALS = frozenset({"string", "template_string"})


class _MarkerElement:
    """Language-neutral view of one tagged element."""

    __slots__ = ("anchor", "tag", "attributes", "text_content")

    def __init__(self, anchor: Node, tag: str | None, attributes: dict[str, str], text_content: str | None) -> None:
        self.anchor = anchor
        self.tag = tag
        self.attributes = attributes
        self.text_content = text_content


def _node_text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def _iter_preorder(root: Node):
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


# ---------------------------------------------------------------------------
# JSX
# ---------------------------------------------------------------------------


def _jsx_attribute_value(attribute: Node) -> str | None:
    children = attribute.children
    if len(children) == 1:
        return "true"
    value = children[-1]
    if value.type == "string":
        return _node_text(value)[1:-1]
    if value.type == "jsx_expression":
        inner = next((child for child in value.named_children), None)
        if inner is None:
            return None
        if inner.type in _QUOTED_LITERALS and not any(c.type == "template_substitution" for c in inner.children):
            return _node_text(inner)[1:-1]
        if inner.type in ("true", "false"):
            return inner.type
        # numbers and any other expression keep their source text
        return _node_text(inner)
    return _node_text(value)


def _jsx_text_content(opening: Node) -> str | None:
    parent = opening.parent
    if opening.type != "jsx_opening_element" or parent is None or parent.type != "jsx_element":
        return None
    parts = [_node_text(child).strip() for child in parent.children if child.type == "jsx_text"]
    parts = [part for part in parts if part]
    return " ".join(parts) if parts else None


def _jsx_element(node: Node) -> _MarkerElement:
    attributes: dict[str, str] = {}
    for child in node.named_children:
        if child.type != "jsx_attribute" or not child.children:
            continue
        name = _node_text(child.children[0])
        value = _jsx_attribute_value(child)
        if value is not None:
            attributes[name] = value
    name_node = node.child_by_field_name("name")
    return _MarkerElement(node, _node_text(name_node) or None, attributes, _jsx_text_content(node))


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------


def _html_attribute_value(attribute: Node) -> str:
    for child in attribute.named_children:
        if child.type == "attribute_value":
            return _node_text(child)
        if child.type == "quoted_attribute_value":
            inner = next((c for c in child.named_children if c.type == "attribute_value"), None)
            return _node_text(inner)
    return "true"


def _html_element(tag: Node) -> _MarkerElement:
    attributes: dict[str, str] = {}
    tag_name: str | None = None
    for child in tag.named_children:
        if child.type == "tag_name":
            tag_name = _node_text(child)
        elif child.type == "attribute":
            name_node = next((c for c in child.named_children if c.type == "attribute_name"), None)
            if name_node is not None:
                attributes[_node_text(name_node)] = _html_attribute_value(child)

    text_content: str | None = None
    element = tag.parent
    if tag.type == "start_tag" and element is not None:
        parts = [_node_text(child).strip() for child in element.children if child.type == "text"]
        parts = [part for part in parts if part]
        text_content = " ".join(parts) if parts else None
    return _MarkerElement(tag, tag_name, attributes, text_content)


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def _position(source: bytes, node: Node) -> tuple[int, int]:
    line_start = source.rfind(b"\n", 0, node.start_byte) + 1
    column = len(source[line_start : node.start_byte].decode("utf-8", errors="replace"))
    return node.start_point[0] + 1, column


def _modifier_warnings(attributes: dict[str, str], file: str, line: int, column: int, path: str) -> list[ScanIssue]:
    warnings: list[ScanIssue] = []
    is_date = attributes.get("type") in DATE_TYPES

    def _warn(message: str) -> None:
        warnings.append(ScanIssue(kind="validation", message=message, file=file, line=line, column=column, path=path))

    for name in sorted(attributes):
        raw = attributes[name]
        if name in NUMERIC_MODIFIERS:
            if name in ("min", "max") and is_date:
                continue
            if name == "width":
                if coerce_width(raw) is None:
                    _warn(f"{MARKER_PREFIX}width must be an integer between 1 and 12, got '{raw}'")
            elif coerce_number(raw) is None:
                _warn(f"{MARKER_PREFIX}{name} must be numeric, got '{raw}'")
        elif name in BOOLEAN_MODIFIERS and coerce_bool(raw) is None:
            _warn(f"{MARKER_PREFIX}{name} must be true or false, got '{raw}'")
    return warnings


def extract_markers_from_source(
    source: bytes,
    file: str,
    language: str,
    *,
    include_text_content: bool = True,
) -> FileScanResult:
    """Return every ``data-reverso`` element of one source file.

    Unknown ``data-reverso-*`` modifiers are ignored; malformed modifier values become
    warnings on the result and never abort extraction.
    """
    started = time.perf_counter()
    parser = get_parser(cast(SupportedLanguage, language))
    tree = parser.parse(source)
    root = tree.root_node

    element_types = _HTML_TAGS if language == "html" else _JSX_ELEMENTS
    read_element = _html_element if language == "html" else _jsx_element

    fields: list[DetectedField] = []
    warnings: list[ScanIssue] = []
    if root.has_error:
        warnings.append(ScanIssue(kind="parse", message="syntax errors in file; some markers may be missed", file=file))

    for node in _iter_preorder(root):
        if node.type not in element_types:
            continue
        element = read_element(node)
        if MARKER_ATTRIBUTE not in element.attributes:
            continue

        line, column = _position(source, element.anchor)
        path = element.attributes[MARKER_ATTRIBUTE].strip()
        if not path or path == "true":
            warnings.append(
                ScanIssue(
                    kind="validation",
                    message=f"{MARKER_ATTRIBUTE} has no path value",
                    file=file,
                    line=line,
                    column=column,
                )
            )
            continue

        modifiers = {
            name[len(MARKER_PREFIX) :]: value
            for name, value in element.attributes.items()
            if name.startswith(MARKER_PREFIX) and name[len(MARKER_PREFIX) :] in MODIFIER_NAMES
        }
        warnings.extend(_modifier_warnings(modifiers, file, line, column, path))
        fields.append(
            DetectedField(
                path=path,
                attributes=modifiers,
                file=file,
                line=line,
                column=column,
                element_tag=element.tag,
                text_content=element.text_content if include_text_content else None,
            )
        )

    return FileScanResult(file=file, fields=fields, warnings=warnings, duration=time.perf_counter() - started)


def extract_markers_from_file(
    path: str | Path,
    language: str | None = None,
    *,
    display_path: str | None = None,
    include_text_content: bool = True,
) -> FileScanResult:
    file_path = Path(path)
    file_label = display_path or str(file_path)
    try:
        resolved_language = resolve_language(language, file_path)
    except ValueError as exc:
        raise ParseError(file_label, exc) from exc
    try:
        source = file_path.read_bytes()
    except OSError as exc:
        raise ParseError(file_label, exc) from exc
    return extract_markers_from_source(
        source, file_label, resolved_language, include_text_content=include_text_content
    )
