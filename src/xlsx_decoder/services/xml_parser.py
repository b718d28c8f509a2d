"""XML part parsing into a generic attributed tree.

Parts are parsed with defusedxml, so DTDs, entity expansion and external
references are refused. ElementTree reports names as ``{uri}local``; the
tree built here maps them back to the prefix the part itself declared
(``r:id``, ``x:row``) without any namespace resolution on the caller's
side. Elements in a default namespace get their bare local name.
"""

from __future__ import annotations

import io
from collections.abc import Iterator
from dataclasses import dataclass, field
from xml.etree.ElementTree import Element

from defusedxml import DefusedXmlException
from defusedxml.ElementTree import ParseError, iterparse

from xlsx_decoder.utils.exceptions import (
    AttributeNotFoundError,
    ElementNotFoundError,
    XmlParseError,
)

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"

_BASE_SCOPE = {XML_NAMESPACE: "xml"}


@dataclass
class XmlNode:
    """One element of a parsed part.

    Attributes:
        name: Tag name, with the source prefix when the element has one.
        attributes: Attribute names (prefix kept) to values, in source order.
        text: Character data directly inside the element, concatenated.
        children: Child elements in document order.
    """

    name: str
    attributes: dict[str, str] = field(default_factory=dict)
    text: str = ""
    children: list[XmlNode] = field(default_factory=list)

    @property
    def local_name(self) -> str:
        return self.name.rpartition(":")[2]

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def get(self, name: str, default: str | None = None) -> str | None:
        """Return an attribute value, or ``default`` when it is absent."""
        return self.attributes.get(name, default)

    def attribute(self, name: str) -> str:
        """Return an attribute value.

        Raises:
            AttributeNotFoundError: If the element has no such attribute.
        """
        try:
            return self.attributes[name]
        except KeyError:
            raise AttributeNotFoundError(self.name, name) from None

    def attribute_by_local_name(self, local_name: str) -> tuple[str, str] | None:
        """Find the first prefixed attribute whose local part matches."""
        for name, value in self.attributes.items():
            _, sep, local = name.partition(":")
            if sep and local == local_name:
                return name, value
        return None

    def iter_children(self, name: str | None = None) -> Iterator[XmlNode]:
        """Iterate direct children, optionally only those with a tag name."""
        for child in self.children:
            if name is None or child.name == name:
                yield child

    def find(self, path: str) -> XmlNode | None:
        """Follow a dotted path of tag names below this node.

        Each step takes the first child with that name, e.g.
        ``worksheet.find("sheetData")`` or ``si.find("r.t")``.
        """
        node = self
        for step in path.split("."):
            found = next(node.iter_children(step), None)
            if found is None:
                return None
            node = found
        return node

    def child(self, path: str) -> XmlNode:
        """Like :meth:`find` but raising when the path does not exist.

        Raises:
            ElementNotFoundError: If any step of the path is missing.
        """
        node = self.find(path)
        if node is None:
            raise ElementNotFoundError(self.name, path)
        return node


def parse_xml(data: bytes, part_name: str | None = None) -> XmlNode:
    """Parse the bytes of one archive member into its root node.

    Args:
        data: Raw member content.
        part_name: Member name used in error messages.

    Raises:
        XmlParseError: If the content is not well-formed, or uses DTDs,
            entities or external references.
    """
    scopes: dict[int, dict[str, str]] = {}
    stack: list[dict[str, str]] = [_BASE_SCOPE]
    pending: list[tuple[str, str]] = []
    root: Element | None = None

    try:
        for event, item in iterparse(
            io.BytesIO(data),
            events=("start-ns", "start", "end"),
            forbid_dtd=True,
        ):
            if event == "start-ns":
                pending.append(item)
            elif event == "start":
                scope = stack[-1]
                if pending:
                    scope = dict(scope)
                    for prefix, uri in pending:
                        scope[uri] = prefix
                    pending.clear()
                scopes[id(item)] = scope
                stack.append(scope)
                if root is None:
                    root = item
            else:
                stack.pop()
    except ParseError as exc:
        line, column = getattr(exc, "position", (None, None))
        raise XmlParseError(
            str(exc), part_name=part_name, line=line, column=column
        ) from exc
    except DefusedXmlException as exc:
        raise XmlParseError(
            f"forbidden construct: {exc}", part_name=part_name
        ) from exc

    if root is None:
        raise XmlParseError("no root element", part_name=part_name)
    return _convert(root, scopes)


def _convert(element: Element, scopes: dict[int, dict[str, str]]) -> XmlNode:
    scope = scopes[id(element)]
    text = (element.text or "") + "".join(child.tail or "" for child in element)
    return XmlNode(
        name=_qualify(element.tag, scope),
        attributes={
            _qualify(name, scope): value for name, value in element.attrib.items()
        },
        text=text,
        children=[_convert(child, scopes) for child in element],
    )


def _qualify(name: str, scope: dict[str, str]) -> str:
    if not name.startswith("{"):
        return name
    uri, _, local = name[1:].partition("}")
    prefix = scope.get(uri)
    return f"{prefix}:{local}" if prefix else local
