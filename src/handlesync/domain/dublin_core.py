"""Tree edits that keep the Handle identifier of an OAI Dublin Core record current.

Documents are parsed with blank text removed and serialised pretty-printed, so a
record that round-trips through here without edits keeps a stable layout.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from lxml import etree

from handlesync.domain.errors import DublinCoreError

if TYPE_CHECKING:
    from lxml.etree import _Element

OAI_DC_NAMESPACE: Final[str] = "http://www.openarchives.org/OAI/2.0/oai_dc/"
DC_NAMESPACE: Final[str] = "http://purl.org/dc/elements/1.1/"
NAMESPACES: Final[dict[str, str]] = {"oai_dc": OAI_DC_NAMESPACE, "dc": DC_NAMESPACE}
IDENTIFIER_TAG: Final[str] = f"{{{DC_NAMESPACE}}}identifier"
DEFAULT_RESOLVER_URL: Final[str] = "http://hdl.handle.net"

_HANDLE_IDENTIFIERS = etree.XPath(
    "//dc:identifier[starts-with(text(), $resolver) or starts-with(text(), $default)]",
    namespaces=NAMESPACES,
)
_MATCHING_IDENTIFIERS = etree.XPath("//dc:identifier[text() = $value]", namespaces=NAMESPACES)


def parse_dublin_core(content: bytes) -> _Element:
    parser = etree.XMLParser(remove_blank_text=True)
    try:
        return etree.fromstring(content, parser)
    except etree.XMLSyntaxError as exc:
        raise DublinCoreError(f"Unparsable Dublin Core document: {exc}") from exc


def serialize_dublin_core(root: _Element) -> bytes:
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True)


def find_handle_identifiers(root: _Element, resolver: str) -> list[_Element]:
    """Return ``dc:identifier`` nodes under the resolver base or ``DEFAULT_RESOLVER_URL``."""

    return list(_HANDLE_IDENTIFIERS(root, resolver=resolver, default=DEFAULT_RESOLVER_URL))


def _append_identifier(parent: _Element, handle_url: str) -> _Element:
    # created under the parent so an in-scope dc prefix is reused
    element = etree.SubElement(parent, IDENTIFIER_TAG, nsmap={"dc": DC_NAMESPACE})
    element.text = handle_url
    return element


def set_handle_identifier(root: _Element, handle_url: str, resolver: str) -> bool:
    """Point the record's Handle identifier at ``handle_url``.

    Only the first existing Handle identifier is considered: if it already holds
    ``handle_url`` nothing changes, otherwise it is swapped in place for a fresh
    element. Without one, a new identifier is appended to the root. Returns whether
    the tree was modified.
    """

    for existing in find_handle_identifiers(root, resolver):
        if existing.text == handle_url:
            return False
        parent = existing.getparent()
        if parent is None:
            raise DublinCoreError("Handle identifier has no parent element")
        existing.addprevious(_append_identifier(parent, handle_url))
        parent.remove(existing)
        return True

    _append_identifier(root, handle_url)
    return True


def remove_handle_identifier(root: _Element, handle_url: str) -> int:
    """Drop every ``dc:identifier`` whose text is exactly ``handle_url``."""

    removed = 0
    for node in _MATCHING_IDENTIFIERS(root, value=handle_url):
        parent = node.getparent()
        if parent is None:
            continue
        parent.remove(node)
        removed += 1
    return removed
