"""XMP metadata packet generation."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from datetime import datetime
from typing import Iterable, Mapping, Optional

NS_X = "adobe:ns:meta/"
NS_RDF = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
NS_DC = "http://purl.org/dc/elements/1.1/"
NS_PDF = "http://ns.adobe.com/pdf/1.3/"
NS_XMP = "http://ns.adobe.com/xap/1.0/"
NS_XML = "http://www.w3.org/XML/1998/namespace"

_NAMESPACES = {"x": NS_X, "rdf": NS_RDF, "dc": NS_DC, "pdf": NS_PDF, "xmp": NS_XMP}

for _prefix, _uri in _NAMESPACES.items():
    ET.register_namespace(_prefix, _uri)

_PACKET_HEADER = '<?xpacket begin="\ufeff" id="W5M0MpCehiHzreSzNTczkc9d"?>\n'
_PACKET_TRAILER = '\n<?xpacket end="w"?>'


def _q(namespace: str, name: str) -> str:
    return f"{{{namespace}}}{name}"


def _lang_alt(parent: ET.Element, tag: str, value: str) -> None:
    element = ET.SubElement(parent, tag)
    alt = ET.SubElement(element, _q(NS_RDF, "Alt"))
    item = ET.SubElement(alt, _q(NS_RDF, "li"))
    item.set(_q(NS_XML, "lang"), "x-default")
    item.text = value


def _container(parent: ET.Element, tag: str, kind: str, values: Iterable[str]) -> None:
    element = ET.SubElement(parent, tag)
    container = ET.SubElement(element, _q(NS_RDF, kind))
    for value in values:
        item = ET.SubElement(container, _q(NS_RDF, "li"))
        item.text = value


def _simple(parent: ET.Element, tag: str, value: str) -> None:
    element = ET.SubElement(parent, tag)
    element.text = value


def xmp_date(value: datetime) -> str:
    """Format ``value`` as an XMP (ISO 8601) date."""

    return value.isoformat(timespec="seconds")


def build_xmp_packet(
    info: Mapping[str, str],
    *,
    created: datetime,
    modified: Optional[datetime] = None,
    lang: Optional[str] = None,
) -> bytes:
    """Return a serialised XMP packet mirroring the Info dictionary ``info``.

    ``info`` uses Info dictionary keys (``/Title``, ``/Author`` ...); only the
    standard fields have an XMP counterpart.
    """

    modified = modified or created
    root = ET.Element(_q(NS_X, "xmpmeta"))
    rdf = ET.SubElement(root, _q(NS_RDF, "RDF"))
    description = ET.SubElement(rdf, _q(NS_RDF, "Description"))
    description.set(_q(NS_RDF, "about"), "")

    title = info.get("/Title")
    if title:
        _lang_alt(description, _q(NS_DC, "title"), title)
    author = info.get("/Author")
    if author:
        _container(description, _q(NS_DC, "creator"), "Seq", [author])
    subject = info.get("/Subject")
    if subject:
        _lang_alt(description, _q(NS_DC, "description"), subject)
    keywords = info.get("/Keywords")
    if keywords:
        _container(
            description,
            _q(NS_DC, "subject"),
            "Bag",
            [word.strip() for word in keywords.split(",") if word.strip()],
        )
        _simple(description, _q(NS_PDF, "Keywords"), keywords)
    if lang:
        _container(description, _q(NS_DC, "language"), "Bag", [lang])
    producer = info.get("/Producer")
    if producer:
        _simple(description, _q(NS_PDF, "Producer"), producer)
    creator = info.get("/Creator")
    if creator:
        _simple(description, _q(NS_XMP, "CreatorTool"), creator)

    _simple(description, _q(NS_XMP, "CreateDate"), xmp_date(created))
    _simple(description, _q(NS_XMP, "ModifyDate"), xmp_date(modified))
    _simple(description, _q(NS_XMP, "MetadataDate"), xmp_date(modified))

    body = ET.tostring(root, encoding="unicode")
    return (_PACKET_HEADER + body + _PACKET_TRAILER).encode("utf-8")


__all__ = ["build_xmp_packet", "xmp_date"]
