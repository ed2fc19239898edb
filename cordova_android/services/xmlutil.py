"""
XML helpers shared by plugin config munging and prepare.

Covers resolving a ``parent`` selector against a document root, grafting and
pruning fragments, and writing a document back in place.
"""

from __future__ import annotations

import os
import re
import tempfile
import xml.etree.ElementTree as ET
from pathlib import Path
from xml.sax.saxutils import escape

from ..models.project import WIDGETS_NS

# config.xml is written with the widgets namespace as the default namespace
ET.register_namespace("", WIDGETS_NS)


def namespace_of(elem: ET.Element) -> str | None:
    if isinstance(elem.tag, str) and elem.tag.startswith("{"):
        return elem.tag[1:].split("}", 1)[0]
    return None


def local_name(tag: str) -> str:
    return tag.split("}", 1)[1] if tag.startswith("{") else tag


def qualify(elem: ET.Element, namespace: str | None) -> ET.Element:
    """Put every unqualified tag of a fragment into ``namespace``."""
    if namespace:
        for node in elem.iter():
            if isinstance(node.tag, str) and not node.tag.startswith("{"):
                node.tag = f"{{{namespace}}}{node.tag}"
    return elem


def substitute_variables(text: str, variables: dict[str, str]) -> str:
    """Replace ``$NAME`` placeholders, longest names first, escaping values for XML."""
    for name in sorted(variables, key=len, reverse=True):
        text = text.replace(f"${name}", escape(variables[name], {'"': "&quot;"}))
    return text


def resolve_parent(root: ET.Element, selector: str) -> ET.Element | None:
    """Find the element a fragment is merged under.

    Accepts absolute selectors such as ``/manifest/application`` or ``/*``
    (anchored at the document root) and relative ones such as
    ``application``.
    """
    selector = selector.strip()
    if selector.startswith("/"):
        head, _, rest = selector.lstrip("/").partition("/")
        if head not in ("*", local_name(root.tag)):
            return None
        selector = rest
    if not selector:
        return root

    namespace = namespace_of(root)
    if namespace:
        selector = "/".join(
            part if part in ("*", ".", "..") or part.startswith("{") else f"{{{namespace}}}{part}"
            for part in selector.split("/")
        )
    return root.find(selector)


def elements_equal(a: ET.Element, b: ET.Element) -> bool:
    """Structural equality ignoring whitespace between elements."""
    if a.tag != b.tag or a.attrib != b.attrib:
        return False
    if (a.text or "").strip() != (b.text or "").strip():
        return False
    if len(a) != len(b):
        return False
    return all(elements_equal(x, y) for x, y in zip(a, b))


def graft(parent: ET.Element, fragment: ET.Element) -> bool:
    """Append a fragment unless an identical child is already present."""
    if any(elements_equal(child, fragment) for child in parent):
        return False
    parent.append(fragment)
    return True


def prune(parent: ET.Element, fragment: ET.Element) -> bool:
    """Remove the first child identical to a fragment."""
    for child in list(parent):
        if elements_equal(child, fragment):
            parent.remove(child)
            return True
    return False


def parse_fragment(xml: str, variables: dict[str, str], namespace: str | None) -> ET.Element:
    return qualify(ET.fromstring(substitute_variables(xml, variables)), namespace)


def unresolved_variables(text: str) -> set[str]:
    return set(re.findall(r"\$([A-Z_][A-Z0-9_]*)", text))


def write_document(doc: ET.ElementTree, path: Path) -> None:
    """Indent and atomically replace an XML file."""
    ET.indent(doc, space="    ")
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}-", suffix=".xml")
    try:
        with os.fdopen(fd, "wb") as f:
            doc.write(f, encoding="utf-8", xml_declaration=True)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
