"""
Pure functions for building WebDAV XML request bodies.

All functions in this module are pure - they take data in and return XML out,
with no side effects or I/O.
"""
from typing import List
from typing import Optional

from lxml import etree

from davkit.elements import dav
from davkit.elements.base import BaseElement

## The properties a directory listing asks for
LISTING_PROPS = ["resourcetype", "getcontentlength", "getlastmodified", "displayname"]


def build_propfind_body(props: Optional[List[str]] = None) -> bytes:
    """
    Build PROPFIND request body XML.

    Args:
        props: List of property names to retrieve. If None, the directory
               listing properties are requested.  Unknown names are skipped.

    Returns:
        UTF-8 encoded XML bytes
    """
    if props is None:
        props = LISTING_PROPS
    prop_elements = []
    for prop_name in props:
        prop_element = _prop_name_to_element(prop_name)
        if prop_element is not None:
            prop_elements.append(prop_element)
    propfind = dav.Propfind() + (dav.Prop() + prop_elements)

    return etree.tostring(propfind.xmlelement(), encoding="utf-8", xml_declaration=True)


def _prop_name_to_element(name: str) -> Optional[BaseElement]:
    """
    Convert a property name to its element.

    Args:
        name: Property name (case-insensitive)

    Returns:
        BaseElement instance or None if the property is unknown
    """
    prop_map = {
        "displayname": dav.DisplayName,
        "resourcetype": dav.ResourceType,
        "getcontentlength": dav.GetContentLength,
        "getcontenttype": dav.GetContentType,
        "getlastmodified": dav.GetLastModified,
        "creationdate": dav.CreationDate,
        "getetag": dav.GetEtag,
    }

    element_class = prop_map.get(name.lower())
    if element_class:
        return element_class()
    return None
