"""
Streaming parsers for WebDAV XML response bodies.

The parsers are lxml parser targets: lxml drives them with ``start``,
``data`` and ``end`` events and never builds a tree.  Each target is a
small state machine; the events can just as well be fed by hand, which
is how the unit tests exercise the corner cases.

Element names are compared on their local name only.  Servers put the
DAV: namespace under whatever prefix they like (``d:``, ``D:``, ``lp1:``,
a default namespace ...), and some of them even forget to declare it.

Three entry points:

* ``parse_directory_listing`` - multistatus to a list of DirectoryEntry
* ``parse_properties`` - multistatus/prop to a flat name -> text dict
* ``parse_error_response`` - DAV:error body to its description text
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict
from typing import Iterable
from typing import List
from typing import Optional
from typing import Union
from urllib.parse import unquote
from urllib.parse import urlsplit

from lxml import etree

from davkit.entry import DirectoryEntry
from davkit.entry import EntryKind
from davkit.entry import name_from_path
from davkit.entry import parse_date
from davkit.lib import error
from davkit.lib.namespace import local_name

log = logging.getLogger(__name__)

Body = Union[bytes, bytearray, str, Iterable[bytes]]


@dataclass
class _PartialEntry:
    """What has been learned about the current <response> so far"""

    name: str = ""
    href: str = ""
    size: Optional[int] = None
    content_type: Optional[str] = None
    etag: Optional[str] = None
    modified_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    is_directory: bool = False
    has_href: bool = False


class MultistatusTarget:
    """
    Turns the events of a multistatus document into DirectoryEntry
    objects.

    Properties are picked up when their element closes, using the text
    accumulated since the element opened.  A <response> only yields an
    entry if a usable name could be found, and an entry whose path was
    already seen is dropped (many servers list the requested collection
    itself first, some of them more than once).
    """

    def __init__(self) -> None:
        self.current_element = ""
        self.current_text: List[str] = []
        self.in_response = False
        self.record = _PartialEntry()
        self.entries: List[DirectoryEntry] = []
        self._seen_paths = set()

    def start(self, tag, attrib=None, nsmap=None) -> None:
        self.current_element = local_name(tag)
        self.current_text = []
        if self.current_element == "response":
            self.in_response = True
            self.record = _PartialEntry()

    def data(self, text: str) -> None:
        self.current_text.append(text)

    def end(self, tag) -> None:
        element = local_name(tag)
        if element == "response":
            error.assert_(self.in_response)
            self._finalize()
            self.in_response = False
        elif self.in_response:
            handler = getattr(self, "_on_" + element.replace("-", "_"), None)
            if handler is not None:
                handler("".join(self.current_text).strip())
        self.current_text = []

    def close(self) -> List[DirectoryEntry]:
        return self.entries

    ## Property handlers, called when the element closes

    def _on_href(self, text: str) -> None:
        if self.record.has_href:
            ## hrefs nested in properties, like lockroot
            return
        href = text
        if "://" in href:
            ## Some servers give absolute URLs.  Split before decoding, an
            ## encoded "#" or "?" belongs to the path
            href = urlsplit(href).path or "/"
        href = unquote(href)
        if href.endswith("/"):
            href = href.rstrip("/")
            self.record.is_directory = True
        self.record.href = href
        self.record.has_href = True
        if not self.record.name:
            self.record.name = name_from_path(href)

    def _on_displayname(self, text: str) -> None:
        if text:
            self.record.name = text

    def _on_collection(self, text: str) -> None:
        self.record.is_directory = True

    def _on_getcontentlength(self, text: str) -> None:
        if self.record.is_directory:
            return
        try:
            self.record.size = int(text)
        except ValueError:
            log.debug("ignoring unparsable content length %r", text)

    def _on_getcontenttype(self, text: str) -> None:
        if text:
            self.record.content_type = text

    def _on_getetag(self, text: str) -> None:
        if text:
            self.record.etag = text.strip('"')

    def _on_getlastmodified(self, text: str) -> None:
        self.record.modified_at = parse_date(text)

    def _on_creationdate(self, text: str) -> None:
        self.record.created_at = parse_date(text)

    def _finalize(self) -> None:
        record = self.record
        if not record.has_href:
            error.weirdness("response element without href")
        name = record.name
        if not name or name in (".", ".."):
            return
        if record.href in self._seen_paths:
            return
        self._seen_paths.add(record.href)
        self.entries.append(
            DirectoryEntry(
                name=name,
                path=record.href,
                kind=EntryKind.DIRECTORY if record.is_directory else EntryKind.FILE,
                size=None if record.is_directory else record.size,
                modified_at=record.modified_at,
                created_at=record.created_at,
                content_type=record.content_type,
                etag=record.etag,
            )
        )


class PropertiesTarget:
    """
    Collects the properties found under <prop> containers into a flat
    dict keyed by local name.  Simple properties map to their text,
    properties with child elements (like resourcetype) map to the
    space-separated local names of the children.  Properties reported
    with a 404 status in their propstat are left out.
    """

    def __init__(self) -> None:
        self.properties: Dict[str, str] = {}
        self._pending: Dict[str, str] = {}
        self._status = ""
        self._prop_depth = 0
        self._depth = 0
        self._children: List[str] = []
        self._text: List[str] = []

    def start(self, tag, attrib=None, nsmap=None) -> None:
        element = local_name(tag)
        self._depth += 1
        self._text = []
        if self._prop_depth:
            if self._depth == self._prop_depth + 1:
                self._children = []
            elif self._depth == self._prop_depth + 2:
                self._children.append(element)
        elif element == "prop":
            self._prop_depth = self._depth
        elif element == "propstat":
            self._pending = {}
            self._status = ""

    def data(self, text: str) -> None:
        self._text.append(text)

    def end(self, tag) -> None:
        element = local_name(tag)
        text = "".join(self._text).strip()
        if self._prop_depth:
            if self._depth == self._prop_depth:
                self._prop_depth = 0
            elif self._depth == self._prop_depth + 1:
                self._pending[element] = " ".join(self._children) or text
        elif element == "status":
            self._status = text
        elif element == "propstat":
            self._commit()
        self._depth -= 1
        self._text = []

    def _commit(self) -> None:
        if " 404 " not in self._status:
            self.properties.update(self._pending)
        self._pending = {}

    def close(self) -> Dict[str, str]:
        ## a bare <prop> document without propstat
        self._commit()
        return self.properties


class ErrorTarget:
    """Finds the description text of a DAV:error body."""

    DESCRIPTION_ELEMENTS = ("description", "responsedescription", "message")

    def __init__(self) -> None:
        self.description: Optional[str] = None
        self._in_error = False
        self._text: List[str] = []

    def start(self, tag, attrib=None, nsmap=None) -> None:
        if local_name(tag) == "error":
            self._in_error = True
        self._text = []

    def data(self, text: str) -> None:
        self._text.append(text)

    def end(self, tag) -> None:
        element = local_name(tag)
        if element == "error":
            self._in_error = False
        elif self._in_error and element in self.DESCRIPTION_ELEMENTS:
            text = "".join(self._text).strip()
            if text and self.description is None:
                self.description = text
        self._text = []

    def close(self) -> Optional[str]:
        return self.description


def _feed(target, body: Body, huge_tree: bool = False):
    """
    Runs a parser target over a body, given either in one piece or as
    an iterable of chunks.  Raises ParseError if the document is not
    well-formed; whatever the target collected is then thrown away.
    """
    parser = etree.XMLParser(
        target=target,
        huge_tree=huge_tree,
        resolve_entities=False,
        no_network=True,
    )
    if isinstance(body, str):
        body = body.encode("utf-8")
    if isinstance(body, (bytes, bytearray)):
        body = [bytes(body)]
    try:
        for chunk in body:
            if chunk:
                parser.feed(chunk)
        return parser.close()
    except etree.XMLSyntaxError as err:
        raise error.ParseError(reason=str(err)) from err


def parse_directory_listing(body: Body, huge_tree: bool = False) -> List[DirectoryEntry]:
    """
    Parse a multistatus body into directory entries, in server order.

    Args:
        body: Raw XML bytes, or an iterable of byte chunks
        huge_tree: Allow parsing very large XML documents

    Returns:
        List of DirectoryEntry, without duplicates

    Raises:
        ParseError: If the body is not well-formed XML
    """
    if isinstance(body, (bytes, bytearray, str)) and not body.strip():
        error.weirdness("empty multistatus body")
        return []
    return _feed(MultistatusTarget(), body, huge_tree=huge_tree)


def parse_properties(body: Body, huge_tree: bool = False) -> Dict[str, str]:
    """
    Parse a PROPFIND response into a flat property dict.

    Raises:
        ParseError: If the body is not well-formed XML
    """
    if isinstance(body, (bytes, bytearray, str)) and not body.strip():
        return {}
    return _feed(PropertiesTarget(), body, huge_tree=huge_tree)


def parse_error_response(body: Body) -> Optional[str]:
    """
    Extract the human readable description from a DAV:error body.

    Returns None if there is no description, or if the body is not XML
    at all (plenty of servers send HTML error pages).
    """
    if isinstance(body, (bytes, bytearray, str)) and not body.strip():
        return None
    try:
        return _feed(ErrorTarget(), body)
    except error.ParseError:
        log.debug("error body is not XML")
        return None
