#!/usr/bin/env python
from typing import Dict
from typing import Optional

## Servers are free to choose any prefix for the DAV: namespace, we
## always send "d", matching what most clients put on the wire.
nsmap: Dict[str, str] = {
    "d": "DAV:",
}


def ns(prefix: str, tag: Optional[str] = None) -> str:
    name = "{%s}" % nsmap[prefix]
    if tag is not None:
        name = "%s%s" % (name, tag)
    return name


def local_name(tag: str) -> str:
    """
    Strips the namespace from an element name, whether it comes in
    Clark notation (``{DAV:}href``) or with a raw prefix (``D:href``,
    which is what lxml hands over when the prefix was never declared).
    """
    if tag.startswith("{"):
        tag = tag.rpartition("}")[2]
    if ":" in tag:
        tag = tag.split(":", 1)[1]
    return tag
