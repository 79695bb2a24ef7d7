#!/usr/bin/env python
from typing import ClassVar

from .base import BaseElement
from davkit.lib.namespace import ns


# Operations
class Propfind(BaseElement):
    tag: ClassVar[str] = ns("d", "propfind")


class Prop(BaseElement):
    tag: ClassVar[str] = ns("d", "prop")


# Properties
class ResourceType(BaseElement):
    tag: ClassVar[str] = ns("d", "resourcetype")


class DisplayName(BaseElement):
    tag: ClassVar[str] = ns("d", "displayname")


class GetContentLength(BaseElement):
    tag: ClassVar[str] = ns("d", "getcontentlength")


class GetContentType(BaseElement):
    tag: ClassVar[str] = ns("d", "getcontenttype")


class GetLastModified(BaseElement):
    tag: ClassVar[str] = ns("d", "getlastmodified")


class CreationDate(BaseElement):
    tag: ClassVar[str] = ns("d", "creationdate")


class GetEtag(BaseElement):
    tag: ClassVar[str] = ns("d", "getetag")
