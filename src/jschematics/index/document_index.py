"""
Document Index
===============
Lookup table from JSON Pointer locations to the schema nodes of one document.

Pointers are written as URI fragments: ``#`` for the root, then RFC 6901
tokens (``~0`` for ``~``, ``~1`` for ``/``), e.g. ``#/$defs/Person``.

Besides plain locations the index records, for every node, the base URI in
effect there (nearest enclosing ``$id``), the embedded schema resources keyed
by their absolute URI, and ``$anchor`` names. ``$ref`` values are resolved
against that information on demand: nothing is inlined, so a definition that
refers to itself is just another lookup.

Example::

    index = DocumentIndex(document.root)
    person = index.resolve("#/$defs/Person")
    pointer, target = index.resolve_reference("#/$defs/Person", "#/properties/father")
"""

from __future__ import annotations

from urllib.parse import unquote, urldefrag, urljoin

import structlog

from ..exceptions import NotYetImplemented, UnresolvableReference
from ..models.schema import Schema

log = structlog.get_logger(__name__)

ROOT_POINTER = "#"


# ---------------------------------------------------------------------------
# JSON Pointer helpers (RFC 6901)
# ---------------------------------------------------------------------------


def escape_token(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def unescape_token(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def join_pointer(pointer: str, *tokens: str | int) -> str:
    """Append unescaped tokens to a pointer: ``join_pointer("#", "a/b") == "#/a~1b"``."""
    return pointer + "".join("/" + escape_token(str(t)) for t in tokens)


def split_pointer(pointer: str) -> list[str]:
    """Unescaped tokens of a ``#``-prefixed (or bare) JSON Pointer."""
    body = pointer[1:] if pointer.startswith("#") else pointer
    if not body:
        return []
    if not body.startswith("/"):
        raise ValueError(f"Not a JSON Pointer: {pointer!r}")
    return [unescape_token(t) for t in body[1:].split("/")]


def _absolute(base: str, reference: str) -> str:
    """Resolve ``reference`` against ``base``, dropping an empty fragment."""
    if not base:
        resolved = reference
    else:
        resolved = urljoin(base, reference)
    uri, fragment = urldefrag(resolved)
    return uri if not fragment else f"{uri}#{fragment}"


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------


class DocumentIndex:
    """
    Read-only pointer → node table for one schema document.

    Built once by structural descent from the root; safe for concurrent
    lookups afterwards.
    """

    def __init__(self, root: Schema) -> None:
        self._root = root
        self._nodes: dict[str, Schema] = {}
        self._base_uris: dict[str, str] = {}
        self._resources: dict[str, str] = {}
        self._anchors: dict[tuple[str, str], str] = {}
        self._walk(root, ROOT_POINTER, "")

    def _walk(self, node: Schema, pointer: str, base: str) -> None:
        if node.id is not None:
            base = _absolute(base, node.id)
            self._resources.setdefault(base, pointer)
        elif pointer == ROOT_POINTER:
            self._resources[base] = pointer

        self._nodes[pointer] = node
        self._base_uris[pointer] = base
        for anchor in (node.anchor, node.dynamic_anchor):
            if anchor is not None:
                self._anchors.setdefault((base, anchor), pointer)

        for tokens, child in node.children():
            self._walk(child, join_pointer(pointer, *tokens), base)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def root(self) -> Schema:
        return self._root

    def __contains__(self, pointer: str) -> bool:
        return pointer in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def pointers(self) -> list[str]:
        return list(self._nodes)

    def resolve(self, pointer: str) -> Schema:
        """Return the node at ``pointer`` or raise ``UnresolvableReference``."""
        try:
            return self._nodes[pointer]
        except KeyError:
            raise UnresolvableReference(pointer) from None

    def base_uri(self, pointer: str) -> str:
        return self._base_uris.get(pointer, "")

    def resolve_reference(self, reference: str, origin: str = ROOT_POINTER) -> tuple[str, Schema]:
        """
        Resolve a ``$ref`` found at ``origin``.

        Returns the canonical pointer of the target and the target node.

        Raises
        ------
        UnresolvableReference
            The reference targets this document but no schema is there.
        NotYetImplemented
            The reference targets a document that is not embedded here.
        """
        base = self.base_uri(origin)
        if reference.startswith("#"):
            resource_uri, fragment = base, reference[1:]
        else:
            absolute = _absolute(base, reference)
            resource_uri, fragment = urldefrag(absolute)

        resource = self._resources.get(resource_uri)
        if resource is None:
            log.debug("reference.external", reference=reference, origin=origin, uri=resource_uri)
            raise NotYetImplemented(f"External reference {reference}", origin)

        fragment = unquote(fragment)
        if not fragment:
            return resource, self._nodes[resource]
        if fragment.startswith("/"):
            target = resource + fragment
            if target not in self._nodes:
                raise UnresolvableReference(reference, origin)
            return target, self._nodes[target]

        target = self._anchors.get((resource_uri, fragment))
        if target is None:
            raise UnresolvableReference(reference, origin)
        return target, self._nodes[target]
