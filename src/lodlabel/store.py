"""
RDF parsing and pattern queries for fetched documents, backed by Oxigraph.

A fetched document is either scanned statement by statement
(``parse_statements``) or loaded into a throwaway in-memory store and queried
with SPARQL (``RdfStore``).
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import urljoin

import pyoxigraph

from .errors import ParseError

logger = logging.getLogger(__name__)

# Media types of the serializations we read
RDF_XML = "application/rdf+xml"
JSON_LD = "application/ld+json"
TURTLE = "text/turtle"
N_TRIPLES = "application/n-triples"

# Remote contexts may reference further remote contexts up to this depth
MAX_CONTEXT_DEPTH = 10

_FORMAT_ALIASES = {
    "rdfxml": RDF_XML,
    "rdf": RDF_XML,
    "xml": RDF_XML,
    "jsonld": JSON_LD,
    "json-ld": JSON_LD,
    "ttl": TURTLE,
    "turtle": TURTLE,
    "nt": N_TRIPLES,
    "ntriples": N_TRIPLES,
}


def rdf_format(name: str | pyoxigraph.RdfFormat) -> pyoxigraph.RdfFormat:
    """Resolve a media type or short name (``rdfxml``, ``jsonld``, ...) to an Oxigraph format.

    Raises:
        ParseError: If the format is unknown or not supported by Oxigraph.
    """
    if isinstance(name, pyoxigraph.RdfFormat):
        return name
    media_type = _FORMAT_ALIASES.get(name.lower(), name)
    resolved = pyoxigraph.RdfFormat.from_media_type(media_type)
    if resolved is None:
        raise ParseError(f"Unsupported RDF format: {name}", str(name))
    return resolved


@dataclass(frozen=True)
class Statement:
    """A single triple with plain string values.

    ``language`` is the language tag of a literal object, or None for
    untagged literals and resources. It is part of the parse result for
    callers that pick labels by language themselves.
    """

    subject: str
    predicate: str
    object: str
    subject_is_blank: bool = False
    object_is_literal: bool = False
    language: str | None = None


def _to_statement(triple) -> Statement:
    subject = triple.subject
    obj = triple.object
    is_literal = isinstance(obj, pyoxigraph.Literal)
    return Statement(
        subject=subject.value,
        predicate=triple.predicate.value,
        object=obj.value if hasattr(obj, "value") else str(obj),
        subject_is_blank=isinstance(subject, pyoxigraph.BlankNode),
        object_is_literal=is_literal,
        language=(obj.language or None) if is_literal else None,
    )


def parse_statements(
    data: bytes, format: str | pyoxigraph.RdfFormat, base_iri: str | None = None
) -> list[Statement]:
    """Parse a serialized RDF document into statements, in document order.

    Args:
        data: Serialized document.
        format: Media type, short name or Oxigraph format of the document.
        base_iri: Base IRI for resolving relative references.

    Returns:
        List of statements.

    Raises:
        ParseError: If the document cannot be parsed.
    """
    oxigraph_format = rdf_format(format)
    try:
        statements = [
            _to_statement(triple)
            for triple in pyoxigraph.parse(data, oxigraph_format, base_iri=base_iri)
        ]
    except (SyntaxError, ValueError, OSError) as e:
        raise ParseError(f"Failed to parse {oxigraph_format} document: {e}", str(format)) from e
    logger.debug("Parsed %d statements (%s)", len(statements), oxigraph_format)
    return statements


def inline_contexts(
    data: bytes,
    load_context: Callable[[str], bytes],
    base_iri: str | None = None,
) -> bytes:
    """Replace remote ``@context`` references in a JSON-LD document with their content.

    Oxigraph only processes contexts that are part of the document, while
    sources like lobid serve compact JSON-LD pointing at a context URL.
    Every string ``@context`` (alone or in a context array, at any depth) is
    resolved against ``base_iri``, loaded with ``load_context`` and replaced
    by the ``@context`` value of the loaded document. Each URL is loaded once.

    Args:
        data: Serialized JSON-LD document.
        load_context: Returns the serialized context document for a URL.
        base_iri: IRI relative context references are resolved against.

    Returns:
        The document with all contexts inlined, serialized as UTF-8 JSON.

    Raises:
        ParseError: If the document or a context document is not JSON, a
            context document has no ``@context``, or remote contexts nest
            deeper than ``MAX_CONTEXT_DEPTH``.
    """
    document = _load_json(data, base_iri or "document")
    inlined = _inline_node(document, load_context, base_iri, {}, 0)
    return json.dumps(inlined, ensure_ascii=False).encode("utf-8")


def _load_json(data: bytes, source: str) -> Any:
    try:
        return json.loads(data)
    except ValueError as e:
        raise ParseError(f"Invalid JSON in {source}: {e}", JSON_LD) from e


def _inline_node(node, load_context, base_iri, cache, depth):
    if isinstance(node, list):
        return [_inline_node(item, load_context, base_iri, cache, depth) for item in node]
    if not isinstance(node, dict):
        return node
    return {
        key: (
            _resolve_context(value, load_context, base_iri, cache, depth)
            if key == "@context"
            else _inline_node(value, load_context, base_iri, cache, depth)
        )
        for key, value in node.items()
    }


def _resolve_context(context, load_context, base_iri, cache, depth):
    if isinstance(context, list):
        resolved = []
        for item in context:
            value = _resolve_context(item, load_context, base_iri, cache, depth)
            if isinstance(value, list):
                resolved.extend(value)
            else:
                resolved.append(value)
        return resolved
    if isinstance(context, str):
        url = urljoin(base_iri, context) if base_iri else context
        if url not in cache:
            if depth >= MAX_CONTEXT_DEPTH:
                raise ParseError(f"Remote contexts nested too deep at {url}", JSON_LD)
            logger.debug("Loading JSON-LD context %s", url)
            context_document = _load_json(load_context(url), url)
            if not isinstance(context_document, dict) or "@context" not in context_document:
                raise ParseError(f"No @context in context document {url}", JSON_LD)
            cache[url] = _resolve_context(
                context_document["@context"], load_context, url, cache, depth + 1
            )
        return cache[url]
    # Inline context object; term definitions may carry scoped contexts
    return _inline_node(context, load_context, base_iri, cache, depth)


class RdfStore:
    """In-memory Oxigraph store holding one fetched document.

    Example:
        >>> store = RdfStore()
        >>> store.load(data, "jsonld", base_iri="http://lobid.org/resources/123")
        >>> store.query("SELECT ?o { <http://lobid.org/resources/123> ?p ?o }")
    """

    def __init__(self):
        self._store = pyoxigraph.Store()

    def load(
        self,
        data: bytes,
        format: str | pyoxigraph.RdfFormat,
        base_iri: str | None = None,
        context_loader: Callable[[str], bytes] | None = None,
    ) -> int:
        """Load a serialized document into the store.

        Args:
            data: Serialized document.
            format: Media type, short name or Oxigraph format of the document.
            base_iri: Base IRI for resolving relative references.
            context_loader: For JSON-LD, loads remote ``@context`` documents
                by URL (see ``inline_contexts``). Without it, only documents
                with inline contexts can be read.

        Returns:
            Number of triples loaded.

        Raises:
            ParseError: If the document cannot be parsed.
        """
        oxigraph_format = rdf_format(format)
        if context_loader is not None and oxigraph_format.media_type == JSON_LD:
            data = inline_contexts(data, context_loader, base_iri)
        initial_count = len(self._store)
        try:
            self._store.load(data, oxigraph_format, base_iri=base_iri)
        except (SyntaxError, ValueError, OSError) as e:
            raise ParseError(f"Failed to load {oxigraph_format} document: {e}", str(format)) from e
        loaded = len(self._store) - initial_count
        logger.debug("Loaded %d triples (%s)", loaded, oxigraph_format)
        return loaded

    def query(self, sparql: str) -> list[dict]:
        """Execute a SPARQL SELECT query.

        Args:
            sparql: SPARQL SELECT query string.

        Returns:
            List of result bindings, in the order the store yields them.
            Each binding maps a variable name to a dict with ``value``,
            ``type`` ("literal", "uri" or "bnode") and, for tagged literals,
            ``lang``.
        """
        query_results = self._store.query(sparql)
        variables = query_results.variables

        results = []
        for solution in query_results:
            row = {}
            for var in variables:
                value = solution[var]
                if value is None:
                    continue
                if isinstance(value, pyoxigraph.Literal):
                    row[var.value] = {"value": value.value, "type": "literal"}
                    if value.language:
                        row[var.value]["lang"] = value.language
                elif isinstance(value, pyoxigraph.BlankNode):
                    row[var.value] = {"value": value.value, "type": "bnode"}
                else:
                    row[var.value] = {"value": value.value, "type": "uri"}
            results.append(row)
        return results

    def __len__(self) -> int:
        """Return number of triples in store."""
        return len(self._store)
