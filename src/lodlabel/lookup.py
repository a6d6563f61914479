"""
Label lookup by statement pattern.

Looks for a literal ``<subject> <predicate> ?o`` in a fetched document, first
restricted to a language, then in any language. Lookups are best effort:
every failure is logged and reported as "no label".
"""
from __future__ import annotations

import logging
import re
import unicodedata

from .fetch import Fetcher, get_fetcher
from .store import JSON_LD, RdfStore

logger = logging.getLogger(__name__)

# Language tags accepted in a LANGMATCHES filter
_LANGUAGE_RE = re.compile(r"^(\*|[A-Za-z]{1,8}(-[A-Za-z0-9]{1,8})*)$")


def normalize_literal(text: str) -> str:
    """Apply Unicode NFKC normalization to a literal's text."""
    return unicodedata.normalize("NFKC", text)


def any_language_query(subject_ref: str, predicate_iri: str) -> str:
    """Build a query for a predicate's objects, regardless of language."""
    return f"SELECT ?s ?o {{ {subject_ref} <{predicate_iri}> ?o . }}"


def language_query(subject_ref: str, predicate_iri: str, language: str) -> str:
    """Build a query for a predicate's objects tagged with a matching language.

    Raises:
        ValueError: If ``language`` is not a well-formed language tag.
    """
    if not _LANGUAGE_RE.match(language):
        raise ValueError(f"Invalid language tag: {language!r}")
    return (
        f"SELECT ?s ?o {{ {subject_ref} <{predicate_iri}> ?o . "
        f"FILTER(LANGMATCHES(lang(?o), '{language}')) }}"
    )


class PatternLookup:
    """Find label literals in remote RDF documents."""

    def __init__(self, fetcher: Fetcher | None = None):
        """Initialize the lookup.

        Args:
            fetcher: Fetcher used for documents and their JSON-LD contexts.
                Default: the shared fetcher.
        """
        self._fetcher = fetcher
        self._contexts: dict[str, bytes] = {}

    @property
    def fetcher(self) -> Fetcher:
        return self._fetcher if self._fetcher is not None else get_fetcher()

    def lookup(
        self,
        rdf_address: str,
        subject_ref: str,
        predicate_iri: str,
        language: str | None,
        rdf_format: str,
        accept: str,
    ) -> str:
        """Look up a label, preferring a language.

        Args:
            rdf_address: URL of the RDF document.
            subject_ref: Subject in SPARQL form, e.g. ``<http://example.org/x>``.
            predicate_iri: Label predicate IRI.
            language: Preferred language tag, or None for any language.
            rdf_format: Serialization of the document (media type or short name).
            accept: Accept header sent with the request.

        Returns:
            The NFKC-normalized label. If no label is found, ``rdf_address``
            itself is returned; callers compare the result with the address
            they passed in to detect that.
        """
        label = self._lookup_in_language(
            rdf_address, subject_ref, predicate_iri, language, rdf_format, accept
        )
        if label is not None:
            return label
        label = self._lookup_in_any_language(
            rdf_address, subject_ref, predicate_iri, rdf_format, accept
        )
        if label is not None:
            return label
        return rdf_address

    def _lookup_in_language(
        self, rdf_address, subject_ref, predicate_iri, language, rdf_format, accept
    ) -> str | None:
        if language is None:
            return None
        try:
            query = language_query(subject_ref, predicate_iri, language)
        except ValueError as e:
            logger.warning("Skipping language lookup for %s: %s", rdf_address, e)
            return None
        return self._query_label(rdf_address, rdf_format, accept, query)

    def _lookup_in_any_language(
        self, rdf_address, subject_ref, predicate_iri, rdf_format, accept
    ) -> str | None:
        query = any_language_query(subject_ref, predicate_iri)
        return self._query_label(rdf_address, rdf_format, accept, query)

    def load_context(self, url: str) -> bytes:
        """Fetch a remote JSON-LD context, once per URL."""
        if url not in self._contexts:
            self._contexts[url] = self.fetcher.fetch(url, {"accept": JSON_LD})
        return self._contexts[url]

    def _query_label(self, rdf_address: str, rdf_format: str, accept: str, query: str) -> str | None:
        """Fetch the document, run the query and return the first literal."""
        try:
            data = self.fetcher.fetch(rdf_address, {"accept": accept})
            store = RdfStore()
            store.load(data, rdf_format, base_iri=rdf_address, context_loader=self.load_context)
            logger.debug("Query against %s: %s", rdf_address, query)
            for row in store.query(query):
                value = row.get("o")
                if value is not None and value["type"] == "literal":
                    return normalize_literal(value["value"])
        except Exception as e:
            logger.warning("Label lookup failed for %s: %s", rdf_address, e)
        return None


_default_lookup: PatternLookup | None = None


def lookup(
    rdf_address: str,
    subject_ref: str,
    predicate_iri: str,
    language: str | None,
    rdf_format: str,
    accept: str,
) -> str:
    """Look up a label using the default lookup. See ``PatternLookup.lookup``."""
    global _default_lookup
    if _default_lookup is None:
        _default_lookup = PatternLookup()
    return _default_lookup.lookup(
        rdf_address, subject_ref, predicate_iri, language, rdf_format, accept
    )
