"""
FastAPI server exposing label lookups over HTTP.

Run with ``lodlabel api`` or ``uvicorn lodlabel.api:app``.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel

from . import resolvers
from ._version import __version__

logger = logging.getLogger(__name__)

app = FastAPI(title="lodlabel", version=__version__)


class LabelResponse(BaseModel):
    """Resolved label for an identifier."""
    uri: str
    label: Optional[str] = None
    found: bool


@app.get("/label", response_model=LabelResponse)
def label(
    uri: str = Query(..., min_length=1, description="Linked-data identifier"),
    lang: Optional[str] = Query(None, description="Preferred label language"),
) -> LabelResponse:
    """Resolve the label of a linked-data identifier."""
    resolver = resolvers.find_resolver(uri)
    if resolver is None:
        raise HTTPException(status_code=404, detail=f"No resolver for {uri}")

    result = resolver.resolve(uri, lang)
    found = resolvers.is_label_found(uri, result)
    logger.info("Resolved %s with %s: %s", uri, resolver.name, result if found else "not found")
    return LabelResponse(uri=uri, label=result if found else None, found=found)


@app.get("/resolvers")
def list_resolvers() -> list[dict]:
    """List the namespaces labels can be resolved for."""
    return [
        {"name": r.name, "namespaces": [r.id, r.id2]}
        for r in resolvers.RESOLVERS
    ]


@app.get("/health")
def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}
