"""
arbor_search: full-text search over node labels, paths and descriptors.

Free text is reduced to quoted FTS5 terms so that user input can never be
parsed as query syntax:

    'N+1 "query" fix'  ->  '"N" "1" "query" "fix"'

Modes restrict which columns are matched:
    features  -> feature, feature_path
    snippets  -> features (descriptor list)
    auto      -> every indexed column
"""

import logging
import re
from typing import TYPE_CHECKING, Dict, List, Optional

from arbor.graph.models import SearchMode
from arbor.tools.models import SearchRequest, SearchResult, SearchResultItem

if TYPE_CHECKING:
    from arbor.storage.graph_db import GraphStore

logger = logging.getLogger(__name__)

# FTS5 operator characters, including typographic quotes
FTS_SPECIAL_CHARS = re.compile(r'["“”*():^{}+\-]')

MODE_COLUMNS = {
    SearchMode.FEATURES: "{feature feature_path}",
    SearchMode.SNIPPETS: "{features}",
    SearchMode.AUTO: None,
}


def sanitize_fts_query(raw: str) -> str:
    """Strip FTS5 syntax and quote each remaining token. Empty if nothing survives."""
    cleaned = FTS_SPECIAL_CHARS.sub(" ", raw)
    return " ".join(f'"{token}"' for token in cleaned.split())


def build_fts_query(sanitized: str, mode: SearchMode) -> str:
    """Apply the column restriction for mode."""
    if not sanitized:
        return ""
    columns = MODE_COLUMNS[SearchMode(mode)]
    if columns is None:
        return sanitized
    return f"{columns} : ({sanitized})"


def execute_search(store: "GraphStore", request: SearchRequest) -> SearchResult:
    """
    Run a (possibly scoped) search.

    With scopes, one query per scope prefix is issued and the results are
    merged by node id, first occurrence winning. The merged list is sorted
    by descending score and capped at max_results; total_found is the
    merged count before the cap.
    """
    sanitized = sanitize_fts_query(request.query)
    if not sanitized:
        logger.debug(f"[Search] Nothing searchable in {request.query!r}")
        return SearchResult()

    fts_query = build_fts_query(sanitized, request.mode)
    node_types = [t.value for t in request.node_type_filter] or None
    scopes: List[Optional[str]] = list(request.scope) or [None]

    merged: Dict[str, SearchResultItem] = {}
    for scope in scopes:
        rows = store.search_nodes(
            fts_query,
            node_types=node_types,
            scope_prefix=scope,
            limit=request.max_results,
        )
        for node, score in rows:
            if node.id in merged:
                continue
            merged[node.id] = SearchResultItem(
                node_id=node.id,
                node_type=node.node_type.value,
                feature=node.feature,
                feature_path=node.feature_path,
                score=score,
                stale=node.stale,
            )

    ranked = sorted(merged.values(), key=lambda item: item.score, reverse=True)
    logger.debug(f"[Search] {fts_query!r} scopes={len(scopes)} matched={len(ranked)}")

    return SearchResult(
        results=ranked[:request.max_results],
        total_found=len(ranked),
    )
