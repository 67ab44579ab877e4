"""
Arbor tools - the operations the graph exposes to callers.

Public API:
- TOOLS: tool name -> (request model, executor)
- call_tool(): validate a payload, run the tool, return a camelCase dict

Usage:
    from arbor.tools import call_tool

    call_tool(store, "arbor_seed", {
        "nodes": [{"id": "src/auth.py", "nodeType": "file", "feature": "auth"}],
    })
    # {"created": 1, "updated": 0}
"""

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Tuple, Type

from arbor.core.exceptions import UnknownToolError
from arbor.tools.compound import execute_compound
from arbor.tools.explore import execute_explore
from arbor.tools.fetch import execute_fetch
from arbor.tools.graft import execute_graft
from arbor.tools.models import (
    CompoundRequest,
    ExploreRequest,
    FetchRequest,
    GraftRequest,
    SearchRequest,
    SeedRequest,
    ToolModel,
    UprootRequest,
)
from arbor.tools.search import execute_search
from arbor.tools.seed import execute_seed
from arbor.tools.uproot import execute_uproot

if TYPE_CHECKING:
    from arbor.storage.graph_db import GraphStore

logger = logging.getLogger(__name__)

Executor = Callable[["GraphStore", Any], ToolModel]

TOOLS: Dict[str, Tuple[Type[ToolModel], Executor]] = {
    "arbor_seed": (SeedRequest, execute_seed),
    "arbor_graft": (GraftRequest, execute_graft),
    "arbor_uproot": (UprootRequest, execute_uproot),
    "arbor_search": (SearchRequest, execute_search),
    "arbor_fetch": (FetchRequest, execute_fetch),
    "arbor_explore": (ExploreRequest, execute_explore),
    "arbor_compound": (CompoundRequest, execute_compound),
}


def call_tool(store: "GraphStore", name: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Dispatch one tool call.

    Raises:
        UnknownToolError: If name is not registered
        pydantic.ValidationError: If payload does not match the request model
        InvalidSelectorError: From arbor_fetch without selectors
        StorageError: If the underlying transaction failed
    """
    if name not in TOOLS:
        raise UnknownToolError(name, {"available": sorted(TOOLS)})

    request_model, executor = TOOLS[name]
    request = request_model.model_validate(payload)

    logger.info(f"[Tools] {name}")
    result = executor(store, request)
    return result.model_dump(mode="json", by_alias=True)


__all__ = [
    "TOOLS",
    "call_tool",
    "execute_compound",
    "execute_explore",
    "execute_fetch",
    "execute_graft",
    "execute_search",
    "execute_seed",
    "execute_uproot",
]
