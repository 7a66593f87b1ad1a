"""
Canonical ordering and content hashing for compiled workflow specs.

Downstream caches key compiled plans by content hash, so two logically equal
specs must serialize to identical bytes:

1. Order: edges by ``(from, to, condition)``, outputs by ``(name, from,
   pointer)``, ``depends_on`` de-duplicated and sorted. Conditions are keyed
   by their canonical JSON so ordering and hashing agree.
2. Serialize: RFC 8785 / JCS canonical JSON (``rfc8785`` package).
"""

from __future__ import annotations

import hashlib
from typing import Any, Iterable, List, Tuple

import rfc8785

from orchestration_compiler.errors import WorkflowBuildError
from orchestration_compiler.schema.models import Edge, OutputRef, WorkflowSpec

# Version string callers can store next to a hash to detect algorithm changes
CANONICAL_VERSION = "sha256-rfc8785-v1"


def edge_sort_key(edge: Edge) -> Tuple[str, str, str]:
    condition = ""
    if edge.when is not None:
        condition = canonical_json(edge.when.model_dump(mode="json", exclude_none=True))
    return (edge.from_, edge.to, condition)


def sort_edges(edges: Iterable[Edge]) -> List[Edge]:
    """Sorted edges with exact duplicates removed."""
    unique = {}
    for edge in edges:
        unique.setdefault(edge_sort_key(edge), edge)
    return [unique[key] for key in sorted(unique)]


def sort_outputs(outputs: Iterable[OutputRef]) -> List[OutputRef]:
    return sorted(outputs, key=OutputRef.sort_key)


def canonical_dependencies(depends_on: Iterable[str]) -> List[str]:
    return sorted(set(depends_on))


def canonical_json(spec: WorkflowSpec | Any) -> str:
    """
    Canonical JSON for a spec (or any JSON-ready structure): no whitespace,
    sorted keys, RFC 8785 number formatting.

    Values RFC 8785 cannot represent (integers beyond 2**53 - 1, NaN,
    infinities) raise ``WorkflowBuildError``.
    """
    data = spec.to_payload() if isinstance(spec, WorkflowSpec) else spec
    try:
        result: bytes = rfc8785.dumps(data)
    except rfc8785.CanonicalizationError as exc:
        raise WorkflowBuildError(f"value cannot be canonicalized: {exc}") from exc
    return result.decode("utf-8")


def plan_hash(spec: WorkflowSpec | Any) -> str:
    """SHA-256 hex digest of the canonical JSON."""
    return hashlib.sha256(canonical_json(spec).encode("utf-8")).hexdigest()
