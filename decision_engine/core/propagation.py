"""Propagated decision map: pairwise relations between framework results."""

from decision_engine.core.framework_registry import get_framework_definition
from decision_engine.core.schemas_analysis import (
    FrameworkResult,
    MapCluster,
    MapEdge,
    MapNode,
    PropagatedMap,
)
from decision_engine.core.seeding import round3
from decision_engine.core.theme_vector import cosine_similarity, dominant_theme

CONSENSUS_THRESHOLD = 0.82
CONFLICT_THRESHOLD = 0.56
RELATED_CUTOFF = 0.70
MAX_EDGES = 220


def classify_similarity(similarity: float) -> str | None:
    """Relation type for a similarity, or None when the pair is too weakly related."""
    if similarity >= CONSENSUS_THRESHOLD:
        return "consensus"
    if similarity <= CONFLICT_THRESHOLD:
        return "conflict"
    if similarity < RELATED_CUTOFF:
        return None
    return "related"


def edge_rationale(source: FrameworkResult, target: FrameworkResult, relation_type: str) -> str:
    source_theme = dominant_theme(source.themes)
    target_theme = dominant_theme(target.themes)

    if relation_type == "consensus":
        return (
            f"{source.framework_name} and {target.framework_name} converge on "
            f"{source_theme}/{target_theme} as primary drivers."
        )
    if relation_type == "conflict":
        return (
            f"{source.framework_name} emphasizes {source_theme}, while "
            f"{target.framework_name} leans toward {target_theme}, creating a tradeoff."
        )
    return (
        f"{source.framework_name} ({source_theme}) and {target.framework_name} ({target_theme}) "
        "are directionally related with partial overlap."
    )


def build_propagated_map(results: list[FrameworkResult]) -> PropagatedMap:
    """
    Build the full relation graph over a run's results.

    Every unordered pair is compared once (i < j), so a pair can never appear
    twice with source and target swapped. Edge weight measures the strength of
    the relation in its own direction: similarity for consensus and related
    edges, 1 - similarity for conflicts.

    Args:
        results: Framework results of one run

    Returns:
        PropagatedMap with nodes, top edges, consensus/conflict sublists and clusters
    """
    nodes = [
        MapNode(
            id=result.framework_id,
            label=result.framework_name,
            category=get_framework_definition(result.framework_id).category,
            deep_supported=result.deep_supported,
            applicability_score=result.applicability_score,
            confidence=result.confidence,
            themes=result.themes,
        )
        for result in results
    ]

    edges: list[MapEdge] = []
    for i, source in enumerate(results):
        for target in results[i + 1 :]:
            similarity = cosine_similarity(source.themes, target.themes)
            relation_type = classify_similarity(similarity)
            if relation_type is None:
                continue

            weight = 1 - similarity if relation_type == "conflict" else similarity
            edges.append(
                MapEdge(
                    source=source.framework_id,
                    target=target.framework_id,
                    relation_type=relation_type,
                    weight=round3(weight),
                    rationale=edge_rationale(source, target, relation_type),
                )
            )

    edges.sort(key=lambda edge: edge.weight, reverse=True)
    edges = edges[:MAX_EDGES]

    clusters: dict[str, list[str]] = {}
    for node in nodes:
        clusters.setdefault(node.category, []).append(node.id)

    return PropagatedMap(
        nodes=nodes,
        edges=edges,
        clusters=[MapCluster(category=c, framework_ids=ids) for c, ids in clusters.items()],
        consensus=[edge for edge in edges if edge.relation_type == "consensus"],
        conflicts=[edge for edge in edges if edge.relation_type == "conflict"],
    )
