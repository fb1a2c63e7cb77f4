"""Composite print score and advisory recommendations."""

from __future__ import annotations

from .config import PrintReadinessConfig
from .contracts import Recommendation, RecommendationKind, Severity, TriangleQuality

_SEVERITY = {
    RecommendationKind.FILL_HOLES: Severity.CRITICAL,
    RecommendationKind.REPAIR_NON_MANIFOLD: Severity.CRITICAL,
    RecommendationKind.FIX_SELF_INTERSECTIONS: Severity.CRITICAL,
    RecommendationKind.REMOVE_DUPLICATE_VERTICES: Severity.WARNING,
    RecommendationKind.REMOVE_DEGENERATE_FACES: Severity.WARNING,
    RecommendationKind.FIX_INVERTED_NORMALS: Severity.WARNING,
    RecommendationKind.INCREASE_RESOLUTION: Severity.SUGGESTION,
    RecommendationKind.ADD_BASE_FOR_STABILITY: Severity.SUGGESTION,
    RecommendationKind.CHECK_WALL_THICKNESS: Severity.SUGGESTION,
    RecommendationKind.REDUCE_MESH_COMPLEXITY: Severity.SUGGESTION,
}


def recommendation(kind: RecommendationKind, message: str) -> Recommendation:
    return Recommendation(kind=kind, severity=_SEVERITY[kind], message=message)


def overall_score(
    is_watertight: bool,
    is_manifold: bool,
    hole_count: int,
    non_manifold_count: int,
    duplicate_count: int,
    degenerate_count: int,
    inverted_count: int,
    quality: TriangleQuality,
) -> int:
    """Start at 100 and subtract capped integer penalties; never below 0."""
    score = 100

    if not is_watertight:
        score -= 30
        score -= min(hole_count * 5, 20)

    if not is_manifold:
        score -= 25
        score -= min(non_manifold_count * 2, 15)

    score -= min(duplicate_count // 10, 10)
    score -= min(degenerate_count * 2, 10)
    score -= min(inverted_count // 10, 10)

    score -= min(quality.poor_quality_count // 100, 5)
    score -= min(quality.very_poor_quality_count // 50, 5)

    return max(0, score)


def build_recommendations(
    config: PrintReadinessConfig,
    *,
    holes: list[list[int]],
    non_manifold_count: int,
    duplicate_count: int,
    degenerate_count: int,
    inverted_count: int,
    face_count: int,
    dimensions: list[float],
) -> list[Recommendation]:
    """Ordered repair hints: critical first, then warnings, then suggestions."""
    recs: list[Recommendation] = []

    if holes:
        boundary_vertices = sum(len(h) for h in holes)
        recs.append(recommendation(
            RecommendationKind.FILL_HOLES,
            f"Fill {len(holes)} holes ({boundary_vertices} boundary vertices)",
        ))
    if non_manifold_count:
        recs.append(recommendation(
            RecommendationKind.REPAIR_NON_MANIFOLD,
            f"Repair {non_manifold_count} non-manifold edges",
        ))
    if duplicate_count:
        recs.append(recommendation(
            RecommendationKind.REMOVE_DUPLICATE_VERTICES,
            f"Remove {duplicate_count} duplicate vertices",
        ))
    if degenerate_count:
        recs.append(recommendation(
            RecommendationKind.REMOVE_DEGENERATE_FACES,
            f"Remove {degenerate_count} degenerate faces",
        ))
    if inverted_count:
        recs.append(recommendation(
            RecommendationKind.FIX_INVERTED_NORMALS,
            f"Fix {inverted_count} inverted normals",
        ))

    if face_count < config.min_detail_faces:
        recs.append(recommendation(
            RecommendationKind.INCREASE_RESOLUTION,
            "Consider rescanning at higher resolution",
        ))
    if min(dimensions) < config.min_dimension:
        recs.append(recommendation(
            RecommendationKind.CHECK_WALL_THICKNESS,
            f"Check wall thickness (min {config.min_wall_thickness * 1000:.1f}mm recommended)",
        ))
    if face_count > config.max_faces:
        recs.append(recommendation(
            RecommendationKind.REDUCE_MESH_COMPLEXITY,
            f"Reduce mesh to ~{config.target_faces} faces for faster slicing",
        ))

    recs.append(recommendation(
        RecommendationKind.ADD_BASE_FOR_STABILITY,
        "Add a base plate for printing stability",
    ))
    return recs
