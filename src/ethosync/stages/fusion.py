"""Fusion stage: merge observation sources into canonical markers.

This stage handles:
- Walking the source lists in priority order
- Dropping candidates with no label
- First-writer-wins deduplication inside the fusion window
- Zone, score and evidence assignment

Lower-priority sources are treated as lower-confidence restatements of the
moments already covered by higher-priority ones, so a near-duplicate is
dropped rather than averaged in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from ethosync.config import FusionOptions
from ethosync.models.schema import AnalysisResult, CanonicalMarker, SourceKind
from ethosync.stages.sources import SourceRecords, SourceSpec, read_source
from ethosync.stages.zones import classify_zone

logger = logging.getLogger(__name__)


@dataclass
class FusionStats:
    """Per-source bookkeeping from one fusion run."""

    accepted: dict[SourceKind, int] = field(default_factory=dict)
    unlabeled: dict[SourceKind, int] = field(default_factory=dict)
    duplicates: dict[SourceKind, int] = field(default_factory=dict)
    used_fallback: bool = False

    @property
    def total_accepted(self) -> int:
        """Number of markers produced."""
        return sum(self.accepted.values())


class FusionEngine:
    """Merges prioritized observation lists into one canonical marker list.

    Example:
        >>> engine = FusionEngine()
        >>> markers = engine.fuse_analysis(AnalysisResult.model_validate(payload))
    """

    def __init__(self, options: FusionOptions | None = None) -> None:
        self.options = options or FusionOptions()
        self.last_stats = FusionStats()

    def fuse(
        self,
        sources: list[SourceRecords],
        fallback: SourceRecords | None = None,
        fallback_score: float | None = None,
    ) -> list[CanonicalMarker]:
        """Fuse source lists into canonical markers.

        Args:
            sources: Source lists, highest priority first.
            fallback: Source consulted only when every list in `sources`
                produced no marker.
            fallback_score: Overall score used by sources that have no
                per-record score.

        Returns:
            Canonical markers sorted ascending by time.
        """
        score = self.options.default_score if fallback_score is None else fallback_score
        stats = FusionStats()
        accepted: list[CanonicalMarker] = []

        for source in sources:
            self._merge_source(source, accepted, score, stats)

        if not accepted and fallback is not None and fallback.records:
            stats.used_fallback = True
            self._merge_source(fallback, accepted, score, stats)

        self.last_stats = stats
        logger.debug(
            f"Fusion complete: {stats.total_accepted} markers "
            f"(accepted={_counts(stats.accepted)}, duplicates={_counts(stats.duplicates)}, "
            f"unlabeled={_counts(stats.unlabeled)}, fallback={stats.used_fallback})"
        )

        # sorted() is stable, so equal times keep priority order
        return sorted(accepted, key=lambda marker: marker.time)

    def fuse_analysis(self, analysis: AnalysisResult) -> list[CanonicalMarker]:
        """Fuse every source of an analysis result in the configured priority order."""
        sources = [read_source(analysis, kind) for kind in self.options.source_priority]
        fallback = None
        if self.options.fallback_source is not None:
            fallback = read_source(analysis, self.options.fallback_source)
        return self.fuse(
            sources,
            fallback=fallback,
            fallback_score=analysis.overall_assessment.distress_score,
        )

    def _merge_source(
        self,
        source: SourceRecords,
        accepted: list[CanonicalMarker],
        fallback_score: float,
        stats: FusionStats,
    ) -> None:
        kind = source.spec.kind
        stats.accepted.setdefault(kind, 0)

        for record in source.records:
            candidate = self._candidate(source.spec, record, fallback_score)
            if candidate is None:
                stats.unlabeled[kind] = stats.unlabeled.get(kind, 0) + 1
                continue

            window = self.options.window_for(candidate.event_type)
            if any(abs(marker.time - candidate.time) < window for marker in accepted):
                stats.duplicates[kind] = stats.duplicates.get(kind, 0) + 1
                continue

            accepted.append(candidate)
            stats.accepted[kind] += 1

    def _candidate(
        self,
        spec: SourceSpec,
        record: Mapping[str, Any],
        fallback_score: float,
    ) -> CanonicalMarker | None:
        label = spec.resolve_label(record)
        if not label:
            return None

        zone = classify_zone(label, explicit=spec.zone(record))
        score = spec.score(record, label, zone, fallback_score)

        return CanonicalMarker(
            time=spec.resolve_time(record),
            label=label,
            event_type=spec.resolve_event_type(record),
            zone=zone,
            score=max(0.0, min(100.0, score)),
            evidence=spec.resolve_evidence(record),
            source=spec.kind,
        )


def _counts(counts: dict[SourceKind, int]) -> dict[str, int]:
    return {kind.value: count for kind, count in counts.items()}


def fuse_observations(
    analysis: AnalysisResult | Mapping[str, Any] | None,
    options: FusionOptions | None = None,
) -> list[CanonicalMarker]:
    """Fuse an analysis result (model or raw mapping) into canonical markers.

    Missing analyses and malformed sections produce an empty list.
    """
    if analysis is None:
        return []
    if not isinstance(analysis, AnalysisResult):
        analysis = AnalysisResult.model_validate(dict(analysis) if isinstance(analysis, Mapping) else {})
    return FusionEngine(options).fuse_analysis(analysis)
