from collections import Counter
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Sequence

from dbtunnel.canonical.property import PropertySchema
from dbtunnel.config.settings import InferenceLimits
from dbtunnel.inference.type_inference import (
    GENERIC_ARRAY,
    classify_value,
    join_union,
)


NUMERIC_LABELS = ("integer", "long", "decimal", "number")


def _most_frequent(type_counts: Dict[str, int]):
    """
    (type, count) with the highest count; ties go to the smaller name
    so the choice does not depend on dict order.
    """
    return min(type_counts.items(), key=lambda kv: (-kv[1], kv[0]))


def _is_array_label(label: str) -> bool:
    return label.startswith(GENERIC_ARRAY)


class DocumentTypeAnalyzer:
    """
    Unified property schema over a sample of schema-less documents.

    Flow:
    documents -> per-value type labels -> per-property frequency tables
    -> optimal type + nullability -> PropertySchema list (sorted by name)

    Stateless: one instance may be shared across requests and threads.
    """

    def __init__(self, limits: Optional[InferenceLimits] = None):
        self.limits = limits or InferenceLimits()

    # ==================================================
    # ENTRYPOINT
    # ==================================================

    def analyze(self, documents: Sequence[Mapping]) -> List[PropertySchema]:
        type_counts: Dict[str, Counter] = {}
        presence: Counter = Counter()
        total_documents = 0

        for document in documents:
            if not isinstance(document, Mapping):
                continue
            total_documents += 1

            for name, value in document.items():
                label = self.classify(value)
                type_counts.setdefault(name, Counter())[label] += 1
                presence[name] += 1

        properties = [
            PropertySchema(
                name=name,
                json_type=self.determine_optimal_type(counts, total_documents),
                nullable=presence[name] < total_documents or "null" in counts,
            )
            for name, counts in type_counts.items()
        ]

        return sorted(properties, key=lambda p: p.name)

    def classify(self, value: Any, depth: int = 0) -> str:
        return classify_value(value, depth, self.limits)

    # ==================================================
    # TYPE SELECTION
    # ==================================================

    def determine_optimal_type(
        self,
        type_counts: Dict[str, int],
        total_documents: int,
    ) -> str:
        """
        Choose one descriptor for a property from its type frequencies.

        Order of rules:
        1. ignore "null"; nothing left -> "null", one left -> it
        2. fold generic "array" into the most frequent array<T>
        3. a type seen in >= dominance_threshold of documents wins
        4. several numeric types -> most general one
        5. otherwise a sorted union
        """
        non_null = {
            label: count
            for label, count in type_counts.items()
            if label != "null" and count > 0
        }

        if not non_null:
            return "null"

        if len(non_null) == 1:
            return next(iter(non_null))

        non_null = self._consolidate_arrays(non_null)
        if len(non_null) == 1:
            return next(iter(non_null))

        dominant, dominant_count = _most_frequent(non_null)
        if total_documents > 0 and (
            dominant_count / total_documents >= self.limits.dominance_threshold
        ):
            return dominant

        numeric = [label for label in NUMERIC_LABELS if label in non_null]
        if len(numeric) > 1:
            if "decimal" in non_null or "number" in non_null:
                return "number"
            if "long" in non_null:
                return "long"
            return "integer"

        return join_union(non_null)

    def _consolidate_arrays(self, type_counts: Dict[str, int]) -> Dict[str, int]:
        if GENERIC_ARRAY not in type_counts:
            return type_counts

        specific = {
            label: count
            for label, count in type_counts.items()
            if _is_array_label(label) and label != GENERIC_ARRAY
        }
        if not specific:
            return type_counts

        target, _ = _most_frequent(specific)
        merged = dict(type_counts)
        merged[target] += merged.pop(GENERIC_ARRAY)
        return merged


def analyze_documents(
    documents: Sequence[Mapping],
    limits: Optional[InferenceLimits] = None,
) -> List[PropertySchema]:
    return DocumentTypeAnalyzer(limits).analyze(documents)
