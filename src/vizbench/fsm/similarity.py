"""FSM graph similarity scoring.

Two FSM definitions are normalized into a common graph form and compared
along three axes:

- structural: node and edge counts, degree distribution and density
- semantic: state categories, event types, action vocabulary and metadata
- isomorphism: whether both graphs share the same canonical signature

The combined score weights these 0.4 / 0.4 / 0.2.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from ..constants import (
    ISOMORPHISM_WEIGHT,
    MAX_COMPLEXITY_SCORE,
    RECOMMENDATION_THRESHOLD,
    SEMANTIC_WEIGHT,
    SIGNIFICANT_COUNT_DIFFERENCE,
    STRUCTURAL_WEIGHT,
)
from ..errors import SimilarityError

logger = logging.getLogger(__name__)

# Keyword rules, checked in order; first match wins
STATE_CATEGORY_RULES: list[tuple[str, tuple[str, ...]]] = [
    ("initial", ("idle", "initial", "start")),
    ("error", ("error", "alert", "fail")),
    ("validation", ("validating", "input")),
    ("action", ("inserting", "adding", "removing")),
    ("display", ("drawing", "updating", "display")),
    ("final", ("resetting", "done", "complete")),
]

EVENT_TYPE_RULES: list[tuple[str, tuple[str, ...]]] = [
    ("user_action", ("click", "user")),
    ("system_event", ("complete", "success", "fail")),
    ("timer_event", ("timeout", "timer")),
]


@dataclass
class FsmNode:
    """A normalized FSM state."""

    id: str
    label: str
    type: str = "atomic"
    entry_actions: list[str] = field(default_factory=list)
    exit_actions: list[str] = field(default_factory=list)
    semantic_category: str = "atomic"
    action_count: int = 0
    has_guards: bool = False
    complexity_score: float = 1.0
    in_degree: int = 0
    out_degree: int = 0
    centrality_score: float = 0.0

    @property
    def degree(self) -> int:
        return self.in_degree + self.out_degree


@dataclass
class FsmEdge:
    """A normalized FSM transition."""

    source: str
    target: str
    event: str = ""
    guard: str = ""
    actions: list[str] = field(default_factory=list)
    expected_observables: list[str] = field(default_factory=list)
    timeout: float = 0
    event_type: str = "unknown"
    has_guard: bool = False
    action_count: int = 0
    complexity_score: float = 1.0


@dataclass
class NormalizedFsm:
    """Graph view of an FSM definition."""

    nodes: list[FsmNode]
    edges: list[FsmEdge]
    metadata: dict[str, Any]

    def category_distribution(self) -> dict[str, int]:
        return dict(Counter(node.semantic_category for node in self.nodes))

    def to_dict(self) -> dict:
        return {
            "nodes": [
                {
                    "id": n.id,
                    "label": n.label,
                    "type": n.type,
                    "entry_actions": n.entry_actions,
                    "exit_actions": n.exit_actions,
                    "attributes": {
                        "semantic_category": n.semantic_category,
                        "action_count": n.action_count,
                        "has_guards": n.has_guards,
                        "complexity_score": n.complexity_score,
                        "in_degree": n.in_degree,
                        "out_degree": n.out_degree,
                        "centrality_score": n.centrality_score,
                    },
                }
                for n in self.nodes
            ],
            "edges": [
                {
                    "from": e.source,
                    "to": e.target,
                    "event": e.event,
                    "guard": e.guard,
                    "actions": e.actions,
                    "expected_observables": e.expected_observables,
                    "timeout": e.timeout,
                    "attributes": {
                        "event_type": e.event_type,
                        "has_guard": e.has_guard,
                        "action_count": e.action_count,
                        "complexity_score": e.complexity_score,
                    },
                }
                for e in self.edges
            ],
            "metadata": self.metadata,
        }


# -- Classification ------------------------------------------------------------


def categorize_state(name: str) -> str:
    """Map a state name to a semantic category by keyword."""
    lowered = (name or "").lower()
    for category, keywords in STATE_CATEGORY_RULES:
        if any(k in lowered for k in keywords):
            return category
    return "atomic"


def classify_event(event: str | None) -> str:
    """Map an event name to user_action, system_event, timer_event or unknown."""
    if not event:
        return "unknown"
    lowered = event.lower()
    for event_type, keywords in EVENT_TYPE_RULES:
        if any(k in lowered for k in keywords):
            return event_type
    return "unknown"


def state_complexity(entry_actions: list, exit_actions: list) -> float:
    score = 1 + 0.5 * len(entry_actions) + 0.5 * len(exit_actions)
    return min(score, MAX_COMPLEXITY_SCORE)


def transition_complexity(transition: dict) -> float:
    score = 1.0
    if transition.get("guard"):
        score += 1
    score += 0.5 * len(transition.get("actions") or [])
    score += 0.3 * len(transition.get("expected_observables") or [])
    return min(score, MAX_COMPLEXITY_SCORE)


# -- Normalization -------------------------------------------------------------


def _as_list(value: Any) -> list:
    if isinstance(value, list):
        return value
    if value in (None, "", {}):
        return []
    return [value]


def _state_records(fsm: dict) -> list[tuple[str, dict]]:
    """Return (key, state) pairs for list- or mapping-shaped state definitions."""
    states = fsm.get("states")
    if isinstance(states, list):
        records = []
        for state in states:
            if isinstance(state, dict):
                key = state.get("id") or state.get("name") or state.get("label") or ""
                records.append((str(key), state))
        return records
    if isinstance(states, dict):
        return [(str(k), v if isinstance(v, dict) else {}) for k, v in states.items()]
    return []


def _transitions(fsm: dict, records: list[tuple[str, dict]]) -> list[dict]:
    transitions = fsm.get("transitions")
    if isinstance(transitions, list):
        return [t for t in transitions if isinstance(t, dict)]

    derived = []
    for key, state in records:
        handlers = state.get("on") or state.get("transitions") or {}
        if not isinstance(handlers, dict):
            continue
        for event, target in handlers.items():
            if isinstance(target, str):
                derived.append(
                    {"from": key, "to": target, "event": event, "guard": "", "actions": []}
                )
            elif isinstance(target, dict):
                derived.append(
                    {
                        "from": key,
                        "to": target.get("target") or target.get("to"),
                        "event": event,
                        "guard": target.get("cond") or target.get("guard") or "",
                        "actions": _as_list(target.get("actions")),
                        "timeout": target.get("timeout") or 0,
                    }
                )
    return derived


def normalize_fsm(fsm: dict) -> NormalizedFsm:
    """Convert an FSM definition into nodes, edges and metadata.

    Accepts states either as a list of objects or as a mapping keyed by state id.
    Transitions come from a top-level list when present, otherwise from each
    state's ``on`` or ``transitions`` handlers.

    Raises:
        SimilarityError: If the definition is not a JSON object.
    """
    if not isinstance(fsm, dict):
        raise SimilarityError(f"FSM must be a JSON object, got {type(fsm).__name__}")
    meta = fsm.get("meta") if isinstance(fsm.get("meta"), dict) else {}
    metadata = {
        "concept": meta.get("concept") or fsm.get("concept") or "",
        "topic": meta.get("topic") or fsm.get("topic") or "",
        "educational_goal": meta.get("educational_goal") or "",
        "expected_interactions": meta.get("expected_interactions") or [],
    }

    records = _state_records(fsm)
    mapping_shaped = isinstance(fsm.get("states"), dict)

    nodes = []
    for key, state in records:
        state_meta = state.get("meta") if isinstance(state.get("meta"), dict) else {}
        entry = _as_list(state.get("entry_actions") or state.get("onEnter"))
        exit_ = _as_list(state.get("exit_actions") or state.get("onExit"))
        if mapping_shaped:
            node_id = state.get("id") or key
            label = state.get("label") or state_meta.get("label") or key
            category_source = label
            counted_entry, counted_exit = entry, exit_
        else:
            # onEnter/onExit are kept as actions but not counted for list-shaped states
            node_id = key
            label = state.get("label") or state.get("name") or state.get("id") or ""
            category_source = state.get("label") or node_id
            counted_entry = _as_list(state.get("entry_actions"))
            counted_exit = _as_list(state.get("exit_actions"))
        nodes.append(
            FsmNode(
                id=str(node_id),
                label=str(label),
                type=state.get("type") or "atomic",
                entry_actions=entry,
                exit_actions=exit_,
                semantic_category=categorize_state(str(category_source)),
                action_count=len(counted_entry) + len(counted_exit),
                complexity_score=state_complexity(counted_entry, counted_exit),
            )
        )

    edges = []
    for transition in _transitions(fsm, records):
        actions = _as_list(transition.get("actions"))
        guard = transition.get("guard") or ""
        edges.append(
            FsmEdge(
                source=str(transition.get("from") or ""),
                target=str(transition.get("to") or ""),
                event=transition.get("event") or "",
                guard=str(guard),
                actions=actions,
                expected_observables=_as_list(transition.get("expected_observables")),
                timeout=transition.get("timeout") or 0,
                event_type=classify_event(transition.get("event")),
                has_guard=bool(guard),
                action_count=len(actions),
                complexity_score=transition_complexity(transition),
            )
        )

    for node in nodes:
        outgoing = [e for e in edges if e.source == node.id]
        node.in_degree = sum(1 for e in edges if e.target == node.id)
        node.out_degree = len(outgoing)
        node.has_guards = any(e.has_guard for e in outgoing)
        node.centrality_score = node.degree / max(1, len(edges))

    return NormalizedFsm(nodes=nodes, edges=edges, metadata=metadata)


# -- Structural similarity -----------------------------------------------------


def _count_similarity(a: int, b: int) -> float:
    return 1 - abs(a - b) / max(a, b, 1)


def _density(fsm: NormalizedFsm) -> float:
    n = len(fsm.nodes)
    return len(fsm.edges) / max(1, n * (n - 1))


def degree_distribution_similarity(a: NormalizedFsm, b: NormalizedFsm) -> float:
    dist_a = Counter(node.degree for node in a.nodes)
    dist_b = Counter(node.degree for node in b.nodes)
    degrees = set(dist_a) | set(dist_b)
    if not degrees:
        return 1.0
    total = max(len(a.nodes), len(b.nodes), 1)
    return sum(1 - abs(dist_a[d] - dist_b[d]) / total for d in degrees) / len(degrees)


def structural_similarity(a: NormalizedFsm, b: NormalizedFsm) -> dict[str, float]:
    node_sim = _count_similarity(len(a.nodes), len(b.nodes))
    edge_sim = _count_similarity(len(a.edges), len(b.edges))
    degree_sim = degree_distribution_similarity(a, b)
    density_sim = 1 - abs(_density(a) - _density(b))
    return {
        "node_count_similarity": node_sim,
        "edge_count_similarity": edge_sim,
        "degree_distribution_similarity": degree_sim,
        "density_similarity": density_sim,
        "overall": (node_sim + edge_sim + degree_sim + density_sim) / 4,
    }


# -- Semantic similarity -------------------------------------------------------


def _histogram_overlap(a: Counter, b: Counter, empty: float) -> float:
    keys = set(a) | set(b)
    if not keys:
        return empty
    return sum(min(a[k], b[k]) / max(a[k], b[k], 1) for k in keys) / len(keys)


def _jaccard(a: set, b: set) -> float:
    union = a | b
    if not union:
        return 1.0
    return len(a & b) / len(union)


def _action_vocabulary(fsm: NormalizedFsm) -> set[str]:
    actions = set()
    for node in fsm.nodes:
        for action in node.entry_actions + node.exit_actions:
            actions.add(str(action).lower().strip())
    for edge in fsm.edges:
        for action in edge.actions:
            actions.add(str(action).lower().strip())
    return actions


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance between two strings."""
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
        previous = current
    return previous[-1]


def string_similarity(a: str, b: str) -> float:
    """1 minus the case-insensitive edit distance over the longer length."""
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return 1 - edit_distance(a.lower(), b.lower()) / max(len(a), len(b))


def metadata_similarity(a: dict, b: dict) -> float:
    concept = string_similarity(str(a.get("concept") or ""), str(b.get("concept") or ""))
    topic = string_similarity(str(a.get("topic") or ""), str(b.get("topic") or ""))
    goal = string_similarity(
        str(a.get("educational_goal") or ""), str(b.get("educational_goal") or "")
    )
    interactions = _jaccard(
        {str(i) for i in a.get("expected_interactions") or []},
        {str(i) for i in b.get("expected_interactions") or []},
    )
    return (concept + topic + goal + interactions) / 4


def semantic_similarity(a: NormalizedFsm, b: NormalizedFsm) -> dict[str, float]:
    category_sim = _histogram_overlap(
        Counter(n.semantic_category for n in a.nodes),
        Counter(n.semantic_category for n in b.nodes),
        empty=1.0,
    )
    event_sim = _histogram_overlap(
        Counter(e.event_type for e in a.edges),
        Counter(e.event_type for e in b.edges),
        empty=1.0,
    )
    action_sim = _jaccard(_action_vocabulary(a), _action_vocabulary(b))
    meta_sim = metadata_similarity(a.metadata, b.metadata)
    return {
        "state_category_similarity": category_sim,
        "event_type_similarity": event_sim,
        "action_similarity": action_sim,
        "metadata_similarity": meta_sim,
        "overall": (category_sim + event_sim + action_sim + meta_sim) / 4,
    }


# -- Isomorphism ---------------------------------------------------------------


def canonical_signature(fsm: NormalizedFsm) -> str:
    """Label-independent signature: nodes by degree, then sorted edge kinds."""
    ordered = sorted(fsm.nodes, key=lambda n: (-n.degree, n.label))
    node_part = ",".join(f"{n.semantic_category}:{n.in_degree}-{n.out_degree}" for n in ordered)
    edge_part = ",".join(
        sorted(f"{e.event_type}:{'true' if e.has_guard else 'false'}" for e in fsm.edges)
    )
    return f"{node_part}|{edge_part}"


def isomorphism_similarity(a: NormalizedFsm, b: NormalizedFsm) -> float:
    return 1.0 if canonical_signature(a) == canonical_signature(b) else 0.0


# -- Reporting -----------------------------------------------------------------


def interpret_similarity(score: float) -> str:
    if score >= 0.9:
        return "Very High - FSMs are nearly identical"
    if score >= 0.7:
        return "High - FSMs are quite similar"
    if score >= 0.5:
        return "Medium - FSMs have some similarities"
    if score >= 0.3:
        return "Low - FSMs have few similarities"
    return "Very Low - FSMs are quite different"


def key_differences(a: NormalizedFsm, b: NormalizedFsm) -> list[str]:
    differences = []
    if abs(len(a.nodes) - len(b.nodes)) > SIGNIFICANT_COUNT_DIFFERENCE:
        differences.append(
            f"State count differs significantly: {len(a.nodes)} vs {len(b.nodes)}"
        )
    if abs(len(a.edges) - len(b.edges)) > SIGNIFICANT_COUNT_DIFFERENCE:
        differences.append(
            f"Transition count differs significantly: {len(a.edges)} vs {len(b.edges)}"
        )
    present = b.category_distribution()
    missing = [c for c in a.category_distribution() if c not in present]
    if missing:
        differences.append(f"Missing state categories: {', '.join(missing)}")
    return differences


def recommendations(structural: dict[str, float], semantic: dict[str, float]) -> list[str]:
    advice = []
    if structural["overall"] < RECOMMENDATION_THRESHOLD:
        advice.append(
            "Consider adjusting the number of states and transitions to match the ideal structure"
        )
    if semantic["state_category_similarity"] < RECOMMENDATION_THRESHOLD:
        advice.append("Review state categorization - some important state types may be missing")
    if semantic["action_similarity"] < RECOMMENDATION_THRESHOLD:
        advice.append("Actions and behaviors could be more aligned with the ideal FSM")
    if semantic["event_type_similarity"] < RECOMMENDATION_THRESHOLD:
        advice.append("Event types and interactions could better match the expected pattern")
    return advice


def _stats(fsm: NormalizedFsm) -> dict:
    return {
        "nodes": len(fsm.nodes),
        "edges": len(fsm.edges),
        "concept": fsm.metadata["concept"],
        "categories": fsm.category_distribution(),
    }


def compare_fsms(fsm_a: dict, fsm_b: dict) -> dict:
    """Compare two FSM definitions.

    Args:
        fsm_a: The FSM under evaluation.
        fsm_b: The reference FSM.

    Returns:
        Dict with structural, semantic and isomorphism similarity, the combined
        score, a summary (0-100 score, interpretation, differences, advice) and
        per-FSM details.

    Raises:
        SimilarityError: If either definition cannot be normalized or scored.
    """
    try:
        norm_a = normalize_fsm(fsm_a)
        norm_b = normalize_fsm(fsm_b)
        structural = structural_similarity(norm_a, norm_b)
        semantic = semantic_similarity(norm_a, norm_b)
        isomorphism = isomorphism_similarity(norm_a, norm_b)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise SimilarityError(f"FSM comparison failed: {e}") from e

    combined = (
        structural["overall"] * STRUCTURAL_WEIGHT
        + semantic["overall"] * SEMANTIC_WEIGHT
        + isomorphism * ISOMORPHISM_WEIGHT
    )
    logger.debug("FSM comparison combined=%.3f", combined)

    return {
        "structural_similarity": structural,
        "semantic_similarity": semantic,
        "isomorphism_similarity": isomorphism,
        "combined_similarity": combined,
        "summary": {
            "score": math.floor(combined * 100 + 0.5),
            "interpretation": interpret_similarity(combined),
            "key_differences": key_differences(norm_a, norm_b),
            "recommendations": recommendations(structural, semantic),
        },
        "details": {
            "fsm1_stats": _stats(norm_a),
            "fsm2_stats": _stats(norm_b),
            "raw_fsm1": norm_a.to_dict(),
            "raw_fsm2": norm_b.to_dict(),
        },
    }
