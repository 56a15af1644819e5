# smart_form_predictor/core/relationship_graph.py
"""
RelationshipGraph
-----------------
Learns how fields relate to each other across submitted sessions.

Three kinds of relation are counted:
 - co-occurrence   "A-B"   both fields present in the same session
 - temporal        "A->B"  B recorded right after A (key order of the session)
 - value dependency, named checks over two values, e.g. "username->email"
   when the e-mail local part equals the username

Nodes and edges are append-only. Adding an edge that already exists is a
no-op for the edge table but still makes sure both nodes exist.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set

logger = logging.getLogger(__name__)

Session = Mapping[str, Any]
DependencyCheck = Callable[[Session], bool]

# inferred node types, first match wins
TYPE_PATTERNS = (
    ("email", ("email", "mail")),
    ("phone", ("phone", "tel", "mobile")),
    ("date", ("date", "birthday", "dob")),
    ("name", ("name", "first", "last")),
    ("address", ("address", "street", "addr")),
    ("city", ("city",)),
    ("zip", ("zip", "postal")),
    ("country", ("country",)),
    ("number", ("number", "count", "qty")),
)


def infer_field_type(field_name: str) -> str:
    lowered = field_name.lower()
    for kind, patterns in TYPE_PATTERNS:
        if any(p in lowered for p in patterns):
            return kind
    return "text"


def _email_local_part(session: Session) -> Optional[str]:
    email = session.get("email")
    if not isinstance(email, str) or not email:
        return None
    return email.split("@")[0]


def _username_matches_email(session: Session) -> bool:
    local = _email_local_part(session)
    username = session.get("username")
    return local is not None and bool(username) and local == username


def _first_name_matches_email(session: Session) -> bool:
    local = _email_local_part(session)
    first = session.get("firstName")
    return local is not None and isinstance(first, str) and bool(first) and local.lower() == first.lower()


@dataclass
class GraphNode:
    name: str
    inferred_type: str
    connections: Set[str] = field(default_factory=set)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.inferred_type, "connections": sorted(self.connections)}


@dataclass
class GraphEdge:
    from_field: str
    to_field: str
    relation: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"from": self.from_field, "to": self.to_field, **self.relation}


class RelationshipGraph:
    """
    Public API:
        discover(history) -> {"cooccurrence", "temporal_relations", "value_dependencies"}
        add_node(name), add_edge(a, b, relation)
        add_dependency(name, check)
        related_fields(name), strongest_successor(name)
    """

    def __init__(self):
        self.nodes: Dict[str, GraphNode] = {}
        self.edges: Dict[str, GraphEdge] = {}

        # running totals across every discover() call
        self.cooccurrence: Counter = Counter()
        self.temporal_relations: Counter = Counter()
        self.value_dependencies: Counter = Counter()

        self._dependency_checks: Dict[str, DependencyCheck] = {
            "username->email": _username_matches_email,
            "firstName->email": _first_name_matches_email,
        }

    # Discovery -----------------------------------------------------------------
    def discover(self, history: Iterable[Session]) -> Dict[str, Dict[str, int]]:
        sessions = list(history)
        cooc = self.calculate_cooccurrence(sessions)
        temporal = self.analyze_temporal_patterns(sessions)
        deps = self.find_value_dependencies(sessions)

        self.cooccurrence.update(cooc)
        self.temporal_relations.update(temporal)
        self.value_dependencies.update(deps)

        for session in sessions:
            names = list(session.keys())
            for a in names:
                self.add_node(a)
                for b in names:
                    if a != b:
                        self.add_edge(a, b, {"relation": "cooccurrence"})

        return {
            "cooccurrence": cooc,
            "temporal_relations": temporal,
            "value_dependencies": deps,
        }

    @staticmethod
    def calculate_cooccurrence(history: Iterable[Session]) -> Dict[str, int]:
        matrix: Dict[str, int] = {}
        for session in history:
            names = list(session.keys())
            for a in names:
                for b in names:
                    if a != b:
                        key = f"{a}-{b}"
                        matrix[key] = matrix.get(key, 0) + 1
        return matrix

    @staticmethod
    def analyze_temporal_patterns(history: Iterable[Session]) -> Dict[str, int]:
        # key order is recording order, not necessarily the order the user filled
        patterns: Dict[str, int] = {}
        for session in history:
            names = list(session.keys())
            for a, b in zip(names, names[1:]):
                key = f"{a}->{b}"
                patterns[key] = patterns.get(key, 0) + 1
        return patterns

    def find_value_dependencies(self, history: Iterable[Session]) -> Dict[str, int]:
        deps: Dict[str, int] = {}
        for session in history:
            for name, check in self._dependency_checks.items():
                if check(session):
                    deps[name] = deps.get(name, 0) + 1
        return deps

    def add_dependency(self, name: str, check: DependencyCheck) -> None:
        """Register another named value-dependency check."""
        if not callable(check):
            raise TypeError("dependency check must be callable")
        self._dependency_checks[name] = check

    # Graph structure ---------------------------------------------------------------
    def add_node(self, field_name: str) -> GraphNode:
        node = self.nodes.get(field_name)
        if node is None:
            node = GraphNode(name=field_name, inferred_type=infer_field_type(field_name))
            self.nodes[field_name] = node
        return node

    def add_edge(self, from_field: str, to_field: str, relation: Optional[Dict[str, Any]] = None) -> None:
        src = self.add_node(from_field)
        dst = self.add_node(to_field)

        key = f"{from_field}-{to_field}"
        if key in self.edges:
            return
        self.edges[key] = GraphEdge(from_field, to_field, dict(relation or {}))
        src.connections.add(to_field)
        dst.connections.add(from_field)

    # Queries --------------------------------------------------------------------------
    def related_fields(self, field_name: str) -> List[str]:
        """Connected fields, strongest co-occurrence first (ties by name)."""
        node = self.nodes.get(field_name)
        if node is None:
            return []
        return sorted(
            node.connections,
            key=lambda other: (-self.cooccurrence.get(f"{field_name}-{other}", 0), other),
        )

    def strongest_successor(self, field_name: str) -> Optional[str]:
        """Field most often recorded right after `field_name`, first seen wins ties."""
        best, best_count = None, 0
        prefix = f"{field_name}->"
        for key, count in self.temporal_relations.items():
            if key.startswith(prefix) and count > best_count:
                best, best_count = key[len(prefix):], count
        return best

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes.values()],
            "edges": [e.to_dict() for e in self.edges.values()],
            "cooccurrence": dict(self.cooccurrence),
            "temporal_relations": dict(self.temporal_relations),
            "value_dependencies": dict(self.value_dependencies),
        }
