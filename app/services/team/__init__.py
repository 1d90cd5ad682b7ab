"""
Team services package.

- snapshots: immutable participant views stored in the lookup cache
- hierarchy_resolver: bounded ancestor chain resolution
- path_finder: rank-aware supplier searches
"""

from app.services.team.hierarchy_resolver import TeamHierarchyResolver
from app.services.team.path_finder import SupplyChainPathFinder
from app.services.team.snapshots import (
    AncestorMatch,
    ParticipantSnapshot,
    SupplierOption,
)


__all__ = [
    "AncestorMatch",
    "ParticipantSnapshot",
    "SupplierOption",
    "SupplyChainPathFinder",
    "TeamHierarchyResolver",
]
