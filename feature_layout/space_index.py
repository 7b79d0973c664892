"""
Hierarchical space-type index assignment for layout forests.

Every node gets a dotted path such as ``"1.2.1"``: one segment per tree level,
each segment being the node's rank among its siblings of the same space type.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from .models import LayoutNode

logger = logging.getLogger(__name__)

CHILD_SPACE_TYPE_PRIORITY = {
    "Primary Bedroom": 1,
    "Bedroom": 2,
    "Primary Bathroom": 3,
    "Full Bathroom": 4,
    "Half Bathroom / Powder Room": 5,
    "Living Area": 6,
    "Kitchen": 7,
}

DEFAULT_PRIORITY = 100

NUMBERING_MODES = ("space_type", "sibling")


class SpaceIndexCycleError(ValueError):
    """Raised when parent links loop back on themselves"""

    def __init__(self, cycle: List[str]):
        self.cycle = cycle
        super().__init__(f"Layout parent links form a cycle: {' -> '.join(cycle)}")


def space_type_priority(space_type: str) -> int:
    return CHILD_SPACE_TYPE_PRIORITY.get(space_type, DEFAULT_PRIORITY)


def _local_id(node):
    if isinstance(node, dict):
        return node.get("local_id")
    return getattr(node, "local_id", None)


def _parent_id(node):
    if isinstance(node, dict):
        return node.get("parent_local_id")
    return getattr(node, "parent_local_id", None)


def _record(node) -> Optional[dict]:
    record = node.get("record") if isinstance(node, dict) else getattr(node, "record", None)
    return record if isinstance(record, dict) else None


def _space_type(node) -> str:
    record = _record(node)
    return (record.get("space_type") if record else None) or "Unknown"


def _find_cycle(node_by_id: Dict[str, object]) -> Optional[List[str]]:
    state = {}
    for start in sorted(node_by_id):
        path = []
        current = start
        while current in node_by_id and current not in state:
            state[current] = start
            path.append(current)
            current = _parent_id(node_by_id[current])
        if current in node_by_id and state.get(current) == start:
            return path[path.index(current):] + [current]
    return None


def assign_space_type_indexes(nodes: Sequence[LayoutNode], numbering: str = "space_type"):
    """
    Set ``record["space_type_index"]`` on every node in place.

    Roots are nodes without a parent or whose parent id is not in ``nodes``;
    "Building" roots come first, remaining ties break on ``local_id``.
    Children are grouped by space type, groups ordered by
    ``CHILD_SPACE_TYPE_PRIORITY`` then name, members by ``local_id``.

    Any depth is supported; the walk is depth-first over an explicit stack.

    With ``numbering="sibling"`` children are numbered continuously across the
    ordered groups instead of restarting at 1 for every space type.

    Raises:
        SpaceIndexCycleError: parent links contain a cycle
    """
    if numbering not in NUMBERING_MODES:
        raise ValueError(f"Unknown numbering mode {numbering!r}, expected one of {NUMBERING_MODES}")
    if not nodes:
        return

    node_by_id = {}
    for node in nodes:
        local_id = _local_id(node)
        record = _record(node)
        if local_id is None or record is None:
            continue
        node_by_id[local_id] = node
        record["space_type_index"] = None

    cycle = _find_cycle(node_by_id)
    if cycle:
        raise SpaceIndexCycleError(cycle)

    children_by_parent = defaultdict(list)
    root_ids = []
    for local_id, node in node_by_id.items():
        parent_id = _parent_id(node)
        if parent_id and parent_id in node_by_id:
            children_by_parent[parent_id].append(local_id)
        else:
            if parent_id:
                logger.warning(f"Layout {local_id} references unknown parent {parent_id}, treating as root")
            root_ids.append(local_id)

    root_ids.sort(key=lambda rid: (_space_type(node_by_id[rid]) != "Building", rid))

    def ordered_children(node_id: str, parent_path: List[str]):
        groups = defaultdict(list)
        for child_id in children_by_parent.get(node_id, []):
            groups[_space_type(node_by_id[child_id])].append(child_id)

        sibling_counter = 0
        for space_type in sorted(groups, key=lambda st: (space_type_priority(st), st)):
            type_counter = 0
            for child_id in sorted(groups[space_type]):
                type_counter += 1
                sibling_counter += 1
                segment = type_counter if numbering == "space_type" else sibling_counter
                yield child_id, parent_path + [str(segment)]

    # explicit stack, so chain depth is not bounded by the recursion limit
    for position, root_id in enumerate(root_ids, start=1):
        _record(node_by_id[root_id])["space_type_index"] = str(position)
        stack = [(root_id, [str(position)])]
        while stack:
            node_id, path = stack.pop()
            children = list(ordered_children(node_id, path))
            for child_id, child_path in children:
                _record(node_by_id[child_id])["space_type_index"] = ".".join(child_path)
            stack.extend(reversed(children))

    logger.debug(f"Assigned space type indexes to {len(node_by_id)} layouts ({len(root_ids)} roots)")
