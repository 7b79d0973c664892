import logging
import os
from typing import List, Sequence, Tuple

from .models import LayoutNode
from .utils import write_json

logger = logging.getLogger(__name__)


def write_layout_files(nodes: Sequence[LayoutNode], out_dir: str) -> Tuple[List[str], List[str]]:
    """
    Write one layout_N.json per node and a "has_layout" relationship file for
    every child whose parent is among ``nodes``.

    Returns: (layout_files, relationship_files)
    """
    os.makedirs(out_dir, exist_ok=True)
    layout_files = []
    file_by_id = {}
    for idx, node in enumerate(nodes, start=1):
        filename = f"layout_{idx}.json"
        write_json(os.path.join(out_dir, filename), node.record)
        file_by_id[node.local_id] = (idx, filename)
        layout_files.append(filename)

    relationship_files = []
    for node in nodes:
        if not node.parent_local_id or node.parent_local_id not in file_by_id:
            continue
        parent_idx, parent_file = file_by_id[node.parent_local_id]
        child_idx, child_file = file_by_id[node.local_id]
        rel_filename = f"relationship_layout_{parent_idx}_has_layout_{child_idx}.json"
        write_json(os.path.join(out_dir, rel_filename), {
            "from": {"/": f"./{parent_file}"},
            "to": {"/": f"./{child_file}"},
        })
        relationship_files.append(rel_filename)
        logger.info(f"     📝 Created {rel_filename}")

    return layout_files, relationship_files
