"""Cross-node reconciliation of fetched kubelet configs."""

from apicollect.reconcile.kubelet import (
    intersect,
    json_intersection,
    reconcile_kubelet_configs,
    role_node_from_dump_path,
)

__all__ = [
    "intersect",
    "json_intersection",
    "reconcile_kubelet_configs",
    "role_node_from_dump_path",
]
