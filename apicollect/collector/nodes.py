"""Node role discovery and per-node kubelet config paths."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from apicollect.collector.client import ClusterClient
from apicollect.errors import FetchError
from apicollect.models.resources import (
    KUBELET_CONFIG_FILTER,
    KUBELET_CONFIG_PATH_PREFIX,
    NodeRoleIndex,
    ResourcePath,
)
from apicollect.observability.logging import Logger, resolve_logger

NODE_ROLE_LABEL_PREFIX = "node-role.kubernetes.io/"

# Node-level kubelet keys for this role would land in the per-role namespace.
RESERVED_ROLE = "role"


def node_roles(labels: Mapping[str, str] | None) -> list[str]:
    """Roles named by ``node-role.kubernetes.io/<role>`` label keys, sorted."""
    if not labels:
        return []
    return sorted(key[len(NODE_ROLE_LABEL_PREFIX) :] for key in labels if key.startswith(NODE_ROLE_LABEL_PREFIX))


def build_role_index(nodes: Iterable[Mapping[str, object]], logger: Logger | None = None) -> NodeRoleIndex:
    """Group node names by role.  Both levels come out sorted.

    Nodes labelled with the reserved role name are left out of that role.
    """
    log = resolve_logger(logger, "collector.nodes")
    index: dict[str, set[str]] = {}
    for node in nodes:
        metadata = node.get("metadata") or {}
        if not isinstance(metadata, Mapping):
            continue
        name = str(metadata.get("name") or "")
        if not name:
            continue
        labels = metadata.get("labels")
        for role in node_roles(labels if isinstance(labels, Mapping) else None):
            if role == RESERVED_ROLE:
                log.warning("node_role_reserved", node=name, role=role)
                continue
            index.setdefault(role, set()).add(name)
    return {role: sorted(index[role]) for role in sorted(index)}


async def fetch_nodes_with_role(client: ClusterClient, logger: Logger | None = None) -> NodeRoleIndex:
    """List cluster nodes and index them by role."""
    log = resolve_logger(logger, "collector.nodes")
    try:
        nodes = await client.list_nodes()
    except Exception as exc:
        log.error("node_list_failed", error=str(exc))
        raise FetchError(f"failed to list nodes: {exc}") from exc
    index = build_role_index(nodes, logger=log)
    log.debug("node_roles_indexed", roles={role: len(names) for role, names in index.items()})
    return index


def kubelet_config_paths(index: NodeRoleIndex) -> list[ResourcePath]:
    """One kubelet ``configz`` path per (role, node) pair."""
    return [
        ResourcePath(
            obj_path=f"/api/v1/nodes/{node}/proxy/configz",
            dump_path=f"{KUBELET_CONFIG_PATH_PREFIX}{role}/{node}",
            filter=KUBELET_CONFIG_FILTER,
        )
        for role, nodes in index.items()
        for node in nodes
    ]
