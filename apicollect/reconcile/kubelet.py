"""Per-role kubelet config consistency.

Every node's kubelet config is fetched under ``/kubeletconfig/<role>/<node>``.
For the scanner each role needs a single config, stored under
``/kubeletconfig/role/<role>``.  Nodes of a role are folded in name order: the
first is the baseline and each later node is diffed against it.  A node that
differs produces a warning and shrinks the baseline to the keys both agree on.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import jsonpatch

from apicollect.errors import ReconcileError
from apicollect.models.resources import (
    KUBELET_CONFIG_PATH_PREFIX,
    KUBELET_CONFIG_ROLE_PATH_PREFIX,
    NOT_FOUND_MARKER_PREFIX,
)
from apicollect.observability.logging import Logger, resolve_logger


def role_node_from_dump_path(dump_path: str) -> tuple[str, str] | None:
    """Split ``/kubeletconfig/<role>/<node>`` into (role, node).

    Role-level keys and anything not shaped like a node-level key give None.
    """
    if not dump_path.startswith(KUBELET_CONFIG_PATH_PREFIX) or dump_path.startswith(KUBELET_CONFIG_ROLE_PATH_PREFIX):
        return None
    parts = dump_path.split("/")
    if len(parts) != 4:
        return None
    return parts[2], parts[3]


def intersect(a: Any, b: Any) -> Any:
    """Members of *a* also present, and equal, in *b*.

    Objects present on both sides but unequal are intersected recursively;
    other unequal values are dropped.
    """
    result: dict[str, Any] = {}
    for key, value in a.items():
        if key not in b:
            continue
        other = b[key]
        if value == other:
            result[key] = value
        elif isinstance(value, dict) and isinstance(other, dict):
            result[key] = intersect(value, other)
    return result


def _load_object(raw: bytes, node: str) -> dict[str, Any]:
    try:
        obj = json.loads(raw)
    except ValueError as exc:
        raise ReconcileError(f"couldn't compare kubelet configs: {exc} for {node}") from exc
    if not isinstance(obj, dict):
        raise ReconcileError(f"couldn't compare kubelet configs: not a JSON object for {node}")
    return obj


def json_intersection(a: bytes, b: bytes) -> bytes:
    """Intersection of two JSON objects, re-encoded."""
    merged = intersect(_load_object(a, "<a>"), _load_object(b, "<b>"))
    return json.dumps(merged, sort_keys=True, separators=(",", ":")).encode("utf-8")


def reconcile_kubelet_configs(
    found: Mapping[str, bytes],
    warnings: list[str],
    logger: Logger | None = None,
) -> tuple[dict[str, bytes], list[str]]:
    """Add one ``/kubeletconfig/role/<role>`` entry per role to *found*.

    Returns new (found, warnings); the inputs are not modified.  Node-level
    entries are kept.  Entries with an empty role are ignored.
    """
    log = resolve_logger(logger, "reconcile.kubelet")
    result = dict(found)
    out_warnings = list(warnings)
    if not result:
        return result, out_warnings

    by_role: dict[str, dict[str, bytes]] = {}
    for dump_path, content in result.items():
        role_node = role_node_from_dump_path(dump_path)
        if role_node is None or not role_node[0]:
            continue
        if content.startswith(NOT_FOUND_MARKER_PREFIX.encode("utf-8")):
            log.debug("kubelet_config_missing", dump_path=dump_path)
            continue
        role, node = role_node
        by_role.setdefault(role, {})[node] = content

    for role in sorted(by_role):
        nodes = by_role[role]
        baseline_node = min(nodes)
        baseline_raw = nodes[baseline_node]
        baseline = _load_object(baseline_raw, baseline_node)
        for node in sorted(nodes)[1:]:
            current = _load_object(nodes[node], node)
            patch = jsonpatch.make_patch(baseline, current)
            if not patch.patch:
                continue
            why = (
                f"Kubelet configs for {node} are not consistent with role {role}, "
                f"Diff: {patch.to_string()} of KubeletConfigs for {role} role will not be saved."
            )
            log.warning("kubelet_config_inconsistent", role=role, node=node, diff=patch.patch)
            out_warnings.append(why)
            baseline = intersect(baseline, current)
            baseline_raw = json.dumps(baseline, sort_keys=True, separators=(",", ":")).encode("utf-8")
        result[KUBELET_CONFIG_ROLE_PATH_PREFIX + role] = baseline_raw
    return result, out_warnings
