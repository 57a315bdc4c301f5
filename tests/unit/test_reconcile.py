"""Tests for per-role kubelet config reconciliation."""

from __future__ import annotations

import json

import pytest
from hypothesis import given
from hypothesis import strategies as st

from apicollect.errors import ReconcileError
from apicollect.reconcile import intersect, json_intersection, reconcile_kubelet_configs, role_node_from_dump_path

_A = {"kind": "KubeletConfiguration", "maxPods": 250, "podPidsLimit": 4096, "eviction": {"memory": "100Mi"}}


def _enc(obj: dict) -> bytes:
    return json.dumps(obj).encode()


class TestRoleNodeFromDumpPath:
    def test_node_level_key(self) -> None:
        assert role_node_from_dump_path("/kubeletconfig/master/node-1") == ("master", "node-1")

    def test_role_level_key_excluded(self) -> None:
        assert role_node_from_dump_path("/kubeletconfig/role/worker") is None

    def test_unrelated_and_malformed_keys(self) -> None:
        assert role_node_from_dump_path("/api/v1/nodes") is None
        assert role_node_from_dump_path("/kubeletconfig/worker") is None
        assert role_node_from_dump_path("/kubeletconfig/worker/n1/extra") is None

    def test_empty_role(self) -> None:
        assert role_node_from_dump_path("/kubeletconfig//n1") == ("", "n1")


class TestIntersection:
    def test_drops_differing_and_missing_members(self) -> None:
        b = {**_A, "maxPods": 500, "extra": True}
        assert intersect(_A, b) == {k: v for k, v in _A.items() if k != "maxPods"}

    def test_nested_objects_intersected(self) -> None:
        a = {"eviction": {"memory": "100Mi", "nodefs": "10%"}}
        b = {"eviction": {"memory": "100Mi", "nodefs": "5%"}}
        assert intersect(a, b) == {"eviction": {"memory": "100Mi"}}

    def test_json_intersection_bytes(self) -> None:
        assert json.loads(json_intersection(b'{"a": 1, "b": 2}', b'{"b": 2, "a": 3}')) == {"b": 2}

    def test_json_intersection_rejects_non_objects(self) -> None:
        with pytest.raises(ReconcileError):
            json_intersection(b"[1]", b"{}")

    @given(
        st.dictionaries(st.sampled_from("abcdef"), st.integers(0, 3)),
        st.dictionaries(st.sampled_from("abcdef"), st.integers(0, 3)),
    )
    def test_intersection_is_symmetric_and_idempotent(self, a: dict, b: dict) -> None:
        result = intersect(a, b)
        assert result == intersect(b, a)
        assert intersect(result, result) == result
        assert all(a[k] == b[k] == v for k, v in result.items())


class TestReconcileKubeletConfigs:
    def test_divergent_node_yields_intersection_and_one_warning(self) -> None:
        found = {
            "/kubeletconfig/worker/worker-c": _enc({**_A, "maxPods": 500}),
            "/kubeletconfig/worker/worker-a": _enc(_A),
            "/kubeletconfig/worker/worker-b": _enc(_A),
        }

        result, warnings = reconcile_kubelet_configs(found, [])

        expected = {k: v for k, v in _A.items() if k != "maxPods"}
        assert json.loads(result["/kubeletconfig/role/worker"]) == expected
        assert len(warnings) == 1
        assert warnings[0].startswith("Kubelet configs for worker-c are not consistent with role worker")
        assert "maxPods" in warnings[0]

    def test_consistent_nodes_keep_original_bytes(self) -> None:
        raw = _enc(_A)
        found = {"/kubeletconfig/master/m1": raw, "/kubeletconfig/master/m2": _enc(dict(reversed(_A.items())))}
        result, warnings = reconcile_kubelet_configs(found, ["earlier"])
        assert result["/kubeletconfig/role/master"] == raw
        assert warnings == ["earlier"]

    def test_baseline_is_lexicographically_first_node(self) -> None:
        found = {
            "/kubeletconfig/worker/b": _enc({**_A, "maxPods": 1}),
            "/kubeletconfig/worker/a": _enc(_A),
        }
        _, warnings = reconcile_kubelet_configs(found, [])
        assert warnings[0].startswith("Kubelet configs for b ")

    def test_roles_are_independent(self) -> None:
        found = {
            "/kubeletconfig/master/m1": _enc({**_A, "maxPods": 100}),
            "/kubeletconfig/worker/w1": _enc(_A),
        }
        result, warnings = reconcile_kubelet_configs(found, [])
        assert json.loads(result["/kubeletconfig/role/master"])["maxPods"] == 100
        assert json.loads(result["/kubeletconfig/role/worker"])["maxPods"] == 250
        assert warnings == []

    def test_empty_role_dropped_silently(self) -> None:
        result, warnings = reconcile_kubelet_configs({"/kubeletconfig//n1": _enc(_A)}, [])
        assert "/kubeletconfig/role/" not in result
        assert warnings == []

    def test_inputs_not_mutated_and_other_entries_kept(self) -> None:
        found = {"/version": b"{}", "/kubeletconfig/worker/w1": _enc(_A)}
        warnings: list[str] = []
        result, _ = reconcile_kubelet_configs(found, warnings)
        assert set(found) == {"/version", "/kubeletconfig/worker/w1"}
        assert set(result) == {"/version", "/kubeletconfig/worker/w1", "/kubeletconfig/role/worker"}

    def test_rerun_on_result_is_stable(self) -> None:
        found = {"/kubeletconfig/worker/w1": _enc(_A), "/kubeletconfig/worker/w2": _enc({**_A, "maxPods": 1})}
        once, warnings = reconcile_kubelet_configs(found, [])
        twice, _ = reconcile_kubelet_configs(once, warnings)
        assert twice == once

    def test_non_json_config_is_an_error(self) -> None:
        with pytest.raises(ReconcileError):
            reconcile_kubelet_configs({"/kubeletconfig/worker/w1": b"<xml/>"}, [])
