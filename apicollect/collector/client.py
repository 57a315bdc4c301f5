"""Cluster access for the collector.

``ClusterClient`` is the narrow surface the pipeline needs: list nodes,
GET an arbitrary API URI, and page through MachineConfigs.  API errors are
raised as ``kubernetes_asyncio`` ``ApiException`` so callers can classify
them by status; a resource type the server does not serve raises
``NoKindMatchError``.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]
from kubernetes_asyncio.client.exceptions import ApiException  # type: ignore[import-untyped]

from apicollect.errors import NoKindMatchError
from apicollect.observability.logging import Logger, resolve_logger

_MC_GROUP = "machineconfiguration.openshift.io"
_MC_VERSION = "v1"
_MC_PLURAL = "machineconfigs"

_REASONS_BY_STATUS = {
    400: "BadRequest",
    401: "Unauthorized",
    403: "Forbidden",
    404: "NotFound",
    405: "MethodNotAllowed",
    409: "Conflict",
    410: "Gone",
    422: "Invalid",
    429: "TooManyRequests",
    500: "InternalError",
    503: "ServiceUnavailable",
    504: "Timeout",
}


def reason_for_error(exc: Exception) -> str:
    """Return the Kubernetes ``Status.reason`` of an API error.

    Falls back to the canonical reason for the HTTP status, then "Unknown".
    """
    body = getattr(exc, "body", None)
    if body:
        try:
            status = json.loads(body)
        except (TypeError, ValueError):
            status = None
        if isinstance(status, dict) and status.get("reason"):
            return str(status["reason"])
    return _REASONS_BY_STATUS.get(getattr(exc, "status", None) or 0, "Unknown")


def is_not_found(exc: Exception) -> bool:
    return isinstance(exc, ApiException) and exc.status == 404


def is_forbidden(exc: Exception) -> bool:
    return isinstance(exc, ApiException) and exc.status == 403


class ClusterClient(ABC):
    """Read-only cluster operations used by discovery and fetch."""

    @abstractmethod
    async def list_nodes(self) -> list[dict[str, Any]]:
        """Return every Node as a plain dict (``metadata.name``, ``metadata.labels``)."""

    @abstractmethod
    async def stream(self, uri: str) -> bytes:
        """GET *uri* relative to the API server and return the full body."""

    @abstractmethod
    async def list_machine_configs(self, limit: int, continue_token: str = "") -> dict[str, Any]:
        """Return one page of MachineConfigs as a list object dict."""

    async def close(self) -> None:
        return None


class KubernetesClusterClient(ClusterClient):
    """ClusterClient backed by a kubernetes-asyncio ApiClient."""

    def __init__(self, api_client: Any = None, logger: Logger | None = None) -> None:
        self._api_client = api_client if api_client is not None else k8s_client.ApiClient()
        self._core = k8s_client.CoreV1Api(self._api_client)
        self._custom = k8s_client.CustomObjectsApi(self._api_client)
        self._log = resolve_logger(logger, "collector.client")

    @classmethod
    async def from_environment(cls, logger: Logger | None = None) -> KubernetesClusterClient:
        """Configure from the in-cluster service account, else from kubeconfig."""
        import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]

        log = resolve_logger(logger, "collector.client")
        try:
            # load_incluster_config() is synchronous in kubernetes-asyncio
            k8s_config.load_incluster_config()
            log.info("k8s client configured from in-cluster service account")
        except k8s_config.ConfigException:
            await k8s_config.load_kube_config()
            log.info("k8s client configured from kubeconfig")
        return cls(logger=logger)

    async def list_nodes(self) -> list[dict[str, Any]]:
        node_list = await self._core.list_node()
        return [self._api_client.sanitize_for_serialization(node) for node in node_list.items]

    async def stream(self, uri: str) -> bytes:
        response = await self._api_client.call_api(
            uri,
            "GET",
            header_params={"Accept": "application/json, */*"},
            auth_settings=["BearerToken"],
            _preload_content=False,
            _return_http_data_only=True,
        )
        try:
            body: bytes = await response.read()
            if not 200 <= response.status <= 299:
                exc = ApiException(status=response.status, reason=response.reason)
                exc.body = body.decode("utf-8", errors="replace")
                raise exc
            return body
        finally:
            response.release()

    async def list_machine_configs(self, limit: int, continue_token: str = "") -> dict[str, Any]:
        try:
            page: dict[str, Any] = await self._custom.list_cluster_custom_object(
                _MC_GROUP,
                _MC_VERSION,
                _MC_PLURAL,
                limit=limit,
                _continue=continue_token or None,
            )
        except ApiException as exc:
            # The list endpoint only 404s when the CRD itself is not served.
            if exc.status == 404:
                raise NoKindMatchError(
                    f'no matches for kind "MachineConfig" in version "{_MC_GROUP}/{_MC_VERSION}"'
                ) from exc
            raise
        return page

    async def close(self) -> None:
        await self._api_client.close()
