"""Per-URI fetch strategies.

Most URIs are a single GET.  MachineConfigs are listed in small pages and
have their Ignition file contents stripped, since a full list can exceed what
the scanner is able to load.
"""

from __future__ import annotations

import copy
import json
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from apicollect.collector.client import ClusterClient
from apicollect.errors import FetchError
from apicollect.models.resources import MACHINE_CONFIGS_URI

MACHINE_CONFIG_PAGE_SIZE = 5


class ResourceStreamer(ABC):
    """Retrieves the full content of one URI."""

    @abstractmethod
    async def stream(self, client: ClusterClient) -> bytes: ...


class URIStreamer(ResourceStreamer):
    """Plain GET of a URI."""

    def __init__(self, uri: str) -> None:
        self.uri = uri

    async def stream(self, client: ClusterClient) -> bytes:
        return await client.stream(self.uri)


def strip_ignition_files(machine_config: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *machine_config* without ``spec.config.storage.files``.

    ``spec.config`` may arrive decoded or as a raw JSON string; it is returned
    decoded either way.
    """
    spec = machine_config.get("spec")
    if not isinstance(spec, dict):
        return machine_config
    raw = spec.get("config")
    if not raw:
        return machine_config

    name = (machine_config.get("metadata") or {}).get("name", "<unnamed>")
    if isinstance(raw, str | bytes):
        try:
            ignition = json.loads(raw)
        except ValueError as exc:
            raise FetchError(f"cannot parse MC {name}: {exc}") from exc
    else:
        ignition = copy.deepcopy(raw)
    if not isinstance(ignition, dict):
        raise FetchError(f"cannot parse MC {name}: ignition config is not an object")

    storage = ignition.get("storage")
    if isinstance(storage, dict):
        storage.pop("files", None)
    return {**machine_config, "spec": {**spec, "config": ignition}}


class MachineConfigStreamer(ResourceStreamer):
    """Pages through MachineConfigs and returns them, trimmed, as one list."""

    def __init__(self, page_size: int = MACHINE_CONFIG_PAGE_SIZE) -> None:
        self.page_size = page_size

    async def stream(self, client: ClusterClient) -> bytes:
        items: list[dict[str, Any]] = []
        continue_token = ""
        while True:
            page = await client.list_machine_configs(self.page_size, continue_token)
            items.extend(strip_ignition_files(item) for item in page.get("items") or [])
            continue_token = (page.get("metadata") or {}).get("continue") or ""
            if not continue_token:
                break

        machine_configs = {
            "apiVersion": "machineconfiguration.openshift.io/v1",
            "kind": "MachineConfigList",
            "metadata": {},
            "items": items,
        }
        return json.dumps(machine_configs, indent=2).encode("utf-8")


StreamerDispatcher = Callable[[str], ResourceStreamer]


def get_streamer(uri: str) -> ResourceStreamer:
    if uri == MACHINE_CONFIGS_URI:
        return MachineConfigStreamer()
    return URIStreamer(uri)
