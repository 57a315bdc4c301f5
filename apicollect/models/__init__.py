"""Core data structures for apicollect."""

from apicollect.models.config import CollectorConfig, ContentConfig, LogConfig, OutputConfig
from apicollect.models.resources import (
    KUBELET_CONFIG_FILTER,
    KUBELET_CONFIG_PATH_PREFIX,
    KUBELET_CONFIG_ROLE_PATH_PREFIX,
    MACHINE_CONFIGS_URI,
    MUST_FETCH_PATHS,
    NOT_FOUND_MARKER_PREFIX,
    VALUE_ID_PREFIX,
    Discovery,
    FetchResult,
    NodeRoleIndex,
    ResourcePath,
)

__all__ = [
    "KUBELET_CONFIG_FILTER",
    "KUBELET_CONFIG_PATH_PREFIX",
    "KUBELET_CONFIG_ROLE_PATH_PREFIX",
    "MACHINE_CONFIGS_URI",
    "MUST_FETCH_PATHS",
    "NOT_FOUND_MARKER_PREFIX",
    "VALUE_ID_PREFIX",
    "CollectorConfig",
    "ContentConfig",
    "Discovery",
    "FetchResult",
    "LogConfig",
    "NodeRoleIndex",
    "OutputConfig",
    "ResourcePath",
]
