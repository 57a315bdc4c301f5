"""Resource path and fetch result data structures."""

from __future__ import annotations

from dataclasses import dataclass, field

# role name -> sorted node names
NodeRoleIndex = dict[str, list[str]]

VALUE_ID_PREFIX = "xccdf_org.ssgproject.content_value_"
KUBELET_CONFIG_PATH_PREFIX = "/kubeletconfig/"
KUBELET_CONFIG_ROLE_PATH_PREFIX = "/kubeletconfig/role/"
KUBELET_CONFIG_FILTER = (
    '.kubeletconfig|.kind="KubeletConfiguration"|.apiVersion="kubelet.config.k8s.io/v1beta1"'
)
MACHINE_CONFIGS_URI = "/apis/machineconfiguration.openshift.io/v1/machineconfigs"


@dataclass(frozen=True)
class ResourcePath:
    """One object to fetch.

    ``obj_path`` is the API URI, ``dump_path`` the key (and relative file
    path) the content is stored under.  An empty ``filter`` stores the
    fetched bytes unmodified.
    """

    obj_path: str
    dump_path: str
    filter: str = ""


# Staged for every scan, independently of the profile.
MUST_FETCH_PATHS: tuple[ResourcePath, ...] = tuple(
    ResourcePath(obj_path=uri, dump_path=uri)
    for uri in (
        "/version",
        "/apis/config.openshift.io/v1/clusteroperators/openshift-apiserver",
        "/apis/config.openshift.io/v1/infrastructures/cluster",
        "/apis/config.openshift.io/v1/networks/cluster",
        "/api/v1/nodes",
    )
)


@dataclass
class Discovery:
    """Result of resolving a profile against the benchmark content."""

    paths: list[ResourcePath] = field(default_factory=list)
    variables: dict[str, str] = field(default_factory=dict)


@dataclass
class FetchResult:
    """Fetched content keyed by dump path, plus non-fatal warnings in order."""

    found: dict[str, bytes] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

# Stored in place of an object the API server reported as missing.
NOT_FOUND_MARKER_PREFIX = "# kube-api-error="
