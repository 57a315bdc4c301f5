"""Builders and fakes shared by the apicollect tests.

Provides XCCDF document builders and an in-memory ClusterClient so the
pipeline can be exercised end to end without a real cluster.
"""

from __future__ import annotations

import json
from typing import Any

from kubernetes_asyncio.client.exceptions import ApiException
from apicollect.collector.client import ClusterClient

XCCDF_NS = "http://checklists.nist.gov/xccdf/1.2"
HTML_NS = "http://www.w3.org/1999/xhtml"

RULE = "xccdf_org.ssgproject.content_rule_"
VALUE = "xccdf_org.ssgproject.content_value_"
PROFILE = "xccdf_org.ssgproject.content_profile_"

CIS = PROFILE + "cis"
TAILORED = "xccdf_compliance.openshift.io_profile_tailored"

# ---------------------------------------------------------------------------
# Document builders
# ---------------------------------------------------------------------------


def endpoint(path: str, code_id: str = "", filter_expr: str = "") -> str:
    id_attr = f' id="{code_id}"' if code_id else ""
    out = f'<html:code class="ocp-api-endpoint"{id_attr}>{path}</html:code>'
    if filter_expr:
        out += f'<html:code class="ocp-api-filter" id="filter-{code_id}">{filter_expr}</html:code>'
    return out


def rule(rule_id: str, *warnings: str) -> str:
    body = "".join(f'<xccdf-1.2:warning category="general">{w}</xccdf-1.2:warning>' for w in warnings)
    return f'<xccdf-1.2:Rule id="{RULE}{rule_id}"><xccdf-1.2:title>{rule_id}</xccdf-1.2:title>{body}</xccdf-1.2:Rule>'


def value(name: str, default: str, *, choices: dict[str, str] | None = None, hidden: str = "") -> str:
    opts = "".join(
        f'<xccdf-1.2:value selector="{sel}">{val}</xccdf-1.2:value>' for sel, val in (choices or {}).items()
    )
    hidden_attr = f' hidden="{hidden}"' if hidden else ""
    return (
        f'<xccdf-1.2:Value id="{VALUE}{name}" type="string">{opts}'
        f"<xccdf-1.2:value{hidden_attr}>{default}</xccdf-1.2:value></xccdf-1.2:Value>"
    )


def profile(
    profile_id: str,
    selected: list[str],
    *,
    unselected: list[str] | None = None,
    set_values: dict[str, str] | None = None,
    extends: str = "",
) -> str:
    extends_attr = f' extends="{extends}"' if extends else ""
    sel = "".join(f'<xccdf-1.2:select idref="{RULE}{r}" selected="true"/>' for r in selected)
    sel += "".join(f'<xccdf-1.2:select idref="{RULE}{r}" selected="false"/>' for r in unselected or [])
    sets = "".join(
        f'<xccdf-1.2:set-value idref="{VALUE}{k}">{v}</xccdf-1.2:set-value>' for k, v in (set_values or {}).items()
    )
    return f'<xccdf-1.2:Profile id="{profile_id}"{extends_attr}><xccdf-1.2:title>p</xccdf-1.2:title>{sel}{sets}</xccdf-1.2:Profile>'


def data_stream(*, values: list[str], profiles: list[str], rules: list[str]) -> bytes:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<ds:data-stream-collection xmlns:ds="http://scap.nist.gov/schema/scap/source/1.2" '
        f'xmlns:xccdf-1.2="{XCCDF_NS}" xmlns:html="{HTML_NS}">'
        '<ds:component id="scap_org.open-scap_comp_ssg-ocp4-xccdf.xml">'
        '<xccdf-1.2:Benchmark id="xccdf_org.ssgproject.content_benchmark_OCP-4">'
        + "".join(values)
        + "".join(profiles)
        + '<xccdf-1.2:Group id="xccdf_org.ssgproject.content_group_ocp">'
        + "".join(rules)
        + "</xccdf-1.2:Group></xccdf-1.2:Benchmark></ds:component></ds:data-stream-collection>"
    ).encode("utf-8")


def tailoring(*profiles: str) -> bytes:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<xccdf-1.2:Tailoring xmlns:xccdf-1.2="{XCCDF_NS}" id="xccdf_compliance.openshift.io_tailoring_t">'
        '<xccdf-1.2:version time="2026-01-01T00:00:00Z">1</xccdf-1.2:version>'
        + "".join(profiles)
        + "</xccdf-1.2:Tailoring>"
    ).encode("utf-8")


def default_data_stream() -> bytes:
    """Benchmark with a CIS profile exercising every selection rule."""
    return data_stream(
        values=[
            value("var_oauth_name", "cluster", choices={"alt": "other"}),
            value("var_hidden", "secret", hidden="true"),
            value("var_namespace", "openshift-apiserver"),
        ],
        profiles=[
            profile(
                CIS,
                ["oauth", "apiserver_audit", "no_directive", "undefined_rule", "namespaced"],
                unselected=["disabled"],
            ),
            profile(PROFILE + "moderate", ["disabled"]),
        ],
        rules=[
            rule(
                "oauth",
                "A plain warning with no endpoint.",
                endpoint("/apis/config.openshift.io/v1/oauths/${var_oauth_name}"),
                endpoint("/apis/config.openshift.io/v1/oauths/ignored"),
            ),
            rule(
                "apiserver_audit",
                endpoint("/apis/operator.openshift.io/v1/kubeapiservers/cluster", "k1", ".spec.observedConfig"),
            ),
            rule("no_directive", "Nothing to fetch here."),
            rule("disabled", endpoint("/apis/config.openshift.io/v1/disabled")),
            rule("namespaced", endpoint("/api/v1/namespaces/{{.var_namespace}}/configmaps")),
        ],
    )


def default_tailoring(*, extends: str = CIS, selected: list[str] | None = None) -> bytes:
    return tailoring(
        profile(
            TAILORED,
            selected if selected is not None else ["disabled"],
            set_values={"var_oauth_name": "tailored", "var_not_in_benchmark": "3"},
            extends=extends,
        )
    )


# ---------------------------------------------------------------------------
# Cluster fakes
# ---------------------------------------------------------------------------


def api_error(status: int, reason: str = "") -> ApiException:
    exc = ApiException(status=status, reason=reason or "error")
    exc.body = json.dumps({"kind": "Status", "reason": reason}) if reason else None
    return exc


def node(name: str, *roles: str, extra_labels: dict[str, str] | None = None) -> dict[str, Any]:
    labels = {f"node-role.kubernetes.io/{r}": "" for r in roles}
    labels.update(extra_labels or {})
    return {"metadata": {"name": name, "labels": labels}}


class FakeClusterClient(ClusterClient):
    """ClusterClient serving canned responses.

    ``responses`` maps URI -> bytes, or -> an exception to raise.  URIs not
    listed answer 404.
    """

    def __init__(
        self,
        nodes: list[dict[str, Any]] | None = None,
        responses: dict[str, bytes | Exception] | None = None,
        mc_pages: list[dict[str, Any]] | None = None,
    ) -> None:
        self.nodes = nodes or []
        self.responses = responses or {}
        self.mc_pages = mc_pages or []
        self.requested: list[str] = []
        self.mc_calls: list[tuple[int, str]] = []
        self.closed = False

    async def list_nodes(self) -> list[dict[str, Any]]:
        return list(self.nodes)

    async def stream(self, uri: str) -> bytes:
        self.requested.append(uri)
        response = self.responses.get(uri)
        if response is None:
            raise api_error(404, "NotFound")
        if isinstance(response, Exception):
            raise response
        return response

    async def list_machine_configs(self, limit: int, continue_token: str = "") -> dict[str, Any]:
        self.mc_calls.append((limit, continue_token))
        index = int(continue_token) if continue_token else 0
        return self.mc_pages[index]

    async def close(self) -> None:
        self.closed = True


def kubelet_configz(**fields: Any) -> bytes:
    config = {"maxPods": 250, "podPidsLimit": 4096, "rotateCertificates": True}
    config.update(fields)
    return json.dumps({"kubeletconfig": config}).encode("utf-8")
