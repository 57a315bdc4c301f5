"""Profile resolution: which objects does a (tailored) profile need?

Resolution order
----------------
1. Fixed must-fetch paths (version, cluster config objects, node list).
2. One kubelet config path per (role, node) from live node labels.
3. The variable table: benchmark defaults and set-values, then tailoring
   set-values, which may overwrite existing entries but never add new ones.
4. With tailoring, the tailored profile's own selections; if it ``extends``
   a benchmark profile, that profile's selections follow.  Only one
   ``extends`` hop is followed.
5. Without tailoring, the benchmark profile's selections.

Selections keep document order.  A missing profile, an unknown rule or a rule
without a path directive is logged at debug level and skipped.
"""

from __future__ import annotations

import html
from collections.abc import Iterable, Mapping

from lxml import etree

from apicollect.collector.client import ClusterClient
from apicollect.collector.nodes import fetch_nodes_with_role, kubelet_config_paths
from apicollect.content.paths import paths_from_warning
from apicollect.models.resources import MUST_FETCH_PATHS, VALUE_ID_PREFIX, Discovery, ResourcePath
from apicollect.observability.logging import Logger, resolve_logger

XCCDF_NS = {"xccdf": "http://checklists.nist.gov/xccdf/1.2"}


def _inner_xml(element: etree._Element) -> str:
    parts = [html.escape(element.text or "", quote=False)]
    parts.extend(etree.tostring(child, encoding="unicode", with_tail=True) for child in element)
    return html.unescape("".join(parts))


def _strip_value_prefix(value_id: str | None) -> str | None:
    if not value_id or not value_id.startswith(VALUE_ID_PREFIX):
        return None
    return value_id[len(VALUE_ID_PREFIX) :]


def default_values(document: etree._Element) -> dict[str, str]:
    """Default (non-hidden, non-selector) ``value`` of every prefixed Value."""
    values: dict[str, str] = {}
    for variable in document.iterfind(".//xccdf:Value", XCCDF_NS):
        name = _strip_value_prefix(variable.get("id"))
        if name is None:
            continue
        for val in variable.iterfind(".//xccdf:value", XCCDF_NS):
            if val.get("hidden") == "true":
                continue
            if val.get("selector"):
                # enum choice, not the default
                continue
            values[name] = _inner_xml(val)
    return values


def set_values(document: etree._Element) -> dict[str, str]:
    """Every prefixed ``set-value`` in document order; later entries win."""
    values: dict[str, str] = {}
    for setting in document.iterfind(".//xccdf:set-value", XCCDF_NS):
        name = _strip_value_prefix(setting.get("idref"))
        if name is not None:
            values[name] = _inner_xml(setting)
    return values


def apply_overrides(values: Mapping[str, str], overrides: Mapping[str, str]) -> dict[str, str]:
    """Overwrite entries of *values* from *overrides*; unknown ids are ignored."""
    merged = dict(values)
    for key, value in overrides.items():
        if key in merged:
            merged[key] = value
    return merged


def build_variable_table(
    data_stream: etree._Element,
    tailoring: etree._Element | None = None,
) -> dict[str, str]:
    values: dict[str, str] = {}
    for document in (data_stream, tailoring):
        if document is not None:
            values.update(default_values(document))
    values.update(set_values(data_stream))
    if tailoring is not None:
        values = apply_overrides(values, set_values(tailoring))
    return values


def find_profiles(document: etree._Element, profile_id: str) -> list[etree._Element]:
    return document.xpath(".//xccdf:Profile[@id=$pid]", namespaces=XCCDF_NS, pid=profile_id)


def selected_rule_ids(document: etree._Element, profile_id: str) -> list[str]:
    """idrefs of ``select selected="true"`` under the profile, in document order."""
    selected: list[str] = []
    for profile in find_profiles(document, profile_id):
        for select in profile.iterfind(".//xccdf:select", XCCDF_NS):
            if select.get("selected") != "true":
                continue
            idref = select.get("idref")
            if idref:
                selected.append(idref)
    return selected


def extended_profile(tailoring: etree._Element, profile_id: str) -> str:
    """The ``extends`` target of the tailored profile, or "" when there is none."""
    for profile in find_profiles(tailoring, profile_id):
        parent = profile.get("extends")
        if parent:
            return parent
    return ""


def _index_rules(document: etree._Element) -> dict[str, etree._Element]:
    rules: dict[str, etree._Element] = {}
    for rule in document.iterfind(".//xccdf:Rule", XCCDF_NS):
        rule_id = rule.get("id")
        if rule_id and rule_id not in rules:
            rules[rule_id] = rule
    return rules


class ProfileResolver:
    """Works out every ResourcePath a scan of one profile needs."""

    def __init__(
        self,
        client: ClusterClient,
        data_stream: etree._Element,
        tailoring: etree._Element | None = None,
        logger: Logger | None = None,
    ) -> None:
        self._client = client
        self._data_stream = data_stream
        self._tailoring = tailoring
        self._log = resolve_logger(logger, "content.profile")

    async def figure_resources(self, profile_id: str) -> Discovery:
        found: list[ResourcePath] = list(MUST_FETCH_PATHS)

        role_index = await fetch_nodes_with_role(self._client, logger=self._log)
        found.extend(kubelet_config_paths(role_index))

        variables = build_variable_table(self._data_stream, self._tailoring)
        effective_profile = profile_id

        if self._tailoring is not None:
            selected = self.resource_paths(self._tailoring, profile_id, variables)
            if not selected:
                self._log.debug("no_checks_in_tailoring", profile=profile_id)
            found.extend(selected)
            effective_profile = extended_profile(self._tailoring, profile_id)
            if not effective_profile:
                return Discovery(paths=found, variables=variables)
            self._log.debug("tailoring_extends_profile", profile=profile_id, extends=effective_profile)

        selected = self.resource_paths(self._data_stream, effective_profile, variables)
        if not selected:
            self._log.debug("no_checks_in_profile", profile=effective_profile)
        found.extend(selected)
        self._log.debug("resources_figured", profile=profile_id, count=len(found))
        return Discovery(paths=found, variables=variables)

    def resource_paths(
        self,
        profile_document: etree._Element,
        profile_id: str,
        variables: Mapping[str, str],
    ) -> list[ResourcePath]:
        """Paths for the rules selected by *profile_id* in *profile_document*.

        Rules are always looked up in the benchmark data stream.
        """
        if not find_profiles(profile_document, profile_id):
            self._log.debug("profile_not_found", profile=profile_id)
            return []

        rules = _index_rules(self._data_stream)
        if not rules:
            self._log.debug("no_rules_in_data_stream")
            return []

        out: list[ResourcePath] = []
        for rule_id in selected_rule_ids(profile_document, profile_id):
            rule = rules.get(rule_id)
            if rule is None:
                self._log.debug("selected_rule_not_found", rule=rule_id)
                continue
            paths = self._paths_for_rule(rule, variables)
            if not paths:
                self._log.debug("rule_without_path_directive", rule=rule_id)
                continue
            out.extend(paths)
        return out

    def _paths_for_rule(self, rule: etree._Element, variables: Mapping[str, str]) -> list[ResourcePath]:
        # Only the first warning carrying a usable directive counts.
        for warning in _warnings(rule):
            paths = paths_from_warning(warning, variables, logger=self._log)
            if paths:
                return paths
        return []


def _warnings(rule: etree._Element) -> Iterable[etree._Element]:
    return rule.iterfind(".//xccdf:warning", XCCDF_NS)
