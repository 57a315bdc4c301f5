"""Path directive extraction from rule warnings.

A rule that needs cluster data carries it in a ``warning`` element::

    <warning category="general">
      <html:code class="ocp-api-endpoint" id="a1b2">/apis/config.openshift.io/v1/oauths/cluster</html:code>
      <html:code class="ocp-api-filter" id="filter-a1b2">.spec.identityProviders</html:code>
    </warning>

Endpoint text may reference variables as ``${name}`` or ``{{.name}}``.
"""

from __future__ import annotations

import hashlib
import re
from collections.abc import Mapping

from lxml import etree

from apicollect.models.resources import ResourcePath
from apicollect.observability.logging import Logger, resolve_logger

_ENDPOINT_CLASS = "ocp-api-endpoint"
_FILTER_ID_PREFIX = "filter-"

_RE_VARIABLE = re.compile(r"\$\{\s*([\w.-]+)\s*\}|\{\{\s*\.([\w-]+)\s*\}\}")


class UnknownVariableError(KeyError):
    """A path directive references a variable missing from the table."""


def render_path(template: str, variables: Mapping[str, str]) -> str:
    """Substitute variable references in *template*.

    Raises UnknownVariableError when a referenced name is not in *variables*.
    """

    def _sub(match: re.Match[str]) -> str:
        name = match.group(1) or match.group(2)
        try:
            return variables[name]
        except KeyError:
            raise UnknownVariableError(name) from None

    return _RE_VARIABLE.sub(_sub, template)


def _text(element: etree._Element) -> str:
    return "".join(element.itertext()).strip()


def _filter_for(warning: etree._Element, code_id: str) -> str:
    # Filter elements are siblings of the endpoint inside the same warning.
    matches = warning.xpath(".//*[@id=$fid]", fid=_FILTER_ID_PREFIX + code_id)
    if not matches:
        return ""
    return _text(matches[0])


def filtered_dump_path(obj_path: str, filter_expr: str) -> str:
    """Dump key for a filtered view; distinct filters of one URI never collide."""
    digest = hashlib.sha256(filter_expr.encode("utf-8")).hexdigest()
    return f"{obj_path}#{digest}"


def paths_from_warning(
    warning: etree._Element,
    variables: Mapping[str, str],
    logger: Logger | None = None,
) -> list[ResourcePath]:
    """Return every ResourcePath declared in one rule warning, in document order."""
    log = resolve_logger(logger, "content.paths")
    paths: list[ResourcePath] = []
    for code in warning.xpath(".//*[local-name()='code']"):
        if _ENDPOINT_CLASS not in (code.get("class") or "").split():
            continue
        raw = _text(code)
        if not raw:
            continue
        try:
            obj_path = render_path(raw, variables)
        except UnknownVariableError as exc:
            log.debug("path_directive_unknown_variable", directive=raw, variable=exc.args[0])
            continue

        filter_expr = ""
        code_id = code.get("id")
        if code_id:
            filter_expr = _filter_for(warning, code_id)
        dump_path = filtered_dump_path(obj_path, filter_expr) if filter_expr else obj_path
        paths.append(ResourcePath(obj_path=obj_path, dump_path=dump_path, filter=filter_expr))
    return paths
