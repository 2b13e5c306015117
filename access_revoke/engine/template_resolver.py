"""
JSONPath Template Resolution.

Substitutes ``{$.path.to.value}`` tokens found in action parameters with
values looked up in the job context. Only plain path traversal is supported:
dot notation (``a.b.c``), numeric indices (``items[0]``) and quoted keys
(``items['key']`` / ``items["key"]``). Wildcards, filters, recursive descent
and slices are not operators here; they are treated as literal segments and
simply fail to resolve.

Two runtime values are available to every template:

- ``{$.sgnl.time.now}``: current time, RFC3339 with seconds precision
- ``{$.sgnl.random.uuid}``: a random UUID

Both are computed once per resolution call so every token in that call sees
the same value.
"""

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Tuple

logger = logging.getLogger(__name__)

TEMPLATE_PATTERN = re.compile(r"\{(\$[^}]+)\}")
EXACT_TEMPLATE_PATTERN = re.compile(r"\A\{(\$[^}]+)\}\Z")

NO_VALUE_PLACEHOLDER = "{No Value}"

_INDEX_PATTERN = re.compile(r"\[(\d+)\]")
_SINGLE_QUOTED_KEY_PATTERN = re.compile(r"\['([^']+)'\]")
_DOUBLE_QUOTED_KEY_PATTERN = re.compile(r'\["([^"]+)"\]')


class TemplateResolution(NamedTuple):
    """Resolved value plus the errors collected while resolving it."""
    result: Any
    errors: List[str]


def format_rfc3339(moment: datetime) -> str:
    """Format a datetime as RFC3339 in UTC without fractional seconds."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def split_path(path: str) -> List[str]:
    """Normalize bracket notation to dot segments and split the path."""
    normalized = _INDEX_PATTERN.sub(r".\1", path)
    normalized = _SINGLE_QUOTED_KEY_PATTERN.sub(r".\1", normalized)
    normalized = _DOUBLE_QUOTED_KEY_PATTERN.sub(r".\1", normalized)
    return [segment for segment in normalized.split(".") if segment]


def _child(node: Any, segment: str) -> Any:
    if isinstance(node, Mapping):
        return node.get(segment)
    if isinstance(node, (list, tuple, str)) and segment.isdecimal():
        index = int(segment)
        return node[index] if index < len(node) else None
    return None


def get_path(obj: Any, path: str) -> Any:
    """
    Traverse ``obj`` following ``path``.

    Args:
        obj: Mapping/sequence tree to traverse
        path: Path such as ``user.name`` or ``items[0].id``

    Returns:
        The value found, or None when any segment is missing
    """
    if not path or obj is None:
        return None

    current = obj
    for segment in split_path(path):
        if current is None:
            return None
        current = _child(current, segment)
    return current


def extract_json_path_value(json_obj: Any, json_path: str) -> Tuple[Any, bool]:
    """Return ``(value, found)`` for a ``$``-rooted path."""
    path = json_path
    if path.startswith("$."):
        path = path[2:]
    elif path.startswith("$"):
        path = path[1:]

    # "$" alone refers to the whole context
    if not path:
        return json_obj, True

    value = get_path(json_obj, path)
    if value is None:
        return None, False
    return value, True


def value_to_string(value: Any) -> str:
    """Render a resolved value for substitution into a string."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def inject_sgnl_namespace(job_context: Optional[Mapping[str, Any]], now: datetime,
                          random_uuid: str) -> Dict[str, Any]:
    """
    Return a copy of the job context with the ``sgnl`` runtime values added.

    Values already present in the job context take precedence.
    """
    job_context = dict(job_context or {})
    sgnl = job_context.get("sgnl")
    sgnl = dict(sgnl) if isinstance(sgnl, Mapping) else {}

    existing_time = sgnl.get("time")
    existing_random = sgnl.get("random")

    sgnl["time"] = {"now": format_rfc3339(now),
                    **(existing_time if isinstance(existing_time, Mapping) else {})}
    sgnl["random"] = {"uuid": random_uuid,
                      **(existing_random if isinstance(existing_random, Mapping) else {})}

    job_context["sgnl"] = sgnl
    return job_context


def resolve_template_string(template: str, job_context: Any,
                            omit_no_value_for_exact_templates: bool = False) -> TemplateResolution:
    """
    Replace every template token in a single string.

    Args:
        template: String possibly containing ``{$...}`` tokens
        job_context: Context the paths are resolved against
        omit_no_value_for_exact_templates: When the whole string is one token
            that cannot be resolved, return an empty string instead of the
            placeholder

    Returns:
        TemplateResolution with the substituted string and any errors
    """
    errors: List[str] = []
    is_exact_template = EXACT_TEMPLATE_PATTERN.fullmatch(template) is not None

    def substitute(match: "re.Match[str]") -> str:
        json_path = match.group(1)
        value, found = extract_json_path_value(job_context, json_path)

        if not found:
            errors.append(f"failed to extract field '{json_path}': field not found")
            if is_exact_template and omit_no_value_for_exact_templates:
                return ""
            return NO_VALUE_PLACEHOLDER

        rendered = value_to_string(value)
        if rendered == "":
            errors.append(f"failed to extract field '{json_path}': field is empty")
        return rendered

    result = TEMPLATE_PATTERN.sub(substitute, template)
    return TemplateResolution(result, errors)


def resolve_json_path_templates(input_value: Any, job_context: Optional[Mapping[str, Any]],
                                omit_no_value_for_exact_templates: bool = False,
                                inject_sgnl: bool = True,
                                now: Optional[datetime] = None,
                                random_uuid: Optional[str] = None) -> TemplateResolution:
    """
    Resolve templates throughout a parameter tree.

    Strings are substituted; mappings and lists are walked recursively; any
    other value is returned unchanged. The input is never modified.

    Args:
        input_value: Parameter tree (or a single string)
        job_context: Job context the templates are resolved against
        omit_no_value_for_exact_templates: Drop mapping entries and list items
            that resolve to an empty string
        inject_sgnl: Add ``sgnl.time.now`` and ``sgnl.random.uuid`` to the context
        now: Time used for ``sgnl.time.now`` (defaults to the current UTC time)
        random_uuid: Value used for ``sgnl.random.uuid`` (defaults to a new UUID4)

    Returns:
        TemplateResolution with the resolved tree and every error encountered

    Example:
        >>> resolve_json_path_templates({"login": "{$.user.email}"},
        ...                             {"user": {"email": "a@b.com"}}).result
        {'login': 'a@b.com'}
    """
    if inject_sgnl:
        context = inject_sgnl_namespace(
            job_context,
            now or datetime.now(timezone.utc),
            random_uuid or str(uuid.uuid4()),
        )
    else:
        context = job_context or {}

    all_errors: List[str] = []

    def resolve_value(value: Any) -> Any:
        if isinstance(value, str):
            resolved, errors = resolve_template_string(value, context,
                                                       omit_no_value_for_exact_templates)
            all_errors.extend(errors)
            return resolved

        if isinstance(value, (list, tuple)):
            items = [resolve_value(item) for item in value]
            if omit_no_value_for_exact_templates:
                return [item for item in items if item != ""]
            return items

        if isinstance(value, Mapping):
            resolved_map = {}
            for key, item in value.items():
                resolved_item = resolve_value(item)
                if omit_no_value_for_exact_templates and resolved_item == "":
                    continue
                resolved_map[key] = resolved_item
            return resolved_map

        return value

    result = resolve_value(input_value)
    if all_errors:
        logger.debug(f"Template resolution finished with {len(all_errors)} error(s)")
    return TemplateResolution(result, all_errors)
