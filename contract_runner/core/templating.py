import json
import re
from dataclasses import replace
from typing import Any, Callable, Dict, List, Mapping, Set

from contract_runner.core import json_path
from contract_runner.core.exceptions import ContractRunnerError, PathNotFoundError
from contract_runner.models.test_case import TestCase
from contract_runner.utils.logger import get_logger

logger = get_logger(__name__)

PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_.-]*)\s*\}\}")


class UnresolvedVariableError(ContractRunnerError):
    """A {{name}} placeholder has no value in the current variables."""

    def __init__(self, names: Set[str]):
        self.names = sorted(names)
        super().__init__(f"unresolved variable(s): {', '.join(self.names)}")


def _json_fragment(value: Any) -> str:
    """Strings are escaped for use inside a JSON string; other values take their JSON spelling"""
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False, default=str)[1:-1]
    return json.dumps(value, ensure_ascii=False, default=str)


def _render(text: str, variables: Mapping[str, Any], missing: Set[str],
            encode: Callable[[Any], str] = str) -> str:
    def substitute(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name not in variables:
            missing.add(name)
            return match.group(0)
        return encode(variables[name])
    return PLACEHOLDER_RE.sub(substitute, text)


def _render_value(value: Any, variables: Mapping[str, Any], missing: Set[str]) -> Any:
    """Render strings; a string that is exactly one placeholder takes the variable's own value"""
    if not isinstance(value, str):
        return value
    whole = PLACEHOLDER_RE.fullmatch(value.strip())
    if whole:
        name = whole.group(1)
        if name not in variables:
            missing.add(name)
            return value
        return variables[name]
    return _render(value, variables, missing)


def _template_texts(case: TestCase) -> List[str]:
    texts = [case.path, case.body or "", case.auth_user or "", case.auth_pass or ""]
    texts.extend(str(v) for v in case.query_params.values())
    texts.extend(case.headers.values())
    texts.extend(a.expected for a in case.body_assertions if isinstance(a.expected, str))
    return texts


def has_placeholders(case: TestCase) -> bool:
    return any(PLACEHOLDER_RE.search(text) for text in _template_texts(case))


def resolve_case(case: TestCase, variables: Mapping[str, Any]) -> TestCase:
    """
    Substitute {{name}} placeholders in path, query params, headers, credentials,
    body and string assertion expectations.

    Returns the case unchanged when it has no placeholders.

    Raises:
        UnresolvedVariableError: if a placeholder has no value
    """
    if not has_placeholders(case):
        return case

    missing: Set[str] = set()
    resolved = case.with_updates(
        path=_render(case.path, variables, missing),
        query_params={k: _render_value(v, variables, missing) for k, v in case.query_params.items()},
        headers={k: _render(v, variables, missing) for k, v in case.headers.items()},
        auth_user=None if case.auth_user is None else _render(case.auth_user, variables, missing),
        auth_pass=None if case.auth_pass is None else _render(case.auth_pass, variables, missing),
        body=None if case.body is None else _render(case.body, variables, missing, encode=_json_fragment),
        body_assertions=tuple(
            replace(a, expected=_render_value(a.expected, variables, missing)) for a in case.body_assertions
        ),
    )
    if missing:
        raise UnresolvedVariableError(missing)
    return resolved


def capture_values(case: TestCase, body: Any) -> Dict[str, Any]:
    """Read the case's captures from a parsed response body; missing paths are skipped"""
    captured: Dict[str, Any] = {}
    for name, path in case.captures.items():
        try:
            captured[name] = json_path.extract(body, path)
        except PathNotFoundError:
            logger.warning(f"Capture '{name}' of case '{case.name}': path not found: {path}")
    return captured
