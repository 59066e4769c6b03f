"""
JSONPath-style field extraction for response bodies.

Paths follow the GPath conventions used by REST Assured:

    name                 -> body["name"]
    books.size()         -> len(body["books"])
    books.price          -> [book["price"] for book in body["books"]]
    books[0].author      -> body["books"][0]["author"]
    $ (or empty)         -> the whole body
"""
import re
from typing import Any, List, Union

from contract_runner.core.exceptions import PathNotFoundError

_SIZE_SUFFIX = "size()"
_SEGMENT_RE = re.compile(r"^([^\[\]]*)((?:\[-?\d+\])*)$")
_INDEX_RE = re.compile(r"\[(-?\d+)\]")

Step = Union[str, int]


def parse_path(path: str) -> List[Step]:
    """Split a path into key (str) and index (int) steps"""
    path = path.strip()
    if path.startswith("$"):
        path = path[1:].lstrip(".")
    if not path:
        return []

    steps: List[Step] = []
    for segment in path.split("."):
        match = _SEGMENT_RE.match(segment)
        if not match or (not match.group(1) and not match.group(2)):
            raise PathNotFoundError(path)
        if match.group(1):
            steps.append(match.group(1))
        steps.extend(int(i) for i in _INDEX_RE.findall(match.group(2)))
    return steps


def _step(value: Any, step: Step, path: str) -> Any:
    if isinstance(step, int):
        if isinstance(value, list) and -len(value) <= step < len(value):
            return value[step]
        raise PathNotFoundError(path)

    if step == _SIZE_SUFFIX:
        if isinstance(value, (list, dict, str)):
            return len(value)
        raise PathNotFoundError(path)

    if isinstance(value, dict):
        if step in value:
            return value[step]
        raise PathNotFoundError(path)

    if isinstance(value, list):
        # Collect the key from every element, GPath style
        if value and not any(isinstance(item, dict) and step in item for item in value):
            raise PathNotFoundError(path)
        return [item.get(step) if isinstance(item, dict) else None for item in value]

    raise PathNotFoundError(path)


def extract(body: Any, path: str) -> Any:
    """
    Return the value at ``path`` in a parsed JSON body.

    Raises:
        PathNotFoundError: if any step of the path does not exist
    """
    value = body
    for step in parse_path(path):
        value = _step(value, step, path)
    return value
