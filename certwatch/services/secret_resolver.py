"""Resolve scheme-prefixed secret references.

Supported forms::

    env:VAR_NAME
    file:/path/to/file.txt
    file:/path/to/file.txt//key
    json:/path/to/file.json//path.to.value
    yaml:/path/to/file.yaml//path.to.value
    ini:/path/to/file.ini//Section.Key
    properties:/path/to/file.properties//key
    toml:/path/to/file.toml//servers.0.host

Anything without a recognised prefix is returned unchanged. Every lookup is
stateless and reads the referenced file fresh.
"""

import configparser
import json
import logging
import os
import tomllib
from collections.abc import Callable
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

import yaml

from certwatch.errors import SecretResolutionFailed

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "//"

_PROPERTIES_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _split_ref(ref: str) -> tuple[Path, str | None]:
    file_part, sep, key = ref.partition(KEY_SEPARATOR)
    path = Path(file_part).expanduser().resolve()
    return path, (key if sep and key.strip() else None)


def _require_key(ref: str, scheme: str, example: str) -> tuple[Path, str]:
    path, key = _split_ref(ref)
    if key is None:
        raise SecretResolutionFailed(f"{scheme.upper()} path must be in the format {scheme}:{example}")
    return path, key


def _read_text(path: Path, kind: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SecretResolutionFailed(f"Failed to read {kind}: {path} ({e})") from e


def _to_text(value: Any) -> str:
    """Render a document node the way the document itself would spell a scalar."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), default=str)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def _walk(root: Any, key_path: str, kind: str) -> Any:
    """Follow a dot path through nested mappings; numeric segments index lists."""
    current = root
    for part in key_path.split("."):
        if isinstance(current, list):
            if not part.isdigit():
                raise SecretResolutionFailed(f"Expected numeric index for {kind} array, got: {part}")
            index = int(part)
            if index >= len(current):
                raise SecretResolutionFailed(f"Index out of bounds in {kind} array: {part}")
            current = current[index]
        elif isinstance(current, dict):
            if part not in current:
                raise SecretResolutionFailed(f"Path not found: {key_path}")
            current = current[part]
        else:
            raise SecretResolutionFailed(f"Path not found: {key_path}")
    return current


def _resolve_env(ref: str) -> str:
    value = os.environ.get(ref)
    if value is None:
        raise SecretResolutionFailed(f"Environment variable is not set: {ref}")
    return value


def _resolve_file(ref: str) -> str:
    path, key = _split_ref(ref)
    text = _read_text(path, "file")
    if key is None:
        return text.strip()
    for line in text.splitlines():
        name, sep, value = line.partition("=")
        if sep and name.strip() == key:
            return value.strip()
    raise SecretResolutionFailed(f"Key '{key}' not found in file: {path}")


def _resolve_structured(ref: str, kind: str, parse: Callable[[str], Any]) -> str:
    path, key = _split_ref(ref)
    text = _read_text(path, f"{kind} file")
    try:
        root = parse(text)
    except (ValueError, yaml.YAMLError) as e:
        raise SecretResolutionFailed(f"Failed to resolve {kind} from: {path} ({e})") from e
    if key is None:
        return _to_text(root)
    return _to_text(_walk(root, key, kind))


def _resolve_json(ref: str) -> str:
    return _resolve_structured(ref, "JSON", json.loads)


def _resolve_yaml(ref: str) -> str:
    return _resolve_structured(ref, "YAML", yaml.safe_load)


def _resolve_ini(ref: str) -> str:
    path, key = _require_key(ref, "ini", "/file.ini//Section.Key")
    section, sep, option = key.partition(".")
    if not sep or not option:
        raise SecretResolutionFailed("INI key must be in the format Section.Key")

    parser = configparser.ConfigParser(interpolation=None)
    parser.optionxform = str  # keys are case-sensitive
    try:
        parser.read_string(_read_text(path, "INI file"), source=str(path))
    except configparser.Error as e:
        raise SecretResolutionFailed(f"Failed to read INI file: {path} ({e})") from e

    if not parser.has_option(section, option):
        raise SecretResolutionFailed(f"Key not found in INI file: {key}")
    return parser.get(section, option).strip()


def _unescape_properties(text: str) -> str:
    out = []
    chars = iter(text)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        nxt = next(chars, "")
        if nxt == "u":
            code = "".join(next(chars, "") for _ in range(4))
            try:
                out.append(chr(int(code, 16)))
            except ValueError as e:
                raise SecretResolutionFailed(f"Malformed \\u escape in properties file: \\u{code}") from e
        else:
            out.append(_PROPERTIES_ESCAPES.get(nxt, nxt))
    return "".join(out)


def _logical_lines(text: str):
    """Yield .properties logical lines with comments dropped and continuations joined."""
    pending = ""
    for raw in text.splitlines():
        line = raw.lstrip()
        if not pending and (not line or line[0] in "#!"):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending += line[:-1]
            continue
        yield pending + line
        pending = ""
    if pending:
        yield pending


def parse_properties(text: str) -> dict[str, str]:
    """Parse Java .properties content (=, : or whitespace separated)."""
    props: dict[str, str] = {}
    for line in _logical_lines(text):
        index = 0
        while index < len(line):
            ch = line[index]
            if ch == "\\":
                index += 2
                continue
            if ch in "=: \t\f":
                break
            index += 1
        key = line[:index]
        # Whitespace, at most one '=' or ':', whitespace, then the value
        rest = line[index:].lstrip(" \t\f")
        if rest[:1] in ("=", ":"):
            rest = rest[1:].lstrip(" \t\f")
        props[_unescape_properties(key)] = _unescape_properties(rest)
    return props


def _resolve_properties(ref: str) -> str:
    path, key = _require_key(ref, "properties", "/file.properties//key")
    props = parse_properties(_read_text(path, ".properties file"))
    if key not in props:
        raise SecretResolutionFailed(f"Key not found in .properties file: {key}")
    return props[key].strip()


def _resolve_toml(ref: str) -> str:
    path, key = _require_key(ref, "toml", "/file.toml//key.path")
    try:
        with path.open("rb") as fh:
            root = tomllib.load(fh)
    except OSError as e:
        raise SecretResolutionFailed(f"Failed to read TOML file: {path} ({e})") from e
    except tomllib.TOMLDecodeError as e:
        raise SecretResolutionFailed(f"Failed to read TOML file: {path} ({e})") from e
    return _to_text(_walk(root, key, "TOML"))


RESOLVERS: dict[str, Callable[[str], str]] = {
    "env": _resolve_env,
    "file": _resolve_file,
    "json": _resolve_json,
    "yaml": _resolve_yaml,
    "ini": _resolve_ini,
    "properties": _resolve_properties,
    "toml": _resolve_toml,
}


def resolve(raw_value: str | None) -> str | None:
    """Resolve raw_value through its scheme prefix, or return it unchanged.

    Raises:
        SecretResolutionFailed: missing file or key, or malformed document
    """
    if raw_value is None:
        return None

    scheme, sep, ref = raw_value.partition(":")
    resolver = RESOLVERS.get(scheme) if sep else None
    if resolver is None:
        return raw_value

    logger.debug("Resolving %s: secret reference", scheme)
    return resolver(ref)
