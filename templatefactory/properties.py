# templatefactory — configurable Jinja2 engine factory
# Copyright (C) 2024-2026 Dr Horst Herb
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Extended properties: an ordered property set and its file format.

The format is the familiar ``key = value`` properties syntax with a few
extensions used by template engine configuration files:

* ``#`` and ``!`` start comment lines;
* a trailing backslash continues a value on the next line;
* ``${other.key}`` is replaced by the value of a previously loaded key;
* unescaped commas split a value into a list (``\\,`` is a literal comma);
* a key that appears more than once accumulates its values into a list;
* ``include = other.properties`` pulls in another file, resolved relative
  to the including one.

Usage::

    from templatefactory.properties import PropertySet, fill_properties

    props = fill_properties(PropertySet(), FileResource("engine.properties"))
    props.merge({"environment.trim_blocks": True})
"""

from __future__ import annotations

import logging
import re
import string
from collections.abc import Callable, Mapping
from typing import IO, Any

from templatefactory.exceptions import LoadError
from templatefactory.resources import DELIMITER, Resource

logger = logging.getLogger(__name__)

INCLUDE_KEY = "include"

_COMMENT_PREFIXES = ("#", "!")
_SEPARATORS = "=:"
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_REFERENCE = re.compile(r"\$\{([^}]+)\}")

IncludeCallback = Callable[[str, "PropertySet"], None]


class PropertySet(dict):
    """Ordered mapping of property names to values.

    Values are strings, lists of strings (from the file format) or
    arbitrary objects set programmatically.
    """

    def set_property(self, key: str, value: Any) -> None:
        """Set *key*, replacing any existing value."""
        self[key] = value

    def add_property(self, key: str, value: Any) -> None:
        """Set *key*, accumulating into a list if it is already present."""
        if key not in self:
            self[key] = value
            return
        current = self[key]
        values = list(current) if isinstance(current, list) else [current]
        if isinstance(value, list):
            values.extend(value)
        else:
            values.append(value)
        self[key] = values

    def merge(self, other: Mapping[str, Any]) -> PropertySet:
        """Copy every entry of *other* over this set; later wins."""
        for key, value in other.items():
            self.set_property(key, value)
        return self

    def get_string(self, key: str, default: str | None = None) -> str | None:
        """Return *key* as a string; lists are joined with the delimiter."""
        value = self.get(key)
        if value is None:
            return default
        if isinstance(value, list):
            return DELIMITER.join(str(v) for v in value)
        return str(value)

    def get_list(self, key: str) -> list[Any]:
        """Return *key* as a list; comma-separated strings are split."""
        value = self.get(key)
        if value is None:
            return []
        if isinstance(value, list):
            return list(value)
        if isinstance(value, str):
            return [part.strip() for part in value.split(DELIMITER) if part.strip()]
        return [value]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _ends_with_continuation(line: str) -> bool:
    count = len(line) - len(line.rstrip("\\"))
    return count % 2 == 1


def _logical_lines(text: str):
    """Yield complete entries, joining continuation lines."""
    buffer = ""
    continued = False
    for raw in text.splitlines():
        line = raw.strip()
        if not continued and (not line or line.startswith(_COMMENT_PREFIXES)):
            continue
        if _ends_with_continuation(line):
            buffer += line[:-1]
            continued = True
            continue
        buffer += line
        yield buffer
        buffer = ""
        continued = False
    if buffer:
        yield buffer


def _unescape(text: str) -> str:
    out: list[str] = []
    index = 0
    length = len(text)
    while index < length:
        char = text[index]
        if char != "\\":
            out.append(char)
            index += 1
            continue
        if index + 1 >= length:
            break
        escaped = text[index + 1]
        if escaped == "u":
            digits = text[index + 2:index + 6]
            if len(digits) != 4 or any(d not in string.hexdigits for d in digits):
                raise LoadError(f"Malformed \\uXXXX escape: {text[index:index + 6]!r}")
            out.append(chr(int(digits, 16)))
            index += 6
            continue
        out.append(_ESCAPES.get(escaped, escaped))
        index += 2
    return "".join(out)


def _split_entry(line: str) -> tuple[str, str]:
    """Split a logical line into its (unescaped) key and raw value."""
    key_chars: list[str] = []
    index = 0
    length = len(line)
    while index < length:
        char = line[index]
        if char == "\\":
            key_chars.append(line[index:index + 2])
            index += 2
            continue
        if char in _SEPARATORS or char.isspace():
            break
        key_chars.append(char)
        index += 1
    rest = line[index:].lstrip()
    if rest and rest[0] in _SEPARATORS:
        rest = rest[1:].lstrip()
    return _unescape("".join(key_chars)), rest


def _interpolate(value: str, properties: PropertySet) -> str:
    def replace(match: re.Match) -> str:
        name = match.group(1)
        if name not in properties:
            return match.group(0)
        return properties.get_string(name) or ""

    return _REFERENCE.sub(replace, value)


def _split_unescaped(value: str) -> list[str]:
    parts: list[str] = []
    current: list[str] = []
    index = 0
    while index < len(value):
        char = value[index]
        if char == "\\":
            current.append(value[index:index + 2])
            index += 2
            continue
        if char == DELIMITER:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
        index += 1
    parts.append("".join(current))
    return parts


def _parse_value(raw: str, properties: PropertySet) -> str | list[str]:
    parts = [_unescape(part.strip()) for part in _split_unescaped(_interpolate(raw, properties))]
    if len(parts) == 1:
        return parts[0]
    return [part for part in parts if part]


def load_properties(
    source: str | IO[bytes] | IO[str],
    properties: PropertySet | None = None,
    *,
    encoding: str = "utf-8",
    include: IncludeCallback | None = None,
) -> PropertySet:
    """Parse properties text (or a readable stream) into a property set.

    Entries are added to *properties* when given, otherwise to a new
    :class:`PropertySet`.  ``include`` entries are handed to the *include*
    callback; without one they are stored like any other key.

    Raises :class:`LoadError` on undecodable input or malformed entries.
    """
    if properties is None:
        properties = PropertySet()

    if isinstance(source, str):
        text = source
    else:
        data = source.read()
        if isinstance(data, bytes):
            try:
                text = data.decode(encoding)
            except UnicodeDecodeError as exc:
                raise LoadError(f"Cannot decode properties as {encoding}: {exc}") from exc
        else:
            text = data

    for line in _logical_lines(text):
        key, raw_value = _split_entry(line)
        if not key:
            raise LoadError(f"Missing property name in entry {line!r}")
        value = _parse_value(raw_value, properties)
        if key == INCLUDE_KEY and include is not None:
            for name in value if isinstance(value, list) else [value]:
                include(name, properties)
            continue
        properties.add_property(key, value)

    return properties


def _fill(
    properties: PropertySet,
    resource: Resource,
    encoding: str,
    chain: tuple[str, ...],
) -> PropertySet:
    if resource.description in chain:
        raise LoadError(f"Circular include of {resource.description}")
    chain = (*chain, resource.description)

    def include(name: str, target: PropertySet) -> None:
        _fill(target, resource.create_relative(name), encoding, chain)

    try:
        with resource.open() as stream:
            load_properties(stream, properties, encoding=encoding, include=include)
    except OSError as exc:
        raise LoadError(f"Cannot read properties from {resource.description}: {exc}") from exc

    logger.debug("Loaded properties from %s", resource.description)
    return properties


def fill_properties(
    properties: PropertySet,
    resource: Resource,
    *,
    encoding: str = "utf-8",
) -> PropertySet:
    """Load *resource* into *properties* and return it.

    The resource stream is closed whether parsing succeeds or not.
    Nested ``include`` entries are resolved relative to *resource*.
    """
    return _fill(properties, resource, encoding, ())
