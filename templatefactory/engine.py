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

"""Template engine handle over a Jinja2 environment.

A :class:`TemplateEngine` is configured through string-keyed properties
and application attributes, then finalized with :meth:`TemplateEngine.init`,
which builds the underlying :class:`jinja2.Environment`.  Recognised keys:

``resource.loader``
    ``file`` (:class:`jinja2.FileSystemLoader`), ``stream``
    (:class:`ResourceTemplateLoader`) or unset (no loader).
``file.resource.loader.path``
    Comma-separated directories searched by the file loader.
``file.resource.loader.cache`` / ``stream.resource.loader.cache``
    Keep compiled templates in memory.
``file.resource.loader.modification_check``
    Re-read a file template when its timestamp changes.
``input.encoding``
    Encoding of template sources.
``environment.<option>``
    Any supported :class:`jinja2.Environment` keyword argument.
``runtime.log.logsystem``
    A :class:`~templatefactory.logsystem.LogSystem` for engine messages.

The stream loader additionally reads two application attributes:
``stream.resource.loader`` (a :class:`ResourceLoader`) and
``stream.resource.loader.path`` (comma-separated locations).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from jinja2 import (
    BaseLoader,
    ChainableUndefined,
    DebugUndefined,
    Environment,
    FileSystemLoader,
    StrictUndefined,
    Template,
    TemplateNotFound,
    Undefined,
    make_logging_undefined,
    select_autoescape,
)
from jinja2.loaders import split_template_path

from templatefactory.logsystem import LoggingLogSystem, LogSystem, NullLogSystem
from templatefactory.properties import PropertySet
from templatefactory.resources import ResourceLoader, split_paths

RESOURCE_LOADER = "resource.loader"
FILE_LOADER_NAME = "file"
STREAM_LOADER_NAME = "stream"

FILE_RESOURCE_LOADER_PATH = "file.resource.loader.path"
FILE_RESOURCE_LOADER_CACHE = "file.resource.loader.cache"
FILE_RESOURCE_LOADER_MODIFICATION_CHECK = "file.resource.loader.modification_check"
STREAM_RESOURCE_LOADER_CACHE = "stream.resource.loader.cache"

# Application attributes (objects, not properties)
STREAM_RESOURCE_LOADER = "stream.resource.loader"
STREAM_RESOURCE_LOADER_PATH = "stream.resource.loader.path"

RUNTIME_LOG_LOGSYSTEM = "runtime.log.logsystem"
INPUT_ENCODING = "input.encoding"
ENVIRONMENT_PREFIX = "environment."

_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0", ""}


# ---------------------------------------------------------------------------
# Value coercion
# ---------------------------------------------------------------------------


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
    raise ValueError(f"Expected a boolean, got {value!r}")


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Expected an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Expected an integer, got {value!r}") from None


def _as_str(value: Any) -> str:
    if isinstance(value, list):
        raise ValueError(f"Expected a single value, got {value!r}")
    return str(value)


def _as_optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return _as_str(value)


def _as_list(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return split_paths(str(value))


def _as_autoescape(value: Any) -> bool | Callable[[str | None], bool]:
    if isinstance(value, bool) or callable(value):
        return value
    if isinstance(value, str) and value.strip().lower() in _TRUE | _FALSE:
        return _as_bool(value)
    return select_autoescape(enabled_extensions=_as_list(value), default_for_string=False)


_UNDEFINED_TYPES: dict[str, type[Undefined]] = {
    "default": Undefined,
    "strict": StrictUndefined,
    "debug": DebugUndefined,
    "chainable": ChainableUndefined,
}


def _as_undefined(value: Any) -> type[Undefined]:
    if isinstance(value, type) and issubclass(value, Undefined):
        return value
    try:
        return _UNDEFINED_TYPES[str(value).strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown undefined type {value!r}. Available: {sorted(_UNDEFINED_TYPES)}"
        ) from None


_ENVIRONMENT_OPTIONS: dict[str, Callable[[Any], Any]] = {
    "block_start_string": _as_str,
    "block_end_string": _as_str,
    "variable_start_string": _as_str,
    "variable_end_string": _as_str,
    "comment_start_string": _as_str,
    "comment_end_string": _as_str,
    "line_statement_prefix": _as_optional_str,
    "line_comment_prefix": _as_optional_str,
    "trim_blocks": _as_bool,
    "lstrip_blocks": _as_bool,
    "newline_sequence": _as_str,
    "keep_trailing_newline": _as_bool,
    "optimized": _as_bool,
    "autoescape": _as_autoescape,
    "cache_size": _as_int,
    "extensions": _as_list,
    "undefined": _as_undefined,
}


# ---------------------------------------------------------------------------
# Stream loader
# ---------------------------------------------------------------------------


class ResourceTemplateLoader(BaseLoader):
    """Jinja2 loader reading templates through a :class:`ResourceLoader`.

    Each template name is appended to every base location in turn; the
    first resource that exists wins.  Templates are never reported as
    stale, so a cached template is kept for the environment's lifetime.
    """

    def __init__(
        self,
        resource_loader: ResourceLoader,
        paths: list[str],
        encoding: str = "utf-8",
    ) -> None:
        self.resource_loader = resource_loader
        self.paths = paths
        self.encoding = encoding

    def get_source(
        self, environment: Environment, template: str,
    ) -> tuple[str, str, Callable[[], bool]]:
        name = "/".join(split_template_path(template))
        for base in self.paths:
            resource = self.resource_loader.get_resource(f"{base.rstrip('/')}/{name}")
            if not resource.exists():
                continue
            with resource.open() as stream:
                source = stream.read().decode(self.encoding)
            return source, resource.description, lambda: True
        raise TemplateNotFound(template)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class TemplateEngine:
    """Property-configured wrapper around a :class:`jinja2.Environment`.

    Set properties and attributes first, then call :meth:`init` once.
    After initialization the configuration is frozen.
    """

    def __init__(self) -> None:
        self._properties = PropertySet()
        self._attributes: dict[str, Any] = {}
        self._environment: Environment | None = None
        self._log_system: LogSystem = NullLogSystem()

    # --- Configuration ---

    def _check_mutable(self) -> None:
        if self._environment is not None:
            raise RuntimeError("Template engine is already initialized")

    def set_property(self, key: str, value: Any) -> None:
        self._check_mutable()
        self._properties.set_property(key, value)

    def get_property(self, key: str, default: Any = None) -> Any:
        return self._properties.get(key, default)

    @property
    def properties(self) -> dict[str, Any]:
        """A copy of the current properties."""
        return dict(self._properties)

    def set_application_attribute(self, key: str, value: Any) -> None:
        self._check_mutable()
        self._attributes[key] = value

    def get_application_attribute(self, key: str, default: Any = None) -> Any:
        return self._attributes.get(key, default)

    @property
    def initialized(self) -> bool:
        return self._environment is not None

    @property
    def log_system(self) -> LogSystem:
        return self._log_system

    def log(self, level: int, message: str) -> None:
        """Send an engine message to the configured log system."""
        self._log_system.log(level, message)

    # --- Initialization ---

    def _environment_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {}
        for key, value in self._properties.items():
            if not key.startswith(ENVIRONMENT_PREFIX):
                continue
            option = key[len(ENVIRONMENT_PREFIX):]
            convert = _ENVIRONMENT_OPTIONS.get(option)
            if convert is None:
                raise ValueError(f"Unknown environment option {key!r}")
            options[option] = convert(value)
        return options

    def _create_loader(self, encoding: str) -> tuple[BaseLoader | None, bool, bool]:
        """Return ``(loader, cache, auto_reload)`` for the configured loader."""
        name = self._properties.get_string(RESOURCE_LOADER, "") or ""
        if not name:
            return None, True, False

        if name == FILE_LOADER_NAME:
            paths = self._properties.get_list(FILE_RESOURCE_LOADER_PATH)
            if not paths:
                raise ValueError(f"{FILE_RESOURCE_LOADER_PATH} is required for the file loader")
            cache = _as_bool(self._properties.get(FILE_RESOURCE_LOADER_CACHE, True))
            reload = _as_bool(self._properties.get(FILE_RESOURCE_LOADER_MODIFICATION_CHECK, False))
            return FileSystemLoader(paths, encoding=encoding), cache, reload

        if name == STREAM_LOADER_NAME:
            resource_loader = self._attributes.get(STREAM_RESOURCE_LOADER)
            if not isinstance(resource_loader, ResourceLoader):
                raise ValueError(
                    f"Application attribute {STREAM_RESOURCE_LOADER!r} must be a "
                    f"ResourceLoader, got {resource_loader!r}"
                )
            paths = split_paths(self._attributes.get(STREAM_RESOURCE_LOADER_PATH) or "")
            cache = _as_bool(self._properties.get(STREAM_RESOURCE_LOADER_CACHE, True))
            return ResourceTemplateLoader(resource_loader, paths, encoding), cache, False

        raise ValueError(f"Unknown resource loader {name!r}")

    def init(self) -> None:
        """Build the Jinja2 environment from the configured properties.

        Calling it again after a successful initialization does nothing.
        Configuration errors surface as :class:`ValueError` (or whatever
        Jinja2 raises for invalid options).
        """
        if self._environment is not None:
            return

        log_system = self._properties.get(RUNTIME_LOG_LOGSYSTEM) or NullLogSystem()
        if not callable(getattr(log_system, "log", None)):
            raise ValueError(
                f"{RUNTIME_LOG_LOGSYSTEM} must provide log(level, message), got {log_system!r}"
            )
        self._log_system = log_system

        encoding = self._properties.get_string(INPUT_ENCODING, "utf-8") or "utf-8"
        options = self._environment_options()
        loader, cache, reload = self._create_loader(encoding)
        if not cache:
            options["cache_size"] = 0
        if isinstance(log_system, LoggingLogSystem):
            options["undefined"] = make_logging_undefined(
                log_system.logger, options.get("undefined", Undefined),
            )

        self._environment = Environment(loader=loader, auto_reload=reload, **options)
        self.log(
            logging.DEBUG,
            f"Template engine initialized with {type(loader).__name__ if loader else 'no'} loader "
            f"(cache={'on' if cache else 'off'}, modification check={'on' if reload else 'off'})",
        )

    # --- Rendering ---

    @property
    def environment(self) -> Environment:
        if self._environment is None:
            raise RuntimeError("Template engine has not been initialized")
        return self._environment

    def get_template(self, template_name: str) -> Template:
        """Return a compiled template.

        Raises ``jinja2.TemplateNotFound`` if no loader can find it.
        """
        template = self.environment.get_template(template_name)
        self.log(logging.DEBUG, f"Loaded template {template_name} from {template.filename}")
        return template

    def render(self, template_name: str, **variables: Any) -> str:
        """Render a template with the given variables."""
        return self.get_template(template_name).render(**variables)

    def render_string(self, source: str, **variables: Any) -> str:
        """Render template source text with the given variables."""
        return self.environment.from_string(source).render(**variables)

    def has_template(self, template_name: str) -> bool:
        """Check whether a loader can find the template."""
        try:
            self.environment.get_template(template_name)
            return True
        except TemplateNotFound:
            return False
