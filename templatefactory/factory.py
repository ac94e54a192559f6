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

"""Factory that configures and initializes a :class:`TemplateEngine`.

Configuration comes from three places, merged in this order (later wins):

1. the engine defaults bundled in ``templatefactory/defaults``;
2. an optional properties file (``config_location``);
3. inline ``properties``.

Template locations are given as ``resource_loader_paths``.  When
``prefer_filesystem_access`` is on (the default) and every location is a
filesystem directory, the engine reads templates straight from disk and
re-reads them when they change.  Otherwise it reads them as streams through
the configured :class:`ResourceLoader`, without change detection.

Usage::

    from templatefactory import EngineSettings, create_template_engine

    engine = create_template_engine(
        EngineSettings(
            resource_loader_paths=["./templates"],
            properties={"environment.trim_blocks": True},
        )
    )
    engine.render("welcome.txt", name="World")
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from templatefactory.engine import (
    FILE_LOADER_NAME,
    FILE_RESOURCE_LOADER_CACHE,
    FILE_RESOURCE_LOADER_MODIFICATION_CHECK,
    FILE_RESOURCE_LOADER_PATH,
    RESOURCE_LOADER,
    RUNTIME_LOG_LOGSYSTEM,
    STREAM_LOADER_NAME,
    STREAM_RESOURCE_LOADER,
    STREAM_RESOURCE_LOADER_CACHE,
    STREAM_RESOURCE_LOADER_PATH,
    TemplateEngine,
)
from templatefactory.exceptions import (
    ConfigurationError,
    EngineInitializationError,
    ResourceResolutionError,
)
from templatefactory.logsystem import LoggingLogSystem
from templatefactory.properties import PropertySet, fill_properties
from templatefactory.resources import (
    DefaultResourceLoader,
    PackageResource,
    Resource,
    ResourceLoader,
    join_paths,
    split_paths,
)

logger = logging.getLogger(__name__)

DEFAULT_PROPERTY_RESOURCES = (
    PackageResource("templatefactory", "defaults/runtime.properties"),
    PackageResource("templatefactory", "defaults/syntax.properties"),
)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@dataclass
class EngineSettings:
    """Everything the factory needs to build an engine.

    Attributes:
        config_location: Properties file, as a location string (resolved
            through ``resource_loader``) or a :class:`Resource`.
        properties: Inline properties; override the config file.
        resource_loader_paths: Template locations, in search order.  A
            single string is split on commas.
        resource_loader: Resolves locations to resources.
        prefer_filesystem_access: Read templates directly from disk (with
            change detection) when every location is a directory.
        override_logging: Route engine messages to :mod:`logging`.
        post_process: Called with the configured engine just before
            initialization.
    """

    config_location: str | Resource | None = None
    properties: dict[str, Any] = field(default_factory=dict)
    resource_loader_paths: list[str] = field(default_factory=list)
    resource_loader: ResourceLoader = field(default_factory=DefaultResourceLoader)
    prefer_filesystem_access: bool = True
    override_logging: bool = True
    post_process: Callable[[TemplateEngine], None] | None = None

    def __post_init__(self) -> None:
        if isinstance(self.resource_loader_paths, str):
            self.resource_loader_paths = split_paths(self.resource_loader_paths)
        else:
            self.resource_loader_paths = list(self.resource_loader_paths or [])

    def add_resource_loader_path(self, path: str) -> None:
        """Append one location (or a comma-separated group of them)."""
        self.resource_loader_paths.extend(split_paths(path))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EngineSettings:
        """Build settings from a plain mapping (e.g. parsed app config).

        ``base_dir`` configures the default resource loader; the other
        keys match the attribute names.
        """
        return cls(
            config_location=data.get("config_location"),
            properties=dict(data.get("properties") or {}),
            resource_loader_paths=data.get("resource_loader_paths") or [],
            resource_loader=DefaultResourceLoader(base_dir=data.get("base_dir")),
            prefer_filesystem_access=data.get("prefer_filesystem_access", True),
            override_logging=data.get("override_logging", True),
        )


# ---------------------------------------------------------------------------
# Loader strategy
# ---------------------------------------------------------------------------


class LoaderStrategy(Enum):
    """How the engine reads templates."""
    FILESYSTEM_DIRECT = FILE_LOADER_NAME
    ABSTRACTED_RESOURCE = STREAM_LOADER_NAME


@dataclass
class LoaderSelection:
    """Outcome of :func:`select_loader_strategy`.

    ``strategy`` is ``None`` when no locations were given.  ``paths`` are
    absolute directories for filesystem access and the original location
    strings for stream access.
    """

    strategy: LoaderStrategy | None
    paths: list[str] = field(default_factory=list)

    @property
    def path_string(self) -> str:
        return join_paths(self.paths)


def _resolve_directory(resource_loader: ResourceLoader, location: str) -> Path:
    directory = resource_loader.get_resource(location).get_file()
    if not directory.is_dir():
        raise ResourceResolutionError(f"{directory} is not a directory")
    return directory


def select_loader_strategy(
    paths: Iterable[str],
    prefer_filesystem: bool,
    resource_loader: ResourceLoader,
) -> LoaderSelection:
    """Decide how templates under *paths* should be loaded.

    If any location cannot be resolved to a filesystem directory, every
    location falls back to stream access.

    Raises :class:`ConfigurationError` when stream access is requested
    without any location.
    """
    paths = list(paths)
    if not prefer_filesystem and not paths:
        raise ConfigurationError(
            "Loading templates without filesystem access requires at least "
            "one resource loader path"
        )
    if not paths:
        return LoaderSelection(None)

    if not prefer_filesystem:
        logger.debug("Filesystem access not preferred: using stream resource loader")
        return LoaderSelection(LoaderStrategy.ABSTRACTED_RESOURCE, paths)

    try:
        resolved = [str(_resolve_directory(resource_loader, p)) for p in paths]
    except (ResourceResolutionError, OSError) as exc:
        logger.warning(
            "Cannot resolve resource loader path [%s] to a directory (%s): "
            "using stream resource loader",
            join_paths(paths), exc,
        )
        return LoaderSelection(LoaderStrategy.ABSTRACTED_RESOURCE, paths)

    logger.debug("Using file resource loader for [%s]", join_paths(resolved))
    return LoaderSelection(LoaderStrategy.FILESYSTEM_DIRECT, resolved)


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


def load_default_properties(engine: TemplateEngine) -> None:
    """Apply the bundled engine defaults to *engine*."""
    defaults = PropertySet()
    for resource in DEFAULT_PROPERTY_RESOURCES:
        fill_properties(defaults, resource)
    for key, value in defaults.items():
        engine.set_property(key, value)


def build_properties(settings: EngineSettings) -> PropertySet:
    """Merge the config file and inline properties (inline wins).

    Raises :class:`~templatefactory.exceptions.LoadError` if the config
    file cannot be read.
    """
    properties = PropertySet()
    location = settings.config_location
    if location is not None:
        resource = (
            location if isinstance(location, Resource)
            else settings.resource_loader.get_resource(location)
        )
        logger.info("Loading template engine config from [%s]", resource.description)
        fill_properties(properties, resource)
    if settings.properties:
        properties.merge(settings.properties)
    return properties


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class TemplateEngineFactory:
    """Create configured, initialized :class:`TemplateEngine` instances.

    Subclasses can override :meth:`new_engine` and
    :meth:`post_process_engine` to customise construction.

    Args:
        settings: Factory configuration.  Defaults to :class:`EngineSettings`.
    """

    def __init__(self, settings: EngineSettings | None = None) -> None:
        self.settings = settings or EngineSettings()

    def create_engine(self) -> TemplateEngine:
        """Create, configure and initialize a new engine.

        Raises :class:`ConfigurationError` for contradictory settings,
        :class:`~templatefactory.exceptions.LoadError` for unreadable
        config files and :class:`EngineInitializationError` if the engine
        rejects its configuration.
        """
        settings = self.settings
        engine = self.new_engine()

        # Mandatory bootstrap properties; everything below may override them
        load_default_properties(engine)
        properties = build_properties(settings)

        selection = select_loader_strategy(
            settings.resource_loader_paths,
            settings.prefer_filesystem_access,
            settings.resource_loader,
        )
        if selection.strategy is not None:
            self.init_resource_loader(engine, selection)

        if settings.override_logging:
            engine.set_property(RUNTIME_LOG_LOGSYSTEM, LoggingLogSystem())

        self.post_process_engine(engine)

        try:
            for key, value in properties.items():
                engine.set_property(key, value)
            engine.init()
        except Exception as exc:
            raise EngineInitializationError(
                f"Template engine initialization failed: {exc}", exc,
            ) from exc

        return engine

    def new_engine(self) -> TemplateEngine:
        """Return a new, unconfigured engine."""
        return TemplateEngine()

    def init_resource_loader(self, engine: TemplateEngine, selection: LoaderSelection) -> None:
        """Configure *engine* for the selected loader strategy."""
        if selection.strategy is LoaderStrategy.FILESYSTEM_DIRECT:
            engine.set_property(RESOURCE_LOADER, FILE_LOADER_NAME)
            engine.set_property(FILE_RESOURCE_LOADER_CACHE, "true")
            engine.set_property(FILE_RESOURCE_LOADER_MODIFICATION_CHECK, "true")
            engine.set_property(FILE_RESOURCE_LOADER_PATH, selection.path_string)
        else:
            self.init_stream_resource_loader(engine, selection.path_string)

    def init_stream_resource_loader(self, engine: TemplateEngine, path_string: str) -> None:
        """Read templates through the settings' resource loader, cached, no reload."""
        engine.set_property(RESOURCE_LOADER, STREAM_LOADER_NAME)
        engine.set_property(STREAM_RESOURCE_LOADER_CACHE, "true")
        engine.set_application_attribute(STREAM_RESOURCE_LOADER, self.settings.resource_loader)
        engine.set_application_attribute(STREAM_RESOURCE_LOADER_PATH, path_string)

    def post_process_engine(self, engine: TemplateEngine) -> None:
        """Hook called after configuration, before ``engine.init()``."""
        if self.settings.post_process is not None:
            self.settings.post_process(engine)


def create_template_engine(
    settings: EngineSettings | None = None, **overrides: Any,
) -> TemplateEngine:
    """Build an engine from *settings* (keyword overrides replace fields)."""
    if settings is None:
        settings = EngineSettings(**overrides)
    elif overrides:
        settings = dataclasses.replace(settings, **overrides)
    return TemplateEngineFactory(settings).create_engine()
