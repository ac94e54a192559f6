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

"""Configure and initialize Jinja2 template engines.

Reads engine properties from bundled defaults, an optional properties
file and inline overrides, picks how templates are loaded (straight from
disk with change detection, or as streams through a resource loader) and
returns an initialized engine.

Usage::

    from templatefactory import EngineSettings, create_template_engine

    engine = create_template_engine(
        EngineSettings(
            config_location="config/engine.properties",
            resource_loader_paths="templates,package://myapp/templates",
        )
    )
    text = engine.render("report.txt", title="...")
"""

from templatefactory.engine import ResourceTemplateLoader, TemplateEngine
from templatefactory.exceptions import (
    ConfigurationError,
    EngineInitializationError,
    LoadError,
    ResourceResolutionError,
    TemplateFactoryError,
)
from templatefactory.factory import (
    EngineSettings,
    LoaderSelection,
    LoaderStrategy,
    TemplateEngineFactory,
    create_template_engine,
    select_loader_strategy,
)
from templatefactory.factory_object import TemplateEngineFactoryObject
from templatefactory.logsystem import LoggingLogSystem, LogSystem, NullLogSystem
from templatefactory.properties import PropertySet, fill_properties, load_properties
from templatefactory.resources import (
    DefaultResourceLoader,
    FileResource,
    PackageResource,
    Resource,
    ResourceLoader,
    UrlResource,
    join_paths,
    split_paths,
)

__all__ = [
    "ConfigurationError",
    "DefaultResourceLoader",
    "EngineInitializationError",
    "EngineSettings",
    "FileResource",
    "LoadError",
    "LoaderSelection",
    "LoaderStrategy",
    "LogSystem",
    "LoggingLogSystem",
    "NullLogSystem",
    "PackageResource",
    "PropertySet",
    "Resource",
    "ResourceLoader",
    "ResourceResolutionError",
    "ResourceTemplateLoader",
    "TemplateEngine",
    "TemplateEngineFactory",
    "TemplateEngineFactoryObject",
    "TemplateFactoryError",
    "UrlResource",
    "create_template_engine",
    "fill_properties",
    "join_paths",
    "load_properties",
    "select_loader_strategy",
    "split_paths",
]
