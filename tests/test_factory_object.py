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

"""Tests for templatefactory.factory_object."""

from unittest.mock import patch

import pytest

from templatefactory.engine import TemplateEngine
from templatefactory.exceptions import ConfigurationError
from templatefactory.factory import EngineSettings
from templatefactory.factory_object import TemplateEngineFactoryObject


class TestTemplateEngineFactoryObject:
    def test_metadata(self):
        factory = TemplateEngineFactoryObject()
        assert factory.object_type is TemplateEngine
        assert factory.is_singleton is True

    def test_get_object_creates_lazily_once(self, tmp_path):
        factory = TemplateEngineFactoryObject(EngineSettings(resource_loader_paths=[str(tmp_path)]))
        with patch.object(factory, "create_engine", wraps=factory.create_engine) as create:
            first = factory.get_object()
            second = factory.get_object()
        assert first is second
        assert first.initialized
        assert create.call_count == 1

    def test_after_properties_set_creates_eagerly(self):
        factory = TemplateEngineFactoryObject()
        factory.after_properties_set()
        with patch.object(factory, "create_engine") as create:
            engine = factory.get_object()
        create.assert_not_called()
        assert isinstance(engine, TemplateEngine)

    def test_configuration_errors_propagate(self):
        factory = TemplateEngineFactoryObject(EngineSettings(prefer_filesystem_access=False))
        with pytest.raises(ConfigurationError):
            factory.after_properties_set()
        with pytest.raises(ConfigurationError):
            factory.get_object()
