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

"""Container-facing wrapper that exposes one shared engine.

Application containers call :meth:`after_properties_set` once the settings
are in place and :meth:`get_object` whenever the engine is needed.
"""

from __future__ import annotations

from templatefactory.engine import TemplateEngine
from templatefactory.factory import EngineSettings, TemplateEngineFactory


class TemplateEngineFactoryObject(TemplateEngineFactory):
    """Lazily creates a single :class:`TemplateEngine` and hands it out."""

    object_type = TemplateEngine
    is_singleton = True

    def __init__(self, settings: EngineSettings | None = None) -> None:
        super().__init__(settings)
        self._engine: TemplateEngine | None = None

    def after_properties_set(self) -> None:
        """Create the engine now instead of on first :meth:`get_object`."""
        self._engine = self.create_engine()

    def get_object(self) -> TemplateEngine:
        if self._engine is None:
            self.after_properties_set()
        return self._engine
