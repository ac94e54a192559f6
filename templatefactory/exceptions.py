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

"""Exception hierarchy for template engine configuration."""

from __future__ import annotations


class TemplateFactoryError(Exception):
    """Base exception for all templatefactory errors."""


class ConfigurationError(TemplateFactoryError, ValueError):
    """Raised when the factory settings contradict each other."""


class LoadError(TemplateFactoryError):
    """Raised when a properties resource cannot be read or parsed."""


class ResourceResolutionError(TemplateFactoryError):
    """Raised when a resource has no filesystem location."""


class EngineInitializationError(TemplateFactoryError):
    """Raised when the template engine rejects its configuration.

    The original exception is available as :attr:`cause` (and as
    ``__cause__`` when raised with ``raise ... from``).
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause
