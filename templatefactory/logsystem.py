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

"""Log sinks for the template engine's own messages.

The engine reports what it does (loader setup, template loads) to a
:class:`LogSystem`.  By default those messages are dropped; the factory
installs a :class:`LoggingLogSystem` so they reach the host application's
:mod:`logging` configuration instead.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

ENGINE_LOGGER_NAME = "templatefactory.engine"


class LogSystem(ABC):
    """Anything that accepts a ``logging`` level and a message."""

    @abstractmethod
    def log(self, level: int, message: str) -> None:
        """Record *message* at *level*."""


class NullLogSystem(LogSystem):
    """Discards every message."""

    def log(self, level: int, message: str) -> None:
        pass


class LoggingLogSystem(LogSystem):
    """Forwards engine messages to a standard library logger.

    Args:
        logger: Target logger.  Defaults to ``templatefactory.engine``.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger(ENGINE_LOGGER_NAME)

    def log(self, level: int, message: str) -> None:
        self.logger.log(level, "%s", message)
