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

"""Resource abstraction: turn a location string into readable content.

A :class:`ResourceLoader` maps location strings to :class:`Resource`
objects.  The default loader understands:

* ``file:/abs/path``, ``file:///abs/path`` and bare paths (filesystem,
  relative paths resolved against ``base_dir`` or the working directory);
* ``package://some.package/sub/file`` (data shipped inside an importable
  package, read via :mod:`importlib.resources`);
* ``http://`` and ``https://`` URLs (requires ``httpx``).

Only filesystem resources can be resolved to a :class:`~pathlib.Path`;
the others are readable as streams only.
"""

from __future__ import annotations

import io
import logging
import posixpath
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from importlib import resources as importlib_resources
from pathlib import Path
from typing import IO, Any
from urllib.parse import urljoin

from templatefactory.exceptions import ResourceResolutionError

logger = logging.getLogger(__name__)

DELIMITER = ","
TIMEOUT = 30.0

FILE_URL_PREFIX = "file://"
FILE_PREFIX = "file:"
PACKAGE_PREFIX = "package://"
HTTP_PREFIXES = ("http://", "https://")


def join_paths(paths: Iterable[str]) -> str:
    """Join location strings with :data:`DELIMITER`.

    Locations must not themselves contain the delimiter; such a list
    cannot be split back into the same entries.
    """
    return DELIMITER.join(str(p) for p in paths)


def split_paths(text: str) -> list[str]:
    """Split a delimited location string, dropping blanks."""
    return [part.strip() for part in text.split(DELIMITER) if part.strip()]


def _require_httpx() -> Any:
    try:
        import httpx
    except ImportError:
        raise ImportError(
            "httpx is required for http(s) resources. "
            "Install with: pip install templatefactory[http]"
        )
    return httpx


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


class Resource(ABC):
    """A readable piece of content identified by a location."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable, unique description (used in messages)."""

    @abstractmethod
    def open(self) -> IO[bytes]:
        """Open the content as a binary stream (caller closes it)."""

    @abstractmethod
    def exists(self) -> bool:
        """Return whether the resource can currently be read."""

    @abstractmethod
    def create_relative(self, relative: str) -> Resource:
        """Return a resource relative to this one.

        For a file this is a sibling; for a directory, a child.
        """

    def get_file(self) -> Path:
        """Return the filesystem path backing this resource.

        Raises :class:`ResourceResolutionError` for resources that are
        not stored on the filesystem.
        """
        raise ResourceResolutionError(
            f"{self.description} cannot be resolved to a filesystem path"
        )

    def __str__(self) -> str:
        return self.description

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.description}>"


class FileResource(Resource):
    """A file or directory on the local filesystem."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    @property
    def description(self) -> str:
        return f"file [{self.path.absolute()}]"

    def open(self) -> IO[bytes]:
        return self.path.open("rb")

    def exists(self) -> bool:
        return self.path.exists()

    def create_relative(self, relative: str) -> Resource:
        base = self.path if self.path.is_dir() else self.path.parent
        return FileResource(base / relative)

    def get_file(self) -> Path:
        return self.path.absolute()


class PackageResource(Resource):
    """Data shipped inside an importable package."""

    def __init__(self, package: str, name: str = "") -> None:
        self.package = package
        self.name = name.strip("/")

    @property
    def description(self) -> str:
        return f"package resource [{self.package}/{self.name}]"

    def _target(self) -> Any:
        target = importlib_resources.files(self.package)
        for part in self.name.split("/"):
            if part:
                target = target.joinpath(part)
        return target

    def open(self) -> IO[bytes]:
        try:
            target = self._target()
        except (ModuleNotFoundError, ValueError) as exc:
            raise FileNotFoundError(f"No package named {self.package!r}") from exc
        return target.open("rb")

    def exists(self) -> bool:
        try:
            target = self._target()
        except (ModuleNotFoundError, ValueError):
            return False
        return target.is_file() or target.is_dir()

    def create_relative(self, relative: str) -> Resource:
        base = self.name
        if not self.exists() or not self._target().is_dir():
            base = posixpath.dirname(self.name)
        name = posixpath.normpath(posixpath.join(base, relative)) if base else relative
        return PackageResource(self.package, name)


class UrlResource(Resource):
    """Content fetched over HTTP(S).

    Args:
        url: Absolute ``http://`` or ``https://`` URL.
        client: Optional ``httpx.Client`` to reuse (otherwise one is
            created per request).
        timeout: Request timeout in seconds.
    """

    def __init__(self, url: str, client: Any = None, timeout: float = TIMEOUT) -> None:
        self.url = url
        self.client = client
        self.timeout = timeout

    @property
    def description(self) -> str:
        return f"URL [{self.url}]"

    def _request(self, method: str) -> Any:
        """Issue a request. Separated for testability."""
        httpx = _require_httpx()
        if self.client is not None:
            return self.client.request(method, self.url)
        with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
            return client.request(method, self.url)

    def open(self) -> IO[bytes]:
        httpx = _require_httpx()
        try:
            response = self._request("GET")
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise OSError(f"Cannot fetch {self.url}: {exc}") from exc
        return io.BytesIO(response.content)

    def exists(self) -> bool:
        httpx = _require_httpx()
        try:
            response = self._request("HEAD")
        except httpx.HTTPError as exc:
            logger.debug("HEAD %s failed: %s", self.url, exc)
            return False
        return response.status_code < 400

    def create_relative(self, relative: str) -> Resource:
        return UrlResource(urljoin(self.url, relative), client=self.client, timeout=self.timeout)


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------


class ResourceLoader(ABC):
    """Strategy mapping a location string to a :class:`Resource`."""

    @abstractmethod
    def get_resource(self, location: str) -> Resource:
        """Return the resource for *location* (it need not exist)."""


class DefaultResourceLoader(ResourceLoader):
    """Prefix-dispatching loader for files, package data and URLs.

    Args:
        base_dir: Directory that relative filesystem paths resolve
            against.  Defaults to the current working directory.
        http_client: Optional ``httpx.Client`` shared by URL resources.
    """

    def __init__(
        self,
        base_dir: str | Path | None = None,
        http_client: Any = None,
    ) -> None:
        self.base_dir = Path(base_dir).expanduser() if base_dir else None
        self.http_client = http_client
        self._protocols: dict[str, Callable[[str], Resource]] = {}

    def register_protocol(self, prefix: str, factory: Callable[[str], Resource]) -> None:
        """Route locations starting with *prefix* to *factory*.

        The factory receives the location with the prefix removed.
        Registered protocols take precedence over the built-in ones.
        """
        self._protocols[prefix] = factory

    def get_resource(self, location: str) -> Resource:
        for prefix, factory in self._protocols.items():
            if location.startswith(prefix):
                return factory(location[len(prefix):])

        if location.startswith(PACKAGE_PREFIX):
            package, _, name = location[len(PACKAGE_PREFIX):].partition("/")
            return PackageResource(package, name)
        if location.startswith(HTTP_PREFIXES):
            return UrlResource(location, client=self.http_client)

        if location.startswith(FILE_URL_PREFIX):
            raw = location[len(FILE_URL_PREFIX):]
        elif location.startswith(FILE_PREFIX):
            raw = location[len(FILE_PREFIX):]
        else:
            raw = location
        path = Path(raw).expanduser()
        if not path.is_absolute() and self.base_dir is not None:
            path = self.base_dir / path
        return FileResource(path)
