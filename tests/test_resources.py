"""Tests for templatefactory.resources."""

from __future__ import annotations

from pathlib import Path

import pytest

from templatefactory.exceptions import ResourceResolutionError
from templatefactory.resources import (
    DefaultResourceLoader,
    FileResource,
    PackageResource,
    UrlResource,
    join_paths,
    split_paths,
)


class TestPathLists:
    def test_join(self):
        assert join_paths(["a", "b/c", "package://x/y"]) == "a,b/c,package://x/y"
        assert join_paths([]) == ""

    def test_split_strips_and_drops_blanks(self):
        assert split_paths(" a , b,, c ") == ["a", "b", "c"]
        assert split_paths("") == []

    @pytest.mark.parametrize("paths", [
        ["templates"],
        ["/srv/templates", "./local", "package://app/templates"],
        ["file:/abs/dir", "https://example.org/tpl"],
    ])
    def test_join_then_split_restores_list(self, paths):
        assert split_paths(join_paths(paths)) == paths


class TestFileResource:
    def test_open_and_exists(self, tmp_path):
        path = tmp_path / "a.txt"
        path.write_bytes(b"content")
        resource = FileResource(path)
        assert resource.exists()
        with resource.open() as stream:
            assert stream.read() == b"content"

    def test_missing_file(self, tmp_path):
        resource = FileResource(tmp_path / "nope.txt")
        assert not resource.exists()
        with pytest.raises(FileNotFoundError):
            resource.open()

    def test_get_file_is_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert FileResource("sub").get_file() == tmp_path / "sub"

    def test_create_relative_to_file_is_sibling(self, tmp_path):
        (tmp_path / "main.properties").write_text("")
        relative = FileResource(tmp_path / "main.properties").create_relative("other.properties")
        assert relative.get_file() == tmp_path / "other.properties"

    def test_create_relative_to_directory_is_child(self, tmp_path):
        relative = FileResource(tmp_path).create_relative("child.txt")
        assert relative.get_file() == tmp_path / "child.txt"

    def test_description_mentions_path(self, tmp_path):
        assert str(tmp_path) in FileResource(tmp_path).description


class TestPackageResource:
    def test_bundled_defaults_are_readable(self):
        resource = PackageResource("templatefactory", "defaults/runtime.properties")
        assert resource.exists()
        with resource.open() as stream:
            assert b"input.encoding" in stream.read()

    def test_cannot_resolve_to_file(self):
        resource = PackageResource("templatefactory", "defaults")
        with pytest.raises(ResourceResolutionError):
            resource.get_file()

    def test_empty_package_name(self):
        resource = DefaultResourceLoader().get_resource("package://")
        assert resource.package == ""
        assert not resource.exists()
        with pytest.raises(FileNotFoundError):
            resource.open()

    def test_missing_package(self):
        resource = PackageResource("no_such_package_xyz", "file.txt")
        assert not resource.exists()
        with pytest.raises(FileNotFoundError):
            resource.open()

    def test_missing_file_in_package(self):
        assert not PackageResource("templatefactory", "defaults/none.properties").exists()

    def test_create_relative_to_file(self):
        resource = PackageResource("templatefactory", "defaults/runtime.properties")
        relative = resource.create_relative("syntax.properties")
        assert relative.name == "defaults/syntax.properties"
        assert relative.exists()

    def test_create_relative_to_directory(self):
        relative = PackageResource("templatefactory", "defaults").create_relative("syntax.properties")
        assert relative.name == "defaults/syntax.properties"


class TestUrlResource:
    @pytest.fixture
    def client(self):
        httpx = pytest.importorskip("httpx")

        def handler(request):
            if request.url.path == "/tpl/hello.txt":
                return httpx.Response(200, content=b"Hello {{ name }}")
            return httpx.Response(404)

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            yield client

    def test_open(self, client):
        resource = UrlResource("https://example.org/tpl/hello.txt", client=client)
        with resource.open() as stream:
            assert stream.read() == b"Hello {{ name }}"

    def test_open_missing_raises_oserror(self, client):
        resource = UrlResource("https://example.org/tpl/missing.txt", client=client)
        with pytest.raises(OSError, match="missing.txt"):
            resource.open()

    def test_exists(self, client):
        assert UrlResource("https://example.org/tpl/hello.txt", client=client).exists()
        assert not UrlResource("https://example.org/tpl/other.txt", client=client).exists()

    def test_create_relative(self, client):
        resource = UrlResource("https://example.org/tpl/", client=client)
        relative = resource.create_relative("hello.txt")
        assert relative.url == "https://example.org/tpl/hello.txt"
        assert relative.client is client

    def test_cannot_resolve_to_file(self):
        with pytest.raises(ResourceResolutionError):
            UrlResource("https://example.org/tpl").get_file()


class TestDefaultResourceLoader:
    def test_relative_path_uses_base_dir(self, tmp_path):
        resource = DefaultResourceLoader(base_dir=tmp_path).get_resource("templates")
        assert isinstance(resource, FileResource)
        assert resource.get_file() == tmp_path / "templates"

    def test_absolute_path_ignores_base_dir(self, tmp_path):
        resource = DefaultResourceLoader(base_dir="/elsewhere").get_resource(str(tmp_path))
        assert resource.get_file() == tmp_path

    def test_file_prefixes(self, tmp_path):
        loader = DefaultResourceLoader()
        assert loader.get_resource(f"file:{tmp_path}").get_file() == tmp_path
        assert loader.get_resource(f"file://{tmp_path}").get_file() == tmp_path

    def test_package_prefix(self):
        resource = DefaultResourceLoader().get_resource("package://templatefactory/defaults/syntax.properties")
        assert isinstance(resource, PackageResource)
        assert resource.package == "templatefactory"
        assert resource.name == "defaults/syntax.properties"

    def test_http_prefix(self):
        resource = DefaultResourceLoader(http_client="shared").get_resource("http://example.org/t")
        assert isinstance(resource, UrlResource)
        assert resource.client == "shared"

    def test_registered_protocol_takes_precedence(self):
        loader = DefaultResourceLoader()
        loader.register_protocol("file:", lambda rest: FileResource(Path("/custom") / rest))
        assert loader.get_resource("file:x").get_file() == Path("/custom/x")
