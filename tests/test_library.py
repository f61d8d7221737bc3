"""Tests for the library modules preloaded into sessions."""

import json

import pytest

from essh.values import convert


class TestJson:
    """Tests for essh.json."""

    def test_encode(self, session):
        """Tables encode to JSON text."""
        text = session.evaluate_string(
            """
            local json = require("essh.json")
            return json.encode({ name = "web", ports = { 22, 80 } })
            """
        )
        assert json.loads(text) == {"name": "web", "ports": [22, 80]}

    def test_decode(self, session):
        """JSON text decodes to tables."""
        result = session.evaluate_string(
            """
            local json = require("essh.json")
            local t = json.decode('{"hosts": ["a", "b"], "port": 22}')
            return t.hosts[2], t.port
            """
        )
        assert result == ("b", 22)

    def test_decode_error(self, session):
        """Invalid JSON returns nil and a message."""
        value, message = session.evaluate_string('return require("essh.json").decode("{")')
        assert value is None
        assert message

    def test_encode_function_fails(self, session):
        """Functions cannot be encoded."""
        value, message = session.evaluate_string(
            'return require("essh.json").encode({ f = function() end })'
        )
        assert value is None
        assert "not JSON serializable" in message

    def test_require_is_cached(self, session):
        """The runtime's require returns the same module table."""
        assert session.evaluate_string('return require("essh.json") == require("essh.json")') is True


class TestYaml:
    """Tests for essh.yaml."""

    def test_parse(self, session):
        """YAML text parses to tables."""
        result = session.evaluate_string(
            """
            local yaml = require("essh.yaml")
            local t = yaml.parse("hosts:\\n  - web01\\n  - web02\\n")
            return t.hosts[1]
            """
        )
        assert result == "web01"

    def test_dump(self, session):
        """Tables dump to YAML text."""
        assert session.evaluate_string('return require("essh.yaml").dump({ name = "web" })') == "name: web\n"

    def test_parse_error(self, session):
        """Invalid YAML returns nil and a message."""
        value, message = session.evaluate_string('return require("essh.yaml").parse("a: [")')
        assert value is None
        assert message


class TestFs:
    """Tests for essh.fs."""

    def test_write_then_read(self, session, tmp_path):
        """Files written from scripts can be read back."""
        session.lua.globals()["path"] = str(tmp_path / "out.txt")
        result = session.evaluate_string(
            """
            local fs = require("essh.fs")
            fs.write(path, "hello")
            return fs.exists(path), fs.read(path)
            """
        )
        assert result == (True, "hello")
        assert (tmp_path / "out.txt").read_text() == "hello"

    def test_read_missing(self, session, tmp_path):
        """Reading a missing file returns nil and a message."""
        session.lua.globals()["path"] = str(tmp_path / "missing.txt")
        value, message = session.evaluate_string('return require("essh.fs").read(path)')
        assert value is None
        assert "missing.txt" in message

    def test_mkdir_and_glob(self, session, tmp_path):
        """Directories are created and globbed in sorted order."""
        session.lua.globals()["base"] = str(tmp_path)
        result = session.evaluate_string(
            """
            local fs = require("essh.fs")
            fs.mkdir(base .. "/b/c", true)
            fs.mkdir(base .. "/a")
            return fs.glob(base .. "/*")
            """
        )
        assert convert(result) == [str(tmp_path / "a"), str(tmp_path / "b")]
        assert (tmp_path / "b" / "c").is_dir()

    def test_remove(self, session, tmp_path):
        """remove deletes files, and trees when asked to."""
        (tmp_path / "tree" / "sub").mkdir(parents=True)
        session.lua.globals()["tree"] = str(tmp_path / "tree")
        assert session.evaluate_string('return require("essh.fs").remove(tree, true)') is True
        assert not (tmp_path / "tree").exists()

    def test_path_helpers(self, session):
        """dirname and basename split paths."""
        result = session.evaluate_string(
            """
            local fs = require("essh.fs")
            return fs.dirname("/etc/essh/config.lua"), fs.basename("/etc/essh/config.lua")
            """
        )
        assert result == ("/etc/essh", "config.lua")


class TestTemplate:
    """Tests for essh.template."""

    def test_dostring(self, session):
        """Templates render with the given variables."""
        result = session.evaluate_string(
            'return require("essh.template").dostring("Hello {{ name }}", { name = "web" })'
        )
        assert result == "Hello web"

    def test_dofile(self, session, tmp_path):
        """Template files are read and rendered."""
        template = tmp_path / "motd.j2"
        template.write_text("{% for h in hosts %}{{ h }};{% endfor %}\n")
        session.lua.globals()["path"] = str(template)
        result = session.evaluate_string(
            'return require("essh.template").dofile(path, { hosts = { "a", "b" } })'
        )
        assert result == "a;b;\n"

    def test_syntax_error(self, session):
        """Broken templates return nil and a message."""
        value, message = session.evaluate_string(
            'return require("essh.template").dostring("{% if %}")'
        )
        assert value is None
        assert message


class TestBootstrapFields:
    """Tests for the essh table's plain fields."""

    def test_ssh_config_is_nil(self, session):
        """essh.ssh_config starts out unset."""
        assert session.evaluate_string("return essh.ssh_config == nil") is True

    @pytest.mark.parametrize("name", ["essh.json", "essh.yaml", "essh.fs", "essh.template"])
    def test_libraries_preloaded(self, session, name):
        """Every library module is registered for require."""
        assert session.evaluate_string(f'return package.preload["{name}"] ~= nil') is True
