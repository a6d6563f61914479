"""Tests for CLI module."""
import json
import subprocess
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from lodlabel import cli, fetch
from lodlabel._version import __version__


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Run every CLI test without user or project config files."""
    monkeypatch.chdir(tmp_path)
    with patch("lodlabel.config._get_config_dirs", return_value=[Path.cwd()]):
        yield
    fetch._default_fetcher = None


class TestVersion:
    """Tests for --version option."""

    def test_version_option_exits_with_version(self):
        result = subprocess.run(
            [sys.executable, "-m", "lodlabel.cli", "--version"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert __version__ in result.stdout

    def test_version_short_option(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["-V"])
        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestUrlCommands:
    """Tests for encode and decode."""

    def test_encode(self, capsys):
        assert cli.main(["encode", "http://exämple.org/a b"]) == 0
        assert capsys.readouterr().out.strip() == "http://xn--exmple-cua.org/a%20b"

    def test_encode_invalid(self, capsys):
        assert cli.main(["encode", "not a url"]) == 1
        assert "Invalid URL" in capsys.readouterr().err

    def test_decode(self, capsys):
        assert cli.main(["decode", "http://xn--exmple-cua.org/a%20b"]) == 0
        assert capsys.readouterr().out.strip() == "http://exämple.org/a b"


class TestResolveCommand:
    """Tests for the resolve subcommand."""

    @patch("lodlabel.resolvers.GndLabelResolver.resolve", return_value="Goethe")
    def test_found(self, mock_resolve, capsys):
        assert cli.main(["resolve", "https://d-nb.info/gnd/118540238"]) == 0
        assert capsys.readouterr().out.strip() == "Goethe"
        mock_resolve.assert_called_once_with("https://d-nb.info/gnd/118540238", None)

    @patch("lodlabel.resolvers.LobidLabelResolver.resolve")
    def test_not_found_sentinel(self, mock_resolve, capsys):
        """Test that a label equal to the URI is reported as not found."""
        uri = "https://lobid.org/resources/HT1"
        mock_resolve.return_value = uri

        assert cli.main(["resolve", uri, "--lang", "de"]) == 1
        assert "No label found" in capsys.readouterr().err
        mock_resolve.assert_called_once_with(uri, "de")

    @patch("lodlabel.resolvers.LobidLabelResolver.resolve", return_value="Titel")
    def test_json_output(self, mock_resolve, capsys):
        uri = "https://lobid.org/resources/HT1"

        assert cli.main(["resolve", uri, "--json"]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output == {"uri": uri, "label": "Titel", "found": True, "resolver": "lobid"}

    @patch("lodlabel.resolvers.LobidLabelResolver.resolve", return_value="Titel")
    def test_lang_from_config(self, mock_resolve, tmp_path):
        (tmp_path / "config.json").write_text('{"lang": "fr"}')
        uri = "https://lobid.org/resources/HT1"

        assert cli.main(["resolve", uri]) == 0
        mock_resolve.assert_called_once_with(uri, "fr")

    def test_unknown_namespace(self, capsys):
        assert cli.main(["resolve", "https://example.org/x"]) == 1
        err = capsys.readouterr().err
        assert "No resolver" in err
        assert "https://d-nb.info/gnd/" in err

    def test_configures_fetcher(self, tmp_path):
        (tmp_path / "config.json").write_text('{"http": {"timeout": 4}}')

        with patch("lodlabel.resolvers.GndLabelResolver.resolve", return_value=None):
            cli.main(["resolve", "https://d-nb.info/gnd/1"])

        assert fetch.get_fetcher().timeout == 4.0


class TestOtherCommands:
    """Tests for resolvers, fetch and config subcommands."""

    def test_resolvers(self, capsys):
        assert cli.main(["resolvers"]) == 0
        out = capsys.readouterr().out
        assert "gnd:" in out
        assert "https://lobid.org/resources" in out

    @patch("lodlabel.fetch.Fetcher.fetch", return_value=b"<rdf/>")
    def test_fetch(self, mock_fetch, capsysbinary):
        assert cli.main(["fetch", "http://x.org/doc", "--accept", "application/rdf+xml"]) == 0
        assert capsysbinary.readouterr().out == b"<rdf/>"
        mock_fetch.assert_called_once_with("http://x.org/doc", {"accept": "application/rdf+xml"})

    @patch("lodlabel.fetch.Fetcher.fetch")
    def test_fetch_error(self, mock_fetch, capsys):
        from lodlabel.errors import FetchError
        mock_fetch.side_effect = FetchError("http://x.org/doc")

        assert cli.main(["fetch", "http://x.org/doc"]) == 1
        assert "Failed to fetch" in capsys.readouterr().err

    def test_config_show(self, capsys):
        assert cli.main(["config", "--show"]) == 0
        out = capsys.readouterr().out
        assert "No configuration file found" in out
        assert '"max_redirects": 10' in out

    def test_config_path(self, tmp_path, capsys):
        config_file = tmp_path / "config.json"
        config_file.write_text("{}")

        assert cli.main(["config", "--path"]) == 0
        assert capsys.readouterr().out.strip() == str(config_file)

    def test_no_command(self, capsys):
        assert cli.main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()


class TestCliArgumentParser:
    """Tests for CLI argument parsing."""

    def test_resolve_options(self):
        args = cli.build_parser().parse_args(["resolve", "http://x", "-l", "de", "-j"])
        assert args.uri == "http://x"
        assert args.lang == "de"
        assert args.json is True

    def test_api_defaults(self):
        args = cli.build_parser().parse_args(["api"])
        assert args.port is None
        assert args.host is None

    def test_verbosity(self):
        args = cli.build_parser().parse_args(["-vv", "resolvers"])
        assert args.verbose == 2
