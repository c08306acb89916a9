"""Tests for the cyd command line."""

import json

import pytest
from click.testing import CliRunner

from tools.cyd.cli import main


@pytest.fixture
def runner():
    return CliRunner()


class TestConvertCommand:
    """Test successful conversions."""

    def test_stdin_to_stdout(self, runner):
        """Test converting stdin to stdout."""
        result = runner.invoke(main, ["--from", "json", "--to", "yaml"], input='{"z": 1, "a": 2}')

        assert result.exit_code == 0
        assert result.output == "z: 1\na: 2\n"

    def test_short_option_names(self, runner):
        """Test the -i/-o spellings with mixed case."""
        result = runner.invoke(main, ["-i", "YAML", "-o", "Json", "--minify"], input="a: [1, 2]\n")

        assert result.exit_code == 0
        assert result.output == '{"a":[1,2]}\n'

    def test_environment_variables(self, runner):
        """Test selecting formats through the environment."""
        result = runner.invoke(
            main,
            [],
            input='{"a": 1}',
            env={"CYD_INPUT": "json", "CYD_OUTPUT": "toml"},
        )

        assert result.exit_code == 0
        assert result.output == "a = 1\n"

    def test_detect_from_extension(self, runner, tmp_path):
        """Test detecting the source format from the input file."""
        source = tmp_path / "config.toml"
        source.write_text('name = "cyd"\n')

        result = runner.invoke(main, [str(source), "--to", "json", "--indent", "4"])

        assert result.exit_code == 0
        assert result.output == '{\n    "name": "cyd"\n}\n'

    def test_output_file(self, runner, tmp_path):
        """Test writing to an output file."""
        target = tmp_path / "out.json"

        result = runner.invoke(main, ["-f", "yaml", "-t", "json", "-O", str(target)], input="a: 1\n")

        assert result.exit_code == 0
        assert json.loads(target.read_text()) == {"a": 1}

    def test_query(self, runner):
        """Test applying a query before converting."""
        result = runner.invoke(
            main,
            ["--from", "json", "--to", "json", "--minify", "--query", "users[0]"],
            input='{"users": [{"name": "ada"}]}',
        )

        assert result.exit_code == 0
        assert result.output == '{"name":"ada"}\n'


class TestConvertFailures:
    """Test failures exit non-zero and write nothing."""

    def test_unsupported_value(self, runner, tmp_path):
        """Test that null cannot become TOML."""
        target = tmp_path / "out.toml"

        result = runner.invoke(
            main, ["--from", "json", "--to", "toml", "--output-file", str(target)], input='{"a": null}'
        )

        assert result.exit_code == 1
        assert not target.exists()
        assert "encode error" in result.output

    def test_unsupported_root_writes_nothing(self, runner):
        """Test that no partial document reaches stdout."""
        result = runner.invoke(main, ["--from", "json", "--to", "toml"], input='"hello"')

        assert result.exit_code == 1
        assert "hello" not in result.output

    def test_malformed_input(self, runner, tmp_path):
        """Test that decode errors are reported."""
        target = tmp_path / "out.json"

        result = runner.invoke(main, ["--from", "yaml", "--to", "json", "-O", str(target)], input="items: [1, 2\n")

        assert result.exit_code == 1
        assert not target.exists()
        assert "decode error" in result.output

    def test_stdin_requires_source_format(self, runner):
        """Test that stdin input needs --from."""
        result = runner.invoke(main, ["--to", "json"], input="{}")

        assert result.exit_code == 1
        assert "--from" in result.output

    def test_unknown_extension(self, runner, tmp_path):
        """Test that unknown extensions need --from."""
        source = tmp_path / "data.txt"
        source.write_text("{}")

        result = runner.invoke(main, [str(source), "--to", "json"])

        assert result.exit_code == 1
        assert "auto-detect" in result.output

    def test_invalid_format_choice(self, runner):
        """Test that unknown formats are rejected by option parsing."""
        result = runner.invoke(main, ["--from", "xml", "--to", "json"], input="{}")

        assert result.exit_code == 2

    def test_unconstructable_yaml_value(self, runner):
        """Test that a bad YAML date is reported as a decode error."""
        result = runner.invoke(main, ["--from", "yaml", "--to", "json"], input="a: 2020-02-30\n")

        assert result.exit_code == 1
        assert "decode error" in result.output
        assert "Unexpected error" not in result.output
