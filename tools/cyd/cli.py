"""CLI interface for cyd (convert your data)."""

import sys
from pathlib import Path
from typing import Optional

import click

from shared.cli import error, handle_errors, success
from shared.logger import setup_logger

from .capabilities import DataFormat
from .converter import ConvertOptions, convert
from .encoders import EncodeOptions
from .errors import ConversionError, UnsupportedFormatError

FORMAT_CHOICES = ["json", "toml", "yaml", "yml"]


def describe_failure(e: ConversionError) -> str:
    """Build a one-line diagnostic naming the phase, format and location."""
    return f"{e.phase.value} error: {e.cause}"


@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, allow_dash=True, path_type=Path),
    default="-",
)
@click.option(
    "--from",
    "--input",
    "-f",
    "-i",
    "from_format",
    type=click.Choice(FORMAT_CHOICES, case_sensitive=False),
    envvar="CYD_INPUT",
    show_envvar=True,
    help="Source format (auto-detect from the file extension if not specified)",
)
@click.option(
    "--to",
    "--output",
    "-t",
    "-o",
    "to_format",
    type=click.Choice(FORMAT_CHOICES, case_sensitive=False),
    envvar="CYD_OUTPUT",
    show_envvar=True,
    required=True,
    help="Target format",
)
@click.option(
    "--output-file",
    "-O",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (print to stdout if not specified)",
)
@click.option(
    "--query",
    "-q",
    help="JMESPath query to extract data before converting",
)
@click.option(
    "--minify",
    is_flag=True,
    help="Minify output (JSON only)",
)
@click.option(
    "--indent",
    type=click.IntRange(min=0),
    default=2,
    show_default=True,
    help="Indentation level (JSON and YAML)",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@handle_errors
def main(
    input_file: Path,
    from_format: Optional[str],
    to_format: str,
    output_file: Optional[Path],
    query: Optional[str],
    minify: bool,
    indent: int,
    verbose: bool,
):
    """
    cyd - Convert a document between JSON, TOML, and YAML.

    Reads INPUT_FILE (or stdin) and writes the converted document to
    stdout. Nothing is written if the conversion fails.

    Examples:

        \b
        # Convert TOML on stdin to JSON
        cyd --from toml --to json < Cargo.toml

        \b
        # Convert with output file, detecting the source format
        cyd config.yaml --to toml --output-file config.toml

        \b
        # Query and convert
        cyd users.json --to yaml --query 'users[0]'

        \b
        # Minify JSON
        cyd data.json --to json --minify
    """
    log_level = "DEBUG" if verbose else "WARNING"
    setup_logger(__name__, level=log_level)

    from_stdin = str(input_file) == "-"

    try:
        if from_format:
            source = DataFormat.parse(from_format)
        elif not from_stdin:
            source = DataFormat.from_path(input_file)
        else:
            raise UnsupportedFormatError("Source format is required when reading from stdin (use --from)")
        target = DataFormat.parse(to_format)
    except UnsupportedFormatError as e:
        error(str(e))
        sys.exit(1)

    options = ConvertOptions(query=query, encode=EncodeOptions(indent=indent, minify=minify))

    # Read the whole document before converting; the core never streams.
    data = click.get_binary_stream("stdin").read() if from_stdin else input_file.read_bytes()

    try:
        output = convert(data, source, target, options)
    except ConversionError as e:
        error(describe_failure(e))
        sys.exit(1)

    if output_file:
        output_file.write_bytes(output)
        if verbose:
            success(f"Converted to {output_file}")
    else:
        stdout = click.get_binary_stream("stdout")
        stdout.write(output)
        stdout.flush()

    sys.exit(0)


if __name__ == "__main__":
    main()
