from pathlib import Path
from typing import Optional, Tuple

import click

from dtskit.errors import DtsError
from dtskit.extract import extract, to_json
from dtskit.flatten import flatten
from dtskit.listing import format_listing, list_source
from dtskit.logger import logger, setup_logging
from dtskit.settings import DtsSettings, load_settings
from dtskit.source import SourceText

_INPUT_FILE = click.Path(
    exists=True, file_okay=True, dir_okay=False, readable=True, path_type=Path
)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="dtskit")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="TOML file with dtskit settings.",
)
@click.option(
    "--debug/--no-debug",
    default=False,
    help="Enable debug logging.",
)
@click.pass_context
def main(ctx: click.Context, config_file: Optional[Path], debug: bool) -> None:
    """
    Tools for TypeScript declaration (.d.ts) files.
    """
    setup_logging(debug)
    ctx.obj = load_settings(toml_file=str(config_file) if config_file else None)


@main.command("flatten")
@click.argument("module_name")
@click.argument("files", nargs=-1, required=True, type=_INPUT_FILE)
@click.option(
    "--module",
    "-m",
    "root_modules",
    multiple=True,
    required=True,
    help="Module whose exports are flattened (repeatable).",
)
@click.option(
    "--out",
    "out_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output file (defaults to the first input file).",
)
@click.pass_obj
def flatten_cmd(
    settings: DtsSettings,
    module_name: str,
    files: Tuple[Path, ...],
    root_modules: Tuple[str, ...],
    out_file: Optional[Path],
) -> None:
    """
    Flatten the exports of one or more modules into a single module block.

    Private and @internal declarations, `_` prefixed members and redundant
    `import("module").` qualifiers are removed.
    """
    try:
        text = flatten([str(f) for f in files], module_name, root_modules, settings)
    except DtsError as ex:
        raise click.ClickException(str(ex)) from ex

    target = out_file or files[0]
    target.write_text(text, encoding="utf-8")
    logger.debug("Flattened module written", path=str(target), module=module_name)


@main.command("extract")
@click.argument("file", type=_INPUT_FILE)
@click.option(
    "--out",
    "out_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output file (writes to stdout if not specified).",
)
@click.pass_obj
def extract_cmd(settings: DtsSettings, file: Path, out_file: Optional[Path]) -> None:
    """
    Describe the declarations of a .d.ts file as JSON and check its
    documentation links.
    """
    try:
        root = extract(str(file), settings)
    except DtsError as ex:
        raise click.ClickException(str(ex)) from ex

    text = to_json(root, indent=settings.indent)
    if out_file:
        out_file.write_text(text, encoding="utf-8")
    else:
        click.echo(text)


@main.command("list")
@click.argument("file", type=_INPUT_FILE)
def list_cmd(file: Path) -> None:
    """
    List the modules and named declarations of a .d.ts file with positions.
    """
    click.echo(format_listing(list_source(SourceText.from_file(str(file)))))


if __name__ == "__main__":
    main()
