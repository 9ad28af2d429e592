from pathlib import Path

from databind.core import ConversionError
from loguru import logger
import typer
import yaml

from benchenv.config import ProjectConfig
from benchenv.manifests import ManifestError, ResourceBatch, load_batches
from benchenv.tools.types import Bindings

FILES_HELP = "Manifest file or directory. Directories are searched recursively for *.yaml and *.yml files."
VARS_HELP = "A template variable in the form KEY:VALUE. Can be given multiple times."


def parse_vars(values: list[str]) -> Bindings:
    """
    Parse `KEY:VALUE` pairs into variable bindings. The value may itself contain colons.
    """

    bindings = Bindings({})
    for value in values:
        key, sep, val = value.partition(":")
        if not sep or not key:
            raise typer.BadParameter(f"Expected KEY:VALUE, got {value!r}", param_hint="--var")
        bindings[key] = val
    return bindings


def load_or_exit(files: list[Path], bindings: Bindings) -> list[ResourceBatch]:
    """
    Load the manifests, exiting with status 1 if any of the files is invalid.
    """

    try:
        return load_batches(files, bindings)
    except ManifestError as exc:
        logger.error("{}", exc)
        raise typer.Exit(1)


def load_project_or_exit() -> ProjectConfig:
    """
    Load the project configuration, exiting with status 1 if it is invalid.
    """

    try:
        return ProjectConfig.load()
    except (ConversionError, ValueError, yaml.YAMLError) as exc:
        logger.error("Invalid project configuration: {}", exc)
        raise typer.Exit(1)


def merged_bindings(project: ProjectConfig, variables: list[str]) -> Bindings:
    """
    Combine the default variables from the project configuration with the ones given on the command-line.
    """

    return Bindings({**project.config.vars, **parse_vars(variables)})
