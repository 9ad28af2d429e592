from pathlib import Path

from loguru import logger
from typer import Option
import yaml

from .options import FILES_HELP, VARS_HELP, load_or_exit, load_project_or_exit, merged_bindings
from . import app


@app.command()
def template(
    files: list[Path] = Option(..., "--file", "-f", help=FILES_HELP),
    variables: list[str] = Option([], "--var", "-v", help=VARS_HELP),
) -> None:
    """
    Render the manifests and print the resulting resources, without talking to a cluster.
    """

    project = load_project_or_exit()
    for batch in load_or_exit(files, merged_bindings(project, variables)):
        logger.info("Rendered {} resource(s) from '{}'", len(batch.resources), batch.file)
        for resource in batch.resources:
            print("---")
            print(yaml.safe_dump(resource.manifest, sort_keys=False), end="")
