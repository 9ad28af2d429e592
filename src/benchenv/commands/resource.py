"""
Apply or delete the resources described by a set of manifests.
"""

from pathlib import Path

from loguru import logger
from typer import Exit, Option

from benchenv.cluster import connect
from benchenv.manifests import ResourceBatch
from benchenv.reconciler import Reconciler, ResourceOutcome
from benchenv.tools.typer import new_typer
from .options import FILES_HELP, VARS_HELP, load_or_exit, load_project_or_exit, merged_bindings

app = new_typer(name="resource", help=__doc__)

IN_CLUSTER_HELP = "Use the in-cluster Kubernetes configuration. The --kubeconfig and --context options are ignored."
KUBECONFIG_HELP = "The kubeconfig file to use. Defaults to $KUBECONFIG or ~/.kube/config."
STRICT_HELP = "Exit with status 1 if any resource could not be reconciled."


@app.command()
def apply(
    files: list[Path] = Option(..., "--file", "-f", help=FILES_HELP),
    variables: list[str] = Option([], "--var", "-v", help=VARS_HELP),
    in_cluster: bool = Option(False, help=IN_CLUSTER_HELP),
    kubeconfig: Path | None = Option(None, help=KUBECONFIG_HELP),
    context: str | None = Option(None, help="The kubeconfig context to use."),
    strict: bool = Option(False, help=STRICT_HELP),
) -> None:
    """
    Create or update the resources, in the order in which they are declared.
    """

    reconciler, batches = _prepare(files, variables, in_cluster, kubeconfig, context)
    _report(reconciler.apply(batches), strict)


@app.command()
def delete(
    files: list[Path] = Option(..., "--file", "-f", help=FILES_HELP),
    variables: list[str] = Option([], "--var", "-v", help=VARS_HELP),
    in_cluster: bool = Option(False, help=IN_CLUSTER_HELP),
    kubeconfig: Path | None = Option(None, help=KUBECONFIG_HELP),
    context: str | None = Option(None, help="The kubeconfig context to use."),
    strict: bool = Option(False, help=STRICT_HELP),
) -> None:
    """
    Delete the resources, in the order in which they are declared.
    """

    reconciler, batches = _prepare(files, variables, in_cluster, kubeconfig, context)
    _report(reconciler.delete(batches), strict)


def _prepare(
    files: list[Path],
    variables: list[str],
    in_cluster: bool,
    kubeconfig: Path | None,
    context: str | None,
) -> tuple[Reconciler, list[ResourceBatch]]:
    # Manifests are loaded before connecting so that invalid files never cause any request to the cluster.
    project = load_project_or_exit()
    batches = load_or_exit(files, merged_bindings(project, variables))
    reconciler = Reconciler.default(connect(in_cluster, kubeconfig, context), project.config.retry)
    return reconciler, batches


def _report(outcomes: list[ResourceOutcome], strict: bool) -> None:
    failed = [outcome for outcome in outcomes if not outcome.ok]
    logger.info("Reconciled {} resource(s), {} failed", len(outcomes), len(failed))
    if failed and strict:
        raise Exit(1)
