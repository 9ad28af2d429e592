from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from benchenv.tools.fs import find_config_file


@dataclass
class RetrySettings:
    """
    Timing of the retry loops used while reconciling resources. All delays are fixed; there is no backoff.
    """

    poll_interval_seconds: float = 10.0
    """ Delay between two readiness or deletion checks. """

    poll_attempts: int = 50
    """ Number of readiness checks before giving up. Deletion checks get twice as many attempts. """

    conflict_attempts: int = 5
    """ Number of times an update is submitted when the cluster reports a conflict. """

    conflict_interval_seconds: float = 0.01
    """ Delay between two update attempts after a conflict. """

    @property
    def deletion_attempts(self) -> int:
        return 2 * self.poll_attempts


@dataclass
class Project:
    """
    Configuration for a benchenv project that is stored in a `benchenv.yaml` file.
    """

    vars: dict[str, str] = field(default_factory=dict)
    """
    Default variable bindings for manifest templates. Variables passed on the command-line take precedence.
    """

    retry: RetrySettings = field(default_factory=RetrySettings)
    """
    Timing of readiness polling and conflict retries.
    """


@dataclass
class ProjectConfig:
    """
    Wrapper for the project configuration file.
    """

    FILENAME = "benchenv.yaml"

    file: Path | None
    config: Project

    @staticmethod
    def load(file: Path | None = None, /) -> "ProjectConfig":
        """
        Load the project configuration from the given or the default configuration file. If the configuration file does
        not exist, a default project configuration is returned.
        """

        from databind.json import load as deser
        from yaml import safe_load

        if file is None:
            file = find_config_file(ProjectConfig.FILENAME, required=False)
        if file is None:
            return ProjectConfig(None, Project())

        logger.debug("Loading project configuration from '{}'", file)
        project = deser(safe_load(file.read_text()) or {}, Project, filename=str(file))

        if project.retry.poll_attempts < 1 or project.retry.conflict_attempts < 1:
            raise ValueError(f"{file}: retry attempts must be at least 1")

        return ProjectConfig(file, project)
