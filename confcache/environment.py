"""Environment resolution for config loading.

System and environment configs carry detection rules; the resolver reads
them once per process to decide the active environment. Ordinary configs
only ask for the environment that was already detected.

Detection rules, keyed by environment name and tried in order:

    [detection.development]
    hosts = ["127.0.0.1", "dev-box"]

    [detection.staging]
    variables = { DEPLOY_TARGET = "staging" }

A rule matches when the machine's host name or one of its addresses is in
`hosts`, or when every entry of `variables` equals the process environment.
"""

import os
import socket
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from confcache.config.models.environment import EnvironmentConfig
from confcache.exceptions import ConfigContractError
from confcache.models import ConfigHandle, Environment
from confcache.observability.logging import get_logger

logger = get_logger(__name__)


class EnvironmentResolver(ABC):
    """Abstract interface for environment detection."""

    @abstractmethod
    def detect_from_system_config(self, detection_data: Mapping[str, Any]) -> str | None:
        """Pick an environment name from detection rules."""
        pass

    @abstractmethod
    def current_environment(self) -> Environment:
        """Get the environment already detected for this process."""
        pass

    @abstractmethod
    def detect_environment(
        self, config: ConfigHandle | None, force: bool = False
    ) -> Environment:
        """Detect the environment from a system config if not yet detected."""
        pass


class DetectingEnvironmentResolver(EnvironmentResolver):
    """Resolver driven by declarative host and variable rules.

    A forced name in EnvironmentConfig skips detection entirely.
    """

    def __init__(
        self,
        config: EnvironmentConfig | None = None,
        hostname: str | None = None,
        environ: Mapping[str, str] | None = None,
        resolve_addresses: bool = True,
    ) -> None:
        """Initialize the resolver.

        Args:
            config: Environment settings (uses defaults if not provided)
            hostname: Host name override, mainly for tests
            environ: Process environment override, mainly for tests
            resolve_addresses: Also match rules against the host's addresses
        """
        self._config = config or EnvironmentConfig()
        self._hostname = hostname
        self._environ = environ if environ is not None else os.environ
        self._resolve_addresses = resolve_addresses
        self._name: str | None = self._config.name
        self._detected = self._config.name is not None

    def is_development(self, name: str | None) -> bool:
        return name is not None and name in self._config.development_names

    def current_environment(self) -> Environment:
        name = self._name if self._detected else self._config.default
        return Environment(
            name=name,
            is_development=self.is_development(name),
            detected=self._detected,
        )

    def detect_environment(
        self, config: ConfigHandle | None, force: bool = False
    ) -> Environment:
        if config is not None and not isinstance(config, ConfigHandle):
            raise ConfigContractError(
                f"Config to detect environment from must be a ConfigHandle, "
                f"got {type(config).__name__}"
            )

        if config is not None and (not self._detected or force):
            if self._config.name is not None:
                self._name = self._config.name
            else:
                detected = self.detect_from_system_config(
                    config.environment_detection_data()
                )
                self._name = detected or self._config.default
            self._detected = True
            logger.info(
                "environment_detected",
                environment=self._name,
                source=config.path,
                forced=force,
            )

        return self.current_environment()

    def detect_from_system_config(self, detection_data: Mapping[str, Any]) -> str | None:
        """Pick the first environment whose detection rule matches.

        Args:
            detection_data: Rules keyed by environment name

        Returns:
            Matching environment name, or None if nothing matches
        """
        for name, rule in detection_data.items():
            if isinstance(rule, Mapping) and self._rule_matches(rule):
                return name
        return None

    def _rule_matches(self, rule: Mapping[str, Any]) -> bool:
        hosts = rule.get("hosts") or []
        if hosts and self._local_identities() & set(hosts):
            return True

        variables = rule.get("variables") or {}
        if variables and all(
            self._environ.get(key) == str(value) for key, value in variables.items()
        ):
            return True

        return False

    def _local_identities(self) -> set[str]:
        hostname = self._hostname or socket.gethostname()
        identities = {hostname}
        if not self._resolve_addresses:
            return identities
        try:
            identities.update(
                info[4][0] for info in socket.getaddrinfo(hostname, None)
            )
        except OSError as e:
            logger.debug("host_address_lookup_failed", hostname=hostname, error=str(e))
        return identities
