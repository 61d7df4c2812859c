from __future__ import annotations


class StartupError(RuntimeError):
    """Fatal condition detected while the service is starting; the process must not serve."""


class MetricRegistrationError(StartupError):
    """A metric name was registered twice with a different kind or label set."""


class RegistryStateError(RuntimeError):
    """The metrics registry was used outside of its lifecycle."""


class DependencyError(Exception):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason
