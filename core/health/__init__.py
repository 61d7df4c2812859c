from .prober import DependencyProber, HealthResult, PingClient, ProbeObserver, describe_failure

__all__ = ["DependencyProber", "HealthResult", "PingClient", "ProbeObserver", "describe_failure"]
