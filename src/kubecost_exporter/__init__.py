"""
kubecost-exporter - Kubecost Allocation metrics for Prometheus

This package polls the Kubecost Allocation API and exposes the configured
allocation fields as Prometheus gauges.
"""

__version__ = "1.0.0"


# Lazy imports to avoid loading the HTTP and Prometheus stacks when not needed
def __getattr__(name):
    """Lazy loading of package components to avoid unnecessary imports."""
    if name == "AllocationRecord":
        from .models import AllocationRecord

        return AllocationRecord
    elif name == "canonicalize":
        from .canonical import canonicalize

        return canonicalize
    elif name == "resolve_path":
        from .paths import resolve_path

        return resolve_path
    elif name == "compute_window":
        from .window import compute_window

        return compute_window
    elif name == "load_config":
        from .config import load_config

        return load_config
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


# Define the public API of the package
__all__ = [
    "AllocationRecord",
    "canonicalize",
    "resolve_path",
    "compute_window",
    "load_config",
    "__version__",
]
