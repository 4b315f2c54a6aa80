"""azpipes: run Azure DevOps pipelines one after another, stopping on failure."""

__version__ = "0.1.0"

__all__ = ["__version__"]
