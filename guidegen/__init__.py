"""guidegen: extend-or-create advice and agent guidance documents for codebases."""

__all__ = ["__version__"]

__version__ = "0.1.0"
