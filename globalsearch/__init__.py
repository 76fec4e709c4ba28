"""Global search engine for the task and team workspace."""

__version__ = "0.1.0"
