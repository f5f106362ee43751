"""Owner Routing - Routes changed files and issues to their owners."""

__version__ = "0.1.0"
