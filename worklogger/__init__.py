"""Log JSON work logs as OpenProject work packages and time entries."""

__version__ = "1.0.0"
