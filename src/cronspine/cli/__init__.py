"""
CLI layer for cronspine.

Commands for previewing cron rules and inspecting configuration::

    cronspine --help
"""

from cronspine.cli.app import app

__all__ = ["app"]
