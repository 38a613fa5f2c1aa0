"""Exporters for reporting build results in various output formats."""

from .ascii_exporter import to_ascii
from .json_exporter import to_json

__all__ = ["to_ascii", "to_json"]
