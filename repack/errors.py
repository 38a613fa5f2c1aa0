"""Exceptions raised by the repackaging pipeline."""

from pathlib import Path
from typing import Optional, Union


class RepackError(Exception):
    """Base class for all pipeline failures."""


class ConfigError(RepackError):
    """A configuration file could not be loaded or contains invalid values."""


class ResolutionError(RepackError):
    """
    A module specifier could not be mapped to a valid target.
    
    Raised for relative specifiers with no matching file or directory and for
    bare specifiers that have no entry in the resolution mapping.
    """

    def __init__(
        self,
        specifier: str,
        source_file: Union[str, Path],
        reason: Optional[str] = None,
    ):
        self.specifier = specifier
        self.source_file = Path(source_file)
        self.reason = reason
        message = f"Unable to resolve module '{specifier}' in {self.source_file}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
