"""
Error types raised by the pak pipeline.

Every stage raises its own subclass of :class:`KupakError` and lets it
propagate; nothing in the pipeline recovers locally.
"""

from __future__ import annotations


class KupakError(Exception):
    """Base class for all kupak errors."""


class InvalidAddressError(KupakError):
    """Malformed or under-specified shorthand address."""


class FetchError(KupakError):
    """Network, transport or file-access failure while fetching an address."""

    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"failed to fetch {address}: {reason}")
        self.address = address
        self.reason = reason


class ParseError(KupakError):
    """Malformed pak descriptor or repository index document."""


class SchemaError(KupakError):
    """Duplicate property name or unknown property type."""


class TemplateCompileError(KupakError):
    """Malformed template syntax in a resource document."""

    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"invalid template {address}: {reason}")
        self.address = address


class PropertyValueError(KupakError, ValueError):
    """Missing required value or type mismatch after normalization."""

    def __init__(self, property_name: str, message: str) -> None:
        super().__init__(message)
        self.property_name = property_name


class RenderError(KupakError):
    """Template execution failure for one resource."""

    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"failed to render {address}: {reason}")
        self.address = address


class LabelMergeError(KupakError):
    """Failure to parse or mutate a rendered object's metadata."""


class PakNotFoundError(KupakError):
    """A bare pak name is not listed in the repository index."""


class RunnerError(KupakError):
    """The cluster-management binary failed or is unavailable."""


class ConfigError(KupakError):
    """Unreadable or malformed configuration file."""
