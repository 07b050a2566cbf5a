from __future__ import annotations


class HarvestError(Exception):
    """Base class for every failure raised by the harvester."""


class SurfaceError(HarvestError):
    """The rendering surface rejected an operation (closed view, bad selector, ...)."""


class SurfaceTimeout(SurfaceError):
    """A surface-level wait ran past its deadline."""


class WaitTimeout(HarvestError):
    """A required wait timed out. Carries a human-readable description."""


class SourceUnavailable(HarvestError):
    """The result-list source could not be resolved to an origin URL."""


class NavigationError(HarvestError):
    """Neither the requested page control nor a next control was present."""


class HookInstallError(HarvestError):
    """Extraction hooks could not be injected into a detail view."""


class ExtractionError(HarvestError):
    """The detail view did not yield transcript content."""


class EmptyTranscriptError(ExtractionError):
    """The transcript loaded but contained no usable entries."""


class MissingItemId(HarvestError):
    """A list entry carried no identity to build a detail address from."""
