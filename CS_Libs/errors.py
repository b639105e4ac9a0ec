"""
Error taxonomy for the editing core.

None of these are fatal. Public session operations catch them, log them and
report the outcome through return values or session notices.

Classes:
    EditorError: Base class for editor conditions
    ProviderFailure: Segmentation provider failed or returned malformed data
    DegenerateInput: Incidental input that should be ignored (tiny crop, zero radius)
    UnsupportedRestore: Restore brush used without a retained source raster
    SessionBusy: Raster mutation attempted while segmentation is in flight
"""


class EditorError(Exception):
    """Base class for all editor conditions."""


class ProviderFailure(EditorError):
    """The segmentation provider raised or returned malformed data."""


class DegenerateInput(EditorError):
    """Input that is an expected interaction state and must be ignored."""


class UnsupportedRestore(EditorError):
    """Restore brush requested without a usable un-erased source raster."""


class SessionBusy(EditorError):
    """A raster mutation was attempted while segmentation is in flight."""
