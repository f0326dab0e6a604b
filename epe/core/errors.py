"""Exception types raised by the EXIF Preset Editor core."""


class EPEError(Exception):
    """Base class for all editor errors."""


class ValidationError(EPEError, ValueError):
    """Malformed user input: bad key, empty name, duplicate value, missing group.

    The triggering operation is rejected and no state is mutated.
    """


class ParseError(EPEError, ValueError):
    """Import text is not valid JSON. Raised before any store mutation."""


class ApplyFailure(EPEError, RuntimeError):
    """The EXIF codec failed while writing entries into an image."""
