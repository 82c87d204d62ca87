from __future__ import annotations


class ConversionError(RuntimeError):
    """Base class for every failure that aborts the conversion of one file."""


class TruncatedError(ConversionError):
    """Fewer bytes or records were available than an operand requires."""

    def __init__(self, wanted: int, got: int, what: str = "record") -> None:
        super().__init__(f"truncated {what}: wanted {wanted}, got {got}")
        self.wanted = wanted
        self.got = got


class InvalidHeaderError(ConversionError):
    pass


class InvalidFooterError(ConversionError):
    pass


class StateError(ConversionError):
    """The emitter was driven out of sequence; decoder and emitter disagree."""


class DecodeError(ConversionError):
    """An operand carried a value the decoder cannot interpret."""


class PatchError(ConversionError):
    """The viewport placeholder could not be rewritten in place."""


class ResourceUnavailableError(ConversionError):
    pass
