"""
Exceptions raised while joining expression samples to mutation calls.
"""


class IdentifierError(ValueError):
    """Base class for identifier and input problems in the annotation join."""


class MalformedIdentifierError(IdentifierError):
    """A barcode does not contain three dash-delimited segments."""

    def __init__(self, barcode, reason="expected at least three dash-delimited segments"):
        self.barcode = barcode
        super().__init__(f"Malformed barcode {barcode!r}: {reason}")


class EmptyInputError(IdentifierError):
    """Nothing to annotate or load."""
