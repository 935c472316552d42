"""
Synthesis errors
================

Every failure aborts the enclosing synthesis session and surfaces as one
of the types below. Lower layers never recover; the command line is the
only place that turns them into user-facing messages.
"""


class SynthesisError(Exception):
    """Base class for every failure raised while building or proving a circuit."""


class DecodeError(SynthesisError):
    """A byte buffer does not represent a valid field element."""


class UnknownVariable(SynthesisError):
    """A term or declaration references a wire id that was never bound."""

    def __init__(self, variable_id):
        super().__init__(f"unknown variable id {variable_id}")
        self.variable_id = variable_id


class DuplicateBinding(SynthesisError):
    """A wire id was bound twice in the same session."""

    def __init__(self, variable_id):
        super().__init__(f"variable id {variable_id} is already bound")
        self.variable_id = variable_id


class ProtocolViolation(SynthesisError):
    """Malformed or incomplete messages, or mixed value availability."""


class ExternalGadgetError(SynthesisError):
    """The external gadget function itself failed."""


class ProvingBackendError(SynthesisError):
    """Key or proof generation failed."""


class ArtifactIOError(SynthesisError, IOError):
    """A key or proof artifact could not be read or written."""
