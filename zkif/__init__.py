"""
zkif: circuit message streams -> R1CS -> Groth16
================================================

Reads circuits described as message streams, synthesizes them into a
rank-1 constraint system, splices in foreign gadgets called through the
same message format, and drives a Groth16 backend over bn128 to produce
key and proof artifacts.
"""

from zkif.errors import (
    SynthesisError,
    DecodeError,
    UnknownVariable,
    DuplicateBinding,
    ProtocolViolation,
    ExternalGadgetError,
    ProvingBackendError,
    ArtifactIOError,
)
from zkif.field import FR, FieldCodec
from zkif.r1cs import ConstraintSystem, LinearCombination, Variable
from zkif.messages import Messages
from zkif.circuit import ZkifCircuit
from zkif.gadget import call_gadget
from zkif.backend import zkif_backend, verify_artifacts
