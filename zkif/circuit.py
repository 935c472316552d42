"""
Circuit synthesis from a message stream
=======================================

``ZkifCircuit`` turns a complete message stream (a whole circuit, not a
gadget call) into constraints:

  1. bind id 0 to the constant one
  2. allocate every connection variable as a public input
  3. allocate every private variable as an aux witness variable
  4. enforce every constraint, in stream order

The mode comes from the constraint system. In structural mode values are
never decoded; in witness mode a variable without a value is allocated
unassigned and the proving backend rejects it later.

Example:
    >>> cs = ConstraintSystem(witness_generation=False)
    >>> ZkifCircuit(messages).generate_constraints(cs)
    >>> cs.num_constraints
    1
"""

import logging

from zkif.bindings import VariableBindings
from zkif.errors import ProtocolViolation
from zkif.field import FR, FieldCodec
from zkif.messages import MAX_PRIVATE_VARIABLES
from zkif.r1cs import ConstraintSystem
from zkif.translate import enforce

logger = logging.getLogger(__name__)


class ZkifCircuit:
    """A circuit instance built from zkif messages."""

    def __init__(self, messages, max_private_variables=MAX_PRIVATE_VARIABLES):
        self.messages = messages
        self.max_private_variables = max_private_variables

    def generate_constraints(self, cs):
        """Synthesize the circuit into ``cs``.

        Returns:
            the session's ``VariableBindings``

        Raises:
            ProtocolViolation: no circuit message, a foreign field hint, or
                               more private ids than ``max_private_variables``
            DecodeError, UnknownVariable, DuplicateBinding: see ``translate``
        """
        circuit = self.messages.last_circuit()
        if circuit is None:
            raise ProtocolViolation("message stream has no circuit message")

        codec = FieldCodec(cs.field)
        codec.check_field_maximum(circuit.field_maximum)
        witness = cs.witness_generation
        private_vars = self.messages.private_variables(limit=self.max_private_variables)

        bindings = VariableBindings(cs.one())

        for var in self.messages.connection_variables():
            value = codec.decode_optional(var.value) if witness else None
            bindings.bind(var.id, cs.alloc_input(f"public_{var.id}", value))

        for var in private_vars:
            value = codec.decode_optional(var.value) if witness else None
            bindings.bind(var.id, cs.alloc(f"private_{var.id}", value))

        for i, constraint in enumerate(self.messages.iter_constraints()):
            enforce(cs, codec, bindings, constraint, f"constraint_{i}")

        logger.info(
            "synthesized %s run: %d public inputs, %d private variables, %d constraints",
            "witness" if witness else "structural",
            cs.num_inputs - 1, cs.num_aux, cs.num_constraints,
        )
        return bindings


def synthesize(messages, witness_generation, field=FR, max_private_variables=MAX_PRIVATE_VARIABLES):
    """Build a fresh constraint system for ``messages`` in the given mode."""
    cs = ConstraintSystem(field, witness_generation=witness_generation)
    ZkifCircuit(messages, max_private_variables).generate_constraints(cs)
    return cs
