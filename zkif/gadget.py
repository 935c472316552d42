"""
Foreign gadget calls
====================

Splices an externally defined circuit fragment into a constraint system.

The gadget is an opaque function ``exec_fn(call_bytes) -> response``. The
call tells it which ids carry the caller's inputs and where it may start
allocating; the response declares outputs, private variables and
constraints over those ids.

**Id space**:
  Each call reserves its own ids ``1..k`` for ``k`` inputs, and the gadget
  allocates from ``k + 1``. The range lives in an ``IdRange`` value owned
  by the call, and the binding table built from it is thrown away when
  the call returns, so calls never see each other's ids or the caller's.

**Atomicity**:
  Outputs, private variables and constraints are staged on top of the
  caller's system and committed only once every constraint translated.
  A failing call leaves the caller exactly as it was.

Example:
    >>> outputs = call_gadget(cs, [x, y], exec_fn)
    >>> cs.enforce("use", LinearCombination.zero() + (FR(1), outputs[0]), ...)
"""

import logging
from dataclasses import dataclass

from zkif.bindings import VariableBindings
from zkif.errors import ExternalGadgetError, ProtocolViolation
from zkif.field import FieldCodec
from zkif.messages import MAX_PRIVATE_VARIABLES, Circuit, Messages, Variables
from zkif.translate import enforce

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdRange:
    """Ids reserved for one call's inputs; ``free_variable_id`` is the first
    id the gadget may allocate."""

    first_id: int
    free_variable_id: int

    @classmethod
    def reserve(cls, count, first_id=1):
        return cls(first_id, first_id + count)

    def ids(self):
        return list(range(self.first_id, self.free_variable_id))

    def __len__(self):
        return self.free_variable_id - self.first_id


def _detect_mode(values, witness_generation, default):
    if not values:
        return default if witness_generation is None else bool(witness_generation)
    assigned = [v is not None for v in values]
    if all(assigned):
        mode = True
    elif not any(assigned):
        mode = False
    else:
        raise ProtocolViolation("gadget inputs mix assigned and unassigned values")
    if witness_generation is not None and witness_generation != mode:
        raise ProtocolViolation(
            f"witness_generation={witness_generation} but inputs are "
            f"{'assigned' if mode else 'unassigned'}"
        )
    return mode


def _read_response(response, id_range):
    if isinstance(response, Messages):
        return response
    if not isinstance(response, (bytes, bytearray, memoryview)):
        raise ProtocolViolation(f"gadget returned {type(response).__name__}, expected bytes")
    messages = Messages(first_id=id_range.free_variable_id)
    messages.push_message(bytes(response))
    return messages


def build_call(values, id_range, witness, codec, field_maximum=True):
    """The call message for inputs with ``values`` (ignored in structural mode)."""
    return Circuit(
        connections=Variables.from_values(id_range.ids(), values if witness else None, codec),
        free_variable_id=id_range.free_variable_id,
        r1cs_generation=True,
        witness_generation=witness,
        field_maximum=codec.field_maximum() if field_maximum else None,
    )


def call_gadget(cs, inputs, exec_fn, witness_generation=None, field_maximum=True,
                max_private_variables=MAX_PRIVATE_VARIABLES):
    """Invoke a foreign gadget and merge its contribution into ``cs``.

    Args:
        cs: caller's ``ConstraintSystem`` (or an open stage of one)
        inputs: caller-owned ``Variable`` handles passed to the gadget
        exec_fn: ``bytes -> bytes`` (or ``Messages``) gadget function
        witness_generation: mode to use when there are no inputs (defaults
                            to the mode of ``cs``); with inputs it must
                            agree with their assignment
        field_maximum: whether to send the field hint
        max_private_variables: largest private id span a response may declare

    Returns:
        list of new ``Variable`` handles, in the order the gadget declared
        its outputs

    Raises:
        ProtocolViolation: mixed input values, malformed or incomplete response,
                           or a private id span above ``max_private_variables``
        ExternalGadgetError: ``exec_fn`` raised
        UnknownVariable: a constraint references an undeclared id
        DuplicateBinding: the response redeclares an id
        DecodeError: a value or coefficient is not a field element
    """
    codec = FieldCodec(cs.field)
    values = [cs.get_value(var) for var in inputs]
    witness = _detect_mode(values, witness_generation, cs.witness_generation)

    id_range = IdRange.reserve(len(inputs))
    call = build_call(values, id_range, witness, codec, field_maximum)
    logger.debug(
        "calling gadget: %d inputs, ids %d..%d, %s mode",
        len(inputs), id_range.first_id, id_range.free_variable_id - 1,
        "witness" if witness else "structural",
    )

    try:
        response = exec_fn(call.pack())
    except Exception as exc:
        raise ExternalGadgetError(f"gadget call failed: {exc}") from exc

    messages = _read_response(response, id_range)
    circuit = messages.last_circuit()
    if circuit is None:
        raise ProtocolViolation("gadget response has no circuit message")
    codec.check_field_maximum(circuit.field_maximum)
    if circuit.free_variable_id < id_range.free_variable_id:
        raise ProtocolViolation(
            f"gadget response free_variable_id {circuit.free_variable_id} is below "
            f"the call's {id_range.free_variable_id}"
        )

    output_vars = circuit.connections.get_variables()
    private_vars = messages.private_variables(limit=max_private_variables)
    constraints = list(messages.iter_constraints())
    if witness:
        missing = [v.id for v in output_vars + private_vars if v.value is None]
        if missing:
            raise ProtocolViolation(f"gadget response has no values for ids {missing}")

    staged = cs.stage()
    bindings = VariableBindings(cs.one())
    for var_id, var in zip(id_range.ids(), inputs):
        bindings.bind(var_id, var)

    outputs = []
    for var in output_vars:
        value = codec.decode(var.value) if witness else None
        num = staged.alloc(f"output_{var.id}", value)
        bindings.bind(var.id, num)
        outputs.append(num)

    for var in private_vars:
        value = codec.decode(var.value) if witness else None
        bindings.bind(var.id, staged.alloc(f"local_{var.id}", value))

    for i, constraint in enumerate(constraints):
        enforce(staged, codec, bindings, constraint, f"constraint_{i}")

    staged.commit()
    logger.debug(
        "gadget contributed %d outputs, %d private variables, %d constraints",
        len(outputs), len(private_vars), len(constraints),
    )
    return outputs
