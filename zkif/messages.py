"""
Circuit message stream
======================

A message stream is an ordered sequence of msgpack maps, each tagged with
a ``message_type``:

  | type      | content                                               |
  |-----------|-------------------------------------------------------|
  | circuit   | connection variables, free id, mode flags, field hint |
  | r1cs      | bilinear constraints over variable ids                |
  | witness   | values assigned to private variables                  |

Variable values and term coefficients are little-endian field element
buffers. A ``Variables`` block stores them concatenated with a fixed
stride of ``len(values) // len(variable_ids)``.

Example:
    >>> codec = FieldCodec()
    >>> circuit = Circuit(Variables.from_values([1, 2], [3, 5], codec),
    ...                   free_variable_id=3, witness_generation=True)
    >>> msgs = Messages()
    >>> msgs.push_message(circuit.pack())
    >>> [v.id for v in msgs.connection_variables()]
    [1, 2]
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import msgpack

from zkif.errors import ProtocolViolation

logger = logging.getLogger(__name__)

MESSAGE_CIRCUIT = "circuit"
MESSAGE_R1CS = "r1cs"
MESSAGE_WITNESS = "witness"

MAX_VARIABLE_ID = (1 << 64) - 1

# upper bound on the private id span of one circuit or gadget response
MAX_PRIVATE_VARIABLES = 1 << 20


@dataclass
class WireVariable:
    id: int
    value: Optional[bytes] = None


@dataclass
class Term:
    variable_id: int
    coefficient: bytes


# ─────────────────────────────────────────────────────────────────────
# Field helpers
# ─────────────────────────────────────────────────────────────────────

def _require(data, key, types, message_type):
    if key not in data:
        raise ProtocolViolation(f"{message_type} message is missing '{key}'")
    value = data[key]
    if not isinstance(value, types):
        raise ProtocolViolation(
            f"{message_type} message field '{key}' has type {type(value).__name__}"
        )
    return value


def _check_id(variable_id):
    if isinstance(variable_id, bool) or not isinstance(variable_id, int):
        raise ProtocolViolation(f"variable id {variable_id!r} is not an integer")
    if not 0 <= variable_id <= MAX_VARIABLE_ID:
        raise ProtocolViolation(f"variable id {variable_id} is out of range")
    return variable_id


# ─────────────────────────────────────────────────────────────────────
# Message bodies
# ─────────────────────────────────────────────────────────────────────

@dataclass
class Variables:
    variable_ids: List[int] = field(default_factory=list)
    values: Optional[bytes] = None

    @classmethod
    def from_values(cls, variable_ids, values, codec):
        """Build a block from ids and field values (ints or field elements).

        ``values`` of None produces a block without values.
        """
        variable_ids = list(variable_ids)
        if values is None:
            return cls(variable_ids, None)
        values = list(values)
        if len(values) != len(variable_ids):
            raise ValueError("variable_ids and values differ in length")
        return cls(variable_ids, b"".join(codec.encode(v) for v in values))

    def value_stride(self):
        if self.values is None or not self.variable_ids:
            return 0
        stride, rest = divmod(len(self.values), len(self.variable_ids))
        if rest:
            raise ProtocolViolation(
                f"{len(self.values)} value bytes do not split evenly over "
                f"{len(self.variable_ids)} variables"
            )
        return stride

    def get_variables(self):
        """Split into ``WireVariable``s; value is None when the block has none."""
        if self.values is None:
            return [WireVariable(i) for i in self.variable_ids]
        stride = self.value_stride()
        return [
            WireVariable(var_id, self.values[k * stride:(k + 1) * stride])
            for k, var_id in enumerate(self.variable_ids)
        ]

    def get_terms(self):
        if self.values is None and self.variable_ids:
            raise ProtocolViolation("linear combination carries no coefficients")
        return [Term(v.id, v.value) for v in self.get_variables()]

    def to_dict(self):
        return {"variable_ids": list(self.variable_ids), "values": self.values}

    @classmethod
    def from_dict(cls, data, message_type):
        if not isinstance(data, dict):
            raise ProtocolViolation(f"{message_type} message has a malformed variables block")
        ids = [_check_id(i) for i in _require(data, "variable_ids", list, message_type)]
        values = data.get("values")
        if values is not None and not isinstance(values, bytes):
            raise ProtocolViolation(f"{message_type} message values must be bytes")
        block = cls(ids, values)
        block.value_stride()
        return block


@dataclass
class Circuit:
    connections: Variables = field(default_factory=Variables)
    free_variable_id: int = 1
    r1cs_generation: bool = False
    witness_generation: bool = False
    field_maximum: Optional[bytes] = None

    message_type = MESSAGE_CIRCUIT

    def to_dict(self):
        return {
            "message_type": self.message_type,
            "connections": self.connections.to_dict(),
            "free_variable_id": self.free_variable_id,
            "r1cs_generation": self.r1cs_generation,
            "witness_generation": self.witness_generation,
            "field_maximum": self.field_maximum,
        }

    @classmethod
    def from_dict(cls, data):
        connections = Variables.from_dict(
            _require(data, "connections", dict, MESSAGE_CIRCUIT), MESSAGE_CIRCUIT
        )
        free_variable_id = _check_id(_require(data, "free_variable_id", int, MESSAGE_CIRCUIT))
        field_maximum = data.get("field_maximum")
        if field_maximum is not None and not isinstance(field_maximum, bytes):
            raise ProtocolViolation("circuit message field_maximum must be bytes")
        return cls(
            connections=connections,
            free_variable_id=free_variable_id,
            r1cs_generation=bool(data.get("r1cs_generation", False)),
            witness_generation=bool(data.get("witness_generation", False)),
            field_maximum=field_maximum,
        )

    def pack(self):
        return msgpack.packb(self.to_dict(), use_bin_type=True)


@dataclass
class BilinearConstraint:
    linear_combination_a: Variables = field(default_factory=Variables)
    linear_combination_b: Variables = field(default_factory=Variables)
    linear_combination_c: Variables = field(default_factory=Variables)

    @classmethod
    def from_terms(cls, a, b, c, codec):
        """Build from three lists of ``(variable_id, coefficient)`` pairs."""
        def block(terms):
            return Variables.from_values([i for i, _ in terms], [k for _, k in terms], codec)
        return cls(block(a), block(b), block(c))

    def a_terms(self):
        return self.linear_combination_a.get_terms()

    def b_terms(self):
        return self.linear_combination_b.get_terms()

    def c_terms(self):
        return self.linear_combination_c.get_terms()

    def to_dict(self):
        return {
            "a": self.linear_combination_a.to_dict(),
            "b": self.linear_combination_b.to_dict(),
            "c": self.linear_combination_c.to_dict(),
        }

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise ProtocolViolation("r1cs message holds a malformed constraint")
        return cls(*(
            Variables.from_dict(_require(data, side, dict, MESSAGE_R1CS), MESSAGE_R1CS)
            for side in ("a", "b", "c")
        ))


@dataclass
class R1CSConstraints:
    constraints: List[BilinearConstraint] = field(default_factory=list)

    message_type = MESSAGE_R1CS

    def to_dict(self):
        return {
            "message_type": self.message_type,
            "constraints": [c.to_dict() for c in self.constraints],
        }

    @classmethod
    def from_dict(cls, data):
        raw = _require(data, "constraints", list, MESSAGE_R1CS)
        return cls([BilinearConstraint.from_dict(c) for c in raw])

    def pack(self):
        return msgpack.packb(self.to_dict(), use_bin_type=True)


@dataclass
class Witness:
    assigned_variables: Variables = field(default_factory=Variables)

    message_type = MESSAGE_WITNESS

    def to_dict(self):
        return {
            "message_type": self.message_type,
            "assigned_variables": self.assigned_variables.to_dict(),
        }

    @classmethod
    def from_dict(cls, data):
        return cls(Variables.from_dict(
            _require(data, "assigned_variables", dict, MESSAGE_WITNESS), MESSAGE_WITNESS
        ))

    def pack(self):
        return msgpack.packb(self.to_dict(), use_bin_type=True)


MESSAGE_TYPES = {
    MESSAGE_CIRCUIT: Circuit,
    MESSAGE_R1CS: R1CSConstraints,
    MESSAGE_WITNESS: Witness,
}


def unpack_messages(buf):
    """Parse every message in ``buf``.

    Raises:
        ProtocolViolation: truncated or malformed bytes, unknown message type
    """
    unpacker = msgpack.Unpacker(raw=False)
    out = []
    try:
        unpacker.feed(bytes(buf))
        for data in unpacker:
            if not isinstance(data, dict):
                raise ProtocolViolation(f"message is a {type(data).__name__}, expected a map")
            kind = data.get("message_type")
            if kind not in MESSAGE_TYPES:
                raise ProtocolViolation(f"unknown message type {kind!r}")
            out.append(MESSAGE_TYPES[kind].from_dict(data))
    except (ValueError, msgpack.exceptions.UnpackException) as exc:
        raise ProtocolViolation(f"malformed message bytes: {exc}") from exc
    if unpacker.tell() != len(buf):
        raise ProtocolViolation(
            f"truncated message stream: {len(buf) - unpacker.tell()} trailing bytes"
        )
    return out


# ─────────────────────────────────────────────────────────────────────
# Message stream
# ─────────────────────────────────────────────────────────────────────

class Messages:
    """Ordered, possibly multi-part collection of circuit messages.

    Args:
        first_id: first id a private variable may take when the circuit
                  declares no connections
    """

    def __init__(self, first_id=1):
        self.messages = []
        self.first_id = first_id

    def push(self, message):
        self.messages.append(message)

    def push_message(self, buf):
        parsed = unpack_messages(buf)
        logger.debug("parsed %d messages from %d bytes", len(parsed), len(buf))
        self.messages.extend(parsed)

    def read_file(self, path):
        self.push_message(Path(path).read_bytes())

    def to_bytes(self):
        return b"".join(m.pack() for m in self.messages)

    def write_file(self, path):
        Path(path).write_bytes(self.to_bytes())

    def circuits(self):
        return [m for m in self.messages if isinstance(m, Circuit)]

    def last_circuit(self):
        circuits = self.circuits()
        return circuits[-1] if circuits else None

    def connection_variables(self):
        circuit = self.last_circuit()
        if circuit is None:
            return None
        return circuit.connections.get_variables()

    def private_variables(self, limit=MAX_PRIVATE_VARIABLES):
        """Variables between the connections and ``free_variable_id``.

        Values come from witness messages; ids without an assignment have
        no value.

        Raises:
            ProtocolViolation: the span holds more than ``limit`` ids
        """
        circuit = self.last_circuit()
        if circuit is None:
            return None
        connection_ids = circuit.connections.variable_ids
        first_local_id = max(connection_ids) + 1 if connection_ids else self.first_id
        span = circuit.free_variable_id - first_local_id
        if limit is not None and span > limit:
            raise ProtocolViolation(
                f"free_variable_id {circuit.free_variable_id} declares {span} private "
                f"variables, more than the limit of {limit}"
            )
        assigned = {var.id: var.value for var in self.iter_witness()}
        return [
            WireVariable(var_id, assigned.get(var_id))
            for var_id in range(first_local_id, circuit.free_variable_id)
        ]

    def iter_constraints(self):
        for message in self.messages:
            if isinstance(message, R1CSConstraints):
                yield from message.constraints

    def iter_witness(self):
        for message in self.messages:
            if isinstance(message, Witness):
                yield from message.assigned_variables.get_variables()

    def __len__(self):
        return len(self.messages)

    def __repr__(self):
        return f"Messages({len(self.messages)} messages, first_id={self.first_id})"
