import sys
import os
import pytest

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from zkif.field import FR, FieldCodec
from zkif.messages import (
    Messages, Circuit, Variables, R1CSConstraints, BilinearConstraint, Witness,
)


@pytest.fixture(scope="session")
def codec():
    return FieldCodec(FR)


@pytest.fixture(scope="session")
def make_messages(codec):
    """Builder for a complete circuit message stream.

    ``constraints`` is a list of (A, B, C) with each side a list of
    (variable_id, coefficient) pairs.
    """
    def make(connection_ids, constraints, connection_values=None, private_values=None,
             free_variable_id=None, r1cs_generation=False, witness_generation=False,
             field_maximum=None):
        private_values = private_values or {}
        if free_variable_id is None:
            free_variable_id = max(list(connection_ids) + list(private_values) + [0]) + 1
        messages = Messages()
        messages.push(Circuit(
            connections=Variables.from_values(connection_ids, connection_values, codec),
            free_variable_id=free_variable_id,
            r1cs_generation=r1cs_generation,
            witness_generation=witness_generation,
            field_maximum=field_maximum,
        ))
        messages.push(R1CSConstraints([
            BilinearConstraint.from_terms(a, b, c, codec) for a, b, c in constraints
        ]))
        if private_values:
            ids = sorted(private_values)
            messages.push(Witness(Variables.from_values(
                ids, [private_values[i] for i in ids], codec)))
        return messages
    return make


# ── circuits ──

# var1 * one = var1, with a second unconstrained public variable
IDENTITY_CONSTRAINTS = [([(1, 1)], [(0, 1)], [(1, 1)])]

# a * b = out, with out public and a, b private
PRODUCT_CONSTRAINTS = [([(2, 1)], [(3, 1)], [(1, 1)])]


@pytest.fixture
def identity_structural(make_messages):
    return make_messages([1, 2], IDENTITY_CONSTRAINTS, r1cs_generation=True)


@pytest.fixture
def identity_witness(make_messages):
    return make_messages([1, 2], IDENTITY_CONSTRAINTS, connection_values=[3, 5],
                         witness_generation=True)


@pytest.fixture
def product_structural(make_messages):
    return make_messages([1], PRODUCT_CONSTRAINTS, free_variable_id=4, r1cs_generation=True)


@pytest.fixture
def product_witness(make_messages):
    return make_messages([1], PRODUCT_CONSTRAINTS, connection_values=[15],
                         private_values={2: 3, 3: 5}, witness_generation=True)


# ── foreign gadgets ──

def _read_call(call_bytes):
    call = Messages()
    call.push_message(call_bytes)
    return call.last_circuit()


@pytest.fixture(scope="session")
def square_gadget(codec):
    """out = x * x for a single input."""
    def exec_fn(call_bytes):
        circuit = _read_call(call_bytes)
        (x,) = circuit.connections.get_variables()
        out_id = circuit.free_variable_id
        out_values = None
        if x.value is not None:
            v = codec.decode(x.value)
            out_values = [v * v]
        response = Circuit(
            connections=Variables.from_values([out_id], out_values, codec),
            free_variable_id=out_id + 1,
        )
        constraints = R1CSConstraints([
            BilinearConstraint.from_terms([(x.id, 1)], [(x.id, 1)], [(out_id, 1)], codec),
        ])
        return response.pack() + constraints.pack()
    return exec_fn


@pytest.fixture(scope="session")
def cube_gadget(codec):
    """out = x^3 through one private variable t = x * x."""
    def exec_fn(call_bytes):
        circuit = _read_call(call_bytes)
        (x,) = circuit.connections.get_variables()
        out_id = circuit.free_variable_id
        t_id = out_id + 1
        messages = [
            Circuit(
                connections=Variables.from_values(
                    [out_id],
                    None if x.value is None else [codec.decode(x.value) ** 3],
                    codec),
                free_variable_id=t_id + 1,
            ),
            R1CSConstraints([
                BilinearConstraint.from_terms([(x.id, 1)], [(x.id, 1)], [(t_id, 1)], codec),
                BilinearConstraint.from_terms([(t_id, 1)], [(x.id, 1)], [(out_id, 1)], codec),
            ]),
        ]
        if x.value is not None:
            messages.append(Witness(Variables.from_values(
                [t_id], [codec.decode(x.value) ** 2], codec)))
        return b"".join(m.pack() for m in messages)
    return exec_fn
