import pytest

from zkif.errors import ExternalGadgetError, ProtocolViolation, UnknownVariable, DecodeError
from zkif.field import FR
from zkif.gadget import IdRange, call_gadget
from zkif.messages import BilinearConstraint, Circuit, Messages, R1CSConstraints, Variables
from zkif.r1cs import ConstraintSystem, LinearCombination, ONE


def shape(cs):
    return (cs.num_inputs, cs.num_aux, cs.num_constraints,
            list(cs.input_names), list(cs.aux_names))


def recording(exec_fn, calls):
    def wrapped(call_bytes):
        call = Messages()
        call.push_message(call_bytes)
        calls.append(call.last_circuit())
        return exec_fn(call_bytes)
    return wrapped


def canned(*messages):
    """Gadget that ignores its call and returns fixed messages."""
    def exec_fn(call_bytes):
        return b"".join(m.pack() for m in messages)
    return exec_fn


@pytest.fixture
def witness_cs():
    cs = ConstraintSystem(witness_generation=True)
    return cs, cs.alloc_input("x", 3)


@pytest.fixture
def structural_cs():
    cs = ConstraintSystem(witness_generation=False)
    return cs, cs.alloc_input("x")


class TestIdRange:
    def test_reserve(self):
        r = IdRange.reserve(3)
        assert r.ids() == [1, 2, 3]
        assert r.free_variable_id == 4
        assert len(r) == 3

    def test_empty(self):
        r = IdRange.reserve(0)
        assert r.ids() == []
        assert r.free_variable_id == 1


# ── the call message ──

class TestCallMessage:
    def test_witness_call(self, codec, witness_cs):
        cs, x = witness_cs
        y = cs.alloc("y", 4)
        calls = []
        call_gadget(cs, [x, y], recording(canned(Circuit(free_variable_id=3)), calls))
        (call,) = calls
        assert call.connections.variable_ids == [1, 2]
        assert call.free_variable_id == 3
        assert call.r1cs_generation and call.witness_generation
        assert [codec.decode(v.value) for v in call.connections.get_variables()] == [FR(3), FR(4)]
        assert call.field_maximum == codec.field_maximum()

    def test_structural_call(self, structural_cs):
        cs, x = structural_cs
        calls = []
        call_gadget(cs, [x], recording(canned(Circuit(free_variable_id=2)), calls))
        (call,) = calls
        assert call.connections.values is None
        assert not call.witness_generation

    def test_ids_ignore_caller_numbering(self, structural_cs):
        cs, x = structural_cs
        for i in range(5):
            cs.alloc(f"noise_{i}")
        calls = []
        call_gadget(cs, [x], recording(canned(Circuit(free_variable_id=2)), calls))
        assert calls[0].connections.variable_ids == [1]

    def test_without_field_hint(self, structural_cs):
        cs, x = structural_cs
        calls = []
        call_gadget(cs, [x], recording(canned(Circuit(free_variable_id=2)), calls),
                    field_maximum=False)
        assert calls[0].field_maximum is None


# ── successful calls ──

class TestSplice:
    def test_square_witness(self, witness_cs, square_gadget):
        cs, x = witness_cs
        (out,) = call_gadget(cs, [x], square_gadget)
        assert cs.get_value(out) == FR(9)
        assert (cs.num_aux, cs.num_constraints) == (1, 1)
        assert cs.is_satisfied()

    def test_square_structural(self, structural_cs, square_gadget):
        cs, x = structural_cs
        (out,) = call_gadget(cs, [x], square_gadget)
        assert cs.get_value(out) is None
        assert cs.num_constraints == 1

    def test_private_variables(self, witness_cs, cube_gadget):
        cs, x = witness_cs
        (out,) = call_gadget(cs, [x], cube_gadget)
        assert cs.get_value(out) == FR(27)
        assert cs.aux_names == ["output_2", "local_3"]
        assert cs.num_constraints == 2
        assert cs.is_satisfied()

    def test_output_order(self, structural_cs):
        cs, x = structural_cs
        response = Circuit(Variables([3, 2]), free_variable_id=4)
        outputs = call_gadget(cs, [x], canned(response))
        assert [cs.aux_names[v.index] for v in outputs] == ["output_3", "output_2"]

    def test_outputs_usable(self, witness_cs, square_gadget):
        cs, x = witness_cs
        (out,) = call_gadget(cs, [x], square_gadget)
        lc = LinearCombination.zero() + (FR(1), out)
        cs.enforce("out*1=out", lc, LinearCombination.zero() + (FR(1), ONE), lc)
        assert cs.is_satisfied()

    def test_chained_calls(self, witness_cs, square_gadget):
        cs, x = witness_cs
        (y,) = call_gadget(cs, [x], square_gadget)
        (z,) = call_gadget(cs, [y], square_gadget)
        assert cs.get_value(z) == FR(81)
        assert cs.num_constraints == 2
        assert cs.is_satisfied()

    def test_inside_a_stage(self, witness_cs, square_gadget):
        cs, x = witness_cs
        staged = cs.stage()
        (out,) = call_gadget(staged, [x], square_gadget)
        assert cs.num_constraints == 0
        staged.commit()
        assert cs.get_value(out) == FR(9)

    def test_returns_messages(self, codec, structural_cs):
        cs, x = structural_cs
        response = Messages()
        response.push(Circuit(Variables([2]), free_variable_id=3))
        response.push(R1CSConstraints([
            BilinearConstraint.from_terms([(1, 1)], [(0, 1)], [(2, 1)], codec),
        ]))
        outputs = call_gadget(cs, [x], lambda call: response)
        assert len(outputs) == 1
        assert cs.num_constraints == 1

    def test_no_inputs_follows_structural_cs(self):
        cs = ConstraintSystem(witness_generation=False)
        calls = []
        call_gadget(cs, [], recording(canned(Circuit(free_variable_id=1)), calls))
        assert not calls[0].witness_generation

    def test_no_inputs_follows_witness_cs(self, codec):
        cs = ConstraintSystem(witness_generation=True)
        response = Circuit(Variables.from_values([1], [7], codec), free_variable_id=2)
        calls = []
        (out,) = call_gadget(cs, [], recording(canned(response), calls))
        assert calls[0].witness_generation
        assert cs.get_value(out) == FR(7)

    def test_no_inputs_explicit_mode_wins(self):
        cs = ConstraintSystem(witness_generation=True)
        calls = []
        call_gadget(cs, [], recording(canned(Circuit(free_variable_id=1)), calls),
                    witness_generation=False)
        assert not calls[0].witness_generation

    def test_no_inputs_witness_mode(self, codec):
        cs = ConstraintSystem(witness_generation=True)
        response = Circuit(Variables.from_values([1], [11], codec), free_variable_id=2)
        (out,) = call_gadget(cs, [], canned(response), witness_generation=True)
        assert cs.get_value(out) == FR(11)


# ── failed calls leave the caller untouched ──

class TestFailure:
    def test_mixed_inputs(self):
        cs = ConstraintSystem(witness_generation=True)
        a = cs.alloc("a", 1)
        b = cs.alloc("b")
        before = shape(cs)
        with pytest.raises(ProtocolViolation):
            call_gadget(cs, [a, b], canned(Circuit()))
        assert shape(cs) == before

    def test_mode_conflict(self, witness_cs):
        cs, x = witness_cs
        with pytest.raises(ProtocolViolation):
            call_gadget(cs, [x], canned(Circuit()), witness_generation=False)

    def test_gadget_raises(self, witness_cs):
        cs, x = witness_cs
        before = shape(cs)

        def broken(call_bytes):
            raise RuntimeError("gadget exploded")

        with pytest.raises(ExternalGadgetError) as exc:
            call_gadget(cs, [x], broken)
        assert isinstance(exc.value.__cause__, RuntimeError)
        assert shape(cs) == before

    def test_malformed_response(self, witness_cs):
        cs, x = witness_cs
        before = shape(cs)
        with pytest.raises(ProtocolViolation):
            call_gadget(cs, [x], lambda call: b"\xc1\xc1")
        assert shape(cs) == before

    def test_not_bytes(self, witness_cs):
        cs, x = witness_cs
        with pytest.raises(ProtocolViolation):
            call_gadget(cs, [x], lambda call: "response")

    def test_no_circuit(self, witness_cs):
        cs, x = witness_cs
        with pytest.raises(ProtocolViolation):
            call_gadget(cs, [x], canned(R1CSConstraints()))

    def test_undeclared_id(self, codec, structural_cs):
        cs, x = structural_cs
        before = shape(cs)
        response = Circuit(Variables([2]), free_variable_id=3)
        constraints = R1CSConstraints([
            BilinearConstraint.from_terms([(1, 1)], [(0, 1)], [(2, 1)], codec),
            BilinearConstraint.from_terms([(1, 1)], [(0, 1)], [(9, 1)], codec),
        ])
        with pytest.raises(UnknownVariable) as exc:
            call_gadget(cs, [x], canned(response, constraints))
        assert exc.value.variable_id == 9
        assert shape(cs) == before

    def test_bad_coefficient(self, codec, structural_cs):
        cs, x = structural_cs
        before = shape(cs)
        constraint = BilinearConstraint.from_terms([(1, 1)], [(0, 1)], [(1, 1)], codec)
        constraint.linear_combination_a.values = b"\xff" * 32
        with pytest.raises(DecodeError):
            call_gadget(cs, [x], canned(Circuit(free_variable_id=2), R1CSConstraints([constraint])))
        assert shape(cs) == before

    def test_missing_output_value(self, witness_cs):
        cs, x = witness_cs
        before = shape(cs)
        with pytest.raises(ProtocolViolation):
            call_gadget(cs, [x], canned(Circuit(Variables([2]), free_variable_id=3)))
        assert shape(cs) == before

    def test_free_id_below_call(self, structural_cs):
        cs, x = structural_cs
        with pytest.raises(ProtocolViolation):
            call_gadget(cs, [x], canned(Circuit(free_variable_id=1)))

    def test_foreign_field(self, structural_cs):
        cs, x = structural_cs
        response = Circuit(free_variable_id=2, field_maximum=(96).to_bytes(32, "little"))
        with pytest.raises(ProtocolViolation):
            call_gadget(cs, [x], canned(response))

    def test_private_span_over_limit(self, structural_cs):
        cs, x = structural_cs
        before = shape(cs)
        with pytest.raises(ProtocolViolation, match="private"):
            call_gadget(cs, [x], canned(Circuit(free_variable_id=2 ** 40)))
        assert shape(cs) == before

    def test_private_span_custom_limit(self, structural_cs):
        cs, x = structural_cs
        before = shape(cs)
        with pytest.raises(ProtocolViolation):
            call_gadget(cs, [x], canned(Circuit(free_variable_id=12)),
                        max_private_variables=8)
        assert shape(cs) == before

    def test_private_span_at_limit(self, structural_cs):
        cs, x = structural_cs
        call_gadget(cs, [x], canned(Circuit(free_variable_id=10)), max_private_variables=8)
        assert cs.num_aux == 8
