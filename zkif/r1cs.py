"""
Rank-1 constraint system
========================

The in-memory R1CS handed to the Groth16 backend.

Variables are split the way Groth16 needs them:

  - **input** variables are public. Input 0 is the constant one and is
    always present.
  - **aux** variables are private witness values.

Each constraint asserts ``<A, z> * <B, z> = <C, z>`` where ``z`` is the
full assignment ``[1, inputs..., aux...]``.

In structural (key generation) mode the system records shape only and
discards any value handed to ``alloc``/``alloc_input``. In witness mode
it records values as well.

``stage()`` opens a buffer on top of the system: allocations and
constraints land in the buffer and only reach the parent on
``commit()``. Abandoning the buffer leaves the parent untouched.

Example:
    >>> cs = ConstraintSystem(witness_generation=True)
    >>> x = cs.alloc_input("x", 3)
    >>> cs.enforce("x*1=x", LinearCombination.zero() + (FR(1), x),
    ...            LinearCombination.zero() + (FR(1), cs.one()),
    ...            LinearCombination.zero() + (FR(1), x))
    >>> cs.is_satisfied()
    True
"""

import logging
from dataclasses import dataclass

from zkif.field import FR

logger = logging.getLogger(__name__)

INPUT = "input"
AUX = "aux"


@dataclass(frozen=True)
class Variable:
    index: int
    kind: str

    def __repr__(self):
        return f"Variable({self.kind}_{self.index})"


ONE = Variable(0, INPUT)


class LinearCombination:
    """Ordered list of ``(variable, coefficient)`` terms.

    Terms are appended with ``lc + (coeff, var)``. Repeated variables are
    kept as separate terms; they are summed when evaluated.
    """

    def __init__(self, terms=None):
        self.terms = list(terms) if terms else []

    @classmethod
    def zero(cls):
        return cls()

    def __add__(self, other):
        if isinstance(other, LinearCombination):
            return LinearCombination(self.terms + other.terms)
        coeff, var = other
        return LinearCombination(self.terms + [(var, coeff)])

    def __iter__(self):
        return iter(self.terms)

    def __len__(self):
        return len(self.terms)

    def variables(self):
        return [var for var, _ in self.terms]

    def evaluate(self, cs):
        """Value of the combination under ``cs``'s assignment, or None if any
        referenced variable is unassigned."""
        total = cs.field(0)
        for var, coeff in self.terms:
            value = cs.get_value(var)
            if value is None:
                return None
            total = total + coeff * value
        return total

    def __repr__(self):
        return " + ".join(f"{int(c)}*{v!r}" for v, c in self.terms) or "0"


class ConstraintSystem:
    """Growing R1CS with optional assignment.

    Attributes:
        field: field class of coefficients and values
        witness_generation: whether values are recorded
        input_assignment / aux_assignment: values (None when unassigned)
        input_names / aux_names: allocation annotations
        constraints: list of ``(annotation, a, b, c)``
    """

    input_offset = 0
    aux_offset = 0
    constraint_offset = 0

    def __init__(self, field=FR, witness_generation=False):
        self.field = field
        self.witness_generation = witness_generation
        self.input_assignment = [field(1)]
        self.input_names = ["ONE"]
        self.aux_assignment = []
        self.aux_names = []
        self.constraints = []

    @staticmethod
    def one():
        return ONE

    @property
    def num_inputs(self):
        return self.input_offset + len(self.input_assignment)

    @property
    def num_aux(self):
        return self.aux_offset + len(self.aux_assignment)

    @property
    def num_constraints(self):
        return self.constraint_offset + len(self.constraints)

    def _assign(self, value):
        if not self.witness_generation or value is None:
            return None
        if isinstance(value, self.field):
            return value
        return self.field(value)

    def alloc(self, annotation, value=None):
        """Allocate a private (aux) variable."""
        var = Variable(self.num_aux, AUX)
        self.aux_assignment.append(self._assign(value))
        self.aux_names.append(annotation)
        return var

    def alloc_input(self, annotation, value=None):
        """Allocate a public input variable."""
        var = Variable(self.num_inputs, INPUT)
        self.input_assignment.append(self._assign(value))
        self.input_names.append(annotation)
        return var

    def enforce(self, annotation, a, b, c):
        self.constraints.append((annotation, a, b, c))

    def get_value(self, var):
        if var.kind == INPUT:
            return self.input_assignment[var.index - self.input_offset]
        return self.aux_assignment[var.index - self.aux_offset]

    def stage(self):
        return StagedConstraintSystem(self)

    def which_is_unsatisfied(self):
        """Annotation of the first constraint that does not hold, else None.

        Constraints over unassigned variables count as not holding.
        """
        for annotation, a, b, c in self.constraints:
            a_val, b_val, c_val = a.evaluate(self), b.evaluate(self), c.evaluate(self)
            if a_val is None or b_val is None or c_val is None:
                return annotation
            if a_val * b_val != c_val:
                return annotation
        return None

    def is_satisfied(self):
        return self.which_is_unsatisfied() is None

    def __repr__(self):
        return (
            f"{type(self).__name__}(inputs={self.num_inputs}, aux={self.num_aux}, "
            f"constraints={self.num_constraints}, witness={self.witness_generation})"
        )


class StagedConstraintSystem(ConstraintSystem):
    """Buffer of allocations and constraints layered on a parent system.

    Indices continue the parent's numbering, so handles created here stay
    valid after ``commit()``. Stages nest.
    """

    def __init__(self, parent):
        super().__init__(parent.field, parent.witness_generation)
        self.parent = parent
        self.input_offset = parent.num_inputs
        self.aux_offset = parent.num_aux
        self.constraint_offset = parent.num_constraints
        self.input_assignment = []
        self.input_names = []
        self.committed = False

    def get_value(self, var):
        if var.kind == INPUT and var.index < self.input_offset:
            return self.parent.get_value(var)
        if var.kind == AUX and var.index < self.aux_offset:
            return self.parent.get_value(var)
        return super().get_value(var)

    def commit(self):
        """Splice the buffered contribution into the parent."""
        if self.committed:
            raise RuntimeError("staged constraint system committed twice")
        parent = self.parent
        if (parent.num_inputs, parent.num_aux, parent.num_constraints) != (
            self.input_offset, self.aux_offset, self.constraint_offset
        ):
            raise RuntimeError("parent constraint system changed while a stage was open")
        parent.input_assignment.extend(self.input_assignment)
        parent.input_names.extend(self.input_names)
        parent.aux_assignment.extend(self.aux_assignment)
        parent.aux_names.extend(self.aux_names)
        parent.constraints.extend(self.constraints)
        self.committed = True
        logger.debug(
            "committed %d inputs, %d aux, %d constraints",
            len(self.input_assignment), len(self.aux_assignment), len(self.constraints),
        )
