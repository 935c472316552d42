from zkif.errors import ProvingBackendError
from zkif.field import FR
from zkif.r1cs import INPUT


def multiply_polys(a, b):
    o = [FR(0)] * (len(a) + len(b) - 1)
    for i in range(len(a)):
        for j in range(len(b)):
            o[i + j] += a[i] * b[j]
    return o

def add_polys(a, b, subtract=False):
    o = [FR(0)] * max(len(a), len(b))
    for i in range(len(a)):
        o[i] += a[i]
    for i in range(len(b)):
        o[i] += b[i] * (FR(-1) if subtract else FR(1))
    return o

def subtract_polys(a, b):
    return add_polys(a, b, subtract=True)

# Divide a/b, return quotient and remainder
def div_polys(a, b):
    o = [FR(0)] * max(len(a) - len(b) + 1, 0)
    remainder = a
    while len(remainder) >= len(b):
        if b[-1] == 0:
            raise ZeroDivisionError("Division by zero polynomial")
        leading_fac = remainder[-1] / b[-1]
        pos = len(remainder) - len(b)
        o[pos] = leading_fac
        remainder = subtract_polys(remainder, multiply_polys(b, [FR(0)] * pos + [leading_fac]))[:-1]
    return o, remainder

def eval_poly(poly, x):
    return sum([poly[i] * x**i for i in range(len(poly))], FR(0))

def mk_singleton(point_loc, height, total_pts):
    fac = FR(1)
    for i in range(1, total_pts + 1):
        if i != point_loc:
            fac *= FR(point_loc - i)
    o = [FR(height) / fac]
    for i in range(1, total_pts + 1):
        if i != point_loc:
            o = multiply_polys(o, [FR(-i), FR(1)])
    return o

# Interpolate vec over the points 1..len(vec)
def lagrange_interp(vec):
    if all(v == 0 for v in vec):
        return [FR(0)] * len(vec)
    o = []
    for i in range(len(vec)):
        o = add_polys(o, mk_singleton(i + 1, FR(vec[i]), len(vec)))
    for i in range(len(vec)):
        assert eval_poly(o, i + 1) == vec[i], \
            (o, eval_poly(o, i + 1), i+1)
    return o

def transpose(matrix):
    return list(map(list, zip(*matrix)))

# Gate-major matrices (gates x wires) -> one polynomial per wire, plus Z
def r1cs_to_qap(A, B, C):
    A, B, C = transpose(A), transpose(B), transpose(C)
    new_A = [lagrange_interp(row) for row in A]
    new_B = [lagrange_interp(row) for row in B]
    new_C = [lagrange_interp(row) for row in C]
    Z = [FR(1)]
    for i in range(1, len(A[0]) + 1):
        Z = multiply_polys(Z, [FR(-i), FR(1)])
    return (new_A, new_B, new_C, Z)

# Sum_i coeffs[i] * polys[i]
def combine_polys(polys, coeffs):
    o = [FR(0)] * len(polys[0])
    for poly, k in zip(polys, coeffs):
        for j in range(len(poly)):
            o[j] += k * poly[j]
    return o

def getNumWires(Ax):
    return len(Ax)

def getNumGates(Ax):
    return len(Ax[0])


def wire_index(cs, var):
    """Position of ``var`` in the assignment ``[1, inputs..., aux...]``."""
    if var.kind == INPUT:
        return var.index
    return cs.num_inputs + var.index


def constraint_matrices(cs):
    """Gate-major A, B, C matrices of ``cs``.

    One extra row ``input_i * 0 = 0`` is appended per public input so the
    input polynomials stay linearly independent.
    """
    num_wires = cs.num_inputs + cs.num_aux

    def row(lc):
        r = [FR(0)] * num_wires
        for var, coeff in lc:
            r[wire_index(cs, var)] += coeff
        return r

    A, B, C = [], [], []
    for _, a, b, c in cs.constraints:
        A.append(row(a))
        B.append(row(b))
        C.append(row(c))
    for i in range(cs.num_inputs):
        unit = [FR(0)] * num_wires
        unit[i] = FR(1)
        A.append(unit)
        B.append([FR(0)] * num_wires)
        C.append([FR(0)] * num_wires)
    return A, B, C


def witness_vector(cs):
    """Full assignment ``[1, inputs..., aux...]``; every variable must be set."""
    values = list(cs.input_assignment) + list(cs.aux_assignment)
    names = list(cs.input_names) + list(cs.aux_names)
    missing = [name for name, value in zip(names, values) if value is None]
    if missing:
        raise ProvingBackendError(f"variables without assignment: {', '.join(missing)}")
    return values
