import logging
from dataclasses import dataclass

from py_ecc import bn128

from zkif.errors import ProvingBackendError
from zkif.field import ec_mul
from zkif.groth16.qap import (
    constraint_matrices,
    r1cs_to_qap,
    combine_polys,
    multiply_polys,
    subtract_polys,
    div_polys,
    witness_vector,
)
from zkif.groth16.setup import random_scalar

logger = logging.getLogger(__name__)

mult = ec_mul
add = bn128.add
neg = bn128.neg


@dataclass
class Proof:
    a: tuple
    b: tuple
    c: tuple


# Sum_j bases[j] * coeffs[j]
def commit(bases, coeffs):
    acc = None
    for base, coeff in zip(bases, coeffs):
        if int(coeff) != 0:
            acc = add(acc, mult(base, int(coeff)))
    return acc

def proof_a(sigma1_1, sigma1_2, Ax, Rx, r):
    proof_A = sigma1_1[0]
    proof_A = add(proof_A, commit(sigma1_2, combine_polys(Ax, Rx)))
    proof_A = add(proof_A, mult(sigma1_1[2], int(r)))
    return proof_A

def proof_b(sigma2_1, sigma2_2, Bx, Rx, s):
    proof_B = sigma2_1[0]
    proof_B = add(proof_B, commit(sigma2_2, combine_polys(Bx, Rx)))
    proof_B = add(proof_B, mult(sigma2_1[2], int(s)))
    return proof_B

def proof_c(sigma1_1, sigma1_2, sigma1_4, sigma1_5, Bx, Rx, Hx, s, r, prf_A, pub_r_indexs):
    #Build temp_proof_B, g1_based
    temp_proof_B = sigma1_1[1]
    temp_proof_B = add(temp_proof_B, commit(sigma1_2, combine_polys(Bx, Rx)))
    temp_proof_B = add(temp_proof_B, mult(sigma1_1[2], int(s)))

    #Build proof_C, g1_based
    proof_C = add(add(mult(prf_A, int(s)), mult(temp_proof_B, int(r))), neg(mult(mult(sigma1_1[2], int(s)), int(r))))

    for i in range(len(Rx)):
        if i in pub_r_indexs:
            continue
        proof_C = add(proof_C, mult(sigma1_4[i], int(Rx[i])))

    proof_C = add(proof_C, commit(sigma1_5, Hx))
    return proof_C

# (Ax.R * Bx.R - Cx.R) / Zx = Hx .... r
def hxr(Ax, Bx, Cx, Zx, Rx):
    Rax = combine_polys(Ax, Rx)
    Rbx = combine_polys(Bx, Rx)
    Rcx = combine_polys(Cx, Rx)
    Px = subtract_polys(multiply_polys(Rax, Rbx), Rcx)
    return div_polys(Px, Zx)

def build_rpub_enum(pub_r_indexs, r_vec):
    o = []
    for i in pub_r_indexs:
        o.append((i, r_vec[i]))
    return o


def _check_shape(cs, pk):
    expected = (pk.num_inputs, pk.num_aux, pk.num_constraints)
    actual = (cs.num_inputs, cs.num_aux, cs.num_constraints)
    if expected != actual:
        raise ProvingBackendError(
            "proving key was generated for (inputs, aux, constraints) = %s, "
            "constraint system has %s" % (expected, actual)
        )


def create_proof(cs, pk, seed=None):
    """Groth16 proof for the fully assigned ``cs`` under ``pk``.

    Raises:
        ProvingBackendError: shape mismatch, unassigned variables, or an
                             assignment that violates a constraint
    """
    _check_shape(cs, pk)
    Rx = witness_vector(cs)
    unsatisfied = cs.which_is_unsatisfied()
    if unsatisfied is not None:
        raise ProvingBackendError(f"constraint {unsatisfied!r} is not satisfied")

    A, B, C = constraint_matrices(cs)
    Ax, Bx, Cx, Zx = r1cs_to_qap(A, B, C)
    Hx, remainder = hxr(Ax, Bx, Cx, Zx, Rx)
    if any(v != 0 for v in remainder):
        raise ProvingBackendError("assignment does not divide by the vanishing polynomial")

    r = random_scalar(seed, "r")
    s = random_scalar(seed, "s")
    vk = pk.vk

    prf_A = proof_a(vk.sigma1_1, pk.sigma1_2, Ax, Rx, r)
    prf_B = proof_b(vk.sigma2_1, pk.sigma2_2, Bx, Rx, s)
    prf_C = proof_c(vk.sigma1_1, pk.sigma1_2, pk.sigma1_4, pk.sigma1_5,
                    Bx, Rx, Hx, s, r, prf_A, pk.pub_r_indexs)
    logger.debug("created proof over %d wires", len(Rx))
    return Proof(prf_A, prf_B, prf_C)
