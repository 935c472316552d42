import hashlib
import logging
import secrets
from dataclasses import dataclass
from typing import List

from zkif.field import FR, CURVE_ORDER, G1, G2, ec_mul
from zkif.groth16.qap import (
    constraint_matrices,
    r1cs_to_qap,
    eval_poly,
    getNumWires,
    getNumGates,
)

logger = logging.getLogger(__name__)

g1 = G1
g2 = G2

mult = ec_mul


def random_scalar(seed=None, label=""):
    """Non-zero scalar; derived from SHA-256 of ``seed`` and ``label`` when a
    seed is given, otherwise from ``secrets``."""
    if seed is not None:
        h = hashlib.sha256(f"{seed}:{label}".encode()).digest()
        return FR(int.from_bytes(h, "big") % (CURVE_ORDER - 1) + 1)
    return FR(secrets.randbelow(CURVE_ORDER - 1) + 1)


def sigma11(alpha, beta, delta):
    return [mult(g1, int(alpha)), mult(g1, int(beta)), mult(g1, int(delta))]

def sigma12(numGates, x_val):
    sigma1_2 = []
    for i in range(numGates):
        val = x_val ** i
        sigma1_2.append(mult(g1, int(val)))
    return sigma1_2

def sigma13(numWires, alpha, beta, gamma, Ax_val, Bx_val, Cx_val, pub_r_indexs):
    sigma1_3 = []
    for i in range(numWires):
        if i in pub_r_indexs:
            val = (beta*Ax_val[i] + alpha*Bx_val[i] + Cx_val[i]) / gamma
            sigma1_3.append(mult(g1, int(val)))
        else:
            sigma1_3.append(None)
    return sigma1_3

def sigma14(numWires, alpha, beta, delta, Ax_val, Bx_val, Cx_val, pub_r_indexs):
    sigma1_4 = []
    for i in range(numWires):
        if i in pub_r_indexs:
            sigma1_4.append(None)
        else:
            val = (beta*Ax_val[i] + alpha*Bx_val[i] + Cx_val[i]) / delta
            sigma1_4.append(mult(g1, int(val)))
    return sigma1_4

def sigma15(numGates, delta, x_val, Zx_val):
    sigma1_5 = []
    for i in range(numGates-1):
        sigma1_5.append(mult(g1, int((x_val**i * Zx_val) / delta)))
    return sigma1_5

def sigma21(beta, delta, gamma):
    return [mult(g2, int(beta)), mult(g2, int(gamma)), mult(g2, int(delta))]

def sigma22(numGates, x_val):
    sigma2_2 = []
    for i in range(numGates):
        sigma2_2.append(mult(g2, int(x_val**i)))
    return sigma2_2


@dataclass
class VerifyingKey:
    sigma1_1: list           # [alpha, beta, delta] in G1
    sigma1_3: list           # public wire terms in G1 (None for private wires)
    sigma2_1: list           # [beta, gamma, delta] in G2
    num_inputs: int


@dataclass
class ProvingKey:
    vk: VerifyingKey
    sigma1_2: list           # powers of x in G1
    sigma1_4: list           # private wire terms in G1 (None for public wires)
    sigma1_5: list           # x^i * Z(x) / delta in G1
    sigma2_2: list           # powers of x in G2
    num_inputs: int
    num_aux: int
    num_constraints: int

    @property
    def pub_r_indexs(self) -> List[int]:
        return list(range(self.num_inputs))


def generate_parameters(cs, seed=None):
    """Groth16 key generation for the shape of ``cs``."""
    alpha = random_scalar(seed, "alpha")
    beta = random_scalar(seed, "beta")
    gamma = random_scalar(seed, "gamma")
    delta = random_scalar(seed, "delta")
    x_val = random_scalar(seed, "x")

    A, B, C = constraint_matrices(cs)
    Ax, Bx, Cx, Zx = r1cs_to_qap(A, B, C)

    numGates = getNumGates(Ax)
    numWires = getNumWires(Ax)
    pub_r_indexs = list(range(cs.num_inputs))

    Ax_val = [eval_poly(p, x_val) for p in Ax]
    Bx_val = [eval_poly(p, x_val) for p in Bx]
    Cx_val = [eval_poly(p, x_val) for p in Cx]
    Zx_val = eval_poly(Zx, x_val)

    vk = VerifyingKey(
        sigma1_1=sigma11(alpha, beta, delta),
        sigma1_3=sigma13(numWires, alpha, beta, gamma, Ax_val, Bx_val, Cx_val, pub_r_indexs),
        sigma2_1=sigma21(beta, delta, gamma),
        num_inputs=cs.num_inputs,
    )
    pk = ProvingKey(
        vk=vk,
        sigma1_2=sigma12(numGates, x_val),
        sigma1_4=sigma14(numWires, alpha, beta, delta, Ax_val, Bx_val, Cx_val, pub_r_indexs),
        sigma1_5=sigma15(numGates, delta, x_val, Zx_val),
        sigma2_2=sigma22(numGates, x_val),
        num_inputs=cs.num_inputs,
        num_aux=cs.num_aux,
        num_constraints=cs.num_constraints,
    )
    logger.debug("generated parameters: %d gates, %d wires", numGates, numWires)
    return pk
