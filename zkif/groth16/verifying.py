from py_ecc import bn128

from zkif.errors import ProvingBackendError
from zkif.field import FR, ec_mul
from zkif.groth16.proving import build_rpub_enum

# Elliptic Curve operations
mult = ec_mul
pairing = bn128.pairing
add = bn128.add


#(rx_pub) = [(index_i, ri), ... ]
def verify(prf_A, prf_B, prf_C, sigma1_1, sigma1_3, sigma2_1, rx_pub):

    LHS = pairing(prf_B, prf_A)
    RHS = pairing(sigma2_1[0], sigma1_1[0])

    temp = None

    for i, ri in rx_pub:
        temp = add(temp, mult(sigma1_3[i], int(ri)))

    RHS = (RHS * pairing(sigma2_1[1], temp)) * pairing(sigma2_1[2], prf_C)

    return LHS == RHS


def verify_proof(vk, proof, public_inputs):
    """Check ``proof`` against ``vk`` for the given public inputs.

    ``public_inputs`` excludes the constant one.
    """
    if len(public_inputs) != vk.num_inputs - 1:
        raise ProvingBackendError(
            f"verifying key expects {vk.num_inputs - 1} public inputs, got {len(public_inputs)}"
        )
    r_vec = [FR(1)] + [v if isinstance(v, FR) else FR(v) for v in public_inputs]
    rx_pub = build_rpub_enum(range(vk.num_inputs), r_vec)
    return verify(proof.a, proof.b, proof.c, vk.sigma1_1, vk.sigma1_3, vk.sigma2_1, rx_pub)
