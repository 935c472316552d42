import pytest

from zkif.circuit import synthesize
from zkif.groth16 import create_proof, generate_parameters

TEST_SEED = "zkif-groth16-seed"

# a * b = out
PRODUCT_CONSTRAINTS = [([(2, 1)], [(3, 1)], [(1, 1)])]


@pytest.fixture(scope="session")
def full_pipeline_data(make_messages):
    """Key and proof for a * b = out with a = 3, b = 5, out = 15."""
    structural = make_messages([1], PRODUCT_CONSTRAINTS, free_variable_id=4, r1cs_generation=True)
    witness = make_messages([1], PRODUCT_CONSTRAINTS, connection_values=[15],
                            private_values={2: 3, 3: 5}, witness_generation=True)

    structural_cs = synthesize(structural, witness_generation=False)
    witness_cs = synthesize(witness, witness_generation=True)
    pk = generate_parameters(structural_cs, seed=TEST_SEED)
    proof = create_proof(witness_cs, pk, seed=TEST_SEED)

    return {
        "structural_cs": structural_cs,
        "witness_cs": witness_cs,
        "pk": pk,
        "vk": pk.vk,
        "proof": proof,
        "public_inputs": witness_cs.input_assignment[1:],
        "make_messages": make_messages,
        "seed": TEST_SEED,
    }
