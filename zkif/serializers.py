"""
Groth16 artifact serialization helpers
======================================

Converts keys and proofs into JSON-storable documents for TinyDB.
Field elements and coordinates are decimal strings; the point at
infinity is None.
"""

from py_ecc import bn128
from py_ecc.fields import bn128_FQ as FQ

from zkif.errors import ArtifactIOError
from zkif.field import FR
from zkif.groth16.setup import ProvingKey, VerifyingKey
from zkif.groth16.proving import Proof

KEY_DOCUMENT = "groth16_proving_key"
PROOF_DOCUMENT = "groth16_proof"


# ─── FR ───

def serialize_fr(val):
    """FR -> str(int)"""
    return str(int(val))


def deserialize_fr(s):
    """str(int) -> FR"""
    return FR(int(s))


def serialize_fr_list(lst):
    return [serialize_fr(v) for v in lst]


def deserialize_fr_list(data):
    return [deserialize_fr(s) for s in data]


# ─── G1 point ───

def serialize_g1(point):
    """G1 point -> [str, str] or None"""
    if point is None:
        return None
    return [str(int(point[0])), str(int(point[1]))]


def deserialize_g1(data):
    """[str, str] or None -> G1 point"""
    if data is None:
        return None
    return (FQ(int(data[0])), FQ(int(data[1])))


# ─── G2 point ───

def serialize_g2(point):
    """G2 point -> [[str,str],[str,str]] or None"""
    if point is None:
        return None
    return [
        [str(int(point[0].coeffs[0])), str(int(point[0].coeffs[1]))],
        [str(int(point[1].coeffs[0])), str(int(point[1].coeffs[1]))]
    ]


def deserialize_g2(data):
    """[[str,str],[str,str]] or None -> G2 point"""
    if data is None:
        return None
    return (
        bn128.FQ2([int(data[0][0]), int(data[0][1])]),
        bn128.FQ2([int(data[1][0]), int(data[1][1])])
    )


# ─── Keys ───

def serialize_verifying_key(vk):
    return {
        "sigma1_1": [serialize_g1(p) for p in vk.sigma1_1],
        "sigma1_3": [serialize_g1(p) for p in vk.sigma1_3],
        "sigma2_1": [serialize_g2(p) for p in vk.sigma2_1],
        "num_inputs": vk.num_inputs,
    }


def deserialize_verifying_key(data):
    return VerifyingKey(
        sigma1_1=[deserialize_g1(p) for p in data["sigma1_1"]],
        sigma1_3=[deserialize_g1(p) for p in data["sigma1_3"]],
        sigma2_1=[deserialize_g2(p) for p in data["sigma2_1"]],
        num_inputs=data["num_inputs"],
    )


def serialize_proving_key(pk):
    return {
        "type": KEY_DOCUMENT,
        "vk": serialize_verifying_key(pk.vk),
        "sigma1_2": [serialize_g1(p) for p in pk.sigma1_2],
        "sigma1_4": [serialize_g1(p) for p in pk.sigma1_4],
        "sigma1_5": [serialize_g1(p) for p in pk.sigma1_5],
        "sigma2_2": [serialize_g2(p) for p in pk.sigma2_2],
        "num_inputs": pk.num_inputs,
        "num_aux": pk.num_aux,
        "num_constraints": pk.num_constraints,
    }


def deserialize_proving_key(data):
    if data.get("type") != KEY_DOCUMENT:
        raise ArtifactIOError(f"not a proving key document: {data.get('type')!r}")
    try:
        return ProvingKey(
            vk=deserialize_verifying_key(data["vk"]),
            sigma1_2=[deserialize_g1(p) for p in data["sigma1_2"]],
            sigma1_4=[deserialize_g1(p) for p in data["sigma1_4"]],
            sigma1_5=[deserialize_g1(p) for p in data["sigma1_5"]],
            sigma2_2=[deserialize_g2(p) for p in data["sigma2_2"]],
            num_inputs=data["num_inputs"],
            num_aux=data["num_aux"],
            num_constraints=data["num_constraints"],
        )
    except (KeyError, TypeError, ValueError, IndexError) as exc:
        raise ArtifactIOError(f"corrupt proving key document: {exc}") from exc


# ─── Proof ───

def serialize_proof(proof, public_inputs=()):
    return {
        "type": PROOF_DOCUMENT,
        "a": serialize_g1(proof.a),
        "b": serialize_g2(proof.b),
        "c": serialize_g1(proof.c),
        "public_inputs": serialize_fr_list(public_inputs),
    }


def deserialize_proof(data):
    """dict -> (Proof, public inputs)"""
    if data.get("type") != PROOF_DOCUMENT:
        raise ArtifactIOError(f"not a proof document: {data.get('type')!r}")
    try:
        proof = Proof(
            deserialize_g1(data["a"]),
            deserialize_g2(data["b"]),
            deserialize_g1(data["c"]),
        )
        return proof, deserialize_fr_list(data.get("public_inputs", []))
    except (KeyError, TypeError, ValueError, IndexError) as exc:
        raise ArtifactIOError(f"corrupt proof document: {exc}") from exc
