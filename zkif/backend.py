"""
Artifact orchestration
======================

Runs a message stream through synthesis and the Groth16 backend:

  - ``r1cs_generation`` set: structural run -> proving key -> ``<out>/key``
  - ``witness_generation`` set: load ``<out>/key`` -> witness run -> proof
    -> ``<out>/proof``

Both steps run in order when both flags are set. The two runs may also
happen in separate processes; the witness run only needs the key
artifact on disk. Artifacts are TinyDB JSON documents and are written
only after the backend call succeeded.

Example:
    >>> messages = Messages()
    >>> messages.read_file("circuit_r1cs.zkif")
    >>> zkif_backend(messages, Path("out"))
"""

import logging
from pathlib import Path

from tinydb import TinyDB

from zkif.circuit import synthesize
from zkif.config import DEFAULT_CONFIG
from zkif.errors import ArtifactIOError, ProtocolViolation, ProvingBackendError, SynthesisError
from zkif.groth16 import create_proof, generate_parameters, verify_proof
from zkif.serializers import (
    deserialize_proof,
    deserialize_proving_key,
    serialize_proof,
    serialize_proving_key,
)

logger = logging.getLogger(__name__)


def artifact_paths(out_dir, config=None):
    config = config or DEFAULT_CONFIG
    out_dir = Path(out_dir)
    return out_dir / config["key_filename"], out_dir / config["proof_filename"]


def write_artifact(path, document):
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with TinyDB(path) as db:
            db.truncate()
            db.insert(document)
    except OSError as exc:
        raise ArtifactIOError(f"cannot write artifact {path}: {exc}") from exc
    logger.debug("wrote %s", path)


def read_artifact(path):
    if not path.exists():
        raise ArtifactIOError(f"artifact {path} does not exist")
    try:
        with TinyDB(path, access_mode="r") as db:
            documents = db.all()
    except (OSError, ValueError) as exc:
        raise ArtifactIOError(f"cannot read artifact {path}: {exc}") from exc
    except (TypeError, AttributeError, KeyError) as exc:
        raise ArtifactIOError(f"artifact {path} is not a TinyDB document: {exc}") from exc
    if not documents:
        raise ArtifactIOError(f"artifact {path} is empty")
    return documents[0]


def _private_limit(config):
    return (config or DEFAULT_CONFIG).get(
        "max_private_variables", DEFAULT_CONFIG["max_private_variables"])


def _backend_call(description, fn, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except SynthesisError:
        raise
    except (ArithmeticError, AssertionError, ValueError) as exc:
        raise ProvingBackendError(f"{description} failed: {exc}") from exc


def generate_key(messages, seed=None, config=None):
    """Structural run plus key generation; returns ``(cs, pk)``."""
    cs = synthesize(messages, witness_generation=False,
                    max_private_variables=_private_limit(config))
    pk = _backend_call("key generation", generate_parameters, cs, seed=seed)
    return cs, pk


def prove(messages, pk, seed=None, config=None):
    """Witness run plus proof creation; returns ``(cs, proof)``."""
    cs = synthesize(messages, witness_generation=True,
                    max_private_variables=_private_limit(config))
    proof = _backend_call("proof creation", create_proof, cs, pk, seed=seed)
    return cs, proof


def load_proving_key(out_dir, config=None):
    key_path, _ = artifact_paths(out_dir, config)
    return deserialize_proving_key(read_artifact(key_path))


def zkif_backend(messages, out_dir, config=None, seed=None):
    """Process a circuit: write the key and/or proof artifacts into ``out_dir``.

    Returns:
        dict with the ``key`` and ``proof`` paths written (None when skipped)
    """
    key_path, proof_path = artifact_paths(out_dir, config)
    circuit = messages.last_circuit()
    if circuit is None:
        raise ProtocolViolation("message stream has no circuit message")

    written = {"key": None, "proof": None}

    if circuit.r1cs_generation:
        cs, pk = generate_key(messages, seed=seed, config=config)
        write_artifact(key_path, serialize_proving_key(pk))
        logger.info("proving key for %d constraints at %s", cs.num_constraints, key_path)
        written["key"] = key_path

    if circuit.witness_generation:
        pk = load_proving_key(out_dir, config)
        cs, proof = prove(messages, pk, seed=seed, config=config)
        public_inputs = cs.input_assignment[1:]
        write_artifact(proof_path, serialize_proof(proof, public_inputs))
        logger.info("proof at %s", proof_path)
        written["proof"] = proof_path

    if not (circuit.r1cs_generation or circuit.witness_generation):
        logger.warning("circuit requests neither r1cs nor witness generation; nothing to do")
    return written


def verify_artifacts(out_dir, config=None):
    """Check the persisted proof against the persisted key."""
    _, proof_path = artifact_paths(out_dir, config)
    pk = load_proving_key(out_dir, config)
    proof, public_inputs = deserialize_proof(read_artifact(proof_path))
    ok = _backend_call("verification", verify_proof, pk.vk, proof, public_inputs)
    logger.info("proof at %s is %s", proof_path, "valid" if ok else "invalid")
    return ok
