"""
Groth16 over bn128
==================

Proving backend for constraint systems built by ``zkif``:

  - ``setup.generate_parameters(cs)``  -> ``ProvingKey`` (holds the ``VerifyingKey``)
  - ``proving.create_proof(cs, pk)``   -> ``Proof``
  - ``verifying.verify_proof(vk, proof, public_inputs)`` -> bool

The wire order is ``[1, public inputs..., aux...]``; the R1CS is turned
into a QAP by Lagrange interpolation over the points ``1..n``.
"""

from zkif.groth16.setup import ProvingKey, VerifyingKey, generate_parameters
from zkif.groth16.proving import Proof, create_proof
from zkif.groth16.verifying import verify_proof
