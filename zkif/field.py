"""
Prime field, curve helpers and the field codec
==============================================

**FR**:
  The bn128 (BN254) scalar field. Every constraint coefficient and
  witness value lives here.

**FieldCodec**:
  Converts between the little-endian byte buffers of the wire format and
  field elements. The codec is parametric over any ``py_ecc`` prime
  field class; its canonical width is the smallest multiple of a 64-bit
  word that holds the modulus (32 bytes for BN254).

Example:
    >>> codec = FieldCodec(FR)
    >>> codec.decode(b"\\x05")
    5
    >>> codec.encode(FR(5))[:2]
    b'\\x05\\x00'
"""

from py_ecc.fields import bn128_FQ as FQ
from py_ecc import bn128

from zkif.errors import DecodeError, ProtocolViolation


# ─────────────────────────────────────────────────────────────────────
# Scalar field
# ─────────────────────────────────────────────────────────────────────

class FR(FQ):
    field_modulus = bn128.curve_order


CURVE_ORDER = bn128.curve_order

WORD_BYTES = 8


# ─────────────────────────────────────────────────────────────────────
# Curve constants and operations
# ─────────────────────────────────────────────────────────────────────

G1 = bn128.G1
G2 = bn128.G2


def ec_mul(point, scalar):
    """Scalar multiplication ``scalar * point``; scalar may be an int or FR."""
    if isinstance(scalar, FQ):
        scalar = int(scalar)
    return bn128.multiply(point, scalar % CURVE_ORDER)


def ec_add(p1, p2):
    return bn128.add(p1, p2)


def ec_neg(point):
    return bn128.neg(point)


def ec_pairing(g2_point, g1_point):
    """Optimal ate pairing. Note the py_ecc argument order is (G2, G1)."""
    return bn128.pairing(g2_point, g1_point)


# ─────────────────────────────────────────────────────────────────────
# Field codec
# ─────────────────────────────────────────────────────────────────────

class FieldCodec:
    """Little-endian byte codec for one prime field.

    Attributes:
        field: the ``py_ecc`` field class elements are built with
        modulus: the field modulus
        byte_width: canonical encoded length in bytes
    """

    def __init__(self, field=FR):
        self.field = field
        self.modulus = field.field_modulus
        words = (self.modulus.bit_length() + 63) // 64
        self.byte_width = WORD_BYTES * words

    def zero(self):
        return self.field(0)

    def decode(self, buf):
        """Decode a little-endian buffer into a field element.

        An empty buffer is zero. Longer buffers are truncated and shorter
        ones zero-padded to the canonical width.

        Raises:
            DecodeError: the integer is not below the modulus
        """
        if len(buf) == 0:
            return self.zero()
        buf = bytes(buf[:self.byte_width]).ljust(self.byte_width, b"\x00")
        value = int.from_bytes(buf, "little")
        if value >= self.modulus:
            raise DecodeError(
                f"value {value:#x} is not below the field modulus {self.modulus:#x}"
            )
        return self.field(value)

    def decode_optional(self, buf):
        """Like ``decode`` but an absent value (None) stays absent."""
        if buf is None:
            return None
        return self.decode(buf)

    def encode(self, element):
        return int(element).to_bytes(self.byte_width, "little")

    def field_maximum(self):
        """Encoding of ``modulus - 1``, the wire-level field hint."""
        return (self.modulus - 1).to_bytes(self.byte_width, "little")

    def check_field_maximum(self, hint):
        """Reject a message whose field hint names a different field."""
        if hint is None or len(hint) == 0:
            return
        declared = int.from_bytes(bytes(hint), "little")
        if declared != self.modulus - 1:
            raise ProtocolViolation(
                f"message targets a field with maximum {declared:#x}, "
                f"expected {self.modulus - 1:#x}"
            )

    def __repr__(self):
        return f"FieldCodec(modulus={self.modulus:#x}, byte_width={self.byte_width})"
