"""
Wire terms -> linear combinations -> constraints
================================================

``terms_to_lc`` resolves each ``(variable_id, coefficient bytes)`` term
against a binding table and decodes its coefficient; ``enforce`` does
that for the three sides of a bilinear constraint and only then adds
the constraint, so a failed translation adds nothing.
"""

from zkif.r1cs import LinearCombination


def terms_to_lc(codec, bindings, terms):
    """Convert wire terms into a ``LinearCombination``.

    Args:
        codec: ``FieldCodec`` for coefficients
        bindings: ``VariableBindings`` of the current session
        terms: iterable of ``Term`` (``variable_id``, ``coefficient``)

    Raises:
        UnknownVariable: a term references an unbound id
        DecodeError: a coefficient is not a field element
    """
    lc = LinearCombination.zero()
    for term in terms:
        coeff = codec.decode(term.coefficient)
        var = bindings.resolve(term.variable_id)
        lc = lc + (coeff, var)
    return lc


def enforce(cs, codec, bindings, constraint, annotation=""):
    """Enforce one wire ``BilinearConstraint`` in ``cs``."""
    a = terms_to_lc(codec, bindings, constraint.a_terms())
    b = terms_to_lc(codec, bindings, constraint.b_terms())
    c = terms_to_lc(codec, bindings, constraint.c_terms())
    cs.enforce(annotation, a, b, c)
