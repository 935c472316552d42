"""Wire id -> constraint-system variable table for one synthesis session."""

from zkif.errors import DuplicateBinding, UnknownVariable
from zkif.r1cs import ONE


class VariableBindings:
    """Maps wire-level variable ids to local ``Variable`` handles.

    Id 0 is reserved for the constant one and is bound on construction.
    Every id is bound at most once.
    """

    def __init__(self, one=ONE):
        self._vars = {0: one}

    def bind(self, variable_id, var):
        if variable_id in self._vars:
            raise DuplicateBinding(variable_id)
        self._vars[variable_id] = var

    def resolve(self, variable_id):
        try:
            return self._vars[variable_id]
        except KeyError:
            raise UnknownVariable(variable_id) from None

    def copy(self):
        other = VariableBindings.__new__(VariableBindings)
        other._vars = dict(self._vars)
        return other

    def ids(self):
        return sorted(self._vars)

    def __contains__(self, variable_id):
        return variable_id in self._vars

    def __len__(self):
        return len(self._vars)

    def __repr__(self):
        return f"VariableBindings({len(self._vars)} ids)"
