# aad_montecarlo/errors.py
"""Exceptions raised by the value engine and the AAD layer."""


class AADMonteCarloError(Exception):
    pass


class PreconditionViolation(AADMonteCarloError, ValueError):
    """A caller broke a documented precondition (size mismatch, wrong tape, ...)."""


class OperatorArityError(PreconditionViolation):
    """An operator was recorded with the wrong number of operands."""


class TapeReleasedError(AADMonteCarloError, RuntimeError):
    """The tape was released and its nodes are gone."""
