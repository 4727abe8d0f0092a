"""
Exception hierarchy for the CIR CDS option pricer.

Collaborator failures (CDS valuation, curve evaluation) are not wrapped:
they propagate to the caller unchanged and abort the aggregation.
"""


class CirCdsOptionError(Exception):
    """Base class for errors raised by this package."""


class InvalidParameterError(CirCdsOptionError, ValueError):
    """A parameter or intermediate quantity is outside its admissible range."""


class NumericDomainError(CirCdsOptionError, ArithmeticError):
    """A numerical routine left its domain or failed to converge."""
