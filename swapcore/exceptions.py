"""
swapcore Exceptions

Custom exception classes for the exchange settlement core.
"""


class SwapCoreException(Exception):
    """Base exception for swapcore."""
    pass


class ConfigurationError(SwapCoreException):
    """Configuration error."""
    pass


class ExchangeError(SwapCoreException):
    """Base class for every error that aborts an exchange call."""
    pass


class PoolNotFound(ExchangeError):
    """No initialized pool exists for the requested token."""
    pass


class PoolExists(ExchangeError):
    """An initialized pool already exists for the token."""
    pass


class ZeroAmount(ExchangeError):
    """A required amount was zero."""
    pass


class InsufficientReserve(ExchangeError):
    """A reserve delta would drive a pool reserve negative."""
    pass


class InsufficientShares(ExchangeError):
    """Holder does not own enough pool shares."""
    pass


class InsufficientLiquidity(ExchangeError):
    """The output reserve cannot cover a non-zero output."""
    pass


class RatioMismatch(ExchangeError):
    """A deposit cannot be matched to the pool's reserve ratio."""
    pass


class SlippageExceeded(ExchangeError):
    """Computed amount is below the caller-supplied minimum."""
    pass


class ExchangeArithmeticError(ExchangeError, ArithmeticError):
    """Overflow, division by zero, or precision loss in fixed-point math."""
    pass


class TransferFailed(ExchangeError):
    """An external asset transfer was rejected."""
    pass


class Unauthorized(ExchangeError):
    """Caller is not allowed to act for the given owner."""
    pass


class InvalidRoute(ExchangeError):
    """Swap request does not describe a valid route."""
    pass
