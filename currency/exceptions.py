class ConversionError(Exception):
    """Base class for conversion failures."""

    code = "conversion_error"
    status_code = 422


class InvalidAmount(ConversionError, ValueError):
    code = "invalid_amount"
    status_code = 400


class UnknownDirection(ConversionError, ValueError):
    code = "unknown_direction"
    status_code = 400


class RateUnavailable(ConversionError):
    """A rate is missing, zero, negative or non-finite."""

    code = "rate_unavailable"

    def __init__(self, rate_code: str, reason: str = "missing"):
        self.rate_code = rate_code
        self.reason = reason
        super().__init__(f"Exchange rate {reason} for {rate_code}")


class DegenerateFee(ConversionError):
    """Fee fraction of 1 or more makes the net-to-gross inverse undefined."""

    code = "degenerate_fee"


class ComputationInvalid(ConversionError):
    code = "computation_invalid"
