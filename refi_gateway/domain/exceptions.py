"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class RateFetchError(DomainException):
    """Market rate source is unavailable or returned unusable data"""

    pass


class RateAnomalyError(DomainException):
    """Freshly fetched rates moved further than a plausible weekly change"""

    pass


class AlertNotFoundError(DomainException):
    """No rate alert matches the given token or email"""

    pass


class InvalidAlertError(DomainException):
    """Rate alert request has a malformed email or trigger rate"""

    pass
