"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class NotFoundError(DomainException):
    """Referenced customer, rule or transaction does not exist"""

    pass


class BadRequestError(DomainException):
    """Input could not be parsed or violates a rule configuration constraint"""

    pass


class MatchedRuleSerializationError(DomainException):
    """Matched rule list could not be encoded for storage"""

    pass
