"""
Domain exceptions
"""


class InvalidSubscriptionError(ValueError):
    """Subscription record violates the lifecycle engine's input contract"""


class TenantNotFoundError(LookupError):
    """Subscription references a tenant that does not exist"""
