"""Service-level rule violations translated to HTTP errors by the routers."""


class ServiceError(Exception):
    """Base for business rule failures; ``message`` is safe to show clients."""

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class PointsError(ServiceError):
    pass


class AuctionError(ServiceError):
    pass


class TaskError(ServiceError):
    pass


class PromoCodeError(ServiceError):
    pass


class AccountError(ServiceError):
    pass


class ShieldEventError(ServiceError):
    pass
