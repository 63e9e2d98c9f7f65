class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class NotFoundError(AppError):
    pass


class ConflictError(AppError):
    pass


class InsufficientStockError(AppError):
    pass


class InvalidDateRangeError(AppError):
    pass
