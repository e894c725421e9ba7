# app/domain/errors.py
"""
Wyjątki domenowe. Routery mapują je na kody HTTP:
ValidationError/ConflictError -> 400, NotFoundError -> 404,
PermissionError (wbudowany) -> 403, GatewayError -> 500.
"""


class ValidationError(ValueError):
    pass


class NotFoundError(ValueError):
    pass


class ConflictError(ValueError):
    pass


class GatewayError(RuntimeError):
    pass
