# insightapi/services/_shared/base.py
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from insightapi.core import errors as api_errors
from insightapi.services._shared.errors import ConflictError, NotFoundError, ServiceError
from insightapi.services.auth.errors import AuthError, PrincipalExistsError


@dataclass(slots=True)
class ServiceContext:
    """
    Request-scoped data a service may want to log or act upon.

    :param actor_id: Principal behind the request, when already known.
    :param request_id: Correlation id of the HTTP request.
    """

    actor_id: int | None = None
    request_id: str | None = None


# Most specific first: PrincipalExistsError is also an AuthError
_TRANSLATIONS: tuple[tuple[type[ServiceError], Callable[[Any], api_errors.APIError]], ...] = (
    (PrincipalExistsError, lambda e: api_errors.Conflict(e.message, code=e.code)),
    (AuthError, lambda e: api_errors.Unauthorized(e.message, code=e.code)),
    (NotFoundError, lambda e: api_errors.NotFound(str(e))),
    (ConflictError, lambda e: api_errors.Conflict(str(e))),
    (ServiceError, lambda e: api_errors.APIError(str(e), status_code=400, code="bad_request")),
)


class BaseService:
    """
    Common plumbing for application services.

    Services orchestrate ports only. They log through ``log_event`` and let
    the delivery layer call ``translate_exceptions`` on what they raise.
    """

    logger = logging.getLogger("insightapi.services")

    def __init__(self, *, ctx: ServiceContext | None = None) -> None:
        self.ctx = ctx or ServiceContext()

    def log_event(self, event: str, *, level: int = logging.INFO, **fields: Any) -> None:
        """
        Emit a structured record whose message and ``event`` key are ``event``.

        :param fields: Extra JSON keys such as ``principal_id``. Never pass
            passwords or tokens.
        """
        self.logger.log(level, event, extra={"event": event, **fields})

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map a service error to the API error the transport should raise.

        Auth kinds keep their stable ``code``: 409 for an existing principal,
        401 for every other auth failure. Exceptions that are not
        :class:`ServiceError` are returned untouched, so an unexpected failure
        surfaces as a 500 and is never disguised as an auth error.
        """
        for kind, build in _TRANSLATIONS:
            if isinstance(exc, kind):
                return build(exc)
        return exc
