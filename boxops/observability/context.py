"""
Request-scoped correlation IDs.

The current ID lives in a ContextVar so it follows a request through
threads and async tasks; log formatters read it from here.
"""

import contextvars
import uuid

_request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "boxops_request_id", default=None
)

REQUEST_ID_HEADER = "X-Request-ID"


def get_request_id() -> str | None:
    return _request_id_var.get()


def generate_request_id() -> str:
    return f"dash-{uuid.uuid4().hex[:16]}"


class RequestContext:
    """
    Bind a request ID for the duration of a block.

        with RequestContext() as ctx:
            service.load("today")   # every log line carries ctx.request_id
    """

    def __init__(self, request_id: str | None = None):
        self.request_id = request_id or generate_request_id()
        self._token: contextvars.Token | None = None

    def __enter__(self) -> "RequestContext":
        self._token = _request_id_var.set(self.request_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _request_id_var.reset(self._token)
            self._token = None
