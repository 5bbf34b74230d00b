"""WSGI middleware that batches each request's mutations into one commit."""

import logging
from typing import Any, Callable, Dict, Iterable, Iterator, Optional

from timemachine.core.machine import TimeMachine

logger = logging.getLogger(__name__)

MessageFactory = Callable[[Dict[str, Any]], str]


def request_message(environ: Dict[str, Any]) -> str:
    """Describe a request as "<METHOD> <PATH>"."""
    method = environ.get("REQUEST_METHOD", "GET")
    path = environ.get("SCRIPT_NAME", "") + environ.get("PATH_INFO", "")
    return f"{method} {path or '/'}"


class ChangeScopeMiddleware:
    """Start a change scope per request and flush it once the response is done.

    Mutations made while the wrapped application runs, including while it
    produces the response body, end up in a single commit. The commit is
    made when the server closes the response.
    """

    def __init__(
        self,
        app: Callable,
        machine: TimeMachine,
        message_factory: Optional[MessageFactory] = None,
    ):
        self.app = app
        self.machine = machine
        self.message_factory = message_factory or request_message

    def __call__(self, environ: Dict[str, Any], start_response: Callable) -> Iterable[bytes]:
        self.machine.start_scope()
        try:
            result = self.app(environ, start_response)
        except Exception:
            self.machine.end_scope()
            raise
        return ScopedResponse(result, self.machine, self.message_factory(environ))


class ScopedResponse:
    """Response iterable that closes the request's change scope.

    The server must call ``close()`` whether or not it iterated. The change
    set is flushed only if the body was sent in full; the wrapped body is
    closed and the scope ended in every case.
    """

    def __init__(self, result: Iterable[bytes], machine: TimeMachine, message: str):
        self.result = result
        self.machine = machine
        self.message = message
        self.exhausted = False

    def __iter__(self) -> Iterator[bytes]:
        yield from self.result
        self.exhausted = True

    def close(self) -> None:
        try:
            if hasattr(self.result, "close"):
                self.result.close()
            if self.exhausted:
                sha = self.machine.flush(self.message)
                if sha:
                    logger.info("Committed %s for %s", sha[:8], self.message)
            else:
                logger.debug("Response for %s closed early, nothing flushed", self.message)
        finally:
            self.machine.end_scope()
