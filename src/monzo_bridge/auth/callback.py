"""
Loopback redirect catcher for command-line logins.

Serves the redirect URI (default http://localhost:8080/auth/callback) just
long enough for one AuthorizationFlow to resolve, then shuts down.
"""

import logging
import threading
from concurrent.futures import TimeoutError as FutureTimeoutError
from http import HTTPStatus
from urllib.parse import parse_qs, urlsplit
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from .oauth import AuthorizationError, AuthorizationFlow, Token

logger = logging.getLogger(__name__)

SUCCESS_PAGE = (
    b"<h1>Login successful</h1>"
    b"<p>Approve the login in your Monzo app, then close this window.</p>"
)


class _QuietHandler(WSGIRequestHandler):
    def log_message(self, format, *args):
        logger.debug("callback server: " + format % args)


def _callback_app(flow: AuthorizationFlow, callback_path: str):
    def app(environ, start_response):
        if environ.get("PATH_INFO", "") != callback_path:
            start_response("404 Not Found", [("Content-Type", "text/plain; charset=utf-8")])
            return [b"Not found"]

        query = parse_qs(environ.get("QUERY_STRING", ""))
        state = query.get("state", [None])[0]
        code = query.get("code", [None])[0]

        try:
            flow.complete(state, code)
        except AuthorizationError as e:
            logger.warning(f"Callback rejected: {e}")
            status = f"{e.status_code} {HTTPStatus(e.status_code).phrase}"
            start_response(status, [("Content-Type", "text/plain; charset=utf-8")])
            return [str(e).encode("utf-8")]

        start_response("200 OK", [("Content-Type", "text/html; charset=utf-8")])
        return [SUCCESS_PAGE]

    return app


def _serve_until_done(server: WSGIServer, flow: AuthorizationFlow) -> None:
    while not flow.done:
        server.handle_request()


def run_local_callback(
    flow: AuthorizationFlow,
    host: str | None = None,
    port: int | None = None,
    timeout: float | None = None,
) -> Token:
    """
    Serve the flow's redirect URI until it resolves.

    Host, port and path default to those of flow.config.redirect_url.

    Args:
        flow: The pending authorization
        host: Interface to bind
        port: Port to bind
        timeout: Seconds to wait for the browser (None: forever)

    Returns:
        The exchanged token

    Raises:
        AuthorizationError: The callback failed or nothing arrived in time
    """
    redirect = urlsplit(flow.config.redirect_url)
    host = host or redirect.hostname or "localhost"
    port = port or redirect.port or 8080
    callback_path = redirect.path or "/"

    server = make_server(host, port, _callback_app(flow, callback_path), handler_class=_QuietHandler)
    # handle_request() returns periodically so the loop sees the flow resolve
    server.timeout = 0.5
    thread = threading.Thread(target=_serve_until_done, args=(server, flow), daemon=True)

    logger.info(f"Waiting for the authorization callback on http://{host}:{port}{callback_path}")
    thread.start()
    try:
        return flow.wait(timeout)
    except FutureTimeoutError:
        error = AuthorizationError(f"No authorization callback within {timeout} seconds")
        flow.fail(error)
        raise error from None
    finally:
        # Ctrl-C or any other interruption of wait() must still stop the server
        if not flow.done:
            flow.fail(AuthorizationError("Login cancelled"))
        thread.join()
        server.server_close()
