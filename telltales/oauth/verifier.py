"""
OAuth verifier acquisition for the Telldus Live handshake.

After the operator approves access in the browser, Telldus Live hands out
an oauth_verifier. telltales obtains it through two strategies that race
for the single outcome:

- CallbackListener: a short-lived HTTP listener on 127.0.0.1 that receives
  the browser redirect and reads the verifier from its query string
- PromptStrategy: a terminal prompt accepting the bare verification code
  or the full redirect URL pasted by the operator

Whichever produces a verifier first wins; the other is cancelled. The
listener is shut down and its socket closed, the blocked prompt read is
abandoned in its daemon thread.
"""

import logging
import queue
import threading
import time
import webbrowser
from dataclasses import dataclass
from typing import Callable, List, Optional
from urllib.parse import parse_qs, urlparse

import click
from flask import Flask, Response, request
from werkzeug.serving import make_server

from .config import TelltalesConfig
from .exceptions import (
    VerifierAbortedError,
    VerifierNotFoundError,
    VerifierTimeoutError,
)

logger = logging.getLogger(__name__)

OOB_CALLBACK = "oob"

Sink = Callable[["VerifierOutcome"], None]

_PAGE = """<html>
<head><title>{title}</title></head>
<body style="font-family: sans-serif; max-width: 600px; margin: 50px auto; padding: 20px;">
    <h1>{title}</h1>
    <p>{message}</p>
    <p style="margin-top: 30px; color: #666;">You can close this window and return to the terminal.</p>
</body>
</html>"""


@dataclass
class VerifierOutcome:
    """
    Result reported by one verifier strategy.

    Attributes:
        source: Strategy that produced the outcome ("listener" or "prompt")
        verifier: The oauth_verifier, if one was obtained
        aborted: True if the operator explicitly aborted or denied access
        error: Human-readable description of an abort
    """

    source: str
    verifier: Optional[str] = None
    aborted: bool = False
    error: Optional[str] = None


def extract_verifier(text: str) -> str:
    """
    Extract the verifier from operator input.

    Accepts either the bare verification code or the full redirect URL
    (whose oauth_verifier query parameter carries the code).

    Args:
        text: Line typed or pasted by the operator

    Returns:
        Verifier string

    Raises:
        VerifierNotFoundError: If the input is empty or a URL without
            an oauth_verifier parameter
    """
    trimmed = (text or "").strip()
    if not trimmed:
        raise VerifierNotFoundError("A verification code or redirect URL is required")

    parsed = urlparse(trimmed)
    if parsed.scheme and parsed.netloc:
        values = parse_qs(parsed.query).get("oauth_verifier", [])
        verifier = values[0].strip() if values else ""
        if not verifier:
            raise VerifierNotFoundError("Redirect URL is missing the oauth_verifier parameter")
        return verifier

    return trimmed


class CallbackListener:
    """
    Local HTTP listener receiving the OAuth redirect.

    Binds 127.0.0.1 on an ephemeral port (unless a port is configured) and
    serves a single path. The first request to that path carrying an
    oauth_verifier settles the outcome; the browser gets a confirmation
    page either way.
    """

    SOURCE = "listener"

    def __init__(self, config: TelltalesConfig):
        """
        Initialize callback listener.

        Args:
            config: Configuration with callback host, port and path
        """
        self.config = config
        self.app = Flask(__name__)
        self.app.logger.setLevel(logging.WARNING)  # Suppress Flask logs
        logging.getLogger("werkzeug").setLevel(logging.WARNING)
        self.result: Optional[VerifierOutcome] = None
        self._server = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._done = threading.Event()

        self.app.add_url_rule(
            self.config.callback_path,
            "oauth_callback",
            self._handle_callback,
            methods=["GET"],
        )

    @property
    def port(self) -> Optional[int]:
        """Bound port, or None when not started."""
        return self._server.server_port if self._server else None

    @property
    def callback_url(self) -> str:
        """URL the browser is redirected to after authorization."""
        if self._server is None:
            raise RuntimeError("Callback listener is not running")
        return f"http://{self.config.callback_host}:{self.port}{self.config.callback_path}"

    def _settle(self, outcome: VerifierOutcome) -> bool:
        with self._lock:
            if self.result is not None:
                return False
            self.result = outcome
        self._done.set()
        return True

    def _handle_callback(self) -> Response:
        """Handle the OAuth redirect from Telldus Live."""
        logger.info("Received OAuth callback")

        problem = request.args.get("oauth_problem") or request.args.get("denied")
        if problem:
            logger.warning(f"Authorization refused in browser: {problem}")
            self._settle(
                VerifierOutcome(
                    self.SOURCE,
                    aborted=True,
                    error=f"Authorization was refused in the browser ({problem})",
                )
            )
            return Response(
                _PAGE.format(
                    title="Authorization Failed",
                    message="Access to your Telldus Live account was not granted.",
                ),
                status=400,
                content_type="text/html",
            )

        verifier = (request.args.get("oauth_verifier") or "").strip()
        if not verifier:
            logger.warning("OAuth callback without oauth_verifier")
            return Response(
                _PAGE.format(
                    title="Authorization Failed",
                    message="No verification code was received from Telldus Live.",
                ),
                status=400,
                content_type="text/html",
            )

        if self._settle(VerifierOutcome(self.SOURCE, verifier=verifier)):
            logger.info("Verifier received via callback")

        return Response(
            _PAGE.format(
                title="Authorization Successful",
                message="telltales has been authorized to access your Telldus Live account.",
            ),
            status=200,
            content_type="text/html",
        )

    def start(self) -> str:
        """
        Bind the listener and serve in a background thread.

        Returns:
            Callback URL

        Raises:
            OSError: If the address cannot be bound
        """
        self._server = make_server(
            self.config.callback_host, self.config.callback_port, self.app
        )
        self._thread = threading.Thread(
            target=self._server.serve_forever, name="telltales-callback", daemon=True
        )
        self._thread.start()
        logger.info(f"OAuth callback listener started on {self.callback_url}")
        return self.callback_url

    def wait(self, timeout: float) -> Optional[VerifierOutcome]:
        """
        Wait for the callback.

        Returns:
            Outcome, or None on timeout or if the listener was stopped first
        """
        self._done.wait(timeout=timeout)
        return self.result

    def run(self, sink: Sink, timeout: float) -> None:
        """Race entry point: wait for the callback and report the outcome."""
        outcome = self.wait(timeout)
        if outcome is None:
            if self._server is not None:
                logger.info(f"No OAuth callback received within {timeout:g}s")
                self.stop()
            outcome = VerifierOutcome(self.SOURCE)
        sink(outcome)

    def stop(self) -> None:
        """Shut the listener down and close its socket. Safe to call repeatedly."""
        with self._lock:
            server, self._server = self._server, None
        self._done.set()
        if server is None:
            return
        server.shutdown()
        server.server_close()
        logger.info("OAuth callback listener stopped")

    cancel = stop


class PromptStrategy:
    """
    Terminal prompt for the verification code or redirect URL.

    The read blocks its (daemon) thread. Cancelling does not interrupt the
    read; it marks the strategy abandoned so a late answer is discarded.
    Input ending without a verifier (EOF on a closed or non-interactive
    stdin) reports an empty outcome, leaving the race to the listener.
    """

    SOURCE = "prompt"

    def __init__(
        self,
        prompt: Callable[..., str] = click.prompt,
        echo: Callable[..., None] = click.echo,
        text: str = "Verification code or redirect URL",
    ):
        self.prompt = prompt
        self.echo = echo
        self.text = text
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def run(self, sink: Sink, timeout: float) -> None:
        """Race entry point: read operator input until a verifier is found."""
        while not self.cancelled:
            try:
                raw = self.prompt(self.text)
            except (click.Abort, EOFError, KeyboardInterrupt):
                # Closed or non-interactive stdin; the listener may still win
                if not self.cancelled:
                    logger.info("Verifier prompt closed without input")
                    sink(VerifierOutcome(self.SOURCE))
                return
            except (OSError, ValueError) as e:
                # Terminal closed underneath an abandoned read
                if self.cancelled:
                    logger.debug(f"Abandoned prompt ended with: {e}")
                    return
                logger.warning(f"Verifier prompt failed: {e}")
                sink(VerifierOutcome(self.SOURCE))
                return

            if self.cancelled:
                return

            try:
                verifier = extract_verifier(raw)
            except VerifierNotFoundError as e:
                self.echo(str(e))
                continue

            sink(VerifierOutcome(self.SOURCE, verifier=verifier))
            return

    def cancel(self) -> None:
        self._cancelled.set()


class VerifierAcquisition:
    """
    Obtains the oauth_verifier for one handshake attempt.

    Usage:
        with VerifierAcquisition(config) as acquisition:
            callback = acquisition.open()
            ...request temporary credentials with oauth_callback=callback...
            verifier = acquisition.acquire(authorization_url)
    """

    def __init__(
        self,
        config: TelltalesConfig,
        listener: Optional[CallbackListener] = None,
        prompt: Optional[PromptStrategy] = None,
        echo: Callable[..., None] = click.echo,
    ):
        """
        Initialize verifier acquisition.

        Args:
            config: Configuration (callback settings, verifier timeout)
            listener: Callback listener (creates one if not provided)
            prompt: Prompt strategy (creates one if not provided)
            echo: Output function for operator instructions
        """
        self.config = config
        self.listener = listener or CallbackListener(config)
        self.prompt = prompt or PromptStrategy()
        self.echo = echo
        self.callback_url = OOB_CALLBACK
        self._listening = False

    def open(self) -> str:
        """
        Start the callback listener.

        If the listener cannot bind, acquisition continues with the prompt
        alone and the out-of-band callback.

        Returns:
            Callback URL to register with the temporary credentials
        """
        try:
            self.callback_url = self.listener.start()
            self._listening = True
        except OSError as e:
            logger.warning(f"Could not start OAuth callback listener: {e}")
            self.callback_url = OOB_CALLBACK
            self._listening = False
        return self.callback_url

    def _announce(self, authorization_url: str) -> None:
        self.echo(
            "Open the following URL in your browser, authorize access, "
            "and press the “Confirm” button:"
        )
        self.echo(f"\n  {authorization_url}\n")
        if self._listening:
            self.echo(f"Waiting for the browser redirect to {self.callback_url} ...")
            self.echo(
                "If the redirect does not reach this machine, paste the verification "
                "code or the full redirect URL below."
            )
        else:
            self.echo(
                "Paste either the verification code Telldus shows or the full "
                "redirect URL after you pressed “Confirm”."
            )

        if self.config.open_browser:
            try:
                webbrowser.open(authorization_url)
            except webbrowser.Error as e:
                logger.warning(f"Could not open browser automatically: {e}")

    def acquire(self, authorization_url: str) -> str:
        """
        Race the listener and the prompt for the verifier.

        Args:
            authorization_url: URL the operator opens to approve access

        Returns:
            The verifier from whichever strategy produced one first

        Raises:
            VerifierAbortedError: If the operator aborted or denied access
            VerifierTimeoutError: If no verifier arrived before the deadline
        """
        strategies: List = [self.prompt]
        if self._listening:
            strategies.insert(0, self.listener)

        self._announce(authorization_url)

        timeout = self.config.verifier_timeout
        outcomes: "queue.Queue[VerifierOutcome]" = queue.Queue()
        for strategy in strategies:
            threading.Thread(
                target=strategy.run,
                args=(outcomes.put, timeout),
                name=f"telltales-verifier-{strategy.SOURCE}",
                daemon=True,
            ).start()

        deadline = time.monotonic() + timeout
        pending = len(strategies)
        try:
            while pending:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                try:
                    outcome = outcomes.get(timeout=remaining)
                except queue.Empty:
                    break
                pending -= 1

                if outcome.verifier:
                    logger.info(f"Verifier obtained via {outcome.source}")
                    return outcome.verifier
                if outcome.aborted:
                    raise VerifierAbortedError(
                        outcome.error or "Authorization aborted by operator"
                    )

            raise VerifierTimeoutError(
                f"No verification code received within {timeout:g} seconds"
            )
        except KeyboardInterrupt as e:
            raise VerifierAbortedError("Authorization aborted by operator") from e
        finally:
            for strategy in strategies:
                strategy.cancel()

    def close(self) -> None:
        """Stop the listener if it is still running."""
        self.listener.stop()
        self._listening = False

    def __enter__(self) -> "VerifierAcquisition":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
