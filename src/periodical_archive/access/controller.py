"""Access controller.

Owns the single in-flight access check. Starting a new check always cancels
the previous one first, and an outcome is delivered only if its handle is
still the controller's current one at the moment of delivery, so a slow
response for a superseded document can never overwrite fresher state.

Example usage:
    client = AccessCheckClient(base_url="http://localhost:5000/")
    controller = AccessController(client)

    handle = controller.request_access("65a1...", on_outcome=print)
    ...
    controller.cancel()        # e.g. when the visitor dismisses the overlay
    controller.shutdown()
"""

import logging
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Optional, Callable

from .client import AccessCheckClient
from .data_types import AccessHandle, AccessOutcome, OutcomeKind
from ..exceptions import (
    AccessAuthenticationRequired,
    AccessCancelled,
    AccessSubscriptionRequired,
    AccessTransientError,
)
from ..utils.error_messages import format_access_error

logger = logging.getLogger(__name__)

# Default number of executor threads for access checks
DEFAULT_MAX_WORKERS = 4

OutcomeCallback = Callable[[AccessOutcome], None]
Dispatcher = Callable[[Callable[[], None]], None]


class AccessController:
    """Issues cancellable access checks and maps their results to outcomes."""

    def __init__(
        self,
        client: AccessCheckClient,
        executor: Optional[Executor] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        dispatch: Optional[Dispatcher] = None
    ):
        """Initialize access controller.

        Args:
            client: Access check client (network boundary)
            executor: Executor running the blocking checks; a thread pool
                owned by the controller is created when omitted
            max_workers: Thread count of the owned thread pool
            dispatch: Callable that runs a zero-argument function on the
                caller's event loop; outcomes are delivered on the worker
                thread when omitted
        """
        self.client = client
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix='access-check'
        )
        self._dispatch = dispatch
        self._lock = threading.Lock()
        self._current: Optional[AccessHandle] = None
        self._closed = False

    @property
    def current(self) -> Optional[AccessHandle]:
        """Handle of the in-flight check, or None when idle."""
        return self._current

    def _replace_current(self, handle: Optional[AccessHandle]) -> None:
        """Cancel the in-flight check, then make handle the current one."""
        with self._lock:
            previous, self._current = self._current, handle
        if previous is not None and previous.cancel():
            logger.debug(
                f"Superseded access request #{previous.request_id} for {previous.document_id}"
            )

    def request_access(
        self,
        document_id: str,
        auth_token: Optional[str] = None,
        on_outcome: Optional[OutcomeCallback] = None
    ) -> AccessHandle:
        """Start an access check for a document.

        Args:
            document_id: Document identifier
            auth_token: Optional bearer token; anonymous checks are allowed
            on_outcome: Called once with the outcome unless the check is
                cancelled or superseded first

        Returns:
            Handle of the new check

        Raises:
            RuntimeError: If the controller was shut down
        """
        if self._closed:
            raise RuntimeError("AccessController has been shut down")

        handle = AccessHandle(document_id)
        self._replace_current(handle)
        logger.debug(
            f"Access request #{handle.request_id} for {document_id} "
            f"({'authenticated' if auth_token else 'anonymous'})"
        )
        self._executor.submit(self._run, handle, auth_token, on_outcome)
        return handle

    def cancel(self) -> bool:
        """Cancel the in-flight check.

        Returns:
            True if a pending check was cancelled, False when idle or when
            the current check had already resolved
        """
        with self._lock:
            handle, self._current = self._current, None
        if handle is None:
            return False
        return handle.cancel()

    def shutdown(self, wait: bool = False) -> None:
        """Cancel the in-flight check and stop the owned executor."""
        self._closed = True
        self.cancel()
        if self._owns_executor:
            self._executor.shutdown(wait=wait, cancel_futures=True)

    def _run(
        self,
        handle: AccessHandle,
        auth_token: Optional[str],
        on_outcome: Optional[OutcomeCallback]
    ) -> None:
        """Worker body: run the check and hand the outcome to delivery."""
        outcome = self._check(handle, auth_token)
        if outcome is None:
            return

        if self._dispatch is None:
            self._deliver(handle, outcome, on_outcome)
        else:
            self._dispatch(lambda: self._deliver(handle, outcome, on_outcome))

    def _check(self, handle: AccessHandle, auth_token: Optional[str]) -> Optional[AccessOutcome]:
        """Map the network result to an outcome; None when cancelled."""
        document_id = handle.document_id
        try:
            document = self.client.check_access(document_id, auth_token=auth_token, token=handle.token)
        except AccessCancelled:
            logger.debug(f"Access request #{handle.request_id} for {document_id} was cancelled")
            return None
        except AccessAuthenticationRequired as e:
            logger.info(f"Access to {document_id} requires login")
            return AccessOutcome.authentication_required(document_id, str(e))
        except AccessSubscriptionRequired as e:
            logger.info(f"Free view limit reached for {document_id}")
            return AccessOutcome.subscription_required(document_id, str(e), preview=e.preview)
        except AccessTransientError as e:
            logger.warning(f"Access check for {document_id} failed: {e} (status={e.status_code})")
            return AccessOutcome.transient_error(document_id, str(e), status_code=e.status_code)
        except Exception as e:
            friendly = format_access_error(e, document_id=document_id)
            logger.error(f"Unexpected error during access check for {document_id}: {e}", exc_info=True)
            return AccessOutcome.transient_error(document_id, friendly.user_message)

        if handle.is_cancelled:
            logger.debug(f"Discarding late grant for cancelled request #{handle.request_id}")
            return None
        return AccessOutcome.granted(document)

    def _deliver(
        self,
        handle: AccessHandle,
        outcome: AccessOutcome,
        on_outcome: Optional[OutcomeCallback]
    ) -> None:
        """Resolve handle and notify, unless it was superseded meanwhile."""
        with self._lock:
            if self._current is not handle or not handle.resolve(outcome):
                logger.debug(
                    f"Discarding {outcome.kind.value} outcome of stale request "
                    f"#{handle.request_id} for {handle.document_id}"
                )
                return
            self._current = None

        if outcome.kind is OutcomeKind.GRANTED:
            logger.info(f"Access granted to {handle.document_id}")

        if on_outcome is None:
            return
        try:
            on_outcome(outcome)
        except Exception as e:
            logger.error(f"Outcome callback failed for {handle.document_id}: {e}", exc_info=True)
