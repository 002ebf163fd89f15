"""Per-resource authorization state.

Each backend owns an ``AccessGate``. The gate starts ``not_determined`` and
only moves to ``authorized`` or ``denied`` through ``request_access``, which
asks a consent callback once. ``restricted`` is terminal.
"""

import logging
import threading
from collections.abc import Callable
from enum import Enum

from suibhne.config import AccessPolicy
from suibhne.exceptions import PermissionDeniedError

logger = logging.getLogger(__name__)


class AuthorizationStatus(str, Enum):
    """Authorization state of one resource."""

    NOT_DETERMINED = "not_determined"
    AUTHORIZED = "authorized"
    DENIED = "denied"
    RESTRICTED = "restricted"


# Consent callback: given the resource name, return True to grant access
Consent = Callable[[str], bool]


def policy_consent(policy: AccessPolicy) -> Consent:
    """Build a consent callback that answers from a configured policy."""

    def consent(resource: str) -> bool:
        return policy is AccessPolicy.ALLOW

    return consent


class AccessGate:
    """Authorization state machine for one resource."""

    def __init__(
        self,
        resource: str,
        consent: Consent,
        restricted: bool = False,
    ) -> None:
        """Initialize the gate.

        Args:
            resource: Resource name, e.g. "contacts".
            consent: Callback asked once when access is first requested.
            restricted: Start (and stay) in the restricted state.
        """
        self.resource = resource
        self._consent = consent
        self._lock = threading.Lock()
        self._status = (
            AuthorizationStatus.RESTRICTED if restricted else AuthorizationStatus.NOT_DETERMINED
        )

    @classmethod
    def from_policy(cls, resource: str, policy: AccessPolicy) -> "AccessGate":
        """Create a gate whose consent follows a configured policy."""
        return cls(
            resource,
            policy_consent(policy),
            restricted=policy is AccessPolicy.RESTRICTED,
        )

    @property
    def status(self) -> AuthorizationStatus:
        """Current authorization status."""
        return self._status

    @property
    def is_authorized(self) -> bool:
        return self._status is AuthorizationStatus.AUTHORIZED

    def request_access(self) -> AuthorizationStatus:
        """Resolve a not-determined status by asking for consent.

        A no-op once the status is resolved.

        Returns:
            The status after the request.
        """
        with self._lock:
            if self._status is not AuthorizationStatus.NOT_DETERMINED:
                return self._status

            logger.info("Requesting %s access", self.resource)
            try:
                granted = self._consent(self.resource)
            except Exception:
                logger.exception("Consent check for %s failed", self.resource)
                granted = False

            self._status = (
                AuthorizationStatus.AUTHORIZED if granted else AuthorizationStatus.DENIED
            )
            logger.info("%s access %s", self.resource.capitalize(), self._status.value)
            return self._status

    def ensure_authorized(self) -> None:
        """Request access if needed and fail unless authorized.

        Raises:
            PermissionDeniedError: If access is denied or restricted.
        """
        status = self.request_access()
        if status is AuthorizationStatus.AUTHORIZED:
            return

        logger.warning("%s access %s", self.resource.capitalize(), status.value)
        raise PermissionDeniedError(
            self.resource,
            restricted=status is AuthorizationStatus.RESTRICTED,
        )
