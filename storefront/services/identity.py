# storefront/services/identity.py
import threading
from typing import Callable, List, Optional

from storefront.domain.schemas import Identity
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

IdentityListener = Callable[[Optional[Identity]], None]


class SessionIdentity:
    """
    Holds the signed-in user of this client session and the access token that
    goes with it. Listeners are called after every change of user (sign in,
    sign out, switching accounts), not on token refresh for the same user.
    """

    def __init__(self):
        self._user: Identity | None = None
        self._access_token: str | None = None
        self._listeners: List[IdentityListener] = []
        self._lock = threading.Lock()

    def current_user(self) -> Identity | None:
        return self._user

    def access_token(self) -> str | None:
        return self._access_token

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def set_session(self, user: Identity | None, access_token: str | None = None) -> None:
        with self._lock:
            previous = self._user
            self._user = user
            self._access_token = access_token if user else None
            listeners = list(self._listeners)

        previous_id = previous.id if previous else None
        current_id = user.id if user else None
        if previous_id == current_id:
            return

        logger.info(f"Identity changed from {previous_id} to {current_id}")
        for listener in listeners:
            listener(user)

    def sign_out(self) -> None:
        self.set_session(None)
