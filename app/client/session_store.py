# app/client/session_store.py
"""
Client-side authentication state.

``SessionStore`` is the only owner of the persisted ``{user, token}`` record.
Other code reads it through ``get_state()`` and reacts to changes through
``subscribe()``; it never writes the record directly.

Lifecycle::

    UNINITIALIZED --initialize()--> INITIALIZING --> READY_AUTHENTICATED
                                                 \\-> READY_ANONYMOUS

``login()`` and ``logout()`` move between the two READY phases afterwards.
"""
import enum
import json
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Mapping, Optional

import httpx
from pydantic import ValidationError

from app.client.storage import SessionStorage
from app.schemas.user import UsuarioDTO

logger = logging.getLogger(__name__)

STORAGE_KEY = "auth_state_v1"

Listener = Callable[[], None]


class SessionPhase(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY_AUTHENTICATED = "ready-authenticated"
    READY_ANONYMOUS = "ready-anonymous"


@dataclass(frozen=True)
class SessionState:
    user: Optional[UsuarioDTO] = None
    token: Optional[str] = None
    initialized: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None and self.user is not None


class LoginFailed(Exception):
    """The API rejected a login; ``payload`` is the decoded error body."""

    def __init__(self, status_code: int, payload: Dict[str, Any]):
        self.status_code = status_code
        self.payload = payload
        self.message = payload.get("message", "Error al iniciar sesión")
        super().__init__(self.message)

    @property
    def errors(self) -> Dict[str, List[str]]:
        return self.payload.get("errors") or {}


def _auth_header(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _decode_body(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {"message": response.text}
    return body if isinstance(body, dict) else {"message": str(body)}


class SessionStore:
    def __init__(self, client: httpx.AsyncClient, storage: SessionStorage, storage_key: str = STORAGE_KEY):
        self.client = client
        self.storage = storage
        self.storage_key = storage_key
        self._state = SessionState()
        self._initializing = False
        self._listeners: List[Listener] = []

    # --- observation -------------------------------------------------------

    def get_state(self) -> SessionState:
        return self._state

    @property
    def phase(self) -> SessionPhase:
        if not self._state.initialized:
            return SessionPhase.INITIALIZING if self._initializing else SessionPhase.UNINITIALIZED
        if self._state.is_authenticated:
            return SessionPhase.READY_AUTHENTICATED
        return SessionPhase.READY_ANONYMOUS

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        # Snapshot so a listener may unsubscribe itself while being called
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Session listener %r failed", listener)

    # --- persistence -------------------------------------------------------

    def _persist(self) -> None:
        user = self._state.user.model_dump(mode="json") if self._state.user else None
        self.storage.set_item(self.storage_key, json.dumps({"user": user, "token": self._state.token}))

    def _read_persisted_token(self) -> Optional[str]:
        raw = self.storage.get_item(self.storage_key)
        if not raw or raw == "undefined":
            return None
        try:
            parsed = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable persisted session")
            return None
        if not isinstance(parsed, dict):
            return None
        token = parsed.get("token")
        return token if isinstance(token, str) and token else None

    # --- mutation ----------------------------------------------------------

    def _set_state(self, **changes) -> None:
        state = replace(self._state, **changes)
        if state.token is None and state.user is not None:
            state = replace(state, user=None)
        self._state = state
        self._persist()
        self._notify()

    def _clear(self) -> None:
        self._state = SessionState(user=None, token=None, initialized=True)
        self._persist()
        self._notify()

    # --- operations --------------------------------------------------------

    async def initialize(self) -> SessionState:
        """Restore the previous session, if its token is still accepted.

        Must run exactly once, before anything depends on the session.
        """
        if self.phase is not SessionPhase.UNINITIALIZED:
            raise RuntimeError("SessionStore.initialize() may only be called once")
        self._initializing = True
        try:
            token = self._read_persisted_token()
            if token is None:
                self._state = SessionState(initialized=True)
                self._notify()
                return self._state

            try:
                response = await self.client.get("/user", headers=_auth_header(token))
                response.raise_for_status()
                user = UsuarioDTO.model_validate(response.json())
            except (httpx.HTTPError, ValidationError, ValueError) as exc:
                logger.info("Stored session rejected (%s), starting anonymous", exc.__class__.__name__)
                self.storage.remove_item(self.storage_key)
                self._state = SessionState(initialized=True)
                self._notify()
                return self._state

            # Fresh profile from the server replaces the cached one
            self._set_state(user=user, token=token, initialized=True)
            return self._state
        finally:
            self._initializing = False

    async def login(self, credentials: Mapping[str, Any]) -> Dict[str, Any]:
        response = await self.client.post("/login", json=dict(credentials))
        if response.is_error:
            raise LoginFailed(response.status_code, _decode_body(response))

        data = response.json()
        user = UsuarioDTO.model_validate(data["usuario"])
        self._set_state(user=user, token=data["access_token"], initialized=True)
        return data

    async def register(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        response = await self.client.post("/register", json=dict(data))
        response.raise_for_status()
        return response.json()

    async def logout(self) -> None:
        token = self._state.token
        try:
            if token:
                response = await self.client.post("/logout", headers=_auth_header(token))
                if response.is_error:
                    logger.warning("Remote logout answered %s; clearing local session anyway", response.status_code)
        except Exception as exc:
            logger.warning("Remote logout failed (%r); clearing local session anyway", exc)
        finally:
            self._clear()

    # --- authenticated calls ----------------------------------------------

    async def authorized_get(self, path: str) -> Optional[httpx.Response]:
        """GET ``path`` with the current bearer token; None while anonymous."""
        token = self._state.token
        if not token:
            return None
        return await self.client.get(path, headers=_auth_header(token))
