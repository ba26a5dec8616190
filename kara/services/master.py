"""Master arbitration: which device may control playback."""

import threading
import uuid
from kara.core.logging import log_master_operation
from kara.models.master import AuthorizeResult, ClientInfo, MasterResult, MasterState, MasterStatus
from kara.models.song import now_ms


def mint_token() -> str:
    return f"master-{uuid.uuid4()}"


class MasterManager:
    """Owns the master claim and the connected-client registry.

    Two independent axes: claimed/unclaimed and locked/unlocked. While
    unlocked anybody may act as master; once locked only the holder's token
    is accepted.
    """

    def __init__(self):
        self._master = MasterState()
        self._clients: dict[str, ClientInfo] = {}
        self._lock = threading.RLock()

    def get_state(self, current_token: str | None = None) -> MasterStatus:
        """Snapshot for the caller holding ``current_token``.

        The holder token is only revealed to the holder itself.
        """
        with self._lock:
            you_are_master = bool(current_token) and current_token == self._master.token
            return MasterStatus(
                master_token=self._master.token if you_are_master else None,
                master_label=self._master.label,
                locked=self._master.locked,
                last_seen=self._master.last_seen,
                connections=[client.model_copy() for client in self._clients.values()],
                you_are_master=you_are_master,
            )

    def authorize(self, token: str | None) -> AuthorizeResult:
        """Decide whether the caller may perform a master-only action.

        An unclaimed master is adopted by the caller. An unlocked master lets
        anyone through. A locked master requires the exact token.
        """
        with self._lock:
            if not self._master.token:
                new_token = token or mint_token()
                self._master.token = new_token
                self._master.last_seen = now_ms()
                log_master_operation("authorize", result="adopted", locked=self._master.locked)
                return AuthorizeResult(allowed=True, new_token=new_token, locked=self._master.locked)

            if not self._master.locked:
                self._master.last_seen = now_ms()
                return AuthorizeResult(allowed=True, locked=False, master_token=self._master.token)

            if token != self._master.token:
                log_master_operation("authorize", result="refused", locked=True)
                return AuthorizeResult(allowed=False, locked=True)

            self._master.last_seen = now_ms()
            return AuthorizeResult(allowed=True, locked=True)

    def claim(self, token: str | None, label: str | None = None, lock: bool = False) -> MasterResult:
        """Become master, minting a token when the caller has none.

        Refused with ``locked=True`` while someone else holds a locked claim.
        """
        with self._lock:
            if self._master.locked and token != self._master.token:
                log_master_operation("claim", result="refused", label=label)
                return MasterResult(success=False, locked=True)

            new_token = token or mint_token()
            self._master = MasterState(token=new_token, label=label or None, locked=bool(lock), last_seen=now_ms())
            log_master_operation("claim", result="claimed", label=label, locked=self._master.locked)
            return MasterResult(success=True, token=new_token, locked=self._master.locked)

    def release(self, token: str | None) -> MasterResult:
        """Give up the claim.

        A mismatching token is refused. Omitting the token is accepted only
        while the master is unlocked.
        """
        with self._lock:
            if token and token != self._master.token:
                log_master_operation("release", result="refused")
                return MasterResult(success=False)
            if not token and self._master.locked:
                log_master_operation("release", result="refused", locked=True)
                return MasterResult(success=False, locked=True)

            self._master = MasterState()
            log_master_operation("release", result="released")
            return MasterResult(success=True)

    def lock(self, token: str | None) -> MasterResult:
        return self._set_locked(token, True)

    def unlock(self, token: str | None) -> MasterResult:
        return self._set_locked(token, False)

    def _set_locked(self, token: str | None, locked: bool) -> MasterResult:
        operation = "lock" if locked else "unlock"
        with self._lock:
            if not self._master.token or token != self._master.token:
                log_master_operation(operation, result="refused")
                return MasterResult(success=False, locked=self._master.locked)

            self._master.locked = locked
            self._master.last_seen = now_ms()
            log_master_operation(operation, result="ok")
            return MasterResult(success=True, locked=locked)

    # Client registry

    def register_client(self, client_id: str, socket_id: str, user_agent: str | None = None, ip: str | None = None):
        """Record a (re)connected device, keeping its first-seen time."""
        with self._lock:
            now = now_ms()
            existing = self._clients.get(client_id)
            self._clients[client_id] = ClientInfo(
                id=client_id,
                socket_id=socket_id,
                user_agent=user_agent or (existing.user_agent if existing else None),
                ip=ip or (existing.ip if existing else None),
                connected_at=existing.connected_at if existing else now,
                last_seen=now,
            )

    def update_client(self, client_id: str, socket_id: str | None = None):
        with self._lock:
            client = self._clients.get(client_id)
            if client is None:
                return
            if socket_id:
                client.socket_id = socket_id
            client.last_seen = now_ms()

    def unregister_client(self, client_id: str, socket_id: str | None = None):
        """Forget a device. With ``socket_id``, only if that connection is still the registered one."""
        with self._lock:
            client = self._clients.get(client_id)
            if client is None:
                return
            if socket_id and client.socket_id != socket_id:
                return
            del self._clients[client_id]
