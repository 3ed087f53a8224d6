from typing import List, Optional

import structlog

from ledgertx.core.config import IdLengthConfig, fit_id
from ledgertx.core.encoding import hex_id
from ledgertx.model.signature import Signature

log = structlog.get_logger(__name__)


class SignatureSlots:
    """
    The transaction's signature array and the user bound to each position.

    signatures[i] belongs to users[i]; a user occupies at most one slot and slots
    are handed out in first-seen order. users[i] is None for a slot whose owner is
    not known yet (e.g. right after decoding, before References are re-linked).
    References and Witnesses receive this table instead of the transaction itself.
    """

    def __init__(self, id_conf: IdLengthConfig):
        self.id_conf = id_conf
        self.signatures: List[Signature] = []
        self.users: List[Optional[bytes]] = []

    def __len__(self) -> int:
        return len(self.signatures)

    def _uid(self, user_id: bytes) -> bytes:
        return fit_id(user_id, self.id_conf.user_id_len)

    def index_of(self, user_id: bytes) -> Optional[int]:
        uid = self._uid(user_id)
        for i, user in enumerate(self.users):
            if user == uid:
                return i
        return None

    def get_or_allocate(self, user_id: bytes) -> int:
        idx = self.index_of(user_id)
        if idx is not None:
            return idx
        self.users.append(self._uid(user_id))
        self.signatures.append(Signature())
        idx = len(self.signatures) - 1
        log.debug("slot_allocated", user_id=hex_id(self.users[idx]), index=idx)
        return idx

    def add_signature(self, user_id: bytes, signature: Signature) -> int:
        """Overwrite the user's slot (re-signing) or append a new one."""
        idx = self.index_of(user_id)
        if idx is not None:
            self.signatures[idx] = signature
            return idx
        self.users.append(self._uid(user_id))
        self.signatures.append(signature)
        return len(self.signatures) - 1

    def assign(self, index: int, user_id: bytes) -> None:
        """Bind a user to an index recorded on the wire. A user already bound elsewhere is left alone."""
        if self.index_of(user_id) is not None:
            return
        while len(self.signatures) <= index:
            self.signatures.append(Signature())
            self.users.append(None)
        self.users[index] = self._uid(user_id)

    def load(self, signatures: List[Signature]) -> None:
        """Replace the table with decoded signatures whose owners are not known yet."""
        self.signatures = list(signatures)
        self.users = [None] * len(self.signatures)
