# ledgertx/verify/verifier.py
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple, Union

import structlog

from ledgertx.core.binary import put_u16, put_u32
from ledgertx.core.config import IdLengthConfig
from ledgertx.core.encoding import b64url_decode, hex_id
from ledgertx.core.errors import TransactionError
from ledgertx.crypto.hashing import file_digest, sha256
from ledgertx.model.asset import Asset
from ledgertx.model.crossref import CrossRef
from ledgertx.model.signature import Signature
from ledgertx.model.transaction import Transaction

log = structlog.get_logger(__name__)

AssetKey = Tuple[bytes, bytes]  # (asset_group_id, asset_id)


@dataclass
class VerificationFailure:
    index: int
    message: str
    category: str = "general"  # "signature", "asset_file", "structure"


@dataclass
class VerificationResult:
    is_valid: bool
    message: str = ""
    failures: List[VerificationFailure] = None
    valid_assets: List[AssetKey] = None

    def __post_init__(self):
        if self.failures is None:
            self.failures = []
        if self.valid_assets is None:
            self.valid_assets = []

    @property
    def first_failure(self) -> Optional[VerificationFailure]:
        return self.failures[0] if self.failures else None

    def fail(self, index: int, message: str, category: str) -> None:
        self.failures.append(VerificationFailure(index, message, category))
        self.is_valid = False

    def __bool__(self):
        return self.is_valid

    def __str__(self):
        if self.is_valid:
            return "Transaction is valid ✓"
        lines = [f"Verification FAILED ({len(self.failures)} issues):"]
        for f in self.failures:
            lines.append(f"  • [{f.index}] {f.category}: {f.message}")
        return "\n".join(lines)


def _assets_with_group(tx: Transaction) -> List[Tuple[bytes, Asset]]:
    out = []
    for evt in tx.events:
        if evt.asset is not None:
            out.append((evt.asset_group_id, evt.asset))
    for rtn in tx.relations:
        if rtn.asset is not None:
            out.append((rtn.asset_group_id, rtn.asset))
    return out


def verify_asset_files(tx: Transaction, asset_files: Mapping[bytes, Optional[bytes]]
                       ) -> Tuple[List[AssetKey], List[AssetKey]]:
    """
    Compare file contents (keyed by asset_id) with the digests recorded in the assets.
    Assets without an entry, or with a None entry, are in neither list.
    """
    valid, invalid = [], []
    for asset_group_id, asset in _assets_with_group(tx):
        content = asset_files.get(asset.asset_id)
        if content is None:
            continue
        key = (asset_group_id, asset.asset_id)
        if asset.file_digest == file_digest(content):
            valid.append(key)
        else:
            invalid.append(key)
    return valid, invalid


def verify_using_crossref(domain_id: bytes, transaction_id: bytes, base_digest: bytes,
                          crossref_data: bytes, signature: Union[Signature, bytes]) -> bool:
    """
    Prove that a transaction exists without seeing its body.

    The outer domain discloses only transaction_base_digest, the packed CrossRef and one
    signature; the digest is rebuilt exactly as Transaction.digest() does it.
    """
    crossref = CrossRef.unpack(crossref_data, IdLengthConfig())
    if crossref.domain_id != domain_id or crossref.transaction_id != transaction_id:
        return False
    buf = bytearray(base_digest)
    put_u16(buf, 1)
    put_u32(buf, len(crossref_data))
    buf.extend(crossref_data)
    if not isinstance(signature, Signature):
        signature = Signature.unpack(signature)
    return signature.verify(sha256(bytes(buf)))


class TransactionVerifier:
    """
    Offline verifier producing a full report instead of the first failing index.
    Optionally checks asset files and fills in public keys omitted from signatures.
    """

    def __init__(self, trusted_keys: Optional[Dict[str, str]] = None, require_all_signed: bool = False):
        """
        trusted_keys: hex user_id → base64url public key, used for slots signed without a public key
        require_all_signed: report reserved slots that carry no signature
        """
        self.trusted_keys = trusted_keys or {}
        self.require_all_signed = require_all_signed

    def _check_structure(self, tx: Transaction, result: VerificationResult) -> None:
        sig_count = len(tx.signatures)
        for i, evt in enumerate(tx.events):
            if len(evt.option_approvers) != evt.option_quorum_denominator:
                result.fail(i, "option approver count differs from quorum denominator", "structure")
            for ref_idx in evt.reference_indices:
                if ref_idx >= len(tx.references):
                    result.fail(i, f"event points at missing reference {ref_idx}", "structure")
        for i, ref in enumerate(tx.references):
            for idx in ref.sig_slot_indices:
                if idx >= sig_count:
                    result.fail(i, f"reference slot {idx} outside {sig_count} signatures", "structure")
        if tx.witness is not None:
            for idx in tx.witness.sig_slot_indices:
                if idx >= sig_count:
                    result.fail(idx, f"witness slot outside {sig_count} signatures", "structure")

    def _public_key_for(self, tx: Transaction, index: int, sig: Signature) -> bytes:
        if sig.public_key:
            return sig.public_key
        user = tx.sig_slot_users[index] if index < len(tx.sig_slot_users) else None
        pub_b64 = self.trusted_keys.get(hex_id(user)) if user is not None else None
        return b64url_decode(pub_b64) if pub_b64 else b""

    def _check_signatures(self, tx: Transaction, result: VerificationResult) -> None:
        try:
            digest = tx.digest()
        except TransactionError as e:
            result.fail(-1, f"Cannot compute digest: {e}", "structure")
            return
        for i, sig in enumerate(tx.signatures):
            if not sig.initialized:
                if self.require_all_signed:
                    result.fail(i, "slot reserved but not signed", "signature")
                continue
            public_key = self._public_key_for(tx, i, sig)
            if not public_key:
                result.fail(i, "No public key for signature", "signature")
                continue
            candidate = Signature(sig.key_type, public_key, sig.signature)
            if not candidate.verify(digest):
                result.fail(i, "Invalid signature", "signature")

    def verify(self, tx: Transaction,
               asset_files: Optional[Mapping[bytes, Optional[bytes]]] = None) -> VerificationResult:
        result = VerificationResult(True)
        self._check_structure(tx, result)
        self._check_signatures(tx, result)

        if asset_files is not None:
            valid, invalid = verify_asset_files(tx, asset_files)
            result.valid_assets = valid
            for asset_group_id, asset_id in invalid:
                result.fail(-1, f"file digest mismatch for asset {hex_id(asset_id)} "
                                f"(group {hex_id(asset_group_id)})", "asset_file")

        result.message = "Valid transaction" if result.is_valid else f"Failed with {len(result.failures)} issues"
        log.debug("verified", transaction_id=hex_id(tx.transaction_id), valid=result.is_valid,
                  failures=len(result.failures))
        return result
