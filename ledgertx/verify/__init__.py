from .verifier import (
    TransactionVerifier,
    VerificationResult,
    VerificationFailure,
    verify_asset_files,
    verify_using_crossref,
)

__all__ = ["TransactionVerifier", "VerificationResult", "VerificationFailure",
           "verify_asset_files", "verify_using_crossref"]
