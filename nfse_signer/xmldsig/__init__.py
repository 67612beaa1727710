"""
XMLDSIG signing engine for NFS-e documents (RPS, cancellation, generic).
"""

from nfse_signer.xmldsig.certificate_store import (
    CertificateIdentity,
    CertificateInfo,
    certificate_info,
    load,
    load_from_path,
)
from nfse_signer.xmldsig.exceptions import (
    CertificateError,
    DocumentError,
    DuplicateIdError,
    ElementNotFoundError,
    ExpiredCertificateError,
    KeyExtractionError,
    NFSeSignerError,
    ParseError,
    SigningError,
    UnknownDocumentKindError,
)
from nfse_signer.xmldsig.placement import DocumentKind
from nfse_signer.xmldsig.signer import SignedResult, Signer, sign
from nfse_signer.xmldsig.verifier import verify

__all__ = [
    "CertificateError",
    "CertificateIdentity",
    "CertificateInfo",
    "DocumentError",
    "DocumentKind",
    "DuplicateIdError",
    "ElementNotFoundError",
    "ExpiredCertificateError",
    "KeyExtractionError",
    "NFSeSignerError",
    "ParseError",
    "SignedResult",
    "Signer",
    "SigningError",
    "UnknownDocumentKindError",
    "certificate_info",
    "load",
    "load_from_path",
    "sign",
    "verify",
]
