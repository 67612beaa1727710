"""
Carregamento do certificado digital ICP-Brasil tipo A1 (.pfx/.p12).

Extrai chave privada RSA e certificado X.509 do container PKCS#12 e valida
a data de expiração. Uma `CertificateIdentity` inválida ou expirada nunca
chega a ser construída.
"""

import base64
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12

from nfse_signer.xmldsig.exceptions import (
    CertificateError,
    ExpiredCertificateError,
    KeyExtractionError,
)

logger = logging.getLogger(__name__)

# Mesma mensagem para container corrompido e senha errada.
UNREADABLE_MESSAGE = "Unable to read certificate or incorrect password"


@dataclass(frozen=True)
class CertificateInfo:
    """Certificate summary for diagnostics and monitoring."""

    subject: str
    issuer: str
    serial_number: int
    not_before: datetime
    not_after: datetime


@dataclass(frozen=True)
class CertificateIdentity:
    """
    Chave privada + certificado prontos para assinar.

    Somente leitura após a construção; pode ser compartilhada entre threads.
    A validade é conferida uma única vez, na construção. Processos de longa
    duração devem chamar `ensure_valid()` (ou usar `recheck_expiry` no
    Signer) se mantiverem a identidade por mais de um dia.
    """

    private_key: rsa.RSAPrivateKey
    certificate: x509.Certificate
    additional_certificates: tuple[x509.Certificate, ...] = field(default=(), repr=False)

    def __post_init__(self):
        if self.private_key is None or self.certificate is None:
            raise KeyExtractionError("Certificate container has no private key or certificate")
        if not isinstance(self.private_key, rsa.RSAPrivateKey):
            raise KeyExtractionError(
                f"Unsupported private key type: {type(self.private_key).__name__}"
            )
        if self.private_key.public_key().public_numbers() != _public_numbers(self.certificate):
            raise KeyExtractionError("Private key does not match the certificate public key")
        self.ensure_valid()

    @property
    def not_after(self) -> datetime:
        return self.certificate.not_valid_after_utc

    @property
    def public_key(self) -> rsa.RSAPublicKey:
        return self.certificate.public_key()

    @property
    def certificate_body(self) -> str:
        """Base64 DER do certificado, sem cabeçalho PEM nem quebras de linha."""
        der = self.certificate.public_bytes(serialization.Encoding.DER)
        return base64.b64encode(der).decode("ascii")

    @property
    def certificate_pem(self) -> str:
        return self.certificate.public_bytes(serialization.Encoding.PEM).decode("ascii")

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.not_after

    def ensure_valid(self, now: datetime | None = None) -> None:
        """Raise ExpiredCertificateError if the certificate is expired at `now`."""
        if self.is_expired(now):
            raise ExpiredCertificateError(self.not_after)

    def info(self) -> CertificateInfo:
        return certificate_info(self)


def load(container_bytes: bytes, passphrase: str | bytes | None) -> CertificateIdentity:
    """
    Carrega um certificado PKCS#12 (A1).

    Args:
        container_bytes: Conteúdo binário do .pfx/.p12.
        passphrase: Senha do certificado (str em UTF-8 ou bytes).

    Returns:
        CertificateIdentity validada.

    Raises:
        CertificateError: Container ilegível ou senha incorreta.
        KeyExtractionError: Chave privada ou certificado ausente/inutilizável.
        ExpiredCertificateError: Certificado vencido.
    """
    if not container_bytes:
        raise CertificateError(UNREADABLE_MESSAGE)

    try:
        chave_privada, certificado, cadeia = pkcs12.load_key_and_certificates(
            bytes(container_bytes),
            _encode_passphrase(passphrase),
        )
    except (ValueError, TypeError) as e:
        logger.debug("PKCS#12 load failed: %s", e)
        raise CertificateError(UNREADABLE_MESSAGE) from e

    if chave_privada is None or certificado is None:
        raise KeyExtractionError("Unable to extract private key or certificate from container")

    identity = CertificateIdentity(
        private_key=chave_privada,
        certificate=certificado,
        additional_certificates=tuple(cadeia or ()),
    )
    logger.info(
        "Certificate loaded: %s (valid until %s)",
        certificado.subject.rfc4514_string(),
        identity.not_after.isoformat(),
    )
    return identity


def load_from_path(path: str | Path, passphrase: str | bytes | None) -> CertificateIdentity:
    """Read a .pfx/.p12 file from disk and load it."""
    try:
        container_bytes = Path(path).read_bytes()
    except OSError as e:
        raise CertificateError(f"Certificate file not found: {path}") from e
    return load(container_bytes, passphrase)


def certificate_info(identity: CertificateIdentity) -> CertificateInfo:
    cert = identity.certificate
    return CertificateInfo(
        subject=cert.subject.rfc4514_string(),
        issuer=cert.issuer.rfc4514_string(),
        serial_number=cert.serial_number,
        not_before=cert.not_valid_before_utc,
        not_after=cert.not_valid_after_utc,
    )


def _encode_passphrase(passphrase: str | bytes | None) -> bytes | None:
    if not passphrase:
        return None
    if isinstance(passphrase, str):
        return passphrase.encode("utf-8")
    return bytes(passphrase)


def _public_numbers(certificate: x509.Certificate):
    try:
        return certificate.public_key().public_numbers()
    except Exception as e:
        raise KeyExtractionError(f"Unable to read certificate public key: {e}") from e
