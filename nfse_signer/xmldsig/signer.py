"""
Assinatura digital XML (XMLDSIG) para RPS, cancelamento e documentos genéricos.

Fluxo de assinatura:
1. Parse do XML de entrada
2. Localizar elemento alvo e wrapper conforme o tipo de documento
3. Garantir atributo Id no alvo
4. Canonicalizar alvo e calcular digest SHA-1
5. Montar <Signature> e assinar o SignedInfo canonicalizado (RSA-SHA1)
6. Inserir <Signature> no wrapper e serializar sem declaração XML
"""

import base64
import logging
from dataclasses import dataclass

from cryptography.hazmat.primitives.asymmetric import padding
from lxml import etree

from nfse_signer import settings
from nfse_signer.core.logging_filters import clear_signing_context, set_signing_context
from nfse_signer.xmldsig import certificate_store
from nfse_signer.xmldsig.assembler import SignatureAssembler
from nfse_signer.xmldsig.canonicalizer import canonicalize, digest
from nfse_signer.xmldsig.certificate_store import CertificateIdentity, CertificateInfo
from nfse_signer.xmldsig.descriptor import DEFAULT_DESCRIPTOR, SignatureDescriptor
from nfse_signer.xmldsig.documents import (
    SignableDocument,
    embed_signature,
    ensure_reference_id,
    parse_document,
    resolve_document,
    serialize,
)
from nfse_signer.xmldsig.exceptions import ParseError, SigningError
from nfse_signer.xmldsig.placement import DocumentKind, get_policy
from nfse_signer.xmldsig.verifier import verify

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignedResult:
    """Signed XML (no declaration) and the Id referenced by the signature."""

    xml: str
    reference_id: str


def sign(
    document_xml: str | bytes,
    document_kind: DocumentKind | str,
    identity: CertificateIdentity,
    *,
    element_id: str | None = None,
    descriptor: SignatureDescriptor = DEFAULT_DESCRIPTOR,
    recheck_expiry: bool = False,
) -> SignedResult:
    """
    Assina um documento XML com o certificado A1 carregado.

    Args:
        document_xml: XML de conteúdo a ser assinado.
        document_kind: Tipo do documento (define alvo e local da assinatura).
        identity: Certificado carregado por `certificate_store.load`.
        element_id: Para documentos genéricos, Id do elemento a assinar.
            Se None, assina o elemento raiz.
        descriptor: Suíte de algoritmos.
        recheck_expiry: Revalida a expiração do certificado antes de assinar.

    Returns:
        SignedResult com o XML assinado e o Id referenciado.

    Raises:
        ExpiredCertificateError: Certificado vencido (somente com recheck_expiry).
        ParseError: XML mal formado ou não canonicalizável (entidade externa
            não resolvida).
        ElementNotFoundError: Elemento exigido pelo schema ausente.
        DuplicateIdError: Id do alvo repetido em outro elemento.
        UnknownDocumentKindError: Tipo de documento sem política registrada.
        SigningError: Falha na operação criptográfica.
    """
    policy = get_policy(document_kind)
    kind = DocumentKind(document_kind)
    subject = identity.info().subject
    set_signing_context(document_kind=kind.value, certificate_subject=subject)
    try:
        if recheck_expiry:
            identity.ensure_valid()

        root = parse_document(document_xml)
        document = resolve_document(root, policy, element_id)
        document = ensure_reference_id(document, policy.default_id)
        reference_id = document.reference_id
        set_signing_context(
            document_kind=kind.value,
            reference_id=reference_id,
            certificate_subject=subject,
        )

        digest_value = _canonical_digest(document, descriptor)

        assembler = SignatureAssembler(descriptor)
        skeleton = assembler.build_skeleton(reference_id, digest_value)
        signature_value = _sign_bytes(
            canonicalize(assembler.signed_info(skeleton), descriptor),
            identity,
            descriptor,
        )
        signature = assembler.fill(skeleton, signature_value, identity.certificate_body)

        signed_document = embed_signature(document, signature)
        xml_output = serialize(signed_document.root)

        logger.info("XML assinado com sucesso (ref: #%s)", reference_id)
        return SignedResult(xml=xml_output, reference_id=reference_id)
    finally:
        clear_signing_context()


def _canonical_digest(document: SignableDocument, descriptor: SignatureDescriptor) -> str:
    try:
        return digest(document.target, descriptor)
    except etree.C14NError as e:
        raise ParseError(f"Document cannot be canonicalized: {e}") from e


def _sign_bytes(
    data: bytes,
    identity: CertificateIdentity,
    descriptor: SignatureDescriptor,
) -> str:
    """RSA PKCS#1 v1.5 sobre os bytes canônicos do SignedInfo, em base64."""
    try:
        signature = identity.private_key.sign(
            data,
            padding.PKCS1v15(),
            descriptor.hash_algorithm(),
        )
    except Exception as e:
        logger.error("Falha ao criar assinatura digital: %s", e)
        raise SigningError(f"Failed to create digital signature: {e}") from e
    return base64.b64encode(signature).decode("ascii")


class Signer:
    """
    Assinador com um certificado A1 fixo.

    Mantém apenas a identidade (imutável); cada chamada é independente.
    """

    def __init__(
        self,
        identity: CertificateIdentity,
        descriptor: SignatureDescriptor = DEFAULT_DESCRIPTOR,
        recheck_expiry: bool = False,
    ):
        self.identity = identity
        self.descriptor = descriptor
        self.recheck_expiry = recheck_expiry

    @classmethod
    def from_container(cls, container_bytes: bytes, passphrase, **kwargs) -> "Signer":
        return cls(certificate_store.load(container_bytes, passphrase), **kwargs)

    @classmethod
    def from_settings(cls) -> "Signer":
        """Signer built from NFSE_CERTIFICADO_PATH / NFSE_CERTIFICADO_SENHA."""
        identity = certificate_store.load_from_path(
            settings.NFSE_CERTIFICADO_PATH,
            settings.NFSE_CERTIFICADO_SENHA,
        )
        return cls(identity, recheck_expiry=settings.NFSE_REVALIDAR_VALIDADE)

    def sign(
        self,
        document_xml: str | bytes,
        document_kind: DocumentKind | str = DocumentKind.GENERIC,
        element_id: str | None = None,
    ) -> str:
        result = sign(
            document_xml,
            document_kind,
            self.identity,
            element_id=element_id,
            descriptor=self.descriptor,
            recheck_expiry=self.recheck_expiry,
        )
        return result.xml

    def sign_rps(self, rps_xml: str | bytes) -> str:
        """Assina InfDeclaracaoPrestacaoServico e insere a assinatura em Rps."""
        return self.sign(rps_xml, DocumentKind.RPS)

    def sign_cancellation(self, cancel_xml: str | bytes) -> str:
        """Assina InfPedidoCancelamento e insere a assinatura em Pedido."""
        return self.sign(cancel_xml, DocumentKind.CANCELLATION)

    def verify(self, signed_xml: str | bytes) -> bool:
        """Verifica a assinatura contra a chave pública do próprio certificado."""
        return verify(signed_xml, self.identity.public_key, self.descriptor)

    def certificate_info(self) -> CertificateInfo:
        return self.identity.info()
