"""
Verificação de assinatura XMLDSIG.

Total sobre qualquer entrada: erros de parse, decodificação ou criptografia
resultam em `False`, nunca em exceção.
"""

import base64
import logging

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from nfse_signer.xmldsig.canonicalizer import canonicalize, digest_bytes
from nfse_signer.xmldsig.descriptor import DEFAULT_DESCRIPTOR, SignatureDescriptor
from nfse_signer.xmldsig.documents import elements_with_id, parse_document

logger = logging.getLogger(__name__)


class VerificationFailure(Exception):
    """Internal reason for a False outcome."""


def verify(
    signed_xml: str | bytes,
    public_key: rsa.RSAPublicKey | x509.Certificate | None = None,
    descriptor: SignatureDescriptor = DEFAULT_DESCRIPTOR,
) -> bool:
    """
    Verifica a primeira <Signature> do documento.

    Args:
        signed_xml: XML assinado.
        public_key: Chave pública RSA ou certificado. Se None, usa o
            certificado embutido em KeyInfo (prova apenas integridade,
            não a confiança no emissor).

    Returns:
        True se o digest do elemento referenciado e o SignatureValue conferem.
    """
    try:
        _verify(signed_xml, public_key, descriptor)
    except Exception as e:
        logger.debug("Signature verification failed: %s", str(e) or type(e).__name__)
        return False
    return True


def _verify(signed_xml, public_key, descriptor: SignatureDescriptor) -> None:
    ns = {"ds": descriptor.namespace}
    # Sem remove_blank_text: o documento é verificado exatamente como veio
    root = parse_document(signed_xml, remove_blank_text=False)

    signatures = root.xpath("//ds:Signature", namespaces=ns)
    if not signatures:
        raise VerificationFailure("no Signature element")
    signature = signatures[0]

    signed_info = _single(signature, "ds:SignedInfo", ns)
    signature_value = _single(signature, "ds:SignatureValue", ns)
    reference = _single(signed_info, "ds:Reference", ns)
    digest_value = _single(reference, "ds:DigestValue", ns)

    canonical_signed_info = canonicalize(signed_info, descriptor)
    signature_bytes = _b64decode(_text(signature_value))

    _check_reference(root, signature, reference, _text(digest_value), descriptor)

    key = _resolve_public_key(public_key, signature, ns)
    key.verify(
        signature_bytes,
        canonical_signed_info,
        padding.PKCS1v15(),
        descriptor.hash_algorithm(),
    )


def _check_reference(root, signature, reference, expected_digest: str, descriptor) -> None:
    uri = reference.get("URI", "")
    if uri == "":
        referenced = root
    elif uri.startswith("#"):
        matches = elements_with_id(root, uri[1:])
        if len(matches) != 1:
            raise VerificationFailure(f"{len(matches)} elements match Reference {uri}")
        referenced = matches[0]
    else:
        raise VerificationFailure(f"unsupported Reference URI {uri!r}")

    enveloped = any(node is signature for node in referenced.iter())
    if enveloped:
        _detach(signature)

    if digest_bytes(canonicalize(referenced, descriptor), descriptor) != expected_digest:
        raise VerificationFailure(f"digest mismatch for {uri or 'document'}")


def _detach(element) -> None:
    """Enveloped-signature transform: remove o nó, preservando o texto seguinte."""
    parent = element.getparent()
    if element.tail:
        previous = element.getprevious()
        if previous is not None:
            previous.tail = (previous.tail or "") + element.tail
        else:
            parent.text = (parent.text or "") + element.tail
    parent.remove(element)


def _resolve_public_key(public_key, signature, ns) -> rsa.RSAPublicKey:
    if public_key is None:
        certificate_node = _single(signature, "ds:KeyInfo/ds:X509Data/ds:X509Certificate", ns)
        der = _b64decode(_text(certificate_node))
        public_key = x509.load_der_x509_certificate(der)

    if isinstance(public_key, x509.Certificate):
        public_key = public_key.public_key()

    if not isinstance(public_key, rsa.RSAPublicKey):
        raise VerificationFailure(f"unsupported public key type {type(public_key).__name__}")
    return public_key


def _single(node, path: str, ns: dict):
    found = node.xpath(path, namespaces=ns)
    if not found:
        raise VerificationFailure(f"{path} not found")
    return found[0]


def _text(node) -> str:
    return (node.text or "").strip()


def _b64decode(text: str) -> bytes:
    return base64.b64decode("".join(text.split()), validate=True)
