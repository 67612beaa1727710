"""
Canonicalização C14N exclusiva (sem comentários) e cálculo de digest.

A mesma função é usada para o elemento assinado e para o SignedInfo; a
validade da assinatura depende de os bytes serem idênticos dos dois lados.
"""

import base64

from cryptography.hazmat.primitives import hashes
from lxml import etree

from nfse_signer.xmldsig.descriptor import DEFAULT_DESCRIPTOR, SignatureDescriptor


def canonicalize(
    element: etree._Element,
    descriptor: SignatureDescriptor = DEFAULT_DESCRIPTOR,
) -> bytes:
    """Serialização canônica do subárvore, sem declaração XML."""
    return etree.tostring(
        element,
        method="c14n",
        exclusive=descriptor.exclusive_c14n,
        with_comments=False,
    )


def digest_bytes(data: bytes, descriptor: SignatureDescriptor = DEFAULT_DESCRIPTOR) -> str:
    """Base64 digest of raw bytes with the descriptor's hash."""
    h = hashes.Hash(descriptor.hash_algorithm())
    h.update(data)
    return base64.b64encode(h.finalize()).decode("ascii")


def digest(element: etree._Element, descriptor: SignatureDescriptor = DEFAULT_DESCRIPTOR) -> str:
    return digest_bytes(canonicalize(element, descriptor), descriptor)
