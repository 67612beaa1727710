"""
Suíte de algoritmos da assinatura XMLDSIG exigida pelo webservice.

O validador remoto aceita somente esta combinação (C14N 1.0, RSA-SHA1,
SHA-1, enveloped-signature). Trocar a suíte (ex: SHA-256) é uma edição
neste único ponto, mas quebra a compatibilidade com o validador.
"""

from dataclasses import dataclass

from cryptography.hazmat.primitives import hashes
from signxml import namespaces
from signxml.algorithms import (
    CanonicalizationMethod,
    DigestAlgorithm,
    SignatureConstructionMethod,
    SignatureMethod,
)

DS_NAMESPACE = namespaces["ds"]


@dataclass(frozen=True)
class SignatureDescriptor:
    """Immutable algorithm identifiers written into SignedInfo."""

    namespace: str
    canonicalization_method: str
    signature_method: str
    digest_method: str
    transforms: tuple[str, ...]
    hash_algorithm: type[hashes.HashAlgorithm]
    # Os bytes canônicos seguem o perfil exclusivo, como o validador calcula.
    exclusive_c14n: bool = True

    def tag(self, local_name: str) -> str:
        """Clark-notation tag in the signature namespace."""
        return f"{{{self.namespace}}}{local_name}"


DEFAULT_DESCRIPTOR = SignatureDescriptor(
    namespace=DS_NAMESPACE,
    canonicalization_method=CanonicalizationMethod.CANONICAL_XML_1_0.value,
    signature_method=SignatureMethod.RSA_SHA1.value,
    digest_method=DigestAlgorithm.SHA1.value,
    transforms=(
        SignatureConstructionMethod.enveloped.value,
        CanonicalizationMethod.CANONICAL_XML_1_0.value,
    ),
    hash_algorithm=hashes.SHA1,
)
