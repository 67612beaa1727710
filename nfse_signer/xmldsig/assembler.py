"""
Montagem estrutural do elemento <Signature> (XMLDSIG).

Nenhuma operação criptográfica acontece aqui. A ordem dos filhos é fixada
pelo schema xmldsig-core e não pode ser alterada.
"""

import copy
import re

from lxml import etree

from nfse_signer.xmldsig.descriptor import DEFAULT_DESCRIPTOR, SignatureDescriptor

_PEM_ARMOUR = re.compile(r"-----(BEGIN|END) [A-Z0-9 ]+-----")


def strip_pem(certificate_text: str) -> str:
    """Remove cabeçalho/rodapé PEM e quebras de linha, deixando só o base64."""
    return re.sub(r"\s+", "", _PEM_ARMOUR.sub("", certificate_text))


class SignatureAssembler:
    """Builds the Signature/SignedInfo/Reference/KeyInfo skeleton."""

    def __init__(self, descriptor: SignatureDescriptor = DEFAULT_DESCRIPTOR):
        self.descriptor = descriptor

    def build_skeleton(self, target_id: str, digest_value: str) -> etree._Element:
        """
        Constrói a <Signature> com SignatureValue e X509Certificate vazios.

        Args:
            target_id: Id do elemento assinado (Reference URI = "#<target_id>").
            digest_value: Digest base64 do elemento canonicalizado.
        """
        d = self.descriptor
        # Namespace default, sem prefixo "ds:"
        signature = etree.Element(d.tag("Signature"), nsmap={None: d.namespace})

        signed_info = etree.SubElement(signature, d.tag("SignedInfo"))
        etree.SubElement(
            signed_info, d.tag("CanonicalizationMethod"), Algorithm=d.canonicalization_method
        )
        etree.SubElement(signed_info, d.tag("SignatureMethod"), Algorithm=d.signature_method)

        reference = etree.SubElement(signed_info, d.tag("Reference"), URI=f"#{target_id}")
        transforms = etree.SubElement(reference, d.tag("Transforms"))
        for algorithm in d.transforms:
            etree.SubElement(transforms, d.tag("Transform"), Algorithm=algorithm)
        etree.SubElement(reference, d.tag("DigestMethod"), Algorithm=d.digest_method)
        etree.SubElement(reference, d.tag("DigestValue")).text = digest_value

        etree.SubElement(signature, d.tag("SignatureValue"))

        key_info = etree.SubElement(signature, d.tag("KeyInfo"))
        x509_data = etree.SubElement(key_info, d.tag("X509Data"))
        etree.SubElement(x509_data, d.tag("X509Certificate"))

        return signature

    def signed_info(self, signature: etree._Element) -> etree._Element:
        return self._child(signature, "SignedInfo")

    def fill(
        self,
        signature: etree._Element,
        signature_value: str,
        certificate_body: str,
    ) -> etree._Element:
        """Return a copy of `signature` with SignatureValue and X509Certificate set."""
        filled = copy.deepcopy(signature)
        self._child(filled, "SignatureValue").text = signature_value
        certificate = filled.find(
            f"{self.descriptor.tag('KeyInfo')}/{self.descriptor.tag('X509Data')}"
            f"/{self.descriptor.tag('X509Certificate')}"
        )
        certificate.text = strip_pem(certificate_body)
        return filled

    def _child(self, signature: etree._Element, local_name: str) -> etree._Element:
        child = signature.find(self.descriptor.tag(local_name))
        if child is None:
            raise ValueError(f"Signature skeleton has no {local_name}")
        return child
