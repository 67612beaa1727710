"""
Etapas do pipeline de assinatura sobre o documento XML.

Cada etapa recebe um `SignableDocument` e devolve um novo, construído sobre
uma cópia da árvore; nenhuma etapa altera o documento recebido, de modo que
uma falha no meio do caminho não deixa árvore parcialmente modificada.
"""

import copy
import logging
import re
from dataclasses import dataclass

from lxml import etree

from nfse_signer.xmldsig.exceptions import DuplicateIdError, ElementNotFoundError, ParseError
from nfse_signer.xmldsig.placement import PlacementPolicy

logger = logging.getLogger(__name__)

ID_ATTRIBUTE = "Id"

_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>\s*")


@dataclass(frozen=True)
class SignableDocument:
    """Parsed tree plus the element to sign and the element receiving <Signature>."""

    root: etree._Element
    target: etree._Element
    insertion: etree._Element

    @property
    def reference_id(self) -> str | None:
        return self.target.get(ID_ATTRIBUTE)

    def copy(self) -> "SignableDocument":
        """Deep copy of the tree with target/insertion re-located in the copy."""
        root = copy.deepcopy(self.root)
        return SignableDocument(
            root=root,
            target=_follow(root, _index_path(self.root, self.target)),
            insertion=_follow(root, _index_path(self.root, self.insertion)),
        )


def build_parser(*, remove_blank_text: bool = True) -> etree.XMLParser:
    """Parser que expande apenas entidades internas, sem acesso à rede."""
    return etree.XMLParser(
        remove_blank_text=remove_blank_text,
        resolve_entities="internal",
        no_network=True,
    )


def parse_document(xml_content: str | bytes, *, remove_blank_text: bool = True) -> etree._Element:
    """
    Faz o parse do XML de entrada.

    Raises:
        ParseError: XML vazio ou mal formado.
    """
    if not xml_content or not xml_content.strip():
        raise ParseError("Invalid XML content: empty document")

    if isinstance(xml_content, str):
        # lxml não aceita str com declaração de encoding
        xml_content = _XML_DECLARATION.sub("", xml_content, count=1)

    try:
        return etree.fromstring(xml_content, build_parser(remove_blank_text=remove_blank_text))
    except etree.XMLSyntaxError as e:
        raise ParseError(f"Invalid XML content: {e}") from e


def find_element(
    root: etree._Element,
    local_name: str,
    namespace: str | None = None,
) -> etree._Element | None:
    """
    Busca o primeiro elemento `local_name`, com namespace e depois sem.

    Documentos com e sem namespace (prefixado ou default) são aceitos; a
    busca sem namespace é mantida por compatibilidade com chamadores que
    montam o XML sem xmlns.
    """
    if namespace:
        found = root.xpath(f"//ns:{local_name}", namespaces={"ns": namespace})
        if found:
            return found[0]
    found = root.xpath(f"//{local_name}")
    return found[0] if found else None


def elements_with_id(root: etree._Element, element_id: str) -> list[etree._Element]:
    return root.xpath("//*[@Id = $element_id]", element_id=element_id)


def find_by_id(root: etree._Element, element_id: str) -> etree._Element | None:
    """
    Elemento com o Id informado, somente se for único no documento.

    Id repetido torna a referência ambígua (um elemento pode ser copiado
    para outro ponto da árvore), então é tratado como ausente.
    """
    found = elements_with_id(root, element_id)
    return found[0] if len(found) == 1 else None


def ensure_unique_id(root: etree._Element, element_id: str) -> None:
    """
    Raises:
        DuplicateIdError: mais de um elemento com o Id.
    """
    count = len(elements_with_id(root, element_id))
    if count > 1:
        raise DuplicateIdError(element_id, count)


def resolve_document(
    root: etree._Element,
    policy: PlacementPolicy,
    element_id: str | None = None,
) -> SignableDocument:
    """
    Localiza o elemento alvo e o elemento que receberá a <Signature>.

    Raises:
        ElementNotFoundError: alvo ou wrapper ausente.
        DuplicateIdError: element_id repetido no documento.
    """
    if element_id:
        ensure_unique_id(root, element_id)
        target = find_by_id(root, element_id)
        if target is None:
            raise ElementNotFoundError(element_id, "no element carries this Id")
    elif policy.target_name:
        target = find_element(root, policy.target_name, policy.namespace)
        if target is None:
            raise ElementNotFoundError(policy.target_name)
    else:
        target = root

    if policy.wrapper_name is None:
        insertion = target
    else:
        insertion = target.getparent()
        if insertion is None or etree.QName(insertion).localname != policy.wrapper_name:
            raise ElementNotFoundError(
                policy.wrapper_name,
                f"expected as parent of {etree.QName(target).localname}",
            )

    logger.debug(
        "Target <%s>, signature goes into <%s>",
        etree.QName(target).localname,
        etree.QName(insertion).localname,
    )
    return SignableDocument(root=root, target=target, insertion=insertion)


def ensure_reference_id(document: SignableDocument, default_id: str) -> SignableDocument:
    """
    Mantém o Id existente do alvo; sem Id, devolve cópia com o Id literal.

    Raises:
        DuplicateIdError: o Id mantido ou atribuído também aparece em outro
            elemento, e a assinatura não poderia ser verificada.
    """
    if document.reference_id:
        ensure_unique_id(document.root, document.reference_id)
        return document

    updated = document.copy()
    updated.target.set(ID_ATTRIBUTE, default_id)
    ensure_unique_id(updated.root, default_id)
    logger.debug("Assigned Id=%s to <%s>", default_id, etree.QName(updated.target).localname)
    return updated


def embed_signature(document: SignableDocument, signature: etree._Element) -> SignableDocument:
    """New document with a copy of `signature` appended to the insertion element."""
    updated = document.copy()
    updated.insertion.append(copy.deepcopy(signature))
    return updated


def serialize(root: etree._Element) -> str:
    """XML sem declaração, pronto para ser embutido em CDATA."""
    xml_output = etree.tostring(root, encoding="unicode")
    return _XML_DECLARATION.sub("", xml_output, count=1)


def _index_path(root: etree._Element, element: etree._Element) -> list[int]:
    path = []
    node = element
    while node is not root:
        parent = node.getparent()
        if parent is None:
            raise ValueError("Element does not belong to the document root")
        path.append(parent.index(node))
        node = parent
    path.reverse()
    return path


def _follow(root: etree._Element, path: list[int]) -> etree._Element:
    node = root
    for index in path:
        node = node[index]
    return node
