"""
Document-kind registry: which element is signed and where the <Signature>
goes, for each kind of NFS-e document.
"""

import enum
import logging
from dataclasses import dataclass

from nfse_signer import settings
from nfse_signer.xmldsig.exceptions import UnknownDocumentKindError

logger = logging.getLogger(__name__)


class DocumentKind(enum.Enum):
    GENERIC = "generic"
    RPS = "rps"
    CANCELLATION = "cancellation"


@dataclass(frozen=True)
class PlacementPolicy:
    """
    Regras de assinatura de um tipo de documento.

    target_name: elemento cujo digest é assinado (None = elemento raiz).
    wrapper_name: pai do alvo que recebe a <Signature> (None = o próprio alvo).
    default_id: Id literal exigido pelo schema quando o alvo não tem Id.
    """

    target_name: str | None
    wrapper_name: str | None
    default_id: str
    namespace: str | None = None


_POLICY_MAP: dict[DocumentKind, PlacementPolicy] = {}


def register_policy(kind: DocumentKind, policy: PlacementPolicy) -> None:
    """Register the placement policy for a document kind."""
    _POLICY_MAP[kind] = policy


def _ensure_defaults() -> None:
    """Lazily register built-in policies on first access."""
    if DocumentKind.GENERIC not in _POLICY_MAP:
        register_policy(
            DocumentKind.GENERIC,
            PlacementPolicy(target_name=None, wrapper_name=None, default_id="signed-element"),
        )

    if DocumentKind.RPS not in _POLICY_MAP:
        register_policy(
            DocumentKind.RPS,
            PlacementPolicy(
                target_name="InfDeclaracaoPrestacaoServico",
                wrapper_name="Rps",
                default_id="InfDeclaracaoPrestacaoServico",
                namespace=settings.NFSE_NAMESPACE,
            ),
        )

    if DocumentKind.CANCELLATION not in _POLICY_MAP:
        register_policy(
            DocumentKind.CANCELLATION,
            PlacementPolicy(
                target_name="InfPedidoCancelamento",
                wrapper_name="Pedido",
                default_id="InfPedidoCancelamento",
                namespace=settings.NFSE_NAMESPACE,
            ),
        )


def get_policy(kind: DocumentKind | str) -> PlacementPolicy:
    """
    Return the policy registered for `kind`.

    Accepts the enum or its string value ("rps", "cancellation", ...).
    """
    _ensure_defaults()

    try:
        kind = DocumentKind(kind)
    except ValueError as e:
        raise UnknownDocumentKindError(f"Unknown document kind: {kind!r}") from e

    policy = _POLICY_MAP.get(kind)
    if policy is None:
        raise UnknownDocumentKindError(f"No placement policy registered for {kind.value!r}")

    logger.debug("Placement policy for %s: %s", kind.value, policy)
    return policy


def list_policies() -> dict[DocumentKind, PlacementPolicy]:
    """Return a copy of the registered policies map."""
    _ensure_defaults()
    return dict(_POLICY_MAP)
