"""
Contexto da assinatura em curso nos registros de log.

O signer publica o tipo de documento, o Id referenciado e o titular do
certificado A1 da thread atual; `SigningContextFilter` copia esses campos
para cada LogRecord, de modo que o formatter `verbose` identifique qual
documento e qual certificado geraram a mensagem.
"""

import logging
import threading

CONTEXT_FIELDS = ("document_kind", "reference_id", "certificate_subject")
UNSET = "-"

_signing_context = threading.local()


def set_signing_context(
    *,
    document_kind: str,
    reference_id: str = UNSET,
    certificate_subject: str = UNSET,
) -> None:
    _signing_context.document_kind = document_kind
    _signing_context.reference_id = reference_id
    _signing_context.certificate_subject = certificate_subject


def clear_signing_context() -> None:
    _signing_context.__dict__.clear()


def current_signing_context() -> dict[str, str]:
    """Snapshot of the current thread's context ('-' for unset fields)."""
    return {field: getattr(_signing_context, field, UNSET) for field in CONTEXT_FIELDS}


class SigningContextFilter(logging.Filter):
    """Copia o contexto da assinatura para o record; nunca descarta registros."""

    def filter(self, record):
        for field, value in current_signing_context().items():
            setattr(record, field, value)
        return True
