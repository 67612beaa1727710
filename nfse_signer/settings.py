"""
Settings for nfse_signer, read from the environment / .env via decouple.
"""

import logging.config

from decouple import config

BETHA_NAMESPACE = "http://www.betha.com.br/e-nota-contribuinte-ws"

# Certificado A1 usado por Signer.from_settings()
NFSE_CERTIFICADO_PATH = config("NFSE_CERTIFICADO_PATH", default="")
NFSE_CERTIFICADO_SENHA = config("NFSE_CERTIFICADO_SENHA", default="")

# Revalidar a expiração do certificado antes de cada assinatura
NFSE_REVALIDAR_VALIDADE = config("NFSE_REVALIDAR_VALIDADE", default=False, cast=bool)

# Namespace usado na busca qualificada dos elementos assinados
NFSE_NAMESPACE = config("NFSE_NAMESPACE", default=BETHA_NAMESPACE)

NFSE_LOG_LEVEL = config("NFSE_LOG_LEVEL", default="INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "signing_context": {
            "()": "nfse_signer.core.logging_filters.SigningContextFilter",
        },
    },
    "formatters": {
        "verbose": {
            "format": (
                "{levelname} {asctime} {module} {process:d} {thread:d} "
                "[{document_kind} {reference_id} {certificate_subject}] {message}"
            ),
            "style": "{",
        },
        "simple": {
            "format": "{levelname} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
            "filters": ["signing_context"],
        },
    },
    "loggers": {
        "nfse_signer": {
            "handlers": ["console"],
            "level": NFSE_LOG_LEVEL,
            "propagate": False,
        },
    },
}


def configure_logging(logging_config: dict | None = None) -> None:
    """Apply LOGGING (or the given dictConfig mapping)."""
    logging.config.dictConfig(logging_config or LOGGING)
