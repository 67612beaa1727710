"""
Exceções do motor de assinatura XMLDSIG.

Hierarquia:

    NFSeSignerError
      CertificateError
        ExpiredCertificateError
        KeyExtractionError
      DocumentError
        ParseError
        ElementNotFoundError
        DuplicateIdError
      UnknownDocumentKindError
      SigningError

`verify` não levanta nenhuma delas: falhas de verificação viram `False`.
"""


class NFSeSignerError(Exception):
    """Base for every error raised by the signing engine."""


class CertificateError(NFSeSignerError):
    """Container PKCS#12 ilegível ou senha incorreta (indistinguíveis)."""


class ExpiredCertificateError(CertificateError):
    """Certificate is at or past its not_after timestamp."""

    def __init__(self, not_after):
        self.not_after = not_after
        super().__init__(f"Certificate is expired (valid until {not_after.isoformat()})")


class KeyExtractionError(CertificateError):
    """Container decrypted but the private key or certificate is unusable."""


class DocumentError(NFSeSignerError):
    """Problems with the XML document handed to the signer."""


class ParseError(DocumentError):
    """Input XML is not well-formed or cannot be canonicalized."""


class ElementNotFoundError(DocumentError):
    """A schema-required element is missing from the document."""

    def __init__(self, element_name: str, detail: str = ""):
        self.element_name = element_name
        message = f"{element_name} element not found"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class DuplicateIdError(DocumentError):
    """Mais de um elemento carrega o Id referenciado pela assinatura."""

    def __init__(self, element_id: str, count: int):
        self.element_id = element_id
        self.count = count
        super().__init__(f"Id '{element_id}' is not unique ({count} elements)")


class UnknownDocumentKindError(NFSeSignerError, ValueError):
    """No placement policy for the requested document kind."""


class SigningError(NFSeSignerError):
    """The cryptographic signing operation failed."""
