"""
Shared test fixtures for nfse_signer.

Certificates are throw-away self-signed RSA certificates packed into PKCS#12
containers, generated once per test session.
"""

from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

PFX_PASSWORD = "senha123"
BETHA_NS = "http://www.betha.com.br/e-nota-contribuinte-ws"
CN_TESTE = "EMPRESA TESTE LTDA:12345678000199"


def build_certificate(key, *, not_before, not_after, common_name=CN_TESTE):
    name = x509.Name(
        [
            x509.NameAttribute(NameOID.COUNTRY_NAME, "BR"),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, "ICP-Brasil"),
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        ]
    )
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .sign(key, hashes.SHA256())
    )


def build_pfx(key, certificate, password=PFX_PASSWORD) -> bytes:
    encryption = (
        serialization.BestAvailableEncryption(password.encode("utf-8"))
        if password
        else serialization.NoEncryption()
    )
    return pkcs12.serialize_key_and_certificates(
        name=b"certificado-a1",
        key=key,
        cert=certificate,
        cas=None,
        encryption_algorithm=encryption,
    )


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ec_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def certificate(rsa_key):
    now = datetime.now(timezone.utc)
    return build_certificate(
        rsa_key,
        not_before=now - timedelta(days=1),
        not_after=now + timedelta(days=365),
    )


@pytest.fixture(scope="session")
def expired_certificate(rsa_key):
    now = datetime.now(timezone.utc)
    return build_certificate(
        rsa_key,
        not_before=now - timedelta(days=400),
        not_after=now - timedelta(days=1),
    )


@pytest.fixture(scope="session")
def pfx_bytes(rsa_key, certificate):
    """Valid PKCS#12 container protected by PFX_PASSWORD."""
    return build_pfx(rsa_key, certificate)


@pytest.fixture(scope="session")
def expired_pfx_bytes(rsa_key, expired_certificate):
    return build_pfx(rsa_key, expired_certificate)


@pytest.fixture(scope="session")
def identity(pfx_bytes):
    from nfse_signer.xmldsig.certificate_store import load

    return load(pfx_bytes, PFX_PASSWORD)


@pytest.fixture
def signer(identity):
    from nfse_signer.xmldsig.signer import Signer

    return Signer(identity)


@pytest.fixture
def rps_xml():
    """GerarNfseEnvio without Id on InfDeclaracaoPrestacaoServico."""
    return (
        f'<GerarNfseEnvio xmlns="{BETHA_NS}">'
        "<Rps>"
        "<InfDeclaracaoPrestacaoServico>"
        "<Rps>"
        "<IdentificacaoRps><Numero>1</Numero><Serie>A1</Serie><Tipo>1</Tipo></IdentificacaoRps>"
        "<DataEmissao>2026-10-18</DataEmissao>"
        "<Status>1</Status>"
        "</Rps>"
        "<Competencia>2026-10-18</Competencia>"
        "<Servico>"
        "<Valores><ValorServicos>100.00</ValorServicos><Aliquota>2.00</Aliquota></Valores>"
        "<IssRetido>2</IssRetido>"
        "<ItemListaServico>0107</ItemListaServico>"
        "<Discriminacao>Suporte técnico em informática</Discriminacao>"
        "<CodigoMunicipio>4204608</CodigoMunicipio>"
        "<ExigibilidadeISS>1</ExigibilidadeISS>"
        "</Servico>"
        "<Prestador><CpfCnpj><Cnpj>12345678000199</Cnpj></CpfCnpj>"
        "<InscricaoMunicipal>123456</InscricaoMunicipal></Prestador>"
        "<OptanteSimplesNacional>2</OptanteSimplesNacional>"
        "<IncentivoFiscal>2</IncentivoFiscal>"
        "</InfDeclaracaoPrestacaoServico>"
        "</Rps>"
        "</GerarNfseEnvio>"
    )


@pytest.fixture
def cancel_xml():
    """CancelarNfseEnvio without Id on InfPedidoCancelamento."""
    return (
        f'<CancelarNfseEnvio xmlns="{BETHA_NS}">'
        "<Pedido>"
        "<InfPedidoCancelamento>"
        "<IdentificacaoNfse>"
        "<Numero>42</Numero>"
        "<CpfCnpj><Cnpj>12345678000199</Cnpj></CpfCnpj>"
        "<InscricaoMunicipal>123456</InscricaoMunicipal>"
        "<CodigoMunicipio>4204608</CodigoMunicipio>"
        "</IdentificacaoNfse>"
        "<CodigoCancelamento>1</CodigoCancelamento>"
        "</InfPedidoCancelamento>"
        "</Pedido>"
        "</CancelarNfseEnvio>"
    )


@pytest.fixture
def generic_xml():
    return '<?xml version="1.0" encoding="UTF-8"?>\n<Documento><Valor>10.00</Valor></Documento>'
