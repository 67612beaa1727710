"""Tests for structured logging: SigningContextFilter, signer context and LOGGING config."""

import logging
from unittest.mock import patch

import pytest

from nfse_signer import settings
from nfse_signer.conftest import CN_TESTE
from nfse_signer.core.logging_filters import (
    SigningContextFilter,
    clear_signing_context,
    current_signing_context,
    set_signing_context,
)
from nfse_signer.xmldsig.exceptions import ParseError
from nfse_signer.xmldsig.placement import DocumentKind
from nfse_signer.xmldsig.signer import sign


def _filtered_record():
    record = logging.LogRecord("test", logging.INFO, "", 0, "msg", (), None)
    SigningContextFilter().filter(record)
    return record


class TestSigningContextFilter:
    def test_campos_padrao_fora_de_assinatura(self):
        clear_signing_context()
        record = _filtered_record()
        assert record.document_kind == "-"
        assert record.reference_id == "-"
        assert record.certificate_subject == "-"

    def test_campos_do_contexto(self):
        set_signing_context(
            document_kind="rps",
            reference_id="InfDeclaracaoPrestacaoServico",
            certificate_subject="CN=EMPRESA",
        )
        try:
            record = _filtered_record()
        finally:
            clear_signing_context()
        assert record.document_kind == "rps"
        assert record.reference_id == "InfDeclaracaoPrestacaoServico"
        assert record.certificate_subject == "CN=EMPRESA"

    def test_clear_limpa_todos_os_campos(self):
        set_signing_context(document_kind="x", reference_id="y", certificate_subject="z")
        clear_signing_context()
        assert current_signing_context() == {
            "document_kind": "-",
            "reference_id": "-",
            "certificate_subject": "-",
        }

    def test_filtro_nao_descarta_registros(self):
        record = logging.LogRecord("test", logging.INFO, "", 0, "msg", (), None)
        assert SigningContextFilter().filter(record) is True


class TestSignerContext:
    def test_contexto_durante_a_assinatura(self, rps_xml, identity):
        captured = {}

        def capture(*args, **kwargs):
            captured.update(current_signing_context())

        with patch("nfse_signer.xmldsig.signer.logger.info", side_effect=capture):
            sign(rps_xml, DocumentKind.RPS, identity)

        assert captured["document_kind"] == "rps"
        assert captured["reference_id"] == "InfDeclaracaoPrestacaoServico"
        assert f"CN={CN_TESTE}" in captured["certificate_subject"]

    def test_contexto_limpo_apos_falha(self, identity):
        with pytest.raises(ParseError):
            sign("<quebrado>", DocumentKind.GENERIC, identity)
        assert _filtered_record().document_kind == "-"
        assert _filtered_record().certificate_subject == "-"

    def test_sucesso_registrado(self, rps_xml, identity, caplog):
        with caplog.at_level(logging.INFO, logger="nfse_signer"):
            sign(rps_xml, DocumentKind.RPS, identity)
        assert "XML assinado com sucesso (ref: #InfDeclaracaoPrestacaoServico)" in caplog.text


class TestLoggingConfig:
    def test_dictconfig_applies(self):
        with patch("nfse_signer.settings.logging.config.dictConfig") as mock_config:
            settings.configure_logging()
        mock_config.assert_called_once_with(settings.LOGGING)

    def test_custom_config(self):
        custom = {"version": 1}
        with patch("nfse_signer.settings.logging.config.dictConfig") as mock_config:
            settings.configure_logging(custom)
        mock_config.assert_called_once_with(custom)

    def test_verbose_formatter_uses_context_fields(self):
        fmt = settings.LOGGING["formatters"]["verbose"]["format"]
        assert "{document_kind}" in fmt
        assert "{reference_id}" in fmt
        assert "{certificate_subject}" in fmt
        assert settings.LOGGING["handlers"]["console"]["filters"] == ["signing_context"]


class TestSettingsDefaults:
    def test_namespace_padrao(self):
        assert settings.BETHA_NAMESPACE == "http://www.betha.com.br/e-nota-contribuinte-ws"

    def test_revalidar_validade_e_bool(self):
        assert isinstance(settings.NFSE_REVALIDAR_VALIDADE, bool)
