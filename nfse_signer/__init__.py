"""
nfse_signer - assinatura digital XMLDSIG de documentos NFS-e com certificado A1.
"""

__version__ = "1.0.0"
