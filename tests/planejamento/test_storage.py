# tests/planejamento/test_storage.py
"""
Testes do armazenamento local de PDFs (sistemas/planejamento/storage.py)
"""

import re

import pytest

from config import MAX_FILE_SIZE, UPLOAD_FOLDER
from sistemas.planejamento.storage import (
    FileUploadError,
    delete_file,
    read_file,
    sanitize_filename,
    save_pdf,
    validate_file,
)


class TestSanitizeFilename:

    def test_remove_acentos_e_espacos(self):
        nome = sanitize_filename("Extrato CNIS João.pdf")
        assert re.match(r"^extrato-cnis-joao-[0-9a-f]{8}\.pdf$", nome)

    def test_colapsa_hifens(self):
        nome = sanitize_filename("--CTPS   (cópia)--.pdf")
        assert nome.startswith("ctps-copia-")

    def test_nomes_iguais_geram_arquivos_diferentes(self):
        assert sanitize_filename("cnis.pdf") != sanitize_filename("cnis.pdf")


class TestValidateFile:

    def test_pdf_aceito(self):
        validate_file("application/pdf", 1024)

    def test_tipo_recusado(self):
        with pytest.raises(FileUploadError, match="Tipo de arquivo não permitido"):
            validate_file("image/png", 10)

    def test_tamanho_maximo(self):
        with pytest.raises(FileUploadError, match="Arquivo muito grande"):
            validate_file("application/pdf", MAX_FILE_SIZE + 1)


class TestSaveAndRead:

    def test_grava_e_le(self):
        salvo = save_pdf(b"%PDF-1.4 teste", "CNIS Maria.pdf", "application/pdf")

        assert salvo.url.startswith("planejamentos/cnis-maria-")
        assert salvo.original_name == "CNIS Maria.pdf"
        assert salvo.size == len(b"%PDF-1.4 teste")
        assert (UPLOAD_FOLDER / salvo.url).is_file()
        assert read_file(salvo.url) == b"%PDF-1.4 teste"

    def test_aceita_prefixo_storage(self):
        salvo = save_pdf(b"%PDF", "a.pdf", "application/pdf")
        assert read_file(f"/storage/{salvo.url}") == b"%PDF"

    def test_arquivo_inexistente(self):
        with pytest.raises(FileUploadError, match="Arquivo não encontrado"):
            read_file("planejamentos/nao-existe.pdf")

    def test_bloqueia_path_traversal(self):
        with pytest.raises(FileUploadError):
            read_file("../../etc/passwd")

    def test_save_valida_tipo(self):
        with pytest.raises(FileUploadError):
            save_pdf(b"x", "foto.png", "image/png")

    def test_delete_file(self):
        salvo = save_pdf(b"%PDF", "ctps.pdf", "application/pdf")

        delete_file(salvo.url)

        assert not (UPLOAD_FOLDER / salvo.url).exists()
        # remover de novo não falha
        delete_file(salvo.url)
