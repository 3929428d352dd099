# sistemas/planejamento/storage.py
"""
Armazenamento local dos PDFs enviados para planejamentos

Os arquivos ficam em UPLOAD_FOLDER/planejamentos/<nome-sanitizado>-<id>.pdf
e o banco guarda apenas o caminho relativo ("planejamentos/<nome>").
"""

import logging
import re
import unicodedata
import uuid
from dataclasses import dataclass
from pathlib import Path

from config import UPLOAD_FOLDER, ALLOWED_MIME_TYPES, MAX_FILE_SIZE

logger = logging.getLogger(__name__)

STORAGE_PREFIX = "planejamentos"


class FileUploadError(Exception):
    """Arquivo recusado (tipo, tamanho) ou não encontrado no armazenamento."""


@dataclass
class UploadedFile:
    filename: str
    original_name: str
    mime_type: str
    size: int
    url: str


def sanitize_filename(filename: str) -> str:
    """
    "Extrato CNIS João.pdf" -> "extrato-cnis-joao-1a2b3c4d.pdf"
    """
    extension = filename.split(".")[-1]
    sem_extensao = re.sub(r"\.[^/.]+$", "", filename)

    nome = unicodedata.normalize("NFD", sem_extensao.lower())
    nome = "".join(c for c in nome if not unicodedata.combining(c))
    nome = re.sub(r"[^a-z0-9]", "-", nome)
    nome = re.sub(r"-+", "-", nome).strip("-")

    unique_id = str(uuid.uuid4()).split("-")[0]
    return f"{nome}-{unique_id}.{extension}"


def validate_file(mime_type: str, size: int):
    if mime_type not in ALLOWED_MIME_TYPES:
        raise FileUploadError(
            f"Tipo de arquivo não permitido. Apenas {', '.join(sorted(ALLOWED_MIME_TYPES))} são aceitos."
        )
    if size > MAX_FILE_SIZE:
        raise FileUploadError(f"Arquivo muito grande. Tamanho máximo: {MAX_FILE_SIZE / 1024 / 1024:.1f}MB.")


def _resolve(storage_key: str) -> Path:
    key = storage_key[len("/storage/"):] if storage_key.startswith("/storage/") else storage_key
    base = Path(UPLOAD_FOLDER).resolve()
    path = (base / key).resolve()
    if base not in path.parents:
        raise FileUploadError(f"Arquivo não encontrado: {storage_key}")
    return path


def save_pdf(content: bytes, original_filename: str, mime_type: str) -> UploadedFile:
    """Valida e grava o PDF. Raises FileUploadError."""
    validate_file(mime_type, len(content))

    nome = sanitize_filename(original_filename or "documento.pdf")
    storage_key = f"{STORAGE_PREFIX}/{nome}"
    destino = _resolve(storage_key)
    destino.parent.mkdir(parents=True, exist_ok=True)
    destino.write_bytes(content)

    logger.info("Arquivo salvo: %s -> %s (%d bytes)", original_filename, storage_key, len(content))
    return UploadedFile(
        filename=nome,
        original_name=original_filename,
        mime_type=mime_type,
        size=len(content),
        url=storage_key,
    )


def read_file(storage_key: str) -> bytes:
    path = _resolve(storage_key)
    if not path.is_file():
        raise FileUploadError(f"Arquivo não encontrado: {storage_key}")
    return path.read_bytes()


def delete_file(storage_key: str):
    """Remove o arquivo, se existir."""
    path = _resolve(storage_key)
    path.unlink(missing_ok=True)
    logger.info("Arquivo removido: %s", storage_key)
