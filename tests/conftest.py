# tests/conftest.py
"""
Fixtures compartilhadas dos testes do DZAMB Previdência.

O banco é um SQLite temporário (configurado no conftest.py da raiz) e é
recriado a cada teste. Chamadas de IA nunca saem da máquina: os testes
fazem patch das funções de sistemas.planejamento.ia_service.
"""

import os

import pytest
from fastapi.testclient import TestClient

from database.connection import Base, engine, SessionLocal
from database.init_db import seed_admin, seed_funil
from auth.models import User
from auth.security import get_password_hash
from main import app
from utils.rate_limit import limiter

ADMIN_USERNAME = os.environ["ADMIN_USERNAME"]
ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]

# PDF mínimo; o conteúdo só é lido pela IA, que é mockada
PDF_BYTES = b"%PDF-1.4\n1 0 obj<<>>endobj\ntrailer<<>>\n%%EOF"


@pytest.fixture(autouse=True)
def banco_limpo():
    """Recria as tabelas e o admin antes de cada teste."""
    limiter.enabled = False
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    seed_admin()
    seed_funil()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def login(client: TestClient, username: str = ADMIN_USERNAME, password: str = ADMIN_PASSWORD):
    response = client.post("/api/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return response


@pytest.fixture
def auth_client(client):
    """Cliente com sessão do admin (cookie access_token)."""
    login(client)
    return client


@pytest.fixture
def admin_user(db):
    return db.query(User).filter(User.username == ADMIN_USERNAME).first()


@pytest.fixture
def advogado(db):
    user = User(
        username="maria",
        email="maria@dzamb.com.br",
        full_name="Maria Advogada",
        hashed_password=get_password_hash("senha-maria"),
        role="advogado",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def pdf_upload(nome: str = "cnis.pdf", conteudo: bytes = PDF_BYTES):
    return (nome, conteudo, "application/pdf")
