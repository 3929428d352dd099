"""
Setup script para instalação do DZAMB Previdência.

Permite instalar o projeto em modo editable para desenvolvimento:
    pip install -e ".[test]"

Isso adiciona o projeto ao PYTHONPATH e permite imports como:
    from services.gemini_service import GeminiService
"""

from setuptools import setup, find_namespace_packages

setup(
    name="dzamb-previdencia",
    version="1.0.0",
    description="DZAMB Previdência - Gestão de casos e planejamento previdenciário",
    # sistemas/ não tem __init__.py (namespace package)
    packages=find_namespace_packages(include=[
        "auth", "users", "database", "middleware", "services", "utils",
        "sistemas", "sistemas.*",
    ]),
    py_modules=["main", "config"],
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.110",
        "uvicorn[standard]>=0.27",
        "sqlalchemy>=2.0",
        "pydantic[email]>=2.5",
        "python-jose[cryptography]>=3.3",
        "bcrypt>=4.0",
        "python-dotenv>=1.0",
        "python-multipart>=0.0.9",
        "httpx[http2]>=0.27",
        "structlog>=24.1",
        "slowapi>=0.1.9",
        "pytz>=2024.1",
    ],
    extras_require={
        "postgres": [
            "psycopg2-binary>=2.9",
        ],
        "test": [
            "pytest>=8.0",
        ],
    },
)
