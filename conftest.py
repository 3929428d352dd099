"""
Configuração global de testes pytest
"""
import sys
import os
import tempfile

# Adiciona o diretório raiz ao PYTHONPATH ANTES de qualquer outra coisa
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)

# Configura variáveis de ambiente para testes (antes de importar config.py)
_TEST_DIR = tempfile.mkdtemp(prefix="dzamb-tests-")

os.environ.setdefault('ENV', 'test')
os.environ.setdefault('GEMINI_KEY', 'test-key-for-tests')
os.environ.setdefault('SECRET_KEY', 'test-secret-key')
os.environ.setdefault('ADMIN_USERNAME', 'admin')
os.environ.setdefault('ADMIN_PASSWORD', 'admin-test-123')
os.environ.setdefault('RATE_LIMIT_ENABLED', 'false')
os.environ['DATABASE_URL'] = f"sqlite:///{os.path.join(_TEST_DIR, 'test.db')}"
os.environ['UPLOAD_FOLDER'] = os.path.join(_TEST_DIR, 'uploads')
