# database/init_db.py
"""
Inicialização do banco de dados e seed do usuário admin
"""

import time
from sqlalchemy.exc import OperationalError
from sqlalchemy import text
from database.connection import engine, Base, SessionLocal
from auth.models import User
from auth.security import get_password_hash
from config import ADMIN_USERNAME, ADMIN_PASSWORD, ADMIN_EMAIL

# Importa modelos para criar tabelas
from sistemas.casos.models import Client, Case, Activity, Comment, Tag  # noqa: F401
from sistemas.crm.models import PipelineStage, Deal  # noqa: F401
from sistemas.chat.models import Conversation, Message  # noqa: F401
from sistemas.notificacoes.models import Notificacao  # noqa: F401
from sistemas.planejamento import models as planejamento_models  # noqa: F401
from sistemas.crm.services import seed_pipeline_stages


def wait_for_db(max_retries=10, delay=3):
    """Aguarda o banco de dados ficar disponível"""
    for attempt in range(max_retries):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            print("✅ Conexão com banco de dados estabelecida!")
            return True
        except OperationalError as e:
            if attempt < max_retries - 1:
                print(f"⏳ Aguardando banco de dados... tentativa {attempt + 1}/{max_retries}")
                time.sleep(delay)
            else:
                print(f"❌ Não foi possível conectar ao banco após {max_retries} tentativas")
                raise e
    return False


def create_tables():
    """Cria todas as tabelas no banco de dados"""
    Base.metadata.create_all(bind=engine)
    print("✅ Tabelas criadas com sucesso!")


def seed_admin():
    """Cria o usuário administrador inicial se não existir"""
    db = SessionLocal()
    try:
        existing_admin = db.query(User).filter(User.username == ADMIN_USERNAME).first()

        if not existing_admin:
            admin = User(
                username=ADMIN_USERNAME,
                full_name="Administrador",
                email=ADMIN_EMAIL,
                hashed_password=get_password_hash(ADMIN_PASSWORD),
                role="admin",
                must_change_password=True,
                is_active=True
            )
            db.add(admin)
            db.commit()
            print(f"✅ Usuário admin '{ADMIN_USERNAME}' criado com sucesso!")
            print(f"   ⚠️  Altere a senha no primeiro acesso!")
        else:
            print(f"ℹ️  Usuário admin '{ADMIN_USERNAME}' já existe.")
    finally:
        db.close()


def seed_funil():
    """Estágios padrão do funil de vendas (CRM)"""
    db = SessionLocal()
    try:
        criados = seed_pipeline_stages(db)
        if criados:
            print(f"✅ {criados} estágios do funil criados")
    finally:
        db.close()


def init_database():
    """Inicializa o banco de dados completo"""
    print("🔧 Inicializando banco de dados...")
    wait_for_db()  # Aguarda o banco ficar disponível
    create_tables()
    seed_admin()
    seed_funil()
    print("✅ Banco de dados inicializado!")


if __name__ == "__main__":
    init_database()
