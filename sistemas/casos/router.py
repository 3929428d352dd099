# sistemas/casos/router.py
"""
Endpoints de clientes, casos, atividades, comentários e tags
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from auth.dependencies import get_current_active_user
from auth.models import User
from database.connection import get_db
from sistemas.casos.models import Activity, Case, Client, Comment, Tag
from sistemas.casos.schemas import (
    ActivityCreate, ActivityResponse,
    CaseCreate, CaseResponse, CaseUpdate,
    ClientCreate, ClientResponse, ClientUpdate,
    CommentCreate, CommentResponse,
    TagCreate, TagResponse,
)
from sistemas.casos import services

router = APIRouter(prefix="/api", tags=["Clientes e Casos"], dependencies=[Depends(get_current_active_user)])


# ============================================
# Clientes
# ============================================

@router.get("/clients", response_model=List[ClientResponse])
async def listar_clientes(db: Session = Depends(get_db)):
    return db.query(Client).order_by(Client.nome).all()


@router.get("/clients/{client_id}", response_model=ClientResponse)
async def obter_cliente(client_id: str, db: Session = Depends(get_db)):
    return services.get_client_or_404(db, client_id)


@router.post("/clients", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def criar_cliente(dados: ClientCreate, db: Session = Depends(get_db)):
    if services.cpf_em_uso(db, dados.cpf):
        raise HTTPException(status_code=400, detail="CPF já cadastrado")

    cliente = Client(**dados.model_dump())
    db.add(cliente)
    db.commit()
    db.refresh(cliente)
    return cliente


@router.patch("/clients/{client_id}", response_model=ClientResponse)
async def atualizar_cliente(client_id: str, dados: ClientUpdate, db: Session = Depends(get_db)):
    cliente = services.get_client_or_404(db, client_id)
    update_data = dados.model_dump(exclude_unset=True)

    if update_data.get("cpf") and services.cpf_em_uso(db, update_data["cpf"], ignorar_id=cliente.id):
        raise HTTPException(status_code=400, detail="CPF já cadastrado")

    for field, value in update_data.items():
        setattr(cliente, field, value)
    db.commit()
    db.refresh(cliente)
    return cliente


@router.delete("/clients/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def excluir_cliente(client_id: str, db: Session = Depends(get_db)):
    """Exclui o cliente com seus casos, deals e conversas."""
    cliente = services.get_client_or_404(db, client_id)
    db.delete(cliente)
    db.commit()


@router.get("/clients/{client_id}/cases", response_model=List[CaseResponse])
async def listar_casos_do_cliente(client_id: str, db: Session = Depends(get_db)):
    services.get_client_or_404(db, client_id)
    return (
        db.query(Case)
        .filter(Case.cliente_id == client_id)
        .order_by(Case.data_ultima_atualizacao.desc())
        .all()
    )


# ============================================
# Casos
# ============================================

@router.get("/cases", response_model=List[CaseResponse])
async def listar_casos(db: Session = Depends(get_db)):
    return db.query(Case).order_by(Case.data_ultima_atualizacao.desc()).all()


@router.get("/cases/{case_id}", response_model=CaseResponse)
async def obter_caso(case_id: str, db: Session = Depends(get_db)):
    return services.get_case_or_404(db, case_id)


@router.post("/cases", response_model=CaseResponse, status_code=status.HTTP_201_CREATED)
async def criar_caso(
    dados: CaseCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    return services.criar_caso(db, dados.model_dump(), current_user.id)


@router.patch("/cases/{case_id}", response_model=CaseResponse)
async def atualizar_caso(
    case_id: str,
    dados: CaseUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    caso = services.get_case_or_404(db, case_id)
    return services.atualizar_caso(db, caso, dados.model_dump(exclude_unset=True), current_user.id)


# ============================================
# Atividades
# ============================================

@router.get("/cases/{case_id}/activities", response_model=List[ActivityResponse])
async def listar_atividades(case_id: str, db: Session = Depends(get_db)):
    services.get_case_or_404(db, case_id)
    return (
        db.query(Activity)
        .filter(Activity.case_id == case_id)
        .order_by(Activity.timestamp.desc())
        .all()
    )


@router.post("/cases/{case_id}/activities", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
async def criar_atividade(
    case_id: str,
    dados: ActivityCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    services.get_case_or_404(db, case_id)
    atividade = services.registrar_atividade(
        db, case_id, dados.tipo, dados.descricao,
        user_id=current_user.id, metadados=dados.metadados,
    )
    db.commit()
    db.refresh(atividade)
    return atividade


# ============================================
# Comentários
# ============================================

@router.get("/cases/{case_id}/comments", response_model=List[CommentResponse])
async def listar_comentarios(case_id: str, db: Session = Depends(get_db)):
    services.get_case_or_404(db, case_id)
    return (
        db.query(Comment)
        .filter(Comment.case_id == case_id)
        .order_by(Comment.timestamp.desc())
        .all()
    )


@router.post("/cases/{case_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def criar_comentario(
    case_id: str,
    dados: CommentCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    caso = services.get_case_or_404(db, case_id)
    return services.adicionar_comentario(db, caso, dados.conteudo, dados.is_internal, current_user.id)


# ============================================
# Tags
# ============================================

@router.get("/tags", response_model=List[TagResponse])
async def listar_tags(db: Session = Depends(get_db)):
    return db.query(Tag).order_by(Tag.nome).all()


@router.post("/tags", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
async def criar_tag(dados: TagCreate, db: Session = Depends(get_db)):
    if db.query(Tag).filter(Tag.nome == dados.nome).first():
        raise HTTPException(status_code=400, detail="Tag já existe")

    tag = Tag(**dados.model_dump())
    db.add(tag)
    db.commit()
    db.refresh(tag)
    return tag
