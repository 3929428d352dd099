# sistemas/crm/router.py
"""
Endpoints do funil comercial: estágios e deals
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from auth.dependencies import get_current_active_user
from database.connection import get_db
from sistemas.casos.services import get_client_or_404
from sistemas.crm.models import Deal, PipelineStage
from sistemas.crm.schemas import (
    DealCreate, DealResponse, DealUpdate,
    PipelineStageCreate, PipelineStageResponse, PipelineStageUpdate,
)

router = APIRouter(prefix="/api", tags=["CRM"], dependencies=[Depends(get_current_active_user)])


def _get_stage_or_404(db: Session, stage_id: str) -> PipelineStage:
    stage = db.query(PipelineStage).filter(PipelineStage.id == stage_id).first()
    if not stage:
        raise HTTPException(status_code=404, detail="Estágio não encontrado")
    return stage


def _get_deal_or_404(db: Session, deal_id: str) -> Deal:
    deal = db.query(Deal).filter(Deal.id == deal_id).first()
    if not deal:
        raise HTTPException(status_code=404, detail="Deal não encontrado")
    return deal


# ============================================
# Estágios
# ============================================

@router.get("/pipeline-stages", response_model=List[PipelineStageResponse])
async def listar_estagios(db: Session = Depends(get_db)):
    return db.query(PipelineStage).order_by(PipelineStage.ordem).all()


@router.post("/pipeline-stages", response_model=PipelineStageResponse, status_code=status.HTTP_201_CREATED)
async def criar_estagio(dados: PipelineStageCreate, db: Session = Depends(get_db)):
    stage = PipelineStage(**dados.model_dump())
    db.add(stage)
    db.commit()
    db.refresh(stage)
    return stage


@router.patch("/pipeline-stages/{stage_id}", response_model=PipelineStageResponse)
async def atualizar_estagio(stage_id: str, dados: PipelineStageUpdate, db: Session = Depends(get_db)):
    stage = _get_stage_or_404(db, stage_id)
    for field, value in dados.model_dump(exclude_unset=True).items():
        setattr(stage, field, value)
    db.commit()
    db.refresh(stage)
    return stage


@router.delete("/pipeline-stages/{stage_id}", status_code=status.HTTP_204_NO_CONTENT)
async def excluir_estagio(stage_id: str, db: Session = Depends(get_db)):
    """Exclui o estágio; os deals nele ficam sem estágio."""
    stage = _get_stage_or_404(db, stage_id)
    for deal in stage.deals:
        deal.stage_id = None
    db.delete(stage)
    db.commit()


# ============================================
# Deals
# ============================================

@router.get("/deals", response_model=List[DealResponse])
async def listar_deals(db: Session = Depends(get_db)):
    return db.query(Deal).order_by(Deal.created_at.desc()).all()


@router.get("/deals/{deal_id}", response_model=DealResponse)
async def obter_deal(deal_id: str, db: Session = Depends(get_db)):
    return _get_deal_or_404(db, deal_id)


@router.post("/deals", response_model=DealResponse, status_code=status.HTTP_201_CREATED)
async def criar_deal(dados: DealCreate, db: Session = Depends(get_db)):
    get_client_or_404(db, dados.cliente_id)
    if dados.stage_id:
        _get_stage_or_404(db, dados.stage_id)

    deal = Deal(**dados.model_dump())
    db.add(deal)
    db.commit()
    db.refresh(deal)
    return deal


@router.patch("/deals/{deal_id}", response_model=DealResponse)
async def atualizar_deal(deal_id: str, dados: DealUpdate, db: Session = Depends(get_db)):
    deal = _get_deal_or_404(db, deal_id)
    update_data = dados.model_dump(exclude_unset=True)
    if update_data.get("stage_id"):
        _get_stage_or_404(db, update_data["stage_id"])

    for field, value in update_data.items():
        setattr(deal, field, value)
    db.commit()
    db.refresh(deal)
    return deal


@router.delete("/deals/{deal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def excluir_deal(deal_id: str, db: Session = Depends(get_db)):
    deal = _get_deal_or_404(db, deal_id)
    db.delete(deal)
    db.commit()
