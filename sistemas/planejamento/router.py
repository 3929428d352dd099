# sistemas/planejamento/router.py
"""
Endpoints do Planejamento Previdenciário

Fluxo típico:
1. POST /upload            -> cria o planejamento e analisa o CNIS automaticamente
2. POST /processar         -> IA extrai dadosExtraidos dos documentos
3. POST /{id}/analisar-ata / importar-calculo (contexto opcional)
4. POST /gerar-parecer     -> parecer em Markdown
5. POST /{id}/resumo-executivo
"""

import json
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from sqlalchemy.orm import Session

from auth.dependencies import get_current_active_user
from auth.models import User
from config import MAX_DOCUMENTOS_UPLOAD
from database.connection import get_db
from sistemas.planejamento import ia_service, services
from sistemas.planejamento.competencias import analisar_todos_vinculos, resumir
from sistemas.planejamento.models import (
    AlertaIdentificacao,
    AnaliseCompetencia,
    ChecklistValidacao,
    IdentificacaoCnis,
    Pendencia,
    Planejamento,
    ProblemaRemuneracao,
    TIPOS_DOCUMENTO,
    VinculoCnis,
    DocumentoPlanejamento,
)
from sistemas.planejamento.schemas import (
    AlertaIdentificacaoResponse,
    AnaliseCompetenciaResponse,
    AnalisarAtaRequest,
    AnalisarCnisRequest,
    ChecklistRequest,
    ChecklistResponse,
    CompetenciasResponse,
    DocumentoResponse,
    IdentificacaoResponse,
    InconsistenciaResponse,
    ObservacoesRequest,
    ParecerRequest,
    PendenciaResponse,
    PendenciaUpdate,
    PlanejamentoCreate,
    PlanejamentoDetalhe,
    PlanejamentoResponse,
    PlanejamentoUpdate,
    ProblemaRemuneracaoResponse,
    ProcessarRequest,
    RemuneracaoResponse,
    VinculoComContribuicoes,
    VinculoResponse,
)
from sistemas.planejamento.storage import delete_file, save_pdf, validate_file
from utils.rate_limit import limiter, LIMITS
from utils.timezone import get_utc_now

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/planejamento",
    tags=["Planejamento Previdenciário"],
    dependencies=[Depends(get_current_active_user)],
)


def _erro_ia(e: Exception, contexto: str) -> HTTPException:
    logger.exception("Erro ao %s: %s", contexto, e)
    return HTTPException(status_code=500, detail=str(e) or f"Erro ao {contexto}")


def _remover_arquivos(salvos):
    """Apaga do disco os PDFs de um upload que não chegou ao banco."""
    for salvo in salvos:
        try:
            delete_file(salvo.url)
        except OSError as e:
            logger.warning("Não foi possível remover %s: %s", salvo.url, e)


# ============================================
# Upload e provedores
# ============================================

@router.post("/upload", status_code=status.HTTP_201_CREATED)
@limiter.limit(LIMITS["upload"])
async def upload_documentos(
    request: Request,
    documentos: Optional[List[UploadFile]] = File(None),
    cliente_nome: Optional[str] = Form(None, alias="clienteNome"),
    cliente_cpf: Optional[str] = Form(None, alias="clienteCpf"),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    """
    Recebe de 1 a 10 PDFs. O tipo de cada documento vem do nome do arquivo
    (CTPS, PPP, FGTS; os demais são tratados como CNIS).

    Havendo CNIS, a análise detalhada roda em seguida; se falhar, o upload
    continua válido e a análise pode ser refeita em /{id}/analisar-cnis.
    """
    if not documentos:
        raise HTTPException(
            status_code=400,
            detail="Nenhum arquivo enviado. Por favor, envie ao menos um documento PDF.",
        )
    if len(documentos) > MAX_DOCUMENTOS_UPLOAD:
        raise HTTPException(
            status_code=400,
            detail=f"Máximo de {MAX_DOCUMENTOS_UPLOAD} documentos por envio.",
        )
    if not cliente_nome or not cliente_cpf:
        raise HTTPException(status_code=400, detail="clienteNome e clienteCpf são obrigatórios")

    conteudos = []
    for arquivo in documentos:
        conteudo = await arquivo.read()
        validate_file(arquivo.content_type, len(conteudo))
        conteudos.append((arquivo, conteudo))

    salvos = [save_pdf(conteudo, arquivo.filename, arquivo.content_type) for arquivo, conteudo in conteudos]
    try:
        planejamento, documento_cnis = services.registrar_upload(
            db, current_user.id, cliente_nome, cliente_cpf, salvos,
        )
    except Exception:
        db.rollback()
        _remover_arquivos(salvos)
        raise

    cnis_analisado = False
    if documento_cnis is not None:
        logger.info("CNIS detectado no planejamento %s, iniciando análise automática", planejamento.id)
        try:
            await services.analisar_cnis(db, planejamento, documento_cnis)
            cnis_analisado = True
        except Exception as e:
            # O upload não falha; a análise pode ser refeita manualmente
            db.rollback()
            logger.warning("Análise automática do CNIS falhou (planejamento %s): %s", planejamento.id, e)

    return {
        "message": "Documentos enviados com sucesso",
        "planejamentoId": planejamento.id,
        "filesUploaded": len(salvos),
        "cnisAnalisado": cnis_analisado,
    }


@router.get("/providers")
async def listar_provedores():
    available = ia_service.get_available_providers()
    return {
        "available": available,
        "default": ia_service.PROVEDOR_PADRAO,
        "configured": len(available) > 0,
    }


# ============================================
# IA: processamento, parecer, ata, cálculo, resumo
# ============================================

@router.post("/processar")
@limiter.limit(LIMITS["ai"])
async def processar(request: Request, dados: ProcessarRequest, db: Session = Depends(get_db)):
    if not dados.planejamento_id:
        raise HTTPException(status_code=400, detail="planejamentoId é obrigatório")

    planejamento = services.get_planejamento_or_404(db, dados.planejamento_id)
    if planejamento.status in ("processed", "parecer_gerado"):
        raise HTTPException(status_code=400, detail="Este planejamento já foi processado")
    if not planejamento.documentos:
        raise HTTPException(status_code=400, detail="Nenhum documento encontrado para processar")

    try:
        dados_extraidos = await services.processar_documentos(db, planejamento, dados.provider)
    except Exception as e:
        raise _erro_ia(e, "processar documentos com IA")

    return {"message": "Documentos processados com sucesso", "dados": dados_extraidos}


@router.post("/gerar-parecer")
@limiter.limit(LIMITS["ai"])
async def gerar_parecer(request: Request, dados: ProcessarRequest, db: Session = Depends(get_db)):
    if not dados.planejamento_id:
        raise HTTPException(status_code=400, detail="planejamentoId é obrigatório")

    planejamento = services.get_planejamento_or_404(db, dados.planejamento_id)
    if not planejamento.dados_extraidos:
        raise HTTPException(
            status_code=400,
            detail="Documentos ainda não foram processados. Execute /processar primeiro.",
        )

    if planejamento.status == "parecer_gerado" and planejamento.parecer_gerado:
        return {"message": "Parecer já foi gerado anteriormente", "parecer": planejamento.parecer_gerado}

    try:
        parecer = await ia_service.gerar_parecer(
            json.loads(planejamento.dados_extraidos),
            services.contexto_parecer(planejamento),
            provider=dados.provider,
        )
    except Exception as e:
        raise _erro_ia(e, "gerar parecer com IA")

    planejamento.parecer_gerado = parecer
    planejamento.status = "parecer_gerado"
    db.commit()
    return {"message": "Parecer gerado com sucesso", "parecer": parecer}


@router.post("/{planejamento_id}/analisar-ata")
@limiter.limit(LIMITS["ai"])
async def analisar_ata(
    request: Request,
    planejamento_id: str,
    dados: AnalisarAtaRequest,
    db: Session = Depends(get_db),
):
    planejamento = services.get_planejamento_or_404(db, planejamento_id)
    if not dados.texto_ata:
        raise HTTPException(status_code=400, detail="textoAta é obrigatório")

    try:
        resumo = await ia_service.analisar_ata(dados.texto_ata)
    except Exception as e:
        raise _erro_ia(e, "analisar ata com IA")

    planejamento.resumo_ata = resumo
    db.commit()
    return {"message": "Ata analisada com sucesso", "resumo": resumo}


@router.post("/{planejamento_id}/importar-calculo")
@limiter.limit(LIMITS["ai"])
async def importar_calculo(
    request: Request,
    planejamento_id: str,
    relatorio: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
):
    planejamento = services.get_planejamento_or_404(db, planejamento_id)
    if relatorio is None:
        raise HTTPException(status_code=400, detail="Arquivo PDF do relatório é obrigatório")

    conteudo = await relatorio.read()
    validate_file(relatorio.content_type, len(conteudo))

    try:
        dados_calculo = await ia_service.importar_calculo(conteudo)
    except Exception as e:
        raise _erro_ia(e, "importar cálculo externo")

    planejamento.dados_calculo_externo = dados_calculo
    db.commit()
    return {"message": "Relatório de cálculo importado com sucesso", "dados": dados_calculo}


@router.post("/{planejamento_id}/resumo-executivo")
@limiter.limit(LIMITS["ai"])
async def resumo_executivo(request: Request, planejamento_id: str, db: Session = Depends(get_db)):
    planejamento = services.get_planejamento_or_404(db, planejamento_id)
    if not planejamento.parecer_gerado:
        raise HTTPException(status_code=400, detail="Parecer ainda não foi gerado. Gere o parecer primeiro.")

    try:
        resumo = await ia_service.gerar_resumo_executivo(planejamento.parecer_gerado)
    except Exception as e:
        raise _erro_ia(e, "gerar resumo executivo")

    planejamento.resumo_executivo = resumo
    db.commit()
    return {"message": "Resumo executivo gerado com sucesso", "resumo": resumo}


# ============================================
# CRUD
# ============================================

@router.get("", response_model=List[PlanejamentoDetalhe])
async def listar_planejamentos(db: Session = Depends(get_db)):
    """Planejamentos ativos (arquivados ficam de fora), mais recentes primeiro."""
    return (
        db.query(Planejamento)
        .filter(Planejamento.status != "arquivado")
        .order_by(Planejamento.created_at.desc())
        .all()
    )


@router.post("", response_model=PlanejamentoResponse, status_code=status.HTTP_201_CREATED)
async def criar_planejamento(
    dados: PlanejamentoCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    if not dados.nome_cliente or not dados.cpf_cliente:
        raise HTTPException(status_code=400, detail="nomeCliente e cpfCliente são obrigatórios")

    planejamento = Planejamento(
        user_id=current_user.id,
        cliente_nome=dados.nome_cliente,
        cliente_cpf=dados.cpf_cliente,
        status="rascunho",
    )
    db.add(planejamento)
    db.commit()
    db.refresh(planejamento)
    return planejamento


@router.get("/{planejamento_id}", response_model=PlanejamentoDetalhe)
async def obter_planejamento(planejamento_id: str, db: Session = Depends(get_db)):
    return services.get_planejamento_or_404(db, planejamento_id)


@router.post("/{planejamento_id}/upload", status_code=status.HTTP_201_CREATED)
@limiter.limit(LIMITS["upload"])
async def upload_documento(
    request: Request,
    planejamento_id: str,
    file: Optional[UploadFile] = File(None),
    tipo_documento: Optional[str] = Form(None, alias="tipoDocumento"),
    db: Session = Depends(get_db),
):
    services.get_planejamento_or_404(db, planejamento_id)
    if file is None:
        raise HTTPException(status_code=400, detail="Arquivo PDF é obrigatório")
    if not tipo_documento:
        raise HTTPException(status_code=400, detail="tipoDocumento é obrigatório")

    tipo_documento = tipo_documento.upper()
    if tipo_documento not in TIPOS_DOCUMENTO:
        raise HTTPException(
            status_code=400,
            detail=f"tipoDocumento inválido. Use um de: {', '.join(TIPOS_DOCUMENTO)}",
        )

    conteudo = await file.read()
    salvo = save_pdf(conteudo, file.filename, file.content_type)

    documento = DocumentoPlanejamento(
        planejamento_id=planejamento_id,
        nome_arquivo=salvo.filename,
        tipo_documento=tipo_documento,
        arquivo_url=salvo.url,
    )
    db.add(documento)
    try:
        db.commit()
    except Exception:
        db.rollback()
        _remover_arquivos([salvo])
        raise
    db.refresh(documento)
    return {
        "message": "Documento enviado com sucesso",
        "documento": DocumentoResponse.model_validate(documento),
    }


@router.patch("/{planejamento_id}")
async def atualizar_planejamento(planejamento_id: str, dados: PlanejamentoUpdate, db: Session = Depends(get_db)):
    """Alterar nome ou CPF do cliente refaz a validação da identificação do CNIS."""
    planejamento = services.get_planejamento_or_404(db, planejamento_id)

    if dados.dados_extraidos:
        if isinstance(dados.dados_extraidos, str):
            # Aceita JSON já serializado, desde que seja um objeto
            try:
                valido = isinstance(json.loads(dados.dados_extraidos), dict)
            except ValueError:
                valido = False
            if not valido:
                raise HTTPException(status_code=400, detail="dadosExtraidos inválido")
            planejamento.dados_extraidos = dados.dados_extraidos
        else:
            planejamento.dados_extraidos = json.dumps(dados.dados_extraidos, ensure_ascii=False)
    if dados.parecer_gerado:
        planejamento.parecer_gerado = dados.parecer_gerado

    identidade_alterada = False
    if dados.cliente_nome is not None:
        planejamento.cliente_nome = dados.cliente_nome
        identidade_alterada = True
    if dados.cliente_cpf is not None:
        planejamento.cliente_cpf = dados.cliente_cpf
        identidade_alterada = True

    if identidade_alterada:
        db.flush()
        services.revalidar_identificacao(db, planejamento)

    db.commit()
    db.refresh(planejamento)
    return {
        "message": "Planejamento atualizado com sucesso",
        "planejamento": PlanejamentoResponse.model_validate(planejamento),
    }


@router.post("/{planejamento_id}/parecer")
async def salvar_parecer(planejamento_id: str, dados: ParecerRequest, db: Session = Depends(get_db)):
    planejamento = services.get_planejamento_or_404(db, planejamento_id)
    planejamento.parecer_gerado = dados.parecer
    if dados.parecer:
        planejamento.status = "parecer_gerado"
    db.commit()
    return {"message": "Parecer salvo com sucesso"}


@router.delete("/{planejamento_id}")
async def excluir_planejamento(planejamento_id: str, db: Session = Depends(get_db)):
    """Soft delete: o planejamento fica arquivado."""
    planejamento = services.get_planejamento_or_404(db, planejamento_id)
    planejamento.status = "arquivado"
    db.commit()
    logger.info("Planejamento %s arquivado", planejamento_id)
    return {"message": "Planejamento excluído com sucesso"}


# ============================================
# CNIS e cruzamento de documentos
# ============================================

@router.post("/{planejamento_id}/analisar-cnis")
@limiter.limit(LIMITS["ai"])
async def analisar_cnis(
    request: Request,
    planejamento_id: str,
    dados: Optional[AnalisarCnisRequest] = None,
    db: Session = Depends(get_db),
):
    planejamento = services.get_planejamento_or_404(db, planejamento_id)

    documento_id = dados.documento_id if dados else None
    if documento_id:
        documento = next((d for d in planejamento.documentos if d.id == documento_id), None)
    else:
        documento = next((d for d in planejamento.documentos if d.tipo_documento == "CNIS"), None)

    if documento is None:
        raise HTTPException(
            status_code=400,
            detail="Nenhum documento CNIS encontrado. Faça upload de um CNIS primeiro.",
        )

    try:
        return await services.analisar_cnis(db, planejamento, documento)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        raise _erro_ia(e, "analisar CNIS")


@router.post("/{planejamento_id}/cruzar-documento")
@limiter.limit(LIMITS["ai"])
async def cruzar_documento(
    request: Request,
    planejamento_id: str,
    documento: Optional[UploadFile] = File(None),
    tipo_documento: Optional[str] = Form(None, alias="tipoDocumento"),
    db: Session = Depends(get_db),
):
    planejamento = services.get_planejamento_or_404(db, planejamento_id)
    if documento is None:
        raise HTTPException(status_code=400, detail="Arquivo PDF do documento é obrigatório")
    if not tipo_documento:
        raise HTTPException(status_code=400, detail="tipoDocumento é obrigatório (CTPS, PPP, FGTS, etc.)")

    conteudo = await documento.read()
    validate_file(documento.content_type, len(conteudo))

    try:
        return await services.cruzar_documento(db, planejamento, conteudo, tipo_documento)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        raise _erro_ia(e, "cruzar documento")


@router.get("/{planejamento_id}/vinculos", response_model=List[VinculoComContribuicoes])
async def listar_vinculos(planejamento_id: str, db: Session = Depends(get_db)):
    services.get_planejamento_or_404(db, planejamento_id)
    return services.listar_vinculos(db, planejamento_id)


@router.put("/{planejamento_id}/vinculos/{vinculo_id}/observacoes", response_model=VinculoResponse)
async def atualizar_observacoes_vinculo(
    planejamento_id: str,
    vinculo_id: str,
    dados: ObservacoesRequest,
    db: Session = Depends(get_db),
):
    services.get_planejamento_or_404(db, planejamento_id)
    if not isinstance(dados.observacoes, str):
        raise HTTPException(status_code=400, detail="Observações deve ser uma string")

    vinculo = (
        db.query(VinculoCnis)
        .filter(VinculoCnis.id == vinculo_id, VinculoCnis.planejamento_id == planejamento_id)
        .first()
    )
    if not vinculo:
        raise HTTPException(status_code=404, detail="Vínculo não encontrado")

    vinculo.observacoes = dados.observacoes
    db.commit()
    db.refresh(vinculo)
    return vinculo


@router.get("/{planejamento_id}/competencias", response_model=CompetenciasResponse)
@router.get("/{planejamento_id}/analisar-competencias", response_model=CompetenciasResponse)
async def analisar_competencias(planejamento_id: str, db: Session = Depends(get_db)):
    """Usa a análise gravada pelo pipeline do CNIS; sem ela, calcula na hora."""
    services.get_planejamento_or_404(db, planejamento_id)

    salvas = (
        db.query(AnaliseCompetencia)
        .filter(AnaliseCompetencia.planejamento_id == planejamento_id)
        .order_by(AnaliseCompetencia.vinculo_sequencia)
        .all()
    )
    if salvas:
        analises, source = salvas, "database"
    else:
        vinculos = services.listar_vinculos(db, planejamento_id)
        if not vinculos:
            raise HTTPException(status_code=400, detail="Nenhum vínculo encontrado. Analise o CNIS primeiro.")
        competencias = {v.id: [c.competencia for c in v.contribuicoes] for v in vinculos}
        analises, source = analisar_todos_vinculos(vinculos, competencias), "calculated"

    return CompetenciasResponse(
        analises=[AnaliseCompetenciaResponse.model_validate(a) for a in analises],
        resumo=resumir(analises),
        source=source,
    )


@router.get("/{planejamento_id}/inconsistencias", response_model=List[InconsistenciaResponse])
async def listar_inconsistencias(planejamento_id: str, db: Session = Depends(get_db)):
    services.get_planejamento_or_404(db, planejamento_id)
    return services.listar_inconsistencias(db, planejamento_id)


# ============================================
# Pendências
# ============================================

@router.get("/{planejamento_id}/pendencias", response_model=List[PendenciaResponse])
async def listar_pendencias(planejamento_id: str, db: Session = Depends(get_db)):
    services.get_planejamento_or_404(db, planejamento_id)
    return services.listar_pendencias(db, planejamento_id)


@router.patch("/{planejamento_id}/pendencias/{pendencia_id}")
async def atualizar_pendencia(
    planejamento_id: str,
    pendencia_id: str,
    dados: PendenciaUpdate,
    db: Session = Depends(get_db),
):
    services.get_planejamento_or_404(db, planejamento_id)
    pendencia = (
        db.query(Pendencia)
        .filter(Pendencia.id == pendencia_id, Pendencia.planejamento_id == planejamento_id)
        .first()
    )
    if not pendencia:
        raise HTTPException(status_code=404, detail="Pendência não encontrada")

    if dados.status:
        pendencia.status = dados.status
    if dados.observacoes:
        pendencia.observacoes = dados.observacoes
    if dados.status == "resolvida":
        pendencia.resolvida_em = get_utc_now()

    db.commit()
    db.refresh(pendencia)
    return {
        "message": "Pendência atualizada com sucesso",
        "pendencia": PendenciaResponse.model_validate(pendencia),
    }


# ============================================
# Remunerações, identificação e checklist
# ============================================

@router.get("/{planejamento_id}/problemas-remuneracao", response_model=List[ProblemaRemuneracaoResponse])
async def listar_problemas_remuneracao(planejamento_id: str, db: Session = Depends(get_db)):
    services.get_planejamento_or_404(db, planejamento_id)
    return (
        db.query(ProblemaRemuneracao)
        .filter(ProblemaRemuneracao.planejamento_id == planejamento_id)
        .order_by(ProblemaRemuneracao.created_at)
        .all()
    )


@router.get("/{planejamento_id}/remuneracoes", response_model=List[RemuneracaoResponse])
async def listar_remuneracoes(planejamento_id: str, db: Session = Depends(get_db)):
    services.get_planejamento_or_404(db, planejamento_id)
    return services.listar_remuneracoes(db, planejamento_id)


@router.get("/{planejamento_id}/identificacao", response_model=Optional[IdentificacaoResponse])
async def obter_identificacao(planejamento_id: str, db: Session = Depends(get_db)):
    services.get_planejamento_or_404(db, planejamento_id)
    return (
        db.query(IdentificacaoCnis)
        .filter(IdentificacaoCnis.planejamento_id == planejamento_id)
        .first()
    )


@router.get("/{planejamento_id}/alertas-identificacao", response_model=List[AlertaIdentificacaoResponse])
async def listar_alertas_identificacao(planejamento_id: str, db: Session = Depends(get_db)):
    services.get_planejamento_or_404(db, planejamento_id)
    return (
        db.query(AlertaIdentificacao)
        .filter(AlertaIdentificacao.planejamento_id == planejamento_id)
        .order_by(AlertaIdentificacao.created_at)
        .all()
    )


@router.get("/{planejamento_id}/checklist", response_model=Optional[ChecklistResponse])
async def obter_checklist(planejamento_id: str, db: Session = Depends(get_db)):
    services.get_planejamento_or_404(db, planejamento_id)
    return (
        db.query(ChecklistValidacao)
        .filter(ChecklistValidacao.planejamento_id == planejamento_id)
        .first()
    )


@router.post("/{planejamento_id}/checklist", response_model=ChecklistResponse)
async def atualizar_checklist(planejamento_id: str, dados: ChecklistRequest, db: Session = Depends(get_db)):
    services.get_planejamento_or_404(db, planejamento_id)
    return services.atualizar_checklist(db, planejamento_id, dados.pilar, dados.valor)
