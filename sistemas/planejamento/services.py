# sistemas/planejamento/services.py
"""
Regras de negócio do Planejamento Previdenciário

O pipeline de análise do CNIS (analisar_cnis) executa, em ordem:
1. Análise do PDF pela IA (identificação, vínculos, contribuições, alertas)
2. Validação da identificação contra o cadastro do cliente
3. Substituição dos vínculos e contribuições
4. Alertas do CNIS viram pendências
5. Análise de competências faltantes
6. Detecção de remunerações problemáticas
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.orm import Session

from sistemas.notificacoes.services import notificar
from sistemas.planejamento import ia_service
from sistemas.planejamento.competencias import analisar_todos_vinculos
from sistemas.planejamento.identificacao import validar_identificacao
from sistemas.planejamento.models import (
    AlertaIdentificacao,
    AnaliseCompetencia,
    ChecklistValidacao,
    ContribuicaoCnis,
    DocumentoPlanejamento,
    IdentificacaoCnis,
    Inconsistencia,
    Pendencia,
    Planejamento,
    ProblemaRemuneracao,
    VinculoCnis,
)
from sistemas.planejamento.remuneracoes import detectar_todos_vinculos
from sistemas.planejamento.storage import UploadedFile, read_file
from utils.timezone import get_utc_now

logger = logging.getLogger(__name__)

ORDEM_GRAVIDADE = {"critica": 0, "alta": 1, "media": 2, "baixa": 3}
ORDEM_PRIORIDADE = {"urgente": 0, "alta": 1, "media": 2, "baixa": 3}

TIPOS_PENDENCIA_IDENTIFICACAO = ("identificacao_divergente", "identificacao_ausente")
TIPOS_PENDENCIA_REMUNERACAO = {
    "zerada": "remuneracao_zerada",
    "ausente": "remuneracao_ausente",
    "muito_baixa": "remuneracao_muito_baixa",
}

PILARES_CHECKLIST = {
    "identificacaoConfirmada": "identificacao_confirmada",
    "vinculosExtraidos": "vinculos_extraidos",
    "remuneracoesAnalisadas": "remuneracoes_analisadas",
}


# =====================================================
# CONSULTAS
# =====================================================

def get_planejamento_or_404(db: Session, planejamento_id: str) -> Planejamento:
    planejamento = db.query(Planejamento).filter(Planejamento.id == planejamento_id).first()
    if not planejamento:
        raise HTTPException(status_code=404, detail="Planejamento não encontrado")
    return planejamento


def listar_vinculos(db: Session, planejamento_id: str) -> List[VinculoCnis]:
    return (
        db.query(VinculoCnis)
        .filter(VinculoCnis.planejamento_id == planejamento_id)
        .order_by(VinculoCnis.sequencia)
        .all()
    )


def listar_inconsistencias(db: Session, planejamento_id: str) -> List[Inconsistencia]:
    """Da mais grave (critica) para a menos grave (baixa)."""
    inconsistencias = (
        db.query(Inconsistencia)
        .filter(Inconsistencia.planejamento_id == planejamento_id)
        .order_by(Inconsistencia.created_at)
        .all()
    )
    return sorted(inconsistencias, key=lambda i: ORDEM_GRAVIDADE.get(i.gravidade, 4))


def listar_pendencias(db: Session, planejamento_id: str) -> List[Pendencia]:
    """Da mais urgente para a de prioridade baixa."""
    pendencias = (
        db.query(Pendencia)
        .filter(Pendencia.planejamento_id == planejamento_id)
        .order_by(Pendencia.created_at)
        .all()
    )
    return sorted(pendencias, key=lambda p: ORDEM_PRIORIDADE.get(p.prioridade, 4))


def listar_remuneracoes(db: Session, planejamento_id: str) -> List[Dict[str, Any]]:
    """Contribuições de todos os vínculos, com empregador e sequência do vínculo."""
    remuneracoes = []
    for vinculo in listar_vinculos(db, planejamento_id):
        for contrib in vinculo.contribuicoes:
            remuneracoes.append({
                "id": contrib.id,
                "vinculo_id": contrib.vinculo_id,
                "competencia": contrib.competencia,
                "remuneracao": contrib.remuneracao,
                "indicadores": contrib.indicadores or [],
                "empregador": vinculo.empregador,
                "vinculo_sequencia": vinculo.sequencia,
            })
    return remuneracoes


def _vinculo_para_ia(vinculo: VinculoCnis) -> Dict[str, Any]:
    dados = {
        "sequencia": vinculo.sequencia,
        "nit": vinculo.nit,
        "empregador": vinculo.empregador,
        "cnpjCpf": vinculo.cnpj_cpf,
        "tipoVinculo": vinculo.tipo_vinculo,
        "dataInicio": vinculo.data_inicio,
        "dataFim": vinculo.data_fim,
        "ultimaRemuneracao": vinculo.ultima_remuneracao,
        "indicadores": vinculo.indicadores or None,
        "observacoes": vinculo.observacoes,
        "origemDocumento": vinculo.origem_documento,
    }
    return {k: v for k, v in dados.items() if v is not None}


# =====================================================
# UPLOAD
# =====================================================

def tipo_documento_por_nome(filename: str) -> str:
    nome = (filename or "").upper()
    for tipo in ("CTPS", "PPP", "FGTS"):
        if tipo in nome:
            return tipo
    return "CNIS"


def registrar_upload(
    db: Session,
    user_id: int,
    cliente_nome: str,
    cliente_cpf: str,
    arquivos: List[UploadedFile],
) -> Tuple[Planejamento, Optional[DocumentoPlanejamento]]:
    """
    Cria o planejamento (status "uploaded") e um documento por arquivo.

    Returns:
        (planejamento, documento CNIS ou None)
    """
    planejamento = Planejamento(
        user_id=user_id,
        cliente_nome=cliente_nome,
        cliente_cpf=cliente_cpf,
        status="uploaded",
    )
    db.add(planejamento)
    db.flush()

    documento_cnis = None
    for arquivo in arquivos:
        documento = DocumentoPlanejamento(
            planejamento_id=planejamento.id,
            nome_arquivo=arquivo.filename,
            tipo_documento=tipo_documento_por_nome(arquivo.filename),
            arquivo_url=arquivo.url,
        )
        db.add(documento)
        if documento.tipo_documento == "CNIS":
            documento_cnis = documento

    db.commit()
    db.refresh(planejamento)
    logger.info("Planejamento %s criado com %d documento(s)", planejamento.id, len(arquivos))
    return planejamento, documento_cnis


# =====================================================
# IA: PROCESSAMENTO E PARECER
# =====================================================

async def processar_documentos(db: Session, planejamento: Planejamento,
                               provider: Optional[str] = None) -> Dict[str, Any]:
    """Extrai dadosExtraidos de todos os documentos. Em falha, status vira "error"."""
    planejamento.status = "processing"
    db.commit()

    try:
        pdfs = []
        for doc in planejamento.documentos:
            try:
                pdfs.append(read_file(doc.arquivo_url))
            except Exception as e:
                logger.error("Erro ao carregar documento %s: %s", doc.nome_arquivo, e)
                raise ValueError(f"Falha ao carregar documento: {doc.nome_arquivo}") from e

        dados = await ia_service.extrair_dados(pdfs, provider)

        planejamento.dados_extraidos = json.dumps(dados, ensure_ascii=False)
        planejamento.status = "processed"
        db.commit()
        return dados
    except Exception:
        db.rollback()
        planejamento.status = "error"
        db.commit()
        raise


def contexto_parecer(planejamento: Planejamento) -> Dict[str, Any]:
    contexto = {}
    if planejamento.resumo_ata:
        contexto["resumoAta"] = planejamento.resumo_ata
    if planejamento.dados_calculo_externo:
        contexto["dadosCalculoExterno"] = planejamento.dados_calculo_externo
    return contexto


# =====================================================
# IDENTIFICAÇÃO
# =====================================================

def _identificacao_para_dict(identificacao: IdentificacaoCnis) -> Dict[str, Any]:
    return {
        "nomeCompleto": identificacao.nome_completo,
        "cpf": identificacao.cpf,
        "nomeMae": identificacao.nome_mae,
        "nits": identificacao.nits or [],
        "dataNascimento": identificacao.data_nascimento,
    }


def _titulo_pendencia_identificacao(tipo_alerta: str) -> str:
    return "CPF divergente no CNIS" if tipo_alerta == "cpf_divergente" else "Nome divergente no CNIS"


def _salvar_validacao_identificacao(db: Session, planejamento: Planejamento,
                                    identificacao: IdentificacaoCnis) -> int:
    """Valida contra o cadastro, grava alertas e gera pendências para os de gravidade alta."""
    resultado = validar_identificacao(
        _identificacao_para_dict(identificacao),
        planejamento.cliente_nome,
        planejamento.cliente_cpf,
    )
    identificacao.validada = resultado.tudo_ok

    for alerta in resultado.alertas:
        db.add(AlertaIdentificacao(
            planejamento_id=planejamento.id,
            tipo=alerta.tipo,
            gravidade=alerta.gravidade,
            mensagem=alerta.mensagem,
        ))
        if alerta.gravidade == "alta":
            db.add(Pendencia(
                planejamento_id=planejamento.id,
                tipo="identificacao_divergente",
                prioridade="alta",
                titulo=_titulo_pendencia_identificacao(alerta.tipo),
                descricao=alerta.mensagem,
                status="aberta",
            ))
    return len(resultado.alertas)


def revalidar_identificacao(db: Session, planejamento: Planejamento) -> bool:
    """
    Refaz os alertas de identificação após mudança de nome ou CPF do cliente.

    Returns:
        False quando o planejamento ainda não tem identificação extraída
    """
    identificacao = (
        db.query(IdentificacaoCnis)
        .filter(IdentificacaoCnis.planejamento_id == planejamento.id)
        .first()
    )
    if not identificacao:
        return False

    db.query(AlertaIdentificacao).filter(
        AlertaIdentificacao.planejamento_id == planejamento.id
    ).delete(synchronize_session=False)
    db.query(Pendencia).filter(
        Pendencia.planejamento_id == planejamento.id,
        Pendencia.tipo == "identificacao_divergente",
    ).delete(synchronize_session=False)

    _salvar_validacao_identificacao(db, planejamento, identificacao)
    return True


# =====================================================
# PIPELINE DO CNIS
# =====================================================

def _limpar_analise_anterior(db: Session, planejamento_id: str):
    db.query(IdentificacaoCnis).filter(
        IdentificacaoCnis.planejamento_id == planejamento_id
    ).delete(synchronize_session=False)
    db.query(AlertaIdentificacao).filter(
        AlertaIdentificacao.planejamento_id == planejamento_id
    ).delete(synchronize_session=False)

    tipos_gerados = (
        *TIPOS_PENDENCIA_IDENTIFICACAO,
        "alerta_cnis",
        "remuneracoes_faltantes",
        *TIPOS_PENDENCIA_REMUNERACAO.values(),
    )
    db.query(Pendencia).filter(
        Pendencia.planejamento_id == planejamento_id,
        Pendencia.tipo.in_(tipos_gerados),
    ).delete(synchronize_session=False)
    db.query(AnaliseCompetencia).filter(
        AnaliseCompetencia.planejamento_id == planejamento_id
    ).delete(synchronize_session=False)
    db.query(ProblemaRemuneracao).filter(
        ProblemaRemuneracao.planejamento_id == planejamento_id
    ).delete(synchronize_session=False)

    # Pendências e inconsistências do cruzamento de documentos sobrevivem,
    # mas perdem a referência ao vínculo antigo
    vinculos_antigos = [
        vid for (vid,) in db.query(VinculoCnis.id).filter(VinculoCnis.planejamento_id == planejamento_id)
    ]
    if vinculos_antigos:
        db.query(Pendencia).filter(Pendencia.vinculo_id.in_(vinculos_antigos)).update(
            {Pendencia.vinculo_id: None}, synchronize_session=False,
        )
        db.query(Inconsistencia).filter(Inconsistencia.vinculo_id.in_(vinculos_antigos)).update(
            {Inconsistencia.vinculo_id: None}, synchronize_session=False,
        )

    for vinculo in db.query(VinculoCnis).filter(VinculoCnis.planejamento_id == planejamento_id).all():
        db.delete(vinculo)
    db.flush()


def _texto_ou_none(valor: Any) -> Optional[str]:
    if valor is None or valor == "":
        return None
    return str(valor)


def _criar_vinculos(db: Session, planejamento_id: str, analise: Dict[str, Any]) -> List[VinculoCnis]:
    contribuicoes_por_vinculo = analise.get("contribuicoesPorVinculo") or {}
    vinculos = []

    for posicao, dados in enumerate(analise.get("vinculos") or [], start=1):
        sequencia = dados.get("sequencia") or posicao
        vinculo = VinculoCnis(
            planejamento_id=planejamento_id,
            sequencia=sequencia,
            nit=_texto_ou_none(dados.get("nit")),
            empregador=dados.get("empregador") or f"Vínculo {sequencia}",
            cnpj_cpf=_texto_ou_none(dados.get("cnpjCpf")),
            tipo_vinculo=_texto_ou_none(dados.get("tipoVinculo")),
            data_inicio=_texto_ou_none(dados.get("dataInicio")),
            data_fim=_texto_ou_none(dados.get("dataFim")),
            ultima_remuneracao=_texto_ou_none(dados.get("ultimaRemuneracao")),
            indicadores=dados.get("indicadores") or [],
            observacoes=_texto_ou_none(dados.get("observacoes")),
            origem_documento=dados.get("origemDocumento") or "CNIS",
        )

        contribuicoes = contribuicoes_por_vinculo.get(str(sequencia)) or contribuicoes_por_vinculo.get(sequencia) or []
        for contrib in contribuicoes:
            if not contrib.get("competencia"):
                continue
            vinculo.contribuicoes.append(ContribuicaoCnis(
                competencia=str(contrib["competencia"]).strip(),
                remuneracao=_texto_ou_none(contrib.get("remuneracao")),
                indicadores=contrib.get("indicadores") or [],
            ))

        db.add(vinculo)
        vinculos.append(vinculo)

    db.flush()
    return vinculos


def aplicar_analise_cnis(db: Session, planejamento: Planejamento, analise: Dict[str, Any]) -> Dict[str, Any]:
    """
    Grava o resultado da análise do CNIS e deriva alertas, pendências,
    competências faltantes e problemas de remuneração.
    """
    planejamento_id = planejamento.id
    _limpar_analise_anterior(db, planejamento_id)

    # Identificação
    dados_identificacao = analise.get("identificacao")
    if dados_identificacao:
        identificacao = IdentificacaoCnis(
            planejamento_id=planejamento_id,
            nome_completo=_texto_ou_none(dados_identificacao.get("nomeCompleto")),
            cpf=_texto_ou_none(dados_identificacao.get("cpf")),
            nome_mae=_texto_ou_none(dados_identificacao.get("nomeMae")),
            nits=dados_identificacao.get("nits") or [],
            data_nascimento=_texto_ou_none(dados_identificacao.get("dataNascimento")),
            validada=False,
        )
        db.add(identificacao)
        _salvar_validacao_identificacao(db, planejamento, identificacao)
    else:
        db.add(Pendencia(
            planejamento_id=planejamento_id,
            tipo="identificacao_ausente",
            prioridade="alta",
            titulo="Dados de identificação não extraídos",
            descricao="A IA não conseguiu extrair os dados de identificação do CNIS. Verifique se o documento está legível.",
            status="aberta",
        ))

    # Vínculos e contribuições
    vinculos = _criar_vinculos(db, planejamento_id, analise)

    alertas = analise.get("alertas") or []
    for alerta in alertas:
        db.add(Pendencia(
            planejamento_id=planejamento_id,
            titulo="Alerta do CNIS",
            descricao=str(alerta),
            tipo="alerta_cnis",
            prioridade="media",
            status="aberta",
        ))

    # Competências faltantes
    competencias = {v.id: [c.competencia for c in v.contribuicoes] for v in vinculos}
    analises = analisar_todos_vinculos(vinculos, competencias)
    pendencias_competencias = 0
    empregadores = {v.id: v.empregador for v in vinculos}

    for resultado in analises:
        db.add(AnaliseCompetencia(
            planejamento_id=planejamento_id,
            vinculo_id=resultado.vinculo_id,
            vinculo_sequencia=resultado.vinculo_sequencia,
            empregador=resultado.empregador,
            meses_esperados=resultado.meses_esperados,
            meses_registrados=resultado.meses_registrados,
            meses_faltantes=resultado.meses_faltantes,
            impacto=resultado.impacto,
            mensagem=resultado.mensagem,
        ))
        if resultado.impacto == "alto" and resultado.meses_faltantes:
            db.add(Pendencia(
                planejamento_id=planejamento_id,
                tipo="remuneracoes_faltantes",
                prioridade="alta",
                titulo=f"Remunerações faltantes no vínculo {resultado.empregador}",
                descricao=resultado.mensagem,
                vinculo_id=resultado.vinculo_id,
                status="aberta",
            ))
            pendencias_competencias += 1

    # Remunerações problemáticas
    problemas = detectar_todos_vinculos(vinculos, {v.id: list(v.contribuicoes) for v in vinculos})
    pendencias_remuneracao = 0

    for problema in problemas:
        db.add(ProblemaRemuneracao(
            planejamento_id=planejamento_id,
            vinculo_id=problema.vinculo_id,
            competencia=problema.competencia,
            valor=problema.valor,
            tipo=problema.tipo,
            gravidade=problema.gravidade,
            mensagem=problema.mensagem,
        ))
        if problema.gravidade == "alta":
            empregador = empregadores[problema.vinculo_id]
            descricao_tipo = "zerada" if problema.tipo == "zerada" else "ausente"
            db.add(Pendencia(
                planejamento_id=planejamento_id,
                tipo=TIPOS_PENDENCIA_REMUNERACAO.get(problema.tipo, "remuneracao_problematica"),
                prioridade="alta",
                titulo=f"Remuneração {descricao_tipo} detectada no vínculo {empregador}",
                descricao=problema.mensagem,
                vinculo_id=problema.vinculo_id,
                status="aberta",
            ))
            pendencias_remuneracao += 1

    notificar(
        db,
        planejamento.user_id,
        "documento",
        "CNIS analisado",
        f"{len(vinculos)} vínculo(s) extraído(s) e {pendencias_competencias + pendencias_remuneracao} "
        f"pendência(s) gerada(s) automaticamente.",
        caso_nome=planejamento.cliente_nome,
    )

    db.commit()

    logger.info(
        "CNIS do planejamento %s: %d vínculo(s), %d alerta(s), %d problema(s) de remuneração",
        planejamento_id, len(vinculos), len(alertas), len(problemas),
    )
    return {
        "message": "CNIS analisado com sucesso",
        "vinculos": len(vinculos),
        "alertas": len(alertas),
        "resumo": analise.get("resumoGeral"),
        "analiseCompetencias": len(analises),
        "pendenciasGeradasCompetencias": pendencias_competencias,
        "problemasRemuneracao": len(problemas),
        "pendenciasGeradasRemuneracao": pendencias_remuneracao,
    }


async def analisar_cnis(db: Session, planejamento: Planejamento, documento: DocumentoPlanejamento) -> Dict[str, Any]:
    pdf = read_file(documento.arquivo_url)
    analise = await ia_service.analisar_cnis_detalhado(pdf)
    return aplicar_analise_cnis(db, planejamento, analise)


# =====================================================
# CRUZAMENTO DE DOCUMENTOS
# =====================================================

async def cruzar_documento(db: Session, planejamento: Planejamento, conteudo: bytes,
                           tipo_documento: str) -> Dict[str, Any]:
    vinculos = listar_vinculos(db, planejamento.id)
    if not vinculos:
        raise HTTPException(status_code=400, detail="Nenhum vínculo CNIS encontrado. Analise o CNIS primeiro.")

    analise = await ia_service.analisar_documento_comparativo(
        conteudo, tipo_documento, [_vinculo_para_ia(v) for v in vinculos],
    )
    return aplicar_cruzamento(db, planejamento, tipo_documento, vinculos, analise)


def aplicar_cruzamento(db: Session, planejamento: Planejamento, tipo_documento: str,
                       vinculos: List[VinculoCnis], analise: Dict[str, Any]) -> Dict[str, Any]:
    por_sequencia = {v.sequencia: v.id for v in vinculos}

    def vinculo_id(item: Dict[str, Any]) -> Optional[str]:
        sequencia = item.get("vinculoSequencia")
        try:
            return por_sequencia.get(int(sequencia)) if sequencia else None
        except (TypeError, ValueError):
            return None

    inconsistencias = analise.get("inconsistencias") or []
    for inc in inconsistencias:
        db.add(Inconsistencia(
            planejamento_id=planejamento.id,
            tipo=inc.get("tipo") or "outro",
            gravidade=inc.get("gravidade") or "media",
            titulo=inc.get("titulo") or "Inconsistência",
            descricao=inc.get("descricao") or "",
            documento_origem=inc.get("documentoOrigem") or "CNIS",
            documento_comparacao=inc.get("documentoComparacao") or None,
            vinculo_id=vinculo_id(inc),
            dados_origem=inc.get("dadosOrigem") or None,
            dados_comparacao=inc.get("dadosComparacao") or None,
            sugestao_correcao=inc.get("sugestaoCorrecao") or None,
            status="pendente",
        ))

    pendencias = analise.get("pendencias") or []
    for pend in pendencias:
        db.add(Pendencia(
            planejamento_id=planejamento.id,
            titulo=pend.get("titulo") or "Pendência",
            descricao=pend.get("descricao") or "",
            tipo=pend.get("tipo") or "outro",
            prioridade=pend.get("prioridade") or "media",
            acao_necessaria=pend.get("acaoNecessaria") or None,
            documentos_necessarios=pend.get("documentosNecessarios") or [],
            vinculo_id=vinculo_id(pend),
            status="aberta",
        ))

    db.commit()
    return {
        "message": f"Documento {tipo_documento} analisado com sucesso",
        "inconsistencias": len(inconsistencias),
        "pendencias": len(pendencias),
        "resumo": analise.get("resumoAnalise"),
    }


# =====================================================
# CHECKLIST
# =====================================================

def atualizar_checklist(db: Session, planejamento_id: str, pilar: str, valor: Any) -> ChecklistValidacao:
    """Marca ou desmarca um pilar. Raises HTTPException 400 para pilar inválido."""
    campo = PILARES_CHECKLIST.get(pilar or "")
    if not campo:
        raise HTTPException(status_code=400, detail="Pilar inválido")

    checklist = (
        db.query(ChecklistValidacao)
        .filter(ChecklistValidacao.planejamento_id == planejamento_id)
        .first()
    )
    if not checklist:
        checklist = ChecklistValidacao(planejamento_id=planejamento_id)
        db.add(checklist)

    marcado = valor is True
    setattr(checklist, campo, marcado)
    setattr(checklist, f"{campo}_em", get_utc_now() if marcado else None)

    db.commit()
    db.refresh(checklist)
    return checklist
