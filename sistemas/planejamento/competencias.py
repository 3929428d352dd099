# sistemas/planejamento/competencias.py
"""
Análise de competências faltantes por vínculo do CNIS.

Para cada vínculo gera todos os meses do período (início ao fim, ou até hoje
se o vínculo está em aberto) e compara com as competências registradas.
Meses a partir de 07/1994 entram no cálculo do benefício; os anteriores não.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from utils.timezone import today_local

# Julho de 1994 (início do Plano Real)
DATA_CORTE_CALCULO = date(1994, 7, 1)


@dataclass
class AnaliseCompetenciaResult:
    vinculo_id: str
    vinculo_sequencia: int
    empregador: str
    meses_esperados: int
    meses_registrados: int
    meses_faltantes: List[str] = field(default_factory=list)
    impacto: str = "baixo"
    mensagem: str = ""


def parse_data_brasileira(data_str: Optional[str]) -> Optional[date]:
    """Converte "DD/MM/YYYY" em date. Dia fora do mês avança para o mês seguinte."""
    if not data_str:
        return None

    partes = data_str.strip().split("/")
    if len(partes) != 3:
        return None
    try:
        dia, mes, ano = (int(p) for p in partes)
    except ValueError:
        return None
    if not 1 <= mes <= 12 or ano < 1:
        return None

    try:
        return date(ano, mes, 1) + timedelta(days=dia - 1)
    except OverflowError:
        return None


def formatar_competencia(data: date) -> str:
    return f"{data.month:02d}/{data.year}"


def gerar_meses_no_periodo(inicio: date, fim: date) -> List[str]:
    """Competências "MM/YYYY" de inicio até fim, inclusive."""
    meses = []
    ano, mes = inicio.year, inicio.month
    while (ano, mes) <= (fim.year, fim.month):
        meses.append(f"{mes:02d}/{ano}")
        mes += 1
        if mes > 12:
            mes, ano = 1, ano + 1
    return meses


def _competencia_para_data(competencia: str) -> date:
    mes, ano = competencia.split("/")
    return date(int(ano), int(mes), 1)


def classificar_impacto(meses_faltantes: List[str]) -> Tuple[str, List[str], List[str]]:
    """Separa os meses faltantes em (impacto, alto_impacto, baixo_impacto)."""
    alto, baixo = [], []
    for competencia in meses_faltantes:
        if _competencia_para_data(competencia) >= DATA_CORTE_CALCULO:
            alto.append(competencia)
        else:
            baixo.append(competencia)
    return ("alto" if alto else "baixo"), alto, baixo


def gerar_mensagem(meses_faltantes: List[str], alto: List[str], baixo: List[str], impacto: str) -> str:
    if not meses_faltantes:
        return "Todas as competências do período estão registradas."

    total = len(meses_faltantes)
    periodo = meses_faltantes[0] if total == 1 else f"{meses_faltantes[0]} a {meses_faltantes[-1]}"
    meses_texto = "mês" if total == 1 else "meses"

    if impacto == "baixo":
        return (
            f"Faltam {total} {meses_texto} de remuneração ({periodo}), "
            f"porém não impactam o cálculo pois são anteriores a 07/1994."
        )
    if not baixo:
        return (
            f"Faltam {total} {meses_texto} de remuneração ({periodo}). "
            f"ATENÇÃO: Esses meses impactam o cálculo e precisam ser regularizados."
        )

    impacta = "mês impacta" if len(alto) == 1 else "meses impactam"
    precisa = "precisa" if len(alto) == 1 else "precisam"
    nao_impacta = "mês não impacta" if len(baixo) == 1 else "meses não impactam"
    return (
        f"Faltam {total} {meses_texto} de remuneração ({periodo}). "
        f"ATENÇÃO: {len(alto)} {impacta} o cálculo (após 07/1994) e {precisa} ser regularizados. "
        f"{len(baixo)} {nao_impacta} (antes de 07/1994)."
    )


def analisar_competencias(vinculo, competencias_registradas: List[str],
                          hoje: Optional[date] = None) -> AnaliseCompetenciaResult:
    """
    Analisa um vínculo.

    Args:
        vinculo: objeto com id, sequencia, empregador, data_inicio e data_fim
        competencias_registradas: competências "MM/YYYY" presentes no CNIS
        hoje: data usada quando o vínculo não tem data fim
    """
    inicio = parse_data_brasileira(vinculo.data_inicio)
    if inicio is None:
        return AnaliseCompetenciaResult(
            vinculo_id=vinculo.id,
            vinculo_sequencia=vinculo.sequencia,
            empregador=vinculo.empregador,
            meses_esperados=0,
            meses_registrados=len(competencias_registradas),
            meses_faltantes=[],
            impacto="baixo",
            mensagem="Não foi possível analisar: data de início não disponível.",
        )

    fim = parse_data_brasileira(vinculo.data_fim) or hoje or today_local()
    esperados = gerar_meses_no_periodo(inicio, fim)
    registradas = {c.strip() for c in competencias_registradas}
    faltantes = [mes for mes in esperados if mes not in registradas]

    impacto, alto, baixo = classificar_impacto(faltantes)

    return AnaliseCompetenciaResult(
        vinculo_id=vinculo.id,
        vinculo_sequencia=vinculo.sequencia,
        empregador=vinculo.empregador,
        meses_esperados=len(esperados),
        meses_registrados=len(competencias_registradas),
        meses_faltantes=faltantes,
        impacto=impacto,
        mensagem=gerar_mensagem(faltantes, alto, baixo, impacto),
    )


def analisar_todos_vinculos(vinculos: Iterable, competencias_por_vinculo: Dict[str, List[str]],
                            hoje: Optional[date] = None) -> List[AnaliseCompetenciaResult]:
    return [
        analisar_competencias(v, competencias_por_vinculo.get(v.id, []), hoje=hoje)
        for v in vinculos
    ]


def resumir(analises: List) -> dict:
    """Totais exibidos no topo da aba de competências."""
    return {
        "totalVinculos": len(analises),
        "vinculosComFaltas": sum(1 for a in analises if a.meses_faltantes),
        "vinculosAltoImpacto": sum(1 for a in analises if a.impacto == "alto"),
        "totalMesesFaltantes": sum(len(a.meses_faltantes or []) for a in analises),
    }
