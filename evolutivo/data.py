# evolutivo/data.py
import logging
import uuid
from datetime import datetime
from io import BytesIO

import pandas as pd

from evolutivo.config import (
    COLUNAS_PLANILHA, REGIOES, SITUACAO_CANCELADA, ROTA_PADRAO,
    ROTULO_NAO_INICIADA, FORMATO_DATA,
)
from evolutivo.logic import recalcular_metricas

logger = logging.getLogger(__name__)


def _vazio(valor):
    if valor is None:
        return True
    if isinstance(valor, str):
        return valor == ''
    try:
        return bool(pd.isna(valor))
    except (TypeError, ValueError):
        return False

def _texto(valor):
    return '' if _vazio(valor) else str(valor)

def _numero(valor):
    """Célula numérica: qualquer coisa que não seja número vira 0 (nunca derruba a importação)."""
    if _vazio(valor):
        return 0
    numero = pd.to_numeric(pd.Series([valor]), errors='coerce').iloc[0]
    if pd.isna(numero):
        return 0
    numero = numero.item()
    if isinstance(numero, float) and numero.is_integer():
        return int(numero)
    return numero

def novo_id():
    return uuid.uuid4().hex

def classificar_regiao(veiculo):
    """'SP' ou 'RJ' conforme o código do veículo contenha a sigla ('SP' tem prioridade); '' se nenhuma."""
    for regiao in REGIOES:
        if regiao in veiculo:
            return regiao
    return ''

def mapear_colunas(cabecalho):
    """
    Resolve papel -> coluna a partir da linha de cabeçalho (dict coluna -> texto).
    Comparação exata, em minúsculas e com trim. Se o mesmo texto aparecer duas vezes,
    vale a coluna mais à direita. Papéis não encontrados ficam fora do resultado.
    """
    vocabulario = {rotulo.lower().strip(): papel for papel, rotulo in COLUNAS_PLANILHA.items()}
    colunas = {}
    for coluna, valor in cabecalho.items():
        papel = vocabulario.get(str(valor).lower().strip())
        if papel:
            colunas[papel] = coluna
    return colunas

def _rotulos_inicio(valor):
    if _vazio(valor):
        return ROTULO_NAO_INICIADA, ''
    if isinstance(valor, datetime):
        return valor.strftime(FORMATO_DATA), valor.isoformat()
    texto = str(valor)
    return texto, texto

def normalizar_linha(linha, colunas):
    """
    Converte uma linha crua da planilha num registro de entrega.
    Retorna None quando a linha é descartada (sem região ou situação 'Cancelada').
    """
    def celula(papel):
        coluna = colunas.get(papel)
        return linha.get(coluna) if coluna is not None else None

    regiao = classificar_regiao(_texto(celula('veiculo')))
    situacao = _texto(celula('situacao'))
    if not regiao or situacao == SITUACAO_CANCELADA:
        return None

    data, data_completa = _rotulos_inicio(celula('inicio'))
    registro = {
        'id': novo_id(),
        'data': data,
        'data_completa': data_completa,
        'motorista': _texto(celula('agente')).strip(),
        'rotas': ROTA_PADRAO,
        'regiao': regiao,
        'total_pedido': _numero(celula('previsto')),
        'entregues': _numero(celula('realizado')),
    }
    return recalcular_metricas(registro)

def processar_planilha(df_bruto):
    """
    ETL da primeira aba: a primeira linha é o cabeçalho, as demais são dados.
    Retorna (registros, log) com os avisos para o operador.
    """
    log = []
    if df_bruto is None or df_bruto.empty:
        return [], ["⚠️ Planilha vazia."]

    linhas = df_bruto.to_dict('records')
    colunas = mapear_colunas(linhas[0])

    faltantes = [COLUNAS_PLANILHA[p] for p in COLUNAS_PLANILHA if p not in colunas]
    for rotulo in faltantes:
        log.append(f"⚠️ Coluna não encontrada: {rotulo}")

    registros = []
    descartadas = 0
    for linha in linhas[1:]:
        registro = normalizar_linha(linha, colunas)
        if registro is None:
            descartadas += 1
            continue
        registros.append(registro)

    if descartadas:
        log.append(f"ℹ️ {descartadas} linha(s) ignorada(s) (sem região ou canceladas).")

    logger.info(f"Planilha processada: {len(registros)} registros, {descartadas} descartados")
    return registros, log

def importar_planilha(arquivo):
    """
    Lê a primeira aba de um .xlsx (caminho, bytes ou arquivo enviado pelo Streamlit).
    Retorna (registros, log) ou (None, mensagem de erro).
    """
    if isinstance(arquivo, (bytes, bytearray)):
        arquivo = BytesIO(arquivo)
    try:
        df_bruto = pd.read_excel(arquivo, sheet_name=0, header=None, dtype=object)
    except Exception as e:
        logger.warning(f"Falha ao ler planilha: {e}")
        return None, f"Erro ao ler a planilha: {e}"

    return processar_planilha(df_bruto)
