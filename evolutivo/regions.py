# evolutivo/regions.py
import pandas as pd

from evolutivo.config import REGIOES, REGIAO_TOTAL

CAMPOS_SOMADOS = ['total_pedidos', 'entregues', 'insucessos']


def resumo_vazio(total_recebido=0):
    return {
        'total_recebido': total_recebido,
        'total_pedidos': 0,
        'entregues': 0,
        'insucessos': 0,
        'percentual_entregas': 0.0,
    }

def resumos_iniciais():
    return {regiao: resumo_vazio() for regiao in list(REGIOES) + [REGIAO_TOTAL]}

def _escalar(valor):
    """numpy -> número Python, mantendo inteiro quando não há parte decimal."""
    if hasattr(valor, 'item'):
        valor = valor.item()
    if isinstance(valor, float) and valor.is_integer():
        return int(valor)
    return valor

def calcular_percentual_regiao(resumo):
    """% de entregas da região sobre o Total Recebido (digitado), não sobre o total de pedidos."""
    recebido = resumo['total_recebido']
    resumo['percentual_entregas'] = resumo['entregues'] / recebido * 100 if recebido > 0 else 0.0
    return resumo

def consolidar_total(resumos):
    """Passos 2 e 3: monta ALL a partir de SP + RJ e recalcula os percentuais de todos."""
    total = resumo_vazio(sum(resumos[r]['total_recebido'] for r in REGIOES))
    for campo in CAMPOS_SOMADOS:
        total[campo] = sum(resumos[r][campo] for r in REGIOES)
    resumos[REGIAO_TOTAL] = total

    for resumo in resumos.values():
        calcular_percentual_regiao(resumo)
    return resumos

def recalcular_resumos(registros, insucessos, anteriores=None):
    """
    Recalcula do zero os resumos SP, RJ e ALL.
    Só o total_recebido de SP/RJ é herdado de `anteriores` (é entrada manual).
    Registros com região fora de SP/RJ não entram em nenhum resumo.
    """
    anteriores = anteriores or resumos_iniciais()

    df = pd.DataFrame(list(registros), columns=['id', 'regiao', 'total_pedido', 'entregues'])
    df['insucessos'] = [insucessos.get(i, 0) for i in df['id']]
    df = df[df['regiao'].isin(REGIOES)].rename(columns={'total_pedido': 'total_pedidos'})
    somas = df.groupby('regiao')[CAMPOS_SOMADOS].sum()

    resumos = {}
    for regiao in REGIOES:
        resumo = resumo_vazio(anteriores[regiao]['total_recebido'])
        if regiao in somas.index:
            for campo in CAMPOS_SOMADOS:
                resumo[campo] = _escalar(somas.at[regiao, campo])
        resumos[regiao] = resumo

    return consolidar_total(resumos)
