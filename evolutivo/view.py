# evolutivo/view.py
import pandas as pd

# Rótulos das colunas da tabela, na ordem em que aparecem na tela.
COLUNAS_TABELA = {
    'data': 'Data',
    'motorista': 'Motorista',
    'regiao': 'Região',
    'rotas': 'Rotas',
    'total_pedido': 'Total Pedido',
    'entregues': 'Entregues',
    'pendente': 'Pendente',
    'insucessos': 'Insucessos',
    'percentual_entregas': '% Entregas',
    'percentual_rota': '% Rota',
}


def _regiao_ativa(regiao):
    return regiao not in ('', 'all', None)

def criar_filtro(busca='', regiao='', motorista='all'):
    """Predicado de registro equivalente aos filtros da tela (busca, região e motorista)."""
    termo = (busca or '').lower()

    def filtro(registro):
        if _regiao_ativa(regiao) and registro['regiao'] != regiao:
            return False
        if motorista != 'all' and registro['motorista'] != motorista:
            return False
        return termo in registro['motorista'].lower() or termo in registro['regiao'].lower()

    return filtro

def alternar_ordenacao(ordenacao, chave):
    """Mesma coluna inverte a direção; coluna nova começa ascendente."""
    if ordenacao and ordenacao[0] == chave and ordenacao[1] == 'asc':
        return (chave, 'desc')
    return (chave, 'asc')

def ordenar(registros, ordenacao, insucessos=None):
    """Ordenação estável pela coluna ativa. Empates mantêm a ordem anterior."""
    if not ordenacao:
        return list(registros)
    chave, direcao = ordenacao
    if chave == 'insucessos':
        mapa = insucessos or {}
        valor = lambda r: mapa.get(r['id'], 0)
    else:
        valor = lambda r: r[chave]
    return sorted(registros, key=valor, reverse=(direcao == 'desc'))

def projetar(registros, filtro, ordenacao=None, insucessos=None):
    return ordenar([r for r in registros if filtro(r)], ordenacao, insucessos)

def motoristas_unicos(registros, regiao=''):
    nomes = {r['motorista'] for r in registros if not _regiao_ativa(regiao) or r['regiao'] == regiao}
    return sorted(nomes)

def montar_tabela(registros, insucessos):
    """DataFrame pronto para exibir/exportar, com a coluna de insucessos vinda do mapa lateral."""
    df = pd.DataFrame(list(registros), columns=['id'] + [c for c in COLUNAS_TABELA if c != 'insucessos'])
    df['insucessos'] = [insucessos.get(i, 0) for i in df['id']]
    df = df.set_index('id')[list(COLUNAS_TABELA)]
    return df.rename(columns=COLUNAS_TABELA)
