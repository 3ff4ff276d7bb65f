# evolutivo/persistence.py
import json
import logging
import shutil
from pathlib import Path

from evolutivo.config import ARQUIVO_ESTADO, VERSAO_ESTADO, ROTA_PADRAO, ROTULO_NAO_INICIADA
from evolutivo.logic import recalcular_metricas
from evolutivo.store import RegistroStore

logger = logging.getLogger(__name__)

# Formato antigo (localStorage do painel web): camelCase -> chave atual.
CHAVES_LEGADAS = {
    'id': 'id',
    'data': 'data',
    'dataCompleta': 'data_completa',
    'motorista': 'motorista',
    'rotas': 'rotas',
    'regiao': 'regiao',
    'totalPedido': 'total_pedido',
    'entregues': 'entregues',
    'pendente': 'pendente',
    'percentualEntregas': 'percentual_entregas',
    'percentualRota': 'percentual_rota',
}

CAMPOS_REGISTRO = list(CHAVES_LEGADAS.values())
CAMPOS_NUMERICOS = ('total_pedido', 'entregues', 'pendente', 'percentual_entregas', 'percentual_rota')


class EstadoInvalido(ValueError):
    pass


def serializar_estado(store):
    return {
        'versao': VERSAO_ESTADO,
        'registros': store.registros,
        'insucessos': store.insucessos,
    }

def _numero_valido(valor):
    return isinstance(valor, (int, float)) and not isinstance(valor, bool)

def _converter_legado(registro):
    """
    O painel antigo gravava NaN (null no JSON) quando o total digitado não era número.
    Esses totais viram 0 e as métricas derivadas são refeitas só para o registro afetado.
    """
    convertido = {novo: registro[antigo] for antigo, novo in CHAVES_LEGADAS.items() if antigo in registro}
    convertido.setdefault('data_completa', '')
    if not all(_numero_valido(convertido.get(campo)) for campo in CAMPOS_NUMERICOS):
        for campo in ('total_pedido', 'entregues'):
            if not _numero_valido(convertido.get(campo)):
                convertido[campo] = 0
        recalcular_metricas(convertido)
        logger.warning(f"Registro legado {convertido.get('id')!r} com números inválidos: totais zerados")
    return convertido

def _validar_registro(registro):
    if not isinstance(registro, dict) or 'id' not in registro:
        raise EstadoInvalido(f"Registro inválido: {registro!r}")
    registro.setdefault('data', ROTULO_NAO_INICIADA)
    registro.setdefault('data_completa', '')
    registro.setdefault('rotas', ROTA_PADRAO)
    registro.setdefault('regiao', '')
    for campo in CAMPOS_NUMERICOS:
        if not _numero_valido(registro.get(campo)):
            raise EstadoInvalido(f"Campo numérico inválido '{campo}' no registro {registro['id']}")
    if not isinstance(registro.get('motorista'), str):
        raise EstadoInvalido(f"Motorista inválido no registro {registro['id']}")
    return {campo: registro[campo] for campo in CAMPOS_REGISTRO}

def restaurar_estado(dados):
    """
    Monta o store a partir do JSON salvo. Aceita o formato versionado e o
    formato legado sem versão ({'deliveryData': [...], 'insucessosMap': {...}}).
    Levanta EstadoInvalido se a estrutura não fizer sentido.
    """
    if not isinstance(dados, dict):
        raise EstadoInvalido("Estado salvo não é um objeto JSON")

    legado = 'versao' not in dados
    if legado:
        registros = dados.get('deliveryData', [])
        insucessos = dados.get('insucessosMap', {})
    elif dados['versao'] != VERSAO_ESTADO:
        raise EstadoInvalido(f"Versão de estado desconhecida: {dados['versao']!r}")
    else:
        registros = dados.get('registros', [])
        insucessos = dados.get('insucessos', {})

    if not isinstance(registros, list) or not isinstance(insucessos, dict):
        raise EstadoInvalido("Estrutura de registros/insucessos inválida")
    if legado:
        registros = [_converter_legado(r) if isinstance(r, dict) else r for r in registros]

    registros = [_validar_registro(dict(r) if isinstance(r, dict) else r) for r in registros]
    for id_registro, quantidade in insucessos.items():
        if not _numero_valido(quantidade):
            raise EstadoInvalido(f"Insucessos inválidos para {id_registro}: {quantidade!r}")

    return RegistroStore(registros, insucessos)

def salvar_estado(store, caminho=ARQUIVO_ESTADO):
    caminho = Path(caminho)
    caminho.parent.mkdir(parents=True, exist_ok=True)
    temporario = caminho.with_suffix(caminho.suffix + '.tmp')
    with open(temporario, 'w', encoding='utf-8') as f:
        json.dump(serializar_estado(store), f, ensure_ascii=False)
    temporario.replace(caminho)

def carregar_estado(caminho=ARQUIVO_ESTADO):
    """Lê o estado salvo. Arquivo ausente ou corrompido -> store vazio (nunca derruba a inicialização)."""
    caminho = Path(caminho)
    if not caminho.exists():
        return RegistroStore()

    try:
        with open(caminho, 'r', encoding='utf-8') as f:
            dados = json.load(f)
        return restaurar_estado(dados)
    except (OSError, json.JSONDecodeError, EstadoInvalido) as e:
        backup = caminho.with_suffix(caminho.suffix + '.bak')
        try:
            shutil.copyfile(caminho, backup)
        except OSError as erro_backup:
            logger.warning(f"Não foi possível copiar {caminho} para {backup}: {erro_backup}")
        logger.warning(f"Estado salvo ignorado ({caminho}), cópia em {backup}: {e}")
        return RegistroStore()
