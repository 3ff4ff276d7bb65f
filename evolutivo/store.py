# evolutivo/store.py
import logging
from collections import namedtuple
from datetime import datetime

from evolutivo.config import REGIOES, ROTA_PADRAO, FORMATO_DATA
from evolutivo.data import novo_id
from evolutivo.logic import ler_numero, recalcular_metricas
from evolutivo.regions import (
    resumos_iniciais, recalcular_resumos, consolidar_total,
)

logger = logging.getLogger(__name__)

# ==========================================
# OPERAÇÕES DE EDIÇÃO DE CAMPO
# ==========================================
DefinirRota = namedtuple('DefinirRota', 'valor')
DefinirTotalPedido = namedtuple('DefinirTotalPedido', 'valor')
DefinirEntregues = namedtuple('DefinirEntregues', 'valor')

CAMPOS_EDITAVEIS = ('rotas', 'total_pedido', 'entregues')


class RegistroStore:
    """
    Dono do estado do painel: registros de entrega, insucessos (id -> quantidade)
    e resumos por região.

    Toda mutação passa por aqui e já devolve os resumos recalculados, então quem
    lê o store nunca vê registros novos com resumo velho. O estado de edição
    (snapshots para o Cancelar) fica à parte e não é persistido.
    """

    def __init__(self, registros=None, insucessos=None):
        self._registros = [dict(r) for r in (registros or [])]
        self._insucessos = dict(insucessos or {})
        self._snapshots = {}
        self._insucessos_originais = {}
        self._snapshots_regiao = {}
        self._resumos = resumos_iniciais()
        self._atualizar_resumos()

    # --- LEITURA ---
    @property
    def registros(self):
        return [dict(r) for r in self._registros]

    @property
    def insucessos(self):
        return dict(self._insucessos)

    @property
    def resumos(self):
        return {regiao: dict(resumo) for regiao, resumo in self._resumos.items()}

    def obter(self, id_registro):
        registro = self._buscar(id_registro)
        return dict(registro) if registro else None

    def insucessos_de(self, id_registro):
        return self._insucessos.get(id_registro, 0)

    def em_edicao(self, id_registro):
        return id_registro in self._snapshots

    def __len__(self):
        return len(self._registros)

    def _buscar(self, id_registro):
        for registro in self._registros:
            if registro['id'] == id_registro:
                return registro
        return None

    def _atualizar_resumos(self):
        self._resumos = recalcular_resumos(self._registros, self._insucessos, self._resumos)

    # --- INCLUSÃO / EXCLUSÃO ---
    def adicionar_importados(self, registros):
        """Anexa registros já normalizados. Nunca substitui nem deduplica."""
        novos = [dict(r) for r in registros]
        if not novos:
            return 0
        self._registros.extend(novos)
        self._atualizar_resumos()
        logger.info(f"{len(novos)} registros importados (total: {len(self._registros)})")
        return len(novos)

    def adicionar_manual(self, motorista, total_pedido='', regiao='SP', momento=None):
        """Cria um motorista à mão. Devolve o id criado, ou None se a entrada for inválida."""
        motorista = (motorista or '').strip()
        if not motorista:
            logger.debug("Motorista sem nome ignorado")
            return None

        total = ler_numero(total_pedido)
        if total is None or regiao not in REGIOES:
            logger.debug(f"Motorista manual rejeitado: total={total_pedido!r} regiao={regiao!r}")
            return None

        momento = momento or datetime.now()
        registro = {
            'id': novo_id(),
            'data': momento.strftime(FORMATO_DATA),
            'data_completa': momento.isoformat(),
            'motorista': motorista,
            'rotas': ROTA_PADRAO,
            'regiao': regiao,
            'total_pedido': total,
            'entregues': 0,
            'pendente': total,
            'percentual_entregas': 0.0,
            'percentual_rota': 0.0,
        }
        self._registros.append(registro)
        self._insucessos[registro['id']] = 0
        self._atualizar_resumos()
        return registro['id']

    def remover(self, id_registro):
        registro = self._buscar(id_registro)
        if registro is None:
            return False
        # A entrada em insucessos fica órfã; os resumos só percorrem registros existentes.
        self._registros.remove(registro)
        self._snapshots.pop(id_registro, None)
        self._insucessos_originais.pop(id_registro, None)
        self._atualizar_resumos()
        return True

    def limpar(self):
        self._registros = []
        self._insucessos = {}
        self._snapshots = {}
        self._insucessos_originais = {}
        self._atualizar_resumos()

    # --- INSUCESSOS ---
    def definir_insucessos(self, id_registro, valor):
        """
        Registra os insucessos e desconta do entregue ATUAL (piso 0).
        Chamadas repetidas acumulam o desconto: não há valor base guardado.
        """
        registro = self._buscar(id_registro)
        quantidade = ler_numero(valor)
        if registro is None or quantidade is None or quantidade < 0:
            logger.debug(f"Insucessos ignorados: id={id_registro!r} valor={valor!r}")
            return False

        self._insucessos[id_registro] = quantidade
        registro['entregues'] = max(0, registro['entregues'] - quantidade)
        recalcular_metricas(registro)
        self._atualizar_resumos()
        return True

    # --- EDIÇÃO DE CAMPOS ---
    def editar_campo(self, id_registro, operacao):
        registro = self._buscar(id_registro)
        if registro is None:
            return False

        if isinstance(operacao, DefinirRota):
            if operacao.valor is None or operacao.valor == '':
                return False
            registro['rotas'] = str(operacao.valor)
            return True

        if isinstance(operacao, DefinirTotalPedido):
            campo = 'total_pedido'
        elif isinstance(operacao, DefinirEntregues):
            campo = 'entregues'
        else:
            raise TypeError(f"Operação de edição desconhecida: {operacao!r}")

        numero = ler_numero(operacao.valor)
        if numero is None:
            logger.debug(f"Valor não numérico ignorado em {campo}: {operacao.valor!r}")
            return False

        registro[campo] = numero
        recalcular_metricas(registro)
        self._atualizar_resumos()
        return True

    def aplicar_rota_em_lote(self, valor, filtro):
        """Aplica a rota a todos os registros que passam no filtro ativo da tela. Devolve quantos mudaram."""
        if not valor:
            return 0
        alterados = 0
        for registro in self._registros:
            if filtro(registro):
                registro['rotas'] = valor
                alterados += 1
        return alterados

    # --- CICLO DE EDIÇÃO DO REGISTRO ---
    def iniciar_edicao(self, id_registro):
        registro = self._buscar(id_registro)
        if registro is None:
            return False
        if id_registro in self._snapshots:
            return True
        self._snapshots[id_registro] = {campo: registro[campo] for campo in CAMPOS_EDITAVEIS}
        self._insucessos_originais[id_registro] = self._insucessos.get(id_registro, 0)
        return True

    def salvar_edicao(self, id_registro):
        if id_registro not in self._snapshots:
            return False
        del self._snapshots[id_registro]
        self._insucessos_originais.pop(id_registro, None)
        return True

    def cancelar_edicao(self, id_registro):
        registro = self._buscar(id_registro)
        if registro is None or id_registro not in self._snapshots:
            return False

        registro.update(self._snapshots.pop(id_registro))
        recalcular_metricas(registro)
        self._insucessos[id_registro] = self._insucessos_originais.pop(id_registro, 0)
        self._atualizar_resumos()
        return True

    # --- TOTAL RECEBIDO POR REGIÃO ---
    def em_edicao_regiao(self, regiao):
        return regiao in self._snapshots_regiao

    def iniciar_edicao_regiao(self, regiao):
        if regiao not in REGIOES:
            return False
        self._snapshots_regiao.setdefault(regiao, self._resumos[regiao]['total_recebido'])
        return True

    def definir_total_recebido(self, regiao, valor):
        """Total Recebido é digitado (só SP e RJ); ALL é sempre a soma dos dois."""
        numero = ler_numero(valor)
        if regiao not in REGIOES or numero is None:
            logger.debug(f"Total recebido ignorado: regiao={regiao!r} valor={valor!r}")
            return False
        self._resumos[regiao]['total_recebido'] = numero
        consolidar_total(self._resumos)
        return True

    def salvar_edicao_regiao(self, regiao):
        return self._snapshots_regiao.pop(regiao, None) is not None

    def cancelar_edicao_regiao(self, regiao):
        if regiao not in self._snapshots_regiao:
            return False
        self._resumos[regiao]['total_recebido'] = self._snapshots_regiao.pop(regiao)
        consolidar_total(self._resumos)
        return True
