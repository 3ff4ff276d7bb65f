from datetime import datetime

import pytest

from evolutivo.logic import recalcular_metricas
from evolutivo.store import RegistroStore, DefinirRota, DefinirTotalPedido, DefinirEntregues
from evolutivo.view import criar_filtro


def registro(id_registro, motorista, regiao, total, entregues, rotas='1'):
    return recalcular_metricas({
        'id': id_registro,
        'data': 'Not Started',
        'data_completa': '',
        'motorista': motorista,
        'rotas': rotas,
        'regiao': regiao,
        'total_pedido': total,
        'entregues': entregues,
    })


@pytest.fixture
def store():
    """Store com um registro de cada região e um sem região reconhecida"""
    s = RegistroStore()
    s.adicionar_importados([
        registro('a', 'Ana', 'SP', 100, 80),
        registro('b', 'Bruno', 'RJ', 50, 50),
        registro('c', 'Carla', '', 10, 5),
    ])
    return s


def assert_totais_consistentes(s):
    resumos = s.resumos
    for campo in ['total_pedidos', 'entregues', 'insucessos', 'total_recebido']:
        assert resumos['ALL'][campo] == resumos['SP'][campo] + resumos['RJ'][campo]


def test_import_appends_without_deduplicating(store):
    store.adicionar_importados([registro('a2', 'Ana', 'SP', 100, 80)])
    store.adicionar_importados([registro('a3', 'Ana', 'SP', 100, 80)])

    assert len(store) == 5
    assert store.resumos['SP']['total_pedidos'] == 300


def test_unknown_region_is_listed_but_not_aggregated(store):
    assert [r['id'] for r in store.registros] == ['a', 'b', 'c']
    assert store.resumos['ALL']['total_pedidos'] == 150
    assert store.resumos['ALL']['entregues'] == 130


def test_adicionar_manual_defaults():
    s = RegistroStore()
    momento = datetime(2024, 5, 1, 14, 30)
    novo = s.adicionar_manual('  Diego ', '40', 'RJ', momento)

    r = s.obter(novo)
    assert r['motorista'] == 'Diego'
    assert r['rotas'] == '1'
    assert r['entregues'] == 0
    assert r['pendente'] == 40
    assert r['percentual_entregas'] == 0
    assert r['percentual_rota'] == 0
    assert r['data'] == '01/05/2024 14:30'
    assert r['data_completa'] == momento.isoformat()
    assert s.insucessos_de(novo) == 0
    assert s.resumos['RJ']['total_pedidos'] == 40


def test_adicionar_manual_empty_values():
    s = RegistroStore()
    assert s.adicionar_manual('', '10') is None
    assert s.adicionar_manual('   ', '10') is None
    assert s.adicionar_manual('Ana', 'dez') is None
    assert len(s) == 0

    novo = s.adicionar_manual('Ana')
    assert s.obter(novo)['total_pedido'] == 0
    assert s.obter(novo)['regiao'] == 'SP'


def test_failure_count_adjusts_delivered(store):
    assert store.definir_insucessos('a', '5')

    r = store.obter('a')
    assert r['entregues'] == 75
    assert r['pendente'] == 25
    assert r['percentual_entregas'] == 75.0
    assert r['percentual_rota'] == 75.0
    assert store.insucessos_de('a') == 5
    assert store.resumos['SP']['insucessos'] == 5
    assert store.resumos['SP']['entregues'] == 75


def test_failure_count_compounds_on_current_delivered(store):
    store.definir_insucessos('a', 5)
    store.definir_insucessos('a', 10)

    assert store.obter('a')['entregues'] == 65
    assert store.insucessos_de('a') == 10


def test_failure_count_floors_delivered_at_zero(store):
    store.definir_insucessos('b', 70)
    assert store.obter('b')['entregues'] == 0
    assert store.obter('b')['pendente'] == 50


def test_failure_count_rejects_non_numeric(store):
    antes = store.obter('a')
    assert not store.definir_insucessos('a', 'x')
    assert store.obter('a') == antes
    assert store.insucessos_de('a') == 0


def test_failure_count_rejects_negative(store):
    antes = store.obter('a')
    assert not store.definir_insucessos('a', '-5')
    assert not store.definir_insucessos('a', -1)

    assert store.obter('a') == antes
    assert store.insucessos_de('a') == 0
    assert store.resumos['SP']['insucessos'] == 0
    assert store.resumos['ALL']['insucessos'] == 0


def test_edit_route_rules(store):
    assert not store.editar_campo('a', DefinirRota(''))
    assert store.obter('a')['rotas'] == '1'

    antes = store.obter('a')
    assert store.editar_campo('a', DefinirRota('7B'))
    depois = store.obter('a')
    assert depois['rotas'] == '7B'
    assert {k: v for k, v in depois.items() if k != 'rotas'} == {k: v for k, v in antes.items() if k != 'rotas'}


def test_edit_counts_recompute_metrics(store):
    store.editar_campo('a', DefinirTotalPedido('200'))
    r = store.obter('a')
    assert r['pendente'] == 120
    assert r['percentual_entregas'] == 40.0
    assert r['percentual_rota'] == 40.0
    assert store.resumos['SP']['total_pedidos'] == 200

    store.editar_campo('a', DefinirEntregues('250'))
    r = store.obter('a')
    assert r['pendente'] == -50
    assert r['percentual_entregas'] == 125.0


def test_edit_counts_reject_non_numeric(store):
    antes = store.obter('b')
    assert not store.editar_campo('b', DefinirTotalPedido('muitos'))
    assert not store.editar_campo('b', DefinirEntregues('1,5'))
    assert store.obter('b') == antes


def test_empty_count_means_zero(store):
    store.editar_campo('a', DefinirTotalPedido(''))
    r = store.obter('a')
    assert r['total_pedido'] == 0
    assert r['percentual_entregas'] == 0
    assert r['percentual_rota'] == 0


def test_commit_without_changes_is_idempotent(store):
    antes = store.obter('a')
    store.iniciar_edicao('a')
    assert store.em_edicao('a')
    store.salvar_edicao('a')

    assert not store.em_edicao('a')
    assert store.obter('a') == antes


def test_cancel_restores_pre_edit_values(store):
    """Começa a edição, muda o total de 100 para 50 e cancela"""
    antes = store.obter('a')
    store.iniciar_edicao('a')
    store.editar_campo('a', DefinirTotalPedido(50))
    assert store.obter('a')['total_pedido'] == 50

    store.cancelar_edicao('a')
    assert store.obter('a') == antes
    assert not store.em_edicao('a')


def test_cancel_restores_after_any_sequence(store):
    store.definir_insucessos('a', 3)
    antes = store.obter('a')
    resumos_antes = store.resumos

    store.iniciar_edicao('a')
    store.editar_campo('a', DefinirRota('9'))
    store.editar_campo('a', DefinirEntregues(10))
    store.definir_insucessos('a', 4)
    store.editar_campo('a', DefinirTotalPedido(0))
    store.cancelar_edicao('a')

    assert store.obter('a') == antes
    assert store.insucessos_de('a') == 3
    assert store.resumos == resumos_antes


def test_begin_edit_twice_keeps_first_snapshot(store):
    store.iniciar_edicao('a')
    store.editar_campo('a', DefinirTotalPedido(10))
    store.iniciar_edicao('a')
    store.cancelar_edicao('a')
    assert store.obter('a')['total_pedido'] == 100


def test_cancel_without_edit_is_noop(store):
    store.definir_insucessos('a', 2)
    assert not store.cancelar_edicao('a')
    assert store.insucessos_de('a') == 2


def test_remove_leaves_failure_entry_orphaned(store):
    store.definir_insucessos('a', 5)
    assert store.remover('a')

    assert store.obter('a') is None
    assert store.insucessos == {'a': 5}
    assert store.resumos['SP']['total_pedidos'] == 0
    assert store.resumos['SP']['insucessos'] == 0
    assert not store.remover('a')


def test_batch_route_only_touches_filtered_records(store):
    antes = {r['id']: r for r in store.registros}
    alterados = store.aplicar_rota_em_lote('12', criar_filtro(regiao='RJ'))

    assert alterados == 1
    depois = {r['id']: r for r in store.registros}
    assert depois['b']['rotas'] == '12'
    assert depois['a'] == antes['a']
    assert depois['c'] == antes['c']


def test_batch_route_empty_value_is_noop(store):
    antes = store.registros
    assert store.aplicar_rota_em_lote('', criar_filtro()) == 0
    assert store.registros == antes


def test_limpar_empties_records_and_failures(store):
    store.definir_insucessos('a', 1)
    store.definir_total_recebido('SP', 100)
    store.limpar()

    assert len(store) == 0
    assert store.insucessos == {}
    assert store.resumos['ALL']['total_pedidos'] == 0
    assert store.resumos['SP']['total_recebido'] == 100


def test_region_total_received_scenario(store):
    store.definir_total_recebido('SP', 100)
    store.definir_total_recebido('RJ', '50')

    resumos = store.resumos
    assert resumos['ALL']['total_recebido'] == 150
    assert resumos['SP']['percentual_entregas'] == 80.0
    assert resumos['RJ']['percentual_entregas'] == 100.0
    assert resumos['ALL']['percentual_entregas'] == pytest.approx(130 / 150 * 100)


def test_total_received_survives_recomputation(store):
    store.definir_total_recebido('SP', 200)
    store.editar_campo('a', DefinirEntregues(100))

    assert store.resumos['SP']['total_recebido'] == 200
    assert store.resumos['SP']['percentual_entregas'] == 50.0


def test_total_received_rules(store):
    assert not store.definir_total_recebido('ALL', 10)
    assert not store.definir_total_recebido('SP', 'cem')
    assert store.resumos['SP']['total_recebido'] == 0
    assert not store.iniciar_edicao_regiao('ALL')


def test_region_edit_cancel_restores_snapshot(store):
    store.definir_total_recebido('SP', 100)
    store.iniciar_edicao_regiao('SP')
    assert store.em_edicao_regiao('SP')
    store.definir_total_recebido('SP', 400)
    assert store.resumos['ALL']['total_recebido'] == 400

    store.cancelar_edicao_regiao('SP')
    assert not store.em_edicao_regiao('SP')
    assert store.resumos['SP']['total_recebido'] == 100
    assert store.resumos['SP']['percentual_entregas'] == 80.0
    assert store.resumos['ALL']['total_recebido'] == 100


def test_region_edit_cancel_restores_zero(store):
    store.iniciar_edicao_regiao('RJ')
    store.definir_total_recebido('RJ', 25)
    store.cancelar_edicao_regiao('RJ')
    assert store.resumos['RJ']['total_recebido'] == 0
    assert store.resumos['RJ']['percentual_entregas'] == 0


def test_region_edit_commit_keeps_value(store):
    store.iniciar_edicao_regiao('RJ')
    store.definir_total_recebido('RJ', 25)
    assert store.salvar_edicao_regiao('RJ')
    assert not store.cancelar_edicao_regiao('RJ')
    assert store.resumos['RJ']['total_recebido'] == 25


def test_aggregate_sums_hold_after_mutation_sequence(store):
    store.definir_insucessos('a', 4)
    store.adicionar_manual('Diego', 30, 'RJ')
    store.editar_campo('b', DefinirEntregues(20))
    store.definir_total_recebido('RJ', 60)
    store.remover('c')
    store.definir_insucessos('b', 2)

    assert_totais_consistentes(store)
    assert store.resumos['RJ']['total_pedidos'] == 80
    assert store.resumos['ALL']['insucessos'] == 6


def test_read_accessors_return_copies(store):
    store.registros[0]['rotas'] = 'mexido'
    store.resumos['SP']['total_recebido'] = 999
    assert store.obter('a')['rotas'] == '1'
    assert store.resumos['SP']['total_recebido'] == 0
