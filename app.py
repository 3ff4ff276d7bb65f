# app.py
import logging
from datetime import datetime

import streamlit as st
import pandas as pd
import plotly.express as px

from evolutivo.config import REGIOES, REGIAO_TOTAL, NOMES_REGIOES, ROTULO_NAO_INICIADA, NIVEL_LOG
from evolutivo.data import importar_planilha
from evolutivo.logic import classificar_percentual
from evolutivo.persistence import carregar_estado, salvar_estado
from evolutivo.store import DefinirRota, DefinirTotalPedido, DefinirEntregues
from evolutivo.view import (
    COLUNAS_TABELA, criar_filtro, alternar_ordenacao, projetar,
    motoristas_unicos, montar_tabela,
)

logging.basicConfig(level=NIVEL_LOG)

# --- CONFIGURAÇÃO INICIAL ---
st.set_page_config(page_title="Evolutivo de Rotas R2PP", page_icon="🚚", layout="wide")

# --- GESTÃO DE ESTADO ---
if 'store' not in st.session_state:
    st.session_state.store = carregar_estado()

for chave, padrao in [('regiao', ''), ('motorista', 'all'), ('busca', ''), ('ordenacao', None),
                      ('confirmar_exclusao', None), ('uploader', 0), ('expandidas', set())]:
    if chave not in st.session_state:
        st.session_state[chave] = padrao

store = st.session_state.store

def persistir():
    salvar_estado(store)

def on_regiao():
    # Trocar a região zera o filtro de motorista
    st.session_state.motorista = 'all'

# --- CSS PERSONALIZADO ---
st.markdown("""
    <style>
        .block-container { padding-top: 2rem; padding-bottom: 2rem; }
        h1 { color: #ed5c0e; }

        /* FAIXAS DE PERCENTUAL */
        .pct { border-radius: 0.375rem; padding: 0.2rem 0.5rem; text-align: center; font-weight: 600; }
        .pct-success { background-color: rgba(9, 171, 59, 0.15); color: #09AB3B; }
        .pct-warning { background-color: rgba(255, 189, 69, 0.15); color: #D98E04; }
        .pct-error { background-color: rgba(255, 75, 75, 0.15); color: #FF4B4B; }

        .nao-iniciada { color: #FF4B4B; font-weight: 600; }
        .resumo-valor { background-color: #f6f6f8; border-radius: 0.375rem; padding: 0.4rem; text-align: center; }

        div.stButton > button { width: 100%; border-radius: 8px; }
    </style>
""", unsafe_allow_html=True)

def badge_percentual(valor, tipo):
    return f'<div class="pct pct-{classificar_percentual(valor, tipo)}">{valor:.2f}%</div>'

st.title("🚚 Evolutivo de Rotas R2PP")
st.caption("Importe, gerencie e acompanhe a evolução das entregas dos motoristas")

# ==========================================
# AÇÕES DE TOPO: IMPORTAR / ADICIONAR / LIMPAR
# ==========================================
col_imp, col_add, col_limpar = st.columns([3, 2, 1])

with col_imp:
    arquivo = st.file_uploader("Importar novo arquivo", type=["xlsx"], key=f"uploader_{st.session_state.uploader}")
    if arquivo is not None and st.button("📥 Importar", type="primary"):
        with st.spinner('Lendo planilha...'):
            registros, log = importar_planilha(arquivo)
        if registros is None:
            st.error(log)
        else:
            store.adicionar_importados(registros)
            persistir()
            st.session_state.uploader += 1
            st.success(f"{len(registros)} registros importados!")
            for aviso in log:
                st.warning(aviso)

with col_add:
    with st.expander("👤 Adicionar Motorista"):
        with st.form("novo_motorista", clear_on_submit=True):
            nome = st.text_input("Motorista")
            total = st.text_input("Total de Pedidos")
            regiao_nova = st.selectbox("Região", list(REGIOES), format_func=lambda r: f"{NOMES_REGIOES[r]} ({r})")
            dia = st.date_input("Data", value=datetime.now().date(), format="DD/MM/YYYY")
            hora = st.time_input("Hora", value=datetime.now().time().replace(second=0, microsecond=0))
            if st.form_submit_button("Adicionar"):
                novo = store.adicionar_manual(nome, total, regiao_nova, datetime.combine(dia, hora))
                if novo:
                    persistir()
                    st.success(f"Motorista {nome.strip()} adicionado.")
                else:
                    st.error("Informe o nome do motorista e um total numérico.")

with col_limpar:
    if st.button("🗑️ Limpar", type="secondary"):
        store.limpar()
        persistir()
        st.rerun()

st.divider()

# ==========================================
# FILTROS E ROTA EM LOTE
# ==========================================
opcoes_regiao = {'': "Selecione uma região", 'all': "Todas Regiões"}
opcoes_regiao.update({r: f"{NOMES_REGIOES[r]} ({r})" for r in REGIOES})

f1, f2, f3 = st.columns(3)
with f1:
    st.text_input("🔍 Buscar...", key='busca')
with f2:
    st.selectbox("Região", list(opcoes_regiao), format_func=opcoes_regiao.get, key='regiao', on_change=on_regiao)
with f3:
    motoristas = ['all'] + motoristas_unicos(store.registros, st.session_state.regiao)
    if st.session_state.motorista not in motoristas:
        st.session_state.motorista = 'all'
    st.selectbox("Motorista", motoristas, format_func=lambda m: "Selecionar motorista" if m == 'all' else m, key='motorista')

filtro = criar_filtro(st.session_state.busca, st.session_state.regiao, st.session_state.motorista)

with st.form("rota_lote", clear_on_submit=True):
    c_rota, c_btn = st.columns([4, 1])
    rota_lote = c_rota.text_input("Rota em lote", placeholder="Digite a rota para aplicar em lote", label_visibility="collapsed")
    if c_btn.form_submit_button("✔️ Aplicar"):
        alterados = store.aplicar_rota_em_lote(rota_lote, filtro)
        if alterados:
            persistir()
            st.toast(f"Rota '{rota_lote}' aplicada a {alterados} registro(s).")

# ==========================================
# RESUMO POR REGIÃO
# ==========================================
def render_resumo(regiao, resumo):
    with st.container(border=True):
        cab, acoes = st.columns([5, 1])
        expandida = regiao in st.session_state.expandidas
        seta = "▼" if expandida else "▶"
        if cab.button(f"{seta} {NOMES_REGIOES[regiao]}", key=f"exp_{regiao}", type="tertiary"):
            st.session_state.expandidas ^= {regiao}
            st.rerun()

        editando = store.em_edicao_regiao(regiao)
        if regiao != REGIAO_TOTAL and not editando:
            if acoes.button("✏️", key=f"edit_reg_{regiao}"):
                store.iniciar_edicao_regiao(regiao)
                st.session_state.expandidas |= {regiao}
                st.rerun()

        if not expandida:
            return

        c1, c2, c3, c4, c5 = st.columns(5)
        c1.caption("Total Recebido")
        if editando:
            def on_total(regiao=regiao):
                store.definir_total_recebido(regiao, st.session_state[f"recebido_{regiao}"])
            c1.text_input("Total Recebido", value=str(resumo['total_recebido']), key=f"recebido_{regiao}",
                          on_change=on_total, label_visibility="collapsed")
        else:
            c1.markdown(f'<div class="resumo-valor">{resumo["total_recebido"]}</div>', unsafe_allow_html=True)
        for col, rotulo, campo in [(c2, "Total de Pedidos", 'total_pedidos'), (c3, "Entregues", 'entregues'),
                                   (c4, "Insucessos", 'insucessos')]:
            col.caption(rotulo)
            col.markdown(f'<div class="resumo-valor">{resumo[campo]}</div>', unsafe_allow_html=True)
        c5.caption("% Entregas")
        c5.markdown(badge_percentual(resumo['percentual_entregas'], 'entregas'), unsafe_allow_html=True)

        if editando:
            _, b_ok, b_cancel = st.columns([4, 1, 1])
            if b_ok.button("✔️ Salvar", key=f"salvar_reg_{regiao}"):
                store.salvar_edicao_regiao(regiao)
                st.rerun()
            if b_cancel.button("✖️ Cancelar", key=f"cancelar_reg_{regiao}"):
                store.cancelar_edicao_regiao(regiao)
                st.session_state.pop(f"recebido_{regiao}", None)
                st.rerun()

regiao_sel = st.session_state.regiao
if regiao_sel != '':
    resumos = store.resumos
    visiveis = [REGIAO_TOTAL] + list(REGIOES) if regiao_sel == 'all' else [regiao_sel]
    for regiao in visiveis:
        render_resumo(regiao, resumos[regiao])

    if regiao_sel == 'all' and len(store):
        df_graf = pd.DataFrame([
            {'Região': r, 'Indicador': rotulo, 'Quantidade': resumos[r][campo]}
            for r in REGIOES
            for rotulo, campo in [('Total Recebido', 'total_recebido'), ('Total de Pedidos', 'total_pedidos'),
                                  ('Entregues', 'entregues'), ('Insucessos', 'insucessos')]
        ])
        fig = px.bar(df_graf, x='Região', y='Quantidade', color='Indicador', barmode='group')
        fig.update_layout(height=320, margin=dict(l=20, r=20, t=20, b=20),
                          plot_bgcolor='rgba(0,0,0,0)', paper_bgcolor='rgba(0,0,0,0)', xaxis_title=None, yaxis_title=None)
        st.plotly_chart(fig, use_container_width=True)

st.divider()

# ==========================================
# TABELA DE REGISTROS
# ==========================================
insucessos = store.insucessos
linhas = projetar(store.registros, filtro, st.session_state.ordenacao, insucessos)

LARGURAS = [1.4, 2, 1.1, 0.8, 1, 1, 0.9, 0.9, 1.1, 1.1, 1.2]
colunas_visiveis = ['data', 'motorista', 'percentual_entregas', 'rotas', 'total_pedido', 'entregues',
                    'pendente', 'insucessos', 'percentual_rota', 'regiao']

cabecalho = st.columns(LARGURAS)
for col, chave in zip(cabecalho, colunas_visiveis):
    ordem = st.session_state.ordenacao
    seta = (" ▲" if ordem[1] == 'asc' else " ▼") if ordem and ordem[0] == chave else ""
    if col.button(f"{COLUNAS_TABELA[chave]}{seta}", key=f"ord_{chave}"):
        st.session_state.ordenacao = alternar_ordenacao(ordem, chave)
        st.rerun()
cabecalho[-1].markdown("**Ações**")

def on_campo(id_registro, campo, operacao):
    if store.editar_campo(id_registro, operacao(st.session_state[f"{campo}_{id_registro}"])):
        persistir()

def on_insucessos(id_registro):
    if store.definir_insucessos(id_registro, st.session_state[f"insucessos_{id_registro}"]):
        # O entregue mudou no store; o campo em edição precisa reler o valor
        st.session_state.pop(f"entregues_{id_registro}", None)
        persistir()

for item in linhas:
    rid = item['id']
    editando = store.em_edicao(rid)
    c = st.columns(LARGURAS)

    classe = ' class="nao-iniciada"' if item['data'] == ROTULO_NAO_INICIADA else ''
    c[0].markdown(f"<span{classe}>{item['data']}</span>", unsafe_allow_html=True)
    c[1].write(item['motorista'])
    c[2].markdown(badge_percentual(item['percentual_entregas'], 'entregas'), unsafe_allow_html=True)

    if editando:
        for col, campo, operacao in [(c[3], 'rotas', DefinirRota), (c[4], 'total_pedido', DefinirTotalPedido),
                                     (c[5], 'entregues', DefinirEntregues)]:
            col.text_input(campo, value=str(item[campo]), key=f"{campo}_{rid}", label_visibility="collapsed",
                           on_change=on_campo, args=(rid, campo, operacao))
        c[7].text_input("insucessos", value=str(insucessos.get(rid, 0)), key=f"insucessos_{rid}",
                        label_visibility="collapsed", on_change=on_insucessos, args=(rid,))
    else:
        c[3].write(item['rotas'])
        c[4].write(item['total_pedido'])
        c[5].write(item['entregues'])
        c[7].write(insucessos.get(rid, 0))

    c[6].write(item['pendente'])
    c[8].markdown(badge_percentual(item['percentual_rota'], 'rota'), unsafe_allow_html=True)
    c[9].write(item['regiao'])

    b1, b2 = c[10].columns(2)
    if editando:
        salvar = b1.button("✔️", key=f"salvar_{rid}", help="Salvar")
        cancelar = b2.button("✖️", key=f"cancelar_{rid}", help="Cancelar")
        if salvar or cancelar:
            if salvar:
                store.salvar_edicao(rid)
            else:
                store.cancelar_edicao(rid)
            for campo in ['rotas', 'total_pedido', 'entregues', 'insucessos']:
                st.session_state.pop(f"{campo}_{rid}", None)
            persistir()
            st.rerun()
    else:
        if b1.button("✏️", key=f"editar_{rid}", help="Editar"):
            store.iniciar_edicao(rid)
            st.rerun()
        if b2.button("🗑️", key=f"excluir_{rid}", help="Excluir"):
            st.session_state.confirmar_exclusao = rid
            st.rerun()

    if st.session_state.confirmar_exclusao == rid:
        aviso, sim, nao = st.columns([4, 1, 1])
        aviso.warning(f"Excluir o registro de **{item['motorista']}**? Esta ação não pode ser desfeita.")
        if sim.button("Excluir", key=f"confirma_{rid}", type="primary"):
            store.remover(rid)
            persistir()
            st.session_state.confirmar_exclusao = None
            st.rerun()
        if nao.button("Cancelar", key=f"desiste_{rid}"):
            st.session_state.confirmar_exclusao = None
            st.rerun()

if not linhas:
    st.info("💡 Nenhum registro. Importe uma planilha ou adicione um motorista.")
else:
    df_export = montar_tabela(linhas, insucessos)
    st.download_button("⬇️ Exportar CSV", df_export.to_csv(index=False).encode('utf-8'),
                       file_name="evolutivo_rotas.csv", mime="text/csv")
