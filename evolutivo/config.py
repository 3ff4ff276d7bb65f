# evolutivo/config.py
import os

# --- COLUNAS DA PLANILHA ---
# Papel lógico -> texto do cabeçalho exportado pelo roteirizador.
# A comparação é feita em minúsculas e sem espaços nas pontas,
# então 'AGENTE' ou ' agente ' também são reconhecidos.
#
# agente:     Nome do motorista.
# veiculo:    Placa/código do veículo. É daqui que sai a região (SP / RJ).
# inicio:     Horário real de início da rota.
# previsto:   Quantidade de serviços planejados.
# realizado:  Quantidade de serviços concluídos.
# situacao:   Status da rota. Só serve para descartar as 'Cancelada'.
COLUNAS_PLANILHA = {
    'agente': 'Agente',
    'veiculo': 'Veículo',
    'inicio': 'Início - Realizado',
    'previsto': 'Serviços - Previsto',
    'realizado': 'Serviços - Realizado',
    'situacao': 'Situação',
}

# --- REGIÕES ---
# A ordem importa: 'SP' é testado antes de 'RJ' no código do veículo.
REGIOES = ('SP', 'RJ')
REGIAO_TOTAL = 'ALL'

NOMES_REGIOES = {
    'SP': 'São Paulo',
    'RJ': 'Rio de Janeiro',
    'ALL': 'Todas as Regiões',
}

# --- VALORES PADRÃO DOS REGISTROS ---
SITUACAO_CANCELADA = 'Cancelada'  # comparação exata, sensível a maiúsculas
ROTA_PADRAO = '1'
ROTULO_NAO_INICIADA = 'Not Started'
FORMATO_DATA = '%d/%m/%Y %H:%M'

# --- FAIXAS DE COR DOS PERCENTUAIS ---
# Cada faixa é (limite mínimo, cor). A primeira que o valor alcançar vence;
# abaixo de todas, 'error'.
# entregas: % de entregas (registro e resumo de região).
# rota:     % de rota concluída. Verde só com 100% cravado.
FAIXAS_PERCENTUAL = {
    'entregas': [(98, 'success'), (91, 'warning')],
    'rota': [(100, 'success'), (96, 'warning')],
}

# --- PERSISTÊNCIA ---
# Arquivo JSON com registros + insucessos. Equivale ao localStorage do navegador.
ARQUIVO_ESTADO = os.environ.get('EVOLUTIVO_ESTADO', os.path.join('.evolutivo', 'estado.json'))
VERSAO_ESTADO = 1

# --- LOG ---
NIVEL_LOG = os.environ.get('EVOLUTIVO_LOG_LEVEL', 'INFO').upper()
