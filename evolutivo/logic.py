# evolutivo/logic.py
import math
from evolutivo.config import FAIXAS_PERCENTUAL

# ==========================================
# MÉTRICAS DERIVADAS DO REGISTRO
# ==========================================
def calcular_pendente(total_pedido, entregues):
    """Pendência = previsto - entregue. Não tem piso: pode ficar negativa."""
    return total_pedido - entregues

def calcular_percentual_entregas(total_pedido, entregues):
    if total_pedido > 0:
        return entregues / total_pedido * 100
    return 0.0

def calcular_percentual_rota(total_pedido, pendente):
    if total_pedido > 0:
        return (total_pedido - pendente) / total_pedido * 100
    return 0.0

def recalcular_metricas(registro):
    """
    Recalcula pendência e os dois percentuais a partir de total_pedido e entregues.
    Os três campos andam sempre juntos; altera o registro no lugar e o devolve.
    """
    total = registro['total_pedido']
    entregues = registro['entregues']
    pendente = calcular_pendente(total, entregues)

    registro['pendente'] = pendente
    registro['percentual_entregas'] = calcular_percentual_entregas(total, entregues)
    registro['percentual_rota'] = calcular_percentual_rota(total, pendente)
    return registro

# ==========================================
# UTILIDADES
# ==========================================
def ler_numero(valor):
    """
    Interpreta o que o operador digitou num campo numérico.
    Vazio vale 0. Texto não numérico, NaN ou infinito devolvem None (entrada rejeitada).
    """
    if valor is None or isinstance(valor, bool):
        return None

    if isinstance(valor, (int, float)):
        numero = valor
    else:
        texto = str(valor).strip()
        if texto == '':
            return 0
        try:
            numero = float(texto)
        except ValueError:
            return None

    if isinstance(numero, float):
        if math.isnan(numero) or math.isinf(numero):
            return None
        if numero.is_integer():
            return int(numero)
    return numero

def classificar_percentual(percentual, tipo='entregas'):
    """Cor da faixa ('success', 'warning', 'error') de um percentual de entregas ou de rota."""
    for minimo, cor in FAIXAS_PERCENTUAL[tipo]:
        if percentual >= minimo:
            return cor
    return 'error'
