"""Canonical metric vocabulary.

MetricKey is the closed set of names external column headers resolve to.
Anything that does not resolve stays a plain string and never reaches the
calculator.
"""

from enum import Enum

from metrichub.domain.errors import UnknownMetricKeyError


class MetricFormat(Enum):
    """Display format of a metric value."""

    CURRENCY = "currency"
    PERCENTAGE = "percentage"
    MULTIPLIER = "multiplier"
    NUMBER = "number"


class MetricKey(Enum):
    """Canonical metric keys (Portuguese, as used by the dashboards)."""

    INVESTIMENTO = "investimento"
    LEADS = "leads"
    CPL = "cpl"
    IMPRESSOES = "impressoes"
    CPM = "cpm"
    CLIQUES = "cliques"
    CTR = "ctr"
    CPC = "cpc"
    CONNECT_RATE = "connect_rate"
    TX_CONVERSAO_PG = "tx_conversao_pg"
    VENDAS = "vendas"
    CAC = "cac"
    CONVERSOES_PAGINA = "conversoes_pagina"
    VISITAS_PAGINA = "visitas_pagina"
    CHECKOUTS = "checkouts"
    FATURAMENTO = "faturamento"
    TICKET_MEDIO = "ticket_medio"
    ROI = "roi"
    ROAS = "roas"
    FREQUENCIA = "frequencia"

    @classmethod
    def from_value(cls, value: str) -> "MetricKey":
        """Look up a key by its canonical name."""
        try:
            return cls(value)
        except ValueError:
            raise UnknownMetricKeyError(value) from None

    @property
    def label(self) -> str:
        return _KEY_LABELS[self]

    @property
    def format(self) -> MetricFormat:
        return _KEY_FORMATS.get(self, MetricFormat.NUMBER)

    def __str__(self) -> str:
        return self.value


_KEY_LABELS = {
    MetricKey.INVESTIMENTO: "Investimento",
    MetricKey.LEADS: "Leads",
    MetricKey.CPL: "CPL",
    MetricKey.IMPRESSOES: "Impressões",
    MetricKey.CPM: "CPM",
    MetricKey.CLIQUES: "Cliques no Link",
    MetricKey.CTR: "CTR (Link)",
    MetricKey.CPC: "CPC",
    MetricKey.CONNECT_RATE: "Connect Rate",
    MetricKey.TX_CONVERSAO_PG: "Tx. Conversão Pg",
    MetricKey.VENDAS: "Vendas",
    MetricKey.CAC: "CAC",
    MetricKey.CONVERSOES_PAGINA: "Conversões da Página",
    MetricKey.VISITAS_PAGINA: "Visitas da Página",
    MetricKey.CHECKOUTS: "Checkouts",
    MetricKey.FATURAMENTO: "Faturamento",
    MetricKey.TICKET_MEDIO: "Ticket Médio",
    MetricKey.ROI: "ROI",
    MetricKey.ROAS: "ROAS",
    MetricKey.FREQUENCIA: "Frequência",
}

_KEY_FORMATS = {
    MetricKey.INVESTIMENTO: MetricFormat.CURRENCY,
    MetricKey.CPL: MetricFormat.CURRENCY,
    MetricKey.CPM: MetricFormat.CURRENCY,
    MetricKey.CPC: MetricFormat.CURRENCY,
    MetricKey.CAC: MetricFormat.CURRENCY,
    MetricKey.FATURAMENTO: MetricFormat.CURRENCY,
    MetricKey.TICKET_MEDIO: MetricFormat.CURRENCY,
    MetricKey.CTR: MetricFormat.PERCENTAGE,
    MetricKey.CONNECT_RATE: MetricFormat.PERCENTAGE,
    MetricKey.TX_CONVERSAO_PG: MetricFormat.PERCENTAGE,
    MetricKey.ROI: MetricFormat.PERCENTAGE,
    MetricKey.ROAS: MetricFormat.MULTIPLIER,
}


class DerivedMetric(Enum):
    """Ratios computed from base counters.

    Values are the names dashboards use in their payloads.
    """

    CPM = "cpm"
    CTR = "ctr"
    CPC = "cpc"
    CPL = "cpl"
    CPA = "cpa"
    ROI = "roi"
    ROAS = "roas"
    CHECKOUT_RATE = "checkoutRate"
    CONVERSION_RATE = "conversionRate"
    LOADING_RATE = "loadingRate"
    TICKET_MEDIO = "ticketMedio"


# Display metadata for every name appearing in a DerivedMetricSet payload
METRIC_LABELS = {
    "investimento": "Investimento",
    "impressoes": "Impressões",
    "cliques": "Cliques",
    "pageViews": "Visualizações de Página",
    "checkouts": "Checkouts",
    "vendas": "Vendas",
    "leads": "Leads",
    "valorTotal": "Valor Total",
    "cpm": "CPM",
    "ctr": "CTR",
    "cpc": "CPC",
    "cpl": "CPL",
    "cpa": "CPA",
    "roi": "ROI",
    "roas": "ROAS",
    "checkoutRate": "Taxa de Checkout",
    "conversionRate": "Taxa de Conversão",
    "loadingRate": "Taxa de Carregamento",
    "ticketMedio": "Ticket Médio",
}

METRIC_TOOLTIPS = {
    "investimento": "Valor total investido em mídia",
    "impressoes": "Número de vezes que o anúncio foi exibido",
    "cliques": "Cliques no link do anúncio",
    "pageViews": "Visualizações da página de destino",
    "checkouts": "Usuários que iniciaram o checkout",
    "vendas": "Número de compras concluídas",
    "leads": "Leads captados (formulários, WhatsApp, etc)",
    "valorTotal": "Receita total gerada",
    "cpm": "Custo por Mil Impressões (Investimento / Impressões × 1000)",
    "ctr": "Taxa de Cliques (Cliques / Impressões × 100)",
    "cpc": "Custo por Clique (Investimento / Cliques)",
    "cpl": "Custo por Lead (Investimento / Leads)",
    "cpa": "Custo por Aquisição (Investimento / Vendas)",
    "roi": "Retorno sobre Investimento ((Receita - Investimento) / Investimento × 100)",
    "roas": "Retorno sobre Gasto com Anúncios (Receita / Investimento)",
    "checkoutRate": "Taxa de Checkout (Checkouts / Visualizações × 100)",
    "conversionRate": "Taxa de Conversão (Vendas / Cliques × 100)",
    "loadingRate": "Taxa de Carregamento da Página (Visualizações / Cliques × 100)",
    "ticketMedio": "Valor médio por venda (Receita / Vendas)",
}

_CURRENCY_METRICS = {"investimento", "valorTotal", "cpm", "cpc", "cpl", "cpa", "ticketMedio"}
_PERCENTAGE_METRICS = {"ctr", "roi", "checkoutRate", "conversionRate", "loadingRate"}
_MULTIPLIER_METRICS = {"roas"}


def metric_format(name: str) -> MetricFormat:
    """Display format for a DerivedMetricSet payload name."""
    if name in _CURRENCY_METRICS:
        return MetricFormat.CURRENCY
    if name in _PERCENTAGE_METRICS:
        return MetricFormat.PERCENTAGE
    if name in _MULTIPLIER_METRICS:
        return MetricFormat.MULTIPLIER
    return MetricFormat.NUMBER


def metric_label(name: str) -> str:
    return METRIC_LABELS.get(name, name)
