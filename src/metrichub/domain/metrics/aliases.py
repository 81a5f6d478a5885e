"""
Alias resolution - maps external column headers to canonical metric keys.

Ads platforms, client spreadsheets and manual entry all name the same metric
differently ("spend", "Gasto", "Valor usado (BRL)"). The registry holds the
accepted aliases per canonical key and a reverse index for O(1) lookup;
extending it for a new source is a data change only.
"""

import logging
import re
import threading
import unicodedata
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from metrichub.domain.errors import AliasConflictError
from metrichub.domain.metrics.keys import MetricKey

logger = logging.getLogger(__name__)

_SEPARATORS_RE = re.compile(r"[\s_]+")

DEFAULT_ALIAS_TABLE_VERSION = "2024.10"

DEFAULT_ALIASES: Dict[MetricKey, List[str]] = {
    MetricKey.INVESTIMENTO: [
        "spend", "gasto", "investimento_total", "cost", "amount_spent",
        "amount spent (brl)", "valor usado", "valor usado (brl)", "valor investido",
        "investido", "verba", "budget", "custo total",
    ],
    MetricKey.LEADS: [
        "lead", "cadastros", "registros", "lead_form_submissions", "registrations",
        "leads gerados", "leads totais", "contacts", "contatos", "qtd leads",
    ],
    MetricKey.CPL: ["cost_per_lead", "custo_por_lead", "custo/lead"],
    MetricKey.IMPRESSOES: ["impressões", "impressions", "reach", "alcance"],
    MetricKey.CPM: [
        "cost_per_mille", "cost_per_thousand", "custo_por_mil", "impressions cost",
        "custo impressões", "cpm (custo por 1.000 impressões)",
    ],
    MetricKey.CLIQUES: [
        "cliques_link", "cliques no link", "link_clicks", "clicks", "click",
        "cliques (todos)", "clicks (all)",
    ],
    MetricKey.CTR: [
        "ctr_link", "click_through_rate", "click-through rate", "taxa_cliques",
        "taxa de cliques", "click rate", "taxa clique",
        "ctr (taxa de cliques no link)", "ctr (link click-through rate)",
    ],
    MetricKey.CPC: [
        "cost_per_click", "custo_por_clique", "cpc (custo por clique no link)",
        "cpc (cost per link click)",
    ],
    MetricKey.CONNECT_RATE: ["taxa_conexao", "taxa de conexão", "conversion_rate_clicks"],
    MetricKey.TX_CONVERSAO_PG: [
        "page_conv_rate", "taxa_conversao_pagina", "taxa de conversão da página",
    ],
    MetricKey.VENDAS: ["sales", "purchases", "compras", "orders", "pedidos"],
    MetricKey.CAC: [
        "cost_per_acquisition", "custo_aquisicao_cliente", "custo por aquisição",
        "cpa", "cost per purchase", "custo por compra",
    ],
    MetricKey.CONVERSOES_PAGINA: [
        "conversions", "conversões", "page_conversions", "conversões da página",
    ],
    MetricKey.VISITAS_PAGINA: [
        "page_views", "pageviews", "visitas", "views", "visualizações",
        "visitas da página", "landing page views",
        "visualizações da página de destino",
    ],
    MetricKey.CHECKOUTS: [
        "checkout", "initiate checkout", "initiate_checkout", "checkouts iniciados",
        "finalizações de compra iniciadas", "inícios de checkout",
    ],
    MetricKey.FATURAMENTO: [
        "revenue", "receita", "income", "valor total", "valor_total",
        "purchase conversion value", "valor de conversão da compra",
    ],
    MetricKey.TICKET_MEDIO: ["ticket médio", "average ticket", "avg_ticket", "ticket", "aov"],
    MetricKey.ROI: ["return_on_investment", "retorno"],
    MetricKey.ROAS: ["purchase roas", "roas de compras", "return on ad spend"],
    MetricKey.FREQUENCIA: ["frequência", "frequency"],
}


def normalize_header(text: str) -> str:
    """
    Normalize header text for alias lookup.

    Lower-cases, strips diacritics and surrounding whitespace, and collapses
    runs of spaces/underscores so "Cliques_Link" and "cliques link" match.

    Args:
        text: Raw header text

    Returns:
        Normalized lookup key
    """
    decomposed = unicodedata.normalize("NFKD", text)
    without_marks = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _SEPARATORS_RE.sub(" ", without_marks.lower()).strip()


class AliasRegistry:
    """
    Versioned, immutable table of canonical key -> accepted aliases.

    Each canonical key name is implicitly an alias of itself. The reverse
    index is built once at construction and an alias listed under two keys
    is rejected with AliasConflictError.
    """

    def __init__(
        self,
        aliases: Mapping[MetricKey, Iterable[str]],
        version: str = DEFAULT_ALIAS_TABLE_VERSION,
    ) -> None:
        table: Dict[MetricKey, tuple] = {}
        index: Dict[str, MetricKey] = {}

        for key in MetricKey:
            entries = [key.value, *aliases.get(key, ())]
            table[key] = tuple(dict.fromkeys(entries))
            for alias in table[key]:
                normalized = normalize_header(alias)
                if not normalized:
                    continue
                existing = index.get(normalized)
                if existing is not None and existing != key:
                    raise AliasConflictError(normalized, existing.value, key.value)
                index[normalized] = key

        self.version = version
        self._aliases = MappingProxyType(table)
        self._index = MappingProxyType(index)

    @classmethod
    def default(cls) -> "AliasRegistry":
        """Registry with the built-in alias table."""
        return cls(DEFAULT_ALIASES, DEFAULT_ALIAS_TABLE_VERSION)

    @classmethod
    def from_mapping(
        cls,
        mapping: Mapping[Union[MetricKey, str], Iterable[str]],
        version: str = DEFAULT_ALIAS_TABLE_VERSION,
    ) -> "AliasRegistry":
        """Build a registry from a table keyed by canonical names (e.g. loaded from YAML)."""
        return cls(_coerce_keys(mapping), version)

    def extend(
        self,
        extra: Mapping[Union[MetricKey, str], Iterable[str]],
        version: Optional[str] = None,
    ) -> "AliasRegistry":
        """Return a new registry with additional aliases merged in."""
        merged: Dict[MetricKey, List[str]] = {
            key: list(aliases) for key, aliases in self._aliases.items()
        }
        for key, aliases in _coerce_keys(extra).items():
            merged.setdefault(key, []).extend(aliases)
        return AliasRegistry(merged, version or self.version)

    def lookup(self, normalized_header: str) -> Optional[MetricKey]:
        """Look up an already-normalized header."""
        return self._index.get(normalized_header)

    def aliases_for(self, key: MetricKey) -> tuple:
        return self._aliases[key]

    def as_dict(self) -> Dict[str, List[str]]:
        return {key.value: list(aliases) for key, aliases in self._aliases.items()}

    def __len__(self) -> int:
        return len(self._index)

    def __repr__(self) -> str:
        return f"AliasRegistry(version='{self.version}', aliases={len(self)})"


class UnmatchedHeaderCollector:
    """
    Bounded record of headers that did not resolve, for operator review.

    Safe to share between concurrent ingestion calls. Duplicates collapse on
    the original header text; once max_size distinct headers are held, new
    ones are counted in `dropped` but not stored.
    """

    def __init__(self, max_size: int = 500) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self._max_size = max_size
        self._headers: Dict[str, None] = {}
        self._lock = threading.Lock()
        self.dropped = 0

    def record(self, header: str) -> bool:
        """
        Record an unmatched header.

        Returns:
            True if the header was seen for the first time and stored
        """
        with self._lock:
            if header in self._headers:
                return False
            if len(self._headers) >= self._max_size:
                self.dropped += 1
                return False
            self._headers[header] = None

        logger.warning(f"Unmatched metric header: {header}")
        return True

    def snapshot(self) -> List[str]:
        with self._lock:
            return list(self._headers)

    def clear(self) -> None:
        with self._lock:
            self._headers.clear()
            self.dropped = 0

    @property
    def max_size(self) -> int:
        return self._max_size

    def __len__(self) -> int:
        with self._lock:
            return len(self._headers)

    def __contains__(self, header: object) -> bool:
        with self._lock:
            return header in self._headers


class AliasResolver:
    """Resolve headers and rows against an AliasRegistry."""

    def __init__(
        self,
        registry: AliasRegistry,
        collector: Optional[UnmatchedHeaderCollector] = None,
    ) -> None:
        self.registry = registry
        self.collector = collector if collector is not None else UnmatchedHeaderCollector()

    def resolve(self, header: str) -> Optional[MetricKey]:
        """
        Resolve a header to its canonical metric key.

        Blank headers resolve to None without being recorded; any other miss
        is recorded with its original text.
        """
        if not isinstance(header, str) or not header.strip():
            return None

        key = self.registry.lookup(normalize_header(header))
        if key is None:
            self.collector.record(header)
        return key

    def normalize_row(self, row: Mapping[str, Any]) -> Dict[Union[MetricKey, str], Any]:
        """
        Re-key a raw row by canonical metric key.

        When two headers resolve to the same key the first one wins and the
        later values are dropped. Unrecognized headers are kept under their
        original text.

        Args:
            row: Ordered mapping header -> cell

        Returns:
            Mapping of MetricKey (or original header) -> cell
        """
        normalized: Dict[Union[MetricKey, str], Any] = {}

        for header, value in row.items():
            key = self.resolve(header)
            target: Union[MetricKey, str] = key if key is not None else header
            if target in normalized:
                continue
            normalized[target] = value

        return normalized

    @property
    def unmatched_headers(self) -> List[str]:
        return self.collector.snapshot()


def _coerce_keys(mapping: Mapping[Union[MetricKey, str], Iterable[str]]) -> Dict[MetricKey, List[str]]:
    coerced: Dict[MetricKey, List[str]] = {}
    for key, aliases in mapping.items():
        metric_key = key if isinstance(key, MetricKey) else MetricKey.from_value(str(key))
        if isinstance(aliases, str):
            aliases = [aliases]
        coerced.setdefault(metric_key, []).extend(str(alias) for alias in aliases)
    return coerced
