"""Operator tables loaded from YAML.

Alias table::

    version: "2024.11"
    aliases:
      investimento: [spend, gasto]
      vendas: [compras]

Threshold overrides::

    thresholds:
      cpm: {green: 12, yellow: 20, higher_is_better: false}
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from metrichub.application.errors import ValidationError
from metrichub.domain.errors import AliasConflictError, InvalidThresholdError, UnknownMetricKeyError
from metrichub.domain.metrics.aliases import DEFAULT_ALIAS_TABLE_VERSION, AliasRegistry
from metrichub.domain.metrics.keys import METRIC_LABELS
from metrichub.domain.metrics.thresholds import Threshold, ThresholdTable
from metrichub.shared.logging import get_logger

logger = get_logger("infrastructure.config.yaml_loader")

YamlSource = Union[str, Path, Dict[str, Any]]


def load_alias_registry(source: YamlSource, base: Optional[AliasRegistry] = None) -> AliasRegistry:
    """
    Build an alias registry from a YAML table.

    Args:
        source: Path to a YAML file, YAML text or an already parsed mapping
        base: Registry the table extends; a standalone registry when None

    Returns:
        AliasRegistry

    Raises:
        ValidationError: If the table is malformed, names an unknown key or
            lists an alias under two keys
    """
    data = _load(source, "aliases")
    aliases = data.get("aliases")
    if not isinstance(aliases, dict):
        raise ValidationError("aliases", "must be a mapping of canonical key to alias list")

    version = str(data.get("version", DEFAULT_ALIAS_TABLE_VERSION))
    for key, entries in aliases.items():
        if not isinstance(entries, (list, str)):
            raise ValidationError(f"aliases.{key}", "must be a list of aliases")

    try:
        if base is not None:
            registry = base.extend(aliases, version=version)
        else:
            registry = AliasRegistry.from_mapping(aliases, version=version)
    except UnknownMetricKeyError as e:
        raise ValidationError(f"aliases.{e.key}", "unknown canonical metric key") from e
    except AliasConflictError as e:
        raise ValidationError(f"aliases.{e.second_key}", e.message) from e

    logger.info(
        "alias_table_loaded",
        version=registry.version,
        alias_count=len(registry),
        extended=base is not None,
    )
    return registry


def load_threshold_overrides(source: YamlSource) -> Dict[str, Threshold]:
    """
    Parse threshold overrides.

    Args:
        source: Path to a YAML file, YAML text or an already parsed mapping

    Returns:
        Mapping metric name -> Threshold

    Raises:
        ValidationError: If a metric is unknown or its bounds are invalid
    """
    data = _load(source, "thresholds")
    table = data.get("thresholds")
    if not isinstance(table, dict):
        raise ValidationError("thresholds", "must be a mapping of metric to bounds")

    overrides: Dict[str, Threshold] = {}
    for metric_key, bounds in table.items():
        if metric_key not in METRIC_LABELS:
            raise ValidationError(f"thresholds.{metric_key}", "unknown metric")
        if not isinstance(bounds, dict):
            raise ValidationError(f"thresholds.{metric_key}", "must be a mapping")
        try:
            overrides[metric_key] = Threshold.from_dict(metric_key, bounds)
        except InvalidThresholdError as e:
            raise ValidationError(f"thresholds.{metric_key}", e.reason) from e

    logger.info("threshold_overrides_loaded", metrics=sorted(overrides))
    return overrides


def load_threshold_table(source: YamlSource, base: Optional[ThresholdTable] = None) -> ThresholdTable:
    """Default (or given) threshold table with the YAML overrides merged in."""
    return (base or ThresholdTable()).merge(load_threshold_overrides(source))


def _load(source: YamlSource, field: str) -> Dict[str, Any]:
    if isinstance(source, dict):
        return source

    if isinstance(source, Path) or (isinstance(source, str) and "\n" not in source and source.endswith((".yaml", ".yml"))):
        path = Path(source)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ValidationError(field, f"cannot read {path.name}: {e.strerror}") from e
    else:
        text = source

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValidationError(field, f"invalid YAML: {e.__class__.__name__}") from e

    if not isinstance(data, dict):
        raise ValidationError(field, "document must be a mapping")
    return data
