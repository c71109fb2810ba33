"""
Input normalisation for clustering service results.

The clustering service has shipped coordinates under several field names
over time (x/y, emb_x/emb_y, pca2_x/pca2_y, or an embedding vector). This
module resolves them once at the boundary so the core only sees
EnterpriseRecord.
"""

import re
from typing import Any, Dict, List, Optional, Tuple

import structlog

from .geometry import is_finite_number
from .models import EnterpriseRecord

logger = structlog.get_logger()

COORDINATE_ALIASES: List[Tuple[str, str]] = [
    ("x", "y"),
    ("emb_x", "emb_y"),
    ("pca2_x", "pca2_y"),
]

METRIC_FIELDS = ["s_DT_TTM", "s_TTS", "s_VCSH", "s_EMPL", "empl_qtty"]

_NAN_VALUE = re.compile(r":\s*NaN\s*([,}\]])")


def sanitize_json_text(text: str) -> str:
    """Replace bare NaN values (not valid JSON) with null."""
    return _NAN_VALUE.sub(r": null\1", text)


def to_float(value: Any) -> Optional[float]:
    """Parse numbers and numeric strings; anything else becomes None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def resolve_coordinates(raw: Dict[str, Any]) -> Tuple[Optional[float], Optional[float]]:
    """
    Find the 2D embedding coordinate of a raw enterprise dict.

    The first alias pair present with at least one value wins. When none is
    present the first two components of 'embedding' are used.
    """
    for x_key, y_key in COORDINATE_ALIASES:
        if raw.get(x_key) is not None or raw.get(y_key) is not None:
            return to_float(raw.get(x_key)), to_float(raw.get(y_key))

    embedding = raw.get("embedding")
    if isinstance(embedding, (list, tuple)) and len(embedding) >= 2:
        return to_float(embedding[0]), to_float(embedding[1])
    return None, None


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _cluster_label(raw: Dict[str, Any]) -> Optional[int]:
    for key in ("cluster", "Label"):
        value = to_float(raw.get(key))
        if value is not None and is_finite_number(value):
            return int(value)
    return None


def normalize_enterprise(
    raw: Dict[str, Any], company: Optional[Dict[str, Any]] = None, index: int = 0
) -> EnterpriseRecord:
    """
    Convert one raw enterprise dict into an EnterpriseRecord.

    Args:
        raw: Enterprise as returned by the clustering service
        company: Parent company entry; supplies sector fields the enterprise lacks
        index: Position used to build an id when the record has none

    Returns:
        EnterpriseRecord (coordinates may be None or NaN; the aggregator filters them)
    """
    company = company or {}
    x, y = resolve_coordinates(raw)

    metrics = {}
    for field in METRIC_FIELDS:
        value = to_float(raw.get(field))
        if value is not None:
            metrics[field] = value

    sector_code = raw.get("sector_unique_id")
    if sector_code is None:
        sector_code = company.get("sector_unique_id")

    record_id = raw.get("id", raw.get("taxcode")) or str(index)

    return EnterpriseRecord(
        id=str(record_id),
        sector_name=_optional_str(raw.get("sector_name")) or _optional_str(company.get("sector_name")),
        sector_code=_optional_str(sector_code),
        x=x,
        y=y,
        name=_optional_str(raw.get("name")) or "",
        taxcode=_optional_str(raw.get("taxcode")) or "",
        cluster=_cluster_label(raw),
        metrics=metrics,
    )


def records_from_cluster_result(result: Dict[str, Any]) -> List[EnterpriseRecord]:
    """
    Extract enterprise records from a clustering service response.

    Supports the companies[].enterprise[] format and the legacy
    embedding + labels arrays. Anything else yields an empty list.
    """
    if not isinstance(result, dict):
        raise TypeError(f"Expected dict cluster result, got {type(result).__name__}")

    companies = result.get("companies")
    if isinstance(companies, list):
        records = []
        for company in companies:
            if not isinstance(company, dict):
                continue
            enterprises = company.get("enterprise")
            if not isinstance(enterprises, list):
                continue
            for enterprise in enterprises:
                if isinstance(enterprise, dict):
                    records.append(normalize_enterprise(enterprise, company, len(records)))
        logger.info("Normalised companies result", companies=len(companies), records=len(records))
        return records

    embedding = result.get("embedding")
    labels = result.get("labels")
    if isinstance(embedding, list) and isinstance(labels, list):
        records = []
        for index, (coords, label) in enumerate(zip(embedding, labels)):
            raw = {"embedding": coords, "cluster": label}
            record = normalize_enterprise(raw, index=index)
            cluster = record.cluster
            name = f"Cluster {cluster}" if cluster is not None else None
            records.append(record.model_copy(update={"sector_name": name}))
        logger.info("Normalised legacy embedding result", records=len(records))
        return records

    logger.warning("Cluster result has no usable enterprise data", keys=sorted(result.keys()))
    return []
