"""
Report service — analytics over the non-deleted asset register.

Counts are produced with grouped SQL queries; warranty and ageing
buckets need per-row date logic and are computed in Python over a
narrow column projection.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import date

from sqlalchemy import func

from inventory.extensions import db
from inventory.models.asset import Asset
from inventory.models.catalog import AssetType, OperatingSystem

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
AGE_BUCKETS = ("0-1 years", "1-3 years", "3-5 years", "5+ years", UNKNOWN)


@dataclass
class WarrantySummary:
    in_warranty: int = 0
    out_of_warranty: int = 0
    no_warranty: int = 0

    @property
    def total(self) -> int:
        return self.in_warranty + self.out_of_warranty + self.no_warranty

    def to_dict(self) -> dict:
        return {**asdict(self), "total": self.total}


@dataclass
class AnalyticsSummary:
    total_assets: int = 0
    by_status: dict[str, int] = field(default_factory=dict)
    by_os: dict[str, int] = field(default_factory=dict)
    by_category: dict[str, int] = field(default_factory=dict)
    by_asset_type: dict[str, int] = field(default_factory=dict)
    warranty_by_asset_type: dict[str, WarrantySummary] = field(default_factory=dict)
    age_buckets: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "total_assets": self.total_assets,
            "by_status": self.by_status,
            "by_os": self.by_os,
            "by_category": self.by_category,
            "by_asset_type": self.by_asset_type,
            "warranty_by_asset_type": {
                name: summary.to_dict()
                for name, summary in self.warranty_by_asset_type.items()
            },
            "age_buckets": self.age_buckets,
        }


def _live():
    return Asset.is_deleted.is_(False)


def _grouped_counts(label_column, *joins) -> dict[str, int]:
    query = db.session.query(label_column, func.count(Asset.id)).select_from(Asset)
    for target, on in joins:
        query = query.outerjoin(target, on)
    rows = query.filter(_live()).group_by(label_column).all()
    counts: dict[str, int] = {}
    for label, count in rows:
        key = label or UNKNOWN
        counts[key] = counts.get(key, 0) + count
    return counts


def age_bucket(acquisition_date: date | None, today: date) -> str:
    """Ageing bucket label for an acquisition date."""
    if acquisition_date is None:
        return UNKNOWN
    years = (today - acquisition_date).days / 365.25
    if years < 1:
        return "0-1 years"
    if years < 3:
        return "1-3 years"
    if years < 5:
        return "3-5 years"
    return "5+ years"


def get_analytics_summary(today: date | None = None) -> AnalyticsSummary:
    """
    Build the dashboard summary of the live asset register.

    Args:
        today: Reference date for warranty and age calculations.
    """
    today = today or date.today()
    summary = AnalyticsSummary()

    summary.total_assets = Asset.query.filter(_live()).count()
    summary.by_status = _grouped_counts(Asset.status)
    summary.by_category = _grouped_counts(Asset.asset_category)
    summary.by_os = _grouped_counts(
        OperatingSystem.os_type, (OperatingSystem, OperatingSystem.id == Asset.os_id)
    )
    summary.by_asset_type = _grouped_counts(
        AssetType.name, (AssetType, AssetType.id == Asset.asset_type_id)
    )

    rows = (
        db.session.query(AssetType.name, Asset.warranty_expiry, Asset.acquisition_date)
        .select_from(Asset)
        .outerjoin(AssetType, AssetType.id == Asset.asset_type_id)
        .filter(_live())
        .all()
    )
    summary.age_buckets = {bucket: 0 for bucket in AGE_BUCKETS}
    for type_name, warranty_expiry, acquisition_date in rows:
        warranty = summary.warranty_by_asset_type.setdefault(
            type_name or UNKNOWN, WarrantySummary()
        )
        if warranty_expiry is None:
            warranty.no_warranty += 1
        elif warranty_expiry >= today:
            warranty.in_warranty += 1
        else:
            warranty.out_of_warranty += 1
        summary.age_buckets[age_bucket(acquisition_date, today)] += 1

    logger.info("Built analytics summary over %d assets", summary.total_assets)
    return summary
