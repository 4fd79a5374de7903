"""
Typed metadata shapes for points transactions.

``PointsTransaction.metadata`` is stored as JSON, but each transaction type
has a fixed set of fields. Writers go through ``build_metadata`` so a typo
or a missing field fails loudly instead of landing in the log.
"""
from dataclasses import asdict, dataclass, field, fields
from typing import List, Optional

from apps.common.exceptions import LoyaltyValidationError

from .models import PointsTransaction


@dataclass
class EarnMetadata:
    requested_by: Optional[str] = None
    admin_entered: bool = False
    manual_source: Optional[str] = None
    point_criteria_code: Optional[str] = None
    manual_point_rule: Optional[dict] = None
    bulk_row: Optional[int] = None


@dataclass
class RedeemMetadata:
    redeemed_points: int
    used_ledger_entries: List[dict] = field(default_factory=list)
    requested_by: Optional[str] = None
    admin_entered: bool = False
    manual_source: Optional[str] = None


@dataclass
class ExpireMetadata:
    ledger_entry_id: int
    original_points: int
    expired_points: int
    earned_at: str
    expiry_date: str


@dataclass
class TierUpgradeMetadata:
    previous_tier: Optional[str]
    new_tier: str
    total_points: int
    reason: str = 'points_threshold_reached'


@dataclass
class TierDowngradeMetadata:
    previous_tier: str
    new_tier: str
    total_points: int
    downgrade_reason: str
    priority_minimum_tier: Optional[str] = None


@dataclass
class TierProtectionMetadata:
    previous_tier: Optional[str]
    enforced_minimum_tier: str
    total_points: int
    reason: str = 'priority_customer_protection'


METADATA_TYPES = {
    PointsTransaction.TYPE_EARN: EarnMetadata,
    PointsTransaction.TYPE_REDEEM: RedeemMetadata,
    PointsTransaction.TYPE_EXPIRE: ExpireMetadata,
    PointsTransaction.TYPE_TIER_UPGRADE: TierUpgradeMetadata,
    PointsTransaction.TYPE_TIER_DOWNGRADE: TierDowngradeMetadata,
    PointsTransaction.TYPE_TIER_PROTECTION: TierProtectionMetadata,
}


def _metadata_class(transaction_type):
    try:
        return METADATA_TYPES[transaction_type]
    except KeyError:
        raise LoyaltyValidationError(f"Unknown transaction type: {transaction_type}")


def build_metadata(transaction_type, **values):
    """Validate ``values`` against the type's shape and return the variant."""
    metadata_class = _metadata_class(transaction_type)
    allowed = {f.name for f in fields(metadata_class)}
    unknown = sorted(set(values) - allowed)
    if unknown:
        raise LoyaltyValidationError(
            f"Unexpected metadata for {transaction_type}: {', '.join(unknown)}"
        )
    try:
        return metadata_class(**values)
    except TypeError as exc:
        raise LoyaltyValidationError(f"Incomplete metadata for {transaction_type}: {exc}")


def parse_metadata(transaction_type, data):
    """Rebuild the typed variant from stored JSON, ignoring unknown keys."""
    metadata_class = _metadata_class(transaction_type)
    allowed = {f.name for f in fields(metadata_class)}
    return build_metadata(transaction_type, **{k: v for k, v in (data or {}).items() if k in allowed})


def metadata_to_dict(metadata):
    return asdict(metadata)
