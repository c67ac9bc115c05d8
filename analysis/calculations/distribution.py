"""
Portfolio distribution calculation utilities.
Pure functions for allocation-by-plan breakdowns.
"""

import pandas as pd
from typing import Dict, List, Optional, Sequence, Union

from ingestion.records import PlanTier, SubscriptionRecord

UNKNOWN_PLAN_NAME = 'Unknown Plan'

TIER_COLORS: Dict[str, str] = {
    PlanTier.BRONZE.value: 'hsl(30, 55%, 50%)',
    PlanTier.SILVER.value: 'hsl(0, 0%, 75%)',
    PlanTier.GOLD.value: 'hsl(45, 100%, 50%)',
    PlanTier.PLATINUM.value: 'hsl(200, 15%, 85%)',
    PlanTier.DIAMOND.value: 'hsl(195, 100%, 85%)',
}


def tier_color(tier: Optional[str]) -> str:
    """
    Look up the chart colour for a plan tier.

    Matching is case-insensitive; missing or unrecognized tiers get the
    lowest tier's colour.
    """
    if not tier:
        return TIER_COLORS[PlanTier.BRONZE.value]
    return TIER_COLORS.get(str(tier).strip().lower(), TIER_COLORS[PlanTier.BRONZE.value])


def portfolio_distribution(
    subscriptions: Sequence[SubscriptionRecord]
) -> List[Dict[str, Union[str, float]]]:
    """
    Total allocated amount per plan, largest first.

    Subscriptions are grouped by plan_id. Name and tier come from the first
    subscription of the plan that carries a plan summary. Ties keep the order
    in which plans first appear in the input.

    Args:
        subscriptions: Subscription records for one scope

    Returns:
        List of {'name', 'value', 'color', 'tier', 'share'} where share is a
        decimal fraction of the grand total (0.45 = 45%)

    Example:
        A:300, B:200, A:100 -> [{'name': A, 'value': 400}, {'name': B, 'value': 200}]
    """
    if not subscriptions:
        return []

    frame = pd.DataFrame({
        'plan_id': [s.plan_id for s in subscriptions],
        'amount': [float(s.amount) for s in subscriptions],
        'name': [s.plan.name if s.plan else None for s in subscriptions],
        'tier': [s.plan.tier if s.plan else None for s in subscriptions],
    })

    grouped = frame.groupby('plan_id', sort=False).agg(
        name=('name', 'first'),
        tier=('tier', 'first'),
        value=('amount', 'sum'),
    )
    grouped = grouped.sort_values('value', ascending=False, kind='stable')

    total_value = float(grouped['value'].sum())

    slices = []
    for row in grouped.itertuples(index=False):
        name = row.name if isinstance(row.name, str) and row.name else UNKNOWN_PLAN_NAME
        tier = row.tier if isinstance(row.tier, str) and row.tier else PlanTier.BRONZE.value
        value = float(row.value)
        slices.append({
            'name': name,
            'value': value,
            'color': tier_color(tier),
            'tier': tier,
            'share': value / total_value if total_value > 0 else 0.0,
        })

    return slices
