"""
Periodic re-analysis of recent browsing into adaptive category weights.
"""

from typing import Dict, List, Optional

import pandas as pd

from ..user_profiling.models import VisitRecord


def analyze_recent_patterns(visits: List[VisitRecord], window: int = 20,
                            min_visits: int = 5) -> Optional[Dict[str, Dict[str, float]]]:
    """
    Group the latest ``window`` visits by category.

    Args:
        visits: Recent visits, oldest first
        window: Number of most recent visits considered
        min_visits: Re-analysis needs strictly more visits than this

    Returns:
        Mapping of category -> {'weight': share, 'confidence': min(1, count/10)},
        or None when there is too little history
    """
    recent = visits[-window:]
    if len(recent) <= min_visits:
        return None

    frame = pd.DataFrame({
        'category': [visit.category for visit in recent],
        'engagement': [visit.engagement for visit in recent],
    })
    grouped = frame.groupby('category').agg(count=('category', 'size'), engagement=('engagement', 'mean'))
    total = len(frame)

    return {
        str(category): {
            'weight': float(row['count']) / total,
            'confidence': min(1.0, float(row['count']) / 10.0),
            'mean_engagement': float(row['engagement']),
        }
        for category, row in grouped.iterrows()
    }
