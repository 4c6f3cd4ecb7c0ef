"""Indicator panel and heat legend state.

One row per dataset showing its marker count; hidden datasets are dimmed.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

from mapengine.data.datasets import FOOD, HEAT, HEAT_BASE_COLOR, HEAT_BUCKETS, WASTE

VISIBLE_OPACITY = 1.0
HIDDEN_OPACITY = 0.5


@dataclass
class Indicator:
    dataset_id: str
    label: str
    color: str
    count: int = 0
    opacity: float = HIDDEN_OPACITY


def heat_legend() -> list[dict]:
    """Legend entries for the HVI colour buckets, highest first."""
    entries = []
    upper = None
    for threshold, color in HEAT_BUCKETS:
        label = f"> {threshold}" if upper is None else f"{threshold + 1}–{upper}"
        entries.append({"label": label, "color": color})
        upper = threshold
    entries.append({"label": f"0–{upper}", "color": HEAT_BASE_COLOR})
    return entries


class IndicatorPanel:
    """Per-dataset counts and opacity hints."""

    def __init__(self) -> None:
        self.rows: dict[str, Indicator] = {
            FOOD: Indicator(FOOD, "Food", "#00d4ff"),
            HEAT: Indicator(HEAT, "Heat", "#ff5e5e"),
            WASTE: Indicator(WASTE, "Waste", "#888"),
        }

    def update(self, dataset_id: str, count: int, visible: bool) -> None:
        row = self.rows.get(dataset_id)
        if row is None:
            return
        row.count = count
        row.opacity = VISIBLE_OPACITY if visible else HIDDEN_OPACITY

    def to_dict(self) -> dict:
        return {
            "rows": [asdict(r) for r in self.rows.values()],
            "legend": heat_legend(),
        }
