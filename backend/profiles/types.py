from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from lod.config import RenderBudgets
from scoring.colors import CATEGORY_PALETTE, DEFAULT_COLOR, NOT_BEST_COLOR
from scoring.normalize import MetricRange


class ColorBandConfig(BaseModel):
    min: float
    max: float
    color: str
    # Optional legend text, e.g. "Good".
    label: str | None = None


class MetricRangeConfig(BaseModel):
    min: float
    max: float
    higherIsBetter: bool = True

    @model_validator(mode="after")
    def _check_span(self) -> "MetricRangeConfig":
        if self.max <= self.min:
            raise ValueError(f"metric range max ({self.max}) must exceed min ({self.min})")
        return self

    def to_range(self) -> MetricRange:
        return MetricRange(min=self.min, max=self.max, higher_is_better=self.higherIsBetter)


def _default_ranges() -> dict[str, MetricRangeConfig]:
    return {
        "rsrp": MetricRangeConfig(min=-140.0, max=-44.0),
        "rsrq": MetricRangeConfig(min=-20.0, max=-3.0),
        "sinr": MetricRangeConfig(min=-10.0, max=30.0),
    }


class RenderBudgetsConfig(BaseModel):
    maxPointsRendered: int = Field(default=5_000, ge=0)
    maxPolygonsRendered: int = Field(default=800, ge=0)

    def to_budgets(self) -> RenderBudgets:
        return RenderBudgets(
            max_points_rendered=self.maxPointsRendered,
            max_polygons_rendered=self.maxPolygonsRendered,
        )


class BestNetworkConfig(BaseModel):
    """
    Composite-score settings for the "best operator here" overlay.
    """

    # metric -> percentage; need not sum to 100
    weights: dict[str, float] = Field(
        default_factory=lambda: {"rsrp": 40.0, "rsrq": 30.0, "sinr": 30.0}
    )
    gridCellSize: float = Field(default=0.0001, gt=0.0)
    metricRanges: dict[str, MetricRangeConfig] = Field(default_factory=_default_ranges)
    # Fixed colors for well-known categories; others take the palette in first-seen order.
    categoryColors: dict[str, str] = Field(default_factory=dict)
    palette: list[str] = Field(default_factory=lambda: list(CATEGORY_PALETTE), min_length=1)
    notBestColor: str = NOT_BEST_COLOR

    @model_validator(mode="after")
    def _check_weights(self) -> "BestNetworkConfig":
        bad = [k for k, v in self.weights.items() if v < 0]
        if bad:
            raise ValueError(f"negative weights: {', '.join(sorted(bad))}")
        return self

    def ranges(self) -> dict[str, MetricRange]:
        return {k: v.to_range() for k, v in self.metricRanges.items()}


class ProfileConfig(BaseModel):
    id: str
    title: str = ""
    enabled: bool = True
    defaultColor: str = DEFAULT_COLOR
    # threshold key (see scoring.metrics) -> bands
    thresholds: dict[str, list[ColorBandConfig]] = Field(default_factory=dict)
    budgets: RenderBudgetsConfig = Field(default_factory=RenderBudgetsConfig)
    bestNetwork: BestNetworkConfig = Field(default_factory=BestNetworkConfig)
