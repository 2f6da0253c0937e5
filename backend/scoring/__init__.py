from .best_network import BestNetworkResult, CategoryStats, ScoredPoint, compute_best_network
from .colors import ColorBand, assign_category_colors, compile_color_scale, pci_color
from .metrics import color_for_metric, resolve_metric_config
from .regions import RegionSummary, summarize_regions

__all__ = [
    "BestNetworkResult",
    "CategoryStats",
    "ColorBand",
    "RegionSummary",
    "ScoredPoint",
    "assign_category_colors",
    "color_for_metric",
    "compile_color_scale",
    "compute_best_network",
    "pci_color",
    "resolve_metric_config",
    "summarize_regions",
]
