"""
Expression analysis package: count normalization and heatmaps
"""

from .normalization import (
    estimate_size_factors,
    filter_low_counts,
    normalize_counts,
    select_top_variable_genes,
    variance_stabilize
)
from .heatmaps import annotation_colors, plot_expression_heatmap, plot_sample_correlation_heatmap
