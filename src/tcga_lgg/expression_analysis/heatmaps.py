"""
Expression heatmaps
Clustered heatmaps of normalized expression with sample annotation side panels
(mutation status, sample type, clinical variables)
"""

import logging

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns
from matplotlib.patches import Patch
from sklearn.preprocessing import StandardScaler

from ..utils.shared_functions import save_plot

logger = logging.getLogger(__name__)

BOOLEAN_COLORS = {True: '#B2182B', False: '#E0E0E0'}
MISSING_COLOR = '#FFFFFF'


def zscore_rows(matrix):
    """Scale every gene to mean 0 and unit variance across samples."""
    scaled = StandardScaler().fit_transform(matrix.T.to_numpy(dtype=float)).T
    return pd.DataFrame(scaled, index=matrix.index, columns=matrix.columns)


def annotation_colors(annotation, palette='Set2'):
    """
    Map every annotation column to colours.

    Boolean columns use a fixed two-tone scheme; other columns get one
    palette colour per level. Missing values are left white.

    Returns:
        tuple: (DataFrame of colours shaped like `annotation`,
                dict of column -> {level: colour} for legends)
    """
    colors = pd.DataFrame(index=annotation.index)
    legend = {}
    for col in annotation.columns:
        values = annotation[col]
        present = values.dropna()
        if present.empty:
            lut = {}
        elif pd.api.types.is_bool_dtype(present.infer_objects()):
            lut = dict(BOOLEAN_COLORS)
        else:
            levels = sorted(present.unique(), key=str)
            lut = dict(zip(levels, sns.color_palette(palette, len(levels)).as_hex()))
        colors[col] = values.map(lut).fillna(MISSING_COLOR)
        legend[col] = lut
    return colors, legend


def _add_annotation_legend(fig, legend):
    handles = [
        Patch(facecolor=color, edgecolor='grey', label=f"{col}: {level}")
        for col, lut in legend.items()
        for level, color in lut.items()
    ]
    if handles:
        fig.legend(handles=handles, loc='upper left', bbox_to_anchor=(1.0, 1.0),
                   frameon=False, fontsize=7)


def plot_expression_heatmap(matrix, filename, output_dir, annotation=None, z_score=True,
                            cmap='RdBu_r', title=None):
    """
    Clustered heatmap of a genes x samples matrix.

    Parameters:
    -----------
    matrix : pd.DataFrame
        Normalized expression (genes x samples), usually the top variable genes
    filename : str
        Output file name without extension
    output_dir : str
        Directory for the PNG
    annotation : pd.DataFrame, optional
        Sample annotations indexed by sample ID (e.g. build_annotation_table output)
    z_score : bool
        Scale each gene across samples before plotting

    Returns:
    --------
    str
        Path to the saved plot
    """
    plot_data = zscore_rows(matrix) if z_score else matrix
    col_colors, legend = (None, {})
    if annotation is not None and not annotation.empty:
        col_colors, legend = annotation_colors(annotation.reindex(matrix.columns))

    grid = sns.clustermap(
        plot_data,
        cmap=cmap,
        center=0 if z_score else None,
        col_colors=col_colors,
        xticklabels=False,
        yticklabels=matrix.shape[0] <= 60,
        figsize=(12, 10),
        cbar_kws={'label': 'Z-score' if z_score else 'Expression'}
    )
    grid.ax_heatmap.set_xlabel(f"{matrix.shape[1]} samples")
    grid.ax_heatmap.set_ylabel(f"{matrix.shape[0]} genes")
    if title:
        grid.fig.suptitle(title, y=1.02)
    _add_annotation_legend(grid.fig, legend)

    logger.info(f"Drew expression heatmap of {matrix.shape[0]} genes x {matrix.shape[1]} samples")
    return save_plot(grid.fig, filename, output_dir)


def plot_sample_correlation_heatmap(correlation, filename, output_dir, annotation=None):
    """Clustered sample x sample correlation heatmap with annotation panels."""
    colors, legend = (None, {})
    if annotation is not None and not annotation.empty:
        colors, legend = annotation_colors(annotation.reindex(correlation.columns))

    grid = sns.clustermap(
        correlation,
        cmap='viridis',
        row_colors=colors,
        col_colors=colors,
        xticklabels=False,
        yticklabels=False,
        figsize=(10, 10),
        cbar_kws={'label': 'Correlation'}
    )
    _add_annotation_legend(grid.fig, legend)
    plt.setp(grid.ax_heatmap.get_xticklabels(), rotation=90)
    return save_plot(grid.fig, filename, output_dir)
