"""
Mutation plots: oncoplot, lollipop plot and somatic interaction matrix
"""

import logging

import matplotlib.gridspec as gridspec
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.colors import to_rgb
from matplotlib.patches import Patch, Rectangle

from ..config import CONFIG, VARIANT_COLORS
from ..data_processing.mutations import parse_protein_length, parse_protein_position
from ..utils.shared_functions import save_plot
from .summary import BARCODE, CLASSIFICATION, GENE, interaction_matrix, onco_matrix, sample_summary

logger = logging.getLogger(__name__)

BACKGROUND = '#EDEDED'
OTHER_COLOR = '#808080'
PROTEIN_CHANGE = CONFIG['columns']['maf']['protein_change']
PROTEIN_POSITION = CONFIG['columns']['maf']['protein_position']


def _variant_color(classification):
    return VARIANT_COLORS.get(classification, OTHER_COLOR)


def plot_oncoplot(maf, filename, output_dir, genes=None, top=None):
    """
    Oncoplot of the most frequently mutated genes.

    Only samples mutated in at least one plotted gene are drawn; the
    percentages on the right are relative to every sample in the MAF.

    Returns:
    --------
    str
        Path to the saved plot
    """
    matrix = onco_matrix(maf, genes=genes, top=top)
    total_samples = maf[BARCODE].nunique()
    percent = 100.0 * matrix.ne('').sum(axis=1) / total_samples

    altered = matrix.columns[matrix.ne('').any(axis=0)]
    if len(altered) == 0:
        raise ValueError("No sample is mutated in the requested genes")
    matrix = matrix[altered]
    burden = sample_summary(maf)['total'].reindex(altered, fill_value=0)

    rgb = np.array([[to_rgb(_variant_color(c)) if c else to_rgb(BACKGROUND) for c in row]
                    for row in matrix.to_numpy()])

    fig = plt.figure(figsize=(max(8, 0.05 * len(altered) + 4), 0.35 * len(matrix) + 3))
    grid = gridspec.GridSpec(2, 2, height_ratios=[1, 4], width_ratios=[8, 1], hspace=0.05, wspace=0.02)
    ax_top = fig.add_subplot(grid[0, 0])
    ax_main = fig.add_subplot(grid[1, 0], sharex=ax_top)
    ax_right = fig.add_subplot(grid[1, 1], sharey=ax_main)

    ax_main.imshow(rgb, aspect='auto', interpolation='nearest')
    ax_main.set_yticks(range(len(matrix)))
    ax_main.set_yticklabels(matrix.index, fontstyle='italic')
    ax_main.set_xticks([])
    ax_main.set_xlabel(f"{len(altered)} of {total_samples} samples altered")

    ax_top.bar(range(len(altered)), burden.to_numpy(), color='#4D4D4D', width=0.9)
    ax_top.set_ylabel('Mutations')
    ax_top.tick_params(labelbottom=False)
    sns.despine(ax=ax_top, bottom=True)

    ax_right.barh(range(len(matrix)), percent.to_numpy(), color='#4D4D4D')
    ax_right.set_xlabel('% mutated')
    ax_right.tick_params(labelleft=False)
    sns.despine(ax=ax_right, left=True)

    present = sorted({c for c in np.unique(matrix.to_numpy()) if c})
    fig.legend(handles=[Patch(facecolor=_variant_color(c), label=c.replace('_', ' ')) for c in present],
               loc='lower center', ncol=min(len(present), 4), frameon=False,
               bbox_to_anchor=(0.5, -0.05), fontsize=8)

    logger.info(f"Drew oncoplot of {len(matrix)} genes x {len(altered)} samples")
    return save_plot(fig, filename, output_dir)


def lollipop_data(maf, gene):
    """
    Mutation counts per amino-acid position and classification for one gene.

    Returns:
        pd.DataFrame: position, classification, label (most common protein
        change at that position), count.
    """
    calls = maf[maf[GENE] == gene].copy()
    if PROTEIN_CHANGE not in calls.columns:
        raise ValueError(f"MAF has no '{PROTEIN_CHANGE}' column")
    calls['position'] = calls[PROTEIN_CHANGE].map(parse_protein_position)
    calls = calls.dropna(subset=['position'])
    if calls.empty:
        raise ValueError(f"No protein changes found for {gene}")
    calls['position'] = calls['position'].astype(int)

    counts = (
        calls.groupby(['position', CLASSIFICATION])
        .agg(count=(PROTEIN_CHANGE, 'size'),
             label=(PROTEIN_CHANGE, lambda s: s.value_counts().index[0]))
        .reset_index()
        .rename(columns={CLASSIFICATION: 'classification'})
    )
    return counts[['position', 'classification', 'label', 'count']]


def protein_length(maf, gene):
    """Protein length from the MAF's Protein_position column, if present."""
    if PROTEIN_POSITION not in maf.columns:
        return None
    lengths = maf.loc[maf[GENE] == gene, PROTEIN_POSITION].map(parse_protein_length).dropna()
    return int(lengths.max()) if not lengths.empty else None


def plot_lollipop(maf, gene, filename, output_dir, length=None, label_top=3):
    """
    Lollipop plot of mutation positions along a protein.

    Returns:
    --------
    str
        Path to the saved plot
    """
    data = lollipop_data(maf, gene)
    length = length or protein_length(maf, gene) or int(data['position'].max() * 1.1) + 1
    n_samples = maf.loc[maf[GENE] == gene, BARCODE].nunique()

    fig, ax = plt.subplots(figsize=(12, 4))
    ax.add_patch(Rectangle((0, -0.4), length, 0.4, facecolor='#BDBDBD', edgecolor='none'))
    for classification, rows in data.groupby('classification'):
        color = _variant_color(classification)
        ax.vlines(rows['position'], 0, rows['count'], color='#7F7F7F', linewidth=0.8)
        ax.scatter(rows['position'], rows['count'], s=60, color=color, edgecolor='black',
                   linewidth=0.5, zorder=3, label=classification.replace('_', ' '))

    for row in data.nlargest(label_top, 'count').itertuples(index=False):
        ax.annotate(str(row.label).replace('p.', ''), (row.position, row.count),
                    textcoords='offset points', xytext=(0, 6), ha='center', fontsize=8)

    ax.set_xlim(0, length)
    ax.set_ylim(-0.6, data['count'].max() * 1.25 + 0.5)
    ax.set_xlabel('Amino acid position')
    ax.set_ylabel('# Mutations')
    ax.set_title(f"{gene}: {len(data)} mutated positions in {n_samples} samples")
    ax.legend(frameon=False, fontsize=8, loc='upper right')
    sns.despine(ax=ax)

    logger.info(f"Drew lollipop plot for {gene} ({int(data['count'].sum())} mutations)")
    return save_plot(fig, filename, output_dir)


def plot_somatic_interactions(interactions, filename, output_dir, genes=None):
    """
    Lower-triangle heatmap of signed -log10 p-values; '*' marks p < 0.05.

    Returns:
    --------
    str
        Path to the saved plot
    """
    if interactions.empty:
        raise ValueError("No gene pairs to plot")
    matrix = interaction_matrix(interactions, genes=genes)
    mask = np.triu(np.ones(matrix.shape, dtype=bool))

    threshold = -np.log10(0.05)
    stars = np.where(matrix.abs().to_numpy() > threshold, '*', '')
    limit = max(float(matrix.abs().to_numpy().max()), 1.0)

    fig, ax = plt.subplots(figsize=(0.4 * len(matrix) + 3, 0.4 * len(matrix) + 2))
    sns.heatmap(matrix, mask=mask, cmap='BrBG', center=0, vmin=-limit, vmax=limit,
                annot=stars, fmt='', square=True, linewidths=0.5, ax=ax,
                cbar_kws={'label': '-log10(p) (+ co-occurrence, - exclusivity)'})
    ax.set_xlabel('')
    ax.set_ylabel('')
    ax.set_title('Somatic interactions')
    return save_plot(fig, filename, output_dir)
