"""
Mutation analysis package initialization
"""

from .summary import (
    gene_summary,
    interaction_matrix,
    mutation_presence,
    onco_matrix,
    sample_summary,
    somatic_interactions,
    top_genes
)
from .plots import lollipop_data, plot_lollipop, plot_oncoplot, plot_somatic_interactions
