"""
Mutation summaries
==================
Cohort-level summaries of a MAF table:
- gene_summary / sample_summary: mutation counts by variant classification
- onco_matrix: gene x sample classification grid behind the oncoplot
- somatic_interactions: pairwise co-occurrence / mutual exclusivity tests
"""

import itertools
import logging

import numpy as np
import pandas as pd
from scipy import stats
from statsmodels.stats.multitest import multipletests

from ..config import CONFIG
from ..data_processing.errors import EmptyInputError

logger = logging.getLogger(__name__)

MAF_COLUMNS = CONFIG['columns']['maf']
GENE = MAF_COLUMNS['gene']
BARCODE = MAF_COLUMNS['barcode']
CLASSIFICATION = MAF_COLUMNS['classification']


def _require_calls(maf):
    if maf is None or maf.empty:
        raise EmptyInputError("MAF has no mutation calls")


def gene_summary(maf: pd.DataFrame) -> pd.DataFrame:
    """
    Per-gene mutation counts.

    Returns:
        pd.DataFrame: One column per variant classification plus 'total',
        'mutated_samples' and 'percent_mutated', indexed by gene and sorted
        by number of mutated samples.
    """
    _require_calls(maf)
    total_samples = maf[BARCODE].nunique()

    summary = pd.crosstab(maf[GENE], maf[CLASSIFICATION])
    summary.columns.name = None
    summary['total'] = summary.sum(axis=1)
    summary['mutated_samples'] = maf.groupby(GENE)[BARCODE].nunique()
    summary['percent_mutated'] = 100.0 * summary['mutated_samples'] / total_samples
    summary.index.name = GENE
    return summary.sort_values(['mutated_samples', 'total'], ascending=False)


def sample_summary(maf: pd.DataFrame) -> pd.DataFrame:
    """Per-sample mutation counts by variant classification, with a 'total' column."""
    _require_calls(maf)
    summary = pd.crosstab(maf[BARCODE], maf[CLASSIFICATION])
    summary.columns.name = None
    summary['total'] = summary.sum(axis=1)
    summary.index.name = BARCODE
    return summary.sort_values('total', ascending=False)


def top_genes(maf: pd.DataFrame, n: int) -> list:
    return gene_summary(maf).head(n).index.tolist()


def _collapse_classes(classes):
    unique = classes.unique()
    return unique[0] if len(unique) == 1 else 'Multi_Hit'


def onco_matrix(maf: pd.DataFrame, genes=None, top=None) -> pd.DataFrame:
    """
    Gene x sample grid of variant classifications.

    A gene hit by more than one classification in a sample is 'Multi_Hit';
    an unmutated cell is ''. Samples are ordered so that those mutated in
    the first gene come first, then by the second gene, and so on.
    """
    _require_calls(maf)
    genes = list(dict.fromkeys(genes)) if genes is not None else top_genes(maf, top or CONFIG['oncoplot_top_genes'])
    samples = maf[BARCODE].unique()

    subset = maf[maf[GENE].isin(genes)]
    if subset.empty:
        return pd.DataFrame('', index=pd.Index(genes, name=GENE), columns=samples)

    matrix = (
        subset
        .groupby([GENE, BARCODE])[CLASSIFICATION]
        .agg(_collapse_classes)
        .unstack(fill_value='')
        .reindex(index=genes, columns=samples, fill_value='')
    )
    matrix = matrix.fillna('')

    mutated = matrix.ne('')
    order = mutated.T.sort_values(by=genes, ascending=False, kind='mergesort').index
    matrix = matrix[order]
    matrix.index.name = GENE
    matrix.columns.name = BARCODE
    return matrix


def mutation_presence(maf: pd.DataFrame, genes) -> pd.DataFrame:
    """Boolean gene x sample matrix of mutated / not mutated."""
    samples = maf[BARCODE].unique()
    counts = pd.crosstab(maf[GENE], maf[BARCODE])
    return counts.reindex(index=genes, columns=samples, fill_value=0) > 0


def _interaction_event(odds_ratio):
    # nan when a gene is mutated in every sample or in none
    if odds_ratio > 1:
        return 'Co_Occurence'
    if odds_ratio < 1:
        return 'Mutually_Exclusive'
    return 'None'


def somatic_interactions(maf: pd.DataFrame, top=None, genes=None) -> pd.DataFrame:
    """
    Pairwise Fisher's exact tests for co-occurring or mutually exclusive genes.

    Returns:
        pd.DataFrame: gene1, gene2, p_value, odds_ratio, event, q_value, plus
        the 2x2 table counts; sorted by p_value.
    """
    _require_calls(maf)
    genes = list(dict.fromkeys(genes)) if genes is not None else top_genes(maf, top or CONFIG['interaction_top_genes'])
    presence = mutation_presence(maf, genes)
    n_samples = presence.shape[1]

    rows = []
    for gene1, gene2 in itertools.combinations(genes, 2):
        m1 = presence.loc[gene1]
        m2 = presence.loc[gene2]
        both = int((m1 & m2).sum())
        only1 = int((m1 & ~m2).sum())
        only2 = int((~m1 & m2).sum())
        neither = n_samples - both - only1 - only2
        odds_ratio, p_value = stats.fisher_exact([[both, only1], [only2, neither]])
        rows.append({
            'gene1': gene1,
            'gene2': gene2,
            'p_value': p_value,
            'odds_ratio': odds_ratio,
            'event': _interaction_event(odds_ratio),
            'both': both,
            'gene1_only': only1,
            'gene2_only': only2,
            'neither': neither,
        })

    columns = ['gene1', 'gene2', 'p_value', 'odds_ratio', 'event',
               'both', 'gene1_only', 'gene2_only', 'neither', 'q_value']
    if not rows:
        logger.warning("Fewer than two genes; no interactions tested")
        return pd.DataFrame(columns=columns)

    interactions = pd.DataFrame(rows)
    interactions['q_value'] = multipletests(interactions['p_value'], method='fdr_bh')[1]
    interactions = interactions.sort_values('p_value').reset_index(drop=True)[columns]
    significant = interactions[interactions['p_value'] < 0.05]
    logger.info(f"Tested {len(interactions)} gene pairs; {len(significant)} with p < 0.05")
    return interactions


def interaction_matrix(interactions: pd.DataFrame, genes=None) -> pd.DataFrame:
    """
    Symmetric gene x gene matrix of signed -log10 p-values
    (positive for co-occurrence, negative for mutual exclusivity, zero for
    pairs with no direction).
    """
    if genes is None:
        genes = list(dict.fromkeys(interactions['gene1'].tolist() + interactions['gene2'].tolist()))
    matrix = pd.DataFrame(0.0, index=genes, columns=genes)
    for row in interactions.itertuples(index=False):
        score = -np.log10(max(row.p_value, np.finfo(float).tiny))
        if row.event == 'Mutually_Exclusive':
            score = -score
        elif row.event != 'Co_Occurence':
            score = 0.0
        matrix.loc[row.gene1, row.gene2] = score
        matrix.loc[row.gene2, row.gene1] = score
    return matrix
