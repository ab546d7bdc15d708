"""
Count normalization
Median-of-ratios size factors and variance-stabilising transforms for
RNA-seq count matrices (genes x samples)
"""

import logging

import numpy as np
import pandas as pd

from ..config import CONFIG

logger = logging.getLogger(__name__)

NORMALIZATION = CONFIG['normalization']


def filter_low_counts(counts, min_count=None, min_samples=None):
    """
    Drop genes that are barely expressed.

    Parameters:
    -----------
    counts : pd.DataFrame
        Raw counts (genes x samples)
    min_count : int
        Minimum count for a sample to count as expressing the gene
    min_samples : int
        Number of samples that must reach min_count; defaults to 20% of samples

    Returns:
    --------
    pd.DataFrame
        Filtered counts
    """
    min_count = NORMALIZATION['min_count'] if min_count is None else min_count
    if min_samples is None:
        min_samples = NORMALIZATION['min_samples_fraction'] * counts.shape[1]

    filtered = counts.loc[(counts >= min_count).sum(axis=1) >= min_samples]
    logger.info(f"Kept {filtered.shape[0]} of {counts.shape[0]} genes after low-count filtering")
    return filtered


def estimate_size_factors(counts):
    """
    Median-of-ratios size factors, as used by DESeq2.

    Only genes with a non-zero count in every sample contribute to the
    geometric means.
    """
    counts = counts.astype(float)
    expressed = (counts > 0).all(axis=1)
    if not expressed.any():
        raise ValueError("Every gene has a zero count in some sample; size factors are undefined")

    log_counts = np.log(counts.loc[expressed])
    log_geo_means = log_counts.mean(axis=1)
    size_factors = np.exp(log_counts.sub(log_geo_means, axis=0).median(axis=0))
    size_factors.name = 'size_factor'
    logger.info(f"Estimated size factors from {int(expressed.sum())} genes "
                f"(range {size_factors.min():.3f}-{size_factors.max():.3f})")
    return size_factors


def normalize_counts(counts, size_factors=None):
    """Divide each sample's counts by its size factor."""
    if size_factors is None:
        size_factors = estimate_size_factors(counts)
    return counts.astype(float).div(size_factors.reindex(counts.columns), axis=1)


def variance_stabilize(counts, method=None, pseudocount=None, size_factors=None):
    """
    Normalize counts and apply a variance-stabilising transform.

    Methods:
        'log2': log2(normalized + pseudocount)
        'vst':  Anscombe transform 2 * sqrt(normalized + 3/8)
    """
    method = method or NORMALIZATION['method']
    pseudocount = NORMALIZATION['pseudocount'] if pseudocount is None else pseudocount

    normalized = normalize_counts(counts, size_factors=size_factors)
    if method == 'log2':
        transformed = np.log2(normalized + pseudocount)
    elif method == 'vst':
        transformed = 2 * np.sqrt(normalized + 3.0 / 8.0)
    else:
        raise ValueError(f"Unknown normalization method '{method}'")

    logger.info(f"Applied {method} transform to {transformed.shape[0]} genes x {transformed.shape[1]} samples")
    return transformed


def select_top_variable_genes(matrix, n=None):
    """Rows of `matrix` with the highest variance across samples."""
    n = n or CONFIG['top_variable_genes']
    top = matrix.var(axis=1).nlargest(n).index
    return matrix.loc[top]


def sample_correlation(matrix, method='pearson'):
    """Sample x sample correlation of a normalized matrix."""
    return pd.DataFrame(matrix).corr(method=method)
