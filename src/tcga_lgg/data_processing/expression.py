"""
Expression data loading: GDC STAR count files -> count matrix and sample table.
"""

import logging

import pandas as pd

from .errors import EmptyInputError
from .utils import require_columns

logger = logging.getLogger(__name__)

STAR_COLUMNS = ['gene_id', 'gene_name', 'unstranded']


def read_star_counts(path: str, count_column: str = 'unstranded') -> pd.Series:
    """
    Read one STAR augmented counts file.

    Args:
        path (str): Path to the '*.rna_seq.augmented_star_gene_counts.tsv' file.
        count_column (str): Which strand column to use.

    Returns:
        pd.Series: Raw counts indexed by gene_id (N_* summary rows dropped).
    """
    df = pd.read_csv(path, sep='\t', comment='#')
    require_columns(df, ['gene_id', count_column], label=path)
    df = df[~df['gene_id'].astype(str).str.startswith('N_')]
    counts = df.set_index('gene_id')[count_column]
    return counts.fillna(0).astype(int)


def load_gene_names(path: str) -> pd.Series:
    """gene_id -> gene_name lookup taken from a STAR counts file."""
    df = pd.read_csv(path, sep='\t', comment='#')
    require_columns(df, ['gene_id', 'gene_name'], label=path)
    df = df[~df['gene_id'].astype(str).str.startswith('N_')]
    return df.set_index('gene_id')['gene_name']


def build_sample_table(file_hits) -> pd.DataFrame:
    """
    Flatten GDC file search hits into one row per expression sample.

    Each hit is expected to carry 'file_id', 'file_name' and
    'cases' -> 'samples' (with 'submitter_id', 'sample_type' and optionally
    'portions' -> 'analytes' -> 'aliquots' -> 'submitter_id').

    Returns:
        pd.DataFrame: Columns sample_id, barcode, sample_type, file_id, file_name.
    """
    rows = []
    for hit in file_hits:
        for case in hit.get('cases', []):
            for sample in case.get('samples', []):
                aliquots = [
                    aliquot.get('submitter_id')
                    for portion in sample.get('portions', [])
                    for analyte in portion.get('analytes', [])
                    for aliquot in analyte.get('aliquots', [])
                    if aliquot.get('submitter_id')
                ]
                rows.append({
                    'sample_id': sample.get('submitter_id'),
                    'barcode': aliquots[0] if aliquots else sample.get('submitter_id'),
                    'sample_type': sample.get('sample_type'),
                    'file_id': hit.get('file_id'),
                    'file_name': hit.get('file_name'),
                })

    samples = pd.DataFrame(rows, columns=['sample_id', 'barcode', 'sample_type', 'file_id', 'file_name'])
    duplicated = samples['sample_id'].duplicated()
    if duplicated.any():
        logger.warning(f"Dropping {int(duplicated.sum())} additional files for already seen samples: "
                       f"{samples.loc[duplicated, 'sample_id'].tolist()[:5]}")
        samples = samples[~duplicated].reset_index(drop=True)
    logger.info(f"Built sample table with {len(samples)} samples")
    return samples


def build_count_matrix(paths_by_sample: dict, count_column: str = 'unstranded') -> pd.DataFrame:
    """
    Combine per-sample count files into a genes x samples matrix.

    Args:
        paths_by_sample (dict): Mapping of sample ID -> path to its STAR counts file.

    Returns:
        pd.DataFrame: Integer counts, genes as rows and samples as columns.
    """
    if not paths_by_sample:
        raise EmptyInputError("No count files to combine")

    columns = []
    for sample_id, path in paths_by_sample.items():
        columns.append(read_star_counts(path, count_column=count_column).rename(sample_id))

    counts = pd.concat(columns, axis=1).fillna(0).astype(int)
    logger.info(f"Loaded count matrix with {counts.shape} (genes x samples).")
    return counts


def collapse_to_symbols(counts: pd.DataFrame, gene_names: pd.Series) -> pd.DataFrame:
    """Re-index a count matrix by gene symbol, summing genes that share a symbol."""
    symbols = gene_names.reindex(counts.index)
    unmapped = symbols.isna()
    if unmapped.any():
        logger.warning(f"{int(unmapped.sum())} genes have no symbol and are dropped")
    collapsed = counts[~unmapped].groupby(symbols[~unmapped]).sum()
    collapsed.index.name = 'gene_name'
    return collapsed
