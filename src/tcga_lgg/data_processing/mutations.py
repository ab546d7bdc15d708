import logging
import re

import pandas as pd

from ..config import CONFIG, NONSYNONYMOUS_CLASSES
from .errors import EmptyInputError
from .utils import require_columns

logger = logging.getLogger(__name__)

MAF_COLUMNS = CONFIG['columns']['maf']
REQUIRED_MAF_COLUMNS = [MAF_COLUMNS['gene'], MAF_COLUMNS['barcode'], MAF_COLUMNS['classification']]

PROTEIN_POSITION = re.compile(r'^p\.\D*?(\d+)')


def read_maf(path: str) -> pd.DataFrame:
    """
    Read a MAF file (plain or gzipped), skipping '#' version/comment lines.

    Raises:
        ValueError: If the gene, barcode or classification column is missing.
    """
    try:
        maf = pd.read_csv(path, sep='\t', comment='#', low_memory=False)
        require_columns(maf, REQUIRED_MAF_COLUMNS, label=path)
    except Exception as e:
        logger.error(f"Error reading MAF {path}: {e}")
        raise
    logger.info(f"Loaded MAF {path} with {len(maf)} mutation calls")
    return maf


def load_maf_files(paths) -> pd.DataFrame:
    """Read and concatenate several MAF files (GDC ships one per tumor/normal pair)."""
    paths = list(paths)
    if not paths:
        raise EmptyInputError("No MAF files to load")
    maf = pd.concat([read_maf(path) for path in paths], ignore_index=True)
    logger.info(f"Combined {len(paths)} MAF files into {len(maf)} mutation calls "
                f"from {maf[MAF_COLUMNS['barcode']].nunique()} tumor samples")
    return maf


def filter_nonsynonymous(maf: pd.DataFrame, classes=None) -> pd.DataFrame:
    """Keep only protein-altering variant classifications."""
    classes = NONSYNONYMOUS_CLASSES if classes is None else classes
    keep = maf[MAF_COLUMNS['classification']].isin(classes)
    logger.info(f"Kept {int(keep.sum())} of {len(maf)} calls as non-synonymous")
    return maf[keep].reset_index(drop=True)


def parse_protein_position(hgvsp):
    """Amino-acid position from a short HGVS protein change, e.g. 'p.R132H' -> 132."""
    if not isinstance(hgvsp, str):
        return None
    match = PROTEIN_POSITION.match(hgvsp)
    return int(match.group(1)) if match else None


def parse_protein_length(protein_position):
    """Protein length from a VEP 'Protein_position' value such as '132/414'."""
    if not isinstance(protein_position, str) or '/' not in protein_position:
        return None
    length = protein_position.rsplit('/', 1)[1]
    return int(length) if length.isdigit() else None
