import argparse
import logging

import pandas as pd

from .identity_join import extract_patient_id

logger = logging.getLogger(__name__)


def load_csv(path: str, sep: str = ',') -> pd.DataFrame:
    """Read a CSV/TSV file, handling UTF-8 BOM if present."""
    return pd.read_csv(path, sep=sep, encoding='utf-8-sig')


def require_columns(df: pd.DataFrame, required_columns, label: str = 'table'):
    """Raise ValueError naming any required column missing from `df`."""
    missing_cols = [col for col in required_columns if col not in df.columns]
    if missing_cols:
        raise ValueError(f"Missing required columns in {label}: {missing_cols}")


def load_table_with_logging(path: str, required_columns=None, sep: str = ',') -> pd.DataFrame:
    """
    Load a delimited file and log the result. Optionally check for required columns.

    Raises:
        ValueError: If required columns are missing.
        Exception: If file loading fails.
    """
    try:
        df = load_csv(path, sep=sep)
        logger.info(f"Loaded {path} with shape {df.shape}")
        if required_columns:
            require_columns(df, required_columns, label=path)
        return df
    except Exception as e:
        logger.error(f"Error loading {path}: {e}")
        raise


def create_patient_map(
    path: str,
    sample_col: str = None,
    barcode_col: str = None,
    sep: str = ','
) -> dict[str, str]:
    """
    Build a mapping from sample IDs to patient IDs from a sample table.
    If sample_col or barcode_col aren't provided, auto-detect columns containing 'sample' or 'barcode'.
    """
    df = load_csv(path, sep=sep)
    cols = list(df.columns)
    if barcode_col is None:
        barcode_col = next((c for c in cols if 'barcode' in c.lower()), cols[-1])
    if sample_col is None:
        sample_col = next((c for c in cols if 'sample' in c.lower() and c != barcode_col), barcode_col)

    return {
        sample: extract_patient_id(barcode)
        for sample, barcode in zip(df[sample_col], df[barcode_col])
    }


def main():
    """Command-line interface for checking the sample-to-patient map of a sample table."""
    parser = argparse.ArgumentParser(description='Generate sample→patient map from a sample table')
    parser.add_argument('sample_file', help='Path to sample table CSV file')
    parser.add_argument('--sample-col', help='Override sample ID column name')
    parser.add_argument('--barcode-col', help='Override barcode column name')
    parser.add_argument('--sep', default=',', help='Field separator')
    args = parser.parse_args()
    mapping = create_patient_map(
        args.sample_file,
        sample_col=args.sample_col,
        barcode_col=args.barcode_col,
        sep=args.sep
    )
    for sample, patient in mapping.items():
        print(f"{sample}\t{patient}")


if __name__ == '__main__':
    main()
