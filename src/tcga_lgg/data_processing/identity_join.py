"""
Sample-to-patient identity join
===============================
Expression samples and somatic mutation calls are curated separately and
share no key. Both carry a TCGA barcode (e.g. 'TCGA-DB-5270-01A-11R-1896-07')
whose first three segments identify the patient, so the join derives that
key on each side and matches on it:

- extract_patient_id: barcode -> patient identifier
- mutated_patients: patients with at least one call in a gene
- broadcast_to_samples: patient-level flag -> one flag per sample
- annotate_gene_presence / build_annotation_table: the full join
"""

import logging
import re

import pandas as pd

from ..config import CONFIG
from .errors import EmptyInputError, MalformedIdentifierError

logger = logging.getLogger(__name__)

SAMPLE_COLUMNS = CONFIG['columns']['samples']
MAF_COLUMNS = CONFIG['columns']['maf']

# Three segments free of dashes and whitespace, then the end of the string or another dash.
# Segment lengths are not checked.
PATIENT_PATTERN = re.compile(r'^([^-\s]+)-([^-\s]+)-([^-\s]+)(?:-|\Z)')


def extract_patient_id(barcode: str) -> str:
    """
    Return the patient part of a barcode, e.g. 'TCGA-DB-5270-01A' -> 'TCGA-DB-5270'.

    Raises:
        MalformedIdentifierError: If the barcode is not a string or has fewer
            than three non-empty dash-delimited segments, or whitespace
            inside one of them.
    """
    if not isinstance(barcode, str):
        raise MalformedIdentifierError(barcode, "barcode is not a string")
    match = PATIENT_PATTERN.match(barcode)
    if match is None:
        raise MalformedIdentifierError(barcode)
    return '-'.join(match.groups())


def derive_patient_ids(barcodes) -> pd.Series:
    """Apply extract_patient_id to every barcode, keeping the input index."""
    barcodes = barcodes if isinstance(barcodes, pd.Series) else pd.Series(list(barcodes), dtype=object)
    return barcodes.map(extract_patient_id)


def _as_frame(records, required_columns, label) -> pd.DataFrame:
    """Accept a DataFrame or a sequence of mappings/records and check its columns."""
    if isinstance(records, pd.DataFrame):
        frame = records
    else:
        frame = pd.DataFrame(list(records))
    if frame.empty:
        return frame
    missing_cols = [col for col in required_columns if col not in frame.columns]
    if missing_cols:
        raise ValueError(f"Missing required columns in {label}: {missing_cols}")
    return frame


def sample_patient_ids(samples,
                       sample_col: str = SAMPLE_COLUMNS['sample_id'],
                       barcode_col: str = SAMPLE_COLUMNS['barcode']) -> pd.Series:
    """
    Map every sample identifier to its derived patient identifier.

    Returns:
        pd.Series: Patient ids indexed by sample id, in input order.
    """
    frame = _as_frame(samples, [sample_col, barcode_col], 'samples')
    if frame.empty:
        raise EmptyInputError("No samples to annotate")

    duplicated = frame[sample_col][frame[sample_col].duplicated()].unique().tolist()
    if duplicated:
        raise ValueError(f"Duplicate sample identifiers: {duplicated}")

    patients = derive_patient_ids(frame[barcode_col])
    return pd.Series(patients.to_numpy(), index=pd.Index(frame[sample_col], name=sample_col),
                     name='patient_id', dtype=object)


def mutation_patient_ids(mutations,
                         gene_col: str = MAF_COLUMNS['gene'],
                         barcode_col: str = MAF_COLUMNS['barcode']) -> pd.DataFrame:
    """
    Derive the patient identifier of every mutation call.

    Every barcode is validated, not only those of the genes later queried.

    Returns:
        pd.DataFrame: Columns 'gene' and 'patient_id', one row per call.
    """
    frame = _as_frame(mutations, [gene_col, barcode_col], 'mutations')
    if frame.empty:
        return pd.DataFrame({'gene': pd.Series(dtype=object), 'patient_id': pd.Series(dtype=object)})
    return pd.DataFrame({
        'gene': frame[gene_col].to_numpy(),
        'patient_id': derive_patient_ids(frame[barcode_col]).to_numpy(),
    })


def mutated_patients(mutations, gene: str,
                     gene_col: str = MAF_COLUMNS['gene'],
                     barcode_col: str = MAF_COLUMNS['barcode']) -> set:
    """Set of patients with at least one mutation call in `gene` (exact symbol match)."""
    calls = mutation_patient_ids(mutations, gene_col=gene_col, barcode_col=barcode_col)
    return set(calls.loc[calls['gene'] == gene, 'patient_id'])


def broadcast_to_samples(sample_patients: pd.Series, patient_set, name=None) -> pd.Series:
    """
    Spread a patient-level flag onto every sample of that patient.

    Args:
        sample_patients (pd.Series): Patient ids indexed by sample id.
        patient_set (set): Patients for which the flag is True.
        name (str, optional): Name of the returned series.
    """
    flags = sample_patients.isin(set(patient_set)).astype(bool)
    flags.name = name
    return flags


def assert_patient_consistent(annotation: pd.Series, sample_patients: pd.Series):
    """Raise ValueError if samples of the same patient carry different flags."""
    per_patient = annotation.groupby(sample_patients.reindex(annotation.index)).nunique()
    mixed = per_patient[per_patient > 1].index.tolist()
    if mixed:
        raise ValueError(f"Patients with inconsistent annotation across samples: {mixed}")


def annotate_gene_presence(samples, mutations, gene: str,
                           sample_col: str = SAMPLE_COLUMNS['sample_id'],
                           barcode_col: str = SAMPLE_COLUMNS['barcode'],
                           gene_col: str = MAF_COLUMNS['gene'],
                           mutation_barcode_col: str = MAF_COLUMNS['barcode']) -> pd.Series:
    """
    Flag each sample whose patient carries at least one mutation call in `gene`.

    Args:
        samples: DataFrame or sequence of records with a sample id and a barcode.
        mutations: DataFrame or sequence of mutation calls; may be empty.
        gene (str): Gene symbol, matched exactly and case-sensitively.

    Returns:
        pd.Series: Boolean flag per sample id, named after `gene`. Exactly one
        entry per input sample; no matching call gives False.

    Raises:
        EmptyInputError: If there are no samples.
        MalformedIdentifierError: If any sample or mutation barcode is malformed.
    """
    sample_patients = sample_patient_ids(samples, sample_col=sample_col, barcode_col=barcode_col)
    patients = mutated_patients(mutations, gene, gene_col=gene_col, barcode_col=mutation_barcode_col)
    annotation = broadcast_to_samples(sample_patients, patients, name=gene)
    assert_patient_consistent(annotation, sample_patients)
    logger.info(f"{gene}: {int(annotation.sum())} of {len(annotation)} samples from "
                f"{len(patients)} mutated patients")
    return annotation


def build_annotation_table(samples, mutations, genes,
                           sample_col: str = SAMPLE_COLUMNS['sample_id'],
                           barcode_col: str = SAMPLE_COLUMNS['barcode'],
                           gene_col: str = MAF_COLUMNS['gene'],
                           mutation_barcode_col: str = MAF_COLUMNS['barcode']) -> pd.DataFrame:
    """
    Boolean annotation table for a heatmap side panel.

    Returns:
        pd.DataFrame: One row per sample id, one boolean column per gene.
    """
    sample_patients = sample_patient_ids(samples, sample_col=sample_col, barcode_col=barcode_col)
    calls = mutation_patient_ids(mutations, gene_col=gene_col, barcode_col=mutation_barcode_col)
    patients_by_gene = calls.groupby('gene')['patient_id'].agg(set).to_dict()

    columns = {}
    for gene in dict.fromkeys(genes):
        flags = broadcast_to_samples(sample_patients, patients_by_gene.get(gene, set()), name=gene)
        assert_patient_consistent(flags, sample_patients)
        columns[gene] = flags

    table = pd.DataFrame(columns, index=sample_patients.index)
    logger.info(f"Built mutation annotation for {len(table)} samples and {table.shape[1]} genes")
    return table
