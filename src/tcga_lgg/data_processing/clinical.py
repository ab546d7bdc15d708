import logging

import numpy as np
import pandas as pd

from .identity_join import derive_patient_ids
from .utils import load_csv, require_columns

logger = logging.getLogger(__name__)

CLINICAL_COLUMNS = [
    'patient_id', 'gender', 'race', 'vital_status', 'age_at_diagnosis',
    'days_to_death', 'days_to_last_follow_up', 'primary_diagnosis', 'tumor_grade'
]


def load_clinical_table(path: str) -> pd.DataFrame:
    """
    Load a clinical CSV, normalize column names to lowercase,
    and return a single patient‐level DataFrame.
    """
    df = load_csv(path)
    df.columns = [c.lower() for c in df.columns]
    return df


def flatten_clinical(case_hits) -> pd.DataFrame:
    """
    Flatten GDC case records (demographic and diagnoses expanded) into one row per patient.

    Age at diagnosis is reported by the GDC in days and converted to years here.
    When a case has several diagnoses the first one is used.
    """
    rows = []
    for case in case_hits:
        demographic = case.get('demographic') or {}
        diagnoses = case.get('diagnoses') or [{}]
        diagnosis = diagnoses[0]
        age_days = diagnosis.get('age_at_diagnosis')
        rows.append({
            'patient_id': case.get('submitter_id'),
            'gender': demographic.get('gender'),
            'race': demographic.get('race'),
            'vital_status': demographic.get('vital_status'),
            'age_at_diagnosis': age_days / 365.25 if age_days is not None else np.nan,
            'days_to_death': demographic.get('days_to_death'),
            'days_to_last_follow_up': diagnosis.get('days_to_last_follow_up'),
            'primary_diagnosis': diagnosis.get('primary_diagnosis'),
            'tumor_grade': diagnosis.get('tumor_grade'),
        })
    clinical = pd.DataFrame(rows, columns=CLINICAL_COLUMNS)
    logger.info(f"Flattened clinical data for {len(clinical)} patients")
    return clinical


def merge_sample_clinical(samples: pd.DataFrame, clinical: pd.DataFrame,
                          barcode_col: str = 'barcode',
                          patient_col: str = 'patient_id') -> pd.DataFrame:
    """
    Attach patient-level clinical data to every sample.

    The join is a left join on the patient identifier derived from each
    sample's barcode, so the result has exactly one row per input sample.

    Raises:
        ValueError: If the clinical table lists a patient more than once.
    """
    require_columns(samples, [barcode_col], label='samples')
    require_columns(clinical, [patient_col], label='clinical')

    duplicated = clinical[patient_col][clinical[patient_col].duplicated()].unique().tolist()
    if duplicated:
        raise ValueError(f"Clinical table has duplicate patients: {duplicated}")

    annotated = samples.copy()
    annotated['patient_id'] = derive_patient_ids(annotated[barcode_col]).to_numpy()
    clinical = clinical.rename(columns={patient_col: 'patient_id'})
    merged = annotated.merge(clinical, on='patient_id', how='left', suffixes=('', '_clinical'))

    unmatched = merged['patient_id'][~merged['patient_id'].isin(clinical['patient_id'])]
    if not unmatched.empty:
        logger.warning(f"{len(unmatched)} samples have no clinical record, e.g. {unmatched.tolist()[:5]}")
    logger.info(f"Merged clinical data onto {len(merged)} samples")
    return merged
