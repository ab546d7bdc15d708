"""
Data Processing module for expression, clinical, and mutation data integration.

This package provides utilities for:
- Patient ID derivation from TCGA barcodes and the sample/mutation identity join
- Expression count matrix and sample table construction
- Clinical data flattening and sample-level merging
- MAF loading and non-synonymous filtering
"""

__version__ = "1.0.0"

from .errors import EmptyInputError, IdentifierError, MalformedIdentifierError
from .identity_join import (
    annotate_gene_presence,
    build_annotation_table,
    extract_patient_id,
)
from .utils import create_patient_map, load_csv
from .clinical import flatten_clinical, load_clinical_table, merge_sample_clinical
from .expression import build_count_matrix, build_sample_table, read_star_counts
from .mutations import filter_nonsynonymous, load_maf_files, read_maf
