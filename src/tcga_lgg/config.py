"""
Configuration for the TCGA-LGG walkthrough.

Paths are relative to the base path given on the command line; every other
value can be overridden through `lgg_main.parse_args`.
"""

import os

# Configuration dictionary for file paths, remote endpoints and column names
CONFIG = {
    'base_path': os.getcwd(),
    'project_id': 'TCGA-LGG',
    'data_dir': 'data',
    'expression_dir': 'data/expression',
    'mutation_dir': 'data/mutations',
    'output_dir': 'output/lgg_analysis',
    'gdc': {
        'base_url': 'https://api.gdc.cancer.gov',
        'search_timeout': 30,
        'download_timeout': 120,
        'page_size': 2000,
        'expression_workflow': 'STAR - Counts',
        'chunk_size': 1 << 20,
    },
    'columns': {
        'samples': {'sample_id': 'sample_id', 'barcode': 'barcode'},
        'maf': {
            'gene': 'Hugo_Symbol',
            'barcode': 'Tumor_Sample_Barcode',
            'classification': 'Variant_Classification',
            'protein_change': 'HGVSp_Short',
            'protein_position': 'Protein_position',
        },
        'clinical': {'patient_id': 'patient_id'},
    },
    # Genes frequently altered in lower grade glioma
    'genes': ['IDH1', 'TP53', 'ATRX', 'CIC', 'FUBP1', 'NOTCH1', 'PIK3CA', 'EGFR'],
    'normalization': {
        'method': 'log2',
        'pseudocount': 1,
        'min_count': 10,
        'min_samples_fraction': 0.2,
    },
    'top_variable_genes': 500,
    'oncoplot_top_genes': 20,
    'interaction_top_genes': 25,
}

# maftools' default set of non-synonymous variant classifications
NONSYNONYMOUS_CLASSES = [
    'Frame_Shift_Del', 'Frame_Shift_Ins', 'Splice_Site', 'Translation_Start_Site',
    'Nonsense_Mutation', 'Nonstop_Mutation', 'In_Frame_Del', 'In_Frame_Ins',
    'Missense_Mutation'
]

VARIANT_COLORS = {
    'Missense_Mutation': '#33A02C',
    'Nonsense_Mutation': '#E31A1C',
    'Frame_Shift_Del': '#1F78B4',
    'Frame_Shift_Ins': '#6A3D9A',
    'In_Frame_Del': '#FDBF6F',
    'In_Frame_Ins': '#FB9A99',
    'Splice_Site': '#FF7F00',
    'Translation_Start_Site': '#B15928',
    'Nonstop_Mutation': '#A6CEE3',
    'Multi_Hit': '#000000',
}


def resolve_path(base_path, key):
    """Join a CONFIG directory entry onto the base path."""
    return os.path.join(base_path, CONFIG[key])
