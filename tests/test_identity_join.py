import numpy as np
import pandas as pd
import pytest

from tcga_lgg.data_processing import (
    EmptyInputError,
    MalformedIdentifierError,
    annotate_gene_presence,
    build_annotation_table,
    extract_patient_id,
)
from tcga_lgg.data_processing.identity_join import (
    assert_patient_consistent,
    broadcast_to_samples,
    derive_patient_ids,
    mutated_patients,
    sample_patient_ids,
)

SAMPLE_COLS = dict(sample_col="id", barcode_col="barcode")
MUTATION_COLS = dict(gene_col="gene", mutation_barcode_col="barcode")


def test_extract_patient_id_full_barcode():
    assert extract_patient_id("TCGA-DB-5270-01A-11R-1896-07") == "TCGA-DB-5270"


def test_extract_patient_id_exactly_three_segments():
    assert extract_patient_id("TCGA-DB-5270") == "TCGA-DB-5270"


def test_extract_patient_id_does_not_check_segment_lengths():
    assert extract_patient_id("X-1-Y-z") == "X-1-Y"


@pytest.mark.parametrize("barcode", [
    "bad", "TCGA-DB", "TCGA--5270-01A", "", None, np.nan, 1234,
    "TCGA-DB-5270\n", "TCGA- -5270-01A", " TCGA-DB-5270",
])
def test_extract_patient_id_rejects_malformed(barcode):
    with pytest.raises(MalformedIdentifierError):
        extract_patient_id(barcode)


def test_malformed_identifier_is_value_error():
    with pytest.raises(ValueError, match="bad"):
        extract_patient_id("bad")


def test_derive_patient_ids_keeps_index():
    barcodes = pd.Series(["TCGA-01-AAAA-x", "TCGA-02-BBBB"], index=["a", "b"])
    result = derive_patient_ids(barcodes)
    assert result.to_dict() == {"a": "TCGA-01-AAAA", "b": "TCGA-02-BBBB"}


def test_concrete_scenario():
    samples = [
        {"id": "S1", "barcode": "TCGA-01-AAAA-suffix"},
        {"id": "S2", "barcode": "TCGA-01-AAAA-other"},
        {"id": "S3", "barcode": "TCGA-02-BBBB-suffix"},
    ]
    mutations = [{"gene": "IDH1", "barcode": "TCGA-01-AAAA-extra"}]
    result = annotate_gene_presence(samples, mutations, "IDH1", **SAMPLE_COLS, **MUTATION_COLS)
    assert result.to_dict() == {"S1": True, "S2": True, "S3": False}
    assert result.name == "IDH1"
    assert result.dtype == bool


def test_sample_preservation(samples, maf):
    result = annotate_gene_presence(samples, maf, "TP53")
    assert len(result) == len(samples)
    assert list(result.index) == samples["sample_id"].tolist()


def test_many_calls_collapse_to_one_flag(samples, maf):
    # TCGA-DB-5270 has two TP53 calls and two samples
    result = annotate_gene_presence(samples, maf, "TP53")
    assert result["TCGA-DB-5270-01A"]
    assert result["TCGA-DB-5270-02A"]
    assert not result["TCGA-CS-4938-01A"]
    assert not result["TCGA-HT-7470-01A"]


@pytest.mark.parametrize("mutations", [[], pd.DataFrame(), pd.DataFrame(columns=["Hugo_Symbol", "Tumor_Sample_Barcode"])])
def test_empty_mutations_give_all_false(samples, mutations):
    result = annotate_gene_presence(samples, mutations, "IDH1")
    assert len(result) == len(samples)
    assert not result.any()


def test_gene_filter_is_exact(samples):
    mutations = pd.DataFrame({
        "Hugo_Symbol": ["TP53", "idh1", "IDH1 "],
        "Tumor_Sample_Barcode": ["TCGA-HT-7470-01A-11D"] * 3,
    })
    result = annotate_gene_presence(samples, mutations, "IDH1")
    assert not result.any()


def test_malformed_sample_barcode_raises(maf):
    samples = [{"sample_id": "S1", "barcode": "TCGA-DB-5270-01A"}, {"sample_id": "S2", "barcode": "bad"}]
    with pytest.raises(MalformedIdentifierError):
        annotate_gene_presence(samples, maf, "IDH1")


def test_malformed_mutation_barcode_raises_even_for_other_gene(samples):
    mutations = [
        {"Hugo_Symbol": "IDH1", "Tumor_Sample_Barcode": "TCGA-DB-5270-01A"},
        {"Hugo_Symbol": "TP53", "Tumor_Sample_Barcode": "TCGA"},
    ]
    with pytest.raises(MalformedIdentifierError):
        annotate_gene_presence(samples, mutations, "IDH1")


@pytest.mark.parametrize("empty", [[], pd.DataFrame(columns=["sample_id", "barcode"])])
def test_empty_samples_raise(empty, maf):
    with pytest.raises(EmptyInputError):
        annotate_gene_presence(empty, maf, "IDH1")


def test_duplicate_sample_ids_raise(maf):
    samples = [{"sample_id": "S1", "barcode": "TCGA-01-AAAA"}, {"sample_id": "S1", "barcode": "TCGA-02-BBBB"}]
    with pytest.raises(ValueError, match="Duplicate"):
        annotate_gene_presence(samples, maf, "IDH1")


def test_missing_column_raises(maf):
    with pytest.raises(ValueError, match="barcode"):
        annotate_gene_presence([{"sample_id": "S1", "tumor": "TCGA-01-AAAA"}], maf, "IDH1")


def test_extra_sample_columns_are_ignored(samples, maf):
    result = annotate_gene_presence(samples.assign(extra=range(len(samples))), maf, "IDH1")
    assert result.to_dict() == {
        "TCGA-DB-5270-01A": True,
        "TCGA-DB-5270-02A": True,
        "TCGA-CS-4938-01A": True,
        "TCGA-HT-7470-01A": False,
    }


def test_mutated_patients(maf):
    assert mutated_patients(maf, "IDH1") == {"TCGA-DB-5270", "TCGA-CS-4938", "TCGA-FG-A4MT"}
    assert mutated_patients(maf, "EGFR") == set()


def test_broadcast_to_samples():
    sample_patients = pd.Series(["P-1-A", "P-1-A", "P-2-B"], index=["s1", "s2", "s3"])
    flags = broadcast_to_samples(sample_patients, {"P-1-A"}, name="G")
    assert flags.to_dict() == {"s1": True, "s2": True, "s3": False}
    assert flags.name == "G"


def test_assert_patient_consistent_detects_mixed_flags():
    sample_patients = pd.Series(["P-1-A", "P-1-A"], index=["s1", "s2"])
    with pytest.raises(ValueError, match="P-1-A"):
        assert_patient_consistent(pd.Series([True, False], index=["s1", "s2"]), sample_patients)


def test_sample_patient_ids(samples):
    patients = sample_patient_ids(samples)
    assert patients["TCGA-DB-5270-02A"] == "TCGA-DB-5270"
    assert patients.index.name == "sample_id"


def test_build_annotation_table(samples, maf):
    table = build_annotation_table(samples, maf, ["IDH1", "ATRX", "EGFR", "IDH1"])
    assert list(table.columns) == ["IDH1", "ATRX", "EGFR"]
    assert list(table.index) == samples["sample_id"].tolist()
    assert table["ATRX"].tolist() == [True, True, False, False]
    assert not table["EGFR"].any()
    assert (table.dtypes == bool).all()


def test_build_annotation_table_matches_single_gene(samples, maf):
    table = build_annotation_table(samples, maf, ["TP53"])
    single = annotate_gene_presence(samples, maf, "TP53")
    pd.testing.assert_series_equal(table["TP53"], single, check_names=False)
