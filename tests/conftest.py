import matplotlib

matplotlib.use("Agg")

import pandas as pd
import pytest


@pytest.fixture
def samples():
    return pd.DataFrame({
        "sample_id": ["TCGA-DB-5270-01A", "TCGA-DB-5270-02A", "TCGA-CS-4938-01A", "TCGA-HT-7470-01A"],
        "barcode": [
            "TCGA-DB-5270-01A-11R-1896-07",
            "TCGA-DB-5270-02A-11R-A27Q-07",
            "TCGA-CS-4938-01B-11R-1896-07",
            "TCGA-HT-7470-01A-11R-2027-07",
        ],
        "sample_type": ["Primary Tumor", "Recurrent Tumor", "Primary Tumor", "Primary Tumor"],
    })


@pytest.fixture
def maf():
    return pd.DataFrame({
        "Hugo_Symbol": ["IDH1", "IDH1", "TP53", "TP53", "ATRX", "IDH1", "TP53", "CIC"],
        "Tumor_Sample_Barcode": [
            "TCGA-DB-5270-01A-11D-1897-08",
            "TCGA-CS-4938-01B-11D-1891-08",
            "TCGA-DB-5270-01A-11D-1897-08",
            "TCGA-DB-5270-01A-11D-1897-08",
            "TCGA-DB-5270-01A-11D-1897-08",
            "TCGA-FG-A4MT-01A-11D-A26M-08",
            "TCGA-FG-A4MT-01A-11D-A26M-08",
            "TCGA-CS-4938-01B-11D-1891-08",
        ],
        "Variant_Classification": [
            "Missense_Mutation", "Missense_Mutation", "Missense_Mutation", "Nonsense_Mutation",
            "Frame_Shift_Del", "Missense_Mutation", "Missense_Mutation", "Missense_Mutation",
        ],
        "HGVSp_Short": ["p.R132H", "p.R132H", "p.R273C", "p.R306*", "p.K1520fs", "p.R132C", "p.R248Q", "p.R215W"],
        "Protein_position": ["132/414", "132/414", "273/393", "306/393", "1520/2492", "132/414", "248/393", "215/1608"],
    })
