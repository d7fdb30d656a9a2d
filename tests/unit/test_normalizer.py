"""
Unit tests for HGVS normalization.
"""
import pytest

from variantlens.errors import ParseError
from variantlens.schemas.variant import VariantType
from variantlens.services.normalizer import normalize


class TestNormalizeAccepted:
    @pytest.mark.parametrize("raw, expected", [
        ("TP53:p.R175H", "TP53:p.R175H"),
        ("tp53 : p. r175h", "TP53:p.R175H"),
        ("TP53:p.Arg175His", "TP53:p.R175H"),
        ("BRAF:V600E", "BRAF:p.V600E"),
        ("TP53:p.(R175H)", "TP53:p.R175H"),
        ("BRCA2:p.Ser1982Argfs*22", "BRCA2:p.S1982fs"),
        ("BRCA2:p.S1982fs", "BRCA2:p.S1982fs"),
        ("CFTR:p.G542*", "CFTR:p.G542Ter"),
        ("CFTR:p.G542X", "CFTR:p.G542Ter"),
        ("CFTR:p.Gly542Ter", "CFTR:p.G542Ter"),
        ("CFTR:p.Gly542Stop", "CFTR:p.G542Ter"),
        ("DMD:p.Q1*", "DMD:p.Q1Ter"),
        ("CFTR:p.F508del", "CFTR:p.F508del"),
        ("CFTR:p.Phe508del", "CFTR:p.F508del"),
        ("BRCA2:p.Y3308dup", "BRCA2:p.Y3308dup"),
    ])
    def test_canonical_form(self, raw, expected):
        assert normalize(raw).hgvs == expected

    def test_transcript_is_carried(self):
        variant = normalize("NM_152416.4(NDUFAF6):p.Ala178Pro")
        assert variant.gene == "NDUFAF6"
        assert variant.transcript == "NM_152416.4"
        assert variant.protein_change == "A178P"

    def test_fields(self):
        variant = normalize("KRAS:p.G12D")
        assert (variant.ref, variant.position, variant.alt) == ("G", 12, "D")
        assert variant.variant_type == VariantType.MISSENSE
        assert variant.raw == "KRAS:p.G12D"

    @pytest.mark.parametrize("raw, variant_type", [
        ("KRAS:p.G12G", VariantType.SILENT),
        ("CFTR:p.G542X", VariantType.NONSENSE),
        ("CFTR:p.F508del", VariantType.DELETION),
        ("BRCA2:p.Y3308dup", VariantType.DUPLICATION),
        ("BRCA2:p.Ser1982Argfs*22", VariantType.FRAMESHIFT),
    ])
    def test_variant_type(self, raw, variant_type):
        assert normalize(raw).variant_type == variant_type

    @pytest.mark.parametrize("raw", [
        "TP53:p.R175H",
        "tp53 : p. arg175his",
        "BRCA2:p.Ser1982Argfs*22",
        "CFTR:p.Gly542Ter",
        "CFTR:p.Phe508del",
        "BRCA2:p.Y3308dup",
        "NM_152416.4(NDUFAF6):p.Ala178Pro",
    ])
    def test_normalization_is_idempotent(self, raw):
        first = normalize(raw)
        second = normalize(first.hgvs)
        assert (second.gene, second.protein_change) == (first.gene, first.protein_change)

    def test_result_is_immutable(self):
        variant = normalize("TP53:p.R175H")
        with pytest.raises(Exception):
            variant.gene = "KRAS"

    def test_alias_is_canonicalized_with_resolver(self, gene_resolver):
        assert normalize("ABCC7:p.F508del", resolver=gene_resolver).hgvs == "CFTR:p.F508del"
        assert normalize("GBA:p.N409S", resolver=gene_resolver).gene == "GBA1"

    def test_unknown_gene_passes_through(self, gene_resolver):
        assert normalize("FAKEGENE:p.G123A", resolver=gene_resolver).gene == "FAKEGENE"


class TestNormalizeRejected:
    @pytest.mark.parametrize("raw, message", [
        ("", "empty input"),
        ("   ", "empty input"),
        ("rs113488022", "Protein-level HGVS required"),
        ("MT-TL1:m.3243A>G", "Protein-level HGVS required"),
        ("CFTR:c.1521_1523delCTT", "Protein-level HGVS required"),
        ("NM_000492.4(CFTR):c.1521_1523del", "Protein-level HGVS required"),
        ("CFTR:p.=", "not supported"),
        ("TP53:p.R175H p.R248Q", "one protein variant"),
        ("TP53p.R175H", 'Missing ":"'),
        ("TP53:p.Xyz175His", "Unknown amino acid"),
        ("TP53:p.R175Zz", "Unknown amino acid"),
        ("TP53:p.R0H", "1 or greater"),
        ("TP53:p.K2_L3insQ", "Unsupported protein change"),
        ("NM_000492.4:p.F508del", "needs a gene symbol"),
        ("just some text", "Protein-level HGVS required"),
        ("P04637", "Protein-level HGVS required"),
        ("KRAS", "Protein-level HGVS required"),
    ])
    def test_rejects_with_message(self, raw, message):
        with pytest.raises(ParseError) as exc_info:
            normalize(raw)
        assert message in exc_info.value.message
        assert exc_info.value.code == "PARSE_ERROR"
