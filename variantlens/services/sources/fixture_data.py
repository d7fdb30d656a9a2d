"""
Bundled offline data for fixture mode (VARIANTLENS_USE_FIXTURES=true).

Payloads mirror the upstream response shapes so the same parsing code runs
against them. Values are representative, not a mirror of the live archives.
"""


def _sifts(pdb_id, accession, segments):
    """segments: (chain, unp_start, unp_end, residue_start, author_start)"""
    mappings = []
    for chain, unp_start, unp_end, res_start, auth_start in segments:
        span = unp_end - unp_start
        mappings.append({
            "entity_id": 1,
            "chain_id": chain,
            "struct_asym_id": chain,
            "unp_start": unp_start,
            "unp_end": unp_end,
            "start": {"author_residue_number": auth_start, "author_insertion_code": "", "residue_number": res_start},
            "end": {"author_residue_number": auth_start + span, "author_insertion_code": "", "residue_number": res_start + span},
        })
    return {pdb_id.lower(): {"UniProt": {accession: {"identifier": accession, "mappings": mappings}}}}


def _coverage(pdb_id, chains):
    """chains: {chain_id: [(residue_start, residue_end), ...]}"""
    return {
        pdb_id.lower(): {
            "molecules": [{
                "entity_id": 1,
                "chains": [
                    {
                        "chain_id": chain,
                        "struct_asym_id": chain,
                        "observed": [
                            {"start": {"residue_number": s}, "end": {"residue_number": e}}
                            for s, e in ranges
                        ],
                    }
                    for chain, ranges in chains.items()
                ],
            }]
        }
    }


def _alphafold(accession, length, description):
    return {
        "id": f"AF-{accession}-F1",
        "url": f"https://alphafold.ebi.ac.uk/files/AF-{accession}-F1-model_v4.pdb",
        "title": description,
        "coverage": [1, length],
    }


STRUCTURE_FIXTURES = {
    "accessions": {
        # KRAS: several candidates, one below the quality bar, one resolution tie
        "P01116": {
            "search": [
                {"id": "4OBE", "score": 1.0},
                {"id": "6GJ8", "score": 0.98},
                {"id": "5US4", "score": 0.97},
                {"id": "4DSO", "score": 0.95},
                {"id": "7RPZ", "score": 0.91},
            ],
            "entries": {
                "4OBE": {"id": "4OBE", "resolution": 1.24, "title": "GTPase KRas bound to GDP", "coverage": [1, 169]},
                "6GJ8": {"id": "6GJ8", "resolution": 1.65, "title": "KRAS G12D in complex with GppNHp", "coverage": [1, 169]},
                "5US4": {"id": "5US4", "resolution": 3.9, "title": "KRAS in complex with effector", "coverage": [1, 185]},
                "4DSO": {"id": "4DSO", "resolution": 1.85, "title": "KRAS bound to small molecule", "coverage": [1, 169]},
                "7RPZ": {"id": "7RPZ", "resolution": 1.24, "title": "KRAS G12D bound to inhibitor", "coverage": [1, 169]},
            },
            "alphafold": _alphafold("P01116", 189, "GTPase KRas"),
        },
        # TP53: DNA-binding domain only, author numbering offset from residue index
        "P04637": {
            "search": [
                {"id": "1TSR", "score": 1.0},
                {"id": "2OCJ", "score": 0.97},
            ],
            "entries": {
                "1TSR": {"id": "1TSR", "resolution": 2.2, "title": "p53 core domain in complex with DNA", "coverage": [94, 312]},
                "2OCJ": {"id": "2OCJ", "resolution": 2.05, "title": "Human p53 core domain", "coverage": [94, 312]},
            },
            "alphafold": _alphafold("P04637", 393, "Cellular tumor antigen p53"),
        },
        # CFTR: top search hit is a low resolution cryo-EM map
        "P13569": {
            "search": [
                {"id": "5UAK", "score": 1.0},
                {"id": "2BBO", "score": 0.9},
            ],
            "entries": {
                "5UAK": {"id": "5UAK", "resolution": 3.87, "title": "Dephosphorylated human CFTR", "coverage": [1, 1480]},
                "2BBO": {"id": "2BBO", "resolution": 2.55, "title": "Human NBD1 with F508", "coverage": [389, 678]},
            },
            "alphafold": _alphafold("P13569", 1480, "Cystic fibrosis transmembrane conductance regulator"),
        },
        "P15056": {
            "search": [{"id": "1UWH", "score": 1.0}],
            "entries": {
                "1UWH": {"id": "1UWH", "resolution": 2.95, "title": "B-Raf kinase domain", "coverage": [448, 723]},
            },
            "alphafold": _alphafold("P15056", 766, "Serine/threonine-protein kinase B-raf"),
        },
        # PROM1: only a sub-threshold entry, so AlphaFold is used
        "O43490": {
            "search": [{"id": "7ZH0", "score": 1.0}],
            "entries": {
                "7ZH0": {"id": "7ZH0", "resolution": 4.2, "title": "Prominin-1 cryo-EM map", "coverage": [20, 865]},
            },
            "alphafold": _alphafold("O43490", 865, "Prominin-1"),
        },
        "Q15526": {
            "search": [],
            "entries": {},
            "alphafold": _alphafold("Q15526", 300, "Surfeit locus protein 1"),
        },
        "Q330K2": {
            "search": [],
            "entries": {},
            "alphafold": _alphafold("Q330K2", 333, "NADH dehydrogenase [ubiquinone] complex I, assembly factor 6"),
        },
    },
    "sifts": {
        **_sifts("4OBE", "P01116", [("A", 1, 169, 1, 1)]),
        **_sifts("6GJ8", "P01116", [("A", 1, 169, 1, 1)]),
        **_sifts("4DSO", "P01116", [("A", 1, 169, 1, 1)]),
        **_sifts("7RPZ", "P01116", [("A", 1, 169, 1, 1)]),
        **_sifts("2OCJ", "P04637", [("A", 94, 312, 1, 94), ("B", 94, 312, 1, 94)]),
        **_sifts("2BBO", "P13569", [("A", 389, 678, 1, 389)]),
        **_sifts("1UWH", "P15056", [("A", 448, 723, 1, 448)]),
    },
    "coverage": {
        # switch II loop (61-64) unresolved in 4OBE
        **_coverage("4OBE", {"A": [(1, 60), (65, 169)]}),
        **_coverage("6GJ8", {"A": [(1, 169)]}),
        **_coverage("4DSO", {"A": [(1, 169)]}),
        **_coverage("7RPZ", {"A": [(1, 169)]}),
        **_coverage("2OCJ", {"A": [(1, 219)], "B": [(1, 219)]}),
        **_coverage("2BBO", {"A": [(1, 290)]}),
        **_coverage("1UWH", {"A": [(1, 276)]}),
    },
}


EVIDENCE_FIXTURES = {
    "clinvar": [
        {
            "gene": "KRAS",
            "names": ["G12D"],
            "doc": {
                "uid": "12582",
                "obj_type": "single nucleotide variant",
                "title": "NM_004985.5(KRAS):c.35G>A (p.Gly12Asp)",
                "germline_classification": {
                    "description": "Pathogenic",
                    "review_status": "criteria provided, multiple submitters, no conflicts",
                    "last_evaluated": "2024/02/14 00:00",
                    "trait_set": [
                        {"trait_name": "Noonan syndrome 3"},
                        {"trait_name": "RASopathy"},
                    ],
                },
            },
        },
        {
            "gene": "TP53",
            "names": ["R175H"],
            "doc": {
                "uid": "12374",
                "obj_type": "single nucleotide variant",
                "title": "NM_000546.6(TP53):c.524G>A (p.Arg175His)",
                "clinical_significance": {
                    "description": "Pathogenic",
                    "review_status": "reviewed by expert panel",
                    "last_evaluation": "2023/05/01 00:00",
                },
                "trait_set": [{"trait_name": "Li-Fraumeni syndrome"}],
            },
        },
        {
            "gene": "CFTR",
            "names": ["F508del"],
            "doc": {
                "uid": "7105",
                "obj_type": "Deletion",
                "title": "NM_000492.4(CFTR):c.1521_1523del (p.Phe508del)",
                "germline_classification": {
                    "description": "Pathogenic",
                    "review_status": "practice guideline",
                    "last_evaluated": "2023/11/20 00:00",
                    "trait_set": [{"trait_name": "Cystic fibrosis"}],
                },
            },
        },
    ],
    "pubmed": [
        {"gene": "KRAS", "names": ["G12D"], "count": 3, "pmids": ["38100001", "37900002", "36800003"]},
        {"gene": "TP53", "names": ["R175H"], "count": 2, "pmids": ["38200011", "35500012"]},
        {"gene": "CFTR", "names": ["F508del"], "count": 1, "pmids": ["37400021"]},
    ],
    "pubmed_docs": {
        "38100001": {"uid": "38100001", "title": "Structural basis of KRAS G12D inhibition.", "source": "Nature", "pubdate": "2024 Jan 18"},
        "37900002": {"uid": "37900002", "title": "KRAS G12D-selective inhibitors in pancreatic cancer.", "source": "Cancer Discov", "pubdate": "2023 Nov"},
        "36800003": {"uid": "36800003", "title": "Allele-specific signalling of KRAS G12D.", "source": "Cell Rep", "pubdate": "2023 Feb 28"},
        "38200011": {"uid": "38200011", "title": "Conformational dynamics of the p53 R175H mutant.", "source": "J Mol Biol", "pubdate": "2024 Mar 1"},
        "35500012": {"uid": "35500012", "title": "Zinc loss in p53 R175H.", "source": "Proc Natl Acad Sci U S A", "pubdate": "2022 May 24"},
        "37400021": {"uid": "37400021", "title": "NBD1 stability and F508del correction.", "source": "J Cyst Fibros", "pubdate": "2023 Jul"},
    },
}
