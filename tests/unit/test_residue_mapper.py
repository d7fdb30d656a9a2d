"""
Unit tests for SIFTS residue mapping.
"""
import pytest

from variantlens.errors import UpstreamUnavailableError
from variantlens.schemas.structure import StructureCandidate, StructureSourceName
from variantlens.services.residue_mapper import ResidueMapper, parse_sifts_segments
from variantlens.services.sources import FixtureStructureSource


def pdb(pdb_id):
    return StructureCandidate(id=pdb_id, source=StructureSourceName.PDB, resolution_angstrom=2.0)


def sifts_payload(pdb_id, accession, mappings):
    return {"UniProt": {accession: {"mappings": mappings}}}


def segment(chain, unp_start, unp_end, res_start, res_end, auth_start, auth_end, ins_start="", ins_end=""):
    return {
        "chain_id": chain,
        "unp_start": unp_start,
        "unp_end": unp_end,
        "start": {"residue_number": res_start, "author_residue_number": auth_start, "author_insertion_code": ins_start},
        "end": {"residue_number": res_end, "author_residue_number": auth_end, "author_insertion_code": ins_end},
    }


def coverage_payload(chains):
    return {
        "molecules": [{
            "chains": [
                {"chain_id": chain, "observed": [{"start": {"residue_number": s}, "end": {"residue_number": e}} for s, e in ranges]}
                for chain, ranges in chains.items()
            ]
        }]
    }


def custom_source(mappings, chains=None):
    data = {"accessions": {}, "sifts": {"1abc": sifts_payload("1abc", "P00001", mappings)}, "coverage": {}}
    if chains is not None:
        data["coverage"]["1abc"] = coverage_payload(chains)
    return FixtureStructureSource(data)


class SiftsDownSource(FixtureStructureSource):
    async def fetch_sifts_mappings(self, pdb_id):
        raise UpstreamUnavailableError("PDBe", "upstream_5xx", "HTTP 503")


@pytest.mark.asyncio
async def test_kras_g12_is_mapped(structure_source):
    mapping = await ResidueMapper(structure_source).map_residue(pdb("4OBE"), "P01116", 12)
    assert mapping.mapped is True
    assert mapping.chain == "A"
    assert mapping.structure_residue == "12"
    assert mapping.structure_id == "4OBE"
    assert mapping.source_database == "SIFTS"
    assert mapping.reason is None


@pytest.mark.asyncio
async def test_author_numbering_differs_from_residue_index(structure_source):
    mapping = await ResidueMapper(structure_source).map_residue(pdb("2OCJ"), "P04637", 175)
    assert mapping.mapped is True
    assert (mapping.chain, mapping.structure_residue) == ("A", "175")


@pytest.mark.asyncio
async def test_missing_density_is_unmapped(structure_source):
    mapping = await ResidueMapper(structure_source).map_residue(pdb("4OBE"), "P01116", 61)
    assert mapping.mapped is False
    assert mapping.chain is None
    assert "observed density" in mapping.reason


@pytest.mark.asyncio
async def test_position_outside_segments_is_unmapped(structure_source):
    mapping = await ResidueMapper(structure_source).map_residue(pdb("2OCJ"), "P04637", 50)
    assert mapping.mapped is False
    assert mapping.structure_residue is None


@pytest.mark.asyncio
async def test_alphafold_is_never_mapped(structure_source):
    model = StructureCandidate(id="AF-Q15526-F1", source=StructureSourceName.ALPHAFOLD)
    mapping = await ResidueMapper(structure_source).map_residue(model, "Q15526", 10)
    assert mapping.mapped is False
    assert "AlphaFold" in mapping.reason
    assert structure_source.calls == []


@pytest.mark.asyncio
async def test_unequal_spans_are_not_trusted():
    source = custom_source([segment("A", 1, 100, 1, 110, 1, 110)], {"A": [(1, 110)]})
    mapping = await ResidueMapper(source).map_residue(pdb("1ABC"), "P00001", 50)
    assert mapping.mapped is False
    assert "disagree" in mapping.reason


@pytest.mark.asyncio
async def test_missing_coverage_is_unmapped():
    source = custom_source([segment("A", 1, 100, 1, 100, 1, 100)], chains=None)
    mapping = await ResidueMapper(source).map_residue(pdb("1ABC"), "P00001", 50)
    assert mapping.mapped is False
    assert "coverage not published" in mapping.reason
    assert mapping.upstream_unavailable is False


@pytest.mark.asyncio
async def test_sifts_outage_is_unmapped_with_reason():
    mapping = await ResidueMapper(SiftsDownSource()).map_residue(pdb("4OBE"), "P01116", 12)
    assert mapping.mapped is False
    assert mapping.reason.startswith("SIFTS unavailable")
    assert mapping.upstream_unavailable is True
    assert "upstreamUnavailable" not in mapping.model_dump(by_alias=True)


@pytest.mark.asyncio
async def test_insertion_code_at_segment_start():
    source = custom_source([segment("H", 30, 30, 30, 30, 52, 52, ins_start="A", ins_end="A")], {"H": [(1, 200)]})
    mapping = await ResidueMapper(source).map_residue(pdb("1ABC"), "P00001", 30)
    assert mapping.mapped is True
    assert mapping.structure_residue == "52A"


@pytest.mark.asyncio
async def test_second_chain_used_when_first_unobserved():
    source = custom_source(
        [segment("A", 1, 100, 1, 100, 1, 100), segment("B", 1, 100, 1, 100, 1, 100)],
        {"A": [(1, 40)], "B": [(1, 100)]},
    )
    mapping = await ResidueMapper(source).map_residue(pdb("1ABC"), "P00001", 50)
    assert mapping.mapped is True
    assert mapping.chain == "B"


def test_segments_for_other_accessions_are_ignored():
    payload = {"1abc": sifts_payload("1abc", "P00002", [segment("A", 1, 100, 1, 100, 1, 100)])}
    assert parse_sifts_segments(payload, "1ABC", "P00001") == []
