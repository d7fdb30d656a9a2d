"""
Markdown export of a Report.

The evidence stamp is rebuilt from the report's own fields every time; no
cached rendering is reused.
"""
import hashlib
import json
from typing import List

from ..schemas.report import Report
from ..schemas.structure import StructureSourceName


def evidence_stamp(report: Report) -> str:
    """Short digest over the inputs the report was built from."""
    payload = {
        "variant": report.variant.hgvs,
        "structure": report.structure.id,
        "mapping": report.residue_mapping.model_dump(),
        "queries": report.provenance.queries,
        "source_ids": report.provenance.source_ids,
    }
    digest = hashlib.sha256(json.dumps(payload, sort_keys=True, default=str).encode("utf-8")).hexdigest()
    return digest[:16]


def _value(value) -> str:
    return "-" if value in (None, "", []) else str(value)


def generate_markdown(report: Report) -> str:
    variant = report.variant
    structure = report.structure
    mapping = report.residue_mapping
    evidence = report.evidence
    provenance = report.provenance

    lines: List[str] = [
        f"# Variant Lens Evidence Briefing: {variant.hgvs}",
        "",
        f"**Generated:** {provenance.generated_at}  ",
        f"**Target:** {variant.gene} (UniProt {_value(provenance.source_ids.get('uniprot'))})  ",
        f"**Input:** `{variant.raw}`",
    ]
    if variant.transcript:
        lines.append(f"**Transcript:** {variant.transcript}")

    if structure.resolution_angstrom is not None:
        resolution = f"{structure.resolution_angstrom:.2f} A"
    elif structure.source == StructureSourceName.ALPHAFOLD:
        resolution = "predicted"
    else:
        resolution = "not reported"
    coverage = f"{structure.coverage[0]}-{structure.coverage[1]}" if structure.coverage else "-"
    lines += [
        "",
        "## Structure",
        "",
        "| Field | Value |",
        "| --- | --- |",
        f"| Source | {structure.source.value} |",
        f"| ID | {structure.id} |",
        f"| Resolution | {resolution} |",
        f"| Coverage | {coverage} |",
        f"| Title | {_value(structure.title)} |",
        "",
        "## Residue Mapping",
        "",
    ]
    if mapping.mapped:
        lines.append(
            f"UniProt residue {variant.position} maps to chain {mapping.chain}, "
            f"residue {mapping.structure_residue} of {mapping.structure_id} ({mapping.source_database})."
        )
    else:
        lines.append(f"Not mapped: {_value(mapping.reason)}. No residue is highlighted.")

    lines += ["", "## ClinVar", ""]
    if evidence.clinvar:
        clinvar = evidence.clinvar
        lines += [
            f"- Variation ID: {clinvar.id}",
            f"- Significance: {_value(clinvar.significance)}",
            f"- Review status: {_value(clinvar.review_status)}",
            f"- Conditions: {_value(', '.join(clinvar.conditions))}",
            f"- Last evaluated: {_value(clinvar.last_updated)}",
        ]
    else:
        lines.append("No ClinVar record found.")

    lines += ["", f"## Literature ({evidence.pubmed_count} PubMed matches)", ""]
    if evidence.pubmed:
        for citation in evidence.pubmed:
            lines.append(
                f"- PMID {citation.id}: {_value(citation.title)} "
                f"*{_value(citation.source)}* ({_value(citation.year)})"
            )
    else:
        lines.append("No PubMed citations found.")

    lines += [
        "",
        "## Evidence Stamp & Provenance",
        "",
        f"- Stamp: `{evidence_stamp(report)}`",
        f"- App version: {provenance.app_version}",
        f"- ClinVar query: `{_value(provenance.queries.get('clinvar'))}`",
        f"- PubMed query: `{_value(provenance.queries.get('pubmed'))}`",
    ]
    for key in ("pdb_search", "alphafold", "sifts"):
        if key in provenance.queries:
            lines.append(f"- {key}: `{json.dumps(provenance.queries[key], sort_keys=True)}`")
    if provenance.unavailable:
        lines.append(f"- Unavailable sources: {', '.join(provenance.unavailable)}")
    lines += ["", f"> {provenance.disclaimer}", ""]
    return "\n".join(lines)
