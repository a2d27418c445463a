"""
Proof Report Generator

Turns a built tree into the report handed to claimants: the root, and for
every entry its values, sorted index, leaf and proof. Digests are 0x hex and
integers are decimal strings so uint256 amounts survive any JSON reader.
"""

import json
from pathlib import Path

from basic_data_structure import MerkleMultiproof, WhitelistEntry
from merkle_errors import InvalidEntry
from tree_hashing import from_hex, to_hex

REPORT_FORMAT = "whitelist-proofs-v1"
MULTIPROOF_FORMAT = REPORT_FORMAT + "-multiproof"


def _json_value(value):
    if isinstance(value, bool) or isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, bytes):
        return "0x" + value.hex()
    raise TypeError(f"Cannot serialize {type(value).__name__}")


def _python_value(type_name, value):
    if type_name.startswith(("uint", "int")):
        return int(value)
    return value


def build_proof_report(builder):
    """Report dict for every entry of a built StandardMerkleTreeBuilder."""
    entries = []
    for index, entry in builder.entries():
        proof = builder.generate_proof(index)
        entries.append({
            "value": [_json_value(v) for v in entry.values],
            "index": index,
            "leaf": to_hex(proof.leaf),
            "proof": proof.hex_siblings(),
        })

    return {
        "format": REPORT_FORMAT,
        "root": builder.root_hex,
        "leafEncoding": list(builder.config.leaf_encoding),
        "entries": entries,
    }


def build_multiproof_report(builder, multiproof):
    return {
        "format": MULTIPROOF_FORMAT,
        "root": builder.root_hex,
        "leafEncoding": list(builder.config.leaf_encoding),
        "entries": [
            {"value": [_json_value(v) for v in builder.ordered_entries[i].values], "index": i}
            for i in multiproof.leaf_indices
        ],
        "leaves": [to_hex(h) for h in multiproof.leaves],
        "inputs": [to_hex(h) for h in multiproof.inputs],
        "proofFlags": list(multiproof.proof_flags),
        "bitmap": [hex(word) for word in multiproof.bitmap()],
    }


def report_multiproof(report):
    """Rebuild the entries and MerkleMultiproof of a multiproof report."""
    if report.get("format") != MULTIPROOF_FORMAT:
        raise InvalidEntry(f"Expected a {MULTIPROOF_FORMAT} report, got {report.get('format')!r}")
    try:
        entries = [report_entry(report, record) for record in report["entries"]]
        multiproof = MerkleMultiproof(
            leaves=tuple(from_hex(h) for h in report["leaves"]),
            leaf_indices=tuple(int(r["index"]) for r in report["entries"]),
            inputs=tuple(from_hex(h) for h in report["inputs"]),
            proof_flags=tuple(bool(f) for f in report["proofFlags"]),
        )
    except (KeyError, TypeError) as e:
        raise InvalidEntry(f"Malformed multiproof report: {e!r}") from None
    return entries, multiproof


def save_proof_report(report, path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding="utf-8") as f:
        json.dump(report, f, indent=2)
    return path


def load_proof_report(path):
    with open(path, 'r', encoding="utf-8") as f:
        try:
            report = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidEntry(f"{path} is not valid JSON: {e}") from None
    if not isinstance(report, dict) or not str(report.get("format", "")).startswith(REPORT_FORMAT):
        raise InvalidEntry(f"{path} is not a {REPORT_FORMAT} report")
    return report


def report_entry(report, record):
    """Rebuild the WhitelistEntry of one report record."""
    encoding = tuple(report["leafEncoding"])
    values = tuple(_python_value(t, v) for t, v in zip(encoding, record["value"]))
    return WhitelistEntry(values, encoding)


def find_report_record(report, address, amount=None):
    """First record whose address (and amount, if given) matches; None if absent."""
    wanted = address.lower()
    for record in report["entries"]:
        value = record["value"]
        if not isinstance(value[0], str) or value[0].lower() != wanted:
            continue
        if amount is not None and (len(value) < 2 or str(value[1]) != str(amount)):
            continue
        return record
    return None


def format_proof_report(report):
    """Human-readable dump in the shape the airdrop scripts print."""
    lines = [f"Merkle Root: {report['root']}"]
    for record in report["entries"]:
        lines.append(f"Value: {record['value']} (index {record['index']})")
        lines.append(f"Proof: [{', '.join(record['proof'])}]")
    return "\n".join(lines)
