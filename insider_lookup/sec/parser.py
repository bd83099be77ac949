from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Dict, List, Optional
from xml.etree import ElementTree as ET

from insider_lookup.models import FilingReference, ParsedTransaction


def _debug(msg: str) -> None:
    print(f"[parser] {msg}")


@dataclass(frozen=True)
class ReportingOwner:
    owner_cik: str | None
    owner_name: str | None


@dataclass(frozen=True)
class TransactionRow:
    is_derivative: bool
    security_title: str | None
    transaction_date: str | None
    transaction_code: str | None
    shares_raw: str | None
    price_raw: str | None
    acquired_disposed: str | None
    coding_footnote_ids: List[str]
    nature_footnote_ids: List[str]


@dataclass(frozen=True)
class OwnershipDocument:
    document_type: str | None
    reporting_owners: List[ReportingOwner]
    footnotes: Dict[str, str]
    rows: List[TransactionRow]


# -----------------------------
# XML helpers
# -----------------------------


def _strip_ns(tag: str) -> str:
    if "}" in tag:
        return tag.split("}", 1)[1]
    return tag


def _find_child(parent: ET.Element | None, name: str) -> Optional[ET.Element]:
    if parent is None:
        return None
    for child in parent:
        if isinstance(child.tag, str) and _strip_ns(child.tag) == name:
            return child
    return None


def _find_children(parent: ET.Element | None, name: str) -> List[ET.Element]:
    if parent is None:
        return []
    return [c for c in parent if isinstance(c.tag, str) and _strip_ns(c.tag) == name]


def _find_path(parent: ET.Element | None, path: List[str]) -> Optional[ET.Element]:
    cur: Optional[ET.Element] = parent
    for p in path:
        cur = _find_child(cur, p)
        if cur is None:
            return None
    return cur


def _scalar(el: ET.Element | None) -> Optional[str]:
    """Read a field that is either <foo><value>TEXT</value></foo> or <foo>TEXT</foo>.

    Attribute-only elements (e.g. a bare footnoteId) have no scalar.
    """
    if el is None:
        return None
    value_el = _find_child(el, "value")
    if value_el is not None:
        text = (value_el.text or "").strip()
        return text if text else None
    text = (el.text or "").strip()
    return text if text else None


def _footnote_ids(el: ET.Element | None) -> List[str]:
    out: List[str] = []
    for fn in _find_children(el, "footnoteId"):
        fid = (fn.attrib.get("id") or fn.attrib.get("ID") or "").strip()
        if fid:
            out.append(fid)
    return out


def _parse_number(s: Optional[str]) -> Optional[float]:
    if s is None:
        return None
    t = str(s).strip().replace(",", "")
    if not t:
        return None
    try:
        v = float(t)
    except ValueError:
        return None
    return v if math.isfinite(v) else None


_OWNERSHIP_START = re.compile(r"<ownershipdocument\b", flags=re.IGNORECASE)
_OWNERSHIP_END = re.compile(r"</ownershipdocument>", flags=re.IGNORECASE)


def _extract_ownership_fragment(text: str) -> Optional[str]:
    """Pull <ownershipDocument>...</ownershipDocument> out of .txt/.htm wrappers."""
    m_start = _OWNERSHIP_START.search(text)
    if not m_start:
        return None
    m_end = _OWNERSHIP_END.search(text, m_start.start())
    if not m_end:
        return None
    return text[m_start.start() : m_end.end()]


# -----------------------------
# Typed read pass
# -----------------------------


def _parse_footnotes(root: ET.Element) -> Dict[str, str]:
    """Footnote id -> whitespace-collapsed text (markup inside a footnote is flattened)."""
    notes: Dict[str, str] = {}
    for fn in _find_children(_find_child(root, "footnotes"), "footnote"):
        fid = (fn.get("id") or fn.get("ID") or "").strip()
        text = " ".join("".join(fn.itertext()).split())
        if fid and text:
            notes[fid] = text
    return notes


def _read_owner(ro_el: ET.Element) -> ReportingOwner:
    ro_id = _find_child(ro_el, "reportingOwnerId")
    return ReportingOwner(
        owner_cik=_scalar(_find_child(ro_id, "rptOwnerCik")),
        owner_name=_scalar(_find_child(ro_id, "rptOwnerName")),
    )


def _read_row(tx_el: ET.Element, is_derivative: bool) -> TransactionRow:
    amounts = _find_child(tx_el, "transactionAmounts")
    coding = _find_child(tx_el, "transactionCoding")
    nature = _find_path(tx_el, ["ownershipNature", "natureOfOwnership"])

    acq_disp = _scalar(_find_child(amounts, "transactionAcquiredDisposedCode"))
    if acq_disp is None:
        acq_disp = _scalar(_find_child(tx_el, "transactionAcquiredDisposedCode"))

    return TransactionRow(
        is_derivative=is_derivative,
        security_title=_scalar(_find_child(tx_el, "securityTitle")),
        transaction_date=_scalar(_find_child(tx_el, "transactionDate")),
        transaction_code=_scalar(_find_child(coding, "transactionCode")),
        shares_raw=_scalar(_find_child(amounts, "transactionShares")),
        price_raw=_scalar(_find_child(amounts, "transactionPricePerShare")),
        acquired_disposed=acq_disp,
        coding_footnote_ids=_footnote_ids(coding),
        nature_footnote_ids=_footnote_ids(nature),
    )


def _locate_ownership_root(xml_text: str) -> Optional[ET.Element]:
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        # Full-submission .txt files embed the XML between SGML-ish headers.
        fragment = _extract_ownership_fragment(xml_text)
        if fragment is None:
            _debug(f"Unparseable ownership XML: {e}")
            return None
        try:
            root = ET.fromstring(fragment)
        except ET.ParseError as e2:
            _debug(f"Unparseable ownershipDocument fragment: {e2}")
            return None

    if _strip_ns(root.tag).lower() == "ownershipdocument":
        return root
    # e.g. an <XML> or <SEC-DOCUMENT> envelope around the real root
    for el in root.iter():
        if isinstance(el.tag, str) and _strip_ns(el.tag).lower() == "ownershipdocument":
            return el
    return None


def read_ownership_document(xml_text: str | None) -> Optional[OwnershipDocument]:
    """Parse XML into typed records. Returns None for empty, garbage or non-ownership XML."""
    if not xml_text or not str(xml_text).strip():
        return None

    root = _locate_ownership_root(str(xml_text))
    if root is None:
        return None

    rows: List[TransactionRow] = []
    for tx in _find_children(_find_child(root, "nonDerivativeTable"), "nonDerivativeTransaction"):
        rows.append(_read_row(tx, is_derivative=False))
    for tx in _find_children(_find_child(root, "derivativeTable"), "derivativeTransaction"):
        rows.append(_read_row(tx, is_derivative=True))

    return OwnershipDocument(
        document_type=_scalar(_find_child(root, "documentType")),
        reporting_owners=[_read_owner(el) for el in _find_children(root, "reportingOwner")],
        footnotes=_parse_footnotes(root),
        rows=rows,
    )


# -----------------------------
# Classification
# -----------------------------

_CODE_TYPES: Dict[str, str] = {
    "M": "exercise",  # exercise/conversion of derivative security
    "F": "sell",  # payment of exercise price or tax liability by withholding
    "S": "sell",  # open market or private sale
    "D": "sell",  # disposition to the issuer
    "P": "buy",  # open market or private purchase
    "A": "buy",  # grant, award or other acquisition
    "C": "other",  # conversion
    "G": "other",  # gift
}


def classify_transaction(
    transaction_code: str | None,
    acquired_disposed: str | None,
    is_derivative: bool,
) -> Optional[str]:
    """Map a row to buy/sell/exercise/other. Returns None when the row must be dropped.

    The transaction code wins; the acquired/disposed flag is only a fallback.
    A non-derivative M row with an acquired flag echoes the shares already
    reported by the derivative exercise row, so it is dropped.
    """
    code = (transaction_code or "").strip().upper()
    flag = (acquired_disposed or "").strip().upper()

    if code == "M" and not is_derivative and flag == "A":
        return None
    if code in _CODE_TYPES:
        return _CODE_TYPES[code]
    if flag == "A":
        return "buy"
    if flag == "D":
        return "sell"
    return "other"


def _owner_label(owners: List[ReportingOwner]) -> str:
    names = [(o.owner_name or o.owner_cik or "Unknown owner") for o in owners]
    return ", ".join(n for n in names if n) or "Unknown"


def _resolve_note(row: TransactionRow, footnotes: Dict[str, str]) -> Optional[str]:
    for fid in row.coding_footnote_ids + row.nature_footnote_ids:
        if fid in footnotes:
            return footnotes[fid]
    return None


def parse_ownership_xml(xml_text: str | None, filing: FilingReference, cik: str) -> List[ParsedTransaction]:
    """Parse one Form 3/4/5 ownershipDocument into classified transactions.

    Never raises on bad input: malformed or empty documents yield [].
    Non-derivative rows come first, then derivative rows, each in document order.
    """
    doc = read_ownership_document(xml_text)
    if doc is None:
        _debug(f"No ownershipDocument in accession={filing.accession_number} cik={cik}")
        return []

    insider = _owner_label(doc.reporting_owners)
    fallback_date = filing.report_date or filing.filing_date or None

    out: List[ParsedTransaction] = []
    for row in doc.rows:
        shares = _parse_number(row.shares_raw)
        if shares is None or shares <= 0:
            continue

        tx_type = classify_transaction(row.transaction_code, row.acquired_disposed, row.is_derivative)
        if tx_type is None:
            continue

        out.append(
            ParsedTransaction(
                date=row.transaction_date or fallback_date,
                insider=insider,
                form_type=filing.form,
                transaction_code=row.transaction_code,
                type=tx_type,
                shares=shares,
                price=_parse_number(row.price_raw),
                security_title=row.security_title or ("Derivative" if row.is_derivative else None),
                source=f"Form {filing.form}",
                note=_resolve_note(row, doc.footnotes),
            )
        )

    _debug(
        f"Parsed accession={filing.accession_number} owners={len(doc.reporting_owners)} "
        f"rows={len(doc.rows)} kept={len(out)} footnotes={len(doc.footnotes)}"
    )
    return out
