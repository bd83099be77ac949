from __future__ import annotations

import re

from insider_lookup.models import FilingReference
from insider_lookup.sec.http import ACCEPT_XML, SecClient

# primaryDocument often points at the XSL-rendered HTML view, e.g.
# "xslF345X05/wk-form4_1700000000.xml"; the raw XML lives one level up.
_XSL_PREFIX = re.compile(r"^xslF[^/]+/", flags=re.IGNORECASE)


def _cik_path_component(cik10: str) -> str:
    # EDGAR archive paths use the integer CIK without leading zeros
    digits = "".join(ch for ch in str(cik10 or "") if ch.isdigit())
    return str(int(digits)) if digits else ""


def _accession_nodash(accession_number: str) -> str:
    return str(accession_number or "").replace("-", "").strip()


def _raw_document_name(primary_document: str) -> str:
    return _XSL_PREFIX.sub("", str(primary_document or "").strip())


def build_filing_document_url(archives_url: str, cik: str, filing: FilingReference) -> str:
    return (
        f"{archives_url.rstrip('/')}/{_cik_path_component(cik)}/"
        f"{_accession_nodash(filing.accession_number)}/{_raw_document_name(filing.primary_document)}"
    )


def fetch_ownership_document(client: SecClient, archives_url: str, cik: str, filing: FilingReference) -> str:
    """Fetch the raw ownershipDocument XML for one filing.

    Raises SecRequestError subclasses; the caller decides how to degrade.
    """
    return client.get_text(build_filing_document_url(archives_url, cik, filing), accept=ACCEPT_XML)
