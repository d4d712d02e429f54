"""
KMA Assistant - Text Utilities
===============================
Helper functions for title, alert-type, and field extraction from
knowledge-base articles.

KMA files are markdown documents.  The first level-1 header is the
article title and operational metadata is written as literal
``**Label**: value`` lines::

    # Database Connection Pool Exhausted
    **System**: orders-api
    **Severity**: P2
    **Alert Duration**: > 5 minutes
    **Scope**: all regions

These utilities are consumed by the ``DocumentProcessor`` and should
remain stateless and side-effect-free.
"""

from __future__ import annotations

import re

_H1_RE = re.compile(r"^#\s+(.+)", re.MULTILINE)

# Start of every ASCII word; mirrors a naive "capitalise each word".
_WORD_START_RE = re.compile(r"\b\w", re.ASCII)

# ── Metadata field labels → DocumentMetadata attribute ────────────────
_FIELD_PATTERNS: dict[str, re.Pattern[str]] = {
    "system": re.compile(r"\*\*System\*\*:\s*(.+)"),
    "severity": re.compile(r"\*\*Severity\*\*:\s*(.+)"),
    "alert_duration": re.compile(r"\*\*Alert Duration\*\*:\s*(.+)"),
    "scope": re.compile(r"\*\*Scope\*\*:\s*(.+)"),
}

UNKNOWN_ALERT_TYPE = "Unknown Alert Type"


def title_case(text: str) -> str:
    """Upper-case the first character of every word, leaving the rest alone."""
    return _WORD_START_RE.sub(lambda m: m.group(0).upper(), text)


def _strip_md_suffix(filename: str) -> str:
    return filename[:-3] if filename.endswith(".md") else filename


def first_h1(content: str) -> str | None:
    """Return the text of the first ``# `` header line, if any."""
    match = _H1_RE.search(content)
    return match.group(1).strip() if match else None


def extract_title(content: str, filename: str) -> str:
    """
    Derive the document title.

    Uses the first level-1 header; falls back to the filename with the
    ``.md`` suffix dropped, underscores turned into spaces, and each
    word capitalised (``"001_disk_full.md"`` → ``"001 Disk Full"``).
    """
    header = first_h1(content)
    if header:
        return header
    return title_case(_strip_md_suffix(filename).replace("_", " "))


def extract_alert_type(filename: str, content: str) -> str:
    """
    Derive the alert category of a KMA.

    Filenames follow ``<number>_<alert>_<words>.md``.  With more than two
    underscore-separated segments, the first (ordinal) segment is dropped
    and the rest joined and title-cased::

        "001_high_cpu_usage.md" → "High Cpu Usage"
        "runbook_disk.md"       → first H1, else "Unknown Alert Type"
    """
    parts = _strip_md_suffix(filename).split("_")
    if len(parts) > 2:
        return title_case(" ".join(parts[1:]))

    header = first_h1(content)
    if header:
        return header

    return UNKNOWN_ALERT_TYPE


def extract_metadata_fields(content: str) -> dict[str, str]:
    """
    Extract ``**Label**: value`` fields from a KMA body.

    Returns:
        dict keyed by ``system``, ``severity``, ``alert_duration`` and
        ``scope``; labels that do not occur are left out.
    """
    fields: dict[str, str] = {}
    for key, pattern in _FIELD_PATTERNS.items():
        match = pattern.search(content)
        if match:
            fields[key] = match.group(1).strip()
    return fields
