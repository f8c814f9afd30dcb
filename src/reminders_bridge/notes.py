"""Structured URL blocks inside reminder notes.

A note that carries links ends with a block like:

    Pick up the order

    URLs:
    - https://example.com/order/1
"""
from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple
from urllib.parse import urlparse

_URL_SECTION = re.compile(r"\n\nURLs:\n((?:- https?://[^\s]+\n?)+)")
_LEGACY_URL_LINE = re.compile(r"(?:\n\n)?URL: https?://[^\s]+")
_ANY_URL = re.compile(r"https?://[^\s]+")


def is_valid_url(url: Optional[str]) -> bool:
    if not url or not isinstance(url, str):
        return False
    parsed = urlparse(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def format_url_section(urls: Iterable[str]) -> str:
    lines = [f"- {url}" for url in urls]
    if not lines:
        return ""
    return "URLs:\n" + "\n".join(lines)


def remove_url_sections(notes: Optional[str]) -> str:
    if not notes:
        return ""
    cleaned = _URL_SECTION.sub("", notes)
    cleaned = _LEGACY_URL_LINE.sub("", cleaned)
    return cleaned.strip()


# PUBLIC_INTERFACE
def format_note_with_urls(note: Optional[str], urls: Iterable[str]) -> str:
    """Return the note without old URL blocks, followed by one block for `urls`."""
    clean_note = remove_url_sections(note or "")
    valid = [url for url in urls if is_valid_url(url)]
    if not valid:
        return clean_note
    section = format_url_section(valid)
    if not clean_note:
        return section
    return f"{clean_note}\n\n{section}"


# PUBLIC_INTERFACE
def combine_note_with_url(note: Optional[str], url: Optional[str]) -> str:
    """Note text with `url` appended as a structured block; invalid URLs are ignored."""
    if not url or not is_valid_url(url):
        return note or ""
    return format_note_with_urls(note, [url])


def extract_urls_from_notes(notes: Optional[str]) -> List[str]:
    if not notes:
        return []
    urls: List[str] = []
    for match in _URL_SECTION.finditer(notes):
        for line in match.group(1).splitlines():
            url = line[2:].strip() if line.startswith("- ") else line.strip()
            if url:
                urls.append(url)
    if urls:
        return urls
    # Notes written before the structured block existed
    return _ANY_URL.findall(notes)


def parse_reminder_note(notes: Optional[str]) -> Tuple[str, List[str]]:
    """Split a reminder body into its plain text and its URLs."""
    if not notes:
        return "", []
    return remove_url_sections(notes), extract_urls_from_notes(notes)
