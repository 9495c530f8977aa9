"""Deterministic Wikimedia URL construction and Wikipedia link parsing.

Filenames are normalised the way MediaWiki does (spaces become underscores)
and then percent-encoded exactly like JavaScript's ``encodeURIComponent``,
so the URLs match the ones the knowledge base itself links to.
"""

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, unquote

COMMONS_WIKI_URL = "https://commons.wikimedia.org/wiki"

# Wikipedia editions the photo pipeline knows how to query
SUPPORTED_LANGUAGES = ("nl", "en")

_WIKIPEDIA_URL_RE = re.compile(
    r"^https?://(nl|en)\.wikipedia\.org/wiki/(.+)$", re.IGNORECASE
)

# Characters encodeURIComponent leaves untouched besides [A-Za-z0-9_.-~]
_URI_COMPONENT_SAFE = "!*'()"


@dataclass(frozen=True)
class WikipediaArticle:
    """A Wikipedia article reference parsed from a URL."""
    lang: str
    title: str
    url: str


def encode_filename(filename: str) -> str:
    """Encode a media filename for use in a wiki path."""
    return quote(str(filename).replace(" ", "_"), safe=_URI_COMPONENT_SAFE)


def commons_file_path(filename: str) -> str:
    """Direct (redirecting) URL to the file itself."""
    return f"{COMMONS_WIKI_URL}/Special:FilePath/{encode_filename(filename)}"


def commons_file_page(filename: str) -> str:
    """Human-viewable description page of a Commons file."""
    return f"{COMMONS_WIKI_URL}/File:{encode_filename(filename)}"


def wikipedia_file_page(lang: str, filename: str) -> str:
    """File description page on a specific Wikipedia edition."""
    return f"https://{lang}.wikipedia.org/wiki/File:{encode_filename(filename)}"


def is_wikipedia_url(url: object) -> bool:
    return isinstance(url, str) and _WIKIPEDIA_URL_RE.match(url) is not None


def parse_wikipedia_url(url: str) -> Optional[WikipediaArticle]:
    """Extract ``{lang, title}`` from a supported Wikipedia article URL.

    Example:
        >>> parse_wikipedia_url("https://nl.wikipedia.org/wiki/Brandenburger_Tor")
        WikipediaArticle(lang='nl', title='Brandenburger Tor', url='https://nl.wikipedia.org/wiki/Brandenburger_Tor')
    """
    if not isinstance(url, str):
        return None
    match = _WIKIPEDIA_URL_RE.match(url)
    if not match:
        return None
    title = unquote(match.group(2)).replace("_", " ")
    return WikipediaArticle(lang=match.group(1).lower(), title=title, url=url)
