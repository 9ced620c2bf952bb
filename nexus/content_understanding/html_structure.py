"""
HTML structure summary for page visits.
"""

from typing import Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from .lexicons import SOCIAL_SHARE_HOSTS
from .models import HtmlStructure

SHARE_MARKERS = ('share', 'tweet', 'social')


def _hostname(url: Optional[str]) -> Optional[str]:
    try:
        return urlparse(url).hostname if url else None
    except ValueError:
        return None


def analyze_structure(html: str, page_url: Optional[str] = None) -> HtmlStructure:
    """
    Summarise headings, media, interactive elements and links in ``html``.

    Missing markup yields an empty summary. BeautifulSoup tolerates broken
    markup, so malformed documents are summarised as far as they parse.
    """
    if not html or not html.strip():
        return HtmlStructure()

    soup = BeautifulSoup(html, 'html.parser')
    page_host = _hostname(page_url)

    headings = soup.find_all(['h1', 'h2', 'h3', 'h4', 'h5', 'h6'])
    images = soup.find_all('img')
    links = soup.find_all('a', href=True)

    external_links = 0
    share_widgets = 0
    for link in links:
        host = _hostname(link['href'])
        if host and host != page_host:
            external_links += 1
        if host and any(host.endswith(share_host) for share_host in SOCIAL_SHARE_HOSTS):
            share_widgets += 1
            continue
        classes = ' '.join(link.get('class', [])).lower()
        if any(marker in classes for marker in SHARE_MARKERS):
            share_widgets += 1

    return HtmlStructure(
        heading_count=len(headings),
        has_h1=soup.find('h1') is not None,
        images=len(images),
        images_missing_alt=sum(1 for img in images if not img.get('alt')),
        videos=len(soup.find_all('video')),
        audio=len(soup.find_all('audio')),
        iframes=len(soup.find_all('iframe')),
        forms=len(soup.find_all('form')),
        inputs=len(soup.find_all(['input', 'textarea', 'select'])),
        buttons=len(soup.find_all('button')),
        links=len(links),
        external_links=external_links,
        share_widgets=share_widgets,
    )
