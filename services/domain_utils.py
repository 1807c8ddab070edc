from __future__ import annotations

from typing import Optional
import unicodedata
from urllib.parse import urlparse, unquote


def normalize_linkedin_profile_url(url: Optional[str]) -> Optional[str]:
    """Canonicalize a LinkedIn profile URL to https://linkedin.com/in/{slug}.

    Returns None for anything that is not a LinkedIn /in/ profile URL.
    """
    if not url:
        return None
    try:
        u = urlparse(url)
    except ValueError:
        return None
    host = (u.netloc or '').lower().replace('www.', '')
    # Country subdomains (de., uk., ...) collapse onto the apex host
    if host.endswith('.linkedin.com'):
        host = 'linkedin.com'
    path = (u.path or '').rstrip('/')
    if host != 'linkedin.com' or not path.startswith('/in/'):
        return None
    # Keep only /in/{slug} and drop trailing locale/segments (e.g., /de, /en)
    parts = [p for p in path.split('/') if p]
    if len(parts) < 2:
        return None
    slug = unicodedata.normalize('NFKC', unquote(parts[1])).strip().lower()
    # Remove invisible characters occasionally present
    slug = slug.replace('\u200b', '').replace('\u200c', '').replace('\u200d', '')
    if not slug:
        return None
    return f"https://linkedin.com/in/{slug}"
