"""
Turns extracted (domain index, path) pairs back into ordinary URLs.

MediaWiki stores el_to_domain_index with the host labels reversed and a
trailing dot, e.g. 'https://org.wikipedia.en.'.
"""


def reformat_url(raw: str) -> str:
    """'https://org.wikipedia.en.' -> 'https://en.wikipedia.org'"""
    parts = raw.split("://")
    if len(parts) != 2:
        # No scheme (or more than one); leave as is
        return raw

    scheme, domain = parts
    labels = domain.rstrip(".").split(".")
    return f"{scheme}://{'.'.join(reversed(labels))}"


def format_link(raw_url: str, path: str) -> str:
    return reformat_url(raw_url) + path
