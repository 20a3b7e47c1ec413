import html

import bleach


def strip_html(value) -> str:
    """Plain text with every tag removed and entities decoded back."""
    return html.unescape(bleach.clean((value or '').strip(), tags=[], strip=True)).strip()
