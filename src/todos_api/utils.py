from __future__ import annotations

import html
from typing import Any, Dict, Mapping


# PUBLIC_INTERFACE
def sanitize_text(value: str) -> str:
    """
    Escape HTML special characters (including quotes) so stored text is
    rendered inert by any client that inserts it into a page.
    """
    return html.escape(value, quote=True)


# PUBLIC_INTERFACE
def sanitize_fields(values: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of ``values`` with every string value escaped.

    Booleans, numbers, datetimes and None are passed through untouched.
    """
    return {
        key: sanitize_text(value) if isinstance(value, str) else value
        for key, value in values.items()
    }
