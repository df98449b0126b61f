"""
Text processing utilities for ASA cluster planning.

Common text operations like mod id checks, secret masking and ini rendering.
"""

import re

_MOD_ID_PATTERN = re.compile(r"^\d+$")


def is_valid_mod_id(mod_id: object) -> bool:
    """
    Check that a mod identifier is a non-empty string of digits.

    Examples:
        >>> is_valid_mod_id("928102085")
        True
        >>> is_valid_mod_id("12ab")
        False
        >>> is_valid_mod_id("")
        False
    """
    return isinstance(mod_id, str) and bool(_MOD_ID_PATTERN.match(mod_id))


def normalize_mod_id(mod_id: object) -> str:
    """
    Normalize a mod identifier coming from user input or JSON.

    Integers are accepted (older cluster exports store mod ids as numbers);
    surrounding whitespace is stripped.

    Examples:
        >>> normalize_mod_id(1005639)
        '1005639'
        >>> normalize_mod_id("  731604991 ")
        '731604991'
    """
    if isinstance(mod_id, int):
        return str(mod_id)
    return str(mod_id).strip()


def mask_password(value: str) -> str:
    """
    Mask a password for display.

    Examples:
        >>> mask_password("admin123")
        '******'
        >>> mask_password("")
        ''
    """
    return "******" if value else ""


def build_mod_url(mod_id: str) -> str:
    """
    Build CurseForge project URL for a mod ID.

    Examples:
        >>> build_mod_url("928102085")
        'https://www.curseforge.com/projects/928102085'
    """
    return f"https://www.curseforge.com/projects/{mod_id}"


def render_ini(sections: dict[str, dict[str, object]]) -> str:
    """
    Render ini sections to text.

    Booleans use the True/False spelling the game expects.

    Examples:
        >>> render_ini({"ServerSettings": {"XPMultiplier": 3.0, "ServerHardcore": False}})
        '[ServerSettings]\\nXPMultiplier=3.0\\nServerHardcore=False\\n'
    """
    lines: list[str] = []
    for section, values in sections.items():
        if lines:
            lines.append("")
        lines.append(f"[{section}]")
        for key, value in values.items():
            lines.append(f"{key}={value}")
    return "\n".join(lines) + "\n" if lines else ""
