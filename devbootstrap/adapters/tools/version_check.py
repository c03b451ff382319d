"""
Version compliance checks (pure).

No I/O, no subprocess.  Versions are compared as integer tuples, with
missing components treated as zero ("3.12" == "3.12.0").
"""

from __future__ import annotations

import re

from devbootstrap.core.models.tool import VersionRequirement

_VERSION_RE = re.compile(r"v?(\d+(?:\.\d+){0,3})")


def parse_version(text: str) -> tuple[int, ...]:
    """Extract a numeric version tuple from ``text``.

    Raises:
        ValueError: If no version number is present.
    """
    match = _VERSION_RE.search(text.strip())
    if not match:
        raise ValueError(f"No version number in {text!r}")
    parts = tuple(int(p) for p in match.group(1).split("."))
    return parts + (0,) * (3 - len(parts)) if len(parts) < 3 else parts


def check_requirement(version: str | None, requirement: VersionRequirement) -> tuple[bool, str]:
    """Check an installed version against a requirement.

    Returns:
        ``(compliant, message)``.  Below the recommended version is
        still compliant, with an advisory message.
    """
    if version is None:
        return False, "not installed"

    try:
        installed = parse_version(version)
    except ValueError:
        # Installed but unparseable counts as compliant
        return True, f"installed (version {version!r} could not be parsed)"

    if requirement.minimum_version:
        minimum = parse_version(requirement.minimum_version)
        if installed < minimum:
            return False, f"version {version} < minimum {requirement.minimum_version}"

    if requirement.recommended_version:
        recommended = parse_version(requirement.recommended_version)
        if installed < recommended:
            return True, (
                f"version {version} meets the minimum; "
                f"{requirement.recommended_version} is recommended"
            )

    return True, f"version {version}"
