"""
Way selector parsing

Parses the comma-separated way list accepted for merging, e.g.
"123456, #789:3, 42:latest". A missing version means "latest".
"""

import re
from dataclasses import dataclass
from typing import List, Union

from ..exceptions import ValidationError

LATEST = "latest"

SELECTOR_PATTERN = re.compile(r"([1-9][0-9]{0,18})(?::([0-9]+|latest))?")


@dataclass(frozen=True)
class WaySelector:
    """A way id plus the version to use"""
    way_id: str
    version: Union[int, str] = LATEST

    @property
    def is_latest(self) -> bool:
        return self.version == LATEST

    def __str__(self) -> str:
        return f"{self.way_id}:{self.version}"


def parse_way_selector(token: str) -> WaySelector:
    """Parse a single 'wayId', 'wayId:version' or 'wayId:latest' token"""
    clean_token = token.strip().lstrip("#")
    match = SELECTOR_PATTERN.fullmatch(clean_token)
    if not match:
        raise ValidationError(
            f"Invalid way entry format: {token}. Use format: wayId or wayId:version"
        )

    way_id, version = match.groups()
    if version is None or version == LATEST:
        return WaySelector(way_id=way_id, version=LATEST)

    num_version = int(version)
    if num_version < 1:
        raise ValidationError(f"Invalid version: {version}. Must be a positive integer or 'latest'")
    return WaySelector(way_id=way_id, version=num_version)


def parse_way_selectors(text: str) -> List[WaySelector]:
    """
    Parse a comma-separated selector list

    Empty tokens are ignored and duplicate (way id, version) pairs are
    collapsed, keeping the first occurrence.

    Raises:
        ValidationError: If the input is not a string, has no entries, or any token is malformed
    """
    if not isinstance(text, str):
        raise ValidationError("Way IDs input must be a string")

    tokens = [token.strip() for token in text.split(",")]
    tokens = [token for token in tokens if token]
    if not tokens:
        raise ValidationError("No valid way entries provided")

    selectors = []
    seen = set()
    for token in tokens:
        selector = parse_way_selector(token)
        key = (selector.way_id, selector.version)
        if key not in seen:
            seen.add(key)
            selectors.append(selector)

    return selectors
