"""
Industry classification catalogue.

Lines look like ``A-1-11-Tên ngành: Trồng lúa``. The code's dash count gives
its level, and the clustering service addresses a code by its first and last
parts (``A-1-11-111-1110`` -> ``A1110``).
"""

from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

NAME_SEPARATOR = "Tên ngành:"


class IndustryLevel(BaseModel):
    """One entry of the industry classification."""

    code: str = Field(description="Dashed hierarchical code, e.g. A-1-11")
    name: str = Field(description="Industry name")
    level: int = Field(description="Depth in the hierarchy (0 for top level)")
    full_name: str = Field(description="'<code>: <name>'")
    api_code: str = Field(description="Code as sent to the clustering service")


def detect_level(code: str) -> int:
    return code.count("-")


def convert_to_api_code(code: str) -> str:
    parts = code.split("-")
    if len(parts) == 1:
        return code
    return f"{parts[0]}{parts[-1]}"


def parse_industry_line(line: str) -> Optional[IndustryLevel]:
    """Parse one catalogue line; returns None if it is malformed."""
    parts = line.split(NAME_SEPARATOR)
    if len(parts) != 2:
        return None

    code = parts[0].strip()
    if code.endswith("-"):
        code = code[:-1].strip()
    name = parts[1].strip()
    if not code or not name:
        return None

    return IndustryLevel(
        code=code,
        name=name,
        level=detect_level(code),
        full_name=f"{code}: {name}",
        api_code=convert_to_api_code(code),
    )


def load_industries(lines: Iterable[str]) -> List[IndustryLevel]:
    """Parse catalogue lines, skipping blanks and malformed entries, sorted by level then code."""
    industries = []
    for line in lines:
        line = line.strip()
        if not line:
            continue
        industry = parse_industry_line(line)
        if industry:
            industries.append(industry)
    return sorted(industries, key=lambda i: (i.level, i.code))


def filter_industries(industries: List[IndustryLevel], term: str) -> List[IndustryLevel]:
    term = term.strip().lower()
    if not term:
        return list(industries)
    return [
        i for i in industries
        if term in i.code.lower() or term in i.name.lower() or term in i.full_name.lower()
    ]


def group_by_level(industries: Iterable[IndustryLevel]) -> Dict[int, List[IndustryLevel]]:
    grouped: Dict[int, List[IndustryLevel]] = {}
    for industry in industries:
        grouped.setdefault(industry.level, []).append(industry)
    return grouped
