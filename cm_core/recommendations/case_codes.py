# cm_core/recommendations/case_codes.py
from __future__ import annotations

import re
from typing import Mapping, Optional

SKIN_TYPE_PREFIX = {
    "Seca": "PS",
    "Normal": "PN",
    "Mista Ressecada": "PR",
    "Mista": "PM",
    "Oleosa": "PO",
}
DEFAULT_PREFIX = "PN"

SEVERITY_LEVEL = {
    "Pouca ou Nenhuma": 1,
    "Moderado": 2,
    "Intenso": 3,
}
DEFAULT_LEVEL = 1

CASE_CODE_PATTERN = re.compile(r"^P[SNRMO]M[1-3]R[1-3]A[1-3]$")


def _answer(assessment: Mapping[str, Optional[str]], key: str) -> str:
    value = assessment.get(key)
    return value if isinstance(value, str) else ""


def _level(assessment: Mapping[str, Optional[str]], key: str) -> int:
    return SEVERITY_LEVEL.get(_answer(assessment, key), DEFAULT_LEVEL)


def generate_code(assessment: Mapping[str, Optional[str]]) -> str:
    """
    Clinical case code: skin type prefix + spots/wrinkles/acne levels,
    e.g. {"tipo_pele": "Mista", "manchas": "Moderado", ...} -> "PMM2R1A1".
    Unknown or missing answers fall back to PN / level 1.
    """
    prefix = SKIN_TYPE_PREFIX.get(_answer(assessment, "tipo_pele"), DEFAULT_PREFIX)
    return "{}M{}R{}A{}".format(
        prefix,
        _level(assessment, "manchas"),
        _level(assessment, "rugas"),
        _level(assessment, "acne"),
    )
