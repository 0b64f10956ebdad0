"""Aluminium CN codes covered by CBAM reports."""

from __future__ import annotations

from alucbam.modules.reports.schemas import CNCode

ALUMINIUM_CN_CODES: tuple[CNCode, ...] = (
    CNCode(code="7601.10.00", name="Unwrought aluminium, not alloyed"),
    CNCode(code="7601.20.91", name="Unwrought aluminium alloys"),
    CNCode(code="7604.10.10", name="Bars, rods and profiles of aluminium, not alloyed"),
    CNCode(code="7604.29.10", name="Bars, rods and profiles of aluminium alloys"),
    CNCode(
        code="7606.11.10",
        name="Rectangular plates, sheets and strip, of aluminium, not alloyed",
    ),
    CNCode(
        code="7606.12.10",
        name="Rectangular plates, sheets and strip, of aluminium alloys",
    ),
)

_BY_DIGITS = {code.code.replace(".", ""): code for code in ALUMINIUM_CN_CODES}


def describe_cn_code(code: str) -> CNCode | None:
    """Look up a CN code with or without the dotted grouping."""
    digits = "".join(ch for ch in code if ch.isdigit())
    return _BY_DIGITS.get(digits)
