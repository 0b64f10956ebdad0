"""CBAM XML export document.

Renders a report into the fixed CBAM export structure and reads such
documents back. Output is deterministic for a given report and generation
time; only ``SubmissionDate`` and ``GeneratedAt`` depend on the latter.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from xml.etree import ElementTree as ET

import defusedxml.ElementTree as DefusedET

from alucbam.core.config import get_settings
from alucbam.core.logging import get_logger
from alucbam.modules.reports.schemas import CBAMProduct, CBAMReport, EmissionFactorRecord

logger = get_logger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
EMISSIONS_UNIT = "tCO2e"
SPECIFIC_UNIT = "tCO2e/t"
VERIFICATION_PENDING = "pending"

# Characters outside the XML 1.0 Char production
_ILLEGAL_XML_CHARS = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


class DocumentParseError(ValueError):
    """Raised when a document is not a readable CBAM export."""


@dataclass(frozen=True)
class ParsedProduct:
    cn_code: str
    product_name: str
    production_volume: float
    unit: str
    direct_emissions: float
    indirect_emissions: float
    embedded_emissions: float
    specific_emissions: float
    factor_count: int


@dataclass(frozen=True)
class ParsedReport:
    """Fields recovered from an export document."""

    reporting_period: str
    submission_date: str
    status: str
    installation_id: str
    facility_name: str
    total_emissions: float
    generated_by: str
    generated_at: str
    products: list[ParsedProduct] = field(default_factory=list)

    @property
    def cn_codes(self) -> list[str]:
        return [product.cn_code for product in self.products]


def _fixed(value: float, places: int) -> str:
    return f"{value:.{places}f}"


def _plain(value: float) -> str:
    """Shortest form of a number; integral values drop the fractional part."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def _clean(value: str) -> str:
    """Drop characters a conformant parser would reject."""
    return _ILLEGAL_XML_CHARS.sub("", value)


def _sub(parent: ET.Element, tag: str, text: str | None = None, **attrs: str) -> ET.Element:
    element = ET.SubElement(parent, tag, {key: _clean(value) for key, value in attrs.items()})
    if text is not None:
        element.text = _clean(text)
    return element


class DocumentSerializer:
    """Renders ``CBAMReport`` objects as CBAM XML documents.

    Usage::

        serializer = DocumentSerializer()
        xml_text = serializer.render(report)
        name = serializer.filename(report)
    """

    def __init__(
        self,
        *,
        namespace: str | None = None,
        schema_version: str | None = None,
        platform_name: str | None = None,
    ) -> None:
        settings = get_settings()
        self._namespace = namespace or settings.cbam_xml_namespace
        self._schema_version = schema_version or settings.cbam_schema_version
        self._platform_name = platform_name or settings.platform_name

    @staticmethod
    def filename(report: CBAMReport) -> str:
        return f"CBAM_Report_{report.installation_id}_{report.reporting_period}.xml"

    def render(self, report: CBAMReport, generated_at: datetime | None = None) -> str:
        """Return the export document for *report* as text."""
        timestamp = generated_at or datetime.now(UTC)

        root = ET.Element(
            "CBAMReport",
            {"xmlns": self._namespace, "version": self._schema_version},
        )

        header = _sub(root, "ReportHeader")
        _sub(header, "ReportingPeriod", report.reporting_period)
        _sub(header, "SubmissionDate", timestamp.date().isoformat())
        _sub(header, "ReportStatus", report.status.value)

        installation = _sub(root, "Installation")
        _sub(installation, "InstallationID", report.installation_id)
        _sub(installation, "FacilityName", report.facility_name)
        _sub(
            installation,
            "TotalEmissions",
            _fixed(report.total_emissions, 3),
            unit=EMISSIONS_UNIT,
        )

        products = _sub(root, "Products")
        for product in report.products:
            self._render_product(products, product)

        verification = _sub(root, "Verification")
        _sub(verification, "VerificationStatus", VERIFICATION_PENDING)
        _sub(verification, "GeneratedBy", self._platform_name)
        _sub(verification, "GeneratedAt", timestamp.isoformat())

        ET.indent(root, space="  ")
        # Indentation only inserts \n; any CR is content and is kept as a reference
        body = ET.tostring(root, encoding="unicode").replace("\r", "&#13;")
        logger.info(
            "report_document_rendered",
            report_id=report.id,
            product_count=len(report.products),
        )
        return f"{XML_DECLARATION}\n{body}\n"

    def render_bytes(self, report: CBAMReport, generated_at: datetime | None = None) -> bytes:
        return self.render(report, generated_at).encode("utf-8")

    def _render_product(self, parent: ET.Element, product: CBAMProduct) -> None:
        element = _sub(parent, "Product")
        _sub(element, "CNCode", product.cn_code)
        _sub(element, "ProductName", product.product_name)
        _sub(element, "ProductionVolume", _plain(product.production_volume), unit=product.unit)
        _sub(
            element,
            "DirectEmissions",
            _fixed(product.direct_emissions, 3),
            unit=EMISSIONS_UNIT,
        )
        _sub(
            element,
            "IndirectEmissions",
            _fixed(product.indirect_emissions, 3),
            unit=EMISSIONS_UNIT,
        )
        _sub(
            element,
            "EmbeddedEmissions",
            _fixed(product.embedded_emissions, 3),
            unit=EMISSIONS_UNIT,
        )
        _sub(
            element,
            "SpecificEmissions",
            _fixed(product.specific_emissions, 6),
            unit=SPECIFIC_UNIT,
        )
        factors = _sub(element, "EmissionFactors")
        for factor in product.emission_factors:
            self._render_factor(factors, factor)

    @staticmethod
    def _render_factor(parent: ET.Element, factor: EmissionFactorRecord) -> None:
        element = _sub(
            parent,
            "EmissionFactor",
            type=factor.type.value,
            source=factor.source.value,
        )
        _sub(element, "Value", _plain(factor.value), unit=factor.unit)
        if factor.documentation:
            _sub(element, "Documentation", factor.documentation)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def parse(self, document: str | bytes) -> ParsedReport:
        """Read an export document back into its key fields."""
        raw = document.encode("utf-8") if isinstance(document, str) else document
        try:
            root = DefusedET.fromstring(raw)
        except ET.ParseError as exc:
            raise DocumentParseError(f"Malformed CBAM document: {exc}") from exc

        ns = {"c": self._namespace}
        if root.tag != f"{{{self._namespace}}}CBAMReport":
            raise DocumentParseError(f"Unexpected root element {root.tag!r}")

        def text(path: str, node: ET.Element = root) -> str:
            found = node.find(path, ns)
            if found is None:
                raise DocumentParseError(f"Missing element {path!r}")
            return found.text or ""

        def number(path: str, node: ET.Element = root) -> float:
            value = text(path, node)
            try:
                return float(value)
            except ValueError as exc:
                raise DocumentParseError(f"Element {path!r} is not numeric: {value!r}") from exc

        products: list[ParsedProduct] = []
        for node in root.findall("c:Products/c:Product", ns):
            volume = node.find("c:ProductionVolume", ns)
            products.append(
                ParsedProduct(
                    cn_code=text("c:CNCode", node),
                    product_name=text("c:ProductName", node),
                    production_volume=number("c:ProductionVolume", node),
                    unit=volume.get("unit", "") if volume is not None else "",
                    direct_emissions=number("c:DirectEmissions", node),
                    indirect_emissions=number("c:IndirectEmissions", node),
                    embedded_emissions=number("c:EmbeddedEmissions", node),
                    specific_emissions=number("c:SpecificEmissions", node),
                    factor_count=len(node.findall("c:EmissionFactors/c:EmissionFactor", ns)),
                )
            )

        return ParsedReport(
            reporting_period=text("c:ReportHeader/c:ReportingPeriod"),
            submission_date=text("c:ReportHeader/c:SubmissionDate"),
            status=text("c:ReportHeader/c:ReportStatus"),
            installation_id=text("c:Installation/c:InstallationID"),
            facility_name=text("c:Installation/c:FacilityName"),
            total_emissions=number("c:Installation/c:TotalEmissions"),
            generated_by=text("c:Verification/c:GeneratedBy"),
            generated_at=text("c:Verification/c:GeneratedAt"),
            products=products,
        )
