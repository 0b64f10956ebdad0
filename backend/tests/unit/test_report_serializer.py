"""Unit tests for the CBAM XML export document."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from alucbam.modules.emissions.schemas import Provenance
from alucbam.modules.reports.compiler import ReportCompiler, build_product
from alucbam.modules.reports.schemas import CBAMReport, EmissionFactorRecord, FactorType
from alucbam.modules.reports.serializer import (
    XML_DECLARATION,
    DocumentParseError,
    DocumentSerializer,
)

GENERATED_AT = datetime(2024, 5, 17, 9, 30, tzinfo=UTC)


@pytest.fixture()
def serializer() -> DocumentSerializer:
    return DocumentSerializer(
        namespace="http://ec.europa.eu/cbam/2024",
        schema_version="1.0",
        platform_name="Test Platform",
    )


@pytest.fixture()
def report() -> CBAMReport:
    compiler = ReportCompiler()
    report = compiler.create_report(
        "2024",
        "facility-1",
        "EU-CBAM-0001",
        facility_name="Smith & Sons <Rolling>",
        created_at=GENERATED_AT,
    )
    product = build_product(
        cn_code="7601.10.00",
        product_name="Primary ingot",
        production_volume=100,
        direct_emissions=150.0,
        indirect_emissions=55.0,
        emission_factors=[
            EmissionFactorRecord(
                type=FactorType.FUEL,
                source=Provenance.MEASURED,
                value=0.0561,
                unit="tCO2/GJ",
                documentation="Meter A&B <calibrated>",
            ),
            EmissionFactorRecord(
                type=FactorType.ELECTRICITY,
                source=Provenance.DEFAULT,
                value=0.275,
                unit="tCO2/MWh",
            ),
        ],
    )
    second = build_product(
        cn_code="7606.12.10",
        product_name="Alloy sheet",
        production_volume=2.5,
        direct_emissions=1.0,
        indirect_emissions=0.0,
    )
    return compiler.add_product(compiler.add_product(report, product), second)


class TestRender:
    def test_header_and_root(self, serializer: DocumentSerializer, report: CBAMReport) -> None:
        document = serializer.render(report, GENERATED_AT)

        lines = document.splitlines()
        assert lines[0] == XML_DECLARATION
        assert lines[1] == '<CBAMReport xmlns="http://ec.europa.eu/cbam/2024" version="1.0">'
        assert document.endswith("</CBAMReport>\n")

    def test_numeric_formatting(self, serializer: DocumentSerializer, report: CBAMReport) -> None:
        document = serializer.render(report, GENERATED_AT)

        assert '<TotalEmissions unit="tCO2e">206.000</TotalEmissions>' in document
        assert '<ProductionVolume unit="t">100</ProductionVolume>' in document
        assert '<ProductionVolume unit="t">2.5</ProductionVolume>' in document
        assert '<EmbeddedEmissions unit="tCO2e">205.000</EmbeddedEmissions>' in document
        assert '<SpecificEmissions unit="tCO2e/t">2.050000</SpecificEmissions>' in document
        assert '<SpecificEmissions unit="tCO2e/t">0.400000</SpecificEmissions>' in document
        assert '<Value unit="tCO2/GJ">0.0561</Value>' in document

    def test_special_characters_are_escaped(
        self, serializer: DocumentSerializer, report: CBAMReport
    ) -> None:
        document = serializer.render(report, GENERATED_AT)

        assert "<FacilityName>Smith &amp; Sons &lt;Rolling&gt;</FacilityName>" in document
        assert "<Documentation>Meter A&amp;B &lt;calibrated&gt;</Documentation>" in document
        assert "Smith & Sons" not in document

    def test_documentation_only_when_present(
        self, serializer: DocumentSerializer, report: CBAMReport
    ) -> None:
        document = serializer.render(report, GENERATED_AT)
        assert document.count("<Documentation>") == 1
        assert 'type="electricity" source="default"' in document

    def test_timestamps(self, serializer: DocumentSerializer, report: CBAMReport) -> None:
        document = serializer.render(report, GENERATED_AT)
        assert "<SubmissionDate>2024-05-17</SubmissionDate>" in document
        assert "<GeneratedAt>2024-05-17T09:30:00+00:00</GeneratedAt>" in document
        assert "<GeneratedBy>Test Platform</GeneratedBy>" in document
        assert "<VerificationStatus>pending</VerificationStatus>" in document

    def test_output_is_deterministic(
        self, serializer: DocumentSerializer, report: CBAMReport
    ) -> None:
        assert serializer.render(report, GENERATED_AT) == serializer.render(report, GENERATED_AT)
        assert serializer.render_bytes(report, GENERATED_AT) == serializer.render(
            report, GENERATED_AT
        ).encode("utf-8")

    def test_filename(self, serializer: DocumentSerializer, report: CBAMReport) -> None:
        assert serializer.filename(report) == "CBAM_Report_EU-CBAM-0001_2024.xml"


class TestParse:
    def test_round_trip(self, serializer: DocumentSerializer, report: CBAMReport) -> None:
        parsed = serializer.parse(serializer.render(report, GENERATED_AT))

        assert parsed.reporting_period == "2024"
        assert parsed.installation_id == "EU-CBAM-0001"
        assert parsed.facility_name == "Smith & Sons <Rolling>"
        assert parsed.status == "draft"
        assert parsed.total_emissions == pytest.approx(report.total_emissions)
        assert parsed.cn_codes == ["7601.10.00", "7606.12.10"]
        assert parsed.products[0].factor_count == 2
        assert parsed.products[0].embedded_emissions == pytest.approx(205.0)
        assert parsed.products[1].unit == "t"

    def test_malformed_document(self, serializer: DocumentSerializer) -> None:
        with pytest.raises(DocumentParseError):
            serializer.parse("<CBAMReport>")

    def test_wrong_root(self, serializer: DocumentSerializer) -> None:
        with pytest.raises(DocumentParseError, match="Unexpected root"):
            serializer.parse('<Other xmlns="http://ec.europa.eu/cbam/2024"/>')


class TestTextSanitizing:
    def test_characters_outside_xml_are_dropped(
        self, serializer: DocumentSerializer, report: CBAMReport
    ) -> None:
        named = report.model_copy(update={"facility_name": "Plant\x0bNorth\x00"})
        document = serializer.render(named, GENERATED_AT)

        assert "\x0b" not in document
        assert "<FacilityName>PlantNorth</FacilityName>" in document
        assert serializer.parse(document).facility_name == "PlantNorth"

    def test_carriage_return_survives_parsing(
        self, serializer: DocumentSerializer, report: CBAMReport
    ) -> None:
        named = report.model_copy(update={"facility_name": "Line1\rLine2"})
        document = serializer.render(named, GENERATED_AT)

        assert "\r" not in document
        assert "<FacilityName>Line1&#13;Line2</FacilityName>" in document
        assert serializer.parse(document).facility_name == "Line1\rLine2"

    def test_factor_documentation_is_sanitized(self, serializer: DocumentSerializer) -> None:
        compiler = ReportCompiler()
        report = compiler.create_report("2024", "facility-1", "EU-1", created_at=GENERATED_AT)
        product = build_product(
            cn_code="7601.10.00",
            product_name="Ingot",
            production_volume=1,
            direct_emissions=1.0,
            indirect_emissions=0.0,
            emission_factors=[
                EmissionFactorRecord(
                    type=FactorType.FUEL,
                    source=Provenance.MEASURED,
                    value=0.05,
                    unit="tCO2/GJ",
                    documentation="Meter\x1f A\r\nreading",
                ),
            ],
        )
        document = serializer.render(compiler.add_product(report, product), GENERATED_AT)

        assert "<Documentation>Meter A&#13;\nreading</Documentation>" in document
        assert serializer.parse(document).products[0].factor_count == 1
