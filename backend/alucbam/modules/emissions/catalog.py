"""YAML-based default emission factor catalog.

Loads default factors and the activity types offered per ledger section
from a YAML file and provides lookups for the emission ledger. Lookups
never fail: a type without a default resolves to a conservative fallback
for its category.
"""

from __future__ import annotations

from importlib import resources as importlib_resources
from pathlib import Path
from typing import Any

import yaml

from alucbam.core.config import get_settings
from alucbam.core.logging import get_logger
from alucbam.modules.emissions.schemas import ActivityCategory, ActivityType

logger = get_logger(__name__)

ELECTRICITY_EU = "electricity-eu"
_ELECTRICITY_EU_FALLBACK = 0.275


def _normalise(activity_type: str) -> str:
    return activity_type.lower().strip()


class EmissionFactorCatalog:
    """Default emission factors keyed by activity type.

    Usage::

        catalog = EmissionFactorCatalog()
        catalog.lookup("natural-gas")                       # 0.0561
        catalog.lookup("diesel", ActivityCategory.FUEL)     # fuel fallback
    """

    def __init__(
        self,
        yaml_path: str | Path | None = None,
        *,
        fuel_fallback: float | None = None,
        process_fallback: float | None = None,
    ) -> None:
        settings = get_settings()
        self._factors: dict[str, float] = {}
        self._activities: dict[ActivityCategory, dict[str, ActivityType]] = {
            category: {} for category in ActivityCategory
        }
        self._version: str = "0.0"
        self._fallbacks: dict[ActivityCategory, float] = {
            ActivityCategory.FUEL: (
                fuel_fallback if fuel_fallback is not None else settings.fuel_fallback_factor
            ),
            ActivityCategory.PROCESS: (
                process_fallback
                if process_fallback is not None
                else settings.process_fallback_factor
            ),
        }
        if yaml_path is None and settings.emission_factor_path:
            yaml_path = settings.emission_factor_path
        self._load(yaml_path)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def version(self) -> str:
        """Return the version string from the loaded YAML."""
        return self._version

    @property
    def electricity_default(self) -> float:
        """EU-average grid factor in tCO2/MWh."""
        return self._factors.get(ELECTRICITY_EU, _ELECTRICITY_EU_FALLBACK)

    def fallback(self, category: ActivityCategory) -> float:
        return self._fallbacks[category]

    def lookup(self, activity_type: str, category: ActivityCategory | None = None) -> float:
        """Return the default factor for *activity_type*.

        Unknown types resolve to the fallback of *category*. Without a
        category, a type offered as a process uses the process fallback and
        anything else the fuel fallback.
        """
        key = _normalise(activity_type or "")
        factor = self._factors.get(key)
        if factor is not None:
            return factor

        if category is None:
            category = (
                ActivityCategory.PROCESS
                if key in self._activities[ActivityCategory.PROCESS]
                else ActivityCategory.FUEL
            )
        logger.debug("emission_factor_fallback", activity_type=key, category=category.value)
        return self._fallbacks[category]

    def activity(
        self,
        activity_type: str,
        category: ActivityCategory | None = None,
    ) -> ActivityType | None:
        """Return the offered activity metadata, or ``None`` if not offered."""
        key = _normalise(activity_type or "")
        categories = [category] if category is not None else list(ActivityCategory)
        for cat in categories:
            found = self._activities[cat].get(key)
            if found is not None:
                return found
        return None

    def activities(self, category: ActivityCategory) -> list[ActivityType]:
        """Activities offered for *category*, in catalog order."""
        return list(self._activities[category].values())

    def is_known(self, activity_type: str, category: ActivityCategory) -> bool:
        return self.activity(activity_type, category) is not None

    def factors(self) -> dict[str, float]:
        """All default factors (sorted by activity type)."""
        return dict(sorted(self._factors.items()))

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load(self, yaml_path: str | Path | None = None) -> None:
        path = Path(yaml_path) if yaml_path is not None else self._default_path()

        if not path.is_file():
            logger.warning("emission_factor_catalog_not_found", path=str(path))
            return

        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh)

        if not isinstance(data, dict):
            logger.warning("invalid_emission_factor_catalog", path=str(path))
            return

        self._version = str(data.get("version", "0.0"))
        self._load_factors(data.get("factors", []), path)
        self._load_activities(data.get("activities", {}), path)

        logger.info(
            "emission_factor_catalog_loaded",
            version=self._version,
            factor_count=len(self._factors),
            fuel_types=len(self._activities[ActivityCategory.FUEL]),
            process_types=len(self._activities[ActivityCategory.PROCESS]),
            path=path.name,
        )

    def _load_factors(self, raw_factors: Any, path: Path) -> None:
        if not isinstance(raw_factors, list):
            logger.warning("invalid_factors_list", path=str(path))
            return

        for raw in raw_factors:
            if not isinstance(raw, dict):
                continue
            key = _normalise(str(raw.get("activity", "")))
            if not key:
                continue
            try:
                value = float(raw.get("value", 0.0))
            except (ValueError, TypeError):
                logger.warning("skipping_invalid_emission_factor", activity=key, exc_info=True)
                continue
            if value < 0:
                logger.warning("skipping_negative_emission_factor", activity=key, value=value)
                continue
            self._factors[key] = value

    def _load_activities(self, raw_activities: Any, path: Path) -> None:
        if not isinstance(raw_activities, dict):
            logger.warning("invalid_activities_table", path=str(path))
            return

        for category in ActivityCategory:
            entries = raw_activities.get(category.value, [])
            if not isinstance(entries, list):
                continue
            for raw in entries:
                if not isinstance(raw, dict):
                    continue
                key = _normalise(str(raw.get("value", "")))
                if not key:
                    continue
                self._activities[category][key] = ActivityType(
                    value=key,
                    label=str(raw.get("label", key)),
                    unit=str(raw.get("unit", "")),
                    category=category,
                )

    @staticmethod
    def _default_path() -> Path:
        """Resolve the defaults.yaml bundled with this package."""
        pkg = importlib_resources.files("alucbam.modules.emissions.factors")
        return Path(str(pkg)) / "defaults.yaml"
