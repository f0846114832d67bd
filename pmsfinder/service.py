"""
Colour match service.

Owns every piece of process-scoped state (settings, reference swatches,
local catalog cache, vendor response cache and clients) and exposes the
operations used by the request-handling layer:

- find_closest: rank formulas of a partition against a target colour
- search_formulas: code / description search with the same fallback
- list_swatches / match_swatches: the Pantone reference set
- get_formula_detail: one vendor formula, never cached
- run_ingestion: the offline conversion, scrape and patch jobs
"""

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import requests

from pmsfinder.data.catalog import LocalCatalogStore, filter_records
from pmsfinder.data.colors import normalize_hex
from pmsfinder.data.matching import DEFAULT_LIMIT, clamp_limit, match
from pmsfinder.data.schemas import FormulaRecord, ReferenceSwatch, ScoredMatch
from pmsfinder.data.sources import SCRAPED
from pmsfinder.data.swatches import SwatchLibrary
from pmsfinder.errors import InvalidHexError, PartitionNotFound
from pmsfinder.external.cache import ResponseCache
from pmsfinder.external.fnink import FnInkClient
from pmsfinder.external.green_galaxy import GreenGalaxyClient, gg_formula_to_record, normalize_category
from pmsfinder.external.matsui import MatsuiClient
from pmsfinder.external.vendor_client import VendorClient
from pmsfinder.infrastructure.settings import Settings, load_settings
from pmsfinder.resources import icc_formulas, icc_hex_patch, matsui_formulas

logger = logging.getLogger(__name__)

SOURCES = ("matsui", "icc", "gg", "fnink")
INGESTION_TYPES = ("spreadsheet", "scrape", "patch")


@dataclass
class IngestionReport:
    converted: int = 0
    skipped: int = 0
    errors: int = 0
    details: Dict = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return asdict(self)


class ColorMatchService:
    """Composition root for matching, swatches, vendor lookups and ingestion."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        """
        Initialize the service.

        Args:
            settings: Runtime settings; loaded from config.yaml / environment if omitted
            session: Optional requests session shared by all vendor clients
        """
        self.settings = settings or load_settings()
        self.swatches = SwatchLibrary(self.settings.swatches_path)
        self.catalog = LocalCatalogStore(
            self.settings.data_dir,
            self.settings.partitions,
            self.settings.junk_percent_sum,
        )
        self.cache = ResponseCache(self.settings.cache_ttl)

        def vendor(name: str, base_url: str) -> VendorClient:
            return VendorClient(
                name,
                base_url,
                cache=self.cache,
                timeout=self.settings.vendor_timeout,
                session=session,
                verify=self.settings.verify_tls,
            )

        self.matsui = MatsuiClient(vendor("Matsui", self.settings.matsui_base_url))
        self.green_galaxy = GreenGalaxyClient(vendor("GG Fusion", self.settings.green_galaxy_base_url))
        self.fnink = FnInkClient(vendor("FN-INK", self.settings.fnink_api_url))

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------
    def find_closest(
        self,
        target_hex: str,
        partition_key: str,
        limit=DEFAULT_LIMIT,
        source: Optional[str] = None,
    ) -> List[ScoredMatch]:
        """
        Closest formulas of a partition.

        The local catalog is used when it has a file for the partition;
        otherwise the source's vendor API supplies the pool.

        Args:
            target_hex: "#RRGGBB" or "RRGGBB"
            partition_key: Series / family / category name
            limit: Maximum number of results (clamped to 1-50, default 10)
            source: One of matsui, icc, gg, fnink. Defaults to icc for
                scraped partitions and matsui for everything else.

        Raises:
            InvalidHexError: If target_hex is not a 6-digit hex
            PartitionNotFound: If there is no local data and no vendor for the source
            UpstreamUnavailable: If the vendor fallback fails
            MalformedUpstreamShape: If the vendor answer holds nothing to rank
        """
        target = normalize_hex(target_hex)
        if target is None:
            raise InvalidHexError("Invalid hex format. Expected #RRGGBB or RRGGBB.")
        source = self._check_source(partition_key, source)

        pool = self.catalog.load(partition_key)
        if pool is None:
            logger.info(f"No local data for '{partition_key}', asking the {source} vendor")
            pool = self._vendor_pool(partition_key, source)

        return match(target, pool, clamp_limit(limit))

    def search_formulas(
        self,
        partition_key: str,
        query: str = "",
        source: Optional[str] = None,
    ) -> List[FormulaRecord]:
        """
        Formulas of a partition whose code or description contains ``query``.

        Local data first; without it the Matsui search endpoint is asked
        directly and the other vendors' pools are filtered here.

        Raises:
            PartitionNotFound: If there is no local data and no vendor for the source
            UpstreamUnavailable: If the vendor fallback fails
        """
        source = self._check_source(partition_key, source)
        records = self.catalog.search(partition_key, query)
        if records is not None:
            return records

        logger.info(f"No local data for '{partition_key}', searching the {source} vendor")
        if source == "matsui":
            return self.matsui.get_formula_records(partition_key, query)
        return filter_records(self._vendor_pool(partition_key, source), query)

    def _check_source(self, partition_key: str, source: Optional[str]) -> str:
        if source is None:
            partition = self.catalog.partitions.get(partition_key)
            return "icc" if partition is not None and partition.kind == SCRAPED.name else "matsui"
        if source not in SOURCES:
            raise ValueError(f"Unknown source: {source!r}. Expected one of: {', '.join(SOURCES)}")
        return source

    def _vendor_pool(self, partition_key: str, source: str) -> List[FormulaRecord]:
        if source == "matsui":
            return self.matsui.get_formula_records(partition_key)
        if source == "gg":
            return self.green_galaxy.get_color_records(partition_key)
        if source == "fnink":
            return self.fnink.get_color_records()
        raise PartitionNotFound(f"No local data for '{partition_key}'. Run the {source} ingestion first.")

    def list_swatches(self) -> List[ReferenceSwatch]:
        return self.swatches.all()

    def match_swatches(self, target_hex: str, series: str = "BOTH", limit=DEFAULT_LIMIT) -> List[ScoredMatch]:
        """
        Closest reference swatches.

        Raises:
            InvalidHexError: If target_hex is not a 6-digit hex
            ValueError: If series is not C, U or BOTH
        """
        return self.swatches.match(target_hex, series, clamp_limit(limit))

    @property
    def swatch_mode(self) -> str:
        self.swatches.load()
        return self.swatches.mode

    # ------------------------------------------------------------------
    # Vendor lookups
    # ------------------------------------------------------------------
    def get_formula_detail(self, code: str, partition_key: str = "UD") -> FormulaRecord:
        """
        One Green Galaxy formula, fetched fresh.

        Raises:
            ValueError: If code is empty or partition_key is not UD / CD
            UpstreamUnavailable: If the vendor call fails
        """
        if not code or not str(code).strip():
            raise ValueError("Formula code is required")
        category = normalize_category(partition_key)
        raw = self.green_galaxy.get_formula(str(code).strip(), category)
        return gg_formula_to_record(raw, str(code).strip(), category)

    def vendor_series(self):
        return self.matsui.get_series()

    def vendor_pigments(self):
        return self.matsui.get_pigments()

    def vendor_materials(self) -> List[Dict]:
        return self.fnink.get_materials()

    def local_partitions(self) -> List[Dict]:
        return [
            {"key": key, "hasLocalData": self.catalog.has_local_data(key)}
            for key in self.catalog.partition_names()
        ]

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------
    def run_ingestion(self, source_config: Dict, log_callback=None, stop_flag_callback=None,
                      stats_callback=None) -> IngestionReport:
        """
        Run one offline job and drop the cached partitions it may have rewritten.

        ``source_config["type"]`` picks the job:
            spreadsheet: convert the Matsui Excel exports (optional "series" list, "data_dir")
            scrape: download an ICC family (optional "partition", "output", "session")
            patch: re-resolve null hex values of a scraped file (optional "partition", "path")

        Returns:
            IngestionReport: converted / skipped / errors counts plus the job's own stats

        Raises:
            ValueError: For an unknown job type
        """
        job = source_config.get("type")
        if job not in INGESTION_TYPES:
            raise ValueError(f"Unknown ingestion type: {job!r}. Expected one of: {', '.join(INGESTION_TYPES)}")

        data_dir = Path(source_config.get("data_dir") or self.settings.data_dir)

        if job == "spreadsheet":
            stats = matsui_formulas.convert_all(
                data_dir,
                self.swatches.code_index(),
                series=source_config.get("series"),
                log_callback=log_callback,
                stop_flag_callback=stop_flag_callback,
                stats_callback=stats_callback,
            )
            report = IngestionReport(stats["formulas"], stats["skipped"], stats["invalid"], stats)

        elif job == "scrape":
            partition = source_config.get("partition", icc_formulas.FAMILY_NAME)
            output = source_config.get("output") or data_dir / self._partition_file(partition)
            stats = icc_formulas.seed_family(
                output,
                name_index=self.swatches.name_index(),
                session=source_config.get("session"),
                base_url=source_config.get("base_url", self.settings.icc_base_url),
                family_id=source_config.get("family_id", icc_formulas.FAMILY_ID),
                family_name=partition,
                delay=source_config.get("delay", self.settings.scrape_delay),
                checkpoint_interval=source_config.get("checkpoint_interval", self.settings.checkpoint_interval),
                verify=self.settings.verify_tls,
                log_callback=log_callback,
                stop_flag_callback=stop_flag_callback,
                stats_callback=stats_callback,
            )
            errors = stats.get("errors", 0) + (0 if stats["ids_found"] else 1)
            report = IngestionReport(stats.get("fetched", 0), stats.get("skipped", 0), errors, stats)

        else:
            partition = source_config.get("partition", icc_formulas.FAMILY_NAME)
            path = source_config.get("path") or data_dir / self._partition_file(partition)
            stats = icc_hex_patch.patch_file(path, self.swatches.name_index(), log_callback)
            report = IngestionReport(stats["resolved"], stats["null_after"], 0, stats)

        self.catalog.clear()
        logger.info(f"Ingestion '{job}' finished: {report.converted} converted, "
                    f"{report.skipped} skipped, {report.errors} errors")
        return report

    def _partition_file(self, partition: str) -> str:
        try:
            return self.settings.partitions[partition]["file"]
        except KeyError:
            raise PartitionNotFound(f"Unknown partition '{partition}'")
