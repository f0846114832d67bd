# pmsfinder/infrastructure/settings.py
"""
Runtime settings.

Values come from three layers, last one wins:
  1. defaults defined below
  2. an optional YAML file (``config.yaml`` at the project root)
  3. environment variables (a ``.env`` file is loaded first if present)
"""
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, Optional

import yaml
from yaml.loader import SafeLoader
from dotenv import load_dotenv

from .paths import init_paths


MATSUI_BASE_URL = "https://api2.matsui-color.com"
GREEN_GALAXY_BASE_URL = "https://gg-fusion-dba9a0f2a2e0.herokuapp.com/api/v2"
FNINK_API_URL = "https://fnink-mixing-server.herokuapp.com/api"
ICC_BASE_URL = "https://www.ultramixmanager.com"

# Local catalog partitions: key -> (file name, record kind)
DEFAULT_PARTITIONS = {
    "301 RC Neo": {"file": "matsui_301_rc_neo.json", "kind": "spreadsheet"},
    "Alpha Discharge": {"file": "matsui_alpha_discharge.json", "kind": "spreadsheet"},
    "Brite Discharge": {"file": "matsui_brite_discharge.json", "kind": "spreadsheet"},
    "HM Discharge": {"file": "matsui_hm_discharge.json", "kind": "spreadsheet"},
    "OW Stretch": {"file": "matsui_ow_stretch.json", "kind": "spreadsheet"},
    "7500 Coated": {"file": "icc_7500_coated.json", "kind": "scraped"},
}

ENV_OVERRIDES = {
    "data_dir": "PMSFINDER_DATA_DIR",
    "vendor_timeout": "PMSFINDER_VENDOR_TIMEOUT",
    "cache_ttl": "PMSFINDER_CACHE_TTL",
    "matsui_base_url": "PMSFINDER_MATSUI_URL",
    "green_galaxy_base_url": "PMSFINDER_GG_URL",
    "fnink_api_url": "PMSFINDER_FNINK_URL",
    "icc_base_url": "PMSFINDER_ICC_URL",
    "verify_tls": "PMSFINDER_VERIFY_TLS",
}


@dataclass
class Settings:
    data_dir: Path
    vendor_timeout: float = 15.0
    cache_ttl: float = 600.0
    matsui_base_url: str = MATSUI_BASE_URL
    green_galaxy_base_url: str = GREEN_GALAXY_BASE_URL
    fnink_api_url: str = FNINK_API_URL
    icc_base_url: str = ICC_BASE_URL
    verify_tls: bool = True
    scrape_delay: float = 0.1
    checkpoint_interval: int = 50
    junk_percent_sum: float = 110.0
    partitions: Dict[str, Dict[str, str]] = field(default_factory=lambda: dict(DEFAULT_PARTITIONS))

    @property
    def swatches_path(self) -> Path:
        return self.data_dir / "pantone_swatches.json"


def _coerce(name: str, raw, current):
    """Convert a raw YAML/env value to the type of the field's default."""
    if name == "data_dir":
        return Path(raw)
    if isinstance(current, bool):
        if isinstance(raw, bool):
            return raw
        return str(raw).strip().lower() in ("true", "yes", "1", "t", "y")
    if isinstance(current, float):
        return float(raw)
    if isinstance(current, int):
        return int(raw)
    return raw


def load_settings(config_path: Optional[Path] = None, env_file: Optional[Path] = None) -> Settings:
    """
    Build Settings from defaults, the YAML file and the environment.

    Args:
        config_path: YAML file to read; defaults to ``config.yaml`` at the project root
        env_file: Optional .env file; python-dotenv's lookup is used when omitted

    Returns:
        Settings instance

    Raises:
        ValueError: If the YAML file does not contain a mapping
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    paths = init_paths()
    settings = Settings(data_dir=paths.data_dir)
    known = {f.name for f in fields(Settings)}

    config_path = Path(config_path) if config_path else paths.config_path
    if config_path.exists():
        with open(config_path, 'r', encoding='utf-8') as file:
            config = yaml.load(file, Loader=SafeLoader) or {}
        if not isinstance(config, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")
        for key, value in config.items():
            if key == "partitions" and isinstance(value, dict):
                settings.partitions.update(value)
            elif key in known:
                setattr(settings, key, _coerce(key, value, getattr(settings, key)))

    for attr, env_name in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            setattr(settings, attr, _coerce(attr, value, getattr(settings, attr)))

    settings.data_dir = Path(settings.data_dir)
    return settings
