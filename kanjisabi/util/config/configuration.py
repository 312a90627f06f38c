import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from sys import platform
from typing import Optional, Tuple

import toml
from dataclasses_json import dataclass_json

from kanjisabi.util.logging_config import logger

CONFIG_FILE = 'kanjisabi.toml'

DEFAULT_LINDERA_ADDRESS = '0.0.0.0:3333'
DEFAULT_MORPH_SERVICE_ADDRESS = '0.0.0.0:55555'

DICTIONARY_AUTO = 'auto'
DICTIONARY_IPADIC = 'ipadic'
DICTIONARY_UNIDIC = 'unidic'

# Start-up connection budget: 16 attempts, 125ms apart
DEFAULT_CONNECT_ATTEMPTS = 16
DEFAULT_CONNECT_INTERVAL = 0.125

DEFAULT_CONFIDENCE_THRESHOLD = 80.0

INFO = 'INFO'
DEBUG = 'DEBUG'


class UnanchoredBoxStrategy(str, Enum):
    """What to do with a morpheme made only of continuation characters."""
    INTERPOLATE = 'interpolate'
    UNKNOWN = 'unknown'


def is_windows():
    return platform == 'win32'


def get_app_directory() -> str:
    if is_windows():
        appdata_dir = os.getenv('APPDATA')
    else:
        appdata_dir = os.getenv('XDG_CONFIG_HOME') or os.path.expanduser('~/.config')
    config_dir = os.path.join(appdata_dir, 'kanjisabi')
    os.makedirs(config_dir, exist_ok=True)
    return config_dir


def get_config_path() -> str:
    return os.path.join(get_app_directory(), CONFIG_FILE)


def parse_address(address: str) -> Tuple[str, int]:
    """
    Split a ``host:port`` string. IPv6 hosts may be bracketed (``[::1]:55555``).

    Raises:
        ValueError: if the port is missing or not a number.
    """
    host, sep, port = str(address).strip().rpartition(':')
    if not sep or not host:
        raise ValueError(f"Expected HOST:PORT, got {address!r}")
    if host.startswith('[') and host.endswith(']'):
        host = host[1:-1]
    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"Invalid port in address {address!r}") from None
    if not 0 <= port_number <= 65535:
        raise ValueError(f"Port out of range in address {address!r}")
    return host, port_number


@dataclass_json
@dataclass
class Lindera:
    server_address: str = DEFAULT_LINDERA_ADDRESS
    timeout: float = 5.0


@dataclass_json
@dataclass
class MorphService:
    api_address: str = DEFAULT_MORPH_SERVICE_ADDRESS
    dictionary: str = DICTIONARY_AUTO
    connect_attempts: int = DEFAULT_CONNECT_ATTEMPTS
    connect_interval: float = DEFAULT_CONNECT_INTERVAL
    request_timeout: float = 5.0

    def __post_init__(self):
        if self.dictionary not in (DICTIONARY_AUTO, DICTIONARY_IPADIC, DICTIONARY_UNIDIC):
            logger.warning(f"Unknown dictionary '{self.dictionary}', falling back to '{DICTIONARY_AUTO}'")
            self.dictionary = DICTIONARY_AUTO
        if self.connect_attempts < 1:
            self.connect_attempts = 1


@dataclass_json
@dataclass
class Pipeline:
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    unanchored_bbox: str = UnanchoredBoxStrategy.INTERPOLATE.value
    use_morph_service: bool = False
    language: str = 'jpn'

    def __post_init__(self):
        valid = [strategy.value for strategy in UnanchoredBoxStrategy]
        if self.unanchored_bbox not in valid:
            logger.warning(
                f"Unknown unanchored_bbox strategy '{self.unanchored_bbox}', expected one of {valid}")
            self.unanchored_bbox = UnanchoredBoxStrategy.INTERPOLATE.value

    @property
    def unanchored_strategy(self) -> UnanchoredBoxStrategy:
        return UnanchoredBoxStrategy(self.unanchored_bbox)


@dataclass_json
@dataclass
class Preproc:
    # Percentage, 100 doubles the contrast of the captured area before OCR
    contrast: float = 100.0


@dataclass_json
@dataclass
class Config:
    lindera: Lindera = field(default_factory=Lindera)
    morph_service: MorphService = field(default_factory=MorphService)
    pipeline: Pipeline = field(default_factory=Pipeline)
    preproc: Preproc = field(default_factory=Preproc)
    log_level: str = INFO


def load_config(path: Optional[str] = None) -> Config:
    """
    Load the TOML configuration file, falling back to defaults when it is
    missing, unreadable or incompatible.
    """
    config_path = Path(path) if path else Path(get_config_path())

    if not config_path.exists():
        logger.debug(f"No configuration file at {config_path}, using defaults")
        return Config()

    try:
        data = toml.load(str(config_path))
    except (toml.TomlDecodeError, OSError) as e:
        logger.warning(f"Failed to load config file {config_path}: {e}")
        return Config()

    try:
        return Config.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Incompatible configuration in {config_path}: {e}")
        return Config()


config_instance: Optional[Config] = None


def get_config() -> Config:
    global config_instance
    if config_instance is None:
        config_instance = load_config()
    return config_instance


def reload_config(path: Optional[str] = None) -> Config:
    global config_instance
    logger.info("Configuration changed, refreshing...")
    config_instance = load_config(path)
    return config_instance
