# tierstake/database/ledger_config.py
import os
import configparser
import json
from pathlib import Path

import bittensor as bt
from dotenv import load_dotenv

from tierstake.core.reward_schedule import DEFAULT_TIERS, parse_tiers

DEFAULT_DATABASE_URL = "sqlite:///:memory:"
ENV_PREFIX = "TIERSTAKE_"

CONFIG_KEYS = ("administrator", "address", "database_url", "tiers", "enforce_reserve_floor")


def default_ledger_config():
    return {
        "administrator": "",
        "address": "tierstake-ledger",
        "database_url": DEFAULT_DATABASE_URL,
        "tiers": DEFAULT_TIERS,
        "enforce_reserve_floor": False,
    }


def _parse_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _read_config_file(config_file):
    """
    Read a JSON or INI ledger config file.

    Returns:
        dict of the keys found in the file
    """
    try:
        with open(config_file, "r") as f:
            data = json.load(f)
        bt.logging.info(f"Loaded ledger config (JSON) from: {config_file}")
        return {key: data[key] for key in CONFIG_KEYS if key in data}
    except json.JSONDecodeError:
        # Rates such as "5%" must not be treated as interpolation
        config_parser = configparser.ConfigParser(interpolation=None)
        config_parser.read(config_file)

        file_config = {}
        if "Ledger" in config_parser:
            section = config_parser["Ledger"]
            file_config = {key: section[key] for key in CONFIG_KEYS if key in section}
        bt.logging.info(f"Loaded ledger config (INI) from: {config_file}")
        return file_config


def find_config_file():
    """Return the first existing config file in search order, or None."""
    candidates = [
        Path("./config/ledger.cfg"),  # Repository config
        Path("./ledger.cfg"),         # Root directory config
        Path.home() / ".tierstake" / "ledger.cfg",
    ]
    for config_file in candidates:
        if config_file.exists():
            return config_file
    return None


def load_ledger_config(config_override=None, config_file=None):
    """
    Load ledger configuration from multiple sources with precedence.

    Precedence:
    1. Environment Variables (TIERSTAKE_*), including a .env file
    2. `config_override` dictionary (if provided)
    3. Config file (JSON or INI) in ./config/ledger.cfg, ./ledger.cfg
       or ~/.tierstake/ledger.cfg, or the explicit `config_file`
    4. Default values

    Args:
        config_override: Optional dictionary to override file config.
        config_file: Optional explicit config file path.

    Returns:
        dict: The final ledger configuration, with `tiers` parsed and
        `enforce_reserve_floor` as a bool.
    """
    load_dotenv()
    config = default_ledger_config()

    config_path = Path(config_file) if config_file else find_config_file()
    if config_path is not None:
        try:
            config.update(_read_config_file(config_path))
        except (OSError, configparser.Error) as e:
            bt.logging.error(f"Error reading ledger config file {config_path}: {e}")
    else:
        bt.logging.debug("No ledger configuration file found, using defaults.")

    if config_override:
        config.update({key: value for key, value in config_override.items() if key in CONFIG_KEYS})

    for key in CONFIG_KEYS:
        env_value = os.getenv(f"{ENV_PREFIX}{key.upper()}")
        if env_value is not None:
            config[key] = env_value

    config["tiers"] = parse_tiers(config["tiers"])
    config["enforce_reserve_floor"] = _parse_bool(config["enforce_reserve_floor"])

    bt.logging.debug(
        f"Ledger config: address={config['address']}, database_url={config['database_url']}, "
        f"tiers={len(config['tiers'])}, enforce_reserve_floor={config['enforce_reserve_floor']}"
    )
    return config
