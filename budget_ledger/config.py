from dataclasses import dataclass
from pathlib import Path
import sys
import configparser
import math
from typing import Any


def _resolve_config_file() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent / "budget.ini"
    module_dir = Path(__file__).resolve().parent
    candidate = module_dir / "budget.ini"
    if candidate.exists():
        return candidate
    return module_dir.with_name("budget.ini")


CONFIG_FILE = _resolve_config_file()
DEFAULT_DB_NAME = "budget_ledger.db"

LEDGER_DEFAULTS: dict[str, float] = {
    "default_budget": 10000.0,
    "reset_budget": 12000.0,
    "recurring_rent": 4000.0,
    "recurring_food": 2800.0,
    "recurring_wifi": 250.0,
}

STYLE_DEFAULTS: dict[str, Any] = {
    "name_column_width": 220,
    "amount_column_width": 90,
    "date_column_width": 130,
    "ui_font_family": "Segoe UI",
    "ui_base_font_size": 10,
    "ui_bold_font_size": 10,
    "summary_font_size": 12,
    "window_scale_ratio": 0.7,
    "chart_height": 140,
    "summary_positive_color": "#2E7D32",
    "summary_negative_color": "#C62828",
    "fixed_bar_color": "#3358C4",
    "extra_bar_color": "#DD3B50",
    "remaining_bar_color": "#2C7A7B",
    "light_background": "#FFFFFF",
    "light_foreground": "#000000",
    "dark_background": "#1E1F24",
    "dark_foreground": "#E8E8E8",
}

_STYLE_INT_KEYS = {
    "name_column_width",
    "amount_column_width",
    "date_column_width",
    "ui_base_font_size",
    "ui_bold_font_size",
    "summary_font_size",
    "chart_height",
}
_STYLE_FLOAT_KEYS = {"window_scale_ratio"}


@dataclass(frozen=True)
class LedgerDefaults:
    """Amounts the ledger falls back to when storage has nothing better."""

    default_budget: float = LEDGER_DEFAULTS["default_budget"]
    reset_budget: float = LEDGER_DEFAULTS["reset_budget"]
    recurring_rent: float = LEDGER_DEFAULTS["recurring_rent"]
    recurring_food: float = LEDGER_DEFAULTS["recurring_food"]
    recurring_wifi: float = LEDGER_DEFAULTS["recurring_wifi"]


def _load_cfg() -> configparser.ConfigParser:
    cfg = configparser.ConfigParser()
    if CONFIG_FILE.exists():
        cfg.read(CONFIG_FILE)
    return cfg


def _save_cfg(cfg: configparser.ConfigParser) -> None:
    with open(CONFIG_FILE, "w", encoding="utf-8") as f:
        cfg.write(f)


def default_db_path() -> Path:
    return CONFIG_FILE.with_name(DEFAULT_DB_NAME)


def load_last_db() -> Path:
    cfg = _load_cfg()
    db_path = cfg.get("app", "db_path", fallback=None)
    if db_path:
        return Path(db_path).expanduser()
    return default_db_path()


def save_last_db(path: Path | None) -> None:
    cfg = _load_cfg()
    if "app" not in cfg:
        cfg["app"] = {}
    if path:
        cfg["app"]["db_path"] = str(path)
    else:
        cfg["app"].pop("db_path", None)
    _save_cfg(cfg)


def load_ledger_defaults() -> LedgerDefaults:
    cfg = _load_cfg()
    updated = False
    if "ledger" not in cfg:
        cfg["ledger"] = {}
        updated = True
    section = cfg["ledger"]
    values: dict[str, float] = {}
    for key, default in LEDGER_DEFAULTS.items():
        raw_value = section.get(key)
        if raw_value is None:
            section[key] = str(default)
            raw_value = str(default)
            updated = True
        try:
            value = float(raw_value)
        except (TypeError, ValueError):
            value = -1.0
        # Budgets must stay positive; recurring amounts may be zero
        minimum_ok = value > 0 if key.endswith("budget") else value >= 0
        if not math.isfinite(value) or not minimum_ok:
            value = default
            section[key] = str(default)
            updated = True
        values[key] = value
    if updated:
        _save_cfg(cfg)
    return LedgerDefaults(**values)


def load_style_settings() -> dict[str, Any]:
    cfg = _load_cfg()
    updated = False
    if "style" not in cfg:
        cfg["style"] = {}
        updated = True
    section = cfg["style"]
    settings: dict[str, Any] = {}
    for key, default in STYLE_DEFAULTS.items():
        raw_value = section.get(key)
        if raw_value is None:
            section[key] = str(default)
            raw_value = str(default)
            updated = True
        try:
            if key in _STYLE_INT_KEYS:
                settings[key] = int(float(raw_value))
            elif key in _STYLE_FLOAT_KEYS:
                settings[key] = float(raw_value)
            else:
                settings[key] = raw_value
        except (TypeError, ValueError):
            # Fallback to default on invalid values
            settings[key] = default
            section[key] = str(default)
            updated = True
    if updated:
        _save_cfg(cfg)
    return settings


# Mutable global used by db.get_conn; always reference via config.DB_PATH
DB_PATH: Path | None = load_last_db()
