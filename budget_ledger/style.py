from PyQt6.QtGui import QColor

from .config import load_style_settings

_STYLE = load_style_settings()

# Column widths
NAME_COLUMN_WIDTH = _STYLE["name_column_width"]
AMOUNT_COLUMN_WIDTH = _STYLE["amount_column_width"]
DATE_COLUMN_WIDTH = _STYLE["date_column_width"]

UI_FONT_FAMILY = _STYLE["ui_font_family"]
UI_BASE_FONT_SIZE = _STYLE["ui_base_font_size"]
UI_BOLD_FONT_SIZE = _STYLE["ui_bold_font_size"]
SUMMARY_FONT_SIZE = _STYLE["summary_font_size"]

# Window geometry
WINDOW_SCALE_RATIO = _STYLE["window_scale_ratio"]

# Chart settings
CHART_HEIGHT = _STYLE["chart_height"]
FIXED_BAR_COLOR = _STYLE["fixed_bar_color"]
EXTRA_BAR_COLOR = _STYLE["extra_bar_color"]
REMAINING_BAR_COLOR = _STYLE["remaining_bar_color"]

# Summary colors
SUMMARY_POSITIVE_COLOR = QColor(_STYLE["summary_positive_color"])
SUMMARY_NEGATIVE_COLOR = QColor(_STYLE["summary_negative_color"])

# Theme palettes, keyed by the ledger's theme name
THEME_COLORS = {
    "light": (_STYLE["light_background"], _STYLE["light_foreground"]),
    "dark": (_STYLE["dark_background"], _STYLE["dark_foreground"]),
}


def theme_stylesheet(theme: str) -> str:
    background, foreground = THEME_COLORS.get(theme, THEME_COLORS["light"])
    button_bg = "#f3f4f6" if theme != "dark" else "#33363f"
    border = "#ccc" if theme != "dark" else "#555"
    return f"""
        QWidget {{ background-color: {background}; color: {foreground}; font-size: 11px; }}
        QPushButton {{ background-color: {button_bg}; border: 1px solid {border}; border-radius: 5px; padding: 4px 10px; font-size: 11px; }}
        QPushButton:hover {{ background-color: {"#e2e6ea" if theme != "dark" else "#41454f"}; }}
        QHeaderView::section {{ background-color: {button_bg}; color: {foreground}; font-weight: bold; font-size: 11px; }}
        QTableView {{ gridline-color: {border}; font-size: 11px; }}
        QLineEdit, QComboBox, QDateTimeEdit {{ border: 1px solid {border}; border-radius: 4px; padding: 2px 4px; }}
    """
