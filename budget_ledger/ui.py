from PyQt6.QtWidgets import (
    QDialog, QDialogButtonBox, QFormLayout, QLineEdit, QDateTimeEdit, QSizePolicy,
)
from PyQt6.QtGui import QStandardItem, QFont, QBrush
from PyQt6.QtCore import Qt, QDateTime
from matplotlib.backends.backend_qtagg import FigureCanvasQTAgg
from matplotlib.figure import Figure

from .models import Summary, format_amount
from .style import (
    UI_FONT_FAMILY,
    UI_BASE_FONT_SIZE,
    UI_BOLD_FONT_SIZE,
    CHART_HEIGHT,
    FIXED_BAR_COLOR,
    EXTRA_BAR_COLOR,
    REMAINING_BAR_COLOR,
    SUMMARY_NEGATIVE_COLOR,
    THEME_COLORS,
)

QT_DATE_FORMAT = "yyyy-MM-dd HH:mm"


def make_item(text="", bold=False, color=None, align_right=False):
    item = QStandardItem(str(text))
    item.setEditable(False)
    font = QFont(UI_FONT_FAMILY, UI_BASE_FONT_SIZE)
    if bold:
        font.setBold(True)
        font.setPointSize(UI_BOLD_FONT_SIZE)
    item.setFont(font)
    if color:
        item.setForeground(QBrush(color))
    if align_right:
        item.setTextAlignment(Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter)
    else:
        item.setTextAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter)
    return item


def make_amount_item(amount: float):
    return make_item(format_amount(amount), align_right=True)


class ExpenseEditDialog(QDialog):
    """Collects every field of a fixed or extra expense in one form.

    The dialog never touches the ledger; callers read ``values()`` and hand
    them to the store's edit operation.
    """

    def __init__(self, parent, title: str, name: str, amount: float, date: str | None = None, note: str | None = None,
                 with_date: bool = False):
        super().__init__(parent)
        self.setWindowTitle(title)
        self.with_date = with_date
        layout = QFormLayout(self)

        self.name_edit = QLineEdit(name)
        layout.addRow("Name:", self.name_edit)
        self.amount_edit = QLineEdit(format_amount(amount))
        layout.addRow("Amount:", self.amount_edit)

        self.date_edit = None
        self.note_edit = None
        if with_date:
            self.date_edit = QDateTimeEdit()
            self.date_edit.setDisplayFormat(QT_DATE_FORMAT)
            self.date_edit.setCalendarPopup(True)
            parsed = QDateTime.fromString(date or "", QT_DATE_FORMAT)
            self.date_edit.setDateTime(parsed if parsed.isValid() else QDateTime.currentDateTime())
            layout.addRow("Date & Time:", self.date_edit)
            self.note_edit = QLineEdit(note or "")
            self.note_edit.setPlaceholderText("optional, leave blank to remove")
            layout.addRow("Note:", self.note_edit)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addRow(buttons)

    def values(self) -> dict:
        data = {"name": self.name_edit.text(), "amount": self.amount_edit.text()}
        if self.with_date:
            data["date"] = self.date_edit.dateTime().toString(QT_DATE_FORMAT)
            data["note"] = self.note_edit.text()
        return data


class SummaryChart(FigureCanvasQTAgg):
    """Horizontal bars for fixed, extra and remaining amounts."""

    def __init__(self, parent=None):
        super().__init__(Figure(figsize=(6, CHART_HEIGHT / 100), dpi=100))
        self.setParent(parent)
        self.setFixedHeight(CHART_HEIGHT)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Fixed)

    def show_summary(self, summary: Summary, budget: float, theme: str = "light"):
        background, foreground = THEME_COLORS.get(theme, THEME_COLORS["light"])
        remaining_color = REMAINING_BAR_COLOR if summary.remaining >= 0 else SUMMARY_NEGATIVE_COLOR.name()
        bars = [
            ("Fixed", summary.total_fixed, FIXED_BAR_COLOR),
            ("Extra", summary.total_extra, EXTRA_BAR_COLOR),
            ("Remaining", summary.remaining, remaining_color),
        ]

        self.figure.clear()
        self.figure.set_facecolor(background)
        ax = self.figure.add_subplot(111)
        ax.set_facecolor(background)
        labels = [lbl for lbl, _, _ in bars]
        values = [val for _, val, _ in bars]
        colors = [clr for _, _, clr in bars]
        y_pos = range(len(bars))
        ax.barh(list(y_pos), values, color=colors, height=0.6)
        ax.set_yticks(list(y_pos))
        ax.set_yticklabels(labels, color=foreground)
        ax.invert_yaxis()
        ax.axvline(0, color=foreground, linewidth=0.8)
        if budget > 0:
            ax.axvline(budget, color=foreground, linestyle="--", linewidth=0.8)
        limit = max([abs(v) for v in values] + [budget, 1.0])
        offset = limit * 0.02
        for idx, value in enumerate(values):
            x = value + offset if value >= 0 else value - offset
            ha = "left" if value >= 0 else "right"
            ax.text(x, idx, format_amount(round(value, 2)), va="center", ha=ha, fontsize=8, color=foreground)
        ax.set_xlim(min(min(values) * 1.2, 0), limit * 1.2)
        ax.tick_params(axis="x", colors=foreground, labelsize=8)
        for spine in ax.spines.values():
            spine.set_visible(False)
        self.figure.tight_layout()
        self.draw_idle()
