import logging
import sys
from pathlib import Path

from PyQt6.QtWidgets import (
    QApplication, QWidget, QVBoxLayout, QHBoxLayout, QGridLayout, QLabel, QComboBox,
    QLineEdit, QPushButton, QHeaderView, QMessageBox, QFileDialog, QFrame,
    QTableView, QAbstractItemView, QGroupBox, QSizePolicy,
)
from PyQt6.QtGui import QStandardItemModel, QFont, QIcon
from PyQt6.QtCore import Qt, QTimer

from . import config
from .errors import Result, StorageError
from .exporter import CsvExporter, HISTORY_FILENAME, deliver, month_filename
from .models import format_amount
from .repository import KeyValueRepository
from .store import LedgerStore
from .ui import ExpenseEditDialog, SummaryChart, make_item, make_amount_item
from .style import (
    NAME_COLUMN_WIDTH,
    AMOUNT_COLUMN_WIDTH,
    DATE_COLUMN_WIDTH,
    UI_FONT_FAMILY,
    SUMMARY_FONT_SIZE,
    SUMMARY_POSITIVE_COLOR,
    SUMMARY_NEGATIVE_COLOR,
    WINDOW_SCALE_RATIO,
    theme_stylesheet,
)

logger = logging.getLogger(__name__)

QUICK_CHIPS = ["Groceries", "Transport", "Snacks", "Shopping", "Medicine", "Outing"]
RESET_WARNING = (
    "You are about to RESET ALL data (including history and recurring defaults). "
    "Every other value kept in the same database is erased too. "
    "This action cannot be undone. Are you sure?"
)


def get_resource_path(name: str) -> Path:
    """Return resource path, compatible with PyInstaller one-file bundles."""
    if hasattr(sys, "_MEIPASS"):
        return Path(sys._MEIPASS) / name  # type: ignore[attr-defined]
    return Path(__file__).resolve().parent.parent / name


def open_store(db_path: Path | None) -> LedgerStore:
    store = LedgerStore(KeyValueRepository(db_path), defaults=config.load_ledger_defaults())
    store.initialize()
    return store


def _make_table(headers: list[str], widths: list[int]) -> tuple[QTableView, QStandardItemModel]:
    view = QTableView()
    model = QStandardItemModel(0, len(headers))
    model.setHorizontalHeaderLabels(headers)
    view.setModel(model)
    view.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
    view.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
    view.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
    view.verticalHeader().setVisible(False)
    header = view.horizontalHeader()
    header.setDefaultAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter)
    for col, width in enumerate(widths):
        view.setColumnWidth(col, width)
    header.setStretchLastSection(True)
    header.setSectionResizeMode(0, QHeaderView.ResizeMode.Interactive)
    return view, model


class LedgerApp(QWidget):
    def __init__(self, store: LedgerStore):
        super().__init__()
        self.store = store
        self.exporter = CsvExporter(store)
        self.sort_desc = True
        self.setWindowTitle("Monthly Budget Ledger")
        icon_path = get_resource_path("money.png")
        if icon_path.exists():
            self.setWindowIcon(QIcon(str(icon_path)))
        screen = QApplication.primaryScreen().availableGeometry()
        self.resize(int(screen.width() * WINDOW_SCALE_RATIO), int(screen.height() * WINDOW_SCALE_RATIO))
        self.move(screen.center() - self.rect().center())

        layout = QVBoxLayout(self)

        # Month, database and theme
        self.control_frame = QFrame()
        self.control_frame.setObjectName("controlPanel")
        control_layout = QHBoxLayout(self.control_frame)
        control_layout.setContentsMargins(10, 6, 10, 6)
        control_layout.setSpacing(12)
        self.month_label = QLabel()
        self.month_label.setFont(QFont(UI_FONT_FAMILY, SUMMARY_FONT_SIZE, QFont.Weight.Bold))
        control_layout.addWidget(self.month_label)
        self.db_label = QLabel()
        self.db_label.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Preferred)
        control_layout.addWidget(self.db_label, stretch=1)
        self.select_db_btn = QPushButton("Select DB")
        self.select_db_btn.clicked.connect(self.select_db)
        control_layout.addWidget(self.select_db_btn)
        self.theme_btn = QPushButton()
        self.theme_btn.clicked.connect(self.toggle_theme)
        control_layout.addWidget(self.theme_btn)
        layout.addWidget(self.control_frame)

        # Budget and recurring template
        settings_box = QGroupBox("Budget & recurring defaults")
        settings_layout = QGridLayout(settings_box)
        self.budget_input = QLineEdit()
        self.budget_input.setPlaceholderText("Total budget")
        self.set_budget_btn = QPushButton("Set Budget")
        self.set_budget_btn.clicked.connect(self.set_budget)
        settings_layout.addWidget(QLabel("Budget:"), 0, 0)
        settings_layout.addWidget(self.budget_input, 0, 1)
        settings_layout.addWidget(self.set_budget_btn, 0, 2)
        self.recurring_rent = QLineEdit()
        self.recurring_food = QLineEdit()
        self.recurring_wifi = QLineEdit()
        for col, (label, edit) in enumerate(
            (("Rent:", self.recurring_rent), ("Food:", self.recurring_food), ("Wifi:", self.recurring_wifi))
        ):
            settings_layout.addWidget(QLabel(label), 1, col * 2)
            settings_layout.addWidget(edit, 1, col * 2 + 1)
        self.save_recurring_btn = QPushButton("Save Recurring")
        self.save_recurring_btn.clicked.connect(self.save_recurring)
        self.apply_recurring_btn = QPushButton("Apply Recurring Now")
        self.apply_recurring_btn.clicked.connect(self.apply_recurring_now)
        settings_layout.addWidget(self.save_recurring_btn, 2, 0, 1, 3)
        settings_layout.addWidget(self.apply_recurring_btn, 2, 3, 1, 3)
        layout.addWidget(settings_box)

        # Summary
        self.summary_label = QLabel()
        self.summary_label.setFont(QFont(UI_FONT_FAMILY, SUMMARY_FONT_SIZE, QFont.Weight.Bold))
        layout.addWidget(self.summary_label)
        self.chart = SummaryChart(self)
        layout.addWidget(self.chart)

        tables_layout = QHBoxLayout()

        # Fixed expenses
        fixed_box = QGroupBox("Fixed expenses")
        fixed_layout = QVBoxLayout(fixed_box)
        fixed_form = QHBoxLayout()
        self.fixed_name = QLineEdit()
        self.fixed_name.setPlaceholderText("Name")
        self.fixed_amount = QLineEdit()
        self.fixed_amount.setPlaceholderText("Amount")
        self.add_fixed_btn = QPushButton("Add")
        self.add_fixed_btn.clicked.connect(self.add_fixed)
        fixed_form.addWidget(self.fixed_name)
        fixed_form.addWidget(self.fixed_amount)
        fixed_form.addWidget(self.add_fixed_btn)
        fixed_layout.addLayout(fixed_form)
        self.fixed_view, self.fixed_model = _make_table(["Name", "Amount"], [NAME_COLUMN_WIDTH, AMOUNT_COLUMN_WIDTH])
        self.fixed_view.doubleClicked.connect(lambda index: self.edit_fixed(index.row()))
        fixed_layout.addWidget(self.fixed_view)
        fixed_buttons = QHBoxLayout()
        edit_fixed_btn = QPushButton("Edit")
        edit_fixed_btn.clicked.connect(lambda: self.edit_fixed(self._selected_row(self.fixed_view)))
        delete_fixed_btn = QPushButton("Delete")
        delete_fixed_btn.clicked.connect(lambda: self.delete_fixed(self._selected_row(self.fixed_view)))
        fixed_buttons.addWidget(edit_fixed_btn)
        fixed_buttons.addWidget(delete_fixed_btn)
        fixed_layout.addLayout(fixed_buttons)
        tables_layout.addWidget(fixed_box)

        # Extra expenses
        extra_box = QGroupBox("Extra expenses")
        extra_layout = QVBoxLayout(extra_box)
        chips_layout = QHBoxLayout()
        for chip in QUICK_CHIPS:
            chip_btn = QPushButton(chip)
            chip_btn.clicked.connect(lambda _checked=False, name=chip: self.on_chip_clicked(name))
            chips_layout.addWidget(chip_btn)
        extra_layout.addLayout(chips_layout)
        extra_form = QHBoxLayout()
        self.expense_name = QLineEdit()
        self.expense_name.setPlaceholderText("Name")
        self.expense_amount = QLineEdit()
        self.expense_amount.setPlaceholderText("Amount")
        self.expense_date = QLineEdit()
        self.expense_date.setPlaceholderText("YYYY-MM-DD HH:MM (blank = now)")
        self.expense_note = QLineEdit()
        self.expense_note.setPlaceholderText("Note (optional)")
        self.add_extra_btn = QPushButton("Add")
        self.add_extra_btn.clicked.connect(self.add_extra)
        for widget in (self.expense_name, self.expense_amount, self.expense_date, self.expense_note, self.add_extra_btn):
            extra_form.addWidget(widget)
        extra_layout.addLayout(extra_form)
        self.extra_view, self.extra_model = _make_table(
            ["Name", "Amount", "Date", "Note"],
            [NAME_COLUMN_WIDTH, AMOUNT_COLUMN_WIDTH, DATE_COLUMN_WIDTH],
        )
        self.extra_view.doubleClicked.connect(lambda index: self.edit_extra(index.row()))
        extra_layout.addWidget(self.extra_view)
        extra_buttons = QHBoxLayout()
        edit_extra_btn = QPushButton("Edit")
        edit_extra_btn.clicked.connect(lambda: self.edit_extra(self._selected_row(self.extra_view)))
        delete_extra_btn = QPushButton("Delete")
        delete_extra_btn.clicked.connect(lambda: self.delete_extra(self._selected_row(self.extra_view)))
        self.sort_extra_btn = QPushButton("Sort Descending")
        self.sort_extra_btn.clicked.connect(self.sort_extra)
        extra_buttons.addWidget(edit_extra_btn)
        extra_buttons.addWidget(delete_extra_btn)
        extra_buttons.addWidget(self.sort_extra_btn)
        extra_layout.addLayout(extra_buttons)
        tables_layout.addWidget(extra_box, stretch=2)

        layout.addLayout(tables_layout, stretch=1)

        # Export and reset
        export_layout = QHBoxLayout()
        export_layout.addWidget(QLabel("Month:"))
        self.month_select = QComboBox()
        self.month_select.setMinimumWidth(160)
        export_layout.addWidget(self.month_select)
        self.download_selected_btn = QPushButton("Download Selected Month")
        self.download_selected_btn.clicked.connect(self.download_selected_month)
        export_layout.addWidget(self.download_selected_btn)
        self.download_history_btn = QPushButton("Download All History")
        self.download_history_btn.clicked.connect(self.download_history)
        export_layout.addWidget(self.download_history_btn)
        export_layout.addStretch(1)
        self.reset_btn = QPushButton("Reset All Data")
        self.reset_btn.setStyleSheet("QPushButton { background-color: #c62828; color: #fff; font-weight: bold; }")
        self.reset_btn.clicked.connect(self.reset_all)
        export_layout.addWidget(self.reset_btn)
        layout.addLayout(export_layout)

        self.refresh()

    def showEvent(self, event):
        super().showEvent(event)
        # Defer so the alert appears over the already painted window
        QTimer.singleShot(0, self._show_rollover_notice)

    # ------------------------------------------------------------------
    # Rendering

    def refresh(self):
        self.apply_theme()
        self.month_label.setText(f"Month: {self.store.current_month}")
        self.db_label.setText(f"Database: {config.DB_PATH or '--'}")
        self.db_label.setToolTip(str(config.DB_PATH or ""))
        self.budget_input.setText(format_amount(self.store.total_budget))
        recurring = self.store.recurring
        self.recurring_rent.setText(format_amount(recurring.rent))
        self.recurring_food.setText(format_amount(recurring.food))
        self.recurring_wifi.setText(format_amount(recurring.wifi))
        self.render_fixed_table()
        self.render_extra_table()
        self.refresh_month_select()
        self.update_summary()

    def apply_theme(self):
        theme = self.store.theme
        self.setStyleSheet(theme_stylesheet(theme))
        self.theme_btn.setText("Light mode" if theme == "dark" else "Dark mode")

    def render_fixed_table(self):
        self.fixed_model.removeRows(0, self.fixed_model.rowCount())
        for expense in self.store.fixed_expenses:
            self.fixed_model.appendRow([
                make_item(expense.name),
                make_amount_item(expense.amount),
            ])

    def render_extra_table(self):
        self.extra_model.removeRows(0, self.extra_model.rowCount())
        for expense in self.store.extra_expenses:
            self.extra_model.appendRow([
                make_item(expense.name),
                make_amount_item(expense.amount),
                make_item(expense.date),
                make_item(expense.note or ""),
            ])

    def refresh_month_select(self):
        current = self.store.current_month
        self.month_select.blockSignals(True)
        self.month_select.clear()
        for label in self.store.available_months():
            text = f"{label} (current)" if label == current else label
            self.month_select.addItem(text, label)
        self.month_select.blockSignals(False)

    def update_summary(self):
        summary = self.store.compute_summary()
        budget = self.store.total_budget
        self.summary_label.setText(
            f"Budget: {format_amount(budget)} | Fixed: {format_amount(summary.total_fixed)} | "
            f"Extra: {format_amount(summary.total_extra)} | Remaining: {format_amount(summary.remaining)}"
        )
        color = SUMMARY_POSITIVE_COLOR if summary.remaining >= 0 else SUMMARY_NEGATIVE_COLOR
        self.summary_label.setStyleSheet(f"color: {color.name()};")
        self.chart.show_summary(summary, budget, self.store.theme)

    # ------------------------------------------------------------------
    # Feedback

    def _report(self, result: Result, title: str = "Invalid input") -> bool:
        if not result.ok:
            QMessageBox.warning(self, title, result.message)
        return result.ok

    def _run(self, action, *args) -> bool:
        try:
            action(*args)
        except StorageError as e:
            QMessageBox.critical(self, "Error", e.message)
            return False
        return True

    def _show_rollover_notice(self):
        notice = self.store.consume_notice()
        if notice is not None:
            QMessageBox.information(self, "New month", notice.message)

    @staticmethod
    def _selected_row(view: QTableView) -> int | None:
        rows = view.selectionModel().selectedRows()
        return rows[0].row() if rows else None

    # ------------------------------------------------------------------
    # Budget, recurring, theme

    def set_budget(self):
        if self._report(self.store.set_budget(self.budget_input.text())):
            self.update_summary()

    def save_recurring(self):
        if not self._run(
            self.store.set_recurring,
            self.recurring_rent.text(),
            self.recurring_food.text(),
            self.recurring_wifi.text(),
        ):
            return
        self.refresh()
        QMessageBox.information(self, "Recurring", "Recurring defaults saved.")

    def apply_recurring_now(self):
        if not self._run(self.store.apply_recurring_template):
            return
        self.render_fixed_table()
        self.update_summary()

    def toggle_theme(self):
        if not self._run(self.store.toggle_theme):
            return
        self.apply_theme()
        self.update_summary()

    # ------------------------------------------------------------------
    # Fixed expenses

    def add_fixed(self):
        result = self.store.add_fixed(self.fixed_name.text(), self.fixed_amount.text())
        if self._report(result):
            self.fixed_name.clear()
            self.fixed_amount.clear()
            self.render_fixed_table()
            self.update_summary()

    def edit_fixed(self, row: int | None):
        if row is None:
            return
        expense = self.store.fixed_expenses[row]
        dialog = ExpenseEditDialog(self, "Edit Fixed Expense", expense.name, expense.amount)
        if not dialog.exec():
            return
        values = dialog.values()
        if self._report(self.store.edit_fixed(row, values["name"], values["amount"])):
            self.render_fixed_table()
            self.update_summary()

    def delete_fixed(self, row: int | None):
        if row is None:
            return
        if self._report(self.store.delete_fixed(row), "Not found"):
            self.render_fixed_table()
            self.update_summary()

    # ------------------------------------------------------------------
    # Extra expenses

    def on_chip_clicked(self, name: str):
        self.expense_name.setText(name)
        self.expense_amount.setFocus()

    def add_extra(self):
        result = self.store.add_extra(
            self.expense_name.text(),
            self.expense_amount.text(),
            self.expense_date.text(),
            self.expense_note.text(),
        )
        if self._report(result):
            for widget in (self.expense_name, self.expense_amount, self.expense_date, self.expense_note):
                widget.clear()
            self.render_extra_table()
            self.update_summary()

    def edit_extra(self, row: int | None):
        if row is None:
            return
        expense = self.store.extra_expenses[row]
        dialog = ExpenseEditDialog(
            self, "Edit Extra Expense", expense.name, expense.amount, expense.date, expense.note, with_date=True
        )
        if not dialog.exec():
            return
        values = dialog.values()
        result = self.store.edit_extra(row, values["name"], values["amount"], values["date"], values["note"])
        if self._report(result):
            self.render_extra_table()
            self.update_summary()

    def delete_extra(self, row: int | None):
        if row is None:
            return
        if self._report(self.store.delete_extra(row), "Not found"):
            self.render_extra_table()
            self.update_summary()

    def sort_extra(self):
        if not self._run(self.store.sort_extra_by_amount, self.sort_desc):
            return
        self.sort_desc = not self.sort_desc
        self.sort_extra_btn.setText("Sort Descending" if self.sort_desc else "Sort Ascending")
        self.render_extra_table()

    # ------------------------------------------------------------------
    # Export, reset, database

    def _deliver(self, result: Result, filename: str):
        if not self._report(result, "Nothing to export"):
            return
        directory = QFileDialog.getExistingDirectory(self, "Save CSV to", str(Path.home()))
        if not directory:
            return
        try:
            target = deliver(result.value, directory, filename)
        except OSError as e:
            QMessageBox.critical(self, "Error", str(e))
            return
        QMessageBox.information(self, "Exported", f"Saved {target}")

    def download_selected_month(self):
        label = self.month_select.currentData()
        if not label:
            return
        self._deliver(self.exporter.export_month(label), month_filename(label))

    def download_history(self):
        self._deliver(self.exporter.export_all_history(), HISTORY_FILENAME)

    def reset_all(self):
        answer = QMessageBox.question(
            self,
            "Reset all data",
            RESET_WARNING,
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        if answer != QMessageBox.StandardButton.Yes:
            return
        if not self._run(self.store.reset_all):
            return
        self.sort_desc = True
        self.sort_extra_btn.setText("Sort Descending")
        self.refresh()
        QMessageBox.information(self, "Reset", "All data has been reset successfully.")

    def select_db(self):
        file, _ = QFileDialog.getSaveFileName(
            self,
            "Select DB",
            str(config.DB_PATH or Path.home()),
            "SQLite (*.db)",
            options=QFileDialog.Option.DontConfirmOverwrite,
        )
        if not file:
            return
        try:
            store = open_store(Path(file))
        except Exception as e:
            QMessageBox.critical(self, "Error", str(e))
            return
        config.DB_PATH = Path(file)
        config.save_last_db(config.DB_PATH)
        self.store = store
        self.exporter = CsvExporter(store)
        self.refresh()
        self._show_rollover_notice()


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = QApplication(sys.argv)
    icon_path = get_resource_path("money.png")
    if icon_path.exists():
        app.setWindowIcon(QIcon(str(icon_path)))
    try:
        store = open_store(config.DB_PATH)
    except Exception as e:
        logger.exception("Could not open ledger database %s", config.DB_PATH)
        QMessageBox.critical(None, "Error", str(e))
        return 1
    w = LedgerApp(store)
    w.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
