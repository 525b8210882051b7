from __future__ import annotations

from budget_ledger.errors import EmptyError, NotFoundError
from budget_ledger.exporter import (
    HISTORY_FILENAME,
    CsvExporter,
    deliver,
    format_csv_date,
    month_filename,
)
from tests.conftest import make_store, seed

HEADER = "Month,Type,Name,Amount,Date,Note"


def test_export_current_month(empty_store):
    empty_store.add_fixed("Rent", 4000)
    empty_store.add_extra("Coffee", 12.5, "2025-03-05 14:30", "with cake")

    result = CsvExporter(empty_store).export_month("March 2025")

    assert result.ok
    assert result.value == "\n".join(
        [
            HEADER,
            "March 2025,Fixed,Rent,4000,,",
            "March 2025,Extra,Coffee,12.5,2025-03-05   T14:30,with cake",
        ]
    )


def test_export_month_with_no_records_is_header_only(empty_store):
    result = CsvExporter(empty_store).export_month("March 2025")

    assert result.value == HEADER


def test_export_escapes_commas_and_quotes(empty_store):
    empty_store.add_fixed('Lunch, "extra"', 20)

    csv_text = CsvExporter(empty_store).export_month("March 2025").value

    assert csv_text.splitlines()[1] == 'March 2025,Fixed,"Lunch, ""extra""",20,,'


def test_export_quotes_newlines_in_notes(empty_store):
    empty_store.add_extra("Dinner", 40, "2025-03-07 20:00", "line one\nline two")

    csv_text = CsvExporter(empty_store).export_month("March 2025").value

    assert csv_text.endswith('2025-03-07   T20:00,"line one\nline two"')


def test_export_unknown_month_fails(empty_store):
    result = CsvExporter(empty_store).export_month("June 1999")

    assert not result.ok
    assert isinstance(result.error, NotFoundError)


def test_export_archived_month(repository, clock):
    seed(repository, lastMonthKey="February 2025", fixedExpenses=[{"name": "Gym", "amount": 30}])
    store = make_store(repository, clock)

    result = CsvExporter(store).export_month("February 2025")

    assert result.value == f"{HEADER}\nFebruary 2025,Fixed,Gym,30,,"


def test_export_all_history_empty(empty_store):
    result = CsvExporter(empty_store).export_all_history()

    assert isinstance(result.error, EmptyError)
    assert result.message == "No history available yet!"


def test_export_all_history_rows(repository, clock):
    seed(
        repository,
        lastMonthKey="February 2025",
        fixedExpenses=[{"name": "Rent", "amount": 4000}],
        extraExpenses=[{"name": "Snack", "amount": 2.75, "date": "2025-02-10 16:05"}],
    )
    store = make_store(repository, clock)

    lines = CsvExporter(store).export_all_history().value.split("\n")

    # Current month (seeded with the recurring template) is not part of the export
    assert lines == [
        HEADER,
        "February 2025,Fixed,Rent,4000,,",
        "February 2025,Extra,Snack,2.75,2025-02-10   T16:05,",
    ]


def test_export_all_history_keeps_enumeration_order(repository, clock):
    seed(
        repository,
        lastMonthKey="March 2025",
        history={
            "January 2025": {"fixed": [{"name": "A", "amount": 1}], "extra": [], "budget": 1},
            "December 2024": {"fixed": [{"name": "B", "amount": 2}], "extra": [], "budget": 1},
        },
    )
    store = make_store(repository, clock)

    lines = CsvExporter(store).export_all_history().value.split("\n")

    assert [line.split(",")[0] for line in lines[1:]] == ["January 2025", "December 2024"]


def test_format_csv_date_passes_through_unparseable_values():
    assert format_csv_date("sometime last week") == "sometime last week"
    assert format_csv_date("") == ""
    assert format_csv_date(None) == ""


def test_filenames():
    assert month_filename("March 2025") == "March_2025.csv"
    assert HISTORY_FILENAME == "expense_history.csv"


def test_deliver_writes_utf8_file(tmp_path):
    target = deliver("Month,Name\nMarch 2025,Café", tmp_path / "exports", "March_2025.csv")

    assert target == tmp_path / "exports" / "March_2025.csv"
    assert target.read_bytes() == "Month,Name\nMarch 2025,Café".encode("utf-8")
