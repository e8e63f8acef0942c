import pytest

from rowstore.core.errors import MissingColumn, NotFound
from rowstore.core.grid.memory import MemoryGrid, MemoryWorkbook
from rowstore.core.locator import id_key, locate_by_id, true_last_row
from rowstore.core.mutation import create
from rowstore.core.query import load_schema, read_records

HEADER = ["is_enabled", "name", "id"]


def test_id_key_normalizes_numbers_and_bools():
    assert id_key(123) == "123"
    assert id_key(123.0) == "123"
    assert id_key(1.5) == "1.5"
    assert id_key("123") == "123"
    assert id_key(True) == "true"
    assert id_key(None) == ""


def test_true_last_row_uses_extent_when_tracked():
    g = MemoryGrid("t", [HEADER, [True, "a", "1"], [True, "b", "2"]], checkboxes=[(r, 1) for r in range(2, 50)])
    assert g.last_row() == 49
    assert true_last_row(g, load_schema(g)) == 3


def test_true_last_row_scans_ids_when_extent_unknown():
    # checkbox formatting runs far past the data, as on a real sheet
    g = MemoryGrid(
        "t",
        [HEADER, [True, "a", "1"], [True, "b", "2"]],
        track_extent=False,
        checkboxes=[(r, 1) for r in range(2, 200)],
    )
    assert g.data_row_count() is None
    assert g.last_row() == 199
    assert true_last_row(g, load_schema(g)) == 3


def test_true_last_row_header_only():
    g = MemoryGrid("t", [HEADER], track_extent=False)
    assert true_last_row(g, load_schema(g)) == 1


def test_true_last_row_without_id_column_falls_back():
    g = MemoryGrid("t", [["name"], ["a"], ["b"]], track_extent=False)
    assert true_last_row(g, load_schema(g)) == 3


def test_create_lands_after_data_not_after_formatting():
    wb = MemoryWorkbook({"Sheet1": [HEADER]}, track_extent=False)
    g = wb.table()
    g.apply_checkbox(2, 1, 100)

    first = create(g, {"name": "a"})
    second = create(g, [{"name": "b"}, {"name": "c"}])

    assert g.read_rows(2, 3, 3) == [
        [True, "a", first.created_ids[0]],
        [True, "b", second.created_ids[0]],
        [True, "c", second.created_ids[1]],
    ]
    assert [r["name"] for r in read_records(g)] == ["a", "b", "c"]


def test_locate_first_match_wins():
    g = MemoryGrid("t", [HEADER, [True, "a", "x"], [True, "b", "x"], [True, "c", 7]])
    schema = load_schema(g)
    assert locate_by_id(g, schema, "x") == 2
    assert locate_by_id(g, schema, 7) == 4
    assert locate_by_id(g, schema, "7") == 4
    assert locate_by_id(g, schema, 7.0) == 4


def test_locate_errors():
    g = MemoryGrid("t", [HEADER])
    with pytest.raises(NotFound):
        locate_by_id(g, load_schema(g), "x")

    g2 = MemoryGrid("t", [["name"], ["a"]])
    with pytest.raises(MissingColumn):
        locate_by_id(g2, load_schema(g2), "a")
