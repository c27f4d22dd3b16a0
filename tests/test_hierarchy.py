import pytest

from douar_watch.hierarchy import HierarchyIndex, LocationSelection
from douar_watch.models import HierarchyRow

ROWS = [
    ("North", "P1", "C1", "D1"),
    ("North", "P1", "C2", "D2"),
    ("South", "P2", "C3", "D3"),
]


@pytest.fixture
def index() -> HierarchyIndex:
    return HierarchyIndex.from_tuples(ROWS)


def test_cascade_constrains_and_resets(index: HierarchyIndex) -> None:
    selection = LocationSelection()
    selection.select_region("North")
    assert selection.options(index, "province") == ["P1"]

    selection.select_province("P1")
    selection.select_commune("C2")
    selection.select_village("D2")

    selection.select_region("South")
    assert selection.to_dict() == {"region": "South", "province": "", "commune": "", "village": ""}
    assert selection.options(index, "province") == ["P2"]


def test_reselecting_same_value_keeps_children(index: HierarchyIndex) -> None:
    selection = LocationSelection(region="North", province="P1", commune="C1")
    selection.select_region("North")
    assert selection.commune == "C1"


def test_changing_commune_clears_only_village() -> None:
    selection = LocationSelection(region="North", province="P1", commune="C1", village="D1")
    selection.select_commune("C2")
    assert (selection.region, selection.province, selection.commune, selection.village) == ("North", "P1", "C2", "")


def test_empty_ancestor_is_unconstrained(index: HierarchyIndex) -> None:
    assert index.provinces("") == ["P1", "P2"]
    assert index.villages("", "", "C3") == ["D3"]
    assert index.communes("North", "P1") == ["C1", "C2"]


def test_filter_is_case_sensitive_substring() -> None:
    index = HierarchyIndex.from_tuples([("R", "Al Haouz", "Asni", "Imlil"), ("R", "Taroudant", "Ighil", "Tafingoult")])
    assert index.provinces("R", "Haou") == ["Al Haouz"]
    assert index.provinces("R", "haou") == []
    assert index.villages("R", "", "", "ing") == ["Tafingoult"]


def test_blank_values_excluded_and_sorted() -> None:
    index = HierarchyIndex(
        [
            HierarchyRow(region="Souss", province="Zeta"),
            HierarchyRow(region="  ", province="Alpha"),
            HierarchyRow(region="Atlas", province=""),
            HierarchyRow(region="Atlas", province="Alpha"),
        ]
    )
    assert index.regions() == ["Atlas", "Souss"]
    assert index.provinces() == ["Alpha", "Zeta"]


def test_unknown_level_rejected() -> None:
    with pytest.raises(ValueError):
        LocationSelection().select("country", "Morocco")
