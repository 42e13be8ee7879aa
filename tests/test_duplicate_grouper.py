from models import KnowledgeCategory
from processing.duplicate_grouper import find_duplicates


def test_groups_by_category_and_base_title(make_entry):
    entries = [
        make_entry("林逸"),
        make_entry("林逸(2)"),
        make_entry("林逸（3）"),
        make_entry("林逸", KnowledgeCategory.PLOT),
        make_entry("苏晴"),
    ]

    groups = find_duplicates(entries)

    assert len(groups) == 1
    assert groups[0].base_title == "林逸"
    assert groups[0].category == KnowledgeCategory.PERSON
    assert [e.title for e in groups[0].entries] == ["林逸", "林逸(2)", "林逸（3）"]


def test_groups_sorted_by_size_descending_and_stable(make_entry):
    entries = [
        make_entry("甲"),
        make_entry("甲(2)"),
        make_entry("乙"),
        make_entry("乙(2)"),
        make_entry("丙"),
        make_entry("丙(2)"),
        make_entry("丙(3)"),
    ]

    groups = find_duplicates(entries)

    assert [(g.base_title, g.size) for g in groups] == [("丙", 3), ("甲", 2), ("乙", 2)]


def test_every_entry_in_at_most_one_group(make_entry):
    entries = [make_entry("A"), make_entry("A(1)"), make_entry("A(1)(2)"), make_entry("B")]
    groups = find_duplicates(entries)
    ids = [e.id for g in groups for e in g.entries]
    assert len(ids) == len(set(ids)) == 3


def test_unknown_categories_group_by_raw_label(make_entry):
    entries = [make_entry("玄铁", "法宝"), make_entry("玄铁(2)", "法宝")]
    groups = find_duplicates(entries)
    assert groups[0].category == "法宝"


def test_no_duplicates(make_entry):
    assert find_duplicates([make_entry("A"), make_entry("B")]) == []
    assert find_duplicates([]) == []
