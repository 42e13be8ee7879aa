from models import KnowledgeCategory
from processing.relevance_matcher import RelevanceMatcher, matches
from storage.knowledge_store import InMemoryKnowledgeStore


def test_title_contained_in_query(make_entry):
    entry = make_entry("龙傲天", overview="主角")
    assert matches(entry, "龙傲天现在在哪里？")


def test_keyword_contained_in_query_is_case_insensitive(make_entry):
    entry = make_entry("Azure", KnowledgeCategory.WORLD, keywords=["Dragon Vale"])
    assert matches(entry, "what lives in the dragon vale?")


def test_two_distinct_tokens_across_fields(make_entry):
    entry = make_entry("青锋", KnowledgeCategory.SETTING, description="一把宝剑，藏在湖边的石洞里")
    assert matches(entry, "宝剑 湖边")


def test_single_token_hit_is_not_enough(make_entry):
    entry = make_entry("青锋", KnowledgeCategory.SETTING, description="一把宝剑，藏在湖边的石洞里")
    assert not matches(entry, "宝剑 天空")


def test_repeated_token_counts_once(make_entry):
    entry = make_entry("青锋", KnowledgeCategory.SETTING, description="一把宝剑")
    assert not matches(entry, "宝剑 宝剑")


def test_blank_keywords_are_ignored(make_entry):
    entry = make_entry("无名", keywords=["", "  "])
    assert not matches(entry, "随便问问")


def test_find_relevant_keeps_order_and_includes_external(make_entry):
    local = [make_entry("林逸"), make_entry("苏晴"), make_entry("林家", KnowledgeCategory.WORLD)]
    external = [make_entry("林逸", overview="外部资料")]
    store = InMemoryKnowledgeStore(local, external)

    matched = RelevanceMatcher(store).find_relevant("林逸和林家是什么关系")

    assert [e.title for e in matched] == ["林逸", "林家", "林逸"]
    assert matched[-1].details["overview"] == "外部资料"


def test_find_relevant_with_no_match(make_entry):
    store = InMemoryKnowledgeStore([make_entry("林逸")])
    assert RelevanceMatcher(store).find_relevant("今天天气") == []
