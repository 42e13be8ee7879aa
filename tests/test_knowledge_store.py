import json

from models import KnowledgeCategory
from storage.knowledge_store import InMemoryKnowledgeStore, JsonKnowledgeStore


def test_in_memory_store_returns_snapshots(make_entry):
    store = InMemoryKnowledgeStore()
    added = store.add(make_entry("林逸", overview="少年"))

    listed = store.list()
    listed[0].details["overview"] = "changed"
    added.title = "changed"

    assert store.list()[0].details["overview"] == "少年"
    assert store.list()[0].title == "林逸"


def test_in_memory_store_delete(make_entry):
    entry = make_entry("林逸")
    store = InMemoryKnowledgeStore([entry])
    assert store.delete(entry.id)
    assert not store.delete(entry.id)
    assert len(store) == 0


def test_external_entries_are_listed_separately(make_entry):
    store = InMemoryKnowledgeStore([make_entry("A")], [make_entry("B")])
    assert [e.title for e in store.list()] == ["A"]
    assert [e.title for e in store.list_external()] == ["B"]


def test_json_store_writes_through_and_reloads(tmp_path, make_entry):
    path = tmp_path / "data" / "knowledge.json"
    store = JsonKnowledgeStore(str(path))
    entry = store.add(make_entry("青云宗", KnowledgeCategory.WORLD, overview="正道"))
    store.add(make_entry("法器", "法宝", content="x"))

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw[0]["category"] == "世界观"
    assert raw[1]["category"] == "法宝"

    reloaded = JsonKnowledgeStore(str(path))
    assert [e.title for e in reloaded.list()] == ["青云宗", "法器"]
    assert reloaded.list()[0].category == KnowledgeCategory.WORLD

    reloaded.delete(entry.id)
    assert [e.title for e in JsonKnowledgeStore(str(path)).list()] == ["法器"]


def test_json_store_skips_invalid_records_and_loads_external(tmp_path):
    path = tmp_path / "knowledge.json"
    path.write_text(json.dumps([{"title": "no category"}, {"category": "人物", "title": "林逸"}]), encoding="utf-8")
    external = tmp_path / "external.json"
    external.write_text(json.dumps([{"category": "设定", "title": "灵根"}]), encoding="utf-8")

    store = JsonKnowledgeStore(str(path), str(external))

    assert [e.title for e in store.list()] == ["林逸"]
    assert [e.title for e in store.list_external()] == ["灵根"]
