from pathlib import Path

import pytest

from quickmarks import store
from quickmarks.errors import EntityNotFoundError, StoreCorruptError
from quickmarks.model import StoreState, new_bookmark, new_group


def test_missing_file_loads_as_empty_store(tmp_path: Path):
    state = store.load(tmp_path / "nope" / "bookmarks.yml")
    assert state.bookmarks == []
    assert state.groups == []


def test_blank_file_loads_as_empty_store(tmp_path: Path):
    p = tmp_path / "bookmarks.yml"
    p.write_text("\n  \n", encoding="utf-8")
    assert store.load(p) == StoreState()


def test_sequential_creations_get_ids_in_order():
    state = StoreState()
    ids = [store.add_bookmark(state, f"b{i}", f"https://{i}.example").id for i in range(5)]
    assert ids == [0, 1, 2, 3, 4]


def test_create_does_not_insert_into_state():
    state = StoreState()
    b = store.create_bookmark(state, "GitHub", "https://github.com")
    assert b.id == 0
    assert b.icon_path is None
    assert state.bookmarks == []

    g = store.create_group(state, "Dev")
    assert (g.id, g.bookmark_ids, g.icon_path, g.tint_icon) == (0, [], None, False)


def test_deleting_top_id_frees_it_for_reuse():
    state = StoreState()
    for i in range(3):
        store.add_bookmark(state, f"b{i}", "https://x.example")
    store.delete_bookmark(state, 2)
    assert store.add_bookmark(state, "again", "https://y.example").id == 2


def test_allocation_uses_max_plus_one_not_count():
    state = StoreState(bookmarks=[new_bookmark(7, "a", "u"), new_bookmark(3, "b", "u")])
    assert store.create_bookmark(state, "c", "u").id == 8


def test_deleting_last_bookmark_restarts_at_zero():
    state = StoreState()
    store.add_bookmark(state, "only", "https://x.example")
    store.delete_bookmark(state, 0)
    assert store.add_bookmark(state, "next", "https://y.example").id == 0


def test_delete_bookmark_removes_it_from_every_group():
    state = StoreState()
    a = store.add_bookmark(state, "a", "https://a.example")
    b = store.add_bookmark(state, "b", "https://b.example")
    store.add_group(state, "g1", [a.id, b.id])
    store.add_group(state, "g2", [a.id])
    store.add_group(state, "g3", [b.id])

    store.delete_bookmark(state, a.id)

    assert [x.id for x in state.bookmarks] == [b.id]
    assert [g.bookmark_ids for g in state.groups] == [[b.id], [], [b.id]]


def test_delete_group_leaves_bookmarks_alone(github_state):
    store.delete_group(github_state, 0)
    assert github_state.groups == []
    assert [b.name for b in github_state.bookmarks] == ["GitHub"]


def test_delete_unknown_ids_raise(github_state):
    with pytest.raises(EntityNotFoundError):
        store.delete_bookmark(github_state, 9)
    with pytest.raises(EntityNotFoundError):
        store.delete_group(github_state, 9)
    assert len(github_state.bookmarks) == 1
    assert len(github_state.groups) == 1


def test_update_bookmark_replaces_fields(github_state):
    store.update_bookmark(github_state, 0, "GH", "https://github.com/me", "/tmp/0.png")
    b = store.get_bookmark(github_state, 0)
    assert (b.id, b.name, b.url, b.icon_path) == (0, "GH", "https://github.com/me", "/tmp/0.png")


def test_update_group_replaces_fields_and_skips_unknown_members(github_state):
    store.update_group(github_state, 0, "Work", [0, 42], "/icons/work.png", True)
    g = store.get_group(github_state, 0)
    assert (g.name, g.bookmark_ids, g.icon_path, g.tint_icon) == ("Work", [0], "/icons/work.png", True)


def test_update_unknown_ids_raise(github_state):
    with pytest.raises(EntityNotFoundError):
        store.update_bookmark(github_state, 5, "x", "y", None)
    with pytest.raises(EntityNotFoundError):
        store.update_group(github_state, 5, "x", [], None, False)


def test_group_bookmarks_follow_membership_order():
    state = StoreState()
    a = store.add_bookmark(state, "a", "https://a.example")
    b = store.add_bookmark(state, "b", "https://b.example")
    g = store.add_group(state, "g", [b.id, a.id])
    assert [x.name for x in store.group_bookmarks(state, g)] == ["b", "a"]


def test_save_sorts_by_id_and_creates_parent_dir(tmp_path: Path):
    p = tmp_path / "deep" / "dir" / "bookmarks.yml"
    state = StoreState(
        bookmarks=[new_bookmark(2, "two", "https://2"), new_bookmark(0, "zero", "https://0")],
        groups=[new_group(1, "g1"), new_group(0, "g0")],
    )
    store.save(p, state)

    loaded = store.load(p)
    assert [b.id for b in loaded.bookmarks] == [0, 2]
    assert [g.id for g in loaded.groups] == [0, 1]
    assert list(p.parent.iterdir()) == [p]


def test_round_trip_keeps_optional_fields(tmp_path: Path):
    p = tmp_path / "bookmarks.yml"
    state = StoreState(
        bookmarks=[
            new_bookmark(0, "GitHub", "https://github.com", icon_path="/c/favicons/0.png"),
            new_bookmark(1, "2024", "https://yes.example"),
        ],
        groups=[new_group(0, "Dev", [1, 0], icon_path="/icons/dev.png", tint_icon=True)],
    )
    store.save(p, state)
    assert store.load(p) == state


def test_save_of_fresh_load_is_byte_identical(tmp_path: Path, github_state):
    p = tmp_path / "bookmarks.yml"
    store.save(p, github_state)
    first = p.read_bytes()

    store.save(p, store.load(p))
    assert p.read_bytes() == first


def test_invalid_yaml_is_corrupt_not_empty(tmp_path: Path):
    p = tmp_path / "bookmarks.yml"
    p.write_text("bookmarks: [unclosed\n", encoding="utf-8")
    with pytest.raises(StoreCorruptError):
        store.load(p)


@pytest.mark.parametrize(
    "text",
    [
        "- just\n- a list\n",
        "bookmarks:\n- {id: 0, name: a}\n",
        "bookmarks:\n- {id: -1, name: a, url: b}\n",
        "groups: 12\n",
    ],
)
def test_wrong_shape_is_corrupt(tmp_path: Path, text: str):
    p = tmp_path / "bookmarks.yml"
    p.write_text(text, encoding="utf-8")
    with pytest.raises(StoreCorruptError):
        store.load(p)


def test_duplicate_ids_are_corrupt(tmp_path: Path):
    p = tmp_path / "bookmarks.yml"
    p.write_text(
        "bookmarks:\n- {id: 0, name: a, url: x}\n- {id: 0, name: b, url: y}\n",
        encoding="utf-8",
    )
    with pytest.raises(StoreCorruptError):
        store.load(p)


def test_dangling_group_members_are_dropped_on_load(tmp_path: Path):
    p = tmp_path / "bookmarks.yml"
    p.write_text(
        "bookmarks:\n- {id: 0, name: a, url: x}\ngroups:\n- {id: 0, name: g, bookmark_ids: [3, 0]}\n",
        encoding="utf-8",
    )
    state = store.load(p)
    assert state.groups[0].bookmark_ids == [0]
    assert state.groups[0].tint_icon is False
