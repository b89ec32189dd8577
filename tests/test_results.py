from quickmarks import paths, store
from quickmarks.config import Settings
from quickmarks.model import StoreState
from quickmarks.results import (
    CopyText,
    InputField,
    OpenForm,
    OpenUrl,
    RunAction,
    ToggleField,
    build_results,
)
from quickmarks.router import route


def _results(state, text, **settings):
    return build_results(state, route(text), Settings(**settings))


def _fields(form: OpenForm):
    return {f.id: f for f in form.fields}


def test_empty_text_shows_exactly_the_create_items(github_state):
    items = _results(github_state, "")
    assert [i.label for i in items] == ["Create bookmark", "Create group"]
    assert all(isinstance(i.action, OpenForm) for i in items)
    assert [i.action.action for i in items] == ["create_bookmark", "create_group"]
    assert items[0].icon == paths.icon("plus")


def test_create_group_form_has_a_toggle_per_bookmark(github_state):
    store.add_bookmark(github_state, "Docs", "https://docs.python.org")
    create_group = _results(github_state, "")[1].action
    fields = _fields(create_group)
    assert isinstance(fields["name"], InputField)
    assert isinstance(fields["tint-icon"], ToggleField)
    assert [(f.id, f.title, f.checked) for f in create_group.fields if f.id.startswith("bookmark-")] == [
        ("bookmark-0", "GitHub", False),
        ("bookmark-1", "Docs", False),
    ]


def test_copy_url_hides_create_group(github_state):
    items = _results(github_state, "", copy_url=True)
    assert [i.label for i in items] == ["Create bookmark"]


def test_search_matches_bookmark_and_skips_unmatched_group(github_state):
    items = _results(github_state, "git")
    assert len(items) == 1
    assert items[0].label == "Open GitHub"
    assert items[0].action == OpenUrl("https://github.com")


def test_search_lists_groups_before_bookmarks(github_state):
    store.add_bookmark(github_state, "Devdocs", "https://devdocs.io")
    items = _results(github_state, "dev")
    assert [i.label for i in items] == ["Open Dev", "Open Devdocs"]
    assert items[0].action == RunAction("open_group", ["0"])
    assert items[0].icon == paths.icon("folder")


def test_search_matches_bookmark_url(github_state):
    items = _results(github_state, "ghcom")
    assert [i.label for i in items] == ["Open GitHub"]


def test_search_keeps_store_order_not_match_quality():
    state = StoreState()
    store.add_bookmark(state, "Graphite", "https://graphite.dev")
    store.add_bookmark(state, "Git", "https://git-scm.com")
    assert [i.label for i in _results(state, "git")] == ["Open Graphite", "Open Git"]


def test_copy_url_copies_and_hides_groups(github_state):
    items = _results(github_state, "d", copy_url=True)
    assert items == []

    items = _results(github_state, "git", copy_url=True)
    assert [i.label for i in items] == ["Copy https://github.com"]
    assert items[0].action == CopyText("https://github.com")


def test_custom_icons_are_used_untinted(github_state):
    github_state.bookmarks[0].icon_path = "/cache/favicons/0.png"
    github_state.groups[0].icon_path = "/icons/dev.png"
    github_state.groups[0].tint_icon = False
    group_item, bookmark_item = _results(github_state, "dev"), _results(github_state, "git")
    assert (group_item[0].icon, group_item[0].tint_icon) == ("/icons/dev.png", False)
    assert (bookmark_item[0].icon, bookmark_item[0].tint_icon) == ("/cache/favicons/0.png", False)


def test_edit_mode_prefills_forms(github_state):
    items = _results(github_state, "edit git")
    assert [i.label for i in items] == ["Edit GitHub"]
    form = items[0].action
    assert isinstance(form, OpenForm)
    assert (form.action, form.args) == ("edit_bookmark", ["0"])
    fields = _fields(form)
    assert fields["name"].value == "GitHub"
    assert fields["url"].value == "https://github.com"
    assert fields["use-icon"].checked is False


def test_edit_group_form_marks_current_members(github_state):
    store.add_bookmark(github_state, "Other", "https://other.example")
    items = _results(github_state, "e dev")
    assert [i.label for i in items] == ["Edit Dev group"]
    form = items[0].action
    assert (form.action, form.args) == ("edit_group", ["0"])
    fields = _fields(form)
    assert fields["name"].value == "Dev"
    assert fields["bookmark-0"].checked is True
    assert fields["bookmark-1"].checked is False


def test_keyword_without_text_lists_nothing(github_state):
    assert _results(github_state, "e ") == []
    assert _results(github_state, "delete ") == []


def test_delete_mode_targets_matching_entities(github_state):
    items = _results(github_state, "delete git")
    assert len(items) == 1
    assert items[0].label == "Delete GitHub"
    assert items[0].action == RunAction("delete_bookmark", ["0"])
    assert items[0].icon == paths.icon("trash")


def test_delete_mode_lists_groups_too(github_state):
    items = _results(github_state, "d dev")
    assert items[0].action == RunAction("delete_group", ["0"])


def test_word_starting_with_keyword_searches_normally(github_state):
    store.add_bookmark(github_state, "Football", "https://football.example")
    items = _results(github_state, "football")
    assert [i.label for i in items] == ["Open Football"]


def test_result_items_serialise_for_the_host(github_state):
    item = _results(github_state, "git")[0]
    assert item.to_dict() == {
        "label": "Open GitHub",
        "icon": paths.icon("bookmark"),
        "tint_icon": True,
        "action": {"type": "open_url", "url": "https://github.com"},
    }
