from conftest import make_folder
from services.vault_explorer.PathResolver import Breadcrumb, build_breadcrumbs, build_path


def _folders(*folders):
    return {folder.id: folder for folder in folders}


def test_root_has_empty_path():
    assert build_path(None, {}) == []


def test_path_walks_up_to_root():
    folders = _folders(
        make_folder("f1", "Legal"),
        make_folder("f2", "Contracts", parent_id="f1"),
        make_folder("f3", "2024", parent_id="f2"),
    )
    assert build_path("f3", folders) == ["f1", "f2", "f3"]


def test_unknown_folder_yields_itself():
    assert build_path("ghost", {}) == ["ghost"]


def test_missing_parent_ends_the_path():
    folders = _folders(make_folder("f2", parent_id="gone"))
    assert build_path("f2", folders) == ["gone", "f2"]


def test_cyclic_parents_are_truncated():
    folders = _folders(
        make_folder("a", parent_id="b"),
        make_folder("b", parent_id="a"),
    )
    assert build_path("a", folders) == ["b", "a"]


def test_self_parent_terminates():
    folders = _folders(make_folder("a", parent_id="a"))
    assert build_path("a", folders) == ["a"]


def test_breadcrumbs_start_at_root_label():
    folders = _folders(
        make_folder("f1", "Legal"),
        make_folder("f2", "Contracts", parent_id="f1"),
    )
    assert build_breadcrumbs("f2", folders, root_label="Vault") == [
        Breadcrumb(id=None, name="Vault"),
        Breadcrumb(id="f1", name="Legal"),
        Breadcrumb(id="f2", name="Contracts"),
    ]


def test_breadcrumbs_show_id_for_missing_folder():
    crumbs = build_breadcrumbs("ghost", {})
    assert [c.name for c in crumbs] == ["Primary Vault", "ghost"]
