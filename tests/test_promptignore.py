from pathlib import Path

from promptfiles.core.discovery import discover
from promptfiles.core.discovery.models import DiscoveredFile
from promptfiles.core.discovery.promptignore import (
    PromptignoreResolver,
    directory_chain_within,
    find_root_for_path,
    prompt_home_dir,
)


def test_directory_chain_runs_from_root_to_parent():
    root = Path("/work/project")
    chain = directory_chain_within(root / "a" / "b" / "file.txt", root)
    assert chain == [root, root / "a", root / "a" / "b"]


def test_directory_chain_for_file_directly_under_root():
    root = Path("/work/project")
    assert directory_chain_within(root / "file.txt", root) == [root]


def test_directory_chain_outside_root_is_empty():
    assert directory_chain_within(Path("/elsewhere/file.txt"), Path("/work/project")) == []


def test_deepest_containing_root_wins():
    roots = [Path("/work"), Path("/work/project/sub"), Path("/work/project")]
    assert find_root_for_path(Path("/work/project/sub/x.py"), roots) == Path("/work/project/sub")
    assert find_root_for_path(Path("/work/other/x.py"), roots) == Path("/work")
    assert find_root_for_path(Path("/tmp/x.py"), roots) is None


def test_prompt_home_dir_uses_override(tmp_path, monkeypatch):
    monkeypatch.setenv("PROMPT_HOME_DIR", str(tmp_path))
    assert prompt_home_dir() == tmp_path.resolve()


def test_deeper_promptignore_overrides_shallower(make_tree):
    root = make_tree({
        ".promptignore": "*.gen.py\n",
        "pkg/.promptignore": "!api.gen.py\n",
        "pkg/deep/.promptignore": "api.gen.py\n",
        "pkg/api.gen.py": "",
        "pkg/deep/api.gen.py": "",
        "pkg/models.gen.py": "",
    }).resolve()
    resolver = PromptignoreResolver([root])

    assert not resolver.is_ignored(root / "pkg" / "api.gen.py")
    assert resolver.is_ignored(root / "pkg" / "deep" / "api.gen.py")
    assert resolver.is_ignored(root / "pkg" / "models.gen.py")


def test_local_rules_override_global_rules(tmp_path, monkeypatch):
    home = tmp_path / "home"
    project = home / "project"
    project.mkdir(parents=True)
    (home / ".promptignore").write_text("*.csv\n")
    (project / ".promptignore").write_text("!fixtures.csv\n")
    (project / "data.csv").write_text("a,b\n")
    (project / "fixtures.csv").write_text("c,d\n")
    monkeypatch.setenv("PROMPT_HOME_DIR", str(home))
    resolver = PromptignoreResolver([project.resolve()])

    assert resolver.is_ignored(project / "data.csv")
    assert not resolver.is_ignored(project / "fixtures.csv")


def test_file_without_owning_root_only_sees_global_rules(tmp_path):
    (tmp_path / ".promptignore").write_text("*.txt\n")
    resolver = PromptignoreResolver([])
    assert not resolver.is_ignored(tmp_path / "notes.txt")


def test_cache_holds_one_entry_per_directory(make_tree):
    root = make_tree({".promptignore": "*.tmp\n", "a.tmp": "", "b.tmp": "", "sub/c.txt": ""}).resolve()
    resolver = PromptignoreResolver([root])
    entries = [DiscoveredFile(root / name) for name in ("a.tmp", "b.tmp", "sub/c.txt")]

    resolver.apply(entries)

    assert [e.excluded for e in entries] == [True, True, False]
    assert set(resolver.directory_cache) == {root, root / "sub"}
    assert resolver.directory_cache[root / "sub"] is None


def test_apply_never_clears_existing_exclusion(make_tree):
    root = make_tree({".promptignore": "!keep.txt\n", "keep.txt": ""}).resolve()
    entries = [DiscoveredFile(root / "keep.txt", excluded=True)]

    PromptignoreResolver([root]).apply(entries)

    assert entries[0].excluded


def test_missing_file_falls_back_to_uncanonical_path(make_tree):
    root = make_tree({".promptignore": "gone.txt\n"}).resolve()
    resolver = PromptignoreResolver([root])
    assert resolver.is_ignored(root / "gone.txt")


def test_missing_home_directory_disables_global_rules(make_tree, monkeypatch):
    def no_home(cls):
        raise RuntimeError("Could not determine home directory.")

    monkeypatch.delenv("PROMPT_HOME_DIR", raising=False)
    monkeypatch.setattr(Path, "home", classmethod(no_home))
    root = make_tree({"a.txt": "a", ".promptignore": "a.txt\n"})

    assert prompt_home_dir() is None
    resolver = PromptignoreResolver([root.resolve()])
    assert resolver.global_matcher is None

    discovered = discover(root)
    assert [(entry.path.name, entry.excluded) for entry in discovered] == [
        (".promptignore", False),
        ("a.txt", True),
    ]
