from __future__ import annotations

from planfirst.planning.rules import (
    ACTION_VERB_RULE,
    BARE_PATH_RULE,
    FILES_MENTIONED_RULE,
    LABELLED_PATH_RULE,
    TASK_PATH_RULES,
    collect_paths,
)


def test_action_verb_rule_requires_backticked_path_after_verb() -> None:
    text = "Create `src/app.py` and then update `docs/usage.md`. Mention `notes.txt` too."

    assert list(ACTION_VERB_RULE.find(text)) == ["src/app.py", "docs/usage.md"]


def test_action_verb_rule_ignores_long_extensions() -> None:
    assert list(ACTION_VERB_RULE.find("Create `schema.graphql`")) == []


def test_labelled_path_rule_matches_file_and_path_labels() -> None:
    text = "File: `src/a.py`\npath:`src/b.ts`\nFilename: `src/c.py`"

    assert list(LABELLED_PATH_RULE.find(text)) == ["src/a.py", "src/b.ts"]


def test_bare_path_rule_rejects_dots_and_spaces_inside_path() -> None:
    text = "`src/app.py` `pkg/v1.2/mod.py` `my file.py` `README`"

    assert list(BARE_PATH_RULE.find(text)) == ["src/app.py"]


def test_files_mentioned_rule_admits_dotted_directories() -> None:
    text = "`pkg/v1.2/mod.py` and `src/app.py`"

    assert list(FILES_MENTIONED_RULE.find(text)) == ["pkg/v1.2/mod.py", "src/app.py"]


def test_collect_paths_orders_by_rule_priority_then_position() -> None:
    text = "See `tests/test_x.py`. File: `src/b.py`. Modify `src/a.py`."

    assert collect_paths(text, TASK_PATH_RULES) == ["src/a.py", "src/b.py", "tests/test_x.py"]


def test_collect_paths_deduplicates_repeated_mentions() -> None:
    text = "Create `src/a.py`. Later, `src/a.py` gets tests. File: `src/a.py`"

    assert collect_paths(text) == ["src/a.py"]


def test_collect_paths_returns_empty_for_plain_prose() -> None:
    assert collect_paths("Refactor the login flow and add tests.") == []
