"""Loading word lists used to seed study collections."""

from pathlib import Path

import yaml  # type: ignore
import yaml.error


class WordListError(ValueError):
    """Raised when a word-list file cannot be parsed."""


def parse_word_list(text: str) -> list[str]:
    """
    Parse a YAML word list into word IDs.

    Accepted shapes:
        - [w1, w2]
        - [{id: w1}, {id: w2, word: ...}]
        - {words: [...]} with either of the above

    Duplicates are dropped, first occurrence wins.
    """
    # Fix tabs (common user error)
    if "\t" in text:
        text = text.replace("\t", "  ")

    try:
        data = yaml.safe_load(text) or []
    except yaml.error.YAMLError as e:
        raise WordListError(f"Invalid YAML: {e}") from e

    if isinstance(data, dict):
        data = data.get("words", [])
    if not isinstance(data, list):
        raise WordListError("Expected a list of words or a 'words:' list")

    ids: list[str] = []
    for i, item in enumerate(data):
        if isinstance(item, dict):
            word_id = item.get("id") or item.get("word")
        else:
            word_id = item
        if word_id is None or str(word_id).strip() == "":
            raise WordListError(f"Entry {i} has no id")
        ids.append(str(word_id).strip())

    return list(dict.fromkeys(ids))


def load_word_list(path: Path) -> list[str]:
    return parse_word_list(Path(path).read_text(encoding="utf-8"))
