"""
File helpers: text inputs with encoding fallback, orjson documents, safe names.
"""

import re
from pathlib import Path
from typing import Any, Union

import orjson


def read_text_auto(path: Union[str, Path]) -> str:
    """
    Read a plain-text input (resume, job description) trying common encodings.

    Args:
        path: Path to a text or markdown file

    Returns:
        File content

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    for encoding in ("utf-8", "utf-8-sig", "cp1252"):
        try:
            return path.read_text(encoding=encoding)
        except UnicodeDecodeError:
            continue

    # latin-1 maps every byte, so nothing is lost on the last resort
    return path.read_bytes().decode("latin-1")


def save_json(path: Union[str, Path], obj: Any) -> None:
    """
    Save an object as indented JSON, creating parent directories.

    The file is written next to its final location first and then moved into
    place, so a crash mid-write never leaves a half-written document.

    Examples:
        >>> save_json("data/contexts/alice_context.json", {"difficulty_level": 3})
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = path.with_name(path.name + ".tmp")
    with open(tmp_path, "wb") as f:
        f.write(orjson.dumps(obj, option=orjson.OPT_INDENT_2))
    tmp_path.replace(path)


def load_json(path: Union[str, Path]) -> Any:
    """
    Load JSON data from file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        orjson.JSONDecodeError: If the content is not valid JSON
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"JSON file not found: {path}")

    with open(path, "rb") as f:
        return orjson.loads(f.read())


def ensure_dir(path: Union[str, Path]) -> Path:
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def safe_filename(name: str, max_length: int = 255) -> str:
    """
    Convert a string to a safe file name by replacing problematic characters.

    Examples:
        >>> safe_filename("alice@example.com")
        'alice_example.com'
    """
    safe = re.sub(r'[<>:"/\\|?*]', "_", name)
    safe = re.sub(r"[^\w\-_\.]", "_", safe)
    safe = re.sub(r"_+", "_", safe)
    safe = safe.strip("_.")

    if len(safe) > max_length:
        safe = safe[:max_length].rstrip("_")

    return safe or "unnamed"
