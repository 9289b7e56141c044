# common/scripts/get_project_root.py
from pathlib import Path


def get_project_root() -> Path:
    """
    Directory that holds the ``common`` package (the checkout root).

    Walks up from this file until it leaves the package tree, i.e. the first
    parent without an ``__init__.py``.
    """
    current_path = Path(__file__).resolve().parent

    while current_path != current_path.parent:
        if not (current_path / "__init__.py").exists():
            return current_path
        current_path = current_path.parent

    return Path.cwd()


__all__ = ["get_project_root"]
