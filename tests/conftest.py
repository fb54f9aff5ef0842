import pytest


@pytest.fixture
def catalog_file(tmp_path):
    """Write lines to a UTF-8 catalog file and return its path."""
    def _write(lines, name="catalog.txt", encoding="utf-8"):
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding=encoding)
        return path
    return _write
