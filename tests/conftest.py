import sys
from pathlib import Path

import pytest

from repo_root import REPO_ROOT

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def catalog(tmp_path):
    from assetdex_backend.features.catalog import AssetCatalog

    cat = AssetCatalog(str(tmp_path / "catalog.db"))
    assert cat.store.available, cat.get_error()
    try:
        yield cat
    finally:
        cat.close()


@pytest.fixture
def store(tmp_path):
    from assetdex_backend.features.catalog import CatalogStore

    st = CatalogStore(str(tmp_path / "store.db"))
    opened = st.initialize()
    assert opened.ok, opened.error
    try:
        yield st
    finally:
        st.close()


@pytest.fixture
def make_tree(tmp_path):
    """Create files from a {relative_path: content} mapping; `None` makes a directory."""

    def _make(layout: dict, root_name: str = "library") -> Path:
        root = tmp_path / root_name
        root.mkdir(parents=True, exist_ok=True)
        for rel, content in layout.items():
            target = root / rel
            if content is None:
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                target.write_bytes(content)
            else:
                target.write_text(content, encoding="utf-8")
        return root

    return _make
