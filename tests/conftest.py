import pytest

from stencil.config import reset_defaults


@pytest.fixture(autouse=True)
def fresh_defaults():
    """Every test starts from built-in defaults and an empty cache."""
    reset_defaults()
    yield
    reset_defaults()


@pytest.fixture
def views(tmp_path):
    """A views directory with a few templates."""
    root = tmp_path / "views"
    (root / "sub").mkdir(parents=True)
    (root / "page.tpl").write_text("Hi <%= who %>")
    (root / "a.tpl").write_text("A[<%= include_file('./b.tpl') %>]")
    (root / "b.tpl").write_text("B<%= who %>")
    return root
