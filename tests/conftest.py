import sys

import pytest

from wropack.allowlist import AllowList
from wropack.rewriter import ImageUrlRewriter, RewriteContext


@pytest.fixture
def allow_list():
    return AllowList()


@pytest.fixture
def rewriter(allow_list):
    return ImageUrlRewriter(allow_list)


@pytest.fixture
def context():
    return RewriteContext(folder_path="", request_path="/app/wro/all.css")


@pytest.fixture
def webroot(tmp_path):
    """A context root with a public and a protected stylesheet."""
    root = tmp_path / "webroot"
    (root / "css").mkdir(parents=True)
    (root / "WEB-INF" / "css").mkdir(parents=True)
    (root / "css" / "site.css").write_text(
        'body { background: url("../img/bg.png"); }\n'
        ".logo { background: url(/img/logo.png); }\n"
    )
    (root / "WEB-INF" / "css" / "admin.css").write_text(
        ".admin { background: url('icons/gear.png'); }\n"
    )
    (root / "WEB-INF" / "css" / "icons").mkdir()
    (root / "WEB-INF" / "css" / "icons" / "gear.png").write_bytes(b"\x89PNG gear")
    return root


@pytest.fixture
def theme_package(tmp_path, monkeypatch):
    """An importable package carrying a stylesheet and an image as resources."""
    site = tmp_path / "site-packages"
    package = site / "wropack_theme"
    (package / "img").mkdir(parents=True)
    (package / "__init__.py").write_text("")
    (package / "theme.css").write_text(".theme { background: url(img/dot.gif); }\n")
    (package / "img" / "dot.gif").write_bytes(b"GIF89a")
    monkeypatch.syspath_prepend(str(site))
    monkeypatch.delitem(sys.modules, "wropack_theme", raising=False)
    return package
