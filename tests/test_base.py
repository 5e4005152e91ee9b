"""Tests for configuration and bundling."""

import io
import os

import pytest
import yaml

from wropack.base import Packer, classpath_resource
from wropack.exceptions import ConfigurationError, UnresolvableReferenceError


@pytest.fixture
def packer(tmp_path, webroot):
    return Packer(
        base_dir=str(tmp_path),
        root="webroot",
        output="build",
        prefix="/static/",
        assets={
            "css/all.css": ["/css/site.css", "/WEB-INF/css/admin.css"],
        },
    )


class TestConfig:
    def test_loads_yaml(self, tmp_path):
        config = tmp_path / "wropack.yaml"
        config.write_text(
            yaml.safe_dump(
                {
                    "output": "out",
                    "folder": "bundles",
                    "assets": {"all.css": ["/a.css"]},
                    "mimetypes": {"avif": "image/avif"},
                }
            )
        )
        packer = Packer(base_dir=str(tmp_path))
        assert packer.location == "out"
        assert packer.folder == "bundles"
        assert packer.assets == {"all.css": ["/a.css"]}
        assert packer.content_types.get("a.avif") == "image/avif"

    def test_options_override_yaml(self, tmp_path):
        (tmp_path / "wropack.yaml").write_text("output: out\nfolder: a\n")
        packer = Packer(base_dir=str(tmp_path), folder="b")
        assert packer.folder == "b"

    def test_missing_default_config(self, tmp_path):
        packer = Packer(base_dir=str(tmp_path))
        assert packer.ephemeral
        assert packer.assets == {}

    def test_missing_explicit_config(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Packer("missing.yaml", base_dir=str(tmp_path))

    def test_empty_config_file(self, tmp_path):
        (tmp_path / "wropack.yaml").write_text("")
        assert Packer(base_dir=str(tmp_path)).assets == {}

    def test_unknown_default_processor(self, tmp_path):
        with pytest.raises(ConfigurationError):
            Packer(base_dir=str(tmp_path), defaults={"css": ["nope"]})

    def test_dump_config(self, tmp_path):
        packer = Packer(
            base_dir=str(tmp_path),
            output="out",
            root="web",
            folder="",
            assets={"all.css": ["/a.css"]},
            register={"upper": "tests.procs.upper"},
        )
        assert packer.dump_config() == {
            "assets": {"all.css": ["/a.css"]},
            "output": "out",
            "root": "web",
            "folder": "",
            "register": {"upper": "tests.procs.upper"},
        }


class TestSplitSpec:
    def test_processors(self, packer):
        assert packer.split_spec("cssmin:rewrite:/css/a.css") == (
            ["cssmin", "rewrite"],
            "/css/a.css",
        )

    def test_classpath_location_is_kept(self, packer):
        assert packer.split_spec("classpath:pkg/a.css") == ([], "classpath:pkg/a.css")
        assert packer.split_spec("rewrite:classpath:pkg/a.css") == (
            ["rewrite"],
            "classpath:pkg/a.css",
        )


class TestFindInput:
    def test_context_and_protected(self, packer, webroot):
        assert packer.find_input("/css/site.css") == str(webroot / "css" / "site.css")
        assert packer.find_input("/WEB-INF/css/admin.css") == str(
            webroot / "WEB-INF" / "css" / "admin.css"
        )

    def test_missing(self, packer):
        assert packer.find_input("/css/missing.css") is None
        assert packer.find_input("css/site.css") is None
        assert packer.find_input("http://example.com/a.css") is None

    def test_classpath(self, packer, theme_package):
        resource = packer.find_input("classpath:wropack_theme/theme.css")
        assert resource is not None
        assert "theme" in resource.read_text()

    def test_classpath_resource_lookup(self, theme_package):
        assert classpath_resource("wropack_theme/img/dot.gif").read_bytes() == b"GIF89a"
        assert classpath_resource("classpath:wropack_theme/missing.css") is None
        assert classpath_resource("classpath:no_such_package_here/a.css") is None
        assert classpath_resource("classpath:a.css") is None


class TestContextFor:
    def test_defaults_to_request_folder(self, packer):
        context = packer.context_for("css/all.css")
        assert context.request_path == "/static/css/all.css"
        assert context.folder_path == "static/css"
        assert context.indirection_prefix() == "/static/css/wroResources?id="

    def test_configured_folder(self, tmp_path):
        packer = Packer(base_dir=str(tmp_path), folder="a/b/c")
        assert packer.context_for("all.css", "/x/all.css").folder_path == "a/b/c"


class TestPack:
    def test_pack_to(self, packer, webroot):
        output = io.BytesIO()
        packer.pack_to("css/all.css", output)
        text = output.getvalue().decode("utf-8")
        assert 'url("../../img/bg.png")' in text
        assert 'url("/img/logo.png")' in text
        assert (
            'url("/static/css/wroResources?id=/WEB-INF/css/icons/gear.png")' in text
        )
        assert packer.allow_list.contains("/WEB-INF/css/icons/gear.png")

    def test_pack_to_request_path(self, packer):
        output = io.BytesIO()
        packer.pack_to("css/all.css", output, request_path="/other/all.css")
        text = output.getvalue().decode("utf-8")
        assert "/other/wroResources?id=/WEB-INF/css/icons/gear.png" in text

    def test_pack_writes_output(self, packer, tmp_path):
        packer.pack()
        text = (tmp_path / "build" / "css" / "all.css").read_text()
        assert text.count("url(") == 3
        assert packer.allow_list.contains("/WEB-INF/css/icons/gear.png")

    def test_pack_skips_up_to_date(self, packer, tmp_path):
        packer.pack()
        bundle = tmp_path / "build" / "css" / "all.css"
        bundle.write_text("stale")
        packer.pack()
        assert bundle.read_text() == "stale"
        packer.pack(force=True)
        assert bundle.read_text() != "stale"

    def test_classpath_input(self, tmp_path, webroot, theme_package):
        packer = Packer(
            base_dir=str(tmp_path),
            root="webroot",
            assets={"all.css": ["classpath:wropack_theme/theme.css"]},
        )
        output = io.BytesIO()
        packer.pack_to("all.css", output)
        assert output.getvalue().decode("utf-8") == (
            '.theme { background: url("/wroResources?id=wropack_theme/img/dot.gif"); }\n'
        )
        assert packer.allow_list.contains("wropack_theme/img/dot.gif")

    def test_missing_input_is_skipped(self, tmp_path, webroot, caplog):
        packer = Packer(
            base_dir=str(tmp_path),
            root="webroot",
            assets={"all.css": ["/css/site.css", "/css/missing.css"]},
        )
        (name, inputs), = packer.iter_assets()
        assert [str(i) for i in inputs] == ["/css/site.css"]
        assert "Input not found: /css/missing.css" in caplog.text

    def test_unrecognized_input_location_fails(self, tmp_path, webroot):
        packer = Packer(base_dir=str(tmp_path), root="webroot", assets={})
        packer.find_input = lambda name: str(webroot / "css" / "site.css")
        packer.assets = {"all.css": ["site.css"]}
        with pytest.raises(ValueError):
            packer.pack_to("all.css", io.BytesIO())


class TestPackFailures:
    """Tests for builds that fail partway through a bundle."""

    @pytest.fixture
    def packer(self, tmp_path, webroot):
        packer = Packer(
            base_dir=str(tmp_path),
            root="webroot",
            output="build",
            assets={"all.css": ["/css/site.css", "site.css"]},
        )
        site = str(webroot / "css" / "site.css")
        # The second input has a location no url can be resolved against.
        packer.find_input = lambda name: site
        return packer

    def test_failed_pack_leaves_no_bundle(self, packer, tmp_path):
        with pytest.raises(UnresolvableReferenceError):
            packer.pack()
        assert not (tmp_path / "build" / "all.css").exists()
        assert list((tmp_path / "build").iterdir()) == []

    def test_failed_pack_is_retried(self, packer):
        with pytest.raises(UnresolvableReferenceError):
            packer.pack()
        with pytest.raises(UnresolvableReferenceError):
            packer.pack()

    def test_failed_pack_keeps_previous_bundle(self, packer, tmp_path):
        bundle = tmp_path / "build" / "all.css"
        bundle.parent.mkdir()
        bundle.write_text("previous")
        with pytest.raises(UnresolvableReferenceError):
            packer.pack(force=True)
        assert bundle.read_text() == "previous"


class TestDependencies:
    """Tests for {location: [globs]} inputs."""

    @pytest.fixture
    def packer(self, tmp_path, webroot):
        (webroot / "css" / "partials").mkdir()
        (webroot / "css" / "partials" / "colors.css").write_text("/* colors */\n")
        return Packer(
            base_dir=str(tmp_path),
            root="webroot",
            output="build",
            assets={"all.css": [{"/css/site.css": ["partials/*.css"]}]},
        )

    def test_depends_are_parsed(self, packer, webroot):
        (name, inputs), = packer.iter_assets()
        assert [str(i) for i in inputs] == ["/css/site.css"]
        assert list(inputs[0].check_paths()) == [
            str(webroot / "css" / "site.css"),
            str(webroot / "css" / "partials" / "colors.css"),
        ]

    def test_changed_dependency_triggers_repack(self, packer, tmp_path, webroot):
        packer.pack()
        bundle = tmp_path / "build" / "all.css"
        site = webroot / "css" / "site.css"
        colors = webroot / "css" / "partials" / "colors.css"
        bundle.write_text("stale")
        os.utime(site, (100, 100))
        os.utime(bundle, (200, 200))

        os.utime(colors, (150, 150))
        packer.pack()
        assert bundle.read_text() == "stale"

        os.utime(colors, (300, 300))
        packer.pack()
        assert bundle.read_text() != "stale"
        assert "url(" in bundle.read_text()
