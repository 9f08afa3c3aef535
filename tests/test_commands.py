from types import SimpleNamespace

import pytest
from docker.errors import DockerException

import dkci.commands.clean as clean
import dkci.commands.delete as delete
import dkci.commands.export as export
import dkci.commands.import_cmd as import_cmd
from dkci.core import BDFSConfig, CloudError, DkciError, NoCandidatesError


class FakeImage:
    def __init__(self, tags, os_name="linux", arch="amd64"):
        self.tags = [t for t in tags if t != "<none>:<none>"]
        self.short_id = "sha256:abc123"
        self.attrs = {"RepoTags": tags, "Os": os_name, "Architecture": arch}


class FakeImages:
    def __init__(self, images, broken=()):
        self._images = images
        self.broken = set(broken)
        self.loaded = []
        self.removed = []

    def list(self):
        return self._images

    def get(self, ref):
        if ref in self.broken:
            raise DockerException(f"no such image: {ref}")
        for img in self._images:
            if ref in img.attrs["RepoTags"]:
                return img
        raise DockerException(f"no such image: {ref}")

    def load(self, fh):
        self.loaded.append((fh.name, fh.read()))
        return [FakeImage([f"loaded/{len(self.loaded)}:latest"])]

    def remove(self, image, force=False, noprune=False):
        if image in self.broken:
            raise DockerException(f"conflict: unable to remove {image}")
        assert force is False and noprune is False
        self.removed.append(image)


class FakeAPI:
    def __init__(self, broken=()):
        self.broken = set(broken)

    def get_image(self, ref):
        if ref in self.broken:
            raise DockerException(f"save failed: {ref}")
        return iter([b"tar-", ref.encode()])


class FakeClient:
    def __init__(self, images, broken_save=(), broken=()):
        self.images = FakeImages(images, broken)
        self.api = FakeAPI(broken_save)


def make_client(**kw):
    return FakeClient(
        [
            FakeImage(["nginx:latest"]),
            FakeImage(["my/app:1.0", "my/app:latest"], arch="arm64"),
            FakeImage(["<none>:<none>"]),
        ],
        **kw,
    )


def pick_all(message, options):
    return ["All"] if "All" in options else list(options)


class FakeBDFS:
    def __init__(self, entries=(), files=None, list_error=False):
        self.entries = list(entries)
        self.files = files or {}
        self.list_error = list_error
        self.uploads = []
        self.downloads = []

    def upload_file(self, local, remote):
        self.uploads.append((remote, local.read_bytes()))
        return {"errno": 0}

    def list_files(self, path):
        if self.list_error:
            raise CloudError("Listing failed (errno -9)", errno=-9)
        return self.entries

    def get_file_info(self, path):
        return self.files[path]

    def download_file(self, remote, dest):
        self.downloads.append(remote)
        dest.write_bytes(b"payload:" + remote.encode())
        return dest


# --- export --------------------------------------------------------------


def test_export_all_images_to_directory(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr(export, "multi_select", pick_all)
    client = make_client()
    out = tmp_path / "out"

    assert export.export_images(client, out, "") == 0

    names = sorted(p.name for p in out.iterdir())
    assert names == [
        "my·app_1.0_linux_arm64.tar",
        "my·app_latest_linux_arm64.tar",
        "nginx_latest_linux_amd64.tar",
    ]
    assert (out / "nginx_latest_linux_amd64.tar").read_bytes() == b"tar-nginx:latest"
    stdout = capsys.readouterr().out
    assert "Found 3 tagged Docker image(s)" in stdout
    assert "[√] Successfully exported image nginx:latest" in stdout


def test_export_grep_filters_images(monkeypatch, tmp_path):
    offered = {}

    def fake_select(message, options):
        offered["options"] = list(options)
        return list(options)

    monkeypatch.setattr(export, "multi_select", fake_select)
    assert export.export_images(make_client(), tmp_path, "nginx") == 0
    assert offered["options"] == ["nginx:latest"]


def test_export_uninspectable_image_uses_unknown_platform(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr(export, "multi_select", lambda m, o: ["nginx:latest"])
    client = make_client(broken=["nginx:latest"])
    assert export.export_images(client, tmp_path, "") == 0
    assert (tmp_path / "nginx_latest_unknown_unknown.tar").exists()
    assert "Warning: Could not inspect image nginx:latest" in capsys.readouterr().err


def test_export_continues_after_failure(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr(export, "multi_select", pick_all)
    client = make_client(broken_save=["nginx:latest"])

    assert export.export_images(client, tmp_path, "") == 1

    names = sorted(p.name for p in tmp_path.iterdir())
    assert names == ["my·app_1.0_linux_arm64.tar", "my·app_latest_linux_arm64.tar"]
    out, err = capsys.readouterr()
    assert "[x] Failed to export image nginx:latest" in err
    assert "Exported 2/3 images" in out


def test_export_no_images(monkeypatch, tmp_path):
    client = FakeClient([FakeImage(["<none>:<none>"])])
    with pytest.raises(NoCandidatesError):
        export.export_images(client, tmp_path, "")


def test_export_to_cloud_uploads_and_removes_temp(monkeypatch, tmp_path):
    monkeypatch.setattr(export, "multi_select", lambda m, o: ["nginx:latest"])
    monkeypatch.setattr(export, "TEMP_DIR", tmp_path / "tmp")
    bdfs = FakeBDFS()

    assert export.export_images_to_cloud(make_client(), bdfs, "/images", "") == 0

    assert bdfs.uploads == [("/images/nginx_latest_linux_amd64.tar", b"tar-nginx:latest")]
    assert list((tmp_path / "tmp").iterdir()) == []


def test_export_to_cloud_failed_upload_removes_temp(monkeypatch, tmp_path, capsys):
    class FailingBDFS(FakeBDFS):
        def upload_file(self, local, remote):
            raise CloudError("Precreate failed (errno 2)", errno=2)

    monkeypatch.setattr(export, "multi_select", lambda m, o: ["nginx:latest"])
    monkeypatch.setattr(export, "TEMP_DIR", tmp_path / "tmp")

    assert export.export_images_to_cloud(make_client(), FailingBDFS(), "/", "") == 1
    assert list((tmp_path / "tmp").iterdir()) == []
    assert "Precreate failed" in capsys.readouterr().err


def test_export_target_selection(monkeypatch):
    monkeypatch.setattr(export, "resolve_config", lambda: BDFSConfig("i", "s", "t", "/default"))
    monkeypatch.setattr(export, "bdfs_config_available", lambda: False)

    args = SimpleNamespace(cloud=None, destination=None)
    assert export._export_target(args) == ("local", str(export.TEMP_DIR))
    args = SimpleNamespace(cloud=None, destination="/out")
    assert export._export_target(args) == ("local", "/out")
    args = SimpleNamespace(cloud="", destination=None)
    assert export._export_target(args) == ("cloud", "/default")
    args = SimpleNamespace(cloud="/explicit", destination=None)
    assert export._export_target(args) == ("cloud", "/explicit")

    monkeypatch.setattr(export, "bdfs_config_available", lambda: True)
    args = SimpleNamespace(cloud=None, destination=None)
    assert export._export_target(args) == ("cloud", "/default")
    args = SimpleNamespace(cloud=None, destination="/out")
    assert export._export_target(args) == ("local", "/out")


# --- import --------------------------------------------------------------


def _make_archives(root):
    (root / "sub").mkdir()
    (root / "a_latest_linux_amd64.tar").write_bytes(b"a")
    (root / "sub" / "alpine_3.19_linux_amd64.tar.gz").write_bytes(b"b")
    (root / "notes.txt").write_text("skip me")
    (root / "IMAGE.TAR").write_bytes(b"c")


def test_import_directory_all(monkeypatch, tmp_path, capsys):
    _make_archives(tmp_path)
    monkeypatch.setattr(import_cmd, "multi_select", pick_all)
    client = make_client()

    assert import_cmd.import_from_source(client, tmp_path, "") == 0

    loaded = [name.rsplit("/", 1)[1] for name, _ in client.images.loaded]
    assert loaded == ["IMAGE.TAR", "a_latest_linux_amd64.tar", "alpine_3.19_linux_amd64.tar.gz"]
    assert "[√] Successfully imported image from" in capsys.readouterr().out


def test_import_directory_grep_single_candidate(monkeypatch, tmp_path):
    _make_archives(tmp_path)
    offered = {}

    def fake_select(message, options):
        offered["options"] = list(options)
        return list(options)

    monkeypatch.setattr(import_cmd, "multi_select", fake_select)
    client = make_client()
    assert import_cmd.import_from_source(client, tmp_path, "alpine") == 0
    assert offered["options"] == ["sub/alpine_3.19_linux_amd64.tar.gz"]
    assert client.images.loaded[0][1] == b"b"


def test_import_directory_same_name_in_subdirectories(monkeypatch, tmp_path):
    for sub, data in (("x", b"X"), ("y", b"Y")):
        (tmp_path / sub).mkdir()
        (tmp_path / sub / "app.tar").write_bytes(data)
    offered = {}

    def fake_select(message, options):
        offered["options"] = list(options)
        return ["All"]

    monkeypatch.setattr(import_cmd, "multi_select", fake_select)
    client = make_client()
    assert import_cmd.import_from_source(client, tmp_path, "") == 0
    assert offered["options"] == ["All", "x/app.tar", "y/app.tar"]
    assert [data for _, data in client.images.loaded] == [b"X", b"Y"]


def test_import_directory_without_archives(tmp_path):
    (tmp_path / "readme.md").write_text("x")
    with pytest.raises(NoCandidatesError):
        import_cmd.import_from_source(make_client(), tmp_path, "")


def test_import_single_file(tmp_path):
    archive = tmp_path / "x.tar"
    archive.write_bytes(b"data")
    client = make_client()
    assert import_cmd.import_from_source(client, archive) == 0
    assert client.images.loaded == [(str(archive), b"data")]


def test_import_load_failure_aborts(tmp_path):
    class BrokenImages(FakeImages):
        def load(self, fh):
            raise DockerException("invalid tar header")

    client = make_client()
    client.images = BrokenImages([])
    archive = tmp_path / "x.tar"
    archive.write_bytes(b"junk")
    with pytest.raises(DkciError, match="invalid tar header"):
        import_cmd.import_file(client, archive)


def test_import_from_cloud_directory(monkeypatch, tmp_path):
    entries = [
        {"path": "/img/a_latest.tar", "isdir": 0, "fs_id": 1},
        {"path": "/img/b_latest.tgz", "isdir": 0, "fs_id": 2},
        {"path": "/img/readme.md", "isdir": 0, "fs_id": 3},
        {"path": "/img/old.tar", "isdir": 1, "fs_id": 4},
    ]
    bdfs = FakeBDFS(entries)
    offered = {}

    def fake_select(message, options):
        offered["options"] = list(options)
        return ["All"]

    monkeypatch.setattr(import_cmd, "multi_select", fake_select)
    monkeypatch.setattr(import_cmd, "TEMP_DIR", tmp_path)
    client = make_client()

    assert import_cmd.import_from_cloud(client, bdfs, "/img", "") == 0

    assert offered["options"] == ["All", "a_latest.tar", "b_latest.tgz"]
    assert bdfs.downloads == ["/img/a_latest.tar", "/img/b_latest.tgz"]
    assert [data for _, data in client.images.loaded] == [b"payload:/img/a_latest.tar", b"payload:/img/b_latest.tgz"]
    assert list(tmp_path.iterdir()) == []


def test_import_from_cloud_single_archive(monkeypatch, tmp_path):
    bdfs = FakeBDFS(files={"/img/a.tar": {"path": "/img/a.tar", "isdir": 0, "fs_id": 1}})
    monkeypatch.setattr(import_cmd, "TEMP_DIR", tmp_path)
    client = make_client()
    assert import_cmd.import_from_cloud(client, bdfs, "/img/a.tar", "") == 0
    assert bdfs.downloads == ["/img/a.tar"]


def test_import_from_cloud_non_archive_file(monkeypatch, tmp_path):
    bdfs = FakeBDFS(files={"/img/readme": {"path": "/img/readme", "isdir": 0}}, list_error=True)
    with pytest.raises(DkciError, match="is not a .tar file"):
        import_cmd.import_from_cloud(make_client(), bdfs, "/img/readme", "")


def test_import_from_cloud_empty_directory():
    bdfs = FakeBDFS([{"path": "/img/readme.md", "isdir": 0}])
    with pytest.raises(NoCandidatesError):
        import_cmd.import_from_cloud(make_client(), bdfs, "/img", "")


# --- delete --------------------------------------------------------------


def test_delete_continues_on_error(monkeypatch, capsys):
    monkeypatch.setattr(delete, "multi_select", pick_all)
    client = make_client(broken=["my/app:1.0"])

    assert delete.delete_images(client, "") == 1

    assert client.images.removed == ["nginx:latest", "my/app:latest"]
    out, err = capsys.readouterr()
    assert "[√] Successfully deleted image nginx:latest" in out
    assert "[x] Failed to delete image my/app:1.0" in err


def test_delete_empty_selection(monkeypatch):
    from dkci.core import EmptySelectionError

    monkeypatch.setattr(delete, "multi_select", lambda m, o: [])
    with pytest.raises(EmptySelectionError):
        delete.delete_images(make_client(), "")


# --- clean ---------------------------------------------------------------


def test_clean_deletes_after_confirmation(monkeypatch, tmp_path, capsys):
    (tmp_path / "a.tar").write_bytes(b"1234")
    (tmp_path / "partial").mkdir()
    (tmp_path / "partial" / "x").write_text("x")
    monkeypatch.setattr(clean, "TEMP_DIR", tmp_path)
    monkeypatch.setattr(clean, "confirm", lambda message, default=False: True)

    assert clean.cmd_clean(SimpleNamespace()) == 0
    assert list(tmp_path.iterdir()) == []
    assert "Deleted 2/2 file(s)" in capsys.readouterr().out


def test_clean_cancelled_keeps_files(monkeypatch, tmp_path):
    (tmp_path / "a.tar").write_bytes(b"1234")
    monkeypatch.setattr(clean, "TEMP_DIR", tmp_path)
    monkeypatch.setattr(clean, "confirm", lambda message, default=False: False)

    assert clean.cmd_clean(SimpleNamespace()) == 0
    assert (tmp_path / "a.tar").exists()


def test_clean_missing_directory(monkeypatch, tmp_path):
    monkeypatch.setattr(clean, "TEMP_DIR", tmp_path / "missing")
    with pytest.raises(DkciError, match="does not exist"):
        clean.cmd_clean(SimpleNamespace())
