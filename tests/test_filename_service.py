import asyncio

import pytest

from landrop.api.upload.services import filename_service
from landrop.api.upload.services.filename_service import FALLBACK_NAME, claim, resolve, safe_name, split_name


@pytest.mark.parametrize(
    "name, expected",
    [
        ("report.pdf", ("report", "pdf")),
        ("archive.tar.gz", ("archive.tar", "gz")),
        ("README", ("README", "")),
        (".bashrc", ("", "bashrc")),
        ("trailing.", ("trailing", "")),
    ],
)
def test_split_name_at_last_dot(name, expected):
    assert split_name(name) == expected


@pytest.mark.parametrize("requested", [None, "", ".", "..", "dir/", "  "])
def test_safe_name_falls_back(requested):
    assert safe_name(requested) == FALLBACK_NAME


@pytest.mark.parametrize(
    "requested, expected",
    [
        ("../../etc/passwd", "passwd"),
        ("C:\\Users\\me\\photo.jpg", "photo.jpg"),
        ("nested/dir/notes.txt", "notes.txt"),
        ("ok.txt", "ok.txt"),
    ],
)
def test_safe_name_keeps_only_last_component(requested, expected):
    assert safe_name(requested) == expected


def test_resolve_uses_bare_name_when_free(tmp_path):
    assert resolve(tmp_path, "a.txt") == tmp_path / "a.txt"


def test_resolve_picks_smallest_free_suffix(tmp_path):
    for name in ("a.txt", "a_1.txt", "a_3.txt"):
        (tmp_path / name).write_bytes(b"x")

    target = resolve(tmp_path, "a.txt")

    assert target == tmp_path / "a_2.txt"
    assert not target.exists()


def test_resolve_without_extension(tmp_path):
    (tmp_path / "Makefile").write_bytes(b"x")
    assert resolve(tmp_path, "Makefile") == tmp_path / "Makefile_1"


def test_resolve_multi_dot_name(tmp_path):
    (tmp_path / "archive.tar.gz").write_bytes(b"x")
    assert resolve(tmp_path, "archive.tar.gz") == tmp_path / "archive.tar_1.gz"


def test_resolve_dotfile(tmp_path):
    (tmp_path / ".env").write_bytes(b"x")
    assert resolve(tmp_path, ".env") == tmp_path / "_1.env"


def test_resolve_missing_name_uses_fallback(tmp_path):
    assert resolve(tmp_path, None) == tmp_path / FALLBACK_NAME


async def test_claim_creates_file_exclusively(tmp_path):
    path, handle = await claim(tmp_path, "a.txt")
    await handle.write(b"data")
    await handle.close()

    assert path == tmp_path / "a.txt"
    assert path.read_bytes() == b"data"


async def test_claim_skips_names_taken_after_probe(tmp_path, monkeypatch):
    probed = resolve(tmp_path, "a.txt")

    real_candidates = filename_service.candidates

    def racing_candidates(directory, name):
        # another writer grabs the bare name right before we open it
        probed.write_bytes(b"other")
        return real_candidates(directory, name)

    monkeypatch.setattr(filename_service, "candidates", racing_candidates)
    path, handle = await claim(tmp_path, "a.txt")
    await handle.close()

    assert path == tmp_path / "a_1.txt"
    assert probed.read_bytes() == b"other"


async def test_concurrent_claims_get_distinct_paths(tmp_path):
    results = await asyncio.gather(*(claim(tmp_path, "same.bin") for _ in range(5)))
    for _, handle in results:
        await handle.close()

    paths = {path.name for path, _ in results}
    assert paths == {"same.bin", "same_1.bin", "same_2.bin", "same_3.bin", "same_4.bin"}


async def test_claim_recreates_missing_directory(tmp_path):
    directory = tmp_path / "gone" / "deeper"
    path, handle = await claim(directory, "a.txt")
    await handle.close()
    assert path.parent == directory
    assert path.exists()
