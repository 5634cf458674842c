import json
import zipfile

import pytest

from voicebank.errors import ArchiveError, ConfigurationError, DetectionError
from voicebank.installer import InstallState, VoicebankInstaller
from voicebank.paths import hash_path, hash_segment
from voicebank.router import Route, classify

OTO = "a.wav=a,10,20,30,40,50\nbroken line\nsub/b.wav=b,1,2,3,4,5\n"
CHARACTER = "name=Teto\nimage=icon.bmp\nauthor=twindrill\nweb=http://example.com\n"
PREFIX = "C4 _C4\nC5 _C5\nC4 _low\n"


def _make_archive(path, entries):
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in entries:
            zf.writestr(name, data)
    return path


@pytest.fixture
def archive(tmp_path):
    return _make_archive(tmp_path / "teto.zip", [
        ("Teto/", b""),
        ("Teto/oto.ini", OTO),
        ("Teto/character.txt", CHARACTER),
        ("Teto/prefix.map", PREFIX),
        ("Teto/icon.bmp", b"BM-image"),
        ("Teto/a.wav", b"RIFF-a"),
        ("Teto/a_wav.frq", b"FREQ-a"),
        ("Teto/sub/b.wav", b"RIFF-b"),
        ("Teto/readme.txt", b"ignored"),
    ])


@pytest.fixture
def short_root(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return "Singers"


def test_classify_rules_in_priority_order():
    assert classify("Teto/oto.ini").route == Route.PARSE
    assert classify("Teto/character.txt").match == "character.txt"
    assert classify("Teto/icon.jpg").route == Route.COPY
    assert classify("Teto/a_wav.frq").match == "_wav.frq"
    assert classify("Teto/a.wav").route == Route.HASH
    assert classify("Teto/readme.txt").route == Route.DROP
    assert classify("Teto/A.WAV").route == Route.DROP


def test_root_of_80_ascii_chars_is_accepted(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    installer = VoicebankInstaller("r" * 80)
    assert installer.state == InstallState.IDLE
    assert (tmp_path / ("r" * 80)).is_dir()


def test_root_of_81_chars_is_rejected(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(ConfigurationError):
        VoicebankInstaller("r" * 81)
    assert not (tmp_path / ("r" * 81)).exists()


def test_non_ascii_root_is_rejected(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(ConfigurationError):
        VoicebankInstaller("voicebänks")


def test_install_writes_hashed_tree(archive, short_root, tmp_path):
    report = VoicebankInstaller(short_root).install(archive)
    root = tmp_path / short_root
    teto = hash_path("Teto")

    assert report.encoding == "ascii"
    assert report.total_entries == 9
    assert (report.parsed, report.copied, report.hashed, report.dropped) == (3, 1, 3, 1)
    assert report.skipped_lines == 1

    oto = json.loads((root / teto / "_oto.json").read_text(encoding="utf-8"))
    assert oto["original_file"] == "Teto/oto.ini"
    assert oto["file"] == f"{teto}/_oto.json"
    assert [o["name"] for o in oto["otos"]] == ["a", "b"]
    assert oto["otos"][0]["wav"] == hash_segment("a") + ".wav"
    assert oto["otos"][1]["wav"] == hash_path("sub/b") + ".wav"

    voicebank = json.loads((root / teto / "_voicebank.json").read_text(encoding="utf-8"))
    assert voicebank["name"] == "Teto"
    assert voicebank["image"] == "icon.bmp"
    assert voicebank["original_file"] == "Teto/character.txt"

    prefix = json.loads((root / teto / "_prefix_map.json").read_text(encoding="utf-8"))
    assert prefix["map"] == {"C4": "_low", "C5": "_C5"}

    assert (root / teto / "icon.bmp").read_bytes() == b"BM-image"
    assert (root / f"{hash_path('Teto/a')}.wav").read_bytes() == b"RIFF-a"
    assert (root / f"{hash_path('Teto/a')}_wav.frq").read_bytes() == b"FREQ-a"
    assert (root / f"{hash_path('Teto/sub/b')}.wav").read_bytes() == b"RIFF-b"
    assert not list(root.rglob("readme.txt"))


def test_oto_wave_refs_resolve_to_copied_audio(archive, short_root, tmp_path):
    VoicebankInstaller(short_root).install(archive)
    oto_dir = tmp_path / short_root / hash_path("Teto")
    oto = json.loads((oto_dir / "_oto.json").read_text(encoding="utf-8"))
    for entry in oto["otos"]:
        assert (oto_dir / entry["wav"]).is_file()


def test_missing_optional_fields_are_left_out(tmp_path, short_root):
    path = _make_archive(tmp_path / "bare.zip", [("character.txt", "name=Bare\n")])
    VoicebankInstaller(short_root).install(path)
    record = tmp_path / short_root / hash_path("") / "_voicebank.json"
    data = json.loads(record.read_text(encoding="utf-8"))
    assert data == {"original_file": "character.txt", "file": f"{hash_path('')}/_voicebank.json", "name": "Bare"}


def test_progress_is_monotonic_and_hits_100_once(archive, short_root):
    calls = []
    installer = VoicebankInstaller(short_root, progress=lambda pct, label: calls.append((pct, label)))
    installer.install(archive)

    percents = [pct for pct, _ in calls]
    assert calls[0] == (0, "Analyzing archive...")
    assert len(calls) == 1 + 9
    assert percents == sorted(percents)
    assert percents.count(100) == 1
    assert calls[-1] == (100, "Teto/readme.txt")
    assert installer.state == InstallState.DONE


def test_reinstall_overwrites_records(archive, short_root, tmp_path):
    installer = VoicebankInstaller(short_root)
    installer.install(archive)
    report = installer.install(archive)
    assert report.parsed == 3
    assert (tmp_path / short_root / hash_path("Teto") / "_oto.json").is_file()


def test_empty_archive_fails_detection(tmp_path, short_root):
    path = _make_archive(tmp_path / "empty.zip", [])
    installer = VoicebankInstaller(short_root)
    with pytest.raises(DetectionError):
        installer.install(path)
    assert installer.state == InstallState.FAILED


def test_missing_archive_is_an_os_error(tmp_path, short_root):
    installer = VoicebankInstaller(short_root)
    with pytest.raises(OSError):
        installer.install(tmp_path / "nope.zip")
    with pytest.raises(ArchiveError):
        installer.install(tmp_path / "nope.zip")
    assert installer.state == InstallState.FAILED


def test_corrupt_entry_is_reported_as_archive_error(tmp_path, short_root):
    path = tmp_path / "corrupt.zip"
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_STORED) as zf:
        zf.writestr("Teto/character.txt", "name=Teto\n")
        zf.writestr("Teto/a.wav", b"RIFF-payload-a")
    raw = bytearray(path.read_bytes())
    raw[raw.index(b"RIFF-payload-a") + 5] ^= 0xFF
    path.write_bytes(bytes(raw))

    installer = VoicebankInstaller(short_root)
    with pytest.raises(ArchiveError) as excinfo:
        installer.install(path)
    assert isinstance(excinfo.value, OSError)
    assert "Teto/a.wav" in str(excinfo.value)
    assert installer.state == InstallState.FAILED
    # entries before the failure stay on disk
    assert (tmp_path / short_root / hash_path("Teto") / "_voicebank.json").is_file()


HIRAGANA = "あいうえおかきくけこさしすせそたちつてとなにぬねのはひふへほまみむめも"


def _make_cp932_archive(path, monkeypatch, entries):
    # Names are written as raw cp932 bytes without the UTF-8 flag, as legacy zippers do.
    with monkeypatch.context() as m:
        m.setattr(
            zipfile.ZipInfo,
            "_encodeFilenameFlags",
            lambda self: (self.filename.encode("cp932"), self.flag_bits & ~0x800),
        )
        with zipfile.ZipFile(path, "w") as zf:
            for name, data in entries:
                zf.writestr(name, data)
    return path


def test_legacy_cp932_archive_end_to_end(tmp_path, short_root, monkeypatch):
    oto_lines = [f"{ch}.wav={ch},{i},20,30,40,50" for i, ch in enumerate(HIRAGANA)]
    entries = [
        ("重音テト/oto.ini", "\r\n".join(oto_lines).encode("cp932")),
        ("重音テト/character.txt", "name=重音テト\r\nauthor=線対称\r\n".encode("cp932")),
    ]
    entries += [(f"重音テト/{ch}.wav", b"RIFF") for ch in HIRAGANA]
    path = _make_cp932_archive(tmp_path / "teto.zip", monkeypatch, entries)

    with zipfile.ZipFile(path) as zf:
        assert not any(info.flag_bits & 0x800 for info in zf.infolist())

    report = VoicebankInstaller(short_root).install(path)
    assert "重音テト/oto.ini".encode("cp932").decode(report.encoding) == "重音テト/oto.ini"
    assert report.hashed == len(HIRAGANA)

    teto = tmp_path / short_root / hash_path("重音テト")
    voicebank = json.loads((teto / "_voicebank.json").read_text(encoding="utf-8"))
    assert voicebank["original_file"] == "重音テト/character.txt"
    assert voicebank["name"] == "重音テト"
    assert voicebank["author"] == "線対称"

    oto = json.loads((teto / "_oto.json").read_text(encoding="utf-8"))
    assert oto["original_file"] == "重音テト/oto.ini"
    assert [o["name"] for o in oto["otos"]] == list(HIRAGANA)
    assert oto["otos"][0]["original_wav"] == "あ.wav"
    for entry in oto["otos"]:
        assert (teto / entry["wav"]).is_file()


def test_audio_with_empty_stem_lands_inside_its_directory(tmp_path, short_root):
    path = _make_archive(tmp_path / "stem.zip", [("Teto/.wav", b"RIFF")])
    VoicebankInstaller(short_root).install(path)
    assert (tmp_path / short_root / hash_path("Teto") / f"{hash_segment('')}.wav").read_bytes() == b"RIFF"
