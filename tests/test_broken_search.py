from pathlib import Path

from m8_sample_manager.broken_service import BrokenSearch
from m8_sample_manager.errors import DecodeFailure
from m8_sample_manager.run_log import RunLog, quiet_log


def test_reports_missing_references_grouped_by_sample(tmp_path: Path, make_song, write_wav, codec):
    root = tmp_path / "backup"
    write_wav(root / "Samples" / "ok.wav")
    write_wav(root / "Songs" / "local.wav")
    broken = make_song(
        root / "Songs" / "broken.m8s",
        {
            0: ("OK", "/Samples/ok.wav"),
            1: ("GONE", "/Samples/gone.wav"),
            2: ("LOCAL", "local.wav"),
            4: ("GONE2", "/Samples/gone.wav"),
            6: ("EMPTY", ""),
        },
    )
    make_song(root / "Songs" / "fine.m8s", {0: ("OK", "/Samples/ok.wav")})

    lines = []
    report = BrokenSearch(codec, RunLog(log_to_console=False, log_callback=lines.append)).find_broken(root)

    assert report.error is None
    assert report.songs_scanned == 2
    assert len(report.broken) == 1
    assert report.broken[0].song_path == broken
    assert report.broken[0].missing == {"/Samples/gone.wav": [1, 4]}
    assert lines == [
        f"== Broken song {broken}",
        " * '/Samples/gone.wav' in instruments [1, 4]",
    ]


def test_unreadable_songs_are_collected(tmp_path: Path, make_song, codec):
    make_song(tmp_path / "a.m8s", {0: ("X", "/missing.wav")})
    (tmp_path / "b.m8s").write_bytes(b"not json")
    report = BrokenSearch(codec, quiet_log()).find_broken(tmp_path)
    assert isinstance(report.error, DecodeFailure)
    assert len(report.broken) == 1
