import json

import pytest

from scrobble_race.events import RawEvent
from scrobble_race.loaders import entry_to_event, load_events, load_scrobble_csv, load_spotify_history


def _entry(artist, ts="2021-03-04T05:06:07Z", uri="spotify:track:abc", offline=False, offline_timestamp=None):
    return {
        "ts": ts,
        "ms_played": 180000,
        "spotify_track_uri": uri,
        "master_metadata_track_name": "Song",
        "master_metadata_album_artist_name": artist,
        "master_metadata_album_album_name": "Album",
        "offline": offline,
        "offline_timestamp": offline_timestamp,
        "platform": "ios",
    }


def test_entry_to_event_skips_podcasts_and_prefers_offline_timestamp():
    assert entry_to_event(_entry("A", uri=None)) is None
    assert entry_to_event(_entry("A")) == RawEvent("A", "2021-03-04T05:06:07Z")
    assert entry_to_event(_entry("A", offline=True, offline_timestamp=1614834367000)) == RawEvent("A", 1614834367000)


def test_load_spotify_history_reads_audio_files_only(tmp_path):
    (tmp_path / "Streaming_History_Audio_2021_1.json").write_text(
        json.dumps([_entry("B"), _entry("A", uri=None)]), encoding="utf-8")
    (tmp_path / "Streaming_History_Audio_2020_0.json").write_text(
        json.dumps([_entry("A", ts="2020-01-01T00:00:00Z")]), encoding="utf-8")
    (tmp_path / "Streaming_History_Video_2021.json").write_text(
        json.dumps([_entry("Video")]), encoding="utf-8")
    (tmp_path / "Streaming_History_Audio_broken.json").write_text("{not json", encoding="utf-8")

    events = load_spotify_history(tmp_path)
    assert [e.entity_name for e in events] == ["A", "B"]


def test_load_scrobble_csv_with_header(tmp_path):
    path = tmp_path / "scrobbles.csv"
    path.write_text(
        "uts,utc_time,artist,artist_mbid,album,album_mbid,track,track_mbid\n"
        "1614834367,\"04 Mar 2021, 05:06\",Björk,,Homogenic,,Jóga,\n"
        "1614837967,\"04 Mar 2021, 06:06\",,,X,,Y,\n",
        encoding="utf-8")

    events = load_scrobble_csv(path)
    assert events == [RawEvent("Björk", "1614834367"), RawEvent("", "1614837967")]


def test_load_headerless_scrobble_csv(tmp_path):
    path = tmp_path / "export.csv"
    path.write_text("Portishead,Dummy,Roads,04 Mar 2021 05:06\n", encoding="utf-8")

    events = load_scrobble_csv(path, has_header=False)
    assert events == [RawEvent("Portishead", "04 Mar 2021 05:06")]


def test_explicit_columns_and_missing_columns(tmp_path):
    path = tmp_path / "plays.csv"
    path.write_text("who,when\nA,2020-01-01\n", encoding="utf-8")

    assert load_scrobble_csv(path, artist_column="who", timestamp_column="when") == [RawEvent("A", "2020-01-01")]
    with pytest.raises(ValueError):
        load_scrobble_csv(path)


def test_load_events_dispatch(tmp_path):
    csv_path = tmp_path / "plays.csv"
    csv_path.write_text("artist,date\nA,2020-01-01\n", encoding="utf-8")
    history = tmp_path / "history"
    history.mkdir()
    (history / "Streaming_History_Audio_2020.json").write_text(json.dumps([_entry("B")]), encoding="utf-8")

    assert load_events(csv_path) == [RawEvent("A", "2020-01-01")]
    assert load_events(history) == [RawEvent("B", "2021-03-04T05:06:07Z")]
    with pytest.raises(FileNotFoundError):
        load_events(tmp_path / "missing")


def test_history_files_that_are_not_lists_are_skipped(tmp_path):
    (tmp_path / "Streaming_History_Audio_2020.json").write_text(
        json.dumps({"ts": "2020-01-01T00:00:00Z"}), encoding="utf-8")
    (tmp_path / "Streaming_History_Audio_2021.json").write_text(json.dumps([_entry("A")]), encoding="utf-8")
    (tmp_path / "notes.txt").write_text("Audio", encoding="utf-8")

    assert load_spotify_history(tmp_path) == [RawEvent("A", "2021-03-04T05:06:07Z")]
