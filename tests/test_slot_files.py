import logging

import pytest

from slotkeep.engine import file_crypto
from slotkeep.engine.models import SIGNATURE, SaveConfig
from slotkeep.engine.sections import DictSection
from slotkeep.engine.slot_files import SlotFileStore, SlotSerializationError, SlotWriteError


def _store(tmp_path, **overrides):
    config = SaveConfig(root=tmp_path / "saves", **overrides)
    return SlotFileStore(config)


def test_path_layout(tmp_path):
    store = _store(tmp_path, prefix="save", extension="dat")
    assert store.path(2) == tmp_path / "saves" / "save_2"
    assert store.path(2, "meta") == tmp_path / "saves" / "save_2" / "save_2_meta.dat"


def test_write_creates_folder_and_single_signed_line(tmp_path):
    store = _store(tmp_path)
    store.write(0, "meta", {"name": "Alice"})
    path = store.path(0, "meta")
    assert path.read_text(encoding="utf-8") == '{"name":"Alice"}' + SIGNATURE
    assert store.slot_exists(0)


def test_round_trip(tmp_path):
    store = _store(tmp_path)
    data = {"gold": 12, "items": ["key"], "pos": {"x": 1.5, "y": -2}, "note": "line1\nline2"}
    store.write(1, "game", data)
    result = store.read(1, "game")
    assert result.success
    assert result.data == data


def test_missing_file_is_not_an_error(tmp_path, caplog):
    caplog.set_level(logging.WARNING)
    store = _store(tmp_path)
    result = store.read(0, "meta")
    assert not result.success
    assert result.data == {}
    assert caplog.text == ""


def test_garbage_after_signature_is_discarded(tmp_path, caplog):
    caplog.set_level(logging.WARNING)
    store = _store(tmp_path)
    store.write(0, "game", {"gold": 5})
    path = store.path(0, "game")
    with path.open("a", encoding="utf-8") as f:
        f.write('{"gold": 999}\nmore trailing junk' * 50)

    result = store.read(0, "game")
    assert result.success
    assert result.data == {"gold": 5}
    assert "corrupt" in caplog.text


def test_non_utf8_bytes_after_signature_are_discarded(tmp_path, caplog):
    caplog.set_level(logging.WARNING)
    store = _store(tmp_path)
    store.write(0, "game", {"gold": 99})
    path = store.path(0, "game")
    with path.open("ab") as f:
        f.write(b"\xff\xfe\x00garbage")

    result = store.read(0, "game")
    assert result.success
    assert result.data == {"gold": 99}
    assert "discarding 10 bytes" in caplog.text


def test_read_or_create_keeps_data_followed_by_binary_junk(tmp_path):
    store = _store(tmp_path)
    store.write(0, "game", {"gold": 99})
    path = store.path(0, "game")
    with path.open("ab") as f:
        f.write(b"\xff\xfe\x00garbage")
    on_disk = path.read_bytes()

    data = store.read_or_create(0, DictSection("game", {"gold": 0}))
    assert data == {"gold": 99}
    assert path.read_bytes() == on_disk


def test_invalid_utf8_before_signature_fails(tmp_path, caplog):
    caplog.set_level(logging.WARNING)
    store = _store(tmp_path)
    path = store.path(0, "game")
    path.parent.mkdir(parents=True)
    path.write_bytes(b'{"gold":"\xff"}' + SIGNATURE.encode("utf-8"))

    assert not store.read(0, "game").success
    assert "not valid UTF-8" in caplog.text


def test_unserializable_data_raises_before_touching_disk(tmp_path):
    store = _store(tmp_path)
    with pytest.raises(SlotSerializationError):
        store.write(0, "game", {"items": {"a", "b"}})
    assert not store.slot_exists(0)


def test_missing_signature_still_parses(tmp_path, caplog):
    caplog.set_level(logging.WARNING)
    store = _store(tmp_path)
    path = store.path(0, "meta")
    path.parent.mkdir(parents=True)
    path.write_text('{"name": "Raw"}', encoding="utf-8")

    result = store.read(0, "meta")
    assert result.success
    assert result.data == {"name": "Raw"}
    assert "No signature found" in caplog.text


def test_embedded_newlines_are_stripped(tmp_path):
    store = _store(tmp_path)
    path = store.path(0, "meta")
    path.parent.mkdir(parents=True)
    path.write_bytes(('{"a":\r\n 1,\n"b":\r 2}' + SIGNATURE + "\n").encode("utf-8"))

    result = store.read(0, "meta")
    assert result.success
    assert result.data == {"a": 1, "b": 2}


def test_truncated_json_fails(tmp_path, caplog):
    caplog.set_level(logging.WARNING)
    store = _store(tmp_path)
    path = store.path(0, "game")
    path.parent.mkdir(parents=True)
    path.write_text('{"gold": 1, "ite', encoding="utf-8")

    result = store.read(0, "game")
    assert not result.success
    assert result.data == {}
    assert "JSON parse failed" in caplog.text


def test_non_object_json_fails(tmp_path):
    store = _store(tmp_path)
    path = store.path(0, "game")
    path.parent.mkdir(parents=True)
    path.write_text("[1, 2]" + SIGNATURE, encoding="utf-8")
    assert not store.read(0, "game").success


def test_read_or_create_writes_defaults_once(tmp_path):
    store = _store(tmp_path)
    section = DictSection("game", {"gold": 0})

    created = store.read_or_create(0, section)
    assert created == {"gold": 0}
    assert store.path(0, "game").exists()

    store.write(0, "game", {"gold": 40})
    assert store.read_or_create(0, section) == {"gold": 40}


def test_second_open_failure_raises(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    store = SlotFileStore(SaveConfig(root=blocker))
    with pytest.raises(SlotWriteError):
        store.write(0, "meta", {"name": "x"})


def test_open_retried_once_after_creating_folder(tmp_path, monkeypatch):
    store = _store(tmp_path)
    calls = []
    real_open = store._open

    def flaky_open(path):
        calls.append(path)
        if len(calls) == 1:
            raise FileNotFoundError(path)
        return real_open(path)

    monkeypatch.setattr(store, "_open", flaky_open)
    store.write(0, "meta", {"name": "ok"})
    assert len(calls) == 2
    assert store.read(0, "meta").data == {"name": "ok"}


def test_encrypted_round_trip(tmp_path):
    store = _store(tmp_path, filesystem_password="open sesame")
    store.write(0, "meta", {"name": "Secret Alice"})

    raw = store.path(0, "meta").read_bytes()
    assert raw.startswith(file_crypto.MAGIC)
    assert b"Secret Alice" not in raw

    result = store.read(0, "meta")
    assert result.success
    assert result.data == {"name": "Secret Alice"}


def test_wrong_password_reads_as_failure(tmp_path, caplog):
    caplog.set_level(logging.WARNING)
    _store(tmp_path, filesystem_password="right").write(0, "meta", {"name": "x"})

    result = _store(tmp_path, filesystem_password="wrong").read(0, "meta")
    assert not result.success
    assert "decrypt" in caplog.text


def test_plain_file_read_with_password_fails(tmp_path):
    _store(tmp_path).write(0, "meta", {"name": "plain"})
    assert not _store(tmp_path, filesystem_password="pw").read(0, "meta").success


def test_delete_slot(tmp_path):
    store = _store(tmp_path)
    store.write(0, "meta", {"name": "a"})
    store.write(0, "game", {"gold": 1})

    assert store.delete_slot(0)
    assert not store.path(0).exists()
    assert store.delete_slot(0)
