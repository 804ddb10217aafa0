# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
import json

import pytest
from keycharmap.keymap import KeyCharacterMap
from keycharmap.scripts import check_cli, lookup_cli, type_cli


@pytest.fixture
def generic_file(tmp_path, source):
    path = tmp_path / "Generic.kcm"
    path.write_text(source.read("Generic"), encoding="utf-8")
    return path


@pytest.fixture
def broken_file(tmp_path):
    path = tmp_path / "broken.kcm"
    path.write_text("type FULL\n\nkey A {\n    hyper: 'a'\n}\n", encoding="utf-8")
    return path


def test_check(generic_file, capsys):
    assert check_cli([str(generic_file)]) == 0
    out, err = capsys.readouterr()
    assert out.startswith(f"{generic_file}: FULL, ")
    assert err == ""


def test_check_reports_errors(generic_file, broken_file, capsys):
    assert check_cli([str(generic_file), str(broken_file)]) == 1
    out, err = capsys.readouterr()
    assert str(generic_file) in out
    assert err.strip() == f"{broken_file}:4: Unknown modifier 'hyper'"


def test_check_overlay_format(generic_file, capsys):
    assert check_cli(["--format", "overlay", str(generic_file)]) == 1
    out, err = capsys.readouterr()
    assert f"{generic_file}:3: " in err


def test_check_missing_file(tmp_path, capsys):
    assert check_cli([str(tmp_path / "missing.kcm")]) == 1


def test_type(generic_file, capsys):
    assert type_cli([str(generic_file), "A"]) == 0
    out, err = capsys.readouterr()
    lines = [line.split() for line in out.splitlines()]
    assert lines == [
        ["PRESSED", "SHIFT_LEFT", "lshift"],
        ["PRESSED", "A", "lshift"],
        ["RELEASED", "A", "lshift"],
        ["RELEASED", "SHIFT_LEFT", "base"],
    ]


def test_type_with_caps_lock(generic_file, capsys):
    assert type_cli([str(generic_file), "A", "--meta-state", "capslock"]) == 0
    out, err = capsys.readouterr()
    assert [line.split() for line in out.splitlines()] == [
        ["PRESSED", "A", "capslock"],
        ["RELEASED", "A", "capslock"],
    ]


def test_type_unmappable(generic_file, capsys):
    assert type_cli([str(generic_file), "é"]) == 1
    out, err = capsys.readouterr()
    assert out == ""
    assert "'é'" in err


def test_lookup(generic_file, capsys):
    assert lookup_cli([str(generic_file), "1", "shift"]) == 0
    out, err = capsys.readouterr()
    assert out.splitlines() == [
        "character: '!'",
        "label:     '1'",
        "number:    '1'",
        "fallback:  None",
    ]


def test_lookup_fallback(generic_file, capsys):
    assert lookup_cli([str(generic_file), "SPACE", "lalt"]) == 0
    out, err = capsys.readouterr()
    assert "character: None" in out
    assert "fallback:  SEARCH base" in out


@pytest.mark.parametrize("args", [["NOPE"], ["A", "hyper"]])
def test_lookup_errors(generic_file, capsys, args):
    assert lookup_cli([str(generic_file), *args]) == 1
    out, err = capsys.readouterr()
    assert out == ""
    assert err


@pytest.fixture
def settings_file(tmp_path, source):
    keymaps = tmp_path / "keymaps"
    keymaps.mkdir()
    (keymaps / "Generic.kcm").write_text(source.read("Generic"), encoding="utf-8")
    (keymaps / "qwertz.kcm").write_text(source.read("qwertz"), encoding="utf-8")
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "keymap_paths": [str(keymaps)],
                "base_layout": "Generic",
                "overlay_layouts": ["qwertz"],
                "device_id": 4,
                "meta_state": "capslock",
            }
        )
    )
    return path


@pytest.fixture
def synthesized_device_ids(monkeypatch):
    device_ids = []
    original = KeyCharacterMap.synthesize

    def recording_synthesize(self, device_id, text, meta_state=0):
        device_ids.append(device_id)
        return original(self, device_id, text, meta_state)

    monkeypatch.setattr(KeyCharacterMap, "synthesize", recording_synthesize)
    return device_ids


def test_type_with_settings(settings_file, synthesized_device_ids, capsys):
    assert type_cli(["--settings", str(settings_file), "Q"]) == 0
    out, err = capsys.readouterr()
    assert [line.split() for line in out.splitlines()] == [
        ["PRESSED", "A", "capslock"],
        ["RELEASED", "A", "capslock"],
    ]
    assert synthesized_device_ids == [4]


def test_type_arguments_override_settings(settings_file, synthesized_device_ids, capsys):
    assert type_cli(["--settings", str(settings_file), "--meta-state", "base", "--device-id", "2", "Q"]) == 0
    out, err = capsys.readouterr()
    assert [line.split() for line in out.splitlines()] == [
        ["PRESSED", "SHIFT_LEFT", "lshift"],
        ["PRESSED", "A", "lshift"],
        ["RELEASED", "A", "lshift"],
        ["RELEASED", "SHIFT_LEFT", "base"],
    ]
    assert synthesized_device_ids == [2]


@pytest.mark.parametrize("args", [["A"], ["keymap.kcm", "--settings", "settings.json", "A"]])
def test_type_needs_one_keymap_source(args):
    with pytest.raises(SystemExit):
        type_cli(args)
