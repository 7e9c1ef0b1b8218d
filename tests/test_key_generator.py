import json
import os
from pathlib import Path

import pytest

from audiokeys.codegen import KeyCodeGenerator, Status
from audiokeys.codegen import generator as generator_mod
from audiokeys.codegen.writer import write_if_changed
from audiokeys.errors import (
    DuplicateKeyError,
    GenerationIOError,
    IdentifierCollisionError,
    InvalidIdentifierError,
    RegistrySourceError,
)
from audiokeys.settings import GeneratorSettings


def write_registry(path: Path, entries, name=None):
    path.parent.mkdir(parents=True, exist_ok=True)
    doc = {"entries": [{"key": k, "asset": a} for k, a in entries]}
    if name:
        doc["name"] = name
    path.write_text(json.dumps(doc), encoding="utf-8")


def snapshot(directory: Path) -> dict:
    return {p.relative_to(directory).as_posix(): p.read_bytes() for p in sorted(directory.rglob("*")) if p.is_file()}


@pytest.fixture
def sources(tmp_path: Path) -> Path:
    src = tmp_path / "registries"
    write_registry(src / "Level1.json", [("door_open", "clip_a"), ("door_close", "clip_b")])
    write_registry(src / "ui.json", [("Button Click", "click"), ("3 beeps", "beeps")], name="UI")
    return src


def test_generates_one_module_per_registry(sources: Path, tmp_path: Path):
    out = tmp_path / "keys"

    report = KeyCodeGenerator().generate([sources], out)

    assert report.ok and report.exit_code == 0
    assert sorted(o.module for o in report.outcomes) == ["Level1", "UI"]
    assert all(o.status is Status.WRITTEN for o in report.outcomes)
    assert sorted(snapshot(out)) == ["Level1.py", "UI.py", "__init__.py", "manifest.json"]

    text = (out / "Level1.py").read_text(encoding="utf-8")
    assert "__registry__ = 'Level1'" in text
    assert "door_open = 'door_open'\n" in text
    assert "door_close = 'door_close'\n" in text
    assert text.index("door_open =") < text.index("door_close =")

    ui = (out / "UI.py").read_text(encoding="utf-8")
    assert "Button_Click = 'Button Click'\n" in ui
    assert "_3_beeps = '3 beeps'\n" in ui


def test_generated_modules_are_valid_python(sources: Path, tmp_path: Path):
    out = tmp_path / "keys"
    KeyCodeGenerator().generate([sources], out)

    namespace: dict = {}
    exec(compile((out / "UI.py").read_text(encoding="utf-8"), "UI.py", "exec"), namespace)
    assert namespace["Button_Click"] == "Button Click"
    assert namespace["__registry__"] == "UI"
    assert namespace["__keys__"] == {"Button_Click": "Button Click", "_3_beeps": "3 beeps"}
    assert namespace["__all__"] == ["Button_Click", "_3_beeps"]


def test_generation_is_idempotent(sources: Path, tmp_path: Path):
    out = tmp_path / "keys"
    gen = KeyCodeGenerator()

    gen.generate([sources], out)
    first = snapshot(out)
    mtimes = {p: p.stat().st_mtime_ns for p in out.iterdir()}
    report = gen.generate([sources], out)

    assert snapshot(out) == first
    assert all(o.status is Status.UNCHANGED for o in report.outcomes)
    assert {p: p.stat().st_mtime_ns for p in out.iterdir()} == mtimes


def test_output_does_not_depend_on_output_location(sources: Path, tmp_path: Path):
    KeyCodeGenerator().generate([sources], tmp_path / "one")
    KeyCodeGenerator().generate([sources], tmp_path / "deeper" / "two")
    assert snapshot(tmp_path / "one") == snapshot(tmp_path / "deeper" / "two")


def test_manifest_lists_modules_and_constants(sources: Path, tmp_path: Path):
    out = tmp_path / "keys"
    KeyCodeGenerator().generate([sources], out)

    manifest = json.loads((out / "manifest.json").read_text(encoding="utf-8"))

    assert manifest["version"] == 1
    assert manifest["modules"]["Level1"] == {
        "registry": "Level1",
        "source": "registries/Level1.json",
        "constants": {"door_close": "door_close", "door_open": "door_open"},
    }
    assert manifest["modules"]["UI"]["registry"] == "UI"


def test_index_exposes_key_sets(sources: Path, tmp_path: Path):
    out = tmp_path / "keys"
    KeyCodeGenerator().generate([sources], out)

    index = (out / "__init__.py").read_text(encoding="utf-8")
    assert "from . import Level1\nfrom . import UI\n" in index
    assert "    'Level1': Level1,\n" in index
    assert "    'UI': UI,\n" in index
    assert "__all__ = ['KEY_SETS', 'Level1', 'UI']" in index


def test_identifier_collision_fails_only_that_registry(sources: Path, tmp_path: Path):
    write_registry(sources / "Level2.json", [("Door Close", "a"), ("Door-Close", "b")])
    out = tmp_path / "keys"

    report = KeyCodeGenerator().generate([sources], out)

    assert report.exit_code == 1
    [failed] = report.failed
    assert failed.source == "registries/Level2.json"
    assert isinstance(failed.error, IdentifierCollisionError)
    assert not (out / "Level2.py").exists()
    assert (out / "Level1.py").exists() and (out / "UI.py").exists()
    assert len(report.diagnostics()) == 1
    assert "Door_Close" in report.diagnostics()[0]


def test_duplicate_key_and_unreadable_registry_each_fail(sources: Path, tmp_path: Path):
    write_registry(sources / "Dup.json", [("a", "x"), ("a", "y")])
    (sources / "Broken.json").write_text("{not json", encoding="utf-8")

    report = KeyCodeGenerator().generate([sources], tmp_path / "keys")

    errors = {o.source: type(o.error) for o in report.failed}
    assert errors == {
        "registries/Dup.json": DuplicateKeyError,
        "registries/Broken.json": RegistrySourceError,
    }
    assert len(report.diagnostics()) == 2
    assert {o.module for o in report.outcomes if o.status is not Status.FAILED} == {"Level1", "UI"}


def test_failed_registry_keeps_previous_module(sources: Path, tmp_path: Path):
    out = tmp_path / "keys"
    KeyCodeGenerator().generate([sources], out)
    before = (out / "Level1.py").read_bytes()

    write_registry(sources / "Level1.json", [("door_open", "a"), ("door_open", "b")])
    report = KeyCodeGenerator().generate([sources], out)

    assert report.exit_code == 1
    assert (out / "Level1.py").read_bytes() == before
    index = (out / "__init__.py").read_text(encoding="utf-8")
    assert "from . import Level1" in index
    manifest = json.loads((out / "manifest.json").read_text(encoding="utf-8"))
    assert "Level1" in manifest["modules"]


def test_registry_name_collision_fails_all_parties(tmp_path: Path):
    src = tmp_path / "registries"
    write_registry(src / "a.json", [("x", "x")], name="Level 1")
    write_registry(src / "b.json", [("y", "y")], name="level_1")
    write_registry(src / "c.json", [("z", "z")], name="Other")

    report = KeyCodeGenerator().generate([src], tmp_path / "keys")

    assert sorted(o.source for o in report.failed) == ["registries/a.json", "registries/b.json"]
    assert all(isinstance(o.error, IdentifierCollisionError) for o in report.failed)
    assert (tmp_path / "keys" / "Other.py").exists()


def test_reserved_registry_name_is_rejected(tmp_path: Path):
    src = tmp_path / "registries"
    write_registry(src / "init.json", [("x", "x")], name="__init__")
    out = tmp_path / "keys"

    report = KeyCodeGenerator().generate([src], out)

    assert report.exit_code == 1
    assert "__init__" in report.diagnostics()[0]
    # The package index is still the generated one
    assert "KEY_SETS" in (out / "__init__.py").read_text(encoding="utf-8")


def test_removed_registry_module_is_pruned(sources: Path, tmp_path: Path):
    out = tmp_path / "keys"
    KeyCodeGenerator().generate([sources], out)

    (sources / "ui.json").unlink()
    report = KeyCodeGenerator().generate([sources], out)

    assert report.removed == ["UI"]
    assert not (out / "UI.py").exists()
    assert "UI" not in (out / "__init__.py").read_text(encoding="utf-8")


def test_missing_source_dir_is_reported(sources: Path, tmp_path: Path):
    report = KeyCodeGenerator().generate([sources, tmp_path / "missing"], tmp_path / "keys")
    assert report.exit_code == 1
    assert len(report.errors) == 1
    assert (tmp_path / "keys" / "Level1.py").exists()


def test_write_failure_is_generation_io_error(sources: Path, tmp_path: Path, monkeypatch):
    real = generator_mod.write_if_changed

    def flaky(path, text):
        if path.name == "UI.py":
            raise GenerationIOError(path, "disk full")
        return real(path, text)

    monkeypatch.setattr(generator_mod, "write_if_changed", flaky)
    report = KeyCodeGenerator().generate([sources], tmp_path / "keys")

    [failed] = report.failed
    assert failed.module == "UI"
    assert isinstance(failed.error, GenerationIOError)
    assert "UI" not in (tmp_path / "keys" / "__init__.py").read_text(encoding="utf-8")


def test_no_temp_files_left_behind(sources: Path, tmp_path: Path):
    out = tmp_path / "keys"
    KeyCodeGenerator().generate([sources], out)
    assert not [p for p in os.listdir(out) if p.endswith(".tmp")]


def test_custom_header_and_manifest_name(sources: Path, tmp_path: Path):
    settings = GeneratorSettings(header="Built by the audio pipeline\nsecond line", manifest_name="keys.json")
    out = tmp_path / "keys"

    KeyCodeGenerator(settings).generate([sources], out)

    assert (out / "keys.json").exists()
    assert (out / "Level1.py").read_text(encoding="utf-8").startswith("# Built by the audio pipeline second line\n")


def test_check_validates_without_writing(sources: Path, tmp_path: Path):
    write_registry(sources / "Bad.json", [("a b", "x"), ("a-b", "y")])

    report = KeyCodeGenerator().check([sources])

    assert report.exit_code == 1
    assert [o.source for o in report.failed] == ["registries/Bad.json"]
    assert not list(tmp_path.glob("**/*.py"))


def test_key_not_encodable_as_utf8_fails_only_that_registry(sources: Path, tmp_path: Path):
    # json.dumps escapes the lone surrogate, so the file itself is valid UTF-8
    (sources / "Odd.json").write_text(json.dumps({"entries": [{"key": "x\ud800", "asset": "a"}]}), encoding="utf-8")
    out = tmp_path / "keys"

    report = KeyCodeGenerator().generate([sources], out)

    assert report.exit_code == 1
    [failed] = report.failed
    assert failed.source == "registries/Odd.json"
    assert isinstance(failed.error, InvalidIdentifierError)
    assert not (out / "Odd.py").exists()
    manifest = json.loads((out / "manifest.json").read_text(encoding="utf-8"))
    assert sorted(manifest["modules"]) == ["Level1", "UI"]


def test_unencodable_text_is_a_generation_io_error(tmp_path: Path):
    target = tmp_path / "out.py"
    with pytest.raises(GenerationIOError):
        write_if_changed(target, "x = '\ud800'\n")
    assert not target.exists()


def test_current_directory_as_source_root(sources: Path, tmp_path: Path, monkeypatch):
    monkeypatch.chdir(sources)

    report = KeyCodeGenerator().generate(["."], tmp_path / "keys")

    assert sorted(o.source for o in report.outcomes) == ["registries/Level1.json", "registries/ui.json"]
    assert "# Source: registries/Level1.json\n" in (tmp_path / "keys" / "Level1.py").read_text(encoding="utf-8")
