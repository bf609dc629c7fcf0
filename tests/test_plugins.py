import json
from pathlib import Path
import warnings

import pytest

from shapepack.diff import diff
from shapepack.plugins import (
    PLUGIN_CONFIG_ENV_VAR,
    LifecyclePlugin,
    PluginConfigError,
    PluginLoadError,
    PluginManager,
    get_active_plugin_manager,
    load_plugin_manager_from_file,
    reset_plugin_runtime_cache,
    use_plugin_manager,
    use_plugins_from_config,
)


@pytest.fixture(autouse=True)
def _fresh_plugin_runtime():
    reset_plugin_runtime_cache()
    yield
    reset_plugin_runtime_cache()


def _write_plugin_config(
    path: Path,
    *,
    output_path: Path,
    config_version: int = 1,
    entrypoint: str = "shapepack.plugins.reference:DiffTracePlugin",
    options: dict | None = None,
) -> Path:
    path.write_text(
        json.dumps(
            {
                "config_version": config_version,
                "plugins": [
                    {
                        "entrypoint": entrypoint,
                        "options": {"output_path": str(output_path), **(options or {})},
                    }
                ],
            }
        ),
        encoding="utf-8",
    )
    return path


def _read_trace(trace_path: Path) -> list[dict]:
    return [
        json.loads(line)
        for line in trace_path.read_text(encoding="utf-8").splitlines()
        if line.strip()
    ]


def test_trace_plugin_writes_one_record_per_comparison(tmp_path: Path) -> None:
    trace_path = tmp_path / "trace.ndjson"
    config_path = _write_plugin_config(tmp_path / "plugins.json", output_path=trace_path)
    manager = load_plugin_manager_from_file(config_path)

    with use_plugin_manager(manager):
        diff([1, 2], [1, 3])
        diff("same", "same")

    records = _read_trace(trace_path)

    assert manager.diagnostics == []
    assert len(records) == 2
    changed, identical = records
    assert changed["plugin"] == "diff-trace"
    assert changed["comparison"] == "list -> list"
    assert changed["format"] == "default"
    assert changed["status"] == "ok"
    assert changed["identical"] is False
    assert changed["line_count"] == 5
    assert changed["first_only_lines"] == 1
    assert changed["second_only_lines"] == 1
    assert changed["elapsed_ms"] >= 0
    assert "error" not in changed

    assert identical["comparison"] == "str -> str"
    assert identical["identical"] is True
    assert identical["line_count"] == 0
    assert identical["first_only_lines"] == 0
    assert identical["second_only_lines"] == 0


def test_trace_plugin_can_skip_identical_comparisons(tmp_path: Path) -> None:
    trace_path = tmp_path / "trace.ndjson"
    config_path = _write_plugin_config(
        tmp_path / "plugins.json",
        output_path=trace_path,
        options={"only_differences": True},
    )

    with use_plugins_from_config(config_path):
        diff({"a": 1}, {"a": 1})
        diff({"a": 1}, {"a": 2})

    records = _read_trace(trace_path)
    assert len(records) == 1
    assert records[0]["comparison"] == "dict -> dict"
    assert records[0]["identical"] is False


def test_diff_error_is_reported_to_plugins() -> None:
    class Recorder(LifecyclePlugin):
        name = "recorder"

        def __init__(self) -> None:
            self.ends = []

        def on_diff_end(self, event) -> None:
            self.ends.append(event)

    class Broken:
        def __dump_mirror__(self):
            return "not a mirror"

    recorder = Recorder()
    with use_plugin_manager(PluginManager(plugins=(recorder,))):
        with pytest.raises(TypeError):
            diff(Broken(), Broken())

    assert len(recorder.ends) == 1
    end = recorder.ends[0]
    assert end.status == "error"
    assert end.error_type == "TypeError"
    assert end.comparison == "Broken -> Broken"
    assert end.first_only_lines is None
    assert end.second_only_lines is None


def test_plugin_failure_is_isolated_with_diagnostics() -> None:
    class ExplodingPlugin(LifecyclePlugin):
        name = "exploding"

        def on_diff_start(self, _event) -> None:
            raise RuntimeError("boom-from-plugin")

    manager = PluginManager(plugins=(ExplodingPlugin(),))

    with use_plugin_manager(manager):
        with pytest.warns(RuntimeWarning, match="hook=on_diff_start comparison=int -> int"):
            result = diff(1, 1)

    assert result is None
    assert manager.failures_for("on_diff_end") == []
    [diagnostic] = manager.failures_for("on_diff_start")
    assert diagnostic.plugin_name == "exploding"
    assert diagnostic.comparison == "int -> int"
    assert diagnostic.error_type == "RuntimeError"
    assert "boom-from-plugin" in diagnostic.message


def test_load_plugin_manager_rejects_unsupported_config_version(tmp_path: Path) -> None:
    config_path = _write_plugin_config(
        tmp_path / "plugins-invalid.json",
        output_path=tmp_path / "unused.ndjson",
        config_version=99,
    )
    with pytest.raises(PluginConfigError, match="Unsupported plugin config version") as caught:
        load_plugin_manager_from_file(config_path)

    assert caught.value.source == str(config_path)


def test_load_plugin_manager_rejects_missing_entrypoint(tmp_path: Path) -> None:
    config_path = _write_plugin_config(
        tmp_path / "plugins-missing.json",
        output_path=tmp_path / "unused.ndjson",
        entrypoint="shapepack.plugins.reference:Nope",
    )
    with pytest.raises(PluginLoadError, match="could not find attribute 'Nope'") as caught:
        load_plugin_manager_from_file(config_path)

    assert caught.value.source == "shapepack.plugins.reference:Nope"


def test_load_plugin_manager_rejects_plugin_without_diff_hooks(tmp_path: Path) -> None:
    config_path = tmp_path / "plugins-hookless.json"
    config_path.write_text(
        json.dumps({"config_version": 1, "plugins": [{"entrypoint": "builtins:object"}]}),
        encoding="utf-8",
    )
    with pytest.raises(PluginLoadError, match="implements none of: on_diff_start, on_diff_end"):
        load_plugin_manager_from_file(config_path)


def test_use_plugins_from_config_raises_for_missing_file(tmp_path: Path) -> None:
    with pytest.raises(PluginConfigError, match="Cannot read plugin config"):
        with use_plugins_from_config(tmp_path / "absent.json"):
            pass


def test_env_plugin_config_auto_activation(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    trace_path = tmp_path / "env-trace.ndjson"
    config_path = _write_plugin_config(tmp_path / "plugins-env.json", output_path=trace_path)
    monkeypatch.setenv(PLUGIN_CONFIG_ENV_VAR, str(config_path))

    diff(1, 2)
    [record] = _read_trace(trace_path)

    assert record["comparison"] == "int -> int"
    assert record["first_only_lines"] == 1
    assert record["second_only_lines"] == 1


def test_missing_env_plugin_config_warns_once_and_diff_still_runs(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    config_path = tmp_path / "absent.json"
    monkeypatch.setenv(PLUGIN_CONFIG_ENV_VAR, str(config_path))

    with pytest.warns(RuntimeWarning, match="ShapeKit plugin failure: plugin=.* hook=load"):
        assert diff(1, 2) == "- 1\n+ 2"

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert diff(1, 2) == "- 1\n+ 2"

    manager = get_active_plugin_manager()
    assert manager.plugins == ()
    [diagnostic] = manager.failures_for("load")
    assert diagnostic.plugin_name == str(config_path)
    assert diagnostic.error_type == "PluginConfigError"
    assert "Cannot read plugin config" in diagnostic.message


def test_invalid_env_plugin_config_warns_and_diff_still_runs(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    config_path = tmp_path / "broken.json"
    config_path.write_text("{not json", encoding="utf-8")
    monkeypatch.setenv(PLUGIN_CONFIG_ENV_VAR, str(config_path))

    with pytest.warns(RuntimeWarning, match="Invalid plugin config JSON"):
        assert diff([1], [1]) is None
