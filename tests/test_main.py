import pytest
import yaml

import echophrase.__main__


def test_collect_overrides_only_includes_given_fields () -> None:

	args = echophrase.__main__.build_parser().parse_args(["--tempo", "90", "--notes", "60", "64", "--transpose", "0"])

	assert echophrase.__main__.collect_overrides(args) == {"tempo": 90.0, "transpose": 0, "note_set": [60, 64]}


def test_host_port_parsing () -> None:

	args = echophrase.__main__.build_parser().parse_args(["--osc-synth", "synth.local:57120"])

	assert args.osc_synth == ("synth.local", 57120)


def test_list_devices (patch_midi: None, capsys: pytest.CaptureFixture) -> None:

	assert echophrase.__main__.main(["--list-devices"]) == 0

	out = capsys.readouterr().out

	assert "Dummy MIDI" in out
	assert "Roland Digital Piano MIDI 1" in out


def test_offline_render_saves_overrides (tmp_path) -> None:

	path = tmp_path / "echophrase.yaml"

	result = echophrase.__main__.main([
		"--settings", str(path),
		"--ticks", "16",
		"--seed", "7",
		"--subdivision", "sixteenth",
		"--min-duration", "2",
		"--max-duration", "3",
	])

	assert result == 0

	saved = yaml.safe_load(path.read_text())

	assert saved["subdivision"] == "sixteenth"
	assert saved["min_duration"] == 2
	assert saved["max_duration"] == 3


def test_invalid_override_exits_with_error (tmp_path) -> None:

	path = tmp_path / "echophrase.yaml"

	assert echophrase.__main__.main(["--settings", str(path), "--ticks", "4", "--tempo", "-3"]) == 2
	assert not path.exists()


def test_non_finite_tempo_override_is_rejected (tmp_path) -> None:

	path = tmp_path / "echophrase.yaml"

	assert echophrase.__main__.main(["--settings", str(path), "--ticks", "4", "--tempo", "inf"]) == 2
	assert not path.exists()
