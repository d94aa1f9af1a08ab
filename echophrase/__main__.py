"""Command line entry point.

Usage:
    python -m echophrase [--settings FILE] [--output DEVICE] [--input DEVICE]
                         [--osc-synth HOST:PORT] [--osc] [--display] [--hotkeys]
                         [--seed N] [--ticks N] [--no-clicks] [--no-spin-wait]
                         [--tempo BPM] [--subdivision NAME] [--notes N [N ...]]
                         [--transpose N] [--min-duration N] [--max-duration N]
                         [--list-devices]

Settings given on the command line override the settings file and are saved
back to it.  ``--ticks N`` renders N ticks offline (no waiting) and logs every
note and click, which is handy for checking a configuration.
"""

import argparse
import logging
import sys
import typing

import echophrase.audio
import echophrase.click
import echophrase.midi_utils
import echophrase.notes
import echophrase.period
import echophrase.session
import echophrase.settings


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _parse_host_port (value: str) -> typing.Tuple[str, int]:

	host, _, port = value.rpartition(":")

	try:
		return host or "127.0.0.1", int(port)
	except ValueError:
		raise argparse.ArgumentTypeError(f"Expected HOST:PORT, got {value!r}") from None


def build_parser () -> argparse.ArgumentParser:

	parser = argparse.ArgumentParser(prog="echophrase", description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)

	parser.add_argument("--settings",     type=str,   default="echophrase.yaml", help="YAML settings file (default: echophrase.yaml)")
	parser.add_argument("--output",       type=str,   default=None,  help="MIDI output device name")
	parser.add_argument("--input",        type=str,   default=None,  help="MIDI keyboard to echo (name or part of it)")
	parser.add_argument("--osc-synth",    type=_parse_host_port, default=None, help="Send notes to an OSC synth at HOST:PORT instead of MIDI")
	parser.add_argument("--osc",          action="store_true",       help="Enable OSC remote control on port 9000")
	parser.add_argument("--display",      action="store_true",       help="Show a live status line")
	parser.add_argument("--hotkeys",      action="store_true",       help="Enable single-keystroke control")
	parser.add_argument("--seed",         type=int,   default=None,  help="Seed for repeatable output")
	parser.add_argument("--ticks",        type=int,   default=None,  help="Render this many ticks offline and exit")
	parser.add_argument("--no-clicks",    action="store_true",       help="Disable the metronome click")
	parser.add_argument("--no-spin-wait", action="store_true",       help="Disable spin-wait (use pure asyncio.sleep)")
	parser.add_argument("--list-devices", action="store_true",       help="List MIDI devices and exit")

	overrides = parser.add_argument_group("settings overrides")
	overrides.add_argument("--tempo",        type=float, default=None, help="Beats per minute")
	overrides.add_argument("--subdivision",  type=str,   default=None, help="quarter, eighth or sixteenth")
	overrides.add_argument("--min-duration", type=int,   default=None, help="Shortest period in ticks")
	overrides.add_argument("--max-duration", type=int,   default=None, help="Longest period in ticks")
	overrides.add_argument("--transpose",    type=int,   default=None, help="Semitone offset")
	overrides.add_argument("--notes",        type=int,   nargs="+", default=None, help="MIDI notes to choose from")

	return parser


def collect_overrides (args: argparse.Namespace) -> typing.Dict[str, typing.Any]:

	"""Settings fields given on the command line."""

	candidates = {
		"tempo": args.tempo,
		"subdivision": args.subdivision,
		"min_duration": args.min_duration,
		"max_duration": args.max_duration,
		"transpose": args.transpose,
		"note_set": args.notes,
	}

	return {name: value for name, value in candidates.items() if value is not None}


def _log_render (session: echophrase.session.Session) -> None:

	"""Log every tick of an offline render."""

	def on_note (note_event: echophrase.notes.NoteEvent, period_tick: echophrase.period.PeriodTick) -> None:
		assert note_event.current is not None
		logger.info(f"tick {period_tick.index:5d}  note {echophrase.notes.note_name(note_event.current):4s} ({note_event.frequency:.2f} Hz)")

	def on_click (click_event: echophrase.click.ClickEvent) -> None:
		logger.info(f"tick {click_event.tick.index:5d}  click (beat {click_event.beat})")

	session.reactor.on_event("note", on_note)
	session.reactor.on_event("click", on_click)


def main (argv: typing.Optional[typing.List[str]] = None) -> int:

	"""
	Main entry point for the echophrase application.
	"""

	args = build_parser().parse_args(argv)

	if args.list_devices:
		devices = echophrase.midi_utils.list_devices()
		print("MIDI outputs:", ", ".join(devices["outputs"]) or "none")
		print("MIDI inputs: ", ", ".join(devices["inputs"]) or "none")
		return 0

	store = echophrase.settings.SettingsStore(args.settings)
	settings = store.load()

	overrides = collect_overrides(args)

	if overrides:
		try:
			settings = settings.replace(**overrides)
		except echophrase.settings.SettingsError as e:
			logger.error(f"Invalid settings: {e}")
			return 2

		store.save(settings)

	backend: typing.Optional[echophrase.audio.AudioBackend] = None

	if args.osc_synth is not None:
		host, port = args.osc_synth
		backend = echophrase.audio.OscAudioBackend(host, port)

	offline = args.ticks is not None

	session = echophrase.session.Session(
		settings = settings,
		store = store,
		backend = backend,
		output_device = args.output,
		clicks = not args.no_clicks,
		seed = args.seed,
		realtime = not offline,
		spin_wait = not args.no_spin_wait,
		max_ticks = args.ticks,
		audio = not offline
	)

	if offline:
		_log_render(session)
	else:
		if args.display:
			session.display()
		if args.hotkeys:
			session.hotkeys()
		if args.osc:
			session.osc()
		if args.input:
			session.midi_input(args.input)

	logger.info("echophrase starting...")

	session.play()

	# Nothing played at all: report failure to the shell.
	return 1 if session.errors and session.reactor.last_tick is None else 0


if __name__ == "__main__":
	sys.exit(main())
