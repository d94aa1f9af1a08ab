import logging
import typing

import mido


logger = logging.getLogger(__name__)


def list_devices () -> typing.Dict[str, typing.List[str]]:

	"""Names of the available MIDI ports, grouped by direction."""

	return {
		"outputs": list(mido.get_output_names()),
		"inputs": list(mido.get_input_names()),
	}


def _prompt_choice (names: typing.List[str]) -> str:

	"""Ask on the console which of several ports to use."""

	print("\nAvailable MIDI output devices:\n")
	for i, name in enumerate(names, 1):
		print(f"  {i}. {name}")
	print()

	while True:
		try:
			choice = int(input(f"Select a device (1-{len(names)}): "))
			if 1 <= choice <= len(names):
				break
		except (ValueError, EOFError):
			pass
		print(f"Enter a number between 1 and {len(names)}.")

	selected = names[choice - 1]

	print("\nTip: To skip this prompt next time, run with:\n")
	print(f"  python -m echophrase --output \"{selected}\"\n")

	return selected


def select_output_device (device_name: typing.Optional[str] = None, interactive: bool = True) -> typing.Tuple[typing.Optional[str], typing.Optional[typing.Any]]:

	"""
	Select and open a MIDI output port.

	With ``device_name``, opens exactly that port.  Without it, uses the only
	port if there is one, or asks on the console when there are several
	(``interactive=False`` picks the first instead).

	Returns:
		``(device_name, port)`` or ``(None, None)`` on failure.
	"""

	try:
		outputs = mido.get_output_names()
		logger.info(f"Available MIDI outputs: {outputs}")

		if not outputs:
			logger.error("No MIDI output devices found.")
			return None, None

		if device_name is not None:
			if device_name not in outputs:
				logger.error(f"MIDI output device '{device_name}' not found. Available devices: {outputs}")
				return None, None
			selected = device_name

		elif len(outputs) == 1 or not interactive:
			selected = outputs[0]
			logger.info(f"Using MIDI output '{selected}'")

		else:
			selected = _prompt_choice(outputs)

		midi_out = mido.open_output(selected)
		logger.info(f"Opened MIDI output: {selected}")
		return selected, midi_out

	except Exception as e:
		logger.error(f"Failed to open MIDI output: {e}")
		return None, None


def select_input_device (device_name: str, callback: typing.Optional[typing.Callable] = None) -> typing.Tuple[typing.Optional[str], typing.Optional[typing.Any]]:

	"""
	Open a MIDI input port by name for keyboard echo.

	An exact name is preferred; otherwise the first port whose name contains
	``device_name`` (case-insensitive, e.g. ``"roland"``) is used.

	Returns:
		``(device_name, port)`` or ``(None, None)`` when nothing matches.
	"""

	try:
		inputs = mido.get_input_names()
		logger.info(f"Available MIDI inputs: {inputs}")

		if device_name in inputs:
			target = device_name
		else:
			matches = [name for name in inputs if device_name.lower() in name.lower()]

			if not matches:
				logger.warning(f"MIDI input device '{device_name}' not found.")
				return None, None

			target = matches[0]

		midi_in = mido.open_input(target, callback=callback)
		logger.info(f"Opened MIDI input: {target}")
		return target, midi_in

	except Exception as e:
		logger.error(f"Failed to open MIDI input: {e}")
		return None, None
