import asyncio
import logging

import echophrase
import echophrase.notes

logging.basicConfig(level=logging.WARNING)


async def main () -> None:

	# Seeded and simulated: the same 64 ticks every time, no waiting.
	reactor = echophrase.SettingsReactor(
		echophrase.Settings(tempo=80, subdivision=2, min_duration=1, max_duration=3),
		seed = 42,
		realtime = False,
		max_ticks = 64
	)

	def on_note (note_event, period_tick) -> None:
		print(f"{period_tick.index:3d}  {echophrase.notes.note_name(note_event.current):4s} {note_event.frequency:8.2f} Hz")

	reactor.on_event("note", on_note)

	reactor.start()
	await reactor.join()
	reactor.stop()


asyncio.run(main())
