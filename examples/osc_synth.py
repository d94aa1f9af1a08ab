import logging

import echophrase
import echophrase.audio

logging.basicConfig(level=logging.INFO)

# Send notes to SuperCollider (sclang listens on 57120) instead of MIDI.
# A matching SynthDef only needs to respond to /note <freq> <midi> and /click.
backend = echophrase.audio.OscAudioBackend("127.0.0.1", 57120)

session = echophrase.Session(
	settings = echophrase.Settings(tempo=96, subdivision=4, min_duration=2, max_duration=6, note_set=(48, 51, 55, 58)),
	backend = backend
)

# Remote control on :9000, state sent to :9001.
session.osc()
session.display()

session.play()
