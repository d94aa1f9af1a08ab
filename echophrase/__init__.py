"""
echophrase - an endless call-and-echo phrase generator for ear training.

echophrase plays a short, randomly timed and randomly pitched phrase drawn
from a chosen set of notes, then leaves a bar of silence for you to sing or
play it back.  It never repeats itself: every phrase is generated fresh from a
pulse clock, a random-length period state machine and a phrase gate.

How it works:

- **Pulse clock.** An asyncio clock ticks at ``60 / tempo / subdivision``
  seconds with hybrid sleep+spin timing and no accumulating drift.
- **Periods.** Each tick advances a period of random length (in ticks).
  When a period completes, a new length is drawn and the tick is a
  *boundary*.
- **Phrases.** Phrases are one bar long and alternate play / rest.  A note
  is chosen at every boundary that falls inside a playing phrase.
- **Metronome.** A click fires on every beat, through the rests too.
- **Live settings.** Tempo, subdivision and period bounds restart the timing
  pipeline from tick 0.  Note set and transpose are picked up at the next
  note without disturbing the clock.

Output goes to a MIDI device (via ``mido``) or to any OSC-capable synth.

Minimal example:

    ```python
    import echophrase

    session = echophrase.Session(settings=echophrase.Settings(tempo=90))
    session.play()
    ```

Package-level exports: ``Session``, ``Settings``, ``SettingsReactor``,
``SettingsStore``, ``SettingsError``.
"""

import echophrase.reactor
import echophrase.session
import echophrase.settings


Session = echophrase.session.Session
Settings = echophrase.settings.Settings
SettingsError = echophrase.settings.SettingsError
SettingsReactor = echophrase.reactor.SettingsReactor
SettingsStore = echophrase.settings.SettingsStore
