import logging

import echophrase

logging.basicConfig(level=logging.INFO)

# Settings are remembered between runs in this file.
store = echophrase.SettingsStore("basic.yaml")

session = echophrase.Session(store=store)

# Start slow and in eighths the first time round.
session.set("tempo", 72)
session.set("subdivision", "eighth")
session.set("note_set", [57, 60, 62, 64, 67])

session.display()
session.hotkeys()

session.play()
