"""Pulse clock jitter benchmark.

Runs a bare pulse clock for a number of ticks and measures how late each tick
fires relative to its ideal time (``start + n * interval``).

Usage:
    python benchmarks/clock_jitter.py [--bpm BPM] [--subdivision N] [--ticks N]
                                      [--no-spin-wait] [--compare]

Options:
    --bpm BPM           Tempo in BPM (default: 80)
    --subdivision N     Ticks per beat: 1, 2 or 4 (default: 4)
    --ticks N           Number of ticks to measure (default: 256)
    --no-spin-wait      Disable hybrid sleep+spin (use pure asyncio.sleep)
    --compare           Run both modes and print a side-by-side comparison
"""

import argparse
import asyncio
import logging
import statistics

# Suppress clock logging during benchmark; we want clean output.
logging.basicConfig(level=logging.ERROR)

import echophrase.clock
import echophrase.constants


def _run_benchmark (bpm: float, subdivision: int, ticks: int, spin_wait: bool) -> list[float]:

	"""Run the clock for *ticks* ticks and return per-tick lateness (seconds)."""

	jitter_log: list[float] = []

	async def _run () -> None:

		clock = echophrase.clock.PulseClock(
			tempo = bpm,
			subdivision = subdivision,
			on_tick = lambda tick: None,
			spin_wait = spin_wait,
			max_ticks = ticks,
			jitter_log = jitter_log,
		)

		clock.start()
		await clock.join()

	asyncio.run(_run())

	return jitter_log


def _print_report (jitter: list[float], bpm: float, subdivision: int, spin_wait: bool, label: str = "") -> None:

	if not jitter:
		print("No jitter data collected.")
		return

	ms = [j * 1000 for j in jitter]

	mean_ms   = statistics.mean(ms)
	median_ms = statistics.median(ms)
	stdev_ms  = statistics.stdev(ms) if len(ms) > 1 else 0.0
	p95_ms    = sorted(ms)[int(len(ms) * 0.95)]
	p99_ms    = sorted(ms)[int(len(ms) * 0.99)]
	max_ms    = max(ms)

	# Lateness of the last tick relative to the first; stays flat without drift.
	drift_ms  = ms[-1] - ms[0] if len(ms) > 1 else 0.0

	interval_ms = echophrase.clock.pulse_interval_seconds(bpm, subdivision) * 1000
	name = echophrase.constants.SUBDIVISION_NAMES.get(subdivision, str(subdivision))

	mode = "spin-wait ON" if spin_wait else "spin-wait OFF"
	header = f"  {label}  " if label else " "

	print(f"\nClock Jitter Benchmark{header}- {len(ms)} {name} ticks at {bpm:.0f} BPM ({mode})")
	print(f"{'─' * 62}")
	print(f"  Tick interval   : {interval_ms:.3f} ms")
	print(f"{'─' * 62}")
	print(f"  Mean jitter     : {mean_ms:>8.3f} ms")
	print(f"  Median jitter   : {median_ms:>8.3f} ms")
	print(f"  Std deviation   : {stdev_ms:>8.3f} ms")
	print(f"  P95 jitter      : {p95_ms:>8.3f} ms")
	print(f"  P99 jitter      : {p99_ms:>8.3f} ms")
	print(f"  Max jitter      : {max_ms:>8.3f} ms")
	print(f"  Clock drift     : {drift_ms:>+8.3f} ms  (non-accumulating)")
	print(f"{'─' * 62}")

	if mean_ms < 0.1:
		rating = "Excellent  (sub-100 μs)"
	elif mean_ms < 0.5:
		rating = "Very good  (sub-500 μs, well below human perception)"
	elif mean_ms < 2.0:
		rating = "Good       (< 2 ms, at or below human perception threshold)"
	elif mean_ms < 5.0:
		rating = "Fair       (2-5 ms, may be audible against a steady click)"
	else:
		rating = "Poor       (> 5 ms, noticeable timing issues likely)"

	print(f"  Rating          : {rating}")
	print()


def main () -> None:

	parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
	parser.add_argument("--bpm",          type=float, default=80,   help="Tempo in BPM (default: 80)")
	parser.add_argument("--subdivision",  type=int,   default=4,    choices=sorted(echophrase.constants.SUBDIVISION_NAMES), help="Ticks per beat (default: 4)")
	parser.add_argument("--ticks",        type=int,   default=256,  help="Ticks to measure (default: 256)")
	parser.add_argument("--no-spin-wait", action="store_true",      help="Disable spin-wait (use pure asyncio.sleep)")
	parser.add_argument("--compare",      action="store_true",      help="Run both modes and compare")
	args = parser.parse_args()

	if args.compare:
		print("\nRunning with spin-wait ON ...")
		spin_jitter = _run_benchmark(args.bpm, args.subdivision, args.ticks, spin_wait=True)
		_print_report(spin_jitter, args.bpm, args.subdivision, spin_wait=True, label="[spin-wait ON]")

		print("Running with spin-wait OFF ...")
		pure_jitter = _run_benchmark(args.bpm, args.subdivision, args.ticks, spin_wait=False)
		_print_report(pure_jitter, args.bpm, args.subdivision, spin_wait=False, label="[spin-wait OFF]")

	else:
		spin = not args.no_spin_wait
		jitter = _run_benchmark(args.bpm, args.subdivision, args.ticks, spin_wait=spin)
		_print_report(jitter, args.bpm, args.subdivision, spin_wait=spin)


if __name__ == "__main__":
	main()
