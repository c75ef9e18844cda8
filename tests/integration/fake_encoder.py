"""Stand-in encoder for integration tests.

Prints ffmpeg-style stats lines to stderr, writes the output file given after
``-y`` and exits with the requested code.

Usage:
    python fake_encoder.py [-i INPUT] [--ticks N] [--step SECONDS] [--sleep SECONDS]
                           [--exit CODE] [--ignore-term] -y OUTPUT
"""

import argparse
import signal
import sys
import time


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("-i", dest="input", default="input")
    parser.add_argument("--ticks", type=int, default=3)
    parser.add_argument("--step", type=float, default=1.0)
    parser.add_argument("--sleep", type=float, default=0.0)
    parser.add_argument("--exit", dest="exit_code", type=int, default=0)
    parser.add_argument("--ignore-term", action="store_true")
    parser.add_argument("-y", dest="output", required=True)
    args = parser.parse_args()

    if args.ignore_term:
        signal.signal(signal.SIGTERM, signal.SIG_IGN)

    print(f"Input #0, mov, from '{args.input}':", file=sys.stderr, flush=True)
    for tick in range(1, args.ticks + 1):
        elapsed = tick * args.step
        minutes, seconds = divmod(elapsed, 60)
        # ffmpeg terminates stats lines with a carriage return
        sys.stderr.write(
            f"frame={tick * 25:5d} fps=25 q=28.0 size={tick * 256}kB "
            f"time=00:{int(minutes):02d}:{seconds:05.2f} speed=1x\r"
        )
        sys.stderr.flush()

    if args.sleep:
        print("waiting", file=sys.stderr, flush=True)
        time.sleep(args.sleep)

    if args.exit_code != 0:
        print("Conversion failed!", file=sys.stderr, flush=True)
        return args.exit_code

    with open(args.output, "wb") as f:
        f.write(b"fake encoded output")
    print("", file=sys.stderr, flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
