"""Run the benchmark with ``python -m uuid_bruteforce``."""
import multiprocessing

from uuid_bruteforce.cli import cli


def main():
    # Needed for frozen executables that spawn worker processes.
    multiprocessing.freeze_support()
    cli(prog_name="uuid-bruteforce")


if __name__ == "__main__":
    main()
