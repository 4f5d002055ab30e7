"""Allow `python -m minipl path/to/program.mpl`."""

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
