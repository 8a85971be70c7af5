"""Module entrypoint for ``python -m netload``."""

from netload.cli import main

if __name__ == "__main__":
    main()
