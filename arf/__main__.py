"""Module entrypoint for ``python -m arf``.

All argument parsing and runtime setup happen in ``arf.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
