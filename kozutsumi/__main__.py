"""Module entrypoint for ``python -m kozutsumi``.

The fzf preview pane re-enters the program this way, using the interpreter
that is already running. All argument parsing happens in ``kozutsumi.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
