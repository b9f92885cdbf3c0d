"""Run the remote with ``python -m annex_remote_runtime``.

Stdout carries protocol messages only; logging goes to stderr.
"""

from .cli import main

if __name__ == "__main__":
    main()
