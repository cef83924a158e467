"""Allow running vcscan with ``python -m vcscan``."""

from vcscan.cli import main

if __name__ == "__main__":
    main()
