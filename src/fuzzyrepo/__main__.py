"""Allow ``python -m fuzzyrepo`` (used by the detached background sync)."""

from fuzzyrepo.cli import main

if __name__ == "__main__":
    main()
