"""Entry point for ``python -m glcli`` (also used for sudo relaunches)."""

from glcli.main import cli

if __name__ == "__main__":
    cli()
