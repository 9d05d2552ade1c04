"""Main entry point for the readlay package."""

from readlay.cli import app


def main():
    """Run the readlay command-line interface."""
    app()


if __name__ == "__main__":
    main()
