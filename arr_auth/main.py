"""Entry point: delegates to the CLI app."""

from rich.traceback import install

from arr_auth.cli import app
from arr_auth.utils.tracing import shutdown_tracing


def main() -> None:
    try:
        install(show_locals=False, max_frames=5, word_wrap=True)
        app()
    finally:
        shutdown_tracing()


if __name__ == "__main__":
    main()
