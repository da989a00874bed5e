import sys
import traceback

from alarm_service.dev.run_engine import main as run_engine


def main() -> int:
    try:
        return run_engine(sys.argv[1:])
    except Exception:
        traceback.print_exc()
        # Keep a double-clicked console window open long enough to read the error.
        if sys.stdin is not None and sys.stdin.isatty():
            input("\nPress Enter to exit...")
        return 1


if __name__ == "__main__":
    sys.exit(main())
