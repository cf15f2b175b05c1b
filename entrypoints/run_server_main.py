import traceback

from status_server.status_server import main as run_server


def main() -> None:
    try:
        run_server()
    except Exception:
        traceback.print_exc()
        raise SystemExit(1)


if __name__ == "__main__":
    main()
