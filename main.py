import argparse

from cardpick.api.app import run as run_api


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CardPick API server")
    parser.add_argument("--host", help="Bind address (default: APP_HOST setting)")
    parser.add_argument("--port", type=int, help="Bind port (default: APP_PORT setting)")
    return parser


def main() -> None:
    args = build_parser().parse_args()
    run_api(host=args.host, port=args.port)


if __name__ == "__main__":
    main()
