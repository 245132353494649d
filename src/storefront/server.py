"""Uvicorn runner for the storefront checkout API.

Usage:
    storefront-server                      # 127.0.0.1:8000
    storefront-server --host 0.0.0.0 --port 9000 --reload
"""

import argparse

import uvicorn


def main():
    parser = argparse.ArgumentParser(description="Storefront checkout API server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    args = parser.parse_args()

    uvicorn.run("storefront.app:app", host=args.host, port=args.port, reload=args.reload, log_config=None)


if __name__ == "__main__":
    main()
