"""Tale Companion dev launcher. Starts the web host with auto-reload."""

import argparse
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "13013"))


def main():
    parser = argparse.ArgumentParser(description="Tale Companion dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Thread storage directory (default: ./data)")
    parser.add_argument("--version-pin", default=None,
                        help='Module version to install ("latest", "latest_preview" or a name)')
    parser.add_argument("--port", type=int, default=PORT)
    args = parser.parse_args()

    # The app reads these when uvicorn imports it
    if args.data_dir:
        os.environ["DATA_DIR"] = str(args.data_dir.resolve())
    if args.version_pin:
        os.environ["TALE_VERSION"] = args.version_pin

    print(f"Starting Tale Companion on http://localhost:{args.port} ...")
    uvicorn.run("tale_companion.app:app", host=HOST, port=args.port, reload=True)


if __name__ == "__main__":
    main()
