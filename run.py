#!/usr/bin/env python
"""
Start the recruitment API with uvicorn

    python run.py                  # 127.0.0.1:8000
    python run.py --host 0.0.0.0 -p 8080
    python run.py --reload         # restart on code changes
    python run.py --scheduler      # run warmup / A/B / compliance jobs in-process
    python run.py --live-mhrsd     # submit reports to the real ministry API

Always one process: websocket rooms and the job scheduler live in memory.
"""
import argparse
import os
import shutil
from pathlib import Path

import uvicorn

ROOT_DIR = Path(__file__).resolve().parent


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Recruitment platform API server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("-p", "--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true", help="restart on code changes")
    parser.add_argument("--scheduler", action="store_true", help="enable background jobs")
    parser.add_argument("--live-mhrsd", action="store_true", help="disable MHRSD mock mode")
    parser.add_argument("--log-level", default="info", choices=["debug", "info", "warning", "error"])
    return parser.parse_args()


def prepare_workspace() -> None:
    env_file = ROOT_DIR / ".env"
    template = ROOT_DIR / ".env.example"
    if not env_file.exists() and template.exists():
        shutil.copy(template, env_file)
        print(f"Created {env_file.name} from {template.name}")
    (ROOT_DIR / "data").mkdir(exist_ok=True)


def main() -> None:
    args = parse_args()
    prepare_workspace()

    # read by app.core.config when uvicorn imports the app
    if args.scheduler:
        os.environ["SCHEDULER_ENABLED"] = "true"
    if args.live_mhrsd:
        os.environ["MHRSD_MOCK"] = "false"

    print(f"API docs: http://{args.host}:{args.port}/docs")
    uvicorn.run(
        "app.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
        app_dir=str(ROOT_DIR),
    )


if __name__ == "__main__":
    main()
