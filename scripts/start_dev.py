#!/usr/bin/env python3
"""
Development startup script.

Runs the merchant and the storefront side by side with auto-reload.
"""

import importlib.util
import os
import shutil
import subprocess
import sys
import time
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"

# (label, ASGI app, port); the merchant comes first so the storefront can reach it
SERVICES = [
    ("Merchant", "merchant.main:app", os.getenv("MERCHANT_PORT", "8001")),
    ("Storefront", "storefront.main:app", os.getenv("PORT", "8000")),
]

REQUIRED_MODULES = ["fastapi", "uvicorn", "httpx", "pydantic_settings", "dotenv"]


def missing_modules() -> list[str]:
    return [name for name in REQUIRED_MODULES if importlib.util.find_spec(name) is None]


def ensure_env_file() -> bool:
    """Create config/.env from the example on first run"""
    env_file = CONFIG_DIR / ".env"
    if env_file.exists():
        return True

    example = CONFIG_DIR / ".env.example"
    if not example.exists():
        print(f"✗ Neither {env_file} nor {example} exists")
        return False

    shutil.copy(example, env_file)
    print(f"! Created {env_file.relative_to(PROJECT_ROOT)} from the example")
    return True


def launch(app: str, port: str) -> subprocess.Popen:
    command = [sys.executable, "-m", "uvicorn", app, "--reload", "--host", "0.0.0.0", "--port", port]
    return subprocess.Popen(command, cwd=PROJECT_ROOT)


def run() -> None:
    processes: list[subprocess.Popen] = []
    try:
        for label, app, port in SERVICES:
            print(f"Starting {label} on http://localhost:{port} (docs at /docs)")
            processes.append(launch(app, port))
            # Give each service a moment to bind before the next one starts
            time.sleep(2)

        print("\nPress Ctrl+C to stop")
        for process in processes:
            process.wait()
    except KeyboardInterrupt:
        print("\nStopping...")
    finally:
        for process in processes:
            if process.poll() is None:
                process.terminate()
        for process in processes:
            process.wait()


def main():
    missing = missing_modules()
    if missing:
        print(f"✗ Missing packages: {', '.join(missing)}\n  Run: pip install -e .")
        sys.exit(1)

    if not ensure_env_file():
        sys.exit(1)

    run()


if __name__ == "__main__":
    main()
