import argparse
import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import colorlog
import httpx
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from model_reconciler.config import Settings
from model_reconciler.service import ModelReconciliationService
from model_stats_app.routes import router as models_router


def load_env_files(root_dir: Path) -> None:
    """Load .env first, then any additional *.env files without overriding."""
    load_dotenv(root_dir / ".env")
    for env_file in sorted(root_dir.glob("*.env")):
        if env_file.name != ".env":
            load_dotenv(env_file, override=False)


def setup_logging(log_dir: Path, debug: bool = False) -> None:
    log_dir.mkdir(parents=True, exist_ok=True)

    # Console: colored, INFO and above unless DEBUG is set
    console_handler = colorlog.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler.setFormatter(
        colorlog.ColoredFormatter(
            "%(log_color)s%(message)s",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bg_white",
            },
        )
    )

    # File: everything at INFO and higher
    file_handler = logging.FileHandler(log_dir / "model_stats.log", encoding="utf-8")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    # Match tracing goes to its own file
    debug_file_handler = logging.FileHandler(
        log_dir / "model_stats_debug.log", encoding="utf-8"
    )
    debug_file_handler.setLevel(logging.DEBUG)
    debug_file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    debug_file_handler.addFilter(ReconcilerDebugFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(debug_file_handler)

    # Silence noisy loggers
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


class ReconcilerDebugFilter(logging.Filter):
    """Pass only DEBUG records from the reconciler package."""

    def filter(self, record):
        return record.levelno == logging.DEBUG and record.name.startswith(
            "model_reconciler"
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Own the shared HTTP client and the service for the app's lifetime."""
        client = httpx.AsyncClient(follow_redirects=True)
        service = ModelReconciliationService(settings=settings, client=client)
        await service.start()
        app.state.reconciliation_service = service
        logging.info(f"Model stats service started (config: {settings.config_path})")
        try:
            yield
        finally:
            await service.stop()
            await client.aclose()
            logging.info("Model stats service stopped.")

    app = FastAPI(title="Model Stats", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(models_router)
    return app


def main() -> None:
    parser = argparse.ArgumentParser(description="Model Stats API Server")
    parser.add_argument(
        "--host", type=str, default="0.0.0.0", help="Host to bind the server to."
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", "3001")),
        help="Port to run the server on.",
    )
    parser.add_argument("--config", type=str, help="Path to the model-list YAML file.")
    args = parser.parse_args()

    root_dir = Path.cwd()
    load_env_files(root_dir)
    if args.config:
        os.environ["CONFIG_PATH"] = args.config

    settings = Settings.from_env()
    setup_logging(root_dir / "logs", debug=settings.debug)

    print("━" * 70)
    print(f"Starting model stats server on {args.host}:{args.port}")
    print(f"Config path: {settings.config_path}")
    print("━" * 70)

    import uvicorn

    uvicorn.run(create_app(settings), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
