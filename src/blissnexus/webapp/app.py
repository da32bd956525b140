"""Flask application factory."""

import atexit
import logging
import os
import subprocess
from pathlib import Path

from flask import Flask

from blissnexus.engine import SessionManager
from blissnexus.llm import get_completion
from blissnexus.storage import StorageBackend, get_world_repository

from .config import Config
from .services.engine_runner import EXTENSION_KEY, EngineRunner

logger = logging.getLogger(__name__)


def check_claude_api_credentials(power_on_test: bool = False) -> bool:
    """Check if Claude credentials are available, optionally testing the CLI.

    The claude-agent-sdk spawns Claude Code CLI which uses OAuth authentication.
    Claude Code checks for credentials in this order:
    1. CLAUDE_CODE_OAUTH_TOKEN environment variable (for server/CI deployments)
    2. ~/.claude/.credentials.json file (from 'claude login' or 'claude setup-token')

    Without credentials every ruler stays silent: decisions become NONE and
    whispers get a neutral reply, but the world keeps ticking.

    Returns:
        bool: True if credentials are configured (and the CLI answered, when tested)
    """
    oauth_token = os.environ.get("CLAUDE_CODE_OAUTH_TOKEN")
    credentials_path = Path.home() / ".claude" / ".credentials.json"

    if oauth_token:
        masked = oauth_token[:20] + "..." if len(oauth_token) > 20 else "***"
        logger.info(f"CLAUDE_CODE_OAUTH_TOKEN is set ({masked})")
    elif credentials_path.exists():
        logger.info(f"Claude credentials file found at {credentials_path}")
    else:
        logger.warning(
            "Claude Code OAuth credentials not found! Rulers will not speak. "
            "For local dev: run 'claude login' or 'claude setup-token'."
        )
        return False

    if not power_on_test:
        return True

    logger.info("Testing Claude CLI with 'say hi' prompt...")
    result = subprocess.run(
        ["claude", "-p", "Say hello in one word", "--output-format", "text"],
        capture_output=True,
        text=True,
        timeout=30,
    )
    if result.returncode != 0:
        logger.error(f"Claude CLI FAILED with exit code {result.returncode}")
        logger.error(f"stderr: {result.stderr}")
        return False

    logger.info(f"Claude CLI power-on test SUCCESS: '{result.stdout.strip()[:50]}'")
    return True


def create_app(config_class=Config):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    llm_backend = app.config["LLM_BACKEND"]
    if llm_backend == "claude":
        has_claude = check_claude_api_credentials(power_on_test=app.config["REQUIRE_LLM"])
        if not has_claude and app.config["REQUIRE_LLM"]:
            raise RuntimeError(
                "Claude CLI is not working! Cannot start webapp without LLM support. "
                "Check Claude Code installation and CLAUDE_CODE_OAUTH_TOKEN secret."
            )
        app.config["CLAUDE_API_AVAILABLE"] = has_claude

    repository = get_world_repository(
        StorageBackend(app.config["STORAGE_BACKEND"]),
        worlds_path=app.config["WORLDS_PATH"],
        database_uri=app.config["DATABASE_URI"],
    )

    manager = SessionManager(
        completion=get_completion(llm_backend, timeout=app.config["LLM_TIMEOUT"]),
        repository=repository,
        time_scale=app.config["TIME_SCALE"],
        arm_timers=app.config["ARM_TIMERS"],
    )
    runner = EngineRunner(manager, request_timeout=app.config["REQUEST_TIMEOUT"])
    runner.start()
    app.extensions[EXTENSION_KEY] = runner
    if not app.config.get("TESTING"):
        atexit.register(runner.shutdown)

    # Register blueprints
    from .routes import world

    app.register_blueprint(world.bp)

    @app.route("/health")
    def health():
        return {"status": "ok", "worlds": runner.manager.sessions()}

    return app


def main():
    """Entry point for `blissnexus-web` command."""
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app()
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", "5000")), threaded=True)


if __name__ == "__main__":
    main()
